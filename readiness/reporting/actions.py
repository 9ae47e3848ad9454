"""
Score banding and the remediation ranking shared by the PDF and the email.
"""
from dataclasses import dataclass
from typing import Dict, List

PRIORITY_ORDER = {'high': 0, 'medium': 1, 'low': 2}

GREEN = '#22C55E'
YELLOW = '#EAB308'
RED = '#EF4444'


@dataclass(frozen=True)
class ActionItem:
    priority: str   # high | medium | low
    label: str
    recommendation: str
    score: int

    @property
    def text(self):
        return f"{self.label}: {self.recommendation}"


def _check_priority(check: Dict):
    """Failing → high, warning → medium, passing below 100 → low, perfect → None."""
    status = check.get('status')
    if status == 'fail':
        return 'high'
    if status == 'warning':
        return 'medium'
    if (check.get('score') or 0) < 100:
        return 'low'
    return None


def generate_action_items(checks: List[Dict]) -> List[ActionItem]:
    """
    Rank checks into remediation items.

    Tier first (high, medium, low), then ascending score so the worst check
    in each tier leads. The sort is stable, so ties keep input order.
    """
    items = []
    for check in checks or []:
        priority = _check_priority(check)
        if priority is None:
            continue
        items.append(ActionItem(
            priority=priority,
            label=check.get('label', ''),
            recommendation=check.get('recommendation', ''),
            score=check.get('score') or 0,
        ))
    return sorted(items, key=lambda item: (PRIORITY_ORDER[item.priority], item.score))


def score_color(score: int) -> str:
    if score >= 80:
        return GREEN
    if score >= 50:
        return YELLOW
    return RED


def score_grade(score: int) -> str:
    if score >= 90:
        return 'Excellent'
    if score >= 80:
        return 'Good'
    if score >= 70:
        return 'Fair'
    if score >= 50:
        return 'Needs Work'
    return 'Critical'


def score_summary(score: int, domain: str) -> str:
    if score >= 80:
        return (f"{domain} is well-optimized for AI discovery. Your site follows best practices for "
                "semantic structure, metadata, and machine readability. Focus on the recommendations "
                "below to reach excellence.")
    if score >= 60:
        return (f"{domain} has a solid foundation but needs improvements. AI agents can find your site, "
                "but may struggle to understand your content fully. Address the high-priority items below.")
    if score >= 40:
        return (f"{domain} needs significant work to be AI-ready. Current issues may prevent AI agents "
                "from properly understanding and recommending your content. Follow the action plan below.")
    return (f"{domain} has critical AI readiness issues. AI agents may not be able to properly discover "
            "or understand your content. Immediate action is required on the items below.")
