#!/usr/bin/env python3
"""
Re-trigger reports stuck in pending/generating, and create the missing report
for completed purchases that never got one.

Usage:
    python scripts/redrive_reports.py                   # enqueue stalled reports (>15 min)
    python scripts/redrive_reports.py --minutes 60      # custom staleness threshold
    python scripts/redrive_reports.py --inline          # generate in this process, no worker

Requires: DATABASE_URL, plus REDIS_URL unless --inline.
"""
import sys
import os
import argparse
from datetime import timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from readiness.config import STALLED_REPORT_MINUTES
from readiness.fulfillment.factory import build_orchestrator
from readiness.logging_config import configure_logging


def main():
    parser = argparse.ArgumentParser(description='Redrive stalled PDF reports')
    parser.add_argument('--minutes', type=int, default=STALLED_REPORT_MINUTES,
                        help='Only touch reports stalled for at least this many minutes')
    parser.add_argument('--inline', action='store_true', help='Generate in-process instead of enqueueing')
    args = parser.parse_args()

    configure_logging()

    orchestrator = build_orchestrator()
    summary = orchestrator.redrive_stalled_reports(
        older_than=timedelta(minutes=args.minutes), inline=args.inline,
    )

    print(f'Redriven: {len(summary.redriven)}  Recreated: {len(summary.recreated)}')
    for effect in summary.failures:
        print(f'  ! {effect.name}: {effect.error}')
    return 1 if summary.failures else 0


if __name__ == '__main__':
    sys.exit(main())
