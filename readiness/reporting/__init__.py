"""
Report rendering — pure functions from an analysis snapshot to documents.

Output depends only on the inputs and the supplied generation timestamp.
"""
from readiness.reporting.actions import ActionItem, generate_action_items, score_grade, score_color, score_summary
from readiness.reporting.renderer import render_report, build_report_html, build_report_email, report_filename
