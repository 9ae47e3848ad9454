#!/usr/bin/env python3
"""
Seed a sample analysis + lead for exercising checkout and the PDF preview locally.

Usage:
    python scripts/seed_test_data.py          # seed the sample analysis
    python scripts/seed_test_data.py --clear  # wipe seeded data first

Requires: DATABASE_URL set (or defaults to sqlite:///local.db).
"""
import sys
import os
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from readiness.database import get_session, engine, Base
from readiness.models.analysis import Analysis
from readiness.models.lead import Lead
from readiness.models.common import utcnow

SAMPLE_ANALYSIS_ID = 'sample-analysis'
SAMPLE_EMAIL = 'owner@example.com'

SAMPLE_CHECKS = [
    {'id': 'robots', 'label': 'AI Crawler Access', 'status': 'fail', 'score': 10,
     'details': 'robots.txt blocks GPTBot and ClaudeBot.',
     'recommendation': 'Allow AI crawlers in robots.txt'},
    {'id': 'schema', 'label': 'Structured Data', 'status': 'warning', 'score': 50,
     'details': 'Organization schema present; Product schema missing.',
     'recommendation': 'Add Product and FAQ schema markup'},
    {'id': 'llms_txt', 'label': 'llms.txt', 'status': 'fail', 'score': 0,
     'details': 'No /llms.txt found.',
     'recommendation': 'Publish an llms.txt describing your key pages'},
    {'id': 'meta', 'label': 'Meta Descriptions', 'status': 'pass', 'score': 95,
     'details': '19 of 20 pages have meta descriptions.',
     'recommendation': 'Add a meta description to the remaining page'},
    {'id': 'sitemap', 'label': 'Sitemap', 'status': 'pass', 'score': 100,
     'details': 'sitemap.xml is valid and referenced from robots.txt.',
     'recommendation': 'No action needed'},
]


def clear_seeded_data(session):
    deleted_leads = session.query(Lead).filter_by(analysis_id=SAMPLE_ANALYSIS_ID).delete()
    deleted = session.query(Analysis).filter_by(id=SAMPLE_ANALYSIS_ID).delete()
    session.commit()
    print(f'Cleared {deleted} analyses, {deleted_leads} leads.')


def seed(session):
    session.add(Analysis(
        id=SAMPLE_ANALYSIS_ID,
        url='https://www.example.com',
        domain='example.com',
        overall_score=51,
        checks=SAMPLE_CHECKS,
        meta={'title': 'Example Domain', 'analyzedAt': utcnow().isoformat()},
    ))
    session.add(Lead(
        email=SAMPLE_EMAIL,
        analysis_id=SAMPLE_ANALYSIS_ID,
        privacy_accepted=True,
        consent_timestamp=utcnow(),
    ))
    session.commit()


def main():
    parser = argparse.ArgumentParser(description='Seed a sample analysis for local testing')
    parser.add_argument('--clear', action='store_true', help='Clear seeded data before seeding')
    args = parser.parse_args()

    # Ensure tables exist (for SQLite local dev)
    Base.metadata.create_all(engine)

    session = get_session()
    try:
        if args.clear:
            clear_seeded_data(session)
        seed(session)
        print(f'\nDone! Preview: http://localhost:8080/pdf/preview?id={SAMPLE_ANALYSIS_ID}')
    except Exception as e:
        session.rollback()
        print(f'Error: {e}')
        raise
    finally:
        session.close()


if __name__ == '__main__':
    main()
