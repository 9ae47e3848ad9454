"""Shared test fixtures."""
import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from readiness.database import Base
from readiness.fulfillment.orchestrator import FulfillmentOrchestrator
from readiness.services.delivery import DeliveryDispatcher
from readiness.services.payments import CheckoutSession, StripeGateway
from readiness.services.store import RecordStore


SAMPLE_CHECKS = [
    {'id': 'robots', 'label': 'AI Crawler Access', 'status': 'fail', 'score': 10,
     'details': 'robots.txt blocks GPTBot.', 'recommendation': 'Allow AI crawlers in robots.txt'},
    {'id': 'schema', 'label': 'Structured Data', 'status': 'warning', 'score': 50,
     'details': 'Product schema missing.', 'recommendation': 'Add Product schema markup'},
    {'id': 'meta', 'label': 'Meta Descriptions', 'status': 'pass', 'score': 95,
     'details': '19 of 20 pages covered.', 'recommendation': 'Describe the remaining page'},
    {'id': 'sitemap', 'label': 'Sitemap', 'status': 'pass', 'score': 100,
     'details': 'Valid sitemap.', 'recommendation': 'No action needed'},
]


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created, shared across sessions."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    import readiness.models.analysis
    import readiness.models.lead
    import readiness.models.purchase
    import readiness.models.pdf_report
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return RecordStore(session_factory)


@pytest.fixture
def fk_session_factory(db_engine):
    """Sessions on a separate engine with SQLite foreign-key enforcement on, as on Postgres."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, 'connect')
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def fk_store(fk_session_factory):
    return RecordStore(fk_session_factory)


@pytest.fixture
def make_analysis(session_factory):
    """Factory fixture — inserts an Analysis row and returns it."""
    from readiness.models.analysis import Analysis

    def _make(**overrides):
        defaults = dict(
            id='A1',
            url='https://www.example.com',
            domain='example.com',
            overall_score=62,
            checks=SAMPLE_CHECKS,
            meta={'title': 'Example', 'analyzedAt': '2026-10-18T09:30:00Z'},
        )
        defaults.update(overrides)
        session = session_factory()
        try:
            analysis = Analysis(**defaults)
            session.add(analysis)
            session.commit()
            return analysis
        finally:
            session.close()
    return _make


@pytest.fixture
def make_lead(session_factory):
    from readiness.models.lead import Lead

    def _make(**overrides):
        defaults = dict(email='u@x.com', analysis_id='A1')
        defaults.update(overrides)
        session = session_factory()
        try:
            lead = Lead(**defaults)
            session.add(lead)
            session.commit()
            return lead
        finally:
            session.close()
    return _make


@pytest.fixture
def make_purchase(session_factory):
    from readiness.models.purchase import Purchase

    def _make(**overrides):
        defaults = dict(
            analysis_id='A1',
            stripe_checkout_session_id='cs_test_1',
            status='pending',
            amount_cents=4900,
            currency='usd',
            email='u@x.com',
        )
        defaults.update(overrides)
        session = session_factory()
        try:
            purchase = Purchase(**defaults)
            session.add(purchase)
            session.commit()
            return purchase
        finally:
            session.close()
    return _make


@pytest.fixture
def make_report(session_factory):
    from readiness.models.pdf_report import PdfReport

    def _make(**overrides):
        defaults = dict(analysis_id='A1', attempt=1, status='pending')
        defaults.update(overrides)
        session = session_factory()
        try:
            report = PdfReport(**defaults)
            session.add(report)
            session.commit()
            return report
        finally:
            session.close()
    return _make


@pytest.fixture
def gateway():
    """Payment gateway double; parse_event must be configured per test."""
    mock = MagicMock(spec=StripeGateway)
    mock.create_session.return_value = CheckoutSession(
        id='cs_test_1', url='https://checkout.stripe.com/c/pay/cs_test_1',
    )
    return mock


@pytest.fixture
def dispatcher():
    mock = MagicMock(spec=DeliveryDispatcher)
    mock.store.side_effect = lambda data, key, content_type='application/pdf': f'https://reports.example.com/{key}'
    mock.send_email.return_value = 'msg_123'
    return mock


@pytest.fixture
def renderer():
    return MagicMock(return_value=b'%PDF-1.7 test document')


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def schedule():
    return MagicMock()


@pytest.fixture
def orchestrator(store, gateway, dispatcher, renderer, notifier, schedule):
    return FulfillmentOrchestrator(
        store, gateway, dispatcher,
        renderer=renderer,
        schedule=schedule,
        notifier=notifier,
        base_url='https://ready.example.com',
    )


@pytest.fixture
def app(orchestrator, store):
    """Flask test app wired to the in-memory store and test doubles."""
    from readiness import create_app
    with patch('readiness.config.ADMIN_PASSWORD', None):
        app = create_app(orchestrator=orchestrator, store=store)
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c
