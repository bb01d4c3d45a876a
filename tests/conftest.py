"""
Shared pytest fixtures for the Gull Licensing API test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - catalog: Conditions 1-25 and advisories 1-10
    - licence: A licence application with holder, applicant and addresses
    - notify_client: Notify enabled, with the API client mocked out
"""

from datetime import date
from unittest.mock import patch

import pytest

from gulls_api import create_app
from gulls_api.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Domain fixtures ──────────────────────────────────────────────────────


def create_address(**overrides):
    from gulls_api.models.licence import Address
    values = {
        "address_line_1": "1 Harbour Road",
        "address_line_2": None,
        "address_town": "Inverness",
        "address_county": "Highland",
        "postcode": "IV1 1AA",
    }
    values.update(overrides)
    address = Address(**values)
    _db.session.add(address)
    _db.session.flush()
    return address


def create_contact(name="Alex Holder", email_address="holder@example.com"):
    from gulls_api.models.licence import Contact
    contact = Contact(name=name, email_address=email_address)
    _db.session.add(contact)
    _db.session.flush()
    return contact


def create_licence(*, holder=None, applicant=None, site_address=None, holder_address=None,
                   period_from=date(2022, 1, 31), period_to=date(2022, 12, 31)):
    """Create a LicenceApplication and commit it."""
    from gulls_api.models.licence import LicenceApplication
    application = LicenceApplication(
        licence_holder_id=holder.id if holder else None,
        licence_applicant_id=applicant.id if applicant else None,
        site_address_id=site_address.id if site_address else None,
        licence_holder_address_id=holder_address.id if holder_address else None,
        period_from=period_from,
        period_to=period_to,
    )
    _db.session.add(application)
    _db.session.commit()
    return application


@pytest.fixture()
def licence():
    """Licence with distinct holder and applicant, site and holder addresses."""
    holder = create_contact("Alex Holder", "holder@example.com")
    applicant = create_contact("Sam Applicant", "applicant@example.com")
    site = create_address(address_line_1=" Unit 4 ", address_line_2="Longman Estate")
    holder_address = create_address(address_line_1="2 High Street", postcode="IV2 2BB")
    return create_licence(holder=holder, applicant=applicant,
                          site_address=site, holder_address=holder_address)


@pytest.fixture()
def catalog():
    """Conditions 1-25 and advisories 1-10, ordered by id."""
    from gulls_api.models.catalog import Advisory, Condition
    for n in range(1, 26):
        _db.session.add(Condition(id=n, condition=f"Condition {n} text", order_number=n))
    for n in range(1, 11):
        _db.session.add(Advisory(id=n, advisory=f"Advisory {n} text", order_number=n))
    _db.session.commit()


@pytest.fixture()
def notify_client(app, monkeypatch):
    """Enable Notify and return the mocked NotificationsAPIClient instance."""
    monkeypatch.setitem(app.config, "NOTIFY_API_KEY", "test-key")
    with patch("gulls_api.services.notify_service.NotificationsAPIClient") as client_cls:
        client = client_cls.return_value
        client.send_email_notification.return_value = {"id": "notify-123"}
        yield client
