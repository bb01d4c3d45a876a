"""
Licence application reads.

Applications, contacts and addresses are written by the submission flow;
the amendment and return workflows only need to read them back after their
own transaction has committed.

Post-commit reads are best-effort: ``fetch_optional`` returns None instead
of raising, so a failed lookup leaves a personalisation field empty rather
than failing a write that already succeeded.
"""

from __future__ import annotations

import logging

from gulls_api.models import db
from gulls_api.models.licence import Address, Contact, LicenceApplication

logger = logging.getLogger(__name__)


def find_one(application_id: int) -> LicenceApplication | None:
    """Return an application by id, including soft-deleted ones."""
    return db.session.get(LicenceApplication, application_id)


def find_all(include_deleted: bool = False) -> list[LicenceApplication]:
    query = LicenceApplication.query if include_deleted else LicenceApplication.query_active()
    return query.order_by(LicenceApplication.id).all()


def find_contact(contact_id: int) -> Contact | None:
    return db.session.get(Contact, contact_id)


def find_address(address_id: int) -> Address | None:
    return db.session.get(Address, address_id)


def fetch_optional(finder, pk):
    """Call ``finder(pk)``; return None for a missing pk or a failed read."""
    if pk is None:
        return None
    try:
        return finder(pk)
    except Exception:
        db.session.rollback()
        logger.warning("Post-commit read %s(%s) failed", finder.__name__, pk, exc_info=True)
        return None
