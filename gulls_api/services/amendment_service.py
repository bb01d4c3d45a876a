"""
Licence Amendment Service.

Records an amendment to an issued licence and tells the people involved.

Design decisions:
    - One transaction per amendment: species activity rows, the species
      aggregate, the amendment, its optional condition / advisory links and
      the audit note either all commit or none do. Persistence failures are
      logged and reported as ``None``, never raised.
    - Notifications happen strictly after commit and never affect the
      result: create() returns the committed amendment whether or not any
      email went out.
    - Every recipient gets the same, fully personalised content.
    - The applicant address is used whenever present, even if it is the
      holder's address too. The return workflow deduplicates; whether this
      one should is an open product question, so it is left as is.

Payload keys (already validated upstream):
    amendment_data:     licence_id, amend_reason, amended_by, assessment,
                        licence_holder_email_address?, licence_applicant_email_address?
    species_activities: {species_key: {activity fields} | None}
    optional_conditions / optional_advisories: [{"id": n}, ...] or [n, ...]
"""

from __future__ import annotations

import logging

from flask import current_app

from gulls_api.core.exceptions import NotFoundError
from gulls_api.models import db
from gulls_api.models.amendment import (
    AmendAdvisory,
    AmendCondition,
    Amendment,
    AmendmentActivity,
    AmendmentSpecies,
)
from gulls_api.models.licence import Note
from gulls_api.models.species import check_species_keys, insert_species_aggregate
from gulls_api.services import application_service
from gulls_api.services.notification_content import amendment_personalisation
from gulls_api.services.notify_service import NotifyService
from gulls_api.utils.helpers import catalog_id

logger = logging.getLogger(__name__)

# Request-only fields: used for notifications, not stored on the amendment
_RECIPIENT_FIELDS = ("licence_holder_email_address", "licence_applicant_email_address")


# ── Public API ─────────────────────────────────────────────────────────────────


def find_one(amendment_id: int) -> Amendment | None:
    """Return an amendment with its species and catalog links, soft-deleted or not."""
    return db.session.get(Amendment, amendment_id)


def find_all(include_deleted: bool = False) -> list[Amendment]:
    query = Amendment.query if include_deleted else Amendment.query_active()
    return query.order_by(Amendment.id).all()


def create(
    amendment_data: dict,
    species_activities: dict | None = None,
    optional_conditions: list | None = None,
    optional_advisories: list | None = None,
) -> Amendment | None:
    """Create an amendment and notify the holder, applicant and licensing mailbox.

    Returns:
        The committed Amendment, or None if the transaction was rolled back.
    """
    species_activities = species_activities or {}
    check_species_keys(species_activities, "amendment")

    data = dict(amendment_data)
    recipients = {field: data.pop(field, None) for field in _RECIPIENT_FIELDS}

    try:
        aggregate = insert_species_aggregate(
            species_activities,
            activity_model=AmendmentActivity,
            aggregate_model=AmendmentSpecies,
        )

        amendment = Amendment(**data)
        amendment.species_id = aggregate.id
        db.session.add(amendment)
        db.session.flush()

        links = [
            AmendCondition(amendment_id=amendment.id, condition_id=catalog_id(c))
            for c in (optional_conditions or [])
        ]
        links += [
            AmendAdvisory(amendment_id=amendment.id, advisory_id=catalog_id(a))
            for a in (optional_advisories or [])
        ]
        db.session.add_all(links)

        db.session.add(Note(
            note=amendment.amend_reason or "",
            created_by=amendment.amended_by,
            application_id=amendment.licence_id,
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Amendment transaction rolled back",
                         extra={"licence_id": amendment_data.get("licence_id")})
        return None

    amendment_id = amendment.id
    licence_id = amendment.licence_id
    logger.info("Amendment created",
                extra={"licence_id": licence_id, "amendment_id": amendment_id})

    try:
        _notify(amendment_id, licence_id, recipients)
    except Exception:
        logger.exception("Amendment notifications failed",
                         extra={"licence_id": licence_id, "amendment_id": amendment_id})

    return find_one(amendment_id)


def soft_delete(amendment_id: int) -> Amendment:
    """Soft-delete an amendment. Raises NotFoundError for an unknown id."""
    amendment = find_one(amendment_id)
    if amendment is None:
        raise NotFoundError(resource="Amendment", resource_id=amendment_id)
    amendment.soft_delete()
    db.session.commit()
    logger.info("Amendment soft-deleted",
                extra={"licence_id": amendment.licence_id, "amendment_id": amendment_id})
    return amendment


# ── Notifications ──────────────────────────────────────────────────────────────


def _notify(amendment_id: int, licence_id: int, recipients: dict) -> None:
    cfg = current_app.config

    application = application_service.fetch_optional(application_service.find_one, licence_id)
    amendment = application_service.fetch_optional(find_one, amendment_id)

    personalisation = amendment_personalisation(
        application,
        amendment,
        condition_groups=cfg.get("CONDITION_GROUPS", {}),
        advisory_note_ids=cfg.get("ADVISORY_NOTE_IDS", ()),
    )

    holder_email = recipients.get("licence_holder_email_address")
    applicant_email = recipients.get("licence_applicant_email_address")

    addresses = []
    if holder_email:
        addresses.append(holder_email)
    if applicant_email:
        addresses.append(applicant_email)
    addresses.append(cfg["AMENDMENT_INTERNAL_MAILBOX"])

    NotifyService.dispatch(
        template_id=cfg["AMENDMENT_TEMPLATE_ID"],
        recipients=addresses,
        personalisation=personalisation,
        category="amendment",
        licence_id=licence_id,
    )
