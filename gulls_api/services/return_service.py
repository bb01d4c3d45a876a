"""
Licence Return Service.

Records a post-issuance return of the control activities actually carried
out under a licence, then confirms it by email.

Design decisions:
    - One transaction per return: species activity rows, the species
      aggregate and the return commit together or not at all.
    - After commit the application, its site address and the holder /
      applicant contacts are fetched independently; any of them may be
      missing and the email is still built from what is there.
    - Holder and applicant resolving to the same contact get one email.
      Otherwise each with an email address gets one (zero, one or two).
"""

from __future__ import annotations

import logging

from flask import current_app

from gulls_api.core.exceptions import ValidationError
from gulls_api.models import db
from gulls_api.models.returns import RETURN_DATE_FIELDS, Return, ReturnActivity, ReturnSpecies
from gulls_api.models.species import check_species_keys, insert_species_aggregate
from gulls_api.services import application_service
from gulls_api.services.notification_content import return_personalisation
from gulls_api.services.notify_service import NotifyService
from gulls_api.utils.helpers import parse_date_input

logger = logging.getLogger(__name__)


def _normalise_dates(species_key: str, payload: dict) -> dict:
    """Parse the date fields of one species payload; reject unparseable dates."""
    values = dict(payload)
    for field in RETURN_DATE_FIELDS:
        if field not in values:
            continue
        try:
            values[field] = parse_date_input(values[field])
        except ValueError as exc:
            raise ValidationError(
                str(exc), details={"species": species_key, "field": field},
            ) from exc
    return values


def find_one(return_id: int) -> Return | None:
    """Return a licence return with its species activities, soft-deleted or not."""
    return db.session.get(Return, return_id)


def find_all(include_deleted: bool = False) -> list[Return]:
    query = Return.query if include_deleted else Return.query_active()
    return query.order_by(Return.id).all()


def create(return_data: dict, species_activities: dict | None = None) -> Return | None:
    """Create a return and email the licence holder and/or applicant.

    Returns:
        The committed Return, or None if the transaction was rolled back.
    """
    species_activities = species_activities or {}
    check_species_keys(species_activities, "return")
    payloads = {
        key: _normalise_dates(key, payload)
        for key, payload in species_activities.items() if payload
    }

    try:
        aggregate = insert_species_aggregate(
            payloads,
            activity_model=ReturnActivity,
            aggregate_model=ReturnSpecies,
        )

        licence_return = Return(**return_data)
        licence_return.species_id = aggregate.id
        db.session.add(licence_return)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Return transaction rolled back",
                         extra={"licence_id": return_data.get("licence_id")})
        return None

    return_id = licence_return.id
    logger.info("Return created",
                extra={"licence_id": licence_return.licence_id, "return_id": return_id})

    try:
        _notify(licence_return)
    except Exception:
        logger.exception("Return notifications failed", extra={"return_id": return_id})

    return find_one(return_id)


def _notify(licence_return: Return) -> None:
    fetch = application_service.fetch_optional

    application = fetch(application_service.find_one, licence_return.licence_id)
    site_address = fetch(application_service.find_address,
                         application.site_address_id if application else None)
    holder = fetch(application_service.find_contact,
                   application.licence_holder_id if application else None)
    applicant = fetch(application_service.find_contact,
                      application.licence_applicant_id if application else None)

    personalisation = return_personalisation(
        licence_return.licence_id,
        licence_return.created_at,
        site_address,
        licence_return.species,
        timezone_name=current_app.config.get("DISPLAY_TIMEZONE", "Europe/London"),
    )

    if holder is not None and applicant is not None and holder.id == applicant.id:
        addresses = [holder.email_address] if holder.email_address else []
    else:
        addresses = [c.email_address for c in (holder, applicant) if c is not None and c.email_address]

    if not addresses:
        logger.info("No email address for return, nothing sent",
                    extra={"licence_id": licence_return.licence_id, "return_id": licence_return.id})
        return

    NotifyService.dispatch(
        template_id=current_app.config["RETURN_TEMPLATE_ID"],
        recipients=addresses,
        personalisation=personalisation,
        category="return",
        licence_id=licence_return.licence_id,
    )
