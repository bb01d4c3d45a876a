"""
Gull Licensing API
Notification content builders.

Pure functions turning committed licence / amendment / return object graphs
into the flat personalisation maps handed to GOV.UK Notify. Notify owns the
email layout; everything here is plain text with one item per line.

Nothing in this module touches the database session or the network.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable

import pytz

from gulls_api.models.species import species_present

# (flag, quantity field, sentence) in the order lines appear on a licence
_PERMITTED_ACTIVITIES = (
    ("remove_nests", "quantity_nests_to_remove",
     "To take and destroy {n} nests and any eggs they contain by hand."),
    ("egg_destruction", "quantity_nests_where_eggs_destroyed",
     "To take and destroy eggs from {n} nests by oiling, pricking or replacing with dummy eggs."),
    ("chicks_to_rescue_centre", "quantity_chicks_to_rescue",
     "To take {n} chicks to a wildlife rescue centre by hand, net or trap."),
    ("chicks_relocate_nearby", "quantity_chicks_to_relocate",
     "To take {n} chicks and relocate nearby by hand, net or trap."),
    ("kill_chicks", "quantity_chicks_to_kill",
     "To kill up to {n} chicks by shooting or by hand, net or trap."),
    ("kill_adults", "quantity_adults_to_kill",
     "To kill up to {n} adults by shooting, falconry or by hand, net or trap."),
)

AMENDED_NUMBERS_NOTE = (
    "Numbers permitted for amended activities are the total for the site, "
    "not additional to those already permitted."
)


# ── Formatting primitives ────────────────────────────────────────────────────


def summary_address(address) -> str:
    """One-line address: ``line 1, [line 2, ]town, county, postcode``."""
    if address is None:
        return ""
    parts = [address.address_line_1]
    if address.address_line_2:
        parts.append(address.address_line_2)
    parts.extend([address.address_town, address.address_county, address.postcode])
    return ", ".join((p or "").strip() for p in parts)


def display_date(value: date | datetime | None) -> str:
    """Long UK date, e.g. ``Monday 31 January 2022``."""
    if value is None:
        return ""
    return f"{value:%A} {value.day} {value:%B %Y}"


def short_date(value: date | datetime | None) -> str:
    """Short UK date, e.g. ``31/01/2022``."""
    if value is None:
        return ""
    return f"{value:%d/%m/%Y}"


def local_time(value: datetime | None, timezone_name: str = "Europe/London") -> datetime | None:
    """Convert a stored timestamp to wall-clock time in ``timezone_name``.

    Naive values are taken to be UTC (SQLite drops the offset).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = pytz.UTC.localize(value)
    return value.astimezone(pytz.timezone(timezone_name))


# ── Amendment blocks ─────────────────────────────────────────────────────────


def _activity_lines(activity, display_name: str) -> list[str]:
    lines = []
    for flag, quantity_field, sentence in _PERMITTED_ACTIVITIES:
        if getattr(activity, flag, False):
            quantity = getattr(activity, quantity_field, None)
            lines.append(f"{display_name}: {sentence.format(n=quantity)}")
    return lines


def permitted_activities(species_aggregate) -> str:
    """Every permitted activity for every species present, one per line."""
    lines = []
    for species, activity in species_present(species_aggregate):
        if activity is None:
            continue
        lines.extend(_activity_lines(activity, species.display_name))
    return "\n".join(lines)


def conservation_status(species_aggregate) -> str:
    """Static conservation-status line for each species present."""
    return "\n".join(
        species.conservation_status for species, _activity in species_present(species_aggregate)
    )


def catalog_text(items: Iterable, allowed_ids: Iterable[int]) -> str:
    """Text of catalog items (Condition / Advisory rows) whose id is allowed.

    Items are ordered by their catalog ``order_number``, then id.
    """
    allowed = set(allowed_ids)
    selected = [item for item in items if item is not None and item.id in allowed]
    selected.sort(key=lambda item: (item.order_number if item.order_number is not None else 0, item.id))
    return "\n".join(
        getattr(item, "condition", None) or getattr(item, "advisory", "") for item in selected
    )


def amendment_personalisation(application, amendment, *, condition_groups: dict,
                              advisory_note_ids: Iterable[int]) -> dict[str, Any]:
    """Build the Notify personalisation map for an amendment email.

    ``application`` or ``amendment`` may be ``None`` when the post-commit read
    failed; the fields that depend on them are left empty.
    """
    conditions = [link.condition for link in amendment.amend_conditions] if amendment else []
    advisories = [link.advisory for link in amendment.amend_advisories] if amendment else []
    species = amendment.species if amendment else None

    holder = application.licence_holder if application else None

    return {
        "licenceNumber": application.id if application else (amendment.licence_id if amendment else ""),
        "siteAddress": summary_address(application.site_address) if application else "",
        "startDate": display_date(application.period_from) if application else "",
        "endDate": display_date(application.period_to) if application else "",
        "licenceHolderName": holder.name if holder else "",
        "licenceHolderAddress": summary_address(application.licence_holder_address) if application else "",
        "permittedActivities": permitted_activities(species),
        "permittedActivitiesNote": AMENDED_NUMBERS_NOTE,
        "advisoryNotes": catalog_text(advisories, advisory_note_ids),
        "generalConditions": catalog_text(conditions, condition_groups.get("general", ())),
        "whatYouMustDoConditions": catalog_text(conditions, condition_groups.get("what_you_must_do", ())),
        "reportingConditions": catalog_text(conditions, condition_groups.get("reporting", ())),
        "statementReason": (amendment.assessment or "") if amendment else "",
        "conservationStatus": conservation_status(species),
    }


# ── Return blocks ────────────────────────────────────────────────────────────


def _on(value) -> str:
    return f" on {short_date(value)}" if value else ""


def _return_lines(activity, name: str) -> list[str]:
    a = activity
    lines = []
    if a.remove_nests and a.quantity_nests_removed and a.quantity_eggs_removed:
        lines.append(f"{name} - {a.quantity_nests_removed} nests removed and "
                     f"{a.quantity_eggs_removed} eggs removed{_on(a.date_nests_eggs_removed)}")
    elif a.remove_nests and a.quantity_nests_removed:
        lines.append(f"{name} - {a.quantity_nests_removed} nests removed{_on(a.date_nests_eggs_removed)}")

    if a.egg_destruction:
        lines.append(f"{name} - {a.quantity_eggs_destroyed} eggs oiled pricked or replaced with "
                     f"dummy eggs from {a.quantity_nests_affected} nests{_on(a.date_nests_eggs_destroyed)}")
    if a.chicks_to_rescue_centre:
        lines.append(f"{name} - {a.quantity_chicks_to_rescue} chicks taken to "
                     f"{a.rescue_centre}{_on(a.date_chicks_to_rescue)}")
    if a.chicks_relocated_nearby:
        lines.append(f"{name} - {a.quantity_chicks_relocated} chicks relocated nearby"
                     f"{_on(a.date_chicks_relocated)}")
    if a.kill_chicks:
        lines.append(f"{name} - {a.quantity_chicks_killed} chicks killed{_on(a.date_chicks_killed)}")
    if a.kill_adults:
        lines.append(f"{name} - {a.quantity_adults_killed} adults killed{_on(a.date_adults_killed)}")
    return [f"* {line}" for line in lines]


def return_details(species_aggregate) -> str:
    """Returned activities for every species present, one bullet per line."""
    lines = []
    for species, activity in species_present(species_aggregate):
        if activity is None:
            continue
        lines.extend(_return_lines(activity, species.display_name))
    return "\n".join(lines)


def return_personalisation(licence_id, return_date, site_address, species_aggregate, *,
                           timezone_name: str = "Europe/London") -> dict[str, Any]:
    """Build the Notify personalisation map for a return confirmation email.

    ``return_date`` is the stored UTC creation time; the email shows the
    local calendar date.
    """
    return {
        "id": licence_id,
        "returnDate": short_date(local_time(return_date, timezone_name)),
        "siteAddress": summary_address(site_address),
        "returnDetails": return_details(species_aggregate),
    }
