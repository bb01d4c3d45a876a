"""
Gull Licensing API
Tests — licence amendment workflow.

Covers:
    1. Transactional create (species rows, aggregate, links, note)
    2. All-or-nothing rollback on persistence failure
    3. Amendment email content (permitted activities, condition blocks)
    4. Recipients: holder, applicant, internal mailbox; no dedup
    5. find_one / find_all / soft_delete
"""

import pytest

from gulls_api.core.exceptions import NotFoundError, ValidationError
from gulls_api.models import db
from gulls_api.models.amendment import (
    AmendAdvisory,
    AmendCondition,
    Amendment,
    AmendmentActivity,
    AmendmentSpecies,
)
from gulls_api.models.licence import Note
from gulls_api.models.scheduling import EmailLog
from gulls_api.services import amendment_service

HERRING_NESTS = {"remove_nests": True, "quantity_nests_to_remove": 3}


def _amendment_data(licence, **overrides):
    data = {
        "licence_id": licence.id,
        "amend_reason": "Additional nests found on the roof",
        "amended_by": "Licensing officer",
        "assessment": "Public health and safety risk remains.",
        "licence_holder_email_address": "holder@example.com",
        "licence_applicant_email_address": "applicant@example.com",
    }
    data.update(overrides)
    return data


def _row_counts():
    return {
        model.__name__: model.query.count()
        for model in (AmendmentActivity, AmendmentSpecies, Amendment, AmendCondition, AmendAdvisory, Note)
    }


def _amendment_emails():
    return EmailLog.query.filter_by(category="amendment").order_by(EmailLog.id).all()


# ═══════════════════════════════════════════════════════════════════════════
#  Create
# ═══════════════════════════════════════════════════════════════════════════

class TestAmendmentCreate:

    def test_herring_only_amendment(self, licence, catalog):
        amendment = amendment_service.create(
            _amendment_data(licence), {"herring_gull": HERRING_NESTS},
        )

        assert amendment is not None
        assert amendment.licence_id == licence.id
        species = amendment.species
        assert species.herring_gull_id is not None
        assert species.herring_gull.quantity_nests_to_remove == 3
        assert species.black_headed_gull_id is None
        assert species.common_gull_id is None
        assert species.great_black_backed_gull_id is None
        assert species.lesser_black_backed_gull_id is None

        personalisation = _amendment_emails()[0].personalisation
        assert personalisation["permittedActivities"] == (
            "Herring gull: To take and destroy 3 nests and any eggs they contain by hand."
        )
        assert personalisation["advisoryNotes"] == ""
        assert personalisation["generalConditions"] == ""
        assert personalisation["whatYouMustDoConditions"] == ""
        assert personalisation["reportingConditions"] == ""

    def test_recipient_fields_are_not_stored(self, licence, catalog):
        amendment = amendment_service.create(_amendment_data(licence), {})
        assert amendment is not None
        assert not hasattr(Amendment, "licence_holder_email_address")

    def test_zero_species_creates_empty_aggregate(self, licence, catalog):
        amendment = amendment_service.create(_amendment_data(licence))

        assert amendment is not None
        aggregate = amendment.species
        assert aggregate is not None
        assert aggregate.to_dict() == {
            "id": aggregate.id,
            "herring_gull_id": None,
            "black_headed_gull_id": None,
            "common_gull_id": None,
            "great_black_backed_gull_id": None,
            "lesser_black_backed_gull_id": None,
        }
        assert AmendmentActivity.query.count() == 0

        personalisation = _amendment_emails()[0].personalisation
        assert personalisation["permittedActivities"] == ""
        assert personalisation["conservationStatus"] == ""

    def test_all_species_in_table_order(self, licence, catalog):
        payloads = {
            "lesser_black_backed_gull": {"kill_adults": True, "quantity_adults_to_kill": 2},
            "herring_gull": {"egg_destruction": True, "quantity_nests_where_eggs_destroyed": 10},
            "common_gull": {"chicks_relocate_nearby": True, "quantity_chicks_to_relocate": 4},
        }
        amendment = amendment_service.create(_amendment_data(licence), payloads)

        assert AmendmentActivity.query.count() == 3
        lines = _amendment_emails()[0].personalisation["permittedActivities"].split("\n")
        assert lines == [
            "Herring gull: To take and destroy eggs from 10 nests by oiling, pricking or replacing with dummy eggs.",
            "Common gull: To take 4 chicks and relocate nearby by hand, net or trap.",
            "Lesser black-backed gull: To kill up to 2 adults by shooting, falconry or by hand, net or trap.",
        ]
        status = _amendment_emails()[0].personalisation["conservationStatus"].split("\n")
        assert [s.split(":")[0] for s in status] == ["Herring gull", "Common gull", "Lesser black-backed gull"]
        assert amendment.species.great_black_backed_gull_id is None

    def test_note_records_reason_and_author(self, licence, catalog):
        amendment_service.create(_amendment_data(licence), {"herring_gull": HERRING_NESTS})

        note = Note.query.one()
        assert note.application_id == licence.id
        assert note.note == "Additional nests found on the roof"
        assert note.created_by == "Licensing officer"

    def test_optional_links_round_trip(self, licence, catalog):
        amendment = amendment_service.create(
            _amendment_data(licence),
            {"herring_gull": HERRING_NESTS, "common_gull": {"kill_chicks": True, "quantity_chicks_to_kill": 5}},
            optional_conditions=[{"id": 12}, {"id": 19}],
            optional_advisories=[3],
        )
        db.session.expire_all()

        found = amendment_service.find_one(amendment.id)
        d = found.to_dict(include_children=True)
        assert d["species"]["herring_gull_id"] == amendment.species.herring_gull_id
        assert d["species"]["common_gull"]["quantity_chicks_to_kill"] == 5
        assert sorted(d["condition_ids"]) == [12, 19]
        assert d["advisory_ids"] == [3]
        assert found.application.notes[0].note == "Additional nests found on the roof"

    def test_unknown_species_rejected(self, licence, catalog):
        with pytest.raises(ValidationError):
            amendment_service.create(_amendment_data(licence), {"kittiwake": HERRING_NESTS})
        assert Amendment.query.count() == 0


# ═══════════════════════════════════════════════════════════════════════════
#  Rollback
# ═══════════════════════════════════════════════════════════════════════════

class TestAmendmentRollback:

    def test_unknown_condition_rolls_back_everything(self, licence, catalog):
        result = amendment_service.create(
            _amendment_data(licence),
            {"herring_gull": HERRING_NESTS},
            optional_conditions=[{"id": 19}, {"id": 999}],
        )

        assert result is None
        assert set(_row_counts().values()) == {0}
        assert _amendment_emails() == []

    def test_unknown_licence_rolls_back_everything(self, catalog):
        from gulls_api.models.licence import LicenceApplication
        assert LicenceApplication.query.count() == 0

        result = amendment_service.create(
            {"licence_id": 4242, "amend_reason": "x", "amended_by": "y"},
            {"herring_gull": HERRING_NESTS},
        )

        assert result is None
        assert set(_row_counts().values()) == {0}

    def test_bad_activity_field_rolls_back(self, licence, catalog):
        result = amendment_service.create(
            _amendment_data(licence),
            {"herring_gull": HERRING_NESTS, "common_gull": {"not_a_field": 1}},
        )
        assert result is None
        assert set(_row_counts().values()) == {0}

    def test_failure_at_note_step_rolls_back(self, licence, catalog, monkeypatch):
        def _broken_note(**kwargs):
            raise RuntimeError("note insert failed")

        monkeypatch.setattr(amendment_service, "Note", _broken_note)
        result = amendment_service.create(
            _amendment_data(licence), {"herring_gull": HERRING_NESTS},
            optional_conditions=[12], optional_advisories=[1],
        )
        assert result is None
        assert set(_row_counts().values()) == {0}


# ═══════════════════════════════════════════════════════════════════════════
#  Email content
# ═══════════════════════════════════════════════════════════════════════════

class TestAmendmentEmailContent:

    def test_reporting_condition_only_in_reporting_block(self, licence, catalog):
        amendment_service.create(_amendment_data(licence), optional_conditions=[{"id": 21}])

        p = _amendment_emails()[0].personalisation
        assert p["reportingConditions"] == "Condition 21 text"
        assert p["generalConditions"] == ""
        assert p["whatYouMustDoConditions"] == ""

    def test_condition_blocks_and_advisory_allow_list(self, licence, catalog):
        amendment_service.create(
            _amendment_data(licence),
            optional_conditions=[13, 12, 15, 2],
            optional_advisories=[4, 10],
        )

        p = _amendment_emails()[0].personalisation
        assert p["generalConditions"] == "Condition 12 text\nCondition 13 text"
        assert p["whatYouMustDoConditions"] == "Condition 15 text"
        assert "Condition 2 text" not in "".join(str(v) for v in p.values())
        # advisory 10 is not an advisory-note id
        assert p["advisoryNotes"] == "Advisory 4 text"

    def test_licence_details(self, licence, catalog):
        amendment_service.create(_amendment_data(licence), {"herring_gull": HERRING_NESTS})

        p = _amendment_emails()[0].personalisation
        assert p["licenceNumber"] == licence.id
        assert p["siteAddress"] == "Unit 4, Longman Estate, Inverness, Highland, IV1 1AA"
        assert p["licenceHolderAddress"] == "2 High Street, Inverness, Highland, IV2 2BB"
        assert p["licenceHolderName"] == "Alex Holder"
        assert p["startDate"] == "Monday 31 January 2022"
        assert p["endDate"] == "Saturday 31 December 2022"
        assert p["statementReason"] == "Public health and safety risk remains."
        assert p["conservationStatus"].startswith("Herring gull:")
        assert "total for the site" in p["permittedActivitiesNote"]


# ═══════════════════════════════════════════════════════════════════════════
#  Recipients
# ═══════════════════════════════════════════════════════════════════════════

class TestAmendmentRecipients:

    def test_sends_to_holder_applicant_and_mailbox(self, app, licence, catalog, notify_client):
        amendment_service.create(_amendment_data(licence), {"herring_gull": HERRING_NESTS})

        calls = notify_client.send_email_notification.call_args_list
        assert [c.kwargs["email_address"] for c in calls] == [
            "holder@example.com",
            "applicant@example.com",
            app.config["AMENDMENT_INTERNAL_MAILBOX"],
        ]
        assert all(c.kwargs["template_id"] == app.config["AMENDMENT_TEMPLATE_ID"] for c in calls)
        assert all(c.kwargs["email_reply_to_id"] == app.config["NOTIFY_REPLY_TO_ID"] for c in calls)
        # Every recipient receives the same content
        assert len({repr(sorted(c.kwargs["personalisation"].items())) for c in calls}) == 1

    def test_mailbox_only_without_addresses(self, app, licence, catalog, notify_client):
        amendment_service.create(
            _amendment_data(licence, licence_holder_email_address=None,
                            licence_applicant_email_address=""),
        )
        calls = notify_client.send_email_notification.call_args_list
        assert [c.kwargs["email_address"] for c in calls] == [app.config["AMENDMENT_INTERNAL_MAILBOX"]]

    def test_same_holder_and_applicant_address_is_not_deduplicated(self, licence, catalog, notify_client):
        amendment_service.create(
            _amendment_data(licence, licence_applicant_email_address="holder@example.com"),
        )
        assert notify_client.send_email_notification.call_count == 3

    def test_failed_email_does_not_affect_result(self, licence, catalog, notify_client):
        notify_client.send_email_notification.side_effect = [
            RuntimeError("Notify is down"),
            {"id": "n-2"},
            {"id": "n-3"},
        ]

        amendment = amendment_service.create(_amendment_data(licence), {"herring_gull": HERRING_NESTS})

        assert amendment is not None
        assert Amendment.query.count() == 1
        statuses = [log.status for log in _amendment_emails()]
        assert statuses == ["failed", "sent", "sent"]
        assert "Notify is down" in _amendment_emails()[0].error_message

    def test_disabled_notifications_send_nothing(self, licence, catalog):
        from unittest.mock import patch

        with patch("gulls_api.services.notify_service.NotificationsAPIClient") as client_cls:
            amendment = amendment_service.create(_amendment_data(licence))

        assert amendment is not None
        client_cls.assert_not_called()
        assert {log.status for log in _amendment_emails()} == {"disabled"}


# ═══════════════════════════════════════════════════════════════════════════
#  Reads & soft delete
# ═══════════════════════════════════════════════════════════════════════════

class TestAmendmentReads:

    def test_find_all_excludes_soft_deleted(self, licence, catalog):
        first = amendment_service.create(_amendment_data(licence))
        second = amendment_service.create(_amendment_data(licence, amend_reason="Second"))

        amendment_service.soft_delete(first.id)

        assert [a.id for a in amendment_service.find_all()] == [second.id]
        assert len(amendment_service.find_all(include_deleted=True)) == 2
        # find_one still sees soft-deleted amendments
        assert amendment_service.find_one(first.id).is_deleted

    def test_soft_delete_unknown(self):
        with pytest.raises(NotFoundError):
            amendment_service.soft_delete(999)

    def test_find_one_missing(self):
        assert amendment_service.find_one(12345) is None

    def test_soft_delete_is_final(self, licence, catalog):
        amendment = amendment_service.create(_amendment_data(licence))
        amendment_service.soft_delete(amendment.id)

        assert not hasattr(Amendment, "restore")
        assert amendment_service.find_one(amendment.id).is_deleted
        assert amendment_service.find_all() == []
