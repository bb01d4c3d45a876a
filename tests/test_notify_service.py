"""
Gull Licensing API
Tests — NotifyService (GOV.UK Notify wrapper).

Covers:
    1. Disabled mode when no API key is configured
    2. send() arguments and error propagation
    3. dispatch(): one EmailLog per recipient, failures contained
    4. resend_failed(): retry path with attempt cap
"""

from unittest.mock import patch

import pytest

from gulls_api.models import db
from gulls_api.models.scheduling import EmailLog
from gulls_api.services.notify_service import NotifyService

TEMPLATE = "template-abc"


class TestDisabledMode:

    def test_not_configured_without_key(self):
        assert NotifyService.is_configured() is False

    def test_send_is_a_no_op(self):
        with patch("gulls_api.services.notify_service.NotificationsAPIClient") as client_cls:
            result = NotifyService.send(template_id=TEMPLATE, email_address="a@example.com",
                                        personalisation={"id": 1})
        assert result is None
        client_cls.assert_not_called()

    def test_dispatch_records_disabled(self):
        logs = NotifyService.dispatch(template_id=TEMPLATE, recipients=["a@example.com"],
                                      personalisation={}, category="return", licence_id=1)
        assert [log.status for log in logs] == ["disabled"]
        assert logs[0].attempts == 1


class TestSend:

    def test_send_passes_template_and_reply_to(self, app, notify_client):
        response = NotifyService.send(template_id=TEMPLATE, email_address="a@example.com",
                                      personalisation={"id": 7}, reference="return-7")

        assert response == {"id": "notify-123"}
        notify_client.send_email_notification.assert_called_once_with(
            email_address="a@example.com",
            template_id=TEMPLATE,
            personalisation={"id": 7},
            reference="return-7",
            email_reply_to_id=app.config["NOTIFY_REPLY_TO_ID"],
        )

    def test_send_propagates_provider_errors(self, notify_client):
        notify_client.send_email_notification.side_effect = RuntimeError("400 BadRequest")
        with pytest.raises(RuntimeError):
            NotifyService.send(template_id=TEMPLATE, email_address="a@example.com", personalisation={})


class TestDispatch:

    def test_one_log_per_recipient(self, notify_client):
        logs = NotifyService.dispatch(
            template_id=TEMPLATE,
            recipients=["a@example.com", "b@example.com"],
            personalisation={"id": 3},
            category="amendment",
            licence_id=3,
        )

        assert [log.recipient_email for log in logs] == ["a@example.com", "b@example.com"]
        assert all(log.status == "sent" and log.provider_id == "notify-123" for log in logs)
        assert all(log.sent_at is not None for log in logs)
        assert notify_client.send_email_notification.call_args.kwargs["reference"] == "amendment-3"

    def test_failure_for_one_recipient_does_not_stop_others(self, notify_client):
        notify_client.send_email_notification.side_effect = [ConnectionError("reset"), {"id": "ok-2"}]

        logs = NotifyService.dispatch(template_id=TEMPLATE, recipients=["a@example.com", "b@example.com"],
                                      personalisation={}, category="return")

        assert [log.status for log in logs] == ["failed", "sent"]
        assert logs[0].error_message == "reset"
        assert EmailLog.query.count() == 2


class TestResendFailed:

    def _failed_log(self, attempts=1):
        log = EmailLog(recipient_email="a@example.com", template_id=TEMPLATE, personalisation={"id": 1},
                       category="return", licence_id=1, status="failed", attempts=attempts,
                       error_message="timeout")
        db.session.add(log)
        db.session.commit()
        return log

    def test_retries_failed_rows(self, notify_client):
        log = self._failed_log()

        results = NotifyService.resend_failed()

        assert results == {"retried": 1, "sent": 1, "failed": 0}
        assert log.status == "sent"
        assert log.attempts == 2
        assert log.error_message is None

    def test_respects_attempt_cap(self, notify_client):
        self._failed_log(attempts=3)

        results = NotifyService.resend_failed()

        assert results == {"retried": 0, "sent": 0, "failed": 0}
        notify_client.send_email_notification.assert_not_called()

    def test_still_failing(self, notify_client):
        notify_client.send_email_notification.side_effect = RuntimeError("still down")
        log = self._failed_log()

        results = NotifyService.resend_failed(max_attempts=5)

        assert results == {"retried": 1, "sent": 0, "failed": 1}
        assert log.attempts == 2
        assert log.error_message == "still down"
