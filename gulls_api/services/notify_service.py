"""
Gull Licensing API
Notify Service — outbound email via GOV.UK Notify.

Sends template-based emails through the GOV.UK Notify API. Notify owns the
email templates; this service only supplies a template id, a recipient and a
flat personalisation map.

When NOTIFY_API_KEY is not configured notifications are *disabled*: nothing
is sent, nothing fails, and the EmailLog row is marked ``disabled``.

Two layers:
    - send():      one provider call. Provider errors propagate to the caller.
    - dispatch():  post-commit delivery used by the workflows. Calls send()
                   once per recipient, records every attempt in EmailLog and
                   contains each failure so the already-committed write and
                   the other recipients are unaffected.

Failed rows are retried later by the ``retry_failed_notifications`` job
(resend_failed()), never inline.

Configuration (env vars):
    NOTIFY_API_KEY          Notify API key (default: None → disabled)
    NOTIFY_REPLY_TO_ID      Reply-to address id registered in Notify
    NOTIFY_MAX_ATTEMPTS     Attempts before a failed email is left alone (default: 3)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from flask import current_app
from notifications_python_client.notifications import NotificationsAPIClient

from gulls_api.models import db
from gulls_api.models.scheduling import EmailLog

logger = logging.getLogger(__name__)


class NotifyService:
    """GOV.UK Notify dispatcher with an explicit notifications-disabled mode."""

    @staticmethod
    def is_configured() -> bool:
        """Check if a Notify API key is configured."""
        return bool(current_app.config.get("NOTIFY_API_KEY"))

    @classmethod
    def send(
        cls,
        *,
        template_id: str,
        email_address: str,
        personalisation: dict[str, Any],
        reference: str | None = None,
    ) -> dict | None:
        """
        Ask Notify to send one templated email.

        Returns:
            Notify's response body, or None when notifications are disabled.

        Raises:
            Whatever the Notify client raises (HTTPError, requests errors).
            Not caught or retried here.
        """
        if not cls.is_configured():
            logger.info(
                "Notify disabled, not sending: to=%s template=%s",
                email_address, template_id,
            )
            return None

        client = NotificationsAPIClient(current_app.config["NOTIFY_API_KEY"])
        return client.send_email_notification(
            email_address=email_address,
            template_id=template_id,
            personalisation=personalisation,
            reference=reference,
            email_reply_to_id=current_app.config.get("NOTIFY_REPLY_TO_ID"),
        )

    @classmethod
    def dispatch(
        cls,
        *,
        template_id: str,
        recipients: Iterable[str],
        personalisation: dict[str, Any],
        category: str,
        licence_id: int | None = None,
    ) -> list[EmailLog]:
        """
        Send the same personalisation to each recipient, independently.

        Every recipient gets its own EmailLog row, committed on its own, so
        a failure for one recipient never affects another.

        Returns:
            The EmailLog records, one per recipient, in order.
        """
        logs = []
        for address in recipients:
            log = EmailLog(
                recipient_email=address,
                template_id=template_id,
                personalisation=personalisation,
                category=category,
                licence_id=licence_id,
                status="queued",
                attempts=0,
            )
            try:
                db.session.add(log)
                cls._deliver(log)
                db.session.commit()
            except Exception:
                db.session.rollback()
                logger.exception("Could not record %s email to %s", category, address)
                continue
            logs.append(log)
        return logs

    @classmethod
    def resend_failed(cls, max_attempts: int | None = None) -> dict[str, int]:
        """Retry EmailLog rows left in ``failed`` with attempts to spare."""
        if max_attempts is None:
            max_attempts = current_app.config.get("NOTIFY_MAX_ATTEMPTS", 3)

        results = {"retried": 0, "sent": 0, "failed": 0}
        pending = EmailLog.query.filter(
            EmailLog.status == "failed",
            EmailLog.attempts < max_attempts,
        ).order_by(EmailLog.id).all()

        for log in pending:
            results["retried"] += 1
            cls._deliver(log)
            if log.status == "failed":
                results["failed"] += 1
            elif log.status == "sent":
                results["sent"] += 1
            db.session.commit()

        logger.info("Notify resend: %s", results)
        return results

    @classmethod
    def _deliver(cls, log: EmailLog) -> None:
        """One delivery attempt for an EmailLog row; updates it in place."""
        log.attempts = (log.attempts or 0) + 1
        try:
            response = cls.send(
                template_id=log.template_id,
                email_address=log.recipient_email,
                personalisation=log.personalisation or {},
                reference=f"{log.category}-{log.licence_id}" if log.licence_id else None,
            )
        except Exception as exc:
            log.status = "failed"
            log.error_message = str(exc)[:1000]
            logger.error(
                "Notify email failed: to=%s error=%s", log.recipient_email, exc,
                extra={"licence_id": log.licence_id, "template_id": log.template_id,
                       "email_status": "failed"},
            )
            return

        if response is None:
            log.status = "disabled"
            return

        log.status = "sent"
        log.error_message = None
        log.sent_at = datetime.now(timezone.utc)
        log.provider_id = str(response.get("id")) if isinstance(response, dict) and response.get("id") else None
        logger.info(
            "Notify email sent: to=%s template=%s", log.recipient_email, log.template_id,
            extra={"licence_id": log.licence_id, "email_status": "sent"},
        )
