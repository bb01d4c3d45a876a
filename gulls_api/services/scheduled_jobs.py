"""
Gull Licensing API
Scheduled Jobs.

Concrete job implementations that run once a day.

Jobs:
    - return_reminder: asks the API to send 14-day return reminders (03:00)
    - retry_failed_notifications: re-attempts failed Notify emails (04:00)
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from gulls_api.services.scheduler_service import register_job

logger = logging.getLogger(__name__)


@register_job("return_reminder", hour=3, minute=0)
def send_return_reminder(app) -> dict[str, Any]:
    """PATCH the reminder endpoint once; the status is logged, never acted upon."""
    url = app.config.get("REMINDER_URL")
    if not url:
        logger.warning("REMINDER_URL not configured, skipping reminder call")
        return {"status": "skipped"}

    response = requests.patch(url, timeout=app.config.get("REMINDER_TIMEOUT", 30))
    logger.info("14 Day Reminder: %s", response.status_code,
                extra={"job_name": "return_reminder", "status_code": response.status_code})
    return {"url": url, "status_code": response.status_code}


@register_job("retry_failed_notifications", hour=4, minute=0)
def retry_failed_notifications(app) -> dict[str, Any]:
    """Re-send Notify emails that failed after their workflow committed."""
    from gulls_api.services.notify_service import NotifyService

    return NotifyService.resend_failed()
