"""
Gull Licensing API
Scheduler Service.

A lightweight daily scheduler: one daemon thread sleeps until the next
wall-clock time a registered job is due, runs it inside the Flask app
context, and goes back to sleep. Jobs are hours apart and fire-and-forget,
so there is no catch-up and no overlap guard. A job fires at most once
per calendar day, even if the wall clock moves back while waiting.

Architecture:
    - register_job(): decorator adding a job function + default daily time
    - SchedulerService: job execution, run history (ScheduledJob), timer thread
    - Jobs can also be run by hand: ``flask run-job <name>``
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import date, datetime, timedelta
from typing import Callable

from flask import Flask

from gulls_api.models import db
from gulls_api.models.scheduling import ScheduledJob

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  Job Registry
# ═══════════════════════════════════════════════════════════════════════════

_job_registry: dict[str, Callable] = {}
_job_schedules: dict[str, dict] = {}


def register_job(name: str, *, hour: int = 0, minute: int = 0):
    """Decorator to register a job function that runs daily at hour:minute.

    Usage:
        @register_job("return_reminder", hour=3)
        def send_return_reminder(app):
            ...
    """
    def decorator(fn: Callable) -> Callable:
        _job_registry[name] = fn
        _job_schedules[name] = {"hour": hour, "minute": minute}
        return fn
    return decorator


def get_registered_jobs() -> dict[str, Callable]:
    """Return all registered job functions."""
    return dict(_job_registry)


def next_run_time(schedule: dict, now: datetime) -> datetime:
    """Next occurrence of the schedule's wall-clock time strictly after ``now``."""
    candidate = now.replace(
        hour=int(schedule.get("hour", 0)),
        minute=int(schedule.get("minute", 0)),
        second=0,
        microsecond=0,
    )
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class SchedulerService:
    """
    Daily job scheduler.

    Jobs are executed within Flask app context.
    """

    _app: Flask | None = None
    _thread: threading.Thread | None = None
    _stop_event: threading.Event = threading.Event()
    # Date each job last fired from the timer; at most one run per day
    _last_run_dates: dict[str, date] = {}

    @classmethod
    def init_app(cls, app: Flask) -> None:
        """Initialise the scheduler and start the timer when enabled."""
        cls._app = app
        app.extensions["scheduler"] = cls
        logger.info("SchedulerService initialized with %d registered jobs",
                    len(_job_registry))
        if app.config.get("SCHEDULER_ENABLED") and not app.testing:
            cls.start()

    @classmethod
    def schedule_for(cls, job_name: str) -> dict:
        """Daily time for a job: JOB_SCHEDULES config override, else its default."""
        overrides = cls._app.config.get("JOB_SCHEDULES", {}) if cls._app else {}
        return overrides.get(job_name) or _job_schedules.get(job_name, {"hour": 0, "minute": 0})

    @classmethod
    def ensure_jobs_registered(cls) -> list[ScheduledJob]:
        """
        Ensure all registered jobs have a corresponding DB record.
        Creates missing records with their schedule.
        """
        if not cls._app:
            return []

        created = []
        with cls._app.app_context():
            for name, fn in _job_registry.items():
                existing = ScheduledJob.query.filter_by(job_name=name).first()
                if not existing:
                    job = ScheduledJob(
                        job_name=name,
                        description=(fn.__doc__ or f"Scheduled job: {name}").strip()[:500],
                        schedule_config=cls.schedule_for(name),
                        status="active",
                        is_enabled=True,
                    )
                    db.session.add(job)
                    created.append(job)
            if created:
                db.session.commit()
                logger.info("Created %d scheduled job records", len(created))
        return created

    @classmethod
    def run_job(cls, job_name: str) -> dict:
        """
        Execute a single job by name.

        Returns:
            Dict with status, duration_ms, result or error.
        """
        fn = _job_registry.get(job_name)
        if not fn:
            return {"status": "error", "error": f"Unknown job: {job_name}"}

        if not cls._app:
            return {"status": "error", "error": "Scheduler not initialized"}

        start = time.monotonic()
        result = None
        error = None
        status = "success"

        try:
            with cls._app.app_context():
                result = fn(cls._app)
        except Exception as exc:
            status = "failed"
            error = str(exc)
            logger.exception("Job %s failed: %s", job_name, exc, extra={"job_name": job_name})

        duration_ms = int((time.monotonic() - start) * 1000)

        try:
            with cls._app.app_context():
                job_record = ScheduledJob.query.filter_by(job_name=job_name).first()
                if job_record:
                    job_record.record_run(
                        status=status,
                        duration_ms=duration_ms,
                        result=result if isinstance(result, dict) else {"output": str(result)},
                        error=error,
                    )
                    db.session.commit()
        except Exception:
            logger.exception("Failed to update job record for %s", job_name)

        return {
            "job_name": job_name,
            "status": status,
            "duration_ms": duration_ms,
            "result": result,
            "error": error,
        }

    @classmethod
    def list_jobs(cls) -> list[dict]:
        """List all registered jobs with their schedule and DB status."""
        jobs = []
        for name in _job_registry:
            job_record = ScheduledJob.query.filter_by(job_name=name).first()
            jobs.append({
                "job_name": name,
                "schedule": cls.schedule_for(name),
                "db_record": job_record.to_dict() if job_record else None,
            })
        return jobs

    @classmethod
    def toggle_job(cls, job_name: str, enabled: bool) -> dict | None:
        """Enable or disable a scheduled job."""
        job_record = ScheduledJob.query.filter_by(job_name=job_name).first()
        if not job_record:
            return None
        job_record.is_enabled = enabled
        job_record.status = "active" if enabled else "paused"
        db.session.commit()
        return job_record.to_dict()

    # ── Timer thread ──────────────────────────────────────────────────────

    @classmethod
    def next_due(cls, now: datetime) -> tuple[str, datetime] | None:
        """The registered job due soonest after ``now``, with its run time."""
        if not _job_registry:
            return None
        due = {name: next_run_time(cls.schedule_for(name), now) for name in _job_registry}
        return min(due.items(), key=lambda item: item[1])

    @classmethod
    def start(cls) -> None:
        """Start the timer thread (no-op if already running)."""
        if cls._thread and cls._thread.is_alive():
            return
        cls._stop_event.clear()
        cls.ensure_jobs_registered()
        cls._thread = threading.Thread(target=cls._run_loop, name="gulls-scheduler", daemon=True)
        cls._thread.start()
        logger.info("Scheduler timer started")

    @classmethod
    def stop(cls) -> None:
        cls._stop_event.set()
        if cls._thread:
            cls._thread.join(timeout=5)
        cls._thread = None

    @classmethod
    def _is_enabled(cls, job_name: str) -> bool:
        with cls._app.app_context():
            job_record = ScheduledJob.query.filter_by(job_name=job_name).first()
            return job_record is None or bool(job_record.is_enabled)

    @classmethod
    def _run_loop(cls) -> None:
        while not cls._stop_event.is_set():
            now = datetime.now()
            upcoming = cls.next_due(now)
            if upcoming is None:
                return
            job_name, run_at = upcoming
            logger.debug("Next job %s at %s", job_name, run_at.isoformat())
            if cls._stop_event.wait((run_at - now).total_seconds()):
                return
            # The wall clock may have moved while waiting (DST, NTP step)
            if datetime.now() < run_at:
                continue
            if cls._last_run_dates.get(job_name) == run_at.date():
                logger.info("Job %s already ran on %s, skipping", job_name, run_at.date(),
                            extra={"job_name": job_name})
                continue
            cls._last_run_dates[job_name] = run_at.date()
            try:
                if cls._is_enabled(job_name):
                    cls.run_job(job_name)
                else:
                    logger.info("Job %s is paused, skipping", job_name, extra={"job_name": job_name})
            except Exception:
                logger.exception("Scheduler loop error for %s", job_name)
