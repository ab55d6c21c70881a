"""
Document triggers on top of SQLAlchemy session events.

After each flush we note every Recording whose ``transcript_status``
changed (with its before/after values) and every newly inserted AiJob.
The notes are handed to the dispatcher only once the transaction commits,
and dropped on rollback.
"""
from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.models import AiJob, Recording

logger = logging.getLogger(__name__)

_PENDING_KEY = "pending_triggers"


class TriggerDispatcher(Protocol):
    def recording_updated(self, recording_id: str, before: str | None, after: str | None) -> None: ...

    def job_created(self, job_id: str) -> None: ...


class CeleryDispatcher:
    """Delivers trigger events as Celery tasks (at-least-once with acks_late)."""

    def recording_updated(self, recording_id: str, before: str | None, after: str | None) -> None:
        from app.celery_client import celery_app

        celery_app.send_task(
            "worker.tasks.transcribe_recording",
            kwargs={"recording_id": recording_id, "before": before, "after": after},
        )

    def job_created(self, job_id: str) -> None:
        from app.celery_client import celery_app

        celery_app.send_task("worker.tasks.generate_ai_output", kwargs={"job_id": job_id})


_dispatcher: TriggerDispatcher = CeleryDispatcher()


def set_dispatcher(dispatcher: TriggerDispatcher) -> TriggerDispatcher:
    """Install ``dispatcher`` and return the previous one."""
    global _dispatcher
    previous, _dispatcher = _dispatcher, dispatcher
    return previous


def _value(v) -> str | None:
    return getattr(v, "value", v)


@event.listens_for(SessionLocal, "after_flush")
def _collect(session: Session, flush_context) -> None:
    pending = session.info.setdefault(_PENDING_KEY, [])
    for obj in session.new:
        if isinstance(obj, AiJob):
            pending.append(("job_created", (obj.id,)))
    for obj in session.dirty:
        if not isinstance(obj, Recording):
            continue
        hist = inspect(obj).attrs.transcript_status.history
        if not hist.added:
            continue
        before = _value(hist.deleted[0]) if hist.deleted else None
        after = _value(hist.added[0])
        if before != after:
            pending.append(("recording_updated", (obj.id, before, after)))


@event.listens_for(SessionLocal, "after_commit")
def _deliver(session: Session) -> None:
    events = session.info.pop(_PENDING_KEY, [])
    for name, args in events:
        logger.debug("trigger %s%s", name, args)
        getattr(_dispatcher, name)(*args)


@event.listens_for(SessionLocal, "after_soft_rollback")
def _discard(session: Session, previous_transaction) -> None:
    session.info.pop(_PENDING_KEY, None)
