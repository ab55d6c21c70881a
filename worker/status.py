"""
Status coordinator: the only place pipeline status fields are written.

Every write is a single conditional ``UPDATE ... WHERE status IN (...)``
built from the transition tables in :mod:`app.models`, paired with a
server-side timestamp. A write whose source state is not allowed touches
no row and returns False; callers treat that as "someone else owns this".
"""
import logging
from typing import Any

from sqlalchemy import func, update

from app.db import SessionLocal
from app.models import (
    ARTIFACT_TRANSITIONS,
    JOB_TRANSITIONS,
    TRANSCRIPT_TRANSITIONS,
    AiJob,
    ArtifactStatus,
    ArtifactType,
    JobStatus,
    Recording,
    TranscriptStatus,
)

logger = logging.getLogger(__name__)


def _apply(model, row_id: str, status_attr: str, sources, values: dict[str, Any]) -> bool:
    column = getattr(model, status_attr)
    stmt = (
        update(model)
        .where(model.id == row_id, column.in_(list(sources)))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    with SessionLocal() as db:
        changed = db.execute(stmt).rowcount
        db.commit()
    return changed == 1


def set_transcript_status(recording_id: str, target: TranscriptStatus, **fields: Any) -> bool:
    ok = _apply(
        Recording,
        recording_id,
        "transcript_status",
        TRANSCRIPT_TRANSITIONS[target],
        {"transcript_status": target, "transcript_last_updated": func.now(), **fields},
    )
    if not ok:
        logger.warning("recording %s: transcript -> %s rejected by current state", recording_id, target.value)
    return ok


def set_job_status(job_id: str, target: JobStatus, **fields: Any) -> bool:
    values = {"status": target, "updated_at": func.now(), **fields}
    if target is JobStatus.done:
        values["completed_at"] = func.now()
    ok = _apply(AiJob, job_id, "status", JOB_TRANSITIONS[target], values)
    if not ok:
        logger.warning("job %s: -> %s rejected by current state", job_id, target.value)
    return ok


def set_artifact_status(
    recording_id: str,
    kind: ArtifactType,
    target: ArtifactStatus,
    path: str | None = None,
    preview: str | None = None,
) -> bool:
    values: dict[str, Any] = {f"{kind.value}_status": target, f"{kind.value}_updated": func.now()}
    if path is not None:
        values[f"{kind.value}_path"] = path
    if preview is not None:
        values[f"{kind.value}_preview"] = preview
    ok = _apply(Recording, recording_id, f"{kind.value}_status", ARTIFACT_TRANSITIONS[target], values)
    if not ok:
        logger.warning("recording %s: %s -> %s rejected by current state", recording_id, kind.value, target.value)
    return ok


# Claims: the pending -> processing step doubles as the re-delivery guard.

def claim_transcript(recording_id: str) -> bool:
    return set_transcript_status(recording_id, TranscriptStatus.processing, transcript_error=None)


def claim_job(job_id: str) -> bool:
    return set_job_status(job_id, JobStatus.processing, error=None)


def fail_transcript(recording_id: str, message: str) -> None:
    set_transcript_status(recording_id, TranscriptStatus.error, transcript_error=message)


def fail_job(job_id: str, message: str, recording_id: str | None = None, kind: ArtifactType | None = None) -> None:
    set_job_status(job_id, JobStatus.error, error=message)
    if recording_id and kind:
        set_artifact_status(recording_id, kind, ArtifactStatus.error)
