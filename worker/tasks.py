"""
Trigger handlers for the two pipeline runs.

``process_transcript_request`` reacts to a recording whose
transcript_status moved to "pending"; ``process_ai_job`` reacts to a newly
created AI job. Both are safe to call more than once for the same event:
the pending -> processing claim in :mod:`worker.status` lets exactly one
delivery through. Failures end up on the record (status="error"), never as
an exception to the caller.
"""
import logging
from pathlib import Path
from typing import Callable

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded

from app import llm_client, workspace
from app.artifacts import make_preview, parse_model_json, validate_artifact
from app.audio import Transcoder
from app.db import SessionLocal
from app.downloader import DEFAULT_FILENAME, fetch_audio
from app.errors import PipelineError
from app.models import AiJob, ArtifactStatus, ArtifactType, JobStatus, Recording, TranscriptStatus
from app.prompts import system_prompt, user_prompt
from app.segmenter import split_or_whole
from app.settings import settings
from app.storage import BlobStore, get_blob_store, read_transcript_text, save_artifact_json, save_transcript_text
from app.transcription import Transcribe, transcribe_parts
from worker import status

logger = logging.getLogger(__name__)

Complete = Callable[[str, str], str]


def is_transcript_request(before: str | None, after: str | None) -> bool:
    prev = before or TranscriptStatus.none.value
    curr = after or TranscriptStatus.none.value
    return prev != curr and curr == TranscriptStatus.pending.value


def _transcribe_recording(
    recording: Recording,
    store: BlobStore,
    transcoder: Transcoder,
    transcribe: Transcribe,
    segment_seconds: int,
) -> str:
    with workspace.acquire(recording.id) as ws:
        suffix = Path(recording.filename or DEFAULT_FILENAME).suffix or ".m4a"
        src = fetch_audio(recording, store, ws.path(f"{recording.id}{suffix}"))
        parts = split_or_whole(transcoder, src, segment_seconds, recording.duration_seconds)
        for part in parts:
            if part.path != src:
                ws.adopt(part.path)
        text = transcribe_parts(parts, transcribe, transcoder, ws, segment_seconds)
        # normal termination: drop the audio now rather than at scope exit
        ws.cleanup()
    return text


def process_transcript_request(
    recording_id: str,
    before: str | None,
    after: str | None,
    store: BlobStore | None = None,
    transcoder: Transcoder | None = None,
    transcribe: Transcribe | None = None,
    segment_seconds: int | None = None,
) -> None:
    if not is_transcript_request(before, after):
        logger.debug("recording %s: transcript %s -> %s ignored", recording_id, before, after)
        return

    with SessionLocal() as db:
        recording = db.get(Recording, recording_id)
    if recording is None:
        logger.warning("recording %s: not found, transcript request dropped", recording_id)
        return
    if not status.claim_transcript(recording_id):
        logger.info("recording %s: already past pending, duplicate trigger ignored", recording_id)
        return
    logger.info("recording %s: pending -> processing", recording_id)

    try:
        store = store or get_blob_store()
        text = _transcribe_recording(
            recording,
            store,
            transcoder or Transcoder.locate(),
            transcribe or llm_client.transcribe_chunk,
            segment_seconds or settings.SEGMENT_SECONDS,
        )
        key = save_transcript_text(store, recording_id, text)
    except PipelineError as e:
        logger.error("recording %s: transcription failed: %s", recording_id, e)
        status.fail_transcript(recording_id, str(e))
        return
    except SoftTimeLimitExceeded:
        logger.error("recording %s: transcription timed out", recording_id)
        status.fail_transcript(recording_id, "Transcription timed out.")
        return
    except Exception as e:
        logger.exception("recording %s: transcription failed", recording_id)
        status.fail_transcript(recording_id, str(e) or e.__class__.__name__)
        return

    status.set_transcript_status(
        recording_id,
        TranscriptStatus.done,
        transcript_preview=text[: settings.TRANSCRIPT_PREVIEW_CHARS],
        transcript_path=key,
        transcript_error=None,
    )
    logger.info("recording %s: transcript saved to %s", recording_id, key)


def _artifact_type(value: str | None) -> ArtifactType | None:
    try:
        return ArtifactType(value)
    except ValueError:
        return None


def process_ai_job(job_id: str, store: BlobStore | None = None, complete: Complete | None = None) -> None:
    with SessionLocal() as db:
        job = db.get(AiJob, job_id)
    if job is None:
        logger.warning("job %s: not found", job_id)
        return
    if job.status is not JobStatus.pending:
        logger.info("job %s: status %s, duplicate trigger ignored", job_id, job.status.value)
        return

    recording_id = job.recording_id
    if not job.type or not recording_id:
        logger.error("job %s: missing type or recording id", job_id)
        status.set_job_status(job_id, JobStatus.error, error="Missing job.type or job.recordingId")
        return
    kind = _artifact_type(job.type)
    if kind is None:
        logger.error("job %s: unknown type %r", job_id, job.type)
        status.set_job_status(job_id, JobStatus.error, error=f"Unknown job type: {job.type}")
        return

    if not status.claim_job(job_id):
        logger.info("job %s: claimed elsewhere, duplicate trigger ignored", job_id)
        return
    with SessionLocal() as db:
        recording_exists = db.get(Recording, recording_id) is not None
    if not recording_exists:
        logger.error("job %s: recording %s not found", job_id, recording_id)
        status.fail_job(job_id, "Recording not found.")
        return
    status.set_artifact_status(recording_id, kind, ArtifactStatus.processing)
    logger.info("job %s: generating %s for recording %s", job_id, kind.value, recording_id)

    try:
        store = store or get_blob_store()
        transcript = read_transcript_text(store, recording_id)
        raw = (complete or llm_client.complete_json)(system_prompt(kind), user_prompt(kind, transcript))
        data = validate_artifact(kind, parse_model_json(raw))
        key = save_artifact_json(store, recording_id, kind, job_id, data)
    except PipelineError as e:
        logger.error("job %s: %s", job_id, e)
        status.fail_job(job_id, str(e), recording_id, kind)
        return
    except SoftTimeLimitExceeded:
        logger.error("job %s: generation timed out", job_id)
        status.fail_job(job_id, "Generation timed out.", recording_id, kind)
        return
    except Exception as e:
        logger.exception("job %s: generation failed", job_id)
        status.fail_job(job_id, str(e) or e.__class__.__name__, recording_id, kind)
        return

    preview = make_preview(kind, data)
    status.set_job_status(job_id, JobStatus.done, output_path=key, preview=preview)
    status.set_artifact_status(recording_id, kind, ArtifactStatus.done, path=key, preview=preview)
    logger.info("job %s: %s saved to %s", job_id, kind.value, key)


@shared_task(
    name="worker.tasks.transcribe_recording",
    soft_time_limit=settings.TRANSCRIBE_TIME_LIMIT,
    time_limit=settings.TRANSCRIBE_TIME_LIMIT + 30,
)
def transcribe_recording(recording_id: str, before: str | None, after: str | None):
    process_transcript_request(recording_id, before, after)


@shared_task(
    name="worker.tasks.generate_ai_output",
    soft_time_limit=settings.AI_JOB_TIME_LIMIT,
    time_limit=settings.AI_JOB_TIME_LIMIT + 30,
)
def generate_ai_output(job_id: str):
    process_ai_job(job_id)
