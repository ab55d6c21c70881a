"""
Ownership-checked reads exposed to signed-in callers.

Check order is fixed: request fields, recording existence, ownership, then
the object itself. A caller who does not own a recording learns nothing
beyond "it exists", which the not-found answer for a missing id already
gives away.
"""
from typing import Any

from sqlalchemy.orm import Session

from app.errors import InvalidArgument, NotFound, PermissionDenied, TranscriptMissingError
from app.models import ArtifactType, Recording
from app.storage import BlobStore, read_artifact_json, read_transcript_text


def parse_artifact_type(value: str | None) -> ArtifactType:
    try:
        return ArtifactType(value)
    except ValueError:
        raise InvalidArgument("type must be summary|notes|quiz") from None


def owned_recording(db: Session, user_id: str, recording_id: str) -> Recording:
    if not recording_id:
        raise InvalidArgument("recordingId is required")
    recording = db.get(Recording, recording_id)
    if recording is None:
        raise NotFound("Recording not found.")
    if recording.owner_id != user_id:
        raise PermissionDenied("Not your recording.")
    return recording


def get_transcript_text(db: Session, store: BlobStore, user_id: str, recording_id: str) -> dict[str, str]:
    owned_recording(db, user_id, recording_id)
    try:
        text = read_transcript_text(store, recording_id)
    except TranscriptMissingError:
        raise NotFound("Transcript not found for this recording.") from None
    return {"text": text}


def get_ai_job_output(db: Session, store: BlobStore, user_id: str, recording_id: str, type_: str) -> dict[str, Any]:
    if not recording_id:
        raise InvalidArgument("recordingId is required")
    kind = parse_artifact_type(type_)
    recording = owned_recording(db, user_id, recording_id)

    path = recording.artifact_path(kind)
    if not path:
        raise NotFound(f"No {kind.value} output available.")
    if not store.exists(path):
        raise NotFound(f"{kind.value} output file not found in Storage.")
    return {
        "type": kind.value,
        "recordingId": recording_id,
        "path": path,
        "preview": recording.artifact_preview(kind),
        "data": read_artifact_json(store, path),
    }
