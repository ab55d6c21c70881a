from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func

from app import access
from app.db import SessionLocal
from app.models import (
    ARTIFACT_TRANSITIONS,
    TRANSCRIPT_TRANSITIONS,
    AiJob,
    ArtifactStatus,
    TranscriptStatus,
)
from app.permissions import get_current_user_id
from app.storage import BlobStore, get_blob_store

router = APIRouter(tags=["recordings"])


class TranscriptTextResponse(BaseModel):
    text: str


class AiJobOutputResponse(BaseModel):
    type: str
    recordingId: str
    path: str
    preview: str | None = None
    data: dict | list | None = None


@router.get("/recordings/{recording_id}/transcript", response_model=TranscriptTextResponse)
def get_transcript_text(
    recording_id: str,
    user_id: str = Depends(get_current_user_id),
    store: BlobStore = Depends(get_blob_store),
):
    with SessionLocal() as db:
        return access.get_transcript_text(db, store, user_id, recording_id)


@router.get("/recordings/{recording_id}/outputs/{type}", response_model=AiJobOutputResponse)
def get_ai_job_output(
    recording_id: str,
    type: str,
    user_id: str = Depends(get_current_user_id),
    store: BlobStore = Depends(get_blob_store),
):
    with SessionLocal() as db:
        return access.get_ai_job_output(db, store, user_id, recording_id, type)


class TranscriptRequestResponse(BaseModel):
    recording_id: str
    transcript_status: str


@router.post(
    "/recordings/{recording_id}/transcript",
    response_model=TranscriptRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def request_transcript(recording_id: str, user_id: str = Depends(get_current_user_id)):
    """
    Flip the recording to "pending"; the update trigger starts transcription.
    Also the way to re-run a finished or failed transcription.
    """
    with SessionLocal() as db:
        recording = access.owned_recording(db, user_id, recording_id)
        if recording.transcript_status not in TRANSCRIPT_TRANSITIONS[TranscriptStatus.pending]:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Transcript is already {recording.transcript_status.value}",
            )
        recording.transcript_status = TranscriptStatus.pending
        recording.transcript_error = None
        recording.transcript_last_updated = func.now()
        db.commit()
    return TranscriptRequestResponse(recording_id=recording_id, transcript_status="pending")


class AiJobRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recording_id: str = Field(alias="recordingId")
    type: str


class AiJobResponse(BaseModel):
    job_id: str
    status: str


@router.post("/ai-jobs", response_model=AiJobResponse, status_code=status.HTTP_201_CREATED)
def create_ai_job(req: AiJobRequest, user_id: str = Depends(get_current_user_id)):
    """
    Record an AI job; the creation trigger generates the output.
    """
    kind = access.parse_artifact_type(req.type)
    with SessionLocal() as db:
        recording = access.owned_recording(db, user_id, req.recording_id)
        job = AiJob(type=kind.value, recording_id=recording.id, owner_id=user_id)
        db.add(job)
        if recording.artifact_status(kind) in ARTIFACT_TRANSITIONS[ArtifactStatus.pending]:
            setattr(recording, f"{kind.value}_status", ArtifactStatus.pending)
            setattr(recording, f"{kind.value}_updated", func.now())
        db.commit()
        job_id = job.id
    return AiJobResponse(job_id=job_id, status="pending")
