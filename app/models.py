# app/models.py
import enum
import uuid
from datetime import datetime
from sqlalchemy import String, Text, Enum, text
from sqlalchemy.orm import Mapped, mapped_column
from app.db import Base


class TranscriptStatus(str, enum.Enum):
    none = "none"
    pending = "pending"
    processing = "processing"
    done = "done"
    error = "error"


class ArtifactStatus(str, enum.Enum):
    none = "none"
    pending = "pending"
    processing = "processing"
    done = "done"
    error = "error"


class JobStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    done = "done"
    error = "error"


class ArtifactType(str, enum.Enum):
    summary = "summary"
    notes = "notes"
    quiz = "quiz"


# target status -> statuses it may be reached from
TRANSCRIPT_TRANSITIONS: dict[TranscriptStatus, frozenset[TranscriptStatus]] = {
    TranscriptStatus.pending: frozenset(
        {TranscriptStatus.none, TranscriptStatus.done, TranscriptStatus.error}
    ),
    TranscriptStatus.processing: frozenset({TranscriptStatus.pending}),
    TranscriptStatus.done: frozenset({TranscriptStatus.processing}),
    TranscriptStatus.error: frozenset({TranscriptStatus.processing}),
}

JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.processing: frozenset({JobStatus.pending}),
    JobStatus.done: frozenset({JobStatus.processing}),
    JobStatus.error: frozenset({JobStatus.pending, JobStatus.processing}),
}

_IDLE_ARTIFACT = frozenset(
    {ArtifactStatus.none, ArtifactStatus.pending, ArtifactStatus.done, ArtifactStatus.error}
)
_FINISHING_ARTIFACT = frozenset(
    {ArtifactStatus.processing, ArtifactStatus.done, ArtifactStatus.error}
)
ARTIFACT_TRANSITIONS: dict[ArtifactStatus, frozenset[ArtifactStatus]] = {
    ArtifactStatus.pending: _IDLE_ARTIFACT,
    # two jobs of the same type may overlap; the later one simply re-marks it
    ArtifactStatus.processing: _IDLE_ARTIFACT | {ArtifactStatus.processing},
    # the job claim guards re-delivery; here the last job to finish wins
    ArtifactStatus.done: _FINISHING_ARTIFACT,
    ArtifactStatus.error: _FINISHING_ARTIFACT,
}


def _status_column(enum_cls, default):
    # Portable ENUM: native_enum=False -> becomes VARCHAR+CHECK on SQLite/MySQL
    return mapped_column(
        Enum(enum_cls, native_enum=False, validate_strings=True),
        nullable=False,
        default=default,
        server_default=text(f"'{default.value}'"),
    )


def _new_id() -> str:
    return uuid.uuid4().hex


class Recording(Base):
    __tablename__ = "recordings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    filename: Mapped[str | None] = mapped_column(String(255), default=None)
    storage_path: Mapped[str | None] = mapped_column(Text, default=None)
    storage_url: Mapped[str | None] = mapped_column(Text, default=None)
    # reported by the uploader; only used to label a single-shot transcript
    duration_seconds: Mapped[float | None] = mapped_column(default=None)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP")
    )

    transcript_status: Mapped[TranscriptStatus] = _status_column(TranscriptStatus, TranscriptStatus.none)
    transcript_error: Mapped[str | None] = mapped_column(Text, default=None)
    transcript_preview: Mapped[str | None] = mapped_column(Text, default=None)
    transcript_path: Mapped[str | None] = mapped_column(Text, default=None)
    transcript_last_updated: Mapped[datetime | None] = mapped_column(default=None)

    summary_status: Mapped[ArtifactStatus] = _status_column(ArtifactStatus, ArtifactStatus.none)
    summary_path: Mapped[str | None] = mapped_column(Text, default=None)
    summary_preview: Mapped[str | None] = mapped_column(Text, default=None)
    summary_updated: Mapped[datetime | None] = mapped_column(default=None)

    notes_status: Mapped[ArtifactStatus] = _status_column(ArtifactStatus, ArtifactStatus.none)
    notes_path: Mapped[str | None] = mapped_column(Text, default=None)
    notes_preview: Mapped[str | None] = mapped_column(Text, default=None)
    notes_updated: Mapped[datetime | None] = mapped_column(default=None)

    quiz_status: Mapped[ArtifactStatus] = _status_column(ArtifactStatus, ArtifactStatus.none)
    quiz_path: Mapped[str | None] = mapped_column(Text, default=None)
    quiz_preview: Mapped[str | None] = mapped_column(Text, default=None)
    quiz_updated: Mapped[datetime | None] = mapped_column(default=None)

    def artifact_status(self, kind: ArtifactType) -> ArtifactStatus:
        return getattr(self, f"{kind.value}_status")

    def artifact_path(self, kind: ArtifactType) -> str | None:
        return getattr(self, f"{kind.value}_path")

    def artifact_preview(self, kind: ArtifactType) -> str | None:
        return getattr(self, f"{kind.value}_preview")


class AiJob(Base):
    __tablename__ = "ai_jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    # kept as plain strings: a malformed job record must still be storable so
    # the worker can reject it with an error instead of the insert failing
    type: Mapped[str | None] = mapped_column(String(16), default=None)
    recording_id: Mapped[str | None] = mapped_column(String(64), index=True, default=None)
    owner_id: Mapped[str | None] = mapped_column(String(128), default=None)

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, validate_strings=True),
        nullable=False,
        index=True,
        default=JobStatus.pending,
        server_default=text("'pending'")
    )
    error: Mapped[str | None] = mapped_column(Text, default=None)
    output_path: Mapped[str | None] = mapped_column(Text, default=None)
    preview: Mapped[str | None] = mapped_column(Text, default=None)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime | None] = mapped_column(default=None)
    completed_at: Mapped[datetime | None] = mapped_column(default=None)
