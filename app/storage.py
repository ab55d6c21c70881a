"""
Blob store access and the well-known object keys.

Layout inside the container::

    recordings/<filename>                   raw audio (written by the uploader)
    transcripts/<recordingId>.txt           transcript text
    ai/<recordingId>/<type>/<jobId>.json    generated artifacts
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings

from app.errors import TranscriptMissingError
from app.models import ArtifactType
from app.settings import settings

logger = logging.getLogger(__name__)

TRANSCRIPTS_DIR = "transcripts"
AI_DIR = "ai"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


def transcript_key(recording_id: str) -> str:
    return f"{TRANSCRIPTS_DIR}/{recording_id}.txt"


def artifact_key(recording_id: str, kind: ArtifactType, job_id: str) -> str:
    return f"{AI_DIR}/{recording_id}/{kind.value}/{job_id}.json"


class BlobStore:
    """Thin wrapper over one Azure container with the primitives the pipeline needs."""

    def __init__(self, container: ContainerClient):
        self._container = container

    @classmethod
    def from_settings(cls) -> "BlobStore":
        if not settings.AZURE_STORAGE_CONNECTION_STRING or not settings.AZURE_CONTAINER_NAME:
            raise ValueError("AZURE_STORAGE_CONNECTION_STRING and AZURE_CONTAINER_NAME are not set.")
        service = BlobServiceClient.from_connection_string(settings.AZURE_STORAGE_CONNECTION_STRING)
        return cls(service.get_container_client(settings.AZURE_CONTAINER_NAME))

    @property
    def url(self) -> str:
        return self._container.url.rstrip("/")

    def exists(self, key: str) -> bool:
        return self._container.get_blob_client(key).exists()

    def download(self, key: str) -> bytes:
        return self._container.get_blob_client(key).download_blob().readall()

    def download_to_file(self, key: str, target: Path) -> Path:
        with open(target, "wb") as f:
            self._container.get_blob_client(key).download_blob().readinto(f)
        return target

    def upload(self, key: str, data: bytes | str, content_type: str) -> str:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._container.get_blob_client(key).upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type, cache_control="no-store"),
        )
        return key


@lru_cache
def get_blob_store() -> BlobStore:
    return BlobStore.from_settings()


def save_transcript_text(store: BlobStore, recording_id: str, text: str) -> str:
    key = transcript_key(recording_id)
    store.upload(key, text, TEXT_CONTENT_TYPE)
    logger.info("saved transcript %s (%d chars)", key, len(text))
    return key


def read_transcript_text(store: BlobStore, recording_id: str) -> str:
    key = transcript_key(recording_id)
    try:
        if not store.exists(key):
            raise TranscriptMissingError(f"Transcript missing: {key} not found.")
        return store.download(key).decode("utf-8")
    except ResourceNotFoundError as e:
        raise TranscriptMissingError(f"Transcript missing: {key} not found.") from e


def save_artifact_json(store: BlobStore, recording_id: str, kind: ArtifactType, job_id: str, payload: Any) -> str:
    key = artifact_key(recording_id, kind, job_id)
    store.upload(key, json.dumps(payload, indent=2, ensure_ascii=False), JSON_CONTENT_TYPE)
    logger.info("saved %s output %s", kind.value, key)
    return key


def read_artifact_json(store: BlobStore, key: str) -> Any:
    """Load a stored artifact; text that is not JSON comes back as ``{"raw": ...}``."""
    text = store.download(key).decode("utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("stored artifact %s is not valid JSON", key)
        return {"raw": text}
