import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from app.errors import AudioNotFoundError
from app.models import Recording
from app.settings import settings
from app.storage import BlobStore

logger = logging.getLogger(__name__)

RECORDINGS_DIR = "recordings"
DEFAULT_FILENAME = "audio.m4a"


def _check_allowlist(url: str) -> None:
    host = urlparse(url).hostname or ""
    if host not in settings.ALLOWED_AUDIO_HOSTS:
        raise ValueError(f"URL host not allowed: {host}")


def parse_storage_path(url: str, container_url: str) -> str | None:
    """Object path of ``url`` when it points into our container, else None."""
    base = urlparse(container_url)
    u = urlparse(url)
    if (u.scheme, u.netloc) != (base.scheme, base.netloc):
        return None
    prefix = base.path.rstrip("/") + "/"
    if not u.path.startswith(prefix):
        return None
    return unquote(u.path[len(prefix):]) or None


def resolve_audio_object(recording: Recording, store: BlobStore) -> str | None:
    """Blob key of the raw audio, or None when ``storage_url`` is an external URL."""
    if recording.storage_path:
        return recording.storage_path
    if recording.storage_url:
        parsed = parse_storage_path(recording.storage_url, store.url)
        if parsed:
            return parsed
        if urlparse(recording.storage_url).scheme in ("http", "https"):
            return None
    return f"{RECORDINGS_DIR}/{recording.filename or DEFAULT_FILENAME}"


def download_url(url: str, target: Path) -> Path:
    _check_allowlist(url)
    with httpx.stream("GET", url, timeout=60) as r:
        if r.status_code == 404:
            raise AudioNotFoundError("Audio file not found in Storage.")
        r.raise_for_status()
        with open(target, "wb") as f:
            for chunk in r.iter_bytes():
                f.write(chunk)
    return target


def fetch_audio(recording: Recording, store: BlobStore, target: Path) -> Path:
    """Download the recording's raw audio to ``target``."""
    key = resolve_audio_object(recording, store)
    if key is None:
        logger.info("recording %s: fetching external audio url", recording.id)
        return download_url(recording.storage_url, target)
    if not store.exists(key):
        logger.error("recording %s: audio object %s not found", recording.id, key)
        raise AudioNotFoundError("Audio file not found in Storage.")
    store.download_to_file(key, target)
    logger.info("recording %s: downloaded %s (%d bytes)", recording.id, key, target.stat().st_size)
    return target
