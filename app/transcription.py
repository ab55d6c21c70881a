"""
Chunked transcription of a recording.

Parts are transcribed strictly one after another, in index order, so the
external API never sees more than one request per run and the transcript
needs no reordering. Each chunk is framed by its time window::

    [10:00–20:00]
    <chunk text>

A failing chunk aborts the whole run; nothing partial is returned.
"""
from __future__ import annotations

import logging
from typing import Callable, Sequence

from celery.exceptions import SoftTimeLimitExceeded

from app.audio import Transcoder, Unavailable, UNAVAILABLE
from app.errors import ChunkTranscriptionError, TranscodeError
from app.segmenter import AudioPart
from app.workspace import Workspace

logger = logging.getLogger(__name__)

Transcribe = Callable[[bytes, str], str]


def format_timestamp(seconds: int) -> str:
    """``H:MM:SS``, or ``MM:SS`` while under an hour."""
    h, rem = divmod(int(seconds), 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


def time_marker(part: AudioPart, segment_seconds: int) -> str:
    start, end = part.window(segment_seconds)
    return f"[{format_timestamp(start)}–{format_timestamp(end)}]"


def _chunk_payload(part: AudioPart, transcoder: Transcoder, ws: Workspace) -> tuple[bytes, str]:
    wav = ws.path(f"{part.path.stem}.16kmono.wav")
    try:
        converted = transcoder.convert(part.path, wav)
    except TranscodeError as e:
        logger.warning("conversion of part %d failed (%s); sending original bytes", part.index, e)
        converted = UNAVAILABLE
    if isinstance(converted, Unavailable):
        ws.discard(wav)
        return part.path.read_bytes(), part.path.name
    data = converted.read_bytes()
    ws.discard(converted)
    return data, converted.name


def transcribe_parts(
    parts: Sequence[AudioPart],
    transcribe: Transcribe,
    transcoder: Transcoder,
    ws: Workspace,
    segment_seconds: int,
) -> str:
    pieces: list[str] = []
    for part in sorted(parts, key=lambda p: p.index):
        data, name = _chunk_payload(part, transcoder, ws)
        try:
            text = transcribe(data, name)
        except SoftTimeLimitExceeded:
            raise
        except Exception as e:
            message = str(e) or f"Transcription failed for chunk {part.index}"
            raise ChunkTranscriptionError(part.index, message) from e
        pieces.append(f"\n{time_marker(part, segment_seconds)}\n{text}\n")
        logger.info("chunk %d transcribed (%d chars)", part.index, len(text))
    return "".join(pieces)
