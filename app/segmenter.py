"""
Split long recordings into fixed-duration parts.

Parts are produced with ffmpeg's segment muxer and ``-reset_timestamps 1``
so every part decodes on its own. Part ``i`` covers
``[i * segment_seconds, (i + 1) * segment_seconds)`` of the original.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from app.audio import Transcoder, Unavailable, UNAVAILABLE
from app.errors import TranscodeError

logger = logging.getLogger(__name__)

MAX_PARTS = 1000


@dataclass(frozen=True)
class AudioPart:
    index: int
    path: Path
    end: int | None = None  # explicit end, only set for the single-shot fallback

    def window(self, segment_seconds: int) -> tuple[int, int]:
        start = self.index * segment_seconds
        if self.end is not None:
            return start, self.end
        return start, start + segment_seconds


def part_path(src: Path, index: int) -> Path:
    return src.with_name(f"{src.stem}.part-{index:03d}{src.suffix}")


def segment(transcoder: Transcoder, src: Path, segment_seconds: int = 600) -> list[AudioPart] | Unavailable:
    """Split ``src`` into parts next to it.

    Returns UNAVAILABLE without ffmpeg and raises TranscodeError when the
    muxer fails. An empty list means ffmpeg produced nothing usable.
    """
    if segment_seconds <= 0:
        raise ValueError("segment_seconds must be positive")
    pattern = src.with_name(f"{src.stem}.part-%03d{src.suffix}")
    result = transcoder.run([
        "-y",
        "-i", src,
        "-f", "segment",
        "-segment_time", str(segment_seconds),
        "-reset_timestamps", "1",
        pattern,
    ])
    if isinstance(result, Unavailable):
        return UNAVAILABLE
    if not result.ok:
        raise TranscodeError(result.returncode, result.output)

    parts: list[AudioPart] = []
    for i in range(MAX_PARTS):
        p = part_path(src, i)
        if not p.is_file():
            break
        if p.stat().st_size > 0:
            # index follows the file number so time windows stay aligned
            parts.append(AudioPart(index=i, path=p))
    return parts


def split_or_whole(
    transcoder: Transcoder,
    src: Path,
    segment_seconds: int = 600,
    duration: float | None = None,
) -> list[AudioPart]:
    """Segment ``src``, falling back to the whole file as a single part.

    The fallback part spans the known ``duration`` when there is one,
    otherwise one segment window.
    """
    whole = [AudioPart(index=0, path=src, end=round(duration) if duration else None)]
    try:
        parts = segment(transcoder, src, segment_seconds)
    except TranscodeError as e:
        logger.warning("segmentation failed for %s (%s); using single-shot", src.name, e)
        return whole
    if isinstance(parts, Unavailable):
        logger.warning("segmentation unavailable for %s; using single-shot", src.name)
        return whole
    if not parts:
        logger.warning("segmentation of %s produced no parts; using single-shot", src.name)
        return whole
    logger.info("segmented %s into %d part(s)", src.name, len(parts))
    return parts
