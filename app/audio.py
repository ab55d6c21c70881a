from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from app.errors import TranscodeError
from app.settings import settings

logger = logging.getLogger(__name__)


class Unavailable:
    """Outcome of a call whose codec binary could not be located."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNAVAILABLE"


UNAVAILABLE = Unavailable()


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


ToolRunner = Callable[[Sequence[str]], ToolResult]


def run_tool(args: Sequence[str]) -> ToolResult:
    """Run an external tool to completion, capturing its diagnostics."""
    proc = subprocess.run(list(args), capture_output=True, text=True)
    # ffmpeg reports on stderr; keep the tail, that's where the reason is
    output = (proc.stderr or proc.stdout or "").strip()
    return ToolResult(returncode=proc.returncode, output=output[-2000:])


class Transcoder:
    """Best-effort wrapper around the ffmpeg binary."""

    def __init__(self, binary: str | None, runner: ToolRunner = run_tool):
        self.binary = binary
        self._runner = runner

    @classmethod
    def locate(cls, name: str | None = None, runner: ToolRunner = run_tool) -> "Transcoder":
        binary = shutil.which(name or settings.FFMPEG_BINARY)
        if binary is None:
            logger.warning("ffmpeg binary %r not found; audio will be sent as-is", name or settings.FFMPEG_BINARY)
        return cls(binary, runner)

    @property
    def available(self) -> bool:
        return self.binary is not None

    def run(self, args: Sequence[str]) -> ToolResult | Unavailable:
        if self.binary is None:
            return UNAVAILABLE
        try:
            return self._runner([self.binary, *[str(a) for a in args]])
        except OSError as e:
            # not found or not executable
            logger.warning("ffmpeg binary %s cannot be run: %s", self.binary, e)
            return UNAVAILABLE

    def convert(self, src: Path, dst: Path) -> Path | Unavailable:
        """Convert ``src`` to 16 kHz mono 16-bit PCM WAV at ``dst``.

        Raises TranscodeError when ffmpeg runs but exits non-zero.
        """
        dst.parent.mkdir(parents=True, exist_ok=True)
        # mono, 16 kHz, 16-bit PCM
        result = self.run(["-y", "-i", src, "-ac", "1", "-ar", "16000", "-acodec", "pcm_s16le", dst])
        if isinstance(result, Unavailable):
            return UNAVAILABLE
        if not result.ok:
            raise TranscodeError(result.returncode, result.output)
        return dst
