"""
vencoder.paths
~~~~~~~~~~~~~~
Single source of truth for the external binaries used across the app.
Import these helpers instead of hard-coding "ffmpeg" anywhere else.
"""

from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from vencoder.config import Settings


@dataclass(frozen=True)
class Binaries:
    ffmpeg: str
    ffprobe: str
    ffplay: str


def _exe(name: str) -> str:
    return f"{name}.exe" if sys.platform == "win32" else name


def resolve_binaries(settings: Settings) -> Binaries:
    """
    System installation → bare names resolved through PATH.
    Custom installation → files inside `settings.ffmpeg_path`.
    """
    if settings.use_system_ffmpeg or not settings.ffmpeg_path:
        return Binaries(
            ffmpeg=shutil.which("ffmpeg") or "ffmpeg",
            ffprobe=shutil.which("ffprobe") or "ffprobe",
            ffplay=shutil.which("ffplay") or "ffplay",
        )

    base = Path(settings.ffmpeg_path).expanduser()
    return Binaries(
        ffmpeg=str(base / _exe("ffmpeg")),
        ffprobe=str(base / _exe("ffprobe")),
        ffplay=str(base / _exe("ffplay")),
    )


def validate_binaries(binaries: Binaries) -> list[str]:
    """
    Return a list of error strings for any missing/non-executable binaries.
    Empty list means all good. ffplay is optional and not checked.
    """
    errors: list[str] = []
    for binary in (binaries.ffmpeg, binaries.ffprobe):
        path = Path(binary)
        if not path.is_absolute():
            if shutil.which(binary) is None:
                errors.append(f"Binary not found on PATH: {binary}")
        elif not path.exists():
            errors.append(f"Binary not found: {binary}")
        elif not path.is_file():
            errors.append(f"Not a file: {binary}")
        elif sys.platform != "win32" and not path.stat().st_mode & 0o111:
            errors.append(f"Not executable: {binary}")
    return errors
