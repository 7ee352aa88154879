"""
vencoder.probe
~~~~~~~~~~~~~~
Thin wrapper around the ffprobe CLI.
Returns the length of a media file in microseconds, the denominator of
every progress percentage the queue computes.

The probe fails loudly: a silent 0 here would turn into a meaningless
progress bar later on.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path

from vencoder.errors import ProbeError, ToolingUnavailable

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 30


# ── Public API ────────────────────────────────────────────────────────────────

def get_length_microseconds(file: Path, ffprobe: str = "ffprobe") -> int:
    """
    Run ffprobe on *file* and return its duration in microseconds.

    Raises:
        FileNotFoundError   – if the input file does not exist
        ToolingUnavailable  – if ffprobe cannot be launched
        ProbeError          – if ffprobe fails or prints no duration
    """
    file = Path(file)
    if not file.exists():
        raise FileNotFoundError(f"Input file not found: {file}")

    raw = _run_ffprobe(file, ffprobe)
    length = parse_duration(raw)
    logger.debug("Length of '%s' = %d us", file.name, length)
    return length


def build_duration_command(file: Path, ffprobe: str = "ffprobe") -> list[str]:
    return [
        ffprobe,
        "-v", "quiet",                         # suppress banner
        "-of", "json=c=1",                     # compact JSON
        "-show_entries", "format=duration",    # only the duration
        "-sexagesimal",                        # as HH:MM:SS.ffffff
        str(file),
    ]


def parse_duration(payload: str) -> int:
    """
    '{"format": {"duration": "01:02:03.500000"}}' → 3723500000
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ProbeError(f"ffprobe returned invalid JSON: {exc}") from exc

    try:
        raw = data["format"]["duration"]
    except (KeyError, TypeError) as exc:
        raise ProbeError("ffprobe output has no format.duration field") from exc

    return sexagesimal_to_microseconds(str(raw))


def sexagesimal_to_microseconds(value: str) -> int:
    """'HH:MM:SS.ffffff' → whole microseconds, truncated toward zero."""
    parts = value.strip().split(":")
    if len(parts) != 3:
        raise ProbeError(f"Unexpected duration format: {value!r}")
    try:
        hours = int(parts[0])
        minutes = hours * 60 + int(parts[1])
        seconds = minutes * 60 + float(parts[2])
    except ValueError as exc:
        raise ProbeError(f"Unexpected duration format: {value!r}") from exc

    # seconds * 1e6 in floating point can land just below an integer
    return int(round(seconds * 1_000_000, 3))


# ── Internal helpers ──────────────────────────────────────────────────────────

def _run_ffprobe(file: Path, ffprobe: str) -> str:
    """Execute ffprobe and return its raw stdout."""
    cmd = build_duration_command(file, ffprobe)
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=PROBE_TIMEOUT,
        )
    except FileNotFoundError as exc:
        raise ToolingUnavailable(ffprobe, "executable not found") from exc
    except PermissionError as exc:
        raise ToolingUnavailable(ffprobe, "not executable") from exc
    except subprocess.TimeoutExpired as exc:
        raise ProbeError(f"ffprobe timed out on {file.name}") from exc

    if result.returncode != 0:
        raise ProbeError(
            f"ffprobe failed on {file.name}:\n{result.stderr.strip()}"
        )

    return result.stdout
