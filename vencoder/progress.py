"""
vencoder.progress
~~~~~~~~~~~~~~~~~
Parsing of ffmpeg's `-progress -` output.

ffmpeg prints a block of `key=value` lines roughly twice a second and
ends every block with `progress=continue` (or `progress=end` for the
last one):

    frame=240
    fps=59.94
    out_time_us=4004000
    out_time=00:00:04.004000
    speed=2.01x
    progress=continue
"""

from __future__ import annotations

import logging

from vencoder.models import ProgressRecord, compute_percentage

logger = logging.getLogger(__name__)


def parse_progress_block(text: str) -> dict[str, str]:
    """
    Turn one block into a dict. Lines without '=' are ignored and a
    repeated key keeps its last value.
    """
    info: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep or not key:
            continue
        info[key.strip()] = value.strip()
    return info


def out_time_us(info: dict[str, str]) -> int | None:
    """
    Position reached by the encoder, in microseconds.

    ffmpeg reports "N/A" before the first frame is written, and older
    builds put microseconds in `out_time_ms` as well.
    """
    for key in ("out_time_us", "out_time_ms"):
        raw = info.get(key)
        if raw is None:
            continue
        try:
            return int(raw)
        except ValueError:
            logger.debug("Unparseable %s=%r", key, raw)
            return None
    return None


def is_last_block(info: dict[str, str]) -> bool:
    return info.get("progress") == "end"


def update_record(record: ProgressRecord, text: str) -> float:
    """Feed one raw block into *record*; return its new percentage."""
    position = out_time_us(parse_progress_block(text))
    if position is not None:
        record.out_time_us = position
    return record.percentage


__all__ = [
    "ProgressRecord",
    "compute_percentage",
    "is_last_block",
    "out_time_us",
    "parse_progress_block",
    "update_record",
]
