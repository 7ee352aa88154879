"""
vencoder.capabilities
~~~~~~~~~~~~~~~~~~~~~
Discovers what the installed ffmpeg can encode by parsing the text of
`ffmpeg -codecs` and `ffmpeg -pix_fmts`.

Both listings are a legend, a dashed separator line, then one entry per
line with a fixed-width flag column:

     DEV.L. h264     H.264 / AVC (decoders: h264 h264_qsv ) (encoders: libx264 h264_nvenc )
     IO... yuv420p                3             12      8-8-8

The parsers are pure; the `get_*` helpers run the binary and raise
ToolingUnavailable when that fails, so callers never confuse
"ffmpeg is missing" with "ffmpeg supports nothing".
"""

from __future__ import annotations

import logging
import re
import subprocess

from vencoder.errors import ToolingUnavailable
from vencoder.models import CodecInfo, CodecList

logger = logging.getLogger(__name__)

# Timeout for capability listing commands (seconds)
PROBE_TIMEOUT = 15

CODEC_SEPARATOR = "-------"
PIXFMT_SEPARATOR = "-----"

_CODEC_FLAGS_WIDTH = 6
_PIXFMT_FLAGS_WIDTH = 5

_WIDE_SPACES = re.compile(r" {2,}")
_ANNOTATION = re.compile(r" ?\((?:decoders|encoders):[^)]*\)")
_ENCODERS = re.compile(r"\(encoders:([^)]*)\)")


# ── Parsers ───────────────────────────────────────────────────────────────────

def parse_codecs(text: str) -> CodecList:
    """
    Parse `ffmpeg -codecs` output into encoding-capable video and audio
    codecs. Raises ValueError if the separator line is missing.
    """
    codecs = CodecList()
    skipped = 0

    for line in _body_lines(text, CODEC_SEPARATOR):
        line = line.strip()
        if not line:
            continue
        if len(line) <= _CODEC_FLAGS_WIDTH:
            skipped += 1
            continue

        flags = line[:_CODEC_FLAGS_WIDTH]
        if flags[1] != "E":
            continue

        kind = flags[2]
        if kind == "V":
            target = codecs.video
        elif kind == "A":
            target = codecs.audio
        else:
            continue

        info = _parse_codec_entry(flags, line[_CODEC_FLAGS_WIDTH + 1:])
        if info is None:
            skipped += 1
            continue

        if any(c.short_name == info.short_name for c in target):
            logger.debug("Duplicate codec entry '%s' ignored", info.short_name)
            continue
        target.append(info)

    if skipped:
        logger.debug("Skipped %d malformed codec line(s)", skipped)
    return codecs


def parse_pixel_formats(text: str) -> list[str]:
    """Parse `ffmpeg -pix_fmts` output into output-capable format names."""
    formats: list[str] = []

    for line in _body_lines(text, PIXFMT_SEPARATOR):
        line = line.strip()
        if len(line) <= _PIXFMT_FLAGS_WIDTH:
            continue

        flags = line[:_PIXFMT_FLAGS_WIDTH]
        if flags[1] != "O":
            continue

        name = line[_PIXFMT_FLAGS_WIDTH:].split()
        if name:
            formats.append(name[0])

    return formats


# ── Public API ────────────────────────────────────────────────────────────────

def get_available_codecs(ffmpeg: str = "ffmpeg") -> CodecList:
    """Run `ffmpeg -codecs` and parse it. Raises ToolingUnavailable."""
    output = _run_listing(ffmpeg, "-codecs")
    try:
        codecs = parse_codecs(output)
    except ValueError as exc:
        raise ToolingUnavailable(ffmpeg, str(exc)) from exc

    if not codecs.video and not codecs.audio:
        logger.warning("%s reported no encoding-capable codecs", ffmpeg)
    logger.info("Found %d video and %d audio encoders",
                len(codecs.video), len(codecs.audio))
    return codecs


def get_pixel_formats(ffmpeg: str = "ffmpeg") -> list[str]:
    """Run `ffmpeg -pix_fmts` and parse it. Raises ToolingUnavailable."""
    output = _run_listing(ffmpeg, "-pix_fmts")
    try:
        return parse_pixel_formats(output)
    except ValueError as exc:
        raise ToolingUnavailable(ffmpeg, str(exc)) from exc


# ── Internal helpers ──────────────────────────────────────────────────────────

def _body_lines(text: str, separator: str) -> list[str]:
    """Lines after the separator that ends the legend."""
    index = text.find(separator)
    if index == -1:
        raise ValueError(f"separator '{separator}' not found in listing")
    # drop whatever is left of the separator line itself
    return text[index + len(separator):].split("\n")[1:]


def _parse_codec_entry(flags: str, rest: str) -> CodecInfo | None:
    rest = _WIDE_SPACES.sub(" ", rest.strip())
    short_name, _, description = rest.partition(" ")
    if not short_name:
        return None

    encoders: tuple[str, ...] = ()
    match = _ENCODERS.search(description)
    if match:
        encoders = tuple(match.group(1).split())

    description = _ANNOTATION.sub("", description).strip()
    return CodecInfo(
        flags=flags,
        short_name=short_name,
        description=description,
        encoders=encoders,
    )


def _run_listing(ffmpeg: str, flag: str) -> str:
    cmd = [ffmpeg, "-hide_banner", flag]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            timeout=PROBE_TIMEOUT,
        )
    except FileNotFoundError as exc:
        raise ToolingUnavailable(ffmpeg, "executable not found") from exc
    except PermissionError as exc:
        raise ToolingUnavailable(ffmpeg, "not executable") from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolingUnavailable(ffmpeg, f"'{flag}' timed out") from exc

    if result.returncode != 0:
        raise ToolingUnavailable(
            ffmpeg,
            f"'{flag}' exited with code {result.returncode}: {result.stderr.strip()}",
        )
    return result.stdout
