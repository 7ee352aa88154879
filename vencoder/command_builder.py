"""
vencoder.command_builder
~~~~~~~~~~~~~~~~~~~~~~~~
Builds ffmpeg command lines from an FFmpegParams record.

Keeping command construction separate means you can:
  - show the exact command in the preview before running it
  - paste it straight into a terminal for debugging
  - unit-test flag generation without running any process

The command structure is:
    ffmpeg
      -hwaccel <auto|params.hwaccel> -y   ← built-in global defaults
      <useropts.global> <extraopts.global>
      <useropts.input> <extraopts.input>
      -i <input>
      -c:v <encoder> <rate control> <-movflags> <-preset>
      -c:a <acodec> <-b:a> <-speed>
      -progress -                          ← key=value progress on stdout
      <useropts.output> <extraopts.output>
      <output>

Two-pass encodes are two such invocations chained with `&&`, the first
one writing to the platform's null device.
"""

from __future__ import annotations

import re
import shlex
import sys
from pathlib import Path

from vencoder.models import FFmpegParams

# 12 Mbps, YouTube's recommendation for high frame rate 1080p
DEFAULT_BITRATE = 12000

# Container picked for each codec when the user gives no extension
VIDEO_FILE_EXTENSIONS: dict[str, str] = {
    "dnxhd": "mov",
    "h264":  "mp4",
    "hevc":  "mp4",
    "av1":   "mkv",
    "vp8":   "mkv",
    "vp9":   "mkv",
}

INPUT_PLACEHOLDER = "{filename}"
OUTPUT_PLACEHOLDER = "{output}"

# Program names cmd.exe reads as a single word without quoting
_BARE_WINDOWS_WORD = re.compile(r"[\w@+=:,./\\-]+")


# ── Public API ────────────────────────────────────────────────────────────────

def generate(params: FFmpegParams, ffmpeg: str = "ffmpeg", platform: str | None = None) -> str:
    """
    Build the full command string for *params*.

    Pure: *params* is never modified, and the same params always give the
    same string. *platform* picks the shell quoting and the null device
    for two-pass encodes, and defaults to sys.platform.
    """
    global_opts = _join(
        f"-hwaccel {params.hwaccel or 'auto'} -y",
        params.useropts.global_,
        format_options(params.extraopts.global_),
    )
    input_opts = _join(
        params.useropts.input,
        format_options(params.extraopts.input),
    )

    output_extra = dict(params.extraopts.output)
    if params.pixel_format:
        output_extra["pix_fmt"] = params.pixel_format
    output_opts = _join(
        "-progress -",
        params.useropts.output,
        format_options(output_extra),
    )

    program = quote_program(ffmpeg, platform)
    source = f"-i {_file_argument(params.input_file, INPUT_PLACEHOLDER, platform)}"
    target = _file_argument(params.output_file, OUTPUT_PLACEHOLDER, platform)
    # Nothing selected yet: leave -c:v out rather than emit it bare
    video_encoder = params.encoder or params.vcodec
    video = f"-c:v {video_encoder}" if video_encoder else ""
    faststart = "-movflags +faststart" if wants_faststart(params) else ""
    preset = f"-preset {params.preset}" if params.preset is not None else ""

    if params.twopass:
        bitrate = params.vbitrate if params.vbitrate is not None else DEFAULT_BITRATE
        common = _join(
            global_opts, input_opts, source, video,
            f"-b:v {bitrate}k", faststart, preset, output_opts,
        )
        first = _join(
            program, common, _pass_flag(params, 1),
            "-vsync cfr" if params.do_not_use_an else "-an",
            f"-f null {null_sink(platform)}",
        )
        second = _join(program, common, _pass_flag(params, 2), _audio(params), target)
        return f"{first} && {second}"

    return _join(
        program, global_opts, input_opts, source, video,
        f"-crf {params.crf}" if params.crf is not None else "",
        f"-b:v {params.vbitrate}k" if params.vbitrate is not None else "",
        faststart,
        preset,
        _audio(params),
        f"-speed {params.speed}" if params.speed is not None else "",
        output_opts,
        target,
    )


def resolve_extension(params: FFmpegParams) -> str | None:
    """Output container: the user's extension if given, else the codec default."""
    custom = params.custom_ext.strip().lstrip(".")
    if custom:
        return custom
    return VIDEO_FILE_EXTENSIONS.get(params.vcodec)


def wants_faststart(params: FFmpegParams) -> bool:
    """-movflags +faststart only means something for an mp4 container."""
    extension = resolve_extension(params) or ""
    return params.faststart and extension.lower() == "mp4"


def build_output_path(input_file: Path, output_folder: Path, extension: str) -> Path:
    """
    Given an input file, return the expected output path.

    Example:
        input_file     = Path("/rushes/clip001.mov")
        output_folder  = Path("/exports")
        extension      = "mp4"
        → Path("/exports/clip001.mp4")
    """
    return output_folder / f"{input_file.stem}.{extension.lstrip('.')}"


def null_sink(platform: str | None = None) -> str:
    return "NUL" if (platform or sys.platform) == "win32" else "/dev/null"


def format_options(options: dict[str, str | None]) -> str:
    """
    {"tune": "hq", "g": None, "an": ""} → "-tune hq -an"
    None means "omit"; an empty string emits the bare flag.
    """
    parts = []
    for key, value in options.items():
        if value is None:
            continue
        parts.append(f"-{key} {value}".rstrip())
    return " ".join(parts)


def quote_path(path: str | Path, platform: str | None = None) -> str:
    """
    Quote *path* as one literal word for the shell that runs the command.

    POSIX shells get shlex.quote, so shell syntax inside a file name
    reaches ffmpeg as literal text. cmd.exe gets double quotes with any
    trailing backslashes doubled. Windows file names cannot contain `"`,
    so one is rejected instead of escaped.
    """
    text = str(path)
    if (platform or sys.platform) != "win32":
        return shlex.quote(text)
    if '"' in text:
        raise ValueError(f"Path contains a double quote: {text}")
    stripped = text.rstrip("\\")
    return '"' + stripped + "\\" * (2 * (len(text) - len(stripped))) + '"'


def quote_program(program: str, platform: str | None = None) -> str:
    """Plain names stay bare so the preview reads like a typed command."""
    if (platform or sys.platform) == "win32" and _BARE_WINDOWS_WORD.fullmatch(program):
        return program
    return quote_path(program, platform)


# ── Internal helpers ──────────────────────────────────────────────────────────

def _join(*parts: str) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def _file_argument(path: str | None, placeholder: str, platform: str | None) -> str:
    # Placeholders only appear in the preview and are shown as typed
    return quote_path(path, platform) if path else placeholder


def _pass_flag(params: FFmpegParams, number: int) -> str:
    # libx265 takes its pass number through its own private options
    if params.vcodec == "hevc":
        return f"-x265-params pass={number}"
    return f"-pass {number}"


def _audio(params: FFmpegParams) -> str:
    return _join(
        f"-c:a {params.acodec or 'copy'}",
        f"-b:a {params.abitrate}k" if params.abitrate is not None else "",
    )
