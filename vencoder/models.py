"""
vencoder.models
~~~~~~~~~~~~~~~
Pure dataclasses with no Qt and no I/O.
These travel freely between the prober, the command generator, the
encoder policies and the job queue.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path


# Codecs offered when the "only show common codecs" filter is on
COMMON_CODECS: frozenset[str] = frozenset({"h264", "hevc", "vp9", "av1", "dnxhd"})

# Names of the three option stages of an ffmpeg invocation
STAGES: tuple[str, ...] = ("global", "input", "output")


# ── Enums ─────────────────────────────────────────────────────────────────────

class JobStatus(Enum):
    PENDING   = auto()  # queued, not yet spawned
    RUNNING   = auto()  # ffmpeg process is alive
    DONE      = auto()  # exited with 0
    CANCELLED = auto()  # exited with 255 after a cancel request
    ERROR     = auto()  # any other exit code


# ── Capabilities (returned by vencoder.capabilities) ──────────────────────────

@dataclass(frozen=True)
class CodecInfo:
    """One codec line of `ffmpeg -codecs` that supports encoding."""
    flags: str
    short_name: str
    description: str
    encoders: tuple[str, ...] = ()   # empty → the codec name is the encoder

    @property
    def default_encoder(self) -> str:
        return self.encoders[0] if self.encoders else self.short_name


@dataclass
class CodecList:
    """Encoding-capable codecs, split into video and audio."""
    video: list[CodecInfo] = field(default_factory=list)
    audio: list[CodecInfo] = field(default_factory=list)

    def find_video(self, short_name: str) -> CodecInfo | None:
        return next((c for c in self.video if c.short_name == short_name), None)

    def find_audio(self, short_name: str) -> CodecInfo | None:
        return next((c for c in self.audio if c.short_name == short_name), None)

    def common_video(self) -> list[CodecInfo]:
        return [c for c in self.video if c.short_name in COMMON_CODECS]


# ── Parameter model ───────────────────────────────────────────────────────────

@dataclass
class UserOptions:
    """Free-text flag fragments typed by the user, appended verbatim."""
    global_: str = ""
    input: str = ""
    output: str = ""

    def get(self, stage: str) -> str:
        return getattr(self, stage_attr(stage))


@dataclass
class ExtraOptions:
    """
    Flag-name → value maps filled in by the encoder policies.
    A value of None means "omit this flag".
    """
    global_: dict[str, str | None] = field(default_factory=dict)
    input: dict[str, str | None] = field(default_factory=dict)
    output: dict[str, str | None] = field(default_factory=dict)

    def get(self, stage: str) -> dict[str, str | None]:
        return getattr(self, stage_attr(stage))

    def copy(self) -> ExtraOptions:
        return ExtraOptions(dict(self.global_), dict(self.input), dict(self.output))


@dataclass
class FFmpegParams:
    """
    The current, possibly partial, encoding configuration.

    `vbitrate` and `abitrate` are in kbps. `input_file` / `output_file`
    stay unset until a job is actually prepared, so the command preview
    shows placeholders instead.
    """
    vcodec: str
    encoder: str | None = None
    acodec: str | None = None
    crf: int | None = None
    vbitrate: int | None = None
    abitrate: int | None = None
    twopass: bool = False
    preset: str | None = None
    speed: int | None = None
    hwaccel: str | None = None
    pixel_format: str | None = None
    faststart: bool = False
    do_not_use_an: bool = False
    custom_ext: str = ""
    input_file: str | None = None
    output_file: str | None = None
    useropts: UserOptions = field(default_factory=UserOptions)
    extraopts: ExtraOptions = field(default_factory=ExtraOptions)

    def copy(self) -> FFmpegParams:
        """Copy that shares no mutable state with the original."""
        clone = FFmpegParams(**{
            name: getattr(self, name)
            for name in self.__dataclass_fields__
            if name not in ("useropts", "extraopts")
        })
        clone.useropts = UserOptions(
            self.useropts.global_, self.useropts.input, self.useropts.output
        )
        clone.extraopts = self.extraopts.copy()
        return clone


# ── Job queue ─────────────────────────────────────────────────────────────────

@dataclass
class QueueItem:
    """One prepared transcode, as handed from the session to the queue."""
    job_id: str
    command: str
    input_file: str
    length_us: int


@dataclass
class ProgressRecord:
    """Progress of one running job, fed by ffmpeg's `-progress` output."""
    job_id: str
    input_file: str
    length_us: int
    out_time_us: int = 0
    status: JobStatus = JobStatus.PENDING

    @property
    def percentage(self) -> float:
        return compute_percentage(self.out_time_us, self.length_us)


@dataclass
class BatchSummary:
    """
    Tallies for one batch of jobs. A fresh instance is created for every
    batch, so unrelated batches never share counters.
    """
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    log_files: list[Path] = field(default_factory=list)

    @property
    def unsuccessful(self) -> int:
        return self.failed + self.cancelled

    @property
    def settled(self) -> bool:
        return self.succeeded + self.unsuccessful >= self.total

    def message(self) -> str:
        if self.unsuccessful == 0:
            return f"{self.succeeded} of {self.total} file(s) converted successfully."
        return (
            f"{self.succeeded} of {self.total} file(s) converted, "
            f"{self.failed} failed, {self.cancelled} cancelled."
        )


# ── Helpers ───────────────────────────────────────────────────────────────────

def compute_percentage(out_time_us: float, length_us: float) -> float:
    """out_time / length as 0–100; anything undefined collapses to 0."""
    if length_us <= 0:
        return 0.0
    pct = out_time_us / length_us * 100.0
    if math.isnan(pct) or math.isinf(pct):
        return 0.0
    return min(max(pct, 0.0), 100.0)


def stage_attr(stage: str) -> str:
    if stage not in STAGES:
        raise ValueError(f"Unknown option stage: {stage!r}")
    return "global_" if stage == "global" else stage
