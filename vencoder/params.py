"""
vencoder.params
~~~~~~~~~~~~~~~
Typed patches for FFmpegParams, and the observable model that applies
them.

Every change to the parameter record (from the front-end or from an
encoder policy) is one of the patch dataclasses below, and goes through
`apply_patch`. ParamsModel regenerates the command after each batch of
patches and emits `command_changed`, so the preview can never lag
behind the record it describes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from PySide6.QtCore import QObject, Signal

from vencoder.command_builder import generate
from vencoder.models import FFmpegParams, stage_attr

logger = logging.getLogger(__name__)


# ── Patches ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SetVcodec:
    value: str


@dataclass(frozen=True)
class SetEncoder:
    value: str | None


@dataclass(frozen=True)
class SetAcodec:
    value: str | None


@dataclass(frozen=True)
class SetCrf:
    value: int | None


@dataclass(frozen=True)
class SetVideoBitrate:
    value: int | None   # kbps


@dataclass(frozen=True)
class SetAudioBitrate:
    value: int | None   # kbps


@dataclass(frozen=True)
class SetTwoPass:
    value: bool


@dataclass(frozen=True)
class SetPreset:
    value: str | None


@dataclass(frozen=True)
class SetSpeed:
    value: int | None


@dataclass(frozen=True)
class SetHwaccel:
    value: str | None


@dataclass(frozen=True)
class SetPixelFormat:
    value: str | None


@dataclass(frozen=True)
class SetFastStart:
    value: bool


@dataclass(frozen=True)
class SetDoNotUseAn:
    value: bool


@dataclass(frozen=True)
class SetCustomExt:
    value: str


@dataclass(frozen=True)
class SetInputFile:
    value: str | None


@dataclass(frozen=True)
class SetOutputFile:
    value: str | None


@dataclass(frozen=True)
class SetUserOptions:
    stage: str
    value: str


@dataclass(frozen=True)
class SetExtraOption:
    """Set one `-key value` entry; value None removes it."""
    stage: str
    key: str
    value: str | None


ParamPatch = Union[
    SetVcodec, SetEncoder, SetAcodec, SetCrf, SetVideoBitrate,
    SetAudioBitrate, SetTwoPass, SetPreset, SetSpeed, SetHwaccel,
    SetPixelFormat, SetFastStart, SetDoNotUseAn, SetCustomExt,
    SetInputFile, SetOutputFile, SetUserOptions, SetExtraOption,
]

# patch type → FFmpegParams attribute, for the plain one-field patches
_FIELD_FOR: dict[type, str] = {
    SetVcodec:       "vcodec",
    SetEncoder:      "encoder",
    SetAcodec:       "acodec",
    SetCrf:          "crf",
    SetVideoBitrate: "vbitrate",
    SetAudioBitrate: "abitrate",
    SetTwoPass:      "twopass",
    SetPreset:       "preset",
    SetSpeed:        "speed",
    SetHwaccel:      "hwaccel",
    SetPixelFormat:  "pixel_format",
    SetFastStart:    "faststart",
    SetDoNotUseAn:   "do_not_use_an",
    SetCustomExt:    "custom_ext",
    SetInputFile:    "input_file",
    SetOutputFile:   "output_file",
}


def apply_patch(params: FFmpegParams, patch: ParamPatch) -> FFmpegParams:
    """Apply one patch to *params* in place and return it."""
    if isinstance(patch, SetUserOptions):
        setattr(params.useropts, stage_attr(patch.stage), patch.value)
    elif isinstance(patch, SetExtraOption):
        options = params.extraopts.get(patch.stage)
        if patch.value is None:
            options.pop(patch.key, None)
        else:
            options[patch.key] = patch.value
    elif type(patch) in _FIELD_FOR:
        setattr(params, _FIELD_FOR[type(patch)], patch.value)
    else:
        raise TypeError(f"Not a parameter patch: {patch!r}")
    return params


# ── Observable model ──────────────────────────────────────────────────────────

class ParamsModel(QObject):
    """
    Owns the FFmpegParams of one configuration session.

    Signals
    -------
    command_changed(str)   the regenerated preview command
    """

    command_changed = Signal(str)

    def __init__(self, params: FFmpegParams, ffmpeg: str = "ffmpeg", parent=None):
        super().__init__(parent)
        self._params = params
        self._ffmpeg = ffmpeg
        self._command = generate(params, self._ffmpeg)

    @property
    def params(self) -> FFmpegParams:
        return self._params

    @property
    def command(self) -> str:
        return self._command

    def apply(self, *patches: ParamPatch) -> str:
        """Apply *patches* in order, then recompute the command once."""
        for patch in patches:
            apply_patch(self._params, patch)
        return self.recompute()

    def reset(self, params: FFmpegParams) -> str:
        self._params = params
        return self.recompute()

    def recompute(self) -> str:
        command = generate(self._params, self._ffmpeg)
        if command != self._command:
            logger.debug("Command: %s", command)
            self._command = command
            self.command_changed.emit(command)
        return command
