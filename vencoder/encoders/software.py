"""
vencoder.encoders.software
~~~~~~~~~~~~~~~~~~~~~~~~~~
Policies for the CPU encoders: libx264/libx265, libvpx-vp9, libaom-av1,
librav1e, libsvtav1 and DNxHD.
"""

from __future__ import annotations

from typing import Any

from vencoder.command_builder import DEFAULT_BITRATE
from vencoder.encoders.base import EncoderPolicy, unset_if
from vencoder.params import (
    ParamPatch,
    SetCrf,
    SetPreset,
    SetSpeed,
    SetTwoPass,
    SetVideoBitrate,
)

X26X_PRESETS = (
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow", "placebo",
)

DNXHD_PROFILES = (
    "dnxhd", "dnxhr_444", "dnxhr_hqx", "dnxhr_hq", "dnxhr_sq", "dnxhr_lb",
)


class LibX26xPolicy(EncoderPolicy):
    """
    CRF by default; "twopass" trades the CRF for a target bitrate and a
    two-pass encode.
    """

    encoders = ("libx264", "libx264rgb", "libx265")
    modes = ("crf", "twopass")
    defaults = {"crf": 23, "bitrate": DEFAULT_BITRATE, "preset": "medium"}
    choices = {"preset": X26X_PRESETS}
    controls = frozenset({"crf", "vbitrate", "twopass", "preset"})

    def __init__(self, encoder: str):
        super().__init__(encoder)
        if encoder == "libx265":
            self.options["crf"] = 28

    def compute(self) -> list[ParamPatch]:
        patches: list[ParamPatch] = [SetPreset(self.options["preset"])]
        if self.mode == "twopass":
            return patches + [
                SetTwoPass(True),
                SetCrf(None),
                SetVideoBitrate(self.options["bitrate"]),
            ]
        return patches + [
            SetTwoPass(False),
            SetCrf(self.options["crf"]),
            SetVideoBitrate(None),
        ]


class LibVpxVp9Policy(EncoderPolicy):
    encoders = ("libvpx-vp9",)
    modes = ("crf", "twopass")
    defaults = {"crf": 30, "bitrate": DEFAULT_BITRATE}
    controls = frozenset({"crf", "vbitrate", "twopass"})

    def compute(self) -> list[ParamPatch]:
        if self.mode == "twopass":
            return [
                SetTwoPass(True),
                SetCrf(None),
                SetVideoBitrate(self.options["bitrate"]),
            ]
        return [
            SetTwoPass(False),
            SetCrf(self.options["crf"]),
            SetVideoBitrate(None),
        ]


class LibaomPolicy(EncoderPolicy):
    """
    constant      CRF only
    constrained   CRF capped by a bitrate
    abr           average bitrate, one pass
    twopass-abr   average bitrate, two passes
    """

    encoders = ("libaom-av1",)
    modes = ("constant", "constrained", "abr", "twopass-abr")
    defaults = {"crf": 23, "bitrate": DEFAULT_BITRATE}
    controls = frozenset({"crf", "vbitrate", "twopass"})

    def compute(self) -> list[ParamPatch]:
        uses_crf = self.mode in ("constant", "constrained")
        uses_bitrate = self.mode != "constant"
        return [
            SetTwoPass(self.mode == "twopass-abr"),
            SetCrf(self.options["crf"] if uses_crf else None),
            SetVideoBitrate(self.options["bitrate"] if uses_bitrate else None),
        ]


class Librav1ePolicy(EncoderPolicy):
    encoders = ("librav1e",)
    modes = ("abr",)
    defaults = {"bitrate": DEFAULT_BITRATE, "speed": 5}
    controls = frozenset({"crf", "vbitrate", "speed"})

    def set_option(self, name: str, value: Any) -> list[ParamPatch]:
        if name == "speed" and not 0 <= int(value) <= 10:
            raise ValueError("rav1e speed must be between 0 and 10")
        return super().set_option(name, value)

    def compute(self) -> list[ParamPatch]:
        return [
            SetCrf(None),
            SetVideoBitrate(self.options["bitrate"]),
            SetSpeed(self.options["speed"]),
        ]


class LibSvtAv1Policy(EncoderPolicy):
    """CRF with SVT-AV1's private `-svtav1-params` (tune, film grain)."""

    encoders = ("libsvtav1",)
    modes = ("crf",)
    defaults = {"preset": 5, "crf": 30, "gop": -1, "film_grain": 0, "tune": 1}
    choices = {"tune": (0, 1)}
    owned_keys = {"output": ("g", "svtav1-params")}
    controls = frozenset({"crf", "vbitrate", "preset"})

    def set_option(self, name: str, value: Any) -> list[ParamPatch]:
        if name == "preset" and not -2 <= int(value) <= 13:
            raise ValueError("SVT-AV1 preset must be between -2 and 13")
        if name == "crf" and not 1 <= int(value) <= 63:
            raise ValueError("SVT-AV1 CRF must be between 1 and 63")
        return super().set_option(name, value)

    def compute(self) -> list[ParamPatch]:
        svt_params = [f"tune={self.options['tune']}"]
        if self.options["film_grain"]:
            svt_params.append(f"film-grain={self.options['film_grain']}")

        return [
            SetPreset(str(self.options["preset"])),
            SetCrf(self.options["crf"]),
            SetVideoBitrate(None),
        ] + self.extra("output", {
            "g": unset_if(self.options["gop"]),
            "svtav1-params": ":".join(svt_params),
        })


class DnxhdPolicy(EncoderPolicy):
    """The rate is implied by the profile, so the mode *is* the profile."""

    encoders = ("dnxhd",)
    modes = DNXHD_PROFILES
    owned_keys = {"output": ("profile",)}
    controls = frozenset({"crf", "vbitrate"})

    def compute(self) -> list[ParamPatch]:
        return [SetCrf(None), SetVideoBitrate(None)] + self.extra(
            "output", {"profile": self.mode}
        )
