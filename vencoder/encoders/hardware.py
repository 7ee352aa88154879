"""
vencoder.encoders.hardware
~~~~~~~~~~~~~~~~~~~~~~~~~~
Policies for the GPU encoders: NVIDIA NVENC and Intel Quick Sync.

Both families force a matching `-hwaccel` while mounted so decoding
happens on the same device as encoding.
"""

from __future__ import annotations

from typing import Any

from vencoder.command_builder import DEFAULT_BITRATE
from vencoder.encoders.base import EncoderPolicy, unset_if
from vencoder.params import ParamPatch, SetCrf, SetPreset, SetVideoBitrate

NVENC_PRESETS = ("p1", "p2", "p3", "p4", "p5", "p6", "p7")
NVENC_TUNES = ("hq", "ll", "ull", "lossless")
NVENC_B_REF_MODES = ("disabled", "each", "middle")

QSV_PRESETS = (
    "veryfast", "faster", "fast", "medium", "slow", "slower", "veryslow",
)

# VBR is mostly used with a lower target than the generic default
NVENC_BITRATE = 8000


class NvencPolicy(EncoderPolicy):
    """
    Rate-control modes of NVENC:

    vbr       variable bitrate around `bitrate`, capped by `maxrate`
    constqp   fixed quantizer, no bitrate at all
    vbr-cq    "vbr" with a target quality `cq` and a zero bitrate
    cbr       constant bitrate, `maxrate` pinned to `bitrate`

    -1 in a numeric option leaves that flag out of the command.
    """

    encoders = ("h264_nvenc", "hevc_nvenc", "av1_nvenc")
    modes = ("vbr", "constqp", "vbr-cq", "cbr")
    defaults = {
        "preset":      "p4",
        "tune":        "hq",
        "lookahead":   20,
        "temporal_aq": True,
        "spatial_aq":  False,
        "aq_strength": 8,
        "qp":          -1,
        "bitrate":     NVENC_BITRATE,
        "bufsize":     NVENC_BITRATE,
        "maxrate":     DEFAULT_BITRATE,
        "cq":          0,
        "gop":         -1,
        "bframes":     3,
        "b_ref_mode":  "middle",
        "qmin":        0,
        "qmax":        -1,
        "i_qfactor":   None,
        "b_qfactor":   None,
    }
    choices = {
        "preset":     NVENC_PRESETS,
        "tune":       NVENC_TUNES,
        "b_ref_mode": NVENC_B_REF_MODES,
    }
    owned_keys = {
        "global": ("hwaccel_output_format",),
        "output": (
            "tune", "rc", "lookahead", "g", "bf", "b_ref_mode", "qmin",
            "qmax", "temporal_aq", "spatial_aq", "aq-strength", "qp", "cq",
            "bufsize", "maxrate", "i_qfactor", "b_qfactor",
        ),
    }
    controls = frozenset({"crf", "vbitrate", "twopass", "preset"})
    hwaccel = "cuda"

    def set_option(self, name: str, value: Any) -> list[ParamPatch]:
        if name in ("qp", "cq", "qmin", "qmax") and not -1 <= int(value) <= 51:
            raise ValueError(f"NVENC {name} must be between -1 and 51")
        return super().set_option(name, value)

    def compute(self) -> list[ParamPatch]:
        opts = self.options
        # there is no real "vbr-cq" rc mode, it is vbr plus a cq target
        rc = "vbr" if self.mode == "vbr-cq" else self.mode

        output: dict[str, str | None] = {
            "tune":       opts["tune"],
            "rc":         rc,
            "lookahead":  str(opts["lookahead"]),
            "g":          unset_if(opts["gop"]),
            "bf":         unset_if(opts["bframes"]),
            "b_ref_mode": opts["b_ref_mode"],
            "qmin":       str(opts["qmin"]),
            "qmax":       str(opts["qmax"]),
            "i_qfactor":  unset_if(opts["i_qfactor"], None),
            "b_qfactor":  unset_if(opts["b_qfactor"], None),
        }
        if opts["temporal_aq"]:
            output["temporal_aq"] = "1"
        if opts["spatial_aq"]:
            output["spatial_aq"] = "1"
            output["aq-strength"] = str(opts["aq_strength"])
        output["qp"] = unset_if(opts["qp"])
        if self.mode == "vbr-cq":
            output["cq"] = str(opts["cq"])

        if self.mode == "constqp":
            vbitrate = None
        else:
            vbitrate = 0 if self.mode == "vbr-cq" else opts["bitrate"]
            output["bufsize"] = _kbps(opts["bufsize"])
            if rc == "vbr":
                output["maxrate"] = _kbps(opts["maxrate"])
            elif rc == "cbr":
                output["maxrate"] = _kbps(opts["bitrate"])

        return [
            SetPreset(opts["preset"]),
            SetCrf(None),
            SetVideoBitrate(vbitrate),
        ] + self.extra("global", {"hwaccel_output_format": "cuda"}) + self.extra(
            "output", output
        )


class QsvPolicy(EncoderPolicy):
    """h264_qsv / hevc_qsv: ICQ, CBR, VBR or CQP rate control."""

    encoders = ("h264_qsv", "hevc_qsv")
    modes = ("icq", "cbr", "vbr", "cqp")
    defaults = {
        "global_quality": 18,
        "bitrate":        DEFAULT_BITRATE,
        "cqp":            18,
        "look_ahead":     False,
    }
    owned_keys = {"output": ("global_quality", "maxrate", "q", "look_ahead")}
    controls = frozenset({"crf", "vbitrate", "twopass"})
    hwaccel = "qsv"

    def set_option(self, name: str, value: Any) -> list[ParamPatch]:
        if name in ("global_quality", "cqp") and not 1 <= int(value) <= 51:
            raise ValueError(f"QSV {name} must be between 1 and 51")
        return super().set_option(name, value)

    def compute(self) -> list[ParamPatch]:
        opts = self.options
        output: dict[str, str | None] = {}
        vbitrate = None

        if self.mode == "icq":
            output["global_quality"] = str(opts["global_quality"])
        elif self.mode == "cbr":
            vbitrate = opts["bitrate"]
            output["maxrate"] = _kbps(opts["bitrate"])
        elif self.mode == "vbr":
            vbitrate = opts["bitrate"]
        else:
            output["q"] = str(opts["cqp"])

        if opts["look_ahead"]:
            output["look_ahead"] = "1"

        return [SetCrf(None), SetVideoBitrate(vbitrate)] + self.extra("output", output)


class Vp9QsvPolicy(EncoderPolicy):
    encoders = ("vp9_qsv",)
    modes = ("vbr", "cbr", "cqp")
    defaults = {"preset": "medium", "bitrate": DEFAULT_BITRATE, "cqp": 18}
    choices = {"preset": QSV_PRESETS}
    owned_keys = {
        "input": ("hwaccel_output_format",),
        "output": ("maxrate", "q"),
    }
    controls = frozenset({"crf", "vbitrate", "twopass", "preset"})
    hwaccel = "qsv"

    def compute(self) -> list[ParamPatch]:
        opts = self.options
        output: dict[str, str | None] = {}
        vbitrate = None

        if self.mode == "cbr":
            vbitrate = opts["bitrate"]
            output["maxrate"] = _kbps(opts["bitrate"])
        elif self.mode == "vbr":
            vbitrate = opts["bitrate"]
        else:
            output["q"] = str(opts["cqp"])

        return (
            [SetPreset(opts["preset"]), SetCrf(None), SetVideoBitrate(vbitrate)]
            + self.extra("input", {"hwaccel_output_format": "qsv"})
            + self.extra("output", output)
        )


def _kbps(value: Any) -> str | None:
    return None if value is None or int(value) == -1 else f"{value}k"
