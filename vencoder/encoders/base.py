"""
vencoder.encoders.base
~~~~~~~~~~~~~~~~~~~~~~
Common machinery for the per-encoder option policies.

A policy is a small state machine keyed by a rate-control mode. Every
transition (mode change, option change, mount) recomputes the complete
set of parameter fields and extra options the policy is responsible for,
clearing the ones the current mode does not use, and returns them as a
list of patches for the session to apply. Policies hold their own state
and never read or touch keys that belong to another policy.
"""

from __future__ import annotations

from typing import Any, ClassVar

from vencoder.params import (
    ParamPatch,
    SetCrf,
    SetExtraOption,
    SetHwaccel,
    SetPreset,
    SetSpeed,
    SetTwoPass,
    SetVideoBitrate,
)

# FFmpegParams fields a policy may control, and their cleared value
_FIELD_RESET: dict[str, ParamPatch] = {
    "crf":      SetCrf(None),
    "vbitrate": SetVideoBitrate(None),
    "twopass":  SetTwoPass(False),
    "preset":   SetPreset(None),
    "speed":    SetSpeed(None),
}


class EncoderPolicy:
    """
    Subclasses set the class attributes and implement `compute()`.

    encoders     encoder identifiers this policy is mounted for
    modes        closed set of rate-control modes, first one is the default
    defaults     option name → initial value
    choices      option name → allowed values (optional restriction)
    owned_keys   extraopts stage → keys this policy writes
    controls     FFmpegParams fields this policy writes
    hwaccel      decoder acceleration forced while mounted, if any
    """

    encoders: ClassVar[tuple[str, ...]] = ()
    modes: ClassVar[tuple[str, ...]] = ()
    defaults: ClassVar[dict[str, Any]] = {}
    choices: ClassVar[dict[str, tuple[Any, ...]]] = {}
    owned_keys: ClassVar[dict[str, tuple[str, ...]]] = {}
    controls: ClassVar[frozenset[str]] = frozenset()
    hwaccel: ClassVar[str | None] = None

    def __init__(self, encoder: str):
        if encoder not in self.encoders:
            raise ValueError(f"{type(self).__name__} does not handle encoder '{encoder}'")
        self.encoder = encoder
        self.mode = self.modes[0]
        self.options: dict[str, Any] = dict(self.defaults)

    # ── Transitions ───────────────────────────────────────────────────────────

    def mount(self) -> list[ParamPatch]:
        patches: list[ParamPatch] = []
        if self.hwaccel is not None:
            patches.append(SetHwaccel(self.hwaccel))
        return patches + self.compute()

    def select_mode(self, mode: str) -> list[ParamPatch]:
        if mode not in self.modes:
            raise ValueError(
                f"Unknown rate-control mode '{mode}' for {self.encoder}; "
                f"expected one of {', '.join(self.modes)}"
            )
        self.mode = mode
        return self.compute()

    def set_option(self, name: str, value: Any) -> list[ParamPatch]:
        if name not in self.options:
            raise ValueError(f"Unknown option '{name}' for {self.encoder}")
        allowed = self.choices.get(name)
        if allowed is not None and value not in allowed:
            raise ValueError(f"Invalid value {value!r} for '{name}'")
        self.options[name] = value
        return self.compute()

    def unmount(self) -> list[ParamPatch]:
        """Clear everything this policy wrote."""
        patches = [_FIELD_RESET[name] for name in sorted(self.controls)]
        if self.hwaccel is not None:
            patches.append(SetHwaccel(None))
        for stage, keys in self.owned_keys.items():
            patches.extend(SetExtraOption(stage, key, None) for key in keys)
        return patches

    # ── State machine body ────────────────────────────────────────────────────

    def compute(self) -> list[ParamPatch]:
        raise NotImplementedError

    # ── Helpers for subclasses ────────────────────────────────────────────────

    def extra(self, stage: str, values: dict[str, str | None]) -> list[ParamPatch]:
        """
        Clear every owned key of *stage*, then set the non-None entries of
        *values* in declaration order, so the emitted flags never depend on
        the order in which modes were visited.
        """
        owned = self.owned_keys.get(stage, ())
        unknown = set(values) - set(owned)
        if unknown:
            raise KeyError(f"{type(self).__name__} does not own {sorted(unknown)}")
        cleared = [SetExtraOption(stage, key, None) for key in owned]
        return cleared + [
            SetExtraOption(stage, key, values[key])
            for key in owned
            if values.get(key) is not None
        ]


def unset_if(value: Any, sentinel: Any = -1) -> str | None:
    """-1 in a numeric field means "leave it to the encoder"."""
    return None if value == sentinel or value is None else str(value)
