"""
vencoder.encoders
~~~~~~~~~~~~~~~~~
Per-encoder rate-control policies and the registry that picks one for
an encoder name.
"""

from __future__ import annotations

from vencoder.encoders.base import EncoderPolicy
from vencoder.encoders.hardware import NvencPolicy, QsvPolicy, Vp9QsvPolicy
from vencoder.encoders.software import (
    DnxhdPolicy,
    LibaomPolicy,
    LibSvtAv1Policy,
    LibVpxVp9Policy,
    LibX26xPolicy,
    Librav1ePolicy,
)

POLICIES: tuple[type[EncoderPolicy], ...] = (
    LibX26xPolicy,
    LibVpxVp9Policy,
    LibaomPolicy,
    Librav1ePolicy,
    LibSvtAv1Policy,
    DnxhdPolicy,
    NvencPolicy,
    QsvPolicy,
    Vp9QsvPolicy,
)

_BY_ENCODER: dict[str, type[EncoderPolicy]] = {
    encoder: policy for policy in POLICIES for encoder in policy.encoders
}


def policy_for(encoder: str) -> EncoderPolicy | None:
    """A fresh policy for *encoder*, or None if it has no dedicated options."""
    policy = _BY_ENCODER.get(encoder)
    return policy(encoder) if policy is not None else None


__all__ = [
    "POLICIES",
    "EncoderPolicy",
    "policy_for",
    "DnxhdPolicy",
    "LibaomPolicy",
    "LibSvtAv1Policy",
    "LibVpxVp9Policy",
    "LibX26xPolicy",
    "Librav1ePolicy",
    "NvencPolicy",
    "QsvPolicy",
    "Vp9QsvPolicy",
]
