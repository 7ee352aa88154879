"""
vencoder.errors
~~~~~~~~~~~~~~~
Exceptions raised by the probers and the queue hand-off store.
Job failures are not exceptions: the overseer reports them as events.
"""

from __future__ import annotations


class VencoderError(Exception):
    """Base class for every error raised by vencoder."""


class ToolingUnavailable(VencoderError):
    """ffmpeg / ffprobe could not be run, or ran but failed."""

    def __init__(self, tool: str, reason: str):
        super().__init__(f"{tool} is unavailable: {reason}")
        self.tool = tool
        self.reason = reason


class ProbeError(VencoderError):
    """ffprobe output did not contain a usable duration."""


class StoreError(VencoderError):
    """The queue hand-off record could not be read back."""
