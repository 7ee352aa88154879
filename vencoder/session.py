"""
vencoder.session
~~~~~~~~~~~~~~~~
ConfigurationSession ties the pieces of the configuration surface
together: the probed codec list, the parameter model with its live
command preview, the encoder policy mounted for the selected encoder,
and the preparation of per-file jobs for the queue.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Iterable

from vencoder.command_builder import build_output_path, generate, resolve_extension
from vencoder.config import Settings
from vencoder.encoders import EncoderPolicy, policy_for
from vencoder.models import CodecInfo, CodecList, FFmpegParams, QueueItem
from vencoder.oshelper import Notifier
from vencoder.params import ParamPatch, ParamsModel, SetAcodec, SetEncoder, SetPixelFormat
from vencoder.paths import Binaries, resolve_binaries
from vencoder.probe import get_length_microseconds

logger = logging.getLogger(__name__)

# Fields chosen directly by the user, kept when the codec changes
_CARRIED_FIELDS = (
    "acodec", "abitrate", "pixel_format", "faststart", "do_not_use_an",
    "custom_ext",
)


class ConfigurationSession:

    def __init__(
        self,
        codecs: CodecList,
        pixel_formats: list[str],
        settings: Settings,
        notifier: Notifier,
        binaries: Binaries | None = None,
    ):
        self.codecs = codecs
        self.pixel_formats = pixel_formats
        self.settings = settings
        self.binaries = binaries or resolve_binaries(settings)
        self._notifier = notifier
        self._codec: CodecInfo | None = None
        self._policy: EncoderPolicy | None = None
        self.model = ParamsModel(FFmpegParams(vcodec=""), self.binaries.ffmpeg)

    # ── Read-only views ───────────────────────────────────────────────────────

    @property
    def params(self) -> FFmpegParams:
        return self.model.params

    @property
    def command(self) -> str:
        return self.model.command

    @property
    def codec(self) -> CodecInfo | None:
        return self._codec

    @property
    def policy(self) -> EncoderPolicy | None:
        return self._policy

    def available_codecs(self) -> list[CodecInfo]:
        if self.settings.show_common_codecs:
            return self.codecs.common_video()
        return list(self.codecs.video)

    def available_audio_codecs(self) -> list[CodecInfo]:
        return list(self.codecs.audio)

    # ── Selection ─────────────────────────────────────────────────────────────

    def select_codec(self, short_name: str) -> str:
        """
        Start over with a new codec. Everything an encoder policy set is
        dropped; the user's own choices (audio, container, free-text
        options) carry over. The codec's first encoder is selected.
        """
        codec = self.codecs.find_video(short_name)
        if codec is None:
            raise ValueError(f"Codec '{short_name}' cannot be encoded by this ffmpeg")

        previous = self.params
        fresh = FFmpegParams(vcodec=codec.short_name)
        for name in _CARRIED_FIELDS:
            setattr(fresh, name, getattr(previous, name))
        fresh.useropts = previous.copy().useropts

        logger.debug("Codec selected: %s", codec.short_name)
        self._codec = codec
        self._policy = None
        self.model.reset(fresh)
        return self.select_encoder(codec.default_encoder)

    def select_encoder(self, name: str) -> str:
        if self._codec is None:
            raise ValueError("Select a codec before selecting an encoder")
        if self._codec.encoders and name not in self._codec.encoders:
            raise ValueError(
                f"Encoder '{name}' does not encode {self._codec.short_name}; "
                f"expected one of {', '.join(self._codec.encoders)}"
            )

        patches: list[ParamPatch] = []
        if self._policy is not None:
            patches += self._policy.unmount()

        patches.append(SetEncoder(name))

        self._policy = policy_for(name)
        if self._policy is not None:
            patches += self._policy.mount()
        logger.debug(
            "Encoder selected: %s (%s)",
            name, type(self._policy).__name__ if self._policy else "no policy",
        )
        return self.model.apply(*patches)

    def select_mode(self, mode: str) -> str:
        return self.model.apply(*self._require_policy().select_mode(mode))

    def set_policy_option(self, name: str, value: Any) -> str:
        return self.model.apply(*self._require_policy().set_option(name, value))

    def select_audio_codec(self, short_name: str | None, encoder: str | None = None) -> str:
        """
        Pick the audio codec, encoded with *encoder* or the codec's first
        encoder. None, "" or "copy" passes the source audio through.
        """
        if not short_name or short_name == "copy":
            if encoder:
                raise ValueError("An audio encoder needs an audio codec")
            return self.model.apply(SetAcodec(None))

        codec = self.codecs.find_audio(short_name)
        if codec is None:
            raise ValueError(f"Audio codec '{short_name}' cannot be encoded by this ffmpeg")
        if encoder and codec.encoders and encoder not in codec.encoders:
            raise ValueError(
                f"Encoder '{encoder}' does not encode {codec.short_name}; "
                f"expected one of {', '.join(codec.encoders)}"
            )

        logger.debug("Audio codec selected: %s", codec.short_name)
        return self.model.apply(SetAcodec(encoder or codec.default_encoder))

    def update(self, *patches: ParamPatch) -> str:
        return self.model.apply(*patches)

    def set_pixel_format(self, pixel_format: str | None) -> str:
        """None (or "") goes back to the encoder's default format."""
        if pixel_format and self.pixel_formats and pixel_format not in self.pixel_formats:
            raise ValueError(f"Pixel format '{pixel_format}' is not supported for output")
        return self.model.apply(SetPixelFormat(pixel_format or None))

    # ── Job preparation ───────────────────────────────────────────────────────

    def output_path_for(self, input_file: Path) -> Path:
        extension = resolve_extension(self.params)
        if extension is None:
            raise ValueError(
                f"No default container for codec '{self.params.vcodec}'; "
                "set a custom file extension"
            )
        return build_output_path(Path(input_file), Path(self.settings.output_folder), extension)

    def prepare_job(self, input_file: Path) -> QueueItem | None:
        """
        Build the queue entry for *input_file*, or return None when the
        user declines to overwrite an existing output.
        """
        input_file = Path(input_file)
        output_file = self.output_path_for(input_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        if output_file.exists():
            overwrite = self._notifier.confirm(
                "File already exists",
                f"A file at {output_file} already exists. "
                "Would you like to overwrite it?",
            )
            if not overwrite:
                logger.info("Skipping %s, output exists", input_file.name)
                return None

        length = get_length_microseconds(input_file, self.binaries.ffprobe)

        params = self.params.copy()
        params.input_file = str(input_file)
        params.output_file = str(output_file)
        command = generate(params, self.binaries.ffmpeg)

        return QueueItem(
            job_id=uuid.uuid4().hex[:12],
            command=command,
            input_file=str(input_file),
            length_us=length,
        )

    def prepare_batch(self, files: Iterable[Path]) -> list[QueueItem]:
        """prepare_job for each distinct file, in first-seen order."""
        seen: set[Path] = set()
        queue: list[QueueItem] = []
        for file in files:
            file = Path(file)
            if file in seen:
                continue
            seen.add(file)
            item = self.prepare_job(file)
            if item is not None:
                queue.append(item)
        logger.info("Prepared %d job(s)", len(queue))
        return queue

    # ── Internal ──────────────────────────────────────────────────────────────

    def _require_policy(self) -> EncoderPolicy:
        if self._policy is None:
            raise ValueError(f"Encoder '{self.params.encoder}' has no rate-control modes")
        return self._policy
