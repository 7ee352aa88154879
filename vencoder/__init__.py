from .models import BatchSummary, CodecInfo, CodecList, FFmpegParams, JobStatus, ProgressRecord, QueueItem
from .errors import VencoderError, ToolingUnavailable, ProbeError, StoreError
from .capabilities import get_available_codecs, get_pixel_formats, parse_codecs, parse_pixel_formats
from .command_builder import generate, DEFAULT_BITRATE, VIDEO_FILE_EXTENSIONS
from .probe import get_length_microseconds
from .params import ParamPatch, ParamsModel, apply_patch
from .encoders import EncoderPolicy, policy_for
from .config import Settings, load_settings, save_settings
from .session import ConfigurationSession
from .worker import TranscodeWorker
from .overseer import JobOverseer
from .store import QueueStore

__all__ = [
    "BatchSummary", "CodecInfo", "CodecList", "FFmpegParams", "JobStatus", "ProgressRecord", "QueueItem",
    "VencoderError", "ToolingUnavailable", "ProbeError", "StoreError",
    "get_available_codecs", "get_pixel_formats", "parse_codecs", "parse_pixel_formats",
    "generate", "DEFAULT_BITRATE", "VIDEO_FILE_EXTENSIONS",
    "get_length_microseconds",
    "ParamPatch", "ParamsModel", "apply_patch",
    "EncoderPolicy", "policy_for",
    "Settings", "load_settings", "save_settings",
    "ConfigurationSession",
    "TranscodeWorker",
    "JobOverseer",
    "QueueStore",
]
