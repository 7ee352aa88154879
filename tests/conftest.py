"""Shared test fixtures for vencoder."""

import shutil
import tempfile
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

from vencoder.capabilities import parse_codecs, parse_pixel_formats
from vencoder.config import Settings
from vencoder.models import CodecList
from vencoder.paths import Binaries

CODECS_OUTPUT = """\
Codecs:
 D..... = Decoding supported
 .E.... = Encoding supported
 ..V... = Video codec
 ..A... = Audio codec
 ..S... = Subtitle codec
 ..D... = Data codec
 ..T... = Attachment codec
 ...I.. = Intra frame-only codec
 ....L. = Lossy compression
 .....S = Lossless compression
 -------
 D.VI.S 012v                 Uncompressed 4:2:2 10-bit
 DEV.L. av1                  Alliance for Open Media AV1 (decoders: libdav1d libaom-av1 av1 av1_cuvid av1_qsv ) (encoders: libaom-av1 librav1e libsvtav1 av1_nvenc av1_qsv av1_vaapi )
 DEVIL. dnxhd                VC3/DNxHD
 DEV.LS h264                 H.264 / AVC / MPEG-4 AVC / MPEG-4 part 10 (decoders: h264 h264_qsv h264_cuvid ) (encoders: libx264 libx264rgb h264_nvenc h264_qsv h264_vaapi )
 DEV.L. hevc                 H.265 / HEVC (High Efficiency Video Coding) (decoders: hevc hevc_qsv hevc_cuvid ) (encoders: libx265 hevc_nvenc hevc_qsv hevc_vaapi )
 DEVIL. mjpeg                Motion JPEG (encoders: mjpeg mjpeg_qsv mjpeg_vaapi )
 D.V.L. vp6                  On2 VP6
 DEV.L. vp9                  Google VP9 (decoders: vp9 libvpx-vp9 vp9_cuvid vp9_qsv ) (encoders: libvpx-vp9 vp9_vaapi vp9_qsv )
 DEA.L. aac                  AAC (Advanced Audio Coding) (decoders: aac aac_fixed )
 DEA..S flac                 FLAC (Free Lossless Audio Codec)
 DEA.L. opus                 Opus (Opus Interactive Audio Codec) (decoders: opus libopus ) (encoders: opus libopus )
 DES... ass                  ASS (Advanced SSA) subtitle (decoders: ssa ass ) (encoders: ssa ass )
"""

PIX_FMTS_OUTPUT = """\
Pixel formats:
I.... = Supported Input  format for conversion
.O... = Supported Output format for conversion
..H.. = Hardware accelerated format
...P. = Paletted format
....B = Bitstream format
FLAGS NAME            NB_COMPONENTS BITS_PER_PIXEL BIT_DEPTHS
-----
IO... yuv420p                3             12      8-8-8
IO... yuyv422                3             16      8-8-8
IO... rgb24                  3             24      8-8-8
..H.. cuda                   0              0      0
I.... bayer_bggr8            3              8      2-4-2
IO... p010le                 3             15      10-10-10
"""


@pytest.fixture(scope="session")
def qapp():
    """A QCoreApplication for tests that create QObjects."""
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def codecs_output() -> str:
    return CODECS_OUTPUT


@pytest.fixture
def pix_fmts_output() -> str:
    return PIX_FMTS_OUTPUT


@pytest.fixture
def codec_list() -> CodecList:
    return parse_codecs(CODECS_OUTPUT)


@pytest.fixture
def pixel_formats() -> list[str]:
    return parse_pixel_formats(PIX_FMTS_OUTPUT)


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """Settings whose output folder lives in the temp dir."""
    return Settings(output_folder=temp_dir / "out")


@pytest.fixture
def binaries() -> Binaries:
    return Binaries(ffmpeg="ffmpeg", ffprobe="ffprobe", ffplay="ffplay")
