"""Unit tests for ConfigurationSession."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from vencoder.command_builder import quote_path
from vencoder.config import Settings
from vencoder.encoders import LibX26xPolicy, NvencPolicy
from vencoder.errors import ProbeError
from vencoder.models import CodecList
from vencoder.paths import Binaries
from vencoder.params import SetAcodec, SetCustomExt, SetUserOptions
from vencoder.session import ConfigurationSession

LENGTH = 3_723_500_000


@pytest.fixture
def notifier() -> MagicMock:
    notifier = MagicMock()
    notifier.confirm.return_value = True
    return notifier


@pytest.fixture
def session(qapp, codec_list: CodecList, pixel_formats: list[str], settings: Settings,
            notifier: MagicMock, binaries: Binaries) -> ConfigurationSession:
    return ConfigurationSession(codec_list, pixel_formats, settings, notifier, binaries)


@pytest.fixture
def probe_length():
    with patch("vencoder.session.get_length_microseconds", return_value=LENGTH) as mock_probe:
        yield mock_probe


class TestSelection:
    """Tests for codec / encoder / mode selection."""

    def test_select_codec_mounts_first_encoder(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")

        assert session.params.encoder == "libx264"
        assert isinstance(session.policy, LibX26xPolicy)
        assert "-c:v libx264 -crf 23" in session.command

    def test_unknown_codec(self, session: ConfigurationSession) -> None:
        with pytest.raises(ValueError):
            session.select_codec("prores")

    def test_encoder_must_belong_to_codec(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")

        with pytest.raises(ValueError):
            session.select_encoder("libx265")

    def test_switching_encoder_unmounts_previous(self, session: ConfigurationSession) -> None:
        """Nothing NVENC set survives a switch back to libx264."""
        session.select_codec("h264")
        session.select_encoder("h264_nvenc")
        assert isinstance(session.policy, NvencPolicy)
        assert "-hwaccel cuda" in session.command

        session.select_encoder("libx264")

        assert session.params.hwaccel is None
        assert session.params.extraopts.global_ == {}
        assert session.params.extraopts.output == {}
        assert "-b:v" not in session.command
        assert "-crf 23" in session.command

    def test_encoder_without_policy(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")
        session.select_encoder("h264_vaapi")

        assert session.policy is None
        assert "-c:v h264_vaapi" in session.command
        with pytest.raises(ValueError):
            session.select_mode("crf")

    def test_codec_without_encoder_list(self, session: ConfigurationSession) -> None:
        session.select_codec("dnxhd")

        assert session.params.encoder == "dnxhd"
        assert "-profile dnxhd" in session.command

    def test_mode_and_option(self, session: ConfigurationSession) -> None:
        session.select_codec("hevc")
        session.select_encoder("hevc_nvenc")

        session.set_policy_option("cq", 24)
        command = session.select_mode("vbr-cq")

        assert "-rc vbr" in command
        assert "-cq 24" in command
        assert command == session.command

    def test_codec_change_keeps_user_choices(self, session: ConfigurationSession) -> None:
        """Audio, container and free-text options survive a codec change."""
        session.select_codec("h264")
        session.update(
            SetAcodec("aac"), SetCustomExt("mkv"), SetUserOptions("output", "-t 5"),
        )
        session.select_encoder("h264_nvenc")

        session.select_codec("vp9")

        assert session.params.acodec == "aac"
        assert session.params.custom_ext == "mkv"
        assert session.params.useropts.output == "-t 5"
        assert session.params.hwaccel is None
        assert session.params.crf == 30

    def test_preview_signal(self, session: ConfigurationSession) -> None:
        seen: list[str] = []
        session.model.command_changed.connect(seen.append)

        session.select_codec("h264")

        assert seen[-1] == session.command

    def test_pixel_format(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")

        session.set_pixel_format("yuv420p")
        assert "-pix_fmt yuv420p" in session.command

        with pytest.raises(ValueError):
            session.set_pixel_format("cuda")

        session.set_pixel_format(None)
        assert "-pix_fmt" not in session.command

    def test_common_codecs_setting(self, session: ConfigurationSession) -> None:
        assert "mjpeg" not in [c.short_name for c in session.available_codecs()]

        session.settings.show_common_codecs = False

        assert "mjpeg" in [c.short_name for c in session.available_codecs()]

    def test_fresh_session_preview_has_no_bare_video_flag(self, session: ConfigurationSession) -> None:
        assert session.params.vcodec == ""
        assert "-c:v" not in session.command


class TestAudioSelection:
    """Tests for select_audio_codec."""

    def test_known_codec_uses_first_encoder(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")

        session.select_audio_codec("opus")

        assert session.params.acodec == "opus"
        assert "-c:a opus" in session.command

    def test_codec_without_encoder_list(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")

        session.select_audio_codec("aac")

        assert session.params.acodec == "aac"

    def test_explicit_encoder(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")

        session.select_audio_codec("opus", "libopus")

        assert "-c:a libopus" in session.command

    def test_encoder_must_belong_to_codec(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")

        with pytest.raises(ValueError, match="does not encode opus"):
            session.select_audio_codec("opus", "aac")

    def test_unknown_codec(self, session: ConfigurationSession) -> None:
        session.select_codec("h264")

        with pytest.raises(ValueError, match="cannot be encoded"):
            session.select_audio_codec("mp3")
        # subtitle codecs are not audio codecs
        with pytest.raises(ValueError):
            session.select_audio_codec("ass")
        assert session.params.acodec is None

    @pytest.mark.parametrize("short_name", [None, "", "copy"])
    def test_copy(self, session: ConfigurationSession, short_name) -> None:
        session.select_codec("h264")
        session.select_audio_codec("aac")

        session.select_audio_codec(short_name)

        assert session.params.acodec is None
        assert "-c:a copy" in session.command

    def test_available_audio_codecs(self, session: ConfigurationSession) -> None:
        names = [c.short_name for c in session.available_audio_codecs()]

        assert names == ["aac", "flac", "opus"]


class TestPrepareJob:
    """Tests for prepare_job / prepare_batch."""

    def test_builds_final_command(self, session: ConfigurationSession, settings: Settings,
                                  temp_dir: Path, probe_length) -> None:
        session.select_codec("h264")
        source = temp_dir / "clip.mov"

        item = session.prepare_job(source)

        expected_output = settings.output_folder / "clip.mp4"
        assert item.length_us == LENGTH
        assert item.input_file == str(source)
        assert f"-i {quote_path(source)}" in item.command
        assert item.command.endswith(quote_path(expected_output))
        assert settings.output_folder.is_dir()
        probe_length.assert_called_once_with(source, "ffprobe")

    def test_preview_keeps_placeholders(self, session: ConfigurationSession,
                                        temp_dir: Path, probe_length) -> None:
        """Preparing a job never writes the file names into the session."""
        session.select_codec("h264")

        session.prepare_job(temp_dir / "clip.mov")

        assert session.params.input_file is None
        assert "-i {filename}" in session.command

    def test_declined_overwrite(self, session: ConfigurationSession, settings: Settings,
                                notifier: MagicMock, temp_dir: Path, probe_length) -> None:
        session.select_codec("h264")
        settings.output_folder.mkdir(parents=True)
        (settings.output_folder / "clip.mp4").touch()
        notifier.confirm.return_value = False

        assert session.prepare_job(temp_dir / "clip.mov") is None
        notifier.confirm.assert_called_once()
        probe_length.assert_not_called()

    def test_accepted_overwrite(self, session: ConfigurationSession, settings: Settings,
                                notifier: MagicMock, temp_dir: Path, probe_length) -> None:
        session.select_codec("h264")
        settings.output_folder.mkdir(parents=True)
        (settings.output_folder / "clip.mp4").touch()

        assert session.prepare_job(temp_dir / "clip.mov") is not None

    def test_custom_extension(self, session: ConfigurationSession, settings: Settings,
                              temp_dir: Path, probe_length) -> None:
        session.select_codec("h264")
        session.update(SetCustomExt(".mov"))

        item = session.prepare_job(temp_dir / "clip.mkv")

        assert item.command.endswith(quote_path(settings.output_folder / "clip.mov"))

    def test_unknown_container(self, session: ConfigurationSession, temp_dir: Path) -> None:
        session.settings.show_common_codecs = False
        session.select_codec("mjpeg")

        with pytest.raises(ValueError):
            session.prepare_job(temp_dir / "clip.mov")

    def test_probe_failure_propagates(self, session: ConfigurationSession, temp_dir: Path) -> None:
        session.select_codec("h264")

        with patch("vencoder.session.get_length_microseconds", side_effect=ProbeError("bad")):
            with pytest.raises(ProbeError):
                session.prepare_job(temp_dir / "clip.mov")

    def test_batch_dedupes_and_skips(self, session: ConfigurationSession, settings: Settings,
                                     notifier: MagicMock, temp_dir: Path, probe_length) -> None:
        session.select_codec("h264")
        settings.output_folder.mkdir(parents=True)
        (settings.output_folder / "b.mp4").touch()
        notifier.confirm.return_value = False
        files = [temp_dir / "a.mov", temp_dir / "b.mov", temp_dir / "a.mov", temp_dir / "c.mov"]

        queue = session.prepare_batch(files)

        assert [Path(item.input_file).name for item in queue] == ["a.mov", "c.mov"]
        assert len({item.job_id for item in queue}) == 2
