"""Unit tests for the command-line front-end helpers."""

from unittest.mock import MagicMock

import pytest

from main import build_parser, configure, parse_option


class TestParseOption:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("cq=24", ("cq", 24)),
            ("temporal_aq=false", ("temporal_aq", False)),
            ("spatial_aq=on", ("spatial_aq", True)),
            ("tune=hq", ("tune", "hq")),
            ("preset=p5", ("preset", "p5")),
        ],
    )
    def test_coercion(self, text: str, expected: tuple) -> None:
        assert parse_option(text) == expected

    def test_missing_equals(self) -> None:
        with pytest.raises(ValueError):
            parse_option("cq")


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args([])

        assert args.codec == "h264"
        assert args.files == []
        assert args.option == []
        assert args.yes is None

    def test_repeated_options(self) -> None:
        args = build_parser().parse_args(["--option", "cq=24", "--option", "gop=120", "a.mov"])

        assert args.option == ["cq=24", "gop=120"]
        assert [str(f) for f in args.files] == ["a.mov"]


class TestConfigure:
    def test_audio_codec_goes_through_selection(self) -> None:
        session = MagicMock()
        args = build_parser().parse_args(["--audio-codec", "opus", "--audio-encoder", "libopus"])

        configure(session, args)

        session.select_audio_codec.assert_called_once_with("opus", "libopus")

    def test_audio_left_alone_by_default(self) -> None:
        session = MagicMock()

        configure(session, build_parser().parse_args([]))

        session.select_audio_codec.assert_not_called()
        session.select_codec.assert_called_once_with("h264")
