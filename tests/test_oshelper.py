"""Unit tests for the desktop helpers."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from vencoder.config import Settings
from vencoder.oshelper import ConsoleNotifier, opener_command, play_file
from vencoder.paths import Binaries


class TestOpenerCommand:
    @pytest.mark.parametrize(
        "platform, program",
        [("linux", "xdg-open"), ("darwin", "open"), ("win32", "explorer")],
    )
    def test_program_per_platform(self, platform: str, program: str) -> None:
        assert opener_command(Path("/out/a.mp4"), platform) == [program, str(Path("/out/a.mp4"))]


class TestPlayFile:
    """Tests for play_file."""

    def test_uses_ffplay(self, binaries: Binaries) -> None:
        with patch("vencoder.oshelper.subprocess.Popen") as popen:
            play_file(Path("/out/a.mp4"), Settings(use_ffplay=True), binaries)

        assert popen.call_args[0][0] == ["ffplay", str(Path("/out/a.mp4"))]

    def test_uses_default_player(self, binaries: Binaries) -> None:
        with patch("vencoder.oshelper.open_path") as open_path:
            play_file(Path("/out/a.mp4"), Settings(use_ffplay=False), binaries)

        open_path.assert_called_once_with(Path("/out/a.mp4"))

    def test_falls_back_when_ffplay_missing(self, binaries: Binaries) -> None:
        with patch("vencoder.oshelper.subprocess.Popen", side_effect=FileNotFoundError()), \
                patch("vencoder.oshelper.open_path") as open_path:
            play_file(Path("/out/a.mp4"), Settings(use_ffplay=True), binaries)

        open_path.assert_called_once()


class TestConsoleNotifier:
    """Tests for ConsoleNotifier."""

    def test_assume_yes(self) -> None:
        assert ConsoleNotifier(assume_yes=True).confirm("File already exists", "?") is True

    @pytest.mark.parametrize("answer, expected", [("y", True), ("YES", True), ("n", False), ("", False)])
    def test_prompt(self, answer: str, expected: bool) -> None:
        notifier = ConsoleNotifier(ask=MagicMock(return_value=answer))

        assert notifier.confirm("File already exists", "Overwrite?") is expected

    def test_prompt_without_terminal(self) -> None:
        notifier = ConsoleNotifier(ask=MagicMock(side_effect=EOFError()))

        assert notifier.confirm("File already exists", "Overwrite?") is False

    def test_notify_without_desktop(self, capsys) -> None:
        with patch("vencoder.oshelper.subprocess.run") as run:
            ConsoleNotifier(desktop=False).notify("Conversion finished", "1 of 1")

        run.assert_not_called()
        assert "Conversion finished: 1 of 1" in capsys.readouterr().out

    def test_notify_send(self) -> None:
        with patch("vencoder.oshelper.shutil.which", return_value="/usr/bin/notify-send"), \
                patch("vencoder.oshelper.subprocess.run") as run:
            ConsoleNotifier().notify("Conversion finished", "1 of 1")

        assert run.call_args[0][0] == ["/usr/bin/notify-send", "Conversion finished", "1 of 1"]
