"""
vencoder.oshelper
~~~~~~~~~~~~~~~~~
Everything that talks to the desktop: opening files and folders with the
OS default application, previewing a result, desktop notifications, and
the yes/no prompt used before overwriting a file.

The session and the overseer only see the `Notifier` protocol, so a GUI
can plug in its own dialogs and tests can plug in a mock.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, Protocol

from vencoder.config import Settings
from vencoder.paths import Binaries

logger = logging.getLogger(__name__)

# Program that opens a path with its default application, per platform
OPEN_PROGRAMS: dict[str, str] = {
    "linux":  "xdg-open",
    "win32":  "explorer",
    "darwin": "open",
}


class Notifier(Protocol):

    def confirm(self, title: str, message: str) -> bool:
        """Ask a yes/no question; True means yes."""
        ...

    def notify(self, title: str, message: str) -> None:
        ...

    def open_path(self, path: Path) -> None:
        ...


# ── Opening files ─────────────────────────────────────────────────────────────

def opener_command(path: Path, platform: str | None = None) -> list[str]:
    platform = platform or sys.platform
    program = OPEN_PROGRAMS.get(platform, OPEN_PROGRAMS["linux"])
    return [program, str(path)]


def open_path(path: Path) -> None:
    """Open *path* (file or folder) with the OS default application."""
    cmd = opener_command(path)
    logger.debug("Opening %s with %s", path, cmd[0])
    try:
        subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as exc:
        logger.warning("Could not open %s: %s", path, exc)


def play_file(path: Path, settings: Settings, binaries: Binaries) -> None:
    """Preview a converted file with ffplay, or the default player."""
    if settings.use_ffplay:
        logger.debug("Playing %s with ffplay", path)
        try:
            subprocess.Popen(
                [binaries.ffplay, str(path)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            return
        except OSError as exc:
            logger.warning("ffplay failed (%s), falling back to the default player", exc)
    open_path(path)


# ── Console / desktop notifier ────────────────────────────────────────────────

class ConsoleNotifier:
    """
    Notifier for the command line: prompts on the terminal, prints
    notifications, and also raises a desktop notification through
    `notify-send` when it is installed.

    *assume_yes* answers every prompt without asking (True) or declines
    every prompt (False); None asks interactively.
    """

    def __init__(
        self,
        assume_yes: bool | None = None,
        desktop: bool = True,
        ask: Callable[[str], str] = input,
    ):
        self._assume_yes = assume_yes
        self._desktop = desktop
        self._ask = ask

    def confirm(self, title: str, message: str) -> bool:
        if self._assume_yes is not None:
            logger.debug("%s: answering %s", title, "yes" if self._assume_yes else "no")
            return self._assume_yes
        try:
            answer = self._ask(f"{title}: {message} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")

    def notify(self, title: str, message: str) -> None:
        print(f"{title}: {message}")
        if not self._desktop:
            return
        notify_send = shutil.which("notify-send")
        if notify_send is None:
            return
        try:
            subprocess.run([notify_send, title, message], check=False, timeout=5)
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug("notify-send failed: %s", exc)

    def open_path(self, path: Path) -> None:
        if self._desktop:
            open_path(path)
        else:
            print(f"See {path}")
