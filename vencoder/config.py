"""
vencoder.config
~~~~~~~~~~~~~~~
Persists the user's Settings to a JSON file in the platform's standard
config directory.

Config location
---------------
  Windows  : %APPDATA%\\Vencoder\\settings.json
  macOS    : ~/Library/Application Support/Vencoder/settings.json
  Linux    : ~/.config/Vencoder/settings.json
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)


# ── Config directory ──────────────────────────────────────────────────────────

def config_dir() -> Path:
    if sys.platform == "win32":
        base = Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"

    d = base / "Vencoder"
    d.mkdir(parents=True, exist_ok=True)
    return d


def default_output_folder() -> Path:
    return Path.home() / "Videos" / "Vencoder"


# ── Settings ──────────────────────────────────────────────────────────────────

@dataclass
class Settings:
    use_system_ffmpeg: bool = True   # look ffmpeg/ffprobe up on PATH
    ffmpeg_path: str = ""            # directory holding the binaries otherwise
    use_ffplay: bool = True          # preview with ffplay, not the OS player
    output_folder: Path = field(default_factory=default_output_folder)
    show_common_codecs: bool = True


# ── Public API ────────────────────────────────────────────────────────────────

def settings_file() -> Path:
    return config_dir() / "settings.json"


def save_settings(settings: Settings, path: Path | None = None) -> None:
    """Serialise *settings* to *path*, overwriting any previous data."""
    path = path or settings_file()
    payload = asdict(settings)
    payload["output_folder"] = str(settings.output_folder)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.debug("Settings saved to %s", path)


def load_settings(path: Path | None = None) -> Settings:
    """
    Read *path* and return a Settings instance.
    A missing file yields the defaults; a malformed one is logged and
    also yields the defaults, so a bad config never blocks startup.
    """
    path = path or settings_file()
    if not path.exists():
        return Settings()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return Settings()
    if not isinstance(payload, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", path)
        return Settings()
    return _dict_to_settings(payload)


# ── Serialisation helpers ─────────────────────────────────────────────────────

def _dict_to_settings(d: dict) -> Settings:
    known = {f.name for f in fields(Settings)}
    values = {k: v for k, v in d.items() if k in known}
    if "output_folder" in values:
        values["output_folder"] = Path(values["output_folder"]).expanduser()
    return Settings(**values)
