"""
vencoder.store
~~~~~~~~~~~~~~
Hands the prepared job queue from the configuration surface to the
progress surface through a small JSON file in the config directory:

    {
      "version": 1,
      "filesBeingProcessed": [
        {"id": "…", "com": "ffmpeg …", "in": "/videos/a.mov", "len": 3723500000}
      ]
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from vencoder.config import config_dir
from vencoder.errors import StoreError
from vencoder.models import QueueItem

logger = logging.getLogger(__name__)

STORE_VERSION = 1
QUEUE_KEY = "filesBeingProcessed"


class QueueStore:

    def __init__(self, path: Path | None = None):
        self.path = path or config_dir() / "queue.json"

    def save(self, items: list[QueueItem]) -> None:
        payload = {
            "version": STORE_VERSION,
            QUEUE_KEY: [_item_to_dict(item) for item in items],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.debug("Saved %d queued job(s) to %s", len(items), self.path)

    def load(self) -> list[QueueItem]:
        """
        Return the stored queue. A missing file or key is an empty queue;
        anything unreadable raises StoreError.
        """
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read queue file {self.path}: {exc}") from exc

        if not isinstance(payload, dict):
            raise StoreError(f"Queue file {self.path} is not a JSON object")
        version = payload.get("version")
        if version != STORE_VERSION:
            raise StoreError(f"Unsupported queue file version: {version!r}")

        records = payload.get(QUEUE_KEY, [])
        if not isinstance(records, list):
            raise StoreError(f"'{QUEUE_KEY}' must be a list")
        return [_dict_to_item(record) for record in records]

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# ── Serialisation helpers ─────────────────────────────────────────────────────

def _item_to_dict(item: QueueItem) -> dict:
    return {
        "id":  item.job_id,
        "com": item.command,
        "in":  item.input_file,
        "len": item.length_us,
    }


def _dict_to_item(d: dict) -> QueueItem:
    try:
        return QueueItem(
            job_id=str(d["id"]),
            command=str(d["com"]),
            input_file=str(d["in"]),
            length_us=int(d["len"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreError(f"Malformed queue record: {d!r}") from exc
