"""Local draft storage for in-progress wizard sessions.

One JSON file per (guide, athlete) pair. Writes go to a temp file that is
then swapped in with os.replace, so a crash mid-write leaves the previous
draft intact.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from evalcore.config.settings import settings

DRAFT_VERSION = 1

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class DraftStore(Protocol):
    def save(self, guide_id: str, athlete_id: str, snapshot: dict[str, Any]) -> None: ...

    def load(self, guide_id: str, athlete_id: str) -> dict[str, Any] | None: ...

    def delete(self, guide_id: str, athlete_id: str) -> None: ...


class JsonFileDraftStore:
    """Draft store backed by a local directory."""

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory or settings.draft_storage_dir)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, guide_id: str, athlete_id: str) -> Path:
        guide = _UNSAFE_CHARS.sub("_", guide_id)
        athlete = _UNSAFE_CHARS.sub("_", athlete_id)
        return self.directory / f"{guide}__{athlete}.json"

    def save(self, guide_id: str, athlete_id: str, snapshot: dict[str, Any]) -> None:
        path = self.path_for(guide_id, athlete_id)
        tmp_path = path.with_suffix(".json.tmp")
        envelope = {"version": DRAFT_VERSION, "session": snapshot}
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(envelope, f, ensure_ascii=False, default=str)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError):
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"[DRAFTS] Draft written to {path.name}", guide_id=guide_id, athlete_id=athlete_id)

    def load(self, guide_id: str, athlete_id: str) -> dict[str, Any] | None:
        """Return the stored session snapshot, or None.

        A draft that cannot be parsed or carries an unknown version is
        discarded with a warning.
        """
        path = self.path_for(guide_id, athlete_id)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                envelope = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"[DRAFTS] Discarding unreadable draft {path.name}: {e}")
            path.unlink(missing_ok=True)
            return None

        if not isinstance(envelope, dict) or envelope.get("version") != DRAFT_VERSION or not isinstance(envelope.get("session"), dict):
            logger.warning(f"[DRAFTS] Discarding draft {path.name} with unexpected format")
            path.unlink(missing_ok=True)
            return None

        return envelope["session"]

    def delete(self, guide_id: str, athlete_id: str) -> None:
        self.path_for(guide_id, athlete_id).unlink(missing_ok=True)
