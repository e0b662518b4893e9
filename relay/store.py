"""Session-scoped persistence.

SessionStorage = flat key/value document for one player session (JSON file,
replaced atomically on every write).
StateStore = the progression record, kept under one fixed key.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .errors import StateCorrupt
from .state import ProgressionRecord

logger = logging.getLogger(__name__)

STATE_KEY = "slackOpenState.v1"


# ── Session storage (JSON) ──────────────────────────────────────


class SessionStorage:
    """String key/value storage that lives as long as the session file."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._items: dict[str, str] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Session storage at %s is unreadable, starting empty: %s", self._path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Session storage at %s is not an object, starting empty", self._path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _flush(self) -> None:
        """Write the whole document to a temp file, then swap it in."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".session-", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._items, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.update({key: value})

    def remove_item(self, key: str) -> None:
        if key in self._items:
            self.update(remove=[key])

    def update(self, values: dict[str, str] | None = None, remove: Iterable[str] = ()) -> None:
        """Set and remove several keys in one write; on failure nothing changes."""
        previous = dict(self._items)
        for key in remove:
            self._items.pop(key, None)
        self._items.update(values or {})
        try:
            self._flush()
        except OSError:
            self._items = previous
            raise

    def keys(self) -> list[str]:
        return sorted(self._items)

    def clear(self) -> None:
        self._items = {}
        self._flush()


# ── Progression record store ────────────────────────────────────


class StateStore:
    """Load / save the ProgressionRecord under a single storage key."""

    def __init__(self, storage: SessionStorage, key: str = STATE_KEY):
        self._storage = storage
        self._key = key

    @property
    def storage(self) -> SessionStorage:
        return self._storage

    def load(self) -> ProgressionRecord | None:
        raw = self._storage.get_item(self._key)
        if not raw:
            return None
        try:
            record = ProgressionRecord.from_payload(_parse(raw))
        except StateCorrupt as exc:
            logger.warning("Discarding corrupt progression state: %s", exc)
            return None
        logger.debug(
            "Loaded state: stage=%d next_id=%d completed=%s",
            record.narrative_stage,
            record.next_message_id,
            sorted(record.completed_puzzles),
        )
        return record

    def save(
        self,
        record: ProgressionRecord,
        signals: dict[str, str] | None = None,
        clear_signals: Iterable[str] = (),
    ) -> None:
        """Persist the record, plus any signal flags that must change with it."""
        values = {self._key: json.dumps(record.to_payload(), sort_keys=True)}
        values.update(signals or {})
        self._storage.update(values, remove=clear_signals)
        logger.debug("Saved state: stage=%d next_id=%d", record.narrative_stage, record.next_message_id)

    def clear(self) -> None:
        self._storage.remove_item(self._key)


def _parse(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StateCorrupt(f"invalid JSON: {exc}") from exc
