"""Progression record and its persisted payload form.

The record is the single source of truth for a player's session: solved
puzzles, the hub's chat logs, the narrative stage counter and the message id
sequence. It is serialized to a versioned camelCase JSON payload.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

from .errors import StateCorrupt

logger = logging.getLogger(__name__)

PAYLOAD_VERSION = 1

CHANNEL = "channel"
DIRECT = "direct"


def clock_label(now: datetime | None = None) -> str:
    """Wall-clock stamp shown next to chat messages."""
    return (now or datetime.now()).strftime("%H:%M")


# ── Messages & views ────────────────────────────────────────────


@dataclass(frozen=True)
class MessageAction:
    """Button attached to a message that navigates to another screen."""

    label: str
    to: str


@dataclass(frozen=True)
class Message:
    id: int
    author: str
    text: str
    ts: str = ""
    action: MessageAction | None = None

    def to_payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "author": self.author, "text": self.text}
        if self.ts:
            data["ts"] = self.ts
        if self.action is not None:
            data["action"] = {"label": self.action.label, "to": self.action.to}
        return data

    @classmethod
    def from_payload(cls, data: Any) -> Message:
        if not isinstance(data, dict):
            raise StateCorrupt(f"message must be an object, got {type(data).__name__}")
        action = data.get("action")
        try:
            return cls(
                id=_as_int(data["id"], "message id"),
                author=str(data.get("author", "")),
                text=str(data.get("text", "")),
                ts=str(data.get("ts") or ""),
                action=MessageAction(str(action["label"]), str(action["to"])) if action else None,
            )
        except (KeyError, TypeError) as exc:
            raise StateCorrupt(f"malformed message: {exc}") from exc


@dataclass(frozen=True)
class ViewRef:
    """A channel or a direct-message thread in the hub."""

    kind: str
    name: str

    @classmethod
    def channel(cls, name: str) -> ViewRef:
        return cls(CHANNEL, name)

    @classmethod
    def direct(cls, name: str) -> ViewRef:
        return cls(DIRECT, name)

    @property
    def is_direct(self) -> bool:
        return self.kind == DIRECT

    def label(self) -> str:
        return f"@{self.name}" if self.is_direct else self.name


# ── Progression record ──────────────────────────────────────────


@dataclass
class ProgressionRecord:
    """Everything the session remembers between screens and reloads."""

    active_view: ViewRef = field(default_factory=lambda: ViewRef.channel("#ai-manila"))
    message_draft: str = ""
    messages: dict[str, list[Message]] = field(default_factory=dict)
    direct_list: list[str] = field(default_factory=list)
    direct_msgs: dict[str, list[Message]] = field(default_factory=dict)
    unread: dict[str, int] = field(default_factory=dict)
    narrative_stage: int = 0
    next_message_id: int = 1
    completed_puzzles: set[str] = field(default_factory=set)

    # ── Id sequence ─────────────────────────────────────────────

    def allocate_id(self) -> int:
        message_id = self.next_message_id
        self.next_message_id += 1
        return message_id

    def max_message_id(self) -> int:
        return max((m.id for m in self.iter_messages()), default=0)

    def reconcile_ids(self) -> None:
        """Keep the sequence ahead of every id already in the logs."""
        self.next_message_id = max(self.next_message_id, self.max_message_id() + 1)

    # ── Logs ────────────────────────────────────────────────────

    def iter_messages(self) -> Iterator[Message]:
        for log in self.messages.values():
            yield from log
        for log in self.direct_msgs.values():
            yield from log

    def log_for(self, view: ViewRef) -> list[Message]:
        logs = self.direct_msgs if view.is_direct else self.messages
        return list(logs.get(view.name, []))

    def add_direct(self, name: str) -> bool:
        if name in self.direct_list:
            return False
        self.direct_list.append(name)
        return True

    def append(
        self,
        view: ViewRef,
        author: str,
        text: str,
        ts: str = "",
        action: MessageAction | None = None,
    ) -> Message:
        """Append a new message with a freshly allocated id."""
        message = Message(id=self.allocate_id(), author=author, text=text, ts=ts, action=action)
        if view.is_direct:
            self.add_direct(view.name)
            self.direct_msgs.setdefault(view.name, []).append(message)
        else:
            self.messages.setdefault(view.name, []).append(message)
        return message

    # ── Views & unread ──────────────────────────────────────────

    def is_viewing(self, view: ViewRef) -> bool:
        return self.active_view == view

    def set_active(self, view: ViewRef) -> None:
        self.active_view = view
        self.mark_read(view)

    def mark_read(self, view: ViewRef) -> None:
        if view.is_direct:
            self.unread[view.name] = 0

    def bump_unread(self, name: str, count: int = 1) -> None:
        """Count new direct messages unless that thread is on screen."""
        if self.is_viewing(ViewRef.direct(name)):
            self.unread[name] = 0
        else:
            self.unread[name] = self.unread.get(name, 0) + count

    # ── Completion ──────────────────────────────────────────────

    def is_completed(self, puzzle_id: str) -> bool:
        return puzzle_id in self.completed_puzzles

    def mark_completed(self, puzzle_id: str) -> bool:
        """Record a solved puzzle. Returns False if it was already recorded."""
        if puzzle_id in self.completed_puzzles:
            return False
        self.completed_puzzles.add(puzzle_id)
        return True

    def snapshot(self) -> ProgressionRecord:
        return copy.deepcopy(self)

    def restore(self, snapshot: ProgressionRecord) -> None:
        """Put every field back to the value it had in ``snapshot``."""
        for f in fields(self):
            setattr(self, f.name, copy.deepcopy(getattr(snapshot, f.name)))

    # ── Payload ─────────────────────────────────────────────────

    def to_payload(self) -> dict[str, Any]:
        return {
            "version": PAYLOAD_VERSION,
            "activeView": {"kind": self.active_view.kind, "name": self.active_view.name},
            "messageDraft": self.message_draft,
            "messages": {
                name: [m.to_payload() for m in log] for name, log in self.messages.items()
            },
            "directList": list(self.direct_list),
            "directMsgs": {
                name: [m.to_payload() for m in log] for name, log in self.direct_msgs.items()
            },
            "unread": dict(self.unread),
            "narrativeStage": self.narrative_stage,
            "nextMessageId": self.next_message_id,
            "completedPuzzles": sorted(self.completed_puzzles),
        }

    @classmethod
    def from_payload(cls, data: Any) -> ProgressionRecord:
        """Decode a payload written by ``to_payload``.

        Raises StateCorrupt for anything that does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise StateCorrupt("payload must be an object")
        version = data.get("version")
        if version != PAYLOAD_VERSION:
            raise StateCorrupt(f"unsupported payload version: {version!r}")

        active = data.get("activeView") or {}
        if not isinstance(active, dict) or active.get("kind") not in (CHANNEL, DIRECT):
            raise StateCorrupt("activeView must have kind channel|direct")

        record = cls(
            active_view=ViewRef(active["kind"], str(active.get("name", ""))),
            message_draft=str(data.get("messageDraft") or ""),
            messages=_decode_logs(data.get("messages"), "messages"),
            direct_list=[str(name) for name in _as_list(data.get("directList"), "directList")],
            direct_msgs=_decode_logs(data.get("directMsgs"), "directMsgs"),
            unread={
                str(k): _as_int(v, "unread count")
                for k, v in _as_dict(data.get("unread"), "unread").items()
            },
            narrative_stage=_as_int(data.get("narrativeStage", 0), "narrativeStage"),
            next_message_id=_as_int(data.get("nextMessageId", 1), "nextMessageId"),
            completed_puzzles={
                str(p) for p in _as_list(data.get("completedPuzzles"), "completedPuzzles")
            },
        )
        if record.narrative_stage < 0:
            raise StateCorrupt("narrativeStage must not be negative")
        before = record.next_message_id
        record.reconcile_ids()
        if record.next_message_id != before:
            logger.info("Message id sequence moved from %d to %d on load", before, record.next_message_id)
        return record


def _decode_logs(value: Any, name: str) -> dict[str, list[Message]]:
    logs = _as_dict(value, name)
    return {
        str(view): [Message.from_payload(m) for m in _as_list(entries, name)]
        for view, entries in logs.items()
    }


def _as_dict(value: Any, name: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise StateCorrupt(f"{name} must be an object")
    return value


def _as_list(value: Any, name: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise StateCorrupt(f"{name} must be a list")
    return value


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise StateCorrupt(f"{name} must be an integer, got {value!r}")
    return value
