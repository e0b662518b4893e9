"""The hub: a chat workspace that drips the story and receives puzzle results.

On every mount the hub
1. makes sure a progression record exists,
2. consumes signal flags left by solved puzzles (once each),
3. resumes the opening script from the recorded stage.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from puzzles.base import SEPARATOR
from puzzles.pins import PinsPuzzle
from puzzles.snippet import SnippetPuzzle
from relay.router import HUB
from relay.scheduler import TimerScope
from relay.state import Message, ProgressionRecord, ViewRef, clock_label

from .drip import DripEngine
from .script import (
    CHANNELS,
    THREAD_REPLIES,
    UNKNOWN_USER,
    Script,
    Stage,
    pins_bundle,
    snippet_bundle,
    thread_stage,
)

if TYPE_CHECKING:
    from relay.core import Session

logger = logging.getLogger(__name__)

DEFAULT_PINS_MESSAGE = "The table wants its say"

DECOYS = {
    "A": (
        "Decoy A",
        "Tracker confirms nothing. The model enjoys busywork.\n\nHINT: Pinned knowledge beats dashboards.",
    ),
    "C": (
        "Decoy C",
        "Readiness acknowledged. Rituals don’t restore systems.\n\nHINT: Persistent artifacts > reactions.",
    ),
}

HELP = (
    "open #channel | open @name    switch view",
    "draft <text> / send / say <text>",
    "protocol A|B|C                answer the thread",
    "follow <message id>           press a message button",
    "close                         dismiss the dialog",
)


class HubScreen:
    screen_id = HUB

    def __init__(self, script: Script, cfg: dict[str, Any] | None = None):
        self._script = script
        hub_cfg = (cfg or {}).get("hub") or {}
        self._message_delay_ms = int(hub_cfg.get("message_delay_ms", 10000))
        self._session: Session | None = None
        self._scope: TimerScope | None = None
        self._drip: DripEngine | None = None
        self._modal: tuple[str, str] | None = None

    # ── Lifecycle ───────────────────────────────────────────────

    def mount(self, session: Session, state: dict | None = None) -> None:
        self.unmount()
        self._session = session
        self._scope = session.scheduler.scope(HUB)
        self._modal = None

        record = session.record
        self._consume_signals(record)

        self._drip = DripEngine(self._script, session.store, session.journal)
        self._drip.on_fire(self._on_stages)
        self._drip.resume(record, self._scope)

    def unmount(self) -> None:
        if self._scope is not None:
            self._scope.close()

    @property
    def scope(self) -> TimerScope | None:
        return self._scope

    @property
    def record(self) -> ProgressionRecord:
        return self._require_session().record

    def _require_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("HubScreen used before mount")
        return self._session

    # ── Signals from puzzles ────────────────────────────────────

    def _consume_signals(self, record: ProgressionRecord) -> None:
        session = self._require_session()
        cleared: list[str] = []

        pins_key = PinsPuzzle.signal_key
        if session.signal(pins_key):
            message = session.signal(f"{pins_key}Msg") or DEFAULT_PINS_MESSAGE
            pins_bundle(record, message)
            cleared += [pins_key, f"{pins_key}Msg"]

        snippet_key = SnippetPuzzle.signal_key
        if session.signal(snippet_key):
            snippet_bundle(record)
            cleared.append(snippet_key)

        if not cleared:
            return
        record.set_active(ViewRef.direct(UNKNOWN_USER))
        session.commit(clear_signals=cleared)
        for key in cleared:
            if not key.endswith("Msg"):
                session.journal.note("signal_consumed", key)
        logger.info("Hub consumed signal(s): %s", ", ".join(cleared))

    def _on_stages(self, record: ProgressionRecord, stages: list[Stage]) -> None:
        session = self._require_session()
        for stage in stages:
            if stage.label.startswith("backlog"):
                session.announce(f"New message in {CHANNELS[0]}")
            elif stage.label == "direct:open":
                session.announce(f"New direct message from {UNKNOWN_USER}")
            elif stage.label.startswith("thread"):
                session.announce(f"New reply in the {UNKNOWN_USER} thread")

    # ── Actions ─────────────────────────────────────────────────

    def open_view(self, view: ViewRef) -> bool:
        record = self.record
        if not view.is_direct and view.name not in CHANNELS:
            return False
        if view.is_direct and view.name not in record.direct_list:
            return False
        record.set_active(view)
        self._require_session().commit()
        return True

    def set_draft(self, text: str) -> None:
        self.record.message_draft = text
        self._require_session().commit()

    def send(self) -> bool:
        """Clear the composer and post its text to the current view after a delay."""
        record = self.record
        text = record.message_draft.strip()
        if not text:
            return False
        target = record.active_view
        record.message_draft = ""
        self._require_session().commit()
        self._scope.after(self._message_delay_ms, lambda: self._deliver(target, text))
        return True

    def _deliver(self, view: ViewRef, text: str) -> Message:
        session = self._require_session()
        message = session.record.append(view, "you", text, ts=clock_label())
        session.commit()
        return message

    def choose_protocol(self, letter: str) -> bool:
        letter = letter.upper()
        letters = [reply[0] for reply in THREAD_REPLIES]
        if letter not in letters or letters.index(letter) >= thread_stage(self.record):
            return False
        if letter in DECOYS:
            self._modal = DECOYS[letter]
            return True

        session = self._require_session()
        route = session.router.route(HUB)
        self._modal = ("Protocol B", "Routing to PINS…")
        self._scope.after(route.settle_ms, lambda: session.navigate(route.next))
        return True

    def follow(self, message_id: int) -> bool:
        """Navigate to the screen named by a message's action button."""
        for message in self.record.log_for(self.record.active_view):
            if message.id == message_id and message.action is not None:
                self._require_session().navigate(message.action.to)
                return True
        return False

    # ── Terminal ────────────────────────────────────────────────

    def handle(self, line: str) -> list[str]:
        verb, _, rest = line.strip().partition(" ")
        verb, rest = verb.lower(), rest.strip()

        if verb == "open" and rest:
            view = ViewRef.direct(rest[1:]) if rest.startswith("@") else ViewRef.channel(
                rest if rest.startswith("#") else f"#{rest}"
            )
            return [] if self.open_view(view) else [f"No such view: {rest}"]
        if verb == "draft":
            self.set_draft(rest)
            return []
        if verb in ("send", "say"):
            if verb == "say":
                self.set_draft(rest)
            return ["Sending…"] if self.send() else ["Nothing to send."]
        if verb == "protocol" and rest:
            return [] if self.choose_protocol(rest) else [f"Protocol {rest.upper()} is not available."]
        if verb == "follow" and rest.isdigit():
            return [] if self.follow(int(rest)) else [f"Message {rest} has no button."]
        if verb == "close":
            self._modal = None
            return []
        return ["Unknown command."] + list(HELP)

    def render(self) -> list[str]:
        record = self.record
        active = record.active_view
        lines = ["SNAPPR // workspace", SEPARATOR, "Channels:"]
        lines += [f"  {'>' if active == ViewRef.channel(name) else ' '} {name}" for name in CHANNELS]
        lines.append("Direct messages:")
        for name in record.direct_list:
            marker = ">" if active == ViewRef.direct(name) else " "
            unread = record.unread.get(name, 0)
            badge = f" ({unread})" if unread else ""
            lines.append(f"  {marker} @{name}{badge}")

        lines += ["", f"── {active.label()} ──"]
        for message in record.log_for(active):
            lines += _format_message(message)

        if active == ViewRef.direct(UNKNOWN_USER):
            for letter, posted, text in THREAD_REPLIES[: thread_stage(record)]:
                lines.append(f"  ↳ {letter} [{posted}] {text}")

        if self._modal is not None:
            title, body = self._modal
            lines += ["", f"[ {title} ]", *body.splitlines()]
        if record.message_draft:
            lines += ["", f"Draft: {record.message_draft}"]
        return lines


def _format_message(message: Message) -> list[str]:
    stamp = f"[{message.ts}] " if message.ts else ""
    head, *more = message.text.splitlines() or [""]
    lines = [f"#{message.id} {stamp}{message.author}: {head}"]
    lines += [f"    {extra}" for extra in more]
    if message.action is not None:
        lines.append(f"    [{message.action.label}] → follow {message.id}")
    return lines
