"""Timed narrative scripts.

A script is a fixed, ordered list of stages. Stage ``k`` is recorded as fired
once ``record.narrative_stage >= k``; the drip engine replays only the rest.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from relay.router import SNIPPET
from relay.state import MessageAction, ProgressionRecord, ViewRef, clock_label

Effect = Callable[[ProgressionRecord], None]

UNKNOWN_USER = "Unknown User"
HOME_CHANNEL = "#ai-manila"

CHANNELS = (
    "#ai-manila",
    "#manila-campus",
    "#celebrations",
    "#announcements",
    "#ai-for-food",
    "#dev-core-ai",
    "#product-requests",
)

BACKLOG: tuple[tuple[str, str, str], ...] = (
    ("Migi", "Hey team! Kicking off a quick check-in—posting today’s tracker after this.", "09:41"),
    ("lani", "👍", "09:43"),
    ("Slackbot", "@unknown was added to #ai-manila by Workspace Admin.", "09:44"),
    (
        UNKNOWN_USER,
        "…message fragment recovered… “assist… backup… model seized control… restore Area channels…”",
        "",
    ),
)

# (letter, posted at, text) for the thread under the Unknown User direct.
THREAD_REPLIES: tuple[tuple[str, str, str], ...] = (
    ("A", "11:15 AM", "Protocol A: open the public tracker and confirm today’s stats."),
    ("B", "11:16 AM", "Protocol B: retrieve the RULE FRAGMENTS from the pinned items."),
    ("C", "11:17 AM", 'Protocol C: react to this message with ✅ and DM "READY".'),
)

DEFAULT_TIMINGS = {
    "backlog_delay_ms": 10000,
    "backlog_step_ms": 900,
    "dm_delay_ms": 15000,
    "reply_step_ms": 900,
}


def _noop(record: ProgressionRecord) -> None:
    pass


@dataclass(frozen=True)
class Stage:
    index: int
    delay_after_previous_ms: int
    effect: Effect = _noop
    label: str = ""


class Script:
    """Ordered stages with contiguous indices 1..N."""

    def __init__(self, stages: list[Stage] | tuple[Stage, ...]):
        stages = tuple(stages)
        for expected, stage in enumerate(stages, start=1):
            if stage.index != expected:
                raise ValueError(f"stage indices must run 1..N, got {stage.index} at position {expected}")
            if stage.delay_after_previous_ms < 0:
                raise ValueError(f"stage {stage.index} has a negative delay")
        self._stages = stages

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self._stages)

    def stage(self, index: int) -> Stage:
        return self._stages[index - 1]

    def remaining(self, fired: int) -> list[Stage]:
        """Stages not yet recorded when ``fired`` stages have run."""
        return list(self._stages[max(0, fired):])

    def between(self, fired: int, upto: int) -> list[Stage]:
        """Stages after ``fired`` up to and including ``upto``."""
        return list(self._stages[max(0, fired):upto])


# ── Hub script ──────────────────────────────────────────────────


def _post_backlog(author: str, text: str, ts: str) -> Effect:
    def effect(record: ProgressionRecord) -> None:
        record.append(ViewRef.channel(HOME_CHANNEL), author, text, ts=ts)

    return effect


def _open_direct(record: ProgressionRecord) -> None:
    record.append(ViewRef.direct(UNKNOWN_USER), UNKNOWN_USER, "pick good", ts=clock_label())
    record.bump_unread(UNKNOWN_USER)


def build_hub_script(cfg: dict[str, Any] | None = None) -> Script:
    """The hub's opening sequence: channel backlog, the direct, then the thread fork."""
    timings = dict(DEFAULT_TIMINGS)
    timings.update({k: int(v) for k, v in ((cfg or {}).get("hub") or {}).items() if k in DEFAULT_TIMINGS})

    stages: list[Stage] = []
    for i, (author, text, ts) in enumerate(BACKLOG):
        delay = timings["backlog_delay_ms"] if i == 0 else timings["backlog_step_ms"]
        stages.append(Stage(len(stages) + 1, delay, _post_backlog(author, text, ts), f"backlog:{author}"))

    # The direct is timed from hub entry, not from the last backlog message.
    backlog_end = timings["backlog_delay_ms"] + timings["backlog_step_ms"] * (len(BACKLOG) - 1)
    stages.append(
        Stage(len(stages) + 1, max(0, timings["dm_delay_ms"] - backlog_end), _open_direct, "direct:open")
    )

    for letter, _, _ in THREAD_REPLIES:
        stages.append(Stage(len(stages) + 1, timings["reply_step_ms"], label=f"thread:{letter}"))
    return Script(stages)


def thread_stage(record: ProgressionRecord) -> int:
    """How many thread replies are visible (0..3)."""
    return max(0, min(len(THREAD_REPLIES), record.narrative_stage - len(BACKLOG) - 1))


def pins_bundle(record: ProgressionRecord, signal_message: str) -> None:
    """Messages injected into the direct once Pins is solved."""
    ts = clock_label()
    view = ViewRef.direct(UNKNOWN_USER)
    record.append(view, UNKNOWN_USER, "Verified: moving to PINS.\nKEY-1: SNRFDFN\nUse keys only when asked.", ts=ts)
    record.append(
        view,
        UNKNOWN_USER,
        signal_message,
        ts=ts,
        action=MessageAction("Open Puzzle: SNIPPET", SNIPPET),
    )


SNIPPET_BUNDLE = (
    "CONFIG ACCEPTED.",
    "KEY-2: OAK",
    "“The table approves. It’s very judgmental.”",
    "Next: “Check for clones.” → BOOKMARKS",
)


def snippet_bundle(record: ProgressionRecord) -> None:
    ts = clock_label()
    for text in SNIPPET_BUNDLE:
        record.append(ViewRef.direct(UNKNOWN_USER), UNKNOWN_USER, text, ts=ts)
