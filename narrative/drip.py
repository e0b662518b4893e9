"""Drip engine: schedule the unfired suffix of a script.

Every stage callback re-checks the record at fire time, so a screen that is
mounted twice (with or without teardown in between) cannot record a stage
twice, and a late stage never lands before its predecessors.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from relay.journal import EventJournal
from relay.scheduler import TimerScope
from relay.state import ProgressionRecord
from relay.store import StateStore

from .script import Script, Stage

logger = logging.getLogger(__name__)

FireListener = Callable[[ProgressionRecord, list[Stage]], None]


class DripEngine:
    def __init__(self, script: Script, store: StateStore, journal: EventJournal | None = None):
        self._script = script
        self._store = store
        self._journal = journal
        self._listeners: list[FireListener] = []

    @property
    def script(self) -> Script:
        return self._script

    def on_fire(self, listener: FireListener) -> None:
        """Called with the stages applied by each commit, after it is saved."""
        self._listeners.append(listener)

    def resume(self, record: ProgressionRecord, scope: TimerScope) -> list[Stage]:
        """Schedule every stage after ``record.narrative_stage``.

        Delays accumulate from the first remaining stage, so a resumed
        script keeps its original spacing. Returns the scheduled stages.
        """
        remaining = self._script.remaining(record.narrative_stage)
        elapsed = 0
        for stage in remaining:
            elapsed += stage.delay_after_previous_ms
            scope.after(elapsed, lambda stage=stage: self.fire(record, stage))
        if remaining:
            logger.debug(
                "Resumed script at stage %d: %d stage(s) over %d ms",
                record.narrative_stage,
                len(remaining),
                elapsed,
            )
        return remaining

    def fire(self, record: ProgressionRecord, stage: Stage) -> list[Stage]:
        """Apply ``stage`` (and any missing predecessors) as one commit."""
        if record.narrative_stage >= stage.index:
            logger.debug("Stage %d (%s) already recorded, skipping", stage.index, stage.label)
            return []

        applied = self._script.between(record.narrative_stage, stage.index)
        before = record.snapshot()
        for pending in applied:
            pending.effect(record)
            record.narrative_stage = pending.index
        try:
            self._store.save(record)
        except OSError:
            record.restore(before)
            raise

        for pending in applied:
            logger.info("Stage %d fired: %s", pending.index, pending.label or "-")
            if self._journal is not None:
                self._journal.note("stage_fired", pending.label, index=pending.index)
        for listener in self._listeners:
            listener(record, applied)
        return applied
