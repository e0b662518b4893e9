"""Tests for the drip engine."""

from __future__ import annotations

from pathlib import Path

import pytest

from narrative.drip import DripEngine
from narrative.script import Script, Stage
from relay.journal import EventJournal
from relay.scheduler import Scheduler
from relay.state import ProgressionRecord, ViewRef
from relay.store import SessionStorage, StateStore

CHANNEL = ViewRef.channel("#ai-manila")


def _post(text: str):
    def effect(record: ProgressionRecord) -> None:
        record.append(CHANNEL, "bot", text)

    return effect


def _script() -> Script:
    return Script(
        [
            Stage(1, 100, _post("s1"), "s1"),
            Stage(2, 200, _post("s2"), "s2"),
            Stage(3, 300, _post("s3"), "s3"),
        ]
    )


def _engine(tmp_path: Path) -> tuple[DripEngine, StateStore]:
    store = StateStore(SessionStorage(tmp_path / "session.json"))
    return DripEngine(_script(), store, EventJournal(tmp_path / "journal.db")), store


def _texts(record: ProgressionRecord) -> list[str]:
    return [m.text for m in record.log_for(CHANNEL)]


def test_fresh_record_schedules_whole_script_with_cumulative_delays(tmp_path: Path):
    engine, _ = _engine(tmp_path)
    scheduler = Scheduler()
    record = ProgressionRecord()

    scheduled = engine.resume(record, scheduler.scope("hub"))

    assert [s.label for s in scheduled] == ["s1", "s2", "s3"]
    scheduler.advance(299)
    assert _texts(record) == ["s1"]
    scheduler.advance(1)
    assert _texts(record) == ["s1", "s2"]
    scheduler.advance(300)
    assert _texts(record) == ["s1", "s2", "s3"]
    assert record.narrative_stage == 3


def test_resume_skips_stages_already_fired(tmp_path: Path):
    engine, _ = _engine(tmp_path)
    scheduler = Scheduler()
    record = ProgressionRecord()
    record.append(CHANNEL, "bot", "s1")
    record.narrative_stage = 1

    scheduled = engine.resume(record, scheduler.scope("hub"))

    assert [s.label for s in scheduled] == ["s2", "s3"]
    scheduler.advance(199)
    assert _texts(record) == ["s1"]
    scheduler.advance(10_000)
    assert _texts(record) == ["s1", "s2", "s3"]


def test_finished_script_schedules_nothing(tmp_path: Path):
    engine, _ = _engine(tmp_path)
    scheduler = Scheduler()
    record = ProgressionRecord(narrative_stage=3)

    assert engine.resume(record, scheduler.scope("hub")) == []
    assert scheduler.pending() == 0


def test_each_fire_is_saved_with_its_stage(tmp_path: Path):
    engine, store = _engine(tmp_path)
    scheduler = Scheduler()
    record = ProgressionRecord()
    engine.resume(record, scheduler.scope("hub"))

    scheduler.advance(100)

    saved = store.load()
    assert saved.narrative_stage == 1
    assert [m.text for m in saved.log_for(CHANNEL)] == ["s1"]


def test_duplicate_timers_apply_each_stage_once(tmp_path: Path):
    engine, _ = _engine(tmp_path)
    scheduler = Scheduler()
    record = ProgressionRecord()

    engine.resume(record, scheduler.scope("hub"))
    engine.resume(record, scheduler.scope("hub"))
    scheduler.advance(10_000)

    assert _texts(record) == ["s1", "s2", "s3"]
    ids = [m.id for m in record.log_for(CHANNEL)]
    assert ids == sorted(set(ids))


def test_late_stage_applies_missing_predecessors_first(tmp_path: Path):
    engine, _ = _engine(tmp_path)
    record = ProgressionRecord()

    applied = engine.fire(record, _script().stage(3))

    assert [s.label for s in applied] == ["s1", "s2", "s3"]
    assert _texts(record) == ["s1", "s2", "s3"]
    assert engine.fire(record, _script().stage(2)) == []


def test_listeners_see_committed_state(tmp_path: Path):
    engine, store = _engine(tmp_path)
    seen: list[tuple[list[str], int]] = []
    engine.on_fire(lambda record, stages: seen.append(([s.label for s in stages], store.load().narrative_stage)))
    record = ProgressionRecord()

    engine.fire(record, _script().stage(2))

    assert seen == [(["s1", "s2"], 2)]


def test_fired_stages_are_journaled(tmp_path: Path):
    store = StateStore(SessionStorage(tmp_path / "session.json"))
    journal = EventJournal(tmp_path / "journal.db")
    engine = DripEngine(_script(), store, journal)

    engine.fire(ProgressionRecord(), _script().stage(1))

    assert [(e.event_type, e.subject, e.metadata) for e in journal.pending] == [("stage_fired", "s1", {"index": 1})]


def test_failed_save_leaves_stage_unrecorded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    engine, store = _engine(tmp_path)
    record = ProgressionRecord()

    def _boom() -> None:
        raise OSError("disk full")

    monkeypatch.setattr(store.storage, "_flush", _boom)
    with pytest.raises(OSError):
        engine.fire(record, _script().stage(2))
    assert record.narrative_stage == 0
    assert _texts(record) == []
    assert record.next_message_id == ProgressionRecord().next_message_id

    monkeypatch.undo()
    assert [s.label for s in engine.fire(record, _script().stage(2))] == ["s1", "s2"]
    assert store.load().narrative_stage == 2
