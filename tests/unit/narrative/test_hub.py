"""Scenario tests for the hub screen."""

from __future__ import annotations

import random
from pathlib import Path

from narrative.hub import HubScreen
from narrative.script import SNIPPET_BUNDLE, UNKNOWN_USER
from puzzles.events import Submit, Swap
from puzzles.pins import TARGET
from puzzles.snippet import EXPECTED
from relay.core import Session
from relay.router import FILES, HUB, PINS, SNIPPET
from relay.state import ViewRef

HOME = ViewRef.channel("#ai-manila")
DIRECT = ViewRef.direct(UNKNOWN_USER)


def _session(tmp_path: Path) -> Session:
    return Session(config={"storage": {"session_dir": str(tmp_path)}, "_env": {}}, rng=random.Random(11))


def _hub(session: Session) -> HubScreen:
    return session.screen(HUB)


def _solve_pins(session: Session) -> None:
    screen = session.navigate(PINS)
    for i, letter in enumerate(TARGET):
        order = screen.board.order
        j = next(k for k in range(i, len(order)) if order[k][0] == letter)
        if j != i:
            screen.dispatch(Swap(i, j))


class TestOpeningScript:
    def test_backlog_arrives_after_delay_in_order(self, tmp_path: Path):
        session = _session(tmp_path)
        session.start()

        session.scheduler.advance(9999)
        assert session.record.log_for(HOME) == []

        session.scheduler.advance(1 + 900 * 3)
        backlog = session.record.log_for(HOME)
        assert [m.author for m in backlog] == ["Migi", "lani", "Slackbot", UNKNOWN_USER]
        ids = [m.id for m in backlog]
        assert ids == sorted(ids) and len(set(ids)) == 4

    def test_direct_appears_unread_then_thread_fills_in(self, tmp_path: Path):
        session = _session(tmp_path)
        session.start()

        session.scheduler.advance(14_999)
        assert session.record.direct_list == []
        session.scheduler.advance(1)
        assert session.record.direct_list == [UNKNOWN_USER]
        assert session.record.unread[UNKNOWN_USER] == 1
        assert [m.text for m in session.record.log_for(DIRECT)] == ["pick good"]

        session.handle("open @Unknown User")
        assert session.record.unread[UNKNOWN_USER] == 0
        session.scheduler.advance(2700)
        assert session.record.narrative_stage == 8
        rendered = "\n".join(session.render())
        assert "Protocol A" in rendered and "Protocol C" in rendered

    def test_reload_resumes_without_replaying(self, tmp_path: Path):
        first = _session(tmp_path)
        first.start()
        first.scheduler.advance(10_900)
        assert first.record.narrative_stage == 2

        second = _session(tmp_path)
        second.start()
        second.scheduler.advance(30_000)

        backlog = second.record.log_for(HOME)
        assert [m.author for m in backlog] == ["Migi", "lani", "Slackbot", UNKNOWN_USER]
        all_ids = [m.id for m in second.record.iter_messages()]
        assert len(all_ids) == len(set(all_ids))

    def test_remount_with_teardown_keeps_one_copy(self, tmp_path: Path):
        session = _session(tmp_path)
        session.start()
        session.scheduler.advance(100)
        session.navigate(HUB)
        session.scheduler.advance(100)
        session.navigate(HUB)
        session.scheduler.advance(60_000)

        assert len(session.record.log_for(HOME)) == 4
        assert len(session.record.log_for(DIRECT)) == 1

    def test_remount_without_teardown_keeps_one_copy(self, tmp_path: Path):
        session = _session(tmp_path)
        hub = _hub(session)
        hub.mount(session)
        hub.mount(session)
        session.scheduler.advance(60_000)

        assert len(session.record.log_for(HOME)) == 4
        assert len(session.record.log_for(DIRECT)) == 1
        assert session.record.unread[UNKNOWN_USER] == 1

    def test_remount_then_leave_cancels_every_timer(self, tmp_path: Path):
        session = _session(tmp_path)
        hub = _hub(session)
        session.start()
        hub.mount(session)
        session.navigate(FILES)

        assert session.scheduler.pending(HUB) == 0
        session.scheduler.advance(60_000)
        assert session.record.narrative_stage == 0
        assert session.record.log_for(HOME) == []


class TestSignals:
    def test_pins_bundle_is_injected_exactly_once(self, tmp_path: Path):
        session = _session(tmp_path)
        _solve_pins(session)
        assert session.signal("pinsSolved") == "1"

        session.scheduler.advance(0)  # auto-route back to the hub

        assert session.current_id == HUB
        direct = session.record.log_for(DIRECT)
        assert [m.text for m in direct] == [
            "Verified: moving to PINS.\nKEY-1: SNRFDFN\nUse keys only when asked.",
            "The table wants its say",
        ]
        assert direct[1].action.to == SNIPPET
        assert session.record.active_view == DIRECT
        assert session.record.unread[UNKNOWN_USER] == 0
        assert session.signal("pinsSolved") is None
        assert session.signal("pinsSolvedMsg") is None

        session.navigate(HUB)
        assert len(session.record.log_for(DIRECT)) == 2

    def test_snippet_bundle_is_injected_on_next_hub_entry(self, tmp_path: Path):
        session = _session(tmp_path)
        snippet = session.navigate(SNIPPET)
        snippet.dispatch(Submit(EXPECTED))
        session.navigate(HUB)

        assert [m.text for m in session.record.log_for(DIRECT)] == list(SNIPPET_BUNDLE)
        assert session.signal("snippetSolved") is None
        session.navigate(HUB)
        assert len(session.record.log_for(DIRECT)) == len(SNIPPET_BUNDLE)

    def test_signal_consumption_is_persisted_with_the_bundle(self, tmp_path: Path):
        session = _session(tmp_path)
        _solve_pins(session)
        session.scheduler.advance(0)

        reloaded = _session(tmp_path)
        assert reloaded.signal("pinsSolved") is None
        assert len(reloaded.record.log_for(DIRECT)) == 2

    def test_follow_opens_snippet(self, tmp_path: Path):
        session = _session(tmp_path)
        _solve_pins(session)
        session.scheduler.advance(0)
        invite = session.record.log_for(DIRECT)[-1]

        session.handle(f"follow {invite.id}")

        assert session.current_id == SNIPPET


class TestActions:
    def test_send_posts_after_delay_and_clears_draft(self, tmp_path: Path):
        session = _session(tmp_path)
        session.start()
        session.handle("open #celebrations")
        session.handle("say  happy friday ")

        assert session.record.message_draft == ""
        session.scheduler.advance(9_999)
        assert session.record.log_for(ViewRef.channel("#celebrations")) == []
        session.scheduler.advance(1)
        sent = session.record.log_for(ViewRef.channel("#celebrations"))
        assert [(m.author, m.text) for m in sent] == [("you", "happy friday")]

    def test_blank_draft_is_not_sent(self, tmp_path: Path):
        session = _session(tmp_path)
        session.start()
        assert session.handle("say   ") == ["Nothing to send."]

    def test_unknown_views_are_rejected(self, tmp_path: Path):
        session = _session(tmp_path)
        session.start()
        assert session.handle("open #nope") == ["No such view: #nope"]
        assert session.handle("open @Unknown User") == ["No such view: @Unknown User"]

    def test_protocols_unlock_with_the_thread(self, tmp_path: Path):
        session = _session(tmp_path)
        session.start()
        hub = _hub(session)
        assert hub.choose_protocol("B") is False

        session.scheduler.advance(16_800)
        assert hub.choose_protocol("B") is True
        assert hub.choose_protocol("C") is False

        session.scheduler.advance(299)
        assert session.current_id == HUB
        session.scheduler.advance(1)
        assert session.current_id == PINS

    def test_decoy_protocol_shows_hint(self, tmp_path: Path):
        session = _session(tmp_path)
        session.start()
        session.scheduler.advance(17_700)
        session.handle("open @Unknown User")

        session.handle("protocol a")

        rendered = session.render()
        assert "[ Decoy A ]" in rendered
        assert "HINT: Pinned knowledge beats dashboards." in rendered
        assert session.current_id == HUB
