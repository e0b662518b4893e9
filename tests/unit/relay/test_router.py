"""Tests for the static routing table."""

from __future__ import annotations

import pytest

from relay.errors import UnknownScreen
from relay.router import ALIGN, FINALE, HUB, LOADING, PASSTHROUGH, PASSWORD, PINS, SNIPPET, TIMED, Router


def test_default_chain_visits_every_screen_once_before_returning_to_hub():
    router = Router()
    seen = [SNIPPET]
    while True:
        nxt = router.skip(seen[-1])
        if nxt == HUB:
            break
        seen.append(nxt)
    assert seen == [
        "Snippet",
        "BookmarksClonePuzzle",
        "Loading",
        "Password",
        "Files",
        "Slash",
        "Switchboard",
        "Align",
        "Finale",
    ]


def test_next_screen_honours_auto_route_flag():
    router = Router()
    assert router.next_screen(PINS) == HUB
    assert router.next_screen(ALIGN) is None
    assert router.next_screen(ALIGN, auto_route=True) == FINALE
    assert router.next_screen(PINS, auto_route=False) is None


def test_skip_ignores_auto_route():
    assert Router().skip(ALIGN) == FINALE
    assert Router().skip(HUB) == PINS


def test_route_kinds():
    router = Router()
    assert router.route(LOADING).kind == TIMED
    assert router.route(LOADING).settle_ms == 10000
    assert router.route(PASSWORD).kind == PASSTHROUGH


def test_unknown_screen_raises_key_error():
    with pytest.raises(UnknownScreen):
        Router().route("Nowhere")
    with pytest.raises(KeyError):
        Router().next_screen("Nowhere")


def test_from_config_overlays_defaults():
    router = Router.from_config({"routes": {ALIGN: {"auto_route": True, "settle_ms": 50}, "Bogus": "x"}})
    assert router.next_screen(ALIGN) == FINALE
    assert router.route(ALIGN).settle_ms == 50
    assert router.route(PINS).settle_ms == 0
    assert "Bogus" not in router.screens()
