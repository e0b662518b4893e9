"""Static screen-to-screen routing table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from .errors import UnknownScreen

logger = logging.getLogger(__name__)

HUB = "SlackOpen"
PINS = "Pins"
SNIPPET = "Snippet"
BOOKMARKS = "BookmarksClonePuzzle"
LOADING = "Loading"
PASSWORD = "Password"
FILES = "Files"
SLASH = "Slash"
SWITCHBOARD = "Switchboard"
ALIGN = "Align"
FINALE = "Finale"

SCREEN = "screen"
TIMED = "timed"
PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class Route:
    screen: str
    next: str | None = None
    auto_route: bool = False
    settle_ms: int = 0
    kind: str = SCREEN


DEFAULT_ROUTES: dict[str, Route] = {
    route.screen: route
    for route in (
        Route(HUB, PINS, auto_route=False, settle_ms=300),
        Route(PINS, HUB, auto_route=True, settle_ms=0),
        Route(SNIPPET, BOOKMARKS, auto_route=True, settle_ms=900),
        Route(BOOKMARKS, LOADING, auto_route=True, settle_ms=900),
        Route(LOADING, PASSWORD, auto_route=True, settle_ms=10000, kind=TIMED),
        Route(PASSWORD, FILES, auto_route=True, kind=PASSTHROUGH),
        Route(FILES, SLASH, auto_route=True, settle_ms=1200),
        Route(SLASH, SWITCHBOARD, auto_route=True, settle_ms=1000),
        Route(SWITCHBOARD, ALIGN, auto_route=True, settle_ms=1000),
        Route(ALIGN, FINALE, auto_route=False, settle_ms=1200),
        Route(FINALE, HUB, auto_route=True, settle_ms=1200),
    )
}


class Router:
    """Pure lookups over a fixed table; holds no navigation state."""

    def __init__(self, routes: dict[str, Route] | None = None):
        self._routes = dict(routes or DEFAULT_ROUTES)

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> Router:
        """Overlay ``routes`` settings on the default table."""
        routes = dict(DEFAULT_ROUTES)
        for screen, overrides in (cfg.get("routes") or {}).items():
            if not isinstance(overrides, dict):
                logger.warning("Ignoring route settings for %s: expected a mapping", screen)
                continue
            base = routes.get(screen, Route(screen))
            routes[screen] = replace(
                base,
                next=overrides.get("next", base.next),
                auto_route=bool(overrides.get("auto_route", base.auto_route)),
                settle_ms=int(overrides.get("settle_ms", base.settle_ms)),
                kind=overrides.get("kind", base.kind),
            )
        return cls(routes)

    def screens(self) -> list[str]:
        return list(self._routes)

    def route(self, screen_id: str) -> Route:
        try:
            return self._routes[screen_id]
        except KeyError:
            raise UnknownScreen(screen_id) from None

    def next_screen(self, screen_id: str, auto_route: bool | None = None) -> str | None:
        """Where a solved screen goes, or None when auto-routing is off."""
        route = self.route(screen_id)
        enabled = route.auto_route if auto_route is None else auto_route
        return route.next if enabled else None

    def skip(self, screen_id: str) -> str | None:
        """Destination for a manual skip, regardless of auto-routing."""
        return self.route(screen_id).next
