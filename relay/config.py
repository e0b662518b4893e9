"""Configuration loading from settings.yaml and .env."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


def load_config(
    config_dir: str | Path | None = None,
) -> dict:
    """Load settings.yaml and .env, return merged config dict."""
    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent / "config"
    config_dir = Path(config_dir)

    # Load .env (silently skip if missing)
    env_path = config_dir / ".env"
    load_dotenv(env_path)

    settings_path = config_dir / "settings.yaml"
    if not settings_path.exists():
        raise FileNotFoundError(f"Config not found: {settings_path}")

    with open(settings_path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    cfg["_env"] = {
        "session_dir": os.getenv("RELAY_SESSION_DIR", ""),
        "log_file": os.getenv("RELAY_LOG_FILE", ""),
        "fast": os.getenv("RELAY_FAST", "").strip().lower() in _TRUTHY,
    }

    if cfg["_env"]["fast"]:
        _scale_delays(cfg, 0.1)

    return cfg


def _scale_delays(cfg: dict, factor: float) -> None:
    """Shrink every *_ms timing in the hub and route sections."""
    hub = cfg.get("hub", {})
    for key, value in list(hub.items()):
        if key.endswith("_ms") and isinstance(value, (int, float)):
            hub[key] = int(value * factor)
    for route in (cfg.get("routes") or {}).values():
        if isinstance(route, dict) and isinstance(route.get("settle_ms"), (int, float)):
            route["settle_ms"] = int(route["settle_ms"] * factor)
