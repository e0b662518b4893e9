"""Tests for settings loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from relay.config import load_config

SETTINGS = """
storage:
  session_dir: data/sessions
hub:
  backlog_delay_ms: 10000
  dm_delay_ms: 15000
routes:
  Files:
    settle_ms: 1200
"""


_ENV_NAMES = ("RELAY_SESSION_DIR", "RELAY_LOG_FILE", "RELAY_FAST")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_dotenv writes straight into os.environ.
    for name in _ENV_NAMES:
        os.environ.pop(name, None)


def test_missing_settings_raise(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path)


def test_settings_and_env_are_merged(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    (tmp_path / "settings.yaml").write_text(SETTINGS, encoding="utf-8")
    monkeypatch.setenv("RELAY_SESSION_DIR", "/tmp/relay-sessions")

    cfg = load_config(tmp_path)

    assert cfg["storage"]["session_dir"] == "data/sessions"
    assert cfg["_env"] == {"session_dir": "/tmp/relay-sessions", "log_file": "", "fast": False}
    assert cfg["hub"]["backlog_delay_ms"] == 10000


def test_fast_mode_scales_delays(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    (tmp_path / "settings.yaml").write_text(SETTINGS, encoding="utf-8")
    monkeypatch.setenv("RELAY_FAST", "yes")

    cfg = load_config(tmp_path)

    assert cfg["_env"]["fast"] is True
    assert cfg["hub"] == {"backlog_delay_ms": 1000, "dm_delay_ms": 1500}
    assert cfg["routes"]["Files"]["settle_ms"] == 120


def test_dotenv_file_is_read(tmp_path: Path):
    (tmp_path / "settings.yaml").write_text(SETTINGS, encoding="utf-8")
    (tmp_path / ".env").write_text("RELAY_LOG_FILE=relay.log\n", encoding="utf-8")

    cfg = load_config(tmp_path)

    assert cfg["_env"]["log_file"] == "relay.log"


def test_shipped_settings_load():
    cfg = load_config()
    assert cfg["routes"]["Loading"]["kind"] == "timed"
    assert cfg["hub"]["message_delay_ms"] == 10000
