import logging

import pytest

from matchgraph.core import sentry as sentry_mod
from matchgraph.core.sentry import _parse_float_env, init_sentry


def test_parse_float_env_clamps(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "2.0")
    assert _parse_float_env("SENTRY_TRACES_SAMPLE_RATE", 0.0) == 1.0
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "-0.5")
    assert _parse_float_env("SENTRY_TRACES_SAMPLE_RATE", 0.0) == 0.0
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "nope")
    assert _parse_float_env("SENTRY_TRACES_SAMPLE_RATE", 0.3) == 0.3


def test_init_sentry_no_dsn(monkeypatch: pytest.MonkeyPatch) -> None:
    for k in ("SENTRY_DSN", "MATCHGRAPH_SENTRY_DSN"):
        monkeypatch.delenv(k, raising=False)
    assert init_sentry(context="test_cli") is False


def test_init_sentry_invalid_dsn(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENTRY_DSN", "not-a-valid-dsn")
    assert init_sentry(context="test_cli") is False


class _FakeSentry:
    def __init__(self, record: dict) -> None:
        self.record = record

    def init(self, **kwargs):
        self.record.update(kwargs)

    def set_tag(self, k, v):
        self.record.setdefault("tags", {})[k] = v


class _FakeLoggingIntegration:
    def __init__(self, level=None, event_level=None):
        self.level = level
        self.event_level = event_level


def test_init_sentry_success_and_order(monkeypatch: pytest.MonkeyPatch, caplog):
    caplog.set_level(logging.INFO, logger="matchgraph.core.sentry")
    record: dict = {}
    monkeypatch.setattr(sentry_mod, "sentry_sdk", _FakeSentry(record))
    monkeypatch.setattr(
        sentry_mod, "LoggingIntegration", _FakeLoggingIntegration
    )

    monkeypatch.setenv("PRIMARY_DSN", "'https://abc@host/project'")
    monkeypatch.setenv("SECONDARY_DSN", "https://def@host/project")
    initialized = init_sentry(
        context="matchgraph_crawl",
        release="r1",
        dsn_envs=["PRIMARY_DSN", "SECONDARY_DSN"],
    )
    assert initialized is True
    assert record["dsn"] == "https://abc@host/project"
    assert record["release"] == "r1"
    assert record["tags"] == {"service": "matchgraph_crawl"}
    (integration,) = record["integrations"]
    assert integration.event_level == logging.ERROR
    assert any("Sentry initialized" in m for m in caplog.messages)
