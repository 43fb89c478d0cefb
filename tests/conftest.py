"""Pytest configuration - no path manipulation, rely on proper package installation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest

from clientwire.configuration import _load_service_configuration_cached, get_service_configuration
from clientwire.utils.config import ENV_PREFIX, _get_settings_cached, get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Drop inherited CLIENTWIRE_ and KAFKA_OPTS variables and point templates at an empty directory."""

    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("KAFKA_OPTS", "")
    monkeypatch.delenv("KAFKA_OPTS")
    monkeypatch.setenv(f"{ENV_PREFIX}CONFIG_DIR", str(tmp_path_factory.mktemp("config")))

    get_settings(reload=True)
    get_service_configuration(reload=True)
    yield
    _get_settings_cached.cache_clear()
    _load_service_configuration_cached.cache_clear()


class FakeProducer:
    """Stands in for ``confluent_kafka.Producer``."""

    instances: list[FakeProducer] = []

    def __init__(self, config: dict[str, Any]) -> None:
        self.config = config
        self.produced: list[tuple[str, dict[str, Any]]] = []
        self.polls: list[float] = []
        self.flushes: list[float] = []
        self.calls: list[str] = []
        FakeProducer.instances.append(self)

    def produce(self, topic: str, **kwargs: Any) -> None:
        self.produced.append((topic, kwargs))

    def poll(self, timeout: float) -> int:
        self.polls.append(timeout)
        return 0

    def flush(self, timeout: float = -1) -> int:
        self.flushes.append(timeout)
        return 0

    def init_transactions(self, *args: Any) -> None:
        self.calls.append("init")

    def begin_transaction(self) -> None:
        self.calls.append("begin")

    def commit_transaction(self, *args: Any) -> None:
        self.calls.append("commit")

    def abort_transaction(self, *args: Any) -> None:
        self.calls.append("abort")


class FakeConsumer:
    """Stands in for ``confluent_kafka.Consumer``."""

    def __init__(self, config: dict[str, Any]) -> None:
        self.config = config
        self.consumed: list[tuple[int, float]] = []

    def consume(self, num_messages: int = 1, timeout: float = -1) -> list[Any]:
        self.consumed.append((num_messages, timeout))
        return []


@pytest.fixture
def fake_kafka_clients(monkeypatch: pytest.MonkeyPatch) -> type[FakeProducer]:
    FakeProducer.instances = []
    monkeypatch.setattr("clientwire.kafka.factories.Producer", FakeProducer)
    monkeypatch.setattr("clientwire.kafka.factories.Consumer", FakeConsumer)
    return FakeProducer


@pytest.fixture
def write_templates(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Write configuration templates and point the settings at them."""

    def _write(base: str, **profiles: str) -> Path:
        config_dir = tmp_path / "templates"
        config_dir.mkdir(exist_ok=True)
        (config_dir / "settings.base.yaml").write_text(base)
        for name, content in profiles.items():
            (config_dir / f"settings.{name}.yaml").write_text(content)
        monkeypatch.setenv(f"{ENV_PREFIX}CONFIG_DIR", str(config_dir))
        get_settings(reload=True)
        return config_dir

    return _write
