"""Root conftest - shared fixtures.

Markers:
    @pytest.mark.unit - No external deps
"""

from __future__ import annotations

from typing import Any

import pytest

from core.brain import Brain
from core.config import REDIS_URL_ENV_VARS
from infrastructure.db.redis_client import resolve_connection_config
from services.brain_persistence import BrainPersistenceAdapter
from tests.fakes import FakeRedis

_BRAIN_ENV_VARS = (*REDIS_URL_ENV_VARS, "REDIS_NO_CHECK", "REDIS_DATA_FORMAT", "REDIS_DATA_MIGRATE")


class RecordingBrain(Brain):
    """Brain that records set_auto_save calls and emitted events."""

    def __init__(self) -> None:
        self.auto_save_calls: list[bool] = []
        self.events: list[tuple[Any, ...]] = []
        super().__init__()

    def set_auto_save(self, enabled: bool) -> None:
        self.auto_save_calls.append(enabled)
        super().set_auto_save(enabled)

    async def emit(self, event: str, *args: Any) -> None:
        self.events.append((event, *args))
        await super().emit(event, *args)

    def event_names(self) -> list[str]:
        return [event[0] for event in self.events]


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _BRAIN_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def brain() -> RecordingBrain:
    return RecordingBrain()


@pytest.fixture()
def make_adapter(brain: RecordingBrain, fake_redis: FakeRedis):
    """Factory building an adapter around the fake client."""

    def _make(
        url: str = "redis://localhost:6379",
        data_format: str = "text",
        migrate: bool = False,
        no_check: bool = False,
        client: FakeRedis | None = None,
    ) -> BrainPersistenceAdapter:
        return BrainPersistenceAdapter(
            brain,
            resolve_connection_config(url, no_check=no_check),
            data_format=data_format,
            migrate=migrate,
            client=client or fake_redis,  # type: ignore[arg-type]
        )

    return _make
