"""Dependency providers for the brain and its redis persistence."""

from typing import Annotated, Optional

from fastapi import Depends

from core.brain import Brain
from core.config import Settings, settings
from core.exceptions import BrainNotInitializedError
from core.logger import get_logger
from services.brain_persistence import BrainPersistenceAdapter

logger = get_logger(__name__)


# -----------------------------------------------------------------
# Config / shared services
# -----------------------------------------------------------------

def get_config() -> Settings:
    """Return global settings instance."""

    return settings


_brain: Optional[Brain] = None
_brain_adapter: Optional[BrainPersistenceAdapter] = None


def get_brain() -> Brain:
    """Provide the process-wide brain."""

    global _brain
    if _brain is None:
        _brain = Brain()
    return _brain


def get_brain_adapter() -> BrainPersistenceAdapter:
    """Provide the redis persistence adapter; requires init_brain_persistence()."""

    if _brain_adapter is None:
        raise BrainNotInitializedError()
    return _brain_adapter


async def init_brain_persistence(config: Optional[Settings] = None) -> BrainPersistenceAdapter:
    """
    Startup hook: wire the brain to redis and load it.

    Calling it again re-attempts connect() on the existing adapter, which only
    does work after a refused connection.
    """

    global _brain_adapter
    if _brain_adapter is not None:
        await _brain_adapter.connect()
        return _brain_adapter

    _brain_adapter = BrainPersistenceAdapter.from_settings(get_brain(), config or get_config())
    await _brain_adapter.connect()
    return _brain_adapter


async def close_brain_persistence() -> None:
    """Shutdown hook: closing the brain releases the redis connection."""

    global _brain, _brain_adapter
    if _brain is not None:
        await _brain.close()
    if _brain_adapter is not None:
        # Covers an adapter whose close handler was never reached.
        await _brain_adapter.on_close()
    _brain = None
    _brain_adapter = None


# -----------------------------------------------------------------
# Type aliases for FastAPI Depends
# -----------------------------------------------------------------

BrainAdapterDep = Annotated[BrainPersistenceAdapter, Depends(get_brain_adapter)]
