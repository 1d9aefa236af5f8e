"""
In-memory brain for the chat bot.

Holds arbitrary key/value data and publishes lifecycle events (`save`,
`close`, `connected`, `loaded`) to subscribers. A persistence adapter
subscribes to `save`/`close` and fills the brain through `merge_data`.
"""
from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, List, Optional

from core.logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[..., Any]


class Brain:
    """Minimal key/value brain with an async-aware event bus."""

    def __init__(self) -> None:
        self.data: Dict[str, Any] = {"users": {}, "_private": {}}
        self._auto_save: bool = True
        self._handlers: Dict[str, List[EventHandler]] = {}

    # -----------------------------------------------------------------
    # Events
    # -----------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        """Subscribe a handler; coroutine functions are awaited on emit."""
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event: str, *args: Any) -> None:
        """Run handlers in registration order; handler errors propagate."""
        for handler in list(self._handlers.get(event, [])):
            result = handler(*args)
            if inspect.isawaitable(result):
                await result

    # -----------------------------------------------------------------
    # State
    # -----------------------------------------------------------------

    @property
    def auto_save(self) -> bool:
        return self._auto_save

    def set_auto_save(self, enabled: bool) -> None:
        self._auto_save = enabled

    async def merge_data(self, data: Optional[Dict[str, Any]]) -> None:
        """Shallow-merge top-level keys of `data` into the brain."""
        if data:
            for key, value in data.items():
                self.data[key] = value
        await self.emit("loaded", self.data)

    def is_empty(self) -> bool:
        return not any(self.data.values())

    async def set(self, key: str, value: Any) -> None:
        self.data["_private"][key] = value
        if self._auto_save:
            await self.save()

    def get(self, key: str, default: Any = None) -> Any:
        return self.data["_private"].get(key, default)

    async def remove(self, key: str) -> None:
        self.data["_private"].pop(key, None)
        if self._auto_save:
            await self.save()

    async def save(self, payload: Optional[Dict[str, Any]] = None) -> None:
        """Emit `save` with `payload`, or with the whole brain when omitted."""
        await self.emit("save", payload if payload is not None else self.data)

    async def close(self) -> None:
        logger.debug("Brain closing")
        await self.emit("close")
