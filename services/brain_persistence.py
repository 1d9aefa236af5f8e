# /services/brain_persistence.py
"""
Persist the brain to redis.

The adapter loads the stored brain once the connection is up, then mirrors
every `save` event back to redis and closes the connection on `close`.

Two storage formats are supported:
- text: the whole brain as one JSON string under `<prefix>:storage`.
- json: a RedisJSON document under `<prefix>:JSONstorage`; each save writes
  only the field named by the payload's `storageKey`.
"""
from __future__ import annotations

import errno
import json
from enum import Enum
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.commands.json.path import Path
from redis.exceptions import AuthenticationError, RedisError, ResponseError

from core.brain import Brain
from core.config import DATA_FORMAT_JSON, DATA_FORMAT_TEXT, Settings, settings
from core.logger import get_logger
from infrastructure.db.redis_client import (
    ConnectionConfig,
    create_redis_client,
    resolve_config,
)

logger = get_logger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    LOADED = "loaded"
    CLOSED = "closed"


def _is_connection_refused(exc: BaseException) -> bool:
    """True when `exc` (or anything it was raised from) is ECONNREFUSED."""
    current: Optional[BaseException] = exc
    while current is not None:
        if isinstance(current, ConnectionRefusedError):
            return True
        if getattr(current, "errno", None) == errno.ECONNREFUSED:
            return True
        message = str(current)
        if "Connection refused" in message or f"Error {errno.ECONNREFUSED} " in message:
            return True
        current = current.__cause__ or current.__context__
    return False


class BrainPersistenceAdapter:
    """Keeps a Brain in sync with redis."""

    def __init__(
        self,
        brain: Brain,
        config: ConnectionConfig,
        data_format: str = DATA_FORMAT_TEXT,
        migrate: bool = False,
        client: Optional[redis.Redis] = None,
    ) -> None:
        self.brain = brain
        self.config = config
        self.data_format = data_format
        self.migrate = migrate
        self.state = ConnectionState.DISCONNECTED
        self.authenticated = False
        self._load_started = False
        self._client = client if client is not None else create_redis_client(config)

        # No saves until the stored brain has been loaded, otherwise an
        # empty snapshot could overwrite what is in redis.
        self.brain.set_auto_save(False)
        self.brain.on("save", self.on_save)
        self.brain.on("close", self.on_close)

    @classmethod
    def from_settings(
        cls,
        brain: Brain,
        config: Optional[Settings] = None,
        client: Optional[redis.Redis] = None,
    ) -> "BrainPersistenceAdapter":
        """Resolve the connection from the environment and build the adapter."""
        config = config or settings
        if config.REDIS_URL_ENV:
            logger.info(
                "redis-brain: Discovered redis from %s environment variable",
                config.REDIS_URL_ENV,
            )
        else:
            logger.info("redis-brain: Using default redis on localhost:6379")

        if config.REDIS_NO_CHECK:
            logger.info("redis-brain: Turning off redis ready checks")

        return cls(
            brain,
            resolve_config(config),
            data_format=config.REDIS_DATA_FORMAT,
            migrate=config.REDIS_DATA_MIGRATE,
            client=client,
        )

    @property
    def prefix(self) -> str:
        return self.config.key_prefix

    @property
    def storage_key(self) -> str:
        return f"{self.prefix}:storage"

    @property
    def json_storage_key(self) -> str:
        return f"{self.prefix}:JSONstorage"

    @property
    def uses_json_format(self) -> bool:
        # Anything other than "json" falls back to the text format.
        return self.data_format == DATA_FORMAT_JSON

    # -----------------------------------------------------------------
    # Connection lifecycle
    # -----------------------------------------------------------------

    async def connect(self) -> None:
        """
        Open the connection and load the brain.

        With credentials in the URL the load waits for a successful AUTH;
        otherwise it follows the transport-level connect. Only one of the two
        paths runs for a given adapter, so the brain is loaded at most once.

        A refused connection puts the adapter back in `disconnected` so the
        caller can connect() again once redis is reachable.
        """
        if self.state is not ConnectionState.DISCONNECTED:
            return
        self.state = ConnectionState.CONNECTING

        if self.config.requires_auth:
            if await self._authenticate():
                await self.load()
            return

        if await self._on_connect():
            await self.load()

    async def _authenticate(self) -> bool:
        try:
            await self._client.auth(self.config.auth_secret)
        except (AuthenticationError, ResponseError):
            logger.error("redis-brain: Failed to authenticate to Redis")
            return False
        except RedisError as exc:
            self._on_connect_error(exc)
            return False

        self.authenticated = True
        self.state = ConnectionState.CONNECTED
        logger.info("redis-brain: Successfully authenticated to Redis")
        return True

    async def _on_connect(self) -> bool:
        if not self.config.no_ready_check:
            try:
                await self._client.ping()
            except RedisError as exc:
                self._on_connect_error(exc)
                return False

        self.state = ConnectionState.CONNECTED
        logger.debug("redis-brain: Successfully connected to Redis")
        return True

    def _on_connect_error(self, exc: BaseException) -> None:
        # A refused connection leaves the adapter ready for another connect().
        if _is_connection_refused(exc):
            self.state = ConnectionState.DISCONNECTED
        self._on_error(exc)

    def _on_error(self, exc: BaseException) -> None:
        # Refused connections are expected while the client reconnects.
        if _is_connection_refused(exc):
            return
        logger.error("redis-brain: %s", exc, exc_info=exc)

    # -----------------------------------------------------------------
    # Load
    # -----------------------------------------------------------------

    async def load(self) -> None:
        """Populate the brain from redis; a second call is a no-op."""
        if self._load_started:
            return
        self._load_started = True

        try:
            if self.uses_json_format:
                await self._load_json_data()
            else:
                await self._load_text_data()
        except RedisError as exc:
            if _is_connection_refused(exc):
                self._load_started = False
            self._on_connect_error(exc)
            return

        self.state = ConnectionState.LOADED

    async def _load_text_data(self) -> None:
        reply = await self._client.get(self.storage_key)
        if reply:
            logger.info("redis-brain: Text data for %s brain retrieved from Redis", self.prefix)
            await self.brain.merge_data(json.loads(reply))
        else:
            logger.info("redis-brain: Initializing new text data for %s brain", self.prefix)
            await self.brain.merge_data({})
        await self.brain.emit("connected")
        self.brain.set_auto_save(True)

    async def _load_json_data(self) -> None:
        # The RedisJSON client decodes the document itself.
        reply = await self._client.json().get(self.json_storage_key)
        if reply:
            logger.info("redis-brain: JSON data for %s brain retrieved from Redis", self.prefix)
            await self.brain.merge_data(reply)
            # TODO: confirm whether auto-save should be re-enabled here as the text path does
            await self.brain.emit("connected")
            return

        if self.brain.is_empty() and self.migrate:
            logger.info(
                "redis-brain: Attempting to migrate data from %s into %s",
                self.storage_key,
                self.json_storage_key,
            )
            await self._load_text_data()
            # Written as the whole document at the root, not per storageKey.
            await self._client.json().set(self.json_storage_key, Path.root_path(), self.brain.data)
            await self.brain.emit("connected")
            return

        # No root document is written here, so field saves fail until one
        # exists (migration or an external JSON.SET at the root).
        logger.info("redis-brain: Initializing new JSON data for %s brain", self.json_storage_key)
        await self.brain.merge_data({})
        await self.brain.emit("connected")

    # -----------------------------------------------------------------
    # Brain events
    # -----------------------------------------------------------------

    async def on_save(self, payload: Optional[Dict[str, Any]] = None) -> None:
        data = payload or {}
        try:
            if self.uses_json_format:
                await self._save_json_data(data)
            else:
                await self._client.set(self.storage_key, json.dumps(data))
        except RedisError as exc:
            self._on_error(exc)

    async def _save_json_data(self, data: Dict[str, Any]) -> None:
        key = data.get("storageKey")
        if not key:
            logger.error(
                "redis-brain: storageKey is required for saving JSON data. No data was saved."
            )
            return
        await self._client.json().set(self.json_storage_key, key, data.get(key))

    async def on_close(self) -> None:
        """Release the connection; safe to call more than once."""
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        self.brain.off("save", self.on_save)
        self.brain.off("close", self.on_close)
        await self._client.aclose()
        logger.info("redis-brain: Disconnected from Redis")
