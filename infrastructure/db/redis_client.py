# infrastructure/db/redis_client.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from core.config import Settings, settings

DEFAULT_KEY_PREFIX = "hubot"
DEFAULT_REDIS_PORT = 6379
REDIS_CONNECT_RETRIES = 3


class Transport(str, Enum):
    NETWORK = "network"
    UNIX_SOCKET = "unix_socket"


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Resolved connection parameters for the brain's redis.

    Fields:
    - transport: network (host/port) or unix socket.
    - host / port: used for network transport.
    - socket_path: used for unix socket transport.
    - auth_secret: secret from the URL's `user:secret@` segment, if any.
    - key_prefix: namespace for `<prefix>:storage` / `<prefix>:JSONstorage`.
    - no_ready_check: skip the PING handshake before loading.
    """

    transport: Transport
    host: Optional[str]
    port: int
    socket_path: Optional[str]
    auth_secret: Optional[str]
    key_prefix: str
    no_ready_check: bool

    @property
    def requires_auth(self) -> bool:
        """
        True when the URL carries a password. A bare `user@` segment is
        deliberately not treated as credentials: it neither triggers AUTH nor
        turns off the ready check.
        """
        return self.auth_secret is not None


def resolve_connection_config(url: str, no_check: bool = False) -> ConnectionConfig:
    """
    Parse a redis URL into a ConnectionConfig.

    `redis://<host>:<port>[/<prefix>]` selects the network transport and takes
    the path (minus its leading slash) as the key prefix. An empty host, as in
    `redis:///tmp/redis.sock?prefix`, selects the unix socket transport and
    takes the query string as the key prefix.

    URL parser errors (e.g. a non-numeric port) are not caught here.
    """
    info = urlsplit(url)
    auth_secret = info.password

    if not info.hostname:
        return ConnectionConfig(
            transport=Transport.UNIX_SOCKET,
            host=None,
            port=DEFAULT_REDIS_PORT,
            socket_path=info.path,
            auth_secret=auth_secret,
            key_prefix=info.query or DEFAULT_KEY_PREFIX,
            no_ready_check=bool(auth_secret is not None or no_check),
        )

    return ConnectionConfig(
        transport=Transport.NETWORK,
        host=info.hostname,
        port=info.port or DEFAULT_REDIS_PORT,
        socket_path=None,
        auth_secret=auth_secret,
        key_prefix=info.path.replace("/", "", 1) or DEFAULT_KEY_PREFIX,
        no_ready_check=bool(auth_secret is not None or no_check),
    )


def resolve_config(config: Optional[Settings] = None) -> ConnectionConfig:
    """Resolve the ConnectionConfig from settings (environment)."""
    config = config or settings
    return resolve_connection_config(config.REDIS_URL, no_check=config.REDIS_NO_CHECK)


def create_redis_client(config: ConnectionConfig) -> redis.Redis:
    """
    Build the redis client for a ConnectionConfig. No I/O happens here; the
    first command opens the connection.

    The secret is handed to the client as well so that connections re-opened
    by the client library authenticate on their own. Connection errors are
    retried by the client with exponential backoff.
    """
    retry = Retry(ExponentialBackoff(), REDIS_CONNECT_RETRIES)
    retry_on_error = [RedisConnectionError, RedisTimeoutError]
    if config.transport is Transport.UNIX_SOCKET:
        return redis.Redis(
            unix_socket_path=config.socket_path,
            password=config.auth_secret,
            decode_responses=True,
            retry=retry,
            retry_on_error=retry_on_error,
        )
    return redis.Redis(
        host=config.host,
        port=config.port,
        password=config.auth_secret,
        decode_responses=True,
        retry=retry,
        retry_on_error=retry_on_error,
    )
