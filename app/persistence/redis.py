import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from opentelemetry.instrumentation.redis import RedisInstrumentor
from redis.asyncio import Connection, ConnectionPool, Redis, SSLConnection
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError

from app.helpers.cache import lru_acache
from app.helpers.config_models.state_store import RedisModel
from app.helpers.logging import logger
from app.models.store import BackendUnavailableError
from app.persistence.istate import IStateBackend

# Instrument redis
RedisInstrumentor().instrument()


class RedisStateBackend(IStateBackend):
    """
    Redis server used directly as the state store.

    Keys follow the layout of the Dapr Redis state component, `{store_name}||{key}`, so both backends can share a database.
    """

    _config: RedisModel

    def __init__(self, config: RedisModel):
        self._config = config

    async def get(self, key: str) -> Any | None:
        """
        Get a value from the state store.

        If the key does not exist or if the value is empty, return `None`.
        """
        try:
            async with self._use_client() as client:
                raw = await client.get(self._state_key(key))
        except RedisError as e:
            raise BackendUnavailableError(f"Redis get failed: {e}") from e

        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:  # JSONDecodeError or UnicodeDecodeError
            raise BackendUnavailableError(f"Redis get returned invalid JSON: {e}") from e

    async def save(self, key: str, value: Any) -> None:
        """
        Save a value to the state store, without expiration.
        """
        try:
            async with self._use_client() as client:
                await client.set(
                    name=self._state_key(key),
                    value=json.dumps(value, ensure_ascii=False),
                )
        except RedisError as e:
            raise BackendUnavailableError(f"Redis save failed: {e}") from e

    @lru_acache()
    async def _use_connection_pool(self) -> ConnectionPool:
        """
        Generate the Redis connection pool.

        Failed commands are not retried, the caller falls back immediately.
        """
        logger.info("Using Redis state store %s:%s", self._config.host, self._config.port)

        return ConnectionPool(
            # Database location
            db=self._config.database,
            # Reliability
            health_check_interval=10,  # Check the health of the connection every 10 secs
            retry=Retry(backoff=NoBackoff(), retries=0),
            retry_on_timeout=False,
            socket_connect_timeout=5,
            socket_timeout=5,
            # Deployment
            connection_class=SSLConnection if self._config.ssl else Connection,
            host=self._config.host,
            port=self._config.port,
            # Authentication
            password=self._config.password.get_secret_value()
            if self._config.password
            else None,
        )

    @asynccontextmanager
    async def _use_client(self) -> AsyncGenerator[Redis]:
        """
        Return a Redis connection.
        """
        async with Redis(
            auto_close_connection_pool=False,
            connection_pool=await self._use_connection_pool(),
        ) as client:
            yield client

    def _state_key(self, key: str) -> str:
        return f"{self._config.store_name}||{key}"
