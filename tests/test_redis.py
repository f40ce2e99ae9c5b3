import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import pytest
from pytest_assume.plugin import assume

from app.helpers.config_models.state_store import RedisModel
from app.models.store import BackendUnavailableError
from app.persistence.redis import RedisStateBackend
from app.persistence.store import TodoStore


class RedisClientMock:
    """
    Subset of the Redis client commands, backed by a dict of raw bytes.
    """

    values: dict[str, bytes]

    def __init__(self) -> None:
        self.values = {}

    async def get(self, name: str) -> bytes | None:
        return self.values.get(name)

    async def set(self, name: str, value: str) -> None:
        self.values[name] = value.encode()


@pytest.fixture
def redis_client() -> RedisClientMock:
    return RedisClientMock()


@pytest.fixture
def redis(
    monkeypatch: pytest.MonkeyPatch,
    redis_client: RedisClientMock,
) -> RedisStateBackend:
    backend = RedisStateBackend(RedisModel(host="localhost", ssl=False))

    @asynccontextmanager
    async def _use_client() -> AsyncGenerator[RedisClientMock]:
        yield redis_client

    monkeypatch.setattr(backend, "_use_client", _use_client)
    return backend


@pytest.mark.asyncio(loop_scope="session")
async def test_save_get(
    random_text: str,
    redis: RedisStateBackend,
    redis_client: RedisClientMock,
) -> None:
    value = [{"id": "1", "text": random_text, "completed": False}]

    await redis.save("todos", value)

    assume(json.loads(redis_client.values["statestore||todos"]) == value)
    assume(await redis.get("todos") == value)


@pytest.mark.asyncio(loop_scope="session")
async def test_absent_key(redis: RedisStateBackend) -> None:
    assert await redis.get("todos") is None


@pytest.mark.parametrize(
    "raw",
    [
        pytest.param(b"{not json", id="invalid_json"),
        pytest.param(b"\xff\xfa\xfb", id="invalid_encoding"),
    ],
)
@pytest.mark.asyncio(loop_scope="session")
async def test_malformed_value(
    raw: bytes,
    redis: RedisStateBackend,
    redis_client: RedisClientMock,
) -> None:
    """
    An undecodable value is a malformed value, the store keeps serving memory.
    """
    redis_client.values["statestore||todos"] = raw

    with pytest.raises(BackendUnavailableError):
        await redis.get("todos")

    todos = await TodoStore(backend=redis).read()
    assume(len(todos) == 3)
