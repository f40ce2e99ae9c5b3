import random
import string
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.main import api, get_store
from app.models.store import BackendUnavailableError
from app.persistence.istate import IStateBackend
from app.persistence.store import TodoStore


class StateBackendMock(IStateBackend):
    """
    In-process state store, which can be switched offline.
    """

    available: bool
    gets: int
    saves: int
    values: dict[str, Any]

    def __init__(self) -> None:
        self.available = True
        self.gets = 0
        self.saves = 0
        self.values = {}

    async def get(self, key: str) -> Any | None:
        self.gets += 1
        if not self.available:
            raise BackendUnavailableError("Connection refused")
        return self.values.get(key)

    async def save(self, key: str, value: Any) -> None:
        self.saves += 1
        if not self.available:
            raise BackendUnavailableError("Connection refused")
        self.values[key] = value


class StateBackendBroken(IStateBackend):
    """
    State store failing with an error the store does not know about.
    """

    async def get(self, key: str) -> Any | None:  # noqa: ARG002
        raise RuntimeError("Unexpected failure")

    async def save(self, key: str, value: Any) -> None:  # noqa: ARG002
        raise RuntimeError("Unexpected failure")


@pytest.fixture
def random_text() -> str:
    text = "".join(random.choice(string.ascii_letters) for _ in range(100))
    return text


@pytest.fixture
def backend() -> StateBackendMock:
    return StateBackendMock()


@pytest.fixture
def store(backend: StateBackendMock) -> TodoStore:
    return TodoStore(backend=backend)


@pytest.fixture
def memory_store() -> TodoStore:
    return TodoStore()


@pytest_asyncio.fixture
async def client(store: TodoStore) -> AsyncGenerator[AsyncClient]:
    api.dependency_overrides[get_store] = lambda: store
    async with AsyncClient(
        base_url="http://test",
        transport=ASGITransport(
            app=api,
            raise_app_exceptions=False,  # Let the catch-all handler answer
        ),
    ) as client:
        yield client
    api.dependency_overrides.clear()
