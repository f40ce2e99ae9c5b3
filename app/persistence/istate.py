from abc import ABC, abstractmethod
from typing import Any

from app.helpers.monitoring import start_as_current_span


class IStateBackend(ABC):
    """
    External key/value state store.

    Implementations raise `BackendUnavailableError` on any failure, they never recover by themselves.
    """

    @abstractmethod
    @start_as_current_span("state_get")
    async def get(self, key: str) -> Any | None:
        """
        Get the JSON value stored under `key`, or `None` if nothing is stored.
        """

    @abstractmethod
    @start_as_current_span("state_save")
    async def save(self, key: str, value: Any) -> None:
        """
        Store a JSON-serializable value under `key`, replacing the previous one.
        """
