import json
from http import HTTPStatus
from typing import Any
from urllib.parse import quote

from aiohttp import ClientError

from app.helpers.config_models.state_store import DaprModel
from app.helpers.http import aiohttp_session
from app.helpers.logging import logger
from app.models.store import BackendUnavailableError
from app.persistence.istate import IStateBackend


class DaprStateBackend(IStateBackend):
    """
    Dapr state store, reached through the sidecar HTTP API.

    See: https://docs.dapr.io/reference/api/state_api/
    """

    _config: DaprModel

    def __init__(self, config: DaprModel):
        logger.info(
            "Using Dapr state store %s on %s:%s",
            config.store_name,
            config.host,
            config.http_port,
        )
        self._config = config

    async def get(self, key: str) -> Any | None:
        """
        Get a value from the state store.

        Dapr answers 204 No Content when the key does not exist, in that case return `None`.
        """
        session = await aiohttp_session()
        try:
            async with session.get(self._key_url(key)) as res:
                if res.status == HTTPStatus.NO_CONTENT:
                    return None
                if res.status != HTTPStatus.OK:
                    raise BackendUnavailableError(
                        f"Dapr get answered {res.status}: {await res.text(errors='replace')}"
                    )
                raw = await res.read()
        except (ClientError, TimeoutError) as e:
            raise BackendUnavailableError(f"Dapr get failed: {e}") from e

        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as e:  # JSONDecodeError or UnicodeDecodeError
            raise BackendUnavailableError(f"Dapr get returned invalid JSON: {e}") from e

    async def save(self, key: str, value: Any) -> None:
        """
        Save a value to the state store.

        Dapr answers 204 No Content on success, any other status is a failure.
        """
        session = await aiohttp_session()
        try:
            async with session.post(
                self._store_url(),
                json=[
                    {
                        "key": key,
                        "value": value,
                    }
                ],
            ) as res:
                if res.status not in (HTTPStatus.OK, HTTPStatus.NO_CONTENT):
                    raise BackendUnavailableError(
                        f"Dapr save answered {res.status}: {await res.text(errors='replace')}"
                    )
        except (ClientError, TimeoutError) as e:
            raise BackendUnavailableError(f"Dapr save failed: {e}") from e

    def _store_url(self) -> str:
        return f"http://{self._config.host}:{self._config.http_port}/v1.0/state/{self._config.store_name}"

    def _key_url(self, key: str) -> str:
        return f"{self._store_url()}/{quote(key, safe='')}"
