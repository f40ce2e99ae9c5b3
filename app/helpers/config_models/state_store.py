from enum import Enum
from functools import cached_property
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, SecretStr, ValidationInfo, field_validator

from app.persistence.istate import IStateBackend

if TYPE_CHECKING:
    from app.persistence.store import TodoStore


class ModeEnum(str, Enum):
    DAPR = "dapr"
    """Use a Dapr state store, through the sidecar HTTP API."""
    REDIS = "redis"
    """Use a Redis server directly."""


class DaprModel(BaseModel, frozen=True):
    host: str = "localhost"
    http_port: int = Field(default=3500, ge=1, le=65535)
    store_name: str = "statestore"

    @cached_property
    def instance(self) -> IStateBackend:
        from app.persistence.dapr import (
            DaprStateBackend,
        )

        return DaprStateBackend(self)


class RedisModel(BaseModel, frozen=True):
    database: int = Field(default=0, ge=0)
    host: str
    password: SecretStr | None = None
    port: int = 6379
    ssl: bool = True
    store_name: str = "statestore"

    @cached_property
    def instance(self) -> IStateBackend:
        from app.persistence.redis import (
            RedisStateBackend,
        )

        return RedisStateBackend(self)


class StateStoreModel(BaseModel):
    enabled: bool = False
    mode: ModeEnum = ModeEnum.DAPR
    record_key: str = Field(default="todos", min_length=1)
    dapr: DaprModel | None = Field(
        default=DaprModel(),  # Object is fully defined by default
        validate_default=True,
    )
    redis: RedisModel | None = Field(default=None, validate_default=True)

    @field_validator("dapr")
    @classmethod
    def _validate_dapr(
        cls,
        dapr: DaprModel | None,
        info: ValidationInfo,
    ) -> DaprModel | None:
        if (
            not dapr
            and info.data.get("enabled", False)
            and info.data.get("mode", None) == ModeEnum.DAPR
        ):
            raise ValueError("Dapr config required")
        return dapr

    @field_validator("redis")
    @classmethod
    def _validate_redis(
        cls,
        redis: RedisModel | None,
        info: ValidationInfo,
    ) -> RedisModel | None:
        if (
            not redis
            and info.data.get("enabled", False)
            and info.data.get("mode", None) == ModeEnum.REDIS
        ):
            raise ValueError("Redis config required")
        return redis

    @property
    def backend(self) -> IStateBackend | None:
        """
        Get the external backend, or `None` if routing through it is disabled.
        """
        if not self.enabled:
            return None

        if self.mode == ModeEnum.DAPR:
            assert self.dapr
            return self.dapr.instance

        assert self.redis
        return self.redis.instance

    @cached_property
    def instance(self) -> "TodoStore":
        from app.persistence.store import (
            TodoStore,
        )

        return TodoStore(
            backend=self.backend,
            record_key=self.record_key,
        )
