from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReadinessEnum(str, Enum):
    FALLBACK = "fallback"
    """The component serves requests from the in-memory fallback."""
    OK = "ok"
    """The component is ready."""


class ReadinessStatusEnum(str, Enum):
    NOT_READY = "not ready"
    READY = "ready"


class ReadinessChecksModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data_access: ReadinessEnum = Field(alias="dataAccess")
    dapr: ReadinessEnum


class ReadinessModel(BaseModel):
    checks: ReadinessChecksModel | None = None
    error: str | None = None
    status: ReadinessStatusEnum
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class HealthDaprModel(BaseModel):
    enabled: bool
    port: int | None


class HealthEnvironmentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    platform: str
    python_version: str = Field(alias="pythonVersion")
    uptime: float
    """Process uptime, in seconds."""


class HealthModel(BaseModel):
    dapr: HealthDaprModel
    environment: HealthEnvironmentModel
    status: str = "healthy"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    version: str
