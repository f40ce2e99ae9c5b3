from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class TodoStatsModel(BaseModel):
    completed: int = Field(ge=0)
    pending: int = Field(ge=0)
    total: int = Field(ge=0)


class StatsModel(TodoStatsModel):
    model_config = ConfigDict(populate_by_name=True)

    backend_enabled: bool = Field(
        alias="daprEnabled"
    )  # Compatibility with the dashboard
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        alias="lastUpdated",
    )
    version: str
