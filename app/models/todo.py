from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class TodoModel(BaseModel):
    # Accept both Python and wire names, the state store holds the wire format
    model_config = ConfigDict(populate_by_name=True)

    # Immutable fields
    id: str = Field(default_factory=lambda: str(uuid4()), frozen=True, min_length=1)
    text: str = Field(frozen=True, min_length=1, pattern=r"\S")
    created_at: datetime = Field(
        alias="createdAt",
        default_factory=lambda: datetime.now(UTC),
        frozen=True,
    )
    # Editable fields
    completed: bool = False
    updated_at: datetime | None = Field(
        alias="updatedAt",
        default=None,
    )

    def toggle(self) -> None:
        """
        Flip the completion status and stamp the update time.
        """
        self.completed = not self.completed
        self.updated_at = datetime.now(UTC)


class TodoCreateModel(BaseModel):
    text: str | None = None
