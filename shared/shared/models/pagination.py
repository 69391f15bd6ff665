from pydantic import BaseModel, ConfigDict, Field


class OffsetParams(BaseModel):
    """Query params for offset-paginated list endpoints."""

    model_config = ConfigDict(extra="forbid")

    limit: int = Field(default=20, ge=1, le=100, description="Items per page.")
    offset: int = Field(default=0, ge=0, description="Number of items to skip.")


class OffsetPage[T](BaseModel):
    """List envelope with the total row count."""

    model_config = ConfigDict(from_attributes=True)

    items: list[T]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total
