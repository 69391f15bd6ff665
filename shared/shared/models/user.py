from uuid import UUID

from pydantic import BaseModel, ConfigDict

from shared.constants import Role


class CurrentUser(BaseModel):
    """Authenticated principal resolved from an access token."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    role: Role
