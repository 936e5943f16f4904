"""Schemas for the authenticated-caller capability."""

from pydantic import BaseModel, ConfigDict


class CurrentUser(BaseModel):
    """Authenticated caller (id, full_name, email) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
