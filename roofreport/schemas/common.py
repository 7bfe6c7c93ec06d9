"""Shared Pydantic schema base with camelCase aliases."""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, EmailStr
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """All API schemas inherit from this to auto-generate camelCase aliases."""

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
        "from_attributes": True,
        # Enum fields land in String columns as their plain value
        "use_enum_values": True,
    }


# Form clients post "" for an untouched email field
OptionalEmail = Annotated[Optional[EmailStr], BeforeValidator(lambda v: v or None)]


class HealthResponse(BaseModel):
    """Health-check response returned by /health."""
    status: str = "ok"
    app: str
    env: str
    storage: str
