"""Shared schema configuration."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case input and serializes camelCase, matching the web client."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "from_attributes": True}


def required_text(value: str, field: str) -> str:
    """Strip ``value`` and reject it when empty."""
    value = value.strip()
    if not value:
        raise ValueError(f"{field} is required")
    return value
