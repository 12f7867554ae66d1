"""Shared schema configuration."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base schema exchanged with the dashboard UI.

    Serialized with camelCase keys; accepts either camelCase or snake_case on
    input and can be built from ORM objects.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )
