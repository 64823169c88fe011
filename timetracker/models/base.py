"""Shared base model for API payloads."""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model exposing camelCase keys while accepting snake_case too."""

    model_config = {"populate_by_name": True, "alias_generator": to_camel}
