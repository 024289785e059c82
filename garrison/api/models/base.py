"""Shared base for API payloads.

The HTTP API speaks camelCase; Python code uses snake_case field names.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes and accepts camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
