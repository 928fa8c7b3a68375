"""Shared schema bases.

Stored rows (ideas, plans, conversations, messages, documents) go over the
wire with their column names. Request bodies and the envelopes wrapping those
rows use camelCase keys.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class EntityModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CamelRequest(CamelModel):
    """Request bodies are trimmed before length checks run."""

    model_config = ConfigDict(str_strip_whitespace=True)


class Pagination(CamelModel):
    limit: int
    offset: int
