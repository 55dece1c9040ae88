"""Shared pydantic base for API payloads.

Learn: The frontend speaks camelCase JSON (isAdmin, createdAt, sessionId).
CamelModel generates those aliases from our snake_case field names.
populate_by_name lets Python callers and tests use either spelling, and
FastAPI serializes responses by alias.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
