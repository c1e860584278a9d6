"""
Base schemas for all models.

Two flavours:
    - BaseSchema: request bodies (trimmed strings, validated on assignment)
    - ValueSchema: immutable pipeline values with camelCase wire names
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base for request schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Accept camelCase or snake_case keys
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ValueSchema(BaseModel):
    """
    Base for values emitted by a pipeline stage.

    Frozen: a stage never mutates a value it has handed out, it builds a
    new one. Strings are kept verbatim (feed values and category separators
    are whitespace-sensitive).
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Dump with the camelCase names used by snapshots and the API."""
        return self.model_dump(mode="json", by_alias=True)
