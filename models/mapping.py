"""
Field mapping models.

A FieldMapping maps target field name -> source header, with NOT_MAPPED
meaning "no correspondence chosen".
"""

from typing import Optional

from pydantic import Field

from models.base import BaseSchema, ValueSchema


NOT_MAPPED = "not_mapped"

# Key under which custom field correspondences travel inside a combined
# mapping handed to schema derivation: {"__custom": {name: source}}
CUSTOM_MAPPINGS_KEY = "__custom"

FieldMapping = dict[str, str]


def is_mapped(source: Optional[str]) -> bool:
    """True for a real source header (not empty, not the sentinel)."""
    return bool(source) and source != NOT_MAPPED


class CustomFieldMapping(ValueSchema):
    """User-defined correspondence outside the standard catalog."""

    id: str
    name: str
    source_field: str = NOT_MAPPED


class CustomFieldUpdate(BaseSchema):
    """Patch for a custom field. Only provided fields change."""

    name: Optional[str] = Field(None, min_length=1)
    source_field: Optional[str] = Field(None, min_length=1)


class MappingAssignment(BaseSchema):
    """Point one target field at a source header (or NOT_MAPPED)."""

    source_field: str = Field(NOT_MAPPED, min_length=1)


class MappingCounts(ValueSchema):
    """How many standard and custom correspondences are real."""

    standard: int = 0
    custom: int = 0


class MappingState(ValueSchema):
    """Everything the mapping screen needs."""

    source_fields: list[str]
    mappings: FieldMapping
    custom_fields: list[CustomFieldMapping]
    unmapped_source_fields: list[str]
    missing_required_fields: list[str]
    counts: MappingCounts
