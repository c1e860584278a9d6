"""
Schema models: target fields, schema fields, category mappings and the
exportable schema value.
"""

from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, model_validator

from models.base import BaseSchema, ValueSchema


class FieldType(str, Enum):
    """Value types a schema field can declare."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class CategoryFormat(str, Enum):
    """How normalized categories are written."""
    HIERARCHICAL = "hierarchical"
    FLAT = "flat"


class TargetFieldSpec(ValueSchema):
    """A field of the standard target catalog."""

    name: str = Field(..., min_length=1, description="Unique field name")
    type: FieldType = Field(FieldType.STRING, description="Declared value type")
    required: bool = Field(False, description="Must be mapped before schema design")
    description: Optional[str] = Field(None, description="Human-readable meaning")


class SchemaField(TargetFieldSpec):
    """
    A field of a schema.

    Core fields come from the target catalog; custom fields are added by
    the user (is_custom_field=True). A required core field is protected.
    """

    source_field: Optional[str] = Field(None, description="Feed column this field is read from")
    is_custom_field: bool = Field(False, description="Added by the user, not in the catalog")

    @property
    def is_protected(self) -> bool:
        return self.required and not self.is_custom_field


class SchemaFieldCreate(BaseSchema):
    """Add a field to the schema."""

    name: str = Field(..., description="Unique field name")
    type: FieldType = Field(FieldType.STRING)
    required: bool = Field(False)
    description: Optional[str] = Field(None)
    source_field: Optional[str] = Field(None)


class SchemaFieldUpdate(BaseSchema):
    """
    Update an existing schema field.

    All fields optional - only provided fields are updated.
    """

    name: Optional[str] = Field(None, min_length=1)
    type: Optional[FieldType] = Field(None)
    required: Optional[bool] = Field(None)
    description: Optional[str] = Field(None)
    source_field: Optional[str] = Field(None)


class CategoryMapping(ValueSchema):
    """Raw feed category (">"-delimited) and its normalized form."""

    source_category: str
    target_category: str = ""


class CategorySettings(BaseSchema):
    """Change category output format and/or separator."""

    # " > " is a legitimate separator
    model_config = ConfigDict(str_strip_whitespace=False)

    category_format: Optional[CategoryFormat] = None
    category_separator: Optional[str] = Field(None, min_length=1)


class CategoryMappingUpdate(BaseSchema):
    """Hand-edit the target of one category mapping."""

    model_config = ConfigDict(str_strip_whitespace=False)

    source_category: str
    target_category: str


class FeedSchema(ValueSchema):
    """The exportable schema artifact."""

    name: str
    description: str = ""
    fields: list[SchemaField] = Field(default_factory=list)
    category_format: CategoryFormat = CategoryFormat.HIERARCHICAL
    category_separator: str = "/"
    category_mappings: list[CategoryMapping] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> "FeedSchema":
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise ValueError("schema field names must be unique")
        sources = [m.source_category for m in self.category_mappings]
        if len(set(sources)) != len(sources):
            raise ValueError("source categories must be unique")
        return self

    def field(self, name: str) -> Optional[SchemaField]:
        return next((f for f in self.fields if f.name == name), None)


class SchemaMetadataUpdate(BaseSchema):
    """Rename or re-describe the schema."""

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class QuickAddField(BaseSchema):
    """Promote an unmapped feed column to a custom field."""

    source_field: str = Field(..., min_length=1)


class CategoryCoverage(ValueSchema):
    mapped: int
    total: int


class SchemaState(ValueSchema):
    """Everything the schema screen needs."""

    feed_schema: FeedSchema
    unmapped_source_fields: list[str]
    category_coverage: CategoryCoverage
