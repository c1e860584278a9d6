"""
Schema derivation and editing.

Builds a typed schema from a field mapping, then lets the user add, edit
and remove fields and maintain the category mapping table. Required core
fields (catalog fields with required=True) are protected here, not just in
the UI: they cannot be removed or made optional.
"""

import re
from typing import Optional, Sequence, Union

import structlog

from config.catalog import STANDARD_TARGET_FIELDS
from config.settings import get_settings
from exceptions import (
    CategoryMappingNotFoundError,
    DuplicateCategoryError,
    DuplicateFieldNameError,
    FieldNotFoundError,
    ProtectedFieldError,
    ValidationError,
)
from models.history import SchemaSnapshot
from models.mapping import CUSTOM_MAPPINGS_KEY, is_mapped
from models.schema import (
    CategoryFormat,
    CategoryMapping,
    FeedSchema,
    FieldType,
    SchemaField,
    SchemaFieldCreate,
    SchemaFieldUpdate,
    TargetFieldSpec,
)
from services.category_service import build_category_mappings

logger = structlog.get_logger(__name__)


def derive_schema_fields(
    field_mappings: dict,
    source_fields: Sequence[str],
    catalog: Sequence[TargetFieldSpec] = STANDARD_TARGET_FIELDS,
) -> tuple[list[SchemaField], list[str]]:
    """
    Schema fields and unmapped source fields for a mapping.

    Catalog fields keep their catalog type and get `source_field` only when mapped to
    a header that exists. Entries of field_mappings[CUSTOM_MAPPINGS_KEY]
    (name -> source) with an existing source become optional string custom
    fields. A custom name already taken by a catalog field or an earlier
    custom field is skipped and logged; its source stays unmapped. Pure:
    same input, same output.

    Args:
        field_mappings: target -> source, optionally with CUSTOM_MAPPINGS_KEY
        source_fields: Feed headers
        catalog: Target catalog

    Returns:
        (fields, unmapped source fields in header order)
    """
    available = set(source_fields)
    used: set[str] = set()

    fields: list[SchemaField] = []
    for spec in catalog:
        source = field_mappings.get(spec.name)
        valid = isinstance(source, str) and is_mapped(source) and source in available
        if valid:
            used.add(source)
        fields.append(SchemaField(**spec.model_dump(), source_field=source if valid else None))

    conflicts: list[str] = []
    custom = field_mappings.get(CUSTOM_MAPPINGS_KEY) or {}
    if isinstance(custom, dict):
        taken = {f.name for f in fields}
        for name, source in custom.items():
            if not (is_mapped(source) and source in available):
                continue
            if name in taken:
                conflicts.append(name)
                continue
            taken.add(name)
            used.add(source)
            fields.append(SchemaField(
                name=name,
                type=FieldType.STRING,
                required=False,
                description=f"Custom field mapped from {source}",
                source_field=source,
                is_custom_field=True,
            ))

    if conflicts:
        logger.warning("custom_field_name_conflict", names=conflicts)

    unmapped = [source for source in source_fields if source not in used]
    return fields, unmapped


def field_name_from_source(source_field: str) -> str:
    """'Product Weight (kg)' -> 'product_weight_kg'."""
    name = re.sub(r"[^a-z0-9_]", "_", source_field.lower())
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


class SchemaDesigner:
    """
    Schema state for one workflow session.

    Every successful operation replaces the field / mapping lists with new
    ones; a rejected operation raises before touching anything.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category_format: Optional[CategoryFormat] = None,
        category_separator: Optional[str] = None,
    ):
        self._reset(name, description, category_format, category_separator)

    def _reset(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category_format: Optional[CategoryFormat] = None,
        category_separator: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.name = name if name is not None else settings.default_schema_name
        self.description = description if description is not None else settings.default_schema_description
        self.category_format = category_format or CategoryFormat(settings.default_category_format)
        self.category_separator = category_separator or settings.default_category_separator
        self.fields: list[SchemaField] = []
        self.source_fields: list[str] = []
        self.category_mappings: list[CategoryMapping] = []

    # ===================
    # GENERATION
    # ===================

    def generate_initial_schema(
        self,
        field_mappings: dict,
        source_fields: Sequence[str],
        default_catalog: Sequence[TargetFieldSpec] = STANDARD_TARGET_FIELDS,
    ) -> list[SchemaField]:
        """Replace the fields with those derived from a mapping."""
        fields, unmapped = derive_schema_fields(field_mappings, source_fields, default_catalog)
        self.fields = fields
        self.source_fields = list(source_fields)
        logger.info(
            "schema_generated",
            fields=len(fields),
            custom_fields=sum(1 for f in fields if f.is_custom_field),
            unmapped=len(unmapped),
        )
        return list(fields)

    @property
    def unmapped_source_fields(self) -> list[str]:
        """Feed headers no schema field reads from."""
        used = {f.source_field for f in self.fields if f.source_field}
        return [source for source in self.source_fields if source not in used]

    # ===================
    # FIELD CRUD
    # ===================

    def get_field(self, name: str) -> SchemaField:
        for schema_field in self.fields:
            if schema_field.name == name:
                return schema_field
        raise FieldNotFoundError(name)

    def add_field(self, new_field: Union[SchemaFieldCreate, SchemaField]) -> SchemaField:
        """
        Add a user-defined field.

        Raises:
            ValidationError: If the name is empty
            DuplicateFieldNameError: If the name is taken
        """
        name = (new_field.name or "").strip()
        if not name:
            raise ValidationError("Field name is required", code="SCHEMA_FIELD_NAME_REQUIRED")
        if any(f.name == name for f in self.fields):
            raise DuplicateFieldNameError(name)

        schema_field = SchemaField(
            name=name,
            type=new_field.type,
            required=new_field.required,
            description=new_field.description,
            source_field=new_field.source_field or None,
            is_custom_field=True,
        )
        self.fields = [*self.fields, schema_field]
        logger.info("schema_field_added", name=name, source_field=schema_field.source_field)
        return schema_field

    def remove_field(self, name: str) -> None:
        """
        Raises:
            FieldNotFoundError: If no field has this name
            ProtectedFieldError: If the field is a required core field
        """
        schema_field = self.get_field(name)
        if schema_field.is_protected:
            logger.warning("protected_field_remove_rejected", name=name)
            raise ProtectedFieldError(name, "removed")
        self.fields = [f for f in self.fields if f.name != name]
        logger.info("schema_field_removed", name=name)

    def update_field(self, name: str, patch: SchemaFieldUpdate) -> SchemaField:
        """
        Merge `patch` into a field.

        Raises:
            FieldNotFoundError: If no field has this name
            ProtectedFieldError: If a required core field would become optional
                or be renamed
            DuplicateFieldNameError: If renamed onto another field's name
        """
        current = self.get_field(name)
        changes = {
            key: value
            for key, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or key in ("description", "source_field")
        }

        if current.is_protected and changes.get("required") is False:
            logger.warning("protected_field_update_rejected", name=name)
            raise ProtectedFieldError(name, "made optional")

        new_name = changes.get("name")
        if current.is_protected and new_name is not None and new_name != name:
            logger.warning("protected_field_update_rejected", name=name, new_name=new_name)
            raise ProtectedFieldError(name, "renamed")

        if new_name is not None and new_name != name and any(f.name == new_name for f in self.fields):
            raise DuplicateFieldNameError(new_name)

        if "source_field" in changes and not changes["source_field"]:
            changes["source_field"] = None
        updated = current.model_copy(update=changes)
        self.fields = [updated if f.name == name else f for f in self.fields]
        logger.info("schema_field_updated", name=name, changes=list(changes))
        return updated

    def quick_add_field(self, source_field: str) -> SchemaField:
        """
        Promote a feed column to a custom field.

        The name is derived from the column and suffixed _1, _2, ... until
        unique.
        """
        base = field_name_from_source(source_field)
        if not base:
            raise ValidationError(
                "Cannot derive a field name from this column",
                code="SCHEMA_FIELD_NAME_REQUIRED",
                details={"source_field": source_field},
            )
        taken = {f.name for f in self.fields}
        name = base
        counter = 1
        while name in taken:
            name = f"{base}_{counter}"
            counter += 1

        return self.add_field(SchemaField(
            name=name,
            type=FieldType.STRING,
            required=False,
            description=f"Auto-generated from {source_field}",
            source_field=source_field,
        ))

    # ===================
    # CATEGORIES
    # ===================

    def set_category_format(self, category_format: CategoryFormat) -> None:
        self.category_format = category_format

    def set_category_separator(self, separator: str) -> None:
        if not separator:
            raise ValidationError("Category separator cannot be empty", code="CATEGORY_SEPARATOR_REQUIRED")
        self.category_separator = separator

    def set_category_mappings(self, mappings: Sequence[CategoryMapping]) -> None:
        """
        Raises:
            DuplicateCategoryError: If a source category appears twice
        """
        seen: set[str] = set()
        for mapping in mappings:
            if mapping.source_category in seen:
                raise DuplicateCategoryError(mapping.source_category)
            seen.add(mapping.source_category)
        self.category_mappings = list(mappings)

    def add_category_mapping(self, mapping: CategoryMapping) -> None:
        if any(m.source_category == mapping.source_category for m in self.category_mappings):
            raise DuplicateCategoryError(mapping.source_category)
        self.category_mappings = [*self.category_mappings, mapping]

    def update_category_mapping(self, source_category: str, target_category: str) -> CategoryMapping:
        """
        Raises:
            CategoryMappingNotFoundError: If the source category is unknown
        """
        if not any(m.source_category == source_category for m in self.category_mappings):
            raise CategoryMappingNotFoundError(source_category)
        updated = CategoryMapping(source_category=source_category, target_category=target_category)
        self.category_mappings = [
            updated if m.source_category == source_category else m
            for m in self.category_mappings
        ]
        return updated

    def auto_generate_category_mappings(self, source_categories: Sequence[str]) -> list[CategoryMapping]:
        """Rebuild the table for `source_categories`, keeping hand-edited targets."""
        self.category_mappings = build_category_mappings(
            source_categories,
            self.category_format,
            self.category_separator,
            existing=self.category_mappings,
        )
        return list(self.category_mappings)

    def category_coverage(self) -> tuple[int, int]:
        """(mappings with a non-empty target, all mappings)."""
        mapped = sum(1 for m in self.category_mappings if m.target_category)
        return mapped, len(self.category_mappings)

    # ===================
    # OUTPUT & SNAPSHOTS
    # ===================

    def set_schema_name(self, name: str) -> None:
        self.name = name

    def set_schema_description(self, description: str) -> None:
        self.description = description

    def get_full_schema(self) -> FeedSchema:
        """The exportable schema. No side effects."""
        return FeedSchema(
            name=self.name,
            description=self.description,
            fields=list(self.fields),
            category_format=self.category_format,
            category_separator=self.category_separator,
            category_mappings=list(self.category_mappings),
        )

    def snapshot_fields(self) -> dict:
        """Fields of a SchemaSnapshot (id/timestamp/name are added by history)."""
        return {
            "schema_name": self.name,
            "schema_description": self.description,
            "fields": list(self.fields),
            "category_format": self.category_format,
            "category_separator": self.category_separator,
            "category_mappings": list(self.category_mappings),
        }

    def load_snapshot(self, snapshot: SchemaSnapshot) -> None:
        """Restore the schema verbatim from history."""
        self.name = snapshot.schema_name
        self.description = snapshot.schema_description
        self.fields = list(snapshot.fields)
        self.category_format = snapshot.category_format
        self.category_separator = snapshot.category_separator
        self.category_mappings = list(snapshot.category_mappings)
        logger.info("schema_snapshot_loaded", snapshot_id=snapshot.id, fields=len(self.fields))

    def clear(self) -> None:
        """Back to an empty schema with default settings."""
        self._reset()
