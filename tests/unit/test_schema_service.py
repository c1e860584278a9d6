"""
Unit tests for schema derivation and SchemaDesigner.

Run: pytest tests/unit/test_schema_service.py -v
"""

from unittest.mock import patch

import pytest

from config.catalog import STANDARD_TARGET_FIELDS
from exceptions import (
    CategoryMappingNotFoundError,
    DuplicateCategoryError,
    DuplicateFieldNameError,
    FieldNotFoundError,
    ProtectedFieldError,
    ValidationError,
)
from models.mapping import CUSTOM_MAPPINGS_KEY, NOT_MAPPED
from models.schema import (
    CategoryFormat,
    CategoryMapping,
    FieldType,
    SchemaFieldCreate,
    SchemaFieldUpdate,
)
from services.schema_service import SchemaDesigner, derive_schema_fields, field_name_from_source
from tests.factories import FEED_HEADERS


@pytest.fixture
def generated(designer, engine):
    """Designer with the schema generated from the auto-mapped feed."""
    designer.generate_initial_schema(engine.combined_mappings(), engine.source_fields)
    return designer


# ===================
# DERIVATION
# ===================

class TestDeriveSchemaFields:

    def test_catalog_fields_in_order_with_sources(self, engine):
        fields, unmapped = derive_schema_fields(engine.combined_mappings(), FEED_HEADERS)

        assert [f.name for f in fields] == [spec.name for spec in STANDARD_TARGET_FIELDS]
        assert fields[0].source_field == "product_id"
        assert fields[0].required is True
        assert fields[3].type is FieldType.NUMBER
        assert unmapped == ["color"]

    def test_is_idempotent(self, engine):
        mappings = engine.combined_mappings()

        first = derive_schema_fields(mappings, FEED_HEADERS)
        second = derive_schema_fields(mappings, FEED_HEADERS)

        assert first == second

    def test_not_mapped_has_no_source(self):
        fields, unmapped = derive_schema_fields({"id": NOT_MAPPED}, ["sku"])

        assert fields[0].source_field is None
        assert unmapped == ["sku"]

    def test_source_missing_from_headers_is_dropped(self):
        """A mapping to a non-existent header never surfaces as a source."""
        fields, unmapped = derive_schema_fields({"id": "ghost", "title": "name"}, ["name"])

        assert fields[0].source_field is None
        assert fields[1].source_field == "name"
        assert unmapped == []

    def test_custom_fields_appended(self):
        mappings = {"id": "sku", CUSTOM_MAPPINGS_KEY: {"colour": "color"}}

        fields, unmapped = derive_schema_fields(mappings, ["sku", "color", "size"])

        custom = fields[-1]
        assert custom.name == "colour"
        assert custom.source_field == "color"
        assert custom.type is FieldType.STRING
        assert custom.required is False
        assert custom.is_custom_field is True
        assert custom.description == "Custom field mapped from color"
        assert unmapped == ["size"]

    def test_invalid_custom_sources_skipped(self):
        mappings = {CUSTOM_MAPPINGS_KEY: {"a": NOT_MAPPED, "b": "ghost"}}

        fields, _ = derive_schema_fields(mappings, ["x"])

        assert len(fields) == len(STANDARD_TARGET_FIELDS)

    def test_custom_name_colliding_with_catalog_skipped(self):
        mappings = {CUSTOM_MAPPINGS_KEY: {"title": "name"}}

        fields, unmapped = derive_schema_fields(mappings, ["name"])

        assert [f.name for f in fields].count("title") == 1
        assert fields[1].is_custom_field is False
        assert unmapped == ["name"]

    def test_custom_name_conflicts_are_logged(self):
        mappings = {CUSTOM_MAPPINGS_KEY: {"title": "name", "colour": "color"}}

        with patch("services.schema_service.logger") as mock_logger:
            fields, unmapped = derive_schema_fields(mappings, ["name", "color"])

        mock_logger.warning.assert_called_once_with("custom_field_name_conflict", names=["title"])
        assert fields[-1].name == "colour"
        assert unmapped == ["name"]

    def test_no_conflict_no_warning(self):
        with patch("services.schema_service.logger") as mock_logger:
            derive_schema_fields({CUSTOM_MAPPINGS_KEY: {"colour": "color"}}, ["color"])

        mock_logger.warning.assert_not_called()

    @pytest.mark.parametrize("source,expected", [
        ("color", "color"),
        ("Product Weight (kg)", "product_weight_kg"),
        ("  Shipping--Cost ", "shipping_cost"),
        ("SKU#", "sku"),
    ])
    def test_field_name_from_source(self, source, expected):
        assert field_name_from_source(source) == expected


class TestGenerateInitialSchema:

    def test_replaces_fields(self, generated, engine):
        generated.add_field(SchemaFieldCreate(name="extra"))

        generated.generate_initial_schema(engine.combined_mappings(), engine.source_fields)

        assert "extra" not in [f.name for f in generated.fields]

    def test_unmapped_source_fields(self, generated):
        assert generated.unmapped_source_fields == ["color"]

    def test_defaults_from_settings(self, designer):
        assert designer.name == "My Product Feed Schema"
        assert designer.description == "Standardized product feed schema"
        assert designer.category_format is CategoryFormat.HIERARCHICAL
        assert designer.category_separator == "/"


# ===================
# FIELD CRUD
# ===================

class TestAddField:

    def test_added_field_is_custom(self, generated):
        added = generated.add_field(SchemaFieldCreate(name="weight", type=FieldType.NUMBER, required=True))

        assert added.is_custom_field is True
        assert added.required is True
        assert generated.fields[-1] == added

    def test_duplicate_name_rejected(self, generated):
        before = list(generated.fields)

        with pytest.raises(DuplicateFieldNameError) as exc_info:
            generated.add_field(SchemaFieldCreate(name="title"))

        assert exc_info.value.code == "SCHEMA_FIELD_NAME_EXISTS"
        assert exc_info.value.status_code == 409
        assert generated.fields == before

    def test_blank_name_rejected(self, generated):
        with pytest.raises(ValidationError):
            generated.add_field(SchemaFieldCreate(name="   "))


class TestRemoveField:

    def test_required_core_field_is_protected(self, generated):
        before = list(generated.fields)

        with pytest.raises(ProtectedFieldError) as exc_info:
            generated.remove_field("id")

        assert exc_info.value.code == "SCHEMA_FIELD_PROTECTED"
        assert generated.fields == before

    def test_optional_core_field_can_be_removed(self, generated):
        generated.remove_field("brand")

        assert "brand" not in [f.name for f in generated.fields]
        assert "brand" in generated.unmapped_source_fields

    def test_required_custom_field_can_be_removed(self, generated):
        generated.add_field(SchemaFieldCreate(name="weight", required=True))

        generated.remove_field("weight")

        assert "weight" not in [f.name for f in generated.fields]

    def test_unknown_field(self, generated):
        with pytest.raises(FieldNotFoundError):
            generated.remove_field("nope")


class TestUpdateField:

    def test_required_core_field_cannot_be_made_optional(self, generated):
        before = list(generated.fields)

        with pytest.raises(ProtectedFieldError):
            generated.update_field("price", SchemaFieldUpdate(required=False))

        assert generated.fields == before

    def test_core_field_description_can_change(self, generated):
        updated = generated.update_field("price", SchemaFieldUpdate(description="Sale price"))

        assert updated.description == "Sale price"
        assert updated.required is True
        assert generated.get_field("price").description == "Sale price"

    def test_optional_field_can_become_required(self, generated):
        updated = generated.update_field("brand", SchemaFieldUpdate(required=True))

        assert updated.required is True

    def test_rename_onto_existing_name_rejected(self, generated):
        with pytest.raises(DuplicateFieldNameError):
            generated.update_field("brand", SchemaFieldUpdate(name="title"))

    def test_rename(self, generated):
        generated.update_field("brand", SchemaFieldUpdate(name="manufacturer"))

        assert generated.get_field("manufacturer").source_field == "brand"
        with pytest.raises(FieldNotFoundError):
            generated.get_field("brand")

    def test_required_core_field_cannot_be_renamed(self, generated):
        before = list(generated.fields)

        with pytest.raises(ProtectedFieldError) as exc_info:
            generated.update_field("id", SchemaFieldUpdate(name="product_key"))

        assert exc_info.value.details["operation"] == "renamed"
        assert generated.fields == before
        assert generated.get_field("id").source_field == "product_id"

    def test_core_field_patch_with_own_name_is_allowed(self, generated):
        updated = generated.update_field("id", SchemaFieldUpdate(name="id", description="SKU"))

        assert updated.name == "id"
        assert updated.description == "SKU"

    def test_clearing_source(self, generated):
        updated = generated.update_field("brand", SchemaFieldUpdate(source_field=""))

        assert updated.source_field is None


class TestQuickAddField:

    def test_creates_custom_field_from_column(self, generated):
        added = generated.quick_add_field("color")

        assert added.name == "color"
        assert added.source_field == "color"
        assert added.description == "Auto-generated from color"
        assert added.is_custom_field is True
        assert generated.unmapped_source_fields == []

    def test_name_suffixed_until_unique(self, generated):
        names = [generated.quick_add_field("Title").name for _ in range(3)]

        assert names == ["title_1", "title_2", "title_3"]

    def test_unusable_column_name(self, generated):
        with pytest.raises(ValidationError):
            generated.quick_add_field("###")


# ===================
# CATEGORIES
# ===================

class TestCategoryMappings:

    SOURCES = ["Electronics > Audio > Headphones", "Sports > Footwear"]

    def test_auto_generate_hierarchical(self, designer):
        mappings = designer.auto_generate_category_mappings(self.SOURCES)

        assert [m.target_category for m in mappings] == [
            "Electronics/Audio/Headphones",
            "Sports/Footwear",
        ]

    def test_auto_generate_flat(self, designer):
        designer.set_category_format(CategoryFormat.FLAT)

        mappings = designer.auto_generate_category_mappings(self.SOURCES)

        assert [m.target_category for m in mappings] == ["Headphones", "Footwear"]

    def test_regeneration_keeps_hand_edits(self, designer):
        designer.auto_generate_category_mappings(self.SOURCES)
        designer.update_category_mapping("Sports > Footwear", "Shoes")
        designer.set_category_format(CategoryFormat.FLAT)

        mappings = designer.auto_generate_category_mappings([*self.SOURCES, "Home > Garden > Tools"])

        assert [m.target_category for m in mappings] == [
            "Electronics/Audio/Headphones",
            "Shoes",
            "Tools",
        ]

    def test_update_unknown_category(self, designer):
        with pytest.raises(CategoryMappingNotFoundError):
            designer.update_category_mapping("Nope", "x")

    def test_duplicate_source_category_rejected(self, designer):
        designer.add_category_mapping(CategoryMapping(source_category="A > B", target_category="B"))

        with pytest.raises(DuplicateCategoryError) as exc_info:
            designer.add_category_mapping(CategoryMapping(source_category="A > B"))

        assert exc_info.value.code == "CATEGORY_SOURCE_CATEGORY_EXISTS"
        assert len(designer.category_mappings) == 1

    def test_set_mappings_rejects_duplicates(self, designer):
        with pytest.raises(DuplicateCategoryError):
            designer.set_category_mappings([
                CategoryMapping(source_category="A"),
                CategoryMapping(source_category="A"),
            ])
        assert designer.category_mappings == []

    def test_empty_separator_rejected(self, designer):
        with pytest.raises(ValidationError):
            designer.set_category_separator("")
        assert designer.category_separator == "/"

    def test_coverage(self, designer):
        designer.auto_generate_category_mappings(self.SOURCES)
        designer.update_category_mapping("Sports > Footwear", "")

        assert designer.category_coverage() == (1, 2)


# ===================
# OUTPUT & SNAPSHOTS
# ===================

class TestFullSchema:

    def test_projection(self, generated):
        generated.set_schema_name("Partner feed")
        generated.set_category_separator(" > ")
        generated.auto_generate_category_mappings(["A > B"])

        schema = generated.get_full_schema()

        assert schema.name == "Partner feed"
        assert schema.category_separator == " > "
        assert schema.category_mappings == [CategoryMapping(source_category="A > B", target_category="A > B")]
        assert len(schema.fields) == len(STANDARD_TARGET_FIELDS)

    def test_projection_has_no_side_effects(self, generated):
        assert generated.get_full_schema() == generated.get_full_schema()

    def test_wire_format_is_camel_case(self, generated):
        wire = generated.get_full_schema().to_wire()

        assert set(wire) == {
            "name", "description", "fields",
            "categoryFormat", "categorySeparator", "categoryMappings",
        }
        assert wire["fields"][0]["sourceField"] == "product_id"
        assert wire["fields"][0]["isCustomField"] is False

    def test_snapshot_round_trip(self, generated, history):
        generated.quick_add_field("color")
        generated.auto_generate_category_mappings(["A > B"])
        snapshot = history.record_schema(generated.name, generated.snapshot_fields())

        restored = SchemaDesigner()
        restored.load_snapshot(snapshot)

        assert restored.get_full_schema() == generated.get_full_schema()

    def test_clear(self, generated):
        generated.set_schema_name("Changed")
        generated.auto_generate_category_mappings(["A > B"])

        generated.clear()

        assert generated.name == "My Product Feed Schema"
        assert generated.fields == []
        assert generated.category_mappings == []
