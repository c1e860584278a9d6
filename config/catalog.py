"""
Standard target field catalog.

Every feed is mapped onto these ten fields. Order matters: it is the order
fields appear in the mapping screen and in generated schemas.
"""

from models.schema import FieldType, TargetFieldSpec


STANDARD_TARGET_FIELDS: tuple[TargetFieldSpec, ...] = (
    TargetFieldSpec(name="id", type=FieldType.STRING, required=True, description="Unique product identifier"),
    TargetFieldSpec(name="title", type=FieldType.STRING, required=True, description="Product title/name"),
    TargetFieldSpec(name="description", type=FieldType.STRING, required=False, description="Product description"),
    TargetFieldSpec(name="price", type=FieldType.NUMBER, required=True, description="Numeric price value"),
    TargetFieldSpec(name="currency", type=FieldType.STRING, required=True, description="Price currency code"),
    TargetFieldSpec(name="category", type=FieldType.STRING, required=True, description="Product category"),
    TargetFieldSpec(name="image", type=FieldType.STRING, required=False, description="Product image URL"),
    TargetFieldSpec(name="link", type=FieldType.STRING, required=True, description="Affiliate link URL"),
    TargetFieldSpec(name="brand", type=FieldType.STRING, required=False, description="Product brand name"),
    TargetFieldSpec(name="availability", type=FieldType.STRING, required=False, description="In stock status"),
)

# Target whose source column feeds category normalization
CATEGORY_TARGET = "category"


def required_field_names(catalog=STANDARD_TARGET_FIELDS) -> list[str]:
    """Names of catalog fields that must be mapped before schema design."""
    return [spec.name for spec in catalog if spec.required]


__all__ = [
    "STANDARD_TARGET_FIELDS",
    "CATEGORY_TARGET",
    "required_field_names",
]
