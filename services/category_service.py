"""
Category normalization.

Feed categories arrive as ">"-delimited paths, e.g.
"Electronics > Audio > Headphones". They are rewritten either as the whole
path joined with a configurable separator (hierarchical) or as the leaf
segment only (flat).
"""

import re
from typing import Iterable, Optional, Sequence

import structlog

from models.schema import CategoryFormat, CategoryMapping

logger = structlog.get_logger(__name__)

SOURCE_DELIMITER = ">"
_DELIMITER_WITH_SPACES = re.compile(r"\s*>\s*")


def category_segments(source_category: str) -> list[str]:
    """Trimmed path segments of a source category."""
    return [segment.strip() for segment in source_category.split(SOURCE_DELIMITER)]


def normalize_category(
    source_category: str,
    category_format: CategoryFormat,
    separator: str = "/",
) -> str:
    """
    Normalize one source category.

    Examples:
        "A > B > C", FLAT                -> "C"
        "A > B > C", HIERARCHICAL, "/"   -> "A/B/C"
    """
    if category_format is CategoryFormat.FLAT:
        return category_segments(source_category)[-1]
    return _DELIMITER_WITH_SPACES.sub(lambda _: separator, source_category.strip())


def collect_source_categories(values: Iterable[str]) -> list[str]:
    """Distinct non-blank category values, trimmed, first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        category = (value or "").strip()
        if category:
            seen.setdefault(category, None)
    return list(seen)


def build_category_mappings(
    source_categories: Sequence[str],
    category_format: CategoryFormat,
    separator: str,
    existing: Optional[Sequence[CategoryMapping]] = None,
) -> list[CategoryMapping]:
    """
    Category mapping table for `source_categories`.

    A source already present in `existing` with a non-blank target keeps it
    (it may have been edited by hand); new sources and cleared targets get a
    freshly normalized target.
    """
    kept = {m.source_category: m.target_category for m in existing or ()}
    mappings = []
    fresh = 0
    for source in dict.fromkeys(source_categories):
        if kept.get(source):
            target = kept[source]
        else:
            target = normalize_category(source, category_format, separator)
            fresh += 1
        mappings.append(CategoryMapping(source_category=source, target_category=target))

    logger.info(
        "category_mappings_built",
        total=len(mappings),
        fresh=fresh,
        category_format=category_format.value,
    )
    return mappings
