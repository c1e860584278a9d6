"""
Row/header normalization shared by all format parsers.

Parsers hand over whatever values their format produced; this module turns
them into RawRecords (every header present, every value a string).

Value coercion goes through FeedValue, a small tagged union, so the rules
live in one place:
    - None / missing   -> ""
    - bool             -> "true" / "false"
    - int / float      -> shortest text, integral floats without ".0"
    - dict / list      -> compact JSON
    - anything else    -> str(value)
"""

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from models.feed import RawRecord


class ValueKind(str, Enum):
    EMPTY = "empty"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"


@dataclass(frozen=True)
class FeedValue:
    """A source value tagged with its kind."""
    kind: ValueKind
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> "FeedValue":
        if value is None:
            return cls(ValueKind.EMPTY)
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls(ValueKind.BOOLEAN, value)
        if isinstance(value, (int, float)):
            return cls(ValueKind.NUMBER, value)
        if isinstance(value, (dict, list)):
            return cls(ValueKind.JSON, value)
        return cls(ValueKind.STRING, value if isinstance(value, str) else str(value))

    def as_text(self) -> str:
        if self.kind is ValueKind.EMPTY:
            return ""
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind is ValueKind.NUMBER:
            return _number_text(self.value)
        if self.kind is ValueKind.JSON:
            return json.dumps(self.value, ensure_ascii=False, separators=(",", ":"))
        return self.value


def _number_text(value: float) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
    return str(value)


def stringify_value(value: Any) -> str:
    """Coerce any parsed value to its RawRecord string."""
    return FeedValue.of(value).as_text()


@dataclass
class ParseResult:
    """Headers and rows produced by a format parser."""
    headers: list[str] = field(default_factory=list)
    rows: list[RawRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.headers and not self.rows


def unique_headers(keys: Iterable[str]) -> list[str]:
    """Deduplicate keys, keeping first-appearance order."""
    return list(dict.fromkeys(keys))


def build_rows(items: Iterable[Mapping[str, Any]], headers: list[str]) -> list[RawRecord]:
    """
    Rebuild items so each carries every header.

    Missing keys become "", other values are stringified.
    """
    rows: list[RawRecord] = []
    for item in items:
        rows.append({header: stringify_value(item.get(header)) for header in headers})
    return rows
