"""Tagged JSON values.

Merge policies work on these variants instead of raw ``dict``/``list`` trees so
every branch checks the variant it handles. ``canonical`` gives the structural
identity used for de-duplication: object keys are sorted, so two objects that
only differ in key order are equal.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

from .errors import JsonParseError


@dataclass(frozen=True, slots=True)
class JsonNull:
    pass


@dataclass(frozen=True, slots=True)
class JsonBool:
    value: bool


@dataclass(frozen=True, slots=True)
class JsonNumber:
    value: Union[int, float]


@dataclass(frozen=True, slots=True)
class JsonString:
    value: str


@dataclass(frozen=True, slots=True)
class JsonArray:
    items: Tuple["JsonValue", ...] = ()


@dataclass(frozen=True, slots=True)
class JsonObject:
    members: Dict[str, "JsonValue"]

    def get(self, key: str) -> "JsonValue | None":
        return self.members.get(key)


JsonValue = Union[JsonNull, JsonBool, JsonNumber, JsonString, JsonArray, JsonObject]


def from_python(obj: Any) -> JsonValue:
    if obj is None:
        return JsonNull()
    # bool before int: bool is an int subclass.
    if isinstance(obj, bool):
        return JsonBool(obj)
    if isinstance(obj, (int, float)):
        return JsonNumber(obj)
    if isinstance(obj, str):
        return JsonString(obj)
    if isinstance(obj, (list, tuple)):
        return JsonArray(tuple(from_python(item) for item in obj))
    if isinstance(obj, dict):
        return JsonObject({str(key): from_python(value) for key, value in obj.items()})
    raise TypeError(f"Unsupported JSON type: {type(obj).__name__}")


def to_python(value: JsonValue) -> Any:
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, (JsonBool, JsonNumber, JsonString)):
        return value.value
    if isinstance(value, JsonArray):
        return [to_python(item) for item in value.items]
    if isinstance(value, JsonObject):
        return {key: to_python(item) for key, item in value.members.items()}
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def canonical(value: JsonValue) -> str:
    return json.dumps(to_python(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def dedupe(items: Iterable[JsonValue]) -> Tuple[JsonValue, ...]:
    """Drop structural duplicates, keeping the first occurrence."""

    seen: set[str] = set()
    unique: List[JsonValue] = []
    for item in items:
        key = canonical(item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return tuple(unique)


def parse_json(text: str) -> JsonValue:
    """Parse JSON text. Raises ``ValueError`` on malformed input."""

    return from_python(json.loads(text))


def dump_json(value: JsonValue) -> str:
    return json.dumps(to_python(value), indent=2, ensure_ascii=False) + "\n"


def load_json_file(path: Path) -> JsonValue:
    """Read and parse a JSON file, raising :class:`JsonParseError` on bad content."""

    try:
        # utf-8-sig: packs authored on Windows often carry a BOM.
        text = path.read_text(encoding="utf-8-sig")
        return parse_json(text)
    except (ValueError, RecursionError) as exc:
        raise JsonParseError(path, str(exc)) from exc


__all__ = [
    "JsonNull",
    "JsonBool",
    "JsonNumber",
    "JsonString",
    "JsonArray",
    "JsonObject",
    "JsonValue",
    "from_python",
    "to_python",
    "canonical",
    "dedupe",
    "parse_json",
    "dump_json",
    "load_json_file",
]
