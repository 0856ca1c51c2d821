from __future__ import annotations

from typing import Dict

from .json_value import JsonArray, JsonObject, JsonValue, canonical, dedupe
from .models import ContentClass

OVERWRITE_MODEL_KEYS = ("parent", "display")


def merge_model(target: JsonValue, source: JsonValue) -> JsonValue:
    """Merge two model (or blockstate) definitions.

    ``parent`` and ``display`` come from the source when it defines them,
    ``textures`` are merged key by key, ``elements`` accumulate and
    ``overrides`` from the source are appended unless a structurally equal
    override is already present in the target. Any other top-level key defined
    by the source replaces the target's.
    """

    if not isinstance(target, JsonObject) or not isinstance(source, JsonObject):
        return source

    merged: Dict[str, JsonValue] = dict(target.members)
    for key, value in source.members.items():
        existing = merged.get(key)
        if key in OVERWRITE_MODEL_KEYS or existing is None:
            merged[key] = value
        elif key == "textures":
            merged[key] = _shallow_merge(existing, value)
        elif key == "elements":
            merged[key] = _concat(existing, value)
        elif key == "overrides":
            merged[key] = _merge_overrides(existing, value)
        else:
            merged[key] = value
    return JsonObject(merged)


def merge_language(target: JsonValue, source: JsonValue) -> JsonValue:
    return _shallow_merge(target, source)


def deep_merge(target: JsonValue, source: JsonValue) -> JsonValue:
    if isinstance(target, JsonObject) and isinstance(source, JsonObject):
        merged: Dict[str, JsonValue] = dict(target.members)
        for key, value in source.members.items():
            existing = merged.get(key)
            merged[key] = value if existing is None else deep_merge(existing, value)
        return JsonObject(merged)
    if isinstance(target, JsonArray) and isinstance(source, JsonArray):
        return JsonArray(dedupe(target.items + source.items))
    return source


def merge_json(target: JsonValue | None, source: JsonValue, content_class: ContentClass) -> JsonValue:
    """Merge ``source`` into ``target`` using the policy for ``content_class``."""

    if target is None:
        return source
    if content_class is ContentClass.MODEL:
        return merge_model(target, source)
    if content_class is ContentClass.LANGUAGE:
        return merge_language(target, source)
    if content_class is ContentClass.GENERIC_JSON:
        return deep_merge(target, source)
    raise ValueError(f"No JSON merge policy for content class {content_class.value!r}")


def _shallow_merge(target: JsonValue, source: JsonValue) -> JsonValue:
    if not isinstance(target, JsonObject) or not isinstance(source, JsonObject):
        return source
    merged = dict(target.members)
    merged.update(source.members)
    return JsonObject(merged)


def _concat(target: JsonValue, source: JsonValue) -> JsonValue:
    if not isinstance(target, JsonArray) or not isinstance(source, JsonArray):
        return source
    return JsonArray(target.items + source.items)


def _merge_overrides(target: JsonValue, source: JsonValue) -> JsonValue:
    if not isinstance(target, JsonArray) or not isinstance(source, JsonArray):
        return source
    existing = {canonical(item) for item in target.items}
    additions = tuple(item for item in source.items if canonical(item) not in existing)
    return JsonArray(target.items + additions)


__all__ = ["merge_json", "merge_model", "merge_language", "deep_merge"]
