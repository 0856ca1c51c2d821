from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Mapping, Tuple

from .errors import JsonParseError
from .file_utils import write_text_atomic
from .json_value import JsonNumber, JsonObject, JsonString, JsonValue, dump_json, load_json_file
from .logging_utils import log_info, log_warn
from .models import MANIFEST_NAME, PackManifest

DESCRIPTION_TEMPLATE = "Merged Resource Pack (Format: {pack_format})"

# Game version -> pack_format. Entries from the config file's [pack_formats]
# table are layered on top of these.
DEFAULT_PACK_FORMATS: Dict[str, int] = {
    "1.13": 4, "1.13.1": 4, "1.13.2": 4,
    "1.14": 4, "1.14.1": 4, "1.14.2": 4, "1.14.3": 4, "1.14.4": 4,
    "1.15": 5, "1.15.1": 5, "1.15.2": 5,
    "1.16": 5, "1.16.1": 5,
    "1.16.2": 6, "1.16.3": 6, "1.16.4": 6, "1.16.5": 6,
    "1.17": 7, "1.17.1": 7,
    "1.18": 7, "1.18.1": 7,
    "1.18.2": 8,
    "1.19.1": 9, "1.19.2": 9,
    "1.19.3": 12,
    "1.19.4": 13,
    "1.20": 15, "1.20.1": 15,
    "1.20.2": 17,
    "1.20.3": 18, "1.20.4": 18,
    "1.21": 22, "1.21.1": 22, "1.21.2": 22, "1.21.3": 22,
    "1.21.4": 22, "1.21.5": 22, "1.21.6": 22, "1.21.7": 22,
}

VERSION_PATTERN = re.compile(r"^\d+(\.\d+)*$")

Version = Tuple[int, ...]


def parse_version(raw: str) -> Version | None:
    """Turn ``1.20.4-R0.1-SNAPSHOT`` into ``(1, 20, 4)``."""

    core = raw.strip().split("-", 1)[0]
    if not VERSION_PATTERN.match(core):
        return None
    parts = tuple(int(part) for part in core.split("."))
    # "1.20" and "1.20.0" name the same release.
    while len(parts) > 2 and parts[-1] == 0:
        parts = parts[:-1]
    return parts


def resolve_pack_format(version: str, table: Mapping[str, int] | None = None) -> int:
    """Look up the pack format for a game version.

    Exact matches win. Otherwise the newest known entry of the same
    major.minor line that is not newer than ``version`` is used (the oldest of
    that line if all are newer). Versions beyond every known entry get the
    newest known format, versions before every entry the oldest; unparseable
    versions get the newest.
    """

    known: Dict[Version, int] = {}
    for key, value in (table if table is not None else DEFAULT_PACK_FORMATS).items():
        parsed = parse_version(key)
        if parsed is not None:
            known[parsed] = int(value)
    if not known:
        raise ValueError("The pack format table is empty.")

    ordered = sorted(known)
    newest = known[ordered[-1]]
    requested = parse_version(version)
    if requested is None:
        return newest
    if requested in known:
        return known[requested]

    line = [entry for entry in ordered if entry[:2] == requested[:2]]
    if line:
        not_newer = [entry for entry in line if entry <= requested]
        return known[not_newer[-1]] if not_newer else known[line[0]]
    if requested > ordered[-1]:
        return newest
    if requested < ordered[0]:
        return known[ordered[0]]
    older = [entry for entry in ordered if entry < requested]
    return known[older[-1]]


class MetadataRewriter:
    def __init__(self, pack_formats: Mapping[str, int] | None = None) -> None:
        self.pack_formats = dict(DEFAULT_PACK_FORMATS if pack_formats is None else pack_formats)

    def rewrite(self, output_dir: Path, target_version: str) -> PackManifest:
        manifest_path = output_dir / MANIFEST_NAME
        document = self._load(manifest_path)

        pack_format = resolve_pack_format(target_version, self.pack_formats)
        description = DESCRIPTION_TEMPLATE.format(pack_format=pack_format)

        section = document.get("pack")
        members: Dict[str, JsonValue] = dict(section.members) if isinstance(section, JsonObject) else {}
        required: Dict[str, JsonValue] = {
            "pack_format": JsonNumber(pack_format),
            "description": JsonString(description),
        }
        members.update(required)
        updated = dict(document.members)
        updated["pack"] = JsonObject(members)

        try:
            write_text_atomic(manifest_path, dump_json(JsonObject(updated)))
        except (ValueError, RecursionError) as exc:
            # Kept keys may hold lone surrogates or nest too deeply to serialize.
            log_warn(f"Cannot keep existing {MANIFEST_NAME} keys ({exc}); writing a fresh manifest.")
            write_text_atomic(manifest_path, dump_json(JsonObject({"pack": JsonObject(required)})))
        log_info(f"Setting merged pack format to {pack_format} for version {target_version}")
        return PackManifest(pack_format=pack_format, description=description)

    def _load(self, manifest_path: Path) -> JsonObject:
        if not manifest_path.exists():
            return JsonObject({})
        try:
            document = load_json_file(manifest_path)
        except JsonParseError as exc:
            log_warn(f"{exc}; starting from an empty manifest.")
            return JsonObject({})
        if not isinstance(document, JsonObject):
            log_warn(f"{manifest_path.name} is not a JSON object; starting from an empty manifest.")
            return JsonObject({})
        return document


__all__ = [
    "DEFAULT_PACK_FORMATS",
    "MetadataRewriter",
    "PackManifest",
    "parse_version",
    "resolve_pack_format",
]
