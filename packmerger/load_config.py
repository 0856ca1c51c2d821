from __future__ import annotations

import os
import toml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .logging_utils import log_warn
from .metadata import DEFAULT_PACK_FORMATS
from .packer import DEFAULT_COMPRESSION_LEVEL
from .workspace import DEFAULT_SAFETY_MARGIN

DEFAULT_TARGET_VERSION = "1.20.4"


@dataclass(slots=True)
class MergerConfig:
    target_version: str = DEFAULT_TARGET_VERSION
    safety_margin: float = DEFAULT_SAFETY_MARGIN
    workspace_root: Path = Path("temp")
    output_dir: Path = Path("packs")
    packs_dir: Path = Path("packs")
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    max_workers: int = 0
    background_cleanup: bool = False
    pack_formats: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_PACK_FORMATS))

    @property
    def worker_count(self) -> int:
        return self.max_workers if self.max_workers > 0 else (os.cpu_count() or 1)


def _read_toml(path: Path) -> Dict[str, Any]:
    raw_text = path.read_text(encoding="utf-8")
    try:
        return toml.loads(raw_text)
    except toml.TomlDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}") from exc


def load_program_config(config_path: Path) -> MergerConfig:
    """Load merger settings from a TOML file.

    Relative directories are resolved against the config file's directory. A
    ``[pack_formats]`` table adds to (or replaces entries of) the built-in
    version to pack format mapping.
    """

    base_dir = config_path.parent
    config = MergerConfig(
        workspace_root=base_dir / "temp",
        output_dir=base_dir / "packs",
        packs_dir=base_dir / "packs",
    )
    if not config_path.exists():
        log_warn(f"Config file {config_path} not found. Proceeding with defaults.")
        return config

    raw = _read_toml(config_path)
    try:
        if "target_version" in raw:
            config.target_version = str(raw["target_version"])
        if "safety_margin" in raw:
            config.safety_margin = float(raw["safety_margin"])
        if "compression_level" in raw:
            config.compression_level = int(raw["compression_level"])
        if "max_workers" in raw:
            config.max_workers = int(raw["max_workers"])
        if "background_cleanup" in raw:
            if not isinstance(raw["background_cleanup"], bool):
                raise ValueError("'background_cleanup' must be true or false")
            config.background_cleanup = raw["background_cleanup"]
        for key in ("workspace_root", "output_dir", "packs_dir"):
            if key in raw:
                setattr(config, key, base_dir / str(raw[key]))
        for version, pack_format in raw.get("pack_formats", {}).items():
            config.pack_formats[str(version)] = int(pack_format)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid value in config file {config_path}: {exc}") from exc

    if config.safety_margin < 1.0:
        raise ValueError(f"safety_margin must be at least 1.0 in {config_path}")
    return config


def load_merge_order(order_path: Path) -> tuple[List[str], str | None]:
    """Read a saved merge order: ``packs`` (lowest priority first) and ``output``."""

    if not order_path.exists():
        raise ValueError(f"Merge order file {order_path} not found.")
    raw = _read_toml(order_path)
    packs = raw.get("packs")
    if not isinstance(packs, list) or not all(isinstance(name, str) for name in packs):
        raise ValueError(f"'packs' must be a list of pack names in {order_path}")
    output = raw.get("output")
    return packs, str(output) if output is not None else None
