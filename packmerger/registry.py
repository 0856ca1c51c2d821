from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List

from .errors import InputValidationError
from .models import ARCHIVE_SUFFIX, MANIFEST_NAME


def discover_packs(packs_dir: Path) -> Dict[str, Path]:
    """Map pack identifiers to paths for every pack directly under ``packs_dir``.

    Zip archives are registered under both their file name and their stem;
    directories count as packs when they contain a manifest.
    """

    registry: Dict[str, Path] = {}
    if not packs_dir.is_dir():
        return registry
    for path in sorted(packs_dir.iterdir()):
        if path.is_file() and path.suffix.lower() == ARCHIVE_SUFFIX:
            registry[path.name] = path
            registry.setdefault(path.stem, path)
        elif path.is_dir() and (path / MANIFEST_NAME).is_file():
            registry[path.name] = path
    return registry


def resolve_packs(identifiers: Iterable[str], registry: Dict[str, Path]) -> List[Path]:
    resolved: List[Path] = []
    for identifier in identifiers:
        path = registry.get(identifier)
        if path is None:
            candidate = Path(identifier).expanduser()
            if not candidate.exists():
                raise InputValidationError(f"Unknown resource pack: {identifier}")
            path = candidate
        resolved.append(path)
    return resolved
