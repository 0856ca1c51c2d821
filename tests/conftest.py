import json
import zipfile
from pathlib import Path

import pytest

from packmerger import MergeCoordinator, MergerConfig


def _encode(content):
    if isinstance(content, bytes):
        return content
    if isinstance(content, str):
        return content.encode("utf-8")
    return json.dumps(content).encode("utf-8")


@pytest.fixture
def packs_dir(tmp_path):
    path = tmp_path / "packs"
    path.mkdir()
    return path


@pytest.fixture
def make_pack(packs_dir):
    """Build a zip pack from {relative path: bytes | str | JSON-able}."""

    def _make(name, files):
        archive_path = packs_dir / name
        with zipfile.ZipFile(archive_path, "w") as archive:
            for relative, content in files.items():
                archive.writestr(relative, _encode(content))
        return archive_path

    return _make


@pytest.fixture
def make_tree(tmp_path):
    def _make(name, files):
        root = tmp_path / "trees" / name
        for relative, content in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(_encode(content))
        return root

    return _make


@pytest.fixture
def read_archive():
    def _read(path: Path):
        with zipfile.ZipFile(path) as archive:
            return {name: archive.read(name) for name in archive.namelist()}

    return _read


@pytest.fixture
def config(tmp_path, packs_dir):
    return MergerConfig(
        target_version="1.20.4",
        workspace_root=tmp_path / "work",
        output_dir=tmp_path / "out",
        packs_dir=packs_dir,
        max_workers=2,
    )


@pytest.fixture
def coordinator(config):
    coordinator = MergeCoordinator(config)
    yield coordinator
    coordinator.shutdown()
