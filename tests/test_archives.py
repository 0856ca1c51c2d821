import zipfile

import pytest

from packmerger.errors import ExtractionError, PackagingError
from packmerger.extractor import ArchiveExtractor
from packmerger.models import Pack
from packmerger.packer import ArchivePacker, collect_entries


def test_extract_writes_every_file(make_pack, tmp_path):
    archive = make_pack("a.zip", {
        "pack.mcmeta": {"pack": {"pack_format": 15}},
        "assets/minecraft/textures/block/stone.png": b"\x89PNG-a",
    })
    events = []
    tree = ArchiveExtractor(events.append).extract(Pack("a.zip", archive, 0), tmp_path / "out")

    assert tree.owned
    assert [node.path for node in tree.iter_nodes()] == [
        "assets/minecraft/textures/block/stone.png",
        "pack.mcmeta",
    ]
    assert (tmp_path / "out/assets/minecraft/textures/block/stone.png").read_bytes() == b"\x89PNG-a"
    assert [event.stage for event in events] == ["extract_started", "extract_finished"]


def test_extract_skips_directory_entries_and_normalizes_separators(tmp_path):
    archive = tmp_path / "win.zip"
    with zipfile.ZipFile(archive, "w") as handle:
        handle.writestr("assets/", b"")
        handle.writestr("assets\\minecraft\\lang\\en_us.json", b"{}")
    tree = ArchiveExtractor().extract(Pack("win.zip", archive, 0), tmp_path / "out")
    assert [node.path for node in tree.iter_nodes()] == ["assets/minecraft/lang/en_us.json"]


def test_directory_pack_passes_through(make_tree, tmp_path):
    root = make_tree("folder", {"pack.mcmeta": "{}"})
    tree = ArchiveExtractor().extract(Pack("folder", root, 0), tmp_path / "unused")
    assert tree.root == root
    assert not tree.owned
    assert not (tmp_path / "unused").exists()


def test_corrupt_archive_raises_extraction_error(packs_dir, tmp_path):
    broken = packs_dir / "broken.zip"
    broken.write_bytes(b"this is not a zip file")
    with pytest.raises(ExtractionError) as excinfo:
        ArchiveExtractor().extract(Pack("broken.zip", broken, 0), tmp_path / "out")
    assert excinfo.value.pack_name == "broken.zip"


def test_entry_escaping_destination_is_rejected(tmp_path):
    archive = tmp_path / "evil.zip"
    with zipfile.ZipFile(archive, "w") as handle:
        handle.writestr("../../escape.txt", b"nope")
    with pytest.raises(ExtractionError):
        ArchiveExtractor().extract(Pack("evil.zip", archive, 0), tmp_path / "out")
    assert not (tmp_path / "escape.txt").exists()


def test_pack_writes_sorted_entries(make_tree, tmp_path, read_archive):
    tree = make_tree("merged", {"b.txt": "b", "a/z.json": "{}", "a/a.png": b"png"})
    destination = tmp_path / "dist" / "merged.zip"
    ArchivePacker(compression_level=9).pack(tree, destination)

    with zipfile.ZipFile(destination) as handle:
        assert handle.namelist() == ["a/a.png", "a/z.json", "b.txt"]
    assert read_archive(destination)["a/a.png"] == b"png"
    assert list(destination.parent.iterdir()) == [destination]


def test_pack_failure_leaves_no_partial_archive(make_tree, tmp_path, monkeypatch):
    tree = make_tree("merged", {"a.txt": "a"})
    destination = tmp_path / "dist" / "merged.zip"

    def explode(self, *args, **kwargs):
        raise OSError("disk exploded")

    monkeypatch.setattr(zipfile.ZipFile, "write", explode)
    with pytest.raises(PackagingError):
        ArchivePacker().pack(tree, destination)
    assert list((tmp_path / "dist").iterdir()) == []


def test_pack_replaces_existing_archive(make_tree, tmp_path, read_archive):
    destination = tmp_path / "merged.zip"
    destination.write_bytes(b"old")
    ArchivePacker().pack(make_tree("merged", {"new.txt": "new"}), destination)
    assert read_archive(destination) == {"new.txt": b"new"}


def test_invalid_compression_level():
    with pytest.raises(ValueError):
        ArchivePacker(compression_level=12)


def test_collect_entries_uses_posix_paths(make_tree):
    tree = make_tree("t", {"x/y/z.txt": "1"})
    assert collect_entries(tree) == ["x/y/z.txt"]
