import pytest

from packmerger.errors import InputValidationError
from packmerger.load_config import MergerConfig, load_merge_order, load_program_config
from packmerger.registry import discover_packs, resolve_packs


def test_missing_config_uses_defaults(tmp_path, capsys):
    config = load_program_config(tmp_path / "config.toml")
    assert config.target_version == "1.20.4"
    assert config.safety_margin == 2.0
    assert config.workspace_root == tmp_path / "temp"
    assert config.pack_formats["1.20.4"] == 18
    assert "not found" in capsys.readouterr().out


def test_config_values_and_pack_format_overrides(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        """
target_version = "1.21.4"
safety_margin = 3
workspace_root = "scratch"
output_dir = "dist"
compression_level = 9
max_workers = 3
background_cleanup = true

[pack_formats]
"1.21.4" = 46
"1.21.5" = 55
""",
        encoding="utf-8",
    )
    config = load_program_config(path)
    assert config.target_version == "1.21.4"
    assert config.safety_margin == 3.0
    assert config.workspace_root == tmp_path / "scratch"
    assert config.output_dir == tmp_path / "dist"
    assert config.packs_dir == tmp_path / "packs"
    assert config.compression_level == 9
    assert config.worker_count == 3
    assert config.background_cleanup is True
    assert config.pack_formats["1.21.4"] == 46
    assert config.pack_formats["1.21.5"] == 55
    assert config.pack_formats["1.20.4"] == 18


def test_invalid_toml_raises(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("target_version = [unterminated", encoding="utf-8")
    with pytest.raises(ValueError):
        load_program_config(path)


def test_safety_margin_below_one_rejected(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("safety_margin = 0.5\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_program_config(path)


def test_worker_count_defaults_to_cpu_count():
    assert MergerConfig().worker_count >= 1


def test_load_merge_order(tmp_path):
    path = tmp_path / "order.toml"
    path.write_text('packs = ["base", "overlay.zip"]\noutput = "combined"\n', encoding="utf-8")
    assert load_merge_order(path) == (["base", "overlay.zip"], "combined")


def test_load_merge_order_requires_pack_list(tmp_path):
    path = tmp_path / "order.toml"
    path.write_text('packs = "base"\n', encoding="utf-8")
    with pytest.raises(ValueError):
        load_merge_order(path)


def test_discover_and_resolve_packs(make_pack, make_tree, packs_dir, tmp_path):
    archive = make_pack("Faithful.zip", {"pack.mcmeta": "{}"})
    folder = packs_dir / "folder_pack"
    folder.mkdir()
    (folder / "pack.mcmeta").write_text("{}", encoding="utf-8")
    (packs_dir / "not_a_pack").mkdir()
    (packs_dir / "notes.txt").write_text("x", encoding="utf-8")

    registry = discover_packs(packs_dir)
    assert registry == {"Faithful.zip": archive, "Faithful": archive, "folder_pack": folder}

    outside = make_tree("outside", {"pack.mcmeta": "{}"})
    assert resolve_packs(["Faithful", "folder_pack", str(outside)], registry) == [archive, folder, outside]
    with pytest.raises(InputValidationError):
        resolve_packs(["unknown"], registry)


def test_discover_missing_directory(tmp_path):
    assert discover_packs(tmp_path / "nope") == {}


def test_background_cleanup_must_be_boolean(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('background_cleanup = "false"\n', encoding="utf-8")
    with pytest.raises(ValueError):
        load_program_config(path)


def test_background_cleanup_boolean(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("background_cleanup = true\n", encoding="utf-8")
    assert load_program_config(path).background_cleanup is True
