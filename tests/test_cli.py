import sys
import zipfile

import pytest

import cli


def write_config(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('target_version = "1.20.1"\nworkspace_root = "work"\nmax_workers = 2\n', encoding="utf-8")
    return path


def test_cli_merges_named_packs(tmp_path, make_pack, monkeypatch, capsys):
    make_pack("base.zip", {"a.txt": "base", "pack.mcmeta": "{}"})
    make_pack("overlay.zip", {"a.txt": "overlay", "b.txt": "b"})
    config_path = write_config(tmp_path)
    report = tmp_path / "report.xlsx"

    monkeypatch.setattr(
        sys,
        "argv",
        ["cli.py", "base", "overlay.zip", "-o", "combined", "--config-path", str(config_path),
         "--verbose-merge", "--export-path", str(report)],
    )
    cli.main()

    merged = tmp_path / "packs" / "combined.zip"
    with zipfile.ZipFile(merged) as archive:
        assert archive.read("a.txt") == b"overlay"
        assert sorted(archive.namelist()) == ["a.txt", "b.txt", "pack.mcmeta"]
    assert report.exists()
    out = capsys.readouterr().out
    assert "Registered merged pack combined.zip" in out
    assert "a.txt [opaque] overridden: base.zip -> overlay.zip" in out


def test_cli_refuses_to_overwrite(tmp_path, make_pack, monkeypatch):
    make_pack("base.zip", {"a.txt": "base"})
    make_pack("overlay.zip", {"a.txt": "overlay"})
    (tmp_path / "packs" / "combined.zip").write_bytes(b"existing")
    config_path = write_config(tmp_path)

    monkeypatch.setattr(
        sys, "argv", ["cli.py", "base", "overlay", "-o", "combined", "--config-path", str(config_path)]
    )
    with pytest.raises(SystemExit):
        cli.main()
    assert (tmp_path / "packs" / "combined.zip").read_bytes() == b"existing"


def test_cli_unknown_pack(tmp_path, make_pack, monkeypatch):
    make_pack("base.zip", {"a.txt": "base"})
    config_path = write_config(tmp_path)
    monkeypatch.setattr(
        sys, "argv", ["cli.py", "base", "missing", "-o", "combined", "--config-path", str(config_path)]
    )
    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert "input_validation" in str(excinfo.value)


def test_cli_reads_merge_order(tmp_path, make_pack, monkeypatch):
    make_pack("base.zip", {"a.txt": "base"})
    make_pack("overlay.zip", {"a.txt": "overlay"})
    order = tmp_path / "order.toml"
    order.write_text('packs = ["overlay", "base"]\noutput = "ordered"\n', encoding="utf-8")
    config_path = write_config(tmp_path)

    monkeypatch.setattr(
        sys, "argv", ["cli.py", "--merge-order", str(order), "--config-path", str(config_path)]
    )
    cli.main()
    with zipfile.ZipFile(tmp_path / "packs" / "ordered.zip") as archive:
        assert archive.read("a.txt") == b"base"
