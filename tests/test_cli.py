"""Tests for the command-line interface."""

import json
import os
from pathlib import Path

import pytest

from build_freshness.cli import EXIT_FRESH, EXIT_STALE, build_parser, main


def _write_package(root: Path, short_name, version="1.0.0", built=None, deps=None, src=100, dist=200):
    package_dir = root / "kb-labs-core" / "packages" / short_name
    (package_dir / "src").mkdir(parents=True)
    (package_dir / "package.json").write_text(
        json.dumps({"name": f"@kb-labs/{short_name}", "version": version, "dependencies": deps or {}}),
        encoding="utf-8",
    )
    source = package_dir / "src" / "index.ts"
    source.write_text("export {};", encoding="utf-8")
    os.utime(source, (src, src))
    if built is not None:
        (package_dir / "dist").mkdir()
        built_manifest = package_dir / "dist" / "package.json"
        built_manifest.write_text(json.dumps({"version": built}), encoding="utf-8")
        os.utime(built_manifest, (dist, dist))


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    _write_package(tmp_path, "utils", version="2.0.0", built="1.9.0")
    _write_package(tmp_path, "app", built="1.0.0", deps={"@kb-labs/utils": "workspace:*"})
    return tmp_path


def _run(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


def test_json_output_and_stale_exit_code(workspace: Path, capsys):
    code = _run(["--root", str(workspace), "--json"])

    report = json.loads(capsys.readouterr().out)
    assert code == EXIT_STALE
    assert report["rebuildOrder"] == ["@kb-labs/utils", "@kb-labs/app"]
    assert {p["name"]: p["status"] for p in report["packages"]} == {
        "@kb-labs/app": "stale",
        "@kb-labs/utils": "stale",
    }


def test_table_output(workspace: Path, capsys):
    code = _run(["--root", str(workspace), "--suggest-rebuild"])

    out = capsys.readouterr().out
    assert code == EXIT_STALE
    assert "Package Build Freshness Report" in out
    assert "Suggested rebuild order:" in out


def test_tree_output_for_single_package(workspace: Path, capsys):
    _run(["--root", str(workspace), "--tree", "--package", "app"])

    out = capsys.readouterr().out
    assert "@kb-labs/app" in out
    assert "└─ @kb-labs/utils" in out


def test_single_package_json_has_no_out_of_scope_issues(workspace: Path, capsys):
    _run(["--root", str(workspace), "--json", "--package", "app"])

    report = json.loads(capsys.readouterr().out)
    assert [p["name"] for p in report["packages"]] == ["@kb-labs/app"]
    assert all(i["type"] != "unresolved-dependency" for i in report["packages"][0]["issues"])


def test_empty_workspace_exits_cleanly(tmp_path: Path, capsys):
    code = _run(["--root", str(tmp_path)])

    assert code == EXIT_FRESH
    assert "No packages analyzed" in capsys.readouterr().out


def test_exports_written_to_output_dir(workspace: Path, tmp_path: Path, capsys):
    output_dir = tmp_path / "reports"

    _run(["--root", str(workspace), "--md", "--output-dir", str(output_dir), "--export-csv"])

    assert "# Package Build Freshness Report" in capsys.readouterr().out
    assert (output_dir / "freshness_report.json").exists()
    assert (output_dir / "freshness_packages.csv").exists()


def test_export_without_output_dir_is_rejected(workspace: Path):
    assert _run(["--root", str(workspace), "--export-csv"]) == 2


def test_project_prefix_defaults_to_every_directory():
    parser = build_parser()

    assert parser.parse_args([]).project_prefix == ""
    assert parser.parse_args(["--project-prefix", "kb-labs-"]).project_prefix == "kb-labs-"
    prefix_action = next(a for a in parser._actions if a.dest == "project_prefix")
    assert "kb-labs-" in prefix_action.help
