# tests/test_cli.py
from __future__ import annotations

import json

import pytest

from conftest import build_c, build_d, source
from ilerpgcheck.cli import EXIT_ERROR, EXIT_INVALID, EXIT_OK, main
from ilerpgcheck.settings import load_settings


@pytest.fixture
def settings_path(tmp_path):
    return str(tmp_path / "settings.json")


@pytest.fixture
def good_file(tmp_path, sample_program):
    path = tmp_path / "GOOD.rpgle"
    path.write_text(sample_program, encoding="utf-8")
    return path


@pytest.fixture
def bad_file(tmp_path):
    path = tmp_path / "BAD.rpgle"
    path.write_text(source(build_c("", "eval", "x = 1;"), build_d("total", "S", "10", "Q")), encoding="utf-8")
    return path


def run(settings_path, *args):
    command, rest = args[0], list(args[1:])
    return main([command, "--settings", settings_path] + rest)


def test_check_clean_file(settings_path, good_file, capsys):
    assert run(settings_path, "check", str(good_file)) == EXIT_OK
    out = capsys.readouterr().out
    assert "Judgment: ✓ Passed" in out
    assert str(good_file) in out


def test_check_file_with_errors(settings_path, good_file, bad_file, capsys):
    assert run(settings_path, "check", str(good_file), str(bad_file)) == EXIT_INVALID
    assert "D_SPEC_DATATYPE" not in capsys.readouterr().out

    run(settings_path, "check", "--verbose-report", str(bad_file))
    assert "Rule: D_SPEC_DATATYPE" in capsys.readouterr().out


def test_check_json_output(settings_path, good_file, bad_file, capsys):
    run(settings_path, "check", "--format", "json", str(bad_file))
    data = json.loads(capsys.readouterr().out)
    assert data["valid"] is False
    assert data["filePath"] == str(bad_file)

    run(settings_path, "check", "--format", "json", str(good_file), str(bad_file))
    assert [r["valid"] for r in json.loads(capsys.readouterr().out)] == [True, False]


def test_check_directory(settings_path, tmp_path, good_file, bad_file, capsys):
    assert run(settings_path, "check", "--summary-only", str(tmp_path)) == EXIT_INVALID
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith(f"{bad_file}: ✗ Failed")
    assert lines[1].startswith(f"{good_file}: ✓ Passed")


def test_level_and_language_options(settings_path, tmp_path, bad_file, capsys):
    # basic では D 仕様書のデータ型を見ない
    path = tmp_path / "TYPE.rpgle"
    path.write_text(build_d("total", "S", "10", "Q"), encoding="utf-8")
    assert run(settings_path, "check", "--level", "basic", str(path)) == EXIT_OK
    assert run(settings_path, "check", str(path)) == EXIT_INVALID
    capsys.readouterr()

    run(settings_path, "check", "--lang", "ja", str(bad_file))
    assert "判定: ✗ 不合格" in capsys.readouterr().out


def test_save_settings(settings_path, good_file):
    run(settings_path, "check", "--level", "strict", "--lang", "ja", "--save-settings", str(good_file))
    options = load_settings(settings_path)
    assert (options.check_level, options.language) == ("strict", "ja")


def test_missing_file_is_an_execution_error(settings_path, tmp_path, capsys):
    assert run(settings_path, "check", str(tmp_path / "missing.rpgle")) == EXIT_ERROR
    assert capsys.readouterr().err.startswith("error: ")


def test_order_command(settings_path, bad_file, good_file, capsys):
    assert run(settings_path, "order", str(bad_file)) == EXIT_INVALID
    out = capsys.readouterr().out
    assert "SPEC_ORDER" in out
    assert out.rstrip().endswith("NG")

    assert run(settings_path, "order", "--format", "json", str(good_file)) == EXIT_OK
    assert json.loads(capsys.readouterr().out) == {"valid": True, "issues": []}


def test_stats_command(settings_path, good_file, capsys):
    assert run(settings_path, "stats", "--format", "json", str(good_file)) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["totalLines"] == 3
    assert data["specificationOrder"] == ["H", "D", "C"]


def test_rules_commands(settings_path, tmp_path, capsys):
    rules_path = str(tmp_path / "rules.json")

    def rules(*args):
        return main(["rules", "--settings", settings_path, "--rules", rules_path] + list(args))

    assert rules(
        "add", "--id", "NO_DSPLY", "--name", "No DSPLY",
        "--pattern", r"\bDSPLY\b", "--message", "DSPLY is for debugging", "--severity", "error",
    ) == EXIT_OK
    rules("list")
    assert "[x] NO_DSPLY" in capsys.readouterr().out

    rules("disable", "NO_DSPLY")
    rules("list")
    assert "[ ] NO_DSPLY" in capsys.readouterr().out

    exported = tmp_path / "exported.json"
    rules("export", "-o", str(exported))
    assert [r["id"] for r in json.loads(exported.read_text(encoding="utf-8"))["rules"]] == ["NO_DSPLY"]

    assert rules("remove", "NO_DSPLY") == EXIT_OK
    assert rules("remove", "NO_DSPLY") == EXIT_ERROR
    assert "not found" in capsys.readouterr().err

    assert rules("import", str(exported)) == EXIT_OK
    rules("list")
    assert "NO_DSPLY" in capsys.readouterr().out


def test_custom_rules_apply_to_check(settings_path, tmp_path, capsys):
    rules_path = str(tmp_path / "rules.json")
    main([
        "rules", "--settings", settings_path, "--rules", rules_path,
        "add", "--id", "NO_DSPLY", "--name", "No DSPLY",
        "--pattern", "DSPLY", "--message", "DSPLY is for debugging", "--severity", "error",
    ])
    path = tmp_path / "DBG.rpgle"
    path.write_text(build_c("", "DSPLY", "'hi'"), encoding="utf-8")

    assert run(settings_path, "check", "--rules", rules_path, str(path)) == EXIT_INVALID
    assert "DSPLY is for debugging" in capsys.readouterr().out


def test_rules_export_to_unwritable_path(settings_path, tmp_path, capsys):
    target = tmp_path / "out"
    target.mkdir()
    code = main([
        "rules", "--settings", settings_path, "--rules", str(tmp_path / "rules.json"),
        "export", "-o", str(target),
    ])
    assert code == EXIT_ERROR
    assert capsys.readouterr().err.startswith("error: Cannot write")
