# tests/test_cli.py
import json
import sys

import pytest
from unittest.mock import patch

from mdscope.cli import main


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A small markdown project; history goes to a private directory."""
    monkeypatch.setenv("MDSCOPE_HOME", str(tmp_path / "home"))

    root = tmp_path / "proj"
    (root / "docs").mkdir(parents=True)
    (root / "README.md").write_text("# Project\nHello world\n", encoding="utf-8")
    (root / "docs" / "setup-guide.md").write_text("Install\nthen say hello world\n", encoding="utf-8")
    (root / "notes.md").write_text("world peace\n", encoding="utf-8")
    (root / "script.py").write_text("print('hello world')\n", encoding="utf-8")
    (root / ".gitignore").write_text("notes.md\n", encoding="utf-8")
    return root


def run(*argv):
    with patch.object(sys, "argv", ["mdscope", *argv]):
        main()


# --- Test 1: scan ---

def test_scan_lists_markdown(project, capsys):
    run("scan", str(project))
    out = capsys.readouterr().out
    assert "README.md" in out
    assert "docs/setup-guide.md" in out
    assert "notes.md" not in out
    assert "script.py" not in out
    assert "Total files: 2" in out


def test_scan_all_files_json(project, capsys):
    run("scan", str(project), "--all", "--json")
    payload = json.loads(capsys.readouterr().out)
    assert {e["relativePath"] for e in payload} == {"README.md", "docs/setup-guide.md", "script.py"}
    assert all(e["id"] == e["relativePath"] for e in payload)


def test_scan_tree(project, capsys):
    run("scan", str(project), "--tree")
    out = capsys.readouterr().out
    assert out.startswith("proj/\n")
    assert "├── docs/" in out


def test_scan_batched(project, capsys):
    run("scan", str(project), "--batched", "1")
    captured = capsys.readouterr()
    assert "batch 2: 1 files" in captured.err
    assert "Total files: 2" in captured.out


# --- Test 2: find & search ---

def test_find(project, capsys):
    run("find", "setup", str(project))
    out = capsys.readouterr().out
    assert "docs/setup-guide.md" in out
    assert "README.md" not in out


def test_search_content_json_and_history(project, capsys):
    run("search", "world", str(project), "--json")
    payload = json.loads(capsys.readouterr().out)
    assert [r["path"] for r in payload] == ["README.md", "docs/setup-guide.md"]
    assert payload[0]["matches"][0]["lineNumber"] == 2
    assert payload[0]["matches"][0]["text"] == "Hello world"

    run("history", str(project))
    assert capsys.readouterr().out.strip().splitlines() == ["world"]


def test_search_filename_mode(project, capsys):
    run("search", "readme", str(project), "--mode", "filename", "--no-history")
    out = capsys.readouterr().out
    assert "--- README.md ---" in out
    assert "1 files" in out

    run("history", str(project))
    assert "No search history." in capsys.readouterr().out


def test_history_add_and_clear(project, capsys):
    run("history", str(project), "--add", "mermaid")
    run("history", str(project), "--add", "x")
    assert capsys.readouterr().out.strip().splitlines() == ["mermaid", "mermaid"]

    run("history", str(project), "--clear")
    run("history", str(project))
    assert "No search history." in capsys.readouterr().out


# --- Test 3: errors ---

def test_invalid_directory_exits(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        run("scan", str(tmp_path / "missing"))
    assert exc.value.code == 1
    assert "Invalid directory" in capsys.readouterr().err


def test_bad_config_exits_with_2(project, capsys):
    (project / ".mdscope.toml").write_text("[search]\nline_trim = -1\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        run("scan", str(project))
    assert exc.value.code == 2
    assert "search.line_trim" in capsys.readouterr().err
