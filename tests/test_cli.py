from __future__ import annotations

import json
from pathlib import Path

import pytest

from usageflow.cli import main


GRAPH = """
entries:
  main: app
modules:
  app:
    dependencies:
      - target: lib
        imports: [a]
      - pure
  lib:
    exports: [a, b]
  pure:
    dependencies: [hidden]
  hidden: {}
  orphan: {}
"""


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "module-graph.yaml").write_text(GRAPH, encoding="utf-8")
    return tmp_path


def test_analyze_writes_report(project: Path, capsys) -> None:
    code = main(["analyze", "--output", "out", "--no-render"])
    assert code == 0
    report = json.loads((project / "out" / "usage_report.json").read_text(encoding="utf-8"))
    assert report["summary"]["reachable"] == 4
    assert report["unreachable"] == ["orphan"]
    assert "4/5 modules reachable" in capsys.readouterr().out


def test_analyze_uses_config_side_effect_free_and_entries(project: Path) -> None:
    (project / "usageflow.yaml").write_text(
        "side_effect_free: [pure]\nentries:\n  extra: orphan\nrender: false\n", encoding="utf-8"
    )
    assert main(["analyze"]) == 0
    report = json.loads((project / "usageflow_results" / "usage_report.json").read_text(encoding="utf-8"))
    assert report["pruned"] == ["pure"]
    assert "hidden" in report["unreachable"]
    assert report["entries"] == {"main": "app", "extra": "orphan"}


def test_analyze_entry_flag(project: Path) -> None:
    assert main(["analyze", "--no-render", "--output", "o", "--entry", "side=orphan"]) == 0
    report = json.loads((project / "o" / "usage_report.json").read_text(encoding="utf-8"))
    assert report["unreachable"] == []


def test_analyze_renders_dot(project: Path) -> None:
    assert main(["analyze", "--output", "r"]) == 0
    assert (project / "r" / "usage_graph.dot").exists()


def test_analyze_input_errors(project: Path, capsys) -> None:
    assert main(["analyze", "missing.yaml"]) == 2
    assert main(["analyze", "--entry", "broken"]) == 2
    assert main(["analyze", "--entry", "x=nowhere"]) == 2
    out = capsys.readouterr().out
    assert "missing.yaml" in out


def test_explain(project: Path, capsys) -> None:
    assert main(["explain", "hidden"]) == 0
    out = capsys.readouterr().out
    assert "main: app" in out
    assert "-> pure" in out
    assert "-> hidden" in out

    assert main(["explain", "orphan"]) == 1
    assert main(["explain", "nope"]) == 2


def test_init_and_show_config(project: Path, capsys) -> None:
    assert main(["init"]) == 0
    assert (project / "usageflow.yaml").exists()
    assert main(["init"]) == 2
    assert main(["init", "--force"]) == 0

    assert main(["show-config"]) == 0
    out = capsys.readouterr().out
    assert "graph: module-graph.yaml" in out


def test_no_command_prints_help(capsys) -> None:
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()


def test_verbose_flag_before_or_after_subcommand(project: Path) -> None:
    from usageflow.cli import _build_parser

    parser = _build_parser()
    assert parser.parse_args(["analyze", "-v"]).verbose is True
    assert parser.parse_args(["-v", "analyze"]).verbose is True
    assert parser.parse_args(["analyze"]).verbose is False

    assert main(["analyze", "module-graph.yaml", "--no-render", "-v"]) == 0
    assert (project / "usageflow_results" / "usage_report.json").exists()
