from __future__ import annotations

from pathlib import Path

import pytest

from usageflow.config_loader import (
    UsageflowConfig,
    create_example_config,
    find_config_file,
    load_config,
    save_example_config,
)


def test_defaults_when_no_config(tmp_path: Path) -> None:
    config = load_config(cwd=tmp_path)
    assert config == UsageflowConfig()
    assert config.source is None


def test_yaml_config(tmp_path: Path) -> None:
    (tmp_path / "usageflow.yaml").write_text(
        """
graph: build/graph.json
entries:
  admin: app.admin
side_effect_free: "lib.*"
output: out
format: png
render: false
""",
        encoding="utf-8",
    )
    found = find_config_file(tmp_path)
    assert found == tmp_path / "usageflow.yaml"

    config = load_config(cwd=tmp_path)
    assert config.graph == "build/graph.json"
    assert config.entries == {"admin": "app.admin"}
    assert config.side_effect_free == ["lib.*"]
    assert config.output == "out"
    assert config.format == "png"
    assert config.render is False
    assert config.source == str(found)


def test_pyproject_tool_section(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
[project]
name = "demo"

[tool.usageflow]
graph = "graph.yaml"
side_effect_free = ["vendor.*", "lib.*"]
""",
        encoding="utf-8",
    )
    config = load_config(cwd=tmp_path)
    assert config.graph == "graph.yaml"
    assert config.side_effect_free == ["vendor.*", "lib.*"]


def test_pyproject_without_section_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n', encoding="utf-8")
    assert find_config_file(tmp_path) is None


def test_yaml_takes_precedence_over_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[tool.usageflow]\nformat = "pdf"\n', encoding="utf-8")
    (tmp_path / ".usageflow.yml").write_text("format: png\n", encoding="utf-8")
    assert load_config(cwd=tmp_path).format == "png"


def test_explicit_config_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
    bad = tmp_path / "usageflow.cfg"
    bad.write_text("x", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(bad)
    entries = tmp_path / "entries.yaml"
    entries.write_text("entries: [a, b]\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(entries)


def test_example_config_round_trip(tmp_path: Path) -> None:
    path = save_example_config(tmp_path / "usageflow.yaml")
    assert path.read_text(encoding="utf-8") == create_example_config()
    config = load_config(path)
    assert config.graph == "module-graph.yaml"
    assert config.entries == {}
    assert config.render is True

    with pytest.raises(FileExistsError):
        save_example_config(path)
    save_example_config(path, force=True)
