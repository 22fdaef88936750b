"""
Config loader - YAML config file or [tool.usageflow] in pyproject.toml
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field

try:
    import yaml
except ImportError:
    yaml = None

try:  # py3.11+
    import tomllib as tomli
except ImportError:
    try:
        import tomli
    except ImportError:
        tomli = None


CONFIG_CANDIDATES = [
    "usageflow.yaml",
    "usageflow.yml",
    ".usageflow.yaml",
    ".usageflow.yml",
    "pyproject.toml",  # [tool.usageflow]
]


@dataclass
class UsageflowConfig:
    """Effective analysis configuration"""
    graph: str = "module-graph.yaml"
    # extra or overriding entry points: name -> module id
    entries: Dict[str, str] = field(default_factory=dict)
    # fnmatch patterns of module ids to treat as side-effect free
    side_effect_free: List[str] = field(default_factory=list)
    output: str = "usageflow_results"
    format: str = "svg"
    render: bool = True
    # file the config was read from, None for defaults
    source: Optional[str] = None


def load_config(config_path: Optional[Path] = None, cwd: Optional[Path] = None) -> UsageflowConfig:
    """
    Load configuration.

    Args:
        config_path: explicit config file; searched in ``cwd`` when None
        cwd: directory to search, defaults to the current directory

    Returns:
        UsageflowConfig: loaded config, defaults when nothing was found
    """
    if config_path:
        return _load_config_file(Path(config_path))

    found_config = find_config_file(cwd)
    if found_config:
        return _load_config_file(found_config)

    return UsageflowConfig()


def find_config_file(cwd: Optional[Path] = None) -> Optional[Path]:
    """Return the first config candidate present in ``cwd``."""
    base = Path(cwd) if cwd else Path(".")
    for name in CONFIG_CANDIDATES:
        candidate = base / name
        if candidate.exists():
            if candidate.name == "pyproject.toml":
                if _has_usageflow_config(candidate):
                    return candidate
                continue
            return candidate
    return None


def _load_config_file(config_path: Path) -> UsageflowConfig:
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    if suffix in [".yaml", ".yml"]:
        data = _load_yaml(config_path)
    elif suffix == ".toml":
        data = _load_toml(config_path)
    else:
        raise ValueError(f"unsupported config file format: {suffix}")

    config = _parse_config_data(data or {})
    config.source = str(config_path)
    return config


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    if yaml is None:
        raise ImportError("PyYAML is required to read YAML config files: pip install pyyaml")
    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _load_toml(config_path: Path) -> Dict[str, Any]:
    if tomli is None:
        raise ImportError("tomli is required to read TOML config files: pip install tomli")
    with config_path.open("rb") as f:
        data = tomli.load(f)
    # pyproject.toml layout
    if "tool" in data and "usageflow" in data["tool"]:
        return data["tool"]["usageflow"]
    return data


def _has_usageflow_config(pyproject_path: Path) -> bool:
    if tomli is None:
        return False
    try:
        with pyproject_path.open("rb") as f:
            data = tomli.load(f)
    except (OSError, ValueError):
        return False
    return "tool" in data and "usageflow" in data["tool"]


def _parse_config_data(data: Dict[str, Any]) -> UsageflowConfig:
    config = UsageflowConfig()

    if "graph" in data:
        config.graph = str(data["graph"])
    if "output" in data:
        config.output = str(data["output"])
    if "format" in data:
        config.format = str(data["format"])
    if "render" in data:
        config.render = bool(data["render"])

    entries = data.get("entries")
    if isinstance(entries, dict):
        config.entries = {str(k): str(v) for k, v in entries.items()}
    elif entries is not None:
        raise ValueError("'entries' must be a mapping of entry name to module id")

    sef = data.get("side_effect_free")
    if isinstance(sef, str):
        config.side_effect_free = [sef]
    elif isinstance(sef, list):
        config.side_effect_free = [str(x) for x in sef]

    return config


def create_example_config() -> str:
    """Example usageflow.yaml content"""
    return """# usageflow configuration
version: "1.0"

# module graph description (yaml/json/toml)
graph: "module-graph.yaml"

# extra entry points, merged over the ones declared in the graph
entries: {}
#   admin: "app.admin"

# modules treated as side-effect free (fnmatch on module ids);
# such modules are not expanded while none of their exports is used
side_effect_free: []
#   - "lib.*"

output: "usageflow_results"
format: "svg"
render: true
"""


def save_example_config(output_path: Optional[Path] = None, force: bool = False) -> Path:
    if output_path is None:
        output_path = Path("usageflow.yaml")
    output_path = Path(output_path)
    if output_path.exists() and not force:
        raise FileExistsError(f"config file already exists: {output_path}")

    output_path.write_text(create_example_config(), encoding="utf-8")
    return output_path
