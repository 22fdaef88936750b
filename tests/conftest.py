import sys
from pathlib import Path

import pytest

# Ensure repo_root/src is available on sys.path before any tests import project modules
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def build_graph():
    """Build (graph, entries) from an in-memory graph description."""
    from usageflow.graph_loader import parse_graph_data

    def _build(modules: dict, entries: dict):
        return parse_graph_data({"modules": modules, "entries": entries})

    return _build
