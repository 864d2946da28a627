# tests/conftest.py
import sys
from pathlib import Path

import pytest

# Make src/ importable without an editable install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from contextpack.models import ScanConfig  # noqa: E402


def write_lines(path: Path, count: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"line {i}\n" for i in range(count)), encoding="utf-8")
    return path


@pytest.fixture(name="write_lines")
def write_lines_fixture():
    return write_lines


@pytest.fixture
def bare_config():
    """A config with no exclusion rules beyond the hidden-file default."""
    def _make(root: Path, **overrides) -> ScanConfig:
        return ScanConfig(root=root, **overrides)
    return _make


@pytest.fixture
def sample_project(tmp_path):
    """
    A small project:
    - a.go (50 lines), README.md (10 lines), data.json (1 line)
    - src/app.py, src/util/helpers.py
    - node_modules/pkg/index.js (pruned by default rules)
    - .env (hidden)
    """
    write_lines(tmp_path / "a.go", 50)
    write_lines(tmp_path / "README.md", 10)
    (tmp_path / "data.json").write_text('{"key": "value"}\n', encoding="utf-8")
    write_lines(tmp_path / "src" / "app.py", 5)
    write_lines(tmp_path / "src" / "util" / "helpers.py", 3)
    write_lines(tmp_path / "node_modules" / "pkg" / "index.js", 2)
    write_lines(tmp_path / "node_modules" / "pkg" / "lib.js", 2)
    (tmp_path / ".env").write_text("SECRET=1\n", encoding="utf-8")
    return tmp_path
