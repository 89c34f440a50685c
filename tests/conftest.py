"""Pytest configuration and fixtures."""
import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from sift.storage import _reset_data_dir

SRC_DIR = Path(__file__).parent.parent / "src"


@pytest.fixture(autouse=True)
def _reset_storage_cache(monkeypatch):
    """Reset cached data dir between tests so monkeypatch.chdir works."""
    monkeypatch.delenv("SIFT_DIR", raising=False)
    monkeypatch.delenv("SIFT_DEBUG", raising=False)
    _reset_data_dir()
    yield
    _reset_data_dir()


@pytest.fixture
def fixtures_dir():
    """Return path to fixtures directory."""
    return Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def sift_dir(tmp_path):
    """Create temp dir with initialized .sift/."""
    sift_path = tmp_path / ".sift"
    sift_path.mkdir()
    (sift_path / "tasks.jsonl").touch()
    (sift_path / "prefix").write_text("sift")
    return tmp_path


@pytest.fixture
def sift_dir_with_fixture(request, tmp_path, fixtures_dir):
    """Load a specific fixture into .sift/.

    Usage:
        @pytest.mark.parametrize("sift_dir_with_fixture", ["three_tasks"], indirect=True)
        def test_something(sift_dir_with_fixture):
            ...
    """
    fixture_name = request.param
    sift_path = tmp_path / ".sift"
    sift_path.mkdir()

    fixture_file = fixtures_dir / f"{fixture_name}.jsonl"
    if fixture_file.exists():
        content = fixture_file.read_text()
    else:
        content = ""

    (sift_path / "tasks.jsonl").write_text(content)
    (sift_path / "prefix").write_text("sift")
    return tmp_path


def run_sift(*args, cwd=None, env=None, input=None):
    """Run sift CLI and return result."""
    if env is None:
        env = {k: v for k, v in os.environ.items() if k not in ("SIFT_DIR", "SIFT_DEBUG")}
    env = dict(env)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
    env.setdefault("SIFT_USER", "tester")
    env.setdefault("PYTHONIOENCODING", "utf-8")
    result = subprocess.run(
        [sys.executable, "-m", "sift.cli", *args],
        capture_output=True,
        text=True,
        encoding="utf-8",
        cwd=cwd,
        env=env,
        input=input,
    )
    return result


def read_tasks(root: Path) -> list[dict]:
    """Tasks stored under root/.sift, in list order."""
    lines = (root / ".sift" / "tasks.jsonl").read_text().splitlines()
    tasks = [json.loads(line) for line in lines if line.strip()]
    return sorted(tasks, key=lambda t: (t["order"], t["id"]))
