from __future__ import annotations

from pathlib import Path

import pytest

from ._workspace_path import ensure_workspace_packages_importable

ensure_workspace_packages_importable()

from tests.support import FakeFileSystem  # noqa: E402

FAKE_ROOT = Path("/fake/root")


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    """Empty in-memory filesystem with ``/fake/root`` created."""
    fs = FakeFileSystem()
    fs.add_dir(FAKE_ROOT)
    return fs


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """``a.txt`` plus ``sub/b.txt`` below a fresh directory."""
    root = tmp_path / "R"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("a\n", encoding="utf-8")
    (root / "sub" / "b.txt").write_text("bb\n", encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep user-level config out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-empty"))
    monkeypatch.delenv("TREEWALK_CONFIG_PATH", raising=False)
