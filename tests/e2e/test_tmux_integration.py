"""Integration tests against a live tmux server and real git.

These only run from inside a tmux session; they open and close windows in
the current session.
"""

import os
import shlex
import shutil
import subprocess
import sys
import time
import uuid
from pathlib import Path

import pytest

from ko.models.config import SessionConfig, Settings
from ko.services.session import CleanupOutcome, SessionLifecycleManager, build_manager

pytestmark = [
    pytest.mark.tmux,
    pytest.mark.skipif(not os.environ.get("TMUX"), reason="not inside a tmux session"),
    pytest.mark.skipif(
        shutil.which("tmux") is None or shutil.which("git") is None,
        reason="tmux and git are required",
    ),
]


def wait_until(predicate, timeout: float = 15.0) -> bool:
    deadline = time.monotonic() + timeout
    while not predicate() and time.monotonic() < deadline:
        time.sleep(0.1)
    return predicate()


def git(*args: str, cwd: Path) -> None:
    subprocess.run(
        ["git", "-c", "user.name=ko", "-c", "user.email=ko@example.invalid", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / f"korepo-{uuid.uuid4().hex[:6]}"
    root.mkdir()
    git("init", "-q", cwd=root)
    git("commit", "-q", "--allow-empty", "-m", "init", cwd=root)
    monkeypatch.chdir(root)
    return root.resolve()


@pytest.fixture
def manager() -> SessionLifecycleManager:
    return build_manager(Settings(shell_exit_delay=0.3, detached_delay=0.5))


@pytest.fixture
def name() -> str:
    return f"kotest-{uuid.uuid4().hex[:8]}"


def test_create_then_cleanup_window_only(
    manager: SessionLifecycleManager, repo: Path, name: str, tmp_path: Path
) -> None:
    """A window with no worktree behind it is created and closed again."""
    manager.create(repo.name, name, tmp_path, SessionConfig())
    assert manager.exists(name)

    outcome = manager.cleanup(repo.name, name)

    assert outcome is CleanupOutcome.WINDOW_ONLY
    assert not manager.exists(name)


def test_layout_gets_one_pane_per_command(
    manager: SessionLifecycleManager, repo: Path, name: str, tmp_path: Path
) -> None:
    config = SessionConfig(pane_commands=["echo 1", "echo 2", "echo 3"])

    manager.create(repo.name, name, tmp_path, config)
    try:
        window = manager.find_by_worktree(name)
        assert window.name == f"{repo.name}|{name}"
        assert len(manager.tmux.get_panes_for_window(window.index)) == 4
    finally:
        manager.cleanup(repo.name, name)

    assert not manager.exists(name)


def test_cleanup_from_inside_worktree_finishes_in_background(
    manager: SessionLifecycleManager, repo: Path, name: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Removal is handed to a detached process when run from the worktree itself."""
    worktree = repo / ".ko" / name
    worktree.parent.mkdir()
    git("worktree", "add", "-q", str(worktree), cwd=repo)
    manager.create(repo.name, name, worktree, SessionConfig())

    monkeypatch.setenv("KO_DETACHED_DELAY", "0.5")
    monkeypatch.chdir(worktree)
    outcome = manager.cleanup(None, name)

    assert outcome is CleanupOutcome.DETACHED
    assert not manager.exists(name)
    assert worktree.exists()
    assert wait_until(lambda: not worktree.exists())


def test_cleanup_typed_into_own_window(
    manager: SessionLifecycleManager, repo: Path, name: str
) -> None:
    """`ko cleanup` run in the window's own pane closes it and removes the worktree."""
    worktree = repo / ".ko" / name
    worktree.parent.mkdir()
    git("worktree", "add", "-q", str(worktree), cwd=repo)
    window_id = manager.tmux.new_window(f"{repo.name}|{name}", worktree)

    command = f"KO_DETACHED_DELAY=0.5 {shlex.quote(sys.executable)} -m ko cleanup"
    subprocess.run(["tmux", "send-keys", "-t", window_id, command, "C-m"], check=True)

    assert wait_until(lambda: not manager.exists(name))
    assert wait_until(lambda: not worktree.exists())
