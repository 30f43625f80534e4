"""Shared test fixtures for ko tests."""

from pathlib import Path

import pytest
from fakes import FakeRunner

import ko.logging_config
from ko.models.config import SessionConfig, Settings
from ko.services.git import GitService
from ko.services.session import SessionLifecycleManager
from ko.services.tmux import TmuxService


@pytest.fixture(autouse=True)
def isolated_logs(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Keep log files out of the real home directory."""
    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setattr(ko.logging_config, "_log_dir", log_dir)
    return log_dir


@pytest.fixture(autouse=True)
def no_tmux_pane(monkeypatch: pytest.MonkeyPatch) -> None:
    """Forget the pane the test runner itself may be sitting in."""
    monkeypatch.delenv("TMUX_PANE", raising=False)


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Return a fresh recording runner."""
    return FakeRunner()


@pytest.fixture
def in_tmux(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend to run inside a tmux session."""
    monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,1234,0")


@pytest.fixture
def outside_tmux(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend to run outside tmux."""
    monkeypatch.delenv("TMUX", raising=False)


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    """Create a directory standing in for the main repository root."""
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    return root.resolve()


@pytest.fixture
def git_repo_responses(fake_runner: FakeRunner, repo_root: Path) -> FakeRunner:
    """Make the fake runner answer git queries as if inside repo_root's main checkout."""
    git_dir = str(repo_root / ".git")
    fake_runner.respond("git", "rev-parse", "--is-inside-work-tree", output="true\n")
    fake_runner.respond("git", "rev-parse", "--git-dir", output=git_dir + "\n")
    fake_runner.respond("git", "rev-parse", "--git-common-dir", output=git_dir + "\n")
    return fake_runner


@pytest.fixture
def sleeps() -> list[float]:
    """Collects the delays a manager asked to sleep for."""
    return []


@pytest.fixture
def manager(fake_runner: FakeRunner, sleeps: list[float]) -> SessionLifecycleManager:
    """Build a manager wired to the fake runner with a recording sleep."""
    return SessionLifecycleManager(
        tmux=TmuxService(runner=fake_runner),
        git=GitService(runner=fake_runner),
        runner=fake_runner,
        settings=Settings(shell_exit_delay=1.0, detached_delay=2.0),
        config_loader=lambda _root: SessionConfig(pane_commands=["echo 1"]),
        sleep=sleeps.append,
    )
