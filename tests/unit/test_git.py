"""Tests for the git service."""

from pathlib import Path

import pytest
from fakes import FakeRunner

from ko.exceptions import DependencyMissingError, ExternalToolError
from ko.services.git import GitService, WorktreeInfo

PORCELAIN = """\
worktree /work/repo
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /work/repo/.ko/feature
HEAD 2222222222222222222222222222222222222222
branch refs/heads/feature

worktree /work/repo/.ko/spike
HEAD 3333333333333333333333333333333333333333
detached

worktree /elsewhere/scratch
HEAD 4444444444444444444444444444444444444444
branch refs/heads/scratch
"""


@pytest.fixture
def git(fake_runner: FakeRunner) -> GitService:
    return GitService(runner=fake_runner)


class TestRepositoryQueries:
    """Tests for repository and worktree detection."""

    def test_is_repo(self, git: GitService, fake_runner: FakeRunner) -> None:
        assert git.is_repo()
        fake_runner.respond("git", "rev-parse", "--is-inside-work-tree", returncode=128)
        assert not git.is_repo()

    def test_main_repo_root_from_worktree(self, git: GitService, fake_runner: FakeRunner) -> None:
        """Test that the common git dir, not the worktree, decides the root."""
        fake_runner.respond("git", "rev-parse", "--git-common-dir", output="/work/repo/.git\n")
        assert git.main_repo_root() == Path("/work/repo").resolve()

    def test_relative_git_dir_resolved_against_cwd(
        self, fake_runner: FakeRunner, tmp_path: Path
    ) -> None:
        git = GitService(runner=fake_runner, cwd=tmp_path)
        fake_runner.respond("git", "rev-parse", "--git-common-dir", output=".git\n")
        assert git.main_repo_root() == tmp_path.resolve()
        assert git.repo_name() == tmp_path.resolve().name

    def test_inside_linked_worktree(self, git: GitService, fake_runner: FakeRunner) -> None:
        fake_runner.respond(
            "git", "rev-parse", "--git-dir", output="/work/repo/.git/worktrees/feature\n"
        )
        fake_runner.respond("git", "rev-parse", "--git-common-dir", output="/work/repo/.git\n")
        assert git.is_inside_worktree()

    def test_main_checkout_is_not_a_worktree(
        self, git: GitService, fake_runner: FakeRunner
    ) -> None:
        fake_runner.respond("git", "rev-parse", "--git-dir", output="/work/repo/.git\n")
        fake_runner.respond("git", "rev-parse", "--git-common-dir", output="/work/repo/.git\n")
        assert not git.is_inside_worktree()

    def test_missing_git(self, git: GitService, fake_runner: FakeRunner) -> None:
        fake_runner.respond("git", "--version", returncode=127)
        with pytest.raises(DependencyMissingError, match="git"):
            git.ensure_dependencies()


class TestWorktrees:
    """Tests for worktree creation, removal and listing."""

    def test_create_worktree(self, git: GitService, fake_runner: FakeRunner) -> None:
        git.create_worktree(Path("/work/repo/.ko/feature"))
        assert fake_runner.calls == [["git", "worktree", "add", "/work/repo/.ko/feature"]]

    def test_create_failure_keeps_git_output(
        self, git: GitService, fake_runner: FakeRunner
    ) -> None:
        fake_runner.respond(
            "git",
            "worktree",
            "add",
            returncode=128,
            output="fatal: 'feature' is already checked out",
        )
        with pytest.raises(ExternalToolError, match="already checked out"):
            git.create_worktree(Path("/work/repo/.ko/feature"))

    def test_remove_worktree_forces(self, git: GitService, fake_runner: FakeRunner) -> None:
        git.remove_worktree(Path("/work/repo/.ko/feature"))
        assert fake_runner.calls == [
            ["git", "worktree", "remove", "--force", "/work/repo/.ko/feature"]
        ]

    def test_list_only_ko_worktrees(self, git: GitService, fake_runner: FakeRunner) -> None:
        fake_runner.respond("git", "worktree", "list", output=PORCELAIN)
        fake_runner.respond(
            "git", "rev-parse", "--git-dir", output="/work/repo/.git/worktrees/feature\n"
        )
        fake_runner.respond("git", "rev-parse", "--git-common-dir", output="/work/repo/.git\n")
        fake_runner.respond(
            "git", "rev-parse", "--show-toplevel", output="/work/repo/.ko/feature\n"
        )

        worktrees = git.list_worktrees()

        assert worktrees == [
            WorktreeInfo(
                name="feature",
                path=Path("/work/repo/.ko/feature"),
                branch="feature",
                is_current=True,
            ),
            WorktreeInfo(name="spike", path=Path("/work/repo/.ko/spike"), branch="(detached)"),
        ]
