"""Git and worktree management service."""

from dataclasses import dataclass, field
from pathlib import Path

from ko.exceptions import DependencyMissingError, ExternalToolError
from ko.logging_config import get_logger
from ko.models.config import WORKTREE_NAMESPACE
from ko.services.runner import CancellationToken, ProcessRunner

logger = get_logger("ko.services.git")


@dataclass
class WorktreeInfo:
    """A ko-managed worktree as reported by `git worktree list`."""

    name: str
    path: Path
    branch: str = ""
    is_current: bool = False


@dataclass
class GitService:
    """Service for git repository and worktree operations."""

    runner: ProcessRunner = field(default_factory=ProcessRunner)
    binary: str = "git"
    cwd: Path | None = None

    def _git(self, *args: str, token: CancellationToken | None = None) -> str:
        return self.runner.run([self.binary, *args], token=token, cwd=self.cwd).output.strip()

    def _workdir(self) -> Path:
        return self.cwd if self.cwd is not None else Path.cwd()

    def _resolve(self, path: str) -> Path:
        # git prints some of these paths relative to the working directory
        return (self._workdir() / path).resolve()

    def check_dependencies(self) -> list[str]:
        """Check for required dependencies and return list of missing ones."""
        try:
            self._git("--version")
        except ExternalToolError:
            return ["git"]
        return []

    def ensure_dependencies(self) -> None:
        """Ensure all required dependencies are installed."""
        missing = self.check_dependencies()
        if missing:
            raise DependencyMissingError(missing)

    def is_repo(self, token: CancellationToken | None = None) -> bool:
        """Check if the working directory is inside a git repository."""
        result = self.runner.run(
            [self.binary, "rev-parse", "--is-inside-work-tree"],
            token=token,
            cwd=self.cwd,
            check=False,
        )
        return result.success

    def is_inside_worktree(self, token: CancellationToken | None = None) -> bool:
        """Check if the working directory is a linked worktree, not the main checkout.

        In a linked worktree git-dir and git-common-dir differ.
        """
        try:
            git_dir = self._resolve(self._git("rev-parse", "--git-dir", token=token))
            common_dir = self._resolve(self._git("rev-parse", "--git-common-dir", token=token))
        except ExternalToolError:
            return False
        return git_dir != common_dir

    def main_repo_root(self, token: CancellationToken | None = None) -> Path:
        """Get the root of the main repository, even from inside a worktree."""
        common_dir = self._git("rev-parse", "--git-common-dir", token=token)
        return self._resolve(common_dir).parent

    def current_worktree_path(self, token: CancellationToken | None = None) -> Path:
        """Get the top-level directory of the current checkout."""
        return Path(self._git("rev-parse", "--show-toplevel", token=token))

    def repo_name(self, token: CancellationToken | None = None) -> str:
        """Get the repository name (the main checkout's directory name)."""
        return self.main_repo_root(token=token).name

    def create_worktree(self, path: Path, token: CancellationToken | None = None) -> None:
        """Create a new worktree at the given path.

        Raises:
            ExternalToolError: With git's own output if creation fails
        """
        logger.info(f"Creating worktree at {path}")
        self._git("worktree", "add", str(path), token=token)

    def remove_worktree(
        self,
        path: Path,
        token: CancellationToken | None = None,
        cwd: Path | None = None,
    ) -> None:
        """Force-remove the worktree at the given path.

        Args:
            path: Worktree directory
            cwd: Directory to run git from; must not be inside the worktree

        Raises:
            ExternalToolError: With git's own output if removal fails
        """
        logger.info(f"Removing worktree at {path}")
        self.runner.run(
            [self.binary, "worktree", "remove", "--force", str(path)],
            token=token,
            cwd=cwd or self.cwd,
        )

    def list_worktrees(self, token: CancellationToken | None = None) -> list[WorktreeInfo]:
        """List worktrees that live in the ko namespace directory."""
        output = self._git("worktree", "list", "--porcelain", token=token)

        current: Path | None = None
        if self.is_inside_worktree(token=token):
            current = self.current_worktree_path(token=token)

        worktrees: list[WorktreeInfo] = []
        for block in output.split("\n\n"):
            path: Path | None = None
            branch = ""
            for line in block.splitlines():
                if line.startswith("worktree "):
                    path = Path(line[len("worktree ") :])
                elif line.startswith("branch "):
                    branch = line[len("branch ") :].removeprefix("refs/heads/")
                elif line == "detached":
                    branch = "(detached)"
            if path is None or path.parent.name != WORKTREE_NAMESPACE:
                continue
            worktrees.append(
                WorktreeInfo(
                    name=path.name,
                    path=path,
                    branch=branch,
                    is_current=current is not None and path == current,
                )
            )
        return worktrees
