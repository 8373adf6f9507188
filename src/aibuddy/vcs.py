# aibuddy: Narrow version-control interface used by the collector and the apply flow. GitVcs shells out to git; everything else only sees the Vcs protocol.

import pathlib
import subprocess
from typing import List, Protocol, Tuple

from .errors import GitError


class Vcs(Protocol):
    def is_repository(self) -> bool: ...

    def list_tracked(self) -> List[str]: ...

    def create_branch(self, name: str) -> None: ...

    def commit_all(self, message: str) -> bool: ...

    def has_remote(self) -> bool: ...

    def push(self, branch: str) -> None: ...


def run_git(args: List[str], cwd: pathlib.Path) -> Tuple[int, str, str]:
    """Run a git command in cwd and return (returncode, stdout, stderr)."""
    try:
        proc = subprocess.Popen(
            ["git"] + args, cwd=str(cwd), stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
        )
    except FileNotFoundError:
        raise GitError("git executable not found on PATH")
    out, err = proc.communicate()
    return proc.returncode, out, err


class GitVcs:
    """Vcs implementation backed by the git CLI, rooted at repo_root."""

    def __init__(self, repo_root: pathlib.Path) -> None:
        self.repo_root = repo_root

    def _git(self, *args: str) -> str:
        """Run git and return stdout; raise GitError on a non-zero exit."""
        rc, out, err = run_git(list(args), self.repo_root)
        if rc != 0:
            message = err.strip() or out.strip() or "unknown git error"
            raise GitError(f"git {' '.join(args)} failed: {message}")
        return out

    def is_repository(self) -> bool:
        rc, out, _ = run_git(["rev-parse", "--is-inside-work-tree"], self.repo_root)
        return rc == 0 and out.strip() == "true"

    def list_tracked(self) -> List[str]:
        """Return tracked files in git's index order (ls-files -z)."""
        out = self._git("ls-files", "-z")
        return [p for p in out.split("\x00") if p]

    def create_branch(self, name: str) -> None:
        self._git("checkout", "-b", name)

    def commit_all(self, message: str) -> bool:
        """
        Stage every working-tree change and commit it.

        Returns False without committing when nothing is staged.
        """
        self._git("add", "-A")
        rc, _, err = run_git(["diff", "--cached", "--quiet"], self.repo_root)
        if rc == 0:
            return False
        if rc != 1:
            raise GitError(f"git diff --cached failed: {err.strip()}")
        self._git("commit", "-m", message)
        return True

    def has_remote(self) -> bool:
        return bool(self._git("remote").strip())

    def push(self, branch: str) -> None:
        remote = self._git("remote").split()[0]
        self._git("push", "-u", remote, branch)
