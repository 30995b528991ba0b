"""Git operations for the revision checker."""

import logging
import subprocess
from pathlib import Path
from typing import List, Sequence


class GitCommandError(RuntimeError):
    """A git invocation failed."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def run_git(args: List[str], cwd: Path | None = None, check: bool = True) -> subprocess.CompletedProcess[str]:
    """Run a git command with safe argument passing."""
    cmd = ["git"] + list(args)
    try:
        cp = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            check=check,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        return cp
    except FileNotFoundError:
        raise GitCommandError("Git not found on PATH.")
    except subprocess.CalledProcessError as e:
        # surface stderr to caller
        raise GitCommandError(e.stderr.strip() or str(e), e.returncode, e.stderr)


def ensure_repo_root(path: Path) -> Path:
    """Return the repo root for any path inside a Git repo."""
    try:
        cp = run_git(["-C", str(path), "rev-parse", "--show-toplevel"])
    except GitCommandError as e:
        raise ValueError(f"{path} is not a git repository: {e}") from e
    return Path(cp.stdout.strip())


def git_version_ok(min_major: int = 2, min_minor: int = 22) -> bool:
    """Check if Git version meets minimum requirements.

    2.22 is the first release with `git branch --show-current`.
    """
    try:
        v = run_git(["--version"], check=False).stdout.strip()
        parts = v.split()
        if len(parts) >= 3:
            nums = parts[2].split(".")
            major = int(nums[0])
            minor = int(nums[1])
            return (major > min_major) or (major == min_major and minor >= min_minor)
    except (ValueError, IndexError, AttributeError, GitCommandError) as e:
        logging.warning(f"Failed to parse git version: {e}")
    return False


def is_dirty_tree(repo_root: Path) -> bool:
    """True when tracked files have uncommitted changes (untracked files ignored)."""
    cp = run_git(["-C", str(repo_root), "status", "--porcelain", "--untracked-files=no"])
    return bool(cp.stdout.strip())


def current_branch(repo_root: Path) -> str | None:
    """Name of the checked-out branch, or None when HEAD is detached."""
    cp = run_git(["-C", str(repo_root), "branch", "--show-current"])
    return cp.stdout.strip() or None


def head_sha(repo_root: Path) -> str:
    """Full SHA of HEAD."""
    cp = run_git(["-C", str(repo_root), "rev-parse", "HEAD"])
    return cp.stdout.strip()


def rev_list(repo_root: Path, revs: Sequence[str], reverse: bool = False,
             max_count: int | None = None) -> list[str]:
    """List commit SHAs reachable per `git rev-list` semantics."""
    args = ["-C", str(repo_root), "rev-list"]
    if max_count is not None:
        args.append(f"-{max_count}")
    if reverse:
        args.append("--reverse")
    args += list(revs)
    cp = run_git(args)
    return cp.stdout.split()


def checkout(repo_root: Path, ref: str) -> None:
    """Quietly check out a branch, tag or commit."""
    run_git(["-C", str(repo_root), "checkout", "-q", ref])
