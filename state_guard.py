"""Original HEAD capture and restoration."""

from pathlib import Path
from typing import Callable, NoReturn

import git_utils
from error_handler import CheckerError, CommandFailed
from logging_config import get_logger
from models import HeadRef

logger = get_logger(__name__)


class StateGuard:
    """Returns the working tree to the ref it started on.

    Use as a context manager: entering captures HEAD, leaving restores it,
    whether the block finished, raised, or was interrupted. A dirty tree is
    never checked out, so restoring it does nothing.
    """

    def __init__(
        self,
        repo_root: Path,
        dirty: bool,
        checkout: Callable[[Path, str], None] = git_utils.checkout,
        branch_of: Callable[[Path], str | None] = git_utils.current_branch,
        sha_of: Callable[[Path], str] = git_utils.head_sha,
    ):
        self.repo_root = repo_root
        self.dirty = dirty
        self._checkout = checkout
        self._branch_of = branch_of
        self._sha_of = sha_of
        self.original: HeadRef | None = None
        self.restored = False

    def capture(self) -> HeadRef:
        """Record the current branch, or the SHA when HEAD is detached."""
        branch = self._branch_of(self.repo_root)
        if branch:
            self.original = HeadRef(ref=branch, detached=False)
        else:
            self.original = HeadRef(ref=self._sha_of(self.repo_root), detached=True)
        logger.debug(f"Captured original HEAD: {self.original.ref}")
        return self.original

    def restore(self) -> None:
        """Check out the captured ref. Runs at most once."""
        if self.restored:
            return
        self.restored = True
        if self.dirty or self.original is None:
            return
        logger.debug(f"Restoring HEAD to {self.original.ref}")
        self._checkout(self.repo_root, self.original.ref)

    def restore_and_fail(self, error: CheckerError | None = None) -> NoReturn:
        """Restore HEAD, then raise `error` (a generic command failure by default)."""
        self.restore()
        raise error if error is not None else CommandFailed()

    def __enter__(self) -> "StateGuard":
        self.capture()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.restore()
        return False
