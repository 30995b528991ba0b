"""Revision argument interpretation.

Positional revisions are read in this priority order:

1. dirty working tree: only ``current`` is checked, whatever was passed;
2. no revision, or one revision without ``..``: the single commit it names
   (``HEAD`` by default);
3. two revisions ``a b``: the commits in ``a..b``, oldest first;
4. anything else (``a..b`` as one argument, three or more revisions): the
   arguments are handed to ``git rev-list`` untouched, oldest first.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

import git_utils
from error_handler import ExitStatus, RevisionResolutionFailed
from logging_config import get_logger
from models import CURRENT

logger = get_logger(__name__)

RANGE_SYNTAX = re.compile(r"\.\.")
DEFAULT_START = "HEAD"


@dataclass(frozen=True)
class RevisionQuery:
    """What to ask `git rev-list` for."""

    args: tuple[str, ...]
    reverse: bool
    max_count: int | None
    description: str
    # status when git rejects the query
    failure_status: ExitStatus = ExitStatus.BAD_INPUT


def is_range(rev: str) -> bool:
    """True when a revision uses the two-dot range syntax."""
    return RANGE_SYNTAX.search(rev) is not None


def plan_revisions(revs: Sequence[str]) -> RevisionQuery:
    """Decide how a clean tree's revision arguments are resolved."""
    revs = list(revs)
    if not revs or (len(revs) == 1 and not is_range(revs[0])):
        start = revs[0] if revs else DEFAULT_START
        return RevisionQuery(
            args=(start,),
            reverse=False,
            max_count=1,
            description=start,
            failure_status=ExitStatus.UNEXPECTED_EXIT,
        )
    if len(revs) == 2:
        return RevisionQuery(
            args=(f"{revs[0]}..{revs[1]}",),
            reverse=True,
            max_count=None,
            description=f"{revs[0]}..{revs[1]}",
        )
    return RevisionQuery(
        args=tuple(revs),
        reverse=True,
        max_count=None,
        description=" ".join(revs),
    )


def _dedupe(shas: Sequence[str]) -> list[str]:
    seen = set()
    ordered = []
    for sha in shas:
        if sha not in seen:
            seen.add(sha)
            ordered.append(sha)
    return ordered


CommitLister = Callable[..., list[str]]


class RevisionResolver:
    """Turns revision arguments into the ordered list of revisions to visit."""

    def __init__(self, repo_root: Path, list_commits: CommitLister | None = None):
        self.repo_root = repo_root
        self.list_commits = list_commits or git_utils.rev_list

    def resolve(self, revs: Sequence[str], dirty: bool) -> list[str]:
        if dirty:
            if revs:
                logger.debug(f"Ignoring revisions {list(revs)} on a dirty tree")
            return [CURRENT]

        query = plan_revisions(revs)
        logger.info(f"commits to check: {query.description}")
        try:
            shas = self.list_commits(
                self.repo_root,
                query.args,
                reverse=query.reverse,
                max_count=query.max_count,
            )
        except git_utils.GitCommandError as e:
            raise RevisionResolutionFailed(
                f"fail to get commit list: {e}", query.failure_status, detail=str(e)
            ) from e
        return _dedupe(shas)
