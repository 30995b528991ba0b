"""Data models for the revision checker."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Revision sentinel: run against the working tree as-is, never check out.
CURRENT = "current"


class Pipeline(Enum):
    """Symbolic pipeline names accepted on the command line."""

    FMT = "fmt"
    CLIPPY = "clippy"
    BUILD = "build"
    TEST = "test"
    ALL = "all"


# Expansion order of the `all` pipeline.
ALL_STEPS = (Pipeline.FMT, Pipeline.CLIPPY, Pipeline.BUILD, Pipeline.TEST)


@dataclass(frozen=True)
class RawCommand:
    """A literal command given with --raw-command."""

    command: str


# A command request is either a symbolic pipeline or a raw command.
CommandRequest = Pipeline | RawCommand


@dataclass(frozen=True)
class CommandSpec:
    """Ordered, immutable list of commands to run on every revision."""

    commands: tuple[str, ...]

    def __iter__(self):
        return iter(self.commands)

    def __len__(self) -> int:
        return len(self.commands)


@dataclass(frozen=True)
class HeadRef:
    """The ref HEAD pointed at before the run."""

    ref: str
    detached: bool  # True when `ref` is a raw SHA


@dataclass(frozen=True)
class RepoContext:
    """Where and how commands run."""

    repo_root: Path
    dirty: bool = False
    env: dict[str, str] | None = None


class IterationState(Enum):
    """States of the checkout iteration."""

    IDLE = "idle"
    PER_REVISION = "per_revision"
    PER_COMMAND = "per_command"
    CONTINUE = "continue"
    FAIL_STOP = "fail_stop"
    DONE = "done"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one command on one revision."""

    revision: str
    command: str
    returncode: int
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class RunState:
    """Mutable progress of a single checker run."""

    revision_index: int = 0
    command_index: int = 0
    state: IterationState = IterationState.IDLE
    passed: bool = True
    results: list[CommandResult] = field(default_factory=list)

    @property
    def executed(self) -> list[tuple[str, str]]:
        """(revision, command) pairs in execution order."""
        return [(r.revision, r.command) for r in self.results]
