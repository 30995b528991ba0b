"""Checkout iteration: run every command on every revision, stop at the first failure."""

import os
import shlex
import subprocess
import time
from typing import Callable, Sequence

import git_utils
from error_handler import BadInput, CheckoutFailed, CommandFailed
from logging_config import get_logger, log_performance
from metrics import record_command, time_operation
from models import CURRENT, CommandResult, CommandSpec, IterationState, RepoContext, RunState
from state_guard import StateGuard

logger = get_logger(__name__)

DEFAULT_BANNER_WIDTH = 80
# Shell exit statuses for commands that cannot be started.
COMMAND_NOT_EXECUTABLE = 126
COMMAND_NOT_FOUND = 127

Executor = Callable[[str, RepoContext], int]


def run_command(command: str, context: RepoContext) -> int:
    """Run one command in the repository root and return its exit status.

    The command is split like a shell would split words, but no shell is
    involved: pipes, redirections and variables are not interpreted.
    """
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise BadInput(f"malformed command '{command}': {e}") from e
    if not argv:
        raise BadInput("command is not specified")
    env = None
    if context.env is not None:
        env = {**os.environ, **context.env}
    try:
        cp = subprocess.run(argv, cwd=str(context.repo_root), env=env)
    except FileNotFoundError:
        logger.warning(f"{argv[0]}: command not found")
        return COMMAND_NOT_FOUND
    except PermissionError:
        logger.warning(f"{argv[0]}: permission denied")
        return COMMAND_NOT_EXECUTABLE
    return cp.returncode


def header_banner(revision: str, width: int = DEFAULT_BANNER_WIDTH) -> str:
    header = f"### [{revision}] ###"
    return header + "#" * (width - len(header))


def footer_banner(width: int = DEFAULT_BANNER_WIDTH) -> str:
    return "#" * width


class CheckoutIterator:
    """Walks revisions oldest first and runs the command list on each.

    The first failing command, or a failing checkout, ends the whole run:
    HEAD is restored through the guard and the matching error is raised.
    When everything passes, HEAD is restored as well.
    """

    def __init__(
        self,
        context: RepoContext,
        commands: CommandSpec,
        execute: Executor = run_command,
        checkout: Callable = git_utils.checkout,
        banner_width: int = DEFAULT_BANNER_WIDTH,
    ):
        self.context = context
        self.commands = commands
        self.execute = execute
        self.checkout = checkout
        self.banner_width = banner_width
        self.state = RunState()

    def run(self, revisions: Sequence[str], guard: StateGuard) -> RunState:
        self.state = RunState()
        state = self.state

        for i, revision in enumerate(revisions):
            state.revision_index = i
            state.state = IterationState.PER_REVISION
            logger.info(header_banner(revision, self.banner_width))
            self._checkout(revision, guard)

            for j, command in enumerate(self.commands):
                state.command_index = j
                state.state = IterationState.PER_COMMAND
                result = self._execute(revision, command)
                state.results.append(result)

                if not result.ok:
                    state.passed = False
                    state.state = IterationState.FAIL_STOP
                    logger.error(f"[{revision}] command '{command}': NG")
                    guard.restore_and_fail(CommandFailed(revision, command, result.returncode))

                logger.info("OK")
                state.state = IterationState.CONTINUE

            logger.info(footer_banner(self.banner_width))
            logger.info("")

        state.state = IterationState.DONE
        logger.info("Checker passed!!!")
        guard.restore()
        return state

    def _checkout(self, revision: str, guard: StateGuard):
        if revision == CURRENT or self.context.dirty:
            return
        try:
            with time_operation(f"checkout {revision[:12]}"):
                self.checkout(self.context.repo_root, revision)
        except git_utils.GitCommandError as e:
            self.state.passed = False
            self.state.state = IterationState.FAIL_STOP
            guard.restore_and_fail(CheckoutFailed(revision, detail=str(e)))

    def _execute(self, revision: str, command: str) -> CommandResult:
        logger.info(f"# {command}")
        start = time.perf_counter()
        returncode = self.execute(command, self.context)
        duration = time.perf_counter() - start
        log_performance(logger, command, duration, revision=revision, returncode=returncode)
        duration_ms = duration * 1000
        record_command(revision, command, returncode == 0, duration_ms)
        return CommandResult(revision, command, returncode, duration_ms)
