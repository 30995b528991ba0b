"""Pipeline name to command list resolution."""

import shlex
from typing import Mapping

from config import DEFAULT_PIPELINES
from error_handler import BadInput, InternalInconsistency, UnrecognizedCommand
from logging_config import get_logger
from models import ALL_STEPS, CommandRequest, CommandSpec, Pipeline, RawCommand

logger = get_logger(__name__)


def parse_request(name: str, raw: bool = False) -> CommandRequest:
    """Turn the first positional argument into a command request.

    In raw mode the argument is taken literally; only a blank command or
    one with unbalanced quotes is rejected.
    """
    if raw:
        if not name.strip():
            raise BadInput("command is not specified")
        try:
            shlex.split(name)
        except ValueError as e:
            raise BadInput(f"malformed command '{name}': {e}") from None
        return RawCommand(name)
    try:
        return Pipeline(name)
    except ValueError:
        raise UnrecognizedCommand(name) from None


class CommandResolver:
    """Expands a command request into the ordered commands to execute."""

    def __init__(self, table: Mapping[str, str] | None = None):
        self.table = dict(DEFAULT_PIPELINES if table is None else table)

    def steps(self, request: CommandRequest) -> tuple[Pipeline, ...]:
        """Pipeline steps a symbolic request expands to."""
        if request is Pipeline.ALL:
            return ALL_STEPS
        return (request,)

    def resolve(self, request: CommandRequest) -> CommandSpec:
        if isinstance(request, RawCommand):
            commands = (request.command,)
        else:
            commands = tuple(self._lookup(step) for step in self.steps(request))

        if not commands or not all(c.strip() for c in commands):
            raise InternalInconsistency("pipeline defined commands list is empty")
        logger.debug(f"Resolved {request} to {list(commands)}")
        return CommandSpec(commands)

    def _lookup(self, step: Pipeline) -> str:
        try:
            command = self.table[step.value]
        except KeyError:
            raise InternalInconsistency(f"command '{step.value}' is not defined") from None
        if not isinstance(command, str):
            raise InternalInconsistency(f"command '{step.value}' is not a string")
        try:
            shlex.split(command)
        except ValueError as e:
            raise InternalInconsistency(f"command '{step.value}' is malformed: {e}") from None
        return command
