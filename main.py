#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Revision checker: run format/lint/build/test commands on each commit of a
range, stop at the first failure, and put HEAD back where it was.

    checker [-r|--raw-command] <command-or-pipeline> [rev1] [rev2 ...]
"""

import argparse
import sys
from pathlib import Path
from typing import Sequence

from commands import CommandResolver, parse_request
from config import _config_dir, get_banner_width, get_pipeline_table, load_config
from error_handler import BadInput, ExitStatus, handle_error
from git_utils import ensure_repo_root, git_version_ok, is_dirty_tree
from logging_config import get_logger, setup_logging
from metrics import finalize_metrics, initialize_metrics
from models import Pipeline, RepoContext
from revisions import RevisionResolver
from runner import CheckoutIterator, Executor, run_command
from state_guard import StateGuard

__version__ = "1.0.0"

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Parser for the checker's own options.

    COMMAND and the revisions are not declared: every argument the parser
    does not recognize is positional and is picked up by `parse_args`.
    """
    pipelines = "|".join(p.value for p in Pipeline)
    parser = argparse.ArgumentParser(
        prog="checker",
        usage="%(prog)s [options] [-r] COMMAND [REVISION ...]",
        description="Run a command pipeline on each commit of a revision range, "
                    "stopping at the first failure.",
        epilog=f"COMMAND is a pipeline ({pipelines}), or a command with --raw-command. "
               "REVISIONs are nothing (HEAD), one revision, two revisions A B (A..B), "
               "or any other git rev-list arguments, passed on in order. "
               "exit status: 0 passed, 1 a command failed, 2 bad input, "
               "3 unexpected failure",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-r",
        "--raw-command",
        action="store_true",
        help="treat COMMAND as a literal command instead of a pipeline name",
    )
    parser.add_argument(
        "-C",
        "--repo",
        type=Path,
        default=None,
        help="repository to check (default: the one containing the current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="settings file (default: $CHECKER_CONFIG or the user config dir)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="console level for diagnostics; the run report is always printed",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Split checker options from positionals.

    The first positional is the command. The rest are revisions, kept in
    their original order, so rev-list options such as `--all` or `--not`
    reach git untouched.
    """
    args, positionals = create_parser().parse_known_args(argv)
    args.command = positionals[0] if positionals else None
    args.revisions = positionals[1:]
    return args


def check(args: argparse.Namespace, cfg: dict, execute: Executor = run_command) -> ExitStatus:
    """Resolve commands and revisions, then run the iteration under a HEAD guard."""
    if not args.command:
        raise BadInput("command is not specified")

    request = parse_request(args.command, raw=args.raw_command)
    commands = CommandResolver(get_pipeline_table(cfg)).resolve(request)

    try:
        repo_root = ensure_repo_root(args.repo or Path.cwd())
    except ValueError as e:
        raise BadInput(str(e)) from e

    if not git_version_ok():
        logger.warning("WARNING: git 2.22 or newer is required to detect the current branch")

    dirty = is_dirty_tree(repo_root)
    if dirty:
        logger.warning("WARNING: the current working tree is dirty")
        logger.warning("Execute command only to the current working tree")

    context = RepoContext(repo_root=repo_root, dirty=dirty)
    revisions = RevisionResolver(repo_root).resolve(args.revisions, dirty)

    with StateGuard(repo_root, dirty) as guard:
        iterator = CheckoutIterator(
            context,
            commands,
            execute=execute,
            banner_width=get_banner_width(cfg),
        )
        iterator.run(revisions, guard)
    return ExitStatus.SUCCESS


def run(argv: Sequence[str] | None = None, execute: Executor = run_command) -> int:
    """Parse arguments, run the checker and map the outcome to an exit status."""
    try:
        args = parse_args(argv)
    except SystemExit as e:
        # --help/--version exit 0, usage errors exit 2
        return e.code if isinstance(e.code, int) else int(ExitStatus.BAD_INPUT)

    cfg = load_config(args.config)
    setup_logging(
        level=args.log_level or cfg.get("log_level", "INFO"),
        log_to_file=bool(cfg.get("log_to_file")),
        json_format=bool(cfg.get("json_logs")),
    )
    initialize_metrics(_config_dir(), enabled=bool(cfg.get("enable_metrics")))

    status = ExitStatus.UNEXPECTED_EXIT
    try:
        status = check(args, cfg, execute)
    except (Exception, KeyboardInterrupt) as e:
        status = handle_error(e).exit_status
    finally:
        finalize_metrics(int(status))
    logger.debug(f"Checker exiting with code {int(status)}")
    return int(status)


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
