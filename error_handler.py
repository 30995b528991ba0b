"""Error taxonomy and centralized error handling for the checker."""

import traceback
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Dict, Any

from logging_config import get_logger
from metrics import record_error

logger = get_logger(__name__)


class ExitStatus(IntEnum):
    """Process exit statuses."""
    SUCCESS = 0
    COMMAND_FAILED = 1
    BAD_INPUT = 2
    UNEXPECTED_EXIT = 3


class CheckerError(Exception):
    """Base class for errors that end a checker run."""

    exit_status = ExitStatus.UNEXPECTED_EXIT

    def __init__(self, message: str, exit_status: Optional[ExitStatus] = None):
        super().__init__(message)
        if exit_status is not None:
            self.exit_status = exit_status


class BadInput(CheckerError):
    """Malformed or missing user input."""
    exit_status = ExitStatus.BAD_INPUT


class UnrecognizedCommand(BadInput):
    """A pipeline name that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"command '{name}' is not registered")
        self.name = name


class RevisionResolutionFailed(CheckerError):
    """git could not produce the list of commits to check."""

    def __init__(self, message: str = "fail to get commit list",
                 exit_status: ExitStatus = ExitStatus.BAD_INPUT,
                 detail: Optional[str] = None):
        super().__init__(message, exit_status)
        self.detail = detail


class CommandFailed(CheckerError):
    """A pipeline command returned a non-zero status."""
    exit_status = ExitStatus.COMMAND_FAILED

    def __init__(self, revision: Optional[str] = None, command: Optional[str] = None,
                 returncode: Optional[int] = None):
        if revision is not None and command is not None:
            message = f"[{revision}] command '{command}': NG"
        else:
            message = "command failed"
        super().__init__(message)
        self.revision = revision
        self.command = command
        self.returncode = returncode


class UnexpectedExit(CheckerError):
    """Tool failure or broken internal invariant."""
    exit_status = ExitStatus.UNEXPECTED_EXIT


class CheckoutFailed(UnexpectedExit):
    """`git checkout` of a revision failed."""

    def __init__(self, revision: str, detail: Optional[str] = None):
        message = f"fail to checkout '{revision}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.revision = revision
        self.detail = detail


class InternalInconsistency(UnexpectedExit):
    """Should be unreachable: the command table disagrees with itself."""


class ErrorSeverity(Enum):
    """Error severity levels."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors, one per exit status family."""
    BAD_INPUT = "bad_input"
    COMMAND_FAILED = "command_failed"
    GIT_OPERATION = "git_operation"
    INTERNAL = "internal"
    INTERRUPTED = "interrupted"
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """Structured error information."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exit_status: ExitStatus
    line: Optional[int] = None
    context: Optional[Dict[str, Any]] = None
    exception: Optional[BaseException] = None
    traceback_str: Optional[str] = None

    @property
    def diagnostic(self) -> str:
        """One-line message for standard error."""
        if self.line is None:
            return self.message
        return f"{self.message}: exit at l.{self.line}"


class ErrorHandler:
    """Maps exceptions to exit statuses and reports them."""

    def handle_error(
        self,
        exception: BaseException,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorInfo:
        """Log a diagnostic for an exception and record it in metrics."""
        category, severity = self._classify(exception)
        message = str(exception) or type(exception).__name__
        if isinstance(exception, KeyboardInterrupt):
            message = "interrupted"

        error_info = ErrorInfo(
            category=category,
            severity=severity,
            message=message,
            exit_status=self.exit_status_for(exception),
            line=self._raising_line(exception),
            context=context or {},
            exception=exception,
            traceback_str="".join(traceback.format_exception(
                type(exception), exception, exception.__traceback__)),
        )

        self._log_error(error_info)
        self._record_error_metrics(error_info)
        return error_info

    @staticmethod
    def exit_status_for(exception: BaseException) -> ExitStatus:
        """Exit status a given exception maps to."""
        if isinstance(exception, CheckerError):
            return exception.exit_status
        return ExitStatus.UNEXPECTED_EXIT

    def _classify(self, exception: BaseException) -> tuple[ErrorCategory, ErrorSeverity]:
        if isinstance(exception, CommandFailed):
            return ErrorCategory.COMMAND_FAILED, ErrorSeverity.ERROR
        if isinstance(exception, KeyboardInterrupt):
            return ErrorCategory.INTERRUPTED, ErrorSeverity.WARNING
        if isinstance(exception, InternalInconsistency):
            return ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL
        if isinstance(exception, (CheckoutFailed, RevisionResolutionFailed)):
            return ErrorCategory.GIT_OPERATION, ErrorSeverity.ERROR
        if isinstance(exception, BadInput):
            return ErrorCategory.BAD_INPUT, ErrorSeverity.ERROR
        if isinstance(exception, UnexpectedExit):
            return ErrorCategory.INTERNAL, ErrorSeverity.ERROR
        # git_utils raises RuntimeError subclasses for git failures
        if isinstance(exception, RuntimeError):
            return ErrorCategory.GIT_OPERATION, ErrorSeverity.ERROR
        return ErrorCategory.UNKNOWN, ErrorSeverity.CRITICAL

    @staticmethod
    def _raising_line(exception: BaseException) -> Optional[int]:
        """Source line where the exception was raised, if known."""
        if exception.__traceback__ is None:
            return None
        frames = traceback.extract_tb(exception.__traceback__)
        return frames[-1].lineno if frames else None

    def _log_error(self, error_info: ErrorInfo):
        """Log the diagnostic at a level matching its severity.

        Console handlers send WARNING and above to standard error. Failed
        commands were already reported by the runner with their NG line, so
        they only go to the debug log.
        """
        detail = f"[{error_info.category.value}] {error_info.message}"
        if error_info.context:
            detail += f" | Context: {error_info.context}"

        if error_info.category == ErrorCategory.COMMAND_FAILED:
            logger.debug(detail)
            return

        logger.debug(detail)
        if error_info.severity == ErrorSeverity.CRITICAL:
            logger.critical(error_info.diagnostic, exc_info=error_info.exception)
        elif error_info.severity == ErrorSeverity.ERROR:
            logger.error(error_info.diagnostic)
        else:
            logger.warning(error_info.diagnostic)

    def _record_error_metrics(self, error_info: ErrorInfo):
        """Record error metrics for analysis."""
        try:
            record_error(
                error_type=f"{error_info.category.value}_{type(error_info.exception).__name__}",
                error_message=error_info.message,
                context={
                    "severity": error_info.severity.value,
                    "exit_status": int(error_info.exit_status),
                    **error_info.context
                }
            )
        except OSError as e:
            logger.debug(f"Failed to record error metrics: {e}")


# Global error handler instance
_error_handler = ErrorHandler()


def handle_error(
    exception: BaseException,
    context: Optional[Dict[str, Any]] = None
) -> ErrorInfo:
    """Convenience function to handle errors using the global handler."""
    return _error_handler.handle_error(exception, context)
