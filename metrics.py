"""Run metrics for the revision checker."""

import json
import time
import uuid
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List

from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class PerformanceBenchmark:
    """Timing of one operation."""
    operation: str
    duration_ms: float
    timestamp: str
    success: bool
    error_type: Optional[str] = None


@dataclass
class RunMetrics:
    """Run-level metrics."""
    run_id: str
    start_time: str
    end_time: Optional[str] = None
    duration_seconds: Optional[float] = None
    revisions_checked: int = 0
    commands_run: int = 0
    commands_failed: int = 0
    errors_count: int = 0
    exit_status: Optional[int] = None


class MetricsCollector:
    """Collects timings and counters for a single checker run."""

    def __init__(self, config_dir: Path, enabled: bool = False):
        """Initialize metrics collector.

        Args:
            config_dir: Directory under which `metrics/` is written
            enabled: Whether anything is persisted on finalize
        """
        self.metrics_dir = config_dir / "metrics"
        self.enabled = enabled
        self.current_run = RunMetrics(
            run_id=str(uuid.uuid4()),
            start_time=datetime.now().isoformat()
        )
        self.performance_benchmarks: List[PerformanceBenchmark] = []
        self.errors: List[Dict[str, Any]] = []
        self._seen_revisions: set[str] = set()

        self.runs_file = self.metrics_dir / "runs.json"
        self.performance_file = self.metrics_dir / "performance.json"

    def record_revision(self, revision: str):
        """Count a revision as checked."""
        if revision not in self._seen_revisions:
            self._seen_revisions.add(revision)
            self.current_run.revisions_checked += 1

    def record_command(self, revision: str, command: str, success: bool, duration_ms: float):
        """Record one command execution."""
        self.record_revision(revision)
        self.current_run.commands_run += 1
        if not success:
            self.current_run.commands_failed += 1
        self.record_performance(f"{revision[:12]} {command}", duration_ms, success)

    def record_error(self, error_type: str, error_message: str, context: Dict[str, Any] = None):
        """Record error metrics."""
        self.current_run.errors_count += 1
        self.errors.append({
            'error_type': error_type,
            'error_message': error_message,
            'context': context or {}
        })

    def record_performance(self, operation: str, duration_ms: float, success: bool, error_type: Optional[str] = None):
        """Record performance benchmark."""
        self.performance_benchmarks.append(PerformanceBenchmark(
            operation=operation,
            duration_ms=duration_ms,
            timestamp=datetime.now().isoformat(),
            success=success,
            error_type=error_type
        ))

    @contextmanager
    def time_operation(self, operation_name: str):
        """Context manager for timing operations.

        Usage:
            with metrics.time_operation('checkout'):
                # perform operation
                pass
        """
        start_time = time.perf_counter()
        success = True
        error_type = None

        try:
            yield
        except Exception as e:
            success = False
            error_type = type(e).__name__
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.record_performance(operation_name, duration_ms, success, error_type)

    def finalize_run(self, exit_status: Optional[int] = None):
        """Close the run and persist it when enabled."""
        self.current_run.end_time = datetime.now().isoformat()
        self.current_run.exit_status = exit_status

        start_dt = datetime.fromisoformat(self.current_run.start_time)
        end_dt = datetime.fromisoformat(self.current_run.end_time)
        self.current_run.duration_seconds = (end_dt - start_dt).total_seconds()

        logger.debug(f"Run finalized: {self.current_run.duration_seconds:.1f}s, "
                     f"{self.current_run.revisions_checked} revisions, "
                     f"{self.current_run.commands_run} commands, "
                     f"{self.current_run.errors_count} errors")

        if not self.enabled:
            return
        self._save_run_data()
        self._save_performance_data()

    def _save_run_data(self):
        """Append the run summary to runs.json."""
        try:
            self.metrics_dir.mkdir(parents=True, exist_ok=True)
            runs = []
            if self.runs_file.exists():
                with open(self.runs_file, 'r', encoding='utf-8') as f:
                    runs = json.load(f)
            runs.append({**asdict(self.current_run), 'errors': self.errors})
            with open(self.runs_file, 'w', encoding='utf-8') as f:
                json.dump(runs, f, indent=2)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to save run metrics: {e}")

    def _save_performance_data(self):
        """Save performance benchmarks to file."""
        try:
            self.metrics_dir.mkdir(parents=True, exist_ok=True)
            with open(self.performance_file, 'w', encoding='utf-8') as f:
                json.dump([asdict(b) for b in self.performance_benchmarks], f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save performance data: {e}")

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of collected metrics."""
        summary = {
            'current_run': asdict(self.current_run),
            'performance_benchmarks_count': len(self.performance_benchmarks),
            'enabled': self.enabled,
        }
        durations = [b.duration_ms for b in self.performance_benchmarks if b.success]
        if durations:
            summary['performance_stats'] = {
                'avg_duration_ms': sum(durations) / len(durations),
                'min_duration_ms': min(durations),
                'max_duration_ms': max(durations),
            }
        return summary


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def initialize_metrics(config_dir: Path, enabled: bool = False) -> MetricsCollector:
    """Initialize global metrics collector."""
    global _metrics_collector
    _metrics_collector = MetricsCollector(config_dir, enabled)
    return _metrics_collector


def get_metrics_collector() -> Optional[MetricsCollector]:
    """Get the global metrics collector instance."""
    return _metrics_collector


def finalize_metrics(exit_status: Optional[int] = None):
    """Finalize metrics collection."""
    if _metrics_collector:
        _metrics_collector.finalize_run(exit_status)


def record_command(revision: str, command: str, success: bool, duration_ms: float):
    """Record a command execution."""
    if _metrics_collector:
        _metrics_collector.record_command(revision, command, success, duration_ms)


def record_error(error_type: str, error_message: str, context: Dict[str, Any] = None):
    """Record an error."""
    if _metrics_collector:
        _metrics_collector.record_error(error_type, error_message, context)


def time_operation(operation_name: str):
    """Context manager for timing operations."""
    if _metrics_collector:
        return _metrics_collector.time_operation(operation_name)
    return nullcontext()
