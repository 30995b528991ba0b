"""Pytest configuration and fixtures for checker tests."""

import logging
import logging.handlers
import shutil
import subprocess
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

import metrics


def git(repo: Path, *args: str) -> str:
    """Run git in `repo` and return stripped stdout."""
    cp = subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True, text=True)
    return cp.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    """Write, add and commit a file; return the new HEAD sha."""
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch) -> Generator[None, None, None]:
    """Keep user config, logs and metrics out of tests and reset logging."""
    config_home = tmp_path_factory.mktemp("config-home")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.delenv("CHECKER_CONFIG", raising=False)
    root = logging.getLogger()
    saved_level = root.level
    try:
        yield
    finally:
        # Drop handlers installed by setup_logging; pytest's own are subclasses.
        for handler in list(root.handlers):
            if type(handler) in (logging.StreamHandler, logging.handlers.RotatingFileHandler):
                root.removeHandler(handler)
                handler.close()
        root.setLevel(saved_level)
        metrics._metrics_collector = None


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def temp_git_repo(temp_dir: Path) -> Path:
    """Create a temporary git repository on branch `main` with one commit."""
    git(temp_dir, "init", "-q")
    git(temp_dir, "config", "user.name", "Test User")
    git(temp_dir, "config", "user.email", "test@example.com")
    git(temp_dir, "config", "commit.gpgsign", "false")

    commit_file(temp_dir, "README.md", "# Test Repository\n", "Initial commit")
    git(temp_dir, "branch", "-M", "main")

    return temp_dir


@pytest.fixture
def linear_repo(temp_git_repo: Path) -> tuple[Path, list[str]]:
    """Repository with four commits on `main`; returns (repo, shas oldest first)."""
    shas = [git(temp_git_repo, "rev-parse", "HEAD")]
    for i in range(1, 4):
        shas.append(commit_file(temp_git_repo, f"file{i}.txt", f"{i}\n", f"Commit {i}"))
    return temp_git_repo, shas


@pytest.fixture
def sample_config() -> dict:
    """Provide a sample configuration for testing."""
    return {
        "pipelines": {
            "fmt": "fmt-check",
            "clippy": "lint",
            "build": "build",
            "test": "test",
        },
        "log_level": "INFO",
        "log_to_file": False,
        "json_logs": False,
        "enable_metrics": False,
        "banner_width": 80,
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict) -> Path:
    """Create a temporary config file for testing."""
    import json

    config_path = temp_dir / "config.json"
    config_path.write_text(json.dumps(sample_config, indent=2))
    return config_path
