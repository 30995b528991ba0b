"""Tests for pipeline command resolution."""

import pytest

from commands import CommandResolver, parse_request
from config import DEFAULT_PIPELINES
from error_handler import BadInput, ExitStatus, InternalInconsistency, UnrecognizedCommand
from models import Pipeline, RawCommand


class TestParseRequest:
    """Tests for parse_request."""

    @pytest.mark.parametrize("name", ["fmt", "clippy", "build", "test", "all"])
    def test_known_pipelines(self, name):
        assert parse_request(name) == Pipeline(name)

    def test_unrecognized_name(self):
        with pytest.raises(UnrecognizedCommand) as excinfo:
            parse_request("deploy")

        assert excinfo.value.exit_status == ExitStatus.BAD_INPUT
        assert str(excinfo.value) == "command 'deploy' is not registered"

    def test_raw_mode_bypasses_validation(self):
        assert parse_request("echo hi", raw=True) == RawCommand("echo hi")

    def test_raw_mode_accepts_pipeline_names_literally(self):
        assert parse_request("fmt", raw=True) == RawCommand("fmt")

    def test_raw_mode_rejects_blank_command(self):
        with pytest.raises(BadInput):
            parse_request("   ", raw=True)

    def test_raw_mode_rejects_unbalanced_quotes(self):
        with pytest.raises(BadInput, match="malformed command"):
            parse_request("echo 'oops", raw=True)


class TestCommandResolver:
    """Tests for CommandResolver."""

    def test_single_steps_use_default_table(self):
        resolver = CommandResolver()

        assert list(resolver.resolve(Pipeline.FMT)) == ["cargo fmt --all -- --check"]
        assert list(resolver.resolve(Pipeline.CLIPPY)) == ["cargo clippy --all-targets --all-features"]
        assert list(resolver.resolve(Pipeline.BUILD)) == ["cargo build --verbose"]
        assert list(resolver.resolve(Pipeline.TEST)) == ["cargo test --verbose"]

    def test_all_expands_in_fixed_order(self):
        spec = CommandResolver().resolve(Pipeline.ALL)

        assert list(spec) == [
            DEFAULT_PIPELINES["fmt"],
            DEFAULT_PIPELINES["clippy"],
            DEFAULT_PIPELINES["build"],
            DEFAULT_PIPELINES["test"],
        ]

    def test_all_order_ignores_table_order(self):
        table = {"test": "t", "build": "b", "clippy": "c", "fmt": "f"}

        assert list(CommandResolver(table).resolve(Pipeline.ALL)) == ["f", "c", "b", "t"]

    def test_raw_command_is_whole_list(self):
        spec = CommandResolver().resolve(RawCommand("echo hi"))

        assert list(spec) == ["echo hi"]

    def test_custom_table(self):
        resolver = CommandResolver({"fmt": "black --check .", "clippy": "ruff check .",
                                    "build": "python -m build", "test": "pytest"})

        assert list(resolver.resolve(Pipeline.TEST)) == ["pytest"]

    def test_table_miss_is_internal_inconsistency(self):
        resolver = CommandResolver({"fmt": "f"})

        with pytest.raises(InternalInconsistency) as excinfo:
            resolver.resolve(Pipeline.ALL)

        assert excinfo.value.exit_status == ExitStatus.UNEXPECTED_EXIT
        assert "clippy" in str(excinfo.value)

    def test_empty_command_is_internal_inconsistency(self):
        resolver = CommandResolver({**DEFAULT_PIPELINES, "build": ""})

        with pytest.raises(InternalInconsistency, match="empty"):
            resolver.resolve(Pipeline.BUILD)

    def test_non_string_command_is_internal_inconsistency(self):
        resolver = CommandResolver({**DEFAULT_PIPELINES, "fmt": None})

        with pytest.raises(InternalInconsistency):
            resolver.resolve(Pipeline.FMT)

    def test_unbalanced_quotes_in_table(self):
        resolver = CommandResolver({**DEFAULT_PIPELINES, "test": 'cargo test "--verbose'})

        with pytest.raises(InternalInconsistency, match="malformed"):
            resolver.resolve(Pipeline.TEST)
