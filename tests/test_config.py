"""Tests for configuration management functionality."""

import json
from pathlib import Path

from config import (
    DEFAULT_PIPELINES,
    _config_path,
    get_banner_width,
    get_pipeline_table,
    load_config,
    save_config,
    set_pipeline_command,
)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_config_existing_file(self, config_file: Path, sample_config: dict):
        config = load_config(config_file)
        assert config == sample_config

    def test_load_config_nonexistent_file(self, temp_dir: Path):
        config = load_config(temp_dir / "nonexistent.json")

        assert config["pipelines"] == DEFAULT_PIPELINES
        assert config["log_level"] == "INFO"
        assert config["enable_metrics"] is False

    def test_load_config_invalid_json(self, temp_dir: Path):
        invalid_config = temp_dir / "invalid.json"
        invalid_config.write_text("{ invalid json }")

        config = load_config(invalid_config)

        assert config["pipelines"] == DEFAULT_PIPELINES

    def test_load_config_non_object(self, temp_dir: Path):
        path = temp_dir / "list.json"
        path.write_text("[1, 2]")

        assert load_config(path)["banner_width"] == 80

    def test_load_config_fills_missing_keys(self, temp_dir: Path):
        path = temp_dir / "partial.json"
        path.write_text(json.dumps({"log_level": "DEBUG"}))

        config = load_config(path)

        assert config["log_level"] == "DEBUG"
        assert config["pipelines"] == DEFAULT_PIPELINES

    def test_defaults_are_not_shared(self, temp_dir: Path):
        first = load_config(temp_dir / "missing.json")
        first["pipelines"]["fmt"] = "changed"

        second = load_config(temp_dir / "missing.json")

        assert second["pipelines"]["fmt"] == DEFAULT_PIPELINES["fmt"]
        assert DEFAULT_PIPELINES["fmt"] == "cargo fmt --all -- --check"

    def test_env_var_selects_file(self, config_file: Path, monkeypatch):
        monkeypatch.setenv("CHECKER_CONFIG", str(config_file))

        assert _config_path() == config_file
        assert load_config()["pipelines"]["fmt"] == "fmt-check"

    def test_default_path_under_xdg_config_home(self, monkeypatch, temp_dir: Path):
        monkeypatch.setattr("config.sys.platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir))

        assert _config_path() == temp_dir / "RevisionChecker" / "settings.json"


class TestSaveConfig:
    """Tests for save_config function."""

    def test_save_config_success(self, temp_dir: Path, sample_config: dict):
        config_file = temp_dir / "test_config.json"

        save_config(sample_config, config_file)

        assert json.loads(config_file.read_text()) == sample_config
        assert not (temp_dir / ".test_config.json.tmp").exists()

    def test_save_config_creates_directory(self, temp_dir: Path, sample_config: dict):
        nested_path = temp_dir / "nested" / "config.json"

        save_config(sample_config, nested_path)

        assert json.loads(nested_path.read_text()) == sample_config


class TestPipelineTable:
    """Tests for pipeline command overrides."""

    def test_defaults(self):
        table = get_pipeline_table({})

        assert table == DEFAULT_PIPELINES

    def test_user_entries_override_defaults(self, sample_config: dict):
        table = get_pipeline_table(sample_config)

        assert table["fmt"] == "fmt-check"
        assert table["clippy"] == "lint"

    def test_partial_override_keeps_other_defaults(self):
        cfg = {"pipelines": {"test": "cargo nextest run"}}

        table = get_pipeline_table(cfg)

        assert table["test"] == "cargo nextest run"
        assert table["build"] == DEFAULT_PIPELINES["build"]

    def test_set_pipeline_command(self):
        cfg = {}

        set_pipeline_command(cfg, "build", "cargo build --release")

        assert get_pipeline_table(cfg)["build"] == "cargo build --release"


class TestBannerWidth:
    """Tests for get_banner_width."""

    def test_configured_width(self):
        assert get_banner_width({"banner_width": 60}) == 60

    def test_invalid_width_falls_back(self):
        assert get_banner_width({"banner_width": "wide"}) == 80
        assert get_banner_width({"banner_width": 0}) == 80
        assert get_banner_width({"banner_width": True}) == 80
