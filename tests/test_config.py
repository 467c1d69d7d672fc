"""Tests for taskpilot.config module.

Covers:
- Section settings defaults and validation
- AppConfig settings and environment variable support
- Configuration load/save to YAML
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from taskpilot.config import AppConfig, LearningSettings, ParserSettings, ResolverSettings

# ============================================================================
# Section Settings Tests
# ============================================================================


class TestSectionSettings:
    """Tests for parser, resolver and learning settings."""

    def test_parser_defaults(self):
        """Parser truncates at 10,000 characters by default."""
        assert ParserSettings().max_input_length == 10_000

    def test_resolver_defaults(self):
        """Resolver thresholds have sensible defaults."""
        settings = ResolverSettings()
        assert settings.fuzzy_threshold == 0.6
        assert settings.ambiguity_margin == 0.1
        assert settings.min_confidence == 0.75
        assert settings.learning_enabled is True
        assert settings.learning_boost <= settings.max_learning_boost

    def test_learning_defaults(self):
        """Learning store keeps 100 entries per session and no TTL."""
        settings = LearningSettings()
        assert settings.max_entries_per_session == 100
        assert settings.max_sessions == 1000
        assert settings.ttl_seconds is None

    def test_threshold_out_of_range(self):
        """Thresholds must lie in [0, 1]."""
        with pytest.raises(ValidationError):
            ResolverSettings(fuzzy_threshold=1.5)

    def test_boost_cap_below_boost(self):
        """The boost cap cannot be smaller than a single boost."""
        with pytest.raises(ValidationError):
            ResolverSettings(learning_boost=0.2, max_learning_boost=0.1)

    def test_non_positive_limits(self):
        """Limits must be positive."""
        with pytest.raises(ValidationError):
            ParserSettings(max_input_length=0)
        with pytest.raises(ValidationError):
            LearningSettings(ttl_seconds=0)


# ============================================================================
# AppConfig Tests
# ============================================================================


class TestAppConfigDefaults:
    """Tests for AppConfig default values."""

    def test_default_paths(self):
        """Default project path is the working directory."""
        config = AppConfig()
        assert config.project_path == Path.cwd()

    def test_default_sections(self):
        """Sections are initialized with defaults."""
        config = AppConfig()
        assert isinstance(config.parser, ParserSettings)
        assert isinstance(config.resolver, ResolverSettings)
        assert isinstance(config.learning, LearningSettings)


class TestAppConfigEnvironmentVariables:
    """Tests for environment variable configuration."""

    def test_project_path_from_env(self, monkeypatch, tmp_path):
        """TASKPILOT_PROJECT_PATH sets project_path."""
        monkeypatch.setenv("TASKPILOT_PROJECT_PATH", str(tmp_path))
        config = AppConfig()
        assert config.project_path == tmp_path

    def test_nested_from_env(self, monkeypatch):
        """TASKPILOT_RESOLVER__FUZZY_THRESHOLD sets resolver.fuzzy_threshold."""
        monkeypatch.setenv("TASKPILOT_RESOLVER__FUZZY_THRESHOLD", "0.7")
        config = AppConfig()
        assert config.resolver.fuzzy_threshold == 0.7
        assert config.resolver.ambiguity_margin == 0.1

    def test_parser_limit_from_env(self, monkeypatch):
        """TASKPILOT_PARSER__MAX_INPUT_LENGTH sets the truncation limit."""
        monkeypatch.setenv("TASKPILOT_PARSER__MAX_INPUT_LENGTH", "500")
        config = AppConfig()
        assert config.parser.max_input_length == 500


class TestAppConfigLoadSave:
    """Tests for configuration file loading and saving."""

    def test_load_without_file(self, tmp_path):
        """load() returns defaults when no config file exists."""
        config = AppConfig.load(tmp_path)
        assert config.project_path == tmp_path
        assert config.resolver.fuzzy_threshold == 0.6

    def test_save_creates_config_file(self, tmp_path):
        """save() creates .taskpilot/config.yaml."""
        config = AppConfig(project_path=tmp_path)
        config.save()

        config_file = tmp_path / ".taskpilot" / "config.yaml"
        assert config_file.exists()

    def test_load_reads_saved_config(self, tmp_path):
        """load() reads previously saved configuration."""
        config1 = AppConfig(
            project_path=tmp_path,
            resolver=ResolverSettings(ambiguity_margin=0.2),
            learning=LearningSettings(ttl_seconds=3600),
        )
        config1.save()

        config2 = AppConfig.load(tmp_path)
        assert config2.resolver.ambiguity_margin == 0.2
        assert config2.learning.ttl_seconds == 3600
        assert config2.parser.max_input_length == 10_000

    def test_load_partial_file(self, tmp_path):
        """Sections missing from the file keep their defaults."""
        config_dir = tmp_path / ".taskpilot"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("parser:\n  max_input_length: 200\n")

        config = AppConfig.load(tmp_path)
        assert config.parser.max_input_length == 200
        assert config.resolver.min_confidence == 0.75

    def test_env_overrides_file(self, monkeypatch, tmp_path):
        """Environment variables win over file values."""
        config_dir = tmp_path / ".taskpilot"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("resolver:\n  fuzzy_threshold: 0.5\n")
        monkeypatch.setenv("TASKPILOT_RESOLVER__FUZZY_THRESHOLD", "0.8")

        config = AppConfig.load(tmp_path)
        assert config.resolver.fuzzy_threshold == 0.8

    def test_invalid_file_value(self, tmp_path):
        """Out-of-range file values are rejected."""
        config_dir = tmp_path / ".taskpilot"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("resolver:\n  ambiguity_margin: 2\n")

        with pytest.raises(ValidationError):
            AppConfig.load(tmp_path)
