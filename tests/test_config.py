"""Tests for config loading and validation."""

import pytest

from resume_curator.config import (
    AppConfig,
    ContentConfig,
    DiagnosticsConfig,
    LLMConfig,
    SelectionConfig,
    load_config,
)


class TestConfig:
    def test_defaults(self):
        config = AppConfig()
        assert config.llm.analysis_model == "claude-haiku-4-5-20251001"
        assert config.pipeline.max_retries == 3
        assert config.selection.highlight_count == 5
        assert config.selection.score_cap == 9
        assert config.diagnostics.enabled is False

    def test_load_config_defaults(self, tmp_path):
        """Loading from non-existent path returns defaults."""
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.llm.model == "claude-sonnet-4-5-20250929"

    def test_load_config_from_yaml(self, tmp_path):
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(
            "llm:\n  model: test-model\npipeline:\n  max_retries: 5\n"
            "selection:\n  p2_bullet_count: 2\n"
        )
        config = load_config(yaml_path)
        assert config.llm.model == "test-model"
        assert config.pipeline.max_retries == 5
        assert config.selection.p2_bullet_count == 2
        # Defaults for unspecified
        assert config.selection.p1_bullet_count == 4

    def test_empty_yaml_gives_defaults(self, tmp_path):
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text("")
        assert load_config(yaml_path) == AppConfig()

    def test_resolved_paths_expand_home(self):
        assert "~" not in str(ContentConfig(library_path="~/lib.yaml").resolved_library_path)
        assert "~" not in str(DiagnosticsConfig(db_path="~/d.db").resolved_db_path)

    def test_bullet_count_by_position(self):
        selection = SelectionConfig(p1_bullet_count=4, p2_bullet_count=3)
        assert selection.bullet_count(1) == 4
        assert selection.bullet_count(2) == 3

    def test_frozen_config(self):
        config = LLMConfig()
        with pytest.raises(AttributeError):
            config.model = "changed"


class TestConfigValidation:
    @pytest.mark.parametrize(
        "yaml_text, field",
        [
            ("pipeline:\n  max_retries: 0\n", "max_retries"),
            ("pipeline:\n  max_retries: 11\n", "max_retries"),
            ("pipeline:\n  request_timeout: 0\n", "request_timeout"),
            ("llm:\n  timeout: 0\n", "timeout"),
            ("llm:\n  temperature: 1.5\n", "temperature"),
            ("llm:\n  analysis_temperature: -0.1\n", "analysis_temperature"),
            ("llm:\n  max_tokens: 0\n", "max_tokens"),
            ("selection:\n  highlight_count: 0\n", "highlight_count"),
            ("selection:\n  score_cap: 0\n", "score_cap"),
        ],
    )
    def test_out_of_range_raises_naming_field(self, tmp_path, yaml_text, field):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml_text)
        with pytest.raises(ValueError, match=field):
            load_config(path)
