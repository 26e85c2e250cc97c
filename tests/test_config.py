"""
Configuration Tests
===================

Defaults, YAML loading and environment overrides.
"""

import pytest
from pydantic import ValidationError

from medsight.config import Settings, load_config


ENV_VARS = (
    "MEDSIGHT_RULE_SET",
    "MEDSIGHT_ANALYSIS_INTERVAL",
    "MEDSIGHT_FRAME_SOURCE",
    "MEDSIGHT_AUTOSTART",
    "MEDSIGHT_STREAM_URL",
    "MEDSIGHT_SPEECH_BACKEND",
    "MEDSIGHT_VOICE_ENABLED",
    "MEDSIGHT_PORT",
    "MEDSIGHT_LOG_LEVEL",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:

    def test_defaults_without_file(self, tmp_path):
        settings = load_config(str(tmp_path / "missing.yaml"))

        assert settings.classifier.rule_set == "standard"
        assert settings.guidance.analysis_interval_seconds == 3.0
        assert settings.guidance.frame_source == "synthetic"
        assert settings.assistant.command_history_size == 5
        assert settings.speech.rate == 0.8
        assert settings.server.port == 8002


class TestYamlLoading:

    def test_file_values_are_used(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "classifier:\n"
            "  rule_set: basic\n"
            "guidance:\n"
            "  analysis_interval_seconds: 1.5\n"
            "  synthetic:\n"
            "    width: 10\n"
        )

        settings = load_config(str(path))

        assert settings.classifier.rule_set == "basic"
        assert settings.guidance.analysis_interval_seconds == 1.5
        assert settings.guidance.synthetic.width == 10
        assert settings.guidance.synthetic.height == 48

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(str(path)) == Settings()


class TestEnvOverrides:

    def test_env_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("classifier:\n  rule_set: basic\n")
        monkeypatch.setenv("MEDSIGHT_RULE_SET", "standard")
        monkeypatch.setenv("MEDSIGHT_ANALYSIS_INTERVAL", "0.5")
        monkeypatch.setenv("MEDSIGHT_AUTOSTART", "yes")
        monkeypatch.setenv("MEDSIGHT_VOICE_ENABLED", "false")

        settings = load_config(str(path))

        assert settings.classifier.rule_set == "standard"
        assert settings.guidance.analysis_interval_seconds == 0.5
        assert settings.guidance.autostart is True
        assert settings.speech.voice_enabled is False

    def test_port_precedence(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MEDSIGHT_PORT", "9000")
        assert load_config(str(tmp_path / "none.yaml")).server.port == 9000

        monkeypatch.setenv("PORT", "8080")
        assert load_config(str(tmp_path / "none.yaml")).server.port == 8080


class TestValidation:

    @pytest.mark.parametrize(
        "data",
        [
            {"guidance": {"analysis_interval_seconds": 0}},
            {"guidance": {"synthetic": {"color": [1, 2]}}},
            {"assistant": {"command_history_size": 0}},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(ValidationError):
            Settings.model_validate(data)
