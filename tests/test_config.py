"""Tests for configuration loading and validation."""

import pytest
import yaml

from elb_roll.config import (
    DEFAULT_PROFILE,
    DEFAULT_SHARED_CREDENTIALS_FILE,
    AppConfig,
    AWSConfig,
    apply_overrides,
    load_config,
)
from elb_roll.exceptions import ConfigError


def _write_config(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


class TestLoadConfig:
    def test_defaults_without_file(self, monkeypatch):
        monkeypatch.delenv("AWS_SHARED_CREDENTIALS_FILE", raising=False)
        monkeypatch.delenv("AWS_PROFILE", raising=False)
        config = load_config()
        assert config.polling.interval_seconds == 5
        assert config.polling.timeout_seconds == 0
        assert config.polling.max_workers == 1
        assert config.tags.lane_tag == "Lane"
        assert config.command.shell == "bash"
        assert config.aws.credentials_file == DEFAULT_SHARED_CREDENTIALS_FILE
        assert config.aws.profile == DEFAULT_PROFILE

    def test_missing_file_raises(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config("/nonexistent/file.yaml")

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        config = load_config(str(path))
        assert config == AppConfig(aws=config.aws)

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("just a string")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(path))

    def test_full_config(self, tmp_path):
        data = {
            "aws": {"region": "eu-west-1", "credentials_file": "/etc/aws/creds", "profile": "deploy"},
            "tags": {"lane_tag": "Stage"},
            "polling": {"interval_seconds": 2, "timeout_seconds": 600, "max_workers": 4},
            "command": {"shell": "/bin/sh"},
            "logging": {"level": "DEBUG", "format": "text"},
        }
        config = load_config(_write_config(tmp_path, data))
        assert config.aws.region == "eu-west-1"
        assert config.aws.credentials_file == "/etc/aws/creds"
        assert config.aws.profile == "deploy"
        assert config.tags.lane_tag == "Stage"
        assert config.polling.timeout_seconds == 600
        assert config.polling.max_workers == 4
        assert config.command.shell == "/bin/sh"
        assert config.logging.format == "text"

    def test_unknown_keys_ignored(self, tmp_path):
        data = {"polling": {"interval_seconds": 3, "bogus": True}, "extra": {}}
        config = load_config(_write_config(tmp_path, data))
        assert config.polling.interval_seconds == 3

    def test_env_var_interpolation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_ROLL_REGION", "ap-south-1")
        data = {"aws": {"region": "${TEST_ROLL_REGION}"}}
        config = load_config(_write_config(tmp_path, data))
        assert config.aws.region == "ap-south-1"

    def test_env_var_missing_raises(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SURELY_MISSING_VAR", raising=False)
        data = {"aws": {"profile": "${SURELY_MISSING_VAR}"}}
        with pytest.raises(ConfigError, match="SURELY_MISSING_VAR"):
            load_config(_write_config(tmp_path, data))

    def test_interval_must_be_positive(self, tmp_path):
        data = {"polling": {"interval_seconds": 0}}
        with pytest.raises(ConfigError, match="interval_seconds"):
            load_config(_write_config(tmp_path, data))

    def test_negative_timeout_rejected(self, tmp_path):
        data = {"polling": {"timeout_seconds": -1}}
        with pytest.raises(ConfigError, match="timeout_seconds"):
            load_config(_write_config(tmp_path, data))

    def test_max_workers_must_be_positive_integer(self, tmp_path):
        data = {"polling": {"max_workers": 0}}
        with pytest.raises(ConfigError, match="max_workers"):
            load_config(_write_config(tmp_path, data))

    def test_invalid_log_format(self, tmp_path):
        data = {"logging": {"format": "xml"}}
        with pytest.raises(ConfigError, match="format"):
            load_config(_write_config(tmp_path, data))

    @pytest.mark.parametrize("value", ["fast", None, 0])
    def test_metadata_timeout_must_be_positive_number(self, tmp_path, value):
        data = {"aws": {"metadata_timeout": value}}
        with pytest.raises(ConfigError, match="metadata_timeout"):
            load_config(_write_config(tmp_path, data))

    @pytest.mark.parametrize("value", [10, "", ["INFO"]])
    def test_log_level_must_be_name(self, tmp_path, value):
        data = {"logging": {"level": value}}
        with pytest.raises(ConfigError, match="logging.level"):
            load_config(_write_config(tmp_path, data))


class TestAWSConfigEnvironment:
    def test_env_overrides_defaults(self, monkeypatch):
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", "/tmp/creds")
        monkeypatch.setenv("AWS_PROFILE", "ops")
        config = AWSConfig()
        assert config.credentials_file == "/tmp/creds"
        assert config.profile == "ops"

    def test_empty_env_falls_back_to_defaults(self, monkeypatch):
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", "")
        monkeypatch.setenv("AWS_PROFILE", "")
        config = AWSConfig()
        assert config.credentials_file == DEFAULT_SHARED_CREDENTIALS_FILE
        assert config.profile == DEFAULT_PROFILE

    def test_file_value_wins_over_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AWS_PROFILE", "from-env")
        config = load_config(_write_config(tmp_path, {"aws": {"profile": "from-file"}}))
        assert config.aws.profile == "from-file"


class TestApplyOverrides:
    def test_overrides_applied(self):
        config = apply_overrides(
            AppConfig(), interval_seconds=1.5, timeout_seconds=30, log_level="DEBUG", log_format="text",
        )
        assert config.polling.interval_seconds == 1.5
        assert config.polling.timeout_seconds == 30
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "text"

    def test_none_leaves_values_untouched(self):
        base = AppConfig()
        assert apply_overrides(base) == base

    def test_overrides_are_validated(self):
        with pytest.raises(ConfigError, match="interval_seconds"):
            apply_overrides(AppConfig(), interval_seconds=-2)
