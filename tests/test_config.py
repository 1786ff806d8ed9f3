"""
Tests for recpub.config.loader module.

Tests configuration loading including:
- Required and optional environment variables
- .env file loading
- YAML policy files merged over defaults
- Explicit overrides
- Error handling
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from recpub.config import (
    PublishConfig,
    RetryPolicy,
    Timeouts,
    UploadTarget,
    load_config,
    load_policy,
)
from recpub.exceptions import ConfigError


class TestEnvironment:
    """Tests for reading connection details from the environment."""

    def test_load_from_env_mapping(self, base_env, recording_file):
        """Test that a complete env mapping yields a PublishConfig."""
        config = load_config(env=base_env)

        assert isinstance(config, PublishConfig)
        assert config.target.site_url == "https://chat.example.com"
        assert config.target.auth_token == "test-token"
        assert config.target.channel_id == "c1"
        assert config.target.post_id == "p1"
        assert config.file_path == recording_file

    def test_optional_values_default(self, base_env):
        """Test built-in recording id and plugin id."""
        config = load_config(env=base_env)

        assert config.target.recording_id == "zc5m3rn79iydfycnoa9gmj3cwe"
        assert config.target.plugin_id == "com.mattermost.calls"

    def test_optional_values_override(self, base_env):
        """Test that RECORDING_ID and PLUGIN_ID are honoured."""
        env = {**base_env, "RECORDING_ID": "job-7", "PLUGIN_ID": "com.example.rec"}

        config = load_config(env=env)

        assert config.target.recording_id == "job-7"
        assert config.target.api_url == (
            "https://chat.example.com/plugins/com.example.rec/bot"
        )

    def test_missing_required_vars_listed(self, base_env):
        """Test that every missing variable is named in the error."""
        env = dict(base_env)
        del env["AUTH_TOKEN"]
        env["POST_ID"] = ""

        with pytest.raises(ConfigError, match="AUTH_TOKEN, POST_ID"):
            load_config(env=env)

    def test_api_url_strips_trailing_slash(self):
        """Test that a trailing slash on SITE_URL is not doubled."""
        target = UploadTarget(
            site_url="https://chat.example.com/",
            auth_token="t",
            channel_id="c",
            post_id="p",
        )

        assert target.api_url == (
            "https://chat.example.com/plugins/com.mattermost.calls/bot"
        )

    def test_token_not_in_repr(self, base_env):
        """Test that the auth token is kept out of the dataclass repr."""
        config = load_config(env=base_env)

        assert "test-token" not in repr(config)

    def test_env_file_loaded(self, tmp_test_dir, base_env):
        """Test that an explicit .env file populates the environment."""
        env_file = tmp_test_dir / "job.env"
        env_file.write_text(
            "\n".join(f"{k}={v}" for k, v in base_env.items()) + "\n",
            encoding="utf-8",
        )

        with patch.dict(os.environ, {}, clear=True):
            config = load_config(env_file=env_file)

        assert config.target.channel_id == "c1"
        assert config.file_path == Path(base_env["FILEPATH"])

    def test_real_env_wins_over_env_file(self, tmp_test_dir, base_env):
        """Test that .env values never override existing variables."""
        env_file = tmp_test_dir / "job.env"
        env_file.write_text(
            "\n".join(f"{k}={v}" for k, v in base_env.items()) + "\n",
            encoding="utf-8",
        )

        with patch.dict(os.environ, {"CHANNEL_ID": "from-env"}, clear=True):
            config = load_config(env_file=env_file)

        assert config.target.channel_id == "from-env"

    def test_missing_env_file_raises(self, tmp_test_dir):
        """Test that a nonexistent explicit .env file is a config error."""
        with pytest.raises(ConfigError, match="file not found"):
            load_config(env_file=tmp_test_dir / "nope.env")

    def test_dotenv_in_working_directory(self, tmp_test_dir, base_env, monkeypatch):
        """Test that the .env of the current directory is found by default."""
        job_dir = tmp_test_dir / "job"
        job_dir.mkdir()
        (job_dir / ".env").write_text(
            "\n".join(f"{k}={v}" for k, v in base_env.items()) + "\n",
            encoding="utf-8",
        )
        monkeypatch.chdir(job_dir)

        with patch.dict(os.environ, {}, clear=True):
            config = load_config()

        assert config.target.site_url == "https://chat.example.com"
        assert config.target.post_id == "p1"

    def test_dotenv_in_parent_directory(self, tmp_test_dir, base_env, monkeypatch):
        """Test that the search walks upward from the working directory."""
        (tmp_test_dir / ".env").write_text(
            "\n".join(f"{k}={v}" for k, v in base_env.items()) + "\n",
            encoding="utf-8",
        )
        nested = tmp_test_dir / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        with patch.dict(os.environ, {}, clear=True):
            config = load_config()

        assert config.target.channel_id == "c1"


class TestPolicy:
    """Tests for retry policy and timeouts."""

    def test_defaults(self):
        """Test the built-in policy."""
        retry, timeouts = load_policy()

        assert retry == RetryPolicy(max_attempts=20, base_delay=5.0)
        assert timeouts == Timeouts(request=10.0, upload=300.0)

    def test_yaml_partial_override(self, create_yaml_file):
        """Test that a policy file only replaces the keys it sets."""
        path = create_yaml_file("policy.yaml", {"retry": {"max_attempts": 3}})

        retry, timeouts = load_policy(path)

        assert retry.max_attempts == 3
        assert retry.base_delay == 5.0
        assert timeouts.upload == 300.0

    def test_yaml_timeouts(self, create_yaml_file, base_env):
        """Test that timeouts flow into the effective config."""
        path = create_yaml_file(
            "policy.yaml", {"timeouts": {"request": 2, "upload": 900}}
        )

        config = load_config(path, env=base_env)

        assert config.timeouts == Timeouts(request=2.0, upload=900.0)

    def test_explicit_overrides_beat_yaml(self, create_yaml_file):
        """Test that keyword overrides are applied last."""
        path = create_yaml_file(
            "policy.yaml", {"retry": {"max_attempts": 3, "base_delay": 1}}
        )

        retry, _ = load_policy(path, max_attempts=0, base_delay=0.5)

        assert retry == RetryPolicy(max_attempts=0, base_delay=0.5)

    def test_missing_policy_file(self, tmp_test_dir):
        """Test that a missing policy file raises ConfigError."""
        with pytest.raises(ConfigError, match="file not found"):
            load_policy(tmp_test_dir / "missing.yaml")

    def test_invalid_yaml(self, tmp_test_dir):
        """Test that malformed YAML raises ConfigError."""
        path = tmp_test_dir / "bad.yaml"
        path.write_text("retry: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Error parsing YAML"):
            load_policy(path)

    def test_empty_yaml(self, tmp_test_dir):
        """Test that an empty policy file raises ConfigError."""
        path = tmp_test_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ConfigError, match="empty"):
            load_policy(path)

    def test_non_mapping_yaml(self, tmp_test_dir):
        """Test that a top-level list is rejected."""
        path = tmp_test_dir / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_policy(path)

    def test_section_not_mapping(self, create_yaml_file):
        """Test that a scalar retry section is rejected."""
        path = create_yaml_file("policy.yaml", {"retry": 5})

        with pytest.raises(ConfigError, match="'retry' must be a mapping"):
            load_policy(path)

    def test_non_numeric_value(self, create_yaml_file):
        """Test that a non-numeric value raises ConfigError."""
        path = create_yaml_file("policy.yaml", {"retry": {"base_delay": "soon"}})

        with pytest.raises(ConfigError, match="retry.base_delay must be a number"):
            load_policy(path)

    def test_negative_value(self, create_yaml_file):
        """Test that negative values are rejected."""
        path = create_yaml_file("policy.yaml", {"retry": {"base_delay": -1}})

        with pytest.raises(ConfigError, match="must not be negative"):
            load_policy(path)

    @pytest.mark.parametrize("key", ["request", "upload"])
    def test_zero_timeout_rejected(self, create_yaml_file, key):
        """Test that a timeout of zero is a config error, not a request error."""
        path = create_yaml_file("policy.yaml", {"timeouts": {key: 0}})

        with pytest.raises(ConfigError, match=f"timeouts.{key} must be greater than zero"):
            load_policy(path)

    def test_zero_retries_and_delay_allowed(self, create_yaml_file):
        """Test that zero is a valid retry count and base delay."""
        path = create_yaml_file(
            "policy.yaml", {"retry": {"max_attempts": 0, "base_delay": 0}}
        )

        retry, _ = load_policy(path)

        assert retry == RetryPolicy(max_attempts=0, base_delay=0.0)

    def test_fractional_max_attempts_rejected(self, create_yaml_file):
        """Test that max_attempts is not silently truncated."""
        path = create_yaml_file("policy.yaml", {"retry": {"max_attempts": 2.7}})

        with pytest.raises(ConfigError, match="must be a whole number"):
            load_policy(path)

    def test_whole_float_max_attempts_accepted(self, create_yaml_file):
        """Test that 3.0 is read as 3."""
        path = create_yaml_file("policy.yaml", {"retry": {"max_attempts": 3.0}})

        retry, _ = load_policy(path)

        assert retry.max_attempts == 3
        assert isinstance(retry.max_attempts, int)

    @pytest.mark.parametrize(
        "section,key", [("retry", "max_attempts"), ("timeouts", "upload")]
    )
    def test_boolean_rejected(self, create_yaml_file, section, key):
        """Test that YAML booleans are not read as 0 or 1."""
        path = create_yaml_file("policy.yaml", {section: {key: True}})

        with pytest.raises(ConfigError, match=f"{section}.{key} must be a number"):
            load_policy(path)
