# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Configuration loading for RecPub.

This module builds the immutable PublishConfig that the rest of the package
runs on. Configuration is read once, at the boundary (the CLI or a caller of
the library), and then passed explicitly into the upload pipeline and the
retry loop. Nothing below this layer reads the process environment.

Configuration Sources:
    1. **Environment variables** (optionally seeded from a .env file)
       - SITE_URL, AUTH_TOKEN, FILEPATH, CHANNEL_ID, POST_ID: required
       - RECORDING_ID, PLUGIN_ID: optional, with built-in defaults
       - Values already present in the real environment win over .env

    2. **Policy file** (YAML, optional)
       - Tunes the retry policy and timeout budgets
       - Deep-merged over the built-in defaults (overlay wins)

    3. **Explicit overrides** (keyword arguments, e.g. from CLI flags)
       - Applied last

Policy File Format:
    ```yaml
    retry:
      max_attempts: 20   # retries after the first attempt
      base_delay: 5      # seconds; wait before retry k is base_delay * k
    timeouts:
      request: 10        # seconds, metadata calls
      upload: 300        # seconds, data transfer
    ```

Error Handling:
    - ConfigError: Missing required variables, YAML parse errors, empty or
        non-mapping policy files, non-numeric or negative values
    - All errors are chained with "from err" for better debugging

Example:
    Basic usage:
        ```python
        from recpub.config import load_config

        config = load_config()
        print(config.target.api_url)
        ```

    Testing without touching os.environ:
        ```python
        config = load_config(env={"SITE_URL": "https://chat.example.com", ...})
        ```
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv
import yaml

from recpub.exceptions import ConfigError

DEFAULT_PLUGIN_ID = "com.mattermost.calls"
DEFAULT_RECORDING_ID = "zc5m3rn79iydfycnoa9gmj3cwe"

DEFAULT_POLICY: dict[str, Any] = {
    "retry": {
        "max_attempts": 20,
        "base_delay": 5,
    },
    "timeouts": {
        "request": 10,
        "upload": 300,
    },
}

REQUIRED_ENV_VARS = ("SITE_URL", "AUTH_TOKEN", "FILEPATH", "CHANNEL_ID", "POST_ID")

# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class UploadTarget:
    """Where the recording goes and what it gets attached to.

    Attributes:
        site_url: Base server URL, e.g. "https://chat.example.com".
        auth_token: Bearer token for the bot account.
        channel_id: Call/channel identifier the upload belongs to.
        post_id: Post the recording is attached to.
        recording_id: Recording job identifier sent with the attach call.
        plugin_id: Plugin namespace hosting the bot API.
    """

    site_url: str
    auth_token: str = field(repr=False)
    channel_id: str
    post_id: str
    recording_id: str = DEFAULT_RECORDING_ID
    plugin_id: str = DEFAULT_PLUGIN_ID

    @property
    def api_url(self) -> str:
        """Base URL of the plugin bot API."""
        return f"{self.site_url.rstrip('/')}/plugins/{self.plugin_id}/bot"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry ceiling and base backoff interval (seconds)."""

    max_attempts: int = 20
    base_delay: float = 5.0


@dataclass(frozen=True)
class Timeouts:
    """Per-call timeout budgets (seconds).

    Attributes:
        request: Budget for the metadata calls (create session, attach).
        upload: Budget for the bulk data transfer.
    """

    request: float = 10.0
    upload: float = 300.0


@dataclass(frozen=True)
class PublishConfig:
    """Everything a publish run needs, resolved once at startup."""

    target: UploadTarget
    file_path: Path
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    timeouts: Timeouts = field(default_factory=Timeouts)


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> dict[str, Any]:
    """Loads a YAML policy file and returns the parsed mapping.

    Raises:
        ConfigError: When file does not exist, invalid YAML, empty files, or
            a top level that is not a mapping.
    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    if not isinstance(data, dict):
        raise ConfigError(f"YAML file must contain a mapping at the top level: {p}")
    return data


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merges two dicts with "overlay wins" semantics.

    Does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


def _number(
    policy: dict[str, Any],
    section: str,
    key: str,
    kind: type,
    *,
    positive: bool = False,
) -> Any:
    """Reads policy[section][key] as a number of the given kind.

    Values must be non-negative, or strictly positive when ``positive`` is
    set. Booleans are rejected, and int fields reject fractional values.
    """
    raw = policy.get(section, {}).get(key)
    if isinstance(raw, bool):
        raise ConfigError(f"{section}.{key} must be a number, got {raw!r}")
    if kind is int and isinstance(raw, float) and not raw.is_integer():
        raise ConfigError(f"{section}.{key} must be a whole number, got {raw!r}")
    try:
        value = kind(raw)
    except (TypeError, ValueError) as err:
        raise ConfigError(
            f"{section}.{key} must be a number, got {raw!r}"
        ) from err
    if positive and value <= 0:
        raise ConfigError(f"{section}.{key} must be greater than zero, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{section}.{key} must not be negative, got {raw!r}")
    return value


# -------------------------------
# Public API
# -------------------------------


def load_policy(
    config_path: Path | None = None,
    *,
    max_attempts: int | None = None,
    base_delay: float | None = None,
) -> tuple[RetryPolicy, Timeouts]:
    """Resolves the retry policy and timeouts.

    Args:
        config_path: Optional YAML policy file merged over the defaults.
        max_attempts: Explicit override for retry.max_attempts.
        base_delay: Explicit override for retry.base_delay.

    Returns:
        A (RetryPolicy, Timeouts) tuple.

    Raises:
        ConfigError: On unreadable policy files or invalid values.
    """
    policy = DEFAULT_POLICY
    if config_path is not None:
        policy = _deep_merge_dicts(policy, _load_yaml_file(Path(config_path)))

    overrides: dict[str, Any] = {}
    if max_attempts is not None:
        overrides["max_attempts"] = max_attempts
    if base_delay is not None:
        overrides["base_delay"] = base_delay
    if overrides:
        policy = _deep_merge_dicts(policy, {"retry": overrides})

    for section in ("retry", "timeouts"):
        if not isinstance(policy.get(section), dict):
            raise ConfigError(f"'{section}' must be a mapping")

    retry = RetryPolicy(
        max_attempts=_number(policy, "retry", "max_attempts", int),
        base_delay=_number(policy, "retry", "base_delay", float),
    )
    timeouts = Timeouts(
        request=_number(policy, "timeouts", "request", float, positive=True),
        upload=_number(policy, "timeouts", "upload", float, positive=True),
    )
    return retry, timeouts


def load_target(env: Mapping[str, str]) -> tuple[UploadTarget, Path]:
    """Builds the UploadTarget and source file path from an env mapping.

    Raises:
        ConfigError: If any required variable is missing or empty.
    """
    missing = [key for key in REQUIRED_ENV_VARS if not env.get(key)]
    if missing:
        raise ConfigError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )

    target = UploadTarget(
        site_url=env["SITE_URL"],
        auth_token=env["AUTH_TOKEN"],
        channel_id=env["CHANNEL_ID"],
        post_id=env["POST_ID"],
        recording_id=env.get("RECORDING_ID") or DEFAULT_RECORDING_ID,
        plugin_id=env.get("PLUGIN_ID") or DEFAULT_PLUGIN_ID,
    )
    return target, Path(env["FILEPATH"])


def load_config(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    env_file: Path | None = None,
    max_attempts: int | None = None,
    base_delay: float | None = None,
) -> PublishConfig:
    """Loads the effective PublishConfig.

    Args:
        config_path: Optional YAML policy file.
        env: Environment mapping to read from. When None, a .env file is
            loaded (env_file, or the nearest .env above the working directory)
            without overriding existing variables, and os.environ is used.
        env_file: Explicit .env file to load when env is None.
        max_attempts: Explicit override for retry.max_attempts.
        base_delay: Explicit override for retry.base_delay.

    Returns:
        The frozen PublishConfig.

    Raises:
        ConfigError: On missing variables, unreadable files, or bad values.
    """
    if env is None:
        if env_file is not None and not Path(env_file).exists():
            raise ConfigError(f"file not found: {env_file}")
        load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)
        env = os.environ

    target, file_path = load_target(env)
    retry, timeouts = load_policy(
        config_path, max_attempts=max_attempts, base_delay=base_delay
    )
    return PublishConfig(
        target=target, file_path=file_path, retry=retry, timeouts=timeouts
    )
