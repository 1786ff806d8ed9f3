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

"""Core orchestration for RecPub.

This module wires the configuration, the upload pipeline and the retry loop
together. It is what the CLI calls, and the entry point for programmatic use.

Design Principles:

- Configuration is loaded once by the caller and passed in; nothing here
  reads the environment
- Functions return frozen dataclasses from recpub.results
- Error handling uses exceptions; the CLI layer formats them for display

Example:
    Programmatic usage:
        ```python
        from recpub.config import load_config
        from recpub.core import publish_recording

        result = publish_recording(load_config())
        print(f"File {result.file_id} attached after {result.attempts} attempt(s)")
        ```
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import os
from pathlib import Path
import time

from recpub.config import PublishConfig, load_config
from recpub.exceptions import ConfigError
from recpub.io.upload import StoredFileInfo, attempt_upload
from recpub.logging import Logger, get_global_logger
from recpub.results import CheckResult, PublishResult
from recpub.retry import run_with_retry


def publish_recording(
    config: PublishConfig,
    *,
    sleep: Callable[[float], object] = time.sleep,
    logger: Logger | None = None,
) -> PublishResult:
    """Upload the configured recording and attach it, retrying on failure.

    Each attempt runs the full create/upload/attach pipeline from scratch.
    Waits between attempts grow linearly (base_delay, 2 * base_delay, ...).

    Args:
        config: Effective configuration from recpub.config.load_config().
        sleep: Blocking sleep used between attempts.
        logger: Progress sink. Defaults to the global logger.

    Returns:
        PublishResult with the stored file id and the number of attempts.

    Raises:
        RetriesExhaustedError: If every attempt failed
            (config.retry.max_attempts + 1 of them).
    """
    if logger is None:
        logger = get_global_logger()

    def _attempt() -> StoredFileInfo:
        return attempt_upload(
            config.target,
            config.file_path,
            timeouts=config.timeouts,
            logger=logger,
        )

    logger.verbose("PUBLISH", f"Source file: {config.file_path}")
    logger.verbose("PUBLISH", f"API: {config.target.api_url}")
    logger.verbose(
        "PUBLISH",
        (
            f"Retry policy: {config.retry.max_attempts} retries, "
            f"{config.retry.base_delay:g}s base delay"
        ),
    )

    state = run_with_retry(
        _attempt,
        max_attempts=config.retry.max_attempts,
        base_delay=config.retry.base_delay,
        sleep=sleep,
        logger=logger,
    )
    stored: StoredFileInfo = state.result
    logger.verbose("PUBLISH", "Recording uploaded successfully")

    return PublishResult(
        file_path=config.file_path,
        file_id=stored.id,
        channel_id=config.target.channel_id,
        post_id=config.target.post_id,
        attempts=state.invocations,
        status="success",
    )


def check_config(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    env_file: Path | None = None,
) -> CheckResult:
    """Load the configuration and stat the source file, without network calls.

    Args:
        config_path: Optional YAML policy file.
        env: Environment mapping (defaults to os.environ plus .env).
        env_file: Explicit .env file to load when env is None.

    Returns:
        CheckResult with status "ok" or "error" and the collected errors.
    """
    try:
        config = load_config(config_path, env=env, env_file=env_file)
    except ConfigError as err:
        return CheckResult(
            status="error",
            errors=[str(err)],
            file_path=None,
            file_size=None,
            api_url=None,
        )

    errors: list[str] = []
    file_size = None
    try:
        file_size = os.stat(config.file_path).st_size
    except OSError as err:
        errors.append(f"Source file not readable: {err}")

    return CheckResult(
        status="error" if errors else "ok",
        errors=errors,
        file_path=config.file_path,
        file_size=file_size,
        api_url=config.target.api_url,
    )
