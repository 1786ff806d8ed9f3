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

"""Exception hierarchy for RecPub.

This module defines a custom exception hierarchy that allows library users
to distinguish between different types of errors:

- ConfigError: Configuration-related errors (missing env vars, YAML parse, bad values)
- UploadError: A single upload attempt failed (one subclass per pipeline step)
- RetriesExhaustedError: Every upload attempt failed and the retry budget is spent

All exceptions inherit from RecPubError, allowing users to catch all RecPub
errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from recpub.core import publish_recording
        from recpub.exceptions import ConfigError, RetriesExhaustedError

        try:
            result = publish_recording(config)
        except ConfigError as e:
            print(f"Configuration error: {e}")
        except RetriesExhaustedError as e:
            print(f"Gave up after {e.attempts} attempts: {e}")
        ```

    Catching a single pipeline step:
        ```python
        from recpub.exceptions import LinkAttachError

        try:
            attempt_upload(target, path, timeouts=timeouts)
        except LinkAttachError:
            ...  # the file is on the server but not linked to the call
        ```
"""

from __future__ import annotations

__all__ = [
    "RecPubError",
    "ConfigError",
    "UploadError",
    "SourceUnavailableError",
    "SessionCreateError",
    "DataUploadError",
    "LinkAttachError",
    "ResponseDecodeError",
    "RetriesExhaustedError",
]


class RecPubError(Exception):
    """Base exception for all RecPub errors."""

    pass


class ConfigError(RecPubError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - Missing required environment variables (SITE_URL, AUTH_TOKEN, ...)
    - YAML parsing of the policy file
    - Non-numeric or negative retry/timeout values
    """

    pass


class UploadError(RecPubError):
    """Base class for failures of a single upload attempt.

    The retry loop treats every UploadError the same way; subclasses only
    exist so callers and logs can tell which step went wrong.
    """

    pass


class SourceUnavailableError(UploadError):
    """Raised when the local recording cannot be opened or stat'ed."""

    pass


class SessionCreateError(UploadError):
    """Raised when the create-upload-session call fails."""

    pass


class DataUploadError(UploadError):
    """Raised when streaming the file bytes to the upload session fails."""

    pass


class LinkAttachError(UploadError):
    """Raised when attaching the stored file to the call recording fails.

    Note:
        When this is raised the file has already been stored on the server
        and is left orphaned. Cleanup is out of band.
    """

    pass


class ResponseDecodeError(UploadError):
    """Raised when a server response body cannot be decoded.

    Also covers well-formed JSON that lacks the identifier the next step
    depends on (upload session id or file id).
    """

    pass


class RetriesExhaustedError(RecPubError):
    """Raised when the retry ceiling is reached without a successful attempt.

    Attributes:
        attempts: Total number of pipeline invocations that were made.
    """

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts
