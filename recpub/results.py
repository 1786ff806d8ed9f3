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

"""Public API return types for RecPub.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Note:
    Only public API return types belong in this module. Wire types (like
    UploadSession) stay in recpub.io.upload, configuration types in
    recpub.config.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PublishResult:
    """Result from publishing a recording.

    Attributes:
        file_path: Local recording that was uploaded.
        file_id: Server-side identifier of the stored file.
        channel_id: Call/channel the recording was attached to.
        post_id: Post the recording was attached to.
        attempts: Number of upload attempts it took (1 if no retry).
        status: Always "success" for a returned result.
    """

    file_path: Path
    file_id: str
    channel_id: str
    post_id: str
    attempts: int
    status: str


@dataclass(frozen=True)
class CheckResult:
    """Result from checking configuration without network calls.

    Attributes:
        status: "ok" or "error".
        errors: List of error messages (empty if ok).
        file_path: Source recording path, if configured.
        file_size: Size of the source recording in bytes, if readable.
        api_url: Resolved plugin bot API URL, if configured.
    """

    status: str
    errors: list[str]
    file_path: Path | None
    file_size: int | None
    api_url: str | None
