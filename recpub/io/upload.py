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

"""Recording upload pipeline for RecPub.

This module performs exactly one end-to-end attempt to publish a call
recording through the plugin bot API. An attempt is three remote calls, made
in order against ``{site}/plugins/{plugin}/bot``:

1. ``POST /uploads``: declare an upload session (channel, file name, size)
2. ``POST /uploads/{session_id}``: stream the file bytes into that session
3. ``POST /calls/{channel_id}/recordings``: link the stored file to the call

Key Features:

- **Streaming Upload** - The open file handle is passed straight to requests,
  so the recording is never buffered in memory.
- **Two Timeout Budgets** - A short budget for the metadata calls and a long
  one for the data transfer.
- **Step-Specific Errors** - Each step raises its own UploadError subclass.
  Undecodable responses raise ResponseDecodeError.
- **Scoped Resources** - The file handle, the HTTP session, and every response
  are closed by ``with`` blocks on all exit paths.

There is no retry in here. Retrying is the job of recpub.retry, which
calls attempt_upload again from scratch; a session id is never reused
across attempts.

Example:
    Single attempt:
        ```python
        from pathlib import Path
        from recpub.config import Timeouts, UploadTarget
        from recpub.io.upload import attempt_upload

        target = UploadTarget(
            site_url="https://chat.example.com",
            auth_token="...",
            channel_id="c1",
            post_id="p1",
        )
        info = attempt_upload(target, Path("rec.mp4"), timeouts=Timeouts())
        print(info.id)
        ```

Notes:
- Timeouts are requests' connect/read timeouts, not a total wall-clock cap
- If the attach step fails the stored file stays on the server (orphaned)
- Upload resumption is not supported; every attempt starts at byte zero
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, BinaryIO

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from recpub.config import Timeouts, UploadTarget
from recpub.exceptions import (
    DataUploadError,
    LinkAttachError,
    ResponseDecodeError,
    SessionCreateError,
    SourceUnavailableError,
)
from recpub.logging import Logger, get_global_logger

USER_AGENT = "recpub/0.1"

# -------------------------------
# Wire types
# -------------------------------


@dataclass
class UploadSession:
    """An upload session as declared to, and returned by, the server.

    ``id`` stays None until the create-session call returns.
    """

    channel_id: str
    filename: str
    file_size: int
    id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "filename": self.filename,
            "file_size": self.file_size,
        }


@dataclass(frozen=True)
class StoredFileInfo:
    """The server's record of the uploaded bytes."""

    id: str
    name: str | None = None
    size: int | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> StoredFileInfo:
        return cls(id=data["id"], name=data.get("name"), size=data.get("size"))


@dataclass(frozen=True)
class RecordingLinkRequest:
    """Links stored files to a recording job and a post."""

    job_id: str
    post_id: str
    file_ids: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "file_ids": list(self.file_ids),
            "post_id": self.post_id,
        }


# -------------------------------
# HTTP helpers
# -------------------------------


def make_session(auth_token: str) -> requests.Session:
    """Create an authenticated requests.Session for the bot API.

    Retries are disabled on the mounted adapters. A failed call fails the
    whole attempt; recpub.retry starts over with a new upload session.
    """
    s = requests.Session()
    no_retries = Retry(total=0, raise_on_status=False)
    s.headers.update(
        {
            "Authorization": f"Bearer {auth_token}",
            "X-Requested-With": "XMLHttpRequest",
            "User-Agent": USER_AGENT,
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=no_retries))
    s.mount("https://", HTTPAdapter(max_retries=no_retries))
    return s


def _decode_object(resp: requests.Response, what: str, required: str) -> dict[str, Any]:
    """Decode a JSON object body that must carry a non-empty ``required`` key.

    Raises:
        ResponseDecodeError: On invalid JSON, a non-object body, or a missing
            or empty ``required`` field.
    """
    try:
        data = resp.json()
    except ValueError as err:
        raise ResponseDecodeError(
            f"failed to decode {what} response body: {err}"
        ) from err
    if not isinstance(data, dict):
        raise ResponseDecodeError(
            f"{what} response is not a JSON object: {type(data).__name__}"
        )
    value = data.get(required)
    if not isinstance(value, str) or not value:
        raise ResponseDecodeError(f"{what} response has no '{required}' field")
    return data


# -------------------------------
# Pipeline steps
# -------------------------------


def create_upload_session(
    session: requests.Session,
    target: UploadTarget,
    upload: UploadSession,
    *,
    timeout: float,
    logger: Logger,
) -> UploadSession:
    """Declare the upload and fill in the server-assigned session id.

    Raises:
        SessionCreateError: On transport errors or non-2xx responses.
        ResponseDecodeError: If the response has no usable session id.
    """
    url = f"{target.api_url}/uploads"
    logger.verbose("HTTP", f"POST {url}")
    logger.debug("HTTP", f"Payload: {upload.to_payload()}")

    try:
        with session.post(url, json=upload.to_payload(), timeout=timeout) as resp:
            logger.verbose("HTTP", f"Response: {resp.status_code} {resp.reason}")
            resp.raise_for_status()
            data = _decode_object(resp, "upload session", "id")
    except requests.exceptions.RequestException as err:
        raise SessionCreateError(f"failed to create upload: {err}") from err

    upload.id = data["id"]
    logger.verbose("UPLOAD", f"Upload session created: {upload.id}")
    return upload


def upload_data(
    session: requests.Session,
    target: UploadTarget,
    upload: UploadSession,
    source: BinaryIO,
    *,
    timeout: float,
    logger: Logger,
) -> StoredFileInfo:
    """Stream ``source`` (an open binary file) into the upload session.

    The file is read from its current position.

    Raises:
        DataUploadError: On transport errors or non-2xx responses.
        ResponseDecodeError: If the response has no usable file id.
    """
    url = f"{target.api_url}/uploads/{upload.id}"
    logger.verbose("HTTP", f"POST {url} ({upload.file_size} bytes)")

    try:
        with session.post(url, data=source, timeout=timeout) as resp:
            logger.verbose("HTTP", f"Response: {resp.status_code} {resp.reason}")
            resp.raise_for_status()
            data = _decode_object(resp, "file info", "id")
    except requests.exceptions.RequestException as err:
        raise DataUploadError(f"failed to upload data: {err}") from err

    info = StoredFileInfo.from_payload(data)
    logger.verbose("UPLOAD", f"Data uploaded, file id: {info.id}")
    return info


def attach_recording(
    session: requests.Session,
    target: UploadTarget,
    link: RecordingLinkRequest,
    *,
    timeout: float,
    logger: Logger,
) -> None:
    """Link stored files to the call recording.

    Only the status code matters; the response body is not read.

    Raises:
        LinkAttachError: On transport errors or non-2xx responses.
    """
    url = f"{target.api_url}/calls/{target.channel_id}/recordings"
    logger.verbose("HTTP", f"POST {url}")
    logger.debug("HTTP", f"Payload: {link.to_payload()}")

    try:
        with session.post(url, json=link.to_payload(), timeout=timeout) as resp:
            logger.verbose("HTTP", f"Response: {resp.status_code} {resp.reason}")
            resp.raise_for_status()
    except requests.exceptions.RequestException as err:
        raise LinkAttachError(f"failed to save recording: {err}") from err


def attempt_upload(
    target: UploadTarget,
    file_path: Path,
    *,
    timeouts: Timeouts,
    session: requests.Session | None = None,
    logger: Logger | None = None,
) -> StoredFileInfo:
    """Run one complete upload attempt: create, stream, attach.

    Args:
        target: Destination server, channel and post.
        file_path: Recording to upload. Its base name is sent as the file name.
        timeouts: Budgets for the metadata calls and the data transfer.
        session: HTTP session to use. When None a fresh one is created from
            target.auth_token and closed before returning.
        logger: Progress sink. Defaults to the global logger.

    Returns:
        The StoredFileInfo of the uploaded file.

    Raises:
        SourceUnavailableError: If the file cannot be opened or stat'ed.
        SessionCreateError: If the upload session cannot be created.
        DataUploadError: If the file bytes cannot be uploaded.
        LinkAttachError: If the stored file cannot be linked to the recording.
        ResponseDecodeError: If a create/upload response is unusable.
    """
    if logger is None:
        logger = get_global_logger()

    file_path = Path(file_path)
    try:
        source = file_path.open("rb")
    except OSError as err:
        raise SourceUnavailableError(f"failed to open file: {err}") from err

    with source:
        try:
            file_size = os.fstat(source.fileno()).st_size
        except OSError as err:
            raise SourceUnavailableError(f"failed to stat file: {err}") from err

        upload = UploadSession(
            channel_id=target.channel_id,
            filename=file_path.name,
            file_size=file_size,
        )

        if session is None:
            session = make_session(target.auth_token)
            owns_session = True
        else:
            owns_session = False

        try:
            logger.step(1, 3, "Creating upload session...")
            create_upload_session(
                session, target, upload, timeout=timeouts.request, logger=logger
            )

            logger.step(2, 3, "Uploading data...")
            info = upload_data(
                session, target, upload, source, timeout=timeouts.upload, logger=logger
            )

            logger.step(3, 3, "Attaching recording...")
            link = RecordingLinkRequest(
                job_id=target.recording_id,
                post_id=target.post_id,
                file_ids=[info.id],
            )
            attach_recording(
                session, target, link, timeout=timeouts.request, logger=logger
            )
        finally:
            if owns_session:
                session.close()

    return info
