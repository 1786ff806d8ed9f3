"""
Pytest configuration and shared fixtures for RecPub tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from recpub.config import PublishConfig, RetryPolicy, Timeouts, UploadTarget


class RecordingLogger:
    """Logger that records every call for later assertions."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def step(self, step: int, total: int, message: str) -> None:
        self.events.append(("step", f"[{step}/{total}] {message}"))

    def warning(self, prefix: str, message: str) -> None:
        self.events.append(("warning", f"[{prefix}] {message}"))

    def verbose(self, prefix: str, message: str) -> None:
        self.events.append(("verbose", f"[{prefix}] {message}"))

    def debug(self, prefix: str, message: str) -> None:
        self.events.append(("debug", f"[{prefix}] {message}"))

    def messages(self, kind: str) -> list[str]:
        return [msg for k, msg in self.events if k == kind]


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def recording_content() -> bytes:
    """Provide 1000 bytes of fake recording data."""
    return bytes(range(250)) * 4


@pytest.fixture
def recording_file(tmp_test_dir: Path, recording_content: bytes) -> Path:
    """Provide a 1000-byte recording file named rec.mp4."""
    path = tmp_test_dir / "rec.mp4"
    path.write_bytes(recording_content)
    return path


@pytest.fixture
def upload_target() -> UploadTarget:
    """Provide an UploadTarget for channel c1 / post p1."""
    return UploadTarget(
        site_url="https://chat.example.com",
        auth_token="test-token",
        channel_id="c1",
        post_id="p1",
    )


@pytest.fixture
def publish_config(upload_target: UploadTarget, recording_file: Path) -> PublishConfig:
    """Provide a PublishConfig with default policy values."""
    return PublishConfig(
        target=upload_target,
        file_path=recording_file,
        retry=RetryPolicy(max_attempts=20, base_delay=5.0),
        timeouts=Timeouts(request=10.0, upload=300.0),
    )


@pytest.fixture
def base_env(recording_file: Path) -> dict[str, str]:
    """Provide a complete set of required environment variables."""
    return {
        "SITE_URL": "https://chat.example.com",
        "AUTH_TOKEN": "test-token",
        "FILEPATH": str(recording_file),
        "CHANNEL_ID": "c1",
        "POST_ID": "p1",
    }


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Provide a logger that records events."""
    return RecordingLogger()


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("policy.yaml", {"retry": {"max_attempts": 3}})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def api_urls(upload_target: UploadTarget) -> dict[str, str]:
    """Bot API endpoints for upload_target, with session us1."""
    base = upload_target.api_url
    return {
        "base": base,
        "uploads": f"{base}/uploads",
        "session": f"{base}/uploads/us1",
        "attach": f"{base}/calls/{upload_target.channel_id}/recordings",
    }


@pytest.fixture
def mock_api(api_urls: dict[str, str]):
    """
    Factory fixture registering the three bot API endpoints on a Mocker.

    Usage:
        with requests_mock.Mocker() as m:
            mock_api(m)
            ...
    """

    def _register(m, *, session_id: str = "us1", file_id: str = "f1") -> None:
        m.post(api_urls["uploads"], json={"id": session_id, "channel_id": "c1"})
        m.post(f"{api_urls['uploads']}/{session_id}", json={"id": file_id, "name": "rec.mp4"})
        m.post(api_urls["attach"], status_code=200, text="")

    return _register
