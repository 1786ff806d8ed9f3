"""Input/Output operations for RecPub.

Modules:

upload : module
    The three-call recording upload pipeline (create session, stream data,
    attach to recording).

Public API:

attempt_upload : function
    Run one complete upload attempt against the plugin bot API.
make_session : function
    Build an authenticated requests.Session with adapter retries disabled.

Example:
    from pathlib import Path
    from recpub.io import attempt_upload

    info = attempt_upload(config.target, Path("rec.mp4"), timeouts=config.timeouts)
    print(f"Stored as {info.id}")

"""

from .upload import (
    RecordingLinkRequest,
    StoredFileInfo,
    UploadSession,
    attempt_upload,
    make_session,
)

__all__ = [
    "attempt_upload",
    "make_session",
    "RecordingLinkRequest",
    "StoredFileInfo",
    "UploadSession",
]
