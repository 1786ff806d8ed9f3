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

"""RecPub - Recording Publisher

A small CLI tool and library that uploads a call recording to a Mattermost
server through the Calls plugin bot API and attaches it to the call post.

RecPub provides:

- Upload-session based upload (create session, stream bytes, attach)
- Separate timeout budgets for metadata calls and the data transfer
- Retry of the whole upload with linearly growing waits
- Configuration from the environment, .env files and a YAML policy file

Quick Start:
Check configuration without touching the network:

    $ recpub check

Upload and attach the recording:

    $ recpub publish

For full CLI documentation:

    $ recpub --help
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "RecPub - upload call recordings and attach them to their post"

# Re-export commonly used functions for convenience
from recpub.config import PublishConfig, load_config
from recpub.core import check_config, publish_recording
from recpub.exceptions import (
    ConfigError,
    RecPubError,
    RetriesExhaustedError,
    UploadError,
)
from recpub.io import attempt_upload
from recpub.results import CheckResult, PublishResult
from recpub.retry import run_with_retry

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "CheckResult",
    "PublishConfig",
    "PublishResult",
    "attempt_upload",
    "check_config",
    "load_config",
    "publish_recording",
    "run_with_retry",
    "RecPubError",
    "ConfigError",
    "UploadError",
    "RetriesExhaustedError",
]
