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

Connection details come from the environment (optionally seeded from a .env
file); the retry policy and timeout budgets come from built-in defaults,
optionally overridden by a YAML policy file and explicit overrides.

Example:
    Basic usage:
        ```python
        from pathlib import Path
        from recpub.config import load_config

        config = load_config(Path("policy.yaml"))
        print(config.retry.max_attempts)  # 20 unless overridden
        ```
"""

from .loader import (
    PublishConfig,
    RetryPolicy,
    Timeouts,
    UploadTarget,
    load_config,
    load_policy,
    load_target,
)

__all__ = [
    "PublishConfig",
    "RetryPolicy",
    "Timeouts",
    "UploadTarget",
    "load_config",
    "load_policy",
    "load_target",
]
