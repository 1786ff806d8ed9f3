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

"""Output sink for RecPub.

Library code reports progress through a Logger instead of printing, so the
same pipeline runs quietly under tests and chattily under the CLI. Each
publish run has at most three steps, a handful of HTTP lines and one warning
per failed attempt.

Levels:
- step: "[n/3] ..." progress lines, always shown
- warning: failed attempts and retry waits, always shown, on stderr
- verbose: URLs, status codes, ids (``-v``)
- debug: request payloads (``-d``, implies ``-v``)

Until the CLI installs a DefaultLogger with set_global_logger(), the global
logger is a SilentLogger.
"""

from __future__ import annotations

import sys
from typing import Protocol


class Logger(Protocol):
    """What recpub.io, recpub.retry and recpub.core write to."""

    def step(self, step: int, total: int, message: str) -> None: ...

    def warning(self, prefix: str, message: str) -> None: ...

    def verbose(self, prefix: str, message: str) -> None: ...

    def debug(self, prefix: str, message: str) -> None: ...


class DefaultLogger:
    """Console logger. Warnings go to stderr, everything else to stdout."""

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        print(f"[{prefix}] {message}", file=sys.stderr)

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            print(f"[{prefix}] {message}")


class SilentLogger:
    """Drops everything."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Build the console logger the CLI uses for ``-v`` / ``-d``."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Route output of calls made without an explicit ``logger=``."""
    global _global_logger
    _global_logger = logger
