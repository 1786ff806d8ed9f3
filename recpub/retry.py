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

"""Retry loop with linearly growing backoff.

run_with_retry() calls a pipeline until it succeeds or the retry ceiling is
reached. The loop is a small state machine:

    ATTEMPTING --success--> SUCCEEDED
    ATTEMPTING --failure, attempt == max_attempts--> EXHAUSTED
    ATTEMPTING --failure--> WAITING --sleep(base_delay * attempt)--> ATTEMPTING

Attempt Counting:
    The ceiling is checked before the counter is incremented, so a pipeline
    that always fails is invoked ``max_attempts + 1`` times: the first try
    plus ``max_attempts`` retries. With the defaults (20 attempts, 5 s base
    delay) the waits are 5, 10, 15, ... 100 seconds.

Example:
    Retry an arbitrary callable with a fake clock:
        ```python
        from recpub.retry import run_with_retry

        waits = []
        state = run_with_retry(flaky, max_attempts=3, base_delay=2, sleep=waits.append)
        print(state.invocations, waits)  # e.g. 3 [2, 4]
        ```

Note:
    Only exceptions listed in ``retry_on`` (UploadError by default) are
    retried. Anything else propagates immediately.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import time

from recpub.exceptions import RetriesExhaustedError, UploadError
from recpub.logging import Logger, get_global_logger


class RetryPhase(str, Enum):
    """Phases of the retry state machine."""

    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class RetryState:
    """Mutable state owned by one run_with_retry() call.

    Attributes:
        phase: Current phase.
        attempt: Retry counter (0 during the first invocation).
        invocations: Number of pipeline invocations started so far.
        wait: Duration of the most recent backoff, in seconds.
        last_error: Error raised by the most recent failed invocation.
        result: Return value of the successful invocation.
    """

    phase: RetryPhase = RetryPhase.ATTEMPTING
    attempt: int = 0
    invocations: int = 0
    wait: float = 0.0
    last_error: BaseException | None = None
    result: object = None

    @property
    def done(self) -> bool:
        return self.phase in (RetryPhase.SUCCEEDED, RetryPhase.EXHAUSTED)


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Return the wait before retry number ``attempt`` (1-based)."""
    return base_delay * attempt


def run_with_retry(
    pipeline: Callable[[], object],
    max_attempts: int = 20,
    base_delay: float = 5.0,
    *,
    sleep: Callable[[float], object] = time.sleep,
    logger: Logger | None = None,
    on_transition: Callable[[RetryState], object] | None = None,
    retry_on: tuple[type[BaseException], ...] = (UploadError,),
) -> RetryState:
    """Invoke ``pipeline`` until it succeeds or retries are exhausted.

    Args:
        pipeline: Zero-argument callable. Returning normally means success;
            raising one of ``retry_on`` means a retryable failure.
        max_attempts: Number of retries after the first invocation.
        base_delay: Base backoff in seconds. Retry k waits base_delay * k.
        sleep: Blocking sleep function. Injectable for tests.
        logger: Progress sink. Defaults to the global logger.
        on_transition: Called with the state after every phase change.
        retry_on: Exception types treated as retryable failures.

    Returns:
        The final RetryState (phase SUCCEEDED). Its ``result`` holds what
        the successful invocation returned.

    Raises:
        RetriesExhaustedError: If the pipeline failed ``max_attempts + 1``
            times. Chained from the last failure.
        ValueError: If max_attempts or base_delay is negative.
    """
    if max_attempts < 0:
        raise ValueError(f"max_attempts must not be negative, got {max_attempts}")
    if base_delay < 0:
        raise ValueError(f"base_delay must not be negative, got {base_delay}")
    if logger is None:
        logger = get_global_logger()

    state = RetryState()

    def _enter(phase: RetryPhase) -> None:
        state.phase = phase
        if on_transition is not None:
            on_transition(state)

    _enter(RetryPhase.ATTEMPTING)
    while True:
        state.invocations += 1
        logger.verbose(
            "RETRY", f"Attempt {state.invocations} of {max_attempts + 1}"
        )
        try:
            result = pipeline()
        except retry_on as err:
            state.last_error = err
        else:
            state.last_error = None
            state.result = result
            _enter(RetryPhase.SUCCEEDED)
            return state

        logger.warning("RETRY", f"Upload attempt failed: {state.last_error}")
        if state.attempt == max_attempts:
            _enter(RetryPhase.EXHAUSTED)
            raise RetriesExhaustedError(
                "max retry attempts reached, exiting", attempts=state.invocations
            ) from state.last_error

        state.attempt += 1

        state.wait = backoff_delay(base_delay, state.attempt)
        logger.warning("RETRY", f"Retrying in {state.wait:g}s")
        _enter(RetryPhase.WAITING)
        sleep(state.wait)
        _enter(RetryPhase.ATTEMPTING)
