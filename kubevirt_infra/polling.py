"""Convergence polling.

Waits for an eventually-consistent condition observed on the cluster, sampled
at a fixed interval and bounded by a deadline:

    POLLING -> CONVERGED   condition returned True
            -> TIMED_OUT   deadline reached before convergence
            -> FAILED      condition raised (not retried)

The first sample happens after one interval, never immediately. Time is read
from an injectable clock and waited on with an injectable sleep, so tests can
drive the machine without real delays.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import structlog

from kubevirt_infra.errors import WaitTimeoutError

logger = structlog.get_logger()

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[Any]]
Condition = Callable[[], Awaitable[bool]]


class PollState(str, Enum):
    POLLING = "polling"
    CONVERGED = "converged"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class Poller:
    """Single-use convergence poller.

    Usage:
        poller = Poller(interval=1.0, timeout=120.0)
        await poller.run(condition)  # raises WaitTimeoutError on deadline

    Cancelling the awaiting task interrupts the sleep and stops the loop; the
    state is left at POLLING in that case.
    """

    def __init__(
        self,
        *,
        interval: float,
        timeout: float,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        details: dict[str, Any] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._details = details or {}
        self._log = logger.bind(**self._details)

        self.state = PollState.POLLING
        self.attempts = 0

    async def run(self, condition: Condition) -> None:
        """Drive the machine until a terminal state.

        Raises:
            WaitTimeoutError: deadline reached without convergence
            Exception: whatever the condition raised, unchanged
        """
        if self.state is not PollState.POLLING:
            raise RuntimeError(f"poller already finished ({self.state.value})")

        deadline = self._clock() + self._timeout

        while True:
            remaining = deadline - self._clock()
            if remaining > 0:
                await self._sleep(min(self._interval, remaining))

            if self._clock() >= deadline:
                self.state = PollState.TIMED_OUT
                self._log.info("poll.timeout", attempts=self.attempts, timeout=self._timeout)
                raise WaitTimeoutError(
                    details={**self._details, "timeout": self._timeout, "attempts": self.attempts}
                )

            self.attempts += 1
            try:
                done = await condition()
            except Exception:
                self.state = PollState.FAILED
                self._log.info("poll.failed", attempts=self.attempts)
                raise

            if done:
                self.state = PollState.CONVERGED
                self._log.debug("poll.converged", attempts=self.attempts)
                return

            self._log.debug("poll.waiting", attempt=self.attempts)
