"""Retry policy for unreliable host and AI calls, built on tenacity."""

import logging
from dataclasses import dataclass
from typing import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff with jitter.

    Attributes:
        max_retries: Retries after the first attempt
        min_backoff: Initial wait in seconds (doubles per retry)
        max_backoff: Upper bound for the exponential part of the wait
        jitter: Random extra wait as a fraction of min_backoff
    """

    max_retries: int = 3
    min_backoff: float = 1.0
    max_backoff: float = 30.0
    jitter: float = 0.2

    @classmethod
    def no_wait(cls, max_retries: int = 3) -> "RetryPolicy":
        """Policy that retries immediately (tests, interactive tools)."""
        return cls(max_retries=max_retries, min_backoff=0.0, max_backoff=0.0, jitter=0.0)

    def retrying(
        self,
        should_retry: Callable[[BaseException], bool],
        operation_name: str,
        max_retries: int | None = None,
    ) -> AsyncRetrying:
        """
        Build an AsyncRetrying controller for one operation.

        Usage:
            async for attempt in policy.retrying(is_transient, "Create repo"):
                with attempt:
                    repo = await host.create_repository(...)

        The last exception is re-raised once retries are exhausted or
        ``should_retry`` rejects it.
        """
        retries = self.max_retries if max_retries is None else max_retries

        def _log_retry(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            logger.info(
                f"{operation_name} failed ({error}), "
                f"retry attempt {state.attempt_number}/{retries}"
            )

        return AsyncRetrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=self.min_backoff, max=self.max_backoff)
            + wait_random(0, self.jitter * self.min_backoff),
            retry=retry_if_exception(should_retry),
            before_sleep=_log_retry,
            reraise=True,
        )
