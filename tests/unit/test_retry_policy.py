"""Unit tests for RetryPolicy."""

import pytest

from gitty.lib.exceptions import HostingError
from gitty.lib.retry import RetryPolicy


def _transient(error: BaseException) -> bool:
    return isinstance(error, HostingError) and error.recoverable


class TestRetryPolicy:
    """Tests for the tenacity-backed retry controller."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        policy = RetryPolicy.no_wait(max_retries=3)
        calls = []

        async for attempt in policy.retrying(_transient, "flaky call"):
            with attempt:
                calls.append(1)
                if len(calls) < 3:
                    raise HostingError("busy", status_code=503)

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        policy = RetryPolicy.no_wait(max_retries=2)
        calls = []

        with pytest.raises(HostingError):
            async for attempt in policy.retrying(_transient, "always busy"):
                with attempt:
                    calls.append(1)
                    raise HostingError("busy", status_code=503)

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_non_retryable_error_raised_immediately(self):
        policy = RetryPolicy.no_wait()
        calls = []

        with pytest.raises(HostingError) as exc_info:
            async for attempt in policy.retrying(_transient, "bad request"):
                with attempt:
                    calls.append(1)
                    raise HostingError("bad", status_code=400)

        assert len(calls) == 1
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_max_retries_override(self):
        policy = RetryPolicy.no_wait(max_retries=5)
        calls = []

        with pytest.raises(HostingError):
            async for attempt in policy.retrying(_transient, "override", max_retries=0):
                with attempt:
                    calls.append(1)
                    raise HostingError("busy", status_code=429)

        assert len(calls) == 1

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.min_backoff == 1.0
        assert policy.max_backoff == 30.0
