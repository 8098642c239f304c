"""Tests for retry_with_backoff, BackoffSchedule and CircuitBreaker."""

import pytest

from alphacopy.infrastructure.resilience import (
    BackoffSchedule,
    CircuitBreaker,
    CircuitBreakerOpenError,
    CircuitState,
    RetryableError,
    retry_with_backoff,
)


class TestRetryWithBackoff:
    """Tests для retry decorator."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        # Arrange
        calls = []

        @retry_with_backoff(max_retries=3, base_delay=0.001)
        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise RetryableError("429")
            return "ok"

        # Act
        result = await flaky()

        # Assert
        assert result == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_raises_after_exhausting_retries(self):
        calls = []

        @retry_with_backoff(max_retries=2, base_delay=0.001)
        async def always_down():
            calls.append(1)
            raise RetryableError("503")

        with pytest.raises(RetryableError, match="503"):
            await always_down()
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_non_retryable_raised_immediately(self):
        calls = []

        @retry_with_backoff(max_retries=5, base_delay=0.001)
        async def broken():
            calls.append(1)
            raise ValueError("bad request")

        with pytest.raises(ValueError):
            await broken()
        assert len(calls) == 1

    def test_rejects_sync_function(self):
        with pytest.raises(TypeError):

            @retry_with_backoff()
            def not_async():
                return 1


class TestBackoffSchedule:
    def test_delays_grow_and_cap(self):
        schedule = BackoffSchedule(base_delay=5, max_delay=60)

        delays = [schedule.next_delay() for _ in range(6)]

        assert delays == [5.0, 10.0, 20.0, 40.0, 60.0, 60.0]
        assert schedule.failures == 6

    def test_reset(self):
        schedule = BackoffSchedule(base_delay=1, max_delay=8)
        schedule.next_delay()
        schedule.next_delay()

        schedule.reset()

        assert schedule.failures == 0
        assert schedule.next_delay() == 1.0
        assert schedule.delay_for(0) == 0.0


class TestCircuitBreaker:
    """Tests для CLOSED → OPEN → HALF_OPEN → CLOSED."""

    @pytest.mark.asyncio
    async def test_opens_after_threshold_and_fails_fast(self):
        # Arrange
        circuit = CircuitBreaker("rpc", failure_threshold=2, timeout_seconds=60)
        calls = []

        async def down():
            calls.append(1)
            raise ConnectionError("refused")

        # Act
        for _ in range(2):
            with pytest.raises(ConnectionError):
                await circuit.call(down)

        # Assert
        assert circuit.state == CircuitState.OPEN
        with pytest.raises(CircuitBreakerOpenError):
            await circuit.call(down)
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_half_open_then_closed_after_successes(self):
        circuit = CircuitBreaker("rpc", failure_threshold=1, timeout_seconds=0, success_threshold=2)

        async def down():
            raise ConnectionError("refused")

        async def up():
            return "ok"

        with pytest.raises(ConnectionError):
            await circuit.call(down)
        assert circuit.state == CircuitState.OPEN

        assert await circuit.call(up) == "ok"
        assert circuit.state == CircuitState.HALF_OPEN
        assert await circuit.call(up) == "ok"
        assert circuit.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_failure_in_half_open_reopens(self):
        circuit = CircuitBreaker("rpc", failure_threshold=1, timeout_seconds=0)

        async def down():
            raise ConnectionError("refused")

        with pytest.raises(ConnectionError):
            await circuit.call(down)
        with pytest.raises(ConnectionError):
            await circuit.call(down)

        assert circuit.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_excluded_exceptions_do_not_count(self):
        circuit = CircuitBreaker("jupiter", failure_threshold=1, excluded_exceptions=(LookupError,))

        async def no_route():
            raise LookupError("no route")

        for _ in range(3):
            with pytest.raises(LookupError):
                await circuit.call(no_route)

        assert circuit.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_manual_reset(self):
        circuit = CircuitBreaker("rpc", failure_threshold=1, timeout_seconds=60)

        async def down():
            raise ConnectionError("refused")

        with pytest.raises(ConnectionError):
            await circuit.call(down)

        circuit.reset()

        assert circuit.state == CircuitState.CLOSED
