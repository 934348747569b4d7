"""
Tests for the pricing engine circuit breaker.
"""

from datetime import timedelta

from cloudcost.resilience.circuit_breaker import CircuitBreaker, CircuitState


def _breaker(threshold=3):
    return CircuitBreaker('infracost', failure_threshold=threshold, open_duration=60)


def test_opens_after_consecutive_failures():
    """The circuit opens at the failure threshold and rejects calls."""
    breaker = _breaker()
    for _ in range(3):
        assert breaker.allow_request()
        breaker.record_failure()

    assert breaker.current_state() == CircuitState.OPEN
    assert not breaker.allow_request()


def test_success_resets_failure_count():
    """A success between failures keeps the circuit closed."""
    breaker = _breaker()
    breaker.record_failure()
    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()

    assert breaker.current_state() == CircuitState.CLOSED


def test_half_open_probe_closes_on_success():
    """After the open duration a single probe is allowed; success closes the circuit."""
    breaker = _breaker(threshold=1)
    breaker.record_failure()
    breaker.opened_at -= timedelta(seconds=61)

    assert breaker.allow_request()
    assert breaker.current_state() == CircuitState.HALF_OPEN
    assert not breaker.allow_request()

    breaker.record_success()
    assert breaker.current_state() == CircuitState.CLOSED
    assert breaker.allow_request()


def test_half_open_probe_reopens_on_failure():
    """A failing probe reopens the circuit."""
    breaker = _breaker(threshold=1)
    breaker.record_failure()
    breaker.opened_at -= timedelta(seconds=61)
    breaker.allow_request()

    breaker.record_failure()
    assert breaker.current_state() == CircuitState.OPEN
    assert not breaker.allow_request()


def test_breakers_are_independent():
    """Each owner has its own breaker state."""
    first, second = _breaker(threshold=1), _breaker(threshold=1)
    first.record_failure()

    assert first.current_state() == CircuitState.OPEN
    assert second.current_state() == CircuitState.CLOSED
