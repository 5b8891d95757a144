"""Tests for the per-provider circuit breaker."""
import pytest

from zakat_engine.services.circuit_breaker import CLOSED, HALF_OPEN, OPEN, CircuitBreaker


@pytest.fixture
def breaker(frozen_time):
    return CircuitBreaker(threshold=3, cooldown=300, time_provider=frozen_time)


def test_closed_by_default(breaker):
    assert breaker.state('goldprice') == CLOSED
    assert breaker.allow('goldprice') is True


def test_opens_after_threshold_failures(breaker):
    for _ in range(2):
        breaker.record_failure('goldprice')
    assert breaker.state('goldprice') == CLOSED

    breaker.record_failure('goldprice')
    assert breaker.state('goldprice') == OPEN
    assert breaker.allow('goldprice') is False


def test_success_resets_failure_count(breaker):
    breaker.record_failure('goldprice')
    breaker.record_failure('goldprice')
    breaker.record_success('goldprice')
    breaker.record_failure('goldprice')
    assert breaker.state('goldprice') == CLOSED


def test_half_open_allows_single_trial(breaker, frozen_time):
    for _ in range(3):
        breaker.record_failure('goldprice')
    frozen_time.advance(300)

    assert breaker.state('goldprice') == HALF_OPEN
    assert breaker.allow('goldprice') is True
    assert breaker.allow('goldprice') is False


def test_trial_success_closes(breaker, frozen_time):
    for _ in range(3):
        breaker.record_failure('goldprice')
    frozen_time.advance(300)
    breaker.allow('goldprice')
    breaker.record_success('goldprice')

    assert breaker.state('goldprice') == CLOSED


def test_trial_failure_reopens_for_another_cooldown(breaker, frozen_time):
    for _ in range(3):
        breaker.record_failure('goldprice')
    frozen_time.advance(300)
    breaker.allow('goldprice')
    breaker.record_failure('goldprice')

    assert breaker.state('goldprice') == OPEN
    frozen_time.advance(299)
    assert breaker.state('goldprice') == OPEN
    frozen_time.advance(1)
    assert breaker.state('goldprice') == HALF_OPEN


def test_providers_are_independent(breaker):
    for _ in range(3):
        breaker.record_failure('goldprice')
    assert breaker.allow('metals-live') is True


def test_snapshot_and_reset(breaker):
    breaker.record_failure('goldprice')
    assert breaker.snapshot() == {'goldprice': {'state': CLOSED, 'failures': 1}}

    breaker.reset('goldprice')
    assert breaker.snapshot() == {}
