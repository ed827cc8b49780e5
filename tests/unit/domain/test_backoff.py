"""Unit tests for the release delay calculator."""

import pytest

from mail_throttle.domain.throttling.backoff import (
    BackoffPolicy,
    backoff_multiplier,
    base_delay,
    compute_release_delay,
    pre_jitter_delay,
)
from mail_throttle.domain.throttling.value_objects import AttemptContext


def no_jitter():
    return 0.0


def full_jitter():
    return 1.0


@pytest.mark.parametrize(
    "attempt, expected",
    [(1, 1), (2, 2), (3, 4), (4, 8), (5, 8), (12, 8)],
)
def test_delay_doubles_until_multiplier_cap(attempt, expected):
    """rate=2/1s has a 1s base slot; the multiplier caps at 8."""
    assert pre_jitter_delay(attempt, rate=2, window_seconds=1, max_multiplier=8, max_delay=30) == expected


def test_delay_is_non_decreasing_in_attempt():
    delays = [
        compute_release_delay(attempt, 2, 1, 8, 30, jitter_percent=0.0)
        for attempt in range(1, 20)
    ]
    assert delays == sorted(delays)
    assert delays[-1] == 8


def test_base_delay_rounds_up_to_whole_seconds():
    assert base_delay(rate=3, window_seconds=10) == 4
    assert base_delay(rate=1, window_seconds=60) == 60


def test_base_delay_never_below_one_second():
    assert base_delay(rate=100, window_seconds=1) == 1


def test_delay_capped_at_max_delay_before_jitter():
    assert compute_release_delay(10, rate=1, window_seconds=60, jitter_percent=0.0) == 30


@pytest.mark.parametrize("attempt", [0, -1, -50])
def test_non_positive_attempt_treated_as_first(attempt):
    assert compute_release_delay(attempt, 2, 1, jitter_percent=0.0) == 1
    assert backoff_multiplier(attempt) == 1


def test_huge_attempt_is_clamped():
    assert backoff_multiplier(10_000, max_multiplier=8) == 8


def test_zero_jitter_is_deterministic():
    results = {compute_release_delay(3, 1, 5, jitter_percent=0.0) for _ in range(50)}
    assert results == {20}


def test_full_jitter_draw_adds_jitter_percent():
    # capped at 30, plus 50% of 30
    assert compute_release_delay(10, 1, 60, jitter_percent=0.5, rng=full_jitter) == 45


def test_jitter_rounds_half_up():
    # 3 * 0.5 * 1.0 = 1.5 -> 2
    assert compute_release_delay(1, 1, 3, jitter_percent=0.5, rng=full_jitter) == 5


def test_jitter_never_reduces_delay():
    assert compute_release_delay(4, 2, 1, jitter_percent=0.5, rng=no_jitter) == 8


@pytest.mark.parametrize("jitter", [0.0, 0.25, 0.5, 1.0])
def test_result_within_bounds_for_random_draws(jitter):
    for attempt in range(-2, 15):
        for rate, window in [(1, 1), (2, 1), (1, 60), (7, 3), (1000, 1)]:
            delay = compute_release_delay(attempt, rate, window, 8, 30, jitter_percent=jitter)
            assert 1 <= delay <= 30 + int(30 * jitter + 0.5)


def test_out_of_range_inputs_are_clamped():
    assert compute_release_delay(1, rate=0, window_seconds=0, max_multiplier=0,
                                 max_delay=0, jitter_percent=5.0, rng=full_jitter) == 2
    assert compute_release_delay(1, 1, 1, jitter_percent=-1.0, rng=full_jitter) == 1


def test_out_of_range_random_draw_is_clamped():
    assert compute_release_delay(1, 1, 10, jitter_percent=0.5, rng=lambda: 7.0) == 15


def test_default_random_source_varies_between_calls():
    delays = {compute_release_delay(5, 1, 30, 8, 30, jitter_percent=1.0) for _ in range(200)}
    assert len(delays) > 1


def test_policy_from_settings(settings):
    policy = BackoffPolicy.from_settings(settings, rng=no_jitter)

    assert policy.max_delay == 30
    assert policy.max_multiplier == 8
    assert policy.jitter_percent == 0.5
    assert policy.upper_bound == 45
    assert policy.release_delay(AttemptContext(attempt=3, rate=2, window_seconds=1)) == 4


def test_policy_pre_jitter_delay_ignores_random_source():
    policy = BackoffPolicy(max_multiplier=4, max_delay=10, jitter_percent=1.0, rng=full_jitter)
    context = AttemptContext(attempt=6, rate=1, window_seconds=2)

    assert policy.pre_jitter_delay(context) == 8
    assert policy.release_delay(context) == 16
