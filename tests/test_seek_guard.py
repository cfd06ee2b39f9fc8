"""Seek guard: anti-skip clamping and resume targets."""

from __future__ import annotations

import math

import pytest

from watchgate.seek_guard import guard, restore_target


def test_forward_seek_lands_on_max_watched():
    assert guard(250, 160, 300) == 160


def test_backward_seek_passes_verbatim():
    assert guard(30, 160, 300) == 30
    assert guard(160, 160, 300) == 160


def test_negative_request_clamps_to_zero():
    assert guard(-12, 80, 300) == 0


def test_request_past_duration_is_clamped_then_restricted():
    assert guard(1000, 300, 300) == 300
    assert guard(1000, 120, 300) == 120


def test_unknown_duration_only_clamps_lower_bound():
    assert guard(50, 80, None) == 50
    assert guard(50, 80, math.nan) == 50
    assert guard(500, 80, math.inf) == 80


@pytest.mark.parametrize(
    "requested, max_watched, duration",
    [
        (math.nan, 10, 100),
        (math.inf, 0, math.nan),
        (5, math.nan, 100),
        (5, -3, None),
        (None, 0, 0),
        ("bogus", 20, 100),
    ],
)
def test_degenerate_input_gives_finite_non_negative_result(requested, max_watched, duration):
    result = guard(requested, max_watched, duration)
    assert math.isfinite(result)
    assert result >= 0


@pytest.mark.parametrize("duration", [None, math.nan, 0, 50, 500])
@pytest.mark.parametrize("max_watched", [0, 10, 49.5, 200])
def test_never_skips_past_max_watched(max_watched, duration):
    for requested in (max_watched + 0.001, max_watched + 1, max_watched * 3 + 7):
        assert guard(requested, max_watched, duration) <= max_watched


def test_max_watched_above_duration_is_capped_by_duration():
    assert guard(400, 350, 300) == 300


def test_restore_keeps_clear_of_the_end():
    assert restore_target(199.9, 200, margin=1.0) == pytest.approx(199.0)
    assert restore_target(200, 200, margin=1.0) == pytest.approx(199.0)


def test_restore_is_not_bounded_by_max_watched():
    assert restore_target(120, 300, margin=1.0) == 120


@pytest.mark.parametrize(
    "position, duration",
    [(0, 200), (-5, 200), (50, None), (50, math.nan), (50, 0), (0.5, 0.8)],
)
def test_nothing_to_restore(position, duration):
    assert restore_target(position, duration, margin=1.0) is None
