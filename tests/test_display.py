from __future__ import annotations

import math

import pytest

from watchgate.display import format_time, progress_message


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0:00"),
        (9.99, "0:09"),
        (75, "1:15"),
        (600.9, "10:00"),
        (3725, "62:05"),
        (-3, "0:00"),
        (math.nan, "0:00"),
        (None, "0:00"),
    ],
)
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_progress_message():
    assert progress_message(False, 50) == "Watch at least 50% to unlock the next step."
    assert progress_message(False, 62.5) == "Watch at least 62.5% to unlock the next step."
    assert progress_message(True, 50) == "You're ready! Take the next step now."
