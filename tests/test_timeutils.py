import time

import pytest

from vivecalib.timeutils import get_time_difference, get_timestamp, timestamp_to_string

BASE = 1_700_000_000_000


def test_timestamp_is_current_milliseconds():
    before = time.time_ns() // 1_000_000
    stamp = get_timestamp()
    after = time.time_ns() // 1_000_000
    assert before <= stamp <= after


def test_time_difference():
    assert get_time_difference(100, 250) == 150
    assert get_time_difference(250, 100) == 0
    assert get_time_difference(5, 5) == 0


def test_timestamp_string_format():
    text = timestamp_to_string(BASE)
    assert len(text) == 5
    assert text[2] == ":"
    assert text.replace(":", "").isdigit() is True


def test_timestamp_string_seconds():
    assert timestamp_to_string(BASE).endswith(":20")
    assert timestamp_to_string(BASE + 5_000).endswith(":25")


def test_milliseconds_are_ignored():
    assert timestamp_to_string(BASE) == timestamp_to_string(BASE + 999)


def test_negative_timestamp_rejected():
    with pytest.raises(ValueError):
        timestamp_to_string(-1)