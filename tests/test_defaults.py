import time

import pytest

from asteroidmq.defaults import TimestampSec


def test_now_is_current_time():
    before = int(time.time())
    stamp = TimestampSec.now()
    after = int(time.time())
    assert before <= stamp.seconds <= after


def test_ordering_and_equality():
    assert TimestampSec(1) < TimestampSec(2)
    assert TimestampSec(5) == TimestampSec(5)
    assert max(TimestampSec(3), TimestampSec(9), TimestampSec(4)) == TimestampSec(9)


def test_negative_rejected():
    with pytest.raises(ValueError):
        TimestampSec(-1)