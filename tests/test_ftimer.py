import time

import pytest

from labkit.ftimer import ftimer_gettod, ftimer_itimer


@pytest.mark.parametrize("timer", [ftimer_itimer, ftimer_gettod])
def test_calls_function_n_times_with_argument(timer):
    calls = []
    result = timer(lambda arg: calls.append(arg), "arg", 7)
    assert calls == ["arg"] * 7
    assert result >= 0.0


@pytest.mark.parametrize("timer", [ftimer_itimer, ftimer_gettod])
def test_average_reflects_running_time(timer):
    result = timer(lambda _: time.sleep(0.02), None, 3)
    assert 0.015 <= result < 2.0


@pytest.mark.parametrize("timer", [ftimer_itimer, ftimer_gettod])
def test_rejects_non_positive_run_count(timer):
    with pytest.raises(ValueError):
        timer(lambda _: None, None, 0)