import time

from labkit.fsecs import Timer


def test_verbose_announces_timing_method(capsys):
    Timer(1)
    assert capsys.readouterr().out == "Measuring performance with gettimeofday().\n"


def test_quiet_prints_nothing(capsys):
    Timer(0)
    assert capsys.readouterr().out == ""


def test_fsecs_runs_function_ten_times():
    calls = []
    seconds = Timer(0).fsecs(lambda arg: calls.append(arg), 42)
    assert calls == [42] * 10
    assert seconds >= 0.0


def test_fsecs_measures_per_call_time():
    seconds = Timer().fsecs(lambda _: time.sleep(0.005), None)
    assert 0.004 <= seconds < 2.0