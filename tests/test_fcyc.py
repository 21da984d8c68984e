import pytest

from labkit.fcyc import Fcyc, KBestSampler


class FakeCounter:
    def __init__(self, readings):
        self._readings = iter(readings)
        self.starts = 0
        self.comp_starts = 0

    def start(self):
        self.starts += 1

    def get(self):
        return next(self._readings)

    def start_compensated(self):
        self.comp_starts += 1

    def get_compensated(self):
        return next(self._readings)


def test_sampler_keeps_k_smallest_sorted():
    sampler = KBestSampler(3, 0.01)
    for value in [50.0, 10.0, 40.0, 30.0, 20.0]:
        sampler.add(value)
    assert sampler.values == [10.0, 20.0, 30.0]
    assert sampler.samplecount == 5
    assert sampler.best() == 10.0


def test_sampler_not_converged_before_k_samples():
    sampler = KBestSampler(3, 0.01)
    sampler.add(100.0)
    sampler.add(100.0)
    assert not sampler.has_converged()
    sampler.add(100.0)
    assert sampler.has_converged()


def test_sampler_convergence_uses_epsilon():
    loose = KBestSampler(2, 0.5)
    tight = KBestSampler(2, 0.01)
    for sampler in (loose, tight):
        sampler.add(100.0)
        sampler.add(140.0)
    assert loose.has_converged()
    assert not tight.has_converged()


def test_sampler_best_without_samples():
    with pytest.raises(ValueError):
        KBestSampler().best()


def test_sampler_rejects_zero_k():
    with pytest.raises(ValueError):
        KBestSampler(0)


def test_measure_stops_when_converged():
    calls = []
    counter = FakeCounter([100.0, 100.0, 100.0, 999.0])
    fcyc = Fcyc(counter=counter)
    result = fcyc.measure(calls.append, "arg")
    assert result == 100.0
    assert calls == ["arg", "arg", "arg"]
    assert counter.starts == 3


def test_measure_stops_at_maxsamples():
    calls = []
    readings = [float(100 * (i + 1)) for i in range(10)]
    fcyc = Fcyc(counter=FakeCounter(readings), maxsamples=5)
    result = fcyc.measure(lambda: calls.append(1))
    assert len(calls) == 5
    assert result == min(readings[:5])


def test_measure_passes_all_arguments():
    seen = []
    fcyc = Fcyc(counter=FakeCounter([7.0] * 3))
    fcyc.measure(lambda a, b, c: seen.append((a, b, c)), 1, 2, 3)
    assert seen == [(1, 2, 3)] * 3


def test_measure_compensated_uses_compensated_counter():
    counter = FakeCounter([5.0] * 3)
    fcyc = Fcyc(counter=counter, compensate=True)
    assert fcyc.measure(lambda: None) == 5.0
    assert counter.comp_starts == 3
    assert counter.starts == 0


def test_clear_cache_and_resize():
    fcyc = Fcyc(counter=FakeCounter([1.0] * 6), clear_cache=True, cache_bytes=256)
    fcyc.measure(lambda: None)
    assert len(fcyc._cache_buf) == 256
    fcyc.set_cache_size(128)
    assert fcyc.cache_bytes == 128
    assert fcyc._cache_buf is None
    fcyc.measure(lambda: None)
    assert len(fcyc._cache_buf) == 128