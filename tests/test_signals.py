import math

import numpy as np
import pytest

from motionsim.signals import ParametricFactor, WaveSignal


def test_wave_is_bounded_by_amplitude():
    wave = WaveSignal(amplitude=-1.5, phase=0.3, frequency=2.7)
    for t in np.linspace(-100.0, 100.0, 1001):
        assert abs(wave.value(t)) <= 1.5 + 1e-12


def test_wave_with_zero_amplitude_is_exactly_zero():
    wave = WaveSignal(amplitude=0.0, phase=1.0, frequency=3.0)
    assert all(wave.value(t) == 0.0 for t in (0.0, 0.7, 12.5, -4.0))


def test_factor_value_sums_constant_and_waves():
    factor = ParametricFactor(0.5, (WaveSignal(1.0, 0.0, math.pi), WaveSignal(2.0, math.pi / 2, 0.0)))
    # sin(pi * 0.5) = 1, 2 * sin(pi / 2) = 2
    assert factor.value(0.5) == pytest.approx(3.5)


def test_theoretical_maximum_ignores_phase():
    factor = ParametricFactor(-1.0, (WaveSignal(2.0, 0.1, 1.0), WaveSignal(-1.0, 2.0, 3.0)))
    assert factor.theoretical_maximum == pytest.approx(4.0)


def test_amplitude_portion():
    factor = ParametricFactor(9.0, (WaveSignal(2.0, 0, 1), WaveSignal(-1.0, 0, 1), WaveSignal(1.0, 0, 1)))
    assert factor.amplitude_portion(1) == pytest.approx(0.5)
    assert factor.amplitude_portion(2) == pytest.approx(0.75)
    assert factor.amplitude_portion(3) == pytest.approx(1.0)
    assert factor.amplitude_portion(0) == 0.0


def test_amplitude_portion_without_amplitude_is_zero():
    factor = ParametricFactor(1.0, (WaveSignal(0.0, 1.0, 1.0),))
    assert factor.amplitude_portion(1) == 0.0
    assert ParametricFactor.still(3.0).amplitude_portion(0) == 0.0


def test_amplitude_portion_rejects_too_many_waves():
    factor = ParametricFactor(0.0, (WaveSignal(1.0, 0, 1),))
    with pytest.raises(ValueError):
        factor.amplitude_portion(2)


def test_non_zero_portion():
    factor = ParametricFactor(0.0, (WaveSignal(1.0, 0.0, 2.0),))
    assert factor.non_zero_portion == pytest.approx(0.5)


def test_factor_document_shape():
    factor = ParametricFactor(0.25, [WaveSignal(1.0, 0.5, 2.0)])
    doc = factor.to_dict()
    assert doc == {"constant": 0.25, "sines": [{"amplitude": 1.0, "phase": 0.5, "frequency": 2.0}]}
    assert ParametricFactor.from_dict(doc) == factor
    assert isinstance(factor.waves, tuple)
