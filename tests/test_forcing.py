import numpy as np
import pytest

from bw_model import InterpolationMode, ModelInputError, UnsupportedInterpolationError, build_forcing, energy_build
from bw_model.forcing import ForcingTable, resample_daily

ENERGY = np.array([[2000.0, 1800.0, 2200.0], [1500.0, 1500.0, 1700.0]])
TIMES = np.array([0.0, 10.0, 30.0])


@pytest.mark.parametrize("mode", [m.value for m in InterpolationMode])
def test_breakpoints_hold_measured_values(mode):
    out = build_forcing(ENERGY, TIMES, mode, rng=7)
    assert out.shape == (31, 2)
    assert np.allclose(out[[0, 10, 30]], ENERGY.T)
    assert np.allclose(out[-1], ENERGY[:, -1])


def test_linear_and_step_midpoints():
    linear = build_forcing(ENERGY, TIMES, "Linear")
    left = build_forcing(ENERGY, TIMES, "Stepwise_L")
    right = build_forcing(ENERGY, TIMES, "Stepwise_R")
    assert linear[5, 0] == pytest.approx(1900.0)
    assert linear[20, 1] == pytest.approx(1600.0)
    assert left[5, 0] == 2000.0
    assert left[29, 0] == 1800.0
    assert right[5, 0] == 1800.0
    assert right[11, 0] == 2200.0


def test_exponential_midpoint_is_geometric_mean():
    out = build_forcing(ENERGY, TIMES, InterpolationMode.EXPONENTIAL)
    assert out[5, 0] == pytest.approx(np.sqrt(2000.0 * 1800.0))


def test_exponential_requires_positive_values():
    with pytest.raises(ModelInputError):
        build_forcing([[100.0, 0.0]], [0.0, 5.0], "Exponential")


def test_logarithmic_curve():
    out = build_forcing(ENERGY, TIMES, "Logarithmic")
    expected = 1000.0 * np.log((np.exp(-200.0 / 1000.0) - 1.0) / 10.0 * 5.0 + 1.0) + 2000.0
    assert out[5, 0] == pytest.approx(expected)
    assert np.all(out[:, 1][:11] == 1500.0)


def test_brownian_is_reproducible_and_noisy():
    a = build_forcing(ENERGY, TIMES, "Brownian", rng=3)
    b = build_forcing(ENERGY, TIMES, "Brownian", rng=3)
    linear = build_forcing(ENERGY, TIMES, "Linear")
    assert np.array_equal(a, b)
    assert not np.allclose(a, linear)


def test_fractional_last_time():
    out = build_forcing([[100.0, 200.0]], [0.0, 4.5], "Linear")
    assert out.shape == (5, 1)
    assert out[-1, 0] == 200.0


def test_unknown_mode():
    with pytest.raises(UnsupportedInterpolationError):
        build_forcing(ENERGY, TIMES, "Cubic")
    with pytest.raises(UnsupportedInterpolationError):
        energy_build(ENERGY, TIMES, "spline")


def test_bad_breakpoints():
    with pytest.raises(ModelInputError):
        build_forcing(ENERGY, [1.0, 10.0, 30.0])
    with pytest.raises(ModelInputError):
        build_forcing(ENERGY, [0.0, 10.0, 10.0])
    with pytest.raises(ModelInputError):
        build_forcing(ENERGY, [0.0, 30.0])


def test_mode_parsing():
    assert InterpolationMode.parse("Stepwise_R") is InterpolationMode.STEPWISE_RIGHT
    assert InterpolationMode.parse("linear") is InterpolationMode.LINEAR
    assert InterpolationMode.parse(InterpolationMode.BROWNIAN) is InterpolationMode.BROWNIAN


def test_resample_daily():
    daily = np.arange(11.0)[:, None]
    half = resample_daily(daily, 0.5)
    assert half.shape == (21, 1)
    assert np.array_equal(half[:4, 0], [0.0, 0.0, 1.0, 1.0])
    assert half[-1, 0] == 10.0
    assert resample_daily(daily, 1.0) is daily


def test_forcing_table_rows():
    table = ForcingTable(np.arange(6.0), dt=0.5)
    assert table.cohort_size == 1
    assert table.row_index(1.2) == 2
    assert table.at(1.2)[0] == 2.0
    assert table.covers(5)
    assert not table.covers(6)
    with pytest.raises(ValueError):
        table.values[0, 0] = 1.0


def test_brownian_noise_level_is_forwarded():
    quiet = energy_build(ENERGY, TIMES, "Brownian", rng=5, sigma=0.0)
    assert np.allclose(quiet, build_forcing(ENERGY, TIMES, "Linear"))
    loud = energy_build(ENERGY, TIMES, "Brownian", rng=5, sigma=50.0)
    assert not np.allclose(loud, quiet)
