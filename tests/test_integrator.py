from collections import OrderedDict

import numpy as np
import pytest

from bw_model import ModelInputError
from bw_model.integrator import RK4Integrator, StateLayout, rk4_step, staggered_rk4_step


def test_rk4_local_error_is_fifth_order():
    lam = -0.5

    def f(t, y):
        return lam * y

    y0 = np.array([1.0])
    err = []
    for h in (0.2, 0.1):
        err.append(abs(rk4_step(f, 0.0, y0, h)[0] - np.exp(lam * h)))
    ratio = err[0] / err[1]
    assert 30.0 < ratio < 34.0


def test_rk4_exact_for_cubic():
    def f(t, y):
        return np.full_like(y, 3.0 * t ** 2)

    y = rk4_step(f, 1.0, np.array([1.0]), 0.5)
    assert np.allclose(y, [1.5 ** 3])


def test_staggered_step_with_constant_aux_matches_rk4():
    aux = np.array([2.0, -1.0])

    def coupled(t, y, a):
        return a * y - t

    def plain(t, y):
        return aux * y - t

    y0 = np.array([1.0, 3.0])
    assert np.array_equal(
        staggered_rk4_step(coupled, 0.0, y0, 0.1, aux, aux),
        rk4_step(plain, 0.0, y0, 0.1),
    )


def test_staggered_step_averages_aux():
    def coupled(t, y, a):
        return a

    y = staggered_rk4_step(coupled, 0.0, np.array([0.0]), 2.0, np.array([1.0]), np.array([3.0]))
    # k1 = 1, k2 = k3 = 2, k4 = 3
    assert np.allclose(y, [2.0 * (1.0 + 4.0 + 4.0 + 3.0) / 6.0])


def test_state_layout():
    layout = StateLayout(("A", "B"))
    y = layout.stack([1.0, 2.0], [3.0, 4.0])
    assert y.shape == (2, 2)
    assert layout.index["B"] == 1
    a, b = layout.unpack(y)
    assert np.array_equal(b, [3.0, 4.0])


class Draining:
    """y' = -1 for two individuals; the first hits zero after a few steps."""

    model_type = "Test"

    def initial_state(self):
        return np.array([[2.5, 10.0]])

    def step(self, t, y, dt):
        return rk4_step(lambda s, x: -np.ones_like(x), t, y, dt)

    def invalid(self, y):
        return np.any(y <= 0.0, axis=0)

    def snapshot(self, t, y):
        return OrderedDict([("Age", y[0]), ("Level", y[0])])


def test_integrator_stops_at_first_invalid_state():
    res = RK4Integrator(dt=1.0).run(Draining(), 10)
    assert not res.correct_values
    # states 2.5, 1.5, 0.5 are accepted; -0.5 is discarded
    assert res.n_steps == 2
    assert np.allclose(res["Level"][:, 0], [2.5, 1.5, 0.5])


def test_integrator_without_checks_runs_all_steps():
    res = RK4Integrator(dt=1.0, check_values=False).run(Draining(), 10)
    assert res.correct_values
    assert res.n_steps == 10
    assert np.allclose(res.time, np.arange(11.0))


def test_state_layout_rejects_wrong_row_count():
    layout = StateLayout(("A", "B"))
    with pytest.raises(ModelInputError):
        layout.stack([1.0, 2.0])
