"""
integrator.py — fixed-step 4th-order Runge–Kutta integration over a cohort.

States are numpy arrays whose last axis is the individual; every operation is elementwise,
so individuals never interact.

Two step rules are provided:

  - rk4_step: the classical scheme for y' = f(t, y).
  - staggered_rk4_step: RK4 for a compartment whose derivative also reads auxiliary
    compartments that have already been advanced over the same step. Stage k1 sees the
    auxiliary values at the start of the step, k2/k3 their average over the step, and k4
    their values at the end of the step. The adult lean-mass compartment is advanced this
    way after adaptive thermogenesis, extracellular fluid and glycogen.

RK4Integrator drives a model through a number of steps, records every accepted state, and
stops early when the optional validity check rejects a state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Protocol, Tuple

import numpy as np

from .errors import ModelInputError
from .results import SimulationResult, TrajectoryRecorder

logger = logging.getLogger(__name__)

Derivative = Callable[[float, np.ndarray], np.ndarray]
CoupledDerivative = Callable[[float, np.ndarray, np.ndarray], np.ndarray]


# ---------------------------------------------------------------------------
#  State layout helper
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StateLayout:
    """
    Names the rows of a stacked (n_compartments, N) state array.

    ``layout.index["Glycogen"]`` gives the row of that compartment and ``layout.unpack(y)``
    returns the rows in declaration order.
    """

    names: Tuple[str, ...]

    @property
    def index(self) -> Dict[str, int]:
        return {name: i for i, name in enumerate(self.names)}

    @property
    def n_states(self) -> int:
        return len(self.names)

    def stack(self, *rows: np.ndarray) -> np.ndarray:
        if len(rows) != self.n_states:
            raise ModelInputError(f"Expected {self.n_states} state rows ({', '.join(self.names)}), got {len(rows)}")
        return np.vstack([np.asarray(r, dtype=float) for r in rows])

    def unpack(self, y: np.ndarray) -> Tuple[np.ndarray, ...]:
        return tuple(y[i] for i in range(self.n_states))


# ---------------------------------------------------------------------------
#  Step rules
# ---------------------------------------------------------------------------

def rk4_step(fun: Derivative, t: float, y: np.ndarray, dt: float) -> np.ndarray:
    """Advance y' = fun(t, y) by one classical RK4 step of size dt."""
    k1 = fun(t, y)
    k2 = fun(t + 0.5 * dt, y + 0.5 * dt * k1)
    k3 = fun(t + 0.5 * dt, y + 0.5 * dt * k2)
    k4 = fun(t + dt, y + dt * k3)
    return y + dt * (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0


def staggered_rk4_step(
    fun: CoupledDerivative,
    t: float,
    y: np.ndarray,
    dt: float,
    aux_start: np.ndarray,
    aux_end: np.ndarray,
) -> np.ndarray:
    """
    Advance y' = fun(t, y, aux) by one RK4 step, where aux has already been advanced from
    ``aux_start`` to ``aux_end`` over the same step.
    """
    aux_mid = 0.5 * (aux_end + aux_start)
    k1 = fun(t, y, aux_start)
    k2 = fun(t + 0.5 * dt, y + 0.5 * dt * k1, aux_mid)
    k3 = fun(t + 0.5 * dt, y + 0.5 * dt * k2, aux_mid)
    k4 = fun(t + dt, y + dt * k3, aux_end)
    return y + dt * (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0


# ---------------------------------------------------------------------------
#  Driver
# ---------------------------------------------------------------------------

class SteppedModel(Protocol):
    """What RK4Integrator needs from a model."""

    model_type: str

    def initial_state(self) -> np.ndarray: ...

    def step(self, t: float, y: np.ndarray, dt: float) -> np.ndarray: ...

    def invalid(self, y: np.ndarray) -> np.ndarray: ...

    def snapshot(self, t: float, y: np.ndarray) -> Dict[str, np.ndarray]: ...


@dataclass
class RK4Integrator:
    """
    Fixed-step driver.

    The clock starts at 0 and advances by repeated addition of dt. With ``check_values``
    enabled the baseline and every new state are screened with ``model.invalid``; the first
    rejected state ends the run, is not recorded, and the result is flagged incorrect.
    """

    dt: float
    check_values: bool = True

    def run(self, model: SteppedModel, n_steps: int) -> SimulationResult:
        dt = self.dt
        recorder = TrajectoryRecorder(model_type=model.model_type)

        t = 0.0
        y = model.initial_state()
        recorder.record(t, model.snapshot(t, y))

        if self.check_values and self._reject(model, y, step=0):
            return recorder.finish(correct_values=False)

        logger.info("%s run: %d individuals, %d steps of %g days", model.model_type, y.shape[-1], n_steps, dt)

        for i in range(1, n_steps + 1):
            y_next = model.step(t, y, dt)
            if self.check_values and self._reject(model, y_next, step=i):
                return recorder.finish(correct_values=False)
            y = y_next
            t = t + dt
            recorder.record(t, model.snapshot(t, y))

        return recorder.finish(correct_values=True)

    @staticmethod
    def _reject(model: SteppedModel, y: np.ndarray, step: int) -> bool:
        bad = np.flatnonzero(model.invalid(y))
        if bad.size == 0:
            return False
        logger.warning(
            "%s run stopped at step %d: non-finite or non-positive masses for individuals %s",
            model.model_type,
            step,
            bad.tolist(),
        )
        return True
