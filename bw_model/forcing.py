"""
forcing.py — exogenous intake forcing for the body-weight models.

Two pieces live here:

  - ForcingTable: a dense (time step × individual) matrix consulted by the integrators. The
    row used at continuous time t is floor(t / dt); a row outside the table is an error,
    never a silent wrap-around.
  - build_forcing (the "energy builder"): turns sparse measured intakes into a dense per-day
    table by interpolating between consecutive breakpoints.

The child model can also be driven by a generalized-logistic (Richards) intake curve of age,
provided here as GeneralizedLogistic.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union

import numpy as np
from numpy.typing import ArrayLike
from scipy.interpolate import interp1d

from .constants import LOGISTIC_DEFAULTS
from .errors import ForcingIndexError, ModelInputError, UnsupportedInterpolationError

logger = logging.getLogger(__name__)

Seed = Union[None, int, np.random.Generator]


# ---------------------------------------------------------------------------
#  Dense forcing table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ForcingTable:
    """
    Intake values on a fixed time grid.

      values : (n_rows, N) array, row r holds the forcing for t in [r·dt, (r+1)·dt)
      dt     : grid spacing (days)

    A 1-D ``values`` array is read as the time series of a single individual.
    """

    values: np.ndarray
    dt: float = 1.0

    def __post_init__(self) -> None:
        values = np.asarray(self.values, dtype=float)
        if values.ndim == 1:
            values = values[:, None]
        if values.ndim != 2:
            raise ModelInputError(f"Forcing table must be 2-D (steps × individuals), got shape {values.shape}")
        if not self.dt > 0.0:
            raise ModelInputError(f"Forcing step size must be positive, got {self.dt}")
        values.flags.writeable = False
        object.__setattr__(self, "values", values)

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    @property
    def cohort_size(self) -> int:
        return self.values.shape[1]

    @classmethod
    def zeros(cls, n_rows: int, cohort_size: int, dt: float = 1.0) -> "ForcingTable":
        return cls(np.zeros((n_rows, cohort_size)), dt)

    def row_index(self, t: float) -> int:
        return int(math.floor(t / self.dt))

    def at(self, t: float) -> np.ndarray:
        """Return the cohort vector of forcing values in effect at time t."""
        idx = self.row_index(t)
        if idx < 0 or idx >= self.n_rows:
            raise ForcingIndexError(idx, self.n_rows, t)
        return self.values[idx]

    def covers(self, n_steps: int) -> bool:
        """True when every row touched by an n_steps RK4 run (including its last k4 stage) exists."""
        return self.n_rows >= n_steps + 1

    def subset(self, indices: Sequence[int]) -> "ForcingTable":
        return ForcingTable(self.values[:, np.asarray(indices)], self.dt)


# ---------------------------------------------------------------------------
#  Generalized logistic intake (children)
# ---------------------------------------------------------------------------

def _take(value: Union[float, np.ndarray], indices: np.ndarray) -> Union[float, np.ndarray]:
    if np.ndim(value) == 0:
        return value
    return np.asarray(value, dtype=float)[indices]


@dataclass(frozen=True)
class GeneralizedLogistic:
    """
    Richards curve for energy intake as a function of age (years):

        I(age) = A + (K − A) / (C + Q·exp(−B·age))^(1/ν)

    Each parameter may be a scalar or a per-individual vector.
    """

    K: Union[float, np.ndarray] = LOGISTIC_DEFAULTS.K
    Q: Union[float, np.ndarray] = LOGISTIC_DEFAULTS.Q
    B: Union[float, np.ndarray] = LOGISTIC_DEFAULTS.B
    A: Union[float, np.ndarray] = LOGISTIC_DEFAULTS.A
    nu: Union[float, np.ndarray] = LOGISTIC_DEFAULTS.nu
    C: Union[float, np.ndarray] = LOGISTIC_DEFAULTS.C

    def __call__(self, age: np.ndarray) -> np.ndarray:
        return self.A + (self.K - self.A) / np.power(self.C + self.Q * np.exp(-self.B * age), 1.0 / self.nu)

    def subset(self, indices: Sequence[int]) -> "GeneralizedLogistic":
        idx = np.asarray(indices)
        return GeneralizedLogistic(
            K=_take(self.K, idx),
            Q=_take(self.Q, idx),
            B=_take(self.B, idx),
            A=_take(self.A, idx),
            nu=_take(self.nu, idx),
            C=_take(self.C, idx),
        )


# ---------------------------------------------------------------------------
#  Energy builder: sparse breakpoints → dense per-day table
# ---------------------------------------------------------------------------

class InterpolationMode(str, Enum):
    LINEAR = "Linear"
    STEPWISE_LEFT = "Stepwise_L"
    STEPWISE_RIGHT = "Stepwise_R"
    EXPONENTIAL = "Exponential"
    LOGARITHMIC = "Logarithmic"
    BROWNIAN = "Brownian"

    @classmethod
    def parse(cls, mode: Union[str, "InterpolationMode"]) -> "InterpolationMode":
        if isinstance(mode, cls):
            return mode
        for member in cls:
            if mode == member.value or str(mode).upper() == member.name:
                return member
        raise UnsupportedInterpolationError(
            f"Unsupported interpolation mode {mode!r}; expected one of {[m.value for m in cls]}"
        )


_SCIPY_KIND = {
    InterpolationMode.LINEAR: "linear",
    InterpolationMode.STEPWISE_LEFT: "previous",
    InterpolationMode.STEPWISE_RIGHT: "next",
}


def _validate_breakpoints(energy: np.ndarray, times: np.ndarray) -> None:
    if times.ndim != 1 or times.size < 2:
        raise ModelInputError("At least two breakpoint times are required")
    if times[0] != 0.0:
        raise ModelInputError(f"The first breakpoint time must be 0, got {times[0]}")
    if np.any(np.diff(times) <= 0.0):
        raise ModelInputError("Breakpoint times must be strictly increasing")
    if energy.shape[1] != times.size:
        raise ModelInputError(
            f"Energy has {energy.shape[1]} measurement columns but {times.size} breakpoint times were given"
        )


def _segment_index(times: np.ndarray, grid: np.ndarray) -> np.ndarray:
    """Index j of the segment [times[j], times[j+1]) holding each grid point."""
    j = np.searchsorted(times, grid, side="right") - 1
    return np.clip(j, 0, times.size - 2)


def _logarithmic(energy: np.ndarray, times: np.ndarray, grid: np.ndarray) -> np.ndarray:
    j = _segment_index(times, grid)
    e0, e1 = energy[:, j], energy[:, j + 1]
    span = times[j + 1] - times[j]
    elapsed = grid - times[j]
    return 1000.0 * np.log((np.exp((e1 - e0) / 1000.0) - 1.0) / span * elapsed + 1.0) + e0


def _brownian_bridge(
    energy: np.ndarray,
    times: np.ndarray,
    n_cols: int,
    rng: np.random.Generator,
    sigma: float,
) -> np.ndarray:
    if np.any(times != np.floor(times)):
        raise ModelInputError("Brownian interpolation requires whole-day breakpoint times")

    out = np.zeros((energy.shape[0], n_cols))
    for j in range(times.size - 1):
        t0, t1 = int(times[j]), int(times[j + 1])
        n = t1 - t0

        # Random walk W with W(0) = 0, one column per day of the segment
        W = np.zeros((energy.shape[0], n + 1))
        W[:, 1:] = np.cumsum(sigma * rng.standard_normal((energy.shape[0], n)), axis=1)

        s = np.arange(n + 1) / n
        out[:, t0:t1 + 1] = (
            energy[:, j, None] * (1.0 - s)
            + energy[:, j + 1, None] * s
            + W
            - s * W[:, -1:]
        )
    return out


def build_forcing(
    energy: ArrayLike,
    times: ArrayLike,
    mode: Union[str, InterpolationMode] = InterpolationMode.LINEAR,
    *,
    rng: Seed = None,
    sigma: float = 1.0,
) -> np.ndarray:
    """
    Interpolate sparse intake measurements into a dense per-day forcing table.

    Parameters
    ----------
    energy : (N, M) array
        Measured values, one row per individual and one column per breakpoint.
    times : (M,) array
        Breakpoint times in days; must start at 0 and increase strictly.
    mode : InterpolationMode or its string value
        Linear, Stepwise_L (hold previous value), Stepwise_R (jump to next value),
        Exponential (linear in log space), Logarithmic, or Brownian (Brownian bridge
        between consecutive breakpoints, standard deviation ``sigma`` per day).
    rng : seed or numpy Generator used by the Brownian mode.

    Returns
    -------
    (floor(times[-1]) + 1, N) array with time rows, ready for :class:`ForcingTable`.
    Whole-day breakpoint columns hold the measured values exactly, and the last row always
    equals the last measured column.
    """
    mode = InterpolationMode.parse(mode)
    E = np.asarray(energy, dtype=float)
    if E.ndim == 1:
        E = E[None, :]
    T = np.asarray(times, dtype=float)
    _validate_breakpoints(E, T)

    days = int(np.floor(T[-1]))
    grid = np.arange(days + 1, dtype=float)

    if mode is InterpolationMode.BROWNIAN:
        out = _brownian_bridge(E, T, days + 1, np.random.default_rng(rng), sigma)
    elif mode in _SCIPY_KIND:
        f = interp1d(T, E, kind=_SCIPY_KIND[mode], axis=1, assume_sorted=True)
        out = f(grid)
    elif mode is InterpolationMode.EXPONENTIAL:
        if np.any(E <= 0.0):
            raise ModelInputError("Exponential interpolation requires strictly positive values")
        f = interp1d(T, np.log(E), kind="linear", axis=1, assume_sorted=True)
        out = np.exp(f(grid))
    else:
        out = _logarithmic(E, T, grid)

    # Breakpoints keep their measured values
    whole = (T == np.floor(T)) & (T <= days)
    out[:, T[whole].astype(int)] = E[:, whole]
    out[:, -1] = E[:, -1]

    logger.debug("Built %s forcing: %d individuals × %d days", mode.value, E.shape[0], days + 1)
    return out.T


def resample_daily(daily: ArrayLike, dt: float) -> np.ndarray:
    """
    Re-grid a per-day table (row d = day d) onto RK4 steps of size dt: row r holds the value
    of day floor(r·dt). The result spans the same number of days.
    """
    daily = np.asarray(daily, dtype=float)
    if not dt > 0.0:
        raise ModelInputError(f"dt must be positive, got {dt}")
    if dt == 1.0:
        return daily
    last_day = daily.shape[0] - 1
    n_rows = int(np.floor(last_day / dt)) + 1
    days = np.minimum(np.floor(np.arange(n_rows) * dt).astype(int), last_day)
    return daily[days]
