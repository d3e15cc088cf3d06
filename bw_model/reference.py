"""
reference.py — age curves shared by the child model.

  - CurveParams: per-individual parameters of the double-exponential "general ODE" shape used
    for the growth and energy-balance terms.
  - knot_lookup: piecewise-linear lookup into a fixed table of annual knots, clamped at both
    ends. Reference fat-free mass and fat mass by age are read through it.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Sequence

import numpy as np

from .constants import CurveShape, REFERENCE_AGE_START, REFERENCE_AGE_STEP


def blend_by_sex(male, female, sex: np.ndarray) -> np.ndarray:
    """Per-individual value: ``male`` where sex == 0, ``female`` where sex == 1."""
    return male * (1.0 - sex) + female * sex


@dataclass(frozen=True)
class CurveParams:
    """Amplitude / centre / width triples of g(t) for every individual, each of shape (N,)."""

    A: np.ndarray
    B: np.ndarray
    D: np.ndarray
    tA: np.ndarray
    tB: np.ndarray
    tD: np.ndarray
    tauA: np.ndarray
    tauB: np.ndarray
    tauD: np.ndarray

    @classmethod
    def from_shape(cls, shape: CurveShape, sex: np.ndarray) -> "CurveParams":
        return cls(**{
            f.name: blend_by_sex(getattr(shape, f.name)[0], getattr(shape, f.name)[1], sex)
            for f in fields(shape)
        })

    def __call__(self, t: np.ndarray) -> np.ndarray:
        return (
            self.A * np.exp(-(t - self.tA) / self.tauA)
            + self.B * np.exp(-0.5 * ((t - self.tB) / self.tauB) ** 2)
            + self.D * np.exp(-0.5 * ((t - self.tD) / self.tauD) ** 2)
        )

    def subset(self, indices: Sequence[int]) -> "CurveParams":
        idx = np.asarray(indices)
        return CurveParams(**{f.name: getattr(self, f.name)[idx] for f in fields(self)})


def knot_lookup(
    table: np.ndarray,
    x: np.ndarray,
    x0: float = REFERENCE_AGE_START,
    step: float = REFERENCE_AGE_STEP,
) -> np.ndarray:
    """
    Linear interpolation into per-individual knot columns.

    ``table`` has shape (n_knots, N): column k holds individual k's values at
    x0, x0 + step, ..., and ``x`` has shape (N,). Positions outside the knot range are clamped
    to the first/last knot.
    """
    n_knots = table.shape[0]
    pos = np.clip((np.asarray(x, dtype=float) - x0) / step, 0.0, n_knots - 1.0)
    j = np.minimum(np.floor(pos).astype(int), n_knots - 2)
    frac = pos - j
    cols = np.arange(table.shape[1])
    lo = table[j, cols]
    hi = table[j + 1, cols]
    return lo + frac * (hi - lo)


def sex_table(reference: np.ndarray, sex: np.ndarray) -> np.ndarray:
    """Blend a (n_knots, 2) male/female reference table into (n_knots, N) individual columns."""
    return blend_by_sex(reference[:, 0:1], reference[:, 1:2], sex[None, :])
