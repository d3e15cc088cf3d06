"""
api.py — calling interface of the body-weight models.

Thin wrappers that accept plain scalars / vectors / matrices, build the inputs records and
return SimulationResult tables.
"""

from __future__ import annotations

from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

from .adult import AdultModel
from .child import ChildModel, ChildReference
from .constants import DAYS_PER_YEAR
from .errors import ModelInputError
from .forcing import ForcingTable, GeneralizedLogistic, InterpolationMode, Seed, build_forcing
from .parameters import AdultInputs, ChildInputs, InitMode, derive_child_constants
from .results import SimulationResult


def simulate_adult(inputs: AdultInputs, days: float) -> SimulationResult:
    return AdultModel(inputs).simulate(days)


def simulate_child(inputs: ChildInputs, days: float) -> SimulationResult:
    return ChildModel(inputs).simulate(days)


def adult_weight(
    bw: ArrayLike,
    ht: ArrayLike,
    age: ArrayLike,
    sex: ArrayLike,
    ei_change: Union[ArrayLike, ForcingTable],
    na_change: Union[ArrayLike, ForcingTable],
    pal: ArrayLike = 1.5,
    pcarb_base: ArrayLike = 0.5,
    pcarb: ArrayLike = 0.5,
    dt: float = 1.0,
    days: float = 365.0,
    check_values: bool = True,
    energy: Optional[ArrayLike] = None,
    fat: Optional[ArrayLike] = None,
    mode: Optional[InitMode] = None,
) -> SimulationResult:
    """
    Simulate adult body-weight change.

    ``ei_change`` and ``na_change`` are (steps, N) tables of intake and sodium changes; the
    run lasts ceil(days/dt) steps or as many as the tables cover, whichever is fewer.
    Supplying ``energy`` and/or ``fat`` selects the initialization mode.
    """
    inputs = AdultInputs(
        bw=bw,
        ht=ht,
        age=age,
        sex=sex,
        ei_change=ei_change,
        na_change=na_change,
        pal=pal,
        pcarb_base=pcarb_base,
        pcarb=pcarb,
        dt=dt,
        energy=energy,
        fat=fat,
        mode=mode,
        check_values=check_values,
    )
    return simulate_adult(inputs, days)


def child_weight(
    age: ArrayLike,
    sex: ArrayLike,
    ffm: ArrayLike,
    fm: ArrayLike,
    intake: Optional[Union[ArrayLike, ForcingTable]] = None,
    logistic: Optional[GeneralizedLogistic] = None,
    dt: float = 1.0,
    days: float = 365.0,
    check_values: bool = True,
) -> SimulationResult:
    """
    Simulate child growth for floor(days/dt) steps.

    Intake is either a (steps, N) table indexed by elapsed days or a generalized-logistic
    curve of age; with neither, the default logistic curve is used.
    """
    inputs = ChildInputs(
        age=age,
        sex=sex,
        ffm=ffm,
        fm=fm,
        intake=intake,
        logistic=logistic,
        dt=dt,
        check_values=check_values,
    )
    return simulate_child(inputs, days)


def energy_build(
    energy: ArrayLike,
    time: ArrayLike,
    mode: Union[str, InterpolationMode] = InterpolationMode.LINEAR,
    rng: Seed = None,
    sigma: float = 1.0,
) -> np.ndarray:
    """
    Dense (days + 1, N) forcing table from sparse (N, M) measurements at ``time``.

    ``sigma`` is the daily noise of the Brownian mode.
    """
    return build_forcing(energy, time, mode, rng=rng, sigma=sigma)


def mass_reference(age: ArrayLike, sex: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    """Reference (fat-free mass, fat mass) in kg of children of the given ages and sexes."""
    age = np.atleast_1d(np.asarray(age, dtype=float))
    sex = np.broadcast_to(np.asarray(sex, dtype=float), age.shape)
    reference = ChildReference(derive_child_constants(sex))
    return reference.masses(age)


def intake_reference(age: ArrayLike, sex: ArrayLike, days: int) -> np.ndarray:
    """Reference energy intake (kcal/d) for days 0..days after ``age``; shape (days + 1, N)."""
    if days < 0:
        raise ModelInputError(f"days must be non-negative, got {days}")
    age = np.atleast_1d(np.asarray(age, dtype=float))
    sex = np.broadcast_to(np.asarray(sex, dtype=float), age.shape)
    reference = ChildReference(derive_child_constants(sex))
    return np.vstack([reference.intake(age + day / DAYS_PER_YEAR) for day in range(int(days) + 1)])
