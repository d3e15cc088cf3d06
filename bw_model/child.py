"""
child.py — Hall childhood growth model.

State (rows of a (2, N) array):

  - Fat_Free_Mass  FFM  (kg)
  - Fat_Mass       FM   (kg)

with body weight BW = FFM + FM. The clock t counts days since baseline; individual k's age
at time t is age_k + t/365 years.

Energy expenditure is solved from the energy-balance equation given the actual intake, the
current composition, and the deviation of intake from the reference intake expected of a
reference child of the same age and sex:

    dFFM/dt = ( p·(I − E) + g(age)) / ρFFM
    dFM/dt  = ((1 − p)·(I − E) − g(age)) / ρFM

where p = C/(C + FM) is the Forbes partition coefficient and g the growth curve.
"""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from typing import Dict, Tuple

import numpy as np

from .constants import DAYS_PER_YEAR
from .errors import ForcingIndexError, ModelInputError
from .integrator import RK4Integrator, StateLayout, rk4_step
from .parameters import ChildConstants, ChildInputs, derive_child_constants
from .reference import knot_lookup
from .results import SimulationResult

logger = logging.getLogger(__name__)

CHILD_LAYOUT = StateLayout(("Fat_Free_Mass", "Fat_Mass"))


def child_step_count(days: float, dt: float) -> int:
    return int(math.floor(days / dt))


class ChildReference:
    """
    Reference curves of a cohort of children, by age in years.

    Only needs the sex of each individual, so it can be built without body composition or
    intake (see :func:`bw_model.api.mass_reference`).
    """

    def __init__(self, constants: ChildConstants) -> None:
        self.constants = constants
        self.p = constants.physiology

    def rho_ffm(self, FFM: np.ndarray) -> np.ndarray:
        """Energy density of fat-free mass (kcal/kg), linear in FFM."""
        return self.p.rho_FFM_slope * FFM + self.p.rho_FFM_const

    def partition(self, FFM: np.ndarray, FM: np.ndarray) -> np.ndarray:
        """Fraction p of an energy imbalance routed to fat-free mass."""
        C = self.p.forbes * self.rho_ffm(FFM) / self.p.rho_FM
        return C / (C + FM)

    def activity(self, age: np.ndarray) -> np.ndarray:
        p = self.p
        return p.delta_min + (self.constants.delta_max - p.delta_min) * (1.0 / (1.0 + (age / p.delta_P) ** p.delta_h))

    def growth(self, age: np.ndarray) -> np.ndarray:
        return self.constants.growth(age)

    def energy_balance(self, age: np.ndarray) -> np.ndarray:
        return self.constants.energy_balance(age)

    def ffm(self, age: np.ndarray) -> np.ndarray:
        return knot_lookup(self.constants.ffm_table, age)

    def fm(self, age: np.ndarray) -> np.ndarray:
        return knot_lookup(self.constants.fm_table, age)

    def masses(self, age: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        return self.ffm(age), self.fm(age)

    def intake(self, age: np.ndarray) -> np.ndarray:
        """Energy intake (kcal/d) that keeps a reference child on its reference trajectory."""
        p, K = self.p, self.constants.K
        EB = self.energy_balance(age)
        ffm_ref, fm_ref = self.masses(age)
        delta = self.activity(age)
        growth = self.growth(age)
        part = self.partition(ffm_ref, fm_ref)
        rho_ffm = self.rho_ffm(ffm_ref)
        return (
            EB
            + K
            + (p.gamma_FFM + delta) * ffm_ref
            + (p.gamma_FM + delta) * fm_ref
            + p.eta_FFM / rho_ffm * (part * EB + growth)
            + p.eta_FM / p.rho_FM * ((1.0 - part) * EB - growth)
        )


class ChildModel:
    """Vectorized child model for a cohort of N individuals."""

    model_type = "Child"
    layout = CHILD_LAYOUT

    def __init__(self, inputs: ChildInputs) -> None:
        self.inputs = inputs
        self.constants: ChildConstants = derive_child_constants(inputs.sex)
        self.reference = ChildReference(self.constants)
        self.p = self.constants.physiology
        self.dt = inputs.dt
        self.age0 = inputs.age

    def age_at(self, t: float) -> np.ndarray:
        return self.age0 + t / DAYS_PER_YEAR

    def intake(self, t: float, age: np.ndarray) -> np.ndarray:
        if self.inputs.intake is not None:
            return self.inputs.intake.at(t)
        return self.inputs.logistic(age)

    def expenditure(
        self,
        age: np.ndarray,
        FFM: np.ndarray,
        FM: np.ndarray,
        intake: np.ndarray,
    ) -> np.ndarray:
        p, ref = self.p, self.reference
        delta = ref.activity(age)
        deviation = intake - ref.intake(age)
        part = ref.partition(FFM, FM)
        rho_ffm = ref.rho_ffm(FFM)
        growth = ref.growth(age)
        deposition = p.eta_FFM / rho_ffm * part + p.eta_FM / p.rho_FM * (1.0 - part)
        expend = (
            self.constants.K
            + (p.gamma_FFM + delta) * FFM
            + (p.gamma_FM + delta) * FM
            + p.intake_response * deviation
            + deposition * intake
            + growth * (p.eta_FFM / rho_ffm - p.eta_FM / p.rho_FM)
        )
        return expend / (1.0 + deposition)

    def derivatives(self, t: float, y: np.ndarray) -> np.ndarray:
        FFM, FM = y
        age = self.age_at(t)
        ref = self.reference
        intake = self.intake(t, age)
        imbalance = intake - self.expenditure(age, FFM, FM, intake)
        part = ref.partition(FFM, FM)
        growth = ref.growth(age)
        return np.vstack([
            (part * imbalance + growth) / ref.rho_ffm(FFM),
            ((1.0 - part) * imbalance - growth) / self.p.rho_FM,
        ])

    # ------------------------------------------------------------------
    #  Stepping interface
    # ------------------------------------------------------------------

    def initial_state(self) -> np.ndarray:
        return self.layout.stack(self.inputs.ffm, self.inputs.fm)

    def step(self, t: float, y: np.ndarray, dt: float) -> np.ndarray:
        return rk4_step(self.derivatives, t, y, dt)

    def invalid(self, y: np.ndarray) -> np.ndarray:
        return np.any(~np.isfinite(y) | (y <= 0.0), axis=0)

    def snapshot(self, t: float, y: np.ndarray) -> Dict[str, np.ndarray]:
        FFM, FM = self.layout.unpack(y)
        age = self.age_at(t)
        return OrderedDict([
            ("Age", age),
            ("Fat_Free_Mass", FFM),
            ("Fat_Mass", FM),
            ("Body_Weight", FFM + FM),
            ("Energy_Intake", self.intake(t, age)),
        ])

    # ------------------------------------------------------------------
    #  Simulation
    # ------------------------------------------------------------------

    def simulate(self, days: float) -> SimulationResult:
        """Integrate for floor(days/dt) steps and return the trajectory."""
        if not days > 0.0:
            raise ModelInputError(f"days must be positive, got {days}")
        n_steps = child_step_count(days, self.dt)
        table = self.inputs.intake
        if table is not None and not table.covers(n_steps):
            raise ForcingIndexError(n_steps, table.n_rows, n_steps * self.dt)
        integrator = RK4Integrator(dt=self.dt, check_values=self.inputs.check_values)
        return integrator.run(self, n_steps)
