"""
adult.py — Hall dynamic body-weight model for adults.

State (rows of a (4, N) array):

  - Adaptive_Thermogenesis  AT   (kcal/d)
  - Extracellular_Fluid     ECF  (kg)
  - Glycogen                G    (kg)
  - Lean_Mass               L    (kg)

Fat mass is not integrated. It is tied to lean mass through the Forbes relation

    F(L) = F0 · exp(ρL/(ρF·C) · (L − L0))

and body weight is the algebraic sum BW = F + L + ECF + 3.7·G.

Forcing: ΔEI(t) and ΔNA(t) are rows floor(t/dt) of the intake and sodium change tables.

Each step advances AT, ECF and G with classical RK4 (their derivatives depend only on time
and themselves) and then advances L with the staggered rule of
:func:`bw_model.integrator.staggered_rk4_step`, so the lean-mass stages read the
already-advanced compartments (start, mid-step average, end).
"""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from typing import Dict

import numpy as np

from .constants import BMI_EDGES, BMI_LABELS, DAYS_PER_YEAR
from .errors import ModelInputError
from .integrator import RK4Integrator, StateLayout, rk4_step, staggered_rk4_step
from .parameters import AdultConstants, AdultInputs, derive_adult_constants
from .results import SimulationResult

logger = logging.getLogger(__name__)

ADULT_LAYOUT = StateLayout(("Adaptive_Thermogenesis", "Extracellular_Fluid", "Glycogen", "Lean_Mass"))


def classify_bmi(bmi: np.ndarray) -> np.ndarray:
    """Map BMI values to "Underweight" / "Normal" / "Pre-Obese" / "Obese" (NaN → "Unknown")."""
    bmi = np.asarray(bmi, dtype=float)
    labels = np.asarray(BMI_LABELS, dtype=object)[np.digitize(bmi, BMI_EDGES)]
    labels[np.isnan(bmi)] = "Unknown"
    return labels


def adult_step_count(days: float, dt: float, forcing_rows: int) -> int:
    """ceil(days/dt) steps, bounded by the rows available in the forcing tables."""
    return int(min(math.ceil(days / dt), forcing_rows - 1))


class AdultModel:
    """
    Vectorized adult model for a cohort of N individuals.

    Construction derives the immutable constants; :meth:`simulate` integrates the state
    forward and returns the trajectory table.
    """

    model_type = "Adult"
    layout = ADULT_LAYOUT

    def __init__(self, inputs: AdultInputs) -> None:
        self.inputs = inputs
        self.constants: AdultConstants = derive_adult_constants(inputs)
        self.p = self.constants.physiology
        self.dt = inputs.dt
        self.ei_change = inputs.ei_change
        self.na_change = inputs.na_change

    # ------------------------------------------------------------------
    #  Forcing
    # ------------------------------------------------------------------

    def delta_ei(self, t: float) -> np.ndarray:
        return self.ei_change.at(t)

    def delta_na(self, t: float) -> np.ndarray:
        return self.na_change.at(t)

    def total_intake(self, t: float) -> np.ndarray:
        return self.constants.energy_intake + self.delta_ei(t)

    def carb_intake(self, t: float) -> np.ndarray:
        return self.constants.pcarb * self.total_intake(t)

    def thermic_effect(self, t: float) -> np.ndarray:
        return self.p.beta_TEF * self.delta_ei(t)

    # ------------------------------------------------------------------
    #  Compartment derivatives
    # ------------------------------------------------------------------

    def d_glycogen(self, t: float, G: np.ndarray) -> np.ndarray:
        return (self.carb_intake(t) - self.constants.k_G * G ** 2) / self.p.rho_G

    def d_thermogenesis(self, t: float, AT: np.ndarray) -> np.ndarray:
        return (self.p.beta_AT * self.delta_ei(t) - AT) / self.p.tau_AT

    def d_ecf(self, t: float, ECF: np.ndarray) -> np.ndarray:
        c, p = self.constants, self.p
        return (
            self.delta_na(t)
            - p.zeta_Na * (ECF - c.ecf)
            - p.zeta_CI * (1.0 - self.carb_intake(t) / c.carb_intake)
        ) / p.sodium

    def fat_mass(self, L: np.ndarray) -> np.ndarray:
        c, p = self.constants, self.p
        return c.fat * np.exp(p.rho_L * (L - c.lean) / (p.rho_F * p.forbes_C))

    def body_weight(self, L: np.ndarray, ECF: np.ndarray, G: np.ndarray) -> np.ndarray:
        return self.fat_mass(L) + L + ECF + self.p.glycogen_water * G

    def lean_residual(self, t: float, L: np.ndarray, G: np.ndarray, AT: np.ndarray, ECF: np.ndarray) -> np.ndarray:
        """Energy-balance residual R; dL/dt = R·C/ρL."""
        c, p = self.constants, self.p
        F = self.fat_mass(L)
        weight = L + F + ECF + p.glycogen_water * G
        imbalance = (
            c.K
            + c.delta * weight
            + self.thermic_effect(t)
            + AT
            - self.total_intake(t)
            + self.d_glycogen(t, G)
        )
        return (imbalance + p.gamma_L * L + p.gamma_F * F) / (p.alpha_lean + p.alpha_fat * F)

    def d_lean(self, t: float, L: np.ndarray, G: np.ndarray, AT: np.ndarray, ECF: np.ndarray) -> np.ndarray:
        return self.lean_residual(t, L, G, AT, ECF) * (self.p.forbes_C / self.p.rho_L)

    def _d_fast(self, t: float, y: np.ndarray) -> np.ndarray:
        AT, ECF, G = y
        return np.vstack([self.d_thermogenesis(t, AT), self.d_ecf(t, ECF), self.d_glycogen(t, G)])

    def _d_lean_coupled(self, t: float, L: np.ndarray, aux: np.ndarray) -> np.ndarray:
        AT, ECF, G = aux
        return self.d_lean(t, L, G, AT, ECF)

    # ------------------------------------------------------------------
    #  Stepping interface
    # ------------------------------------------------------------------

    def initial_state(self) -> np.ndarray:
        c = self.constants
        return self.layout.stack(c.thermogenesis, c.ecf, c.glycogen, c.lean)

    def step(self, t: float, y: np.ndarray, dt: float) -> np.ndarray:
        fast = y[:3]
        fast_next = rk4_step(self._d_fast, t, fast, dt)
        lean_next = staggered_rk4_step(self._d_lean_coupled, t, y[3], dt, fast, fast_next)
        return np.vstack([fast_next, lean_next[None, :]])

    def invalid(self, y: np.ndarray) -> np.ndarray:
        masses = np.vstack([y[1:], self.fat_mass(y[3])[None, :]])
        return np.any(~np.isfinite(masses) | (masses <= 0.0), axis=0)

    def snapshot(self, t: float, y: np.ndarray) -> Dict[str, np.ndarray]:
        AT, ECF, G, L = self.layout.unpack(y)
        F = self.fat_mass(L)
        bw = F + L + ECF + self.p.glycogen_water * G
        bmi = bw / self.constants.ht ** 2
        return OrderedDict([
            ("Age", self.constants.age + t / DAYS_PER_YEAR),
            ("Adaptive_Thermogenesis", AT),
            ("Extracellular_Fluid", ECF),
            ("Glycogen", G),
            ("Fat_Mass", F),
            ("Lean_Mass", L),
            ("Body_Weight", bw),
            ("Body_Mass_Index", bmi),
            ("BMI_Category", classify_bmi(bmi)),
            ("Energy_Intake", self.total_intake(t)),
        ])

    # ------------------------------------------------------------------
    #  Simulation
    # ------------------------------------------------------------------

    def simulate(self, days: float) -> SimulationResult:
        """Integrate for ``days`` (bounded by the forcing tables) and return the trajectory."""
        if not days > 0.0:
            raise ModelInputError(f"days must be positive, got {days}")
        n_rows = min(self.ei_change.n_rows, self.na_change.n_rows)
        n_steps = adult_step_count(days, self.dt, n_rows)
        if n_steps < math.ceil(days / self.dt):
            logger.info("Forcing covers %d of the %d requested steps; run is shortened", n_steps, math.ceil(days / self.dt))
        integrator = RK4Integrator(dt=self.dt, check_values=self.inputs.check_values)
        return integrator.run(self, n_steps)
