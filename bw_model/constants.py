"""
constants.py — physical constants and regression coefficients of the Hall body-weight models.

All literals used by the adult and child models are collected here so that both variants draw
from a single table. Energy densities are expressed in kcal/kg (the original kJ/g values of
Hall et al. converted with 1 kJ = 0.23900573614 kcal).

Sex-specific coefficients are stored as ``(male, female)`` pairs and blended per individual
with :func:`bw_model.parameters.blend_by_sex` (sex indicator 0 = male, 1 = female).

References:
  - Hall KD et al. 2011, "Quantification of the effect of energy imbalance on bodyweight",
    Lancet 378: 826–837.
  - Hall KD 2010, "Predicting metabolic adaptation, body weight change, and energy intake
    in humans", Am J Physiol Endocrinol Metab 298: E449–E466.
  - Hall KD, Butte NF, Swinburn BA, Chow CC 2013, "Dynamics of childhood growth and
    obesity", Lancet Diabetes Endocrinol 1: 97–105.
  - Mifflin MD, St Jeor ST et al. 1990, Am J Clin Nutr 51: 241–247.
  - Silva AM et al. 2007 (extracellular water regression).
  - Jackson AS et al. 2002 (fat-mass regression on BMI, age and sex).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


SexPair = Tuple[float, float]

DAYS_PER_YEAR: float = 365.0


# ---------------------------------------------------------------------------
#  Adult model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AdultPhysiology:
    """
    Population-wide constants of the adult (Hall 2011) model.

      rho_G       glycogen energy density                      (kcal/kg)  17.6 kJ/g
      rho_F       fat energy density                           (kcal/kg)  39.5 kJ/g
      rho_L       lean tissue energy density                   (kcal/kg)   7.6 kJ/g
      gamma_F     fat-mass metabolic rate coefficient          (kcal/kg/d) 13 kJ/kg/d
      gamma_L     lean-mass metabolic rate coefficient         (kcal/kg/d) 92 kJ/kg/d
      eta_F       fat deposition cost                          (kcal/kg)  750 kJ/kg
      eta_L       lean deposition cost                         (kcal/kg)  960 kJ/kg
      beta_TEF    thermic effect of feeding fraction
      beta_AT     adaptive thermogenesis gain
      tau_AT      adaptive thermogenesis time constant         (days)
      sodium      ECF sodium concentration scale               (mg/L)
      zeta_Na     ECF sodium retention coefficient             (mg/L/d)
      zeta_CI     ECF carbohydrate retention coefficient       (mg/d)
      forbes_C    Forbes body-composition constant (10.4 kg) in energy units
      glycogen_baseline  initial glycogen                       (kg)
      glycogen_water     kg of water bound per kg of glycogen
    """

    rho_G: float = 4206.501
    rho_F: float = 9440.727
    rho_L: float = 1816.444
    gamma_F: float = 3.107075
    gamma_L: float = 21.98853
    eta_F: float = 179.2543
    eta_L: float = 229.4455
    beta_TEF: float = 0.1
    beta_AT: float = 0.14
    tau_AT: float = 14.0
    sodium: float = 3220.0
    zeta_Na: float = 3000.0
    zeta_CI: float = 4000.0
    forbes: float = 10.4
    glycogen_baseline: float = 0.5
    glycogen_water: float = 3.7
    baseline_thermogenesis: float = 0.0

    @property
    def forbes_C(self) -> float:
        return self.forbes * (self.rho_L / self.rho_F)

    @property
    def alpha_lean(self) -> float:
        """Coefficient of dL/dt in the lean-mass energy balance."""
        return -(1.0 + self.eta_L / self.rho_L) * self.forbes_C

    @property
    def alpha_fat(self) -> float:
        """Coefficient of the fat-mass term in the lean-mass energy balance."""
        return -(1.0 + self.eta_F / self.rho_F)


ADULT = AdultPhysiology()


@dataclass(frozen=True)
class AdultRegressions:
    """
    Sex-specific regression coefficients for baseline anthropometry.

    Mifflin–St Jeor resting metabolic rate (kcal/d):
        RMR = w·BW + h·HT − a·AGE + intercept
    Extracellular fluid (kg):
        male:   0.025·AGE + 9.57·HT + 0.191·BW − 12.4
        female: 5.98·HT + 0.167·BW − 4.0
    Fat mass (kg):
        FM = BW·(0.14·AGE + s·ln(BW/HT²) − c)/100
    """

    rmr_weight: float = 9.99
    rmr_height: float = 625.0
    rmr_age: float = 4.92
    rmr_intercept: SexPair = (5.0, -161.0)

    ecf_age: SexPair = (0.025, 0.0)
    ecf_height: SexPair = (9.57, 5.98)
    ecf_weight: SexPair = (0.191, 0.167)
    ecf_intercept: SexPair = (-12.4, -4.0)

    fat_age: float = 0.14
    fat_log_bmi: SexPair = (37.31, 39.96)
    fat_intercept: SexPair = (-103.94, -102.01)


ADULT_REGRESSIONS = AdultRegressions()

# Upper-open BMI band edges (kg/m²) and their labels, in increasing order.
BMI_EDGES: Tuple[float, ...] = (18.5, 25.0, 30.0)
BMI_LABELS: Tuple[str, ...] = ("Underweight", "Normal", "Pre-Obese", "Obese")


# ---------------------------------------------------------------------------
#  Child model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CurveShape:
    """
    Sex-paired parameters of the double-exponential "general ODE" curve

        g(t) = A·exp(−(t − tA)/τA) + B·exp(−½((t − tB)/τB)²) + D·exp(−½((t − tD)/τD)²)

    with t the age in years.
    """

    A: SexPair
    B: SexPair
    D: SexPair
    tA: SexPair
    tB: SexPair
    tD: SexPair
    tauA: SexPair
    tauB: SexPair
    tauD: SexPair


@dataclass(frozen=True)
class ChildPhysiology:
    """
    Constants of the child growth model (Hall et al. 2013).

      rho_FM          fat-mass energy density                    (kcal/kg)
      rho_FFM_slope   Forbes-type FFM energy density, slope      (kcal/kg per kg FFM)
      rho_FFM_const   Forbes-type FFM energy density, intercept  (kcal/kg)
      delta_min       minimum physical-activity coefficient      (kcal/kg/d)
      delta_P, delta_h  half-age (yrs) and Hill exponent of the activity decline
      K               sex-specific energy-expenditure intercept  (kcal/d)
      delta_max       sex-specific maximum activity coefficient  (kcal/kg/d)
    """

    rho_FM: float = 9.4 * 1000.0
    rho_FFM_slope: float = 4.3
    rho_FFM_const: float = 837.0
    forbes: float = 10.4
    delta_min: float = 10.0
    delta_P: float = 12.0
    delta_h: float = 10.0
    gamma_FFM: float = 22.4
    gamma_FM: float = 4.5
    eta_FFM: float = 230.0
    eta_FM: float = 180.0
    intake_response: float = 0.24

    K: SexPair = (800.0, 700.0)
    delta_max: SexPair = (19.0, 17.0)

    growth_dynamic: CurveShape = field(default_factory=lambda: CurveShape(
        A=(3.2, 2.3), B=(9.6, 8.4), D=(10.1, 1.1),
        tA=(4.7, 4.5), tB=(12.5, 11.7), tD=(15.0, 16.2),
        tauA=(2.5, 1.0), tauB=(1.0, 0.9), tauD=(1.5, 0.7),
    ))
    growth_impact: CurveShape = field(default_factory=lambda: CurveShape(
        A=(3.2, 2.3), B=(9.6, 8.4), D=(10.0, 1.1),
        tA=(4.7, 4.5), tB=(12.5, 11.7), tD=(15.0, 16.0),
        tauA=(1.0, 1.0), tauB=(0.94, 0.94), tauD=(0.69, 0.69),
    ))
    energy_balance: CurveShape = field(default_factory=lambda: CurveShape(
        A=(7.2, 16.5), B=(30.0, 47.0), D=(21.0, 41.0),
        tA=(5.6, 4.8), tB=(9.8, 9.1), tD=(15.0, 13.5),
        tauA=(15.0, 7.0), tauB=(1.5, 1.0), tauD=(2.0, 1.5),
    ))


CHILD = ChildPhysiology()

# Reference body composition of children by age (kg), annual knots at ages 2..18.
# Columns are (male, female).
REFERENCE_AGE_START: float = 2.0
REFERENCE_AGE_STEP: float = 1.0

FFM_REFERENCE = np.array([
    [10.134, 9.477],
    [12.099, 11.494],
    [14.0, 13.2],
    [16.0, 14.7],
    [17.4, 16.3],
    [19.9, 18.2],
    [22.0, 20.5],
    [24.4, 23.3],
    [27.5, 26.4],
    [29.5, 28.5],
    [33.2, 32.4],
    [38.1, 36.1],
    [43.6, 38.9],
    [49.1, 40.7],
    [54.0, 41.7],
    [57.7, 42.3],
    [60.0, 42.6],
])

FM_REFERENCE = np.array([
    [2.456, 2.433],
    [2.576, 2.606],
    [2.7, 2.8],
    [2.7, 2.9],
    [2.8, 3.2],
    [2.9, 3.7],
    [3.3, 4.3],
    [3.7, 5.2],
    [4.8, 7.2],
    [5.9, 8.5],
    [6.7, 9.2],
    [7.0, 10.0],
    [7.2, 11.3],
    [7.5, 12.8],
    [8.0, 14.0],
    [8.4, 14.3],
    [8.8, 14.3],
])

FFM_REFERENCE.flags.writeable = False
FM_REFERENCE.flags.writeable = False


@dataclass(frozen=True)
class LogisticDefaults:
    """Default Richards-curve intake parameters (kcal/d, age in years)."""

    K: float = 2700.0
    Q: float = 10.0
    B: float = 12.0
    A: float = 3.0
    nu: float = 4.0
    C: float = 1.0


LOGISTIC_DEFAULTS = LogisticDefaults()
