"""
parameters.py — model inputs and the derivation of per-individual physiological constants.

The adult and child models are configured by a single inputs record each (AdultInputs,
ChildInputs). A pure construction pipeline turns those inputs into immutable constants
(AdultConstants, ChildConstants); the mutable state is owned by the integrator run.

Adult initialization modes (InitMode):

  - ESTIMATE_ALL          intake = RMR·PAL, body composition from regressions
  - GIVEN_ENERGY          intake supplied, body composition from regressions
  - GIVEN_FAT             fat mass supplied, intake = RMR·PAL
  - GIVEN_ENERGY_AND_FAT  intake and fat mass supplied

In every mode lean mass closes the weight identity
    BW = lean + fat + ECF + 3.7·glycogen
and the energy-balance constant K is solved so that baseline expenditure equals RMR·PAL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import ArrayLike

from .constants import (
    ADULT,
    ADULT_REGRESSIONS,
    CHILD,
    FFM_REFERENCE,
    FM_REFERENCE,
    AdultPhysiology,
    AdultRegressions,
    ChildPhysiology,
)
from .errors import ModelInputError
from .forcing import ForcingTable, GeneralizedLogistic
from .reference import CurveParams, blend_by_sex, sex_table

logger = logging.getLogger(__name__)


def cohort_vector(name: str, value: ArrayLike, n: int) -> np.ndarray:
    """Coerce a scalar or length-n vector to a read-only float array of shape (n,)."""
    arr = np.asarray(value, dtype=float)
    if arr.ndim == 0:
        arr = np.full(n, float(arr))
    if arr.shape != (n,):
        raise ModelInputError(f"'{name}' must have length {n} (one value per individual), got shape {arr.shape}")
    arr = arr.copy()
    arr.flags.writeable = False
    return arr


def _as_forcing(name: str, value: Union[ArrayLike, ForcingTable], dt: float, n: int) -> ForcingTable:
    table = value if isinstance(value, ForcingTable) else ForcingTable(np.asarray(value, dtype=float), dt)
    if table.dt != dt:
        raise ModelInputError(f"'{name}' was built with dt={table.dt} but the model uses dt={dt}")
    if table.cohort_size != n:
        raise ModelInputError(f"'{name}' has {table.cohort_size} columns but the cohort has {n} individuals")
    return table


def _validate_sex(sex: np.ndarray) -> None:
    if np.any((sex != 0.0) & (sex != 1.0)):
        raise ModelInputError("'sex' must be 0 (male) or 1 (female)")


def _cohort_logistic(curve: GeneralizedLogistic, n: int) -> GeneralizedLogistic:
    """Check every per-individual parameter of an intake curve against the cohort size."""
    return GeneralizedLogistic(**{
        f.name: getattr(curve, f.name) if np.ndim(getattr(curve, f.name)) == 0
        else cohort_vector(f"logistic.{f.name}", getattr(curve, f.name), n)
        for f in fields(curve)
    })


# ---------------------------------------------------------------------------
#  Adult inputs
# ---------------------------------------------------------------------------

class InitMode(Enum):
    ESTIMATE_ALL = "estimate_all"
    GIVEN_ENERGY = "given_energy"
    GIVEN_FAT = "given_fat"
    GIVEN_ENERGY_AND_FAT = "given_energy_and_fat"

    @classmethod
    def infer(cls, energy: Optional[ArrayLike], fat: Optional[ArrayLike]) -> "InitMode":
        if energy is None and fat is None:
            return cls.ESTIMATE_ALL
        if fat is None:
            return cls.GIVEN_ENERGY
        if energy is None:
            return cls.GIVEN_FAT
        return cls.GIVEN_ENERGY_AND_FAT

    @property
    def needs_energy(self) -> bool:
        return self in (InitMode.GIVEN_ENERGY, InitMode.GIVEN_ENERGY_AND_FAT)

    @property
    def needs_fat(self) -> bool:
        return self in (InitMode.GIVEN_FAT, InitMode.GIVEN_ENERGY_AND_FAT)


@dataclass
class AdultInputs:
    """
    Baseline anthropometrics and forcing of an adult cohort.

      bw, ht, age, sex   : (N,) weight (kg), height (m), age (yrs), 0 = male / 1 = female
      ei_change          : (steps, N) change in energy intake from baseline (kcal/d)
      na_change          : (steps, N) change in sodium intake from baseline (mg/d)
      pal                : physical activity level (1.4–2.4), scalar or (N,)
      pcarb_base, pcarb  : carbohydrate fraction of intake at baseline / after the change
      dt                 : RK4 step (days); forcing rows are dt apart
      energy, fat        : optional baseline intake (kcal/d) and fat mass (kg)
      mode               : explicit InitMode; inferred from energy/fat when omitted
      check_values       : stop the run when masses become non-finite or non-positive
    """

    bw: ArrayLike
    ht: ArrayLike
    age: ArrayLike
    sex: ArrayLike
    ei_change: Union[ArrayLike, ForcingTable]
    na_change: Union[ArrayLike, ForcingTable]
    pal: ArrayLike = 1.5
    pcarb_base: ArrayLike = 0.5
    pcarb: ArrayLike = 0.5
    dt: float = 1.0
    energy: Optional[ArrayLike] = None
    fat: Optional[ArrayLike] = None
    mode: Optional[InitMode] = None
    check_values: bool = True

    def __post_init__(self) -> None:
        bw = np.atleast_1d(np.asarray(self.bw, dtype=float))
        if bw.ndim != 1 or bw.size == 0:
            raise ModelInputError("'bw' must be a non-empty vector")
        n = bw.size
        if not self.dt > 0.0:
            raise ModelInputError(f"dt must be positive, got {self.dt}")

        self.bw = cohort_vector("bw", bw, n)
        self.ht = cohort_vector("ht", self.ht, n)
        self.age = cohort_vector("age", self.age, n)
        self.sex = cohort_vector("sex", self.sex, n)
        self.pal = cohort_vector("pal", self.pal, n)
        self.pcarb_base = cohort_vector("pcarb_base", self.pcarb_base, n)
        self.pcarb = cohort_vector("pcarb", self.pcarb, n)
        _validate_sex(self.sex)

        self.ei_change = _as_forcing("ei_change", self.ei_change, self.dt, n)
        self.na_change = _as_forcing("na_change", self.na_change, self.dt, n)

        if self.mode is None:
            self.mode = InitMode.infer(self.energy, self.fat)
        if self.mode.needs_energy and self.energy is None:
            raise ModelInputError(f"Init mode {self.mode.name} requires a baseline energy intake vector")
        if self.mode.needs_fat and self.fat is None:
            raise ModelInputError(f"Init mode {self.mode.name} requires a baseline fat mass vector")
        self.energy = cohort_vector("energy", self.energy, n) if self.mode.needs_energy else None
        self.fat = cohort_vector("fat", self.fat, n) if self.mode.needs_fat else None

    @property
    def cohort_size(self) -> int:
        return self.bw.size

    def subset(self, indices: Sequence[int]) -> "AdultInputs":
        idx = np.asarray(indices)
        return AdultInputs(
            bw=self.bw[idx],
            ht=self.ht[idx],
            age=self.age[idx],
            sex=self.sex[idx],
            ei_change=self.ei_change.subset(idx),
            na_change=self.na_change.subset(idx),
            pal=self.pal[idx],
            pcarb_base=self.pcarb_base[idx],
            pcarb=self.pcarb[idx],
            dt=self.dt,
            energy=None if self.energy is None else self.energy[idx],
            fat=None if self.fat is None else self.fat[idx],
            mode=self.mode,
            check_values=self.check_values,
        )


# ---------------------------------------------------------------------------
#  Adult constants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AdultConstants:
    """
    Immutable per-individual constants of the adult model, each an (N,) array.

      rmr             Mifflin–St Jeor resting metabolic rate (kcal/d)
      steady_state    RMR·PAL, expenditure at baseline (kcal/d)
      energy_intake   baseline energy intake (kcal/d)
      ecf, glycogen   baseline extracellular fluid and glycogen (kg)
      fat, lean       baseline fat and lean mass (kg)
      thermogenesis   baseline adaptive thermogenesis (kcal/d)
      delta           physical-activity coefficient (kcal/kg/d)
      K               energy-balance constant (kcal/d)
      carb_intake     baseline carbohydrate intake (kcal/d)
      k_G             glycogen balance constant, carb_intake / glycogen²
    """

    bw: np.ndarray
    ht: np.ndarray
    age: np.ndarray
    pal: np.ndarray
    pcarb: np.ndarray
    rmr: np.ndarray
    steady_state: np.ndarray
    energy_intake: np.ndarray
    ecf: np.ndarray
    glycogen: np.ndarray
    fat: np.ndarray
    lean: np.ndarray
    thermogenesis: np.ndarray
    delta: np.ndarray
    K: np.ndarray
    carb_intake: np.ndarray
    k_G: np.ndarray
    mode: InitMode
    physiology: AdultPhysiology = field(default=ADULT, repr=False)

    @property
    def cohort_size(self) -> int:
        return self.bw.size

    def baseline_expenditure(self) -> np.ndarray:
        """K + γL·L + γF·F + δ·BW, which equals RMR·PAL by construction of K."""
        p = self.physiology
        return self.K + p.gamma_L * self.lean + p.gamma_F * self.fat + self.delta * self.bw


def resting_metabolic_rate(bw, ht, age, sex, reg: AdultRegressions = ADULT_REGRESSIONS) -> np.ndarray:
    common = reg.rmr_weight * bw + reg.rmr_height * ht - reg.rmr_age * age
    return blend_by_sex(common + reg.rmr_intercept[0], common + reg.rmr_intercept[1], sex)


def extracellular_fluid(bw, ht, age, sex, reg: AdultRegressions = ADULT_REGRESSIONS) -> np.ndarray:
    male = reg.ecf_age[0] * age + reg.ecf_height[0] * ht + reg.ecf_weight[0] * bw + reg.ecf_intercept[0]
    female = reg.ecf_age[1] * age + reg.ecf_height[1] * ht + reg.ecf_weight[1] * bw + reg.ecf_intercept[1]
    return blend_by_sex(male, female, sex)


def fat_mass_regression(bw, ht, age, sex, reg: AdultRegressions = ADULT_REGRESSIONS) -> np.ndarray:
    log_bmi = np.log(bw / ht ** 2)
    male = bw * (reg.fat_age * age + reg.fat_log_bmi[0] * log_bmi + reg.fat_intercept[0]) / 100.0
    female = bw * (reg.fat_age * age + reg.fat_log_bmi[1] * log_bmi + reg.fat_intercept[1]) / 100.0
    return blend_by_sex(male, female, sex)


def derive_adult_constants(
    inputs: AdultInputs,
    physiology: AdultPhysiology = ADULT,
    regressions: AdultRegressions = ADULT_REGRESSIONS,
) -> AdultConstants:
    """Run the baseline pipeline for the inputs' initialization mode."""
    p = physiology
    bw, ht, age, sex, pal = inputs.bw, inputs.ht, inputs.age, inputs.sex, inputs.pal
    n = inputs.cohort_size

    rmr = resting_metabolic_rate(bw, ht, age, sex, regressions)
    steady_state = rmr * pal
    ecf = extracellular_fluid(bw, ht, age, sex, regressions)
    glycogen = np.full(n, p.glycogen_baseline)
    thermogenesis = np.full(n, p.baseline_thermogenesis)

    mode = inputs.mode
    energy = inputs.energy if mode.needs_energy else steady_state
    fat = inputs.fat if mode.needs_fat else fat_mass_regression(bw, ht, age, sex, regressions)
    lean = bw - (ecf + fat + p.glycogen_water * glycogen)

    delta = ((1.0 - p.beta_TEF) * pal - 1.0) * rmr / bw
    K = steady_state - p.gamma_L * lean - p.gamma_F * fat - delta * bw

    carb_intake = inputs.pcarb_base * energy
    k_G = carb_intake / glycogen ** 2

    logger.debug("Derived adult constants for %d individuals (mode=%s)", n, mode.name)

    return AdultConstants(
        bw=bw,
        ht=ht,
        age=age,
        pal=pal,
        pcarb=inputs.pcarb,
        rmr=rmr,
        steady_state=steady_state,
        energy_intake=np.asarray(energy, dtype=float),
        ecf=ecf,
        glycogen=glycogen,
        fat=np.asarray(fat, dtype=float),
        lean=lean,
        thermogenesis=thermogenesis,
        delta=delta,
        K=K,
        carb_intake=carb_intake,
        k_G=k_G,
        mode=mode,
        physiology=p,
    )


# ---------------------------------------------------------------------------
#  Child inputs and constants
# ---------------------------------------------------------------------------

@dataclass
class ChildInputs:
    """
    Baseline body composition and intake of a child cohort.

      age, sex   : (N,) age (yrs) and 0 = male / 1 = female
      ffm, fm    : (N,) fat-free and fat mass (kg)
      intake     : (steps, N) energy intake (kcal/d), row floor(t/dt) at t days after baseline
      logistic   : generalized-logistic intake curve of age, used when ``intake`` is omitted
      dt         : RK4 step (days)
    """

    age: ArrayLike
    sex: ArrayLike
    ffm: ArrayLike
    fm: ArrayLike
    intake: Optional[Union[ArrayLike, ForcingTable]] = None
    logistic: Optional[GeneralizedLogistic] = None
    dt: float = 1.0
    check_values: bool = True

    def __post_init__(self) -> None:
        age = np.atleast_1d(np.asarray(self.age, dtype=float))
        if age.ndim != 1 or age.size == 0:
            raise ModelInputError("'age' must be a non-empty vector")
        n = age.size
        if not self.dt > 0.0:
            raise ModelInputError(f"dt must be positive, got {self.dt}")

        self.age = cohort_vector("age", age, n)
        self.sex = cohort_vector("sex", self.sex, n)
        self.ffm = cohort_vector("ffm", self.ffm, n)
        self.fm = cohort_vector("fm", self.fm, n)
        _validate_sex(self.sex)

        if self.intake is not None and self.logistic is not None:
            raise ModelInputError("Give either an intake table or a logistic intake curve, not both")
        if self.intake is not None:
            self.intake = _as_forcing("intake", self.intake, self.dt, n)
        elif self.logistic is None:
            self.logistic = GeneralizedLogistic()
        if self.logistic is not None:
            self.logistic = _cohort_logistic(self.logistic, n)

    @property
    def cohort_size(self) -> int:
        return self.age.size

    def subset(self, indices: Sequence[int]) -> "ChildInputs":
        idx = np.asarray(indices)
        return ChildInputs(
            age=self.age[idx],
            sex=self.sex[idx],
            ffm=self.ffm[idx],
            fm=self.fm[idx],
            intake=None if self.intake is None else self.intake.subset(idx),
            logistic=None if self.logistic is None else self.logistic.subset(idx),
            dt=self.dt,
            check_values=self.check_values,
        )


@dataclass(frozen=True)
class ChildConstants:
    """
    Sex-blended constants of the child model, each array of shape (N,) unless noted.

      K, delta_max      energy-expenditure intercept (kcal/d) and maximum activity coefficient
      growth            growth curve used by the mass derivatives ("dynamics" parameter set)
      growth_impact     alternate growth-impact curve
      energy_balance    energy-balance-impact curve
      ffm_table, fm_table  (17, N) reference masses at annual knots, ages 2..18
    """

    sex: np.ndarray
    K: np.ndarray
    delta_max: np.ndarray
    growth: CurveParams
    growth_impact: CurveParams
    energy_balance: CurveParams
    ffm_table: np.ndarray
    fm_table: np.ndarray
    physiology: ChildPhysiology = field(default=CHILD, repr=False)

    @property
    def cohort_size(self) -> int:
        return self.sex.size


def derive_child_constants(sex: ArrayLike, physiology: ChildPhysiology = CHILD) -> ChildConstants:
    p = physiology
    sex = np.atleast_1d(np.asarray(sex, dtype=float))
    _validate_sex(sex)
    return ChildConstants(
        sex=sex,
        K=blend_by_sex(p.K[0], p.K[1], sex),
        delta_max=blend_by_sex(p.delta_max[0], p.delta_max[1], sex),
        growth=CurveParams.from_shape(p.growth_dynamic, sex),
        growth_impact=CurveParams.from_shape(p.growth_impact, sex),
        energy_balance=CurveParams.from_shape(p.energy_balance, sex),
        ffm_table=sex_table(FFM_REFERENCE, sex),
        fm_table=sex_table(FM_REFERENCE, sex),
        physiology=p,
    )
