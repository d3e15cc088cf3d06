"""
config.py — YAML scenario files.

A scenario describes a cohort, its intake breakpoints and the run settings. Breakpoints are
expanded to dense tables with :func:`bw_model.forcing.build_forcing`. Example (adult):

    model: adult
    dt: 1.0
    days: 365
    check_values: true
    cohort:
      bw:  [80.0, 62.0]
      ht:  [1.80, 1.65]
      age: [40, 35]
      sex: [0, 1]
      pal: 1.6
    forcing:
      times: [0, 100, 365]
      mode: Linear
      energy_change: [[0, -250, -250],
                      [0, -400, -300]]
      sodium_change: [[0, 0, 0],
                      [0, 0, 0]]

A child scenario uses ``cohort: {age, sex, ffm, fm}`` and either an ``intake`` block with the
same keys as ``forcing`` (``values`` instead of ``energy_change``) or a ``logistic`` block with
any of K, Q, B, A, nu, C.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np
import yaml

from .api import simulate_adult, simulate_child
from .errors import ModelInputError
from .forcing import GeneralizedLogistic, build_forcing, resample_daily
from .parameters import AdultInputs, ChildInputs, InitMode
from .results import SimulationResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class Scenario:
    """A fully built model input plus its horizon."""

    model: str
    inputs: Union[AdultInputs, ChildInputs]
    days: float

    def run(self) -> SimulationResult:
        if self.model == "adult":
            return simulate_adult(self.inputs, self.days)
        return simulate_child(self.inputs, self.days)


def _read(path: PathLike) -> Dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)
    if not isinstance(cfg, dict):
        raise ModelInputError(f"Scenario file {path} must contain a mapping")
    return cfg


def _require(cfg: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in cfg:
        raise ModelInputError(f"Missing '{key}' in {where}")
    return cfg[key]


def _dense_table(block: Mapping[str, Any], key: str, dt: float, seed: Optional[int]) -> np.ndarray:
    daily = build_forcing(
        np.asarray(_require(block, key, "forcing block"), dtype=float),
        np.asarray(_require(block, "times", "forcing block"), dtype=float),
        block.get("mode", "Linear"),
        rng=seed,
    )
    return resample_daily(daily, dt)


def adult_scenario_from_dict(cfg: Mapping[str, Any]) -> Scenario:
    dt = float(cfg.get("dt", 1.0))
    cohort = _require(cfg, "cohort", "scenario")
    forcing = _require(cfg, "forcing", "scenario")
    seed = forcing.get("seed")

    ei_change = _dense_table(forcing, "energy_change", dt, seed)
    if "sodium_change" in forcing:
        na_change = _dense_table(forcing, "sodium_change", dt, None if seed is None else seed + 1)
    else:
        na_change = np.zeros_like(ei_change)

    mode = cohort.get("mode")
    inputs = AdultInputs(
        bw=_require(cohort, "bw", "cohort"),
        ht=_require(cohort, "ht", "cohort"),
        age=_require(cohort, "age", "cohort"),
        sex=_require(cohort, "sex", "cohort"),
        ei_change=ei_change,
        na_change=na_change,
        pal=cohort.get("pal", 1.5),
        pcarb_base=cohort.get("pcarb_base", 0.5),
        pcarb=cohort.get("pcarb", cohort.get("pcarb_base", 0.5)),
        dt=dt,
        energy=cohort.get("energy"),
        fat=cohort.get("fat"),
        mode=InitMode(mode) if mode is not None else None,
        check_values=bool(cfg.get("check_values", True)),
    )
    return Scenario("adult", inputs, float(cfg.get("days", 365)))


def child_scenario_from_dict(cfg: Mapping[str, Any]) -> Scenario:
    dt = float(cfg.get("dt", 1.0))
    cohort = _require(cfg, "cohort", "scenario")

    intake = None
    logistic = None
    if "intake" in cfg:
        block = cfg["intake"]
        intake = _dense_table(block, "values", dt, block.get("seed"))
    elif "logistic" in cfg:
        logistic = GeneralizedLogistic(**{k: np.asarray(v, dtype=float) for k, v in cfg["logistic"].items()})

    inputs = ChildInputs(
        age=_require(cohort, "age", "cohort"),
        sex=_require(cohort, "sex", "cohort"),
        ffm=_require(cohort, "ffm", "cohort"),
        fm=_require(cohort, "fm", "cohort"),
        intake=intake,
        logistic=logistic,
        dt=dt,
        check_values=bool(cfg.get("check_values", True)),
    )
    return Scenario("child", inputs, float(cfg.get("days", 365)))


def load_adult_scenario(path: PathLike) -> Scenario:
    return adult_scenario_from_dict(_read(path))


def load_child_scenario(path: PathLike) -> Scenario:
    return child_scenario_from_dict(_read(path))


def load_scenario(path: PathLike) -> Scenario:
    """Load a scenario, dispatching on its ``model`` key ("adult" or "child")."""
    cfg = _read(path)
    model = str(cfg.get("model", "adult")).lower()
    logger.debug("Loading %s scenario from %s", model, path)
    if model == "adult":
        return adult_scenario_from_dict(cfg)
    if model == "child":
        return child_scenario_from_dict(cfg)
    raise ModelInputError(f"Unknown model '{model}' in {path}; expected 'adult' or 'child'")
