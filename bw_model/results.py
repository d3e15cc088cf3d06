"""
results.py — trajectory collection and the table returned to callers.

A run records one snapshot per accepted step. Snapshots are dictionaries of cohort vectors
keyed by series name; TrajectoryRecorder stacks them into (T, N) arrays (time rows,
individual columns) and wraps them, together with the validity flag and model tag, in a
SimulationResult.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

FLAG_KEYS = ("Correct_Values", "Model_Type")


@dataclass
class SimulationResult:
    """
    Ordered table of named series.

      series["Time"]        : (T,) days since baseline
      series[<other name>]  : (T, N) one column per individual

    ``result[name]`` also accepts "Correct_Values" and "Model_Type".
    """

    series: "OrderedDict[str, np.ndarray]"
    correct_values: bool
    model_type: str

    def __getitem__(self, key: str):
        if key == "Correct_Values":
            return self.correct_values
        if key == "Model_Type":
            return self.model_type
        return self.series[key]

    def __contains__(self, key: str) -> bool:
        return key in self.series or key in FLAG_KEYS

    def keys(self) -> List[str]:
        return list(self.series) + list(FLAG_KEYS)

    @property
    def time(self) -> np.ndarray:
        return self.series["Time"]

    @property
    def n_steps(self) -> int:
        return self.time.size - 1

    @property
    def cohort_size(self) -> int:
        return self.series["Age"].shape[1]

    def select(self, indices: Sequence[int]) -> "SimulationResult":
        """Sub-table for the given individuals."""
        idx = np.asarray(indices)
        series = OrderedDict(
            (name, arr if arr.ndim == 1 else arr[:, idx]) for name, arr in self.series.items()
        )
        return SimulationResult(series, self.correct_values, self.model_type)

    def individual(self, k: int) -> "SimulationResult":
        return self.select([k])

    def truncated(self, n_rows: int) -> "SimulationResult":
        series = OrderedDict((name, arr[:n_rows]) for name, arr in self.series.items())
        return SimulationResult(series, self.correct_values, self.model_type)

    @classmethod
    def concat(cls, parts: Sequence["SimulationResult"]) -> "SimulationResult":
        """
        Join results of disjoint sub-cohorts along the individual axis.

        Parts that stopped early shorten the joint table to the shortest part.
        """
        if not parts:
            raise ValueError("No results to concatenate")
        n_rows = min(p.time.size for p in parts)
        parts = [p.truncated(n_rows) for p in parts]
        first = parts[0]
        series = OrderedDict()
        for name, arr in first.series.items():
            if arr.ndim == 1:
                series[name] = arr
            else:
                series[name] = np.concatenate([p.series[name] for p in parts], axis=1)
        return cls(
            series=series,
            correct_values=all(p.correct_values for p in parts),
            model_type=first.model_type,
        )

    def as_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = OrderedDict(self.series)
        out["Correct_Values"] = self.correct_values
        out["Model_Type"] = self.model_type
        return out

    def to_frame(self) -> pd.DataFrame:
        """Long table: one row per (time, individual)."""
        T, N = self.time.size, self.cohort_size
        data = OrderedDict()
        data["Time"] = np.repeat(self.time, N)
        data["Individual"] = np.tile(np.arange(N), T)
        for name, arr in self.series.items():
            if name != "Time":
                data[name] = arr.reshape(-1)
        frame = pd.DataFrame(data)
        frame.attrs["Correct_Values"] = self.correct_values
        frame.attrs["Model_Type"] = self.model_type
        return frame


@dataclass
class TrajectoryRecorder:
    """Append-only collector of per-step snapshots."""

    model_type: str
    _times: List[float] = field(default_factory=list)
    _rows: "OrderedDict[str, List[np.ndarray]]" = field(default_factory=OrderedDict)

    def record(self, t: float, snapshot: Dict[str, np.ndarray]) -> None:
        self._times.append(t)
        for name, values in snapshot.items():
            self._rows.setdefault(name, []).append(np.asarray(values))

    def finish(self, correct_values: bool) -> SimulationResult:
        series = OrderedDict()
        series["Time"] = np.asarray(self._times, dtype=float)
        for name, rows in self._rows.items():
            series[name] = np.vstack(rows)
        return SimulationResult(series, correct_values, self.model_type)
