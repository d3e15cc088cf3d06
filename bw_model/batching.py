"""
batching.py — run a cohort as independent partitions.

Individuals never interact inside the models, so a cohort can be split into sub-cohorts,
simulated separately (sequentially or on a ``concurrent.futures`` executor), and the results
joined back along the individual axis.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Callable, List, Optional, TypeVar

import numpy as np

from .errors import ModelInputError
from .results import SimulationResult

logger = logging.getLogger(__name__)

InputsT = TypeVar("InputsT")


def partition_indices(cohort_size: int, n_partitions: int) -> List[np.ndarray]:
    """Split 0..cohort_size-1 into at most n_partitions contiguous, non-empty blocks."""
    if n_partitions < 1:
        raise ModelInputError(f"n_partitions must be at least 1, got {n_partitions}")
    n_partitions = min(n_partitions, cohort_size)
    return [idx for idx in np.array_split(np.arange(cohort_size), n_partitions) if idx.size]


def run_partitioned(
    simulate: Callable[[InputsT], SimulationResult],
    inputs: InputsT,
    n_partitions: int,
    executor: Optional[Executor] = None,
) -> SimulationResult:
    """
    Simulate ``inputs`` in ``n_partitions`` pieces and merge the results.

    ``inputs`` must provide ``cohort_size`` and ``subset(indices)`` (AdultInputs and
    ChildInputs do). ``simulate`` must be picklable when a process pool is used.
    """
    blocks = partition_indices(inputs.cohort_size, n_partitions)
    parts = [inputs.subset(idx) for idx in blocks]
    logger.debug("Running %d individuals in %d partitions", inputs.cohort_size, len(parts))

    if executor is None:
        results = [simulate(part) for part in parts]
    else:
        results = list(executor.map(simulate, parts))

    merged = SimulationResult.concat(results)
    if not merged.correct_values:
        logger.warning("At least one partition stopped early; merged table has %d steps", merged.n_steps)
    return merged
