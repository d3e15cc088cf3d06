"""
bw_model — dynamic body-weight models for adults and children (Hall et al.)

This package exposes the main model classes and entry points for convenience.
"""

from .adult import AdultModel, classify_bmi
from .api import (
    adult_weight,
    child_weight,
    energy_build,
    intake_reference,
    mass_reference,
    simulate_adult,
    simulate_child,
)
from .batching import run_partitioned
from .child import ChildModel, ChildReference
from .config import Scenario, load_scenario
from .errors import ForcingIndexError, ModelInputError, UnsupportedInterpolationError
from .forcing import ForcingTable, GeneralizedLogistic, InterpolationMode, build_forcing
from .integrator import RK4Integrator, rk4_step, staggered_rk4_step
from .parameters import (
    AdultConstants,
    AdultInputs,
    ChildConstants,
    ChildInputs,
    InitMode,
    derive_adult_constants,
    derive_child_constants,
)
from .results import SimulationResult, TrajectoryRecorder

__version__ = "0.3.0"
