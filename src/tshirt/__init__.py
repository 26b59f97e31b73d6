"""T-shirt conceptual rainfall-runoff model.

A point-scale reservoir model for a single land unit: Schaake infiltration
partitioning, a soil reservoir with lateral flow and percolation outlets, a
Nash cascade routing lateral flow, an exponential groundwater reservoir and a
PDM evapotranspiration store, audited for mass balance every timestep.
"""

from tshirt.bmi import TshirtBmi, Variable, VarType, VarValue
from tshirt.config import BmiConfig, read_config
from tshirt.constants import DEFAULT_BOUNDS, PARAM_NAMES
from tshirt.errors import (
    ConfigurationError,
    InvalidArgumentError,
    InvalidStateError,
    MassBalanceStatus,
    TshirtError,
    UnknownVariableError,
    UnsupportedOperationError,
)
from tshirt.evapotranspiration import EvapotranspirationAdjuster, PdmEtParams, PdmEvapotranspiration
from tshirt.inputs import ForcingData
from tshirt.mass_balance import MassBalanceChecker
from tshirt.model import TshirtModel
from tshirt.nash_cascade import NashCascade
from tshirt.outputs import ModelOutput, TshirtFluxes
from tshirt.reservoir import Outlet, OutletKind, OutletRole, Reservoir, ReservoirResponse
from tshirt.run import run, step
from tshirt.types import Fluxes, Parameters, State

__all__ = [
    "BmiConfig",
    "ConfigurationError",
    "DEFAULT_BOUNDS",
    "EvapotranspirationAdjuster",
    "Fluxes",
    "ForcingData",
    "InvalidArgumentError",
    "InvalidStateError",
    "MassBalanceChecker",
    "MassBalanceStatus",
    "ModelOutput",
    "NashCascade",
    "Outlet",
    "OutletKind",
    "OutletRole",
    "PARAM_NAMES",
    "Parameters",
    "PdmEtParams",
    "PdmEvapotranspiration",
    "Reservoir",
    "ReservoirResponse",
    "State",
    "TshirtBmi",
    "TshirtError",
    "TshirtFluxes",
    "TshirtModel",
    "UnknownVariableError",
    "UnsupportedOperationError",
    "VarType",
    "VarValue",
    "Variable",
    "read_config",
    "run",
    "step",
]
