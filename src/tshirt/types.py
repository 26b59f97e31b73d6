"""T-shirt data structures for parameters, state and fluxes.

This module defines the core data types used by the T-shirt model:
- Parameters: The physical soil and groundwater coefficients
- State: Reservoir storages carried between timesteps
- Fluxes: Water leaving the reservoirs during one timestep
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields

import numpy as np

from .constants import (
    DEFAULT_REFKDT,
    DEFAULT_SOIL_DEPTH,
    PARAM_NAMES,
    STANDARD_ATMOSPHERIC_PRESSURE_PASCALS,
    WATER_SPECIFIC_WEIGHT,
)
from .errors import ConfigurationError
from .processes import schaake_coefficient, soil_field_capacity_storage


def _validate_parameters(params: Parameters) -> None:
    """Validate physical consistency of parameters.

    Raises ConfigurationError if a capacity is not positive or the soil
    retention parameters would make the field capacity undefined.
    """
    positive = ("maxsmc", "satdk", "satpsi", "max_groundwater_storage", "soil_depth")
    for name in positive:
        value = getattr(params, name)
        if not value > 0.0:
            msg = f"{name} must be > 0, got {value}"
            raise ConfigurationError(msg)
    if params.nash_n < 0:
        msg = f"nash_n must be >= 0, got {params.nash_n}"
        raise ConfigurationError(msg)
    if params.b <= 0.0 or params.b == 1.0:
        msg = f"b must be > 0 and != 1, got {params.b}"
        raise ConfigurationError(msg)
    if params.alpha_fc * STANDARD_ATMOSPHERIC_PRESSURE_PASCALS / WATER_SPECIFIC_WEIGHT <= 0.5:
        msg = f"alpha_fc={params.alpha_fc} puts the field capacity column above the water table"
        raise ConfigurationError(msg)


@dataclass(frozen=True)
class Parameters:
    """T-shirt model parameters.

    Attributes:
        maxsmc: Saturated soil moisture content (porosity) [-].
        wltsmc: Wilting point soil moisture content [-].
        satdk: Saturated hydraulic conductivity [m/s].
        satpsi: Saturated capillary head [m].
        slope: Slope coefficient scaling percolation [-].
        b: Clapp-Hornberger pore size distribution exponent [-].
        multiplier: Lateral conductivity multiplier [-].
        alpha_fc: Fraction of atmospheric pressure defining field capacity [-].
        klf: Lateral flow outlet coefficient [m/s].
        kn: Nash cascade outlet coefficient [m/s].
        nash_n: Number of reservoirs in the lateral flow Nash cascade [-].
        cgw: Groundwater outlet coefficient [m/s].
        expon: Groundwater outlet exponent [-].
        max_groundwater_storage: Groundwater reservoir capacity [m].
        soil_depth: Soil column depth [m].
        refkdt: Schaake reference multiplier [-].
    """

    maxsmc: float
    wltsmc: float
    satdk: float
    satpsi: float
    slope: float
    b: float
    multiplier: float
    alpha_fc: float
    klf: float
    kn: float
    nash_n: int
    cgw: float
    expon: float
    max_groundwater_storage: float
    soil_depth: float = DEFAULT_SOIL_DEPTH
    refkdt: float = DEFAULT_REFKDT

    def __post_init__(self) -> None:
        _validate_parameters(self)

    @property
    def max_soil_storage(self) -> float:
        """Soil reservoir capacity [m]."""
        return self.soil_depth * self.maxsmc

    @property
    def max_lateral_flow(self) -> float:
        """Velocity ceiling of the lateral flow outlets [m/s]."""
        return self.satdk * self.multiplier

    @property
    def schaake_coefficient(self) -> float:
        """Schaake partitioning coefficient [1/day]."""
        return schaake_coefficient(self.refkdt, self.satdk)

    @property
    def soil_field_capacity_storage(self) -> float:
        """Soil storage at which free drainage stops, Sfc [m]."""
        return soil_field_capacity_storage(self.maxsmc, self.satpsi, self.b, self.alpha_fc)

    def __array__(self, dtype: np.dtype | None = None, copy: bool | None = None) -> np.ndarray:
        """Convert parameters to 1D array in PARAM_NAMES order."""
        arr = np.array([float(getattr(self, name)) for name in PARAM_NAMES], dtype=np.float64)
        if dtype is not None:
            arr = arr.astype(dtype)
        return arr

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Parameters:
        """Reconstruct Parameters from array."""
        values = {name: float(arr[i]) for i, name in enumerate(PARAM_NAMES)}
        values["nash_n"] = int(round(values["nash_n"]))
        return cls(**values)


@dataclass
class State:
    """T-shirt model state variables.

    Storage heights of the soil and groundwater reservoirs and of each
    reservoir in the lateral flow Nash cascade.

    Attributes:
        soil_storage: Soil reservoir storage [m].
        groundwater_storage: Groundwater reservoir storage [m].
        nash_cascade_storage: Per-reservoir Nash cascade storage [m], length nash_n.
    """

    soil_storage: float = 0.0
    groundwater_storage: float = 0.0
    nash_cascade_storage: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float64))

    def __post_init__(self) -> None:
        self.nash_cascade_storage = np.asarray(self.nash_cascade_storage, dtype=np.float64).copy()

    @property
    def total_storage(self) -> float:
        """Water held in all reservoirs [m]."""
        return float(self.soil_storage + self.groundwater_storage + self.nash_cascade_storage.sum())

    @classmethod
    def zeros(cls, nash_n: int) -> State:
        """Create an all-zero state with a cascade of nash_n reservoirs."""
        return cls(
            soil_storage=0.0,
            groundwater_storage=0.0,
            nash_cascade_storage=np.zeros(nash_n, dtype=np.float64),
        )

    @classmethod
    def initialize(cls, params: Parameters) -> State:
        """Create initial state from parameters: all reservoirs empty."""
        return cls.zeros(params.nash_n)

    @classmethod
    def from_ratios(
        cls,
        params: Parameters,
        soil_ratio: float,
        groundwater_ratio: float,
    ) -> State:
        """Create state from storages given as fractions of reservoir capacity.

        Args:
            params: Model parameters providing the capacities.
            soil_ratio: Soil storage as a fraction of max_soil_storage [-].
            groundwater_ratio: Groundwater storage as a fraction of max_groundwater_storage [-].

        Raises:
            ConfigurationError: If a ratio is outside [0, 1].
        """
        for name, ratio in (("soil_ratio", soil_ratio), ("groundwater_ratio", groundwater_ratio)):
            if not 0.0 <= ratio <= 1.0:
                msg = f"{name} must be within [0, 1], got {ratio}"
                raise ConfigurationError(msg)
        return cls(
            soil_storage=soil_ratio * params.max_soil_storage,
            groundwater_storage=groundwater_ratio * params.max_groundwater_storage,
            nash_cascade_storage=np.zeros(params.nash_n, dtype=np.float64),
        )

    def copy(self) -> State:
        """Return an independent copy of this state."""
        return State(
            soil_storage=self.soil_storage,
            groundwater_storage=self.groundwater_storage,
            nash_cascade_storage=self.nash_cascade_storage.copy(),
        )


@dataclass
class Fluxes:
    """Water leaving the reservoirs during one timestep.

    Attributes:
        et_loss: Evapotranspiration loss from the soil [m].
        surface_runoff: Direct runoff plus reservoir overflow [m/s].
        soil_lateral_flow: Lateral flow leaving the Nash cascade [m/s].
        soil_percolation_flow: Percolation from soil to groundwater [m/s].
        groundwater_flow: Groundwater discharge [m/s].
    """

    et_loss: float = 0.0
    surface_runoff: float = 0.0
    soil_lateral_flow: float = 0.0
    soil_percolation_flow: float = 0.0
    groundwater_flow: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary of floats."""
        return {f.name: float(getattr(self, f.name)) for f in fields(self)}
