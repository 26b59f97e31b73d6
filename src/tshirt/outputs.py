"""Structured output dataclasses for model results.

- TshirtFluxes: Per-timestep fluxes, storages and mass balance status as arrays
- ModelOutput: Flux outputs with a time index and DataFrame conversion
"""

from __future__ import annotations

from dataclasses import dataclass, fields

import numpy as np
import pandas as pd

# Per-timestep values recorded by the series runner, in array layout order
FLUX_NAMES: tuple[str, ...] = (
    "water_input",
    "potential_et",
    "et_loss",
    "surface_runoff",
    "soil_lateral_flow",
    "soil_percolation_flow",
    "groundwater_flow",
    "soil_storage",
    "groundwater_storage",
    "nash_cascade_storage",
    "mass_balance_status",
)


@dataclass(frozen=True)
class TshirtFluxes:
    """T-shirt model outputs as arrays.

    All arrays have the same length as the input forcing data.

    Attributes:
        water_input: Water input [m].
        potential_et: Potential evapotranspiration [m].
        et_loss: Evapotranspiration loss [m].
        surface_runoff: Direct runoff plus reservoir overflow [m/s].
        soil_lateral_flow: Routed lateral flow [m/s].
        soil_percolation_flow: Percolation to groundwater [m/s].
        groundwater_flow: Groundwater discharge [m/s].
        soil_storage: Soil storage after timestep [m].
        groundwater_storage: Groundwater storage after timestep [m].
        nash_cascade_storage: Total Nash cascade storage after timestep [m].
        mass_balance_status: MassBalanceStatus code per timestep.
    """

    # Inputs
    water_input: np.ndarray
    potential_et: np.ndarray

    # Fluxes
    et_loss: np.ndarray
    surface_runoff: np.ndarray
    soil_lateral_flow: np.ndarray
    soil_percolation_flow: np.ndarray
    groundwater_flow: np.ndarray

    # Storages
    soil_storage: np.ndarray
    groundwater_storage: np.ndarray
    nash_cascade_storage: np.ndarray

    mass_balance_status: np.ndarray

    @property
    def streamflow(self) -> np.ndarray:
        """Total discharge leaving the unit [m/s]."""
        return self.surface_runoff + self.soil_lateral_flow + self.groundwater_flow

    @classmethod
    def from_array(cls, arr: np.ndarray) -> TshirtFluxes:
        """Build from an array of shape (n_timesteps, len(FLUX_NAMES))."""
        columns = {name: arr[:, i].copy() for i, name in enumerate(FLUX_NAMES)}
        columns["mass_balance_status"] = columns["mass_balance_status"].astype(np.int32)
        return cls(**columns)

    def to_dict(self) -> dict[str, np.ndarray]:
        """Convert to dictionary of arrays.

        Returns:
            Dictionary mapping field names to their numpy array values.
        """
        return {field.name: getattr(self, field.name) for field in fields(self)}


@dataclass(frozen=True)
class ModelOutput:
    """Model output with time index.

    Attributes:
        time: Datetime array for each timestep.
        fluxes: Per-timestep model outputs.
    """

    time: np.ndarray
    fluxes: TshirtFluxes

    @property
    def streamflow(self) -> np.ndarray:
        """Return the total discharge array [m/s]."""
        return self.fluxes.streamflow

    @property
    def mass_balance_ok(self) -> bool:
        """True when every timestep passed the mass balance check."""
        return bool(np.all(self.fluxes.mass_balance_status == 0))

    def __len__(self) -> int:
        """Return the number of timesteps."""
        return len(self.time)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with time index.

        Returns:
            DataFrame with all outputs, plus streamflow, and time as index.
        """
        data = self.fluxes.to_dict()
        data["streamflow"] = self.fluxes.streamflow

        df = pd.DataFrame(data, index=self.time)
        df.index.name = "time"

        return df
