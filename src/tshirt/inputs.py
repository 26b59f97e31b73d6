"""Input data structures for the T-shirt model.

This module defines the validated forcing container used by the series
runner: water input and potential evapotranspiration per timestep.
"""

from __future__ import annotations

import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .constants import DEFAULT_TIME_STEP_SIZE


def _as_float_series(name: str, v: np.ndarray) -> np.ndarray:
    arr = np.asarray(v, dtype=np.float64)
    if arr.ndim != 1:
        msg = f"{name} array must be 1D, got {arr.ndim}D"
        raise ValueError(msg)
    if not np.all(np.isfinite(arr)):
        msg = f"{name} array contains NaN or infinite values"
        raise ValueError(msg)
    if np.any(arr < 0.0):
        msg = f"{name} array contains negative values"
        raise ValueError(msg)
    return arr


class ForcingData(BaseModel):
    """Validated forcing data for the T-shirt model.

    All arrays must be 1D with the same length. Non-finite and negative
    values are rejected. Numeric arrays are coerced to float64.

    Attributes:
        time: Datetime array for each timestep (datetime64).
        water_input: Water reaching the soil surface per timestep [m].
        potential_et: Potential evapotranspiration per timestep [m].
        time_step_seconds: Timestep size [s].
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    time: np.ndarray  # datetime64
    water_input: np.ndarray  # [m]
    potential_et: np.ndarray  # [m]
    time_step_seconds: float = float(DEFAULT_TIME_STEP_SIZE)

    @field_validator("time", mode="before")
    @classmethod
    def validate_time(cls, v: np.ndarray) -> np.ndarray:
        """Validate time array: must be 1D and coerced to datetime64."""
        arr = np.asarray(v)
        if arr.ndim != 1:
            msg = f"time array must be 1D, got {arr.ndim}D"
            raise ValueError(msg)
        return arr.astype("datetime64[ns]")

    @field_validator("water_input", mode="before")
    @classmethod
    def validate_water_input(cls, v: np.ndarray) -> np.ndarray:
        return _as_float_series("water_input", v)

    @field_validator("potential_et", mode="before")
    @classmethod
    def validate_potential_et(cls, v: np.ndarray) -> np.ndarray:
        return _as_float_series("potential_et", v)

    @field_validator("time_step_seconds")
    @classmethod
    def validate_time_step(cls, v: float) -> float:
        if not np.isfinite(v) or v <= 0.0:
            msg = f"time_step_seconds must be > 0, got {v}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_array_lengths(self) -> ForcingData:
        """Ensure all arrays have the same length."""
        n = len(self.time)
        if len(self.water_input) != n:
            msg = f"water_input length {len(self.water_input)} does not match time length {n}"
            raise ValueError(msg)
        if len(self.potential_et) != n:
            msg = f"potential_et length {len(self.potential_et)} does not match time length {n}"
            raise ValueError(msg)
        return self

    def __len__(self) -> int:
        """Return the number of timesteps."""
        return len(self.time)
