"""Evapotranspiration adjustment of soil storage.

The model only depends on the ``EvapotranspirationAdjuster`` contract: given a
storage and opaque ET parameters, return the loss. ``PdmEvapotranspiration``
is the default, backed by a probability-distributed moisture store.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import InvalidArgumentError
from .processes import pdm_final_height


class EvapotranspirationAdjuster(Protocol):
    """Computes how much of a storage evaporates during one timestep."""

    def adjust(self, storage: float, et_params: Any) -> float:
        """Return the ET loss [m] for a storage [m]."""
        ...


@dataclass(frozen=True)
class PdmEtParams:
    """Climate and capacity inputs of the PDM evapotranspiration store.

    Attributes:
        potential_et: Potential evapotranspiration over the timestep [m].
        max_height: Huz, height of the moisture accounting store [m].
        shape_b: Pareto shape exponent b of the capacity distribution [-].
        vegetation_factor: Kv, vegetation adjustment of potential ET [-].
        max_capacity: Cpar, store capacity [m]. Defaults to Huz / (1 + b).
    """

    potential_et: float
    max_height: float
    shape_b: float = 1.0
    vegetation_factor: float = 1.0
    max_capacity: float | None = None

    def __post_init__(self) -> None:
        values = {
            "potential_et": self.potential_et,
            "max_height": self.max_height,
            "shape_b": self.shape_b,
            "vegetation_factor": self.vegetation_factor,
        }
        for name, value in values.items():
            if not math.isfinite(value) or value < 0.0:
                msg = f"{name} must be finite and >= 0, got {value}"
                raise InvalidArgumentError(msg)
        if self.max_height == 0.0:
            msg = "max_height must be > 0"
            raise InvalidArgumentError(msg)
        if self.max_capacity is not None and not self.max_capacity > 0.0:
            msg = f"max_capacity must be > 0, got {self.max_capacity}"
            raise InvalidArgumentError(msg)

    @property
    def capacity(self) -> float:
        """Effective store capacity Cpar [m]."""
        if self.max_capacity is not None:
            return self.max_capacity
        return self.max_height / (1.0 + self.shape_b)


class PdmEvapotranspiration:
    """ET loss from a probability-distributed moisture (PDM) store.

    Actual ET scales with the saturated fraction of the store, so a nearly dry
    soil loses little water. Potential ET above Cpar / Kv is outside the valid
    range and removes more water than the storage holds.
    """

    def adjust(self, storage: float, et_params: PdmEtParams) -> float:
        """Compute ET loss for a storage.

        Args:
            storage: Storage height before ET [m].
            et_params: PDM store and climate inputs.

        Returns:
            Loss [m] to subtract from storage.
        """
        final_height = pdm_final_height(
            float(storage),
            float(et_params.potential_et),
            float(et_params.max_height),
            float(et_params.capacity),
            float(et_params.shape_b),
            float(et_params.vegetation_factor),
        )
        return float(storage) - final_height
