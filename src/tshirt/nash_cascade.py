"""Nash cascade of single-outlet reservoirs.

Routes an inflow sequentially through a chain of reservoirs, producing a
delayed and attenuated output. Overflow from a saturated stage is folded into
the inflow of the next stage so no stage discards water.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .reservoir import Outlet, Reservoir


class NashCascade:
    """Ordered chain of single-outlet reservoirs.

    Args:
        reservoirs: Cascade stages, upstream first.
    """

    def __init__(self, reservoirs: Sequence[Reservoir]) -> None:
        self.reservoirs: list[Reservoir] = list(reservoirs)

    @classmethod
    def from_storage(
        cls,
        storage: np.ndarray,
        max_storage: float,
        outlet: Outlet,
        min_storage: float = 0.0,
    ) -> NashCascade:
        """Build a cascade of identical stages with the given initial storages.

        Args:
            storage: Initial storage of each stage [m]; its length sets the cascade size.
            max_storage: Capacity of each stage [m].
            outlet: Outlet shared by every stage.
            min_storage: Lower bound of each stage [m].
        """
        return cls([Reservoir.single_outlet(min_storage, max_storage, float(s), outlet) for s in storage])

    def __len__(self) -> int:
        return len(self.reservoirs)

    @property
    def storage(self) -> np.ndarray:
        """Storage of each stage [m]."""
        return np.array([reservoir.storage for reservoir in self.reservoirs], dtype=np.float64)

    def route(self, inflow: float, dt: float) -> tuple[float, np.ndarray]:
        """Route an inflow through every stage.

        Args:
            inflow: Inflow velocity into the first stage [m/s].
            dt: Timestep size [s].

        Returns:
            Tuple of (velocity, storage):
            - velocity: Velocity leaving the last stage, overflow included [m/s]
            - storage: Storage of each stage after routing [m]
        """
        velocity = inflow
        for reservoir in self.reservoirs:
            response = reservoir.response(velocity, dt)
            velocity = response.total_velocity + response.excess / dt
        return velocity, self.storage
