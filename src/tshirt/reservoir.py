"""Nonlinear reservoir with role-named discharge outlets.

A reservoir is a bounded storage cell. Each timestep adds the inflow, lets
every outlet discharge against the same post-inflow storage, caps outflow at
the minimum storage and reports any overflow above the maximum as excess.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from .constants import UNLIMITED_VELOCITY
from .errors import InvalidArgumentError, InvalidStateError
from .processes import exponential_outlet_velocity, linear_outlet_velocity


class OutletKind(str, Enum):
    """Discharge law of an outlet."""

    linear = "linear"
    exponential = "exponential"


class OutletRole(str, Enum):
    """Role an outlet plays within its reservoir."""

    lateral_flow = "lateral_flow"
    percolation = "percolation"
    discharge = "discharge"


@dataclass(frozen=True)
class Outlet:
    """Discharge function attached to a reservoir.

    Attributes:
        kind: Discharge law, linear (power law) or exponential.
        coefficient: Outlet coefficient [m/s].
        exponent: Outlet exponent [-].
        activation_threshold: Storage at or below which discharge is zero [m].
        max_velocity: Velocity ceiling [m/s].
    """

    kind: OutletKind
    coefficient: float
    exponent: float = 1.0
    activation_threshold: float = 0.0
    max_velocity: float = UNLIMITED_VELOCITY

    @classmethod
    def linear(
        cls,
        coefficient: float,
        exponent: float = 1.0,
        activation_threshold: float = 0.0,
        max_velocity: float = UNLIMITED_VELOCITY,
    ) -> Outlet:
        return cls(OutletKind.linear, coefficient, exponent, activation_threshold, max_velocity)

    @classmethod
    def exponential(
        cls,
        coefficient: float,
        exponent: float,
        activation_threshold: float = 0.0,
        max_velocity: float = UNLIMITED_VELOCITY,
    ) -> Outlet:
        return cls(OutletKind.exponential, coefficient, exponent, activation_threshold, max_velocity)

    def velocity(self, storage: float, max_storage: float) -> float:
        """Compute discharge velocity for a storage level.

        Args:
            storage: Reservoir storage height [m].
            max_storage: Capacity of the owning reservoir [m].

        Returns:
            Discharge velocity [m/s] within [0, max_velocity].

        Raises:
            InvalidStateError: If storage is negative.
        """
        if storage < 0.0:
            msg = f"Outlet velocity requested for negative storage {storage}"
            raise InvalidStateError(msg)

        if self.kind is OutletKind.exponential:
            return exponential_outlet_velocity(
                storage,
                max_storage,
                self.coefficient,
                self.exponent,
                self.activation_threshold,
                self.max_velocity,
            )
        return linear_outlet_velocity(
            storage,
            self.coefficient,
            self.exponent,
            self.activation_threshold,
            self.max_velocity,
        )


@dataclass(frozen=True)
class ReservoirResponse:
    """Result of advancing a reservoir one timestep.

    Attributes:
        velocities: Effective discharge velocity per outlet role [m/s].
        excess: Overflow above max storage [m].
    """

    velocities: dict[OutletRole, float]
    excess: float

    @property
    def total_velocity(self) -> float:
        """Sum of all outlet velocities [m/s]."""
        return float(sum(self.velocities.values()))


class Reservoir:
    """Bounded storage cell with one or more outlets.

    Outlets are kept in insertion order, which is the order in which their
    discharge is withdrawn when storage runs short.

    Args:
        min_storage: Lower storage bound [m].
        max_storage: Upper storage bound [m].
        storage: Initial storage height [m].
        outlets: Outlets keyed by role.

    Raises:
        InvalidArgumentError: If the bounds are inconsistent.
    """

    def __init__(
        self,
        min_storage: float,
        max_storage: float,
        storage: float,
        outlets: Mapping[OutletRole, Outlet],
    ) -> None:
        if not max_storage > min_storage:
            msg = f"max_storage {max_storage} must exceed min_storage {min_storage}"
            raise InvalidArgumentError(msg)
        self.min_storage = float(min_storage)
        self.max_storage = float(max_storage)
        self.outlets: dict[OutletRole, Outlet] = dict(outlets)
        self._storage = self._bounded(float(storage))
        self._last_response = ReservoirResponse({role: 0.0 for role in self.outlets}, 0.0)

    @classmethod
    def single_outlet(
        cls,
        min_storage: float,
        max_storage: float,
        storage: float,
        outlet: Outlet,
    ) -> Reservoir:
        """Create a reservoir with one outlet under the discharge role."""
        return cls(min_storage, max_storage, storage, {OutletRole.discharge: outlet})

    @property
    def storage(self) -> float:
        """Current storage height [m]."""
        return self._storage

    def get_storage_height(self) -> float:
        """Current storage height [m]; same as the storage property."""
        return self._storage

    def set_storage_height(self, storage: float) -> float:
        """Overwrite storage, clamped into [min_storage, max_storage].

        Returns:
            The storage actually stored [m].
        """
        self._storage = self._bounded(float(storage))
        return self._storage

    def velocity_for(self, role: OutletRole) -> float:
        """Velocity of an outlet in the most recent response [m/s]."""
        return self._last_response.velocities[role]

    def response(self, inflow: float, dt: float) -> ReservoirResponse:
        """Advance the reservoir one timestep.

        Args:
            inflow: Inflow velocity [m/s].
            dt: Timestep size [s].

        Returns:
            ReservoirResponse with per-outlet velocities and overflow excess.

        Raises:
            InvalidArgumentError: If dt is not positive or inflow is negative or not finite.
        """
        if not dt > 0.0:
            msg = f"Timestep must be > 0, got {dt}"
            raise InvalidArgumentError(msg)
        if not math.isfinite(inflow) or inflow < 0.0:
            msg = f"Inflow must be finite and non-negative, got {inflow}"
            raise InvalidArgumentError(msg)

        storage = self._storage + inflow * dt

        # All outlets see the same post-inflow storage
        velocities: dict[OutletRole, float] = {
            role: outlet.velocity(storage, self.max_storage) for role, outlet in self.outlets.items()
        }

        for role, velocity in velocities.items():
            available = storage
            storage -= velocity * dt
            if storage < self.min_storage:
                # Withdraw what remains above min; zero once an earlier outlet emptied it
                velocities[role] = max(0.0, (available - self.min_storage) / dt)
                storage = self.min_storage

        excess = 0.0
        if storage > self.max_storage:
            excess = storage - self.max_storage
            storage = self.max_storage

        self._storage = storage
        self._last_response = ReservoirResponse(velocities, excess)
        return self._last_response

    def _bounded(self, storage: float) -> float:
        return min(max(storage, self.min_storage), self.max_storage)

    def __repr__(self) -> str:
        roles = ", ".join(role.value for role in self.outlets)
        return (
            f"Reservoir(storage={self._storage!r}, min_storage={self.min_storage!r}, "
            f"max_storage={self.max_storage!r}, outlets=[{roles}])"
        )
