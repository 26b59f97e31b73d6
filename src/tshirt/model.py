"""T-shirt model orchestration.

``TshirtModel`` owns the parameters, the previous/current state pair and the
soil, groundwater and Nash cascade reservoirs, and advances them one timestep
at a time:

1. Schaake partitioning of the water input into runoff and infiltration
2. Soil reservoir response (lateral flow and percolation outlets)
3. Evapotranspiration adjustment of soil storage
4. Nash cascade routing of lateral flow
5. Groundwater reservoir response to percolation
6. Mass balance audit
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any

import numpy as np

from .constants import DEFAULT_MASS_CHECK_ERROR_BOUND, UNLIMITED_VELOCITY
from .errors import ConfigurationError, InvalidArgumentError, MassBalanceStatus
from .evapotranspiration import EvapotranspirationAdjuster, PdmEvapotranspiration
from .mass_balance import MassBalanceChecker
from .nash_cascade import NashCascade
from .processes import schaake_partitioning
from .reservoir import Outlet, OutletRole, Reservoir
from .types import Fluxes, Parameters, State

logger = logging.getLogger(__name__)


class ModelPhase(str, Enum):
    """Lifecycle phase of a model instance."""

    uninitialized = "uninitialized"
    ready = "ready"


def _validated_state(params: Parameters, initial_state: State | None) -> State:
    """Return a private copy of the initial state sized for the Nash cascade.

    An empty cascade storage is expanded to nash_n zeros. Any other size
    mismatch raises ConfigurationError.
    """
    state = State.initialize(params) if initial_state is None else initial_state.copy()

    if len(state.nash_cascade_storage) != params.nash_n:
        if params.nash_n > 0 and len(state.nash_cascade_storage) == 0:
            state.nash_cascade_storage = np.zeros(params.nash_n, dtype=np.float64)
        else:
            msg = (
                f"Nash cascade size parameter nash_n={params.nash_n} does not match "
                f"state storage size {len(state.nash_cascade_storage)}"
            )
            raise ConfigurationError(msg)

    bounds = (
        ("soil_storage", state.soil_storage, params.max_soil_storage),
        ("groundwater_storage", state.groundwater_storage, params.max_groundwater_storage),
    )
    for name, value, max_value in bounds:
        if not math.isfinite(value) or not 0.0 <= value <= max_value:
            msg = f"{name} must be within [0, {max_value}], got {value}"
            raise ConfigurationError(msg)
    nash = state.nash_cascade_storage
    if not np.all(np.isfinite(nash)) or np.any(nash < 0.0) or np.any(nash > params.max_soil_storage):
        msg = f"nash_cascade_storage must be within [0, {params.max_soil_storage}]"
        raise ConfigurationError(msg)

    return state


class TshirtModel:
    """Conceptual rainfall-runoff model for a single land unit.

    Args:
        params: Model parameters.
        initial_state: Initial storages. If None, all reservoirs start empty.
        evapotranspiration: ET adjuster. Defaults to PdmEvapotranspiration.
        mass_check_error_bound: Acceptable absolute mass balance error [m].

    Raises:
        ConfigurationError: If the initial state does not match the parameters.
    """

    def __init__(
        self,
        params: Parameters,
        initial_state: State | None = None,
        evapotranspiration: EvapotranspirationAdjuster | None = None,
        mass_check_error_bound: float = DEFAULT_MASS_CHECK_ERROR_BOUND,
    ) -> None:
        self.phase = ModelPhase.uninitialized
        self.params = params
        self.evapotranspiration = evapotranspiration if evapotranspiration is not None else PdmEvapotranspiration()
        self.mass_balance = MassBalanceChecker(mass_check_error_bound)

        self.soil_field_capacity_storage = params.soil_field_capacity_storage

        state = _validated_state(params, initial_state)
        self.previous_state: State = state
        self.current_state: State = state
        self.fluxes: Fluxes | None = None

        self.soil_reservoir = self._build_soil_reservoir(state.soil_storage)
        self.groundwater_reservoir = self._build_groundwater_reservoir(state.groundwater_storage)
        self.nash_cascade = self._build_nash_cascade(state.nash_cascade_storage)

        self.phase = ModelPhase.ready
        logger.debug(
            "Initialized T-shirt model: Sfc=%.4f m, max soil storage=%.4f m, nash_n=%d",
            self.soil_field_capacity_storage,
            params.max_soil_storage,
            params.nash_n,
        )

    def _build_soil_reservoir(self, storage: float) -> Reservoir:
        params = self.params
        sfc = self.soil_field_capacity_storage
        outlets = {
            OutletRole.lateral_flow: Outlet.linear(params.klf, 1.0, sfc, params.max_lateral_flow),
            OutletRole.percolation: Outlet.linear(params.satdk * params.slope, 1.0, sfc, UNLIMITED_VELOCITY),
        }
        return Reservoir(0.0, params.max_soil_storage, storage, outlets)

    def _build_groundwater_reservoir(self, storage: float) -> Reservoir:
        params = self.params
        outlet = Outlet.exponential(params.cgw, params.expon, 0.0, UNLIMITED_VELOCITY)
        return Reservoir.single_outlet(0.0, params.max_groundwater_storage, storage, outlet)

    def _build_nash_cascade(self, storage: np.ndarray) -> NashCascade:
        params = self.params
        outlet = Outlet.linear(params.kn, 1.0, 0.0, params.max_lateral_flow)
        return NashCascade.from_storage(storage, params.max_soil_storage, outlet)

    @property
    def mass_check_error_bound(self) -> float:
        """Acceptable absolute mass balance error [m]."""
        return self.mass_balance.error_bound

    @mass_check_error_bound.setter
    def mass_check_error_bound(self, value: float) -> None:
        self.mass_balance.error_bound = value

    def run(self, dt: float, input_flux: float, et_params: Any) -> MassBalanceStatus:
        """Advance the model one timestep.

        Args:
            dt: Timestep size [s].
            input_flux: Water reaching the soil surface during the timestep [m].
            et_params: Inputs for the ET adjuster (PdmEtParams by default).

        Returns:
            Mass balance status of the timestep. A failure does not roll back state.

        Raises:
            InvalidArgumentError: If dt or input_flux is not a finite, valid value.
        """
        if not math.isfinite(dt) or dt <= 0.0:
            msg = f"Timestep must be finite and > 0, got {dt}"
            raise InvalidArgumentError(msg)
        if not math.isfinite(input_flux) or input_flux < 0.0:
            msg = f"Input flux must be finite and >= 0, got {input_flux}"
            raise InvalidArgumentError(msg)

        params = self.params

        # 1. Advance state pointers
        self.previous_state = self.current_state
        current = State.zeros(params.nash_n)
        fluxes = Fluxes()
        self.current_state = current
        self.fluxes = fluxes

        # 2. Partition water input
        deficit = params.max_soil_storage - self.previous_state.soil_storage
        surface_runoff, infiltration = schaake_partitioning(dt, params.schaake_coefficient, deficit, input_flux)

        # 3. Soil reservoir
        soil_response = self.soil_reservoir.response(infiltration / dt, dt)
        lateral_flow = soil_response.velocities[OutletRole.lateral_flow]
        percolation = soil_response.velocities[OutletRole.percolation]

        # 4. Evapotranspiration
        soil_height = self.soil_reservoir.storage
        et_loss = self.evapotranspiration.adjust(soil_height, et_params)
        current.soil_storage = self.soil_reservoir.set_storage_height(soil_height - et_loss)

        # 5. Nash cascade
        routed_lateral_flow, nash_storage = self.nash_cascade.route(lateral_flow, dt)
        current.nash_cascade_storage = nash_storage

        # 6. Groundwater reservoir
        gw_response = self.groundwater_reservoir.response(percolation, dt)
        current.groundwater_storage = self.groundwater_reservoir.storage

        # 7. Fluxes
        fluxes.et_loss = et_loss
        fluxes.surface_runoff = surface_runoff / dt + soil_response.excess / dt + gw_response.excess / dt
        fluxes.soil_lateral_flow = routed_lateral_flow
        fluxes.soil_percolation_flow = percolation
        fluxes.groundwater_flow = gw_response.total_velocity

        # 8. Mass balance
        return self.mass_balance.check(self.previous_state, current, fluxes, input_flux, dt)

    def __repr__(self) -> str:
        return (
            f"TshirtModel(phase={self.phase.value}, soil_storage={self.current_state.soil_storage!r}, "
            f"groundwater_storage={self.current_state.groundwater_storage!r}, nash_n={self.params.nash_n})"
        )
