"""Per-timestep mass balance audit.

Compares water held before a timestep plus the input against water held after
it plus everything that left. The check only signals; it never corrects state.
"""

from __future__ import annotations

import logging

from .constants import DEFAULT_MASS_CHECK_ERROR_BOUND
from .errors import MassBalanceStatus
from .types import Fluxes, State

logger = logging.getLogger(__name__)


def mass_difference(
    previous: State,
    current: State,
    fluxes: Fluxes,
    input_flux: float,
    dt: float,
) -> float:
    """Compute mass in minus mass out over one timestep.

    Percolation is internal to the system and does not appear.

    Args:
        previous: State at the start of the timestep.
        current: State at the end of the timestep.
        fluxes: Fluxes computed for the timestep.
        input_flux: Water input during the timestep [m].
        dt: Timestep size [s].

    Returns:
        mass_in - mass_out [m].
    """
    mass_in = previous.total_storage + input_flux
    mass_out = (
        current.total_storage
        + fluxes.et_loss
        + (fluxes.surface_runoff + fluxes.soil_lateral_flow + fluxes.groundwater_flow) * dt
    )
    return mass_in - mass_out


class MassBalanceChecker:
    """Audits conservation of water against an absolute error bound.

    Args:
        error_bound: Acceptable absolute difference [m]. Negative values are
            stored as their absolute value.
    """

    def __init__(self, error_bound: float = DEFAULT_MASS_CHECK_ERROR_BOUND) -> None:
        self.error_bound = error_bound

    @property
    def error_bound(self) -> float:
        return self._error_bound

    @error_bound.setter
    def error_bound(self, value: float) -> None:
        self._error_bound = abs(float(value))

    def check(
        self,
        previous: State,
        current: State,
        fluxes: Fluxes,
        input_flux: float,
        dt: float,
    ) -> MassBalanceStatus:
        """Check that mass was conserved over one timestep.

        Returns:
            MassBalanceStatus.MASS_BALANCE_ERROR if the absolute difference
            exceeds the error bound, MassBalanceStatus.OK otherwise.
        """
        diff = mass_difference(previous, current, fluxes, input_flux, dt)
        if abs(diff) > self._error_bound:
            logger.warning(
                "Mass balance error of %.3e m exceeds bound %.1e m",
                diff,
                self._error_bound,
            )
            return MassBalanceStatus.MASS_BALANCE_ERROR
        return MassBalanceStatus.OK
