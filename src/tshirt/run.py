"""T-shirt model series functions.

This module provides the entry points for driving the model:
- step(): Execute a single timestep and collect its outputs
- run(): Execute the model over a forcing timeseries
"""

from __future__ import annotations

import dataclasses
import logging

import numpy as np

from .errors import MassBalanceStatus
from .evapotranspiration import EvapotranspirationAdjuster, PdmEtParams
from .inputs import ForcingData
from .model import TshirtModel
from .outputs import FLUX_NAMES, ModelOutput, TshirtFluxes
from .types import Parameters, State

logger = logging.getLogger(__name__)


def step(
    model: TshirtModel,
    dt: float,
    water_input: float,
    et_params: PdmEtParams,
) -> tuple[MassBalanceStatus, dict[str, float]]:
    """Execute one timestep of the T-shirt model.

    Args:
        model: Model instance, advanced in place.
        dt: Timestep size [s].
        water_input: Water reaching the soil surface [m].
        et_params: ET inputs for the timestep. The model's adjuster must accept
            PdmEtParams, whose potential_et is recorded in the outputs.

    Returns:
        Tuple of (status, outputs) where outputs maps every name in
        FLUX_NAMES to its value for the timestep.
    """
    status = model.run(dt, water_input, et_params)
    state = model.current_state

    outputs: dict[str, float] = {
        "water_input": water_input,
        "potential_et": et_params.potential_et,
        **model.fluxes.to_dict(),
        "soil_storage": state.soil_storage,
        "groundwater_storage": state.groundwater_storage,
        "nash_cascade_storage": float(state.nash_cascade_storage.sum()),
        "mass_balance_status": float(status),
    }
    return status, outputs


def run(
    params: Parameters,
    forcing: ForcingData,
    et_params: PdmEtParams,
    initial_state: State | None = None,
    evapotranspiration: EvapotranspirationAdjuster | None = None,
) -> ModelOutput:
    """Run the T-shirt model over a timeseries.

    Args:
        params: Model parameters.
        forcing: Water input and potential ET per timestep.
        et_params: ET store description; its potential_et is replaced by the
            forcing value of each timestep.
        initial_state: Initial model state. If None, all reservoirs start empty.
        evapotranspiration: ET adjuster. Defaults to PdmEvapotranspiration. A
            custom adjuster receives PdmEtParams each timestep.

    Returns:
        ModelOutput containing TshirtFluxes outputs.
        Convert to DataFrame via result.to_dataframe().
    """
    model = TshirtModel(params, initial_state, evapotranspiration=evapotranspiration)

    n_timesteps = len(forcing)
    dt = forcing.time_step_seconds
    outputs_arr = np.zeros((n_timesteps, len(FLUX_NAMES)), dtype=np.float64)

    n_failures = 0
    for t in range(n_timesteps):
        step_et_params = dataclasses.replace(et_params, potential_et=float(forcing.potential_et[t]))
        status, outputs = step(model, dt, float(forcing.water_input[t]), step_et_params)
        if status is not MassBalanceStatus.OK:
            n_failures += 1
        for i, name in enumerate(FLUX_NAMES):
            outputs_arr[t, i] = outputs[name]

    if n_failures:
        logger.warning("Mass balance check failed on %d of %d timesteps", n_failures, n_timesteps)

    return ModelOutput(time=forcing.time, fluxes=TshirtFluxes.from_array(outputs_arr))
