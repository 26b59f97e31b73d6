"""Configuration file reader for the T-shirt variable-exchange adapter.

The file is UTF-8 text with one ``key=value`` pair per line. Only
``epoch_start_time`` is required; clock keys are reconciled after parsing and
every kernel parameter falls back to a loam-like default.
"""

from __future__ import annotations

import logging
import math
from dataclasses import fields
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .constants import (
    DEFAULT_MASS_CHECK_ERROR_BOUND,
    DEFAULT_REFKDT,
    DEFAULT_SOIL_DEPTH,
    DEFAULT_TIME_STEP_COUNT,
    DEFAULT_TIME_STEP_SIZE,
)
from .errors import ConfigurationError
from .evapotranspiration import PdmEtParams
from .types import Parameters, State

logger = logging.getLogger(__name__)


class BmiConfig(BaseModel):
    """Validated adapter configuration.

    After validation num_time_steps and model_end_time are both set.

    Attributes:
        epoch_start_time: Start of the simulation as seconds since the epoch.
        num_time_steps: Number of timesteps to simulate.
        time_step_size: Timestep size [s].
        model_end_time: End of the simulation relative to model start [s].
        soil_storage: Initial soil storage [m], or fraction of capacity.
        groundwater_storage: Initial groundwater storage [m], or fraction of capacity.
        storage_values_are_ratios: Whether initial storages are fractions of capacity.
        pdm_max_height: Height of the PDM ET store [m]. Defaults to max soil storage.
        pdm_shape_b: Pareto shape exponent of the PDM ET store [-].
        pdm_vegetation_factor: Vegetation adjustment of potential ET [-].
        mass_check_error_bound: Acceptable absolute mass balance error [m].

    Remaining attributes mirror the fields of Parameters.
    """

    model_config = ConfigDict(extra="forbid")

    # Clock
    epoch_start_time: int
    num_time_steps: int | None = None
    time_step_size: int = DEFAULT_TIME_STEP_SIZE
    model_end_time: int | None = None

    # Kernel parameters
    maxsmc: float = 0.439
    wltsmc: float = 0.066
    satdk: float = 3.38e-6
    satpsi: float = 0.355
    slope: float = 1.0
    b: float = 4.05
    multiplier: float = 100.0
    alpha_fc: float = 0.33
    klf: float = 1.0e-5
    kn: float = 1.0e-4
    nash_n: int = 2
    cgw: float = 1.8e-6
    expon: float = 6.0
    max_groundwater_storage: float = 16.0
    soil_depth: float = DEFAULT_SOIL_DEPTH
    refkdt: float = DEFAULT_REFKDT

    # Initial state
    soil_storage: float = 0.0
    groundwater_storage: float = 0.0
    storage_values_are_ratios: bool = False

    # Evapotranspiration
    pdm_max_height: float | None = None
    pdm_shape_b: float = 1.0
    pdm_vegetation_factor: float = 1.0

    mass_check_error_bound: float = DEFAULT_MASS_CHECK_ERROR_BOUND

    @field_validator("time_step_size")
    @classmethod
    def validate_time_step_size(cls, v: int) -> int:
        if v <= 0:
            msg = f"time_step_size must be > 0, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("num_time_steps", "model_end_time")
    @classmethod
    def validate_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            msg = f"value must be >= 0, got {v}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def derive_time_steps(self) -> BmiConfig:
        """Reconcile num_time_steps and model_end_time.

        A value of 0 counts as absent. With neither given the default step
        count applies, which is only valid with the default timestep size.
        """
        has_count = bool(self.num_time_steps)
        has_end = bool(self.model_end_time)

        if not has_count and not has_end:
            if self.time_step_size != DEFAULT_TIME_STEP_SIZE:
                msg = (
                    f"time_step_size={self.time_step_size} requires num_time_steps or model_end_time; "
                    f"the default step count only applies to time_step_size={DEFAULT_TIME_STEP_SIZE}"
                )
                raise ValueError(msg)
            self.num_time_steps = DEFAULT_TIME_STEP_COUNT
            has_count = True

        if not has_end:
            self.model_end_time = self.num_time_steps * self.time_step_size
        if not has_count:
            self.num_time_steps = math.floor(self.model_end_time / self.time_step_size)
        return self

    def parameters(self) -> Parameters:
        """Build kernel parameters from the configuration."""
        return Parameters(**{f.name: getattr(self, f.name) for f in fields(Parameters)})

    def initial_state(self, params: Parameters) -> State:
        """Build the initial state, converting capacity ratios when configured."""
        if self.storage_values_are_ratios:
            return State.from_ratios(params, self.soil_storage, self.groundwater_storage)
        return State(
            soil_storage=self.soil_storage,
            groundwater_storage=self.groundwater_storage,
        )

    def et_params(self, params: Parameters, potential_et: float) -> PdmEtParams:
        """Build PDM ET inputs for one timestep."""
        max_height = self.pdm_max_height if self.pdm_max_height is not None else params.max_soil_storage
        return PdmEtParams(
            potential_et=potential_et,
            max_height=max_height,
            shape_b=self.pdm_shape_b,
            vegetation_factor=self.pdm_vegetation_factor,
        )


def parse_config_lines(lines: list[str]) -> dict[str, str]:
    """Split ``key=value`` lines into a dictionary.

    Blank lines are skipped. The value is everything after the first ``=``.

    Raises:
        ConfigurationError: If a non-blank line has no ``=`` or an empty key.
    """
    values: dict[str, str] = {}
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            msg = f"Malformed config line {lineno}: '{line}' (expected key=value)"
            raise ConfigurationError(msg)
        values[key] = value.strip()
    return values


def read_config(path: str | Path) -> BmiConfig:
    """Read and validate an adapter configuration file.

    Args:
        path: Path to the ``key=value`` configuration file.

    Returns:
        Validated BmiConfig.

    Raises:
        ConfigurationError: If the file is missing or unreadable, a line is
            malformed, epoch_start_time is absent or a value is invalid.
    """
    if not str(path):
        msg = "No configuration file path provided."
        raise ConfigurationError(msg)

    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Invalid config file '{config_path}'"
        raise ConfigurationError(msg) from e

    values = parse_config_lines(text.splitlines())

    for key in sorted(set(values) - set(BmiConfig.model_fields)):
        logger.debug("Ignoring unrecognized config key '%s'", key)
        del values[key]

    if "epoch_start_time" not in values:
        msg = "Config param 'epoch_start_time' not found in config file"
        raise ConfigurationError(msg)

    try:
        config = BmiConfig.model_validate(values)
    except ValidationError as e:
        msg = f"Invalid configuration in '{config_path}': {e}"
        raise ConfigurationError(msg) from e

    logger.debug(
        "Read config '%s': %d steps of %d s",
        config_path,
        config.num_time_steps,
        config.time_step_size,
    )
    return config
