"""Variable-exchange adapter for model coupling frameworks.

``TshirtBmi`` exposes the model through a uniform interface: name-indexed
get/set of typed single-element values, a fixed-step clock and scalar grid
queries. The model is point-scale, so every variable lives on grid 0, a
single scalar node. Mesh topology queries are not supported.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np

from .config import BmiConfig, read_config
from .errors import (
    InvalidArgumentError,
    InvalidStateError,
    UnknownVariableError,
    UnsupportedOperationError,
)
from .model import TshirtModel

logger = logging.getLogger(__name__)

COMPONENT_NAME = "T-shirt Conceptual Reservoir Model"
SCALAR_GRID = 0


class VarType(str, Enum):
    """Numeric kinds a variable can hold."""

    float64 = "float64"
    int32 = "int32"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)


class Variable(str, Enum):
    """Variables exchanged with the coupling framework."""

    # Inputs
    water_input = "water_input"
    potential_et = "potential_et"

    # Outputs
    surface_runoff = "surface_runoff"
    soil_lateral_flow = "soil_lateral_flow"
    soil_percolation_flow = "soil_percolation_flow"
    groundwater_flow = "groundwater_flow"
    et_loss = "et_loss"
    soil_storage = "soil_storage"
    groundwater_storage = "groundwater_storage"
    mass_balance_status = "mass_balance_status"


@dataclass(frozen=True)
class VariableInfo:
    """Static description of an exchanged variable."""

    var_type: VarType
    units: str
    is_input: bool
    location: str = "node"
    item_count: int = 1


VARIABLES: dict[Variable, VariableInfo] = {
    Variable.water_input: VariableInfo(VarType.float64, "m", is_input=True),
    Variable.potential_et: VariableInfo(VarType.float64, "m", is_input=True),
    Variable.surface_runoff: VariableInfo(VarType.float64, "m s-1", is_input=False),
    Variable.soil_lateral_flow: VariableInfo(VarType.float64, "m s-1", is_input=False),
    Variable.soil_percolation_flow: VariableInfo(VarType.float64, "m s-1", is_input=False),
    Variable.groundwater_flow: VariableInfo(VarType.float64, "m s-1", is_input=False),
    Variable.et_loss: VariableInfo(VarType.float64, "m", is_input=False),
    Variable.soil_storage: VariableInfo(VarType.float64, "m", is_input=False),
    Variable.groundwater_storage: VariableInfo(VarType.float64, "m", is_input=False),
    Variable.mass_balance_status: VariableInfo(VarType.int32, "1", is_input=False),
}

# Outputs scaled when update_until advances by a partial timestep
_SCALED_OUTPUTS: tuple[Variable, ...] = (
    Variable.surface_runoff,
    Variable.soil_lateral_flow,
    Variable.soil_percolation_flow,
    Variable.groundwater_flow,
    Variable.et_loss,
)


@dataclass(frozen=True)
class VarValue:
    """Typed value buffer of a variable.

    Attributes:
        var_type: Numeric kind of the buffer.
        data: Buffer of item_count elements, dtype matching var_type.
    """

    var_type: VarType
    data: np.ndarray

    @classmethod
    def zeros(cls, info: VariableInfo) -> VarValue:
        return cls(info.var_type, np.zeros(info.item_count, dtype=info.var_type.dtype))


def _lookup(name: str) -> Variable:
    try:
        return Variable(name)
    except ValueError:
        msg = f"Unknown variable: {name}"
        raise UnknownVariableError(msg) from None


def _check_grid(grid: int) -> None:
    if grid != SCALAR_GRID:
        msg = f"Grid {grid} does not exist; only grid {SCALAR_GRID} is defined"
        raise InvalidArgumentError(msg)


def _indices(inds: Sequence[int] | np.ndarray, operation: str) -> np.ndarray:
    arr = np.asarray(inds, dtype=np.intp).ravel()
    if arr.size < 1:
        msg = f"Illegal count {arr.size} provided to {operation}"
        raise InvalidArgumentError(msg)
    return arr


class TshirtBmi:
    """Uniform time-stepping and variable-exchange interface over TshirtModel."""

    def __init__(self) -> None:
        self._config: BmiConfig | None = None
        self._model: TshirtModel | None = None
        self._values: dict[Variable, VarValue] = {var: VarValue.zeros(info) for var, info in VARIABLES.items()}
        self._current_time = 0.0

    # Lifecycle

    def initialize(self, config_file: str | Path) -> None:
        """Read the configuration and build the model.

        Raises:
            ConfigurationError: If the configuration is missing or invalid.
        """
        config = read_config(config_file)
        params = config.parameters()
        model = TshirtModel(
            params,
            config.initial_state(params),
            mass_check_error_bound=config.mass_check_error_bound,
        )

        self._config = config
        self._model = model
        self._values = {var: VarValue.zeros(info) for var, info in VARIABLES.items()}
        self._current_time = self.get_start_time()
        self._publish_state()
        logger.debug("Initialized %s from '%s'", COMPONENT_NAME, config_file)

    def update(self) -> None:
        """Advance the model by one timestep."""
        self.update_until(self._current_time + self.get_time_step())

    def update_until(self, time: float) -> None:
        """Advance the model to the given time.

        The kernel always runs one configured timestep. When the requested
        advance differs from the timestep size, reported fluxes are scaled by
        the ratio of the two.

        Raises:
            InvalidArgumentError: If time is not after the current time.
        """
        model = self.model
        dt = time - self._current_time
        if not dt > 0.0:
            msg = f"Cannot update to time {time}; current time is {self._current_time}"
            raise InvalidArgumentError(msg)

        time_step = self.get_time_step()
        water_input = float(self._values[Variable.water_input].data[0])
        potential_et = float(self._values[Variable.potential_et].data[0])
        et_params = self.config.et_params(model.params, potential_et)

        status = model.run(time_step, water_input, et_params)

        factor = 1.0 if dt == time_step else dt / time_step
        fluxes = model.fluxes.to_dict()
        for var in _SCALED_OUTPUTS:
            self._values[var].data[0] = fluxes[var.value] * factor
        self._publish_state()
        self._values[Variable.mass_balance_status].data[0] = int(status)
        self._current_time = time

    def finalize(self) -> None:
        """Release the model. Nothing is held beyond Python objects."""
        logger.debug("Finalized %s at model time %s", COMPONENT_NAME, self._current_time)

    def _publish_state(self) -> None:
        state = self.model.current_state
        self._values[Variable.soil_storage].data[0] = state.soil_storage
        self._values[Variable.groundwater_storage].data[0] = state.groundwater_storage

    @property
    def model(self) -> TshirtModel:
        """The wrapped model.

        Raises:
            InvalidStateError: If initialize has not been called.
        """
        if self._model is None:
            msg = "Model is not initialized; call initialize() first"
            raise InvalidStateError(msg)
        return self._model

    @property
    def config(self) -> BmiConfig:
        if self._config is None:
            msg = "Model is not initialized; call initialize() first"
            raise InvalidStateError(msg)
        return self._config

    # Model information

    def get_component_name(self) -> str:
        return COMPONENT_NAME

    def get_input_var_names(self) -> tuple[str, ...]:
        return tuple(var.value for var, info in VARIABLES.items() if info.is_input)

    def get_output_var_names(self) -> tuple[str, ...]:
        return tuple(var.value for var, info in VARIABLES.items() if not info.is_input)

    def get_input_item_count(self) -> int:
        return len(self.get_input_var_names())

    def get_output_item_count(self) -> int:
        return len(self.get_output_var_names())

    # Variable information

    def get_var_type(self, name: str) -> str:
        return VARIABLES[_lookup(name)].var_type.value

    def get_var_units(self, name: str) -> str:
        return VARIABLES[_lookup(name)].units

    def get_var_itemsize(self, name: str) -> int:
        return VARIABLES[_lookup(name)].var_type.dtype.itemsize

    def get_var_nbytes(self, name: str) -> int:
        info = VARIABLES[_lookup(name)]
        return info.var_type.dtype.itemsize * info.item_count

    def get_var_location(self, name: str) -> str:
        return VARIABLES[_lookup(name)].location

    def get_var_grid(self, name: str) -> int:
        _lookup(name)
        return SCALAR_GRID

    # Time

    def get_start_time(self) -> float:
        return 0.0

    def get_end_time(self) -> float:
        config = self.config
        return self.get_start_time() + config.num_time_steps * config.time_step_size

    def get_current_time(self) -> float:
        return self._current_time

    def get_time_step(self) -> float:
        return float(self.config.time_step_size)

    def get_time_units(self) -> str:
        return "s"

    # Values

    def get_value_ptr(self, name: str) -> np.ndarray:
        """Return the live buffer of a variable."""
        return self._values[_lookup(name)].data

    def get_value(self, name: str, dest: np.ndarray | None = None) -> np.ndarray:
        """Copy a variable's values into dest, or into a new array."""
        data = self._values[_lookup(name)].data
        if dest is None:
            return data.copy()
        dest[: data.size] = data
        return dest

    def get_value_at_indices(
        self,
        name: str,
        dest: np.ndarray,
        inds: Sequence[int] | np.ndarray,
    ) -> np.ndarray:
        """Copy a variable's values at the given indices into dest.

        Raises:
            InvalidArgumentError: If fewer than one index is given or an index is out of range.
        """
        data = self._values[_lookup(name)].data
        indices = _indices(inds, "get_value_at_indices")
        try:
            dest[: indices.size] = data[indices]
        except IndexError as e:
            msg = f"Index out of range for variable {name} of size {data.size}"
            raise InvalidArgumentError(msg) from e
        return dest

    def set_value(self, name: str, src: np.ndarray | float) -> None:
        """Overwrite a variable's values.

        Raises:
            InvalidArgumentError: If src does not hold exactly the variable's item count.
        """
        value = self._values[_lookup(name)]
        arr = np.asarray(src, dtype=value.var_type.dtype).ravel()
        if arr.size != value.data.size:
            msg = f"Variable {name} holds {value.data.size} item(s), got {arr.size}"
            raise InvalidArgumentError(msg)
        value.data[:] = arr

    def set_value_at_indices(
        self,
        name: str,
        inds: Sequence[int] | np.ndarray,
        src: np.ndarray,
    ) -> None:
        """Overwrite a variable's values at the given indices.

        Raises:
            InvalidArgumentError: If fewer than one index is given or an index is out of range.
        """
        value = self._values[_lookup(name)]
        indices = _indices(inds, "set_value_at_indices")
        arr = np.asarray(src, dtype=value.var_type.dtype).ravel()
        try:
            value.data[indices] = arr[: indices.size]
        except (IndexError, ValueError) as e:
            msg = f"Cannot set {indices.size} item(s) of variable {name} of size {value.data.size}"
            raise InvalidArgumentError(msg) from e

    # Grid

    def get_grid_rank(self, grid: int) -> int:
        _check_grid(grid)
        return 1

    def get_grid_size(self, grid: int) -> int:
        _check_grid(grid)
        return 1

    def get_grid_type(self, grid: int) -> str:
        _check_grid(grid)
        return "scalar"

    def _unsupported(self, query: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(f"{query} is not implemented for a scalar point model")

    def get_grid_shape(self, grid: int, shape: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_shape")

    def get_grid_spacing(self, grid: int, spacing: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_spacing")

    def get_grid_origin(self, grid: int, origin: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_origin")

    def get_grid_x(self, grid: int, x: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_x")

    def get_grid_y(self, grid: int, y: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_y")

    def get_grid_z(self, grid: int, z: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_z")

    def get_grid_node_count(self, grid: int) -> int:
        raise self._unsupported("get_grid_node_count")

    def get_grid_edge_count(self, grid: int) -> int:
        raise self._unsupported("get_grid_edge_count")

    def get_grid_face_count(self, grid: int) -> int:
        raise self._unsupported("get_grid_face_count")

    def get_grid_edge_nodes(self, grid: int, edge_nodes: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_edge_nodes")

    def get_grid_face_edges(self, grid: int, face_edges: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_face_edges")

    def get_grid_face_nodes(self, grid: int, face_nodes: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_face_nodes")

    def get_grid_nodes_per_face(self, grid: int, nodes_per_face: np.ndarray) -> np.ndarray:
        raise self._unsupported("get_grid_nodes_per_face")
