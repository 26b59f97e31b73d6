"""Error taxonomy for the T-shirt model.

Structural problems (bad configuration, unknown variable names, illegal
arguments) are raised. Per-step numerical divergence is not an exception:
it is reported through ``MassBalanceStatus`` by ``TshirtModel.run``.
"""

from __future__ import annotations

from enum import IntEnum


class TshirtError(Exception):
    """Base class for all errors raised by the tshirt package."""


class ConfigurationError(TshirtError, ValueError):
    """Missing or invalid configuration, or inconsistent parameters and state."""


class UnknownVariableError(TshirtError, KeyError):
    """Variable name is not part of the exchanged variable set."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class InvalidArgumentError(TshirtError, ValueError):
    """Illegal argument, such as an empty index list or a non-finite value."""


class InvalidStateError(TshirtError, ValueError):
    """Operation called with a storage or lifecycle state it cannot handle."""


class UnsupportedOperationError(TshirtError, NotImplementedError):
    """Grid topology query that a point-scale model does not provide."""


class MassBalanceStatus(IntEnum):
    """Outcome of the per-timestep mass balance audit."""

    OK = 0
    MASS_BALANCE_ERROR = 100
