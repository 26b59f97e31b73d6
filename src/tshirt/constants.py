"""T-shirt model numerical constants.

Fixed values used throughout the reservoir kernel: parameter ordering and
literature bounds, physical constants for the field capacity calculation,
and defaults for the mass balance check and the model clock.
"""

import math

# Model parameter names in canonical order
PARAM_NAMES: tuple[str, ...] = (
    "maxsmc",
    "wltsmc",
    "satdk",
    "satpsi",
    "slope",
    "b",
    "multiplier",
    "alpha_fc",
    "klf",
    "kn",
    "nash_n",
    "cgw",
    "expon",
    "max_groundwater_storage",
    "soil_depth",
    "refkdt",
)

# Literature-based parameter bounds
DEFAULT_BOUNDS: dict[str, tuple[float, float]] = {
    "maxsmc": (0.2, 0.7),  # Saturated soil moisture content [-]
    "wltsmc": (0.0, 0.2),  # Wilting point soil moisture content [-]
    "satdk": (1.0e-7, 1.0e-4),  # Saturated hydraulic conductivity [m/s]
    "satpsi": (0.03, 0.8),  # Saturated capillary head [m]
    "slope": (0.0, 1.0),  # Slope coefficient [-]
    "b": (2.0, 15.0),  # Pore size distribution exponent [-]
    "multiplier": (10.0, 10000.0),  # Lateral conductivity multiplier [-]
    "alpha_fc": (0.1, 0.5),  # Field capacity pressure fraction [-]
    "klf": (0.0, 1.0),  # Lateral flow outlet coefficient [m/s]
    "kn": (0.0, 1.0),  # Nash cascade outlet coefficient [m/s]
    "nash_n": (1.0, 5.0),  # Nash cascade size [-]
    "cgw": (1.0e-8, 1.0e-3),  # Groundwater outlet coefficient [m/s]
    "expon": (1.0, 8.0),  # Groundwater outlet exponent [-]
    "max_groundwater_storage": (0.01, 20.0),  # Groundwater capacity [m]
    "soil_depth": (0.5, 5.0),  # Soil column depth [m]
    "refkdt": (0.1, 4.0),  # Schaake reference multiplier [-]
}

# Physics constants
STANDARD_ATMOSPHERIC_PRESSURE_PASCALS: float = 101325.0
WATER_SPECIFIC_WEIGHT: float = 9810.0  # [N/m3]
REFERENCE_SATURATED_CONDUCTIVITY: float = 2.0e-6  # Schaake Ks_ref [m/s]
SECONDS_PER_DAY: float = 86400.0

# Parameter defaults
DEFAULT_SOIL_DEPTH: float = 2.0  # [m]
DEFAULT_REFKDT: float = 3.0

# Unbounded outlet ceiling
UNLIMITED_VELOCITY: float = math.inf

# Acceptable absolute mass balance error per timestep [m]
DEFAULT_MASS_CHECK_ERROR_BOUND: float = 1.0e-6

# Model clock defaults
DEFAULT_TIME_STEP_SIZE: int = 3600  # [s]
DEFAULT_TIME_STEP_COUNT: int = 24
