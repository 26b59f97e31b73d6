"""T-shirt process functions.

Numba-compiled functions implementing the outlet discharge laws, Schaake
infiltration partitioning, soil field capacity, and the probability-distributed
moisture (PDM) store used for evapotranspiration.

All functions assume finite inputs. Validation happens in the calling classes.
"""

# ruff: noqa: SIM108
# SIM108: Ternary operators disabled in Numba functions for clarity
import math

from numba import njit

from .constants import (
    REFERENCE_SATURATED_CONDUCTIVITY,
    SECONDS_PER_DAY,
    STANDARD_ATMOSPHERIC_PRESSURE_PASCALS,
    WATER_SPECIFIC_WEIGHT,
)


@njit(cache=True)
def linear_outlet_velocity(
    storage: float,
    coefficient: float,
    exponent: float,
    activation_threshold: float,
    max_velocity: float,
) -> float:
    """Compute discharge velocity of a power-law (linear) outlet.

    velocity = coefficient * (storage - threshold)^exponent

    Args:
        storage: Reservoir storage height [m].
        coefficient: Outlet coefficient [m/s].
        exponent: Outlet exponent, normally 1 [-].
        activation_threshold: Storage at or below which the outlet is dry [m].
        max_velocity: Velocity ceiling [m/s].

    Returns:
        Discharge velocity [m/s], within [0, max_velocity].
    """
    if storage <= activation_threshold:
        return 0.0

    velocity = coefficient * (storage - activation_threshold) ** exponent

    if velocity < 0.0:
        velocity = 0.0
    elif velocity > max_velocity:
        velocity = max_velocity
    return velocity


@njit(cache=True)
def exponential_outlet_velocity(
    storage: float,
    max_storage: float,
    coefficient: float,
    exponent: float,
    activation_threshold: float,
    max_velocity: float,
) -> float:
    """Compute discharge velocity of an exponential outlet.

    velocity = coefficient * (exp(exponent * storage / max_storage) - 1)

    Args:
        storage: Reservoir storage height [m].
        max_storage: Reservoir capacity [m].
        coefficient: Outlet coefficient [m/s].
        exponent: Outlet exponent [-].
        activation_threshold: Storage at or below which the outlet is dry [m].
        max_velocity: Velocity ceiling [m/s].

    Returns:
        Discharge velocity [m/s], within [0, max_velocity].
    """
    if storage <= activation_threshold:
        return 0.0

    velocity = coefficient * (math.exp(exponent * storage / max_storage) - 1.0)

    if velocity < 0.0:
        velocity = 0.0
    elif velocity > max_velocity:
        velocity = max_velocity
    return velocity


@njit(cache=True)
def schaake_partitioning(
    dt: float,
    coefficient: float,
    soil_moisture_deficit: float,
    water_input: float,
) -> tuple[float, float]:
    """Partition water input into surface runoff and infiltration (Schaake et al. 1996).

    The infiltration capacity Ic shrinks with the soil moisture deficit, so the
    share of input leaving as surface runoff grows as the soil column fills.

    Args:
        dt: Timestep size [s].
        coefficient: Schaake coefficient, refkdt * satdk / Ks_ref [1/day].
        soil_moisture_deficit: Remaining soil storage capacity [m].
        water_input: Water reaching the soil surface this timestep [m].

    Returns:
        Tuple of (surface_runoff, infiltration) in m, summing to water_input.
    """
    if water_input <= 0.0:
        return 0.0, 0.0

    if soil_moisture_deficit <= 0.0:
        return water_input, 0.0

    timestep_days = dt / SECONDS_PER_DAY
    ic = soil_moisture_deficit * (1.0 - math.exp(-coefficient * timestep_days))
    infiltration = water_input * (ic / (water_input + ic))

    surface_runoff = water_input - infiltration
    if surface_runoff < 0.0:
        surface_runoff = 0.0

    # Recompute infiltration so the split is exact
    infiltration = water_input - surface_runoff
    return surface_runoff, infiltration


@njit(cache=True)
def schaake_coefficient(refkdt: float, satdk: float) -> float:
    """Compute the Schaake coefficient adjusted by soil conductivity.

    Args:
        refkdt: Reference multiplier [-].
        satdk: Saturated hydraulic conductivity [m/s].

    Returns:
        Schaake coefficient [1/day].
    """
    return refkdt * satdk / REFERENCE_SATURATED_CONDUCTIVITY


@njit(cache=True)
def soil_field_capacity_storage(maxsmc: float, satpsi: float, b: float, alpha_fc: float) -> float:
    """Compute soil field capacity storage Sfc, the level where free drainage stops.

    Integrates the Clapp-Hornberger retention curve over a 2 m column whose
    bottom sits at the suction head above the water table.

    Args:
        maxsmc: Saturated soil moisture content [-].
        satpsi: Saturated capillary head [m].
        b: Pore size distribution exponent [-], must differ from 1.
        alpha_fc: Fraction of atmospheric pressure defining field capacity [-].

    Returns:
        Field capacity storage [m].
    """
    head_above_water_table = alpha_fc * (STANDARD_ATMOSPHERIC_PRESSURE_PASCALS / WATER_SPECIFIC_WEIGHT)

    z1 = head_above_water_table - 0.5
    z2 = z1 + 2.0

    power = (b - 1.0) / b
    # z^(1 - 1/b) / (1 - 1/b) == b * z^((b - 1) / b) / (b - 1)
    integral = (b * z2**power / (b - 1.0)) - (b * z1**power / (b - 1.0))
    return maxsmc * (1.0 / satpsi) ** (-1.0 / b) * integral


@njit(cache=True)
def pdm_final_height(
    storage: float,
    potential_et: float,
    max_height: float,
    max_capacity: float,
    shape_b: float,
    vegetation_factor: float,
) -> float:
    """Compute storage height after evapotranspiration from a PDM store.

    The store maps height H to critical capacity C through the Pareto
    distribution of the probability-distributed moisture model:
    C = Cpar * (1 - (1 - H/Huz)^(1+b)). Actual ET scales with the saturated
    fraction C/Cpar and is removed in capacity space before mapping back.

    Storage above Huz is outside the store and left untouched.

    Args:
        storage: Storage height before ET [m].
        potential_et: Potential evapotranspiration over the timestep [m].
        max_height: Huz, height of the moisture accounting store [m].
        max_capacity: Cpar, capacity of the store [m].
        shape_b: Pareto shape exponent b [-].
        vegetation_factor: Kv, vegetation adjustment of potential ET [-].

    Returns:
        Storage height after ET [m]. Negative when ET demand exceeds Cpar.
    """
    if storage <= 0.0:
        return storage

    h_store = storage
    if h_store > max_height:
        h_store = max_height
    h_outside = storage - h_store

    power = 1.0 + shape_b
    c_begin = max_capacity * (1.0 - (1.0 - h_store / max_height) ** power)

    actual_et = (c_begin / max_capacity) * vegetation_factor * potential_et
    c_end = c_begin - actual_et

    h_end = max_height * (1.0 - (1.0 - c_end / max_capacity) ** (1.0 / power))
    return h_end + h_outside
