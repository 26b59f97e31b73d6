"""Integration tests for TshirtModel.

Tests the per-timestep orchestration: state bookkeeping, construction
validation, conservation of mass over long runs, and the failure signal for
pathological evapotranspiration input.
"""

import dataclasses
import logging

import numpy as np
import pytest

from tshirt import (
    ConfigurationError,
    InvalidArgumentError,
    MassBalanceStatus,
    OutletRole,
    Parameters,
    PdmEtParams,
    State,
    TshirtModel,
)
from tshirt.model import ModelPhase


@pytest.fixture
def loam_params() -> Parameters:
    """Loam soil parameters with a two-stage Nash cascade."""
    return Parameters(
        maxsmc=0.439,
        wltsmc=0.066,
        satdk=3.38e-6,
        satpsi=0.355,
        slope=1.0,
        b=4.05,
        multiplier=100.0,
        alpha_fc=0.33,
        klf=1.0e-5,
        kn=1.0e-4,
        nash_n=2,
        cgw=1.8e-6,
        expon=6.0,
        max_groundwater_storage=16.0,
    )


@pytest.fixture
def et_params(loam_params: Parameters) -> PdmEtParams:
    """Moderate hourly ET demand on a store spanning the soil column."""
    return PdmEtParams(potential_et=1.0e-4, max_height=loam_params.max_soil_storage)


class TestConstruction:
    """Tests for model construction and state validation."""

    def test_ready_after_construction(self, loam_params: Parameters) -> None:
        """A constructed model is ready and has no fluxes yet."""
        model = TshirtModel(loam_params)

        assert model.phase is ModelPhase.ready
        assert model.fluxes is None
        assert model.current_state.total_storage == 0.0

    def test_builds_soil_outlets_by_role(self, loam_params: Parameters) -> None:
        """The soil reservoir drains through lateral flow then percolation above field capacity."""
        model = TshirtModel(loam_params)
        outlets = model.soil_reservoir.outlets

        assert list(outlets) == [OutletRole.lateral_flow, OutletRole.percolation]
        sfc = loam_params.soil_field_capacity_storage
        assert outlets[OutletRole.lateral_flow].activation_threshold == pytest.approx(sfc)
        assert outlets[OutletRole.lateral_flow].max_velocity == pytest.approx(loam_params.max_lateral_flow)
        assert outlets[OutletRole.percolation].coefficient == pytest.approx(3.38e-6)

    def test_expands_empty_cascade_storage(self, loam_params: Parameters) -> None:
        """Empty cascade storage is initialized to nash_n zeros."""
        model = TshirtModel(loam_params, State(soil_storage=0.3))

        np.testing.assert_array_equal(model.current_state.nash_cascade_storage, np.zeros(2))
        assert len(model.nash_cascade) == 2

    def test_cascade_size_mismatch_is_fatal(self, loam_params: Parameters) -> None:
        """A non-empty cascade of the wrong size raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="nash_n=2"):
            TshirtModel(loam_params, State(nash_cascade_storage=np.zeros(3)))

    @pytest.mark.parametrize(
        "state",
        [
            State(soil_storage=1.5),
            State(soil_storage=-0.1),
            State(groundwater_storage=20.0),
            State(nash_cascade_storage=np.array([0.1, np.nan])),
        ],
    )
    def test_out_of_bounds_state_is_fatal(self, loam_params: Parameters, state: State) -> None:
        """Initial storages outside the reservoir bounds raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            TshirtModel(loam_params, state)

    def test_does_not_alias_initial_state(self, loam_params: Parameters, et_params: PdmEtParams) -> None:
        """The caller's state object is never mutated by the model."""
        initial = State(soil_storage=0.6, groundwater_storage=2.0, nash_cascade_storage=np.zeros(2))
        model = TshirtModel(loam_params, initial)

        model.run(3600.0, 0.01, et_params)

        assert initial.soil_storage == 0.6
        assert initial.groundwater_storage == 2.0

    def test_mass_check_error_bound_property(self, loam_params: Parameters) -> None:
        """The error bound can be read and replaced after construction."""
        model = TshirtModel(loam_params, mass_check_error_bound=1.0e-5)

        assert model.mass_check_error_bound == 1.0e-5

        model.mass_check_error_bound = -1.0e-3

        assert model.mass_check_error_bound == 1.0e-3


class TestRun:
    """Tests for TshirtModel.run."""

    def test_zero_input_from_empty_state_is_idempotent(self, loam_params: Parameters, et_params: PdmEtParams) -> None:
        """No input into empty reservoirs produces nothing and changes nothing."""
        model = TshirtModel(loam_params)

        status = model.run(3600.0, 0.0, et_params)

        assert status is MassBalanceStatus.OK
        assert all(value == 0.0 for value in model.fluxes.to_dict().values())
        assert model.current_state.total_storage == 0.0

    def test_previous_state_is_last_current(self, loam_params: Parameters, et_params: PdmEtParams) -> None:
        """Each step moves current to previous without modifying it."""
        model = TshirtModel(loam_params, State(soil_storage=0.6, groundwater_storage=1.0))
        model.run(3600.0, 0.01, et_params)
        after_first = model.current_state
        snapshot = after_first.copy()

        model.run(3600.0, 0.0, et_params)

        assert model.previous_state is after_first
        assert model.current_state is not after_first
        assert after_first.soil_storage == snapshot.soil_storage
        assert after_first.groundwater_storage == snapshot.groundwater_storage
        np.testing.assert_array_equal(after_first.nash_cascade_storage, snapshot.nash_cascade_storage)

    def test_wet_soil_drains_above_field_capacity(self, loam_params: Parameters, et_params: PdmEtParams) -> None:
        """Soil storage above Sfc feeds lateral flow and percolation."""
        model = TshirtModel(loam_params, State(soil_storage=0.8, groundwater_storage=1.0))

        model.run(3600.0, 0.0, et_params)

        assert model.fluxes.soil_percolation_flow > 0.0
        assert model.fluxes.groundwater_flow > 0.0
        assert model.current_state.nash_cascade_storage[0] > 0.0
        assert model.current_state.soil_storage < 0.8

    def test_soil_below_field_capacity_only_evaporates(self, loam_params: Parameters, et_params: PdmEtParams) -> None:
        """Below Sfc the soil outlets are dry and only ET removes water."""
        model = TshirtModel(loam_params, State(soil_storage=0.3))

        model.run(3600.0, 0.0, et_params)

        assert model.fluxes.soil_percolation_flow == 0.0
        assert model.fluxes.soil_lateral_flow == 0.0
        assert model.fluxes.et_loss > 0.0
        assert model.current_state.soil_storage == pytest.approx(0.3 - model.fluxes.et_loss)
        assert model.soil_reservoir.storage == model.current_state.soil_storage

    def test_conserves_mass_over_long_run(self, loam_params: Parameters, et_params: PdmEtParams) -> None:
        """Every step of a varied storm sequence passes the mass balance check."""
        rng = np.random.default_rng(7)
        rain = np.where(rng.uniform(size=240) < 0.3, rng.exponential(0.004, size=240), 0.0)
        model = TshirtModel(loam_params, State(soil_storage=0.5, groundwater_storage=2.0))

        statuses = [model.run(3600.0, float(p), et_params) for p in rain]

        assert all(status is MassBalanceStatus.OK for status in statuses)

    def test_saturated_soil_overflows_to_surface(self, loam_params: Parameters) -> None:
        """Water beyond the soil capacity leaves as surface runoff."""
        model = TshirtModel(loam_params, State(soil_storage=loam_params.max_soil_storage))
        no_et = PdmEtParams(potential_et=0.0, max_height=loam_params.max_soil_storage)

        status = model.run(3600.0, 0.05, no_et)

        assert status is MassBalanceStatus.OK
        assert model.fluxes.surface_runoff * 3600.0 == pytest.approx(0.05, rel=0.05)

    def test_pathological_et_fails_mass_balance(
        self,
        loam_params: Parameters,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """ET demand beyond the store capacity is reported, not raised, and not rolled back."""
        model = TshirtModel(loam_params, State(soil_storage=0.5))
        pathological = PdmEtParams(potential_et=10.0, max_height=loam_params.max_soil_storage)

        with caplog.at_level(logging.WARNING, logger="tshirt.mass_balance"):
            status = model.run(3600.0, 0.0, pathological)

        assert status is MassBalanceStatus.MASS_BALANCE_ERROR
        assert model.fluxes.et_loss > 0.5
        assert model.current_state.soil_storage == 0.0
        assert "Mass balance error" in caplog.text

    @pytest.mark.parametrize(("dt", "input_flux"), [(0.0, 0.01), (-3600.0, 0.01), (3600.0, -0.01), (3600.0, np.inf)])
    def test_rejects_invalid_arguments(
        self,
        loam_params: Parameters,
        et_params: PdmEtParams,
        dt: float,
        input_flux: float,
    ) -> None:
        """Non-positive timesteps and invalid inputs raise InvalidArgumentError."""
        model = TshirtModel(loam_params)

        with pytest.raises(InvalidArgumentError):
            model.run(dt, input_flux, et_params)

    def test_no_cascade(self, loam_params: Parameters, et_params: PdmEtParams) -> None:
        """With nash_n=0 lateral flow leaves the soil directly."""
        params = dataclasses.replace(loam_params, nash_n=0)
        model = TshirtModel(params, State(soil_storage=0.8))

        status = model.run(3600.0, 0.0, et_params)

        assert status is MassBalanceStatus.OK
        assert model.fluxes.soil_lateral_flow > 0.0
        assert model.current_state.nash_cascade_storage.shape == (0,)

    @pytest.mark.parametrize("dt", [3.0, 7.0, 900.0, 3600.0])
    def test_fast_soil_outlets_drain_without_negative_flow(
        self,
        loam_params: Parameters,
        et_params: PdmEtParams,
        dt: float,
    ) -> None:
        """Soil and cascade outlets that empty their reservoir within a step stay non-negative."""
        params = dataclasses.replace(loam_params, klf=1.0, kn=1.0)
        model = TshirtModel(params, State(soil_storage=0.8, groundwater_storage=1.0))

        status = model.run(dt, 0.01, et_params)

        assert status is MassBalanceStatus.OK
        assert all(value >= 0.0 for value in model.fluxes.to_dict().values())
        assert model.fluxes.soil_lateral_flow > 0.0
