"""Tests for Outlet and Reservoir.

Tests cover outlet dispatch, the per-timestep reservoir response including
clamping at both storage bounds, and outlet ordering within a reservoir.
"""

import math

import numpy as np
import pytest

from tshirt import InvalidArgumentError, InvalidStateError, Outlet, OutletKind, OutletRole, Reservoir


class TestOutlet:
    """Tests for the Outlet frozen dataclass."""

    def test_linear_factory(self) -> None:
        """Outlet.linear builds a linear outlet with an unlimited ceiling."""
        outlet = Outlet.linear(0.1)

        assert outlet.kind is OutletKind.linear
        assert outlet.exponent == 1.0
        assert outlet.activation_threshold == 0.0
        assert outlet.max_velocity == math.inf

    def test_dispatches_on_kind(self) -> None:
        """Linear and exponential outlets follow their own discharge laws."""
        linear = Outlet.linear(0.1)
        exponential = Outlet.exponential(0.1, 2.0)

        assert linear.velocity(0.5, 1.0) == pytest.approx(0.05)
        assert exponential.velocity(0.5, 1.0) == pytest.approx(0.1 * (math.exp(1.0) - 1.0))

    def test_negative_storage_raises(self) -> None:
        """Negative storage is an invalid state for an outlet."""
        with pytest.raises(InvalidStateError):
            Outlet.linear(0.1).velocity(-0.01, 1.0)


class TestReservoir:
    """Tests for the Reservoir response."""

    def test_single_linear_outlet_scenario(self) -> None:
        """Unit inflow into an empty reservoir leaves 0.9 after a 0.1 discharge."""
        reservoir = Reservoir.single_outlet(0.0, 1.0, 0.0, Outlet.linear(0.1))

        response = reservoir.response(inflow=1.0, dt=1.0)

        assert response.velocities[OutletRole.discharge] == pytest.approx(0.1)
        assert response.excess == 0.0
        assert reservoir.storage == pytest.approx(0.9)
        assert reservoir.get_storage_height() == pytest.approx(0.9)

    def test_overflow_reported_as_excess(self) -> None:
        """Storage above max is clamped and returned as excess."""
        reservoir = Reservoir.single_outlet(0.0, 1.0, 0.9, Outlet.linear(0.0))

        response = reservoir.response(inflow=1.0, dt=1.0)

        assert reservoir.storage == 1.0
        assert response.excess == pytest.approx(0.9)

    def test_outflow_limited_at_min_storage(self) -> None:
        """An outlet cannot drain below min storage; its velocity is reduced."""
        reservoir = Reservoir.single_outlet(0.0, 5.0, 0.0, Outlet.linear(2.0))

        response = reservoir.response(inflow=1.0, dt=1.0)

        assert reservoir.storage == 0.0
        assert response.velocities[OutletRole.discharge] == pytest.approx(1.0)

    def test_outlets_share_snapshot_and_drain_in_order(self) -> None:
        """Every outlet sees the post-inflow storage; later outlets absorb the shortfall."""
        outlets = {
            OutletRole.lateral_flow: Outlet.linear(0.6),
            OutletRole.percolation: Outlet.linear(0.6),
        }
        reservoir = Reservoir(0.0, 2.0, 0.0, outlets)

        response = reservoir.response(inflow=1.0, dt=1.0)

        assert response.velocities[OutletRole.lateral_flow] == pytest.approx(0.6)
        assert response.velocities[OutletRole.percolation] == pytest.approx(0.4)
        assert response.total_velocity == pytest.approx(1.0)
        assert reservoir.velocity_for(OutletRole.percolation) == pytest.approx(0.4)
        assert reservoir.storage == 0.0

    @pytest.mark.parametrize("dt", [3.0, 7.0, 900.0, 3600.0])
    @pytest.mark.parametrize("min_storage", [0.0, 0.05])
    def test_later_outlet_after_reservoir_emptied(self, dt: float, min_storage: float) -> None:
        """Once an earlier outlet drains to min storage, later outlets discharge exactly zero."""
        outlets = {
            OutletRole.lateral_flow: Outlet.linear(5.0),
            OutletRole.percolation: Outlet.linear(0.3),
        }
        reservoir = Reservoir(min_storage, 2.0, min_storage, outlets)

        response = reservoir.response(inflow=0.1, dt=dt)

        assert reservoir.storage == min_storage
        assert response.velocities[OutletRole.percolation] == 0.0
        assert response.velocities[OutletRole.lateral_flow] == pytest.approx(0.1)
        assert response.excess == 0.0

    def test_threshold_holds_water_back(self) -> None:
        """Storage at or below the activation threshold does not drain."""
        outlet = Outlet.linear(0.5, activation_threshold=0.3)
        reservoir = Reservoir.single_outlet(0.0, 1.0, 0.2, outlet)

        response = reservoir.response(inflow=0.0, dt=10.0)

        assert response.total_velocity == 0.0
        assert reservoir.storage == pytest.approx(0.2)

    def test_storage_stays_within_bounds(self) -> None:
        """min <= storage <= max after every update, and mass is accounted for."""
        rng = np.random.default_rng(42)
        outlets = {
            OutletRole.lateral_flow: Outlet.linear(0.02, 1.0, 0.1, 0.01),
            OutletRole.percolation: Outlet.exponential(0.005, 3.0),
        }
        reservoir = Reservoir(0.05, 1.0, 0.5, outlets)

        for inflow in rng.uniform(0.0, 0.02, size=200):
            before = reservoir.storage
            response = reservoir.response(float(inflow), dt=10.0)

            assert 0.05 <= reservoir.storage <= 1.0
            assert all(v >= 0.0 for v in response.velocities.values())
            balance = before + inflow * 10.0 - response.total_velocity * 10.0 - response.excess
            assert balance == pytest.approx(reservoir.storage, abs=1e-12)

    def test_draining_workload_keeps_velocities_non_negative(self) -> None:
        """Outlets that repeatedly empty the reservoir never report negative discharge."""
        rng = np.random.default_rng(11)
        outlets = {
            OutletRole.lateral_flow: Outlet.linear(0.08),
            OutletRole.percolation: Outlet.exponential(0.01, 3.0),
        }
        reservoir = Reservoir(0.05, 1.0, 0.5, outlets)
        emptied = 0

        for inflow in rng.uniform(0.0, 0.01, size=200):
            before = reservoir.storage
            response = reservoir.response(float(inflow), dt=10.0)

            assert all(v >= 0.0 for v in response.velocities.values())
            balance = before + inflow * 10.0 - response.total_velocity * 10.0 - response.excess
            assert balance == pytest.approx(reservoir.storage, abs=1e-12)
            emptied += reservoir.storage == 0.05

        assert emptied > 0

    def test_initial_storage_is_clamped(self) -> None:
        """An out-of-bounds initial storage is clamped into range."""
        reservoir = Reservoir.single_outlet(0.0, 1.0, 3.0, Outlet.linear(0.1))

        assert reservoir.storage == 1.0

    def test_set_storage_height_clamps(self) -> None:
        """Written-back storage is clamped and the stored value returned."""
        reservoir = Reservoir.single_outlet(0.0, 1.0, 0.5, Outlet.linear(0.1))

        assert reservoir.set_storage_height(-0.2) == 0.0
        assert reservoir.set_storage_height(0.4) == 0.4
        assert reservoir.storage == 0.4

    def test_rejects_inverted_bounds(self) -> None:
        """max_storage must exceed min_storage."""
        with pytest.raises(InvalidArgumentError):
            Reservoir.single_outlet(1.0, 1.0, 0.5, Outlet.linear(0.1))

    @pytest.mark.parametrize(("inflow", "dt"), [(-0.1, 1.0), (math.nan, 1.0), (0.1, 0.0)])
    def test_rejects_invalid_arguments(self, inflow: float, dt: float) -> None:
        """Negative or non-finite inflow and non-positive dt are rejected."""
        reservoir = Reservoir.single_outlet(0.0, 1.0, 0.5, Outlet.linear(0.1))

        with pytest.raises(InvalidArgumentError):
            reservoir.response(inflow, dt)
