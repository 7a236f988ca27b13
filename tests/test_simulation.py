"""Unit tests for the panel-flow simulator.

The expected values are worked by hand from the base case in ``conftest``:
5 trips of 30 km, crusher at 2.5 t/h, grinder at 2 t/h.
"""

import math

import pytest
from pydantic import ValidationError

from panelflow.errors import InvalidInputError
from panelflow.params import SimulationOptions
from panelflow.simulation import make_unit_of_work, simulate_panel_flow, total_haul_distance


def test_crusher_with_slow_loading(unit_of_work, cost_drivers, sustainability_drivers):
    options = SimulationOptions(use_crusher=True, truck_speed_km_per_hour=60, load_unload_hours_per_trip=0.5)
    result = simulate_panel_flow(unit_of_work, cost_drivers, sustainability_drivers, options)
    assert result.truck_trips == 5
    # 150 km / 60 + 5 * 0.5 + 10000 / 2500
    assert math.isclose(result.total_time, 9.0)
    # haul 450 + processing 200 + labour 360
    assert math.isclose(result.total_cost, 1010.0)
    assert math.isclose(result.total_emissions, 0.55)
    assert math.isclose(result.material_recovered, 8200.0)


def test_grinder_with_default_options(unit_of_work, cost_drivers, sustainability_drivers):
    result = simulate_panel_flow(
        unit_of_work, cost_drivers, sustainability_drivers, SimulationOptions(use_crusher=False)
    )
    assert math.isclose(result.total_time, 9.25)
    assert math.isclose(result.total_cost, 1120.0)
    assert math.isclose(result.total_emissions, 0.75)
    assert math.isclose(result.material_recovered, 7500.0)


def test_partial_load_counts_as_a_trip(cost_drivers, sustainability_drivers):
    uow = make_unit_of_work(2001, 10)
    result = simulate_panel_flow(uow, cost_drivers, sustainability_drivers, SimulationOptions(use_crusher=True))
    assert result.truck_trips == 2
    assert math.isclose(total_haul_distance(result, uow), 20.0)


def test_simulation_is_deterministic(unit_of_work, cost_drivers, sustainability_drivers):
    options = SimulationOptions(use_crusher=False)
    first = simulate_panel_flow(unit_of_work, cost_drivers, sustainability_drivers, options)
    second = simulate_panel_flow(unit_of_work, cost_drivers, sustainability_drivers, options)
    assert first == second


def test_result_is_immutable(unit_of_work, cost_drivers, sustainability_drivers):
    result = simulate_panel_flow(
        unit_of_work, cost_drivers, sustainability_drivers, SimulationOptions(use_crusher=True)
    )
    with pytest.raises(ValidationError):
        result.total_cost = 0.0


def test_models_reject_non_positive_inputs():
    with pytest.raises(ValidationError):
        make_unit_of_work(0, 10)
    with pytest.raises(ValidationError):
        make_unit_of_work(100, -1)


def test_copied_models_are_revalidated(unit_of_work, cost_drivers, sustainability_drivers):
    options = SimulationOptions(use_crusher=True)
    bad_capacity = cost_drivers.model_copy(update={"truck_capacity": 0})
    with pytest.raises(InvalidInputError, match="truck_capacity must be > 0"):
        simulate_panel_flow(unit_of_work, bad_capacity, sustainability_drivers, options)

    bad_rate = sustainability_drivers.model_copy(update={"grinder_recovery_rate": 1.5})
    with pytest.raises(InvalidInputError, match="grinder_recovery_rate must be between 0 and 1"):
        simulate_panel_flow(unit_of_work, cost_drivers, bad_rate, options)

    no_throughput = cost_drivers.model_copy(update={"grinder_throughput_kg_per_hour": 0})
    with pytest.raises(InvalidInputError, match="processing_throughput_kg_per_hour must be > 0"):
        simulate_panel_flow(unit_of_work, no_throughput, sustainability_drivers, SimulationOptions(use_crusher=False))


def test_invalid_input_error_is_a_value_error():
    assert issubclass(InvalidInputError, ValueError)
