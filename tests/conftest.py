"""Shared drivers for the panelflow tests.

The base case hauls 10 t of panel material 30 km per trip in 2 t loads.
"""

import pytest

from panelflow.params import CostDrivers, SensitivityRanges, SustainabilityDrivers, UnitOfWork
from panelflow.sensitivity import SensitivityRequest


@pytest.fixture
def unit_of_work():
    return UnitOfWork(inbound_material=10000, haul_distance_per_trip=30)


@pytest.fixture
def cost_drivers():
    return CostDrivers(
        truck_capacity=2000,
        haul_cost_per_km=3,
        labor_cost_per_hour=40,
        crusher_processing_cost_per_kg=0.02,
        grinder_processing_cost_per_kg=0.03,
        crusher_throughput_kg_per_hour=2500,
        grinder_throughput_kg_per_hour=2000,
    )


@pytest.fixture
def sustainability_drivers():
    return SustainabilityDrivers(
        haul_emissions_per_km=0.001,
        crusher_emissions_per_kg=0.00004,
        grinder_emissions_per_kg=0.00006,
        crusher_recovery_rate=0.82,
        grinder_recovery_rate=0.75,
    )


@pytest.fixture
def sensitivity_request(unit_of_work, cost_drivers, sustainability_drivers):
    # 2 haul distances x 3 reuse rates x 2 utilisations
    return SensitivityRequest(
        unit_of_work=unit_of_work,
        cost_drivers=cost_drivers,
        sustainability_drivers=sustainability_drivers,
        ranges=SensitivityRanges(
            haul_distance_per_trip={"start": 20, "end": 40, "step": 20},
            reuse_uptake_rate={"start": 0, "end": 1, "step": 0.5},
            grinder_utilization={"start": 0.8, "end": 1, "step": 0.2},
        ),
    )
