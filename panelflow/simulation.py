# MIT License
"""Panel-flow simulation: hauling and processing one unit of work.

The simulator models trucking inbound material to the processing site and
running it through either the crusher or the grinder.  It returns the total
cost, elapsed time, emissions, truck trips and recovered mass.  It is a pure
function of its inputs and is called many times per sensitivity sweep, so it
does no logging and allocates nothing beyond its result.
"""
from __future__ import annotations

import math

from .params import CostDrivers, SimulationOptions, SimulationResult, SustainabilityDrivers, UnitOfWork
from .units import USD, Hours, Kilograms, Kilometers, TonsCO2e, require_positive, require_rate


def simulate_panel_flow(
    unit_of_work: UnitOfWork,
    cost_drivers: CostDrivers,
    sustainability_drivers: SustainabilityDrivers,
    options: SimulationOptions,
) -> SimulationResult:
    """Simulate hauling and processing one unit of work.

    Parameters
    ----------
    unit_of_work:
        Inbound mass and haul distance per trip.
    cost_drivers:
        Truck capacity, unit costs and processing throughputs.
    sustainability_drivers:
        Emission factors and recovery rates.
    options:
        Processing mode plus truck speed and load/unload time.

    Returns
    -------
    SimulationResult
        Total cost (USD), time (h), emissions (tCO2e), truck trips and
        recovered mass (kg).

    Raises
    ------
    InvalidInputError
        If a positivity or rate invariant is violated.  The checks are
        repeated here because models built with ``model_copy(update=...)``
        skip pydantic validation.
    """
    truck_speed = options.truck_speed_km_per_hour
    load_unload_hours = options.load_unload_hours_per_trip

    require_positive(truck_speed, "truck_speed_km_per_hour")
    require_positive(load_unload_hours, "load_unload_hours_per_trip")
    require_positive(cost_drivers.truck_capacity, "truck_capacity")
    require_positive(unit_of_work.inbound_material, "inbound_material")
    require_positive(unit_of_work.haul_distance_per_trip, "haul_distance_per_trip")
    require_rate(sustainability_drivers.crusher_recovery_rate, "crusher_recovery_rate")
    require_rate(sustainability_drivers.grinder_recovery_rate, "grinder_recovery_rate")

    if options.use_crusher:
        throughput = cost_drivers.crusher_throughput_kg_per_hour
        processing_cost_per_kg = cost_drivers.crusher_processing_cost_per_kg
        processing_emissions_per_kg = sustainability_drivers.crusher_emissions_per_kg
        recovery_rate = sustainability_drivers.crusher_recovery_rate
    else:
        throughput = cost_drivers.grinder_throughput_kg_per_hour
        processing_cost_per_kg = cost_drivers.grinder_processing_cost_per_kg
        processing_emissions_per_kg = sustainability_drivers.grinder_emissions_per_kg
        recovery_rate = sustainability_drivers.grinder_recovery_rate
    require_positive(throughput, "processing_throughput_kg_per_hour")

    inbound_kg = unit_of_work.inbound_material
    # a partial final load still takes a full trip
    trips = math.ceil(inbound_kg / cost_drivers.truck_capacity)

    total_distance_km = trips * unit_of_work.haul_distance_per_trip
    haul_time_hours = total_distance_km / truck_speed + trips * load_unload_hours
    processing_time_hours = inbound_kg / throughput
    total_time_hours = haul_time_hours + processing_time_hours

    haul_cost = total_distance_km * cost_drivers.haul_cost_per_km
    processing_cost = inbound_kg * processing_cost_per_kg
    labor_cost = total_time_hours * cost_drivers.labor_cost_per_hour

    haul_emissions = total_distance_km * sustainability_drivers.haul_emissions_per_km
    processing_emissions = inbound_kg * processing_emissions_per_kg

    return SimulationResult(
        total_cost=USD(haul_cost + processing_cost + labor_cost),
        total_time=Hours(total_time_hours),
        total_emissions=TonsCO2e(haul_emissions + processing_emissions),
        truck_trips=trips,
        material_recovered=Kilograms(inbound_kg * recovery_rate),
    )


def make_unit_of_work(inbound_material_kg: float, haul_distance_km: float) -> UnitOfWork:
    """Build a validated :class:`UnitOfWork` from bare numbers."""
    return UnitOfWork(
        inbound_material=Kilograms(inbound_material_kg),
        haul_distance_per_trip=Kilometers(haul_distance_km),
    )


def total_haul_distance(result: SimulationResult, unit_of_work: UnitOfWork) -> Kilometers:
    """Distance driven by all trips of a simulation (km)."""
    return Kilometers(result.truck_trips * unit_of_work.haul_distance_per_trip)
