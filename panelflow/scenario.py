# MIT License
"""Scenario analysis: one simulation with its cost, emissions and revenue view.

:func:`analyze_scenario` composes the simulator, the environmental KPIs and
the revenue assumptions into a single result, together with an ordered trace
of every assumption used.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .kpis import compute_carbon_capture_potential, compute_co2_avoided, compute_truck_miles_avoided
from .params import CostDrivers, ScenarioAssumptions, SimulationOptions, SimulationResult, SustainabilityDrivers, UnitOfWork
from .simulation import simulate_panel_flow, total_haul_distance
from .units import USD, Miles, TonsCO2e, require_non_negative, require_positive
from .utils import fingerprint

ScenarioMode = Literal["crusher", "grinder"]
AssumptionCategory = Literal["operational", "financial", "environmental"]


class ScenarioInput(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    mode: ScenarioMode
    unit_of_work: UnitOfWork
    cost_drivers: CostDrivers
    sustainability_drivers: SustainabilityDrivers
    assumptions: ScenarioAssumptions = Field(default_factory=ScenarioAssumptions)


class ScenarioAssumptionTraceItem(BaseModel):
    name: str
    category: AssumptionCategory
    unit: str
    value: float
    source: Literal["request", "core-default"]


class ScenarioCostBreakdown(BaseModel):
    haul_cost: USD
    processing_cost: USD
    labor_cost: USD
    total_cost: USD


class ScenarioEmissionsBreakdown(BaseModel):
    haul_emissions: TonsCO2e
    processing_emissions: TonsCO2e
    total_emissions: TonsCO2e


class ScenarioEnvironmentalKpis(BaseModel):
    co2_avoided: TonsCO2e
    carbon_capture_potential: TonsCO2e
    truck_miles_avoided: Miles
    avoided_emission_percentage: float


class ScenarioRevenueMetrics(BaseModel):
    material_revenue: USD
    carbon_credit_revenue: USD
    total_revenue: USD
    net_cash_flow: USD
    cost_per_kg_recovered: Optional[float]
    gross_margin_percentage: Optional[float]


class ScenarioAnalysisResult(BaseModel):
    mode: ScenarioMode
    simulation_result: SimulationResult
    cost_breakdown: ScenarioCostBreakdown
    emissions_breakdown: ScenarioEmissionsBreakdown
    environmental_kpis: ScenarioEnvironmentalKpis
    financial_metrics: ScenarioRevenueMetrics
    assumption_trace: List[ScenarioAssumptionTraceItem]


def _validate_assumptions(a: ScenarioAssumptions) -> None:
    require_positive(a.truck_speed_km_per_hour, "truck_speed_km_per_hour")
    require_positive(a.load_unload_hours_per_trip, "load_unload_hours_per_trip")
    for name in ScenarioAssumptions.model_fields:
        require_non_negative(getattr(a, name), name)


def trace_assumptions(a: ScenarioAssumptions) -> List[ScenarioAssumptionTraceItem]:
    """List every assumption in field order with its category and unit."""
    items = []
    for name, field in ScenarioAssumptions.model_fields.items():
        extra = field.json_schema_extra or {}
        items.append(
            ScenarioAssumptionTraceItem(
                name=name,
                category=extra["category"],
                unit=extra["unit"],
                value=getattr(a, name),
                source="request" if name in a.model_fields_set else "core-default",
            )
        )
    return items


def analyze_scenario(scenario: ScenarioInput) -> ScenarioAnalysisResult:
    """Simulate one scenario and derive its cost, emissions and revenue view.

    Parameters
    ----------
    scenario:
        Processing mode, drivers and scenario assumptions.

    Returns
    -------
    ScenarioAnalysisResult
        The raw simulation result plus cost and emissions breakdowns,
        environmental KPIs, revenue metrics and the assumption trace.
    """
    a = scenario.assumptions
    _validate_assumptions(a)

    use_crusher = scenario.mode == "crusher"
    result = simulate_panel_flow(
        scenario.unit_of_work,
        scenario.cost_drivers,
        scenario.sustainability_drivers,
        SimulationOptions.model_construct(
            use_crusher=use_crusher,
            truck_speed_km_per_hour=a.truck_speed_km_per_hour,
            load_unload_hours_per_trip=a.load_unload_hours_per_trip,
        ),
    )

    cd = scenario.cost_drivers
    sd = scenario.sustainability_drivers
    inbound_kg = scenario.unit_of_work.inbound_material
    distance_km = total_haul_distance(result, scenario.unit_of_work)
    if use_crusher:
        processing_cost_per_kg = cd.crusher_processing_cost_per_kg
        processing_emissions_per_kg = sd.crusher_emissions_per_kg
    else:
        processing_cost_per_kg = cd.grinder_processing_cost_per_kg
        processing_emissions_per_kg = sd.grinder_emissions_per_kg

    factors = a.kpi_factors()
    co2_avoided = compute_co2_avoided(result, factors)
    total_emissions = result.total_emissions
    recovered_kg = result.material_recovered

    material_revenue = recovered_kg * a.recovered_material_price_per_kg
    carbon_credit_revenue = co2_avoided * a.carbon_credit_price_per_ton_co2e
    total_revenue = material_revenue + carbon_credit_revenue
    net_cash_flow = total_revenue - result.total_cost

    return ScenarioAnalysisResult(
        mode=scenario.mode,
        simulation_result=result,
        cost_breakdown=ScenarioCostBreakdown(
            haul_cost=USD(distance_km * cd.haul_cost_per_km),
            processing_cost=USD(inbound_kg * processing_cost_per_kg),
            labor_cost=USD(result.total_time * cd.labor_cost_per_hour),
            total_cost=result.total_cost,
        ),
        emissions_breakdown=ScenarioEmissionsBreakdown(
            haul_emissions=TonsCO2e(distance_km * sd.haul_emissions_per_km),
            processing_emissions=TonsCO2e(inbound_kg * processing_emissions_per_kg),
            total_emissions=total_emissions,
        ),
        environmental_kpis=ScenarioEnvironmentalKpis(
            co2_avoided=co2_avoided,
            carbon_capture_potential=compute_carbon_capture_potential(result, factors),
            truck_miles_avoided=compute_truck_miles_avoided(result, factors),
            avoided_emission_percentage=(co2_avoided / total_emissions * 100.0) if total_emissions > 0 else 0.0,
        ),
        financial_metrics=ScenarioRevenueMetrics(
            material_revenue=USD(material_revenue),
            carbon_credit_revenue=USD(carbon_credit_revenue),
            total_revenue=USD(total_revenue),
            net_cash_flow=USD(net_cash_flow),
            cost_per_kg_recovered=result.total_cost / recovered_kg if recovered_kg > 0 else None,
            gross_margin_percentage=net_cash_flow / total_revenue * 100.0 if total_revenue > 0 else None,
        ),
        assumption_trace=trace_assumptions(a),
    )


def scenario_fingerprint(scenario: ScenarioInput) -> str:
    """Stable identifier of a scenario input, independent of field order."""
    return fingerprint(scenario)
