# MIT License
"""Compare one processing scenario against the crusher baseline.

The baseline is always the crusher at default simulation options.  The
scenario is the crusher again (``"baseline"``), the grinder (``"grinder"``)
or the grinder with part of its residual material taken up for reuse
(``"grinder+reuse"``).  The result reports material flows, emissions and
cost deltas together with the assumptions the comparison relied on.
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .assumptions import AssumptionUsed, resolve_assumptions
from .kpis import compute_carbon_capture_potential, compute_co2_avoided
from .params import (
    CostDrivers,
    EnvironmentalKpiFactors,
    SimulationOptions,
    SustainabilityDrivers,
    UnitOfWork,
)
from .simulation import simulate_panel_flow

logger = logging.getLogger(__name__)

ComparisonMode = Literal["baseline", "grinder", "grinder+reuse"]

DEFAULT_COMPARISON_MODE: ComparisonMode = "baseline"
DEFAULT_REUSE_UPTAKE_RATE = 0.0


class ComparisonRequest(BaseModel):
    """Inputs of a baseline comparison.

    ``mode`` defaults to ``"baseline"``.  ``reuse_uptake_rate`` is only
    honoured in ``"grinder+reuse"`` mode, where it defaults to 0.
    ``emissions_factors`` may set any subset of the KPI factors.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    unit_of_work: UnitOfWork
    cost_drivers: CostDrivers
    sustainability_drivers: SustainabilityDrivers
    mode: Optional[ComparisonMode] = None
    reuse_uptake_rate: Optional[float] = Field(None, ge=0.0, le=1.0)
    emissions_factors: Optional[EnvironmentalKpiFactors] = None


class ScenarioOutputs(BaseModel):
    cost_usd: float
    time_hours: float
    truck_trips: int


class MaterialFlows(BaseModel):
    inbound_kg: float
    recovered_kg: float
    residual_kg: float
    estimated_reuse_uptake_kg: float
    landfill_kg: float


class ComparisonEmissions(BaseModel):
    operational_tons_co2e: float
    avoided_tons_co2e: float
    estimated_uptake_tons_co2e: float
    baseline_operational_tons_co2e: float
    operational_delta_tons_co2e: float


class FinancialDeltas(BaseModel):
    baseline_cost_usd: float
    scenario_cost_usd: float
    delta_cost_usd: float
    baseline_cost_per_recovered_kg: Optional[float]
    scenario_cost_per_recovered_kg: Optional[float]
    delta_cost_per_recovered_kg: Optional[float]


class ComparisonResult(BaseModel):
    mode: ComparisonMode
    reuse_uptake_rate: float
    outputs: ScenarioOutputs
    material_flows: MaterialFlows
    emissions: ComparisonEmissions
    financial_deltas: FinancialDeltas
    assumptions_used: List[AssumptionUsed]
    trace_id: str


def _cost_per_recovered_kg(cost_usd: float, recovered_kg: float) -> Optional[float]:
    return cost_usd / recovered_kg if recovered_kg > 0 else None


def _route_assumption(name: str, value, supplied: bool) -> AssumptionUsed:
    return AssumptionUsed(name=name, value=value, source="request" if supplied else "route-default")


def compare_to_baseline(request: ComparisonRequest, trace_id: Optional[str] = None) -> ComparisonResult:
    """Simulate the crusher baseline and the requested scenario side by side.

    Parameters
    ----------
    request:
        Drivers, scenario mode, optional reuse uptake rate and optional
        emissions factor overrides.
    trace_id:
        Identifier echoed in the result.  A random UUID is generated when
        omitted.

    Returns
    -------
    ComparisonResult
        Scenario outputs, material flows, emissions, cost deltas and the
        assumptions used.
    """
    mode = request.mode if request.mode is not None else DEFAULT_COMPARISON_MODE
    assumptions_used = [_route_assumption("scenario_options.mode", mode, request.mode is not None)]

    if mode == "grinder+reuse":
        supplied = request.reuse_uptake_rate is not None
        reuse_rate = request.reuse_uptake_rate if supplied else DEFAULT_REUSE_UPTAKE_RATE
        assumptions_used.append(_route_assumption("scenario_options.reuse_uptake_rate", reuse_rate, supplied))
    else:
        reuse_rate = 0.0

    factors, factors_used = resolve_assumptions(
        EnvironmentalKpiFactors, request.emissions_factors, "emissions_factors"
    )
    baseline_options = SimulationOptions(use_crusher=True)
    scenario_options = SimulationOptions(use_crusher=mode == "baseline")
    assumptions_used += factors_used
    for name in ("truck_speed_km_per_hour", "load_unload_hours_per_trip"):
        assumptions_used.append(
            AssumptionUsed(
                name=f"simulation_options.{name}",
                value=getattr(scenario_options, name),
                source="core-default",
                description=SimulationOptions.model_fields[name].description or "",
            )
        )

    baseline = simulate_panel_flow(
        request.unit_of_work, request.cost_drivers, request.sustainability_drivers, baseline_options
    )
    scenario = simulate_panel_flow(
        request.unit_of_work, request.cost_drivers, request.sustainability_drivers, scenario_options
    )

    inbound_kg = request.unit_of_work.inbound_material
    recovered_kg = scenario.material_recovered
    residual_kg = max(0.0, inbound_kg - recovered_kg)
    reuse_kg = residual_kg * reuse_rate
    landfill_kg = max(0.0, residual_kg - reuse_kg)

    capture_from_recovered = compute_carbon_capture_potential(scenario, factors)
    uptake = capture_from_recovered + reuse_kg * factors.carbon_capture_potential_per_kg_recovered

    baseline_cpk = _cost_per_recovered_kg(baseline.total_cost, baseline.material_recovered)
    scenario_cpk = _cost_per_recovered_kg(scenario.total_cost, scenario.material_recovered)
    if baseline_cpk is not None and scenario_cpk is not None:
        delta_cpk: Optional[float] = scenario_cpk - baseline_cpk
    else:
        delta_cpk = None

    if trace_id is None:
        trace_id = str(uuid.uuid4())
    logger.debug("Baseline comparison %s: mode %s, cost delta %.2f", trace_id, mode,
                 scenario.total_cost - baseline.total_cost)

    return ComparisonResult(
        mode=mode,
        reuse_uptake_rate=reuse_rate,
        outputs=ScenarioOutputs(
            cost_usd=scenario.total_cost,
            time_hours=scenario.total_time,
            truck_trips=scenario.truck_trips,
        ),
        material_flows=MaterialFlows(
            inbound_kg=inbound_kg,
            recovered_kg=recovered_kg,
            residual_kg=residual_kg,
            estimated_reuse_uptake_kg=reuse_kg,
            landfill_kg=landfill_kg,
        ),
        emissions=ComparisonEmissions(
            operational_tons_co2e=scenario.total_emissions,
            avoided_tons_co2e=compute_co2_avoided(scenario, factors),
            estimated_uptake_tons_co2e=uptake,
            baseline_operational_tons_co2e=baseline.total_emissions,
            operational_delta_tons_co2e=scenario.total_emissions - baseline.total_emissions,
        ),
        financial_deltas=FinancialDeltas(
            baseline_cost_usd=baseline.total_cost,
            scenario_cost_usd=scenario.total_cost,
            delta_cost_usd=scenario.total_cost - baseline.total_cost,
            baseline_cost_per_recovered_kg=baseline_cpk,
            scenario_cost_per_recovered_kg=scenario_cpk,
            delta_cost_per_recovered_kg=delta_cpk,
        ),
        assumptions_used=assumptions_used,
        trace_id=trace_id,
    )
