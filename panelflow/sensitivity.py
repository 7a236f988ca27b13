# MIT License
"""Multi-axis sensitivity sweep of the crusher baseline versus the grinder.

A sweep expands three numeric ranges (haul distance, reuse uptake rate and a
grinder axis given either as utilisation or as absolute throughput) into a
Cartesian grid.  For every grid point the panel-flow simulator runs twice,
once on the crusher baseline and once on the grinder scenario, and the
residual material is accounted for as disposal haul, landfill, reuse and
displaced virgin aggregate.  An optional expedite penalty proxy adds a
non-linear planning penalty to the scenario side.

Grid points are independent of each other; they are enumerated with haul
distance as the outer loop, reuse rate in the middle and the grinder axis as
the inner loop.  No clock or random source is read while computing, so the
same request (and trace id) always yields the same response.
"""
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, NamedTuple, Optional

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict

from .assumptions import AssumptionUsed, resolve_assumptions
from .errors import GridTooLargeError, InvalidInputError
from .params import (
    EXPEDITE_PROXY_NOTE,
    CostDrivers,
    ExpeditePenaltyProxy,
    NumericRange,
    SensitivityAssumptions,
    SensitivityRanges,
    SimulationOptions,
    SustainabilityDrivers,
    UnitOfWork,
)
from .simulation import simulate_panel_flow
from .utils import round_optional, round_to

logger = logging.getLogger(__name__)

EPSILON = 1e-9
MAX_GRID_POINTS = 2500
# raw steps generated per range before rounding collapses duplicates
MAX_RANGE_STEPS = 1_000_000

GrinderAxisMode = Literal["utilization", "throughput"]

BASELINE_OPTIONS = SimulationOptions(use_crusher=True)
SCENARIO_OPTIONS = SimulationOptions(use_crusher=False)


class SensitivityRequest(BaseModel):
    """A complete sensitivity sweep request.

    ``assumptions`` and ``expedite_penalty_proxy`` may be partial; the
    fields a caller leaves out fall back to the documented defaults.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    unit_of_work: UnitOfWork
    cost_drivers: CostDrivers
    sustainability_drivers: SustainabilityDrivers
    ranges: SensitivityRanges
    assumptions: Optional[SensitivityAssumptions] = None
    expedite_penalty_proxy: Optional[ExpeditePenaltyProxy] = None


class SensitivityPlotPoint(BaseModel):
    haul_distance_per_trip_km: float
    reuse_uptake_rate: float
    grinder_utilization: Optional[float]
    grinder_throughput_kg_per_hour: float
    cost_delta_usd: float
    emissions_avoided_tons_co2e: float
    payback_days: Optional[float]


class SensitivityPointDiagnostics(BaseModel):
    """Full baseline/scenario breakdown of one grid point, for audit and tests."""

    baseline_virgin_aggregate_emissions_tons_co2e: float
    scenario_virgin_aggregate_emissions_tons_co2e: float
    baseline_total_cost_usd: float
    scenario_total_cost_usd: float
    baseline_total_emissions_tons_co2e: float
    scenario_total_emissions_tons_co2e: float
    baseline_residual_kg: float
    scenario_residual_kg: float
    scenario_reuse_kg: float
    scenario_landfill_kg: float
    baseline_disposal_trips: int
    scenario_disposal_trips: int
    expedite_penalty_cost_usd: float
    expedite_penalty_emissions_tons_co2e: float


class SensitivityPointComputation(BaseModel):
    point: SensitivityPlotPoint
    diagnostics: SensitivityPointDiagnostics


class SensitivityAxes(BaseModel):
    haul_distance_per_trip_km: List[float]
    reuse_uptake_rate: List[float]
    grinder_axis_values: List[float]


class SensitivityGridResult(BaseModel):
    axis_mode: GrinderAxisMode
    axes: SensitivityAxes
    points: List[SensitivityPointComputation]
    assumptions_used: List[AssumptionUsed]
    penalty_proxy: ExpeditePenaltyProxy

    def to_frame(self) -> pd.DataFrame:
        """Return one row per grid point with plot values and diagnostics."""
        rows = [{**p.point.model_dump(), **p.diagnostics.model_dump()} for p in self.points]
        return pd.DataFrame(rows)


class GrinderAxis(BaseModel):
    mode: GrinderAxisMode
    values: List[float]


class SensitivityGrid(BaseModel):
    haul_distance_per_trip_km: List[float]
    reuse_uptake_rate: List[float]
    grinder_axis: GrinderAxis


class PenaltyProxySummary(BaseModel):
    enabled: bool
    note: str
    parameters: ExpeditePenaltyProxy


class SensitivityResponse(BaseModel):
    trace_id: str
    grid: SensitivityGrid
    dataset: List[SensitivityPlotPoint]
    assumptions_used: List[AssumptionUsed]
    penalty_proxy: PenaltyProxySummary


class ExpeditePenalty(NamedTuple):
    cost_penalty_usd: float
    emissions_penalty_tons_co2e: float


@dataclass(frozen=True)
class SensitivityPointInput:
    haul_distance_per_trip_km: float
    reuse_uptake_rate: float
    grinder_utilization: Optional[float]
    grinder_throughput_kg_per_hour: float


@dataclass(frozen=True)
class SensitivityContext:
    """Read-only inputs shared by every grid point."""

    unit_of_work: UnitOfWork
    cost_drivers: CostDrivers
    sustainability_drivers: SustainabilityDrivers
    assumptions: SensitivityAssumptions
    penalty_proxy: ExpeditePenaltyProxy


def expand_range(rng: NumericRange) -> List[float]:
    """Expand ``rng`` into its discrete axis values.

    Values are ``start + i * step`` for every ``i`` that does not overshoot
    ``end`` (with :data:`EPSILON` absorbing floating-point drift in the step
    count), followed by ``end`` itself when it is not already present.
    Values are rounded to six decimals and de-duplicated in order.

    Raises
    ------
    InvalidInputError
        If a bound or the step is not finite.
    GridTooLargeError
        If the range holds more than :data:`MAX_RANGE_STEPS` raw steps, or
        more than :data:`MAX_GRID_POINTS` distinct values.
    """
    for name in ("start", "end", "step"):
        if not math.isfinite(getattr(rng, name)):
            raise InvalidInputError(f"range.{name} must be finite")
    steps = math.floor((rng.end - rng.start) / rng.step + EPSILON)
    if steps + 1 > MAX_RANGE_STEPS:
        raise GridTooLargeError(
            f"Range expands to {steps + 1} steps, exceeding limit {MAX_RANGE_STEPS}"
        )
    grid = np.round(rng.start + np.arange(steps + 1) * rng.step, 6)
    values = [float(v) for v in grid]
    if rng.end - values[-1] > EPSILON:
        values.append(round_to(rng.end))
    values = list(dict.fromkeys(values))
    if len(values) > MAX_GRID_POINTS:
        raise GridTooLargeError(
            f"Range expands to {len(values)} values, exceeding limit {MAX_GRID_POINTS}"
        )
    return values


def compute_expedite_penalty(haul_distance_per_trip_km: float, proxy: ExpeditePenaltyProxy) -> ExpeditePenalty:
    """Cost and emissions penalty of the expedite proxy at one haul distance.

    The readiness shortfall below the threshold is normalised by the
    threshold and raised to ``readiness_exponent``; distances beyond the haul
    threshold scale that factor and add a linear per-km penalty.
    """
    if not proxy.enabled:
        return ExpeditePenalty(0.0, 0.0)

    threshold_base = max(proxy.low_spec_readiness_threshold, EPSILON)
    readiness_gap = max(0.0, proxy.low_spec_readiness_threshold - proxy.spec_readiness)
    readiness_factor = (readiness_gap / threshold_base) ** proxy.readiness_exponent
    haul_excess_km = max(0.0, haul_distance_per_trip_km - proxy.haul_distance_threshold_km)
    haul_scale = 1.0 + haul_excess_km / max(proxy.haul_distance_threshold_km, 1.0)

    cost = (
        proxy.base_cost_penalty_usd * readiness_factor * haul_scale
        + haul_excess_km * proxy.haul_cost_penalty_usd_per_km
    )
    emissions = (
        proxy.base_emissions_penalty_tons_co2e * readiness_factor * haul_scale
        + haul_excess_km * proxy.haul_emissions_penalty_tons_co2e_per_km
    )
    return ExpeditePenalty(cost, emissions)


def compute_sensitivity_point(point: SensitivityPointInput, context: SensitivityContext) -> SensitivityPointComputation:
    """Simulate one grid point on both the crusher baseline and grinder scenario."""
    unit_of_work = context.unit_of_work.model_copy(
        update={"haul_distance_per_trip": point.haul_distance_per_trip_km}
    )
    cost_drivers = context.cost_drivers.model_copy(
        update={"grinder_throughput_kg_per_hour": point.grinder_throughput_kg_per_hour}
    )
    sd = context.sustainability_drivers
    a = context.assumptions

    baseline = simulate_panel_flow(unit_of_work, cost_drivers, sd, BASELINE_OPTIONS)
    scenario = simulate_panel_flow(unit_of_work, cost_drivers, sd, SCENARIO_OPTIONS)

    inbound_kg = unit_of_work.inbound_material
    truck_capacity_kg = cost_drivers.truck_capacity

    # residual mass: baseline goes to landfill, scenario is partly reused
    baseline_residual_kg = max(0.0, inbound_kg - baseline.material_recovered)
    scenario_residual_kg = max(0.0, inbound_kg - scenario.material_recovered)
    scenario_reuse_kg = scenario_residual_kg * point.reuse_uptake_rate
    scenario_landfill_kg = max(0.0, scenario_residual_kg - scenario_reuse_kg)

    baseline_disposal_trips = math.ceil(baseline_residual_kg / truck_capacity_kg)
    scenario_disposal_trips = math.ceil(scenario_landfill_kg / truck_capacity_kg)
    baseline_disposal_km = baseline_disposal_trips * point.haul_distance_per_trip_km
    scenario_disposal_km = scenario_disposal_trips * point.haul_distance_per_trip_km

    baseline_virgin_kg = inbound_kg
    scenario_virgin_kg = max(0.0, inbound_kg - scenario_reuse_kg)
    baseline_virgin_emissions = baseline_virgin_kg * a.virgin_aggregate_emissions_per_kg
    scenario_virgin_emissions = scenario_virgin_kg * a.virgin_aggregate_emissions_per_kg

    penalty = compute_expedite_penalty(point.haul_distance_per_trip_km, context.penalty_proxy)

    baseline_total_cost = (
        baseline.total_cost
        + baseline_disposal_km * cost_drivers.haul_cost_per_km
        + baseline_residual_kg * a.landfill_disposal_cost_per_kg
        + baseline_virgin_kg * a.virgin_aggregate_cost_per_kg
    )
    scenario_total_cost = (
        scenario.total_cost
        + scenario_disposal_km * cost_drivers.haul_cost_per_km
        + scenario_landfill_kg * a.landfill_disposal_cost_per_kg
        + scenario_virgin_kg * a.virgin_aggregate_cost_per_kg
        + penalty.cost_penalty_usd
    )
    baseline_total_emissions = (
        baseline.total_emissions
        + baseline_disposal_km * sd.haul_emissions_per_km
        + baseline_virgin_emissions
    )
    scenario_total_emissions = (
        scenario.total_emissions
        + scenario_disposal_km * sd.haul_emissions_per_km
        + scenario_virgin_emissions
        + penalty.emissions_penalty_tons_co2e
    )

    daily_savings = (baseline_total_cost - scenario_total_cost) * a.runs_per_day
    payback_days = a.grinder_capital_cost_usd / daily_savings if daily_savings > 0 else None

    return SensitivityPointComputation(
        point=SensitivityPlotPoint(
            haul_distance_per_trip_km=round_to(point.haul_distance_per_trip_km),
            reuse_uptake_rate=round_to(point.reuse_uptake_rate),
            grinder_utilization=round_optional(point.grinder_utilization),
            grinder_throughput_kg_per_hour=round_to(point.grinder_throughput_kg_per_hour),
            cost_delta_usd=round_to(scenario_total_cost - baseline_total_cost),
            emissions_avoided_tons_co2e=round_to(baseline_total_emissions - scenario_total_emissions),
            payback_days=round_optional(payback_days),
        ),
        diagnostics=SensitivityPointDiagnostics(
            baseline_virgin_aggregate_emissions_tons_co2e=round_to(baseline_virgin_emissions),
            scenario_virgin_aggregate_emissions_tons_co2e=round_to(scenario_virgin_emissions),
            baseline_total_cost_usd=round_to(baseline_total_cost),
            scenario_total_cost_usd=round_to(scenario_total_cost),
            baseline_total_emissions_tons_co2e=round_to(baseline_total_emissions),
            scenario_total_emissions_tons_co2e=round_to(scenario_total_emissions),
            baseline_residual_kg=round_to(baseline_residual_kg),
            scenario_residual_kg=round_to(scenario_residual_kg),
            scenario_reuse_kg=round_to(scenario_reuse_kg),
            scenario_landfill_kg=round_to(scenario_landfill_kg),
            baseline_disposal_trips=baseline_disposal_trips,
            scenario_disposal_trips=scenario_disposal_trips,
            expedite_penalty_cost_usd=round_to(penalty.cost_penalty_usd),
            expedite_penalty_emissions_tons_co2e=round_to(penalty.emissions_penalty_tons_co2e),
        ),
    )


def build_sensitivity_grid(request: SensitivityRequest) -> SensitivityGridResult:
    """Expand the request's ranges and simulate every grid point.

    Raises
    ------
    GridTooLargeError
        If the grid holds more than :data:`MAX_GRID_POINTS` points.  The
        check runs before any simulation.
    """
    assumptions, assumptions_used = resolve_assumptions(
        SensitivityAssumptions, request.assumptions, "assumptions"
    )
    proxy, proxy_used = resolve_assumptions(
        ExpeditePenaltyProxy, request.expedite_penalty_proxy, "expedite_penalty_proxy"
    )
    assumptions_used.extend(proxy_used)
    assumptions_used.append(
        AssumptionUsed(
            name="throughput_model",
            value="linear-utilization-scaling",
            source="core-default",
            description=(
                "When grinder_utilization is used, effective grinder throughput = "
                "nominal throughput * utilization."
            ),
        )
    )

    ranges = request.ranges
    haul_values = expand_range(ranges.haul_distance_per_trip)
    reuse_values = expand_range(ranges.reuse_uptake_rate)
    if ranges.grinder_utilization is not None:
        axis_mode: GrinderAxisMode = "utilization"
        grinder_values = expand_range(ranges.grinder_utilization)
    else:
        axis_mode = "throughput"
        grinder_values = expand_range(ranges.grinder_throughput_kg_per_hour)

    n_points = len(haul_values) * len(reuse_values) * len(grinder_values)
    if n_points > MAX_GRID_POINTS:
        raise GridTooLargeError(
            f"Grid too large: {n_points} points exceeds limit {MAX_GRID_POINTS}"
        )
    logger.debug("Sensitivity grid: %d points, grinder axis %s", n_points, axis_mode)

    context = SensitivityContext(
        unit_of_work=request.unit_of_work,
        cost_drivers=request.cost_drivers,
        sustainability_drivers=request.sustainability_drivers,
        assumptions=assumptions,
        penalty_proxy=proxy,
    )
    nominal_throughput = request.cost_drivers.grinder_throughput_kg_per_hour

    points: List[SensitivityPointComputation] = []
    for haul_km in haul_values:
        for reuse_rate in reuse_values:
            for axis_value in grinder_values:
                if axis_mode == "utilization":
                    point = SensitivityPointInput(haul_km, reuse_rate, axis_value, nominal_throughput * axis_value)
                else:
                    point = SensitivityPointInput(haul_km, reuse_rate, None, axis_value)
                points.append(compute_sensitivity_point(point, context))

    return SensitivityGridResult(
        axis_mode=axis_mode,
        axes=SensitivityAxes(
            haul_distance_per_trip_km=haul_values,
            reuse_uptake_rate=reuse_values,
            grinder_axis_values=grinder_values,
        ),
        points=points,
        assumptions_used=assumptions_used,
        penalty_proxy=proxy,
    )


def build_sensitivity_response(request: SensitivityRequest, trace_id: Optional[str] = None) -> SensitivityResponse:
    """Build the public sensitivity response.

    ``trace_id`` is echoed verbatim; a fresh UUID is generated only when the
    caller supplies none.
    """
    grid = build_sensitivity_grid(request)
    return SensitivityResponse(
        trace_id=trace_id if trace_id is not None else str(uuid.uuid4()),
        grid=SensitivityGrid(
            haul_distance_per_trip_km=grid.axes.haul_distance_per_trip_km,
            reuse_uptake_rate=grid.axes.reuse_uptake_rate,
            grinder_axis=GrinderAxis(mode=grid.axis_mode, values=grid.axes.grinder_axis_values),
        ),
        dataset=[p.point for p in grid.points],
        assumptions_used=grid.assumptions_used,
        penalty_proxy=PenaltyProxySummary(
            enabled=grid.penalty_proxy.enabled,
            note=EXPEDITE_PROXY_NOTE,
            parameters=grid.penalty_proxy,
        ),
    )


def summarize_grid(result: SensitivityGridResult) -> Dict[str, Any]:
    """Headline figures of a sweep.

    Returns
    -------
    dict
        ``n_points``, ``min_cost_delta_usd``, ``max_cost_delta_usd``,
        ``max_emissions_avoided_tons_co2e``, ``payback_share`` (fraction of
        points that pay back) and ``min_payback_days`` (``None`` when no
        point pays back).
    """
    cost = np.array([p.point.cost_delta_usd for p in result.points], dtype=float)
    avoided = np.array([p.point.emissions_avoided_tons_co2e for p in result.points], dtype=float)
    payback = np.array(
        [np.nan if p.point.payback_days is None else p.point.payback_days for p in result.points],
        dtype=float,
    )
    has_payback = ~np.isnan(payback)
    return {
        "n_points": int(cost.size),
        "min_cost_delta_usd": float(cost.min()),
        "max_cost_delta_usd": float(cost.max()),
        "max_emissions_avoided_tons_co2e": float(avoided.max()),
        "payback_share": float(has_payback.mean()),
        "min_payback_days": float(payback[has_payback].min()) if has_payback.any() else None,
    }
