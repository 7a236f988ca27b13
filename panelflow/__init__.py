"""Material-recovery engine for panel-flow planning.

This package simulates hauling and processing recyclable panel material
through a crusher or a grinder, derives environmental KPIs, sweeps the
grinder scenario against the crusher baseline over a sensitivity grid and
evaluates investments in the grinder by NPV, IRR and payback.

Each submodule exposes pure functions that accept validated pydantic models
and return pydantic models; :mod:`panelflow.plots` turns results into Plotly
figures.  The package logs through the standard :mod:`logging` module and is
silent unless the host application configures a handler.
"""

import logging

from .errors import InvalidInputError, GridTooLargeError
from .params import (
    UnitOfWork,
    CostDrivers,
    SustainabilityDrivers,
    SimulationOptions,
    SimulationResult,
    EnvironmentalKpiFactors,
    NumericRange,
    SensitivityRanges,
    SensitivityAssumptions,
    ExpeditePenaltyProxy,
    ScenarioAssumptions,
)
from .simulation import simulate_panel_flow, make_unit_of_work
from .kpis import compute_co2_avoided, compute_carbon_capture_potential, compute_truck_miles_avoided
from .sensitivity import SensitivityRequest, expand_range, build_sensitivity_grid, build_sensitivity_response
from .economics import npv, irr, payback_period, evaluate_investment
from .scenario import ScenarioInput, analyze_scenario
from .comparison import ComparisonRequest, compare_to_baseline

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "InvalidInputError",
    "GridTooLargeError",
    "UnitOfWork",
    "CostDrivers",
    "SustainabilityDrivers",
    "SimulationOptions",
    "SimulationResult",
    "EnvironmentalKpiFactors",
    "NumericRange",
    "SensitivityRanges",
    "SensitivityAssumptions",
    "ExpeditePenaltyProxy",
    "ScenarioAssumptions",
    "simulate_panel_flow",
    "make_unit_of_work",
    "compute_co2_avoided",
    "compute_carbon_capture_potential",
    "compute_truck_miles_avoided",
    "SensitivityRequest",
    "expand_range",
    "build_sensitivity_grid",
    "build_sensitivity_response",
    "npv",
    "irr",
    "payback_period",
    "evaluate_investment",
    "ScenarioInput",
    "analyze_scenario",
    "ComparisonRequest",
    "compare_to_baseline",
]
