# MIT License
"""Environmental KPIs derived from a simulation result.

Each function accepts optional factor overrides, either a mapping of field
names or an :class:`~panelflow.params.EnvironmentalKpiFactors` instance.
Fields that are not overridden fall back to
:data:`~panelflow.params.DEFAULT_ENVIRONMENTAL_KPI_FACTORS`.  Factors are
validated before any KPI is computed.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from .errors import InvalidInputError
from .params import DEFAULT_ENVIRONMENTAL_KPI_FACTORS, EnvironmentalKpiFactors, SimulationResult
from .units import Miles, TonsCO2e, require_non_negative

FactorOverrides = Optional[Union[EnvironmentalKpiFactors, Mapping[str, Any]]]


def resolve_kpi_factors(overrides: FactorOverrides = None) -> EnvironmentalKpiFactors:
    """Merge ``overrides`` into the default factors and validate the result."""
    if overrides is None:
        factors = DEFAULT_ENVIRONMENTAL_KPI_FACTORS
    else:
        if isinstance(overrides, EnvironmentalKpiFactors):
            update = overrides.model_dump(exclude_unset=True)
        else:
            update = dict(overrides)
        unknown = set(update) - set(EnvironmentalKpiFactors.model_fields)
        if unknown:
            raise InvalidInputError(f"Unknown KPI factor(s): {', '.join(sorted(unknown))}")
        factors = DEFAULT_ENVIRONMENTAL_KPI_FACTORS.model_copy(update=update)
    for name in EnvironmentalKpiFactors.model_fields:
        require_non_negative(getattr(factors, name), name)
    return factors


def compute_co2_avoided(result: SimulationResult, overrides: FactorOverrides = None) -> TonsCO2e:
    """Net CO2e avoided by the recovered material.

    Gross avoided emissions from displacing virgin material, minus the
    operational emissions of the simulation, floored at zero so that a KPI
    never reports a negative "avoided" figure.
    """
    factors = resolve_kpi_factors(overrides)
    gross = result.material_recovered * factors.co2_avoided_per_kg_recovered
    return TonsCO2e(max(0.0, gross - result.total_emissions))


def compute_carbon_capture_potential(result: SimulationResult, overrides: FactorOverrides = None) -> TonsCO2e:
    """Potential future CO2e capture of the recovered material.

    Independent of operational emissions.
    """
    factors = resolve_kpi_factors(overrides)
    return TonsCO2e(result.material_recovered * factors.carbon_capture_potential_per_kg_recovered)


def compute_truck_miles_avoided(result: SimulationResult, overrides: FactorOverrides = None) -> Miles:
    factors = resolve_kpi_factors(overrides)
    per_trip = max(0.0, factors.baseline_truck_miles_per_trip - factors.optimized_truck_miles_per_trip)
    return Miles(result.truck_trips * per_trip)
