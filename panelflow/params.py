# MIT License
"""Data models for the panel-flow engine.

All data models are defined using [`pydantic.BaseModel`](https://docs.pydantic.dev/)
to provide type checking, validation and JSON serialisation.  Each model
encapsulates one group of drivers, options or assumptions.  Defaults given
in ``Field(...)`` are the documented default tables of the engine; callers
override individual fields and every override passes the same bounds.

Quantities are annotated with the tagged units from :mod:`panelflow.units`.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .units import USD, Hours, Kilograms, KilogramsPerHour, Kilometers, Miles, TonsCO2e

DEFAULT_TRUCK_SPEED_KM_PER_HOUR = 50.0
DEFAULT_LOAD_UNLOAD_HOURS_PER_TRIP = 0.25

EXPEDITE_PROXY_NOTE = (
    "Optional expedite penalty proxy used for scenario planning only; "
    "this is an assumption, not an empirical fact."
)


class UnitOfWork(BaseModel):
    """One batch of inbound recyclable material and its haul distance."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    inbound_material: Kilograms = Field(..., gt=0, description="Inbound material mass (kg)")
    haul_distance_per_trip: Kilometers = Field(..., gt=0, description="One-way haul distance per truck trip (km)")


class CostDrivers(BaseModel):
    """Unit costs and capacities of the haul and processing steps.

    Costs are USD, capacities kg and throughputs kg per hour.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    truck_capacity: Kilograms = Field(..., gt=0, description="Payload of one truck (kg)")
    haul_cost_per_km: USD = Field(..., ge=0, description="Haul cost per km travelled (USD/km)")
    labor_cost_per_hour: USD = Field(..., ge=0, description="Crew cost per elapsed hour (USD/h)")
    crusher_processing_cost_per_kg: USD = Field(..., ge=0, description="Crusher processing cost (USD/kg)")
    grinder_processing_cost_per_kg: USD = Field(..., ge=0, description="Grinder processing cost (USD/kg)")
    crusher_throughput_kg_per_hour: KilogramsPerHour = Field(..., gt=0, description="Crusher throughput (kg/h)")
    grinder_throughput_kg_per_hour: KilogramsPerHour = Field(..., gt=0, description="Grinder nominal throughput (kg/h)")


class SustainabilityDrivers(BaseModel):
    """Emission factors and recovery rates of the haul and processing steps."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    haul_emissions_per_km: TonsCO2e = Field(..., ge=0, description="Truck emissions per km (tCO2e/km)")
    crusher_emissions_per_kg: TonsCO2e = Field(..., ge=0, description="Crusher emissions (tCO2e/kg)")
    grinder_emissions_per_kg: TonsCO2e = Field(..., ge=0, description="Grinder emissions (tCO2e/kg)")
    crusher_recovery_rate: float = Field(..., ge=0.0, le=1.0, description="Fraction of inbound mass recovered by the crusher")
    grinder_recovery_rate: float = Field(..., ge=0.0, le=1.0, description="Fraction of inbound mass recovered by the grinder")


class SimulationOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    use_crusher: bool = Field(..., description="Process with the crusher (True) or the grinder (False)")
    truck_speed_km_per_hour: float = Field(DEFAULT_TRUCK_SPEED_KM_PER_HOUR, gt=0, description="Average truck speed (km/h)")
    load_unload_hours_per_trip: Hours = Field(DEFAULT_LOAD_UNLOAD_HOURS_PER_TRIP, gt=0, description="Loading and unloading time per trip (h)")


class SimulationResult(BaseModel):
    """Outcome of one panel-flow simulation.  Immutable once built."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    total_cost: USD
    total_time: Hours
    total_emissions: TonsCO2e
    truck_trips: int = Field(..., ge=1)
    material_recovered: Kilograms


class EnvironmentalKpiFactors(BaseModel):
    """Factors behind the environmental KPIs.

    Attributes
    ----------
    co2_avoided_per_kg_recovered:
        Each kilogram of recovered material displaces virgin-material
        production and avoids this many tonnes of CO2e before operational
        emissions are netted out.
    carbon_capture_potential_per_kg_recovered:
        Recovered mineral-rich material can mineralise this many tonnes of
        CO2e per kilogram.
    baseline_truck_miles_per_trip:
        Logistics distance per trip without panel-flow optimisation.
    optimized_truck_miles_per_trip:
        Logistics distance per trip with optimised panel flow.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    co2_avoided_per_kg_recovered: TonsCO2e = Field(0.00012, ge=0, description="Gross CO2e avoided per recovered kg (tCO2e/kg)")
    carbon_capture_potential_per_kg_recovered: TonsCO2e = Field(0.00003, ge=0, description="Capture potential per recovered kg (tCO2e/kg)")
    baseline_truck_miles_per_trip: Miles = Field(42.0, ge=0, description="Baseline truck miles per trip")
    optimized_truck_miles_per_trip: Miles = Field(30.0, ge=0, description="Optimised truck miles per trip")


DEFAULT_ENVIRONMENTAL_KPI_FACTORS = EnvironmentalKpiFactors()


class NumericRange(BaseModel):
    """A closed numeric sweep ``start, start + step, ..., end``."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    start: float
    end: float
    step: float = Field(..., gt=0)

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "NumericRange":
        if self.end < self.start:
            raise ValueError("range.end must be >= range.start")
        return self


class PositiveRange(NumericRange):
    @field_validator("start")
    @classmethod
    def _start_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("range.start must be > 0")
        return v


class UnitIntervalRange(NumericRange):
    @model_validator(mode="after")
    def _within_unit_interval(self) -> "UnitIntervalRange":
        if not (0.0 <= self.start <= 1.0 and 0.0 <= self.end <= 1.0):
            raise ValueError("range.start and range.end must be within [0, 1]")
        return self


class SensitivityRanges(BaseModel):
    """Axes of a sensitivity sweep.

    Exactly one grinder axis must be given: either a utilisation fraction of
    the nominal grinder throughput or an absolute throughput in kg/h.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    haul_distance_per_trip: PositiveRange
    reuse_uptake_rate: UnitIntervalRange
    grinder_utilization: Optional[UnitIntervalRange] = None
    grinder_throughput_kg_per_hour: Optional[PositiveRange] = None

    @model_validator(mode="after")
    def _exactly_one_grinder_axis(self) -> "SensitivityRanges":
        has_utilization = self.grinder_utilization is not None
        has_throughput = self.grinder_throughput_kg_per_hour is not None
        if has_utilization == has_throughput:
            raise ValueError(
                "Provide exactly one grinder axis: grinder_utilization or grinder_throughput_kg_per_hour"
            )
        return self


class SensitivityAssumptions(BaseModel):
    """Planning constants of the sensitivity sweep."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    virgin_aggregate_emissions_per_kg: TonsCO2e = Field(
        0.000005,
        ge=0,
        description="Embodied emissions factor for virgin aggregate displaced by reuse (tCO2e/kg).",
    )
    virgin_aggregate_cost_per_kg: USD = Field(
        0.03,
        ge=0,
        description="Material procurement unit cost proxy for virgin aggregate (USD/kg).",
    )
    landfill_disposal_cost_per_kg: USD = Field(
        0.045,
        ge=0,
        description="Landfill disposal unit cost for residual material (USD/kg).",
    )
    grinder_capital_cost_usd: USD = Field(
        90000.0,
        gt=0,
        description="Capital outlay proxy used to compute payback in days (USD).",
    )
    runs_per_day: float = Field(
        1.0,
        gt=0,
        description="Number of equivalent unit-of-work runs per day for payback conversion.",
    )


class ExpeditePenaltyProxy(BaseModel):
    """Optional expedite penalty proxy.

    A planning assumption, not measured data: low specification readiness
    and long haul distances add a non-linear cost and emissions penalty to
    the grinder scenario.  Disabled by default, in which case both penalties
    are exactly zero.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    enabled: bool = Field(False, description=EXPEDITE_PROXY_NOTE)
    spec_readiness: float = Field(
        1.0, ge=0.0, le=1.0,
        description="Readiness score in [0,1]; lower values increase expedite risk proxy.",
    )
    low_spec_readiness_threshold: float = Field(
        0.65, ge=0.0, le=1.0,
        description="Threshold below which readiness penalty activates.",
    )
    readiness_exponent: float = Field(
        2.0, ge=1.0,
        description="Non-linear exponent applied to readiness shortfall.",
    )
    base_cost_penalty_usd: USD = Field(
        350.0, ge=0,
        description="Base expedite cost proxy (USD) applied when readiness is below threshold.",
    )
    base_emissions_penalty_tons_co2e: TonsCO2e = Field(
        0.02, ge=0,
        description="Base expedite emissions proxy (tCO2e) applied when readiness is below threshold.",
    )
    haul_distance_threshold_km: Kilometers = Field(
        40.0, ge=0,
        description="Distance threshold above which additional expedite friction is applied.",
    )
    haul_cost_penalty_usd_per_km: USD = Field(
        4.0, ge=0,
        description="Incremental expedite cost proxy beyond distance threshold (USD/km).",
    )
    haul_emissions_penalty_tons_co2e_per_km: TonsCO2e = Field(
        0.0004, ge=0,
        description="Incremental expedite emissions proxy beyond distance threshold (tCO2e/km).",
    )


class ScenarioAssumptions(BaseModel):
    """Operational, financial and environmental assumptions of one scenario.

    Field order is the order of the assumption trace; ``category`` and
    ``unit`` metadata label each trace item.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    truck_speed_km_per_hour: float = Field(
        DEFAULT_TRUCK_SPEED_KM_PER_HOUR, gt=0,
        json_schema_extra={"category": "operational", "unit": "km/hour"},
    )
    load_unload_hours_per_trip: Hours = Field(
        DEFAULT_LOAD_UNLOAD_HOURS_PER_TRIP, gt=0,
        json_schema_extra={"category": "operational", "unit": "hours/trip"},
    )
    recovered_material_price_per_kg: USD = Field(
        0.06, ge=0,
        json_schema_extra={"category": "financial", "unit": "USD/kg"},
    )
    carbon_credit_price_per_ton_co2e: USD = Field(
        45.0, ge=0,
        json_schema_extra={"category": "financial", "unit": "USD/tCO2e"},
    )
    co2_avoided_per_kg_recovered: TonsCO2e = Field(
        DEFAULT_ENVIRONMENTAL_KPI_FACTORS.co2_avoided_per_kg_recovered, ge=0,
        json_schema_extra={"category": "environmental", "unit": "tCO2e/kg"},
    )
    carbon_capture_potential_per_kg_recovered: TonsCO2e = Field(
        DEFAULT_ENVIRONMENTAL_KPI_FACTORS.carbon_capture_potential_per_kg_recovered, ge=0,
        json_schema_extra={"category": "environmental", "unit": "tCO2e/kg"},
    )
    baseline_truck_miles_per_trip: Miles = Field(
        DEFAULT_ENVIRONMENTAL_KPI_FACTORS.baseline_truck_miles_per_trip, ge=0,
        json_schema_extra={"category": "environmental", "unit": "miles/trip"},
    )
    optimized_truck_miles_per_trip: Miles = Field(
        DEFAULT_ENVIRONMENTAL_KPI_FACTORS.optimized_truck_miles_per_trip, ge=0,
        json_schema_extra={"category": "environmental", "unit": "miles/trip"},
    )

    def kpi_factors(self) -> EnvironmentalKpiFactors:
        """Return the environmental KPI factors carried by these assumptions."""
        return EnvironmentalKpiFactors.model_construct(
            co2_avoided_per_kg_recovered=self.co2_avoided_per_kg_recovered,
            carbon_capture_potential_per_kg_recovered=self.carbon_capture_potential_per_kg_recovered,
            baseline_truck_miles_per_trip=self.baseline_truck_miles_per_trip,
            optimized_truck_miles_per_trip=self.optimized_truck_miles_per_trip,
        )
