"""Tests for range expansion and the sensitivity grid.

Point values are worked by hand for the 20 km haul at full grinder
utilisation: baseline crusher 790 USD, grinder 930 USD before residual
handling and virgin aggregate.
"""

import math

import pytest
from pydantic import ValidationError

from panelflow.errors import GridTooLargeError, InvalidInputError
from panelflow.params import EXPEDITE_PROXY_NOTE, ExpeditePenaltyProxy, NumericRange, SensitivityRanges
from panelflow.sensitivity import (
    MAX_GRID_POINTS,
    build_sensitivity_grid,
    build_sensitivity_response,
    compute_expedite_penalty,
    expand_range,
    summarize_grid,
)


def test_expand_range_appends_end():
    assert expand_range(NumericRange(start=0, end=1, step=0.3)) == [0.0, 0.3, 0.6, 0.9, 1.0]


def test_expand_range_absorbs_float_drift():
    assert expand_range(NumericRange(start=0.8, end=1, step=0.2)) == [0.8, 1.0]
    assert expand_range(NumericRange(start=5, end=5, step=1)) == [5.0]


def test_expand_range_cap():
    with pytest.raises(GridTooLargeError, match="exceeding limit"):
        expand_range(NumericRange(start=1, end=3000, step=1))


def test_range_validation():
    with pytest.raises(ValidationError, match="range.end must be >= range.start"):
        NumericRange(start=2, end=1, step=1)
    with pytest.raises(ValidationError):
        NumericRange(start=0, end=1, step=0)


def test_exactly_one_grinder_axis():
    axes = {
        "haul_distance_per_trip": {"start": 10, "end": 20, "step": 10},
        "reuse_uptake_rate": {"start": 0, "end": 1, "step": 0.5},
    }
    with pytest.raises(ValidationError, match="exactly one grinder axis"):
        SensitivityRanges(**axes)
    with pytest.raises(ValidationError, match="exactly one grinder axis"):
        SensitivityRanges(
            **axes,
            grinder_utilization={"start": 0.5, "end": 1, "step": 0.5},
            grinder_throughput_kg_per_hour={"start": 1000, "end": 2000, "step": 500},
        )


def test_grid_shape_and_order(sensitivity_request):
    grid = build_sensitivity_grid(sensitivity_request)
    assert grid.axis_mode == "utilization"
    assert grid.axes.haul_distance_per_trip_km == [20.0, 40.0]
    assert grid.axes.reuse_uptake_rate == [0.0, 0.5, 1.0]
    assert grid.axes.grinder_axis_values == [0.8, 1.0]
    assert len(grid.points) == 12
    first, second, last = grid.points[0].point, grid.points[1].point, grid.points[-1].point
    assert (first.haul_distance_per_trip_km, first.reuse_uptake_rate, first.grinder_utilization) == (20.0, 0.0, 0.8)
    assert (second.haul_distance_per_trip_km, second.reuse_uptake_rate, second.grinder_utilization) == (20.0, 0.0, 1.0)
    assert (last.haul_distance_per_trip_km, last.reuse_uptake_rate, last.grinder_utilization) == (40.0, 1.0, 1.0)
    # utilisation scales the nominal 2000 kg/h
    assert math.isclose(first.grinder_throughput_kg_per_hour, 1600.0)


def test_point_without_reuse(sensitivity_request):
    computation = build_sensitivity_grid(sensitivity_request).points[1]
    d = computation.diagnostics
    assert d.baseline_residual_kg == pytest.approx(1800.0)
    assert d.scenario_landfill_kg == pytest.approx(2500.0)
    assert d.baseline_disposal_trips == 1
    assert d.scenario_disposal_trips == 2
    # 790 + 60 disposal haul + 81 landfill + 300 virgin aggregate
    assert d.baseline_total_cost_usd == pytest.approx(1231.0)
    # 930 + 120 + 112.5 + 300
    assert d.scenario_total_cost_usd == pytest.approx(1462.5)
    assert computation.point.cost_delta_usd == pytest.approx(231.5)
    assert computation.point.emissions_avoided_tons_co2e == pytest.approx(-0.22)
    assert computation.point.payback_days is None


def test_point_with_full_reuse(sensitivity_request):
    computation = build_sensitivity_grid(sensitivity_request).points[5]
    assert computation.point.reuse_uptake_rate == 1.0
    d = computation.diagnostics
    assert d.scenario_reuse_kg == pytest.approx(2500.0)
    assert d.scenario_landfill_kg == 0.0
    assert d.scenario_disposal_trips == 0
    assert d.scenario_virgin_aggregate_emissions_tons_co2e == pytest.approx(0.0375)
    assert computation.point.cost_delta_usd == pytest.approx(-76.0)
    # 90000 USD capital recovered at 76 USD per day
    assert computation.point.payback_days == pytest.approx(90000 / 76, abs=1e-6)


def test_reuse_never_raises_cost(sensitivity_request):
    request = sensitivity_request.model_copy(
        update={
            "ranges": SensitivityRanges(
                haul_distance_per_trip={"start": 30, "end": 30, "step": 1},
                reuse_uptake_rate={"start": 0, "end": 1, "step": 0.5},
                grinder_utilization={"start": 1, "end": 1, "step": 0.1},
            )
        }
    )
    deltas = [p.point.cost_delta_usd for p in build_sensitivity_grid(request).points]
    assert deltas == sorted(deltas, reverse=True)


def test_throughput_axis(sensitivity_request):
    request = sensitivity_request.model_copy(
        update={
            "ranges": SensitivityRanges(
                haul_distance_per_trip={"start": 20, "end": 20, "step": 1},
                reuse_uptake_rate={"start": 0, "end": 0, "step": 1},
                grinder_throughput_kg_per_hour={"start": 1000, "end": 2000, "step": 1000},
            )
        }
    )
    grid = build_sensitivity_grid(request)
    assert grid.axis_mode == "throughput"
    assert [p.point.grinder_throughput_kg_per_hour for p in grid.points] == [1000.0, 2000.0]
    assert all(p.point.grinder_utilization is None for p in grid.points)


def test_zero_utilization_is_rejected(sensitivity_request):
    request = sensitivity_request.model_copy(
        update={
            "ranges": SensitivityRanges(
                haul_distance_per_trip={"start": 20, "end": 20, "step": 1},
                reuse_uptake_rate={"start": 0, "end": 0, "step": 1},
                grinder_utilization={"start": 0, "end": 0, "step": 1},
            )
        }
    )
    with pytest.raises(InvalidInputError, match="processing_throughput_kg_per_hour must be > 0"):
        build_sensitivity_grid(request)


def test_grid_cap_checked_before_simulation(sensitivity_request):
    request = sensitivity_request.model_copy(
        update={
            "ranges": SensitivityRanges(
                haul_distance_per_trip={"start": 1, "end": 1000, "step": 1},
                reuse_uptake_rate={"start": 0, "end": 1, "step": 0.5},
                grinder_utilization={"start": 1, "end": 1, "step": 1},
            )
        }
    )
    with pytest.raises(GridTooLargeError, match=str(MAX_GRID_POINTS)):
        build_sensitivity_grid(request)


def test_expedite_penalty():
    assert compute_expedite_penalty(100, ExpeditePenaltyProxy()) == (0.0, 0.0)
    proxy = ExpeditePenaltyProxy(enabled=True, spec_readiness=0.5)
    factor = (0.15 / 0.65) ** 2
    cost, emissions = compute_expedite_penalty(50, proxy)
    # 10 km beyond the 40 km threshold
    assert cost == pytest.approx(350 * factor * 1.25 + 40)
    assert emissions == pytest.approx(0.02 * factor * 1.25 + 0.004)
    # ready and close: nothing to pay
    assert compute_expedite_penalty(30, ExpeditePenaltyProxy(enabled=True)) == (0.0, 0.0)


def test_enabled_proxy_raises_scenario_cost(sensitivity_request):
    plain = build_sensitivity_grid(sensitivity_request)
    request = sensitivity_request.model_copy(
        update={"expedite_penalty_proxy": ExpeditePenaltyProxy(enabled=True, spec_readiness=0.3)}
    )
    penalised = build_sensitivity_grid(request)
    for a, b in zip(plain.points, penalised.points):
        assert b.diagnostics.expedite_penalty_cost_usd > 0
        assert b.point.cost_delta_usd > a.point.cost_delta_usd


def test_assumptions_used(sensitivity_request):
    request = sensitivity_request.model_copy(update={"assumptions": {"runs_per_day": 2}})
    used = {a.name: a for a in build_sensitivity_grid(request).assumptions_used}
    assert used["assumptions.runs_per_day"].source == "request"
    assert used["assumptions.runs_per_day"].value == 2
    assert used["assumptions.grinder_capital_cost_usd"].source == "core-default"
    assert used["expedite_penalty_proxy.enabled"].value is False
    assert used["throughput_model"].value == "linear-utilization-scaling"


def test_response_echoes_trace_id(sensitivity_request):
    response = build_sensitivity_response(sensitivity_request, trace_id="trace-1")
    assert response.trace_id == "trace-1"
    assert response.grid.grinder_axis.mode == "utilization"
    assert len(response.dataset) == 12
    assert response.penalty_proxy.note == EXPEDITE_PROXY_NOTE
    assert response.penalty_proxy.enabled is False
    again = build_sensitivity_response(sensitivity_request, trace_id="trace-1")
    assert again == response
    assert build_sensitivity_response(sensitivity_request).trace_id


def test_frame_and_summary(sensitivity_request):
    grid = build_sensitivity_grid(sensitivity_request)
    df = grid.to_frame()
    assert len(df) == 12
    assert {"cost_delta_usd", "scenario_landfill_kg"} <= set(df.columns)
    summary = summarize_grid(grid)
    assert summary["n_points"] == 12
    assert summary["min_cost_delta_usd"] == pytest.approx(df["cost_delta_usd"].min())
    assert 0.0 <= summary["payback_share"] <= 1.0


def test_expand_range_caps_distinct_values():
    # 10000 raw steps collapse to 1001 six-decimal values
    values = expand_range(NumericRange(start=0, end=0.001, step=1e-7))
    assert len(values) == 1001
    assert values[0] == 0.0 and values[-1] == 0.001


def test_expand_range_rejects_non_finite_bounds():
    rng = NumericRange.model_construct(start=0.0, end=float("inf"), step=1.0)
    with pytest.raises(InvalidInputError, match="range.end must be finite"):
        expand_range(rng)


def test_reuse_monotonic_per_haul_and_grinder_value(sensitivity_request):
    request = sensitivity_request.model_copy(
        update={
            "ranges": SensitivityRanges(
                haul_distance_per_trip={"start": 10, "end": 70, "step": 30},
                reuse_uptake_rate={"start": 0, "end": 1, "step": 0.1},
                grinder_utilization={"start": 0.5, "end": 1, "step": 0.25},
            )
        }
    )
    df = build_sensitivity_grid(request).to_frame()
    for _, group in df.groupby(["haul_distance_per_trip_km", "grinder_utilization"]):
        group = group.sort_values("reuse_uptake_rate")
        virgin = group["scenario_virgin_aggregate_emissions_tons_co2e"].to_numpy()
        avoided = group["emissions_avoided_tons_co2e"].to_numpy()
        assert len(group) == 11
        assert (virgin[1:] - virgin[:-1] <= 1e-9).all()
        assert (avoided[1:] - avoided[:-1] >= -1e-9).all()
