# MIT License
"""Plotly figure builders for panelflow results.

Keeping the plotting code apart from the engine lets any front end render
sensitivity grids and investment comparisons with consistent styling.
"""

from __future__ import annotations

from typing import Optional

import plotly.graph_objects as go

from .economics import InvestmentComparisonResult, cash_flow_frame
from .sensitivity import SensitivityGridResult


def fig_sensitivity_heatmap(result: SensitivityGridResult, grinder_axis_value: Optional[float] = None) -> go.Figure:
    """Create a heatmap of the cost delta over haul distance and reuse rate.

    Parameters
    ----------
    result:
        A sensitivity grid.
    grinder_axis_value:
        Grinder utilisation or throughput to slice the grid at.  Defaults to
        the first value of the grinder axis.

    Returns
    -------
    plotly.graph_objects.Figure
        Heatmap with haul distance on x, reuse uptake rate on y and the
        scenario-minus-baseline cost delta (USD) as colour.
    """
    if grinder_axis_value is None:
        grinder_axis_value = result.axes.grinder_axis_values[0]
    column = "grinder_utilization" if result.axis_mode == "utilization" else "grinder_throughput_kg_per_hour"
    df = result.to_frame()
    df = df[df[column] == grinder_axis_value]
    pivot = df.pivot(index="reuse_uptake_rate", columns="haul_distance_per_trip_km", values="cost_delta_usd")
    fig = go.Figure(
        go.Heatmap(
            x=pivot.columns,
            y=pivot.index,
            z=pivot.values,
            colorscale="RdBu_r",
            zmid=0,
            colorbar={"title": "USD"},
        )
    )
    fig.update_layout(
        title=f"Cost delta, grinder {result.axis_mode} = {grinder_axis_value:g}",
        xaxis_title="Haul distance per trip (km)",
        yaxis_title="Reuse uptake rate",
        template="plotly_white",
    )
    return fig


def fig_cash_flows(result: InvestmentComparisonResult) -> go.Figure:
    df = cash_flow_frame(result)
    fig = go.Figure()
    for name in ("baseline", "alternative", "incremental"):
        fig.add_bar(x=df["period"], y=df[name], name=name.capitalize())
    fig.add_scatter(x=df["period"], y=df["cum_incremental"], mode="lines+markers", name="Cumulative incremental")
    fig.update_layout(
        template="plotly_white",
        barmode="group",
        title=f"Cash flows (preferred: {result.preferred_option})",
        xaxis_title="Period",
        yaxis_title="USD",
    )
    return fig
