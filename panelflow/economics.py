# MIT License
"""Investment evaluation: NPV, IRR and payback of simulation-driven cash flows.

Cash-flow series are indexed by period: element 0 is the upfront outlay
(negative for an investment) and elements 1..N are net cash flows.  The
functions here do not depend on the rest of the model structure except for
:func:`evaluate_investment`, which turns per-period simulation results and
revenues into such series.

IRR and payback are legitimately undefined for some series (no sign change,
never breaking even); they are reported as ``None`` rather than raised.
"""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Literal, Optional, Sequence, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidInputError
from .params import SimulationResult
from .units import USD

logger = logging.getLogger(__name__)

PreferredOption = Literal["baseline", "alternative", "tie"]


class SimulationCashFlowPoint(BaseModel):
    """One period's contribution to a scenario's cash flows.

    Net cash flow is ``recovered_material_revenue - simulation_result.total_cost
    + other_cash_flow``.  Several points may share a period; they are summed.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    period: int
    simulation_result: SimulationResult
    recovered_material_revenue: USD
    other_cash_flow: USD = USD(0.0)

    @field_validator("period", mode="before")
    @classmethod
    def _positive_integer_period(cls, v):
        if (
            isinstance(v, bool)
            or not isinstance(v, (int, float))
            or not math.isfinite(v)
            or v < 1
            or v != int(v)
        ):
            raise InvalidInputError("period must be a positive integer starting at 1")
        return int(v)


class InvestmentScenarioInput(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    points: List[SimulationCashFlowPoint]
    initial_investment: USD = Field(USD(0.0), description="Upfront outlay at period 0 (USD)")


class ScenarioFinancialMetrics(BaseModel):
    """Metrics of one cash-flow series.

    ``periods[i]`` is the period label of ``cash_flows[i]``; the first entry
    is always period 0.
    """

    periods: List[int]
    cash_flows: List[float]
    npv: float
    irr: Optional[float]
    payback_period: Optional[float]


class InvestmentComparisonResult(BaseModel):
    baseline: ScenarioFinancialMetrics
    alternative: ScenarioFinancialMetrics
    incremental: ScenarioFinancialMetrics
    preferred_option: PreferredOption


def npv(discount_rate: float, cash_flows: Sequence[float]) -> float:
    """Compute the net present value of a series of cash flows.

    Parameters
    ----------
    discount_rate:
        Discount rate per period as a decimal (e.g. 0.08 for 8%).
    cash_flows:
        Cash flows where element ``i`` falls in period ``i``; element 0 is
        not discounted.

    Returns
    -------
    float
        Net present value of the cash flows.  When a discount factor
        underflows (rates just above -1 over long series) the terms it
        divides are infinite and the result is ``inf`` signed like the
        latest non-zero flow, which dominates as the rate approaches -1.

    Raises
    ------
    InvalidInputError
        If ``discount_rate <= -1``, for which the discount factor is
        undefined or non-positive.
    """
    if discount_rate <= -1:
        raise InvalidInputError("discount_rate must be greater than -1")
    growth = 1.0 + discount_rate
    factor = 1.0
    total = 0.0
    for cf in cash_flows:
        if cf:
            total += cf / factor if factor else math.copysign(math.inf, cf)
        # saturates to inf or 0.0 instead of raising like ``**``
        factor *= growth
    if math.isnan(total):
        last = next(cf for cf in reversed(cash_flows) if cf)
        return math.copysign(math.inf, last)
    return total


def payback_period(cash_flows: Sequence[float]) -> Optional[float]:
    """Estimate the fractional payback period of a series of cash flows.

    The cumulative cash flow is walked period by period.  Within the period
    where it first becomes non-negative the crossing is interpolated
    linearly.  If the series is already non-negative at period 0 the payback
    is 0.

    Returns
    -------
    float or None
        Payback in periods, or ``None`` if the cumulative cash flow never
        reaches zero.
    """
    if not cash_flows:
        return None
    cumulative = cash_flows[0]
    if cumulative >= 0:
        return 0.0
    for i in range(1, len(cash_flows)):
        previous = cumulative
        cumulative += cash_flows[i]
        if cumulative >= 0:
            return (i - 1) + (-previous / cash_flows[i])
    return None


def irr(cash_flows: Sequence[float], max_iterations: int = 200, tolerance: float = 1e-7) -> Optional[float]:
    """Approximate the internal rate of return of a series of cash flows.

    A bracketed bisection is used.  The bracket starts at ``[-0.9999, 1.0]``
    and its upper bound is doubled up to 20 times until NPV changes sign.

    Parameters
    ----------
    cash_flows:
        Cash flows starting at period 0.  At least one positive and one
        negative flow are required.
    max_iterations:
        Bisection budget.
    tolerance:
        Stop as soon as ``|NPV(mid)|`` falls below this value.

    Returns
    -------
    float or None
        Approximate IRR as a decimal.  ``None`` when the series has no sign
        change or no bracket is found (series with several IRRs can fall in
        this case).  The midpoint of the last bracket is returned when the
        iteration budget runs out.
    """
    if len(cash_flows) < 2:
        return None
    if not any(cf > 0 for cf in cash_flows) or not any(cf < 0 for cf in cash_flows):
        return None

    def f(rate: float) -> float:
        return npv(rate, cash_flows)

    lo, hi = -0.9999, 1.0
    f_lo, f_hi = f(lo), f(hi)
    expansions = 0
    while f_lo * f_hi > 0 and expansions < 20:
        hi *= 2.0
        f_hi = f(hi)
        expansions += 1
    if f_lo * f_hi > 0:
        return None

    for _ in range(max_iterations):
        mid = (lo + hi) / 2.0
        f_mid = f(mid)
        if abs(f_mid) < tolerance:
            return mid
        if f_lo * f_mid < 0:
            hi, f_hi = mid, f_mid
        else:
            lo, f_lo = mid, f_mid
    return (lo + hi) / 2.0


def _net_by_period(scenario: InvestmentScenarioInput) -> Dict[int, float]:
    net: Dict[int, float] = {}
    for point in scenario.points:
        flow = (
            point.recovered_material_revenue
            - point.simulation_result.total_cost
            + point.other_cash_flow
        )
        net[point.period] = net.get(point.period, 0.0) + flow
    return net


def _initial_flow(amount: float) -> float:
    # avoid reporting -0.0 for a zero outlay
    return -amount if amount != 0 else 0.0


def _series(scenario: InvestmentScenarioInput) -> Tuple[List[int], Dict[int, float], List[float]]:
    net = _net_by_period(scenario)
    periods = sorted(net)
    cash_flows = [_initial_flow(scenario.initial_investment)] + [net[p] for p in periods]
    return periods, net, cash_flows


def _metrics(discount_rate: float, periods: List[int], cash_flows: List[float]) -> ScenarioFinancialMetrics:
    return ScenarioFinancialMetrics(
        periods=[0] + periods,
        cash_flows=cash_flows,
        npv=npv(discount_rate, cash_flows),
        irr=irr(cash_flows),
        payback_period=payback_period(cash_flows),
    )


def evaluate_investment(
    discount_rate: float,
    baseline: InvestmentScenarioInput,
    alternative: InvestmentScenarioInput,
) -> InvestmentComparisonResult:
    """Compare a baseline operation against an alternative investment.

    Each scenario's points are reduced to one net cash flow per period and
    prefixed with the negated initial investment.  The incremental series is
    the period-wise difference ``alternative - baseline`` over the sorted
    union of periods, missing periods counting as zero.

    Returns
    -------
    InvestmentComparisonResult
        NPV, IRR and payback for baseline, alternative and incremental
        series, and the option with the strictly higher NPV (``"tie"`` when
        equal).
    """
    if discount_rate <= -1:
        raise InvalidInputError("discount_rate must be greater than -1")
    base_periods, base_net, base_flows = _series(baseline)
    alt_periods, alt_net, alt_flows = _series(alternative)

    all_periods = sorted(set(base_periods) | set(alt_periods))
    incremental_initial = baseline.initial_investment - alternative.initial_investment
    incremental_flows = [incremental_initial if incremental_initial != 0 else 0.0] + [
        alt_net.get(p, 0.0) - base_net.get(p, 0.0) for p in all_periods
    ]

    base_metrics = _metrics(discount_rate, base_periods, base_flows)
    alt_metrics = _metrics(discount_rate, alt_periods, alt_flows)
    incremental_metrics = _metrics(discount_rate, all_periods, incremental_flows)

    if alt_metrics.npv > base_metrics.npv:
        preferred: PreferredOption = "alternative"
    elif alt_metrics.npv < base_metrics.npv:
        preferred = "baseline"
    else:
        preferred = "tie"
    logger.debug(
        "Investment evaluated: baseline NPV %.2f, alternative NPV %.2f, preferred %s",
        base_metrics.npv, alt_metrics.npv, preferred,
    )

    return InvestmentComparisonResult(
        baseline=base_metrics,
        alternative=alt_metrics,
        incremental=incremental_metrics,
        preferred_option=preferred,
    )


def cash_flow_frame(result: InvestmentComparisonResult) -> pd.DataFrame:
    """Tabulate the three cash-flow series of a comparison, one row per period.

    Series are aligned on their period labels; a period missing from a
    series contributes zero.
    """
    series = {
        "baseline": result.baseline,
        "alternative": result.alternative,
        "incremental": result.incremental,
    }
    df = pd.concat(
        [pd.Series(m.cash_flows, index=m.periods, name=name) for name, m in series.items()],
        axis=1,
    ).fillna(0.0)
    df = df.sort_index().rename_axis("period").reset_index()
    df["cum_incremental"] = df["incremental"].cumsum()
    return df
