import pandas as pd
import numpy as np
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from config import DAYS_PER_YEAR, DAYS_PER_MONTH
from goal_models import GoalAllocation, VALUATION_COLUMNS, validate_period

# ============================================================
# PROJECTION
# ============================================================

def projected_value(
    start_value: float,
    periodic_contribution: float,
    annual_rate_pct: float,
    periods_elapsed,
    periods_per_year: int = 12,
):
    """
    Future value of a starting balance plus a regular contribution:

        FV = PV * (1 + r)^n + PMT * ((1 + r)^n - 1) / r,   r = rate / 100 / periods_per_year

    A zero rate degrades to PV + PMT * n. Non-positive n returns PV unchanged
    (no extrapolation backwards in time).

    `periods_elapsed` may be a scalar (returns float) or an array of period
    counts (returns ndarray, one value per entry).
    """
    n = np.asarray(periods_elapsed, dtype=float)
    r = annual_rate_pct / 100.0 / periods_per_year

    if r == 0:
        fv = start_value + periodic_contribution * n
    else:
        factor = np.power(1.0 + r, n)
        fv = start_value * factor + periodic_contribution * (factor - 1.0) / r

    fv = np.where(n <= 0, start_value, fv)
    if fv.ndim == 0:
        return float(fv)
    return fv


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end precedes start)."""
    return (end - start).days


def solve_contribution_for_target(
    target_future_value: float,
    annual_rate_pct: float,
    start: date,
    due: date,
) -> float:
    """
    Daily contribution that grows from zero to `target_future_value` at `due`,
    compounding daily from `start`. Inverse of projected_value with PV = 0.
    """
    n = days_between(start, due)
    if n <= 0:
        return 0.0

    r = annual_rate_pct / 100.0 / DAYS_PER_YEAR
    if r == 0:
        return target_future_value / n

    annuity_factor = ((1.0 + r) ** n - 1.0) / r
    return target_future_value / annuity_factor


def calculate_daily_investment(
    target_amount: float,
    monthly_investment: float,
    annual_rate_pct: float,
    start: date,
    due: date,
) -> float:
    """
    Daily contribution used for the projected curve.

    Goals with a target, a monthly plan and a non-negative rate are
    back-solved so the curve lands on the target at the due date; anything
    else falls back to the monthly plan spread over DAYS_PER_MONTH days.
    """
    if target_amount > 0 and monthly_investment > 0 and annual_rate_pct >= 0:
        return solve_contribution_for_target(target_amount, annual_rate_pct, start, due)
    return monthly_investment / DAYS_PER_MONTH


def projected_value_by_date(
    start_value: float,
    daily_contribution: float,
    annual_rate_pct: float,
    start: date,
    on_date: date,
) -> float:
    """Daily-compounded projection from `start` evaluated on `on_date`."""
    return projected_value(
        start_value,
        daily_contribution,
        annual_rate_pct,
        days_between(start, on_date),
        DAYS_PER_YEAR,
    )


def projected_values_for_dates(
    start_value: float,
    daily_contribution: float,
    annual_rate_pct: float,
    start: date,
    dates: Iterable[date],
) -> List[float]:
    """projected_value_by_date for a whole date axis at once."""
    elapsed = [days_between(start, d) for d in dates]
    if not elapsed:
        return []
    values = projected_value(start_value, daily_contribution, annual_rate_pct, elapsed, DAYS_PER_YEAR)
    return [float(v) for v in values]


# ============================================================
# ACTUAL VALUE SERIES (allocation-weighted account valuations)
# ============================================================

def normalize_valuations(valuations: Optional[pd.DataFrame]) -> pd.DataFrame:
    """
    Clean one account's valuation snapshots: midnight-normalized datetimes,
    float values, sorted ascending, one row per date (last one wins).
    """
    if valuations is None or len(valuations) == 0:
        return pd.DataFrame(columns=VALUATION_COLUMNS)

    df = valuations.copy()
    df["valuation_date"] = pd.to_datetime(df["valuation_date"]).dt.normalize()
    df["total_value"] = df["total_value"].astype(float)
    df = df.sort_values("valuation_date")
    df = df.drop_duplicates(subset="valuation_date", keep="last")
    return df.reset_index(drop=True)


def build_allocation_details(
    allocations: Optional[Iterable[GoalAllocation]],
    goal_id: str,
    goal_start: date,
) -> Dict[str, dict]:
    """
    Per-account weighting for one goal.

    Only allocations with a positive percentage count. When one account is
    allocated twice to the same goal the last allocation wins.
    """
    details = {}
    for alloc in allocations or []:
        if alloc.goal_id != goal_id or alloc.allocated_percent <= 0:
            continue
        details[alloc.account_id] = {
            "percentage": alloc.allocated_percent / 100.0,
            "initial_contribution": float(alloc.initial_contribution or 0.0),
            "baseline_date": alloc.allocation_date or goal_start,
        }
    return details


def allocated_account_ids(allocations: Optional[Iterable[GoalAllocation]], goal_id: str) -> List[str]:
    """Accounts with a positive allocation to the goal, in first-seen order."""
    ids = []
    for alloc in allocations or []:
        if alloc.goal_id == goal_id and alloc.allocated_percent > 0 and alloc.account_id not in ids:
            ids.append(alloc.account_id)
    return ids


def build_goal_value_series(
    valuations_by_account: Optional[Dict[str, pd.DataFrame]],
    allocation_details: Dict[str, dict],
) -> Tuple[pd.Series, Optional[float]]:
    """
    Goal value on every known valuation date.

    For each date in the union of all accounts' valuation dates, each
    allocation contributes:

      initial_contribution + (value_on_date - value_on_baseline) * percentage

    The growth term only applies when the account has a snapshot on that
    exact date. The baseline value is the snapshot on the allocation's
    baseline date, or the account's earliest snapshot when that date is
    missing.

    Non-positive totals are dropped ("not enough data yet").
    Returns (series indexed by date, latest positive total or None).
    """
    if not valuations_by_account:
        return pd.Series(dtype=float), None

    account_series = {}
    for account_id, frame in valuations_by_account.items():
        clean = normalize_valuations(frame)
        if clean.empty:
            continue
        account_series[account_id] = clean.set_index("valuation_date")["total_value"]

    if not account_series:
        return pd.Series(dtype=float), None

    all_dates = pd.DatetimeIndex(sorted(set().union(*[s.index for s in account_series.values()])))
    total = pd.Series(0.0, index=all_dates)

    for account_id, details in allocation_details.items():
        total += details["initial_contribution"]

        series = account_series.get(account_id)
        if series is None:
            continue

        baseline_ts = pd.Timestamp(details["baseline_date"])
        if baseline_ts in series.index:
            baseline_value = float(series.loc[baseline_ts])
        else:
            baseline_value = float(series.iloc[0])

        growth = (series - baseline_value) * details["percentage"]
        total += growth.reindex(all_dates).fillna(0.0)

    positive = total[total > 0]
    latest = float(positive.iloc[-1]) if not positive.empty else None
    return positive, latest


# ============================================================
# PERIOD AGGREGATION
# ============================================================

def aggregate_valuations_by_period(
    values: pd.Series,
    dates: Iterable[date],
    period: str,
) -> Dict[date, float]:
    """
    Map the sparse goal value series onto grid dates.

    weeks / months: last known value on or before the grid date.
    years / all:    last value within the grid date's calendar year that is
                    on or before the grid date.

    Grid dates without an eligible value are left out.
    """
    validate_period(period)
    aggregated = {}
    if values is None or values.empty:
        return aggregated

    values = values.sort_index()
    yearly = period in ("years", "all")

    for d in dates:
        ts = pd.Timestamp(d)
        if yearly:
            in_year = values[(values.index.year == d.year) & (values.index <= ts)]
            if in_year.empty:
                continue
            aggregated[d] = float(in_year.iloc[-1])
        else:
            held = values[values.index <= ts]
            if held.empty:
                continue
            aggregated[d] = float(held.iloc[-1])

    return aggregated


def apply_current_year_override(
    aggregated: Dict[date, float],
    latest_actual_value: Optional[float],
    period: str,
    today: date,
) -> Dict[date, float]:
    """
    Yearly views: the current year's bucket (Dec 31 of today's year) takes the
    latest known value when it is missing or smaller, so an unfinished year
    does not under-report. Returns a new dict.
    """
    result = dict(aggregated)
    if period not in ("years", "all") or latest_actual_value is None:
        return result

    key = date(today.year, 12, 31)
    existing = result.get(key)
    if not existing or latest_actual_value > existing:
        result[key] = latest_actual_value
    return result
