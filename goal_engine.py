import pandas as pd
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from config import DEFAULT_TIME_PERIOD, DEFAULT_GOAL_SPAN_YEARS, FETCH_BUFFER_YEARS, MAX_FETCH_WORKERS
from goal_models import ChartDataPoint, Goal, GoalAllocation, GoalValuationHistory, validate_period
from date_utils import (
    calculate_display_date_range,
    format_date_label,
    generate_date_intervals,
    get_end_of_period,
    get_interpolation_points,
    is_same_period,
)
from financial_math import (
    aggregate_valuations_by_period,
    allocated_account_ids,
    apply_current_year_override,
    build_allocation_details,
    build_goal_value_series,
    calculate_daily_investment,
    projected_value_by_date,
    projected_values_for_dates,
)
from data_loader import get_default_data_source, valuations_to_frame


# ============================================================
# GOAL DATE RESOLUTION
# ============================================================

def resolve_goal_dates(goal: Goal, today: Optional[date] = None) -> dict:
    """
    Effective dates for one goal:

      goal_start  - explicit start, else one year before today
      goal_due    - explicit due date, else one year after today
      fetch_start - goal_start, but never later than today
      fetch_end   - goal_due plus the fetch buffer
    """
    today = today or date.today()

    goal_start = goal.start_date or (pd.Timestamp(today) - pd.DateOffset(years=DEFAULT_GOAL_SPAN_YEARS)).date()
    goal_due = goal.due_date or (pd.Timestamp(today) + pd.DateOffset(years=DEFAULT_GOAL_SPAN_YEARS)).date()
    fetch_start = today if goal_start > today else goal_start
    fetch_end = (pd.Timestamp(goal_due) + pd.DateOffset(years=FETCH_BUFFER_YEARS)).date()

    return {
        "goal_start": goal_start,
        "goal_due": goal_due,
        "fetch_start": fetch_start,
        "fetch_end": fetch_end,
    }


# ============================================================
# DATE AXIS (grid + boundaries + interpolation)
# ============================================================

def build_date_axis(
    goal_start: date,
    goal_due: date,
    period: str,
    today: Optional[date] = None,
) -> List[date]:
    """
    Chart x-axis for a goal: the period-end grid of the display window, plus
    the exact start / due dates when they fall inside the window, sorted and
    de-duplicated. When the axis stops short of the due date by more than a
    couple of days, daily points fill the gap so the projected curve bends
    smoothly into its final value.
    """
    validate_period(period)
    today = today or date.today()

    display_start, display_end = calculate_display_date_range(period, goal_start, goal_due, today)
    intervals = generate_date_intervals(display_start, display_end, period, today)

    # "all" ends on the due date itself when the grid stops in an earlier year
    if period == "all" and intervals:
        if intervals[-1].year != goal_due.year and not goal_due > display_end:
            intervals.append(goal_due)

    boundaries = []
    for boundary in (goal_start, goal_due):
        if boundary in intervals:
            continue
        if display_start <= boundary <= display_end:
            boundaries.append(boundary)

    axis = sorted(set(intervals) | set(boundaries))

    if axis and axis[-1] != goal_due:
        axis.extend(get_interpolation_points(axis[-1], goal_due))

    return axis


def get_special_date_label(d: date, goal_start: date, goal_due: date, period: str) -> Optional[str]:
    """ "Start" / "End" for exact goal boundaries that are not period ends themselves."""
    if d == goal_start and d != get_end_of_period(goal_start, period):
        return "Start"
    if d == goal_due and d != get_end_of_period(goal_due, period):
        return "End"
    return None


def get_actual_value(
    d: date,
    today: date,
    goal_start: date,
    aggregated: Dict[date, float],
    latest_actual_value: Optional[float],
    period: str,
) -> Optional[float]:
    """
    Actual goal value for a grid date, or None.

    Only dates between the goal start and today carry actuals. A date in
    today's own week / month / year with no aggregated value shows the
    latest known value instead.
    """
    if d > today or d < goal_start:
        return None

    actual = aggregated.get(d)
    if actual is None and latest_actual_value is not None and is_same_period(d, today, period):
        actual = latest_actual_value
    return actual


# ============================================================
# SERIES ASSEMBLY
# ============================================================

def goal_daily_investment(goal: Goal, goal_start: date, goal_due: date) -> float:
    return calculate_daily_investment(
        goal.target_amount,
        goal.monthly_investment or 0.0,
        goal.target_return_rate or 0.0,
        goal_start,
        goal_due,
    )


def projected_goal_value_on(goal: Goal, on_date: date, today: Optional[date] = None) -> float:
    """Projected curve value on any date, grid point or not (0 before the goal starts)."""
    dates = resolve_goal_dates(goal, today)
    daily_investment = goal_daily_investment(goal, dates["goal_start"], dates["goal_due"])
    value = projected_value_by_date(
        0.0, daily_investment, goal.target_return_rate or 0.0, dates["goal_start"], on_date
    )
    return round(value, 2)


def assemble_goal_series(
    goal: Optional[Goal],
    period: str,
    allocations: Optional[Iterable[GoalAllocation]],
    valuations_by_account: Optional[Dict[str, pd.DataFrame]],
    today: Optional[date] = None,
) -> Tuple[List[ChartDataPoint], Optional[float]]:
    """
    Chart points plus the newest positive goal value (rounded), which may
    fall between grid points.
    """
    validate_period(period)
    if goal is None:
        return [], None

    today = today or date.today()
    dates = resolve_goal_dates(goal, today)
    goal_start = dates["goal_start"]
    goal_due = dates["goal_due"]

    # Actual curve
    details = build_allocation_details(allocations, goal.id, goal_start)
    values, latest_actual_value = build_goal_value_series(valuations_by_account, details)
    latest = round(latest_actual_value, 2) if latest_actual_value is not None else None

    axis = build_date_axis(goal_start, goal_due, period, today)
    if not axis:
        return [], latest

    aggregated = aggregate_valuations_by_period(values, axis, period)
    aggregated = apply_current_year_override(aggregated, latest_actual_value, period, today)

    # Projected curve (contributions only, no initial balance)
    annual_rate = goal.target_return_rate or 0.0
    daily_investment = goal_daily_investment(goal, goal_start, goal_due)
    projected = projected_values_for_dates(0.0, daily_investment, annual_rate, goal_start, axis)

    points = []
    for d, proj in zip(axis, projected):
        special_label = get_special_date_label(d, goal_start, goal_due, period)
        actual = get_actual_value(d, today, goal_start, aggregated, latest_actual_value, period)
        points.append(ChartDataPoint(
            date=d.isoformat(),
            date_label=format_date_label(d, period, special_label),
            projected=round(proj, 2),
            actual=round(actual, 2) if actual is not None else None,
        ))
    return points, latest


def build_goal_chart_data(
    goal: Optional[Goal],
    period: str,
    allocations: Optional[Iterable[GoalAllocation]],
    valuations_by_account: Optional[Dict[str, pd.DataFrame]],
    today: Optional[date] = None,
) -> List[ChartDataPoint]:
    """
    Projected-vs-actual chart points for a goal.

    Pure: same goal, period, allocations, valuations and `today` always give
    the same points. Output dates are strictly ascending.
    """
    points, _ = assemble_goal_series(goal, period, allocations, valuations_by_account, today)
    return points


# ============================================================
# FETCH ADAPTER
# ============================================================

def fetch_account_valuations(source, account_ids: List[str], start: date, end: date) -> Dict[str, pd.DataFrame]:
    """
    Fetch every account's valuation history concurrently.

    Each account lands in its own key; the first failing request propagates.
    """
    if not account_ids:
        return {}

    start_str, end_str = start.isoformat(), end.isoformat()
    workers = max(1, min(MAX_FETCH_WORKERS, len(account_ids)))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            account_id: pool.submit(source.fetch_historical_valuations, account_id, start_str, end_str)
            for account_id in account_ids
        }
        results = {}
        for account_id, future in futures.items():
            raw = future.result()
            results[account_id] = raw if isinstance(raw, pd.DataFrame) else valuations_to_frame(raw, account_id)
    return results


def compute_goal_valuation_history(
    goal: Optional[Goal],
    period: str = DEFAULT_TIME_PERIOD,
    source=None,
    today: Optional[date] = None,
) -> GoalValuationHistory:
    """
    Public entry point: fetch allocations and valuation histories for the
    goal's accounts, then assemble the chart series.

    A failing collaborator never raises here; the exception is returned in
    `error` alongside an empty series.
    """
    validate_period(period)
    if goal is None:
        return GoalValuationHistory()

    today = today or date.today()
    source = source or get_default_data_source()
    dates = resolve_goal_dates(goal, today)

    try:
        allocations = source.fetch_allocations()
        account_ids = allocated_account_ids(allocations, goal.id)
        valuations = fetch_account_valuations(source, account_ids, dates["fetch_start"], dates["fetch_end"])
    except Exception as e:
        print(f"[WARNING] Valuation history fetch failed for goal '{goal.id}': {e}")
        return GoalValuationHistory(chart_data=[], is_loading=False, error=e)

    chart_data, latest = assemble_goal_series(goal, period, allocations, valuations, today)
    return GoalValuationHistory(chart_data=chart_data, is_loading=False, error=None, latest_actual_value=latest)
