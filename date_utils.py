import pandas as pd
from datetime import date, timedelta
from typing import List, Optional, Tuple

from config import DISPLAY_COUNTS, DAYS_PER_YEAR, DAYS_PER_MONTH, INTERPOLATION_MAX_GAP_DAYS
from goal_models import parse_iso_date, validate_period

# ============================================================
# PERIOD BOUNDARIES
# ============================================================
# Weeks run Sunday..Saturday.

def start_of_week(d: date) -> date:
    return d - timedelta(days=(d.weekday() + 1) % 7)


def end_of_week(d: date) -> date:
    return start_of_week(d) + timedelta(days=6)


def end_of_month(d: date) -> date:
    return (pd.Timestamp(d) + pd.offsets.MonthEnd(0)).date()


def end_of_year(d: date) -> date:
    return date(d.year, 12, 31)


def get_end_of_period(d: date, period: str) -> date:
    """Period-end date containing `d` ("years" and "all" both use year ends)."""
    validate_period(period)
    if period == "weeks":
        return end_of_week(d)
    if period == "months":
        return end_of_month(d)
    return end_of_year(d)


def shift_date(d: date, period: str, count: int) -> date:
    """Move `d` by `count` weeks / months / years (negative = backwards)."""
    if period == "weeks":
        offset = pd.DateOffset(weeks=count)
    elif period == "months":
        offset = pd.DateOffset(months=count)
    elif period == "years":
        offset = pd.DateOffset(years=count)
    else:
        raise ValueError(f"Cannot shift by period '{period}'")
    return (pd.Timestamp(d) + offset).date()


# ------------------------------------------------------------
# Display window
# ------------------------------------------------------------

def calculate_display_date_range(
    period: str,
    goal_start: date,
    goal_due: date,
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """
    Window of dates shown for a period.

    "all" spans the whole goal. The other periods are centered on today
    using DISPLAY_COUNTS (past, future) and then clamped to the goal's
    [start, due] range. A window whose start ends up after its end collapses
    to a single day at the start.
    """
    validate_period(period)
    today = today or date.today()

    if period == "all":
        return goal_start, goal_due

    past, future = DISPLAY_COUNTS[period]
    display_start = shift_date(today, period, -past)
    display_end = shift_date(today, period, future)

    if display_start < goal_start:
        display_start = goal_start
    if display_end > goal_due:
        display_end = goal_due
    if display_start > display_end:
        display_end = display_start

    return display_start, display_end


# ------------------------------------------------------------
# Period-end grid
# ------------------------------------------------------------

def generate_date_intervals(
    start: date,
    end: date,
    period: str,
    today: Optional[date] = None,
) -> List[date]:
    """
    Ascending period-end dates for every period touching [start, end].

    Windowed periods always reach at least today (a window that ended in the
    past is stretched forward); "all" honors `end` as given. The last
    period-end may fall after the effective end since it closes the period
    that contains it. A reversed window gives an empty list.
    """
    validate_period(period)
    today = today or date.today()

    if period == "all":
        effective_end = end
    else:
        effective_end = end if end > today else today

    if start > effective_end:
        return []

    if period == "weeks":
        intervals = []
        current = start_of_week(start)
        while current <= effective_end:
            intervals.append(current + timedelta(days=6))
            current += timedelta(days=7)
        return intervals

    if period == "months":
        month_starts = pd.date_range(start=date(start.year, start.month, 1), end=effective_end, freq="MS")
        return [(ts + pd.offsets.MonthEnd(0)).date() for ts in month_starts]

    # years / all
    return [date(y, 12, 31) for y in range(start.year, effective_end.year + 1)]


def get_interpolation_points(
    last_period_date: date,
    next_date: date,
    max_gap_days: int = INTERPOLATION_MAX_GAP_DAYS,
) -> List[date]:
    """
    Daily dates strictly between `last_period_date` and `next_date`.

    Gaps of `max_gap_days` or less are left alone (a short straight segment
    looks fine on the chart).
    """
    days_between = (next_date - last_period_date).days
    if days_between <= max_gap_days:
        return []
    return [last_period_date + timedelta(days=i) for i in range(1, days_between)]


def is_same_period(d: date, today: date, period: str) -> bool:
    validate_period(period)
    if period == "weeks":
        return start_of_week(d) == start_of_week(today)
    if period == "months":
        return (d.year, d.month) == (today.year, today.month)
    return d.year == today.year


# ------------------------------------------------------------
# Labels
# ------------------------------------------------------------

def format_date_label(d: date, period: str, special_label: Optional[str] = None) -> str:
    """
    Axis label for a grid date, e.g. "5 Jan" (weeks), "Jan '25" (months),
    "2025" (years / all). Boundary dates get "(Start)" / "(End)" on a second line.
    """
    validate_period(period)
    if period == "weeks":
        base = f"{d.day} {d.strftime('%b')}"
    elif period == "months":
        base = d.strftime("%b '%y")
    else:
        base = d.strftime("%Y")

    if special_label:
        return f"{base}\n({special_label})"
    return base


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit if n == 1 else unit + 's'}"


def format_time_remaining(due_date, today: Optional[date] = None) -> str:
    """Remaining time until `due_date`, e.g. "4 Years 2 Months" or "15 Days"."""
    if due_date is None or due_date == "":
        return "Not set"
    try:
        target = parse_iso_date(due_date)
    except ValueError:
        return "Invalid date"
    if target is None:
        return "Not set"

    today = today or date.today()
    if target < today:
        return "Overdue"

    days = (target - today).days
    years = days // DAYS_PER_YEAR
    months = (days % DAYS_PER_YEAR) // DAYS_PER_MONTH
    remaining_days = days % DAYS_PER_MONTH

    parts = []
    if years > 0:
        parts.append(_plural(years, "Year"))
    if months > 0:
        parts.append(_plural(months, "Month"))
    if remaining_days > 0 and years == 0 and months < 3:
        parts.append(_plural(remaining_days, "Day"))

    return " ".join(parts) if parts else "Less than a day"


def format_time_elapsed(start_date, today: Optional[date] = None) -> str:
    """Time since `start_date`, or "Starts in N Months/Days" for a future start."""
    if start_date is None or start_date == "":
        return "Not set"
    try:
        start = parse_iso_date(start_date)
    except ValueError:
        return "Invalid date"
    if start is None:
        return "Not set"

    today = today or date.today()

    if start > today:
        days = (start - today).days
        months = days // DAYS_PER_MONTH
        if months > 0:
            return f"Starts in {_plural(months, 'Month')}"
        return f"Starts in {_plural(days, 'Day')}"

    days = (today - start).days
    years = days // DAYS_PER_YEAR
    months = (days % DAYS_PER_YEAR) // DAYS_PER_MONTH

    parts = []
    if years > 0:
        parts.append(_plural(years, "Year"))
    if months > 0:
        parts.append(_plural(months, "Month"))

    return " ".join(parts) if parts else "Just started"
