from datetime import date

import pytest

from goal_engine import (
    build_date_axis,
    build_goal_chart_data,
    compute_goal_valuation_history,
    fetch_account_valuations,
    get_special_date_label,
    resolve_goal_dates,
)
from goal_models import Goal, GoalAllocation
from conftest import TODAY, FakeGoalSource, make_valuations


def _points_by_date(points):
    return {p.date: p for p in points}


# ============================================================
# Goal dates / axis
# ============================================================

def test_missing_goal_dates_default_around_today():
    goal = Goal(id="g", title="Open", target_amount=1000)
    dates = resolve_goal_dates(goal, TODAY)
    assert dates["goal_start"] == date(2025, 10, 19)
    assert dates["goal_due"] == date(2027, 10, 19)
    assert dates["fetch_start"] == date(2025, 10, 19)
    assert dates["fetch_end"] == date(2028, 10, 19)


def test_future_start_fetches_from_today():
    goal = Goal(id="g", title="Later", target_amount=1000,
                start_date=date(2027, 1, 1), due_date=date(2028, 1, 1))
    assert resolve_goal_dates(goal, TODAY)["fetch_start"] == TODAY


def test_month_axis_includes_goal_boundaries():
    axis = build_date_axis(date(2025, 10, 19), date(2027, 10, 19), "months", TODAY)
    assert len(axis) == 27
    assert axis[0] == date(2025, 10, 19)
    assert date(2027, 10, 19) in axis
    assert axis[-1] == date(2027, 10, 31)


def test_axis_is_filled_daily_up_to_due_date():
    axis = build_date_axis(date(2025, 1, 1), date(2028, 1, 10), "months", TODAY)
    assert axis[-1] == date(2028, 1, 9)
    assert date(2027, 11, 1) in axis
    assert date(2027, 10, 31) in axis
    assert all(a < b for a, b in zip(axis, axis[1:]))


def test_special_labels_only_for_off_grid_boundaries():
    start, due = date(2025, 10, 19), date(2027, 10, 31)
    assert get_special_date_label(start, start, due, "months") == "Start"
    assert get_special_date_label(due, start, due, "months") is None
    assert get_special_date_label(due, start, due, "weeks") == "End"
    assert get_special_date_label(date(2026, 1, 31), start, due, "months") is None


# ============================================================
# Series assembly
# ============================================================

def test_flat_scenario_projection_hits_target(flat_goal, flat_source):
    history = compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY)
    assert history.error is None
    assert not history.is_loading
    assert history.latest_actual_value == 6000

    points = _points_by_date(history.chart_data)
    due = points["2027-10-19"]
    assert due.projected == pytest.approx(12000, abs=0.01)
    assert due.date_label == "Oct '27\n(End)"
    assert points["2025-10-19"].projected == 0
    assert points["2025-10-19"].date_label == "Oct '25\n(Start)"


def test_flat_scenario_actuals_stop_at_today(flat_goal, flat_source):
    points = compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY).chart_data

    with_actual = [p for p in points if p.actual is not None]
    assert with_actual
    assert all(p.actual == 6000 for p in with_actual)
    assert all(p.date <= TODAY.isoformat() for p in with_actual)
    assert all(p.date >= "2025-10-19" for p in with_actual)
    assert with_actual[-1].date == "2026-09-30"


def test_flat_scenario_fetch_window(flat_goal, flat_source):
    compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY)
    assert flat_source.requests == [("acc-1", "2025-10-19", "2028-10-19")]


def test_output_dates_strictly_ascending(flat_goal, flat_source):
    for period in ("weeks", "months", "years", "all"):
        points = compute_goal_valuation_history(flat_goal, period, source=flat_source, today=TODAY).chart_data
        dates = [p.date for p in points]
        assert dates == sorted(set(dates))


def test_same_inputs_give_same_points(flat_goal, flat_source):
    first = compute_goal_valuation_history(flat_goal, "weeks", source=flat_source, today=TODAY).chart_data
    second = compute_goal_valuation_history(flat_goal, "weeks", source=flat_source, today=TODAY).chart_data
    assert first == second


def test_zero_percent_allocation_has_no_effect(flat_goal, flat_source):
    baseline = compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY).chart_data

    flat_source.allocations.append(
        GoalAllocation(goal_id="g1", account_id="acc-2", allocated_percent=0, initial_contribution=9999)
    )
    flat_source.valuations["acc-2"] = make_valuations("acc-2", [("2025-11-01", 50000), ("2026-05-01", 90000)])

    with_zero = compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY).chart_data
    assert with_zero == baseline
    assert all(account_id != "acc-2" for account_id, _, _ in flat_source.requests)


def test_allocations_for_other_goals_are_ignored(flat_goal, flat_source):
    baseline = compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY).chart_data
    flat_source.allocations.append(
        GoalAllocation(goal_id="other", account_id="acc-9", allocated_percent=100, initial_contribution=5000)
    )
    assert compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY).chart_data == baseline


def test_future_start_goal_has_no_actuals():
    goal = Goal(id="g", title="Later", target_amount=5000, start_date=date(2027, 1, 1),
                due_date=date(2028, 1, 1), monthly_investment=400, target_return_rate=4)
    source = FakeGoalSource(
        allocations=[GoalAllocation(goal_id="g", account_id="acc-1", allocated_percent=100, initial_contribution=100)],
        valuations={"acc-1": make_valuations("acc-1", [("2026-10-01", 1000)])},
    )
    history = compute_goal_valuation_history(goal, "months", source=source, today=TODAY)

    assert history.chart_data
    assert all(p.actual is None for p in history.chart_data)
    assert history.chart_data[0].date == "2027-01-01"
    assert history.chart_data[0].projected == 0
    assert history.chart_data[-1].date == "2027-12-31"
    assert history.chart_data[-1].projected < 5000
    assert source.requests[0][1] == TODAY.isoformat()


def test_month_end_steps_hold_last_valuation():
    goal = Goal(id="g", title="Car", target_amount=20000, start_date=date(2026, 1, 1),
                due_date=date(2027, 12, 31), monthly_investment=500, target_return_rate=5)
    source = FakeGoalSource(
        allocations=[GoalAllocation(goal_id="g", account_id="acc-1", allocated_percent=100, initial_contribution=100)],
        valuations={"acc-1": make_valuations("acc-1", [("2026-01-01", 1000), ("2026-08-30", 1400), ("2026-09-02", 1600)])},
    )
    points = _points_by_date(compute_goal_valuation_history(goal, "months", source=source, today=TODAY).chart_data)

    assert points["2026-01-01"].actual == 100
    assert points["2026-07-31"].actual == 100
    assert points["2026-08-31"].actual == 500
    assert points["2026-09-30"].actual == 700
    assert points["2026-10-31"].actual is None


def test_current_month_falls_back_to_latest_value():
    goal = Goal(id="g", title="New", target_amount=3000, start_date=date(2026, 10, 5),
                due_date=date(2027, 10, 5), monthly_investment=250)
    source = FakeGoalSource(
        allocations=[GoalAllocation(goal_id="g", account_id="acc-1", allocated_percent=100, initial_contribution=500)],
        valuations={"acc-1": make_valuations("acc-1", [("2026-10-10", 2000)])},
    )
    points = compute_goal_valuation_history(goal, "months", source=source, today=TODAY).chart_data

    start = points[0]
    assert start.date == "2026-10-05"
    assert start.date_label == "Oct '26\n(Start)"
    assert start.actual == 500
    assert all(p.actual is None for p in points[1:])


def test_account_without_history_still_adds_its_contribution(flat_goal, flat_source):
    flat_source.allocations.append(
        GoalAllocation(goal_id="g1", account_id="acc-empty", allocated_percent=50, initial_contribution=1000)
    )
    points = compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY).chart_data
    actuals = {p.actual for p in points if p.actual is not None}
    assert actuals == {7000}


def test_yearly_view_uses_year_end_values(flat_goal, flat_source):
    points = _points_by_date(compute_goal_valuation_history(flat_goal, "years", source=flat_source, today=TODAY).chart_data)
    assert points["2025-12-31"].actual == 6000
    assert points["2025-12-31"].date_label == "2025"
    assert points["2026-12-31"].actual is None


def test_camel_case_valuation_records_are_accepted(flat_goal):
    class ListSource(FakeGoalSource):
        def fetch_historical_valuations(self, account_id, start_date, end_date):
            return [
                {"accountId": account_id, "valuationDate": "2026-02-01T00:00:00Z", "totalValue": 1500},
                {"accountId": account_id, "valuationDate": "2025-10-19T00:00:00Z", "totalValue": 1000},
            ]

    source = ListSource(allocations=[GoalAllocation(goal_id="g1", account_id="acc-1", allocated_percent=50)])
    points = _points_by_date(compute_goal_valuation_history(flat_goal, "months", source=source, today=TODAY).chart_data)
    assert points["2026-01-31"].actual is None
    assert points["2026-02-28"].actual == 250


# ============================================================
# Failure handling
# ============================================================

def test_absent_goal_gives_empty_history(flat_source):
    history = compute_goal_valuation_history(None, "months", source=flat_source, today=TODAY)
    assert history.chart_data == []
    assert history.error is None
    assert flat_source.requests == []
    assert build_goal_chart_data(None, "months", [], {}, TODAY) == []


def test_allocation_failure_is_reported(flat_goal):
    boom = RuntimeError("allocations down")
    history = compute_goal_valuation_history(
        flat_goal, "months", source=FakeGoalSource(allocations_error=boom), today=TODAY
    )
    assert history.error is boom
    assert history.chart_data == []
    assert history.latest_actual_value is None
    assert not history.is_loading


def test_valuation_failure_is_reported(flat_goal, flat_source):
    flat_source.valuations_error = ConnectionError("timeout")
    history = compute_goal_valuation_history(flat_goal, "months", source=flat_source, today=TODAY)
    assert isinstance(history.error, ConnectionError)
    assert history.chart_data == []


def test_unknown_period_is_rejected(flat_goal, flat_source):
    with pytest.raises(ValueError):
        compute_goal_valuation_history(flat_goal, "days", source=flat_source, today=TODAY)


def test_fetch_requests_every_account_once():
    source = FakeGoalSource(valuations={"a": make_valuations("a", [("2026-01-01", 10)])})
    results = fetch_account_valuations(source, ["a", "b", "c"], date(2026, 1, 1), date(2026, 12, 31))
    assert set(results) == {"a", "b", "c"}
    assert sorted(r[0] for r in source.requests) == ["a", "b", "c"]
    assert all(r[1:] == ("2026-01-01", "2026-12-31") for r in source.requests)
    assert results["b"].empty
    assert fetch_account_valuations(source, [], date(2026, 1, 1), date(2026, 12, 31)) == {}
