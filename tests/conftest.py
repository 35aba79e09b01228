import threading
from datetime import date

import pandas as pd
import pytest

from data_loader import GoalDataSource, valuations_to_frame
from goal_models import Goal, GoalAllocation

TODAY = date(2026, 10, 19)


def make_valuations(account_id, points):
    """points: iterable of (iso_date, value)."""
    return valuations_to_frame(
        [{"valuationDate": d, "totalValue": v} for d, v in points], account_id
    )


class FakeGoalSource(GoalDataSource):
    """In-memory collaborator; records every valuation request."""

    def __init__(self, goals=None, allocations=None, valuations=None,
                 allocations_error=None, valuations_error=None):
        self.goals = goals or []
        self.allocations = allocations or []
        self.valuations = valuations or {}
        self.allocations_error = allocations_error
        self.valuations_error = valuations_error
        self.requests = []
        self._lock = threading.Lock()

    def fetch_goals(self):
        return list(self.goals)

    def fetch_allocations(self):
        if self.allocations_error:
            raise self.allocations_error
        return list(self.allocations)

    def fetch_historical_valuations(self, account_id, start_date, end_date):
        with self._lock:
            self.requests.append((account_id, start_date, end_date))
        if self.valuations_error:
            raise self.valuations_error
        frame = self.valuations.get(account_id)
        if frame is None:
            return pd.DataFrame(columns=["account_id", "valuation_date", "total_value"])
        return frame


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def flat_goal():
    return Goal(
        id="g1",
        title="Emergency Fund",
        target_amount=12000,
        start_date=date(2025, 10, 19),
        due_date=date(2027, 10, 19),
        monthly_investment=1000,
        target_return_rate=0,
    )


@pytest.fixture
def flat_source():
    """One account fully allocated, worth 6000 on the 19th of every month."""
    months = [(2025, 10), (2025, 11), (2025, 12)] + [(2026, m) for m in range(1, 11)]
    points = [(f"{y}-{m:02d}-19", 6000.0) for y, m in months]
    return FakeGoalSource(
        allocations=[GoalAllocation(goal_id="g1", account_id="acc-1", allocated_percent=100, initial_contribution=6000)],
        valuations={"acc-1": make_valuations("acc-1", points)},
    )
