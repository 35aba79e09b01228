from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Optional, List

import pandas as pd

from config import TIME_PERIODS

VALUATION_COLUMNS = ["account_id", "valuation_date", "total_value"]


# ============================================================
# PARSING HELPERS
# ============================================================

def parse_iso_date(value) -> Optional[date]:
    """
    Normalize an upstream date value to a calendar date.

    Accepts date / datetime / pd.Timestamp objects and ISO strings with or
    without a time part ("2024-03-01" or "2024-03-01T10:00:00Z").
    Empty values (None, "", NaN) return None. Anything else that cannot be
    parsed raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text.split("T")[0])


def _pick(record: dict, *keys, default=None):
    """First non-empty value among camelCase / snake_case spellings."""
    for k in keys:
        if k in record:
            v = record[k]
            if v is None or (isinstance(v, float) and pd.isna(v)):
                continue
            return v
    return default


def validate_period(period: str) -> str:
    if period not in TIME_PERIODS:
        raise ValueError(
            f"Unknown time period: '{period}'. Choose from: {list(TIME_PERIODS)}"
        )
    return period


# ============================================================
# DOMAIN RECORDS
# ============================================================

@dataclass
class Goal:
    id: str
    title: str
    target_amount: float
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    monthly_investment: float = 0.0
    target_return_rate: float = 0.0     # percent per year, e.g. 7 for 7%
    is_achieved: bool = False

    @classmethod
    def from_record(cls, record: dict) -> "Goal":
        achieved = _pick(record, "isAchieved", "is_achieved", default=False)
        if isinstance(achieved, str):
            achieved = achieved.strip().lower() in ("1", "true", "yes")
        return cls(
            id=str(_pick(record, "id")),
            title=str(_pick(record, "title", default="")),
            target_amount=float(_pick(record, "targetAmount", "target_amount", default=0.0)),
            start_date=parse_iso_date(_pick(record, "startDate", "start_date")),
            due_date=parse_iso_date(_pick(record, "dueDate", "due_date")),
            monthly_investment=float(_pick(record, "monthlyInvestment", "monthly_investment", default=0.0)),
            target_return_rate=float(_pick(record, "targetReturnRate", "target_return_rate", default=0.0)),
            is_achieved=bool(achieved),
        )


@dataclass
class GoalAllocation:
    goal_id: str
    account_id: str
    allocated_percent: float               # 0-100 share of the account
    initial_contribution: float = 0.0      # value already in the goal at allocation time
    allocation_date: Optional[date] = None # baseline for growth; goal start if absent
    id: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict) -> "GoalAllocation":
        alloc_id = _pick(record, "id")
        return cls(
            id=str(alloc_id) if alloc_id is not None else None,
            goal_id=str(_pick(record, "goalId", "goal_id")),
            account_id=str(_pick(record, "accountId", "account_id")),
            allocated_percent=float(_pick(record, "allocatedPercent", "allocated_percent", default=0.0)),
            initial_contribution=float(_pick(record, "initialContribution", "initial_contribution", default=0.0)),
            allocation_date=parse_iso_date(_pick(record, "allocationDate", "allocation_date")),
        )


@dataclass
class ChartDataPoint:
    date: str                       # yyyy-mm-dd
    date_label: str
    projected: float
    actual: Optional[float] = None  # None means no data, not zero

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "dateLabel": self.date_label,
            "projected": self.projected,
            "actual": self.actual,
        }


@dataclass
class GoalValuationHistory:
    chart_data: List[ChartDataPoint] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[Exception] = None
    latest_actual_value: Optional[float] = None  # newest positive goal value, grid or not

    def to_frame(self) -> pd.DataFrame:
        """Chart data as a DataFrame indexed by date (empty frame when no points)."""
        if not self.chart_data:
            return pd.DataFrame(columns=["date_label", "projected", "actual"])
        df = pd.DataFrame([asdict(p) for p in self.chart_data])
        df["date"] = pd.to_datetime(df["date"])
        return df.set_index("date")
