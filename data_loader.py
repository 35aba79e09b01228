import os
from abc import ABC, abstractmethod
from typing import List, Optional

import pandas as pd
import requests

from config import (
    GOALS_FILE,
    ALLOCATIONS_FILE,
    VALUATIONS_FILE,
    VALUATION_API_URL,
    VALUATION_API_KEY,
    API_TIMEOUT_SECONDS,
    API_MAX_ATTEMPTS,
)
from goal_models import Goal, GoalAllocation, VALUATION_COLUMNS

# Upstream services speak camelCase
_VALUATION_RENAMES = {
    "accountId": "account_id",
    "valuationDate": "valuation_date",
    "totalValue": "total_value",
}


# ------------------------------------------------------------
# Valuation records -> DataFrame
# ------------------------------------------------------------

def _calendar_dates(values: pd.Series) -> pd.Series:
    # Drop any time part before parsing ("2024-03-01T00:00:00Z" style)
    return pd.to_datetime(values.astype(str).str.split("T").str[0])


def valuations_to_frame(records, account_id: Optional[str] = None) -> pd.DataFrame:
    """
    Convert valuation snapshots (list of dicts, camelCase or snake_case) into
    the account_id / valuation_date / total_value frame used by the engine.
    Order of the input does not matter; the result is sorted by date.
    """
    if records is None or len(records) == 0:
        return pd.DataFrame(columns=VALUATION_COLUMNS)

    df = pd.DataFrame(list(records)).rename(columns=_VALUATION_RENAMES)
    if "account_id" not in df.columns:
        df["account_id"] = account_id

    required = {"valuation_date", "total_value"}
    if not required.issubset(df.columns):
        raise ValueError(f"Valuation records must contain fields: {required}")

    df["account_id"] = df["account_id"].astype(str)
    df["valuation_date"] = _calendar_dates(df["valuation_date"])
    df["total_value"] = df["total_value"].astype(float)

    df = df[VALUATION_COLUMNS].sort_values("valuation_date").reset_index(drop=True)
    return df


# ------------------------------------------------------------
# CSV loaders
# ------------------------------------------------------------

def _read_csv(path: str) -> pd.DataFrame:
    df = pd.read_csv(path)
    df.columns = [c.strip().lower() for c in df.columns]
    return df


def _records(df: pd.DataFrame) -> List[dict]:
    # NaN -> None so optional fields read as missing
    return df.astype(object).where(pd.notna(df), None).to_dict("records")


def load_goals(path: str = GOALS_FILE) -> List[Goal]:
    df = _read_csv(path)

    required = {"id", "title", "target_amount"}
    if not required.issubset(df.columns):
        raise ValueError(f"Goals must contain columns: {required}")

    return [Goal.from_record(r) for r in _records(df)]


def load_allocations(path: str = ALLOCATIONS_FILE) -> List[GoalAllocation]:
    df = _read_csv(path)

    required = {"goal_id", "account_id", "allocated_percent"}
    if not required.issubset(df.columns):
        raise ValueError(f"Goal allocations must contain columns: {required}")

    return [GoalAllocation.from_record(r) for r in _records(df)]


def load_account_valuations(path: str = VALUATIONS_FILE) -> pd.DataFrame:
    """All accounts' valuation snapshots from one CSV (account_id, valuation_date, total_value)."""
    df = _read_csv(path)

    required = set(VALUATION_COLUMNS)
    if not required.issubset(df.columns):
        raise ValueError(f"Account valuations must contain columns: {required}")

    df["account_id"] = df["account_id"].astype(str)
    df["valuation_date"] = _calendar_dates(df["valuation_date"])
    df["total_value"] = df["total_value"].astype(float)

    bad = df["total_value"].isna()
    if bad.any():
        print(f"[WARNING] Skipping {int(bad.sum())} valuation rows without a total value.")
        df = df[~bad]

    return df.sort_values(["account_id", "valuation_date"]).reset_index(drop=True)


# ============================================================
# DATA SOURCES
# ============================================================

class GoalDataSource(ABC):
    """Collaborator the goal engine reads from."""

    @abstractmethod
    def fetch_goals(self) -> List[Goal]:
        pass

    @abstractmethod
    def fetch_allocations(self) -> List[GoalAllocation]:
        pass

    @abstractmethod
    def fetch_historical_valuations(self, account_id: str, start_date: str, end_date: str) -> pd.DataFrame:
        """Snapshots for one account with start_date <= valuation_date <= end_date (ISO dates)."""
        pass


class CsvGoalDataSource(GoalDataSource):
    """Reads goals, allocations and valuations from local CSV files on every call."""

    def __init__(
        self,
        goals_path: str = GOALS_FILE,
        allocations_path: str = ALLOCATIONS_FILE,
        valuations_path: str = VALUATIONS_FILE,
    ):
        self.goals_path = goals_path
        self.allocations_path = allocations_path
        self.valuations_path = valuations_path

    def fetch_goals(self) -> List[Goal]:
        return load_goals(self.goals_path)

    def fetch_allocations(self) -> List[GoalAllocation]:
        return load_allocations(self.allocations_path)

    def fetch_historical_valuations(self, account_id: str, start_date: str, end_date: str) -> pd.DataFrame:
        if not os.path.exists(self.valuations_path):
            print(f"[WARNING] Valuations file not found: {self.valuations_path}")
            return pd.DataFrame(columns=VALUATION_COLUMNS)

        df = load_account_valuations(self.valuations_path)
        start, end = pd.Timestamp(start_date), pd.Timestamp(end_date)
        mask = (
            (df["account_id"] == str(account_id))
            & (df["valuation_date"] >= start)
            & (df["valuation_date"] <= end)
        )
        out = df[mask].reset_index(drop=True)
        if out.empty:
            print(f"[WARNING] No valuation history for account '{account_id}' between {start_date} and {end_date}.")
        return out


class ApiGoalDataSource(GoalDataSource):
    """
    JSON-over-HTTP client for the portfolio service:

      GET {base}/goals
      GET {base}/goals/allocations
      GET {base}/accounts/{id}/valuations?startDate=...&endDate=...

    Requests are retried up to API_MAX_ATTEMPTS times. A 404 on an
    account's valuations means the account has no history.
    """

    def __init__(self, base_url: str = VALUATION_API_URL, api_key: Optional[str] = VALUATION_API_KEY,
                 timeout: float = API_TIMEOUT_SECONDS):
        if not base_url:
            raise ValueError("ApiGoalDataSource requires a base URL (set VALUATION_API_URL).")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _get(self, path: str, params: Optional[dict] = None, missing_ok: bool = False):
        url = f"{self.base_url}{path}"
        params = dict(params or {})
        if self.api_key:
            params["apikey"] = self.api_key

        last_error = None
        for attempt in range(API_MAX_ATTEMPTS):
            try:
                resp = requests.get(url, params=params, timeout=self.timeout)
                if missing_ok and resp.status_code == 404:
                    return None
                resp.raise_for_status()
                return resp.json()
            except requests.RequestException as e:
                last_error = e
                print(f"[WARNING] GET {path} failed (attempt {attempt + 1}/{API_MAX_ATTEMPTS}): {e}")

        raise RuntimeError(f"Portfolio service request failed after {API_MAX_ATTEMPTS} attempts: {path}") from last_error

    def fetch_goals(self) -> List[Goal]:
        return [Goal.from_record(r) for r in self._get("/goals") or []]

    def fetch_allocations(self) -> List[GoalAllocation]:
        return [GoalAllocation.from_record(r) for r in self._get("/goals/allocations") or []]

    def fetch_historical_valuations(self, account_id: str, start_date: str, end_date: str) -> pd.DataFrame:
        data = self._get(
            f"/accounts/{account_id}/valuations",
            params={"startDate": start_date, "endDate": end_date},
            missing_ok=True,
        )
        if not data:
            print(f"[WARNING] No valuation history for account '{account_id}'.")
        return valuations_to_frame(data, account_id)


def get_default_data_source() -> GoalDataSource:
    """HTTP service when VALUATION_API_URL is configured, local CSV files otherwise."""
    if VALUATION_API_URL:
        return ApiGoalDataSource()
    return CsvGoalDataSource()
