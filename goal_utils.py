from datetime import date
from typing import Optional

from config import ACTUAL_ON_TRACK_COLOR, ACTUAL_OFF_TRACK_COLOR, GLOBAL_PALETTE
from goal_engine import projected_goal_value_on
from goal_models import Goal, GoalValuationHistory


def is_goal_on_track(current_value: float, projected_value: float) -> bool:
    """On track when the actual value has kept up with the projection."""
    return current_value >= projected_value


def is_goal_scheduled(goal: Goal, today: Optional[date] = None) -> bool:
    """True for goals whose start date is still in the future."""
    if not goal.start_date:
        return False
    return goal.start_date > (today or date.today())


def get_goal_status(goal: Goal, is_on_track: bool, today: Optional[date] = None) -> dict:
    if goal.is_achieved:
        return {"text": "Done", "status_text": "Completed", "color": ACTUAL_ON_TRACK_COLOR}

    if is_goal_scheduled(goal, today):
        start = goal.start_date
        return {
            "text": "Scheduled",
            "status_text": f"Starts {start.strftime('%b')} {start.day}, {start.year}",
            "color": GLOBAL_PALETTE[1],
        }

    if is_on_track:
        return {"text": "On track", "status_text": "Ongoing", "color": ACTUAL_ON_TRACK_COLOR}

    return {"text": "Off track", "status_text": "Ongoing", "color": ACTUAL_OFF_TRACK_COLOR}


def get_goal_progress(history: GoalValuationHistory, goal: Goal, today: Optional[date] = None) -> dict:
    """
    Headline numbers for a goal.

    current_value   - newest known goal value (between grid points too);
                      last actual on the chart when the history has none
    projected_value - projected curve evaluated on today itself
    progress        - current_value as a percentage of the target
    """
    today = today or date.today()

    current_value = history.latest_actual_value
    if current_value is None:
        current_value = 0.0
        for point in history.chart_data:
            if point.actual is not None:
                current_value = point.actual

    projected_now = projected_goal_value_on(goal, today, today)

    progress = current_value / goal.target_amount * 100 if goal.target_amount > 0 else 0.0

    return {
        "current_value": current_value,
        "projected_value": projected_now,
        "progress": progress,
        "is_on_track": is_goal_on_track(current_value, projected_now),
    }
