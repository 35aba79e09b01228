import pandas as pd
import plotly.graph_objects as go
from datetime import date

from data_loader import get_default_data_source
from date_utils import format_time_remaining, format_time_elapsed
from goal_engine import compute_goal_valuation_history
from goal_models import GoalValuationHistory
from goal_utils import get_goal_progress, get_goal_status
from report_formatting import fmt_dollar_clean, fmt_pct_clean
from config import PROJECTED_COLOR, ACTUAL_ON_TRACK_COLOR, ACTUAL_OFF_TRACK_COLOR, DEFAULT_TIME_PERIOD

# ============================================================
# DATA ACCESS
# ============================================================
# Nothing is cached between requests: every callback reads fresh
# goals / allocations / valuations from the configured source.

def get_goals(source=None):
    source = source or get_default_data_source()
    return source.fetch_goals()


def get_goal(goal_id, source=None):
    for goal in get_goals(source):
        if goal.id == str(goal_id):
            return goal
    return None


def get_goal_history(goal, period=DEFAULT_TIME_PERIOD, source=None, today=None) -> GoalValuationHistory:
    return compute_goal_valuation_history(goal, period, source=source, today=today)


# ============================================================
# CHARTS
# ============================================================

def get_goal_chart(history: GoalValuationHistory, goal, theme="light", is_on_track=True):
    """
    Projected vs actual area chart for a goal.
    Actual gaps (no data) stay as gaps; the target is drawn as a dotted line.
    """
    df = history.to_frame()
    if df.empty:
        return go.Figure()

    actual_color = ACTUAL_ON_TRACK_COLOR if is_on_track else ACTUAL_OFF_TRACK_COLOR
    labels = df["date_label"].str.replace("\n", "<br>")

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=df.index, y=df["projected"],
        mode="lines",
        name="Projected",
        line=dict(color=PROJECTED_COLOR, width=2, dash="dash"),
        fill="tozeroy",
        customdata=labels,
        hovertemplate="<b>%{customdata}</b><br>Projected: %{y:$,.2f}<extra></extra>"
    ))

    actual = pd.to_numeric(df["actual"], errors="coerce")
    fig.add_trace(go.Scatter(
        x=df.index, y=actual,
        mode="lines+markers",
        name="Actual",
        line=dict(color=actual_color, width=2),
        fill="tozeroy",
        connectgaps=False,
        customdata=labels,
        hovertemplate="<b>%{customdata}</b><br>Actual: %{y:$,.2f}<extra></extra>"
    ))

    if goal is not None and goal.target_amount > 0:
        fig.add_hline(
            y=goal.target_amount,
            line=dict(color=PROJECTED_COLOR, width=1, dash="dot"),
            annotation_text=f"Target {fmt_dollar_clean(goal.target_amount)}",
            annotation_position="top left",
        )

    fig.update_layout(
        xaxis_title="Date",
        yaxis_title="Goal Value ($)",
        template="plotly_white" if theme == "light" else "plotly_dark",
        hovermode="x unified",
        margin=dict(l=40, r=40, t=40, b=40),
    )
    return fig


# ============================================================
# SUMMARIES
# ============================================================

def get_goal_kpis(history: GoalValuationHistory, goal, today=None) -> dict:
    """Formatted headline numbers for the goal detail page."""
    today = today or date.today()
    progress = get_goal_progress(history, goal, today)
    status = get_goal_status(goal, progress["is_on_track"], today)

    return {
        "target": fmt_dollar_clean(goal.target_amount),
        "current": fmt_dollar_clean(progress["current_value"]),
        "projected": fmt_dollar_clean(progress["projected_value"]),
        "progress": fmt_pct_clean(progress["progress"]),
        "time_remaining": format_time_remaining(goal.due_date, today),
        "time_elapsed": format_time_elapsed(goal.start_date, today),
        "status": status["text"],
        "status_text": status["status_text"],
        "status_color": status["color"],
        "is_on_track": progress["is_on_track"],
    }


def get_goals_summary(source=None, today=None) -> pd.DataFrame:
    """One row per goal for the goals list grid."""
    source = source or get_default_data_source()
    today = today or date.today()

    rows = []
    for goal in source.fetch_goals():
        history = compute_goal_valuation_history(goal, "all", source=source, today=today)
        kpis = get_goal_kpis(history, goal, today)
        rows.append({
            "Goal": goal.title,
            "Target": kpis["target"],
            "Current": kpis["current"],
            "Progress": kpis["progress"],
            "Status": kpis["status"],
            "Time Remaining": kpis["time_remaining"],
            "id": goal.id,
        })
    return pd.DataFrame(rows)
