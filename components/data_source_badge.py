import dash_bootstrap_components as dbc
from dash import html

def create_data_source_badge(source_name, error=None, point_count=0):
    """
    Badge describing where the goal chart data came from.
    source_name: "Portfolio Service" | "CSV Files"
    error: exception returned by the valuation history fetch, if any
    """
    if error is not None:
        label = "Data Error"
        color = "danger"
        header = "Valuation history could not be loaded."
        detail = str(error)
    elif point_count == 0:
        label = "No Data"
        color = "warning"
        header = "No chart points for this goal yet."
        detail = None
    else:
        label = source_name
        color = "success"
        header = f"Valuation history loaded from {source_name}."
        detail = f"{point_count} chart points"

    tooltip_content = html.Div([
        html.P(header, className="mb-2 fw-bold"),
        html.P(detail, className="small mb-0") if detail else None,
    ], style={"textAlign": "left", "padding": "5px"})

    badge = dbc.Badge(
        label,
        color=color,
        pill=True,
        id="data-source-badge",
        style={"cursor": "pointer", "fontSize": "0.8rem"}
    )

    return html.Div([
        badge,
        dbc.Tooltip(
            tooltip_content,
            target="data-source-badge",
            placement="bottom",
            className="source-tooltip"
        )
    ], style={"display": "inline-block", "marginLeft": "10px"})
