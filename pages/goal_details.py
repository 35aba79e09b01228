from dash import dcc, html, callback, Input, Output
import dash_bootstrap_components as dbc
import dash_wrappers as dw
from components.data_source_badge import create_data_source_badge
from config import DEFAULT_TIME_PERIOD, VALUATION_API_URL

TIME_PERIOD_OPTIONS = [
    {"label": "Weeks", "value": "weeks"},
    {"label": "Months", "value": "months"},
    {"label": "Years", "value": "years"},
    {"label": "All", "value": "all"},
]

def create_kpi_card(title, value, subtext=None, accent="#4C6A92"):
    card_content = [
        html.Div(title, className="text-muted small mb-1", style={'fontSize': '0.75rem', 'fontWeight': '500'}),
        html.H4(value, className="mb-1", style={'fontWeight': '600', 'fontSize': '1.4rem'}),
        # Placeholder keeps card heights equal
        html.Div(subtext or " ", style={'fontSize': '0.8rem', 'fontWeight': '500', 'color': accent if subtext else 'transparent'}),
    ]
    return dbc.Card(
        dbc.CardBody(card_content, className="p-2"),
        className="shadow-sm",
        style={'borderLeft': f'4px solid {accent}', 'height': '100%'}
    )

layout = html.Div([
    dbc.Row([
        dbc.Col(html.H3(id='goal-title', className="mb-0"), width=8),
        dbc.Col(dbc.Button("Back to Goals", href="/goals", color="secondary", className="float-end"), width=4),
    ], className="mb-3"),

    dbc.Row([
        dbc.Col(html.Div(id='goal-kpi-target', style={'height': '100%'}), width=3),
        dbc.Col(html.Div(id='goal-kpi-current', style={'height': '100%'}), width=3),
        dbc.Col(html.Div(id='goal-kpi-remaining', style={'height': '100%'}), width=3),
        dbc.Col(html.Div(id='goal-kpi-status', style={'height': '100%'}), width=3),
    ], className="mb-4 g-2"),

    dbc.Row([
        dbc.Col(dbc.Card([
            dbc.CardBody([
                dbc.Row([
                    dbc.Col(html.H5("Projected vs Actual", className="card-title"), width=6),
                    dbc.Col(dbc.RadioItems(
                        id='goal-period-radio',
                        options=TIME_PERIOD_OPTIONS,
                        value=DEFAULT_TIME_PERIOD,
                        inline=True,
                        persistence=True,
                        persistence_type='local',
                        className="float-end"
                    ), width=6),
                ]),
                dcc.Loading(dcc.Graph(id='goal-valuation-chart', style={'height': '420px'})),
                html.Small(
                    "Projected line grows daily contributions so it reaches the target on the due date. "
                    "Actual line is the goal's allocated share of account valuations.",
                    className="text-muted fst-italic"
                )
            ])
        ]), width=12, className="mb-4"),
    ]),

    html.Hr(),
    html.Div([
        html.P("Data Source:", className="fw-bold mb-1", style={"display": "inline-block"}),
        html.Div(id="goal-data-source-container", style={"display": "inline-block"})
    ], className="mb-4")
])

@callback(
    [Output('goal-title', 'children'),
     Output('goal-kpi-target', 'children'),
     Output('goal-kpi-current', 'children'),
     Output('goal-kpi-remaining', 'children'),
     Output('goal-kpi-status', 'children'),
     Output('goal-valuation-chart', 'figure'),
     Output('goal-data-source-container', 'children')],
    [Input('url', 'pathname'),
     Input('goal-period-radio', 'value'),
     Input('theme-store', 'data'),
     Input('data-signal', 'data')]
)
def update_goal_details(pathname, period, theme, signal):
    goal_id = (pathname or "").rstrip("/").split("/")[-1]
    goal = dw.get_goal(goal_id)
    if goal is None:
        empty = html.Div()
        return "Goal not found", empty, empty, empty, empty, {}, empty

    history = dw.get_goal_history(goal, period or DEFAULT_TIME_PERIOD)
    kpis = dw.get_goal_kpis(history, goal)

    target_card = create_kpi_card("Target Amount", kpis["target"], f"Projected now {kpis['projected']}")
    current_card = create_kpi_card("Current Progress", kpis["current"], kpis["progress"], accent=kpis["status_color"])
    remaining_card = create_kpi_card("Time Remaining", kpis["time_remaining"], f"Elapsed: {kpis['time_elapsed']}")
    status_card = create_kpi_card("Status", kpis["status"], kpis["status_text"], accent=kpis["status_color"])

    fig = dw.get_goal_chart(history, goal, theme, is_on_track=kpis["is_on_track"])

    source_name = "Portfolio Service" if VALUATION_API_URL else "CSV Files"
    badge = create_data_source_badge(source_name, history.error, len(history.chart_data))

    return goal.title, target_card, current_card, remaining_card, status_card, fig, badge
