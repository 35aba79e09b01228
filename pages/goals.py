from dash import dcc, html, callback, Input, Output
import dash_bootstrap_components as dbc
import dash_ag_grid as dag
import dash_wrappers as dw

layout = html.Div([
    dbc.Row([
        dbc.Col(dbc.Card([
            html.H5("Goals", className="card-title p-2"),
            html.Small(
                "Progress uses each goal's allocated share of its accounts' valuation history. "
                "Click a goal to open its detail page.",
                className="text-muted fst-italic px-2"
            ),
            dcc.Loading(html.Div(id='goals-table-container'))
        ]), width=12, className="mb-4"),
    ])
])

@callback(
    Output('goals-table-container', 'children'),
    [Input('data-signal', 'data'),
     Input('theme-store', 'data')]
)
def update_goals_table(signal, theme):
    try:
        df = dw.get_goals_summary()
    except Exception as e:
        print(f"Error loading goals: {e}")
        return dbc.Alert(f"Could not load goals: {e}", color="danger")

    if df.empty:
        return html.Div("No goals found.", className="text-muted p-3")

    df["Goal"] = df.apply(lambda r: f"[{r['Goal']}](/goals/{r['id']})", axis=1)

    column_defs = []
    for col in df.columns:
        if col == "id":
            continue
        col_def = {"field": col, "headerName": col, "flex": 1}
        if col == "Goal":
            col_def["cellRenderer"] = "markdown"
        column_defs.append(col_def)

    return dag.AgGrid(
        rowData=df.to_dict("records"),
        columnDefs=column_defs,
        className="ag-theme-alpine-dark" if theme == "dark" else "ag-theme-alpine",
        dashGridOptions={"domLayout": "autoHeight"},
        style={"height": None},
    )
