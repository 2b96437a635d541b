"""
consequence_notebook_apps.py

Dash/Plotly interactive application for consequence formulas.
This module provides a ready-to-use app for Jupyter notebooks.

Main components:
- create_consequence_app(): enter a formula, set its variables, and explore
  its postfix form, canonical CNF, consequence listing and Hasse diagram
"""

from dash import Dash, dcc, html, Input, Output, State as DashState, ALL
import plotly.graph_objects as go

from consequence_core import (
    FormulaError, SAMPLE_FORMULAS,
    analyze_formula, evaluate_formula,
)

from consequence_visualization import create_plotly_graph, create_truth_table_figure


# Hasse diagrams of larger consequence sets are not drawn
POSET_NODE_LIMIT = 256


# =============================================================================
# Helpers (no Dash objects involved, so they can be tested directly)
# =============================================================================

def parse_formula_input(text):
    """
    Analyze the text typed into the formula box.

    Returns:
        tuple of (FormulaAnalysis or None, error_message or None)
    """
    if text is None or not text.strip():
        return None, "No formula entered"
    try:
        return analyze_formula(text), None
    except FormulaError as e:
        return None, f"{e.kind}: {e}"


def assignment_from_values(ids, values):
    """
    Pair pattern-matching component ids with the selected values.

    Args:
        ids: list of {'type': 'var-value', 'index': variable} dicts
        values: list of selected values, same order as ids

    Returns:
        dict mapping variable -> value (unset selectors are skipped)
    """
    return {i['index']: v for i, v in zip(ids, values) if v is not None}


def evaluate_input(text, values):
    """Evaluate the formula box under the selected values, as a status line."""
    if text is None or not text.strip():
        return ""
    try:
        value = evaluate_formula(text, values)
    except FormulaError as e:
        return f"{e.kind}: {e}"
    return f"Meaning of the expression: {value}"


def describe_analysis(analysis):
    """Summarize an analysis as display strings keyed by panel name."""
    return {
        'postfix': analysis.postfix_string(),
        'variables': ", ".join(analysis.variables) or "(none)",
        'cnf': analysis.clause_set.to_string() or "(tautology: no clauses)",
        'count': f"{len(analysis.consequences)} consequence formulas",
        'listing': analysis.listing() or "(only the empty conjunction)",
    }


def create_empty_figure(message=""):
    fig = go.Figure()
    fig.update_layout(
        xaxis=dict(visible=False), yaxis=dict(visible=False),
        plot_bgcolor='white', height=300,
        annotations=[dict(text=message, showarrow=False, font=dict(size=12, color='gray'))]
    )
    return fig


def create_poset_figure(analysis):
    """Hasse diagram of the consequences, or a placeholder when there are too many."""
    if len(analysis.consequences) > POSET_NODE_LIMIT:
        return create_empty_figure(
            f"{len(analysis.consequences)} consequences: too many to draw (limit {POSET_NODE_LIMIT})")
    poset = analysis.poset(max_nodes=POSET_NODE_LIMIT).transitive_reduction()
    fig = create_plotly_graph(poset, title=f"Consequences of {analysis.text}")
    fig.update_layout(width=700, height=500)
    return fig


def create_variable_selectors(variables):
    """One 0/1 radio selector per variable, addressed by pattern-matching ids."""
    if not variables:
        return html.Div("No variables to set.",
                        style={'color': 'gray', 'fontStyle': 'italic', 'fontSize': '11px'})
    items = []
    for v in variables:
        items.append(html.Div([
            html.Label(f"{v} = ", style={'fontWeight': 'bold', 'marginRight': '4px', 'fontSize': '12px'}),
            dcc.RadioItems(
                id={'type': 'var-value', 'index': v},
                options=[{'label': ' 0', 'value': '0'}, {'label': ' 1', 'value': '1'}],
                value='0', inline=True,
                style={'display': 'inline-block', 'fontSize': '12px'}
            ),
        ], style={'display': 'inline-block', 'marginRight': '15px'}))
    return html.Div(items)


# =============================================================================
# Consequence Explorer App
# =============================================================================

def create_consequence_app(formulas=SAMPLE_FORMULAS):
    """
    Create the interactive consequence explorer Dash app.

    Features:
    - Pick a sample formula or type one (press Enter or click Analyze)
    - Postfix form, variable list and canonical CNF of the formula
    - 0/1 selectors for every variable with the evaluated result
    - Listing of all consequence formulas and their Hasse diagram
    - Truth table with the falsifying rows highlighted

    Args:
        formulas: sample formulas offered in the dropdown

    Returns:
        Dash app ready to run with app.run(jupyter_mode='inline', ...)
    """
    formulas = list(formulas)
    initial = formulas[0] if formulas else ""

    app = Dash(__name__)

    label_style = {'fontWeight': 'bold', 'fontSize': '11px', 'marginRight': '4px'}
    info_style = {'fontFamily': 'monospace', 'fontSize': '12px', 'marginBottom': '3px'}

    app.layout = html.Div([
        html.H4("Consequence Formula Explorer", style={'textAlign': 'center', 'marginBottom': '5px'}),

        html.Div([
            html.Label("Samples: ", style=label_style),
            dcc.Dropdown(
                id='sample-dropdown',
                options=[{'label': f, 'value': f} for f in formulas],
                value=initial or None, clearable=False,
                style={'width': '220px', 'display': 'inline-block', 'verticalAlign': 'middle'}
            ),
            html.Label("Formula: ", style={**label_style, 'marginLeft': '10px'}),
            dcc.Input(id='formula-input', type='text', value=initial, debounce=True,
                      style={'width': '260px', 'fontFamily': 'monospace'}),
            html.Button('Analyze', id='analyze-btn', n_clicks=0,
                        style={'backgroundColor': '#4CAF50', 'color': 'white',
                               'padding': '3px 8px', 'marginLeft': '5px', 'fontSize': '11px'}),
        ], style={'marginBottom': '6px'}),

        html.Div(id='status-msg', style={'fontSize': '11px', 'color': '#dc3545', 'marginBottom': '4px'}),

        html.Div([
            html.Div([html.Span("Postfix: ", style=label_style), html.Span(id='postfix-info')], style=info_style),
            html.Div([html.Span("Variables: ", style=label_style), html.Span(id='variables-info')], style=info_style),
            html.Div([html.Span("Canonical CNF: ", style=label_style), html.Span(id='cnf-info')], style=info_style),
        ], style={'padding': '4px', 'backgroundColor': '#f0f0f0', 'borderRadius': '4px', 'marginBottom': '6px'}),

        html.Div([
            html.Div(id='variable-selectors'),
            html.Div(id='value-output', style={'fontWeight': 'bold', 'fontSize': '12px', 'marginTop': '4px',
                                                'color': '#28a745'}),
        ], style={'marginBottom': '6px'}),

        html.Div([
            html.Span(id='consequence-count', style={'fontSize': '11px', 'fontWeight': 'bold'}),
            html.Pre(id='listing', style={
                'height': '100px', 'overflowY': 'auto', 'whiteSpace': 'pre-wrap',
                'border': '1px solid #ccc', 'borderRadius': '5px', 'padding': '5px',
                'backgroundColor': '#fafafa', 'fontSize': '11px'
            }),
        ]),

        html.Div([
            dcc.Graph(id='poset-graph', config={'displayModeBar': False},
                      style={'width': '60%', 'display': 'inline-block', 'verticalAlign': 'top'}),
            dcc.Graph(id='truth-table', config={'displayModeBar': False},
                      style={'width': '38%', 'display': 'inline-block', 'verticalAlign': 'top',
                             'marginLeft': '2%'}),
        ]),
    ])

    @app.callback(
        Output('formula-input', 'value'),
        Input('sample-dropdown', 'value'),
        prevent_initial_call=True
    )
    def pick_sample(sample):
        return sample or ""

    @app.callback(
        [Output('status-msg', 'children'), Output('postfix-info', 'children'),
         Output('variables-info', 'children'), Output('cnf-info', 'children'),
         Output('consequence-count', 'children'), Output('listing', 'children'),
         Output('variable-selectors', 'children'),
         Output('poset-graph', 'figure'), Output('truth-table', 'figure')],
        [Input('analyze-btn', 'n_clicks'), Input('formula-input', 'value')]
    )
    def update_analysis(n_clicks, text):
        analysis, error = parse_formula_input(text)
        if error:
            empty = create_empty_figure(error)
            return error, "", "", "", "", "", create_variable_selectors([]), empty, empty

        info = describe_analysis(analysis)
        return ("", info['postfix'], info['variables'], info['cnf'],
                info['count'], info['listing'],
                create_variable_selectors(analysis.variables),
                create_poset_figure(analysis), create_truth_table_figure(analysis))

    @app.callback(
        Output('value-output', 'children'),
        [Input({'type': 'var-value', 'index': ALL}, 'value')],
        [DashState({'type': 'var-value', 'index': ALL}, 'id'), DashState('formula-input', 'value')]
    )
    def update_value(values, ids, text):
        return evaluate_input(text, assignment_from_values(ids, values))

    return app
