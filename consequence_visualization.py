"""
consequence_visualization.py

Plotly-based visualization for consequence posets and truth tables.

This module converts the NetworkX DiGraph of a ConsequencePoset into an
interactive Plotly figure (weakest consequence at the bottom, the full
canonical CNF at the top), draws truth tables, and exports posets to DOT
and CSV.
"""

import csv

import networkx as nx
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from consequence_core import FALSE, Clause


def create_plotly_graph(poset, layout='hierarchical', node_size=10, title=None):
    """
    Create an interactive Plotly visualization of a consequence poset.

    Nodes are colored by the number of clauses in their consequence.

    Args:
        poset: ConsequencePoset object (usually its transitive reduction)
        layout: Layout algorithm - 'hierarchical' or 'force'
        node_size: Base size for nodes (will be scaled by degree)
        title: Optional title for the graph

    Returns:
        plotly.graph_objects.Figure
    """
    G = poset.graph
    consequences = poset.consequence_list

    pos = compute_layout(G, layout)

    edge_trace = create_edge_trace(G, pos)
    node_trace = create_node_trace(G, consequences, pos, node_size)

    fig = go.Figure(data=[edge_trace, node_trace])

    fig.update_layout(
        title=dict(text=title or f"Consequence Poset ({len(consequences)} formulas)", font=dict(size=16)),
        showlegend=False,
        hovermode='closest',
        margin=dict(b=20, l=5, r=5, t=40),
        xaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        yaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        plot_bgcolor='white',
        width=1000,
        height=800
    )

    return fig


def compute_layout(G, layout_type):
    """
    Compute node positions based on layout algorithm.

    Args:
        G: NetworkX DiGraph
        layout_type: 'hierarchical' or 'force'

    Returns:
        dict mapping node_id -> (x, y) position
    """
    if layout_type == 'hierarchical':
        return hierarchical_layout(G)
    elif layout_type == 'force':
        return nx.spring_layout(G, k=0.5, iterations=50, seed=0)
    else:
        raise ValueError(f"Unknown layout type: {layout_type}")


def hierarchical_layout(G):
    """
    Create a hierarchical layout based on node levels.

    The level of a node is its longest path from a source, so every node is
    drawn above all of its predecessors (the weaker consequences).

    Args:
        G: NetworkX DiGraph

    Returns:
        dict mapping node_id -> (x, y) position
    """
    if G.number_of_nodes() == 0:
        return {}

    sources = [n for n in G.nodes() if G.in_degree(n) == 0]
    if not sources:
        return nx.spring_layout(G, k=0.5, iterations=50, seed=0)

    try:
        topo_order = list(nx.topological_sort(G))
    except nx.NetworkXUnfeasible:
        return nx.spring_layout(G, k=0.5, iterations=50, seed=0)

    levels = {}
    for node in topo_order:
        pred_levels = [levels[pred] for pred in G.predecessors(node)]
        levels[node] = max(pred_levels) + 1 if pred_levels else 0

    level_groups = {}
    for node, level in levels.items():
        level_groups.setdefault(level, []).append(node)

    pos = {}
    max_level = max(levels.values())

    for level, nodes in level_groups.items():
        y = level / max(max_level, 1)  # Normalize to [0, 1]
        n_nodes = len(nodes)

        for i, node in enumerate(sorted(nodes)):
            if n_nodes > 1:
                x = i / (n_nodes - 1)
            else:
                x = 0.5
            pos[node] = (x, y)

    return pos


def create_edge_trace(G, pos):
    """
    Create Plotly trace for edges.

    Args:
        G: NetworkX DiGraph
        pos: dict mapping node_id -> (x, y) position

    Returns:
        plotly.graph_objects.Scatter trace
    """
    edge_x = []
    edge_y = []

    for u, v in G.edges():
        x0, y0 = pos[u]
        x1, y1 = pos[v]
        edge_x.extend([x0, x1, None])
        edge_y.extend([y0, y1, None])

    return go.Scatter(
        x=edge_x,
        y=edge_y,
        line=dict(width=0.5, color='#888'),
        hoverinfo='none',
        mode='lines'
    )


def create_node_trace(G, consequences, pos, base_size):
    """
    Create Plotly trace for nodes with hover information.

    Args:
        G: NetworkX DiGraph
        consequences: list of Consequence, indexed by node id
        pos: dict mapping node_id -> (x, y) position
        base_size: Base node size

    Returns:
        plotly.graph_objects.Scatter trace
    """
    node_x = []
    node_y = []
    node_text = []
    node_color = []
    node_size = []

    for node in G.nodes():
        x, y = pos[node]
        node_x.append(x)
        node_y.append(y)

        consequence = consequences[node]
        node_text.append(create_hover_text(node, consequence, G))
        node_color.append(len(consequence))

        degree = G.in_degree(node) + G.out_degree(node)
        node_size.append(base_size + degree * 2)

    return go.Scatter(
        x=node_x,
        y=node_y,
        mode='markers',
        hoverinfo='text',
        text=node_text,
        customdata=list(G.nodes()),
        marker=dict(
            size=node_size,
            color=node_color,
            colorscale='Viridis',
            line=dict(width=1, color='white')
        )
    )


def create_hover_text(node_id, consequence, G):
    """
    Create hover text for a node.

    Returns:
        str: HTML-formatted hover text
    """
    selector = "".join(str(b) for b in consequence.selector) or "-"
    lines = [
        f"<b>Consequence {node_id}</b>",
        consequence.to_string() or "(empty conjunction)",
        "",
        f"Selector: {selector}",
        f"Clauses: {len(consequence)}",
        "",
        f"Weaker: {G.in_degree(node_id)}",
        f"Stronger: {G.out_degree(node_id)}",
    ]
    return "<br>".join(lines)


def create_comparison_figure(posets, titles=None, layout='hierarchical'):
    """
    Create a side-by-side comparison of several consequence posets.

    Args:
        posets: list of ConsequencePoset objects
        titles: list of titles for each poset
        layout: Layout algorithm to use

    Returns:
        plotly.graph_objects.Figure with subplots
    """
    n_posets = len(posets)
    if n_posets == 0:
        raise ValueError("Nothing to compare: no posets given")
    if titles is None:
        titles = [f"Poset {i+1}" for i in range(n_posets)]

    fig = make_subplots(
        rows=1,
        cols=n_posets,
        subplot_titles=titles,
        horizontal_spacing=0.05
    )

    for i, poset in enumerate(posets):
        G = poset.graph
        pos = compute_layout(G, layout)

        fig.add_trace(create_edge_trace(G, pos), row=1, col=i + 1)
        fig.add_trace(create_node_trace(G, poset.consequence_list, pos, 10), row=1, col=i + 1)

    fig.update_layout(
        showlegend=False,
        hovermode='closest',
        height=600,
        width=400 * n_posets
    )
    fig.update_xaxes(showgrid=False, zeroline=False, showticklabels=False)
    fig.update_yaxes(showgrid=False, zeroline=False, showticklabels=False)

    return fig


def create_truth_table_figure(analysis, title=None):
    """
    Draw the truth table of an analyzed formula.

    Falsifying rows are highlighted and show the clause they contribute to
    the canonical CNF.

    Args:
        analysis: FormulaAnalysis
        title: Optional title

    Returns:
        plotly.graph_objects.Figure holding a single go.Table
    """
    rows = analysis.truth_table()
    variables = list(analysis.variables)

    columns = [[str(row.bits[j]) for row in rows] for j in range(len(variables))]
    values = [row.value for row in rows]
    clauses = [Clause.from_bits(variables, row.bits).to_string() if row.value == FALSE else ""
               for row in rows]
    fill = ['#ffd6d6' if v == FALSE else 'white' for v in values]

    fig = go.Figure(data=[go.Table(
        header=dict(values=variables + [analysis.text, "Clause"],
                    fill_color='lightgray', align='center'),
        cells=dict(values=columns + [values, clauses],
                   fill_color=[fill] * (len(variables) + 2), align='center')
    )])
    fig.update_layout(
        title=dict(text=title or f"Truth table of {analysis.text}", font=dict(size=14)),
        margin=dict(b=10, l=10, r=10, t=40),
    )
    return fig


def export_to_dot(poset, filename=None):
    """
    Export poset to GraphViz DOT format.

    Args:
        poset: ConsequencePoset object
        filename: Optional filename to write to (if None, returns string)

    Returns:
        str: DOT format string (if filename is None)
    """
    G = poset.graph
    consequences = poset.consequence_list

    def label(node):
        return consequences[node].to_string() or "T"

    lines = ['digraph G {', '  rankdir = BT;']
    for node in G.nodes():
        lines.append(f'  n{node} [label="{label(node)}"];')
    for u, v in G.edges():
        lines.append(f'  n{u} -> n{v};')
    lines.append('}')

    dot_string = '\n'.join(lines)

    if filename:
        with open(filename, 'w') as f:
            f.write(dot_string)
        return None
    return dot_string


def export_to_csv(poset, filename):
    """
    Export the consequence list to CSV format.

    Args:
        poset: ConsequencePoset object
        filename: CSV filename to write to
    """
    with open(filename, 'w', newline='') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(['ID', 'Selector', 'Consequence', 'Clauses', 'Weaker', 'Stronger'])

        for i, consequence in enumerate(poset.consequence_list):
            writer.writerow([
                i,
                "".join(str(b) for b in consequence.selector),
                consequence.to_string(),
                len(consequence),
                poset.graph.in_degree(i),
                poset.graph.out_degree(i),
            ])
