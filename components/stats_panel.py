"""
Statistics panel component for the flood-mapping dashboard.
Summarizes the selected area: barangays covered, exposed households and
their members, and schools inside the selection.
"""
import streamlit as st
import pandas as pd

from utils.coordinator import LocationCascadeCoordinator
from utils.data_loader import properties_frame
from utils.feature_matcher import match

# Household member columns, summed for the exposed population figures
POPULATION_COLUMNS = ['MALE', 'FEMALE', 'INFANT', 'CHILD', 'ADULT', 'ELDERLY']


def calculate_selection_stats(coordinator: LocationCascadeCoordinator) -> dict:
    """
    Calculate summary statistics for the current selection.

    Domain counts cover every barangay in the highlighted area, whether or
    not the domain toggle is on.
    """
    matched = coordinator.matched
    matched_barangays = {
        (f['properties'].get('municipality'), f['properties'].get('barangay'))
        for f in matched
    }
    barangay_names = {b for _, b in matched_barangays if b}

    stats = {
        'total_barangays': len(coordinator.frame),
        'matched_barangays': len(matched_barangays),
        'matched_municipalities': len({m for m, _ in matched_barangays if m}),
    }

    for name, toggle in coordinator.toggles.items():
        spec = toggle.spec
        features = coordinator.registry.get(name)
        if features is None:
            stats[name] = None
            continue
        in_area = match(features, {'barangay': barangay_names}, keys={'barangay': spec.barangay_keys})
        stats[name] = len(in_area)
        if name == 'households':
            stats['population'] = summarize_population(in_area)

    return stats


def summarize_population(features: list) -> dict:
    """Sum household member columns; missing or non-numeric values count as 0."""
    df = properties_frame(features)
    totals = {}
    for col in POPULATION_COLUMNS:
        if col in df.columns:
            totals[col.lower()] = int(pd.to_numeric(df[col], errors='coerce').fillna(0).sum())
        else:
            totals[col.lower()] = 0
    totals['total'] = totals['male'] + totals['female']
    return totals


def _render_responsive_metrics(metrics: list):
    """
    Render metrics using a responsive HTML grid instead of st.columns.

    Args:
        metrics: List of dicts with 'label' and 'value' keys
    """
    cards_html = [
        f'''
            <div class="stat-card">
                <div class="stat-label">{m['label']}</div>
                <div class="stat-value">{m['value']}</div>
            </div>
        '''
        for m in metrics
    ]

    html = f'''
    <style>
        .stats-grid {{
            display: grid;
            grid-template-columns: repeat(4, 1fr);
            gap: 0.75rem;
            margin-bottom: 0.5rem;
        }}
        @media (max-width: 1000px) {{
            .stats-grid {{ grid-template-columns: repeat(2, 1fr); }}
        }}
        .stat-card {{
            background: #f8f9fa;
            padding: 0.5rem 0.75rem;
            border-radius: 6px;
            min-width: 0;
        }}
        .stat-label {{
            font-size: 0.7rem;
            color: #666;
            font-weight: 500;
            white-space: nowrap;
            overflow: hidden;
            text-overflow: ellipsis;
            margin-bottom: 2px;
        }}
        .stat-value {{
            font-size: 1.4rem;
            font-weight: 600;
            color: #333;
            white-space: nowrap;
        }}
    </style>
    <div class="stats-grid">
        {"".join(cards_html)}
    </div>
    '''
    st.markdown(html, unsafe_allow_html=True)


def _fmt(value) -> str:
    return "N/A" if value is None else f"{value:,}"


def render_stats_panel(stats: dict):
    """Render the selection metrics; prompts for a selection when empty."""
    if stats['matched_barangays'] == 0:
        st.caption("Select a region to see the affected area.")
        return

    metrics = [
        {'label': 'Barangays', 'value': _fmt(stats['matched_barangays'])},
        {'label': 'Municipalities', 'value': _fmt(stats['matched_municipalities'])},
        {'label': 'Households', 'value': _fmt(stats.get('households'))},
        {'label': 'Schools', 'value': _fmt(stats.get('schools'))},
    ]
    _render_responsive_metrics(metrics)

    population = stats.get('population')
    if population and population['total'] > 0:
        _render_responsive_metrics([
            {'label': 'Exposed Population', 'value': _fmt(population['total'])},
            {'label': 'Infants', 'value': _fmt(population['infant'])},
            {'label': 'Children', 'value': _fmt(population['child'])},
            {'label': 'Elderly', 'value': _fmt(population['elderly'])},
        ])
