"""
PROJECT TOMaS Flood-Mapping Dashboard

An interactive map of flood-exposed areas showing:
- Barangay boundaries filtered by Region -> Province -> Municipality -> Barangay
- Highlight and zoom to the selected area
- Exposed households and schools filtered to the selection

Built with Streamlit + Pydeck.
"""
import logging

import streamlit as st

from utils.data_loader import FeatureRegistry, load_collections, populate_registry
from utils.coordinator import LocationCascadeCoordinator
from components.sidebar_filters import render_sidebar_filters, render_filter_summary
from components.map_view import render_map, render_layer_legend
from components.stats_panel import calculate_selection_stats, render_stats_panel

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Page configuration
st.set_page_config(
    page_title="PROJECT TOMaS",
    page_icon="🌊",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS for compact, map-first design
st.markdown("""
<style>
    /* Minimize padding for maximum map real estate */
    .block-container {
        padding-top: 0.5rem !important;
        padding-bottom: 0.5rem !important;
        padding-left: 1rem !important;
        padding-right: 1rem !important;
        max-width: 100% !important;
    }

    /* Make pydeck maps extend closer to edges */
    [data-testid="stPydeckChart"] {
        margin-left: -0.5rem !important;
        margin-right: -0.5rem !important;
        width: calc(100% + 1rem) !important;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_data(ttl=3600)  # Cache for 1 hour
def load_data():
    """Load and cache the GeoJSON collections."""
    try:
        collections = load_collections()
        logger.info(f"[CACHE] Data loaded. Collections present: {sorted(collections)}")
        return collections
    except (FileNotFoundError, ValueError) as e:
        st.error(f"Failed to load data: {e}")
        st.stop()


def get_coordinator() -> LocationCascadeCoordinator:
    """One coordinator per browser session, created on first run."""
    if 'coordinator' not in st.session_state:
        registry = FeatureRegistry()
        # Subscribe before publishing so startup goes through the ready event
        coordinator = LocationCascadeCoordinator(registry)
        populate_registry(registry, load_data())
        st.session_state.coordinator = coordinator
    return st.session_state.coordinator


def main():
    """Main application entry point."""

    # Load data
    with st.spinner("Loading boundary data..."):
        coordinator = get_coordinator()

    # Render sidebar filters
    filters = render_sidebar_filters(coordinator)

    # Subtle data refresh at bottom of sidebar
    with st.sidebar:
        st.divider()
        col1, col2 = st.columns([1, 1])
        with col1:
            st.caption("Data cached 1hr")
        with col2:
            if st.button("↻ Refresh", key="refresh_data", help="Clear cache and reload data"):
                st.cache_data.clear()
                del st.session_state['coordinator']
                st.rerun()

    # User notices from the domain layers (e.g. no households in a municipality)
    for notice in coordinator.drain_notices():
        st.toast(notice, icon="⚠️")

    stats = calculate_selection_stats(coordinator)

    render_filter_summary(filters, stats['total_barangays'], stats['matched_barangays'])
    render_map(coordinator.map_view)
    render_layer_legend(coordinator.map_view)

    st.divider()
    render_stats_panel(stats)


if __name__ == "__main__":
    main()
