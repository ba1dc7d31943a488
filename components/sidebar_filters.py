"""
Sidebar filter components for the flood-mapping dashboard.
Provides the cascading location controls and the domain layer toggles.

SIDEBAR STRUCTURE:
1. Location (Region -> Province -> Municipality -> Barangay), cascading
2. Map Layers (Household / Schools toggles, Flood Extent)

Widget changes are reported straight to the session's coordinator through
on_change callbacks; the widgets are then re-synced from the coordinator so a
cascading reset shows up in the controls below.
"""
import streamlit as st

from utils.coordinator import LocationCascadeCoordinator
from utils.flood_extent import FLOOD_EXTENTS, format_extent
from utils.selection_store import LEVELS, LEVEL_LABELS, selection_label

FLOOD_EXTENT_KEY = "flood_extent"


def _level_key(level: str) -> str:
    return f"filter_{level}"


def _toggle_key(name: str) -> str:
    return f"toggle_{name}"


def _on_level_widget_change(coordinator: LocationCascadeCoordinator, level: str):
    coordinator.on_level_change(level, st.session_state.get(_level_key(level), []))


def _on_domain_toggle(coordinator: LocationCascadeCoordinator, name: str):
    coordinator.set_domain_active(name, bool(st.session_state.get(_toggle_key(name), False)))


def _on_flood_extent_change(coordinator: LocationCascadeCoordinator):
    coordinator.set_flood_extent(st.session_state.get(FLOOD_EXTENT_KEY))


def render_location_filters(coordinator: LocationCascadeCoordinator) -> dict:
    """
    Render the four cascading multiselects.

    Region is always enabled; every other level is enabled only while its
    parent has a selection.

    Returns:
        Dict of level -> sorted list of selected values
    """
    selections = {}
    for level in LEVELS:
        key = _level_key(level)
        options = coordinator.options(level)
        current = sorted(coordinator.state.get(level))

        # Sync widget with coordinator state (cascade may have cleared or trimmed it)
        st.session_state[key] = [v for v in current if v in options]

        st.multiselect(
            LEVEL_LABELS[level],
            options=options,
            key=key,
            disabled=not coordinator.is_enabled(level),
            placeholder=selection_label(level, []),
            on_change=_on_level_widget_change,
            args=(coordinator, level),
        )
        if current:
            st.caption(selection_label(level, current))
        selections[level] = current

    return selections


def render_layer_toggles(coordinator: LocationCascadeCoordinator) -> dict:
    """
    Master toggles for each domain layer.

    Returns:
        Dict of domain name -> DomainState value string
    """
    states = {}
    for name, toggle in coordinator.toggles.items():
        key = _toggle_key(name)
        # Sync widget with coordinator state (a refreshed coordinator starts inactive)
        st.session_state[key] = toggle.is_active

        st.toggle(
            toggle.spec.label,
            key=key,
            help=f"Show {toggle.spec.label.lower()} locations for the selected area",
            on_change=_on_domain_toggle,
            args=(coordinator, name),
        )
        states[name] = toggle.state.value
    return states


def render_flood_extent_select(coordinator: LocationCascadeCoordinator):
    """
    Flood extent (24-30 m) selector, enabled only while a barangay is selected.

    Returns:
        Selected extent value or None
    """
    st.session_state[FLOOD_EXTENT_KEY] = coordinator.flood_extent.value

    st.selectbox(
        "Flood Extent",
        options=list(FLOOD_EXTENTS),
        key=FLOOD_EXTENT_KEY,
        format_func=format_extent,
        placeholder=format_extent(None),
        disabled=not coordinator.flood_extent_enabled(),
        help="Select a barangay to enable",
        on_change=_on_flood_extent_change,
        args=(coordinator,),
    )
    return coordinator.flood_extent.value


def render_sidebar_filters(coordinator: LocationCascadeCoordinator) -> dict:
    """
    Render sidebar filter controls and return the selected filter values.

    Args:
        coordinator: The session's location cascade coordinator

    Returns:
        Dictionary with one list per level plus 'domains' (name -> state)
        and 'flood_extent'
    """
    # Handle clear request from PREVIOUS run (must happen BEFORE widgets render)
    if st.session_state.get('_clear_filters_requested', False):
        coordinator.clear_all()
        st.session_state['_clear_filters_requested'] = False

    # ════════════════════════════════════════════════════════════════════════════
    # 1. LOCATION (cascading)
    # ════════════════════════════════════════════════════════════════════════════
    header_col1, header_col2 = st.sidebar.columns([3, 1])
    with header_col1:
        st.markdown("### 📍 Location")
    with header_col2:
        clear_filters = st.button("✕", key="qf_clear", help="Clear all selections")

    with st.sidebar:
        filters = render_location_filters(coordinator)

    # ════════════════════════════════════════════════════════════════════════════
    # 2. MAP LAYERS
    # ════════════════════════════════════════════════════════════════════════════
    st.sidebar.divider()
    with st.sidebar.expander("🗺️ Map Layers", expanded=True):
        filters['domains'] = render_layer_toggles(coordinator)
        filters['flood_extent'] = render_flood_extent_select(coordinator)

    if clear_filters:
        # Set flag to clear selections on NEXT run (before widgets render)
        st.session_state['_clear_filters_requested'] = True
        st.rerun()

    return filters


def render_filter_summary(filters: dict, total_count: int, matched_count: int):
    """
    Compact chip above the map listing the active location filters and
    how many barangays they cover. Only renders when something is selected.
    """
    active_filters = []
    for level in LEVELS:
        values = filters.get(level) or []
        if not values:
            continue
        text = ', '.join(values[:3])
        if len(values) > 3:
            text += f" +{len(values) - 3}"
        active_filters.append(text)

    if not active_filters:
        return

    pct = (matched_count / total_count * 100) if total_count > 0 else 0
    filter_text = ' • '.join(active_filters)

    st.markdown(
        f"""<div style="display: flex; justify-content: flex-end; margin-bottom: 4px;">
            <div style="background: linear-gradient(135deg, #e0f7fa 0%, #b2ebf2 100%); padding: 4px 12px; border-radius: 16px; font-size: 12px; display: inline-flex; gap: 8px; align-items: center; border: 1px solid #4dd0e1; box-shadow: 0 1px 3px rgba(0,0,0,0.1);">
                <span style="color: #00697a;">📍 {filter_text}</span>
                <span style="background: #0099cc; color: white; padding: 2px 8px; border-radius: 10px; font-weight: 600; font-size: 11px;">{matched_count:,} barangays ({pct:.0f}%)</span>
            </div>
        </div>""",
        unsafe_allow_html=True
    )
