"""
Map visualization component using Pydeck (Deck.gl for Python).
Renders barangay boundaries, the selection highlight and the domain layers
held by the session's MapView.
"""
import streamlit as st
import pydeck as pdk
from typing import List, Optional

from utils.color_schemes import get_layer_style, get_layer_hex_color
from utils.map_state import MAP_STYLE, MapLayer, MapView


def _feature_collection(features: List[dict]) -> dict:
    return {'type': 'FeatureCollection', 'features': features}


def create_highlight_layers(layer: MapLayer) -> List[pdk.Layer]:
    """
    Glow-style highlight: a wide translucent outline under a thin solid one.

    Returns:
        Two GeoJsonLayers (glow, outline), or an empty list with no features
    """
    if not layer.features:
        return []

    style = get_layer_style('highlight')
    data = _feature_collection(layer.features)

    glow = pdk.Layer(
        "GeoJsonLayer",
        data=data,
        id=f"{layer.layer_id}_glow",
        stroked=True,
        filled=False,
        get_line_color=style['glow'],
        line_width_min_pixels=6,
        pickable=False,
    )
    outline = pdk.Layer(
        "GeoJsonLayer",
        data=data,
        id=layer.layer_id,
        stroked=True,
        filled=True,
        get_fill_color=style['fill'],
        get_line_color=style['line'],
        line_width_min_pixels=style['line_width'],
        pickable=False,
    )
    return [glow, outline]


def create_feature_layer(layer: MapLayer) -> Optional[pdk.Layer]:
    """
    GeoJsonLayer for a boundary or domain MapLayer.

    Point features (households, schools) render as circles sized by the
    style's radius; polygons render filled with a thin outline.

    Returns:
        Pydeck GeoJsonLayer or None if the layer has no features
    """
    if not layer.features:
        return None

    style = get_layer_style(layer.style)

    return pdk.Layer(
        "GeoJsonLayer",
        data=_feature_collection(layer.features),
        id=layer.layer_id,
        stroked=True,
        filled=True,
        get_fill_color=style['fill'],
        get_line_color=style['line'],
        line_width_min_pixels=style['line_width'],
        get_point_radius=style['radius'] or 1,
        point_radius_min_pixels=3,
        pickable=True,
        auto_highlight=True,
        highlight_color=[255, 255, 0, 128],
    )


def create_map_layers(map_view: MapView) -> List[pdk.Layer]:
    """Pydeck layers for every visible MapLayer, bottom to top."""
    layers = []
    for layer in map_view.ordered_layers(visible_only=True):
        if layer.style == 'highlight':
            layers.extend(create_highlight_layers(layer))
        else:
            deck_layer = create_feature_layer(layer)
            if deck_layer is not None:
                layers.append(deck_layer)
    return layers


def create_view_state(map_view: MapView) -> pdk.ViewState:
    view = map_view.view_state
    return pdk.ViewState(
        latitude=view['latitude'],
        longitude=view['longitude'],
        zoom=view['zoom'],
        pitch=0,
        bearing=0,
        transition_duration=view.get('transition_duration', 0),
    )


def create_tooltip() -> dict:
    """Tooltip for boundary and domain features."""
    return {
        "html": """
        <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; padding: 8px;">
            <div style="font-weight: 600; font-size: 14px; margin-bottom: 4px;">{barangay}</div>
            <div style="font-size: 11px; color: #666;">{municipality}, {province}</div>
        </div>
        """,
        "style": {
            "backgroundColor": "white",
            "color": "#333",
            "borderRadius": "8px",
            "boxShadow": "0 2px 10px rgba(0,0,0,0.18)",
            "maxWidth": "300px"
        }
    }


def build_deck(map_view: MapView) -> pdk.Deck:
    return pdk.Deck(
        layers=create_map_layers(map_view),
        initial_view_state=create_view_state(map_view),
        tooltip=create_tooltip(),
        map_style=MAP_STYLE,
    )


def render_map(map_view: MapView, height: int = 600) -> None:
    """
    Render the session's map.

    The view state carries the last zoom-to-selection with its transition
    duration, so a new selection animates from the previous view.

    Args:
        map_view: Session map model
        height: Map height in pixels
    """
    if not map_view.ordered_layers(visible_only=True):
        st.warning("No map layers to display.")
        return

    st.pydeck_chart(build_deck(map_view), width='stretch', height=height)


def _build_layer_legend_html(map_view: MapView) -> str:
    items = []
    seen = set()
    for layer in map_view.ordered_layers(visible_only=True):
        if layer.style in seen:
            continue
        seen.add(layer.style)
        style = get_layer_style(layer.style)
        items.append(
            f'<span style="display: inline-flex; align-items: center; gap: 4px; margin-right: 12px;">'
            f'<span style="width: 10px; height: 10px; border-radius: 50%; background: {get_layer_hex_color(layer.style)};"></span>'
            f'{style["name"]}</span>'
        )
    return f'<div style="font-size: 12px; color: #555;">{"".join(items)}</div>'


def render_layer_legend(map_view: MapView) -> None:
    """Legend for the currently visible layers."""
    st.markdown(_build_layer_legend_html(map_view), unsafe_allow_html=True)
