"""
Highlight & viewport driver.

Copies the matched boundary features into a dedicated presentation layer
(never the source layer) and frames the map around them.
"""
import copy
import logging
from typing import List, Optional

from .map_state import BoundingBox, MapLayer, MapView, union_bounds

logger = logging.getLogger(__name__)

HIGHLIGHT_LAYER_ID = 'highlight'
HIGHLIGHT_Z_INDEX = 1000  # always on top

# Viewport fit settings
FIT_PADDING_PX = 50
FIT_MAX_ZOOM = 18
FIT_DURATION_MS = 400


def clone_feature(feature: dict) -> dict:
    """Copy a feature's geometry and properties so the source stays untouched."""
    return {
        'type': 'Feature',
        'geometry': copy.deepcopy(feature.get('geometry')),
        'properties': dict(feature.get('properties') or {}),
    }


class HighlightDriver:
    """Owns the highlight layer on one MapView."""

    def __init__(
        self,
        map_view: MapView,
        padding: int = FIT_PADDING_PX,
        max_zoom: float = FIT_MAX_ZOOM,
        duration: int = FIT_DURATION_MS,
    ):
        self.map_view = map_view
        self.padding = padding
        self.max_zoom = max_zoom
        self.duration = duration

    def ensure_layer(self) -> MapLayer:
        layer = self.map_view.get_layer(HIGHLIGHT_LAYER_ID)
        if layer is None:
            layer = self.map_view.add_layer(MapLayer(
                layer_id=HIGHLIGHT_LAYER_ID,
                title='Highlight Layer',
                z_index=HIGHLIGHT_Z_INDEX,
                style='highlight',
            ))
        return layer

    def render(self, matched: List[dict]) -> Optional[BoundingBox]:
        """
        Replace the highlighted geometries with copies of `matched` and fit
        the viewport to them.

        Returns:
            The bounds that were fitted, or None when nothing was fitted
        """
        layer = self.ensure_layer()
        layer.clear()

        if not matched:
            return None

        clones = [clone_feature(f) for f in matched if f.get('geometry')]
        layer.add_features(clones)

        bounds = union_bounds(clones)
        if bounds is None:
            logger.warning("Matched features have no coordinates; skipping zoom")
            return None

        self.map_view.fit(bounds, padding=self.padding, max_zoom=self.max_zoom, duration=self.duration)
        return bounds

    @property
    def highlighted(self) -> List[dict]:
        layer = self.map_view.get_layer(HIGHLIGHT_LAYER_ID)
        return list(layer.features) if layer else []
