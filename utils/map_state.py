"""
Map model shared by the coordinator and the pydeck renderer.

Keeps the layer collection (visibility, features, draw order) and the current
view state. Nothing here talks to Streamlit; components/map_view.py turns a
MapView into a pydeck Deck.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# CartoDB Positron - free basemap, no API key required
MAP_STYLE = "https://basemaps.cartocdn.com/gl/positron-gl-style/style.json"

# Deck.gl renders the world as 512 * 2^zoom pixels
TILE_SIZE = 512

# Web Mercator metres per pixel at zoom 0 for 512px tiles
METERS_PER_PIXEL_Z0 = 78271.51696402048

# Screen size the fit math assumes (the map renders at this height)
VIEWPORT_WIDTH = 1200
VIEWPORT_HEIGHT = 600

# Web Mercator latitude limit
MAX_LATITUDE = 85.05112878

BoundingBox = Tuple[float, float, float, float]  # (min_lng, min_lat, max_lng, max_lat)


def zoom_for_scale(scale: float, dpi: float = 96.0) -> float:
    """
    Zoom level for a map scale denominator (e.g. 4453347 for 1:4,453,347).

    resolution = scale * 0.0254 / dpi metres per pixel
    """
    resolution = scale * 0.0254 / dpi
    return math.log2(METERS_PER_PIXEL_Z0 / resolution)


# Start view: northern Luzon at 1:4,453,347
DEFAULT_SCALE = 4453347
DEFAULT_VIEW = {
    'latitude': 17.3943,
    'longitude': 121.6664,
    'zoom': round(zoom_for_scale(DEFAULT_SCALE), 2),
}


def iter_coordinates(geometry: Optional[dict]) -> Iterator[Tuple[float, float]]:
    """Yield every (lng, lat) pair in a GeoJSON geometry."""
    if not geometry:
        return
    if geometry.get('type') == 'GeometryCollection':
        for part in geometry.get('geometries') or []:
            yield from iter_coordinates(part)
        return

    def walk(coords):
        if not coords:
            return
        if isinstance(coords[0], (int, float)):
            yield float(coords[0]), float(coords[1])
            return
        for item in coords:
            yield from walk(item)

    yield from walk(geometry.get('coordinates'))


def geometry_bounds(geometry: Optional[dict]) -> Optional[BoundingBox]:
    """Bounding box of a single geometry, or None when it has no coordinates."""
    points = np.array(list(iter_coordinates(geometry)), dtype=float)
    if points.size == 0:
        return None
    min_lng, min_lat = points.min(axis=0)
    max_lng, max_lat = points.max(axis=0)
    return float(min_lng), float(min_lat), float(max_lng), float(max_lat)


def union_bounds(features: Iterable[dict]) -> Optional[BoundingBox]:
    """Union bounding box of all feature geometries."""
    boxes = [geometry_bounds(f.get('geometry')) for f in features]
    boxes = np.array([b for b in boxes if b is not None], dtype=float)
    if boxes.size == 0:
        return None
    return (
        float(boxes[:, 0].min()),
        float(boxes[:, 1].min()),
        float(boxes[:, 2].max()),
        float(boxes[:, 3].max()),
    )


def _mercator_x(lng: float) -> float:
    return (lng + 180.0) / 360.0


def _mercator_y(lat: float) -> float:
    lat = max(min(lat, MAX_LATITUDE), -MAX_LATITUDE)
    rad = math.radians(lat)
    return (1.0 - math.log(math.tan(rad) + 1.0 / math.cos(rad)) / math.pi) / 2.0


def _inverse_mercator_y(y: float) -> float:
    n = math.pi * (1.0 - 2.0 * y)
    return math.degrees(math.atan(math.sinh(n)))


def fit_bounds(
    bounds: BoundingBox,
    width: int = VIEWPORT_WIDTH,
    height: int = VIEWPORT_HEIGHT,
    padding: int = 50,
    max_zoom: float = 18,
) -> dict:
    """
    View state (center + zoom) that fits a bounding box in the viewport.

    Args:
        bounds: (min_lng, min_lat, max_lng, max_lat)
        width: Viewport width in pixels
        height: Viewport height in pixels
        padding: Pixels kept free on every side
        max_zoom: Upper zoom cap (single points and tiny areas stop here)

    Returns:
        Dict with 'latitude', 'longitude', 'zoom' keys
    """
    min_lng, min_lat, max_lng, max_lat = bounds

    x0, x1 = _mercator_x(min_lng), _mercator_x(max_lng)
    y0, y1 = _mercator_y(max_lat), _mercator_y(min_lat)
    span_x = abs(x1 - x0)
    span_y = abs(y1 - y0)

    usable_w = max(width - 2 * padding, 1)
    usable_h = max(height - 2 * padding, 1)

    candidates = []
    if span_x > 0:
        candidates.append(math.log2(usable_w / (span_x * TILE_SIZE)))
    if span_y > 0:
        candidates.append(math.log2(usable_h / (span_y * TILE_SIZE)))
    zoom = min(candidates) if candidates else max_zoom
    zoom = max(0.0, min(zoom, max_zoom))

    return {
        'latitude': _inverse_mercator_y((y0 + y1) / 2.0),
        'longitude': (min_lng + max_lng) / 2.0,
        'zoom': zoom,
    }


@dataclass
class MapLayer:
    """A named layer in the map's layer collection."""
    layer_id: str
    title: str
    features: List[dict] = field(default_factory=list)
    visible: bool = True
    z_index: int = 0
    style: str = 'boundary'

    def clear(self) -> None:
        self.features = []

    def add_features(self, features: Iterable[dict]) -> None:
        self.features.extend(features)


class MapView:
    """
    Layer collection plus view state for one dashboard session.

    Layers are drawn in z_index order (ties keep insertion order).
    """

    def __init__(self, width: int = VIEWPORT_WIDTH, height: int = VIEWPORT_HEIGHT):
        self.width = width
        self.height = height
        self.layers: Dict[str, MapLayer] = {}
        self.view_state = dict(DEFAULT_VIEW, transition_duration=0)
        self.fit_count = 0

    # -- layer collection -------------------------------------------------

    def add_layer(self, layer: MapLayer) -> MapLayer:
        if layer.layer_id in self.layers:
            logger.warning(f"Layer '{layer.layer_id}' already on the map; replacing it")
        self.layers[layer.layer_id] = layer
        return layer

    def remove_layer(self, layer_id: str) -> Optional[MapLayer]:
        return self.layers.pop(layer_id, None)

    def get_layer(self, layer_id: str) -> Optional[MapLayer]:
        return self.layers.get(layer_id)

    def has_layer(self, layer_id: str) -> bool:
        return layer_id in self.layers

    def set_visible(self, layer_id: str, visible: bool) -> bool:
        """Set a layer's visibility. Returns False when the layer is missing."""
        layer = self.layers.get(layer_id)
        if layer is None:
            logger.warning(f"Layer '{layer_id}' not found")
            return False
        layer.visible = visible
        return True

    def is_visible(self, layer_id: str) -> bool:
        layer = self.layers.get(layer_id)
        return bool(layer and layer.visible)

    def ordered_layers(self, visible_only: bool = True) -> List[MapLayer]:
        layers = [l for l in self.layers.values() if l.visible or not visible_only]
        return sorted(layers, key=lambda l: l.z_index)

    # -- view ---------------------------------------------------------------

    def fit(self, bounds: BoundingBox, padding: int = 50, max_zoom: float = 18, duration: int = 400) -> dict:
        """Frame the bounds; replaces whatever view or transition was set before."""
        view = fit_bounds(bounds, self.width, self.height, padding=padding, max_zoom=max_zoom)
        view['transition_duration'] = duration
        self.view_state = view
        self.fit_count += 1
        logger.info(
            f"[ZOOM] center=({view['latitude']:.4f}, {view['longitude']:.4f}), zoom={view['zoom']:.2f}"
        )
        return view

    def reset_view(self) -> None:
        self.view_state = dict(DEFAULT_VIEW, transition_duration=0)
