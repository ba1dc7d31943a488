"""
Flood extent selector.

One extent (24-30 m) can be shown at a time, and only while at least one
barangay is selected. Emptying the barangay selection resets the choice and
hides the extent layer.
"""
import logging
from typing import Iterable, List, Mapping, Optional

from .data_loader import FeatureRegistry, get_property
from .map_state import MapLayer, MapView

logger = logging.getLogger(__name__)

FLOOD_EXTENT_COLLECTION = 'flood_extents'
FLOOD_EXTENT_LAYER_ID = 'flood_extent'

# Drawn under the boundary layer
FLOOD_EXTENT_Z_INDEX = 5

# Flood extent values in metres
FLOOD_EXTENTS = ('24', '25', '26', '27', '28', '29', '30')

EXTENT_PROPERTY_KEYS = ('EXTENT', 'Extent', 'extent')


def format_extent(value: Optional[str]) -> str:
    return "Select Flood Extent" if value is None else f"{value} meters"


class FloodExtentSelector:
    """Barangay-gated flood extent choice backed by one MapLayer."""

    def __init__(self, map_view: MapView, registry: FeatureRegistry):
        self.map_view = map_view
        self.registry = registry
        self.value: Optional[str] = None

    @staticmethod
    def is_enabled(selections: Mapping[str, Iterable[str]]) -> bool:
        return bool(selections.get('barangay'))

    def ensure_layer(self) -> MapLayer:
        layer = self.map_view.get_layer(FLOOD_EXTENT_LAYER_ID)
        if layer is None:
            layer = self.map_view.add_layer(MapLayer(
                layer_id=FLOOD_EXTENT_LAYER_ID,
                title='Flood Extent',
                visible=False,
                z_index=FLOOD_EXTENT_Z_INDEX,
                style='flood_extent',
            ))
        return layer

    def select(self, value: Optional[str], selections: Mapping[str, Iterable[str]]) -> Optional[str]:
        """
        Show the extent for `value` (None hides it).

        Ignored while no barangay is selected.

        Returns:
            The extent now shown, or None
        """
        if value is not None and not self.is_enabled(selections):
            logger.warning(f"Flood extent {value} ignored; no barangay selected")
            self.reset()
            return None

        if value is not None and str(value) not in FLOOD_EXTENTS:
            logger.warning(f"Unknown flood extent '{value}'")
            return self.value

        self.value = None if value is None else str(value)
        self._render()
        return self.value

    def update(self, selections: Mapping[str, Iterable[str]]) -> Optional[str]:
        """Reset the choice when the barangay selection has emptied."""
        if self.value is not None and not self.is_enabled(selections):
            logger.info("Barangay selection cleared; hiding flood extent")
            self.reset()
        return self.value

    def reset(self) -> None:
        self.value = None
        self._render()

    def _render(self) -> None:
        layer = self.ensure_layer()
        layer.clear()

        if self.value is None:
            layer.visible = False
            return

        features = self.registry.get(FLOOD_EXTENT_COLLECTION)
        if features is None:
            logger.warning("Flood extent features not loaded")
            layer.visible = False
            return

        layer.add_features(
            f for f in features
            if get_property(f.get('properties') or {}, EXTENT_PROPERTY_KEYS) == self.value
        )
        layer.visible = True
        if not layer.features:
            logger.warning(f"No flood extent features for {self.value} meters")
        else:
            logger.info(f"Flood extent shown: {self.value} meters ({len(layer.features)} features)")

    @property
    def features(self) -> List[dict]:
        layer = self.map_view.get_layer(FLOOD_EXTENT_LAYER_ID)
        return list(layer.features) if layer else []
