"""
Location cascade & highlight coordinator.

One coordinator per dashboard session owns the CascadeState, the MapView,
the highlight driver and the domain layer toggles. The sidebar reports
selection and toggle changes here; every change recomputes options, matched
boundary features, the highlight layer and the domain layers in one pass.
"""
import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .cascade_filter import on_level_change, refresh_all
from .data_loader import FeatureRegistry, boundary_frame
from .domain_layers import DOMAIN_LAYERS, DomainLayerSpec, DomainLayerToggle, DomainState
from .feature_matcher import match
from .flood_extent import FloodExtentSelector
from .highlight import HighlightDriver
from .map_state import MapLayer, MapView
from .selection_store import LEVELS, CascadeState

logger = logging.getLogger(__name__)

BOUNDARY_LAYER_ID = 'boundaries'
BASE_LAYER_Z_INDEX = 10


class LocationCascadeCoordinator:
    """
    Keeps the four location selections, the highlight layer and the
    domain layers consistent with each other.

    The coordinator waits on the registry for the boundary collection, so it
    can be created before data is published.
    """

    def __init__(
        self,
        registry: FeatureRegistry,
        map_view: Optional[MapView] = None,
        domain_specs: Optional[Dict[str, DomainLayerSpec]] = None,
    ):
        self.registry = registry
        self.map_view = map_view or MapView()
        self.state = CascadeState()
        self.highlight = HighlightDriver(self.map_view)
        self.flood_extent = FloodExtentSelector(self.map_view, registry)
        self.toggles: Dict[str, DomainLayerToggle] = {
            name: DomainLayerToggle(spec, self.map_view, registry)
            for name, spec in (domain_specs or DOMAIN_LAYERS).items()
        }
        for toggle in self.toggles.values():
            toggle.on_change = self._sync_base_visibility
        self.matched: List[dict] = []
        self.ready = False

        self._boundaries: List[dict] = []
        self._frame = pd.DataFrame(columns=list(LEVELS))

        registry.on_ready('boundaries', self._on_boundaries_ready)
        for name in self.toggles:
            registry.on_ready(name, self._make_base_layer_callback(name))

    # -- startup ----------------------------------------------------------

    def _on_boundaries_ready(self, features: List[dict]) -> None:
        self._boundaries = features
        self._frame = boundary_frame(features)
        self.map_view.add_layer(MapLayer(
            layer_id=BOUNDARY_LAYER_ID,
            title='Barangay Boundaries',
            features=features,
            z_index=BASE_LAYER_Z_INDEX,
            style='boundary',
        ))
        self.ready = True

        refresh_all(self.state, self._frame)
        self._sync_base_visibility()
        logger.info(
            "Location filters initialized: " + ', '.join(
                f"{len(self.state.options[level])} {level} options" for level in LEVELS
            )
        )

    def _make_base_layer_callback(self, name: str):
        def add_base_layer(features: List[dict]) -> None:
            spec = self.toggles[name].spec
            self.map_view.add_layer(MapLayer(
                layer_id=spec.base_layer_id,
                title=spec.label,
                features=features,
                visible=not self.toggles[name].is_active,
                z_index=BASE_LAYER_Z_INDEX + 1,
                style=spec.name,
            ))
        return add_base_layer

    # -- selection changes -----------------------------------------------

    def on_level_change(self, level: str, values: Iterable[str]) -> List[str]:
        """
        Apply a selection change at one level and recompute everything.

        Returns:
            Levels below `level` whose selection was cleared or trimmed
        """
        if not self.ready:
            logger.warning("Boundary features not loaded; selection change ignored")
            return []

        changed = on_level_change(self.state, self._frame, level, values)
        self.recompute()
        return changed

    def clear_all(self) -> None:
        """Clear every selection (region clear cascades to all levels)."""
        self.on_level_change('region', [])

    def recompute(self) -> List[dict]:
        """Re-run the matcher, the highlight driver and the layers gated by the selection."""
        self.matched = match(self._boundaries, self.state.selections)
        self.highlight.render(self.matched)
        for toggle in self.toggles.values():
            toggle.update(self.state.selections)
        self.flood_extent.update(self.state.selections)
        return self.matched

    # -- flood extent -----------------------------------------------------

    def set_flood_extent(self, value: Optional[str]) -> Optional[str]:
        """Show one flood extent; only allowed while a barangay is selected."""
        return self.flood_extent.select(value, self.state.selections)

    # -- domain toggles ---------------------------------------------------

    def set_domain_active(self, name: str, active: bool) -> Optional[DomainState]:
        toggle = self.toggles.get(name)
        if toggle is None:
            logger.warning(f"Unknown domain layer '{name}'")
            return None
        return toggle.set_active(active, self.state.selections)

    def _sync_base_visibility(self) -> None:
        # Boundaries step back while any domain layer is shown
        any_active = any(t.is_active for t in self.toggles.values())
        if self.map_view.has_layer(BOUNDARY_LAYER_ID):
            self.map_view.set_visible(BOUNDARY_LAYER_ID, not any_active)

    # -- inspection -------------------------------------------------------

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame

    def selections(self) -> Dict[str, List[str]]:
        return {level: sorted(self.state.get(level)) for level in LEVELS}

    def options(self, level: str) -> List[str]:
        return list(self.state.options.get(level, []))

    def is_enabled(self, level: str) -> bool:
        return self.state.is_enabled(level)

    def flood_extent_enabled(self) -> bool:
        return self.flood_extent.is_enabled(self.state.selections)

    def domain_state(self, name: str) -> Optional[DomainState]:
        toggle = self.toggles.get(name)
        return toggle.state if toggle else None

    def drain_notices(self) -> List[str]:
        notices = []
        for toggle in self.toggles.values():
            notices.extend(toggle.drain_notices())
        return notices
