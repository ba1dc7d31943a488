"""
Dependent domain layers (households, schools) filtered by the location cascade.

Each domain has a master toggle. While it is active the domain's base layer
is hidden and the domain is shown through its own presentation layers,
filled by re-running the feature matcher on the domain's feature collection:

    INACTIVE ──activate──▶ ACTIVE_UNFILTERED
    ACTIVE_* ──barangay selected──────────────────▶ FILTERED_BY_BARANGAY
    ACTIVE_* ──municipality selected, no barangay─▶ FILTERED_BY_MUNICIPALITY
    FILTERED_* ──selections cleared──▶ ACTIVE_UNFILTERED
    ACTIVE_* ──deactivate──▶ INACTIVE

Barangay selection always takes precedence over municipality selection, and
only one of the two presentation layers is visible at a time.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .data_loader import FeatureRegistry, build_barangay_municipality_map
from .feature_matcher import match
from .highlight import clone_feature
from .map_state import MapLayer, MapView

logger = logging.getLogger(__name__)

PRESENTATION_Z_INDEX = 100


class DomainState(Enum):
    INACTIVE = 'inactive'
    ACTIVE_UNFILTERED = 'active_unfiltered'
    FILTERED_BY_MUNICIPALITY = 'filtered_by_municipality'
    FILTERED_BY_BARANGAY = 'filtered_by_barangay'

    @property
    def is_active(self) -> bool:
        return self is not DomainState.INACTIVE


@dataclass(frozen=True)
class DomainLayerSpec:
    """
    Static description of a domain layer.

    Attributes:
        name: Registry collection name and layer id prefix
        label: Toggle label shown in the sidebar
        barangay_keys: Property name(s) holding the feature's barangay
        municipality_keys: Property name(s) holding the municipality, if the
            collection has one; otherwise municipalities are resolved through
            the barangays the boundary data places inside them
        empty_message: Notice shown when a filter finds nothing ({scope} is
            'Barangay' or 'Municipality')
    """
    name: str
    label: str
    barangay_keys: Sequence[str]
    municipality_keys: Optional[Sequence[str]] = None
    empty_message: str = "No data within this {scope}!"

    @property
    def base_layer_id(self) -> str:
        return self.name

    @property
    def barangay_layer_id(self) -> str:
        return f"{self.name}_by_barangay"

    @property
    def municipality_layer_id(self) -> str:
        return f"{self.name}_by_municipality"


DOMAIN_LAYERS: Dict[str, DomainLayerSpec] = {
    'households': DomainLayerSpec(
        name='households',
        label='Household',
        barangay_keys=('BARANGAY',),
        empty_message="No household data within this {scope}!",
    ),
    'schools': DomainLayerSpec(
        name='schools',
        label='Schools',
        barangay_keys=('Bgy_Name',),
        municipality_keys=('Mun_Name',),
        empty_message="No school data within this {scope}!",
    ),
}


class DomainLayerToggle:
    """Activation and filtering state for one domain layer on a MapView."""

    def __init__(self, spec: DomainLayerSpec, map_view: MapView, registry: FeatureRegistry):
        self.spec = spec
        self.map_view = map_view
        self.registry = registry
        self.state = DomainState.INACTIVE
        self.notices: List[str] = []
        self.on_change: Optional[Callable[[], None]] = None

        self._requested = False
        self._recheck_scheduled = False
        self._selections: Dict[str, Set[str]] = {}
        self._last_empty_key = None
        self._barangay_map: Optional[Dict[str, set]] = None

    # -- activation -------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    def set_active(self, active: bool, selections: Optional[Mapping[str, Iterable[str]]] = None) -> DomainState:
        if selections is not None:
            self._remember(selections)
        if active and not self.is_active:
            self.activate()
        elif not active and (self.is_active or self._requested):
            self.deactivate()
        return self.state

    def activate(self, selections: Optional[Mapping[str, Iterable[str]]] = None) -> DomainState:
        if selections is not None:
            self._remember(selections)
        self._requested = True

        if self.registry.get(self.spec.name) is None:
            logger.warning(f"{self.spec.label} features not loaded; toggle ignored")
            self._schedule_recheck()
            return self.state

        self.state = DomainState.ACTIVE_UNFILTERED
        self.map_view.set_visible(self.spec.base_layer_id, False)
        self._ensure_presentation_layers()
        logger.info(f"{self.spec.label} layer activated")
        state = self.update()
        self._notify()
        return state

    def deactivate(self) -> DomainState:
        self._requested = False
        if not self.is_active:
            return self.state

        self.map_view.remove_layer(self.spec.barangay_layer_id)
        self.map_view.remove_layer(self.spec.municipality_layer_id)
        self.map_view.set_visible(self.spec.base_layer_id, True)
        self.state = DomainState.INACTIVE
        self._last_empty_key = None
        logger.info(f"{self.spec.label} layer deactivated")
        self._notify()
        return self.state

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _schedule_recheck(self) -> None:
        # One re-check only; further activations while waiting do not stack
        if self._recheck_scheduled:
            return
        self._recheck_scheduled = True
        self.registry.on_ready(self.spec.name, self._on_collection_ready)

    def _on_collection_ready(self, features: List[dict]) -> None:
        self._recheck_scheduled = False
        if self._requested and not self.is_active:
            logger.info(f"{self.spec.label} features loaded ({len(features)}); activating")
            self.activate()

    # -- filtering --------------------------------------------------------

    def _remember(self, selections: Mapping[str, Iterable[str]]) -> None:
        self._selections = {level: set(values or ()) for level, values in selections.items()}

    def _ensure_presentation_layers(self) -> None:
        for layer_id, title in (
            (self.spec.barangay_layer_id, f"{self.spec.label} (Filtered)"),
            (self.spec.municipality_layer_id, f"{self.spec.label} (Municipality Filtered)"),
        ):
            if not self.map_view.has_layer(layer_id):
                self.map_view.add_layer(MapLayer(
                    layer_id=layer_id,
                    title=title,
                    z_index=PRESENTATION_Z_INDEX,
                    style=self.spec.name,
                    visible=layer_id == self.spec.barangay_layer_id,
                ))

    def _barangays_in(self, municipalities: Set[str]) -> Set[str]:
        if self._barangay_map is None:
            boundaries = self.registry.get('boundaries')
            if boundaries is None:
                logger.warning("Boundary features not loaded; cannot resolve municipalities")
                return set()
            self._barangay_map = build_barangay_municipality_map(boundaries)
        return {
            barangay for barangay, owners in self._barangay_map.items()
            if owners & municipalities
        }

    def _filter_by_municipality(self, features: List[dict], municipalities: Set[str]) -> List[dict]:
        if self.spec.municipality_keys:
            return match(features, {'municipality': municipalities},
                         keys={'municipality': self.spec.municipality_keys})
        barangays = self._barangays_in(municipalities)
        if not barangays:
            return []
        return match(features, {'barangay': barangays}, keys={'barangay': self.spec.barangay_keys})

    def update(self, selections: Optional[Mapping[str, Iterable[str]]] = None) -> DomainState:
        """
        Re-filter the presentation layers for the current selections.

        No-op while inactive (the selections are still remembered).
        """
        if selections is not None:
            self._remember(selections)
        if not self.is_active:
            return self.state

        features = self.registry.get(self.spec.name)
        if features is None:
            logger.warning(f"{self.spec.label} features not loaded")
            return self.state

        self._ensure_presentation_layers()
        by_barangay = self.map_view.get_layer(self.spec.barangay_layer_id)
        by_municipality = self.map_view.get_layer(self.spec.municipality_layer_id)
        by_barangay.clear()
        by_municipality.clear()

        barangays = self._selections.get('barangay') or set()
        municipalities = self._selections.get('municipality') or set()

        if barangays:
            matched = match(features, {'barangay': barangays}, keys={'barangay': self.spec.barangay_keys})
            target, other = by_barangay, by_municipality
            self.state = DomainState.FILTERED_BY_BARANGAY
            scope, selected = 'Barangay', barangays
        elif municipalities:
            matched = self._filter_by_municipality(features, municipalities)
            target, other = by_municipality, by_barangay
            self.state = DomainState.FILTERED_BY_MUNICIPALITY
            scope, selected = 'Municipality', municipalities
        else:
            by_barangay.visible = True
            by_municipality.visible = False
            self.state = DomainState.ACTIVE_UNFILTERED
            self._last_empty_key = None
            return self.state

        target.add_features(clone_feature(f) for f in matched)
        target.visible = True
        other.visible = False

        if matched:
            self._last_empty_key = None
            logger.info(f"Filtered {len(matched)} {self.spec.name} features for selected {scope.lower()} values")
        else:
            empty_key = (self.state, frozenset(selected))
            if empty_key != self._last_empty_key:
                self._last_empty_key = empty_key
                logger.warning(
                    f"No {self.spec.name} features for {scope.lower()} selection: {', '.join(sorted(selected))}"
                )
                self.notices.append(self.spec.empty_message.format(scope=scope))
        return self.state

    # -- inspection -------------------------------------------------------

    def visible_presentation_layers(self) -> List[str]:
        return [
            layer_id for layer_id in (self.spec.barangay_layer_id, self.spec.municipality_layer_id)
            if self.map_view.is_visible(layer_id)
        ]

    def filtered_features(self) -> List[dict]:
        """Features in whichever presentation layer is visible."""
        for layer_id in self.visible_presentation_layers():
            return list(self.map_view.get_layer(layer_id).features)
        return []

    def drain_notices(self) -> List[str]:
        notices, self.notices = self.notices, []
        return notices
