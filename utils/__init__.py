"""
Utilities for the PROJECT TOMaS flood-mapping dashboard.

Modules:
- data_loader: GeoJSON loading, boundary normalization, feature registry
- selection_store: location levels and cascade state
- cascade_filter: cascading option lists for the location controls
- feature_matcher: attribute matching against location selections
- map_state: layer collection, bounds and viewport fitting
- highlight: highlight layer and zoom-to-selection
- domain_layers: household/school toggles and their filtered layers
- flood_extent: barangay-gated flood extent selector
- coordinator: ties the above together for one dashboard session
- color_schemes: layer colors
"""

from .data_loader import (
    FeatureRegistry,
    load_collections,
    populate_registry,
    normalize_boundary_features,
    DATA_FILES,
)

from .selection_store import (
    LEVELS,
    LEVEL_LABELS,
    CascadeState,
    selection_label,
)

from .cascade_filter import (
    get_level_options,
    get_filter_options,
    on_level_change,
)

from .feature_matcher import match

from .map_state import MapLayer, MapView, fit_bounds, union_bounds

from .highlight import HighlightDriver

from .domain_layers import (
    DOMAIN_LAYERS,
    DomainLayerSpec,
    DomainLayerToggle,
    DomainState,
)

from .flood_extent import FLOOD_EXTENTS, FloodExtentSelector

from .coordinator import LocationCascadeCoordinator

__all__ = [
    # Data loader
    'FeatureRegistry',
    'load_collections',
    'populate_registry',
    'normalize_boundary_features',
    'DATA_FILES',
    # Selection store
    'LEVELS',
    'LEVEL_LABELS',
    'CascadeState',
    'selection_label',
    # Cascade filter
    'get_level_options',
    'get_filter_options',
    'on_level_change',
    # Matcher
    'match',
    # Map
    'MapLayer',
    'MapView',
    'fit_bounds',
    'union_bounds',
    'HighlightDriver',
    # Domain layers
    'DOMAIN_LAYERS',
    'DomainLayerSpec',
    'DomainLayerToggle',
    'DomainState',
    # Flood extent
    'FLOOD_EXTENTS',
    'FloodExtentSelector',
    # Coordinator
    'LocationCascadeCoordinator',
]
