"""
Data loading utilities for the flood-mapping dashboard.
Handles GeoJSON file lookup, boundary property normalization, and the
feature registry the coordinator subscribes to.

Data Source: GeoJSON exports under data/geo/

Available Collections:
- boundaries: Barangay boundary polygons (Reg_Nme, Pro_Name, Mun_Name, Bgy_Name)
- households: Exposed household points (BARANGAY, MALE, FEMALE, INFANT, ...)
- schools: School points (Bgy_Name, Mun_Name)
- flood_extents: Flood extent polygons (EXTENT, in metres)
"""
import json
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pandas as pd

from .selection_store import LEVELS

# Configure logging
logger = logging.getLogger(__name__)

# Environment variable that overrides the data directory
DATA_DIR_ENV = 'TOMAS_DATA_DIR'

# File names within the data directory
DATA_FILES = {
    'boundaries': 'BarangayBoundaries.geojson',
    'households': 'Households.geojson',
    'schools': 'Schools.geojson',
    'flood_extents': 'FloodExtents.geojson',
}

# Only the boundary collection is required for the dashboard to start
REQUIRED_COLLECTIONS = ('boundaries',)

# Source property names for each level (first present wins).
# The region key appears both as 'Reg_Nme' and 'Reg_Name' in the exports.
BOUNDARY_PROPERTY_KEYS = {
    'region': ('Reg_Nme', 'Reg_Name'),
    'province': ('Pro_Name',),
    'municipality': ('Mun_Name',),
    'barangay': ('Bgy_Name',),
}


def get_data_dir() -> Optional[Path]:
    """Get the directory holding the GeoJSON exports."""
    # Check multiple possible locations
    possible_paths = []
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        possible_paths.append(Path(env_dir))
    possible_paths.extend([
        Path(__file__).parent.parent / 'data' / 'geo',
        Path.home() / '.config' / 'tomas-dashboard' / 'geo',
    ])

    for path in possible_paths:
        if path.is_dir():
            return path

    return None


def clean_value(value) -> Optional[str]:
    """Strip a property value; blanks and non-strings become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        # NaN from spreadsheet-derived exports
        if isinstance(value, float) and value != value:
            return None
        value = str(value)
    value = value.strip()
    return value or None


def get_property(properties: dict, keys) -> Optional[str]:
    """Return the first non-blank value among the given property names."""
    if isinstance(keys, str):
        keys = (keys,)
    for key in keys:
        value = clean_value(properties.get(key))
        if value is not None:
            return value
    return None


def load_geojson(geo_path: Path) -> dict:
    """
    Load a GeoJSON FeatureCollection from disk.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the payload has no 'features' array
    """
    if not geo_path.exists():
        raise FileNotFoundError(f"GeoJSON not found: {geo_path}")

    with open(geo_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict) or not isinstance(data.get('features'), list):
        raise ValueError(f"Invalid GeoJSON data structure in {geo_path}")

    return data


def normalize_boundary_features(features: List[dict]) -> List[dict]:
    """
    Add canonical 'region', 'province', 'municipality', 'barangay'
    properties to each boundary feature.

    The source properties are kept; the input features are not modified.
    """
    normalized = []
    for feature in features:
        properties = dict(feature.get('properties') or {})
        for level, keys in BOUNDARY_PROPERTY_KEYS.items():
            properties[level] = get_property(properties, keys)
        normalized.append({
            'type': 'Feature',
            'geometry': feature.get('geometry'),
            'properties': properties,
        })
    return normalized


def boundary_frame(features: List[dict]) -> pd.DataFrame:
    """One row per boundary feature with a column per level."""
    rows = [
        {level: (f.get('properties') or {}).get(level) for level in LEVELS}
        for f in features
    ]
    return pd.DataFrame(rows, columns=list(LEVELS))


def properties_frame(features: List[dict]) -> pd.DataFrame:
    """Flatten feature properties into a DataFrame (geometry dropped)."""
    return pd.DataFrame([f.get('properties') or {} for f in features])


def build_barangay_municipality_map(features: List[dict]) -> Dict[str, set]:
    """
    Map each barangay name to the municipalities it appears in.

    Barangay names are not unique nationally, so a name can map to
    more than one municipality.
    """
    mapping: Dict[str, set] = {}
    for feature in features:
        props = feature.get('properties') or {}
        barangay = props.get('barangay')
        municipality = props.get('municipality')
        if barangay and municipality:
            mapping.setdefault(barangay, set()).add(municipality)
    logger.info(f"Built barangay to municipality mapping: {len(mapping)} barangays")
    return mapping


class FeatureRegistry:
    """
    In-memory store of loaded feature collections.

    Consumers either read a collection directly with get() or subscribe
    with on_ready() to be called once when it is published.
    """

    def __init__(self):
        self._collections: Dict[str, List[dict]] = {}
        self._waiters: Dict[str, List[Callable[[List[dict]], None]]] = {}

    def publish(self, name: str, features: List[dict]) -> None:
        """Store a collection and fire any pending ready callbacks for it."""
        self._collections[name] = features
        logger.info(f"Published '{name}' collection with {len(features)} features")
        for callback in self._waiters.pop(name, []):
            callback(features)

    def get(self, name: str) -> Optional[List[dict]]:
        return self._collections.get(name)

    def has(self, name: str) -> bool:
        return name in self._collections

    def names(self) -> List[str]:
        return sorted(self._collections)

    def on_ready(self, name: str, callback: Callable[[List[dict]], None]) -> None:
        """
        Call `callback(features)` once `name` is available.

        Runs immediately when the collection is already published.
        """
        if name in self._collections:
            callback(self._collections[name])
            return
        self._waiters.setdefault(name, []).append(callback)

    def pending(self, name: str) -> int:
        return len(self._waiters.get(name, []))


def load_collections(data_dir: Optional[Path] = None) -> Dict[str, List[dict]]:
    """
    Load every configured collection from the data directory.

    Boundary features come back normalized. Optional collections that are
    missing are logged and left out.

    Raises:
        FileNotFoundError: If the data directory or a required file is missing
    """
    if data_dir is None:
        data_dir = get_data_dir()
    if data_dir is None:
        raise FileNotFoundError(
            f"Data directory not found. Set {DATA_DIR_ENV} or add data/geo/"
        )

    collections = {}
    for name, filename in DATA_FILES.items():
        path = Path(data_dir) / filename
        try:
            data = load_geojson(path)
        except FileNotFoundError:
            if name in REQUIRED_COLLECTIONS:
                raise
            logger.warning(f"Optional collection '{name}' not found at {path}")
            continue

        features = data['features']
        if name == 'boundaries':
            features = normalize_boundary_features(features)
        collections[name] = features
        logger.info(f"Loaded {len(features)} '{name}' features from {path.name}")

    return collections


def populate_registry(registry: FeatureRegistry, collections: Dict[str, List[dict]]) -> FeatureRegistry:
    """Publish every loaded collection into the registry."""
    for name, features in collections.items():
        registry.publish(name, features)
    return registry
