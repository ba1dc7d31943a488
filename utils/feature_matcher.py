"""
Attribute matching of GeoJSON features against location selections.
"""
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .data_loader import get_property
from .selection_store import LEVELS

PropertyKeys = Union[str, Sequence[str]]

# Boundary features carry normalized level names as properties
DEFAULT_LEVEL_KEYS: Dict[str, PropertyKeys] = {level: level for level in LEVELS}


def match(
    features: Iterable[dict],
    selections: Mapping[str, Iterable[str]],
    keys: Optional[Mapping[str, PropertyKeys]] = None,
) -> List[dict]:
    """
    Filter features by exact attribute equality at each selected level.

    A feature matches when, for every level, the selection at that level is
    empty or contains the feature's value for that level (OR within a level,
    AND across levels). When every selection is empty nothing matches.

    Args:
        features: GeoJSON feature dicts
        selections: Level -> selected values; missing levels count as empty
        keys: Level -> property name(s) holding that level's value.
              Defaults to the normalized boundary property names.

    Returns:
        Matching features, in input order
    """
    keys = DEFAULT_LEVEL_KEYS if keys is None else keys

    active = {}
    for level, values in selections.items():
        values = set(values or ())
        if values:
            if level not in keys:
                raise KeyError(f"No property key configured for level {level!r}")
            active[level] = values

    if not active:
        return []

    matched = []
    for feature in features:
        properties = feature.get('properties') or {}
        if all(
            get_property(properties, keys[level]) in values
            for level, values in active.items()
        ):
            matched.append(feature)
    return matched
