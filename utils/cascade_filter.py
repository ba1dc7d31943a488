"""
Cascading option filter for the region -> province -> municipality -> barangay
location controls.

Whenever a level's selection changes, the option lists of every level below
it are recomputed from the boundary rows that co-occur with the current
selections. Emptying a level clears everything below it.
"""
import logging
from typing import Dict, Iterable, List

import pandas as pd

from .selection_store import LEVELS, CascadeState, levels_above, levels_below

logger = logging.getLogger(__name__)


def unique_sorted(values: Iterable) -> List[str]:
    """De-duplicate, drop blanks, and sort alphabetically."""
    cleaned = set()
    for value in values:
        if isinstance(value, str) and value.strip():
            cleaned.add(value)
    return sorted(cleaned)


def get_level_options(frame: pd.DataFrame, level: str, selections: Dict[str, Iterable[str]]) -> List[str]:
    """
    Options for `level` given the selections of every level above it.

    Region always offers every region. Any other level offers only values
    found on rows whose ancestors are all selected; when an ancestor has no
    selection the level is disabled, and the full list for the level is
    returned so the control still shows what exists.

    Args:
        frame: Boundary rows with one column per level
        level: Level to compute options for
        selections: Level -> selected values

    Returns:
        Sorted, de-duplicated option list
    """
    if frame.empty or level not in frame.columns:
        return []

    ancestors = levels_above(level)
    if not ancestors:
        return unique_sorted(frame[level].dropna())

    mask = pd.Series(True, index=frame.index)
    for ancestor in ancestors:
        chosen = list(selections.get(ancestor) or ())
        if not chosen:
            return unique_sorted(frame[level].dropna())
        mask &= frame[ancestor].isin(chosen)

    return unique_sorted(frame.loc[mask, level].dropna())


def get_filter_options(frame: pd.DataFrame, selections: Dict[str, Iterable[str]]) -> Dict[str, List[str]]:
    """Option lists for all four levels."""
    return {level: get_level_options(frame, level, selections) for level in LEVELS}


def on_level_change(state: CascadeState, frame: pd.DataFrame, level: str, values: Iterable[str]) -> List[str]:
    """
    Apply a new selection at `level` and cascade it downwards.

    - Stores the new selection.
    - If it is empty, clears every level below (cascading reset).
    - Recomputes the option list of every level strictly below.
    - Drops child selections that are no longer offered.

    Args:
        state: Cascade state to update in place
        frame: Boundary rows with one column per level
        level: Level that changed
        values: New selection at that level

    Returns:
        Levels below `level` whose selection was cleared or trimmed
    """
    state.set(level, values)
    changed = []

    if not state.get(level):
        changed.extend(state.clear_below(level))
        if changed:
            logger.info(f"Cleared {', '.join(changed)} after {level} selection was emptied")

    # Keep the level's own option list in place, then walk down
    if level not in state.options:
        state.options[level] = get_level_options(frame, level, state.selections)

    for child in levels_below(level):
        options = get_level_options(frame, child, state.selections)
        state.options[child] = options

        if not state.is_enabled(child):
            if state.get(child):
                state.clear(child)
                changed.append(child)
            continue

        current = state.get(child)
        valid = current.intersection(options)
        if valid != current:
            state.set(child, valid)
            changed.append(child)

    return sorted(set(changed), key=LEVELS.index)


def refresh_all(state: CascadeState, frame: pd.DataFrame) -> CascadeState:
    """Recompute every option list from scratch (used at startup)."""
    on_level_change(state, frame, 'region', state.get('region'))
    state.options['region'] = get_level_options(frame, 'region', state.selections)
    return state
