"""
Selection store for the location cascade.

Holds the checked values for each administrative level
(region -> province -> municipality -> barangay) together with the
derived option list shown for each level below region.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set


# Ordered parent -> child
LEVELS = ('region', 'province', 'municipality', 'barangay')

LEVEL_LABELS = {
    'region': 'Region',
    'province': 'Province',
    'municipality': 'Municipality',
    'barangay': 'Barangay',
}

LEVEL_PLURALS = {
    'region': 'regions',
    'province': 'provinces',
    'municipality': 'municipalities',
    'barangay': 'barangays',
}


def level_index(level: str) -> int:
    """Position of a level in the hierarchy (region = 0)."""
    try:
        return LEVELS.index(level)
    except ValueError:
        raise ValueError(f"Unknown location level: {level!r}")


def parent_level(level: str) -> Optional[str]:
    idx = level_index(level)
    return LEVELS[idx - 1] if idx > 0 else None


def levels_below(level: str) -> List[str]:
    """All levels strictly below the given level, nearest first."""
    return list(LEVELS[level_index(level) + 1:])


def levels_above(level: str) -> List[str]:
    """All levels strictly above the given level, region first."""
    return list(LEVELS[:level_index(level)])


def _empty_selections() -> Dict[str, Set[str]]:
    return {level: set() for level in LEVELS}


@dataclass
class CascadeState:
    """
    Current selections and derived options for all four levels.

    One instance is owned by a single coordinator; nothing else mutates it.

    Attributes:
        selections: Level -> set of checked values
        options: Level -> sorted list of values currently offered
    """
    selections: Dict[str, Set[str]] = field(default_factory=_empty_selections)
    options: Dict[str, List[str]] = field(default_factory=dict)

    def get(self, level: str) -> Set[str]:
        level_index(level)
        return self.selections.setdefault(level, set())

    def set(self, level: str, values: Iterable[str]) -> None:
        level_index(level)
        self.selections[level] = {v for v in values if v}

    def clear(self, level: str) -> None:
        self.set(level, [])

    def clear_below(self, level: str) -> List[str]:
        """Clear every level below `level`. Returns the levels that had values."""
        cleared = []
        for child in levels_below(level):
            if self.selections.get(child):
                cleared.append(child)
            self.clear(child)
        return cleared

    def clear_all(self) -> None:
        for level in LEVELS:
            self.clear(level)

    def is_enabled(self, level: str) -> bool:
        """A level is enabled iff its parent has at least one selection."""
        parent = parent_level(level)
        if parent is None:
            return True
        return len(self.get(parent)) > 0

    def has_any_selection(self) -> bool:
        return any(self.selections.get(level) for level in LEVELS)

    def snapshot(self) -> Dict[str, frozenset]:
        """Immutable copy of the selections, handy for change detection."""
        return {level: frozenset(self.get(level)) for level in LEVELS}


def selection_label(level: str, selected: Iterable[str]) -> str:
    """
    Caption for a level control: 'Select Municipality' when empty,
    '1 selected municipality' / '3 selected municipalities' otherwise.
    """
    count = len(set(selected))
    if count == 0:
        return f"Select {LEVEL_LABELS[level]}"
    noun = level if count == 1 else LEVEL_PLURALS[level]
    return f"{count} selected {noun}"
