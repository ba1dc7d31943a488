"""
Unit tests for the household and school domain layer toggles.

Tests:
1. Activation hides the base layer and creates presentation layers
2. Barangay filtering and municipality filtering
3. Barangay precedence; never both presentation layers visible
4. Empty results warn once per selection
5. Activation while the collection is still loading

Run with: python -m pytest _tests/test_domain_layers.py -v
"""
import logging

import pytest

from utils.data_loader import FeatureRegistry
from utils.domain_layers import DOMAIN_LAYERS, DomainLayerToggle, DomainState
from utils.map_state import MapLayer, MapView


def _fids(features):
    return sorted(f['properties']['fid'] for f in features)


def _schools(features):
    return sorted(f['properties']['School'] for f in features)


@pytest.fixture
def map_view(households, schools):
    view = MapView()
    view.add_layer(MapLayer('households', 'Household', features=households, z_index=11, style='households'))
    view.add_layer(MapLayer('schools', 'Schools', features=schools, z_index=11, style='schools'))
    return view


@pytest.fixture
def households_toggle(map_view, registry):
    return DomainLayerToggle(DOMAIN_LAYERS['households'], map_view, registry)


@pytest.fixture
def schools_toggle(map_view, registry):
    return DomainLayerToggle(DOMAIN_LAYERS['schools'], map_view, registry)


def _empty_warnings(caplog, name):
    return [r for r in caplog.records if r.levelno == logging.WARNING and f"No {name} features" in r.message]


class TestActivation:
    """Master toggle on and off."""

    def test_starts_inactive(self, households_toggle):
        assert households_toggle.state is DomainState.INACTIVE
        assert not households_toggle.is_active

    def test_activate_without_selection(self, households_toggle, map_view):
        state = households_toggle.activate()

        assert state is DomainState.ACTIVE_UNFILTERED
        assert not map_view.is_visible('households')
        assert map_view.has_layer('households_by_barangay')
        assert map_view.has_layer('households_by_municipality')
        assert households_toggle.visible_presentation_layers() == ['households_by_barangay']
        assert households_toggle.filtered_features() == []

    def test_deactivate_restores_base_layer(self, households_toggle, map_view):
        households_toggle.activate({'barangay': {'Alpha'}})
        state = households_toggle.deactivate()

        assert state is DomainState.INACTIVE
        assert map_view.is_visible('households')
        assert not map_view.has_layer('households_by_barangay')
        assert not map_view.has_layer('households_by_municipality')

    def test_set_active_is_idempotent(self, households_toggle, map_view):
        households_toggle.set_active(True, {'barangay': {'Alpha'}})
        households_toggle.set_active(True, {'barangay': {'Alpha'}})
        assert _fids(households_toggle.filtered_features()) == [1, 2, 3]

    def test_on_change_called_on_activate_and_deactivate(self, households_toggle):
        calls = []
        households_toggle.on_change = lambda: calls.append(households_toggle.state)

        households_toggle.activate()
        households_toggle.deactivate()

        assert calls == [DomainState.ACTIVE_UNFILTERED, DomainState.INACTIVE]

    def test_update_while_inactive_only_remembers(self, households_toggle, map_view):
        state = households_toggle.update({'barangay': {'Alpha'}})
        assert state is DomainState.INACTIVE
        assert not map_view.has_layer('households_by_barangay')

        households_toggle.activate()
        assert households_toggle.state is DomainState.FILTERED_BY_BARANGAY
        assert _fids(households_toggle.filtered_features()) == [1, 2, 3]


class TestFiltering:
    """Barangay and municipality filters."""

    def test_barangay_filter(self, households_toggle):
        households_toggle.activate()
        state = households_toggle.update({'barangay': {'Alpha'}})

        assert state is DomainState.FILTERED_BY_BARANGAY
        assert households_toggle.visible_presentation_layers() == ['households_by_barangay']
        assert _fids(households_toggle.filtered_features()) == [1, 2, 3]

    def test_barangay_filter_multiple_values(self, households_toggle):
        households_toggle.activate({'barangay': {'Alpha', 'Gamma'}})
        assert _fids(households_toggle.filtered_features()) == [1, 2, 3, 4]

    def test_municipality_filter_through_boundary_map(self, households_toggle):
        households_toggle.activate({'municipality': {'Mun1'}})

        assert households_toggle.state is DomainState.FILTERED_BY_MUNICIPALITY
        assert households_toggle.visible_presentation_layers() == ['households_by_municipality']
        assert _fids(households_toggle.filtered_features()) == [1, 2, 3]

        households_toggle.update({'municipality': {'Mun2'}})
        assert _fids(households_toggle.filtered_features()) == [4]

    def test_school_municipality_filter_uses_own_property(self, schools_toggle):
        schools_toggle.activate({'municipality': {'Mun2'}})
        assert _schools(schools_toggle.filtered_features()) == ['Gamma ES']

    def test_school_barangay_filter(self, schools_toggle):
        schools_toggle.activate({'barangay': {'Delta'}})
        assert _schools(schools_toggle.filtered_features()) == ['Delta NHS']

    def test_barangay_takes_precedence(self, households_toggle):
        households_toggle.activate({'municipality': {'Mun2'}, 'barangay': {'Alpha'}})

        assert households_toggle.state is DomainState.FILTERED_BY_BARANGAY
        assert _fids(households_toggle.filtered_features()) == [1, 2, 3]

    def test_never_both_presentation_layers_visible(self, households_toggle):
        households_toggle.activate()
        sequence = [
            {'municipality': {'Mun1'}},
            {'municipality': {'Mun1'}, 'barangay': {'Beta'}},
            {'municipality': {'Mun1'}},
            {},
            {'barangay': {'Alpha'}},
        ]
        for selections in sequence:
            households_toggle.update(selections)
            assert len(households_toggle.visible_presentation_layers()) == 1

    def test_clearing_selection_returns_to_unfiltered(self, households_toggle):
        households_toggle.activate({'barangay': {'Alpha'}})
        state = households_toggle.update({'barangay': set(), 'municipality': set()})

        assert state is DomainState.ACTIVE_UNFILTERED
        assert households_toggle.filtered_features() == []

    def test_filtered_features_are_copies(self, households_toggle, households):
        households_toggle.activate({'barangay': {'Alpha'}})
        shown = households_toggle.filtered_features()
        shown[0]['properties']['BARANGAY'] = 'Changed'
        assert households[0]['properties']['BARANGAY'] == 'Alpha'


class TestEmptyResults:
    """No matching domain features."""

    def test_empty_barangay_warns_once(self, households_toggle, caplog):
        households_toggle.activate()
        with caplog.at_level(logging.WARNING, logger='utils.domain_layers'):
            households_toggle.update({'barangay': {'Beta'}})
            households_toggle.update({'barangay': {'Beta'}})

        assert households_toggle.state is DomainState.FILTERED_BY_BARANGAY
        assert households_toggle.filtered_features() == []
        assert len(_empty_warnings(caplog, 'households')) == 1
        assert households_toggle.drain_notices() == ["No household data within this Barangay!"]

    def test_empty_municipality_notice(self, households_toggle):
        households_toggle.activate({'municipality': {'Mun3'}})
        assert households_toggle.filtered_features() == []
        assert households_toggle.drain_notices() == ["No household data within this Municipality!"]

    def test_warns_again_after_selection_changes(self, households_toggle, caplog):
        households_toggle.activate()
        with caplog.at_level(logging.WARNING, logger='utils.domain_layers'):
            households_toggle.update({'barangay': {'Beta'}})
            households_toggle.update({'barangay': {'Alpha'}})
            households_toggle.update({'barangay': {'Beta'}})

        assert len(_empty_warnings(caplog, 'households')) == 2

    def test_drain_notices_empties_queue(self, households_toggle):
        households_toggle.activate({'barangay': {'Beta'}})
        assert len(households_toggle.drain_notices()) == 1
        assert households_toggle.drain_notices() == []


class TestLateCollection:
    """Toggle switched on before its collection is published."""

    @pytest.fixture
    def partial_registry(self, boundaries):
        registry = FeatureRegistry()
        registry.publish('boundaries', boundaries)
        return registry

    def test_activation_waits_for_publish(self, partial_registry, households, caplog):
        view = MapView()
        toggle = DomainLayerToggle(DOMAIN_LAYERS['households'], view, partial_registry)

        with caplog.at_level(logging.WARNING, logger='utils.domain_layers'):
            state = toggle.activate({'barangay': {'Alpha'}})
            toggle.activate()

        assert state is DomainState.INACTIVE
        assert partial_registry.pending('households') == 1
        assert any('not loaded' in r.message for r in caplog.records)

        partial_registry.publish('households', households)

        assert toggle.state is DomainState.FILTERED_BY_BARANGAY
        assert _fids(toggle.filtered_features()) == [1, 2, 3]
        assert partial_registry.pending('households') == 0

    def test_switched_off_before_publish_stays_inactive(self, partial_registry, households):
        toggle = DomainLayerToggle(DOMAIN_LAYERS['households'], MapView(), partial_registry)

        toggle.set_active(True)
        toggle.set_active(False)
        partial_registry.publish('households', households)

        assert toggle.state is DomainState.INACTIVE
