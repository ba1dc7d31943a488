"""
Unit tests for the map model and the highlight driver.

Run with: python -m pytest _tests/test_map_state.py -v
"""
import pytest

from utils.highlight import HIGHLIGHT_LAYER_ID, HighlightDriver, clone_feature
from utils.map_state import (
    DEFAULT_VIEW,
    MapLayer,
    MapView,
    fit_bounds,
    geometry_bounds,
    union_bounds,
    zoom_for_scale,
)


class TestBounds:
    """Bounding boxes of GeoJSON geometries."""

    def test_polygon_bounds(self, boundaries):
        assert geometry_bounds(boundaries[0]['geometry']) == pytest.approx((121.0, 17.0, 121.01, 17.01))

    def test_point_bounds(self):
        assert geometry_bounds({'type': 'Point', 'coordinates': [121.5, 17.5]}) == (121.5, 17.5, 121.5, 17.5)

    def test_geometry_collection(self):
        geometry = {
            'type': 'GeometryCollection',
            'geometries': [
                {'type': 'Point', 'coordinates': [120.0, 16.0]},
                {'type': 'LineString', 'coordinates': [[121.0, 17.0], [122.0, 18.0]]},
            ],
        }
        assert geometry_bounds(geometry) == (120.0, 16.0, 122.0, 18.0)

    def test_empty_geometry(self):
        assert geometry_bounds(None) is None
        assert geometry_bounds({'type': 'Polygon', 'coordinates': []}) is None

    def test_union_bounds(self, boundaries):
        assert union_bounds(boundaries) == pytest.approx((121.0, 16.0, 122.01, 17.11))

    def test_union_bounds_skips_missing_geometry(self, boundaries):
        features = [{'geometry': None}] + boundaries[:1]
        assert union_bounds(features) == pytest.approx((121.0, 17.0, 121.01, 17.01))
        assert union_bounds([{'geometry': None}]) is None


class TestFitBounds:
    """Viewport fitting."""

    def test_center_is_bbox_center(self):
        view = fit_bounds((121.0, 17.0, 121.02, 17.01))
        assert view['longitude'] == pytest.approx(121.01)
        assert view['latitude'] == pytest.approx(17.005, abs=1e-4)

    def test_single_point_uses_max_zoom(self):
        assert fit_bounds((121.0, 17.0, 121.0, 17.0))['zoom'] == 18

    def test_tiny_area_capped_at_max_zoom(self):
        assert fit_bounds((121.0, 17.0, 121.00001, 17.00001), max_zoom=18)['zoom'] == 18

    def test_larger_area_zooms_out(self):
        small = fit_bounds((121.0, 17.0, 121.01, 17.01))['zoom']
        large = fit_bounds((120.0, 16.0, 122.0, 18.0))['zoom']
        assert large < small

    def test_padding_reduces_zoom(self):
        bounds = (121.0, 17.0, 121.5, 17.5)
        assert fit_bounds(bounds, padding=100)['zoom'] < fit_bounds(bounds, padding=0)['zoom']

    def test_zoom_never_negative(self):
        assert fit_bounds((-180.0, -80.0, 180.0, 80.0), width=200, height=200)['zoom'] >= 0


class TestStartView:
    """Initial view over northern Luzon."""

    def test_default_scale_zoom(self):
        assert zoom_for_scale(4453347) == pytest.approx(6.05, abs=0.05)

    def test_default_view(self):
        assert DEFAULT_VIEW['latitude'] == pytest.approx(17.3943)
        assert DEFAULT_VIEW['longitude'] == pytest.approx(121.6664)

    def test_reset_view(self):
        view = MapView()
        view.fit((121.0, 17.0, 121.01, 17.01))
        view.reset_view()
        assert view.view_state['zoom'] == DEFAULT_VIEW['zoom']
        assert view.view_state['transition_duration'] == 0


class TestMapView:
    """Layer collection behaviour."""

    def test_set_visible_missing_layer(self):
        assert MapView().set_visible('nope', False) is False

    def test_ordered_layers_by_z_index(self):
        view = MapView()
        view.add_layer(MapLayer('top', 'Top', z_index=50))
        view.add_layer(MapLayer('bottom', 'Bottom', z_index=1))
        view.add_layer(MapLayer('hidden', 'Hidden', z_index=10, visible=False))

        assert [l.layer_id for l in view.ordered_layers()] == ['bottom', 'top']
        assert [l.layer_id for l in view.ordered_layers(visible_only=False)] == ['bottom', 'hidden', 'top']

    def test_fit_records_transition(self):
        view = MapView()
        result = view.fit((121.0, 17.0, 121.01, 17.01), duration=400)
        assert result['transition_duration'] == 400
        assert view.fit_count == 1


class TestHighlightDriver:
    """Highlight layer and zoom-to-selection."""

    def test_clone_is_independent(self, boundaries):
        clone = clone_feature(boundaries[0])
        clone['properties']['barangay'] = 'Changed'
        clone['geometry']['coordinates'][0][0][0] = 0.0

        assert boundaries[0]['properties']['barangay'] == 'Alpha'
        assert boundaries[0]['geometry']['coordinates'][0][0][0] == 121.0

    def test_render_fits_union_bounds(self, boundaries):
        view = MapView()
        driver = HighlightDriver(view)

        bounds = driver.render(boundaries[:2])

        assert bounds == pytest.approx((121.0, 17.0, 121.02, 17.01))
        assert len(driver.highlighted) == 2
        assert view.fit_count == 1
        assert view.view_state['transition_duration'] == 400

    def test_empty_render_clears_without_zoom(self, boundaries):
        view = MapView()
        driver = HighlightDriver(view)
        driver.render(boundaries[:2])
        before = dict(view.view_state)

        assert driver.render([]) is None

        assert driver.highlighted == []
        assert view.fit_count == 1
        assert view.view_state == before

    def test_render_replaces_previous_highlight(self, boundaries):
        driver = HighlightDriver(MapView())
        driver.render(boundaries[:2])
        driver.render(boundaries[2:3])
        driver.render(boundaries[2:3])

        assert [f['properties']['barangay'] for f in driver.highlighted] == ['Gamma']

    def test_highlight_layer_style(self, boundaries):
        view = MapView()
        HighlightDriver(view).render(boundaries[:1])
        layer = view.get_layer(HIGHLIGHT_LAYER_ID)
        assert layer.style == 'highlight'
        assert layer.z_index > 100

    def test_features_without_geometry_skip_zoom(self):
        view = MapView()
        assert HighlightDriver(view).render([{'properties': {'barangay': 'X'}, 'geometry': None}]) is None
        assert view.fit_count == 0
