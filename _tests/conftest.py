"""
Shared fixtures: a small boundary set plus household and school collections.

Boundary hierarchy:
    Reg1 / Prov1 / Mun1 / Alpha
    Reg1 / Prov1 / Mun1 / Beta
    Reg1 / Prov1 / Mun2 / Gamma
    Reg2 / Prov2 / Mun3 / Delta

Households: 3 in Alpha, 1 in Gamma, none in Beta or Delta.
Schools: 1 in Gamma, 1 in Delta.
"""
import pytest

from utils.coordinator import LocationCascadeCoordinator
from utils.data_loader import FeatureRegistry, boundary_frame, normalize_boundary_features


def square(x: float, y: float, size: float = 0.01) -> dict:
    return {
        'type': 'Polygon',
        'coordinates': [[[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]],
    }


def point(x: float, y: float) -> dict:
    return {'type': 'Point', 'coordinates': [x, y]}


RAW_BOUNDARIES = [
    {'type': 'Feature', 'properties': {'Reg_Nme': 'Reg1', 'Pro_Name': 'Prov1', 'Mun_Name': 'Mun1', 'Bgy_Name': 'Alpha'},
     'geometry': square(121.00, 17.00)},
    {'type': 'Feature', 'properties': {'Reg_Nme': 'Reg1', 'Pro_Name': 'Prov1', 'Mun_Name': 'Mun1', 'Bgy_Name': 'Beta'},
     'geometry': square(121.01, 17.00)},
    {'type': 'Feature', 'properties': {'Reg_Name': 'Reg1', 'Pro_Name': 'Prov1', 'Mun_Name': 'Mun2', 'Bgy_Name': 'Gamma'},
     'geometry': square(121.10, 17.10)},
    {'type': 'Feature', 'properties': {'Reg_Nme': 'Reg2', 'Pro_Name': 'Prov2', 'Mun_Name': 'Mun3', 'Bgy_Name': 'Delta'},
     'geometry': square(122.00, 16.00)},
]


@pytest.fixture
def raw_boundaries():
    return [dict(f, properties=dict(f['properties'])) for f in RAW_BOUNDARIES]


@pytest.fixture
def boundaries(raw_boundaries):
    return normalize_boundary_features(raw_boundaries)


@pytest.fixture
def frame(boundaries):
    return boundary_frame(boundaries)


@pytest.fixture
def households():
    return [
        {'type': 'Feature', 'properties': {'fid': 1, 'BARANGAY': 'Alpha', 'MALE': 2, 'FEMALE': 1, 'INFANT': 1, 'CHILD': 0, 'ADULT': 2, 'ELDERLY': 0},
         'geometry': point(121.002, 17.002)},
        {'type': 'Feature', 'properties': {'fid': 2, 'BARANGAY': 'Alpha', 'MALE': 1, 'FEMALE': 1, 'INFANT': 0, 'CHILD': 1, 'ADULT': 1, 'ELDERLY': 0},
         'geometry': point(121.004, 17.004)},
        {'type': 'Feature', 'properties': {'fid': 3, 'BARANGAY': 'Alpha', 'MALE': 0, 'FEMALE': 2, 'INFANT': 0, 'CHILD': 0, 'ADULT': 1, 'ELDERLY': 1},
         'geometry': point(121.006, 17.006)},
        {'type': 'Feature', 'properties': {'fid': 4, 'BARANGAY': 'Gamma', 'MALE': 1, 'FEMALE': 'n/a', 'INFANT': 0, 'CHILD': 0, 'ADULT': 1, 'ELDERLY': 0},
         'geometry': point(121.105, 17.105)},
    ]


@pytest.fixture
def schools():
    return [
        {'type': 'Feature', 'properties': {'School': 'Gamma ES', 'Bgy_Name': 'Gamma', 'Mun_Name': 'Mun2'},
         'geometry': point(121.105, 17.105)},
        {'type': 'Feature', 'properties': {'School': 'Delta NHS', 'Bgy_Name': 'Delta', 'Mun_Name': 'Mun3'},
         'geometry': point(122.005, 16.005)},
    ]


@pytest.fixture
def registry(boundaries, households, schools):
    registry = FeatureRegistry()
    registry.publish('boundaries', boundaries)
    registry.publish('households', households)
    registry.publish('schools', schools)
    return registry


@pytest.fixture
def coordinator(registry):
    return LocationCascadeCoordinator(registry)


@pytest.fixture
def select_mun1(coordinator):
    """Coordinator with Reg1 / Prov1 / Mun1 selected (no barangay)."""
    coordinator.on_level_change('region', ['Reg1'])
    coordinator.on_level_change('province', ['Prov1'])
    coordinator.on_level_change('municipality', ['Mun1'])
    return coordinator
