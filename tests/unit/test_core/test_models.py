import math

import pytest
from core.models import (
    Coordinates, FootprintFact, GeometryInput, Present, Unavailable, ZoningFact,
)


def test_coordinates_valid():
    """Verify Coordinates accepts WGS-84 values."""
    coords = Coordinates(43.2557, -79.8711)
    assert coords.latitude == 43.2557
    assert coords.to_dict() == {"latitude": 43.2557, "longitude": -79.8711}


@pytest.mark.parametrize("lat,lon", [
    (91.0, 0.0),
    (0.0, -180.5),
    (math.nan, 0.0),
    (0.0, math.inf),
])
def test_coordinates_out_of_range(lat, lon):
    with pytest.raises(ValueError):
        Coordinates(lat, lon)


def test_coordinates_rejects_bool():
    with pytest.raises(ValueError):
        Coordinates(True, 0.0)


def test_coordinates_immutable():
    coords = Coordinates(43.0, -79.0)
    with pytest.raises(AttributeError):
        coords.latitude = 44.0


def test_layer_results():
    """Verify the Present / Unavailable tagged union."""
    present = Present("R1")
    missing = Unavailable("timeout")

    assert present.is_present
    assert present.value_or("x") == "R1"
    assert not missing.is_present
    assert missing.value_or("x") == "x"
    assert missing.reason == "timeout"


def test_zoning_fact_known():
    assert ZoningFact("R2 - Residential").is_known
    assert not ZoningFact("Unknown").is_known
    assert not ZoningFact("Unknown (fallback)").is_known


def test_geometry_input_validation():
    with pytest.raises(ValueError):
        GeometryInput(lot_width=0, lot_depth=100)
    with pytest.raises(ValueError):
        GeometryInput(lot_width=30, lot_depth=100, house_width=-1, house_depth=40)


def test_geometry_input_footprint_fill():
    """Missing house dimensions come from the footprint."""
    geometry = GeometryInput(lot_width=30, lot_depth=100)
    assert not geometry.has_house

    filled = geometry.with_footprint(FootprintFact(width_ft=25.0, depth_ft=40.0))
    assert filled.has_house
    assert filled.house_width == 25.0
    assert filled.house_depth == 40.0


def test_geometry_input_keeps_caller_house():
    geometry = GeometryInput(lot_width=30, lot_depth=100, house_width=20, house_depth=30)
    filled = geometry.with_footprint(FootprintFact(width_ft=25.0, depth_ft=40.0))
    assert filled is geometry
