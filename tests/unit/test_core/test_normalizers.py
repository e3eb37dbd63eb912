"""Tests for the per-layer normalizers."""

import pytest
from core.config import FeasibilitySettings
from core.errors import MalformedPayload
from core.models import LayerId, Present, Unavailable, ZoningFact
from core.normalizers import (
    build_utility_fact, normalize_all, normalize_coverage, normalize_footprint,
    normalize_layer, normalize_slope, normalize_soil, normalize_zoning,
)

SETTINGS = FeasibilitySettings()


def esri(*attributes):
    return {"features": [{"attributes": attrs} for attrs in attributes]}


def geojson(*properties):
    return {"type": "FeatureCollection",
            "features": [{"type": "Feature", "properties": props} for props in properties]}


class TestZoningNormalizer:
    def test_description_wins(self):
        payload = esri({"ZONE_DESCRIPTION": "Low Density Residential", "ZONE_CODE": "R1",
                        "ZONE_CATEGORY": "Residential"})
        fact = normalize_zoning(payload, SETTINGS)
        assert fact.category_label == "Low Density Residential"
        assert fact.is_residential_or_mixed_use

    def test_blank_fields_skipped(self):
        payload = esri({"ZONE_DESCRIPTION": "  ", "ZONE_DESC": None, "ZONE_CODE": "C5"})
        assert normalize_zoning(payload, SETTINGS).category_label == "C5"

    def test_category_fallback(self):
        """Hamilton's zoning layer only carries ZONE_CATEGORY."""
        payload = esri({"ZONE_CATEGORY": "Mixed Use Medium Density"})
        fact = normalize_zoning(payload, SETTINGS)
        assert fact.category_label == "Mixed Use Medium Density"
        assert fact.is_residential_or_mixed_use

    def test_unknown_when_no_field(self):
        fact = normalize_zoning(esri({"OBJECTID": 7}), SETTINGS)
        assert fact.category_label == "Unknown"
        assert not fact.is_known

    def test_geojson_properties(self):
        assert normalize_zoning(geojson({"ZONING": "R2"}), SETTINGS).category_label == "R2"

    def test_numeric_code(self):
        assert normalize_zoning(esri({"ZONE_CODE": 12}), SETTINGS).category_label == "12"

    def test_industrial_not_residential(self):
        assert not normalize_zoning(esri({"ZONE_CODE": "M3"}), SETTINGS).is_residential_or_mixed_use


class TestCoverageNormalizer:
    def test_intersection_present(self):
        assert normalize_coverage(esri({"CATCHMENT": "A"})) is True

    def test_intersection_empty(self):
        assert normalize_coverage({"features": []}) is False

    def test_malformed(self):
        with pytest.raises(MalformedPayload):
            normalize_coverage({"error": "nope"})


class TestSoilNormalizer:
    def test_soil_type(self):
        assert normalize_soil(geojson({"SOIL_TYPE": "Clay Loam"}), SETTINGS) == "Clay Loam"

    def test_first_feature_with_value(self):
        payload = geojson({"SOIL_TYPE": ""}, {"TEXTURE": "Sandy Loam"})
        assert normalize_soil(payload, SETTINGS) == "Sandy Loam"

    def test_unknown(self):
        assert normalize_soil(geojson({"OTHER": 1}), SETTINGS) == "Unknown"


class TestSlopeNormalizer:
    def test_high(self):
        assert normalize_slope(esri({"SLOPE_PCT": 22.5}), SETTINGS) is True

    def test_low(self):
        assert normalize_slope(esri({"SLOPE_PCT": "4"}), SETTINGS) is False

    def test_threshold_inclusive(self):
        assert normalize_slope(esri({"SLOPE": 15}), SETTINGS) is True

    def test_non_numeric(self):
        with pytest.raises(MalformedPayload):
            normalize_slope(esri({"SLOPE_PCT": "steep"}), SETTINGS)

    def test_missing_attribute(self):
        with pytest.raises(MalformedPayload):
            normalize_slope(esri({"OBJECTID": 1}), SETTINGS)


class TestFootprintNormalizer:
    def test_esri_rings(self):
        # ~25 ft x ~40 ft box near Hamilton
        lat, lon = 43.2557, -79.8711
        dlon = 7.62 / (111_320.0 * 0.7279)
        dlat = 12.192 / 110_574.0
        ring = [[lon, lat], [lon + dlon, lat], [lon + dlon, lat + dlat],
                [lon, lat + dlat], [lon, lat]]
        payload = {"features": [{"attributes": {}, "geometry": {"rings": [ring]}}]}

        fact = normalize_footprint(payload)
        assert fact.width_ft == pytest.approx(25.0, abs=0.5)
        assert fact.depth_ft == pytest.approx(40.0, abs=0.5)

    def test_geojson_polygon(self):
        ring = [[-79.0, 43.0], [-78.9999, 43.0], [-78.9999, 43.0001], [-79.0, 43.0001]]
        payload = {"features": [{"properties": {},
                                 "geometry": {"type": "Polygon", "coordinates": [ring]}}]}
        fact = normalize_footprint(payload)
        assert fact.width_ft > 0
        assert fact.depth_ft > 0

    def test_missing_geometry(self):
        with pytest.raises(MalformedPayload):
            normalize_footprint(esri({"OBJECTID": 1}))

    def test_degenerate(self):
        ring = [[-79.0, 43.0], [-79.0, 43.0], [-79.0, 43.0]]
        with pytest.raises(MalformedPayload):
            normalize_footprint({"features": [{"geometry": {"rings": [ring]}}]})


class TestNormalizeLayer:
    def test_unavailable_passes_through(self):
        missing = Unavailable("timeout")
        assert normalize_layer(LayerId.ZONING, missing, SETTINGS) is missing

    def test_present_mapped(self):
        result = normalize_layer(LayerId.ZONING, Present(esri({"ZONE_CODE": "R1"})), SETTINGS)
        assert result == Present(ZoningFact("R1", True))

    def test_malformed_becomes_unavailable(self):
        result = normalize_layer(LayerId.SLOPE, Present(esri({"SLOPE_PCT": "n/a"})), SETTINGS)
        assert not result.is_present
        assert "malformed" in result.reason

    def test_normalize_all_fills_missing_layers(self):
        facts = normalize_all({LayerId.SEWER: Present({"features": [{}]})}, SETTINGS)
        assert set(facts) == set(LayerId)
        assert facts[LayerId.SEWER] == Present(True)
        assert not facts[LayerId.ZONING].is_present


def test_missing_utility_counts_as_no_coverage():
    facts = normalize_all({
        LayerId.SEWER: Present({"features": [{}]}),
        LayerId.WATER: Unavailable("timeout"),
    }, SETTINGS)
    utilities = build_utility_fact(facts)
    assert utilities.sewer_available
    assert not utilities.water_available
    assert not utilities.hydro_available


@pytest.mark.parametrize("layer,payload", [
    (LayerId.ZONING, {"features": [None]}),
    (LayerId.SOIL, {"features": ["x"]}),
    (LayerId.SLOPE, {"features": [[1, 2]]}),
    (LayerId.FOOTPRINT, {"features": [None]}),
    (LayerId.FOOTPRINT, {"features": [{"geometry": [1, 2]}]}),
    (LayerId.FOOTPRINT, {"features": [{"geometry": {"rings": {"a": 1}}}]}),
    (LayerId.FOOTPRINT, {"features": [{"geometry": {"rings": [[{"x": 1}, {"x": 2}]]}}]}),
    (LayerId.FOOTPRINT, {"features": [{"geometry": {"type": "MultiPolygon", "coordinates": {"a": 1}}}]}),
    (LayerId.HERITAGE, {"features": "not a list"}),
])
def test_unexpected_shapes_become_unavailable(layer, payload):
    result = normalize_layer(layer, Present(payload), SETTINGS)
    assert not result.is_present
    assert result.reason.startswith("malformed payload")
