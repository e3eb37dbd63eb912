"""
Normalizers - reconcile provider field shapes into facts.

Each normalizer is a pure function of a raw payload. Payloads are ArcGIS
query responses, either Esri JSON (features[].attributes) or GeoJSON
(features[].properties). Bad content raises MalformedPayload; no defaults
are injected here.
"""

import math
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from core.config import FeasibilitySettings, get_settings
from core.errors import MalformedPayload
from core.models import (
    FT_TO_M, UNKNOWN_ZONING,
    FootprintFact, LayerId, LayerResult, Present, Unavailable,
    UtilityFact, ZoningFact,
)

log = logging.getLogger(__name__)

UNKNOWN_SOIL = "Unknown"

# Meters per degree (WGS-84, local approximation)
M_PER_DEG_LAT = 110_574.0
M_PER_DEG_LON_EQUATOR = 111_320.0


def _features(payload: Mapping[str, Any]) -> List[Dict[str, Any]]:
    features = payload.get("features") if isinstance(payload, Mapping) else None
    if not isinstance(features, list):
        raise MalformedPayload("payload", "missing 'features' list")
    return features


def _attributes(feature: Mapping[str, Any]) -> Dict[str, Any]:
    """Attribute table of a feature in either Esri JSON or GeoJSON shape."""
    if not isinstance(feature, Mapping):
        raise MalformedPayload("payload", f"feature is not an object: {type(feature).__name__}")
    attrs = feature.get("attributes")
    if attrs is None:
        attrs = feature.get("properties")
    return attrs if isinstance(attrs, dict) else {}


def _first_non_empty(attrs: Mapping[str, Any], candidates: Sequence[str]) -> Optional[str]:
    for name in candidates:
        value = attrs.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


# ═══════════════════════════════════════════════════════════════════════════
# LAYER NORMALIZERS
# ═══════════════════════════════════════════════════════════════════════════
def normalize_zoning(payload: Mapping[str, Any],
                     settings: Optional[FeasibilitySettings] = None) -> ZoningFact:
    """Zoning label from the first non-empty candidate field, else 'Unknown'."""
    settings = settings or get_settings()
    features = _features(payload)
    attrs = _attributes(features[0]) if features else {}
    label = _first_non_empty(attrs, settings.zoning_fields) or UNKNOWN_ZONING
    residential = any(token in label for token in settings.residential_tokens)
    return ZoningFact(category_label=label, is_residential_or_mixed_use=residential)


def normalize_coverage(payload: Mapping[str, Any]) -> bool:
    """Intersection query: any feature at the point means covered."""
    return len(_features(payload)) > 0


def normalize_soil(payload: Mapping[str, Any],
                   settings: Optional[FeasibilitySettings] = None) -> str:
    settings = settings or get_settings()
    for feature in _features(payload):
        soil = _first_non_empty(_attributes(feature), settings.soil_fields)
        if soil:
            return soil
    return UNKNOWN_SOIL


def normalize_slope(payload: Mapping[str, Any],
                    settings: Optional[FeasibilitySettings] = None) -> bool:
    """True when the slope at the point meets the risk threshold."""
    settings = settings or get_settings()
    features = _features(payload)
    if not features:
        raise MalformedPayload(LayerId.SLOPE.value, "no slope feature")
    raw = _first_non_empty(_attributes(features[0]), settings.slope_fields)
    if raw is None:
        raise MalformedPayload(LayerId.SLOPE.value, "no slope attribute")
    try:
        percent = float(raw)
    except ValueError:
        raise MalformedPayload(LayerId.SLOPE.value, f"non-numeric slope {raw!r}")
    if not math.isfinite(percent):
        raise MalformedPayload(LayerId.SLOPE.value, f"non-finite slope {raw!r}")
    return percent >= settings.slope_risk_threshold_pct


def _ring(feature: Mapping[str, Any]) -> List[Sequence[float]]:
    if not isinstance(feature, Mapping):
        raise MalformedPayload(LayerId.FOOTPRINT.value, "feature is not an object")
    geometry = feature.get("geometry") or {}
    if not isinstance(geometry, Mapping):
        raise MalformedPayload(LayerId.FOOTPRINT.value, "geometry is not an object")

    if "rings" in geometry:
        rings = geometry["rings"]
    elif geometry.get("type") == "Polygon":
        rings = geometry.get("coordinates")
    elif geometry.get("type") == "MultiPolygon":
        polygons = geometry.get("coordinates") or []
        rings = polygons[0] if isinstance(polygons, list) and polygons else None
    else:
        rings = None
    if not isinstance(rings, list) or not rings or not isinstance(rings[0], list) or not rings[0]:
        raise MalformedPayload(LayerId.FOOTPRINT.value, "footprint has no polygon geometry")
    return rings[0]


def normalize_footprint(payload: Mapping[str, Any]) -> FootprintFact:
    """
    Building width and depth from the footprint's bounding box.

    Width runs east-west, depth north-south. Degrees are converted with a
    local equirectangular approximation, which is accurate to well under a
    foot at parcel scale.
    """
    features = _features(payload)
    if not features:
        raise MalformedPayload(LayerId.FOOTPRINT.value, "no footprint feature")
    ring = _ring(features[0])
    try:
        xs = [float(point[0]) for point in ring]
        ys = [float(point[1]) for point in ring]
    except (TypeError, ValueError, IndexError, KeyError):
        raise MalformedPayload(LayerId.FOOTPRINT.value, "footprint vertices are not numeric")

    mid_lat = (min(ys) + max(ys)) / 2
    width_m = (max(xs) - min(xs)) * M_PER_DEG_LON_EQUATOR * math.cos(math.radians(mid_lat))
    depth_m = (max(ys) - min(ys)) * M_PER_DEG_LAT
    if not (math.isfinite(width_m) and math.isfinite(depth_m)) or width_m <= 0 or depth_m <= 0:
        raise MalformedPayload(LayerId.FOOTPRINT.value, "degenerate footprint")
    return FootprintFact(width_ft=width_m / FT_TO_M, depth_ft=depth_m / FT_TO_M)


NORMALIZERS: Dict[LayerId, Callable[..., Any]] = {
    LayerId.ZONING: normalize_zoning,
    LayerId.SEWER: normalize_coverage,
    LayerId.WATER: normalize_coverage,
    LayerId.HYDRO: normalize_coverage,
    LayerId.HERITAGE: normalize_coverage,
    LayerId.GREENBELT: normalize_coverage,
    LayerId.SOIL: normalize_soil,
    LayerId.SLOPE: normalize_slope,
    LayerId.FOOTPRINT: normalize_footprint,
    LayerId.ROAD_ACCESS: normalize_coverage,
    LayerId.STREETLIGHT: normalize_coverage,
}

_SETTINGS_AWARE = {LayerId.ZONING, LayerId.SOIL, LayerId.SLOPE}


def normalize_layer(layer: LayerId, result: LayerResult,
                    settings: Optional[FeasibilitySettings] = None) -> LayerResult:
    """
    Map a raw LayerResult to a fact LayerResult.

    Unavailable passes through untouched. A payload that cannot be
    normalized becomes Unavailable.
    """
    if not result.is_present:
        return result
    normalizer = NORMALIZERS[layer]
    try:
        if layer in _SETTINGS_AWARE:
            fact = normalizer(result.value, settings=settings)
        else:
            fact = normalizer(result.value)
    except MalformedPayload as e:
        log.warning(f"Layer {layer.value} payload could not be normalized: {e.reason}")
        return Unavailable(f"malformed payload: {e.reason}")
    return Present(fact)


def normalize_all(results: Mapping[LayerId, LayerResult],
                  settings: Optional[FeasibilitySettings] = None) -> Dict[LayerId, LayerResult]:
    """Normalize every layer. Layers missing from results count as Unavailable."""
    return {
        layer: normalize_layer(layer, results.get(layer, Unavailable("not fetched")), settings)
        for layer in LayerId
    }


def build_utility_fact(facts: Mapping[LayerId, LayerResult]) -> UtilityFact:
    """Utility coverage for the eligibility check. Missing data counts as no coverage."""
    return UtilityFact(
        sewer_available=bool(facts[LayerId.SEWER].value_or(False)),
        water_available=bool(facts[LayerId.WATER].value_or(False)),
        hydro_available=bool(facts[LayerId.HYDRO].value_or(False)),
    )
