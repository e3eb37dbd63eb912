"""
Configuration for the ADU Feasibility Engine.

Rule constants, provider endpoints and the fallback defaults table.
Everything here can be overridden with ADU_* environment variables.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from core.models import ConfidenceLevel, LayerId, ZoningFact

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# FALLBACK DEFAULTS (used only when every layer fails)
# ═══════════════════════════════════════════════════════════════════════════
FALLBACK_ZONING_LABEL = "Unknown (fallback)"
FALLBACK_SOIL_TYPE = "Loam"
FALLBACK_NOTE = "Fallback feasibility report. Some data may be estimated."

FALLBACK_DEFAULTS: Dict[LayerId, Any] = {
    LayerId.ZONING: ZoningFact(FALLBACK_ZONING_LABEL, False),
    LayerId.SEWER: False,
    LayerId.WATER: False,
    LayerId.HYDRO: False,
    LayerId.HERITAGE: False,
    LayerId.GREENBELT: False,
    LayerId.SOIL: FALLBACK_SOIL_TYPE,
    LayerId.SLOPE: False,
    LayerId.FOOTPRINT: None,
    LayerId.ROAD_ACCESS: False,
    LayerId.STREETLIGHT: False,
}


# ═══════════════════════════════════════════════════════════════════════════
# PROVIDER ENDPOINTS (ArcGIS REST query URLs, Hamilton ON)
# ═══════════════════════════════════════════════════════════════════════════
DEFAULT_LAYER_URLS: Dict[LayerId, Optional[str]] = {
    LayerId.ZONING: (
        "https://services.arcgis.com/rYz782eMbySr2srL/arcgis/rest/services/"
        "Zoning_By_law_Boundary/FeatureServer/1/query"
    ),
    LayerId.HERITAGE: (
        "https://services.arcgis.com/rYz782eMbySr2srL/arcgis/rest/services/"
        "Heritage_Properties/FeatureServer/0/query"
    ),
    LayerId.GREENBELT: (
        "https://ws.lioservices.lrc.gov.on.ca/arcgis2/rest/services/"
        "LIO_OPEN_DATA/LIO_Open06/MapServer/15/query"
    ),
    LayerId.SOIL: (
        "https://ws.lioservices.lrc.gov.on.ca/arcgis2/rest/services/"
        "LIO_OPEN_DATA/LIO_Open05/MapServer/9/query"
    ),
    # No public default; set ADU_LAYER_URL_<LAYER> to enable.
    LayerId.SEWER: None,
    LayerId.WATER: None,
    LayerId.HYDRO: None,
    LayerId.SLOPE: None,
    LayerId.FOOTPRINT: None,
    LayerId.ROAD_ACCESS: None,
    LayerId.STREETLIGHT: None,
}


@dataclass(frozen=True)
class FeasibilitySettings:
    """Operator-supplied snapshot of eligibility rules and data sources."""

    # Zoning
    zone_allow_list: Tuple[str, ...] = ("R1", "R2", "R3", "C", "Mixed Use", "D")
    residential_tokens: Tuple[str, ...] = ("R1", "R2", "R3", "Residential", "Mixed Use")
    zoning_fields: Tuple[str, ...] = (
        "ZONE_DESCRIPTION", "ZONE_DESC", "ZONE_CODE", "ZONING", "ZONE_CATEGORY", "LABEL",
    )

    # Geometry (metric)
    min_rear_yard_m: float = 1.5
    min_side_clearance_m: float = 0.6
    adu_coverage_ratio: float = 0.15
    max_adu_size_m2: float = 60.0

    # Overlays
    soil_fields: Tuple[str, ...] = ("SOIL_TYPE", "SOILTYPE", "SOIL_TEXTURE", "TEXTURE")
    slope_fields: Tuple[str, ...] = ("SLOPE_PCT", "SLOPE_PERCENT", "SLOPE")
    slope_risk_threshold_pct: float = 15.0

    # Transport
    request_timeout_s: float = 15.0
    max_workers: int = 8
    road_access_buffer_m: float = 30.0
    streetlight_buffer_m: float = 50.0
    layer_urls: Dict[LayerId, Optional[str]] = field(
        default_factory=lambda: dict(DEFAULT_LAYER_URLS)
    )

    # Fallback
    fallback_defaults: Dict[LayerId, Any] = field(
        default_factory=lambda: dict(FALLBACK_DEFAULTS)
    )
    fallback_confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM
    fallback_note: str = FALLBACK_NOTE

    # Persistence
    report_log_path: Optional[str] = "feasibility_reports.jsonl"

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "FeasibilitySettings":
        """Build settings from ADU_* environment variables."""
        env = os.environ if environ is None else environ
        settings = cls()
        overrides: Dict[str, Any] = {}

        if env.get("ADU_MAX_SIZE_M2"):
            overrides["max_adu_size_m2"] = float(env["ADU_MAX_SIZE_M2"])
        if env.get("ADU_ZONE_ALLOW_LIST"):
            overrides["zone_allow_list"] = tuple(
                token.strip() for token in env["ADU_ZONE_ALLOW_LIST"].split(",") if token.strip()
            )
        if env.get("ADU_REQUEST_TIMEOUT"):
            overrides["request_timeout_s"] = float(env["ADU_REQUEST_TIMEOUT"])
        if env.get("ADU_MAX_WORKERS"):
            overrides["max_workers"] = int(env["ADU_MAX_WORKERS"])
        if "ADU_REPORT_LOG" in env:
            overrides["report_log_path"] = env["ADU_REPORT_LOG"] or None
        if env.get("ADU_FALLBACK_SOIL"):
            defaults = dict(settings.fallback_defaults)
            defaults[LayerId.SOIL] = env["ADU_FALLBACK_SOIL"]
            overrides["fallback_defaults"] = defaults

        urls = dict(settings.layer_urls)
        for layer in LayerId:
            key = f"ADU_LAYER_URL_{layer.name}"
            if key in env:
                urls[layer] = env[key] or None
        overrides["layer_urls"] = urls

        if overrides:
            log.debug(f"Settings overrides from environment: {sorted(overrides)}")
        return replace(settings, **overrides)


# Singleton
_settings: Optional[FeasibilitySettings] = None

def get_settings() -> FeasibilitySettings:
    """Get singleton settings loaded from the environment."""
    global _settings
    if _settings is None:
        _settings = FeasibilitySettings.from_env()
    return _settings
