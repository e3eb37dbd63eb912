"""
Core data models for the ADU Feasibility Engine.

Layer results, normalized facts, rule verdicts and the final report.
Report-side types are frozen: a report is never mutated after assembly.
"""

import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union

T = TypeVar("T")

FT_TO_M = 0.3048
SQFT_TO_SQM = FT_TO_M * FT_TO_M


# ═══════════════════════════════════════════════════════════════════════════
# LOCATION
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class Coordinates:
    """A WGS-84 point produced by the geocoder."""
    latitude: float
    longitude: float

    def __post_init__(self):
        for name, value, limit in (
            ("latitude", self.latitude, 90.0),
            ("longitude", self.longitude, 180.0),
        ):
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or abs(value) > limit:
                raise ValueError(f"{name} out of range: {value}")

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


class LayerId(Enum):
    """External data layers consulted for every report."""
    ZONING = "zoning"
    SEWER = "sewer"
    WATER = "water"
    HYDRO = "hydro"
    HERITAGE = "heritage"
    GREENBELT = "greenbelt"
    SOIL = "soil"
    SLOPE = "slope"
    FOOTPRINT = "footprint"
    ROAD_ACCESS = "road_access"
    STREETLIGHT = "streetlight"


UTILITY_LAYERS = (LayerId.SEWER, LayerId.WATER, LayerId.HYDRO)
REQUIRED_UTILITY_LAYERS = (LayerId.SEWER, LayerId.WATER)


# ═══════════════════════════════════════════════════════════════════════════
# LAYER RESULTS
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class Present(Generic[T]):
    """A layer that returned usable data."""
    value: T

    @property
    def is_present(self) -> bool:
        return True

    def value_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Unavailable:
    """A layer that failed. The reason is kept for logging and the report."""
    reason: str

    @property
    def is_present(self) -> bool:
        return False

    def value_or(self, default: Any) -> Any:
        return default


LayerResult = Union[Present, Unavailable]


# ═══════════════════════════════════════════════════════════════════════════
# NORMALIZED FACTS
# ═══════════════════════════════════════════════════════════════════════════
UNKNOWN_ZONING = "Unknown"


@dataclass(frozen=True)
class ZoningFact:
    """Zoning category at the point."""
    category_label: str
    is_residential_or_mixed_use: bool = False

    @property
    def is_known(self) -> bool:
        return not self.category_label.startswith(UNKNOWN_ZONING)


@dataclass(frozen=True)
class UtilityFact:
    """Service coverage. Hydro is informational only."""
    sewer_available: bool
    water_available: bool
    hydro_available: bool


@dataclass(frozen=True)
class FootprintFact:
    """Bounding-box extent of the existing building, in feet."""
    width_ft: float
    depth_ft: float


@dataclass(frozen=True)
class OverlayFacts:
    """Non-zoning designations. None means the layer was unavailable."""
    heritage_designated: Optional[bool] = None
    in_greenbelt: Optional[bool] = None
    soil_type: Optional[str] = None
    slope_risk_high: Optional[bool] = None


@dataclass(frozen=True)
class AccessFacts:
    """Road access and streetlight proximity. None means unavailable."""
    road_access: Optional[bool] = None
    streetlight_nearby: Optional[bool] = None


@dataclass(frozen=True)
class GeometryInput:
    """
    Lot and house dimensions in feet, as entered by the caller.

    House dimensions may be left out; they are then taken from the
    building footprint layer when it is available.
    """
    lot_width: float
    lot_depth: float
    house_width: Optional[float] = None
    house_depth: Optional[float] = None

    def __post_init__(self):
        for name in ("lot_width", "lot_depth", "house_width", "house_depth"):
            value = getattr(self, name)
            if value is None and name.startswith("house"):
                continue
            if value is None or not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive length, got {value!r}")

    @property
    def has_house(self) -> bool:
        return self.house_width is not None and self.house_depth is not None

    def with_footprint(self, footprint: Optional[FootprintFact]) -> "GeometryInput":
        """Fill missing house dimensions from a footprint."""
        if self.has_house or footprint is None:
            return self
        return GeometryInput(
            lot_width=self.lot_width,
            lot_depth=self.lot_depth,
            house_width=self.house_width if self.house_width is not None else footprint.width_ft,
            house_depth=self.house_depth if self.house_depth is not None else footprint.depth_ft,
        )

    def to_dict(self) -> Dict[str, Optional[float]]:
        return asdict(self)


# ═══════════════════════════════════════════════════════════════════════════
# VERDICT
# ═══════════════════════════════════════════════════════════════════════════
class ReasonCode(Enum):
    """Why a property is or is not eligible, in reporting priority order."""
    ELIGIBLE = "Eligible"
    ZONING = "Zoning does not permit ADU"
    UTILITIES = "Missing sewer or water service"
    REAR_YARD = "Insufficient rear yard"
    SIDE_CLEARANCE = "Insufficient side clearance"
    ROAD_ACCESS = "No road access"
    INSUFFICIENT_DATA = "Insufficient data"


class ConfidenceLevel(Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class Setbacks:
    """Required clearances, in feet."""
    rear: float
    side: float


@dataclass(frozen=True)
class GeometryAssessment:
    """Geometric rule outcome, in feet and square feet rounded for display."""
    lot_area: float
    house_area: float
    buildable_area: float
    max_adu_size: float
    rear_yard_depth: float
    side_clearance: float
    rear_yard_ok: bool
    side_clearance_ok: bool


@dataclass(frozen=True)
class FeasibilityVerdict:
    """Output of the rule engine."""
    allowed: bool
    reason_code: ReasonCode
    required_setbacks: Setbacks
    zoning_eligible: bool
    utilities_sufficient: bool
    max_buildable_area: Optional[float] = None
    geometry: Optional[GeometryAssessment] = None
    trace: Tuple[str, ...] = ()

    @property
    def reason(self) -> str:
        return self.reason_code.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "max_buildable_area": self.max_buildable_area,
            "required_setbacks": asdict(self.required_setbacks),
            "zoning_eligible": self.zoning_eligible,
            "utilities_sufficient": self.utilities_sufficient,
            "geometry": asdict(self.geometry) if self.geometry else None,
            "trace": list(self.trace),
        }


# ═══════════════════════════════════════════════════════════════════════════
# REPORT
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class FeasibilityReport:
    """
    The single output artifact of a feasibility request.

    is_fallback marks a report assembled from the fallback defaults table
    because every data layer failed.
    """
    address: str
    coordinates: Coordinates
    verdict: FeasibilityVerdict
    zoning: ZoningFact
    utilities: UtilityFact
    overlays: OverlayFacts
    access: AccessFacts
    confidence: ConfidenceLevel
    incentive_eligible: bool
    summary: str
    is_fallback: bool = False
    footprint: Optional[FootprintFact] = None
    geometry_input: Optional[GeometryInput] = None
    unavailable_layers: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def allowed(self) -> bool:
        return self.verdict.allowed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "coordinates": self.coordinates.to_dict(),
            "verdict": self.verdict.to_dict(),
            "zoning": asdict(self.zoning),
            "utilities": asdict(self.utilities),
            "overlays": asdict(self.overlays),
            "access": asdict(self.access),
            "footprint": asdict(self.footprint) if self.footprint else None,
            "geometry_input": self.geometry_input.to_dict() if self.geometry_input else None,
            "confidence": self.confidence.value,
            "incentive_eligible": self.incentive_eligible,
            "is_fallback": self.is_fallback,
            "unavailable_layers": list(self.unavailable_layers),
            "warnings": list(self.warnings),
            "summary": self.summary,
        }
