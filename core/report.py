"""
Report Assembler - merges verdict, facts and confidence into the final report.

Two paths:
- assemble(): normal path, unavailable layers stay None in the report
- assemble_fallback(): every layer failed, facts come from the fallback
  defaults table and the report is flagged is_fallback
"""

import logging
from typing import List, Mapping, Optional

from core.config import FeasibilitySettings, get_settings
from core.models import (
    UNKNOWN_ZONING,
    AccessFacts, ConfidenceLevel, Coordinates, FeasibilityReport, FeasibilityVerdict,
    GeometryInput, LayerId, LayerResult, OverlayFacts, UtilityFact, ZoningFact,
)
from core.normalizers import build_utility_fact
from core.rules import RuleEngine

log = logging.getLogger(__name__)


def overlay_facts(facts: Mapping[LayerId, LayerResult]) -> OverlayFacts:
    return OverlayFacts(
        heritage_designated=facts[LayerId.HERITAGE].value_or(None),
        in_greenbelt=facts[LayerId.GREENBELT].value_or(None),
        soil_type=facts[LayerId.SOIL].value_or(None),
        slope_risk_high=facts[LayerId.SLOPE].value_or(None),
    )


def access_facts(facts: Mapping[LayerId, LayerResult]) -> AccessFacts:
    return AccessFacts(
        road_access=facts[LayerId.ROAD_ACCESS].value_or(None),
        streetlight_nearby=facts[LayerId.STREETLIGHT].value_or(None),
    )


def zoning_fact(facts: Mapping[LayerId, LayerResult]) -> ZoningFact:
    return facts[LayerId.ZONING].value_or(ZoningFact(UNKNOWN_ZONING))


def yes_no(value: Optional[bool]) -> str:
    """Display text for a fact that may be unavailable."""
    if value is None:
        return "Unknown"
    return "Yes" if value else "No"


class ReportAssembler:
    """Builds immutable FeasibilityReport objects."""

    def __init__(
        self,
        rule_engine: Optional[RuleEngine] = None,
        settings: Optional[FeasibilitySettings] = None,
    ):
        self.settings = settings or get_settings()
        self.rules = rule_engine or RuleEngine(self.settings)

    def assemble(
        self,
        address: str,
        coordinates: Coordinates,
        facts: Mapping[LayerId, LayerResult],
        verdict: FeasibilityVerdict,
        confidence: ConfidenceLevel,
        geometry: Optional[GeometryInput] = None,
    ) -> FeasibilityReport:
        """
        Assemble a report from normalized layer facts.

        Args:
            address: Address as entered by the caller
            coordinates: Geocoded point
            facts: Normalized LayerResult per layer
            verdict: RuleEngine output for these facts
            confidence: ConfidenceGrader output for these facts
            geometry: Geometry the verdict was evaluated with

        Returns:
            FeasibilityReport with is_fallback False
        """
        overlays = overlay_facts(facts)
        access = access_facts(facts)
        utilities = build_utility_fact(facts)
        unavailable = tuple(layer.value for layer in LayerId if not facts[layer].is_present)

        return FeasibilityReport(
            address=address,
            coordinates=coordinates,
            verdict=verdict,
            zoning=zoning_fact(facts),
            utilities=utilities,
            overlays=overlays,
            access=access,
            confidence=confidence,
            incentive_eligible=self.rules.incentive_eligible(
                verdict.zoning_eligible, overlays.heritage_designated
            ),
            summary=self._summary(address, verdict, confidence),
            is_fallback=False,
            footprint=facts[LayerId.FOOTPRINT].value_or(None),
            geometry_input=geometry,
            unavailable_layers=unavailable,
            warnings=tuple(self._warnings(overlays, access, utilities, unavailable)),
        )

    def assemble_fallback(
        self,
        address: str,
        coordinates: Coordinates,
        geometry: Optional[GeometryInput] = None,
    ) -> FeasibilityReport:
        """Synthetic report from the fallback defaults table."""
        defaults = self.settings.fallback_defaults
        log.warning(f"All data layers failed for {address!r}; returning fallback report")

        return FeasibilityReport(
            address=address,
            coordinates=coordinates,
            verdict=self.rules.evaluate_fallback(geometry),
            zoning=defaults[LayerId.ZONING],
            utilities=UtilityFact(
                sewer_available=defaults[LayerId.SEWER],
                water_available=defaults[LayerId.WATER],
                hydro_available=defaults[LayerId.HYDRO],
            ),
            overlays=OverlayFacts(
                heritage_designated=defaults[LayerId.HERITAGE],
                in_greenbelt=defaults[LayerId.GREENBELT],
                soil_type=defaults[LayerId.SOIL],
                slope_risk_high=defaults[LayerId.SLOPE],
            ),
            access=AccessFacts(
                road_access=defaults[LayerId.ROAD_ACCESS],
                streetlight_nearby=defaults[LayerId.STREETLIGHT],
            ),
            confidence=self.settings.fallback_confidence,
            incentive_eligible=False,
            summary=self.settings.fallback_note,
            is_fallback=True,
            footprint=defaults[LayerId.FOOTPRINT],
            geometry_input=geometry,
            unavailable_layers=tuple(layer.value for layer in LayerId),
            warnings=("All data layers were unavailable; facts are estimated defaults.",),
        )

    def _warnings(self, overlays: OverlayFacts, access: AccessFacts,
                  utilities: UtilityFact, unavailable) -> List[str]:
        warnings = []
        if overlays.heritage_designated:
            warnings.append("Property is heritage designated; additional approvals may apply.")
        if overlays.in_greenbelt:
            warnings.append("Property is inside the greenbelt.")
        if overlays.slope_risk_high:
            warnings.append("High slope risk; grading or engineering review may be required.")
        if not utilities.hydro_available:
            warnings.append("Hydro service not confirmed.")
        if access.streetlight_nearby is False:
            warnings.append("No streetlight near the property.")
        if unavailable:
            warnings.append(f"Unavailable data layers: {', '.join(unavailable)}.")
        return warnings

    def _summary(self, address: str, verdict: FeasibilityVerdict,
                 confidence: ConfidenceLevel) -> str:
        if verdict.allowed:
            text = f"ADU feasible at {address}."
            if verdict.max_buildable_area is not None:
                text += f" Max ADU size {verdict.max_buildable_area:.0f} sq ft."
        else:
            text = f"ADU not feasible at {address}: {verdict.reason}."
        return f"{text} Confidence: {confidence.value}."
