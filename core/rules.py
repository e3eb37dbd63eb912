"""
Rule Engine for ADU eligibility.

Deterministic and side-effect-free: the same facts always produce the same
verdict. Each rule group appends a human-parsible line to the trace.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from core.config import FeasibilitySettings, get_settings
from core.models import (
    FT_TO_M, SQFT_TO_SQM,
    AccessFacts, FeasibilityVerdict, GeometryAssessment, GeometryInput,
    ReasonCode, Setbacks, UtilityFact, ZoningFact,
)


def round_half_up(value: float) -> int:
    """Whole-unit display rounding with halves away from zero (2.5 -> 3)."""
    # Clear float noise from the ft/m round trip first, e.g. 2.4999999999999996
    return int(Decimal(repr(round(value, 6))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RuleEngine:
    """
    Applies the zoning, utility, geometric and access rules.

    Rules are checked in a fixed order and the first failure becomes the
    reason code: zoning > utilities > rear yard > side clearance > road
    access > unknown data.
    """

    def __init__(self, settings: Optional[FeasibilitySettings] = None):
        self.settings = settings or get_settings()

    # ── Individual rules ──────────────────────────────────────────────────
    def zoning_eligible(self, zoning: ZoningFact) -> bool:
        """Case-sensitive substring match against the allow-list."""
        if not zoning.is_known:
            return False
        return any(token in zoning.category_label for token in self.settings.zone_allow_list)

    def utilities_sufficient(self, utilities: UtilityFact) -> bool:
        return utilities.sewer_available and utilities.water_available

    def required_setbacks(self) -> Setbacks:
        return Setbacks(
            rear=round_half_up(self.settings.min_rear_yard_m / FT_TO_M),
            side=round_half_up(self.settings.min_side_clearance_m / FT_TO_M),
        )

    def assess_geometry(self, geometry: Optional[GeometryInput]) -> Optional[GeometryAssessment]:
        """
        Setback and coverage check. Comparisons use unrounded metric values;
        the returned assessment is in feet, rounded for display.
        """
        if geometry is None or not geometry.has_house:
            return None

        lot_width = geometry.lot_width * FT_TO_M
        lot_depth = geometry.lot_depth * FT_TO_M
        house_width = geometry.house_width * FT_TO_M
        house_depth = geometry.house_depth * FT_TO_M

        rear_yard_depth = lot_depth - house_depth
        side_clearance = (lot_width - house_width) / 2
        lot_area = lot_width * lot_depth
        house_area = house_width * house_depth
        buildable_area = max(lot_area - house_area, 0.0)
        max_adu_size = min(buildable_area * self.settings.adu_coverage_ratio,
                           self.settings.max_adu_size_m2)

        return GeometryAssessment(
            lot_area=round_half_up(lot_area / SQFT_TO_SQM),
            house_area=round_half_up(house_area / SQFT_TO_SQM),
            buildable_area=round_half_up(buildable_area / SQFT_TO_SQM),
            max_adu_size=round_half_up(max_adu_size / SQFT_TO_SQM),
            rear_yard_depth=round_half_up(rear_yard_depth / FT_TO_M),
            side_clearance=round_half_up(side_clearance / FT_TO_M),
            rear_yard_ok=rear_yard_depth >= self.settings.min_rear_yard_m,
            side_clearance_ok=side_clearance >= self.settings.min_side_clearance_m,
        )

    def incentive_eligible(self, zoning_eligible: bool, heritage_designated: Optional[bool]) -> bool:
        """Incentive needs eligible zoning and a confirmed non-heritage property."""
        return zoning_eligible and heritage_designated is False

    # ── Verdicts ──────────────────────────────────────────────────────────
    def evaluate(
        self,
        zoning: ZoningFact,
        utilities: UtilityFact,
        geometry: Optional[GeometryInput] = None,
        access: Optional[AccessFacts] = None,
    ) -> FeasibilityVerdict:
        """
        Evaluate every rule group and pick the highest-priority failure.

        Returns:
            FeasibilityVerdict with allowed, reason code and trace
        """
        trace: List[str] = []
        access = access or AccessFacts()

        # Rule 1: Zoning
        zoning_ok = self.zoning_eligible(zoning)
        if zoning_ok:
            trace.append(f"[PASS] Zoning '{zoning.category_label}' permits an ADU.")
        elif zoning.is_known:
            trace.append(f"[FAIL] Zoning '{zoning.category_label}' is not on the ADU allow-list.")
        else:
            trace.append("[UNKNOWN] Zoning could not be determined.")

        # Rule 2: Utilities (hydro is informational)
        utilities_ok = self.utilities_sufficient(utilities)
        if utilities_ok:
            trace.append("[PASS] Sewer and water service available.")
        else:
            missing = [name for name, ok in (("sewer", utilities.sewer_available),
                                             ("water", utilities.water_available)) if not ok]
            trace.append(f"[FAIL] No {' or '.join(missing)} service.")
        if not utilities.hydro_available:
            trace.append("[INFO] Hydro service not confirmed.")

        # Rule 3: Geometry
        assessment = self.assess_geometry(geometry)
        if assessment is None:
            trace.append("[SKIP] Lot and house dimensions not supplied.")
        else:
            tag = "PASS" if assessment.rear_yard_ok else "FAIL"
            trace.append(f"[{tag}] Rear yard {assessment.rear_yard_depth:.0f} ft.")
            tag = "PASS" if assessment.side_clearance_ok else "FAIL"
            trace.append(f"[{tag}] Side clearance {assessment.side_clearance:.0f} ft.")
            trace.append(f"[INFO] Max ADU size {assessment.max_adu_size:.0f} sq ft.")

        # Rule 4: Access
        if access.road_access is False:
            trace.append("[FAIL] No road access.")
        elif access.road_access is None:
            trace.append("[INFO] Road access not confirmed.")
        else:
            trace.append("[PASS] Road access confirmed.")

        if not zoning_ok and zoning.is_known:
            reason = ReasonCode.ZONING
        elif not utilities_ok:
            reason = ReasonCode.UTILITIES
        elif assessment is not None and not assessment.rear_yard_ok:
            reason = ReasonCode.REAR_YARD
        elif assessment is not None and not assessment.side_clearance_ok:
            reason = ReasonCode.SIDE_CLEARANCE
        elif access.road_access is False:
            reason = ReasonCode.ROAD_ACCESS
        elif not zoning_ok:
            reason = ReasonCode.INSUFFICIENT_DATA
        else:
            reason = ReasonCode.ELIGIBLE

        return FeasibilityVerdict(
            allowed=reason is ReasonCode.ELIGIBLE,
            reason_code=reason,
            required_setbacks=self.required_setbacks(),
            zoning_eligible=zoning_ok,
            utilities_sufficient=utilities_ok,
            max_buildable_area=assessment.max_adu_size if assessment else None,
            geometry=assessment,
            trace=tuple(trace),
        )

    def evaluate_fallback(self, geometry: Optional[GeometryInput] = None) -> FeasibilityVerdict:
        """Verdict for a report built without any layer data."""
        assessment = self.assess_geometry(geometry)
        return FeasibilityVerdict(
            allowed=False,
            reason_code=ReasonCode.INSUFFICIENT_DATA,
            required_setbacks=self.required_setbacks(),
            zoning_eligible=False,
            utilities_sufficient=False,
            max_buildable_area=assessment.max_adu_size if assessment else None,
            geometry=assessment,
            trace=("[FALLBACK] No data layer responded; eligibility cannot be confirmed.",),
        )
