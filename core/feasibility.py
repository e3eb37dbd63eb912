"""
Feasibility Engine - the single entry point for ADU feasibility reports.

Flow:
    address -> geocoder -> coordinates
    coordinates -> SourceGateway (concurrent) -> raw LayerResults
    raw LayerResults -> Normalizers -> facts
    facts -> RuleEngine -> verdict
    facts -> ConfidenceGrader -> confidence
    verdict + facts + confidence -> ReportAssembler -> FeasibilityReport
"""

import logging
from typing import Mapping, Optional

from core.config import FeasibilitySettings, get_settings
from core.confidence import ConfidenceGrader
from core.models import (
    Coordinates, FeasibilityReport, GeometryInput, LayerId, LayerResult,
)
from core.normalizers import build_utility_fact, normalize_all
from core.report import ReportAssembler, access_facts, zoning_fact
from core.rules import RuleEngine

log = logging.getLogger(__name__)


class FeasibilityEngine:
    """
    Combines the geocoder, gateway, rules and assembler into one report.

    Usage:
        engine = FeasibilityEngine()
        report = engine.generate_feasibility_report(
            "123 Main St, Hamilton, ON",
            GeometryInput(lot_width=30, lot_depth=100, house_width=25, house_depth=40),
        )
    """

    def __init__(
        self,
        geocoder=None,
        gateway=None,
        sink=None,
        settings: Optional[FeasibilitySettings] = None,
    ):
        self.settings = settings or get_settings()

        if geocoder is None:
            from loaders.geocoder import get_geocoder
            geocoder = get_geocoder()
        if gateway is None:
            from loaders.gateway import create_source_gateway
            gateway = create_source_gateway(self.settings)

        self.geocoder = geocoder
        self.gateway = gateway
        self.sink = sink
        self.rules = RuleEngine(self.settings)
        self.grader = ConfidenceGrader()
        self.assembler = ReportAssembler(self.rules, self.settings)

    def generate_feasibility_report(
        self,
        address: str,
        geometry: Optional[GeometryInput] = None,
    ) -> FeasibilityReport:
        """
        Produce a complete report for an address.

        Raises:
            AddressNotFound: the address could not be geocoded
        """
        coordinates = self.geocoder.geocode(address)
        report = self.evaluate(address, coordinates, geometry)
        self._persist(report)
        return report

    def evaluate(
        self,
        address: str,
        coordinates: Coordinates,
        geometry: Optional[GeometryInput] = None,
    ) -> FeasibilityReport:
        """Fetch every layer for known coordinates and assemble the report."""
        raw = self.gateway.fetch_all(coordinates)
        return self.evaluate_results(address, coordinates, raw, geometry)

    def evaluate_results(
        self,
        address: str,
        coordinates: Coordinates,
        raw: Mapping[LayerId, LayerResult],
        geometry: Optional[GeometryInput] = None,
    ) -> FeasibilityReport:
        """Pure part of the pipeline: raw layer results in, report out."""
        facts = normalize_all(raw, self.settings)

        if self.grader.is_total_failure(facts):
            return self.assembler.assemble_fallback(address, coordinates, geometry)

        if geometry is not None:
            geometry = geometry.with_footprint(facts[LayerId.FOOTPRINT].value_or(None))

        verdict = self.rules.evaluate(
            zoning_fact(facts),
            build_utility_fact(facts),
            geometry,
            access_facts(facts),
        )
        confidence = self.grader.grade(facts)
        report = self.assembler.assemble(address, coordinates, facts, verdict,
                                         confidence, geometry)
        log.info(f"Report for {address!r}: {verdict.reason} "
                 f"(confidence {confidence.value})")
        return report

    def _persist(self, report: FeasibilityReport) -> None:
        if self.sink is None:
            return
        try:
            self.sink.save(report)
        except Exception as e:
            log.error(f"Report persistence failed for {report.address!r}: {e}")


# Singleton
_engine: Optional[FeasibilityEngine] = None

def get_feasibility_engine() -> FeasibilityEngine:
    """Get singleton engine wired from settings."""
    global _engine
    if _engine is None:
        from data_sink import create_report_sink
        settings = get_settings()
        _engine = FeasibilityEngine(sink=create_report_sink(settings.report_log_path),
                                    settings=settings)
    return _engine


def generate_feasibility_report(
    address: str,
    geometry: Optional[GeometryInput] = None,
) -> FeasibilityReport:
    """Generate a report with the singleton engine."""
    return get_feasibility_engine().generate_feasibility_report(address, geometry)
