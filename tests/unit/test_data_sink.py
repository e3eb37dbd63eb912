import json

import pytest
from core.models import (
    ConfidenceLevel, Coordinates, FeasibilityReport, FeasibilityVerdict, OverlayFacts,
    AccessFacts, ReasonCode, Setbacks, UtilityFact, ZoningFact,
)
from data_sink import ReportSink, create_report_sink


@pytest.fixture
def report():
    verdict = FeasibilityVerdict(
        allowed=True,
        reason_code=ReasonCode.ELIGIBLE,
        required_setbacks=Setbacks(rear=5, side=2),
        zoning_eligible=True,
        utilities_sufficient=True,
    )
    return FeasibilityReport(
        address="123 Main St, Hamilton, ON",
        coordinates=Coordinates(43.2557, -79.8711),
        verdict=verdict,
        zoning=ZoningFact("R1", True),
        utilities=UtilityFact(True, True, True),
        overlays=OverlayFacts(heritage_designated=False, in_greenbelt=False, soil_type="Clay"),
        access=AccessFacts(road_access=True, streetlight_nearby=True),
        confidence=ConfidenceLevel.HIGH,
        incentive_eligible=True,
        summary="ADU feasible at 123 Main St, Hamilton, ON. Confidence: High.",
    )


def test_save_appends_json_lines(tmp_path, report):
    path = tmp_path / "reports.jsonl"
    sink = ReportSink(str(path))

    assert sink.save(report)
    assert sink.save(report)

    lines = path.read_text().splitlines()
    assert len(lines) == 2
    entry = json.loads(lines[0])
    assert entry["report"]["verdict"]["reason"] == "Eligible"
    assert entry["report"]["confidence"] == "High"
    assert sink.get_stats()["saved_count"] == 2


def test_save_failure_returns_false(tmp_path, report):
    sink = ReportSink(str(tmp_path / "missing_dir" / "reports.jsonl"))

    assert not sink.save(report)
    stats = sink.get_stats()
    assert stats["errors_count"] == 1
    assert stats["saved_count"] == 0


def test_create_report_sink_disabled():
    assert create_report_sink(None) is None
    assert create_report_sink("") is None
