"""
Core module for the ADU Feasibility Engine.
Contains data models, normalizers, rules, confidence grading and report assembly.
"""

from core.errors import AddressNotFound, LayerUnavailable, MalformedPayload, PersistenceFailure
from core.models import (
    Coordinates, LayerId, Present, Unavailable,
    ZoningFact, UtilityFact, FootprintFact, OverlayFacts, AccessFacts, GeometryInput,
    ReasonCode, ConfidenceLevel, Setbacks, GeometryAssessment,
    FeasibilityVerdict, FeasibilityReport,
)
from core.config import FeasibilitySettings, get_settings
from core.rules import RuleEngine
from core.confidence import ConfidenceGrader
from core.report import ReportAssembler
from core.feasibility import FeasibilityEngine, get_feasibility_engine, generate_feasibility_report

__all__ = [
    # Errors
    "AddressNotFound",
    "LayerUnavailable",
    "MalformedPayload",
    "PersistenceFailure",
    # Models
    "Coordinates",
    "LayerId",
    "Present",
    "Unavailable",
    "ZoningFact",
    "UtilityFact",
    "FootprintFact",
    "OverlayFacts",
    "AccessFacts",
    "GeometryInput",
    "ReasonCode",
    "ConfidenceLevel",
    "Setbacks",
    "GeometryAssessment",
    "FeasibilityVerdict",
    "FeasibilityReport",
    # Engine
    "FeasibilitySettings",
    "get_settings",
    "RuleEngine",
    "ConfidenceGrader",
    "ReportAssembler",
    "FeasibilityEngine",
    "get_feasibility_engine",
    "generate_feasibility_report",
]
