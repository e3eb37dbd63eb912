"""
Confidence grading from which layers returned data.
"""

from typing import Mapping

from core.models import ConfidenceLevel, LayerId, LayerResult, REQUIRED_UTILITY_LAYERS


class ConfidenceGrader:
    """
    Classifies a set of layer results.

    High: zoning and both required utilities present.
    Medium: zoning present with a utility missing, or zoning missing but
    some other layer present.
    Low: nothing present (fallback).
    """

    def is_total_failure(self, results: Mapping[LayerId, LayerResult]) -> bool:
        return not any(result.is_present for result in results.values())

    def grade(self, results: Mapping[LayerId, LayerResult]) -> ConfidenceLevel:
        if self.is_total_failure(results):
            return ConfidenceLevel.LOW

        zoning = results.get(LayerId.ZONING)
        if zoning is None or not zoning.is_present:
            return ConfidenceLevel.MEDIUM

        for layer in REQUIRED_UTILITY_LAYERS:
            result = results.get(layer)
            if result is None or not result.is_present:
                return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.HIGH
