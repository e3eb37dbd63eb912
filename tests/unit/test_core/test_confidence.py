import pytest
from core.confidence import ConfidenceGrader
from core.models import ConfidenceLevel, LayerId, Present, Unavailable


def results(**present):
    """Every layer Unavailable except the ones named."""
    return {
        layer: Present(True) if present.get(layer.name.lower()) else Unavailable("timeout")
        for layer in LayerId
    }


@pytest.fixture
def grader():
    return ConfidenceGrader()


def test_high_confidence(grader):
    assert grader.grade(results(zoning=True, sewer=True, water=True)) is ConfidenceLevel.HIGH


def test_missing_utility_is_medium(grader):
    assert grader.grade(results(zoning=True, sewer=True)) is ConfidenceLevel.MEDIUM


def test_missing_zoning_is_medium(grader):
    assert grader.grade(results(sewer=True, water=True, heritage=True)) is ConfidenceLevel.MEDIUM


def test_total_failure_is_low(grader):
    facts = results()
    assert grader.is_total_failure(facts)
    assert grader.grade(facts) is ConfidenceLevel.LOW


def test_single_layer_is_not_total_failure(grader):
    assert not grader.is_total_failure(results(streetlight=True))


def test_optional_layers_do_not_raise_confidence(grader):
    """Hydro, overlays and access never lift a missing utility to High."""
    facts = results(zoning=True, sewer=True, hydro=True, heritage=True, greenbelt=True,
                    soil=True, slope=True, footprint=True, road_access=True, streetlight=True)
    assert grader.grade(facts) is ConfidenceLevel.MEDIUM
