import os
import sqlite3

import pytest
import requests
from unittest.mock import MagicMock, patch
from tenacity import wait_none
from core.errors import AddressNotFound
from core.models import Coordinates
from loaders.geocoder import Geocoder, GeocodingCache

@pytest.fixture
def mock_loader(tmp_path):
    cache_path = str(tmp_path / "test_geo.db")
    with patch('requests.Session') as mock_session:
        loader = Geocoder(cache_path=cache_path)
        loader.session = mock_session.return_value
        loader._rate_limit = MagicMock()
        yield loader

def test_geocode_success(mock_loader):
    """Verify geocoding success."""
    mock_response = MagicMock()
    mock_response.json.return_value = [{
        "lat": "43.2557",
        "lon": "-79.8711",
        "display_name": "123 Main St, Hamilton, Ontario",
    }]
    mock_loader.session.get.return_value = mock_response

    result = mock_loader.geocode("123 Main St, Hamilton, ON")
    assert result == Coordinates(43.2557, -79.8711)

    params = mock_loader.session.get.call_args.kwargs["params"]
    assert params["q"] == "123 Main St, Hamilton, ON"
    assert params["countrycodes"] == "ca"

def test_geocode_uses_cache(mock_loader):
    """Second lookup of the same address never hits the network."""
    mock_response = MagicMock()
    mock_response.json.return_value = [{"lat": "43.25", "lon": "-79.87"}]
    mock_loader.session.get.return_value = mock_response

    first = mock_loader.geocode("1 King St W, Hamilton")
    second = mock_loader.geocode("  1 KING ST W, HAMILTON ")
    assert first == second
    assert mock_loader.session.get.call_count == 1

def test_geocode_no_results(mock_loader):
    mock_response = MagicMock()
    mock_response.json.return_value = []
    mock_loader.session.get.return_value = mock_response

    with pytest.raises(AddressNotFound) as exc:
        mock_loader.geocode("Nowhere Lane")
    assert exc.value.address == "Nowhere Lane"

def test_geocode_unusable_result(mock_loader):
    mock_response = MagicMock()
    mock_response.json.return_value = [{"lat": "north", "lon": "-79.87"}]
    mock_loader.session.get.return_value = mock_response

    with pytest.raises(AddressNotFound):
        mock_loader.geocode("Bad Data Rd")

def test_cache_roundtrip(tmp_path):
    cache = GeocodingCache(str(tmp_path / "cache.db"))
    assert cache.get("somewhere") is None
    cache.set("somewhere", Coordinates(43.0, -79.0))
    assert cache.get("Somewhere") == Coordinates(43.0, -79.0)

def test_geocode_lookup_failure_is_address_not_found(mock_loader):
    """Transport errors are retried, then reported as AddressNotFound."""
    mock_loader.session.get.side_effect = requests.ConnectionError("connection refused")

    with patch.object(Geocoder._make_request.retry, "wait", wait_none()):
        with pytest.raises(AddressNotFound) as exc:
            mock_loader.geocode("123 Main St, Hamilton, ON")

    assert exc.value.detail.startswith("lookup failed")
    assert mock_loader.session.get.call_count == 3

def test_geocode_survives_broken_cache(mock_loader, tmp_path):
    """A cache whose table has gone missing is skipped, not fatal."""
    os.remove(str(tmp_path / "test_geo.db"))
    mock_response = MagicMock()
    mock_response.json.return_value = [{"lat": "43.25", "lon": "-79.87"}]
    mock_loader.session.get.return_value = mock_response

    assert mock_loader.geocode("1 King St W, Hamilton") == Coordinates(43.25, -79.87)
    assert mock_loader.session.get.call_count == 1

def test_geocode_survives_cache_write_error(mock_loader):
    mock_response = MagicMock()
    mock_response.json.return_value = [{"lat": "43.25", "lon": "-79.87"}]
    mock_loader.session.get.return_value = mock_response
    mock_loader.cache = MagicMock()
    mock_loader.cache.get.return_value = None
    mock_loader.cache.set.side_effect = sqlite3.OperationalError("database is locked")

    assert mock_loader.geocode("1 King St W, Hamilton") == Coordinates(43.25, -79.87)

def test_unusable_cache_path_disables_cache(tmp_path):
    with patch('requests.Session'):
        loader = Geocoder(cache_path=str(tmp_path / "no_such_dir" / "geo.db"))
    assert loader.cache is None
