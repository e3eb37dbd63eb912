"""
Layer transports - one ArcGIS REST query per data layer.

Each transport asks its FeatureServer/MapServer for the features that
intersect the property point (optionally buffered) and returns the raw
JSON payload. Retry policy lives here, not in the gateway.
"""

import logging
from typing import Any, Dict, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.config import FeasibilitySettings, get_settings
from core.errors import LayerUnavailable
from core.models import Coordinates, LayerId

log = logging.getLogger(__name__)

USER_AGENT = "ADUFeasibilityEngine/1.0"

# Layers where the query is a lookup of an attribute at the point; an empty
# answer means "no data here". All other layers are intersection tests where
# an empty answer is a confirmed negative.
LOOKUP_LAYERS = frozenset({LayerId.ZONING, LayerId.SOIL, LayerId.SLOPE, LayerId.FOOTPRINT})


class ArcGISLayerTransport:
    """
    Point query against an ArcGIS REST layer.

    Usage:
        transport = ArcGISLayerTransport(LayerId.ZONING, url)
        payload = transport.fetch(Coordinates(43.2557, -79.8711))
    """

    def __init__(
        self,
        layer: LayerId,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
        distance_m: Optional[float] = None,
        return_geometry: bool = False,
    ):
        self.layer = layer
        self.url = url
        self.timeout = timeout
        self.distance_m = distance_m
        self.return_geometry = return_geometry
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def build_params(self, coordinates: Coordinates) -> Dict[str, Any]:
        params = {
            "geometry": f"{coordinates.longitude},{coordinates.latitude}",
            "geometryType": "esriGeometryPoint",
            "inSR": 4326,
            "outSR": 4326,
            "spatialRel": "esriSpatialRelIntersects",
            "where": "1=1",
            "outFields": "*",
            "returnGeometry": "true" if self.return_geometry else "false",
            "f": "json",
        }
        if self.distance_m:
            params["distance"] = self.distance_m
            params["units"] = "esriSRUnit_Meter"
        return params

    @retry(
        retry=retry_if_exception_type(requests.RequestException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    def fetch(self, coordinates: Coordinates) -> Dict[str, Any]:
        """
        Query the layer at a point.

        Raises:
            requests.RequestException: transport failure after retries
            LayerUnavailable: the service answered with an error body
        """
        response = self.session.get(self.url, params=self.build_params(coordinates),
                                    timeout=self.timeout)
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError:
            raise LayerUnavailable(self.layer.value, "response is not JSON")

        # ArcGIS reports query errors with HTTP 200 and an error body
        if isinstance(data, dict) and "error" in data:
            error = data["error"] or {}
            message = error.get("message", "unknown error") if isinstance(error, dict) else error
            raise LayerUnavailable(self.layer.value, f"service error: {message}")
        return data


def build_transports(
    settings: Optional[FeasibilitySettings] = None,
    session: Optional[requests.Session] = None,
) -> Dict[LayerId, ArcGISLayerTransport]:
    """
    Create a transport for every layer that has an endpoint configured.

    Each transport owns its Session unless one is passed in, so no Session
    is shared across worker threads.
    """
    settings = settings or get_settings()
    buffers = {
        LayerId.ROAD_ACCESS: settings.road_access_buffer_m,
        LayerId.STREETLIGHT: settings.streetlight_buffer_m,
    }

    transports = {}
    for layer in LayerId:
        url = settings.layer_urls.get(layer)
        if not url:
            log.debug(f"No endpoint configured for layer {layer.value}")
            continue
        transports[layer] = ArcGISLayerTransport(
            layer,
            url,
            session=session,
            timeout=settings.request_timeout_s,
            distance_m=buffers.get(layer),
            return_geometry=layer is LayerId.FOOTPRINT,
        )
    return transports
