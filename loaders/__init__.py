"""
Data loaders for the ADU Feasibility Engine.

Includes:
- Geocoding (Nominatim)
- Layer transports (ArcGIS REST point queries)
- Source gateway (concurrent fetch-or-Unavailable fan-out)
"""

from loaders.geocoder import Geocoder, get_geocoder
from loaders.layers import ArcGISLayerTransport, build_transports, LOOKUP_LAYERS
from loaders.gateway import SourceGateway, create_source_gateway

__all__ = [
    "Geocoder",
    "get_geocoder",
    "ArcGISLayerTransport",
    "build_transports",
    "LOOKUP_LAYERS",
    "SourceGateway",
    "create_source_gateway",
]
