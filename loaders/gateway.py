"""
Source Gateway - fetch-or-Unavailable wrapper around every layer transport.

All layer fetches for a request run concurrently and are joined before
anything downstream reads them. A failing layer never raises to the caller.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, Mapping, Optional

from core.config import FeasibilitySettings, get_settings
from core.errors import LayerUnavailable
from core.models import Coordinates, LayerId, LayerResult, Present, Unavailable
from loaders.layers import LOOKUP_LAYERS, build_transports

log = logging.getLogger(__name__)


class SourceGateway:
    """
    Fans out to every layer transport and isolates their failures.

    A transport is any object with fetch(coordinates) -> dict. No retries
    happen here: one failed attempt is final for the request.

    Usage:
        gateway = SourceGateway(build_transports())
        results = gateway.fetch_all(Coordinates(43.2557, -79.8711))
    """

    def __init__(self, transports: Mapping[LayerId, Any], max_workers: int = 8):
        self.transports = dict(transports)
        self.max_workers = max_workers

    def fetch_layer(self, layer: LayerId, coordinates: Coordinates) -> LayerResult:
        """Fetch one layer. Always returns a LayerResult."""
        transport = self.transports.get(layer)
        if transport is None:
            return Unavailable("no transport configured")

        try:
            payload = transport.fetch(coordinates)
            self._validate(layer, payload)
        except LayerUnavailable as e:
            log.warning(f"Layer {layer.value} unavailable: {e.reason}")
            return Unavailable(e.reason)
        except Exception as e:
            log.warning(f"Layer {layer.value} fetch failed: {e}")
            return Unavailable(f"{type(e).__name__}: {e}")

        log.debug(f"Layer {layer.value}: {len(payload['features'])} feature(s)")
        return Present(payload)

    def _validate(self, layer: LayerId, payload: Any) -> None:
        if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
            raise LayerUnavailable(layer.value, "malformed payload: missing 'features' list")
        if layer in LOOKUP_LAYERS and not payload["features"]:
            raise LayerUnavailable(layer.value, "empty feature set")

    def fetch_all(
        self,
        coordinates: Coordinates,
        layers: Optional[Iterable[LayerId]] = None,
    ) -> Dict[LayerId, LayerResult]:
        """
        Fetch every layer concurrently and wait for all of them to settle.

        Returns:
            One LayerResult per requested layer, in LayerId order
        """
        layers = list(layers) if layers is not None else list(LayerId)
        results: Dict[LayerId, LayerResult] = {}

        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(layers)))) as executor:
            futures = {
                executor.submit(self.fetch_layer, layer, coordinates): layer
                for layer in layers
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        present = sum(1 for result in results.values() if result.is_present)
        log.info(f"Fetched {present}/{len(layers)} layers for "
                 f"({coordinates.latitude:.5f}, {coordinates.longitude:.5f})")
        return {layer: results[layer] for layer in layers}


def create_source_gateway(settings: Optional[FeasibilitySettings] = None) -> SourceGateway:
    """Gateway wired to the ArcGIS transports configured in settings."""
    settings = settings or get_settings()
    return SourceGateway(build_transports(settings), max_workers=settings.max_workers)
