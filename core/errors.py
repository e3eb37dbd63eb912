"""
Error taxonomy for the feasibility engine.

Only AddressNotFound ever reaches the caller of generate_feasibility_report.
The others are absorbed at the boundary that raises them.
"""

from typing import Optional


class FeasibilityError(Exception):
    """Base class for all feasibility engine errors."""


class AddressNotFound(FeasibilityError):
    """The geocoder could not resolve an address. Fatal for the request."""

    def __init__(self, address: str, detail: Optional[str] = None):
        self.address = address
        self.detail = detail
        message = f"Address not found: {address!r}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class LayerUnavailable(FeasibilityError):
    """A data layer could not be fetched or returned unusable data."""

    def __init__(self, layer: str, reason: str):
        self.layer = layer
        self.reason = reason
        super().__init__(f"{layer}: {reason}")


class MalformedPayload(LayerUnavailable):
    """A payload was fetched but its content could not be normalized."""


class PersistenceFailure(FeasibilityError):
    """A finished report could not be written to the sink."""
