"""Lumina Backend - Error Taxonomy

Provider-level failures surface as ProviderError inside the provider
clients. Each component converts them at its boundary (None results,
returned RouteComputationError) so that only RequestCoordinator decides
what the user sees.
"""


class LuminaError(Exception):
    """Base class for all errors raised by the route safety core."""


class InvalidSubmissionError(LuminaError):
    """Origin or destination text was empty."""


class ProviderError(LuminaError):
    """An external provider call failed (transport, HTTP status or payload)."""


class ResolutionError(LuminaError):
    """One or both addresses could not be geocoded."""


class RouteComputationError(LuminaError):
    """The directions provider failed to produce a route."""


class ProviderInitError(LuminaError):
    """The map provider failed its one-time initialization. Terminal."""


class GeolocationError(LuminaError):
    """Position unavailable: permission denied, timeout or provider error."""
