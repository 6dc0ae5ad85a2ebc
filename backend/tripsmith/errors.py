"""Exception hierarchy for itinerary generation."""


class TripsmithError(Exception):
    """Base for all errors raised by the service."""


class ProviderError(TripsmithError):
    """An external provider failed to return usable data."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderUnavailable(ProviderError):
    """Provider is unconfigured, unreachable, or every backend in a chain failed."""


class EnrichmentError(TripsmithError):
    """The enrichment collaborator returned nothing usable."""


class GenerationCancelled(TripsmithError):
    """The caller abandoned the generation run."""
