"""Restaurant search, availability and booking backends."""

from .base import (
    AvailabilityResult,
    BookingResult,
    ProviderError,
    ProviderUnavailable,
    SearchProvider,
)
from .factory import close_search_provider, get_search_provider

__all__ = [
    "AvailabilityResult",
    "BookingResult",
    "ProviderError",
    "ProviderUnavailable",
    "SearchProvider",
    "close_search_provider",
    "get_search_provider",
]
