"""HTTP client used by tests to prepare and verify backend state."""

from .http_client import ApiClient, ApiClientError, RateLimitExceeded

__all__ = [
    "ApiClient",
    "ApiClientError",
    "RateLimitExceeded",
]
