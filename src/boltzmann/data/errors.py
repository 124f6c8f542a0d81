"""
Error taxonomy shared by price providers and gas oracles.

Every upstream failure is raised as one of these. The aggregator absorbs
them per provider; the HTTP layer renders the ones that reach it.
"""

from typing import Any, Dict, Optional


class ProviderError(Exception):
    status: str = "provider_error"
    http_status: int = 502

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider

    def __str__(self) -> str:
        if self.provider:
            return f"{self.provider}: {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "message": self.message,
                "status": self.status,
                "provider": self.provider,
                "code": self.http_status,
            }
        }


class ConfigurationMissing(ProviderError):
    """Credentials or endpoint for a provider are not configured."""
    status = "configuration_missing"
    http_status = 503


class NetworkFailure(ProviderError):
    """Connection error or timeout talking to an upstream."""
    status = "network_failure"


class MalformedUpstreamData(ProviderError):
    """Upstream answered, but the payload is missing or mistyped fields."""
    status = "malformed_upstream_data"


class UpstreamRejected(ProviderError):
    """Upstream reported a non-success status."""
    status = "upstream_rejected"


class InsufficientData(ProviderError):
    status = "insufficient_data"


class NoProvidersAvailable(ProviderError):
    """Every configured price provider failed or none is configured."""
    status = "no_providers_available"
    http_status = 503
