"""
Error taxonomy for cost estimation.

Recoverable pricing-engine failures are NOT exceptions; they are reported as
result values by the adapter and normalizer. Everything here is fatal.
"""
from typing import Optional


class CostEstimationError(Exception):
    """Base class for fatal estimation errors, carrying diagnostic context."""

    def __init__(
        self,
        message: str,
        pattern: Optional[str] = None,
        service: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message)
        self.pattern = pattern
        self.service = service
        self.provider = provider

    def context(self) -> dict:
        """Diagnostic context for logs and API error bodies."""
        return {
            key: value
            for key, value in (
                ("pattern", self.pattern),
                ("service", self.service),
                ("provider", self.provider),
            )
            if value is not None
        }


class InputError(CostEstimationError):
    """Raised when the request is rejected before any pricing work begins."""
    pass


class UnknownPatternError(InputError):
    """Raised when the architecture names a pattern the catalog does not know."""
    pass


class EmptyDeployableSetError(InputError):
    """Raised when an architecture resolves to zero priceable services."""
    pass


class PolicyViolationError(CostEstimationError):
    """Raised when a pattern forbids a resource class that would be emitted."""
    pass


class PricingIntegrityError(CostEstimationError):
    """Raised when a non-deployable service appears in a cost breakdown."""
    pass


class CatalogConfigurationError(Exception):
    """Raised when a configuration table is incomplete or inconsistent."""
    pass
