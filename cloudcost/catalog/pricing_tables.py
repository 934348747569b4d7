"""
Pricing formulas, weight tables and consumption rates.

Every table lives on one frozen PricingTables object built by
default_pricing_tables(); components receive it through their constructor
and never mutate it, so it is safe to share across concurrent pipelines.
"""
from typing import Dict, Mapping, Optional, Tuple
from dataclasses import dataclass
from types import MappingProxyType

from cloudcost.catalog.service_catalog import ServiceCatalog, default_service_catalog
from cloudcost.domain.cost_models import (
    ALL_PROVIDERS,
    CostProfile,
    Provider,
    SizingTier,
)
from cloudcost.domain.errors import CatalogConfigurationError


# Usage dimensions a weight rule or driver can read
USAGE_DIMENSIONS = frozenset({
    "monthly_users",
    "requests_per_user",
    "data_transfer_gb",
    "storage_gb",
    "monthly_requests",  # users x requests_per_user x 30
    "user_requests",  # users x requests_per_user
})


@dataclass(frozen=True)
class WeightRule:
    """
    Bounded, monotonic weight of one service.

    weight = min(cap, base + usage[dimension] / scale * slope), or base when
    the rule has no usage dimension.
    """
    service: str
    base: float
    dimension: Optional[str] = None
    scale: float = 1.0
    slope: float = 0.0
    cap: float = 1.0

    def __post_init__(self):
        if self.dimension is not None and self.dimension not in USAGE_DIMENSIONS:
            raise CatalogConfigurationError(
                f"Weight rule for {self.service} reads unknown usage dimension {self.dimension}"
            )
        if self.scale <= 0 or self.slope < 0 or self.base <= 0 or self.cap < self.base:
            raise CatalogConfigurationError(f"Weight rule for {self.service} is not bounded and monotonic")

    def weight(self, usage: Mapping[str, float]) -> float:
        if self.dimension is None:
            return self.base
        value = max(0.0, float(usage.get(self.dimension, 0.0)))
        return min(self.cap, self.base + (value / self.scale) * self.slope)


@dataclass(frozen=True)
class DriverDefinition:
    """A named cost driver tied to the service whose share it reports."""
    name: str
    service: str
    impact: str
    dimension: Optional[str] = None
    suffix: str = ""
    fixed_value: str = ""


@dataclass(frozen=True)
class TokenRates:
    """USD per 1K tokens."""
    input_per_1k: float
    output_per_1k: float


@dataclass(frozen=True)
class PricingTables:
    """Read-only pricing configuration shared by all pipeline components."""
    tier_multipliers: Mapping[SizingTier, float]
    profile_multipliers: Mapping[CostProfile, float]
    provider_adjustments: Mapping[Provider, float]
    default_base_cost: float
    weight_rules: Mapping[str, Tuple[WeightRule, ...]]
    default_weight_rules: Tuple[WeightRule, ...]
    driver_definitions: Mapping[str, Tuple[DriverDefinition, ...]]
    storage_rates: Mapping[Provider, float]
    token_rates: Mapping[Provider, TokenRates]
    default_tokens_per_month: float
    token_input_share: float
    performance_scores: Mapping[Provider, int]
    cost_sensitivity: Mapping[str, Tuple[str, str]]
    default_cost_sensitivity: Tuple[str, str]
    usage_defaults: Mapping[str, float]

    def __post_init__(self):
        for name, table, keys in (
            ("tier_multipliers", self.tier_multipliers, tuple(SizingTier)),
            ("profile_multipliers", self.profile_multipliers, tuple(CostProfile)),
            ("provider_adjustments", self.provider_adjustments, ALL_PROVIDERS),
            ("storage_rates", self.storage_rates, ALL_PROVIDERS),
            ("token_rates", self.token_rates, ALL_PROVIDERS),
            ("performance_scores", self.performance_scores, ALL_PROVIDERS),
        ):
            missing = [key.value for key in keys if key not in table]
            if missing:
                raise CatalogConfigurationError(f"{name} is missing entries for {missing}")
        for key in ("monthly_users", "requests_per_user", "storage_gb", "data_transfer_gb"):
            if key not in self.usage_defaults:
                raise CatalogConfigurationError(f"usage_defaults is missing {key}")
        if not 0 < self.token_input_share < 1:
            raise CatalogConfigurationError("token_input_share must be between 0 and 1")

    def rules_for(self, pattern: str) -> Tuple[WeightRule, ...]:
        return self.weight_rules.get(pattern, self.default_weight_rules)

    def drivers_for(self, pattern: str) -> Tuple[DriverDefinition, ...]:
        return self.driver_definitions.get(pattern, ())

    def sensitivity_for(self, pattern: str) -> Tuple[str, str]:
        return self.cost_sensitivity.get(pattern, self.default_cost_sensitivity)

    def validate_against(self, catalog: ServiceCatalog) -> "PricingTables":
        """
        Check every service referenced by a table exists in the catalog.

        Raises:
            CatalogConfigurationError: If a rule or driver names an unknown service
        """
        rule_sets = list(self.weight_rules.items()) + [("default", self.default_weight_rules)]
        for pattern, rules in rule_sets:
            for rule in rules:
                if catalog.get(rule.service) is None:
                    raise CatalogConfigurationError(
                        f"Weight rule for unknown service {rule.service} in {pattern}"
                    )
        for pattern, drivers in self.driver_definitions.items():
            for driver in drivers:
                if catalog.get(driver.service) is None:
                    raise CatalogConfigurationError(
                        f"Driver {driver.name} in {pattern} references unknown service {driver.service}"
                    )
        return self


_SERVERLESS_RULES = (
    WeightRule("compute_serverless", 0.10, "requests_per_user", 100, 0.40, 0.50),
    WeightRule("cdn", 0.10, "data_transfer_gb", 500, 0.30, 0.40),
    WeightRule("object_storage", 0.05, "storage_gb", 100, 0.20, 0.25),
    WeightRule("identity_auth", 0.05, "monthly_users", 50000, 0.25, 0.30),
    WeightRule("api_gateway", 0.05, "user_requests", 1000000, 0.15, 0.20),
)

_STATIC_RULES = (
    WeightRule("cdn", 0.30, "data_transfer_gb", 500, 0.30, 0.60),
    WeightRule("object_storage", 0.15, "storage_gb", 100, 0.20, 0.35),
    WeightRule("dns", 0.05),
    WeightRule("identity_auth", 0.05),
)

_CONTAINER_RULES = (
    WeightRule("compute_container", 0.30, "requests_per_user", 50, 0.25, 0.55),
    WeightRule("load_balancer", 0.20),
    WeightRule("block_storage", 0.10, "storage_gb", 200, 0.10, 0.20),
    WeightRule("networking", 0.10),
    WeightRule("monitoring", 0.05),
)

_DEFAULT_RULES = (
    WeightRule("compute_serverless", 0.35),
    WeightRule("cdn", 0.25),
    WeightRule("object_storage", 0.15),
    WeightRule("identity_auth", 0.15),
    WeightRule("api_gateway", 0.10),
)


_DRIVERS: Dict[str, Tuple[DriverDefinition, ...]] = {
    "SERVERLESS_WEB_APP": (
        DriverDefinition("Monthly active users", "identity_auth", "Auth + session scaling", "monthly_users"),
        DriverDefinition("Requests per user", "compute_serverless", "Function invocation costs",
                         "requests_per_user", "/day"),
        DriverDefinition("Data transfer", "cdn", "CDN egress dominates at scale", "data_transfer_gb", " GB/mo"),
        DriverDefinition("Storage volume", "object_storage", "Asset storage costs", "storage_gb", " GB"),
    ),
    "STATIC_WEB_HOSTING": (
        DriverDefinition("Data transfer", "cdn", "CDN egress is primary driver", "data_transfer_gb", " GB/mo"),
        DriverDefinition("Storage size", "object_storage", "Static file storage", "storage_gb", " GB"),
        DriverDefinition("Request count", "cdn", "Per-request CDN costs", "monthly_requests", " req/mo"),
    ),
    "CONTAINERIZED_WEB_APP": (
        DriverDefinition("Container CPU hours", "compute_container", "Compute dominates",
                         fixed_value="730 hrs/mo (always-on)"),
        DriverDefinition("Memory allocation", "compute_container", "Memory pricing", fixed_value="512 MB - 2 GB"),
        DriverDefinition("Load balancer hours", "load_balancer", "Always-on LB costs", fixed_value="730 hrs/mo"),
        DriverDefinition("Network egress", "networking", "Data transfer out", "data_transfer_gb", " GB"),
    ),
    "MOBILE_BACKEND_API": (
        DriverDefinition("API calls/month", "api_gateway", "API Gateway pricing", "monthly_requests"),
        DriverDefinition("Auth events (MAU)", "identity_auth", "Per-user auth costs", "monthly_users"),
        DriverDefinition("Database operations", "nosql_database", "Read/write units", "monthly_requests", " ops/mo"),
    ),
    "TRADITIONAL_VM_APP": (
        DriverDefinition("Instance hours", "compute_vm", "VM runtime costs", fixed_value="730 hrs/mo"),
        DriverDefinition("Disk size (GB)", "block_storage", "Persistent storage", "storage_gb", " GB"),
        DriverDefinition("Network transfer", "networking", "Data out costs", "data_transfer_gb", " GB"),
    ),
    "DATA_PROCESSING_PIPELINE": (
        DriverDefinition("Data volume", "object_storage", "Landing and output storage", "storage_gb", " GB"),
        DriverDefinition("Queue messages", "message_queue", "Per-message queue costs", "monthly_requests", " msg/mo"),
    ),
}


_SENSITIVITY: Dict[str, Tuple[str, str]] = {
    "STATIC_WEB_HOSTING": ("low", "bandwidth usage"),
    "SERVERLESS_WEB_APP": ("medium", "API request volume"),
    "MOBILE_BACKEND_API": ("medium", "API request volume"),
    "CONTAINERIZED_WEB_APP": ("high", "node count and instance size"),
    "TRADITIONAL_VM_APP": ("high", "node count and instance size"),
    "DATA_PROCESSING_PIPELINE": ("high", "data volume and job frequency"),
}


def default_pricing_tables(catalog: Optional[ServiceCatalog] = None) -> PricingTables:
    """Built-in pricing tables, validated against the given (or default) catalog."""
    tables = PricingTables(
        tier_multipliers=MappingProxyType({
            SizingTier.SMALL: 0.5,
            SizingTier.MEDIUM: 1.0,
            SizingTier.LARGE: 2.5,
        }),
        profile_multipliers=MappingProxyType({
            CostProfile.COST_EFFECTIVE: 1.0,
            CostProfile.HIGH_PERFORMANCE: 1.4,
        }),
        provider_adjustments=MappingProxyType({
            Provider.AWS: 1.0,
            Provider.GCP: 0.92,
            Provider.AZURE: 0.95,
        }),
        default_base_cost=20.0,
        weight_rules=MappingProxyType({
            "SERVERLESS_WEB_APP": _SERVERLESS_RULES,
            "MOBILE_BACKEND_API": _SERVERLESS_RULES,
            "STATIC_WEB_HOSTING": _STATIC_RULES,
            "CONTAINERIZED_WEB_APP": _CONTAINER_RULES,
        }),
        default_weight_rules=_DEFAULT_RULES,
        driver_definitions=MappingProxyType(dict(_DRIVERS)),
        storage_rates=MappingProxyType({
            Provider.AWS: 0.023,
            Provider.GCP: 0.020,
            Provider.AZURE: 0.018,
        }),
        token_rates=MappingProxyType({
            Provider.AWS: TokenRates(0.0008, 0.0024),
            Provider.GCP: TokenRates(0.0005, 0.0015),
            Provider.AZURE: TokenRates(0.0015, 0.002),
        }),
        default_tokens_per_month=1_000_000,
        token_input_share=0.7,
        performance_scores=MappingProxyType({
            Provider.AWS: 92,
            Provider.GCP: 90,
            Provider.AZURE: 89,
        }),
        cost_sensitivity=MappingProxyType(dict(_SENSITIVITY)),
        default_cost_sensitivity=("medium", "usage volume"),
        usage_defaults=MappingProxyType({
            "monthly_users": 1000,
            "requests_per_user": 50,
            "storage_gb": 10,
            "data_transfer_gb": 50,
        }),
    )
    return tables.validate_against(catalog or default_service_catalog())
