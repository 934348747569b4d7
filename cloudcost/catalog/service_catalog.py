"""
Service catalog and architecture pattern policies.

The catalog is an immutable configuration object built once by
default_service_catalog() and passed explicitly to every component that
needs to know whether a service is deployable or what a pattern forbids.
"""
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, FrozenSet
from dataclasses import dataclass, field
from types import MappingProxyType
import logging

from cloudcost.domain.cost_models import ServiceClass
from cloudcost.domain.errors import CatalogConfigurationError, UnknownPatternError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternPolicy:
    """Resource policy of one architecture pattern."""
    id: str
    name: str
    forbidden_categories: FrozenSet[str] = frozenset()
    forbidden_services: FrozenSet[str] = frozenset()

    def forbids(self, service: ServiceClass) -> bool:
        return service.category in self.forbidden_categories or service.id in self.forbidden_services


def normalize_pattern_key(pattern: str) -> str:
    """Case-, hyphen- and whitespace-insensitive pattern key."""
    parts = pattern.strip().upper().replace("-", "_").replace(" ", "_").split("_")
    return "_".join(part for part in parts if part)


@dataclass(frozen=True)
class ServiceCatalog:
    """Read-only registry of service classes and pattern policies."""
    services: Mapping[str, ServiceClass]
    patterns: Mapping[str, PatternPolicy]
    aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        for policy in self.patterns.values():
            unknown = [sid for sid in policy.forbidden_services if sid not in self.services]
            if unknown:
                raise CatalogConfigurationError(
                    f"Pattern {policy.id} forbids unknown services: {sorted(unknown)}"
                )
        for alias, target in self.aliases.items():
            if target not in self.patterns:
                raise CatalogConfigurationError(f"Pattern alias {alias} points to unknown pattern {target}")

    def get(self, service_id: str) -> Optional[ServiceClass]:
        return self.services.get(service_id)

    def require(self, service_id: str) -> ServiceClass:
        """
        Look up a service class that must exist.

        Raises:
            CatalogConfigurationError: If the id is not in the catalog
        """
        service = self.services.get(service_id)
        if service is None:
            raise CatalogConfigurationError(f"Unknown service class: {service_id}")
        return service

    def deployable_ids(self) -> List[str]:
        return [sid for sid, service in self.services.items() if service.deployable]

    def resolve_pattern(self, pattern: str) -> PatternPolicy:
        """
        Resolve a pattern id or alias to its policy.

        Raises:
            UnknownPatternError: If the pattern is empty or not known
        """
        if not pattern or not pattern.strip():
            raise UnknownPatternError("Architecture pattern is required", pattern=pattern)
        key = normalize_pattern_key(pattern)
        key = self.aliases.get(key, key)
        policy = self.patterns.get(key)
        if policy is None:
            logger.error("Unknown architecture pattern: %s", pattern)
            raise UnknownPatternError(f"Unknown architecture pattern: {pattern}", pattern=pattern)
        return policy


# id, category, deployable, heuristic base cost, performance multiplier, display name
_SERVICE_ROWS: Tuple[Tuple[str, str, bool, float, float, str], ...] = (
    ("compute_container", "compute", True, 80, 1.5, "Container compute"),
    ("compute_serverless", "compute", True, 30, 1.0, "Serverless functions"),
    ("compute_vm", "compute", True, 60, 1.0, "Virtual machines"),
    ("relational_database", "database", True, 100, 1.6, "Relational database"),
    ("nosql_database", "database", True, 40, 1.0, "NoSQL database"),
    ("cache", "database", True, 50, 1.3, "In-memory cache"),
    ("object_storage", "storage", True, 10, 1.0, "Object storage"),
    ("block_storage", "storage", True, 15, 1.0, "Block storage"),
    ("cdn", "networking", True, 20, 1.0, "CDN"),
    ("load_balancer", "networking", True, 25, 1.2, "Load balancer"),
    ("api_gateway", "networking", True, 15, 1.0, "API gateway"),
    ("networking", "networking", True, 35, 1.0, "Virtual network"),
    ("dns", "networking", True, 2, 1.0, "DNS"),
    ("message_queue", "messaging", True, 5, 1.0, "Message queue"),
    ("identity_auth", "security", True, 5, 1.0, "Identity and auth"),
    ("secrets_management", "security", True, 3, 1.0, "Secrets management"),
    ("monitoring", "observability", True, 10, 1.4, "Monitoring"),
    ("logging", "observability", True, 15, 1.0, "Logging"),
    ("search_engine", "search", True, 60, 1.0, "Search engine"),
    ("ml_inference_service", "ml", True, 120, 1.0, "ML inference"),
    # Logical services: architectural concepts without a billable resource
    ("event_bus", "messaging", False, 8, 1.0, "Event bus"),
    ("waf", "security", False, 0, 1.0, "Web application firewall"),
    ("payment_gateway", "payments", False, 0, 1.0, "Payment gateway"),
    ("artifact_registry", "storage", False, 0, 1.0, "Artifact registry"),
)


_PATTERNS: Tuple[PatternPolicy, ...] = (
    PatternPolicy(
        id="STATIC_WEB_HOSTING",
        name="Static Web Hosting",
        forbidden_categories=frozenset({"compute", "database"}),
        forbidden_services=frozenset({"api_gateway", "load_balancer"}),
    ),
    PatternPolicy(
        id="SERVERLESS_WEB_APP",
        name="Serverless Web App",
        forbidden_services=frozenset({"compute_vm", "compute_container"}),
    ),
    PatternPolicy(
        id="CONTAINERIZED_WEB_APP",
        name="Containerized Web App",
        forbidden_services=frozenset({"compute_serverless"}),
    ),
    PatternPolicy(
        id="MOBILE_BACKEND_API",
        name="Mobile Backend API",
        forbidden_services=frozenset({"compute_vm"}),
    ),
    PatternPolicy(
        id="TRADITIONAL_VM_APP",
        name="Traditional VM App",
        forbidden_services=frozenset({"compute_container", "compute_serverless"}),
    ),
    PatternPolicy(
        id="DATA_PROCESSING_PIPELINE",
        name="Data Processing Pipeline",
        forbidden_services=frozenset({"compute_vm", "cdn", "api_gateway", "load_balancer"}),
    ),
)


_ALIASES: Dict[str, str] = {
    "STATIC": "STATIC_WEB_HOSTING",
    "STATIC_HOSTING": "STATIC_WEB_HOSTING",
    "STATIC_SITE": "STATIC_WEB_HOSTING",
    "SERVERLESS": "SERVERLESS_WEB_APP",
    "CONTAINERS": "CONTAINERIZED_WEB_APP",
    "CONTAINERIZED": "CONTAINERIZED_WEB_APP",
    "VM": "TRADITIONAL_VM_APP",
    "MOBILE_BACKEND": "MOBILE_BACKEND_API",
    "DATA_PIPELINE": "DATA_PROCESSING_PIPELINE",
}


def build_service_catalog(
    rows: Iterable[Tuple[str, str, bool, float, float, str]],
    patterns: Iterable[PatternPolicy],
    aliases: Optional[Mapping[str, str]] = None,
) -> ServiceCatalog:
    """
    Build a catalog from plain rows.

    Raises:
        CatalogConfigurationError: On duplicate service or pattern ids
    """
    services: Dict[str, ServiceClass] = {}
    for sid, category, deployable, base_cost, perf, display in rows:
        if sid in services:
            raise CatalogConfigurationError(f"Duplicate service class: {sid}")
        services[sid] = ServiceClass(
            id=sid,
            category=category,
            deployable=deployable,
            base_cost=float(base_cost),
            performance_multiplier=float(perf),
            display_name=display,
        )
    policies: Dict[str, PatternPolicy] = {}
    for policy in patterns:
        if policy.id in policies:
            raise CatalogConfigurationError(f"Duplicate pattern: {policy.id}")
        policies[policy.id] = policy
    return ServiceCatalog(
        services=MappingProxyType(services),
        patterns=MappingProxyType(policies),
        aliases=MappingProxyType(dict(aliases or {})),
    )


def default_service_catalog() -> ServiceCatalog:
    """The built-in catalog of canonical service classes and patterns."""
    return build_service_catalog(_SERVICE_ROWS, _PATTERNS, _ALIASES)
