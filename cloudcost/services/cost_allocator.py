"""
Weighted cost allocator.

Redistributes an aggregate monthly cost across the present services using
usage-derived weights, renormalized so the shares always sum to the total.
"""
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from cloudcost.catalog.pricing_tables import PricingTables
from cloudcost.catalog.resource_templates import ResourceTemplateRegistry
from cloudcost.catalog.service_catalog import ServiceCatalog
from cloudcost.domain.cost_models import CostDriver, Provider, ServiceClass, ServiceCostShare
from cloudcost.services.usage_normalizer import derive_dimensions


logger = logging.getLogger(__name__)


SERVICE_REASONS = {
    "compute_serverless": "Handles {requests_per_user} requests/user/day",
    "cdn": "Delivers {data_transfer_gb} GB/month",
    "object_storage": "Stores {storage_gb} GB of assets",
    "identity_auth": "Authenticates {monthly_users} users",
    "api_gateway": "Routes and rate-limits API requests",
    "compute_container": "Runs containerized application workloads",
    "compute_vm": "Hosts virtual machine instances",
    "relational_database": "Stores structured relational data",
    "nosql_database": "Stores flexible document data",
    "cache": "Caches frequently accessed data",
    "load_balancer": "Distributes traffic across instances",
    "dns": "Resolves domain names",
    "block_storage": "Provides persistent disk storage",
    "networking": "Manages network infrastructure",
    "monitoring": "Collects metrics and alerts",
    "logging": "Aggregates application logs",
    "secrets_management": "Stores sensitive credentials",
    "message_queue": "Buffers asynchronous work",
    "search_engine": "Indexes and serves search queries",
    "ml_inference_service": "Serves model predictions",
}


def format_number(value: float) -> str:
    """Compact human number: 1.2M, 5.0k, 300."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}k"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


class WeightedCostAllocator:
    """Splits an aggregate cost into per-service shares and quantified drivers."""

    def __init__(self, catalog: ServiceCatalog, tables: PricingTables, templates: ResourceTemplateRegistry):
        self.catalog = catalog
        self.tables = tables
        self.templates = templates

    def weights(
        self,
        services: Sequence[ServiceClass],
        usage: Mapping[str, float],
        pattern: str,
    ) -> Dict[str, float]:
        """
        Normalized weights over exactly the given services.

        Services without a weight rule for the pattern get 1/N before
        renormalization.
        """
        if not services:
            raise ValueError("Cannot allocate cost across zero services")
        dimensions = derive_dimensions(usage, self.tables.usage_defaults)
        rules = {rule.service: rule for rule in self.tables.rules_for(pattern)}
        uniform = 1.0 / len(services)

        raw: Dict[str, float] = {}
        for service in services:
            rule = rules.get(service.id)
            raw[service.id] = rule.weight(dimensions) if rule else uniform

        total_weight = sum(raw.values())
        return {service_id: weight / total_weight for service_id, weight in raw.items()}

    def allocate(
        self,
        total: float,
        services: Sequence[ServiceClass],
        usage: Mapping[str, float],
        pattern: str,
        provider: Optional[Provider] = None,
    ) -> Tuple[ServiceCostShare, ...]:
        """
        Allocate total across services.

        Costs are kept unrounded so they sum to total; rounding happens only
        when a result is serialized.

        Raises:
            ValueError: If services is empty
        """
        distinct: List[ServiceClass] = []
        seen = set()
        for service in services:
            if service.id not in seen:
                seen.add(service.id)
                distinct.append(service)

        weights = self.weights(distinct, usage, pattern)
        dimensions = derive_dimensions(usage, self.tables.usage_defaults)
        formatted = {key: format_number(value) for key, value in dimensions.items()}

        shares = []
        for service in distinct:
            weight = weights[service.id]
            reason = SERVICE_REASONS.get(service.id, "Infrastructure component").format(**formatted)
            cloud_service = (
                self.templates.cloud_service_name(provider, service.id) if provider else service.label
            )
            shares.append(ServiceCostShare(
                service_class=service.id,
                cost=total * weight,
                percentage=weight * 100,
                reason=reason,
                cloud_service=cloud_service,
                category=service.category,
            ))
        return tuple(shares)

    def drivers(
        self,
        pattern: str,
        usage: Mapping[str, float],
        shares: Sequence[ServiceCostShare],
    ) -> Tuple[CostDriver, ...]:
        """Quantified drivers for a pattern; contribution is the related service's share."""
        dimensions = derive_dimensions(usage, self.tables.usage_defaults)
        costs = {share.service_class: share.cost for share in shares}
        drivers = []
        for definition in self.tables.drivers_for(pattern):
            if definition.fixed_value:
                value = definition.fixed_value
            elif definition.dimension:
                value = f"~{format_number(dimensions.get(definition.dimension, 0.0))}{definition.suffix}"
            else:
                value = "Variable"
            drivers.append(CostDriver(
                name=definition.name,
                value=value,
                impact=definition.impact,
                cost_contribution=costs.get(definition.service, 0.0),
            ))
        return tuple(drivers)
