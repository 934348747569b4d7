"""
Heuristic fallback pricing engine.

cost(service) = base cost x tier multiplier x profile multiplier
                x provider adjustment x performance multiplier

Pure and total: no I/O, no external dependency, always returns a result.
"""
from typing import Iterable

from cloudcost.catalog.pricing_tables import PricingTables
from cloudcost.domain.cost_models import (
    CostBreakdown,
    CostProfile,
    Provider,
    ServiceClass,
    ServiceCost,
    SizingTier,
)


class HeuristicFallbackEngine:
    """Formula-based approximation used when the authoritative engine is unavailable."""

    def __init__(self, tables: PricingTables):
        self.tables = tables

    def service_cost(
        self,
        provider: Provider,
        service: ServiceClass,
        tier: SizingTier,
        profile: CostProfile,
    ) -> float:
        base = service.base_cost if service.base_cost > 0 else self.tables.default_base_cost
        performance = service.performance_multiplier if profile == CostProfile.HIGH_PERFORMANCE else 1.0
        return (
            base
            * self.tables.tier_multipliers[tier]
            * self.tables.profile_multipliers[profile]
            * self.tables.provider_adjustments[provider]
            * performance
        )

    def estimate(
        self,
        provider: Provider,
        services: Iterable[ServiceClass],
        tier: SizingTier,
        profile: CostProfile,
    ) -> CostBreakdown:
        """
        Approximate the monthly cost of the given services.

        Returns:
            CostBreakdown with one ServiceCost per distinct service
        """
        costs = []
        seen = set()
        for service in services:
            if service.id in seen:
                continue
            seen.add(service.id)
            costs.append(ServiceCost(service.id, self.service_cost(provider, service, tier, profile)))
        total = sum(cost.monthly_cost for cost in costs)
        return CostBreakdown(total_monthly_cost=total, service_costs=tuple(costs))
