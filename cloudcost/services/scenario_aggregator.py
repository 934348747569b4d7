"""
Scenario aggregator.

Fans out the per-provider pipeline across three usage tiers and up to three
providers, then joins every branch into a CostScenarios value: cost range,
recommendation, leaf scores, provider rankings and confidence.
"""
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from dataclasses import dataclass, replace
from types import MappingProxyType
import asyncio
import logging

from cloudcost.catalog.pricing_tables import PricingTables, default_pricing_tables
from cloudcost.catalog.resource_templates import ResourceTemplateRegistry, default_resource_templates
from cloudcost.catalog.service_catalog import PatternPolicy, ServiceCatalog, default_service_catalog
from cloudcost.domain.cost_models import (
    ALL_PROVIDERS,
    Architecture,
    CostBand,
    CostDriver,
    CostMode,
    CostProfile,
    CostRange,
    CostResult,
    CostScenarios,
    Intent,
    Provider,
    ProviderRanking,
    ScenarioName,
    ServiceClass,
    SizingTier,
    UsageProfile,
    UsageTier,
)
from cloudcost.domain.errors import InputError
from cloudcost.pricing.infracost_runner import InfracostRunner
from cloudcost.services.confidence_scorer import ConfidenceScorer
from cloudcost.services.cost_allocator import WeightedCostAllocator, format_number
from cloudcost.services.cost_estimator import CostEstimator, determine_sizing_tier
from cloudcost.services.deployable_filter import DeployableServiceFilter
from cloudcost.services.integrity_firewall import PricingIntegrityFirewall
from cloudcost.services.usage_normalizer import build_usage_profile
from cloudcost.services.workload_classifier import classify


logger = logging.getLogger(__name__)


# Usage tier to cost profile pairing is fixed
SCENARIO_PLAN: Tuple[Tuple[ScenarioName, UsageTier, CostProfile], ...] = (
    (ScenarioName.COST_EFFECTIVE, UsageTier.LOW, CostProfile.COST_EFFECTIVE),
    (ScenarioName.STANDARD, UsageTier.EXPECTED, CostProfile.COST_EFFECTIVE),
    (ScenarioName.HIGH_PERFORMANCE, UsageTier.HIGH, CostProfile.HIGH_PERFORMANCE),
)


@dataclass(frozen=True)
class ConsumptionCharge:
    """Usage-based cost added on top of infrastructure for a cost mode."""
    name: str
    value: str
    impact: str
    amount: float


def relative_score(cost: float, low: float, high: float) -> int:
    """100 for the cheapest, 0 for the most expensive; 100 when all are equal."""
    if high - low <= 0:
        return 100
    return int(round(100 - (cost - low) / (high - low) * 100))


def cost_band(cost: float, tier: SizingTier, profile: CostProfile) -> CostBand:
    range_percent = 20
    if tier == SizingTier.LARGE:
        range_percent += 5
    elif tier == SizingTier.SMALL:
        range_percent -= 5
    if profile == CostProfile.HIGH_PERFORMANCE:
        range_percent += 5
    range_percent = min(range_percent, 30)

    if range_percent <= 20:
        confidence = "high"
    elif range_percent <= 25:
        confidence = "medium"
    else:
        confidence = "low"

    fraction = range_percent / 100
    return CostBand(
        estimate=cost,
        low=cost * (1 - fraction),
        high=cost * (1 + fraction),
        range_percent=range_percent,
        confidence=confidence,
    )


class ScenarioAggregator:
    """Builds CostScenarios for an architecture, intent and usage."""

    def __init__(
        self,
        catalog: ServiceCatalog,
        tables: PricingTables,
        templates: ResourceTemplateRegistry,
        estimator: Optional[CostEstimator] = None,
        runner: Optional[InfracostRunner] = None,
    ):
        self.catalog = catalog
        self.tables = tables
        self.templates = templates
        self.estimator = estimator or CostEstimator(catalog, tables, templates, runner=runner)
        self.filter = DeployableServiceFilter(catalog)
        self.allocator = WeightedCostAllocator(catalog, tables, templates)
        self.scorer = ConfidenceScorer()
        self.firewall = PricingIntegrityFirewall()
        self._consumption_handlers: Dict[CostMode, Callable[[Provider, Mapping[str, float], UsageProfile],
                                                              Tuple[ConsumptionCharge, ...]]] = {
            CostMode.INFRASTRUCTURE: self._infrastructure_only,
            CostMode.STORAGE_POLICY: self._storage_policy,
            CostMode.AI_CONSUMPTION: self._ai_consumption,
            CostMode.HYBRID: self._hybrid,
        }
        missing = [mode for mode in CostMode if mode not in self._consumption_handlers]
        if missing:
            raise TypeError(f"No consumption handler for cost modes {missing}")

    # Cost-mode consumption handlers

    def _infrastructure_only(self, provider, usage, profile) -> Tuple[ConsumptionCharge, ...]:
        return ()

    def _storage_charge(self, provider: Provider, usage: Mapping[str, float]) -> ConsumptionCharge:
        default_gb = usage.get("storage_gb", self.tables.usage_defaults["storage_gb"])
        storage_gb = usage.get("retention_storage_gb", default_gb)
        rate = self.tables.storage_rates[provider]
        return ConsumptionCharge(
            name="Retention storage",
            value=f"~{format_number(storage_gb)} GB",
            impact=f"Storage policy at ${rate}/GB-month",
            amount=storage_gb * rate,
        )

    def _token_charge(self, provider: Provider, usage: Mapping[str, float]) -> ConsumptionCharge:
        tokens = usage.get("tokens_per_month", self.tables.default_tokens_per_month)
        rates = self.tables.token_rates[provider]
        input_share = self.tables.token_input_share
        amount = (tokens / 1000) * (input_share * rates.input_per_1k + (1 - input_share) * rates.output_per_1k)
        return ConsumptionCharge(
            name="Token consumption",
            value=f"~{format_number(tokens)} tokens/mo",
            impact="Per-token model inference pricing",
            amount=amount,
        )

    def _storage_policy(self, provider, usage, profile) -> Tuple[ConsumptionCharge, ...]:
        return (self._storage_charge(provider, usage),)

    def _ai_consumption(self, provider, usage, profile) -> Tuple[ConsumptionCharge, ...]:
        return (self._token_charge(provider, usage),)

    def _hybrid(self, provider, usage, profile: UsageProfile) -> Tuple[ConsumptionCharge, ...]:
        charges = []
        if profile.has_field("tokens_per_month"):
            charges.append(self._token_charge(provider, usage))
        if profile.has_field("retention_storage_gb"):
            charges.append(self._storage_charge(provider, usage))
        return tuple(charges)

    # Pipeline

    async def _leaf(
        self,
        provider: Provider,
        services: Sequence[ServiceClass],
        policy: PatternPolicy,
        tier: SizingTier,
        usage_tier: UsageTier,
        profile: CostProfile,
        cost_mode: CostMode,
        usage_profile: UsageProfile,
        deadline: Optional[float],
    ) -> CostResult:
        usage = usage_profile.resolve(usage_tier)
        estimate = await self.estimator.generate_cost_estimate(
            provider, services, tier, profile, policy.id, usage, deadline=deadline,
        )
        charges = self._consumption_handlers[cost_mode](provider, usage, usage_profile)
        total = estimate.total_monthly_cost + sum(charge.amount for charge in charges)

        shares = self.allocator.allocate(total, services, usage, policy.id, provider)
        drivers = self.allocator.drivers(policy.id, usage, shares) + tuple(
            CostDriver(charge.name, charge.value, charge.impact, charge.amount) for charge in charges
        )
        return CostResult(
            provider=provider,
            monthly_cost=total,
            services=shares,
            drivers=drivers,
            estimate_type=estimate.estimate_type,
            estimate_source=estimate.estimate_source,
            cost_profile=profile,
            sizing_tier=tier,
            usage_tier=usage_tier,
            cost_mode=cost_mode,
            cost_band=cost_band(total, tier, profile),
            estimate_reason=estimate.estimate_reason,
            state_trail=estimate.state_trail,
        )

    def _rankings(
        self,
        results: Mapping[Provider, CostResult],
        profile: CostProfile,
    ) -> Tuple[ProviderRanking, ...]:
        if not results:
            return ()
        costs = [result.monthly_cost for result in results.values()]
        low, high = min(costs), max(costs)
        if profile == CostProfile.HIGH_PERFORMANCE:
            cost_weight, perf_weight = 0.4, 0.6
        else:
            cost_weight, perf_weight = 0.7, 0.3

        scored = []
        for provider, result in results.items():
            cost_score = relative_score(result.monthly_cost, low, high)
            perf_score = self.tables.performance_scores[provider]
            # Same rounding as the cost score, applied to the unrounded blend
            if high - low > 0:
                exact_cost = 100 - (result.monthly_cost - low) / (high - low) * 100
            else:
                exact_cost = 100.0
            score = int(round(exact_cost * cost_weight + perf_score * perf_weight))
            scored.append((score, provider, cost_score, perf_score, result.monthly_cost))

        scored.sort(key=lambda row: (-row[0], row[4]))
        return tuple(
            ProviderRanking(
                provider=provider,
                rank=index + 1,
                score=score,
                cost_score=cost_score,
                performance_score=perf_score,
                monthly_cost=monthly_cost,
                recommended=index == 0,
            )
            for index, (score, provider, cost_score, perf_score, monthly_cost) in enumerate(scored)
        )

    def _category_breakdown(self, result: CostResult) -> Tuple[Mapping[str, object], ...]:
        totals: Dict[str, float] = {}
        for share in result.services:
            totals[share.category] = totals.get(share.category, 0.0) + share.cost
        rows = []
        for category, cost in sorted(totals.items(), key=lambda item: -item[1]):
            percentage = (cost / result.monthly_cost * 100) if result.monthly_cost > 0 else 0.0
            rows.append(MappingProxyType({
                "category": category,
                "cost": round(cost, 2),
                "percentage": round(percentage, 1),
            }))
        return tuple(rows)

    async def build(
        self,
        architecture: Architecture,
        intent: Intent,
        usage_overrides: Optional[Mapping[str, object]] = None,
        providers: Optional[Sequence[Provider]] = None,
        deadline: Optional[float] = None,
    ) -> CostScenarios:
        """
        Run every usage tier x provider pipeline and join the results.

        Args:
            architecture: Resolved architecture (pattern + services)
            intent: Description, scale and usage hints
            usage_overrides: Caller overrides shaped like a usage profile
            providers: Providers to price (default: all three)
            deadline: Absolute time.monotonic() deadline for engine calls

        Returns:
            CostScenarios with three scenario keys

        Raises:
            UnknownPatternError, EmptyDeployableSetError, InputError: Before any pricing
            PolicyViolationError: If the pattern forbids a deployable service
            PricingIntegrityError: If a non-deployable service was priced
        """
        policy = self.catalog.resolve_pattern(architecture.pattern)
        services = self.filter.extract(architecture)
        # Reject forbidden resources before any pipeline starts
        self.estimator.generator.check_policy(policy.id, services)

        try:
            usage_profile = build_usage_profile(intent.usage, usage_overrides)
        except ValueError as error:
            raise InputError(f"Invalid usage profile: {error}", pattern=policy.id) from error

        providers = tuple(dict.fromkeys(providers or ALL_PROVIDERS))
        if not providers:
            raise InputError("At least one provider is required", pattern=policy.id)
        tier = determine_sizing_tier(intent.scale)
        cost_mode = classify(intent.description, [service.id for service in services])
        logger.info(
            "Estimating %s (%d deployable services, tier=%s, mode=%s) for %s",
            policy.id, len(services), tier.value, cost_mode.value,
            ",".join(provider.value for provider in providers),
        )

        keys: List[Tuple[ScenarioName, Provider]] = []
        tasks = []
        for scenario, usage_tier, profile in SCENARIO_PLAN:
            for provider in providers:
                keys.append((scenario, provider))
                tasks.append(asyncio.ensure_future(self._leaf(
                    provider, services, policy, tier, usage_tier, profile, cost_mode, usage_profile, deadline,
                )))

        try:
            leaves = await asyncio.gather(*tasks)
        except BaseException:
            # A fatal branch aborts the join; no partial result is assembled
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        costs = [leaf.monthly_cost for leaf in leaves]
        low, high = min(costs), max(costs)

        scored: Dict[ScenarioName, Dict[Provider, CostResult]] = {
            scenario: {} for scenario, _, _ in SCENARIO_PLAN
        }
        recommended: Optional[CostResult] = None
        recommended_scenario = ScenarioName.STANDARD
        for (scenario, provider), leaf in zip(keys, leaves):
            result = replace(leaf, score=relative_score(leaf.monthly_cost, low, high))
            scored[scenario][provider] = result
            if recommended is None or result.monthly_cost < recommended.monthly_cost:
                recommended = result
                recommended_scenario = scenario

        all_results = [result for by_provider in scored.values() for result in by_provider.values()]
        self.firewall.validate(all_results, services, pattern=policy.id)

        profiles = {scenario: profile for scenario, _, profile in SCENARIO_PLAN}
        rankings = {
            scenario: self._rankings(results, profiles[scenario])
            for scenario, results in scored.items()
        }
        level, factor = self.tables.sensitivity_for(policy.id)
        confidence = self.scorer.score(len(services), scored, usage_profile, providers)

        logger.info(
            "Cost range for %s: $%.2f - $%.2f/month, recommended %s/%s",
            policy.id, low, high, recommended.provider.value, recommended_scenario.value,
        )
        return CostScenarios(
            scenarios=MappingProxyType({
                scenario: MappingProxyType(results) for scenario, results in scored.items()
            }),
            cost_range=CostRange(min=low, max=high),
            recommended=recommended,
            recommended_scenario=recommended_scenario,
            confidence=confidence,
            cost_mode=cost_mode,
            pattern=policy.id,
            rankings=MappingProxyType(rankings),
            cost_sensitivity=MappingProxyType({"level": level, "factor": factor}),
            category_breakdown=self._category_breakdown(recommended),
        )


def build_scenario_aggregator(runner: Optional[InfracostRunner] = None) -> ScenarioAggregator:
    """Aggregator wired with the built-in catalog, pricing tables and templates."""
    catalog = default_service_catalog()
    tables = default_pricing_tables(catalog)
    templates = default_resource_templates(catalog)
    return ScenarioAggregator(catalog, tables, templates, runner=runner)
