"""
Cost estimator service.
Per-provider estimate pipeline: descriptor, usage, authoritative pricing
with heuristic fallback, and the integrity check on the result.
"""
from typing import Mapping, Optional, Sequence, Tuple
import logging

from cloudcost.catalog.pricing_tables import PricingTables
from cloudcost.catalog.resource_templates import ResourceTemplateRegistry
from cloudcost.catalog.service_catalog import ServiceCatalog
from cloudcost.core.config import config
from cloudcost.domain.cost_models import (
    CostBreakdown,
    CostProfile,
    EstimateState,
    EstimateType,
    Provider,
    ProviderEstimate,
    ResourceDescriptor,
    ResourceUsageMap,
    ServiceClass,
    SizingTier,
)
from cloudcost.domain.errors import PolicyViolationError
from cloudcost.pricing.infracost_runner import InfracostRunner, ENGINE_NAME
from cloudcost.services.descriptor_generator import InfrastructureDescriptorGenerator, render_hcl
from cloudcost.services.heuristic_engine import HeuristicFallbackEngine
from cloudcost.services.integrity_firewall import PricingIntegrityFirewall
from cloudcost.services.result_normalizer import ResultNormalizer
from cloudcost.services.usage_normalizer import UsageNormalizer, write_usage_file
from cloudcost.utils.fs import USAGE_FILENAME, new_run_id, scratch_workspace, write_descriptor


logger = logging.getLogger(__name__)


HEURISTIC_SOURCE = "heuristic"

_SCALE_TIERS = {
    "poc": SizingTier.SMALL,
    "proof_of_concept": SizingTier.SMALL,
    "small": SizingTier.SMALL,
    "smb": SizingTier.MEDIUM,
    "medium": SizingTier.MEDIUM,
    "enterprise": SizingTier.LARGE,
    "large": SizingTier.LARGE,
}


def determine_sizing_tier(scale: Optional[str]) -> SizingTier:
    """Map a declared scale to a sizing tier; anything unrecognized is MEDIUM."""
    key = (scale or "").strip().lower().replace("-", "_").replace(" ", "_")
    return _SCALE_TIERS.get(key, SizingTier.MEDIUM)


class CostEstimator:
    """
    Runs the per-provider estimate state machine:

    REQUESTED -> DESCRIPTOR_BUILT -> PRICED_EXACT | PRICED_HEURISTIC -> VALIDATED -> RETURNED

    FAILED is reached only from DESCRIPTOR_BUILT-stage policy violations,
    which propagate. Engine failures never escape; they select the
    heuristic path and are reported through estimate_type.
    """

    def __init__(
        self,
        catalog: ServiceCatalog,
        tables: PricingTables,
        templates: ResourceTemplateRegistry,
        runner: Optional[InfracostRunner] = None,
        scratch_dir: Optional[str] = None,
    ):
        self.catalog = catalog
        self.tables = tables
        self.templates = templates
        self.runner = runner or InfracostRunner()
        self.scratch_dir = scratch_dir or config.COST_SCRATCH_DIR

        self.generator = InfrastructureDescriptorGenerator(catalog, templates)
        self.usage_normalizer = UsageNormalizer(templates, tables)
        self.result_normalizer = ResultNormalizer(templates)
        self.heuristic = HeuristicFallbackEngine(tables)
        self.firewall = PricingIntegrityFirewall()

    async def _price_exact(
        self,
        descriptor: ResourceDescriptor,
        usage_map: ResourceUsageMap,
        run_id: str,
        deadline: Optional[float],
    ) -> Tuple[Optional[CostBreakdown], str]:
        """Attempt authoritative pricing once. Returns (breakdown, "") or (None, reason)."""
        reason = self.runner.unavailable_reason()
        if reason:
            return None, reason

        try:
            with scratch_workspace(self.scratch_dir, run_id, descriptor.provider.value) as workspace:
                write_descriptor(workspace, render_hcl(descriptor))
                usage_file = None
                if usage_map:
                    usage_file = write_usage_file(usage_map, workspace / USAGE_FILENAME)
                result = await self.runner.run(workspace, usage_file, deadline=deadline)
        except OSError as error:
            return None, f"scratch workspace unavailable: {error}"

        if not result.ok:
            return None, result.reason

        breakdown, ok = self.result_normalizer.normalize(result.raw, descriptor.provider)
        if not ok:
            return None, "no engine resources mapped to a service class"
        return breakdown, ""

    async def generate_cost_estimate(
        self,
        provider: Provider,
        services: Sequence[ServiceClass],
        tier: SizingTier,
        profile: CostProfile,
        pattern: str,
        usage: Mapping[str, float],
        deadline: Optional[float] = None,
    ) -> ProviderEstimate:
        """
        Estimate the monthly infrastructure cost of services on one provider.

        Args:
            provider: Target provider
            services: Deployable services
            tier: Sizing tier (capacity parameters, heuristic multiplier)
            profile: Cost profile (resource variant, heuristic multiplier)
            pattern: Architecture pattern id or alias
            usage: Scalar usage for the scenario's usage tier
            deadline: Absolute time.monotonic() deadline for the engine call

        Returns:
            ProviderEstimate with estimate_type exact or heuristic

        Raises:
            PolicyViolationError: If the pattern forbids one of the services
            PricingIntegrityError: If a non-deployable service was priced
        """
        run_id = new_run_id()
        trail = [EstimateState.REQUESTED]

        try:
            descriptor = self.generator.generate(provider, services, tier, profile, pattern)
        except PolicyViolationError:
            trail.append(EstimateState.FAILED)
            logger.error(
                "Estimate %s for %s failed: %s",
                run_id, provider.value, " -> ".join(state.value for state in trail),
            )
            raise
        trail.append(EstimateState.DESCRIPTOR_BUILT)

        usage_map = self.usage_normalizer.normalize(usage, services, provider, profile)
        breakdown, reason = await self._price_exact(descriptor, usage_map, run_id, deadline)

        if breakdown is not None:
            trail.append(EstimateState.PRICED_EXACT)
            estimate_type = EstimateType.EXACT
            source = ENGINE_NAME
            logger.info("%s priced by %s: $%.2f/month", provider.value, ENGINE_NAME, breakdown.total_monthly_cost)
        else:
            logger.warning("%s falling back to heuristic pricing: %s", provider.value, reason)
            breakdown = self.heuristic.estimate(provider, services, tier, profile)
            trail.append(EstimateState.PRICED_HEURISTIC)
            estimate_type = EstimateType.HEURISTIC
            source = HEURISTIC_SOURCE

        self.firewall.validate_services(
            [cost.service_class for cost in breakdown.service_costs],
            [service.id for service in services],
            provider=provider.value,
            pattern=descriptor.pattern,
        )
        trail.append(EstimateState.VALIDATED)
        trail.append(EstimateState.RETURNED)

        return ProviderEstimate(
            provider=provider,
            tier=tier,
            profile=profile,
            total_monthly_cost=breakdown.total_monthly_cost,
            service_costs=breakdown.service_costs,
            estimate_type=estimate_type,
            estimate_source=source,
            estimate_reason=reason,
            run_id=run_id,
            state_trail=tuple(trail),
        )
