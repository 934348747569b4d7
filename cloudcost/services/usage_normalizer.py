"""
Usage normalizer.
Maps an abstract usage profile into resource-scoped usage for the pricing engine.
"""
from typing import Any, Dict, Iterable, Mapping, Optional, Union
from pathlib import Path
import logging

import yaml

from cloudcost.catalog.pricing_tables import PricingTables
from cloudcost.catalog.resource_templates import ResourceTemplateRegistry
from cloudcost.domain.cost_models import (
    CostProfile,
    Provider,
    ResourceUsageMap,
    ServiceClass,
    UsageProfile,
)


logger = logging.getLogger(__name__)


# Infracost usage file schema version
USAGE_FILE_VERSION = "0.1"

DEFAULT_USAGE_PROFILE = UsageProfile.from_dict(
    {
        "monthly_users": {"min": 1000, "expected": 5000, "max": 20000},
        "requests_per_user": {"min": 10, "expected": 30, "max": 100},
        "data_transfer_gb": {"min": 10, "expected": 50, "max": 200},
        "storage_gb": {"min": 5, "expected": 20, "max": 100},
    },
    provided=False,
)


def build_usage_profile(
    intent_usage: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> UsageProfile:
    """
    Merge the default profile with intent usage, then caller overrides.

    Raises:
        ValueError: If a usage value is neither numeric nor a range
    """
    profile = DEFAULT_USAGE_PROFILE
    if intent_usage:
        profile = profile.merged(UsageProfile.from_dict(intent_usage))
    if overrides:
        profile = profile.merged(UsageProfile.from_dict(overrides))
    return profile


def derive_dimensions(usage: Mapping[str, float], defaults: Mapping[str, float]) -> Dict[str, float]:
    """
    Resolve scalar usage into every dimension a rule or template may read.

    monthly_requests is users x requests_per_user x 30.
    """
    dimensions = {key: float(value) for key, value in usage.items()}
    for key, value in defaults.items():
        dimensions.setdefault(key, float(value))
    users = dimensions["monthly_users"]
    requests_per_user = dimensions["requests_per_user"]
    dimensions["user_requests"] = users * requests_per_user
    dimensions["monthly_requests"] = users * requests_per_user * 30
    return dimensions


class UsageNormalizer:
    """Builds per-resource usage entries from abstract usage."""

    def __init__(self, templates: ResourceTemplateRegistry, tables: PricingTables):
        self.templates = templates
        self.tables = tables

    def normalize(
        self,
        usage: Mapping[str, float],
        services: Iterable[Union[ServiceClass, str]],
        provider: Provider,
        profile: CostProfile = CostProfile.COST_EFFECTIVE,
    ) -> ResourceUsageMap:
        """
        Map scalar usage to resource addresses.

        Args:
            usage: Scalar usage for one usage tier (missing fields use defaults)
            services: Deployable services being priced
            provider: Target provider
            profile: Cost profile selecting the resource variant

        Returns:
            Mapping of resource address to its usage keys. Resources with no
            usage dimension get no entry.
        """
        dimensions = derive_dimensions(usage, self.tables.usage_defaults)
        result: ResourceUsageMap = {}

        for service in services:
            service_id = service.id if isinstance(service, ServiceClass) else service
            template = self.templates.template(provider, service_id)
            variant = template.variant(profile)
            if not variant.usage_keys:
                continue
            address = f"{variant.resource_type}.{template.name}"
            if address in result:
                continue
            entry: Dict[str, Any] = {}
            for usage_key in variant.usage_keys:
                value = usage_key.value(dimensions)
                if usage_key.parent:
                    entry.setdefault(usage_key.parent, {})[usage_key.key] = value
                else:
                    entry[usage_key.key] = value
            result[address] = entry

        logger.debug(
            "%s usage normalized: %d requests/mo across %d resources",
            provider.value, int(dimensions["monthly_requests"]), len(result),
        )
        return result


def dump_usage_file(usage_map: ResourceUsageMap) -> str:
    """Render a usage map in the pricing engine's usage-file format."""
    document = {"version": USAGE_FILE_VERSION, "resource_usage": usage_map}
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=True)


def write_usage_file(usage_map: ResourceUsageMap, path: Path) -> Path:
    path.write_text(dump_usage_file(usage_map), encoding="utf-8")
    return path
