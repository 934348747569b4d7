"""
Result normalizer.
Maps the pricing engine's raw resource breakdown onto service classes.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

from cloudcost.catalog.resource_templates import ResourceTemplateRegistry
from cloudcost.domain.cost_models import CostBreakdown, Provider, ServiceCost


logger = logging.getLogger(__name__)


# Terraform provider namespace of each cloud's resource types
_TYPE_PREFIXES = {
    Provider.AWS: "aws_",
    Provider.GCP: "google_",
    Provider.AZURE: "azurerm_",
}


def _resource_type(resource: Mapping[str, Any]) -> str:
    resource_type = resource.get("resourceType")
    if resource_type:
        return str(resource_type)
    # Address may carry a module prefix: module.x.aws_s3_bucket.storage
    parts = str(resource.get("name") or "").split(".")
    return parts[-2] if len(parts) >= 2 else parts[0]


def _cost(value: Any) -> float:
    try:
        cost = float(value)
    except (TypeError, ValueError):
        return 0.0
    return cost if cost > 0 else 0.0


def _resources(raw: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    resources: List[Mapping[str, Any]] = []
    projects = raw.get("projects")
    if not isinstance(projects, list):
        return resources
    for project in projects:
        if not isinstance(project, Mapping):
            continue
        breakdown = project.get("breakdown")
        if not isinstance(breakdown, Mapping):
            continue
        entries = breakdown.get("resources")
        if not isinstance(entries, list):
            continue
        for resource in entries:
            if isinstance(resource, Mapping):
                resources.append(resource)
    return resources


class ResultNormalizer:
    """Turns raw engine output into service-class-coded costs."""

    def __init__(self, templates: ResourceTemplateRegistry):
        self.templates = templates

    def normalize(self, raw: Mapping[str, Any], provider: Provider) -> Tuple[Optional[CostBreakdown], bool]:
        """
        Aggregate engine resource costs by service class.

        Unmapped resource types, and types from another provider's namespace,
        are dropped with a warning.

        Returns:
            (CostBreakdown, True) when at least one resource mapped and the total is
            positive, otherwise (None, False)
        """
        per_service: Dict[str, float] = {}
        counts: Dict[str, int] = {}
        dropped: List[str] = []

        for resource in _resources(raw):
            resource_type = _resource_type(resource)
            service_id = None
            if resource_type.startswith(_TYPE_PREFIXES[provider]):
                service_id = self.templates.service_for_type(resource_type)
            if service_id is None:
                logger.warning("Dropping unmapped %s resource type: %s", provider.value, resource_type)
                dropped.append(str(resource.get("name") or resource_type))
                continue
            per_service[service_id] = per_service.get(service_id, 0.0) + _cost(resource.get("monthlyCost"))
            counts[service_id] = counts.get(service_id, 0) + 1

        if not per_service:
            logger.warning("No %s engine resources mapped to a service class", provider.value)
            return None, False

        total = sum(per_service.values())
        if total <= 0:
            logger.warning("Engine reported zero cost for %s; treating as unusable", provider.value)
            return None, False

        service_costs = tuple(
            ServiceCost(service_class=service_id, monthly_cost=cost, resource_count=counts[service_id])
            for service_id, cost in per_service.items()
        )
        return CostBreakdown(total, service_costs, tuple(dropped)), True
