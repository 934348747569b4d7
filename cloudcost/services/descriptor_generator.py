"""
Infrastructure descriptor generator.
Emits a minimal priceable resource list per provider, tier and profile,
and renders it as Terraform HCL for the pricing engine.
"""
from typing import Any, Iterable, List, Mapping
from types import MappingProxyType
import json
import logging

from cloudcost.catalog.resource_templates import ResourceTemplateRegistry
from cloudcost.catalog.service_catalog import ServiceCatalog
from cloudcost.domain.cost_models import (
    CostProfile,
    Provider,
    ResourceDescriptor,
    ResourceEntry,
    ServiceClass,
    SizingTier,
)
from cloudcost.domain.errors import PolicyViolationError


logger = logging.getLogger(__name__)


_PROVIDER_BLOCKS = {
    Provider.AWS: ('provider "aws" {\n'
                   '  region                      = "us-east-1"\n'
                   '  skip_credentials_validation = true\n'
                   '  skip_requesting_account_id  = true\n'
                   '}\n'),
    Provider.GCP: ('provider "google" {\n'
                   '  project = "cost-estimate"\n'
                   '  region  = "us-central1"\n'
                   '}\n'),
    Provider.AZURE: ('provider "azurerm" {\n'
                     '  features {}\n'
                     '  skip_provider_registration = true\n'
                     '}\n'),
}


class InfrastructureDescriptorGenerator:
    """Builds ResourceDescriptors from deployable services under a pattern policy."""

    def __init__(self, catalog: ServiceCatalog, templates: ResourceTemplateRegistry):
        self.catalog = catalog
        self.templates = templates

    def check_policy(self, pattern: str, services: Iterable[ServiceClass], provider: Provider = None) -> None:
        """
        Raise if the pattern forbids any of the services.

        Raises:
            UnknownPatternError: If the pattern is not known
            PolicyViolationError: On the first forbidden service
        """
        policy = self.catalog.resolve_pattern(pattern)
        for service in services:
            if policy.forbids(service):
                logger.error(
                    "Pattern %s forbids %s resource for %s",
                    policy.id, service.category, service.id,
                )
                raise PolicyViolationError(
                    f"Pattern {policy.id} forbids {service.category} resource '{service.id}'",
                    pattern=policy.id,
                    service=service.id,
                    provider=provider.value if provider else None,
                )

    def generate(
        self,
        provider: Provider,
        services: Iterable[ServiceClass],
        tier: SizingTier,
        profile: CostProfile,
        pattern: str,
    ) -> ResourceDescriptor:
        """
        Build a descriptor with exactly one entry per deployable service.

        The pattern policy is checked for every service before any entry is
        built, so a violating descriptor is never produced.

        Raises:
            PolicyViolationError: If the pattern forbids a service's resource class
        """
        services = list(services)
        self.check_policy(pattern, services, provider)
        policy = self.catalog.resolve_pattern(pattern)

        common = self.templates.provider_attributes.get(provider, {})
        entries: List[ResourceEntry] = []
        seen = set()
        for service in services:
            if service.id in seen or not service.deployable:
                continue
            seen.add(service.id)
            template = self.templates.template(provider, service.id)
            variant = template.variant(profile)
            attributes = dict(common)
            attributes.update(variant.attributes_for(tier))
            entries.append(ResourceEntry(
                resource_type=variant.resource_type,
                name=template.name,
                service_class=service.id,
                resource_class=service.category,
                variant="premium" if profile == CostProfile.HIGH_PERFORMANCE else "economical",
                attributes=MappingProxyType(attributes),
            ))

        return ResourceDescriptor(
            provider=provider,
            tier=tier,
            profile=profile,
            pattern=policy.id,
            entries=tuple(entries),
        )


def _hcl_value(value: Any, indent: int) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_hcl_value(item, indent) for item in value) + "]"
    if isinstance(value, Mapping):
        return "{\n" + _hcl_body(value, indent + 2) + " " * indent + "}"
    raise TypeError(f"Cannot render {type(value).__name__} as HCL")


def _hcl_body(attributes: Mapping[str, Any], indent: int) -> str:
    pad = " " * indent
    return "".join(f"{pad}{key} = {_hcl_value(value, indent)}\n" for key, value in attributes.items())


def render_hcl(descriptor: ResourceDescriptor) -> str:
    """Serialize a descriptor as a Terraform configuration."""
    blocks = [_PROVIDER_BLOCKS[descriptor.provider]]
    for entry in descriptor.entries:
        blocks.append(
            f'resource "{entry.resource_type}" "{entry.name}" {{\n'
            f"{_hcl_body(entry.attributes, 2)}"
            "}\n"
        )
    return "\n".join(blocks)
