"""
Pricing integrity firewall.
No service outside the deployable set may ever appear priced.
"""
from typing import Iterable, Union
import logging

from cloudcost.domain.cost_models import CostResult, ServiceClass
from cloudcost.domain.errors import PricingIntegrityError


logger = logging.getLogger(__name__)


class PricingIntegrityFirewall:
    """Final check on every CostResult before it leaves the pipeline."""

    def validate_services(
        self,
        service_ids: Iterable[str],
        deployable_ids: Iterable[str],
        provider: str = None,
        pattern: str = None,
    ) -> None:
        """
        Raises:
            PricingIntegrityError: If a service id is outside deployable_ids
        """
        allowed = set(deployable_ids)
        for service_id in service_ids:
            if service_id not in allowed:
                logger.error(
                    "Integrity violation: %s priced for %s but is not deployable",
                    service_id, provider,
                )
                raise PricingIntegrityError(
                    f"Non-deployable service '{service_id}' appears in a cost breakdown",
                    pattern=pattern,
                    service=service_id,
                    provider=provider,
                )

    def validate(
        self,
        priced: Union[CostResult, Iterable[CostResult]],
        deployable_services: Iterable[Union[ServiceClass, str]],
        pattern: str = None,
    ) -> None:
        """
        Assert every priced service belongs to the deployable set.

        Raises:
            PricingIntegrityError: On the first service outside the set
        """
        allowed = {
            service.id if isinstance(service, ServiceClass) else service
            for service in deployable_services
        }
        results = [priced] if isinstance(priced, CostResult) else list(priced)
        for result in results:
            self.validate_services(
                result.service_classes, allowed, provider=result.provider.value, pattern=pattern
            )
