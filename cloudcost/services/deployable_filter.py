"""
Deployable service filter.
Extracts the priceable subset of an architecture's services.
"""
from typing import Iterable, List, Optional
import logging

from cloudcost.catalog.service_catalog import ServiceCatalog
from cloudcost.domain.cost_models import Architecture, ServiceClass
from cloudcost.domain.errors import EmptyDeployableSetError


logger = logging.getLogger(__name__)


class DeployableServiceFilter:
    """Selects the services that map to at least one billable resource."""

    def __init__(self, catalog: ServiceCatalog):
        self.catalog = catalog

    def extract(
        self,
        architecture: Architecture,
        exclusions: Optional[Iterable[str]] = None,
        require_non_empty: bool = True,
    ) -> List[ServiceClass]:
        """
        Return the deployable services of an architecture, in order, without duplicates.

        A service is kept only when both the architecture entry and the catalog
        mark it deployable and it is not excluded. Services unknown to the
        catalog are skipped with a warning.

        Args:
            architecture: Resolved architecture
            exclusions: Service class ids to leave out
            require_non_empty: Raise when nothing priceable remains

        Returns:
            Ordered list of deployable ServiceClass entries

        Raises:
            EmptyDeployableSetError: If the result is empty and require_non_empty is set
        """
        excluded = set(exclusions or ())
        seen = set()
        result: List[ServiceClass] = []

        for entry in architecture.services:
            service_id = entry.service_class
            if service_id in seen or service_id in excluded:
                continue
            service = self.catalog.get(service_id)
            if service is None:
                logger.warning("Skipping service unknown to the catalog: %s", service_id)
                continue
            if not (entry.deployable and service.deployable):
                logger.debug("Skipping logical service %s", service_id)
                continue
            seen.add(service_id)
            result.append(service)

        if not result and require_non_empty:
            logger.error("No deployable services for pattern %s", architecture.pattern)
            raise EmptyDeployableSetError(
                "Architecture has no deployable services to price",
                pattern=architecture.pattern,
            )
        return result
