"""
Tests for extracting the priceable subset of an architecture.
"""

import pytest

from cloudcost.domain.cost_models import Architecture
from cloudcost.domain.errors import EmptyDeployableSetError, InputError
from cloudcost.services.deployable_filter import DeployableServiceFilter


@pytest.fixture
def service_filter(catalog):
    """Deployable filter over the built-in catalog."""
    return DeployableServiceFilter(catalog)


def test_logical_services_are_excluded(service_filter, serverless_architecture):
    """Services marked non-deployable never reach pricing."""
    ids = [service.id for service in service_filter.extract(serverless_architecture)]
    assert ids == ['compute_serverless', 'api_gateway', 'nosql_database', 'object_storage']
    assert 'event_bus' not in ids


def test_catalog_flag_overrides_entry_flag(service_filter):
    """A service the catalog marks logical is dropped even when the entry says deployable."""
    architecture = Architecture.from_dict({
        'pattern': 'SERVERLESS',
        'services': [
            {'service_class': 'payment_gateway', 'deployable': True},
            {'service_class': 'compute_serverless', 'deployable': True},
        ],
    })
    ids = [service.id for service in service_filter.extract(architecture)]
    assert ids == ['compute_serverless']


def test_duplicates_are_removed_preserving_order(service_filter):
    """Each service appears once, in first-seen order."""
    architecture = Architecture.from_dict({
        'pattern': 'STATIC_WEB_HOSTING',
        'services': ['cdn', 'object_storage', 'cdn', 'dns', 'object_storage'],
    })
    ids = [service.id for service in service_filter.extract(architecture)]
    assert ids == ['cdn', 'object_storage', 'dns']


def test_exclusions_are_honored(service_filter, static_architecture):
    """Explicit exclusions leave the result."""
    ids = [service.id for service in service_filter.extract(static_architecture, exclusions=['dns'])]
    assert ids == ['object_storage', 'cdn']


def test_unknown_services_are_skipped(service_filter):
    """Services unknown to the catalog are skipped rather than priced."""
    architecture = Architecture.from_dict({
        'pattern': 'STATIC_WEB_HOSTING',
        'services': ['quantum_annealer', 'object_storage'],
    })
    ids = [service.id for service in service_filter.extract(architecture)]
    assert ids == ['object_storage']


def test_empty_deployable_set_is_rejected(service_filter):
    """An architecture with only logical services is an input error."""
    architecture = Architecture.from_dict({
        'pattern': 'SERVERLESS_WEB_APP',
        'services': [
            {'service_class': 'event_bus', 'deployable': False},
            {'service_class': 'waf', 'deployable': True},
        ],
    })
    with pytest.raises(EmptyDeployableSetError) as excinfo:
        service_filter.extract(architecture)
    assert isinstance(excinfo.value, InputError)
    assert excinfo.value.pattern == 'SERVERLESS_WEB_APP'


def test_empty_result_allowed_when_not_required(service_filter):
    """require_non_empty=False returns an empty list instead of raising."""
    architecture = Architecture.from_dict({'pattern': 'SERVERLESS', 'services': ['event_bus']})
    assert service_filter.extract(architecture, require_non_empty=False) == []
