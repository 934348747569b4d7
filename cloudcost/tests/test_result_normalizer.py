"""
Tests for mapping engine output onto service classes.
"""

import pytest

from cloudcost.domain.cost_models import Provider
from cloudcost.services.result_normalizer import ResultNormalizer


@pytest.fixture
def normalizer(templates):
    """Result normalizer over the built-in type map."""
    return ResultNormalizer(templates)


def test_resources_are_aggregated_by_service_class(normalizer, aws_breakdown):
    """Mapped resources sum into their service classes."""
    breakdown, ok = normalizer.normalize(aws_breakdown, Provider.AWS)

    assert ok
    costs = {cost.service_class: cost.monthly_cost for cost in breakdown.service_costs}
    assert costs == {'object_storage': 12.5, 'cdn': 30.0, 'dns': 0.5}
    assert breakdown.total_monthly_cost == pytest.approx(43.0)


def test_unmapped_resource_types_are_dropped(normalizer, aws_breakdown):
    """Resource types outside the type map never reach a breakdown."""
    breakdown, _ = normalizer.normalize(aws_breakdown, Provider.AWS)

    assert breakdown.dropped_resources == ('aws_kinesis_stream.events',)
    assert all(cost.service_class != 'aws_kinesis_stream' for cost in breakdown.service_costs)


def test_type_is_read_from_module_address(normalizer):
    """Without resourceType the type comes from the address, module prefix included."""
    raw = {'projects': [{'breakdown': {'resources': [
        {'name': 'module.site.aws_s3_bucket.storage', 'monthlyCost': '4'},
        {'name': 'aws_s3_bucket.logs', 'monthlyCost': '1'},
    ]}}]}
    breakdown, ok = normalizer.normalize(raw, Provider.AWS)

    assert ok
    assert breakdown.service_costs[0].service_class == 'object_storage'
    assert breakdown.service_costs[0].resource_count == 2
    assert breakdown.total_monthly_cost == pytest.approx(5.0)


def test_nothing_mapped_is_unusable(normalizer):
    """Output with no mappable resource asks for the fallback."""
    raw = {'projects': [{'breakdown': {'resources': [
        {'name': 'aws_kinesis_stream.events', 'monthlyCost': '5'},
    ]}}]}
    assert normalizer.normalize(raw, Provider.AWS) == (None, False)


def test_zero_total_is_unusable(normalizer):
    """Free or unpriced resources alone do not make an exact estimate."""
    raw = {'projects': [{'breakdown': {'resources': [
        {'name': 'aws_route53_zone.zone', 'monthlyCost': None},
        {'name': 'aws_s3_bucket.storage', 'monthlyCost': '0'},
    ]}}]}
    assert normalizer.normalize(raw, Provider.AWS) == (None, False)


def test_multiple_projects_are_combined(normalizer):
    """Resources from every project count toward the total."""
    raw = {'projects': [
        {'breakdown': {'resources': [{'name': 'google_storage_bucket.storage', 'monthlyCost': '2'}]}},
        {'breakdown': {'resources': [{'name': 'google_dns_managed_zone.zone', 'monthlyCost': '0.2'}]}},
    ]}
    breakdown, ok = normalizer.normalize(raw, Provider.GCP)

    assert ok
    assert [cost.service_class for cost in breakdown.service_costs] == ['object_storage', 'dns']


def test_other_provider_resources_are_dropped(normalizer, aws_breakdown):
    """AWS resources in a GCP run never map to a GCP service."""
    assert normalizer.normalize(aws_breakdown, Provider.GCP) == (None, False)


@pytest.mark.parametrize('raw', [
    {'projects': [{'name': 'p', 'breakdown': ['not', 'a', 'mapping']}]},
    {'projects': [{'breakdown': 'text'}]},
    {'projects': [{'breakdown': {'resources': {'aws_s3_bucket.storage': 4}}}]},
    {'projects': [{'breakdown': {'resources': 'aws_s3_bucket.storage'}}]},
    {'projects': {'breakdown': {}}},
])
def test_malformed_nesting_is_unusable(normalizer, raw):
    """Breakdowns or resource lists of the wrong shape are skipped, not raised on."""
    assert normalizer.normalize(raw, Provider.AWS) == (None, False)
