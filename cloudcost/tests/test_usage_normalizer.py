"""
Tests for usage profiles and resource-scoped usage normalization.
"""

import pytest
import yaml

from cloudcost.domain.cost_models import CostProfile, Provider, UsageProfile, UsageRange, UsageTier
from cloudcost.services.usage_normalizer import (
    DEFAULT_USAGE_PROFILE,
    USAGE_FILE_VERSION,
    UsageNormalizer,
    build_usage_profile,
    derive_dimensions,
    dump_usage_file,
    write_usage_file,
)


@pytest.fixture
def normalizer(templates, tables):
    """Usage normalizer over the built-in tables."""
    return UsageNormalizer(templates, tables)


def test_scalar_usage_becomes_flat_range():
    """A scalar value is its own min, expected and max."""
    assert UsageRange.from_value(250) == UsageRange(250.0, 250.0, 250.0)


def test_partial_range_is_completed():
    """Missing bounds are filled from the present ones."""
    assert UsageRange.from_value({'min': 10, 'max': 30}) == UsageRange(10.0, 20.0, 30.0)
    assert UsageRange.from_value({'expected': 40}) == UsageRange(40.0, 40.0, 40.0)


@pytest.mark.parametrize('value', [True, 'lots', {'typical': 5}, [1, 2]])
def test_non_numeric_usage_is_rejected(value):
    """Booleans, strings and shapeless mappings are not usage."""
    with pytest.raises(ValueError):
        UsageRange.from_value(value)


@pytest.mark.parametrize('value', [
    -1,
    -100000.0,
    {'min': -5, 'max': 10},
    {'min': 50, 'max': 10},
    {'min': 10, 'expected': 5, 'max': 20},
])
def test_negative_or_inverted_usage_is_rejected(value):
    """Usage can never be negative and bounds must be ordered."""
    with pytest.raises(ValueError):
        UsageRange.from_value(value)


def test_defaults_are_not_marked_as_provided():
    """Built-in defaults never count as caller-provided usage."""
    profile = build_usage_profile()
    assert profile.provided_fields == ()
    assert profile.resolve(UsageTier.EXPECTED)['monthly_users'] == 5000


def test_overrides_take_precedence_over_intent_usage():
    """Caller overrides win over intent hints, which win over defaults."""
    profile = build_usage_profile(
        {'monthly_users': 2000, 'storage_gb': 50},
        {'monthly_users': {'min': 100, 'expected': 300, 'max': 900}},
    )
    assert profile.fields['monthly_users'] == UsageRange(100.0, 300.0, 900.0)
    assert profile.fields['storage_gb'] == UsageRange(50.0, 50.0, 50.0)
    assert profile.fields['data_transfer_gb'] == DEFAULT_USAGE_PROFILE.fields['data_transfer_gb']
    assert set(profile.provided_fields) == {'monthly_users', 'storage_gb'}


def test_profile_resolves_tiers_to_bounds():
    """LOW, EXPECTED and HIGH read min, expected and max."""
    profile = UsageProfile.from_dict({'storage_gb': {'min': 1, 'expected': 2, 'max': 3}})
    assert profile.resolve(UsageTier.LOW) == {'storage_gb': 1.0}
    assert profile.resolve(UsageTier.EXPECTED) == {'storage_gb': 2.0}
    assert profile.resolve(UsageTier.HIGH) == {'storage_gb': 3.0}


def test_monthly_requests_are_derived(tables):
    """monthly_requests is users x requests per user x 30 days."""
    dimensions = derive_dimensions({'monthly_users': 1000, 'requests_per_user': 20}, tables.usage_defaults)
    assert dimensions['monthly_requests'] == 600000
    assert dimensions['user_requests'] == 20000
    assert dimensions['storage_gb'] == tables.usage_defaults['storage_gb']


def test_usage_is_keyed_by_resource_address(normalizer, catalog):
    """Usage entries use the same addresses the descriptor emits."""
    services = [catalog.require('compute_serverless'), catalog.require('object_storage')]
    usage = {'monthly_users': 1000, 'requests_per_user': 10, 'storage_gb': 25}
    result = normalizer.normalize(usage, services, Provider.AWS)

    assert result['aws_lambda_function.app']['monthly_requests'] == 300000
    assert result['aws_lambda_function.app']['request_duration_ms'] == 250
    assert result['aws_s3_bucket.storage']['standard']['storage_gb'] == 25


def test_resources_without_usage_dimensions_get_no_entry(normalizer, catalog):
    """Resources priced purely by capacity have no usage entry."""
    result = normalizer.normalize({}, [catalog.require('dns')], Provider.AWS)
    assert result == {}


def test_usage_follows_cost_profile_variant(normalizer, catalog):
    """The premium variant's resource type is used under HIGH_PERFORMANCE."""
    services = [catalog.require('api_gateway')]
    economical = normalizer.normalize({}, services, Provider.AWS, CostProfile.COST_EFFECTIVE)
    premium = normalizer.normalize({}, services, Provider.AWS, CostProfile.HIGH_PERFORMANCE)
    assert list(economical) == ['aws_apigatewayv2_api.api']
    assert list(premium) == ['aws_api_gateway_rest_api.api']


def test_usage_file_is_versioned_yaml(tmp_path):
    """The usage side-file is YAML with a version and resource_usage."""
    usage_map = {'aws_lambda_function.app': {'monthly_requests': 1000.0}}
    document = yaml.safe_load(dump_usage_file(usage_map))
    assert document == {'version': USAGE_FILE_VERSION, 'resource_usage': usage_map}

    path = write_usage_file(usage_map, tmp_path / 'usage.yml')
    assert yaml.safe_load(path.read_text())['resource_usage'] == usage_map
