"""
Tests for the per-provider estimate pipeline and its fallback behavior.
"""

import json

import pytest

from cloudcost.domain.cost_models import CostProfile, EstimateState, EstimateType, Provider, SizingTier
from cloudcost.domain.errors import PolicyViolationError, PricingIntegrityError
from cloudcost.services.cost_estimator import CostEstimator, determine_sizing_tier


STATIC_SERVICES = ('object_storage', 'cdn', 'dns')


@pytest.fixture
def static_services(catalog):
    """Deployable services of a static site."""
    return [catalog.require(service_id) for service_id in STATIC_SERVICES]


@pytest.fixture
def engine_estimator(catalog, tables, templates, make_runner, scratch_dir):
    """Factory for an estimator backed by a fake engine binary."""
    def _make(binary: str) -> CostEstimator:
        runner = make_runner(binary=binary, api_key='test-key')
        return CostEstimator(catalog, tables, templates, runner=runner, scratch_dir=str(scratch_dir))
    return _make


@pytest.mark.parametrize('scale,tier', [
    ('poc', SizingTier.SMALL),
    ('SMB', SizingTier.MEDIUM),
    ('Enterprise', SizingTier.LARGE),
    ('proof-of-concept', SizingTier.SMALL),
    ('', SizingTier.MEDIUM),
    ('galactic', SizingTier.MEDIUM),
])
def test_scale_maps_to_sizing_tier(scale, tier):
    """Declared scale selects a sizing tier; anything else is MEDIUM."""
    assert determine_sizing_tier(scale) == tier


@pytest.mark.asyncio
async def test_missing_credentials_fall_back_to_heuristic(estimator, static_services, scratch_dir):
    """Without an engine key the estimate is heuristic and flagged as such."""
    estimate = await estimator.generate_cost_estimate(
        Provider.AWS, static_services, SizingTier.SMALL, CostProfile.COST_EFFECTIVE, 'static', {},
    )

    assert estimate.estimate_type == EstimateType.HEURISTIC
    assert estimate.is_mock
    assert estimate.estimate_source == 'heuristic'
    assert estimate.estimate_reason == 'INFRACOST_API_KEY not configured'
    assert estimate.total_monthly_cost == pytest.approx(16.0)
    assert estimate.state_trail == (
        EstimateState.REQUESTED,
        EstimateState.DESCRIPTOR_BUILT,
        EstimateState.PRICED_HEURISTIC,
        EstimateState.VALIDATED,
        EstimateState.RETURNED,
    )
    assert list(scratch_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_failing_engine_falls_back_to_heuristic(engine_estimator, fake_engine, static_services):
    """An engine that exits non-zero still yields a heuristic estimate."""
    estimator = engine_estimator(fake_engine('echo "auth failed" >&2\nexit 1'))
    estimate = await estimator.generate_cost_estimate(
        Provider.GCP, static_services, SizingTier.MEDIUM, CostProfile.COST_EFFECTIVE, 'STATIC_WEB_HOSTING', {},
    )

    assert estimate.estimate_type == EstimateType.HEURISTIC
    assert estimate.is_mock
    assert estimate.estimate_reason.startswith('exit code 1')
    assert estimate.total_monthly_cost > 0


@pytest.mark.asyncio
async def test_engine_output_is_used_when_available(engine_estimator, fake_engine, aws_breakdown, static_services,
                                                    scratch_dir, tmp_path):
    """A clean engine run produces an exact estimate from the engine's resources."""
    payload = tmp_path / 'payload.json'
    payload.write_text(json.dumps(aws_breakdown))
    seen = tmp_path / 'seen'
    seen.mkdir()
    # $3 is the --path argument
    estimator = engine_estimator(fake_engine(
        f'cp "$3/main.tf" "$3/infracost-usage.yml" "{seen}/"\ncat "{payload}"'
    ))
    usage = {'monthly_users': 1000, 'requests_per_user': 10, 'storage_gb': 25, 'data_transfer_gb': 80}

    estimate = await estimator.generate_cost_estimate(
        Provider.AWS, static_services, SizingTier.SMALL, CostProfile.COST_EFFECTIVE, 'static', usage,
    )

    assert estimate.estimate_type == EstimateType.EXACT
    assert not estimate.is_mock
    assert estimate.estimate_source == 'infracost'
    assert estimate.total_monthly_cost == pytest.approx(43.0)
    assert EstimateState.PRICED_EXACT in estimate.state_trail

    descriptor = (seen / 'main.tf').read_text()
    assert 'resource "aws_s3_bucket" "storage"' in descriptor
    assert 'aws_cloudfront_distribution.cdn' in (seen / 'infracost-usage.yml').read_text()
    assert list(scratch_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_unmappable_engine_output_falls_back(engine_estimator, json_engine, static_services):
    """Engine output with nothing mappable selects the heuristic path."""
    raw = {'projects': [{'breakdown': {'resources': [{'name': 'aws_kinesis_stream.x', 'monthlyCost': '9'}]}}]}
    estimator = engine_estimator(json_engine(raw))
    estimate = await estimator.generate_cost_estimate(
        Provider.AWS, static_services, SizingTier.SMALL, CostProfile.COST_EFFECTIVE, 'static', {},
    )

    assert estimate.estimate_type == EstimateType.HEURISTIC
    assert estimate.estimate_reason == 'no engine resources mapped to a service class'


@pytest.mark.asyncio
async def test_malformed_engine_breakdown_falls_back(engine_estimator, json_engine, static_services):
    """A breakdown that is not an object selects the heuristic path instead of raising."""
    raw = {'projects': [{'name': 'p', 'breakdown': ['not', 'a', 'mapping']}]}
    estimator = engine_estimator(json_engine(raw))
    estimate = await estimator.generate_cost_estimate(
        Provider.AWS, static_services, SizingTier.SMALL, CostProfile.COST_EFFECTIVE, 'static', {},
    )

    assert estimate.estimate_type == EstimateType.HEURISTIC
    assert estimate.total_monthly_cost == pytest.approx(16.0)


@pytest.mark.asyncio
async def test_engine_pricing_an_unrequested_service_is_fatal(engine_estimator, json_engine, static_services):
    """A priced service outside the deployable set is an integrity violation."""
    raw = {'projects': [{'breakdown': {'resources': [
        {'name': 'aws_s3_bucket.storage', 'monthlyCost': '3'},
        {'name': 'aws_lambda_function.app', 'monthlyCost': '7'},
    ]}}]}
    estimator = engine_estimator(json_engine(raw))

    with pytest.raises(PricingIntegrityError) as excinfo:
        await estimator.generate_cost_estimate(
            Provider.AWS, static_services, SizingTier.SMALL, CostProfile.COST_EFFECTIVE, 'static', {},
        )
    assert excinfo.value.service == 'compute_serverless'


@pytest.mark.asyncio
async def test_policy_violation_propagates(estimator, catalog):
    """Forbidden resources fail the estimate before any pricing."""
    services = [catalog.require('object_storage'), catalog.require('compute_vm')]
    with pytest.raises(PolicyViolationError) as excinfo:
        await estimator.generate_cost_estimate(
            Provider.AZURE, services, SizingTier.SMALL, CostProfile.COST_EFFECTIVE, 'STATIC_WEB_HOSTING', {},
        )
    assert excinfo.value.provider == 'azure'
