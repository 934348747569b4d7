"""
Shared pytest fixtures for cloudcost tests.
"""

import sys
import os
import copy
import json
import tempfile
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# Set minimal environment variables for testing
os.environ.setdefault('INFRACOST_API_KEY', '')
os.environ.setdefault('COST_SCRATCH_DIR', os.path.join(tempfile.gettempdir(), 'cloudcost-tests'))
os.environ.setdefault('LOG_LEVEL', 'WARNING')

import pytest

from cloudcost.catalog.pricing_tables import default_pricing_tables
from cloudcost.catalog.resource_templates import default_resource_templates
from cloudcost.catalog.service_catalog import default_service_catalog
from cloudcost.domain.cost_models import Architecture
from cloudcost.pricing.infracost_runner import InfracostRunner
from cloudcost.resilience.circuit_breaker import CircuitBreaker
from cloudcost.services.cost_estimator import CostEstimator
from cloudcost.services.scenario_aggregator import ScenarioAggregator


_AWS_BREAKDOWN = {
    'version': '0.2',
    'currency': 'USD',
    'totalMonthlyCost': '48.00',
    'projects': [{
        'name': 'scratch',
        'breakdown': {
            'totalMonthlyCost': '48.00',
            'resources': [
                {'name': 'aws_s3_bucket.storage', 'resourceType': 'aws_s3_bucket', 'monthlyCost': '12.5'},
                {'name': 'aws_cloudfront_distribution.cdn', 'resourceType': 'aws_cloudfront_distribution',
                 'monthlyCost': '30'},
                {'name': 'aws_route53_zone.zone', 'resourceType': 'aws_route53_zone', 'monthlyCost': '0.5'},
                {'name': 'aws_kinesis_stream.events', 'resourceType': 'aws_kinesis_stream', 'monthlyCost': '5'},
            ],
        },
    }],
}


@pytest.fixture
def aws_breakdown():
    """Engine JSON for a static site on AWS, with one unmapped resource."""
    return copy.deepcopy(_AWS_BREAKDOWN)


@pytest.fixture(scope='session')
def catalog():
    """Built-in service catalog."""
    return default_service_catalog()


@pytest.fixture(scope='session')
def tables(catalog):
    """Built-in pricing tables."""
    return default_pricing_tables(catalog)


@pytest.fixture(scope='session')
def templates(catalog):
    """Built-in resource template registry."""
    return default_resource_templates(catalog)


@pytest.fixture
def scratch_dir(tmp_path):
    """Isolated scratch root for estimate runs."""
    path = tmp_path / 'scratch'
    path.mkdir()
    return path


@pytest.fixture
def fake_engine(tmp_path):
    """Factory writing an executable shell script that stands in for the engine CLI."""
    def _make(body: str, name: str = 'infracost') -> str:
        script = tmp_path / name
        script.write_text('#!/bin/sh\n' + body + '\n')
        script.chmod(0o755)
        return str(script)
    return _make


@pytest.fixture
def json_engine(fake_engine, tmp_path):
    """Engine script printing the given JSON document."""
    def _make(document: dict) -> str:
        payload = tmp_path / 'breakdown.json'
        payload.write_text(json.dumps(document))
        return fake_engine(f'cat "{payload}"')
    return _make


@pytest.fixture
def make_runner():
    """Runner factory with an isolated circuit breaker."""
    def _make(binary: str = 'infracost', api_key: str = '', timeout_seconds: float = 5,
              max_output_bytes: int = 10 * 1024 * 1024, failure_threshold: int = 3) -> InfracostRunner:
        return InfracostRunner(
            binary=binary,
            api_key=api_key,
            timeout_seconds=timeout_seconds,
            max_output_bytes=max_output_bytes,
            breaker=CircuitBreaker('infracost-test', failure_threshold=failure_threshold, open_duration=60),
        )
    return _make


@pytest.fixture
def heuristic_runner(make_runner):
    """Runner without credentials: always unavailable."""
    return make_runner(api_key='')


@pytest.fixture
def estimator(catalog, tables, templates, heuristic_runner, scratch_dir):
    """Estimator that always prices heuristically."""
    return CostEstimator(catalog, tables, templates, runner=heuristic_runner, scratch_dir=str(scratch_dir))


@pytest.fixture
def aggregator(catalog, tables, templates, estimator):
    """Scenario aggregator on the heuristic path."""
    return ScenarioAggregator(catalog, tables, templates, estimator=estimator)


@pytest.fixture
def static_architecture():
    """Static hosting architecture with one logical service."""
    return Architecture.from_dict({
        'pattern': 'static-hosting',
        'services': [
            {'service_class': 'object_storage', 'deployable': True},
            {'service_class': 'cdn', 'deployable': True},
            {'service_class': 'dns', 'deployable': True},
            {'service_class': 'waf', 'deployable': False},
        ],
    })


@pytest.fixture
def serverless_architecture():
    """Serverless web app with four deployable services and a logical event bus."""
    return Architecture.from_dict({
        'pattern': 'SERVERLESS_WEB_APP',
        'services': [
            {'service_class': 'compute_serverless', 'deployable': True},
            {'service_class': 'api_gateway', 'deployable': True},
            {'service_class': 'nosql_database', 'deployable': True},
            {'service_class': 'object_storage', 'deployable': True},
            {'service_class': 'event_bus', 'deployable': False},
        ],
    })
