"""
Tests for the scenario estimate HTTP API.
Expected input and policy failures must come back as 400, never 500.
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.testclient import TestClient

from cloudcost.core.config import config
from cloudcost.domain.errors import PricingIntegrityError
from cloudcost.main import app


@pytest.fixture
def client(aggregator):
    """Test client wired to the heuristic-only aggregator."""
    original = app.state.aggregator
    app.state.aggregator = aggregator
    yield TestClient(app)
    app.state.aggregator = original


@pytest.fixture
def static_request():
    """Static site request with one logical service."""
    return {
        'architecture': {
            'pattern': 'static-hosting',
            'services': [
                {'service_class': 'object_storage'},
                {'service_class': 'cdn'},
                {'service_class': 'dns'},
                {'service_class': 'waf', 'deployable': False},
            ],
        },
        'intent': {'description': 'Company website', 'scale': 'smb'},
        'usage_overrides': {'monthly_users': {'min': 500, 'expected': 2000, 'max': 8000}},
    }


def test_health_reports_engine_availability(client):
    """Health check reports the pricing engine as unavailable without a key."""
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json() == {'status': 'ok', 'pricing_engine': 'unavailable'}


def test_scenarios_returns_200(client, static_request):
    """A valid request returns all scenarios with a recommendation."""
    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 200

    estimate = response.json()['estimate']
    assert set(estimate['scenarios']) == {'cost_effective', 'standard', 'high_performance'}
    assert set(estimate['scenarios']['standard']) == {'aws', 'gcp', 'azure'}
    assert estimate['pattern'] == 'STATIC_WEB_HOSTING'
    assert estimate['recommended']['is_mock'] is True
    assert estimate['recommended']['formatted_cost'].startswith('$')
    assert estimate['cost_range']['min'] <= estimate['cost_range']['max']
    assert 'Heuristic pricing (not SKU-level)' in estimate['confidence']['explanation']
    assert 'waf' not in response.text


def test_provider_subset(client, static_request):
    """Requested providers limit the scenario columns."""
    static_request['providers'] = ['aws']
    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 200
    assert list(response.json()['estimate']['scenarios']['standard']) == ['aws']


def test_unknown_provider_is_422(client, static_request):
    """Providers outside aws/gcp/azure fail request validation."""
    static_request['providers'] = ['oracle']
    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 422


def test_policy_violation_is_400(client, static_request):
    """A forbidden service is reported with its pattern and service."""
    static_request['architecture']['services'].append({'service_class': 'compute_vm'})
    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 400

    detail = response.json()['detail']
    assert detail['error'] == 'PolicyViolationError'
    assert detail['pattern'] == 'STATIC_WEB_HOSTING'
    assert detail['service'] == 'compute_vm'


def test_unknown_pattern_is_400(client, static_request):
    """Unknown patterns are input errors."""
    static_request['architecture']['pattern'] = 'MAINFRAME'
    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 400
    assert response.json()['detail']['error'] == 'UnknownPatternError'


def test_no_deployable_services_is_400(client, static_request):
    """An architecture with only logical services is an input error."""
    static_request['architecture']['services'] = [{'service_class': 'waf', 'deployable': False}]
    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 400
    assert response.json()['detail']['error'] == 'EmptyDeployableSetError'


def test_invalid_usage_is_400(client, static_request):
    """Non-numeric usage overrides are input errors."""
    static_request['usage_overrides'] = {'storage_gb': 'plenty'}
    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 400
    assert response.json()['detail']['error'] == 'InputError'


def test_integrity_violation_is_500(client, static_request):
    """An integrity violation is a server error carrying its context."""
    broken = Mock()
    broken.build = AsyncMock(side_effect=PricingIntegrityError('waf priced', service='waf', provider='aws'))
    app.state.aggregator = broken

    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 500
    assert response.json()['detail']['service'] == 'waf'


def test_deadline_is_504(client, static_request, monkeypatch):
    """Requests exceeding the estimate deadline return 504."""
    async def slow_build(*args, **kwargs):
        await asyncio.sleep(5)

    slow = Mock()
    slow.build = slow_build
    app.state.aggregator = slow
    monkeypatch.setattr(config, 'ESTIMATE_DEADLINE_SECONDS', 0.1)

    response = client.post('/api/cost/scenarios', json=static_request)
    assert response.status_code == 504
