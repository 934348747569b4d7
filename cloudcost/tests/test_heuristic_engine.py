"""
Tests for the heuristic fallback pricing formula.
"""

import pytest
from hypothesis import given, strategies as st

from cloudcost.catalog.pricing_tables import default_pricing_tables
from cloudcost.catalog.service_catalog import default_service_catalog
from cloudcost.domain.cost_models import ALL_PROVIDERS, CostProfile, Provider, SizingTier
from cloudcost.services.heuristic_engine import HeuristicFallbackEngine


CATALOG = default_service_catalog()
ENGINE = HeuristicFallbackEngine(default_pricing_tables(CATALOG))
DEPLOYABLE = [CATALOG.require(service_id) for service_id in CATALOG.deployable_ids()]


def test_formula_for_small_static_site():
    """Base costs are scaled by tier on the reference provider."""
    services = [CATALOG.require('object_storage'), CATALOG.require('cdn'), CATALOG.require('dns')]
    breakdown = ENGINE.estimate(Provider.AWS, services, SizingTier.SMALL, CostProfile.COST_EFFECTIVE)

    assert breakdown.total_monthly_cost == pytest.approx(16.0)
    assert [cost.service_class for cost in breakdown.service_costs] == ['object_storage', 'cdn', 'dns']


def test_performance_multiplier_applies_only_to_high_performance():
    """Databases cost more under HIGH_PERFORMANCE by profile and performance factors."""
    database = CATALOG.require('relational_database')
    economical = ENGINE.service_cost(Provider.GCP, database, SizingTier.MEDIUM, CostProfile.COST_EFFECTIVE)
    premium = ENGINE.service_cost(Provider.GCP, database, SizingTier.MEDIUM, CostProfile.HIGH_PERFORMANCE)

    assert economical == pytest.approx(100 * 0.92)
    assert premium == pytest.approx(100 * 1.4 * 0.92 * 1.6)


def test_duplicate_services_are_priced_once():
    """A repeated service does not double its cost."""
    cdn = CATALOG.require('cdn')
    breakdown = ENGINE.estimate(Provider.AZURE, [cdn, cdn], SizingTier.LARGE, CostProfile.COST_EFFECTIVE)

    assert len(breakdown.service_costs) == 1
    assert breakdown.total_monthly_cost == pytest.approx(20 * 2.5 * 0.95)


@given(
    services=st.lists(st.sampled_from(DEPLOYABLE), min_size=1, max_size=8),
    provider=st.sampled_from(ALL_PROVIDERS),
    profile=st.sampled_from(list(CostProfile)),
)
def test_heuristic_is_positive_and_grows_with_tier(services, provider, profile):
    """Every non-empty service set gets a positive cost that rises with tier."""
    totals = [
        ENGINE.estimate(provider, services, tier, profile).total_monthly_cost
        for tier in (SizingTier.SMALL, SizingTier.MEDIUM, SizingTier.LARGE)
    ]
    assert totals[0] > 0
    assert totals[0] < totals[1] < totals[2]


@given(services=st.lists(st.sampled_from(DEPLOYABLE), min_size=1, max_size=8))
def test_heuristic_prices_only_the_given_services(services):
    """The breakdown covers exactly the distinct input services."""
    breakdown = ENGINE.estimate(Provider.AWS, services, SizingTier.MEDIUM, CostProfile.COST_EFFECTIVE)

    assert sorted(cost.service_class for cost in breakdown.service_costs) == sorted({s.id for s in services})
    assert breakdown.total_monthly_cost == pytest.approx(sum(c.monthly_cost for c in breakdown.service_costs))


@given(
    services=st.lists(st.sampled_from(DEPLOYABLE), min_size=1, max_size=8),
    provider=st.sampled_from(ALL_PROVIDERS),
    tier=st.sampled_from(list(SizingTier)),
)
def test_heuristic_is_deterministic_and_premium_costs_more(services, provider, tier):
    """Same inputs give the same cost; HIGH_PERFORMANCE never costs less than COST_EFFECTIVE."""
    economical = ENGINE.estimate(provider, services, tier, CostProfile.COST_EFFECTIVE)
    premium = ENGINE.estimate(provider, services, tier, CostProfile.HIGH_PERFORMANCE)

    assert ENGINE.estimate(provider, services, tier, CostProfile.COST_EFFECTIVE) == economical
    assert premium.total_monthly_cost >= economical.total_monthly_cost
