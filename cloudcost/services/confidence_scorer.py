"""
Confidence scorer.
Deterministic, additive and explainable confidence for a scenario set.
"""
from typing import Mapping, Sequence

from cloudcost.domain.cost_models import (
    ALL_PROVIDERS,
    ConfidenceScore,
    CostResult,
    Provider,
    ScenarioName,
    UsageProfile,
)


MAX_CONFIDENCE = 0.95
CANONICAL_USAGE_FIELDS = ("monthly_users", "requests_per_user", "data_transfer_gb")
HEURISTIC_NOTE = "Heuristic pricing (not SKU-level)"


def _scenario_complete(results: Mapping[Provider, CostResult], providers: Sequence[Provider]) -> bool:
    return all(
        provider in results and results[provider].monthly_cost > 0
        for provider in providers
    )


class ConfidenceScorer:
    """Scores service, scenario and usage completeness; never reaches certainty."""

    def score(
        self,
        service_count: int,
        scenarios: Mapping[ScenarioName, Mapping[Provider, CostResult]],
        usage: UsageProfile,
        providers: Sequence[Provider] = ALL_PROVIDERS,
    ) -> ConfidenceScore:
        """
        Args:
            service_count: Number of deployable services priced
            scenarios: Scenario -> provider -> CostResult
            usage: Usage profile; only caller-provided fields count
            providers: Providers each scenario is expected to cover

        Returns:
            ConfidenceScore with score in [0, 0.95]
        """
        score = 0.0
        explanation = []

        if service_count >= 4:
            score += 0.25
            explanation.append("All required services identified")
        elif service_count >= 2:
            score += 0.15
            explanation.append("Core services identified")
        elif service_count >= 1:
            score += 0.05
            explanation.append("Minimal services identified")

        complete = sum(
            1 for results in scenarios.values() if providers and _scenario_complete(results, providers)
        )
        complete = min(complete, 3)
        if complete == 3:
            score += 0.45
            explanation.append("Multi-cloud comparison completed")
        elif complete >= 1:
            score += 0.15 * complete
            explanation.append("Partial cloud comparison")

        provided = [name for name in CANONICAL_USAGE_FIELDS if name in usage.provided_fields]
        if len(provided) == len(CANONICAL_USAGE_FIELDS):
            score += 0.20
            explanation.append("Usage data provided")
        elif provided:
            score += 0.10
            explanation.append("Partial usage inferred")
        else:
            explanation.append("Usage inferred (not user-provided)")

        explanation.append(HEURISTIC_NOTE)

        capped = min(score, MAX_CONFIDENCE)
        return ConfidenceScore(
            score=round(capped, 2),
            percentage=int(round(capped * 100)),
            explanation=tuple(explanation),
        )
