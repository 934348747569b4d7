"""
Workload classifier.
Maps free-text intent plus the selected services to a cost mode.
"""
import re
from typing import Iterable, Pattern, Tuple

from cloudcost.domain.cost_models import CostMode


AI_KEYWORDS = ("ai", "ml", "llm", "token", "tokens", "openai", "chatgpt", "inference", "generation")
STORAGE_POLICY_KEYWORDS = ("backup", "archive", "cold", "vault", "dr", "disaster", "retention")
OPERATIONAL_KEYWORDS = ("fail", "failure", "outage", "downtime", "operational", "impact",
                        "blast radius", "mitigation")

INFRASTRUCTURE_SERVICES = frozenset({
    "compute_container",
    "compute_serverless",
    "compute_vm",
    "relational_database",
    "nosql_database",
    "cache",
    "object_storage",
    "load_balancer",
    "api_gateway",
})


def _keyword_pattern(keywords: Tuple[str, ...], inflected: bool = False) -> Pattern:
    # Words start on a boundary, so "ai" does not match "maintain"
    alternatives = "|".join(re.escape(keyword) for keyword in keywords)
    ending = r"\w*\b" if inflected else r"\b"
    return re.compile(rf"\b(?:{alternatives}){ending}", re.IGNORECASE)


_AI = _keyword_pattern(AI_KEYWORDS)
_STORAGE = _keyword_pattern(STORAGE_POLICY_KEYWORDS)
_OPERATIONAL = _keyword_pattern(OPERATIONAL_KEYWORDS, inflected=True)


def is_operational_analysis(intent_text: str) -> bool:
    """True when the intent asks about failure or outage impact, inflected forms included."""
    return bool(_OPERATIONAL.search(intent_text or ""))


def classify(intent_text: str, services: Iterable[str]) -> CostMode:
    """
    Classify a workload into a cost mode.

    Priority: AI keywords, storage-policy keywords, infrastructure-bearing
    services, operational-analysis keywords, then HYBRID.

    Args:
        intent_text: Free-text project description
        services: Service class ids selected for the architecture

    Returns:
        The CostMode for the workload
    """
    text = intent_text or ""
    if _AI.search(text):
        return CostMode.AI_CONSUMPTION
    if _STORAGE.search(text):
        return CostMode.STORAGE_POLICY
    if any(service in INFRASTRUCTURE_SERVICES for service in services):
        return CostMode.INFRASTRUCTURE
    if is_operational_analysis(text):
        # Operational analysis combines infrastructure and policy costs
        return CostMode.HYBRID
    return CostMode.HYBRID
