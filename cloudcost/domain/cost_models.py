"""
Domain models for cost estimation.
Defines enums, usage profiles and the immutable cost result structures.
"""
from typing import List, Dict, Any, Optional, Tuple, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class Provider(str, Enum):
    """Cloud providers that can be priced."""
    AWS = "aws"
    GCP = "gcp"
    AZURE = "azure"


ALL_PROVIDERS: Tuple[Provider, ...] = (Provider.AWS, Provider.GCP, Provider.AZURE)


class SizingTier(str, Enum):
    """Discrete capacity class derived from declared scale."""
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"


class CostProfile(str, Enum):
    """Optimization stance; selects resource variant and cost multiplier."""
    COST_EFFECTIVE = "COST_EFFECTIVE"
    HIGH_PERFORMANCE = "HIGH_PERFORMANCE"


class CostMode(str, Enum):
    """Pricing strategy selected for a workload."""
    INFRASTRUCTURE = "INFRASTRUCTURE_COST"
    STORAGE_POLICY = "STORAGE_POLICY_COST"
    AI_CONSUMPTION = "AI_CONSUMPTION_COST"
    HYBRID = "HYBRID_COST"


class UsageTier(str, Enum):
    """Usage volume level of a scenario."""
    LOW = "low"
    EXPECTED = "expected"
    HIGH = "high"


class ScenarioName(str, Enum):
    """Keys of the CostScenarios mapping."""
    COST_EFFECTIVE = "cost_effective"
    STANDARD = "standard"
    HIGH_PERFORMANCE = "high_performance"


class EstimateType(str, Enum):
    """Provenance of a monthly cost figure."""
    EXACT = "exact"
    HEURISTIC = "heuristic"


class EstimateState(str, Enum):
    """Per-provider estimate lifecycle."""
    REQUESTED = "REQUESTED"
    DESCRIPTOR_BUILT = "DESCRIPTOR_BUILT"
    PRICED_EXACT = "PRICED_EXACT"
    PRICED_HEURISTIC = "PRICED_HEURISTIC"
    VALIDATED = "VALIDATED"
    RETURNED = "RETURNED"
    FAILED = "FAILED"


def format_usd(amount: float) -> str:
    """Format a dollar amount with two decimals."""
    return f"${amount:,.2f}"


@dataclass(frozen=True)
class ServiceClass:
    """Canonical service class from the catalog."""
    id: str
    category: str
    deployable: bool
    base_cost: float  # heuristic USD/month at MEDIUM tier
    performance_multiplier: float = 1.0  # extra factor under HIGH_PERFORMANCE
    display_name: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.id.replace("_", " ").title()


@dataclass(frozen=True)
class UsageRange:
    """A usage field expressed as min/expected/max."""
    min: float
    expected: float
    max: float

    @classmethod
    def from_value(cls, value: Any) -> "UsageRange":
        """
        Build a range from a scalar or a {min, expected, max} mapping.

        Missing bounds in a mapping are filled from the bounds that are present.

        Raises:
            ValueError: If the value is not numeric or a usable mapping, is
                negative, or its bounds are out of order
        """
        if isinstance(value, bool):
            raise ValueError(f"Usage value must be numeric, got {value!r}")
        if isinstance(value, (int, float)):
            return cls._checked(float(value), float(value), float(value))
        if isinstance(value, Mapping):
            present = {
                key: float(value[key])
                for key in ("min", "expected", "max")
                if isinstance(value.get(key), (int, float)) and not isinstance(value.get(key), bool)
            }
            if not present:
                raise ValueError(f"Usage range has no numeric bounds: {value!r}")
            expected = present.get("expected")
            if expected is None:
                if "min" in present and "max" in present:
                    expected = (present["min"] + present["max"]) / 2
                else:
                    expected = present.get("min", present.get("max"))
            return cls._checked(
                present.get("min", expected),
                expected,
                present.get("max", expected),
            )
        raise ValueError(f"Usage value must be a number or range, got {value!r}")

    @classmethod
    def _checked(cls, low: float, expected: float, high: float) -> "UsageRange":
        if low < 0:
            raise ValueError(f"Usage values cannot be negative, got min={low}")
        if not low <= expected <= high:
            raise ValueError(f"Usage range must satisfy min <= expected <= max, got {low}, {expected}, {high}")
        return cls(low, expected, high)

    def for_tier(self, tier: UsageTier) -> float:
        if tier == UsageTier.LOW:
            return self.min
        if tier == UsageTier.HIGH:
            return self.max
        return self.expected

    def to_dict(self) -> Dict[str, float]:
        return {"min": self.min, "expected": self.expected, "max": self.max}


@dataclass(frozen=True)
class UsageProfile:
    """
    Named usage fields, each a range.

    provided_fields records which fields came from the caller (intent or
    overrides) rather than from built-in defaults.
    """
    fields: Mapping[str, UsageRange]
    provided_fields: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], provided: bool = True) -> "UsageProfile":
        data = data or {}
        fields = {name: UsageRange.from_value(value) for name, value in data.items() if value is not None}
        return cls(
            fields=MappingProxyType(fields),
            provided_fields=tuple(fields) if provided else (),
        )

    def merged(self, other: "UsageProfile") -> "UsageProfile":
        """Return a new profile where fields of other take precedence."""
        fields = dict(self.fields)
        fields.update(other.fields)
        provided = list(self.provided_fields)
        provided.extend(name for name in other.provided_fields if name not in provided)
        return UsageProfile(fields=MappingProxyType(fields), provided_fields=tuple(provided))

    def resolve(self, tier: UsageTier) -> Dict[str, float]:
        """Scalar usage for one usage tier."""
        return {name: usage_range.for_tier(tier) for name, usage_range in self.fields.items()}

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def to_dict(self) -> Dict[str, Any]:
        return {name: usage_range.to_dict() for name, usage_range in self.fields.items()}


@dataclass(frozen=True)
class ArchitectureService:
    """A service selected by the upstream architecture resolver."""
    service_class: str
    deployable: bool = True


@dataclass(frozen=True)
class Architecture:
    """A resolved architecture: a pattern plus its service list."""
    pattern: str
    services: Tuple[ArchitectureService, ...]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Architecture":
        services = []
        for item in data.get("services") or []:
            if isinstance(item, str):
                services.append(ArchitectureService(item))
            else:
                services.append(ArchitectureService(
                    service_class=item["service_class"],
                    deployable=bool(item.get("deployable", True)),
                ))
        return cls(pattern=data.get("pattern") or "", services=tuple(services))

    @property
    def service_ids(self) -> List[str]:
        return [service.service_class for service in self.services]


@dataclass(frozen=True)
class Intent:
    """Caller intent: free-text description, declared scale and usage hints."""
    description: str = ""
    scale: str = ""
    usage: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class ResourceEntry:
    """One priced resource in a declarative descriptor."""
    resource_type: str
    name: str
    service_class: str
    resource_class: str  # catalog category, used for pattern policy
    variant: str  # "economical" | "premium"
    attributes: Mapping[str, Any]

    @property
    def address(self) -> str:
        return f"{self.resource_type}.{self.name}"


@dataclass(frozen=True)
class ResourceDescriptor:
    """Per-provider ordered resource list built from deployable services."""
    provider: Provider
    tier: SizingTier
    profile: CostProfile
    pattern: str
    entries: Tuple[ResourceEntry, ...]

    @property
    def addresses(self) -> List[str]:
        return [entry.address for entry in self.entries]

    @property
    def service_classes(self) -> List[str]:
        return [entry.service_class for entry in self.entries]


# resource address -> usage keys for that resource
ResourceUsageMap = Dict[str, Dict[str, Any]]


@dataclass(frozen=True)
class ServiceCost:
    """Cost attributed to one service class by a pricing path."""
    service_class: str
    monthly_cost: float
    resource_count: int = 1


@dataclass(frozen=True)
class CostBreakdown:
    """Aggregate cost of one pricing path, per service class."""
    total_monthly_cost: float
    service_costs: Tuple[ServiceCost, ...]
    dropped_resources: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderEstimate:
    """Aggregate infrastructure cost for one provider, with provenance."""
    provider: Provider
    tier: SizingTier
    profile: CostProfile
    total_monthly_cost: float
    service_costs: Tuple[ServiceCost, ...]
    estimate_type: EstimateType
    estimate_source: str
    estimate_reason: str
    run_id: str
    state_trail: Tuple[EstimateState, ...] = ()

    @property
    def is_mock(self) -> bool:
        return self.estimate_type == EstimateType.HEURISTIC


@dataclass(frozen=True)
class ServiceCostShare:
    """Share of an aggregate cost allocated to one service."""
    service_class: str
    cost: float
    percentage: float
    reason: str
    cloud_service: str = ""
    category: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_class": self.service_class,
            "cloud_service": self.cloud_service or self.service_class,
            "category": self.category,
            "cost": round(self.cost, 2),
            "percentage": round(self.percentage, 1),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class CostDriver:
    """A quantified usage driver and the cost it accounts for."""
    name: str
    value: str
    impact: str
    cost_contribution: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "impact": self.impact,
            "cost_contribution": round(self.cost_contribution, 2),
        }


@dataclass(frozen=True)
class CostBand:
    """Uncertainty band around a single monthly cost."""
    estimate: float
    low: float
    high: float
    range_percent: int
    confidence: str  # "high" | "medium" | "low"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimate": round(self.estimate, 2),
            "low": round(self.low, 2),
            "high": round(self.high, 2),
            "range_percent": self.range_percent,
            "confidence": self.confidence,
            "formatted": f"{format_usd(self.low)} - {format_usd(self.high)}/month",
        }


@dataclass(frozen=True)
class CostResult:
    """Monthly cost for one provider in one scenario."""
    provider: Provider
    monthly_cost: float
    services: Tuple[ServiceCostShare, ...]
    drivers: Tuple[CostDriver, ...]
    estimate_type: EstimateType
    estimate_source: str
    cost_profile: CostProfile
    sizing_tier: SizingTier
    usage_tier: UsageTier
    cost_mode: CostMode
    cost_band: Optional[CostBand] = None
    score: Optional[int] = None
    estimate_reason: str = ""
    state_trail: Tuple[EstimateState, ...] = ()

    @property
    def is_mock(self) -> bool:
        return self.estimate_type == EstimateType.HEURISTIC

    @property
    def service_classes(self) -> List[str]:
        return [share.service_class for share in self.services]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "provider": self.provider.value,
            "monthly_cost": round(self.monthly_cost, 2),
            "formatted_cost": format_usd(self.monthly_cost),
            "services": [share.to_dict() for share in self.services],
            "drivers": [driver.to_dict() for driver in self.drivers],
            "estimate_type": self.estimate_type.value,
            "estimate_source": self.estimate_source,
            "is_mock": self.is_mock,
            "cost_profile": self.cost_profile.value,
            "sizing_tier": self.sizing_tier.value,
            "usage_tier": self.usage_tier.value,
            "cost_mode": self.cost_mode.value,
            "estimate_reason": self.estimate_reason,
            "state_trail": [state.value for state in self.state_trail],
        }
        if self.cost_band is not None:
            result["cost_band"] = self.cost_band.to_dict()
        if self.score is not None:
            result["score"] = self.score
        return result


@dataclass(frozen=True)
class CostRange:
    """Minimum and maximum monthly cost across all scenario leaves."""
    min: float
    max: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": round(self.min, 2),
            "max": round(self.max, 2),
            "formatted": f"{format_usd(self.min)} - {format_usd(self.max)}/month",
        }


@dataclass(frozen=True)
class ConfidenceScore:
    """Deterministic, explainable confidence in an estimate."""
    score: float
    percentage: int
    explanation: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "percentage": self.percentage,
            "explanation": list(self.explanation),
        }


@dataclass(frozen=True)
class ProviderRanking:
    """Provider position within one scenario."""
    provider: Provider
    rank: int
    score: int
    cost_score: int
    performance_score: int
    monthly_cost: float
    recommended: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider.value,
            "rank": self.rank,
            "score": self.score,
            "cost_score": self.cost_score,
            "performance_score": self.performance_score,
            "monthly_cost": round(self.monthly_cost, 2),
            "formatted_cost": format_usd(self.monthly_cost),
            "recommended": self.recommended,
        }


@dataclass(frozen=True)
class CostScenarios:
    """Joined result of all usage tier x provider pipelines."""
    scenarios: Mapping[ScenarioName, Mapping[Provider, CostResult]]
    cost_range: CostRange
    recommended: CostResult
    recommended_scenario: ScenarioName
    confidence: ConfidenceScore
    cost_mode: CostMode
    pattern: str
    rankings: Mapping[ScenarioName, Tuple[ProviderRanking, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    cost_sensitivity: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    category_breakdown: Tuple[Mapping[str, Any], ...] = ()

    def all_results(self) -> List[CostResult]:
        return [
            result
            for by_provider in self.scenarios.values()
            for result in by_provider.values()
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pattern": self.pattern,
            "cost_mode": self.cost_mode.value,
            "scenarios": {
                scenario.value: {
                    provider.value: result.to_dict()
                    for provider, result in by_provider.items()
                }
                for scenario, by_provider in self.scenarios.items()
            },
            "cost_range": self.cost_range.to_dict(),
            "recommended": self.recommended.to_dict(),
            "recommended_scenario": self.recommended_scenario.value,
            "confidence": self.confidence.to_dict(),
            "rankings": {
                scenario.value: [ranking.to_dict() for ranking in rankings]
                for scenario, rankings in self.rankings.items()
            },
            "cost_sensitivity": dict(self.cost_sensitivity),
            "category_breakdown": [dict(row) for row in self.category_breakdown],
        }
