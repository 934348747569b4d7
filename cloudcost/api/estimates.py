"""
API routes for multi-cloud scenario cost estimates.
"""
from typing import Any, Dict, List, Optional
import asyncio
import logging
import time

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from cloudcost.core.config import config
from cloudcost.domain.cost_models import Architecture, ArchitectureService, Intent, Provider
from cloudcost.domain.errors import (
    CostEstimationError,
    InputError,
    PolicyViolationError,
    PricingIntegrityError,
)


logger = logging.getLogger(__name__)
router = APIRouter()


class ArchitectureServiceModel(BaseModel):
    """A service selected for the architecture."""
    service_class: str = Field(..., description="Canonical service class id, e.g. relational_database")
    deployable: bool = Field(default=True, description="False for logical, non-billable services")


class ArchitectureModel(BaseModel):
    """Resolved architecture."""
    pattern: str = Field(..., description="Architecture pattern id or alias")
    services: List[ArchitectureServiceModel] = Field(..., description="Services bound to the pattern")


class IntentModel(BaseModel):
    """Caller intent."""
    description: str = Field(default="", description="Free-text project description")
    scale: str = Field(default="", description="Declared scale: poc, smb, enterprise, ...")
    usage: Optional[Dict[str, Any]] = Field(None, description="Usage hints shaped like a usage profile")


class ScenarioEstimateRequest(BaseModel):
    """Request model for scenario cost estimation."""
    architecture: ArchitectureModel
    intent: IntentModel = Field(default_factory=IntentModel)
    usage_overrides: Optional[Dict[str, Any]] = Field(None, description="Usage overrides (scalar or min/expected/max)")
    providers: Optional[List[Provider]] = Field(None, description="Providers to price (default: all)")


def _error_detail(error: CostEstimationError) -> Dict[str, Any]:
    detail = {"error": type(error).__name__, "message": str(error)}
    detail.update(error.context())
    return detail


@router.post("/api/cost/scenarios")
async def estimate_cost_scenarios(request: Request, body: ScenarioEstimateRequest) -> Dict[str, Any]:
    """
    Estimate low/expected/high usage scenarios across providers.

    Returns:
        CostScenarios as JSON

    Raises:
        HTTPException: 400 for input and policy errors, 500 for integrity
                       violations, 504 when the request deadline passes
    """
    architecture = Architecture(
        pattern=body.architecture.pattern,
        services=tuple(
            ArchitectureService(service.service_class, service.deployable)
            for service in body.architecture.services
        ),
    )
    intent = Intent(
        description=body.intent.description,
        scale=body.intent.scale,
        usage=body.intent.usage,
    )
    aggregator = request.app.state.aggregator
    timeout = config.ESTIMATE_DEADLINE_SECONDS

    try:
        scenarios = await asyncio.wait_for(
            aggregator.build(
                architecture,
                intent,
                usage_overrides=body.usage_overrides,
                providers=body.providers,
                deadline=time.monotonic() + timeout,
            ),
            timeout=timeout,
        )
    except (InputError, PolicyViolationError) as error:
        logger.warning("Rejected estimate request: %s", error)
        raise HTTPException(status_code=400, detail=_error_detail(error)) from error
    except PricingIntegrityError as error:
        logger.error("Pricing integrity violation: %s %s", error, error.context())
        raise HTTPException(status_code=500, detail=_error_detail(error)) from error
    except asyncio.TimeoutError as error:
        logger.error("Estimate exceeded %.0fs deadline", timeout)
        raise HTTPException(status_code=504, detail="Estimate deadline exceeded") from error

    return {
        "status": "ok",
        "estimate": scenarios.to_dict(),
    }
