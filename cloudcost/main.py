"""
Main FastAPI application bootstrap.
Configures logging, builds the estimate pipeline and includes routers.
"""
import logging

from fastapi import FastAPI

from cloudcost.core.config import config
from cloudcost.api.estimates import router as estimates_router
from cloudcost.services.scenario_aggregator import build_scenario_aggregator


logger = logging.getLogger(__name__)

# Validate configuration on startup
try:
    config.validate()
except ValueError as error:
    # Fail fast with a clear, non-secret-bearing message
    raise RuntimeError(f"Configuration error: {error}") from error

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Log a safe summary of engine configuration (no secrets)
logger.info(
    "Pricing engine %s (credentials %s, timeout %.0fs)",
    config.INFRACOST_BINARY,
    "configured" if config.INFRACOST_API_KEY else "MISSING, heuristic pricing only",
    config.INFRACOST_TIMEOUT_SECONDS,
)


app = FastAPI(
    title="Cloud Cost Scenarios",
    description="Multi-cloud monthly cost estimation with low/expected/high usage scenarios",
)

app.state.aggregator = build_scenario_aggregator()

app.include_router(estimates_router)


@app.get("/health")
async def health() -> dict:
    """
    Health check endpoint.

    Returns:
        Status and whether the authoritative engine can be used
    """
    runner = app.state.aggregator.estimator.runner
    return {
        "status": "ok",
        "pricing_engine": "unavailable" if runner.unavailable_reason() else "available",
    }
