"""
Configuration module for loading environment variables.
Runtime settings for the pricing engine, scratch space and logging.
"""
import os
import tempfile


# The authoritative engine is never given more than this many seconds
MAX_ENGINE_TIMEOUT_SECONDS = 30


class Config:
    """Application configuration loaded from environment variables."""

    # Authoritative pricing engine (Infracost CLI)
    INFRACOST_BINARY: str = os.getenv("INFRACOST_BINARY", "infracost")
    INFRACOST_API_KEY: str = os.getenv("INFRACOST_API_KEY", "")
    INFRACOST_TIMEOUT_SECONDS: float = min(
        float(os.getenv("INFRACOST_TIMEOUT_SECONDS", "30")),
        MAX_ENGINE_TIMEOUT_SECONDS,
    )
    INFRACOST_MAX_OUTPUT_BYTES: int = int(
        os.getenv("INFRACOST_MAX_OUTPUT_BYTES", str(10 * 1024 * 1024))
    )  # 10MB

    # Per-run scratch directories for descriptor + usage files
    COST_SCRATCH_DIR: str = os.getenv(
        "COST_SCRATCH_DIR",
        os.path.join(tempfile.gettempdir(), "cloudcost"),
    )

    # Engine circuit breaker
    ENGINE_FAILURE_THRESHOLD: int = int(os.getenv("ENGINE_FAILURE_THRESHOLD", "3"))
    ENGINE_OPEN_SECONDS: int = int(os.getenv("ENGINE_OPEN_SECONDS", "60"))

    # Overall deadline applied by the API to a full scenario build
    ESTIMATE_DEADLINE_SECONDS: float = float(os.getenv("ESTIMATE_DEADLINE_SECONDS", "90"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def validate(cls) -> None:
        """
        Validates that configuration values are usable.

        Raises:
            ValueError: If any configuration value is missing or invalid.
        """
        if not cls.INFRACOST_BINARY:
            raise ValueError("INFRACOST_BINARY is required")
        if cls.INFRACOST_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"INFRACOST_TIMEOUT_SECONDS must be positive (got: {cls.INFRACOST_TIMEOUT_SECONDS})"
            )
        if cls.INFRACOST_MAX_OUTPUT_BYTES <= 0:
            raise ValueError("INFRACOST_MAX_OUTPUT_BYTES must be positive")
        if cls.ENGINE_FAILURE_THRESHOLD < 1:
            raise ValueError("ENGINE_FAILURE_THRESHOLD must be at least 1")
        if cls.ENGINE_OPEN_SECONDS < 0:
            raise ValueError("ENGINE_OPEN_SECONDS must not be negative")
        if cls.ESTIMATE_DEADLINE_SECONDS <= 0:
            raise ValueError("ESTIMATE_DEADLINE_SECONDS must be positive")


config = Config()
