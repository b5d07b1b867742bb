"""
Environment-specific configuration settings.

Cost-optimized defaults for development/testing.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Deployment settings with cost-optimized defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "eu-west-2"  # Default AWS region

    # Main app GraphQL endpoint receiving activity log mutations
    app_api_url: str = ""

    # live | fixture (fixture skips outbound HTTP, for test stages)
    collaborator_mode: str = "live"

    # Heartbeat cooldown before a new session is counted
    session_cooldown_ms: int = 6000

    # Lambda Configuration
    lambda_memory_mb: int = 256
    lambda_timeout_seconds: int = 10

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        app_api_url = os.environ.get("APP_API_URL", "")
        mode = os.environ.get("COLLABORATOR_MODE", "live").lower()

        # Production overrides
        if env == "prod":
            return cls(
                environment="prod",
                app_api_url=app_api_url,
                collaborator_mode="live",
                lambda_memory_mb=512,
                lambda_timeout_seconds=15,
            )

        return cls(environment=env, app_api_url=app_api_url, collaborator_mode=mode)
