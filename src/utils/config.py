"""
Runtime configuration for the messenger Lambdas.

Collaborator behaviour (live HTTP calls vs canned fixtures) is chosen here once
and passed to services at construction.
"""

from dataclasses import dataclass
from enum import Enum
import os


class Mode(str, Enum):
    """How outbound collaborators behave."""

    LIVE = "live"
    FIXTURE = "fixture"


@dataclass
class Settings:
    """Settings read by handlers when wiring services."""

    environment: str = "dev"
    aws_region: str = "eu-west-2"

    # DynamoDB tables
    customers_table: str = "messenger-customers"
    companies_table: str = "messenger-companies"
    lookups_table: str = "messenger-lookups"

    # Activity log API (GraphQL endpoint of the main app)
    app_api_url: str = ""
    collaborator_mode: Mode = Mode.LIVE

    # Heartbeats closer than this do not count as a new session.
    session_cooldown_ms: int = 6000

    # Geolocation cache
    geo_cache_ttl_seconds: int = 3600
    geo_cache_max_size: int = 500

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        mode = Mode(os.environ.get("COLLABORATOR_MODE", Mode.LIVE.value).lower())

        return cls(
            environment=env,
            aws_region=os.environ.get("AWS_REGION", "eu-west-2"),
            customers_table=os.environ.get("CUSTOMERS_TABLE", "messenger-customers"),
            companies_table=os.environ.get("COMPANIES_TABLE", "messenger-companies"),
            lookups_table=os.environ.get("LOOKUPS_TABLE", "messenger-lookups"),
            app_api_url=os.environ.get("APP_API_URL", ""),
            collaborator_mode=mode,
            session_cooldown_ms=int(os.environ.get("SESSION_COOLDOWN_MS", "6000")),
        )
