"""Health check for the messenger API."""

import json
from datetime import datetime, timezone

from utils.config import Settings


def lambda_handler(event, context):
    """Report that the Lambda is up and which tables and collaborator mode it is wired to."""
    settings = Settings.from_environment()
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {
                "status": "ok",
                "service": "messenger-api",
                "environment": settings.environment,
                "collaborator_mode": settings.collaborator_mode.value,
                "tables": {
                    "customers": settings.customers_table,
                    "companies": settings.companies_table,
                    "lookups": settings.lookups_table,
                },
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ),
    }
