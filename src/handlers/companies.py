"""Handler for POST /customers/{id}/companies."""

import json
from typing import Optional

from models.messenger import CompanyData
from utils.logging_config import get_logger
from .messenger import run_operation

logger = get_logger(__name__)

# Lazy-loaded service to avoid import-time AWS clients
_messenger_service: Optional["MessengerService"] = None


def _get_messenger_service():
    """Lazy-load MessengerService."""
    global _messenger_service
    if _messenger_service is None:
        from services.messenger_service import MessengerService
        _messenger_service = MessengerService()
    return _messenger_service


def _customer_id(event) -> Optional[str]:
    path_params = event.get("pathParameters") or {}
    if path_params.get("id"):
        return path_params["id"]
    # Router calls arrive without path parameters: /customers/{id}/companies
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    parts = [p for p in path.split("/") if p]
    if len(parts) == 3 and parts[0] == "customers" and parts[2] == "companies":
        return parts[1]
    return None


def lambda_handler(event, context):
    """Get or create the posted company and link it to the customer."""
    customer_id = _customer_id(event)
    if not customer_id:
        return {
            "statusCode": 400,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"message": "customer id is required"}),
        }

    def operation(payload):
        company = CompanyData.model_validate(payload)
        customer = _get_messenger_service().link_company(customer_id, company.to_document())
        logger.info("Company linked", extra={"customer_id": customer_id, "name": company.name})
        return customer.model_dump_json(by_alias=True, exclude_none=True)

    return run_operation("Link company", event, operation)
