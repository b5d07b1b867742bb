"""
Widget-facing handlers.

POST /messenger/connect     messengerConnect
POST /messenger/session     heartbeat
POST /messenger/activate    mark customer active
POST /messenger/disconnect  mark customer inactive
POST /messenger/notified    saveCustomerGetNotified
"""

from __future__ import annotations

import json
import uuid
from typing import Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from models.messenger import ConnectRequest, CustomerRef, SessionRequest, VisitorContactRequest
from services.activity_log_service import drain_pending
from utils.error_handling import AppError, to_response
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy-loaded services to avoid import-time AWS clients
_messenger_service: Optional["MessengerService"] = None
_session_service: Optional["SessionService"] = None


def _get_messenger_service():
    """Lazy-load MessengerService."""
    global _messenger_service
    if _messenger_service is None:
        from services.messenger_service import MessengerService
        _messenger_service = MessengerService()
    return _messenger_service


def _get_session_service():
    """Lazy-load SessionService."""
    global _session_service
    if _session_service is None:
        from services.session_service import SessionService
        _session_service = SessionService()
    return _session_service


def _payload(event) -> Dict:
    body = event.get("body")
    if body:
        return json.loads(body)
    return {}


def _response(status: int, body: str) -> Dict:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": body,
    }


def run_operation(name: str, event, operation: Callable[[Dict], str]) -> Dict:
    """Execute an operation with the shared error mapping."""
    correlation_id = str(uuid.uuid4())
    try:
        return _run(name, event, operation, correlation_id)
    finally:
        drain_pending()


def _run(name: str, event, operation: Callable[[Dict], str], correlation_id: str) -> Dict:
    try:
        payload = _payload(event)
        body = operation(payload)
        logger.info(f"{name} handled", extra={"correlation_id": correlation_id})
        return _response(200, body)
    except (PydanticValidationError, json.JSONDecodeError) as exc:
        logger.warning(f"{name} rejected", extra={"correlation_id": correlation_id, "error": str(exc)})
        return _response(
            400,
            json.dumps(
                {
                    "message": "Invalid request",
                    "error": str(exc),
                    "correlation_id": correlation_id,
                }
            ),
        )
    except AppError as exc:
        logger.info(f"{name} failed", extra={"correlation_id": correlation_id, "error": str(exc)})
        return to_response(exc, correlation_id)
    except Exception:
        logger.exception(f"{name} crashed", extra={"correlation_id": correlation_id})
        return _response(
            500,
            json.dumps({"message": "Internal error", "correlation_id": correlation_id}),
        )


def connect_handler(event, context):
    """Handle POST /messenger/connect."""

    def operation(payload: Dict) -> str:
        request = ConnectRequest.model_validate(payload)
        result = _get_messenger_service().connect(request)
        return result.model_dump_json(by_alias=True, exclude_none=True)

    return run_operation("Messenger connect", event, operation)


def session_handler(event, context):
    """Handle POST /messenger/session (heartbeat)."""

    def operation(payload: Dict) -> str:
        request = SessionRequest.model_validate(payload)
        customer = _get_session_service().update_session(request.customer_id, request.url)
        return customer.model_dump_json(by_alias=True, exclude_none=True)

    return run_operation("Heartbeat", event, operation)


def activate_handler(event, context):
    """Handle POST /messenger/activate."""

    def operation(payload: Dict) -> str:
        request = CustomerRef.model_validate(payload)
        customer = _get_session_service().mark_active(request.customer_id)
        return customer.model_dump_json(by_alias=True, exclude_none=True)

    return run_operation("Activate", event, operation)


def disconnect_handler(event, context):
    """Handle POST /messenger/disconnect."""

    def operation(payload: Dict) -> str:
        request = CustomerRef.model_validate(payload)
        customer = _get_session_service().mark_inactive(request.customer_id)
        return customer.model_dump_json(by_alias=True, exclude_none=True)

    return run_operation("Disconnect", event, operation)


def notified_handler(event, context):
    """Handle POST /messenger/notified (saveCustomerGetNotified)."""

    def operation(payload: Dict) -> str:
        request = VisitorContactRequest.model_validate(payload)
        customer = _get_session_service().save_visitor_contact_info(
            request.customer_id, request.type, request.value
        )
        return customer.model_dump_json(by_alias=True, exclude_none=True)

    return run_operation("Save visitor contact", event, operation)
