"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

One Lambda serves every widget route so warm clients and caches are shared.
"""

from typing import Callable, Dict, Pattern, Tuple
import json
import re

from . import companies, health_check, messenger

COMPANY_LINK_ROUTE = re.compile(r"POST /customers/[^/]+/companies")


def _response(status: int, body: Dict) -> Dict:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API.

    The event contains the HTTP method and path; we route it to the correct
    handler while keeping shared setup (logging, error handling) centralized.
    """
    method = event.get("requestContext", {}).get("http", {}).get("method", "")
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    route_key = f"{method.upper()} {path}"

    # Exact routes first, then patterns for path parameters.
    exact_routes: Dict[str, Callable] = {
        "GET /health": health_check.lambda_handler,
        "POST /messenger/connect": messenger.connect_handler,
        "POST /messenger/session": messenger.session_handler,
        "POST /messenger/activate": messenger.activate_handler,
        "POST /messenger/disconnect": messenger.disconnect_handler,
        "POST /messenger/notified": messenger.notified_handler,
    }
    pattern_routes: Tuple[Tuple[Pattern, Callable], ...] = (
        (COMPANY_LINK_ROUTE, companies.lambda_handler),
    )

    handler = exact_routes.get(route_key)
    if handler:
        return handler(event, context)

    for pattern, handler in pattern_routes:
        if pattern.fullmatch(route_key):
            return handler(event, context)

    return _response(404, {"message": "Route not found", "route": route_key})
