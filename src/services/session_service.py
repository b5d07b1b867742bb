"""
Session Service.

Tracks a messenger customer's presence from widget heartbeats. A heartbeat
arriving more than the cooldown after the previous one opens a new session:
the session count and the visit count for the current URL go up. Heartbeats
inside the cooldown only refresh ``lastSeenAt``.

The counting write is conditioned on ``lastSeenAt`` still holding the value
that was read, so two racing heartbeats cannot both count a session; the
loser re-reads and is then inside the cooldown.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from boto3.dynamodb.conditions import Attr

from models.customer import Customer, Location
from repositories.dynamodb_repo import ConditionFailed, DynamoDbRepository
from services.customer_service import utc_now
from utils.config import Settings
from utils.error_handling import NotFoundError
from utils.logging_config import get_logger

logger = get_logger(__name__)

MAX_SESSION_ATTEMPTS = 3

CONTACT_FIELDS = {
    "email": "visitorContactInfo.email",
    "phone": "visitorContactInfo.phone",
}


class SessionService:
    """Presence, session counters, location and visitor contact info."""

    def __init__(
        self,
        repository: Optional[DynamoDbRepository] = None,
        clock=utc_now,
        cooldown_ms: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or Settings.from_environment()
        self.repository = repository or DynamoDbRepository(settings.customers_table)
        self.clock = clock
        self.cooldown_ms = settings.session_cooldown_ms if cooldown_ms is None else cooldown_ms

    def mark_active(self, customer_id: str) -> Customer:
        item = self.repository.update(
            customer_id,
            set_fields={"messengerData.isActive": True},
            ensure_maps=("messengerData",),
        )
        return Customer.model_validate(item)

    def mark_inactive(self, customer_id: str) -> Customer:
        item = self.repository.update(
            customer_id,
            set_fields={
                "messengerData.isActive": False,
                "messengerData.lastSeenAt": self.clock().isoformat(),
            },
            ensure_maps=("messengerData",),
        )
        logger.info("Customer went inactive", extra={"customer_id": customer_id})
        return Customer.model_validate(item)

    def update_session(self, customer_id: str, url: str) -> Customer:
        """Record a heartbeat for ``url``; raises NotFoundError for unknown ids."""
        for attempt in range(1, MAX_SESSION_ATTEMPTS + 1):
            item = self.repository.get(customer_id)
            if item is None:
                raise NotFoundError(f"Customer {customer_id} not found")
            try:
                return Customer.model_validate(self._write_session(customer_id, item, url))
            except ConditionFailed:
                logger.info(
                    "Concurrent heartbeat won the session write; retrying",
                    extra={"customer_id": customer_id, "attempt": attempt},
                )

        # Still contended: keep presence fresh without counting.
        item = self.repository.update(
            customer_id,
            set_fields=self._presence_fields(self.clock()),
            ensure_maps=("messengerData",),
        )
        return Customer.model_validate(item)

    def update_location(self, customer_id: str, location: Union[Location, Dict[str, Any]]) -> Customer:
        """Replace the location record as a whole."""
        if not isinstance(location, Location):
            location = Location.model_validate(location)
        item = self.repository.update(
            customer_id, set_fields={"location": location.to_document()}
        )
        return Customer.model_validate(item)

    def save_visitor_contact_info(self, customer_id: str, type: str, value: str) -> Customer:
        """Store an email or phone left by a visitor; other types write nothing."""
        field = CONTACT_FIELDS.get(type)
        if field is None:
            logger.info(
                "Ignoring unknown visitor contact type",
                extra={"customer_id": customer_id, "type": type},
            )
            item = self.repository.get(customer_id)
            if item is None:
                raise NotFoundError(f"Customer {customer_id} not found")
            return Customer.model_validate(item)

        item = self.repository.update(
            customer_id,
            set_fields={field: value},
            ensure_maps=("visitorContactInfo",),
        )
        return Customer.model_validate(item)

    def _write_session(self, customer_id: str, item: Dict[str, Any], url: str) -> Dict[str, Any]:
        now = self.clock()
        previous_raw = (item.get("messengerData") or {}).get("lastSeenAt")
        fields = self._presence_fields(now)

        if not self._is_new_session(now, previous_raw):
            return self.repository.update(
                customer_id, set_fields=fields, ensure_maps=("messengerData",)
            )

        # DynamoDB map keys cannot be empty; a blank url still counts the session.
        if url:
            url_visits = dict(item.get("urlVisits") or {})
            url_visits[url] = url_visits.get(url, 0) + 1
            fields["urlVisits"] = url_visits

        if previous_raw is None:
            condition = Attr("messengerData.lastSeenAt").not_exists()
        else:
            condition = Attr("messengerData.lastSeenAt").eq(previous_raw)

        updated = self.repository.update(
            customer_id,
            set_fields=fields,
            increments={"messengerData.sessionCount": 1},
            condition=condition,
            ensure_maps=("messengerData",),
        )
        logger.info(
            "New messenger session",
            extra={"customer_id": customer_id, "url": url},
        )
        return updated

    def _is_new_session(self, now: datetime, previous_raw: Optional[str]) -> bool:
        if previous_raw is None:
            return True
        previous = _parse_timestamp(previous_raw)
        elapsed_ms = (now - previous).total_seconds() * 1000
        return elapsed_ms > self.cooldown_ms

    @staticmethod
    def _presence_fields(now: datetime) -> Dict[str, Any]:
        return {
            "messengerData.lastSeenAt": now.isoformat(),
            "messengerData.isActive": True,
        }


def _parse_timestamp(raw: str) -> datetime:
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
