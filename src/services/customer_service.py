"""
Customer Service.

Identity resolution and lifecycle for messenger customers: find an existing
record from the hints the widget has (email, phone, cached id), create plain
or messenger customers, and fold well-known profile keys out of the custom
data the embedding page sends.

Documents passed in use the camelCase field names stored in DynamoDB.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from models.customer import CustomData, Customer
from repositories.dynamodb_repo import DynamoDbRepository, LookupRepository
from services.activity_log_service import ActivityLogService
from utils.config import Settings
from utils.logging_config import get_logger

logger = get_logger(__name__)

EMAIL_INDEX = "email-index"
PHONE_INDEX = "phone-index"
INDEXES = {"email": EMAIL_INDEX, "phone": PHONE_INDEX}

# Keys the page may use for fields that live on the customer itself.
KNOWN_FIELD_ALIASES = {
    "first_name": "firstName",
    "firstName": "firstName",
    "last_name": "lastName",
    "lastName": "lastName",
    "bio": "description",
    "description": "description",
}

# Never taken from caller documents.
RESERVED_FIELDS = {"_id", "id", "createdAt", "created_at", "cachedCustomerId"}

# GSI keys; DynamoDB rejects empty or null values for them.
INDEXED_FIELDS = ("email", "phone")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def extract_known_fields(custom_data: Optional[CustomData]) -> Tuple[Dict[str, Any], CustomData]:
    """
    Split custom data into customer fields and the remaining attributes.

    Returns ``(known, remaining)``; the input mapping is left untouched. When
    two aliases of one field are present the later one wins.
    """
    known: Dict[str, Any] = {}
    remaining: CustomData = {}
    for key, value in (custom_data or {}).items():
        field = KNOWN_FIELD_ALIASES.get(key)
        if field is None:
            remaining[key] = value
        else:
            known[field] = value if isinstance(value, str) or value is None else str(value)
    return known, remaining


def _clean_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {k: v for k, v in doc.items() if k not in RESERVED_FIELDS and v is not None}
    for field in INDEXED_FIELDS:
        if field in cleaned and not cleaned[field]:
            del cleaned[field]
    return cleaned


def _to_item(customer: Customer) -> Dict[str, Any]:
    item = customer.to_document()
    for field in INDEXED_FIELDS:
        if not item.get(field):
            item.pop(field, None)
    # companyIds is a string set so ADD can extend it; empty sets are invalid.
    company_ids = item.pop("companyIds", None)
    if company_ids:
        item["companyIds"] = set(company_ids)
    return item


class CustomerService:
    """Service for customer resolution and lifecycle."""

    def __init__(
        self,
        repository: Optional[DynamoDbRepository] = None,
        activity_log: Optional[ActivityLogService] = None,
        clock=utc_now,
        settings: Optional[Settings] = None,
        lookups: Optional[LookupRepository] = None,
    ):
        settings = settings or Settings.from_environment()
        self.repository = repository or DynamoDbRepository(settings.customers_table)
        self.activity_log = activity_log or ActivityLogService.from_settings(settings)
        self.lookups = lookups or LookupRepository(settings.lookups_table)
        self.clock = clock

    def get_customer(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        cached_customer_id: Optional[str] = None,
    ) -> Optional[Customer]:
        """
        Find a customer by the strongest hint available.

        Email beats phone beats cached id, and only that one lookup is made.
        Without any hint nothing is queried.
        """
        if email:
            item = self._find_by("email", email)
        elif phone:
            item = self._find_by("phone", phone)
        elif cached_customer_id:
            item = self.repository.get(cached_customer_id)
        else:
            return None

        return Customer.model_validate(item) if item else None

    def create_customer(self, doc: Dict[str, Any]) -> Customer:
        """Persist a new customer with a fresh id and creation time."""
        customer = Customer.model_validate(
            {**_clean_doc(doc), "_id": uuid.uuid4().hex, "createdAt": self.clock()}
        )
        self.repository.put(_to_item(customer))
        self._remember(customer.id, customer.to_document())

        logger.info(
            "Customer created",
            extra={"customer_id": customer.id, "is_user": customer.is_user},
        )
        try:
            self.activity_log.customer_created(customer.id)
        except Exception as exc:  # notification must never fail the create
            logger.warning(
                "Customer activity log failed",
                extra={"customer_id": customer.id, "error": str(exc)},
            )
        return customer

    def create_messenger_customer(
        self, doc: Dict[str, Any], custom_data: Optional[CustomData] = None
    ) -> Customer:
        """Create a customer arriving through the widget, starting its first session."""
        known, remaining = extract_known_fields(custom_data)
        messenger_data = {
            "lastSeenAt": self.clock(),
            "isActive": True,
            "sessionCount": 1,
            "customData": remaining,
        }
        return self.create_customer({**doc, **known, "messengerData": messenger_data})

    def update_messenger_customer(
        self, customer_id: str, doc: Dict[str, Any], custom_data: Optional[CustomData] = None
    ) -> Customer:
        """Replace custom data and merge profile fields onto an existing customer."""
        known, remaining = extract_known_fields(custom_data)
        fields = _clean_doc({**doc, **known})
        fields["messengerData.customData"] = remaining

        item = self.repository.update(
            customer_id, set_fields=fields, ensure_maps=("messengerData",)
        )
        self._remember(customer_id, fields)
        logger.info("Messenger customer updated", extra={"customer_id": customer_id})
        return Customer.model_validate(item)

    def get_or_create_customer(self, doc: Dict[str, Any]) -> Customer:
        """Return the customer matching the doc's hints, creating one on a miss."""
        customer = self.get_customer(
            email=doc.get("email"),
            phone=doc.get("phone"),
            cached_customer_id=doc.get("cachedCustomerId"),
        )
        if customer:
            return customer
        return self.create_customer(doc)

    def add_company(self, customer_id: str, company_id: str) -> Customer:
        """Link a company; adding the same id twice is a no-op."""
        item = self.repository.update(customer_id, add_to_set={"companyIds": [company_id]})
        return Customer.model_validate(item)

    def _find_by(self, field: str, value: str) -> Optional[Dict[str, Any]]:
        target = self.lookups.get(f"customer-{field}", value)
        if target:
            item = self.repository.get(target)
            if item and item.get(field) == value:
                return item
        # No pointer, or it names a customer whose contact has since changed.
        return self.repository.find_one(INDEXES[field], field, value)

    def _remember(self, customer_id: str, fields: Dict[str, Any]) -> None:
        for field in INDEXED_FIELDS:
            if fields.get(field):
                self.lookups.put(f"customer-{field}", fields[field], customer_id)
