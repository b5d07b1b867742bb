"""Customer document models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
)
from pydantic.alias_generators import to_camel

# Attributes pushed by the embedding page. Scalars or one nested mapping level
# of the same shape; bool is listed first so True never becomes 1.
CustomScalar = Union[StrictBool, StrictInt, StrictFloat, StrictStr]
CustomValue = Union[CustomScalar, Dict[str, Any]]
CustomData = Dict[str, CustomValue]


class DocumentModel(BaseModel):
    """Base for stored documents: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape persisted in DynamoDB."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class MessengerData(DocumentModel):
    """Widget session state kept on a messenger customer."""

    last_seen_at: Optional[datetime] = None
    is_active: bool = False
    session_count: int = Field(default=0, ge=0)
    custom_data: CustomData = Field(default_factory=dict)


class Location(DocumentModel):
    """Network/browser context captured from the widget."""

    remote_address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    hostname: Optional[str] = None
    language: Optional[str] = None
    user_agent: Optional[str] = None


class VisitorContactInfo(DocumentModel):
    """Alternate channels left by an anonymous visitor."""

    email: Optional[str] = None
    phone: Optional[str] = None


class Customer(DocumentModel):
    """A widget visitor or known user."""

    id: str = Field(alias="_id")
    integration_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    description: Optional[str] = None
    is_user: bool = False
    created_at: Optional[datetime] = None

    messenger_data: Optional[MessengerData] = None
    location: Optional[Location] = None
    visitor_contact_info: VisitorContactInfo = Field(default_factory=VisitorContactInfo)

    company_ids: List[str] = Field(default_factory=list)
    url_visits: Dict[str, int] = Field(default_factory=dict)
