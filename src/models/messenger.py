"""Request/response payloads for the widget-facing operations."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from models.customer import CustomData, DocumentModel, Location, MessengerData


class BrowserInfo(DocumentModel):
    """Browser context sent on connect."""

    remote_address: Optional[str] = None
    hostname: Optional[str] = None
    language: Optional[str] = None
    user_agent: Optional[str] = None
    url: Optional[str] = None


class CompanyData(DocumentModel):
    """Company fields supplied by the embedding page."""

    name: str
    size: Optional[int] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    plan: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Company names are the dedup key, so blank ones are rejected."""
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("company name must be provided")
        return cleaned


class ConnectRequest(DocumentModel):
    """messengerConnect payload."""

    integration_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_user: bool = False
    cached_customer_id: Optional[str] = None
    data: CustomData = Field(default_factory=dict)
    company_data: Optional[CompanyData] = None
    browser_info: Optional[BrowserInfo] = None


class ConnectResult(DocumentModel):
    integration_id: Optional[str] = None
    customer_id: str
    messenger_data: Optional[MessengerData] = None


class CustomerRef(DocumentModel):
    """Payload naming a single customer."""

    customer_id: str


class SessionRequest(CustomerRef):
    """Heartbeat payload."""

    url: str = ""


class VisitorContactRequest(CustomerRef):
    """saveCustomerGetNotified payload."""

    type: str
    value: str


def location_from_browser(browser: BrowserInfo, geo: Optional[dict] = None) -> Location:
    """Merge browser info with a geolocation result into a Location record."""
    geo = geo or {}
    return Location(
        remote_address=browser.remote_address,
        hostname=browser.hostname,
        language=browser.language,
        user_agent=browser.user_agent,
        region=geo.get("region"),
        city=geo.get("city"),
        country=geo.get("country"),
    )
