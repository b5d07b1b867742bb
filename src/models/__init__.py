"""Pydantic models for stored documents and API payloads."""

from models.company import Company  # noqa: F401
from models.customer import (  # noqa: F401
    CustomData,
    Customer,
    DocumentModel,
    Location,
    MessengerData,
    VisitorContactInfo,
)
from models.messenger import (  # noqa: F401
    BrowserInfo,
    CompanyData,
    ConnectRequest,
    ConnectResult,
    CustomerRef,
    SessionRequest,
    VisitorContactRequest,
)
