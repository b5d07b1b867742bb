"""
Messenger Service.

Implements the widget connect flow: resolve or create the customer, link the
company the page reports, and capture browser location.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from models.customer import Customer
from models.messenger import ConnectRequest, ConnectResult, location_from_browser
from services.company_service import CompanyService
from services.customer_service import CustomerService
from services.geolocation_service import GeolocationService
from services.session_service import SessionService
from utils.config import Settings
from utils.logging_config import get_logger

logger = get_logger(__name__)


class MessengerService:
    """Composes customer, company, session and geolocation services."""

    def __init__(
        self,
        customers: Optional[CustomerService] = None,
        companies: Optional[CompanyService] = None,
        sessions: Optional[SessionService] = None,
        geolocation: Optional[GeolocationService] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or Settings.from_environment()
        self.customers = customers or CustomerService(settings=settings)
        self.companies = companies or CompanyService(settings=settings)
        self.sessions = sessions or SessionService(settings=settings)
        self.geolocation = geolocation or GeolocationService.from_settings(settings)

    def connect(self, request: ConnectRequest) -> ConnectResult:
        customer = self.customers.get_customer(
            email=request.email,
            phone=request.phone,
            cached_customer_id=request.cached_customer_id,
        )

        doc: Dict[str, Any] = {"isUser": request.is_user}
        if request.email:
            doc["email"] = request.email
        if request.phone:
            doc["phone"] = request.phone

        if customer:
            customer = self.customers.update_messenger_customer(customer.id, doc, request.data)
        else:
            doc["integrationId"] = request.integration_id
            customer = self.customers.create_messenger_customer(doc, request.data)

        if request.company_data:
            customer = self.link_company(customer.id, request.company_data.to_document())

        if request.browser_info:
            geo = self.geolocation.get_location_info(request.browser_info.remote_address)
            customer = self.sessions.update_location(
                customer.id, location_from_browser(request.browser_info, geo)
            )

        logger.info(
            "Messenger connected",
            extra={"customer_id": customer.id, "integration_id": request.integration_id},
        )
        return ConnectResult(
            integration_id=request.integration_id,
            customer_id=customer.id,
            messenger_data=customer.messenger_data,
        )

    def link_company(self, customer_id: str, company_doc: Dict[str, Any]) -> Customer:
        """Get or create the company and add it to the customer."""
        company = self.companies.get_or_create_company(company_doc)
        return self.customers.add_company(customer_id, company.id)
