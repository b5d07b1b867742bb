"""Company get-or-create keyed by company name."""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from models.company import Company
from repositories.dynamodb_repo import DynamoDbRepository, LookupRepository
from services.activity_log_service import ActivityLogService
from utils.config import Settings
from utils.logging_config import get_logger
from utils.validators import ensure_present

logger = get_logger(__name__)

NAME_INDEX = "name-index"
NAME_LOOKUP = "company-name"


class CompanyService:
    """Service for company lookups and creation."""

    def __init__(
        self,
        repository: Optional[DynamoDbRepository] = None,
        activity_log: Optional[ActivityLogService] = None,
        settings: Optional[Settings] = None,
        lookups: Optional[LookupRepository] = None,
    ):
        settings = settings or Settings.from_environment()
        self.repository = repository or DynamoDbRepository(settings.companies_table)
        self.activity_log = activity_log or ActivityLogService.from_settings(settings)
        self.lookups = lookups or LookupRepository(settings.lookups_table)

    def get_company_by_name(self, name: str) -> Optional[Company]:
        item = None
        target = self.lookups.get(NAME_LOOKUP, name)
        if target:
            item = self.repository.get(target)
        if item is None:
            item = self.repository.find_one(NAME_INDEX, "name", name)
        return Company.model_validate(item) if item else None

    def create_company(self, doc: Dict[str, Any]) -> Company:
        """Persist a new company and notify the activity log."""
        fields = {k: v for k, v in doc.items() if k not in ("_id", "id") and v is not None}
        company = Company.model_validate({**fields, "_id": uuid.uuid4().hex})
        self.repository.put(company.to_document())
        if company.name:
            self.lookups.put(NAME_LOOKUP, company.name, company.id)

        logger.info("Company created", extra={"company_id": company.id, "name": company.name})
        try:
            self.activity_log.company_created(company.id)
        except Exception as exc:  # notification must never fail the create
            logger.warning(
                "Company activity log failed",
                extra={"company_id": company.id, "error": str(exc)},
            )
        return company

    def get_or_create_company(self, doc: Dict[str, Any]) -> Company:
        """
        Return the company with ``doc['name']``, creating it on a miss.

        Not atomic: two concurrent calls for a new name can both create.
        """
        ensure_present(doc.get("name"), "name")

        company = self.get_company_by_name(doc["name"])
        if company:
            return company
        return self.create_company(doc)
