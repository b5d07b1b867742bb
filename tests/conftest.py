"""
Pytest configuration to ensure paths are set up correctly for tests.

This allows imports like `from handlers import main` to work when running
tests, simulating the Lambda environment where code is deployed from the
src/ directory. DynamoDB is provided by moto.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import boto3
import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add repository root AND src/ to sys.path if missing.

    The src/ directory is added to simulate Lambda's import behavior,
    where Code.from_asset("src") makes src/ the root of the package.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"

    # Add repo root first (for imports like infrastructure.*)
    root_str = str(repo_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    # Add src/ for Lambda-style imports (from handlers import ...)
    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_paths_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")

# Lambda environment variables used by handlers
os.environ.setdefault("CUSTOMERS_TABLE", "test-customers")
os.environ.setdefault("COMPANIES_TABLE", "test-companies")
os.environ.setdefault("LOOKUPS_TABLE", "test-lookups")
os.environ.setdefault("COLLABORATOR_MODE", "fixture")
os.environ.setdefault("APP_API_URL", "http://app-api.test/graphql")

# Create a default boto3 session so resources/clients do not error during import.
boto3.setup_default_session(region_name="eu-west-2")

CUSTOMERS_TABLE = "test-customers"
COMPANIES_TABLE = "test-companies"
LOOKUPS_TABLE = "test-lookups"


def _create_table(resource, name, indexed_attributes):
    """Mirror infrastructure/constructs/data_layer.py."""
    attributes = [{"AttributeName": "_id", "AttributeType": "S"}]
    indexes = []
    for index_name, attribute in indexed_attributes:
        attributes.append({"AttributeName": attribute, "AttributeType": "S"})
        indexes.append(
            {
                "IndexName": index_name,
                "KeySchema": [{"AttributeName": attribute, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "KEYS_ONLY"},
            }
        )
    extra = {"GlobalSecondaryIndexes": indexes} if indexes else {}
    return resource.create_table(
        TableName=name,
        KeySchema=[{"AttributeName": "_id", "KeyType": "HASH"}],
        AttributeDefinitions=attributes,
        BillingMode="PAY_PER_REQUEST",
        **extra,
    )


@pytest.fixture
def dynamodb():
    """Moto-backed DynamoDB with the customers, companies and lookups tables."""
    from moto import mock_aws

    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="eu-west-2")
        _create_table(
            resource,
            CUSTOMERS_TABLE,
            [("email-index", "email"), ("phone-index", "phone")],
        )
        _create_table(resource, COMPANIES_TABLE, [("name-index", "name")])
        _create_table(resource, LOOKUPS_TABLE, [])
        yield resource


@pytest.fixture
def customers_repo(dynamodb):
    from repositories.dynamodb_repo import DynamoDbRepository

    return DynamoDbRepository(CUSTOMERS_TABLE, resource=dynamodb)


@pytest.fixture
def companies_repo(dynamodb):
    from repositories.dynamodb_repo import DynamoDbRepository

    return DynamoDbRepository(COMPANIES_TABLE, resource=dynamodb)


@pytest.fixture
def lookups_repo(dynamodb):
    from repositories.dynamodb_repo import LookupRepository

    return LookupRepository(LOOKUPS_TABLE, resource=dynamodb)


class FakeClock:
    """Callable clock the tests move forward by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def activity_log():
    from services.activity_log_service import ActivityLogService
    from utils.config import Mode

    return ActivityLogService(mode=Mode.FIXTURE)


@pytest.fixture
def customer_service(customers_repo, lookups_repo, activity_log, clock):
    from services.customer_service import CustomerService

    return CustomerService(
        repository=customers_repo, activity_log=activity_log, clock=clock, lookups=lookups_repo
    )


@pytest.fixture
def company_service(companies_repo, lookups_repo, activity_log):
    from services.company_service import CompanyService

    return CompanyService(repository=companies_repo, activity_log=activity_log, lookups=lookups_repo)


@pytest.fixture
def session_service(customers_repo, clock):
    from services.session_service import SessionService

    return SessionService(repository=customers_repo, clock=clock, cooldown_ms=6000)
