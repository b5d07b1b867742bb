"""
Main CDK Stack for the messenger data layer.
"""

from aws_cdk import (
    Stack,
    Tags,
    CfnOutput,
)
from constructs import Construct

from infrastructure.constructs.data_layer import DataLayerConstruct
from infrastructure.constructs.api_layer import ApiLayerConstruct
from infrastructure.config.settings import Settings


class MessengerStack(Stack):
    """Main stack wiring tables and the API together."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        settings: Settings,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Global tags for cost/accounting.
        Tags.of(self).add("Project", "messenger-data-layer")
        Tags.of(self).add("Environment", settings.environment)
        Tags.of(self).add("ManagedBy", "cdk")

        # 1) Data layer.
        data_construct = DataLayerConstruct(
            self,
            "DataLayer",
            environment=settings.environment,
        )

        # 2) API layer (single Lambda).
        api_construct = ApiLayerConstruct(
            self,
            "ApiLayer",
            environment=settings.environment,
            customers_table_name=data_construct.customers_table.table_name,
            companies_table_name=data_construct.companies_table.table_name,
            lookups_table_name=data_construct.lookups_table.table_name,
            app_api_url=settings.app_api_url,
            collaborator_mode=settings.collaborator_mode,
            session_cooldown_ms=settings.session_cooldown_ms,
            lambda_memory_mb=settings.lambda_memory_mb,
            lambda_timeout_seconds=settings.lambda_timeout_seconds,
        )

        # Permissions for the API Lambda.
        data_construct.customers_table.grant_read_write_data(api_construct.main_lambda)
        data_construct.companies_table.grant_read_write_data(api_construct.main_lambda)
        data_construct.lookups_table.grant_read_write_data(api_construct.main_lambda)

        # Outputs to quickly find resources.
        CfnOutput(self, "ApiEndpoint", value=api_construct.api.api_endpoint)
        CfnOutput(self, "CustomersTable", value=data_construct.customers_table.table_name)
        CfnOutput(self, "CompaniesTable", value=data_construct.companies_table.table_name)
        CfnOutput(self, "LookupsTable", value=data_construct.lookups_table.table_name)
