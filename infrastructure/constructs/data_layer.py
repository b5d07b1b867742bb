"""
Data layer construct: DynamoDB tables for customers, companies and natural-key lookups.
"""

from aws_cdk import (
    RemovalPolicy,
    aws_dynamodb as dynamodb,
)
from constructs import Construct


def _string_attr(name: str) -> dynamodb.Attribute:
    return dynamodb.Attribute(name=name, type=dynamodb.AttributeType.STRING)


class DataLayerConstruct(Construct):
    """Provision document tables and the lookup indexes the services query."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
    ) -> None:
        super().__init__(scope, construct_id)

        removal_policy = RemovalPolicy.RETAIN if environment == "prod" else RemovalPolicy.DESTROY

        # Customers: resolved by email, then phone, then cached id.
        self.customers_table = dynamodb.Table(
            self,
            "Customers",
            partition_key=_string_attr("_id"),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=environment == "prod",
            removal_policy=removal_policy,
        )
        for index_name, attribute in (("email-index", "email"), ("phone-index", "phone")):
            self.customers_table.add_global_secondary_index(
                index_name=index_name,
                partition_key=_string_attr(attribute),
                projection_type=dynamodb.ProjectionType.KEYS_ONLY,
            )

        # Companies: get-or-create by name.
        self.companies_table = dynamodb.Table(
            self,
            "Companies",
            partition_key=_string_attr("_id"),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=environment == "prod",
            removal_policy=removal_policy,
        )
        self.companies_table.add_global_secondary_index(
            index_name="name-index",
            partition_key=_string_attr("name"),
            projection_type=dynamodb.ProjectionType.KEYS_ONLY,
        )

        # Natural key (email, phone, company name) to record id, read with
        # strongly consistent gets.
        self.lookups_table = dynamodb.Table(
            self,
            "Lookups",
            partition_key=_string_attr("_id"),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=environment == "prod",
            removal_policy=removal_policy,
        )
