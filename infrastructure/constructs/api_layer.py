"""
API layer construct: shared Lambda + HTTP API routes.

A single Lambda keeps warm clients and the geolocation cache across routes.
Uses Docker bundling for dependencies (runs in CI/CD pipeline).
"""

from aws_cdk import (
    BundlingOptions,
    Duration,
    aws_lambda as _lambda,
    aws_apigatewayv2 as apigw,
    aws_apigatewayv2_integrations as integrations,
    aws_logs as logs,
)
from constructs import Construct

ROUTES = (
    (apigw.HttpMethod.GET, "/health"),
    (apigw.HttpMethod.POST, "/messenger/connect"),
    (apigw.HttpMethod.POST, "/messenger/session"),
    (apigw.HttpMethod.POST, "/messenger/activate"),
    (apigw.HttpMethod.POST, "/messenger/disconnect"),
    (apigw.HttpMethod.POST, "/messenger/notified"),
    (apigw.HttpMethod.POST, "/customers/{id}/companies"),
)


class ApiLayerConstruct(Construct):
    """Expose the messenger endpoints via HTTP API."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        customers_table_name: str,
        companies_table_name: str,
        lookups_table_name: str,
        app_api_url: str,
        collaborator_mode: str,
        session_cooldown_ms: int,
        lambda_memory_mb: int = 256,
        lambda_timeout_seconds: int = 10,
    ) -> None:
        super().__init__(scope, construct_id)

        # Bundle Lambda code with requests/pydantic/python-json-logger
        bundled_code = _lambda.Code.from_asset(
            "src",
            bundling=BundlingOptions(
                image=_lambda.Runtime.PYTHON_3_12.bundling_image,
                command=[
                    "bash", "-c",
                    "pip install pydantic python-json-logger requests -t /asset-output && "
                    "cp -r . /asset-output"
                ],
            ),
        )

        self.main_lambda = _lambda.Function(
            self,
            "ApiHandler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="handlers.main.lambda_handler",
            code=bundled_code,
            memory_size=lambda_memory_mb,
            timeout=Duration.seconds(lambda_timeout_seconds),
            architecture=_lambda.Architecture.X86_64,
            environment={
                "ENVIRONMENT": environment,
                "CUSTOMERS_TABLE": customers_table_name,
                "COMPANIES_TABLE": companies_table_name,
                "LOOKUPS_TABLE": lookups_table_name,
                "APP_API_URL": app_api_url,
                "COLLABORATOR_MODE": collaborator_mode,
                "SESSION_COOLDOWN_MS": str(session_cooldown_ms),
            },
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        # The widget is embedded on customer sites, so any origin may call.
        self.api = apigw.HttpApi(
            self,
            "HttpApi",
            api_name=f"messenger-api-{environment}",
            cors_preflight=apigw.CorsPreflightOptions(
                allow_origins=["*"],
                allow_methods=[apigw.CorsHttpMethod.GET, apigw.CorsHttpMethod.POST],
                allow_headers=["Content-Type"],
            ),
        )

        integration = integrations.HttpLambdaIntegration(
            "LambdaIntegration", self.main_lambda
        )

        for method, path in ROUTES:
            self.api.add_routes(
                path=path,
                methods=[method],
                integration=integration,
            )
