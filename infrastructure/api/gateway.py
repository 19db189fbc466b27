"""API Gateway provisioning from the rendered OpenAPI definition."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Tuple

from aws_cdk import (
    CfnOutput,
    CfnResource,
    Stack,
    aws_apigateway as apigw,
    aws_iam as iam,
    aws_logs as logs,
    aws_sam as sam,
)
from constructs import Construct

from infrastructure.api.template_renderer import invocation_target
from infrastructure.compute.types import FunctionSpec
from infrastructure.config.settings import DeliveryApiConfig
from infrastructure.core.iam import utils as iam_utils
from infrastructure.core.iam.db_access_roles import PolicyStatementSpec, RoleFactory, RoleSpec
from infrastructure.errors import ConfigurationError

API_ROLE_VARIABLE = "ApiRole"

ACCESS_LOG_FORMAT: Dict[str, str] = {
    "status": "$context.status",
    "profile": "$context.authorizer.claims.profile",
    "ip": "$context.identity.sourceIp",
    "requestId": "$context.requestId",
    "responseLength": "$context.responseLength",
    "httpMethod": "$context.httpMethod",
    "protocol": "$context.protocol",
    "resourcePath": "$context.resourcePath",
    "requestTime": "$context.requestTime",
    "username": "$context.authorizer.claims['cognito:username']",
}


@dataclass(frozen=True)
class ApiRouteBinding:
    """Logical route name bound to the function it invokes."""

    name: str
    function_arn: str
    invocation_target: str


def bind_routes(
    region: str, functions: Iterable[FunctionSpec], partition: str = "aws"
) -> Tuple[ApiRouteBinding, ...]:
    bindings = tuple(
        ApiRouteBinding(
            name=spec.name,
            function_arn=spec.function_arn,
            invocation_target=invocation_target(region, spec.function_arn, partition),
        )
        for spec in functions
    )
    names = [binding.name for binding in bindings]
    if len(names) != len(set(names)):
        raise ConfigurationError(f"Route names must be unique: {names}")
    return bindings


def template_variables(bindings: Iterable[ApiRouteBinding], api_role_arn: str) -> Dict[str, str]:
    variables = {binding.name: binding.invocation_target for binding in bindings}
    variables[API_ROLE_VARIABLE] = api_role_arn
    return variables


def gateway_role_spec(function_arns: Iterable[str]) -> RoleSpec:
    """Role spec letting API Gateway invoke exactly the given functions."""
    return RoleSpec(
        principal=iam_utils.APIGATEWAY_PRINCIPAL,
        managed_policies=(iam_utils.APIGATEWAY_LOGS_POLICY,),
        inline_policies={
            "LambdaInvoke": (
                PolicyStatementSpec(actions=("lambda:InvokeFunction",), resources=tuple(function_arns)),
            ),
        },
    )


def _retention(days: int) -> logs.RetentionDays:
    """Map integer days from config to CloudWatch Logs retention enum."""
    retention_map = {
        7: logs.RetentionDays.ONE_WEEK,
        14: logs.RetentionDays.TWO_WEEKS,
        30: logs.RetentionDays.ONE_MONTH,
        60: logs.RetentionDays.TWO_MONTHS,
        90: logs.RetentionDays.THREE_MONTHS,
        180: logs.RetentionDays.SIX_MONTHS,
        365: logs.RetentionDays.ONE_YEAR,
    }
    return retention_map.get(days, logs.RetentionDays.TWO_MONTHS)


class GatewayProvisioner:
    """Create the gateway execution role, access logs, the API and its URL output."""

    def __init__(self, scope: Construct, *, config: DeliveryApiConfig) -> None:
        self._scope = scope
        self._config = config
        self.role: iam.Role | None = None
        self.api: sam.CfnApi | None = None
        self.access_log_group: logs.LogGroup | None = None

    def create_execution_role(self, bindings: Iterable[ApiRouteBinding]) -> iam.Role:
        spec = gateway_role_spec(binding.function_arn for binding in bindings)
        self.role = RoleFactory(self._scope).materialize(
            "ApiRole",
            spec,
            description="Lets API Gateway invoke the delivery API functions",
        )
        return self.role

    def create_gateway(self, definition: Mapping[str, Any]) -> sam.CfnApi:
        stage_name = self._config.stage_name
        self.access_log_group = logs.LogGroup(
            self._scope,
            "DeliveryApiAccessLogs",
            retention=_retention(self._config.log_retention_days),
        )

        self.api = sam.CfnApi(
            self._scope,
            "DeliveryApi",
            stage_name=stage_name,
            definition_body=dict(definition),
            tracing_enabled=True,
            access_log_setting=sam.CfnApi.AccessLogSettingProperty(
                destination_arn=self.access_log_group.log_group_arn,
                format=json.dumps(ACCESS_LOG_FORMAT),
            ),
            # Wildcard CORS is for development only; restrict to the site domain in production
            cors=sam.CfnApi.CorsConfigurationProperty(
                allow_origin="'*'",
                allow_headers="'*'",
                allow_methods="'*'",
            ),
        )

        stack = Stack.of(self._scope)
        CfnOutput(
            self._scope,
            "ApiUrl",
            value=f"https://{self.api.ref}.execute-api.{stack.region}.{stack.url_suffix}/{stage_name}",
            description="Delivery API invocation URL",
        )
        return self.api


class AccountLoggingBinder:
    """Register the account-wide role API Gateway uses to push logs.

    The setting is per account and region and survives this stack; any gateway
    created here must wait for it, otherwise its access log configuration can
    be attempted before the permission exists.
    """

    def __init__(self, scope: Construct) -> None:
        self._scope = scope
        self.role = RoleFactory(scope).materialize(
            "AccountApiCwRole",
            RoleSpec(
                principal=iam_utils.APIGATEWAY_PRINCIPAL,
                managed_policies=(iam_utils.APIGATEWAY_LOGS_POLICY,),
            ),
            description="Account-level role for API Gateway CloudWatch logging",
        )
        self.account = apigw.CfnAccount(
            scope,
            "ApiGatewayAccountCwRole",
            cloud_watch_role_arn=self.role.role_arn,
        )

    def bind(self, gateway: CfnResource) -> apigw.CfnAccount:
        gateway.add_dependency(self.account)
        return self.account
