"""Delivery API stack: roles, functions, API, observability and database bootstrap."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from aws_cdk import Stack, aws_ec2 as ec2, aws_iam as iam, aws_sam as sam, aws_sns as sns
from constructs import Construct

from infrastructure.api import template_renderer
from infrastructure.api.gateway import (
    API_ROLE_VARIABLE,
    AccountLoggingBinder,
    ApiRouteBinding,
    GatewayProvisioner,
    bind_routes,
    template_variables,
)
from infrastructure.compute.function_factory import FunctionFactory
from infrastructure.compute.types import FunctionSpec, NetworkPlacement
from infrastructure.config.settings import DeliveryApiConfig
from infrastructure.core.iam.db_access_roles import RoleFactory
from infrastructure.database.db_initializer import DbInitializer, DbInitJob
from infrastructure.errors import ConfigurationError, TemplateVariableError
from infrastructure.monitoring.observability import ObservabilityWiring
from infrastructure.utils.logger import get_logger


@dataclass(frozen=True)
class ProvisioningContext:
    """Inputs shared by every component of one synthesis pass."""

    config: DeliveryApiConfig
    network: NetworkPlacement
    token_auth_role: iam.IRole
    password_auth_role: iam.IRole


class DeliveryApiStack(Stack):
    """Serverless delivery API wired to an existing database.

    Components are created in dependency order: roles, functions, rendered
    API definition, gateway, account logging binding, observability and the
    database initialization custom resource.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: DeliveryApiConfig,
        vpc: Optional[ec2.IVpc] = None,
        security_group: Optional[ec2.ISecurityGroup] = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.config = config
        self.logger = get_logger(__name__, stack=construct_id)

        # Roles must exist before functions can assume them
        roles = RoleFactory(self)
        self.context = ProvisioningContext(
            config=config,
            network=self._resolve_network(vpc, security_group),
            token_auth_role=roles.create_token_auth_role(config.db_user),
            password_auth_role=roles.create_password_auth_role(
                config.db_admin_secret_arn,
                config.db_user_secret_arn,
            ),
        )

        self.function_factory = FunctionFactory(self, config=config, network=self.context.network)
        self.functions: Dict[str, FunctionSpec] = {
            route.name: self.function_factory.build_route(route, self.context.token_auth_role)
            for route in config.routes
        }

        self.gateway = GatewayProvisioner(self, config=config)
        self.api_definition, self.route_bindings = self._render_api_definition()
        self.api: sam.CfnApi = self.gateway.create_gateway(self.api_definition)

        self.account_logging = AccountLoggingBinder(self)
        self.account_logging.bind(self.api)

        self.observability = ObservabilityWiring(self, alert_email=config.alert_email)
        self.observability.create_dashboard(
            self.functions.values(),
            api_name=str(self.api_definition.get("info", {}).get("title", "DeliveryApi")),
            stage_name=config.stage_name,
        )

        self.db_initializer = DbInitializer(self, functions=self.function_factory)
        self.db_init_job: DbInitJob = self.db_initializer.provision(
            script_path=config.db_init_script_path,
            function_name=config.populate_function_name,
            role=self.context.password_auth_role,
        )

    @property
    def alarm_topic(self) -> sns.Topic:
        return self.observability.alarm_topic

    def _resolve_network(
        self,
        vpc: Optional[ec2.IVpc],
        security_group: Optional[ec2.ISecurityGroup],
    ) -> NetworkPlacement:
        """Use the given network objects or look them up from configured ids."""
        if vpc is None:
            if not self.config.db_vpc_id:
                raise ConfigurationError("Either a VPC or dbVpcId must be provided")
            vpc = ec2.Vpc.from_lookup(self, "DbVpc", vpc_id=self.config.db_vpc_id)
        if security_group is None:
            if not self.config.db_security_group_id:
                raise ConfigurationError("Either a security group or dbSecurityGroupId must be provided")
            security_group = ec2.SecurityGroup.from_security_group_id(
                self, "DbSecurityGroup", self.config.db_security_group_id
            )
        return NetworkPlacement(vpc=vpc, security_group=security_group)

    def _render_api_definition(self) -> tuple[dict, tuple[ApiRouteBinding, ...]]:
        """Render the template against invocation targets and parse it.

        Only routes the template references are bound, so the gateway role can
        invoke exactly the functions the definition integrates with.
        """
        template_path = Path(self.config.api_template) if self.config.api_template else None
        template = template_renderer.load_template(template_path)
        referenced = template_renderer.referenced_variables(template)
        unknown = referenced - set(self.functions) - {API_ROLE_VARIABLE}
        if unknown:
            raise TemplateVariableError(unknown)

        bindings = tuple(
            binding
            for binding in bind_routes(self.region, self.functions.values(), self.partition)
            if binding.name in referenced
        )
        for name in sorted(set(self.functions) - {binding.name for binding in bindings}):
            self.logger.warning("Function %s is not referenced by the API template", name, extra={"function": name})

        api_role = self.gateway.create_execution_role(bindings)
        rendered = template_renderer.render(template, template_variables(bindings, api_role.role_arn))
        return template_renderer.parse(rendered), bindings
