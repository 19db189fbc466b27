"""Execution roles for the two database authentication modes.

Token auth (IAM database authentication through the RDS proxy) maps the role to
a database user at connect time, so the role only needs ``rds-db:connect`` on
that user. Password auth reads the admin and user credentials from Secrets
Manager, so the role only needs read access to exactly those two secrets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from aws_cdk import Stack, aws_iam as iam
from constructs import Construct

from infrastructure.core.iam import utils as iam_utils


@dataclass(frozen=True)
class PolicyStatementSpec:
    """Allow statement limited to explicit resources."""

    actions: Tuple[str, ...]
    resources: Tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "resources", tuple(iam_utils.assert_scoped_resources(self.resources)))

    def to_statement(self) -> iam.PolicyStatement:
        return iam.PolicyStatement(
            effect=iam.Effect.ALLOW,
            actions=list(self.actions),
            resources=list(self.resources),
        )


@dataclass(frozen=True)
class RoleSpec:
    """Trust principal, managed baseline policies and named inline statements."""

    principal: str
    managed_policies: Tuple[str, ...] = ()
    inline_policies: Mapping[str, Tuple[PolicyStatementSpec, ...]] = field(default_factory=dict)

    @property
    def statements(self) -> Tuple[PolicyStatementSpec, ...]:
        return tuple(stmt for group in self.inline_policies.values() for stmt in group)

    @property
    def resources(self) -> frozenset[str]:
        return frozenset(resource for stmt in self.statements for resource in stmt.resources)


def token_auth_role_spec(*, region: str, account: str, db_user: str, partition: str = "aws") -> RoleSpec:
    """Role spec for connecting through the proxy with IAM authentication."""
    return RoleSpec(
        principal=iam_utils.LAMBDA_PRINCIPAL,
        managed_policies=(iam_utils.VPC_EXECUTION_POLICY,),
        inline_policies={
            "RdsDbConnect": (
                PolicyStatementSpec(
                    actions=("rds-db:connect",),
                    resources=(iam_utils.rds_db_user_arn(region, account, db_user, partition),),
                ),
            ),
        },
    )


def password_auth_role_spec(*, admin_secret_arn: str, user_secret_arn: str) -> RoleSpec:
    """Role spec for reading the admin and user database secrets."""
    admin = iam_utils.require_text(admin_secret_arn, "Database admin secret ARN")
    user = iam_utils.require_text(user_secret_arn, "Database user secret ARN")
    return RoleSpec(
        principal=iam_utils.LAMBDA_PRINCIPAL,
        managed_policies=(iam_utils.VPC_EXECUTION_POLICY,),
        inline_policies={
            "SecretsRead": (
                PolicyStatementSpec(
                    actions=("secretsmanager:GetSecretValue", "secretsmanager:DescribeSecret"),
                    resources=(admin, user),
                ),
            ),
        },
    )


class RoleFactory:
    """Materialize role specs as IAM roles inside a scope."""

    def __init__(self, scope: Construct) -> None:
        self._scope = scope

    def materialize(self, construct_id: str, spec: RoleSpec, *, description: Optional[str] = None) -> iam.Role:
        return iam.Role(
            self._scope,
            construct_id,
            assumed_by=iam.ServicePrincipal(spec.principal),
            description=description,
            managed_policies=[iam.ManagedPolicy.from_aws_managed_policy_name(name) for name in spec.managed_policies],
            inline_policies={
                policy_name: iam.PolicyDocument(statements=[stmt.to_statement() for stmt in statements])
                for policy_name, statements in spec.inline_policies.items()
            },
        )

    def create_token_auth_role(self, db_user: str) -> iam.Role:
        stack = Stack.of(self._scope)
        spec = token_auth_role_spec(
            region=stack.region, account=stack.account, db_user=db_user, partition=stack.partition
        )
        return self.materialize(
            "LambdaRdsProxyRoleWithIam",
            spec,
            description="Connects to the database proxy with IAM authentication",
        )

    def create_password_auth_role(self, admin_secret_arn: str, user_secret_arn: str) -> iam.Role:
        spec = password_auth_role_spec(admin_secret_arn=admin_secret_arn, user_secret_arn=user_secret_arn)
        return self.materialize(
            "LambdaRdsRoleWithPw",
            spec,
            description="Reads database credentials from Secrets Manager",
        )
