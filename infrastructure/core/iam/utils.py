"""Reusable IAM helper utilities for the delivery API roles."""

from __future__ import annotations

from typing import Iterable

from infrastructure.errors import ConfigurationError

LAMBDA_PRINCIPAL = "lambda.amazonaws.com"
APIGATEWAY_PRINCIPAL = "apigateway.amazonaws.com"

VPC_EXECUTION_POLICY = "service-role/AWSLambdaVPCAccessExecutionRole"
APIGATEWAY_LOGS_POLICY = "service-role/AmazonAPIGatewayPushToCloudWatchLogs"


def dedupe(values: Iterable[str]) -> list[str]:
    """Return items without duplicates while preserving order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        text = str(value or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        result.append(text)
    return result


def require_text(value: str | None, label: str) -> str:
    """Return the stripped value or raise when it is empty."""
    text = str(value or "").strip()
    if not text:
        raise ConfigurationError(f"{label} must be provided")
    return text


def rds_db_user_arn(region: str, account: str, db_user: str, partition: str = "aws") -> str:
    """Return the rds-db:connect resource for a database user on any resource id."""
    user = require_text(db_user, "Database user name")
    return f"arn:{partition}:rds-db:{region}:{account}:dbuser:*/{user}"


def assert_scoped_resources(resources: Iterable[str]) -> list[str]:
    """Reject empty resource lists and bare wildcard resources."""
    scoped = dedupe(resources)
    if not scoped:
        raise ConfigurationError("Policy statements need at least one resource")
    if any(resource == "*" for resource in scoped):
        raise ConfigurationError("Policy statements must not grant access to every resource ('*')")
    return scoped
