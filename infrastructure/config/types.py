"""Typed configuration contracts for environment-specific settings."""

from __future__ import annotations

from typing import Dict, NotRequired, Required, TypedDict


class EnvironmentConfig(TypedDict, total=False):
    """Strongly-typed environment preset contract.

    Keys use the snake_case field names of ``DeliveryApiConfig``; CDK context
    values (camelCase) override them at synth time.
    """

    region: Required[str]
    account_id: NotRequired[str | None]

    db_port: NotRequired[int]
    db_region: NotRequired[str]
    db_user: NotRequired[str]
    db_admin_secret_name: NotRequired[str]
    db_user_secret_name: NotRequired[str]

    handlers_dir: NotRequired[str]
    handler_namespace: NotRequired[str]
    db_init_script: NotRequired[str]

    alert_email: NotRequired[str]
    log_retention_days: NotRequired[int]
    log_level: NotRequired[str]
    metrics_namespace: NotRequired[str]
    service_name: NotRequired[str]
    stage_name: NotRequired[str]

    tags: NotRequired[Dict[str, str]]
