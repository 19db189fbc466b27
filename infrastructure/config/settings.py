"""Validated, immutable configuration record for one provisioning pass."""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from infrastructure.config.routes import DEFAULT_ROUTES, RouteConfig
from infrastructure.config.types import EnvironmentConfig
from infrastructure.errors import ConfigurationError

# CDK context key -> config field
CONTEXT_KEYS: Dict[str, str] = {
    "dbEndpoint": "db_endpoint",
    "dbProxyEndpoint": "db_proxy_endpoint",
    "dbPort": "db_port",
    "dbRegion": "db_region",
    "dbUser": "db_user",
    "dbAdminSecretName": "db_admin_secret_name",
    "dbAdminSecretArn": "db_admin_secret_arn",
    "dbUserSecretName": "db_user_secret_name",
    "dbUserSecretArn": "db_user_secret_arn",
    "alertEmail": "alert_email",
    "handlersDir": "handlers_dir",
    "dbVpcId": "db_vpc_id",
    "dbSecurityGroupId": "db_security_group_id",
}

_REQUIRED_TEXT = (
    "environment",
    "db_endpoint",
    "db_proxy_endpoint",
    "db_region",
    "db_user",
    "db_admin_secret_name",
    "db_admin_secret_arn",
    "db_user_secret_name",
    "db_user_secret_arn",
    "handlers_dir",
    "handler_namespace",
    "db_init_script",
    "populate_function_name",
    "stage_name",
)


@dataclass(frozen=True)
class DeliveryApiConfig:
    environment: str
    db_endpoint: str
    db_proxy_endpoint: str
    db_port: int
    db_region: str
    db_user: str
    db_admin_secret_name: str
    db_admin_secret_arn: str
    db_user_secret_name: str
    db_user_secret_arn: str
    db_vpc_id: Optional[str] = None
    db_security_group_id: Optional[str] = None
    alert_email: str = ""
    handlers_dir: str = "../api-handlers"
    handler_namespace: str = "com.delivery.api.handlers"
    db_init_script: str = "scripts/dbinit.sql"
    populate_function_name: str = "PopulateFarmDb"
    routes: Tuple[RouteConfig, ...] = DEFAULT_ROUTES
    stage_name: str = "Prod"
    log_retention_days: int = 60
    log_level: str = "INFO"
    metrics_namespace: str = "DeliveryApi"
    service_name: str = "DeliveryApi"
    jit_options: str = "-XX:+TieredCompilation -XX:TieredStopAtLevel=1"
    cors_allow_origin: str = "*"
    api_template: Optional[str] = None
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        missing = [name for name in _REQUIRED_TEXT if not str(getattr(self, name) or "").strip()]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        if not isinstance(self.db_port, int) or isinstance(self.db_port, bool) or not 0 < self.db_port < 65536:
            raise ConfigurationError(f"db_port must be an integer in 1..65535, got {self.db_port!r}")

        email = (self.alert_email or "").strip()
        if email and "@" not in email:
            raise ConfigurationError(f"alert_email is not an email address: {email!r}")

        if not self.routes:
            raise ConfigurationError("At least one API route must be configured")

        names = [route.name for route in self.routes] + [self.populate_function_name]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Function names must be unique: {', '.join(duplicates)}")

    @property
    def handlers_path(self) -> Path:
        return Path(self.handlers_dir)

    @property
    def db_init_script_path(self) -> Path:
        script = Path(self.db_init_script)
        return script if script.is_absolute() else self.handlers_path / script

    @staticmethod
    def load(
        environment: str,
        preset: EnvironmentConfig,
        context: Optional[Mapping[str, Any]] = None,
    ) -> "DeliveryApiConfig":
        """Merge an environment preset with CDK context values and validate."""
        known = {f.name for f in fields(DeliveryApiConfig)}
        values: Dict[str, Any] = {key: value for key, value in dict(preset).items() if key in known}
        values.setdefault("db_region", preset.get("region"))

        for context_key, field_name in CONTEXT_KEYS.items():
            raw = (context or {}).get(context_key)
            if raw is None:
                continue
            values[field_name] = raw

        if "db_port" in values:
            try:
                values["db_port"] = int(values["db_port"])
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"db_port must be an integer, got {values['db_port']!r}") from exc

        values["environment"] = environment
        values["alert_email"] = str(values.get("alert_email") or "").strip()
        values["tags"] = dict(preset.get("tags", {}) or {})

        for f in fields(DeliveryApiConfig):
            if f.default is MISSING and f.default_factory is MISSING:
                values.setdefault(f.name, 0 if f.name == "db_port" else "")
        return DeliveryApiConfig(**values)
