import dataclasses
from pathlib import Path

import pytest

from infrastructure.compute.types import ComputeVariant
from infrastructure.config.environments import get_environment_config
from infrastructure.config.routes import DEFAULT_ROUTES
from infrastructure.config.settings import CONTEXT_KEYS, DeliveryApiConfig
from infrastructure.errors import ConfigurationError

pytestmark = pytest.mark.unit


def test_load_merges_preset_and_context(config: DeliveryApiConfig, handlers_dir: Path) -> None:
    """
    Given: the dev preset and database coordinates passed as context
    When: the config is loaded
    Then: context values win and preset defaults fill the rest
    """
    assert config.environment == "dev"
    assert config.db_endpoint.startswith("delivery-db.")
    assert config.db_proxy_endpoint.startswith("delivery-proxy.")
    assert config.db_region == "ap-northeast-2"
    assert config.db_port == 3306
    assert config.db_user == "lambdaiam"
    assert config.db_admin_secret_name == "dev/delivery/db-admin"
    assert config.log_level == "DEBUG"
    assert config.handlers_path == handlers_dir
    assert config.db_init_script_path == handlers_dir / "scripts" / "dbinit.sql"
    assert config.tags["Environment"] == "dev"


def test_db_region_defaults_to_preset_region(make_config) -> None:
    cfg = make_config(dbRegion=None)
    assert cfg.db_region == get_environment_config("dev")["region"]


def test_db_port_from_context_string_is_converted(make_config) -> None:
    assert make_config(dbPort="5432").db_port == 5432


@pytest.mark.parametrize("port", ["abc", "0", "70000"])
def test_invalid_db_port_is_rejected(make_config, port: str) -> None:
    with pytest.raises(ConfigurationError):
        make_config(dbPort=port)


@pytest.mark.parametrize(
    "missing",
    ["dbEndpoint", "dbProxyEndpoint", "dbAdminSecretArn", "dbUserSecretArn"],
)
def test_missing_required_value_is_rejected(make_config, missing: str) -> None:
    """
    Given: a required database coordinate left out of the context
    When: the config is loaded
    Then: loading fails before any resource is created
    """
    with pytest.raises(ConfigurationError, match="Missing required configuration"):
        make_config(**{missing: None})


def test_blank_required_value_is_rejected(make_config) -> None:
    with pytest.raises(ConfigurationError):
        make_config(dbEndpoint="   ")


def test_alert_email_is_stripped(make_config) -> None:
    assert make_config(alertEmail="  ops@example.com ").alert_email == "ops@example.com"


def test_empty_alert_email_is_allowed(make_config) -> None:
    assert make_config(alertEmail="").alert_email == ""


def test_malformed_alert_email_is_rejected(make_config) -> None:
    with pytest.raises(ConfigurationError, match="alert_email"):
        make_config(alertEmail="not-an-address")


def test_unknown_environment_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Unknown environment"):
        get_environment_config("qa")


def test_environment_preset_is_a_copy() -> None:
    preset = get_environment_config("prod")
    preset["region"] = "us-east-1"
    assert get_environment_config("prod")["region"] == "eu-west-1"


def test_config_error_is_a_value_error() -> None:
    assert issubclass(ConfigurationError, ValueError)


def test_populate_function_name_must_not_clash_with_routes(config: DeliveryApiConfig) -> None:
    with pytest.raises(ConfigurationError, match="GetSlots"):
        dataclasses.replace(config, populate_function_name="GetSlots")


def test_routes_must_not_be_empty(config: DeliveryApiConfig) -> None:
    with pytest.raises(ConfigurationError):
        dataclasses.replace(config, routes=())


def test_config_is_immutable(config: DeliveryApiConfig) -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.db_port = 5432  # type: ignore[misc]


def test_default_routes_cover_every_variant() -> None:
    variants = [route.variant for route in DEFAULT_ROUTES]
    assert len(DEFAULT_ROUTES) == 7
    assert variants.count(ComputeVariant.DEFAULT_BUILT) == 3
    assert variants.count(ComputeVariant.PREBUILT_ARCHIVE) == 1
    assert variants.count(ComputeVariant.CUSTOM_RUNTIME_ARCHIVE) == 1
    assert variants.count(ComputeVariant.CONTAINER_IMAGE) == 2
    archive_routes = [
        route
        for route in DEFAULT_ROUTES
        if route.name.startswith("CreateSlots") and route.variant is not ComputeVariant.CONTAINER_IMAGE
    ]
    assert {route.handler_name for route in archive_routes} == {"CreateSlots"}


def test_every_context_key_feeds_a_config_field() -> None:
    field_names = {f.name for f in dataclasses.fields(DeliveryApiConfig)}
    assert set(CONTEXT_KEYS.values()) <= field_names


def test_unrecognized_context_keys_are_ignored(make_config) -> None:
    cfg = make_config(dbProxyArn="arn:aws:rds:ap-northeast-2:111122223333:db-proxy:prx-0123")
    assert not hasattr(cfg, "db_proxy_arn")
