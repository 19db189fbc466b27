import os
import sys
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

import pytest
from aws_cdk import App, Environment, Stack, aws_ec2 as ec2

pytest_plugins = [
    "tests.fixtures.handlers",
]

# Ensure project root is on sys.path for `infrastructure.*` imports
_repo_root = Path(__file__).resolve().parents[1]
_repo_root_str = str(_repo_root)
if _repo_root_str not in sys.path:
    sys.path.insert(0, _repo_root_str)

from infrastructure.config.environments import get_environment_config  # noqa: E402
from infrastructure.config.settings import DeliveryApiConfig  # noqa: E402
from infrastructure.stacks.delivery_api_stack import DeliveryApiStack  # noqa: E402

from tests.fixtures.aws import ADMIN_SECRET_ARN, TEST_ACCOUNT, TEST_REGION, USER_SECRET_ARN  # noqa: E402


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Pin account/region so synthesized ARNs are literal and comparable."""
    monkeypatch.setenv("CDK_DEFAULT_ACCOUNT", TEST_ACCOUNT)
    monkeypatch.setenv("CDK_DEFAULT_REGION", TEST_REGION)
    monkeypatch.setenv("AWS_REGION", os.environ.get("AWS_REGION", TEST_REGION))
    monkeypatch.delenv("DELIVERY_ALERT_EMAIL", raising=False)
    yield


@pytest.fixture
def context_values(handlers_dir: Path) -> dict[str, Any]:
    """CDK context as passed with ``-c`` on the command line."""
    return {
        "dbEndpoint": "delivery-db.cluster-abc.ap-northeast-2.rds.amazonaws.com",
        "dbProxyEndpoint": "delivery-proxy.proxy-abc.ap-northeast-2.rds.amazonaws.com",
        "dbAdminSecretArn": ADMIN_SECRET_ARN,
        "dbUserSecretArn": USER_SECRET_ARN,
        "dbRegion": TEST_REGION,
        "handlersDir": str(handlers_dir),
    }


@pytest.fixture
def make_config(context_values: dict[str, Any]) -> Callable[..., DeliveryApiConfig]:
    """Build a validated config from the dev preset plus context overrides."""

    def _make(environment: str = "dev", **overrides: Any) -> DeliveryApiConfig:
        context = {**context_values, **overrides}
        return DeliveryApiConfig.load(environment, get_environment_config(environment), context)

    return _make


@pytest.fixture
def config(make_config: Callable[..., DeliveryApiConfig]) -> DeliveryApiConfig:
    return make_config()


@pytest.fixture
def make_stack() -> Callable[..., DeliveryApiStack]:
    """Synthesize a DeliveryApiStack against an imported network without bundling."""

    def _make(cfg: DeliveryApiConfig, *, stack_id: str = "DeliveryApiTest", app: Optional[App] = None):
        app = app or App(context={"aws:cdk:bundling-stacks": []})
        network = _ImportedNetwork(app, f"{stack_id}Network")
        return DeliveryApiStack(
            app,
            stack_id,
            config=cfg,
            vpc=network.vpc,
            security_group=network.security_group,
            env=Environment(account=TEST_ACCOUNT, region=TEST_REGION),
        )

    return _make


class _ImportedNetwork:
    """Imported VPC and security group from literal ids; no lookups, no resources."""

    def __init__(self, app: App, construct_id: str) -> None:
        self.stack = Stack(app, construct_id, env=Environment(account=TEST_ACCOUNT, region=TEST_REGION))
        self.vpc = ec2.Vpc.from_vpc_attributes(
            self.stack,
            "DbVpc",
            vpc_id="vpc-0123456789abcdef0",
            availability_zones=[f"{TEST_REGION}a", f"{TEST_REGION}b"],
            private_subnet_ids=["subnet-0aaaaaaaaaaaaaaa1", "subnet-0bbbbbbbbbbbbbbb2"],
        )
        self.security_group = ec2.SecurityGroup.from_security_group_id(
            self.stack, "DbSecurityGroup", "sg-0123456789abcdef0", mutable=False
        )
