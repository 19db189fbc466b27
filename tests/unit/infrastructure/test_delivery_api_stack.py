"""End-to-end synthesis of the delivery API stack."""

from collections import Counter

import pytest
from aws_cdk import App, Environment
from aws_cdk.assertions import Template

from infrastructure.compute.types import ComputeVariant
from infrastructure.config.routes import DEFAULT_ROUTES
from infrastructure.errors import ConfigurationError
from infrastructure.stacks.delivery_api_stack import DeliveryApiStack
from tests.fixtures.aws import TEST_ACCOUNT, TEST_REGION
from tests.fixtures.snapshot import assert_matches_snapshot
from tests.fixtures.templates import find_role_with_policy, function_logical_ids, get_att_ids

pytestmark = pytest.mark.infrastructure


def test_every_route_gets_a_function_spec(config, make_stack) -> None:
    """
    Given: the default route table and no alert email
    When: the stack is synthesized
    Then: seven route functions exist across the four variants and one alarm topic has no subscriber
    """
    stack = make_stack(config)

    assert list(stack.functions) == [route.name for route in DEFAULT_ROUTES]
    assert Counter(spec.variant for spec in stack.functions.values()) == {
        ComputeVariant.DEFAULT_BUILT: 3,
        ComputeVariant.PREBUILT_ARCHIVE: 1,
        ComputeVariant.CUSTOM_RUNTIME_ARCHIVE: 1,
        ComputeVariant.CONTAINER_IMAGE: 2,
    }
    assert stack.alarm_topic is stack.observability.alarm_topic

    template = Template.from_stack(stack)
    template.resource_count_is("AWS::SNS::Topic", 1)
    template.resource_count_is("AWS::SNS::Subscription", 0)


def test_route_functions_share_network_and_token_role(config, make_stack) -> None:
    stack = make_stack(config)
    template = Template.from_stack(stack)
    token_role_id, _ = find_role_with_policy(template, "RdsDbConnect")

    resources = template.to_json()["Resources"]
    for name, logical_id in function_logical_ids(template, stack.functions).items():
        props = resources[logical_id]["Properties"]
        assert list(get_att_ids(props["Role"])) == [token_role_id], name
        assert props["VpcConfig"]["SecurityGroupIds"] == ["sg-0123456789abcdef0"], name
        assert props["Timeout"] == 60
        assert props["MemorySize"] == 2048
        assert props["Environment"]["Variables"]["DB_ENDPOINT"] == config.db_proxy_endpoint


def test_specs_record_their_inputs(config, make_stack) -> None:
    stack = make_stack(config)

    for spec in stack.functions.values():
        assert spec.role is stack.context.token_auth_role
        assert spec.network is stack.context.network
        assert spec.api_method

    assert stack.functions["CreateSlotsUber"].handler == "com.delivery.api.handlers.CreateSlots"
    assert stack.functions["CreateSlotsDocker"].handler is None


def test_stack_requires_a_network(config) -> None:
    app = App(context={"aws:cdk:bundling-stacks": []})

    with pytest.raises(ConfigurationError, match="VPC"):
        DeliveryApiStack(
            app,
            "NoNetwork",
            config=config,
            env=Environment(account=TEST_ACCOUNT, region=TEST_REGION),
        )


def test_nothing_grants_every_resource(config, make_stack) -> None:
    template = Template.from_stack(make_stack(config))

    for role in template.find_resources("AWS::IAM::Role").values():
        for policy in role.get("Properties", {}).get("Policies", []):
            for stmt in policy["PolicyDocument"]["Statement"]:
                resources = stmt["Resource"] if isinstance(stmt["Resource"], list) else [stmt["Resource"]]
                assert "*" not in resources, policy["PolicyName"]


def test_reference_scenario(make_config, make_stack) -> None:
    """
    Given: a proxy endpoint, port 5432, user appuser and an empty alert address
    When: the stack is synthesized
    Then: no subscription, wildcard CORS, seven functions over four variants and one alarm topic
    """
    stack = make_stack(make_config(dbPort=5432, dbUser="appuser", alertEmail=""))
    template = Template.from_stack(stack)

    template.resource_count_is("AWS::SNS::Topic", 1)
    template.resource_count_is("AWS::SNS::Subscription", 0)
    template.has_resource_properties(
        "AWS::Serverless::Api",
        {"Cors": {"AllowOrigin": "'*'", "AllowHeaders": "'*'", "AllowMethods": "'*'"}},
    )

    variants = Counter(spec.variant for spec in stack.functions.values())
    assert len(stack.functions) == 7
    assert len(variants) == 4
    assert variants[ComputeVariant.DEFAULT_BUILT] == 3

    for spec in stack.functions.values():
        assert spec.environment["DB_PORT"] == "5432"
        assert spec.environment["DB_USER"] == "appuser"

    _, token_role = find_role_with_policy(template, "RdsDbConnect")
    assert token_role["Properties"]["Policies"][0]["PolicyDocument"]["Statement"][0]["Resource"] == (
        stack.resolve(f"arn:{stack.partition}:rds-db:{TEST_REGION}:{TEST_ACCOUNT}:dbuser:*/appuser")
    )


def test_synthesis_is_repeatable(config, make_stack, tmp_path) -> None:
    snapshot = tmp_path / "delivery_api.json"
    assert_matches_snapshot(Template.from_stack(make_stack(config)).to_json(), snapshot)
    assert_matches_snapshot(Template.from_stack(make_stack(config)).to_json(), snapshot)
