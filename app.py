#!/usr/bin/env python3
"""
Delivery API CDK App
Serverless delivery slot API in front of an existing database.

Database coordinates come from the environment preset and CDK context, e.g.:
  cdk deploy -c environment=dev -c dbEndpoint=... -c dbProxyEndpoint=... \
      -c dbAdminSecretArn=... -c dbUserSecretArn=... -c dbVpcId=vpc-... \
      -c dbSecurityGroupId=sg-... -c alertEmail=ops@example.com
"""

import aws_cdk as cdk

from infrastructure.config.environments import get_environment_config
from infrastructure.config.settings import CONTEXT_KEYS, DeliveryApiConfig
from infrastructure.stacks.delivery_api_stack import DeliveryApiStack

app = cdk.App()

# Get environment configuration
environment = app.node.try_get_context("environment") or "dev"
preset = get_environment_config(environment)
context = {key: app.node.try_get_context(key) for key in CONTEXT_KEYS}
config = DeliveryApiConfig.load(environment, preset, context)

# CDK environment (account/region)
cdk_env = cdk.Environment(account=preset.get("account_id"), region=preset.get("region", "eu-west-1"))

api_stack = DeliveryApiStack(
    app,
    f"DeliveryApi-{environment}",
    config=config,
    description="Farm delivery API: functions, API Gateway, dashboard and database bootstrap",
    env=cdk_env,
)

# ========================================
# TAGGING STRATEGY
# ========================================

cdk.Tags.of(app).add("Environment", environment)
cdk.Tags.of(app).add("ManagedBy", "CDK")
for tag_key, tag_value in config.tags.items():
    cdk.Tags.of(api_stack).add(tag_key, tag_value)

app.synth()
