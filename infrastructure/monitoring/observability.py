"""Alarm channel and dashboard wiring for the delivery API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from aws_cdk import CfnOutput, Stack, aws_sns as sns, aws_sns_subscriptions as subscriptions
from constructs import Construct

from infrastructure.compute.types import ComputeVariant, FunctionSpec
from infrastructure.monitoring.function_dashboard import FunctionDashboard


@dataclass(frozen=True)
class AlarmConfig:
    """The alarm channel and the address subscribed to it, if any."""

    topic: sns.Topic
    subscriber: Optional[str] = None


class ObservabilityWiring:
    """One alarm topic, an optional email subscriber and the function dashboard.

    Only default-built functions reach the dashboard; the other packaging
    variants exist for comparison, not as the production path.
    """

    def __init__(self, scope: Construct, *, alert_email: str = "") -> None:
        self._scope = scope
        self.alarm_topic = sns.Topic(scope, "ErrorAlarmTopic", topic_name="ErrorAlarmTopic")
        self.email_subscription: Optional[subscriptions.EmailSubscription] = None

        # Skip the subscription when no address was passed via context
        email = (alert_email or "").strip()
        if email:
            self.email_subscription = subscriptions.EmailSubscription(email)
            self.alarm_topic.add_subscription(self.email_subscription)

        self.alarm_config = AlarmConfig(topic=self.alarm_topic, subscriber=email or None)
        self.dashboard: Optional[FunctionDashboard] = None

    def create_dashboard(
        self,
        functions: Iterable[FunctionSpec],
        *,
        api_name: str,
        stage_name: str,
        dashboard_name: str = "FunctionDashboard",
    ) -> FunctionDashboard:
        production = [spec for spec in functions if spec.variant is ComputeVariant.DEFAULT_BUILT]
        self.dashboard = FunctionDashboard(
            self._scope,
            "FunctionDashboard",
            dashboard_name=dashboard_name,
            api_name=api_name,
            stage_name=stage_name,
            functions=production,
            alarm_topic=self.alarm_topic,
        )

        region = Stack.of(self._scope).region
        CfnOutput(
            self._scope,
            "AlarmTopicArn",
            value=self.alarm_topic.topic_arn,
            description="Delivery API error alarm topic ARN",
        )
        CfnOutput(
            self._scope,
            "FunctionDashboardUrl",
            value=(
                f"https://console.aws.amazon.com/cloudwatch/home?region={region}"
                f"#dashboards:name={dashboard_name}"
            ),
            description="Function dashboard URL",
        )
        return self.dashboard
