"""Dashboard and error alarms for the production function variant."""

from __future__ import annotations

from typing import Sequence

from aws_cdk import Duration, aws_cloudwatch as cloudwatch, aws_cloudwatch_actions as cw_actions, aws_sns as sns
from constructs import Construct

from infrastructure.compute.types import FunctionSpec


class FunctionDashboard(Construct):
    """CloudWatch dashboard for the API functions, one row per function."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        dashboard_name: str,
        api_name: str,
        stage_name: str,
        functions: Sequence[FunctionSpec],
        alarm_topic: sns.ITopic,
    ) -> None:
        super().__init__(scope, construct_id)

        self.alarms: list[cloudwatch.Alarm] = []
        self.dashboard = cloudwatch.Dashboard(self, "Dashboard", dashboard_name=dashboard_name)

        period = Duration.minutes(5)
        for spec in functions:
            self._add_function_row(spec, api_name=api_name, stage_name=stage_name, period=period)
            alarm = cloudwatch.Alarm(
                self,
                f"{spec.name}ErrorsAlarm",
                alarm_name=f"{dashboard_name}-{spec.name}-errors",
                alarm_description=f"{spec.name} function errors detected",
                metric=spec.function.metric_errors(period=period),
                threshold=1,
                evaluation_periods=1,
                comparison_operator=cloudwatch.ComparisonOperator.GREATER_THAN_OR_EQUAL_TO_THRESHOLD,
                treat_missing_data=cloudwatch.TreatMissingData.NOT_BREACHING,
            )
            alarm.add_alarm_action(cw_actions.SnsAction(alarm_topic))
            self.alarms.append(alarm)

    def _add_function_row(self, spec: FunctionSpec, *, api_name: str, stage_name: str, period: Duration) -> None:
        function = spec.function
        widgets: list[cloudwatch.IWidget] = [
            cloudwatch.TextWidget(markdown=f"### {spec.name}", width=24, height=1),
            cloudwatch.GraphWidget(
                title=f"{spec.name} Invocations/Errors",
                left=[function.metric_invocations(period=period), function.metric_errors(period=period)],
                width=8,
                height=6,
            ),
            cloudwatch.GraphWidget(
                title=f"{spec.name} Duration",
                left=[
                    function.metric_duration(period=period, statistic="p50"),
                    function.metric_duration(period=period, statistic="p99"),
                ],
                width=8,
                height=6,
            ),
            cloudwatch.GraphWidget(
                title=f"{spec.name} Throttles",
                left=[function.metric_throttles(period=period)],
                width=8,
                height=6,
            ),
        ]

        if spec.api_method:
            method, _, resource = spec.api_method.partition(" ")
            dimensions = {"ApiName": api_name, "Stage": stage_name, "Method": method, "Resource": resource}
            widgets.append(
                cloudwatch.GraphWidget(
                    title=f"{spec.api_method} Errors",
                    left=[
                        cloudwatch.Metric(
                            namespace="AWS/ApiGateway",
                            metric_name=name,
                            statistic="Sum",
                            dimensions_map=dimensions,
                            period=period,
                        )
                        for name in ("4XXError", "5XXError")
                    ],
                    right=[
                        cloudwatch.Metric(
                            namespace="AWS/ApiGateway",
                            metric_name="Latency",
                            statistic="p99",
                            dimensions_map=dimensions,
                            period=period,
                        )
                    ],
                    width=24,
                    height=6,
                )
            )

        self.dashboard.add_widgets(*widgets)
