"""One-shot database initialization driven by a CloudFormation custom resource.

The SQL script text is passed as the ``SqlScript`` property of the custom
resource. CloudFormation sends an Update to the populate function whenever a
property value changes, so editing the script re-runs it on the next deploy
and an unchanged script never triggers an invocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from aws_cdk import CfnOutput, CustomResource, aws_iam as iam, custom_resources as cr
from constructs import Construct

from infrastructure.compute.function_factory import FunctionFactory
from infrastructure.compute.hashing import hash_text
from infrastructure.compute.types import ComputeVariant, FunctionSpec
from infrastructure.errors import ConfigurationError
from infrastructure.utils.logger import get_logger

SQL_SCRIPT_PROPERTY = "SqlScript"
RESOURCE_TYPE = "Custom::PopulateDataProvider"

logger = get_logger(__name__)


class DbInitState(str, Enum):
    UNSET = "unset"
    APPLIED = "applied"
    REAPPLIED = "reapplied"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class DbInitJob:
    """Initialization script with its change-detection key."""

    script: str
    change_key: str
    populate_function: Optional[FunctionSpec] = None

    @classmethod
    def from_script(cls, script: str, populate_function: Optional[FunctionSpec] = None) -> "DbInitJob":
        return cls(script=script, change_key=hash_text(script), populate_function=populate_function)

    def plan(self, previous_key: Optional[str]) -> DbInitState:
        """Return what the deployment does given the last recorded key."""
        if previous_key is None:
            return DbInitState.APPLIED
        if previous_key != self.change_key:
            return DbInitState.REAPPLIED
        return DbInitState.UNCHANGED


def read_script(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Database initialization script not found: {path}") from exc


class DbInitializer:
    """Wire the populate function, its provider and the custom resource."""

    def __init__(self, scope: Construct, *, functions: FunctionFactory) -> None:
        self._scope = scope
        self._functions = functions
        self.provider: Optional[cr.Provider] = None
        self.resource: Optional[CustomResource] = None

    def provision(self, *, script_path: Path, function_name: str, role: iam.IRole) -> DbInitJob:
        script = read_script(script_path)

        populate = self._functions.build(
            function_name,
            ComputeVariant.DEFAULT_BUILT,
            role,
            use_direct_endpoint=True,
        )
        job = DbInitJob.from_script(script, populate_function=populate)

        self.provider = cr.Provider(
            self._scope,
            "InvokePopulateDataProvider",
            on_event_handler=populate.function,
        )
        self.resource = CustomResource(
            self._scope,
            "PopulateDataProvider",
            service_token=self.provider.service_token,
            resource_type=RESOURCE_TYPE,
            properties={SQL_SCRIPT_PROPERTY: job.script},
        )

        CfnOutput(
            self._scope,
            "DbInitScriptHash",
            value=job.change_key,
            description="SHA-256 of the database initialization script applied by this deployment",
        )
        logger.info("Database initialization script registered", extra={"change_key": job.change_key})
        return job
