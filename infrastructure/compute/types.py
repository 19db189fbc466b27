"""Value types shared by the compute layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from aws_cdk import aws_ec2 as ec2, aws_iam as iam, aws_lambda as lambda_


class ComputeVariant(str, Enum):
    """Packaging strategy for a logical function."""

    DEFAULT_BUILT = "default_built"
    PREBUILT_ARCHIVE = "prebuilt_archive"
    CUSTOM_RUNTIME_ARCHIVE = "custom_runtime_archive"
    CONTAINER_IMAGE = "container_image"

    @property
    def uses_managed_runtime(self) -> bool:
        return self in (ComputeVariant.DEFAULT_BUILT, ComputeVariant.PREBUILT_ARCHIVE)


@dataclass(frozen=True)
class NetworkPlacement:
    """VPC and security group every function of a pass is placed into."""

    vpc: ec2.IVpc
    security_group: ec2.ISecurityGroup


@dataclass(frozen=True)
class FunctionSpec:
    """A synthesized function together with the inputs it was built from."""

    name: str
    variant: ComputeVariant
    environment: Mapping[str, str]
    role: iam.IRole
    network: NetworkPlacement
    function: lambda_.Function
    handler: Optional[str] = None
    api_method: Optional[str] = field(default=None, compare=False)

    @property
    def function_arn(self) -> str:
        return self.function.function_arn
