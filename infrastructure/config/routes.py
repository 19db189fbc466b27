"""Route table for the delivery API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from infrastructure.compute.types import ComputeVariant


@dataclass(frozen=True)
class RouteConfig:
    """One API route and the packaging variant serving it.

    ``name`` is the function name and the template placeholder. ``handler`` is
    the handler class the function runs; comparison variants reuse the
    ``CreateSlots`` handler under a different name.
    """

    name: str
    variant: ComputeVariant
    api_method: str
    handler: Optional[str] = None
    image_file: Optional[str] = None

    @property
    def handler_name(self) -> str:
        return self.handler or self.name


DEFAULT_ROUTES: Tuple[RouteConfig, ...] = (
    RouteConfig("CreateSlots", ComputeVariant.DEFAULT_BUILT, "POST /farm/{farm-id}/slots"),
    RouteConfig(
        "CreateSlotsUber",
        ComputeVariant.PREBUILT_ARCHIVE,
        "POST /farm/{farm-id}/slots/uber",
        handler="CreateSlots",
    ),
    RouteConfig(
        "CreateSlotsCustom",
        ComputeVariant.CUSTOM_RUNTIME_ARCHIVE,
        "POST /farm/{farm-id}/slots/custom",
        handler="CreateSlots",
    ),
    RouteConfig(
        "CreateSlotsDocker",
        ComputeVariant.CONTAINER_IMAGE,
        "POST /farm/{farm-id}/slots/docker",
        image_file="LambdaBaseContainerImage",
    ),
    RouteConfig(
        "CreateSlotsDockerCustom",
        ComputeVariant.CONTAINER_IMAGE,
        "POST /farm/{farm-id}/slots/docker-custom",
        image_file="LambdaCustomContainerImage",
    ),
    RouteConfig("GetSlots", ComputeVariant.DEFAULT_BUILT, "GET /farm/{farm-id}/slots"),
    RouteConfig("BookDelivery", ComputeVariant.DEFAULT_BUILT, "PUT /farm/{farm-id}/slot/{slot-id}"),
)
