"""Build the delivery API functions under each packaging variant."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from aws_cdk import AssetHashType, Duration, aws_iam as iam, aws_lambda as lambda_
from constructs import Construct

from infrastructure.compute.bundling import default_bundling_options
from infrastructure.compute.hashing import hash_directory
from infrastructure.compute.types import ComputeVariant, FunctionSpec, NetworkPlacement
from infrastructure.config.routes import RouteConfig
from infrastructure.config.settings import DeliveryApiConfig
from infrastructure.errors import ConfigurationError, PackagingError
from infrastructure.utils.logger import get_logger

FUNCTION_TIMEOUT = Duration.seconds(60)
FUNCTION_MEMORY_MB = 2048
MANAGED_RUNTIME = lambda_.Runtime.JAVA_11
CUSTOM_RUNTIME = lambda_.Runtime.PROVIDED_AL2

PREBUILT_ARCHIVE = "build/libs/shadow-all.jar"
CUSTOM_RUNTIME_ARCHIVE = "runtime.zip"

DB_ENVIRONMENT_KEYS = (
    "DB_ENDPOINT",
    "DB_PORT",
    "DB_REGION",
    "DB_USER",
    "DB_ADMIN_SECRET",
    "DB_USER_SECRET",
    "CORS_ALLOW_ORIGIN_HEADER",
)

logger = get_logger(__name__)

_Built = Tuple[lambda_.Function, Optional[str]]


class FunctionFactory:
    """Single dispatcher from ``ComputeVariant`` to a configured function.

    Every variant gets the same timeout, memory, network placement and database
    environment; only the code source, runtime and handler differ.
    """

    def __init__(self, scope: Construct, *, config: DeliveryApiConfig, network: NetworkPlacement) -> None:
        self._scope = scope
        self._config = config
        self._network = network
        self._names: set[str] = set()
        self._source_hash: Optional[str] = None
        self._builders: Dict[ComputeVariant, Callable[..., _Built]] = {
            ComputeVariant.DEFAULT_BUILT: self._default_built,
            ComputeVariant.PREBUILT_ARCHIVE: self._prebuilt_archive,
            ComputeVariant.CUSTOM_RUNTIME_ARCHIVE: self._custom_runtime_archive,
            ComputeVariant.CONTAINER_IMAGE: self._container_image,
        }

    @property
    def handlers_dir(self) -> Path:
        return self._config.handlers_path

    def build(
        self,
        name: str,
        variant: ComputeVariant,
        role: iam.IRole,
        *,
        handler: Optional[str] = None,
        image_file: Optional[str] = None,
        use_direct_endpoint: bool = False,
        api_method: Optional[str] = None,
    ) -> FunctionSpec:
        """Create the function ``name`` packaged as ``variant``.

        Raises ``ConfigurationError`` for a reused name and ``PackagingError``
        when the artifact of a variant without build fallback is missing.
        """
        if name in self._names:
            raise ConfigurationError(f"Function name already used in this deployment: {name}")

        environment = self.environment_for(variant, use_direct_endpoint=use_direct_endpoint)
        function, handler_path = self._builders[variant](
            name,
            role,
            environment,
            handler=handler or name,
            image_file=image_file,
        )
        self._names.add(name)
        logger.info("Built function", extra={"function": name, "variant": variant.value})

        return FunctionSpec(
            name=name,
            variant=variant,
            environment=environment,
            role=role,
            network=self._network,
            function=function,
            handler=handler_path,
            api_method=api_method,
        )

    def build_route(self, route: RouteConfig, role: iam.IRole) -> FunctionSpec:
        return self.build(
            route.name,
            route.variant,
            role,
            handler=route.handler_name,
            image_file=route.image_file,
            api_method=route.api_method,
        )

    def environment_for(self, variant: ComputeVariant, *, use_direct_endpoint: bool = False) -> Dict[str, str]:
        cfg = self._config
        environment = {
            "DB_ENDPOINT": cfg.db_endpoint if use_direct_endpoint else cfg.db_proxy_endpoint,
            "DB_PORT": str(cfg.db_port),
            "DB_REGION": cfg.db_region,
            "DB_USER": cfg.db_user,
            "DB_ADMIN_SECRET": cfg.db_admin_secret_name,
            "DB_USER_SECRET": cfg.db_user_secret_name,
            "CORS_ALLOW_ORIGIN_HEADER": cfg.cors_allow_origin,
        }

        if variant.uses_managed_runtime:
            environment.update(
                {
                    "POWERTOOLS_METRICS_NAMESPACE": cfg.metrics_namespace,
                    "POWERTOOLS_SERVICE_NAME": cfg.service_name,
                    "POWERTOOLS_TRACER_CAPTURE_ERROR": "true",
                    "POWERTOOLS_TRACER_CAPTURE_RESPONSE": "false",
                    "POWERTOOLS_LOG_LEVEL": cfg.log_level,
                }
            )
        if variant is not ComputeVariant.CUSTOM_RUNTIME_ARCHIVE:
            # The custom runtime ships its own trimmed JVM launcher
            environment["JAVA_TOOL_OPTIONS"] = cfg.jit_options
        return environment

    def _common_props(self, name: str, role: iam.IRole, environment: Dict[str, str]) -> dict:
        return {
            "function_name": name,
            "environment": environment,
            "timeout": FUNCTION_TIMEOUT,
            "memory_size": FUNCTION_MEMORY_MB,
            "vpc": self._network.vpc,
            "security_groups": [self._network.security_group],
            "role": role,
        }

    def _handler(self, handler: str) -> str:
        return f"{self._config.handler_namespace}.{handler}"

    def _require_handlers_dir(self) -> Path:
        if not self.handlers_dir.is_dir():
            raise PackagingError(f"Handlers directory not found: {self.handlers_dir}")
        return self.handlers_dir

    def _require_artifact(self, relative: str) -> Path:
        artifact = self._require_handlers_dir() / relative
        if not artifact.is_file():
            raise PackagingError(f"Prebuilt artifact not found: {artifact}")
        return artifact

    def _handlers_source_hash(self) -> str:
        if self._source_hash is None:
            source_root = self.handlers_dir / "src"
            self._source_hash = hash_directory(source_root if source_root.is_dir() else self.handlers_dir)
        return self._source_hash

    def _default_built(
        self, name: str, role: iam.IRole, environment: Dict[str, str], *, handler: str, image_file: Optional[str]
    ) -> _Built:
        source_dir = self._require_handlers_dir()
        code = lambda_.Code.from_asset(
            str(source_dir),
            asset_hash_type=AssetHashType.CUSTOM,
            asset_hash=self._handlers_source_hash(),
            bundling=default_bundling_options(source_dir),
        )
        handler_path = self._handler(handler)
        function = lambda_.Function(
            self._scope,
            name,
            runtime=MANAGED_RUNTIME,
            code=code,
            handler=handler_path,
            **self._common_props(name, role, environment),
        )
        return function, handler_path

    def _prebuilt_archive(
        self, name: str, role: iam.IRole, environment: Dict[str, str], *, handler: str, image_file: Optional[str]
    ) -> _Built:
        artifact = self._require_artifact(PREBUILT_ARCHIVE)
        handler_path = self._handler(handler)
        function = lambda_.Function(
            self._scope,
            name,
            runtime=MANAGED_RUNTIME,
            code=lambda_.Code.from_asset(str(artifact)),
            handler=handler_path,
            **self._common_props(name, role, environment),
        )
        return function, handler_path

    def _custom_runtime_archive(
        self, name: str, role: iam.IRole, environment: Dict[str, str], *, handler: str, image_file: Optional[str]
    ) -> _Built:
        artifact = self._require_artifact(CUSTOM_RUNTIME_ARCHIVE)
        handler_path = self._handler(handler)
        function = lambda_.Function(
            self._scope,
            name,
            runtime=CUSTOM_RUNTIME,
            code=lambda_.Code.from_asset(str(artifact)),
            handler=handler_path,
            **self._common_props(name, role, environment),
        )
        return function, handler_path

    def _container_image(
        self, name: str, role: iam.IRole, environment: Dict[str, str], *, handler: str, image_file: Optional[str]
    ) -> _Built:
        if not image_file:
            raise ConfigurationError(f"Container image function {name} needs an image build file")
        source_dir = self._require_handlers_dir()
        if not (source_dir / image_file).is_file():
            raise PackagingError(f"Image build file not found: {source_dir / image_file}")

        function = lambda_.DockerImageFunction(
            self._scope,
            name,
            code=lambda_.DockerImageCode.from_image_asset(str(source_dir), file=image_file),
            **self._common_props(name, role, environment),
        )
        return function, None
