"""Local-first bundling for the default-built function variant.

CDK asks the local strategy first; when it reports failure, CDK runs the
container command inside the Java bundling image instead. A failed local build
is therefore an expected path and is only logged.
"""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import jsii
from aws_cdk import BundlingOptions, BundlingOutput, ILocalBundling, aws_lambda as lambda_

from infrastructure.utils.logger import get_logger

BUILD_COMMAND = "./gradlew build"
BUILD_ARTIFACT = "build/distributions/lambda.zip"

logger = get_logger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a build attempt: an artifact path or a failure reason."""

    artifact: Optional[Path] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.artifact is not None

    @classmethod
    def built(cls, artifact: Path) -> "BuildResult":
        return cls(artifact=artifact)

    @classmethod
    def failed(cls, reason: str) -> "BuildResult":
        return cls(reason=reason)


def local_build_command(source_dir: Path, output_dir: str, *, build_command: str, artifact: str) -> list[str]:
    script = (
        f"cd {shlex.quote(str(source_dir))} && {build_command} "
        f"&& cp {shlex.quote(artifact)} {shlex.quote(output_dir)}"
    )
    return ["bash", "-c", script]


def container_build_command(*, build_command: str = BUILD_COMMAND, artifact: str = BUILD_ARTIFACT) -> list[str]:
    return ["/bin/sh", "-c", f"{build_command} && ls /asset-output/ && cp {artifact} /asset-output/"]


def attempt_local_build(
    source_dir: Path,
    output_dir: str,
    *,
    build_command: str = BUILD_COMMAND,
    artifact: str = BUILD_ARTIFACT,
) -> BuildResult:
    """Run the build in ``source_dir`` and copy the archive into ``output_dir``.

    Blocks until the child process exits. There is no timeout.
    """
    command = local_build_command(source_dir, output_dir, build_command=build_command, artifact=artifact)
    logger.info("Running: %s", " ".join(shlex.quote(part) for part in command))
    try:
        result = subprocess.run(command, check=False)
    except OSError as exc:
        return BuildResult.failed(f"could not start build: {exc}")

    logger.info("Build finished", extra={"returncode": result.returncode})
    if result.returncode != 0:
        return BuildResult.failed(f"build exited with code {result.returncode}")
    return BuildResult.built(Path(output_dir) / Path(artifact).name)


@jsii.implements(ILocalBundling)
class LocalBuild:
    """ILocalBundling strategy that builds the handlers on this machine."""

    def __init__(self, source_dir: Path, *, build_command: str = BUILD_COMMAND, artifact: str = BUILD_ARTIFACT) -> None:
        self.source_dir = source_dir
        self.build_command = build_command
        self.artifact = artifact

    def try_bundle(self, output_dir: str, *_options: Any, **_kwargs: Any) -> bool:
        # The container options CDK passes along are only used by the fallback.
        result = attempt_local_build(
            self.source_dir,
            output_dir,
            build_command=self.build_command,
            artifact=self.artifact,
        )
        if result.ok:
            logger.info("Local build succeeded: %s", result.artifact)
            return True
        logger.warning("Local build failed (%s); falling back to container build", result.reason)
        return False


def default_bundling_options(source_dir: Path) -> BundlingOptions:
    """Bundling options trying ``LocalBuild`` first, then the Java 11 build image."""
    return BundlingOptions(
        local=LocalBuild(source_dir),
        command=container_build_command(),
        image=lambda_.Runtime.JAVA_11.bundling_image,
        user="root",
        output_type=BundlingOutput.ARCHIVED,
    )
