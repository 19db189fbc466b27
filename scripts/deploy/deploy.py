#!/usr/bin/env python3
"""Deployment script for the delivery API CDK application."""

import argparse
import os
import shlex
import subprocess
import sys
from typing import Dict, List, Mapping, Optional, Sequence

# CLI flag -> CDK context key
CONTEXT_FLAGS: Dict[str, str] = {
    "db_endpoint": "dbEndpoint",
    "db_proxy_endpoint": "dbProxyEndpoint",
    "db_admin_secret_arn": "dbAdminSecretArn",
    "db_user_secret_arn": "dbUserSecretArn",
    "db_vpc_id": "dbVpcId",
    "db_security_group_id": "dbSecurityGroupId",
    "alert_email": "alertEmail",
    "handlers_dir": "handlersDir",
}


def run_command(
    command: Sequence[str], *, check: bool = True, env: Optional[Mapping[str, str]] = None
) -> subprocess.CompletedProcess[str]:
    """Execute a subprocess without shell interpolation."""

    printable = " ".join(shlex.quote(part) for part in command)
    print(f"Running: {printable}")

    result = subprocess.run(command, capture_output=True, text=True, env=env, check=False)

    if check and result.returncode != 0:
        print(f"Command failed with return code {result.returncode}")
        if result.stdout:
            print(f"stdout: {result.stdout}")
        if result.stderr:
            print(f"stderr: {result.stderr}")
        sys.exit(result.returncode)

    return result


def context_arguments(environment: str, values: Mapping[str, Optional[str]]) -> List[str]:
    """Translate CLI values into ``--context key=value`` pairs, skipping unset ones."""
    args = ["--context", f"environment={environment}"]
    for flag, context_key in CONTEXT_FLAGS.items():
        value = values.get(flag)
        if value:
            args.extend(["--context", f"{context_key}={value}"])
    return args


def deploy_stack(environment: str, context: List[str]) -> None:
    """Bootstrap if needed and deploy the delivery API stack."""
    print(f"Deploying to environment: {environment}")

    exec_env = dict(os.environ)

    print("Checking CDK bootstrap status...")
    run_command(["cdk", "bootstrap", *context], check=False, env=exec_env)

    deploy_cmd = ["cdk", "deploy", f"DeliveryApi-{environment}", *context, "--require-approval", "never"]
    run_command(deploy_cmd, env=exec_env)
    print(f"Deployment to {environment} completed successfully!")


def main():
    parser = argparse.ArgumentParser(description="Deploy the delivery API CDK stack")
    parser.add_argument(
        "--environment", "-e", choices=["dev", "staging", "prod"], default="dev", help="Target environment"
    )
    for flag in CONTEXT_FLAGS:
        parser.add_argument(f"--{flag.replace('_', '-')}", dest=flag)
    parser.add_argument("--skip-install", action="store_true", help="Do not install the project first")

    args = parser.parse_args()

    if not args.skip_install:
        print("Installing Python dependencies...")
        run_command([sys.executable, "-m", "pip", "install", "-e", "."])

    deploy_stack(args.environment, context_arguments(args.environment, vars(args)))


if __name__ == "__main__":
    main()
