"""Exception hierarchy for the delivery API provisioning pass.

Every error defined here is fatal: it propagates out of ``app.py`` before
``app.synth()`` runs, so no partial template reaches CloudFormation.
"""

from __future__ import annotations

from typing import Iterable


class ProvisioningError(Exception):
    """Base class for errors raised while building the resource graph."""


class ConfigurationError(ProvisioningError, ValueError):
    """A required configuration value is missing or invalid."""


class TemplateVariableError(ConfigurationError):
    """The API template references variables the mapping does not supply."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = sorted(set(missing))
        super().__init__(f"Template variables not provided: {', '.join(self.missing)}")


class TemplateParseError(ConfigurationError):
    """The rendered API template is not a valid JSON object."""


class PackagingError(ProvisioningError):
    """A function artifact for a variant without build fallback is unavailable."""
