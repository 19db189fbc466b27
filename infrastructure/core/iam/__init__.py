"""IAM helper constructs and utilities for the delivery API."""

from . import utils  # noqa: F401
from .db_access_roles import PolicyStatementSpec, RoleFactory, RoleSpec

__all__ = ["utils", "PolicyStatementSpec", "RoleFactory", "RoleSpec"]
