"""
ADToolkit Core Module

Provides foundational types and exceptions used across the package.

Components:
- types: Value types (SearchSpec, GlobalIdentifier, DirectoryTimestamp, ...)
- exceptions: Custom exception types
"""

from adtoolkit.core.types import (
    AuthResult,
    DirectoryAddress,
    DirectoryTimestamp,
    GlobalIdentifier,
    MembershipQuery,
    SearchSpec,
    SortDirection,
    SortOrder,
)
from adtoolkit.core.exceptions import (
    ADToolkitError,
    AuthenticationFailed,
    DirectoryUnavailable,
    InvalidArgument,
    MalformedFilter,
)

__all__ = [
    # Types
    "AuthResult",
    "DirectoryAddress",
    "DirectoryTimestamp",
    "GlobalIdentifier",
    "MembershipQuery",
    "SearchSpec",
    "SortDirection",
    "SortOrder",
    # Exceptions
    "ADToolkitError",
    "AuthenticationFailed",
    "DirectoryUnavailable",
    "InvalidArgument",
    "MalformedFilter",
]
