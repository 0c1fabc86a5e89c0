"""
ADToolkit Core Types

Value types shared by the query builder, the search gateway, the identity
resolver and the membership engine.

Design Principles:
- Immutable: All types use frozen attrs
- Validated: Type constraints enforced at construction
- Per-call: Nothing here is cached or shared between operations
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union

import attrs
from attrs import field, validators

from adtoolkit.core.exceptions import InvalidArgument


# =============================================================================
# CONSTANTS
# =============================================================================

# Raw FILETIME sentinels meaning "never expires" / "not set"
TIMESTAMP_NEVER = 0x7FFFFFFFFFFFFFFF
TIMESTAMP_NOT_SET = 0

GUID_LENGTH = 16


# =============================================================================
# ENUMS
# =============================================================================


class SortDirection(Enum):
    """Server-side sort direction."""

    ASCENDING = "ascending"
    DESCENDING = "descending"


# =============================================================================
# SEARCH TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class SortOrder:
    """Attribute and direction for server-side sorting."""

    attribute: str = field(
        default="name",
        validator=[validators.instance_of(str), validators.min_len(1)],
    )
    direction: SortDirection = field(
        default=SortDirection.ASCENDING,
        validator=validators.instance_of(SortDirection),
    )

    @property
    def reverse(self) -> bool:
        return self.direction is SortDirection.DESCENDING


@attrs.define(frozen=True, slots=True)
class SearchSpec:
    """
    A fully described directory search.

    Attributes:
        filter: RFC 4515 filter string
        size_limit: Maximum entries to return, 0 for no limit
        page_size: Page size for paged results, 0 to disable paging
        sort: Optional server-side ordering
        attributes: Attribute names to load for each entry

    INVARIANT: filter is non-empty, size_limit >= 0, page_size >= 0
    """

    filter: str = field(validator=validators.instance_of(str))
    size_limit: int = field(default=0, validator=validators.instance_of(int))
    page_size: int = field(default=0, validator=validators.instance_of(int))
    sort: Optional[SortOrder] = field(
        default=None,
        validator=validators.optional(validators.instance_of(SortOrder)),
    )
    attributes: Tuple[str, ...] = field(default=("*",), converter=tuple)

    def __attrs_post_init__(self) -> None:
        if not self.filter.strip():
            raise InvalidArgument("Search filter must not be empty")
        if self.size_limit < 0:
            raise InvalidArgument(f"size_limit must be >= 0, got {self.size_limit}")
        if self.page_size < 0:
            raise InvalidArgument(f"page_size must be >= 0, got {self.page_size}")

    @property
    def is_paged(self) -> bool:
        """True when results are fetched in pages rather than one response."""
        return self.page_size > 0

    @property
    def is_ordered(self) -> bool:
        return self.sort is not None


# =============================================================================
# IDENTITY TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class GlobalIdentifier:
    """
    A directory object GUID (objectGUID).

    The directory stores the 16 bytes in the native Windows layout: the
    first three fields (4, 2 and 2 bytes) are little-endian, the last 8
    bytes are in display order. ``uuid.UUID.bytes_le`` is exactly that
    layout.
    """

    value: uuid.UUID = field(validator=validators.instance_of(uuid.UUID))

    @classmethod
    def parse(cls, text: str) -> GlobalIdentifier:
        """
        Parse the display form.

        Examples:
            "16ae78c7-031a-48f9-a255-8183d7c84ee7"
            "{16AE78C7-031A-48F9-A255-8183D7C84EE7}"
        """
        try:
            return cls(uuid.UUID(text.strip()))
        except ValueError as e:
            raise InvalidArgument(f"Invalid GUID string: {text!r}") from e

    @classmethod
    def from_native_bytes(cls, data: bytes) -> GlobalIdentifier:
        """Build from the 16 raw bytes as stored in the directory."""
        if len(data) != GUID_LENGTH:
            raise InvalidArgument(
                f"GUID must be exactly {GUID_LENGTH} bytes, got {len(data)}"
            )
        return cls(uuid.UUID(bytes_le=bytes(data)))

    @classmethod
    def coerce(
        cls, value: Union[GlobalIdentifier, uuid.UUID, str, bytes, bytearray]
    ) -> GlobalIdentifier:
        """Accept any of the supported identifier representations."""
        if isinstance(value, GlobalIdentifier):
            return value
        if isinstance(value, uuid.UUID):
            return cls(value)
        if isinstance(value, (bytes, bytearray)):
            return cls.from_native_bytes(bytes(value))
        if isinstance(value, str):
            return cls.parse(value)
        raise InvalidArgument(f"Unsupported GUID type: {type(value).__name__}")

    @property
    def native_bytes(self) -> bytes:
        return self.value.bytes_le

    def __str__(self) -> str:
        return str(self.value)


@attrs.define(frozen=True, slots=True)
class DirectoryAddress:
    """
    Parsed form of an ADSI-style address.

    ``LDAPS://dc1.example.com/DC=example,DC=com`` becomes
    host="dc1.example.com", base_dn="DC=example,DC=com", use_ssl=True.
    """

    host: str
    base_dn: str = ""
    use_ssl: bool = False


# =============================================================================
# TIMESTAMP TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class DirectoryTimestamp:
    """
    A FILETIME attribute value (accountExpires, pwdLastSet, lastLogon...).

    INVARIANT: as_datetime is present iff raw is not a sentinel
    (0 = not set, 2**63-1 = never expires)
    """

    raw: int
    is_set_to_expire: bool
    as_datetime: Optional[datetime] = None

    def __attrs_post_init__(self) -> None:
        if self.is_set_to_expire != (self.as_datetime is not None):
            raise ValueError("as_datetime must be present iff is_set_to_expire")

    @property
    def never_expires(self) -> bool:
        return self.raw == TIMESTAMP_NEVER


# =============================================================================
# MEMBERSHIP TYPES
# =============================================================================


def _group_names(groups) -> Tuple[str, ...]:
    # A bare string would otherwise become one group per character
    if isinstance(groups, (str, bytes)):
        raise InvalidArgument(f"groups must be a collection of names, not {groups!r}")
    return tuple(groups)


@attrs.define(frozen=True, slots=True)
class MembershipQuery:
    """
    Is ``target_dn`` a member of any of ``groups``?

    Attributes:
        target_dn: Distinguished name of the principal being checked
        groups: Group logon names (sAMAccountName), checked in order
        transitive: Count nested membership (LDAP_MATCHING_RULE_IN_CHAIN)
    """

    target_dn: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    groups: Tuple[str, ...] = field(converter=_group_names)
    transitive: bool = True


# =============================================================================
# RESULT TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class AuthResult:
    """
    Result of a credential check.

    Attributes:
        success: Whether the bind succeeded
        username: The bound username (if success)
        address: Directory address the bind was attempted against
        error_code: LDAP result code (if failure)
        error_message: Human-readable reason (if failure)
    """

    success: bool
    username: Optional[str] = None
    address: str = ""
    error_code: Optional[int] = None
    error_message: str = ""

    def __attrs_post_init__(self) -> None:
        if self.success:
            if not self.username:
                raise ValueError("Successful auth must have username")
        else:
            if not self.error_message:
                raise ValueError("Failed auth must have error_message")

    @classmethod
    def success_result(cls, username: str, address: str = "") -> AuthResult:
        """Create a successful authentication result."""
        return cls(success=True, username=username, address=address)

    @classmethod
    def failure_result(
        cls, error_message: str, error_code: Optional[int] = None, address: str = ""
    ) -> AuthResult:
        """Create a failed authentication result."""
        return cls(
            success=False,
            address=address,
            error_message=error_message,
            error_code=error_code,
        )
