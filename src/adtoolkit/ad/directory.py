"""
ADToolkit Directory Facade

High-level access to one Active Directory: searches, identity lookups,
membership checks, timestamps and password resets over a single
connection.

Example:
    config = DirectoryConfig.from_address(
        "dc1.example.com/DC=example,DC=com",
        username="EXAMPLE\\\\svc_portal",
        password="secret",
        use_ssl=True,
    )
    with ADDirectory.connect(config) as directory:
        user = directory.get_object_by_sam_account_name("jdoe")
        if user and directory.is_member_of_group(user.dn, ["App-Admins"]):
            ...
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

import attrs

from adtoolkit.ad.accounts import set_password
from adtoolkit.codec.attributes import get_int64, get_string, get_strings, read_timestamp
from adtoolkit.codec.identifiers import GuidLike, ensure_protocol_prefix, is_secure_address
from adtoolkit.core.types import DirectoryTimestamp, SearchSpec, SortDirection
from adtoolkit.directory.connection import DirectoryConnection, DirectoryEntry, LDAP3Connection
from adtoolkit.directory.resolver import (
    COMPREHENSIVE_PAGE_SIZE,
    comprehensive_search,
    get_object_by_guid,
    get_object_by_sam_account_name,
)
from adtoolkit.directory.search import find_single, search
from adtoolkit.membership.engine import is_member_of_group
from adtoolkit.query.builder import DEFAULT_ATTRIBUTES, build_search_spec


# =============================================================================
# CONFIGURATION
# =============================================================================


@attrs.define
class DirectoryConfig:
    """
    Directory connection configuration.

    Attributes:
        address: LDAP:// or LDAPS:// address, optionally with a base DN
            (e.g. "LDAPS://dc1.example.com/DC=example,DC=com")
        username: Bind user (DN, UPN or DOMAIN\\user); None for anonymous
        password: Bind password
        use_ssl: Use LDAPS; the address prefix is normalized to match. Left
            unset it follows the prefix, and an unprefixed address uses LDAPS
        page_size: Default page size for paged searches
        connect_timeout: Socket connect/receive timeout in seconds
        verify_server_cert: Verify the LDAPS certificate
        ca_certs_file: CA bundle for certificate verification
    """

    address: str
    username: Optional[str] = None
    password: Optional[str] = attrs.field(default=None, repr=False)
    use_ssl: Optional[bool] = None
    page_size: int = 500
    connect_timeout: int = 10
    verify_server_cert: bool = True
    ca_certs_file: Optional[str] = None

    def __attrs_post_init__(self) -> None:
        address = self.address.strip()
        if self.use_ssl is None:
            self.use_ssl = is_secure_address(address) or "://" not in address
        self.address = ensure_protocol_prefix(address, self.use_ssl)

    @classmethod
    def from_address(
        cls,
        address: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: Optional[bool] = None,
        **kwargs: Any,
    ) -> "DirectoryConfig":
        """Create config from an address; see the use_ssl attribute."""
        return cls(address=address, username=username, password=password, use_ssl=use_ssl, **kwargs)


# =============================================================================
# DIRECTORY FACADE
# =============================================================================


@attrs.define
class ADDirectory:
    """
    All directory operations over one caller-owned connection.

    The connection may be any DirectoryConnection; connect() builds an
    ldap3-backed one from a DirectoryConfig. Nothing is cached between
    calls: every lookup goes to the directory.
    """

    connection: DirectoryConnection
    page_size: int = 500

    @classmethod
    def connect(cls, config: DirectoryConfig) -> "ADDirectory":
        """Build a deferred ldap3 connection from ``config``."""
        connection = LDAP3Connection.from_address(
            config.address,
            config.username,
            config.password,
            connect_timeout=config.connect_timeout,
            verify_server_cert=config.verify_server_cert,
            ca_certs_file=config.ca_certs_file,
        )
        return cls(connection=connection, page_size=config.page_size)

    # -------------------------------------------------------------------------
    # Searching
    # -------------------------------------------------------------------------

    def search(
        self,
        search_filter: str,
        max_results: int = 0,
        page_size: Optional[int] = None,
        order_by: Optional[str] = None,
        direction: SortDirection = SortDirection.ASCENDING,
        attributes: Iterable[str] = DEFAULT_ATTRIBUTES,
    ) -> List[DirectoryEntry]:
        """
        Search under the connection root.

        Args:
            search_filter: RFC 4515 filter
            max_results: Maximum entries, 0 for all
            page_size: Page size, defaults to the directory's page_size
            order_by: Attribute to sort on server-side
            direction: Sort direction
            attributes: Attributes to load
        """
        spec = build_search_spec(
            search_filter,
            size_limit=max_results,
            page_size=self.page_size if page_size is None else page_size,
            order_by=order_by,
            direction=direction,
            attributes=attributes,
        )
        return search(self.connection, spec)

    def search_spec(self, spec: SearchSpec) -> List[DirectoryEntry]:
        return search(self.connection, spec)

    def find_single(self, search_filter: str) -> Optional[DirectoryEntry]:
        return find_single(self.connection, search_filter)

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def get_object_by_guid(self, guid: GuidLike) -> Optional[DirectoryEntry]:
        return get_object_by_guid(self.connection, guid)

    def get_object_by_sam_account_name(self, name: str) -> Optional[DirectoryEntry]:
        return get_object_by_sam_account_name(self.connection, name)

    def comprehensive_search(
        self, search_text: str, page_size: int = COMPREHENSIVE_PAGE_SIZE
    ) -> List[DirectoryEntry]:
        return comprehensive_search(self.connection, search_text, page_size=page_size)

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def is_member_of_group(
        self, target_dn: str, groups: Iterable[str], transitive: bool = True
    ) -> bool:
        return is_member_of_group(self.connection, target_dn, groups, transitive)

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    @staticmethod
    def get_string(entry: DirectoryEntry, name: str) -> str:
        return get_string(entry, name)

    @staticmethod
    def get_strings(entry: DirectoryEntry, name: str) -> List[str]:
        return get_strings(entry, name)

    @staticmethod
    def get_int64(entry: DirectoryEntry, name: str) -> int:
        return get_int64(entry, name)

    @staticmethod
    def get_timestamp(entry: DirectoryEntry, name: str) -> DirectoryTimestamp:
        return read_timestamp(entry, name)

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def set_password(self, entry: DirectoryEntry, new_password: str) -> None:
        set_password(entry, new_password)

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> "ADDirectory":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
