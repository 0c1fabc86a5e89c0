"""
ADToolkit Directory Module

Components:
- connection: DirectoryConnection / DirectoryEntry interfaces and the
  ldap3 implementation
- search: Search gateway (search, find_single)
- resolver: Identity lookups by GUID, logon name or free text
"""

from adtoolkit.directory.connection import (
    DirectoryConnection,
    DirectoryEntry,
    LDAP3Connection,
    LDAP3Entry,
)
from adtoolkit.directory.resolver import (
    comprehensive_search,
    get_object_by_guid,
    get_object_by_sam_account_name,
)
from adtoolkit.directory.search import find_single, search

__all__ = [
    # Interfaces
    "DirectoryConnection",
    "DirectoryEntry",
    # ldap3 implementation
    "LDAP3Connection",
    "LDAP3Entry",
    # Gateway
    "search",
    "find_single",
    # Resolver
    "comprehensive_search",
    "get_object_by_guid",
    "get_object_by_sam_account_name",
]
