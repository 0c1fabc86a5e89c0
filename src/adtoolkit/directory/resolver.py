"""
ADToolkit Identity Resolver

Look up principals by objectGUID, by logon name (sAMAccountName) or by
free text. Unresolved lookups return None / [] rather than raising.
"""

from __future__ import annotations

from typing import List, Optional

from adtoolkit.codec.identifiers import GuidLike, encode_guid_for_query
from adtoolkit.core.types import SearchSpec
from adtoolkit.directory.connection import DirectoryConnection, DirectoryEntry
from adtoolkit.directory.search import find_single, search
from adtoolkit.query.builder import (
    comprehensive_filter,
    guid_filter,
    sam_account_name_filter,
)

COMPREHENSIVE_PAGE_SIZE = 50
COMPREHENSIVE_ATTRIBUTES = ("cn",)


def get_object_by_guid(
    connection: DirectoryConnection, guid: GuidLike
) -> Optional[DirectoryEntry]:
    """
    Entry whose objectGUID is ``guid``, or None.

    Raises:
        InvalidArgument: ``guid`` given as bytes of the wrong length
    """
    return find_single(connection, guid_filter(encode_guid_for_query(guid)))


def get_object_by_sam_account_name(
    connection: DirectoryConnection, name: str
) -> Optional[DirectoryEntry]:
    """Entry whose sAMAccountName is ``name``, or None."""
    return find_single(connection, sam_account_name_filter(name))


def comprehensive_search(
    connection: DirectoryConnection,
    search_text: str,
    page_size: int = COMPREHENSIVE_PAGE_SIZE,
) -> List[DirectoryEntry]:
    """
    Search user accounts the way a person types a name.

    "jane" matches name, mail or sAMAccountName starting with "jane".
    "jane do" additionally matches givenname=jane* AND sn=do*. Only ``cn``
    is loaded on the returned entries.
    """
    spec = SearchSpec(
        filter=comprehensive_filter(search_text),
        page_size=page_size,
        attributes=COMPREHENSIVE_ATTRIBUTES,
    )
    return search(connection, spec)
