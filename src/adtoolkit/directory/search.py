"""
ADToolkit Directory Search Gateway

Runs a SearchSpec against a DirectoryConnection and materializes the
results.

Searches are eager: the full result list (up to the size limit) is
fetched before returning. Zero matches is an empty list, never an error.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from adtoolkit.core.types import SearchSpec
from adtoolkit.directory.connection import DirectoryConnection, DirectoryEntry

logger = structlog.get_logger()


def search(connection: DirectoryConnection, spec: SearchSpec) -> List[DirectoryEntry]:
    """
    Execute ``spec`` under the connection's root.

    size_limit=0 with a page_size fetches every page; size_limit > 0
    truncates. Ordering is whatever the directory returns unless
    spec.sort is set.

    Raises:
        DirectoryUnavailable: the search could not be executed
        MalformedFilter: the filter was rejected
    """
    entries = list(
        connection.search(
            spec.filter,
            size_limit=spec.size_limit,
            page_size=spec.page_size,
            sort=spec.sort,
            attributes=spec.attributes,
        )
    )

    if spec.size_limit and len(entries) > spec.size_limit:
        entries = entries[: spec.size_limit]

    logger.debug(
        "search_complete",
        filter=spec.filter,
        size_limit=spec.size_limit,
        page_size=spec.page_size,
        ordered=spec.is_ordered,
        count=len(entries),
    )
    return entries


def find_single(
    connection: DirectoryConnection, search_filter: str
) -> Optional[DirectoryEntry]:
    """
    First entry matching ``search_filter``, or None.

    When several entries match, which one is returned depends on the
    directory's ordering; pass a filter on a unique attribute if that
    matters.
    """
    entries = search(connection, SearchSpec(filter=search_filter, size_limit=1))
    return entries[0] if entries else None
