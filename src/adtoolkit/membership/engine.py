"""
ADToolkit Membership Engine

Answers "is this principal a member of any of these groups?" with one
directory query per candidate group.

Nested membership is resolved by the directory itself through the
LDAP_MATCHING_RULE_IN_CHAIN extensible match; nothing here walks the
group graph.

Policy:
- Groups are tested in order and the first hit wins
- A group name that does not resolve is skipped, not fatal
- No resolvable group and "not a member" both yield False
"""

from __future__ import annotations

from typing import Iterable, Optional

import structlog

from adtoolkit.codec.attributes import get_string
from adtoolkit.core.types import MembershipQuery, SearchSpec
from adtoolkit.directory.connection import DirectoryConnection
from adtoolkit.directory.resolver import get_object_by_sam_account_name
from adtoolkit.directory.search import search
from adtoolkit.query.builder import membership_filter

logger = structlog.get_logger()


def resolve_group_dn(connection: DirectoryConnection, group_name: str) -> Optional[str]:
    """Distinguished name of the group with logon name ``group_name``, or None."""
    group = get_object_by_sam_account_name(connection, group_name)
    if group is None:
        return None
    return get_string(group, "distinguishedName") or group.dn


def _is_member_of(
    connection: DirectoryConnection, target_dn: str, group_name: str, transitive: bool
) -> bool:
    group_dn = resolve_group_dn(connection, group_name)
    if group_dn is None:
        logger.debug("group_unresolved", group=group_name)
        return False

    spec = SearchSpec(
        filter=membership_filter(target_dn, group_dn, transitive),
        size_limit=1,
    )
    return len(search(connection, spec)) > 0


def check_membership(connection: DirectoryConnection, query: MembershipQuery) -> bool:
    """
    True if ``query.target_dn`` is a member of at least one of ``query.groups``.

    Directory errors (DirectoryUnavailable, MalformedFilter) propagate;
    only unresolved group names are skipped.
    """
    found = any(
        _is_member_of(connection, query.target_dn, group, query.transitive)
        for group in query.groups
    )

    logger.debug(
        "membership_checked",
        target=query.target_dn,
        groups=list(query.groups),
        transitive=query.transitive,
        member=found,
    )
    return found


def is_member_of_group(
    connection: DirectoryConnection,
    target_dn: str,
    groups: Iterable[str],
    transitive: bool = True,
) -> bool:
    """
    Check whether ``target_dn`` belongs to any of ``groups``.

    Args:
        connection: Directory connection to query through
        target_dn: Distinguished name of the user/computer/group to check
        groups: Group sAMAccountNames
        transitive: Also count membership through nested groups

    Example:
        allowed = is_member_of_group(
            conn,
            "CN=Jane Doe,OU=Staff,DC=example,DC=com",
            ["App-Admins", "Domain Admins"],
        )
    """
    query = MembershipQuery(target_dn=target_dn, groups=groups, transitive=transitive)
    return check_membership(connection, query)
