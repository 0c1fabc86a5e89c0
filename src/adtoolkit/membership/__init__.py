"""
ADToolkit Membership Module

Direct and transitive group-membership checks.
"""

from adtoolkit.membership.engine import (
    check_membership,
    is_member_of_group,
    resolve_group_dn,
)

__all__ = [
    "check_membership",
    "is_member_of_group",
    "resolve_group_dn",
]
