"""
ADToolkit Query Module

Filter strings, search specifications and request controls.
"""

from adtoolkit.query.builder import (
    MATCHING_RULE_IN_CHAIN,
    SAM_USER_OBJECT,
    SORT_CONTROL_OID,
    attribute_present_filter,
    build_search_spec,
    comprehensive_filter,
    escape_filter_value,
    guid_filter,
    membership_filter,
    sam_account_name_filter,
    sort_control,
)

__all__ = [
    "MATCHING_RULE_IN_CHAIN",
    "SAM_USER_OBJECT",
    "SORT_CONTROL_OID",
    "attribute_present_filter",
    "build_search_spec",
    "comprehensive_filter",
    "escape_filter_value",
    "guid_filter",
    "membership_filter",
    "sam_account_name_filter",
    "sort_control",
]
