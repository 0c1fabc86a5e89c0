"""
ADToolkit Codec Module

Pure conversions between directory-native formats and Python values.

Components:
- identifiers: GUID filter encoding, address prefixes, DN components
- timestamps: FILETIME interpretation with sentinel handling
- attributes: Typed reads of entry attributes
"""

from adtoolkit.codec.identifiers import (
    encode_guid_for_query,
    ensure_protocol_prefix,
    first_dn_component,
    parse_address,
    strip_protocol_prefix,
)
from adtoolkit.codec.timestamps import (
    interpret_timestamp,
    is_set_to_expire,
    to_filetime,
)

__all__ = [
    # Identifiers
    "encode_guid_for_query",
    "ensure_protocol_prefix",
    "first_dn_component",
    "parse_address",
    "strip_protocol_prefix",
    # Timestamps
    "interpret_timestamp",
    "is_set_to_expire",
    "to_filetime",
]
