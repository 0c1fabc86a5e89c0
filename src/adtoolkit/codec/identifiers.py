"""
ADToolkit Identifier Codec

Conversions between identifiers and the forms the directory expects in
filters and connection addresses.

- GUIDs are matched byte-for-byte: ``(objectGuid=\\C7\\78...)``
- Addresses carry exactly one ``LDAP://`` or ``LDAPS://`` prefix
"""

from __future__ import annotations

import uuid
from typing import Union

from ldap3.core.exceptions import LDAPInvalidDnError
from ldap3.utils.dn import parse_dn

from adtoolkit.core.exceptions import InvalidArgument
from adtoolkit.core.types import DirectoryAddress, GlobalIdentifier

LDAP_PREFIX = "LDAP://"
LDAPS_PREFIX = "LDAPS://"

GuidLike = Union[GlobalIdentifier, uuid.UUID, str, bytes, bytearray]


# =============================================================================
# GUID ENCODING
# =============================================================================


def encode_guid_for_query(guid: GuidLike) -> str:
    """
    Encode a GUID for an objectGuid equality filter.

    Each native byte becomes ``\\XX`` with two uppercase hex digits:

        16ae78c7-031a-48f9-a255-8183d7c84ee7
        -> \\C7\\78\\AE\\16\\1A\\03\\F9\\48\\A2\\55\\81\\83\\D7\\C8\\4E\\E7

    The first three groups appear reversed because the directory stores
    them little-endian.

    Raises:
        InvalidArgument: raw bytes that are not exactly 16 long
    """
    identifier = GlobalIdentifier.coerce(guid)
    return "".join(f"\\{octet:02X}" for octet in identifier.native_bytes)


# =============================================================================
# ADDRESS PREFIXES
# =============================================================================


def _detect_prefix(address: str) -> str:
    """Return the prefix ``address`` starts with (any case), or ''."""
    head = address[: len(LDAPS_PREFIX)].upper()
    if head.startswith(LDAPS_PREFIX):
        return LDAPS_PREFIX
    if head.startswith(LDAP_PREFIX):
        return LDAP_PREFIX
    return ""


def strip_protocol_prefix(address: str) -> str:
    """Remove a leading LDAP:// or LDAPS:// prefix, if present."""
    prefix = _detect_prefix(address)
    return address[len(prefix) :]


def ensure_protocol_prefix(address: str, use_secure: bool = False) -> str:
    """
    Give ``address`` exactly one correct prefix.

    A mismatched prefix is replaced rather than duplicated, and an existing
    prefix in any case is rewritten in its canonical uppercase form.

    Examples:
        ("DC=my,DC=domain,DC=com", True)  -> "LDAPS://DC=my,DC=domain,DC=com"
        ("ldaps://dc1.example.com", False) -> "LDAP://dc1.example.com"
        ("ldaps://dc1.example.com", True)  -> "LDAPS://dc1.example.com"
    """
    wanted = LDAPS_PREFIX if use_secure else LDAP_PREFIX

    # Too short to hold any prefix
    if len(address) < len(LDAP_PREFIX):
        return wanted + address

    current = _detect_prefix(address)
    return wanted + address[len(current) :]


def is_secure_address(address: str) -> bool:
    return _detect_prefix(address) == LDAPS_PREFIX


def parse_address(address: str) -> DirectoryAddress:
    """
    Split an ADSI-style address into host, base DN and transport.

    Examples:
        "LDAP://dc1.example.com/DC=example,DC=com"
            -> host="dc1.example.com", base_dn="DC=example,DC=com"
        "LDAPS://DC=example,DC=com"
            -> host="example.com", base_dn="DC=example,DC=com", use_ssl=True
        "LDAP://dc1.example.com"
            -> host="dc1.example.com", base_dn=""
    """
    use_ssl = is_secure_address(address)
    remainder = strip_protocol_prefix(address).strip()
    if not remainder:
        raise InvalidArgument(f"Address has no host or base DN: {address!r}")

    host, sep, base_dn = remainder.partition("/")
    if not sep and "=" in host:
        # Serverless binding: the path is the base DN itself
        base_dn, host = host, ""

    if not host:
        host = ".".join(
            value for attr, value, _ in _parse(base_dn) if attr.upper() == "DC"
        )
        if not host:
            raise InvalidArgument(f"Cannot derive a host from {address!r}")

    return DirectoryAddress(host=host, base_dn=base_dn, use_ssl=use_ssl)


# =============================================================================
# DISTINGUISHED NAMES
# =============================================================================


def _parse(dn: str):
    try:
        return parse_dn(dn)
    except LDAPInvalidDnError as e:
        raise InvalidArgument(f"Invalid distinguished name: {dn!r}") from e


def first_dn_component(dn: str) -> str:
    """
    Value of the first RDN of a DN or prefixed path.

    Example:
        "LDAP://CN=Jane Doe,OU=Staff,DC=example,DC=com" -> "Jane Doe"
    """
    components = _parse(strip_protocol_prefix(dn))
    if not components:
        raise InvalidArgument(f"Empty distinguished name: {dn!r}")
    return components[0][1]
