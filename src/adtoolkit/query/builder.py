"""
ADToolkit Query Builder

Builds RFC 4515 filter strings and SearchSpec values.

Values are substituted into filter templates verbatim. Wildcards in
caller-supplied values are therefore honoured, and so are parentheses and
backslashes: callers passing untrusted input should run it through
escape_filter_value() first.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple

from ldap3.utils.conv import escape_filter_chars
from pyasn1.codec.ber import encoder
from pyasn1.type import namedtype, tag, univ

from adtoolkit.core.types import SearchSpec, SortDirection, SortOrder

# =============================================================================
# CONSTANTS
# =============================================================================

# sAMAccountType of normal user accounts (SAM_USER_OBJECT)
SAM_USER_OBJECT = 805306368

# LDAP_MATCHING_RULE_IN_CHAIN: walks nested membership server-side
MATCHING_RULE_IN_CHAIN = "1.2.840.113556.1.4.1941"

# Server-side sort request control (RFC 2891)
SORT_CONTROL_OID = "1.2.840.113556.1.4.473"

DEFAULT_ATTRIBUTES: Tuple[str, ...] = ("*",)


# =============================================================================
# FILTERS
# =============================================================================


def guid_filter(encoded_guid: str) -> str:
    """Equality filter on objectGuid; ``encoded_guid`` from encode_guid_for_query()."""
    return "(objectGuid={0})".format(encoded_guid)


def sam_account_name_filter(name: str) -> str:
    return "(sAMAccountName={0})".format(name)


def attribute_present_filter(name: str) -> str:
    return "({0}=*)".format(name)


def membership_filter(target_dn: str, group_dn: str, transitive: bool = True) -> str:
    """
    Match ``target_dn`` only if it is a member of ``group_dn``.

    With ``transitive`` the memberOf test uses LDAP_MATCHING_RULE_IN_CHAIN,
    so membership through nested groups counts.
    """
    member_attr = (
        "memberOf:{0}:".format(MATCHING_RULE_IN_CHAIN) if transitive else "memberOf"
    )
    return "(&(distinguishedName={0})({1}={2}))".format(target_dn, member_attr, group_dn)


def comprehensive_filter(search_text: str) -> str:
    """
    Free-text user search, similar to "Find" in AD Users and Computers.

    "jane do" matches givenname=jane* AND sn=do*, or a name, mail or
    sAMAccountName starting with "jane do". A single word only uses the
    prefix matches.
    """
    search_text = search_text.strip()
    tokens = search_text.split()

    if len(tokens) > 1:
        return (
            "(&(sAMAccountType={0})(|(&(givenname={1}*)(sn={2}*))"
            "(name={3}*)(mail={3}*)(sAMAccountName={3}*)))"
        ).format(SAM_USER_OBJECT, tokens[0], " ".join(tokens[1:]), search_text)

    return (
        "(&(sAMAccountType={0})(|(name={1}*)(mail={1}*)(sAMAccountName={1}*)))"
    ).format(SAM_USER_OBJECT, search_text)


def escape_filter_value(value: str) -> str:
    """
    Escape ``* ( ) \\ NUL`` per RFC 4515.

    Not applied by any builder in this module.
    """
    return escape_filter_chars(value)


# =============================================================================
# SEARCH SPECS
# =============================================================================


def build_search_spec(
    template: str,
    *values: Any,
    size_limit: int = 0,
    page_size: int = 0,
    order_by: Optional[str] = None,
    direction: SortDirection = SortDirection.ASCENDING,
    attributes: Iterable[str] = DEFAULT_ATTRIBUTES,
) -> SearchSpec:
    """
    Substitute ``values`` into ``template`` and wrap it in a SearchSpec.

    Args:
        template: Filter with positional placeholders, e.g. "(cn={0})"
        values: Values for the placeholders (not escaped)
        size_limit: Maximum results, 0 for no limit
        page_size: Page size; with size_limit=0 all results are paged in
        order_by: Attribute to sort on server-side, None for directory order
        direction: Sort direction when order_by is given
        attributes: Attributes to load on each entry

    Raises:
        InvalidArgument: empty filter or negative limits
    """
    sort = SortOrder(attribute=order_by, direction=direction) if order_by else None
    return SearchSpec(
        filter=template.format(*values) if values else template,
        size_limit=size_limit,
        page_size=page_size,
        sort=sort,
        attributes=tuple(attributes),
    )


# =============================================================================
# SORT CONTROL
# =============================================================================


class SortKey(univ.Sequence):
    """
    RFC 2891 SortKey.

    SortKey ::= SEQUENCE {
        attributeType   AttributeDescription,
        orderingRule    [0] MatchingRuleId OPTIONAL,
        reverseOrder    [1] BOOLEAN DEFAULT FALSE }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("attributeType", univ.OctetString()),
        namedtype.OptionalNamedType(
            "orderingRule",
            univ.OctetString().subtype(
                implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 0)
            ),
        ),
        namedtype.DefaultedNamedType(
            "reverseOrder",
            univ.Boolean(False).subtype(
                implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 1)
            ),
        ),
    )


class SortKeyList(univ.SequenceOf):
    componentType = SortKey()


def sort_control(order: SortOrder, criticality: bool = False) -> Tuple[str, bool, bytes]:
    """
    Build a server-side sort request control in ldap3's (oid, criticality,
    value) form.
    """
    sort_key = SortKey()
    sort_key.setComponentByName("attributeType", order.attribute.encode("utf-8"))
    if order.reverse:
        sort_key.setComponentByName("reverseOrder", True)

    sort_key_list = SortKeyList()
    sort_key_list.append(sort_key)

    return (SORT_CONTROL_OID, criticality, encoder.encode(sort_key_list))
