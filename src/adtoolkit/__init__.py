"""
ADToolkit - Active Directory search, authentication and membership helpers

Resolve identities, validate credentials and answer "is this principal a
member of that group, directly or through nesting?" without writing LDAP
filter syntax by hand.

Example Usage:
    from adtoolkit import ADDirectory, Authenticator, DirectoryConfig

    auth = Authenticator()
    if auth.validate_credentials("LDAPS://dc1.example.com", "jdoe@example.com", "secret"):
        config = DirectoryConfig.from_address(
            "LDAPS://dc1.example.com/DC=example,DC=com",
            username="jdoe@example.com",
            password="secret",
        )
        with ADDirectory.connect(config) as directory:
            user = directory.get_object_by_sam_account_name("jdoe")
            allowed = directory.is_member_of_group(user.dn, ["App-Admins"])
"""

from adtoolkit.ad.authenticator import Authenticator
from adtoolkit.ad.directory import ADDirectory, DirectoryConfig
from adtoolkit.codec.identifiers import (
    encode_guid_for_query,
    ensure_protocol_prefix,
    strip_protocol_prefix,
)
from adtoolkit.codec.timestamps import interpret_timestamp
from adtoolkit.core.exceptions import (
    ADToolkitError,
    AuthenticationFailed,
    DirectoryUnavailable,
    InvalidArgument,
    MalformedFilter,
)
from adtoolkit.core.types import (
    AuthResult,
    DirectoryTimestamp,
    GlobalIdentifier,
    MembershipQuery,
    SearchSpec,
    SortDirection,
)
from adtoolkit.membership.engine import is_member_of_group

__version__ = "0.1.0"

__all__ = [
    # Main API
    "ADDirectory",
    "Authenticator",
    "DirectoryConfig",
    "is_member_of_group",
    # Codecs
    "encode_guid_for_query",
    "ensure_protocol_prefix",
    "strip_protocol_prefix",
    "interpret_timestamp",
    # Types
    "AuthResult",
    "DirectoryTimestamp",
    "GlobalIdentifier",
    "MembershipQuery",
    "SearchSpec",
    "SortDirection",
    # Exceptions
    "ADToolkitError",
    "AuthenticationFailed",
    "DirectoryUnavailable",
    "InvalidArgument",
    "MalformedFilter",
    # Metadata
    "__version__",
]
