"""
ADToolkit Exception Types

Custom exceptions for directory search and authentication errors.

"Not found" is deliberately absent from this module: an unresolved lookup
is an expected outcome and is reported as None / [] / False.
"""

from typing import Optional


class ADToolkitError(Exception):
    """Base exception for all ADToolkit errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidArgument(ADToolkitError, ValueError):
    """
    An argument could not be used to build a directory operation.

    Raised for identifiers of the wrong length, empty filters, unknown
    native operations and unparseable distinguished names.
    """

    pass


class DirectoryUnavailable(ADToolkitError):
    """
    The directory could not be reached.

    Covers socket, TLS and transport failures while opening a connection
    or executing an operation.
    """

    pass


class MalformedFilter(ADToolkitError):
    """
    The directory (or the client library) rejected a search filter.

    Filters are built internally, so this usually indicates a construction
    bug or an unescaped metacharacter in a caller-supplied value.
    """

    def __init__(self, message: str, search_filter: str = "", code: Optional[int] = None) -> None:
        super().__init__(message, code)
        self.search_filter = search_filter


class AuthenticationFailed(ADToolkitError):
    """
    The directory rejected a bind.

    Bad credentials or a disabled, locked or expired account. The text
    reported by the directory is preserved in ``reason``.
    """

    # LDAP result codes
    LDAP_INVALID_CREDENTIALS = 49
    LDAP_INAPPROPRIATE_AUTHENTICATION = 48
    LDAP_UNWILLING_TO_PERFORM = 53

    # Active Directory sub-codes reported as "data xxx" in the diagnostic text
    AD_SUBCODE_REASONS = {
        "525": "User not found",
        "52e": "Invalid credentials",
        "530": "Not permitted to logon at this time",
        "531": "Not permitted to logon at this workstation",
        "532": "Password expired",
        "533": "Account disabled",
        "701": "Account expired",
        "773": "User must reset password",
        "775": "Account locked out",
    }

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        reason: str = "",
        subcode: Optional[str] = None,
    ) -> None:
        super().__init__(message, code)
        self.reason = reason or message
        self.subcode = subcode

    @classmethod
    def from_diagnostic(
        cls, diagnostic: str, code: Optional[int] = None
    ) -> "AuthenticationFailed":
        """
        Build from the diagnostic text of a failed bind.

        Active Directory reports e.g.
        ``80090308: LdapErr: DSID-0C09044E, comment: AcceptSecurityContext error, data 775, v4563``
        where ``775`` identifies the account state.
        """
        subcode = None
        lowered = diagnostic.lower()
        marker = lowered.find("data ")
        if marker != -1:
            candidate = lowered[marker + 5 : marker + 8]
            if candidate in cls.AD_SUBCODE_REASONS:
                subcode = candidate

        if subcode is not None:
            message = cls.AD_SUBCODE_REASONS[subcode]
        else:
            message = diagnostic or "Invalid credentials"

        return cls(message, code=code, reason=diagnostic, subcode=subcode)
