"""
ADToolkit Directory Connection

The narrow interface the rest of the package talks to, and an ldap3
implementation of it.

A DirectoryConnection exposes:
- root_dn: the base every search runs under
- search(): filtered, paged, sorted subtree search returning entries
- bind(): open the connection and authenticate now
- close()

A DirectoryEntry exposes multi-valued attribute read/write, commit() to
persist writes and invoke() for directory-native operations such as
SetPassword.

Connections are deferred: constructing one never contacts the server.
The first bind() (directly, or through search()) opens the socket and
binds, and that is where bad credentials surface.
"""

from __future__ import annotations

import ssl
from typing import Any, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

import attrs
import structlog
from ldap3 import BASE, MODIFY_REPLACE, NONE, SUBTREE, SYNC, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException, LDAPInvalidFilterError
from ldap3.utils.ciDict import CaseInsensitiveDict

from adtoolkit.codec.identifiers import parse_address
from adtoolkit.core.exceptions import (
    ADToolkitError,
    AuthenticationFailed,
    DirectoryUnavailable,
    InvalidArgument,
    MalformedFilter,
)
from adtoolkit.core.types import SortOrder
from adtoolkit.query.builder import DEFAULT_ATTRIBUTES, sort_control

logger = structlog.get_logger()


# =============================================================================
# LDAP RESULT CODES
# =============================================================================

RESULT_SUCCESS = 0
RESULT_SIZE_LIMIT_EXCEEDED = 4
RESULT_INVALID_CREDENTIALS = 49
RESULT_BUSY = 51
RESULT_UNAVAILABLE = 52
RESULT_FILTER_ERROR = 87

_UNAVAILABLE_RESULTS = frozenset({RESULT_BUSY, RESULT_UNAVAILABLE})

DEFAULT_NAMING_CONTEXT = "defaultNamingContext"


# =============================================================================
# INTERFACES
# =============================================================================


@runtime_checkable
class DirectoryEntry(Protocol):
    """One directory object, borrowed for the duration of a call."""

    dn: str

    def get(self, name: str) -> List[Any]:
        """Values of ``name`` (empty list when absent)."""
        ...

    def raw(self, name: str) -> List[bytes]:
        """Undecoded values of ``name``."""
        ...

    def set(self, name: str, values: Any) -> None:
        """Stage a replacement of ``name``; persisted by commit()."""
        ...

    def commit(self) -> None:
        ...

    def invoke(self, operation: str, *args: Any) -> Any:
        """Run a directory-native operation on this entry."""
        ...


@runtime_checkable
class DirectoryConnection(Protocol):
    """A caller-owned handle to the directory."""

    root_dn: str

    def bind(self) -> Any:
        """Bind if not already bound and return the underlying client handle."""
        ...

    def search(
        self,
        search_filter: str,
        *,
        size_limit: int = 0,
        page_size: int = 0,
        sort: Optional[SortOrder] = None,
        attributes: Iterable[str] = DEFAULT_ATTRIBUTES,
    ) -> List[DirectoryEntry]:
        ...

    def close(self) -> None:
        ...


# =============================================================================
# LDAP3 ENTRY
# =============================================================================


# Attributes whose values are octet strings, never text
BINARY_ATTRIBUTES = frozenset(
    name.lower()
    for name in (
        "objectGUID",
        "objectSid",
        "sIDHistory",
        "tokenGroups",
        "msExchMailboxGuid",
        "msExchMasterAccountSid",
        "msDS-GenerationId",
        "nTSecurityDescriptor",
        "thumbnailPhoto",
        "jpegPhoto",
        "userCertificate",
        "cACertificate",
        "logonHours",
        "unicodePwd",
    )
)


def is_binary_attribute(name: str) -> bool:
    return name.lower() in BINARY_ATTRIBUTES or name.lower().endswith(";binary")


def _decode(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return bytes(value)
    return value


def _encode(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return str(value).encode("utf-8")


def _as_list(values: Any) -> List[Any]:
    if values is None:
        return []
    if isinstance(values, (list, tuple, set, frozenset)):
        return list(values)
    return [values]


@attrs.define
class LDAP3Entry:
    """
    A search result bound back to the connection it came from.

    Values are kept as the raw bytes the server sent. get() returns
    BINARY_ATTRIBUTES (objectGUID, objectSid...) as bytes whatever their
    content, and decodes everything else as UTF-8 where possible. Writes
    are staged until commit().
    """

    connection: "LDAP3Connection"
    dn: str
    _raw_attributes: CaseInsensitiveDict = attrs.field(factory=CaseInsensitiveDict)
    _changes: CaseInsensitiveDict = attrs.field(factory=CaseInsensitiveDict)

    @classmethod
    def from_response(cls, connection: "LDAP3Connection", response: Mapping[str, Any]) -> "LDAP3Entry":
        """Build from one ldap3 searchResEntry response dict."""
        raw = response.get("raw_attributes") or response.get("attributes") or {}
        attributes = CaseInsensitiveDict()
        for name, values in raw.items():
            attributes[name] = [_encode(v) for v in _as_list(values)]
        return cls(connection=connection, dn=response.get("dn", ""), raw_attributes=attributes)

    @property
    def attribute_names(self) -> List[str]:
        return list(self._raw_attributes.keys())

    def raw(self, name: str) -> List[bytes]:
        if name in self._changes:
            return [_encode(v) for v in self._changes[name]]
        return list(self._raw_attributes.get(name, []))

    def get(self, name: str) -> List[Any]:
        if name in self._changes:
            return list(self._changes[name])
        values = self._raw_attributes.get(name, [])
        if is_binary_attribute(name):
            return list(values)
        return [_decode(v) for v in values]

    def set(self, name: str, values: Any) -> None:
        self._changes[name] = _as_list(values)

    @property
    def has_changes(self) -> bool:
        return bool(self._changes)

    def commit(self) -> None:
        """Write staged attribute replacements to the directory."""
        if not self._changes:
            return

        native = self.connection.bind()
        changes = {
            name: [(MODIFY_REPLACE, list(values))] for name, values in self._changes.items()
        }
        try:
            succeeded = native.modify(self.dn, changes)
        except LDAPException as e:
            raise DirectoryUnavailable(f"Modify of {self.dn} failed: {e}") from e

        if not succeeded:
            raise self.connection.error_from_result(native.result)

        for name, values in self._changes.items():
            self._raw_attributes[name] = [_encode(v) for v in values]
        self._changes = CaseInsensitiveDict()

        logger.debug("entry_committed", dn=self.dn, attributes=list(changes))

    def invoke(self, operation: str, *args: Any) -> Any:
        """
        Run a native operation on this entry.

        Supported:
            invoke("SetPassword", new_password)
            invoke("ChangePassword", old_password, new_password)

        Both map to the Microsoft password-modify operation (unicodePwd).
        """
        native = self.connection.bind()
        op = operation.lower()

        try:
            if op == "setpassword" and len(args) == 1:
                succeeded = native.extend.microsoft.modify_password(self.dn, args[0])
            elif op == "changepassword" and len(args) == 2:
                succeeded = native.extend.microsoft.modify_password(
                    self.dn, args[1], old_password=args[0]
                )
            else:
                raise InvalidArgument(
                    f"Unsupported native operation {operation!r} with {len(args)} argument(s)"
                )
        except LDAPException as e:
            raise DirectoryUnavailable(f"{operation} on {self.dn} failed: {e}") from e

        if not succeeded:
            raise self.connection.error_from_result(native.result)

        logger.info("entry_operation_invoked", dn=self.dn, operation=operation)
        return succeeded


# =============================================================================
# LDAP3 CONNECTION
# =============================================================================


@attrs.define
class LDAP3Connection:
    """
    DirectoryConnection over an ldap3 Server.

    Example:
        conn = LDAP3Connection.from_address(
            "LDAPS://dc1.example.com/DC=example,DC=com",
            username="EXAMPLE\\\\svc_reader",
            password="secret",
        )
        entries = conn.search("(sAMAccountName=jdoe)", size_limit=1)
        conn.close()
    """

    server: Server
    root_dn: str = ""
    user: Optional[str] = None
    password: Optional[str] = attrs.field(default=None, repr=False)
    client_strategy: str = SYNC
    receive_timeout: Optional[int] = None

    _connection: Optional[Connection] = None
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @classmethod
    def from_address(
        cls,
        address: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        connect_timeout: int = 10,
        verify_server_cert: bool = True,
        ca_certs_file: Optional[str] = None,
        client_strategy: str = SYNC,
    ) -> "LDAP3Connection":
        """
        Build a deferred connection from an LDAP:// or LDAPS:// address.

        Nothing is sent to the server until bind() is first called. A
        host-only address leaves root_dn empty until then.
        """
        parsed = parse_address(address)

        tls = None
        if parsed.use_ssl:
            tls = Tls(
                validate=ssl.CERT_REQUIRED if verify_server_cert else ssl.CERT_NONE,
                ca_certs_file=ca_certs_file,
            )

        server = Server(
            parsed.host,
            use_ssl=parsed.use_ssl,
            tls=tls,
            get_info=NONE,
            connect_timeout=connect_timeout,
        )
        return cls(
            server=server,
            root_dn=parsed.base_dn,
            user=username,
            password=password,
            client_strategy=client_strategy,
            receive_timeout=connect_timeout,
        )

    @property
    def is_bound(self) -> bool:
        return self._connection is not None and bool(self._connection.bound)

    def bind(self) -> Connection:
        """
        Bind now if not yet bound and return the ldap3 Connection.

        When no base DN was configured, the directory's
        defaultNamingContext becomes root_dn.

        Raises:
            AuthenticationFailed: the server rejected the credentials
            DirectoryUnavailable: the server could not be reached
        """
        if self._connection is None:
            self._connection = self._bind()
            if not self.root_dn:
                self.root_dn = self._default_naming_context(self._connection)
        return self._connection

    @property
    def native(self) -> Connection:
        """The bound ldap3 Connection; see bind()."""
        return self.bind()

    def _default_naming_context(self, connection: Connection) -> str:
        """Read defaultNamingContext from the RootDSE, or '' if it is not published."""
        try:
            connection.search(
                search_base="",
                search_filter="(objectClass=*)",
                search_scope=BASE,
                attributes=[DEFAULT_NAMING_CONTEXT],
            )
        except LDAPException as e:
            raise DirectoryUnavailable(f"Cannot read RootDSE from {self.server}: {e}") from e

        for response in connection.response or []:
            if response.get("type") != "searchResEntry":
                continue
            entry = LDAP3Entry.from_response(self, response)
            values = entry.get(DEFAULT_NAMING_CONTEXT)
            if values:
                self._logger.debug("root_dn_discovered", server=str(self.server), root_dn=values[0])
                return values[0]

        self._logger.warning("root_dn_unknown", server=str(self.server))
        return ""

    def _bind(self) -> Connection:
        connection = Connection(
            self.server,
            user=self.user,
            password=self.password,
            client_strategy=self.client_strategy,
            receive_timeout=self.receive_timeout,
            raise_exceptions=False,
        )

        try:
            bound = connection.bind()
        except LDAPException as e:
            self._logger.warning("bind_unreachable", server=str(self.server), error=str(e))
            raise DirectoryUnavailable(f"Cannot reach directory {self.server}: {e}") from e

        if not bound:
            result = dict(connection.result or {})
            connection.unbind()
            self._logger.info(
                "bind_failed",
                server=str(self.server),
                user=self.user,
                result=result.get("result"),
                description=result.get("description"),
            )
            raise self.error_from_result(result, bind=True)

        self._logger.debug("bind_succeeded", server=str(self.server), user=self.user)
        return connection

    def error_from_result(self, result: Optional[Mapping[str, Any]], bind: bool = False) -> ADToolkitError:
        """Translate an ldap3 result dict into the matching error type."""
        result = dict(result or {})
        code = result.get("result")
        description = result.get("description") or "unknown error"
        diagnostic = result.get("message") or description

        if code in _UNAVAILABLE_RESULTS:
            return DirectoryUnavailable(f"Directory unavailable: {diagnostic}", code=code)
        if bind:
            return AuthenticationFailed.from_diagnostic(diagnostic, code=code)
        if code == RESULT_FILTER_ERROR:
            return MalformedFilter(f"Filter rejected: {diagnostic}", code=code)
        return ADToolkitError(f"{description}: {diagnostic}", code=code)

    def search(
        self,
        search_filter: str,
        *,
        size_limit: int = 0,
        page_size: int = 0,
        sort: Optional[SortOrder] = None,
        attributes: Iterable[str] = DEFAULT_ATTRIBUTES,
    ) -> List[LDAP3Entry]:
        """
        Subtree search under root_dn.

        With a page_size the simple paged results control is used and every
        page is fetched before returning.
        """
        native = self.bind()
        controls = [sort_control(sort)] if sort is not None else None
        attribute_list = list(attributes)

        try:
            if page_size:
                responses = native.extend.standard.paged_search(
                    search_base=self.root_dn,
                    search_filter=search_filter,
                    search_scope=SUBTREE,
                    attributes=attribute_list,
                    size_limit=size_limit,
                    controls=controls,
                    paged_size=page_size,
                    generator=False,
                )
            else:
                native.search(
                    search_base=self.root_dn,
                    search_filter=search_filter,
                    search_scope=SUBTREE,
                    attributes=attribute_list,
                    size_limit=size_limit,
                    controls=controls,
                )
                responses = native.response
        except LDAPInvalidFilterError as e:
            raise MalformedFilter(f"Invalid filter: {e}", search_filter=search_filter) from e
        except LDAPException as e:
            raise DirectoryUnavailable(f"Search failed: {e}") from e

        result = dict(native.result or {})
        if result.get("result", RESULT_SUCCESS) not in (RESULT_SUCCESS, RESULT_SIZE_LIMIT_EXCEEDED):
            error = self.error_from_result(result)
            if isinstance(error, MalformedFilter):
                error.search_filter = search_filter
            raise error

        return [
            LDAP3Entry.from_response(self, response)
            for response in responses or []
            if response.get("type") == "searchResEntry"
        ]

    def close(self) -> None:
        if self._connection is not None:
            try:
                self._connection.unbind()
            except LDAPException as e:
                self._logger.debug("unbind_failed", error=str(e))
            self._connection = None

    def __enter__(self) -> "LDAP3Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def ldap3_connection_factory(
    address: str, username: Optional[str], password: Optional[str]
) -> LDAP3Connection:
    """Default connection factory used by the authenticator."""
    return LDAP3Connection.from_address(address, username, password)
