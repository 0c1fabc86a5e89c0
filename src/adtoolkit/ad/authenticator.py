"""
ADToolkit Active Directory Authenticator

Validates a username/password pair by binding to the directory with it.

Directory client libraries typically defer the bind until the connection
is first used, so a connection built from bad credentials looks healthy
until some later, unrelated call fails. The authenticator forces that
first use immediately so rejected credentials are reported here.

Failure reasons:
- AuthenticationFailed: bad credentials, disabled/locked/expired account
- DirectoryUnavailable: server unreachable or refusing connections

No retries are attempted.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import attrs
import structlog
from returns.pipeline import is_successful
from returns.result import Failure, Result, Success

from adtoolkit.core.exceptions import (
    ADToolkitError,
    AuthenticationFailed,
    DirectoryUnavailable,
)
from adtoolkit.core.types import AuthResult
from adtoolkit.directory.connection import DirectoryConnection, ldap3_connection_factory

ConnectionFactory = Callable[[str, Optional[str], Optional[str]], DirectoryConnection]


@attrs.define
class Authenticator:
    """
    Credential validation by forced bind.

    Example:
        auth = Authenticator()
        result = auth.authenticate("LDAPS://dc1.example.com", "EXAMPLE\\\\jdoe", "secret")
        if is_successful(result):
            print(f"Authenticated as {result.unwrap().username}")
        else:
            print(f"Rejected: {result.failure().message}")
    """

    connection_factory: ConnectionFactory = ldap3_connection_factory

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def authenticate(
        self,
        address: str,
        username: str,
        password: str,
    ) -> Result[AuthResult, ADToolkitError]:
        """
        Bind to ``address`` as ``username``.

        Args:
            address: LDAP:// or LDAPS:// address of the directory
            username: DN, UPN or DOMAIN\\user
            password: Password to validate

        Returns:
            Success(AuthResult) or Failure(AuthenticationFailed | DirectoryUnavailable)
        """
        self._logger.info("authenticate_start", address=address, username=username)

        # An empty password makes a simple bind unauthenticated, which most
        # directories accept.
        if not password:
            self._logger.info("authenticate_rejected", username=username, reason="empty_password")
            return Failure(AuthenticationFailed("Password must not be empty"))

        connection = self.connection_factory(address, username, password)
        try:
            connection.bind()
        except (AuthenticationFailed, DirectoryUnavailable) as e:
            self._logger.info(
                "authenticate_failed",
                address=address,
                username=username,
                error_type=type(e).__name__,
                error=e.message,
                code=e.code,
            )
            return Failure(e)
        finally:
            connection.close()

        self._logger.info("authenticate_success", address=address, username=username)
        return Success(AuthResult.success_result(username=username, address=address))

    def validate_credentials(self, address: str, username: str, password: str) -> bool:
        """True if the directory accepts the credentials."""
        return is_successful(self.authenticate(address, username, password))

    def check_credentials(self, address: str, username: str, password: str) -> AuthResult:
        """Like authenticate(), but folds failures into a failed AuthResult."""
        result = self.authenticate(address, username, password)
        if is_successful(result):
            return result.unwrap()

        error = result.failure()
        return AuthResult.failure_result(
            error_message=error.message,
            error_code=error.code,
            address=address,
        )

    def ensure_authenticated(self, address: str, username: str, password: str) -> AuthResult:
        """
        Like authenticate(), but raises on failure.

        Raises:
            AuthenticationFailed
            DirectoryUnavailable
        """
        result = self.authenticate(address, username, password)
        if not is_successful(result):
            raise result.failure()
        return result.unwrap()


def authenticate_against_ad(address: str, username: str, password: str) -> AuthResult:
    """
    Bind once with the default ldap3 connection; raise if rejected.

    Example:
        authenticate_against_ad("LDAPS://DC=example,DC=com", "jdoe@example.com", "secret")
    """
    return Authenticator().ensure_authenticated(address, username, password)
