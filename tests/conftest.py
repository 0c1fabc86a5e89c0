"""
Pytest configuration and shared fixtures for ADToolkit tests.
"""

import pytest
from ldap3 import MOCK_SYNC, NONE, Connection, Server

from adtoolkit.directory.connection import LDAP3Connection
from adtoolkit.query.builder import membership_filter, sam_account_name_filter

from tests.fakes import FakeConnection, FakeEntry


# =============================================================================
# DIRECTORY CONSTANTS
# =============================================================================

BASE_DN = "DC=example,DC=com"
TARGET_DN = "CN=Jane Doe,OU=Staff,DC=example,DC=com"
ADMINS_DN = "CN=App-Admins,OU=Groups,DC=example,DC=com"
FINANCE_DN = "CN=Finance,OU=Groups,DC=example,DC=com"
ALL_STAFF_DN = "CN=All-Staff,OU=Groups,DC=example,DC=com"

SERVICE_DN = "CN=svc_reader,OU=Service,DC=example,DC=com"
SERVICE_PASSWORD = "Rd3r!Secret"


# =============================================================================
# FAKE DIRECTORY FIXTURES
# =============================================================================


@pytest.fixture
def fake_connection() -> FakeConnection:
    """Empty fake directory."""
    return FakeConnection(root_dn=BASE_DN)


@pytest.fixture
def target_entry() -> FakeEntry:
    """User whose membership is being checked."""
    return FakeEntry(
        dn=TARGET_DN,
        attributes={
            "distinguishedName": [TARGET_DN],
            "sAMAccountName": ["jdoe"],
            "memberOf": [ADMINS_DN],
        },
    )


def make_group(dn: str, sam: str) -> FakeEntry:
    """Helper to create a group entry."""
    return FakeEntry(dn=dn, attributes={"distinguishedName": [dn], "sAMAccountName": [sam]})


@pytest.fixture
def membership_connection(target_entry: FakeEntry) -> FakeConnection:
    """
    Directory where Jane Doe is:
    - a direct member of App-Admins
    - a nested member of All-Staff (App-Admins is a member of All-Staff)
    - not a member of Finance
    """
    conn = FakeConnection(root_dn=BASE_DN)

    conn.add(sam_account_name_filter("App-Admins"), make_group(ADMINS_DN, "App-Admins"))
    conn.add(sam_account_name_filter("Finance"), make_group(FINANCE_DN, "Finance"))
    conn.add(sam_account_name_filter("All-Staff"), make_group(ALL_STAFF_DN, "All-Staff"))

    conn.add(membership_filter(TARGET_DN, ADMINS_DN, transitive=False), target_entry)
    conn.add(membership_filter(TARGET_DN, ADMINS_DN, transitive=True), target_entry)
    conn.add(membership_filter(TARGET_DN, ALL_STAFF_DN, transitive=True), target_entry)

    return conn


# =============================================================================
# LDAP3 MOCK FIXTURES
# =============================================================================


@pytest.fixture
def mock_server() -> Server:
    """
    ldap3 server backed by the in-memory MOCK_SYNC DIT.

    The DIT lives on the Server object, so entries seeded through one mock
    connection are visible to every connection on the same server.
    """
    server = Server("dc1.example.com", get_info=NONE)
    seed = Connection(server, client_strategy=MOCK_SYNC)

    seed.strategy.add_entry(BASE_DN, {"objectClass": ["top", "domain"], "dc": "example"})
    seed.strategy.add_entry(
        SERVICE_DN,
        {
            "objectClass": ["top", "person", "user"],
            "cn": "svc_reader",
            "sAMAccountName": "svc_reader",
            "userPassword": SERVICE_PASSWORD,
        },
    )
    seed.strategy.add_entry(
        TARGET_DN,
        {
            "objectClass": ["top", "person", "user"],
            "cn": "Jane Doe",
            "sAMAccountName": "jdoe",
            "givenName": "Jane",
            "sn": "Doe",
            "mail": "jane.doe@example.com",
            "description": "Staff",
            "accountExpires": "9223372036854775807",
            "pwdLastSet": "133497216000000000",
        },
    )
    return server


@pytest.fixture
def mock_connection(mock_server: Server) -> LDAP3Connection:
    """Deferred LDAP3Connection against the mock server."""
    conn = LDAP3Connection(
        server=mock_server,
        root_dn=BASE_DN,
        user=SERVICE_DN,
        password=SERVICE_PASSWORD,
        client_strategy=MOCK_SYNC,
    )
    yield conn
    conn.close()


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests requiring a real directory"
    )
