"""
Unit tests for adtoolkit.codec module.

Tests GUID encoding, address prefixes, FILETIME interpretation and
attribute readers.
"""

import uuid
from datetime import datetime, timezone

import pytest

from adtoolkit.codec.attributes import get_int64, get_string, get_strings, read_timestamp
from adtoolkit.codec.identifiers import (
    encode_guid_for_query,
    ensure_protocol_prefix,
    first_dn_component,
    is_secure_address,
    parse_address,
    strip_protocol_prefix,
)
from adtoolkit.codec.timestamps import (
    FILETIME_EPOCH,
    filetime_to_datetime,
    interpret_timestamp,
    is_set_to_expire,
    to_filetime,
)
from adtoolkit.core.exceptions import InvalidArgument
from adtoolkit.core.types import TIMESTAMP_NEVER, TIMESTAMP_NOT_SET

from tests.fakes import FakeEntry

SAMPLE_GUID = "16ae78c7-031a-48f9-a255-8183d7c84ee7"
SAMPLE_ENCODED = r"\C7\78\AE\16\1A\03\F9\48\A2\55\81\83\D7\C8\4E\E7"


# =============================================================================
# GUID ENCODING
# =============================================================================


class TestEncodeGuid:
    """Tests for encode_guid_for_query."""

    def test_known_vector(self):
        """Test the documented example GUID."""
        assert encode_guid_for_query(SAMPLE_GUID) == SAMPLE_ENCODED

    def test_all_representations_agree(self):
        """Test str, UUID and native bytes encode identically."""
        value = uuid.UUID(SAMPLE_GUID)
        assert encode_guid_for_query(value) == SAMPLE_ENCODED
        assert encode_guid_for_query(value.bytes_le) == SAMPLE_ENCODED

    def test_zero_guid(self):
        """Test the nil GUID."""
        assert encode_guid_for_query(uuid.UUID(int=0)) == "\\00" * 16

    def test_wrong_length_bytes(self):
        """Test raw bytes must be exactly 16 long."""
        with pytest.raises(InvalidArgument):
            encode_guid_for_query(b"\x01\x02\x03")


# =============================================================================
# ADDRESS PREFIXES
# =============================================================================


class TestProtocolPrefix:
    """Tests for prefix strip/ensure."""

    def test_ensure_secure_on_bare_dn(self):
        """Test the documented example."""
        assert (
            ensure_protocol_prefix("DC=my,DC=domain,DC=com", True)
            == "LDAPS://DC=my,DC=domain,DC=com"
        )

    def test_ensure_plain_on_bare_dn(self):
        """Test the default is LDAP://."""
        assert ensure_protocol_prefix("DC=example,DC=com") == "LDAP://DC=example,DC=com"

    def test_ensure_keeps_matching_prefix(self):
        """Test an already-correct address is unchanged."""
        assert ensure_protocol_prefix("LDAP://dc1", False) == "LDAP://dc1"
        assert ensure_protocol_prefix("LDAPS://dc1", True) == "LDAPS://dc1"

    def test_ensure_replaces_mismatched_prefix(self):
        """Test a wrong prefix is replaced, never duplicated."""
        assert ensure_protocol_prefix("LDAP://dc1.example.com", True) == "LDAPS://dc1.example.com"
        assert ensure_protocol_prefix("ldaps://dc1.example.com", False) == "LDAP://dc1.example.com"

    @pytest.mark.parametrize(
        "address,secure,expected",
        [
            ("ldaps://dc1", True, "LDAPS://dc1"),
            ("Ldap://dc1", False, "LDAP://dc1"),
            ("lDaPs://DC=example,DC=com", True, "LDAPS://DC=example,DC=com"),
        ],
    )
    def test_ensure_canonicalizes_case(self, address, secure, expected):
        """Test a matching prefix in another case is rewritten in uppercase."""
        assert ensure_protocol_prefix(address, secure) == expected

    @pytest.mark.parametrize("short", ["", "dc1", "DC=x"])
    def test_ensure_short_input(self, short):
        """Test inputs too short to hold a prefix get one prepended."""
        assert ensure_protocol_prefix(short, True) == "LDAPS://" + short
        assert ensure_protocol_prefix(short, False) == "LDAP://" + short

    def test_ensure_idempotent(self):
        """Test applying ensure twice changes nothing."""
        once = ensure_protocol_prefix("dc1.example.com", True)
        assert ensure_protocol_prefix(once, True) == once

    @pytest.mark.parametrize(
        "address,expected",
        [
            ("LDAP://DC=example,DC=com", "DC=example,DC=com"),
            ("LDAPS://DC=example,DC=com", "DC=example,DC=com"),
            ("ldaps://dc1.example.com", "dc1.example.com"),
            ("DC=example,DC=com", "DC=example,DC=com"),
            ("", ""),
        ],
    )
    def test_strip(self, address, expected):
        """Test only a leading prefix is removed, case-insensitively."""
        assert strip_protocol_prefix(address) == expected

    def test_strip_leaves_embedded_prefix(self):
        """Test a prefix that is not leading is preserved."""
        assert strip_protocol_prefix("CN=LDAP://x,DC=com") == "CN=LDAP://x,DC=com"

    def test_is_secure_address(self):
        """Test secure detection."""
        assert is_secure_address("LDAPS://dc1")
        assert not is_secure_address("LDAP://dc1")
        assert not is_secure_address("dc1")


class TestParseAddress:
    """Tests for parse_address."""

    def test_host_and_base(self):
        """Test server-bound address with a base DN."""
        parsed = parse_address("LDAPS://dc1.example.com/DC=example,DC=com")
        assert parsed.host == "dc1.example.com"
        assert parsed.base_dn == "DC=example,DC=com"
        assert parsed.use_ssl

    def test_serverless(self):
        """Test a bare DN derives the host from its DC components."""
        parsed = parse_address("LDAP://OU=Staff,DC=example,DC=com")
        assert parsed.host == "example.com"
        assert parsed.base_dn == "OU=Staff,DC=example,DC=com"
        assert not parsed.use_ssl

    def test_host_only(self):
        """Test an address without a base DN."""
        parsed = parse_address("LDAP://dc1.example.com")
        assert parsed.host == "dc1.example.com"
        assert parsed.base_dn == ""

    def test_empty_rejected(self):
        """Test an address with nothing after the prefix."""
        with pytest.raises(InvalidArgument):
            parse_address("LDAP://")

    def test_no_dc_components_rejected(self):
        """Test a serverless DN without DC components."""
        with pytest.raises(InvalidArgument):
            parse_address("LDAP://CN=Users")


class TestFirstDnComponent:
    """Tests for first_dn_component."""

    def test_plain_dn(self):
        """Test value of the first RDN."""
        assert first_dn_component("CN=Jane Doe,OU=Staff,DC=example,DC=com") == "Jane Doe"

    def test_prefixed_path(self):
        """Test an ADSI path is stripped first."""
        assert first_dn_component("LDAP://OU=Staff,DC=example,DC=com") == "Staff"

    def test_invalid_dn(self):
        """Test unparseable input raises InvalidArgument."""
        with pytest.raises(InvalidArgument):
            first_dn_component("not a dn")


# =============================================================================
# TIMESTAMPS
# =============================================================================


class TestTimestamps:
    """Tests for FILETIME interpretation."""

    def test_never_expires(self):
        """Test the 2**63-1 sentinel."""
        ts = interpret_timestamp(TIMESTAMP_NEVER)
        assert not ts.is_set_to_expire
        assert ts.as_datetime is None
        assert ts.never_expires

    def test_not_set(self):
        """Test the 0 sentinel."""
        ts = interpret_timestamp(TIMESTAMP_NOT_SET)
        assert not ts.is_set_to_expire
        assert ts.as_datetime is None
        assert not ts.never_expires

    def test_epoch(self):
        """Test one tick lands on the FILETIME epoch."""
        assert filetime_to_datetime(1) == FILETIME_EPOCH

    def test_known_instant(self):
        """Test 2024-01-01 00:00 UTC."""
        raw = 133485408000000000
        ts = interpret_timestamp(raw)
        assert ts.is_set_to_expire
        assert ts.as_datetime == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_out_of_range_is_clamped(self):
        """Test values past datetime.max do not raise."""
        ts = interpret_timestamp(TIMESTAMP_NEVER - 1)
        assert ts.is_set_to_expire
        assert ts.as_datetime.year == 9999

    def test_negative_is_clamped(self):
        """Test values before datetime.min do not raise."""
        ts = interpret_timestamp(-(2**62))
        assert ts.is_set_to_expire
        assert ts.as_datetime.year == 1

    def test_is_set_to_expire(self):
        """Test only the two sentinels are excluded."""
        assert not is_set_to_expire(0)
        assert not is_set_to_expire(TIMESTAMP_NEVER)
        assert is_set_to_expire(1)

    def test_to_filetime(self):
        """Test converting back to ticks, with naive input taken as UTC."""
        assert to_filetime(datetime(2024, 1, 1, tzinfo=timezone.utc)) == 133485408000000000
        assert to_filetime(datetime(2024, 1, 1)) == 133485408000000000


# =============================================================================
# ATTRIBUTE READERS
# =============================================================================


class TestAttributeReaders:
    """Tests for attribute read helpers."""

    @pytest.fixture
    def entry(self):
        return FakeEntry(
            dn="CN=Jane Doe,DC=example,DC=com",
            attributes={
                "cn": ["Jane Doe"],
                "proxyAddresses": ["SMTP:jane@example.com", b"smtp:jd@example.com"],
                "accountExpires": ["9223372036854775807"],
                "pwdLastSet": [b"133485408000000000"],
                "lastLogon": [datetime(2024, 1, 1, tzinfo=timezone.utc)],
            },
        )

    def test_get_string(self, entry):
        """Test first value as string, '' when absent."""
        assert get_string(entry, "CN") == "Jane Doe"
        assert get_string(entry, "mail") == ""

    def test_get_strings(self, entry):
        """Test all values decoded."""
        assert get_strings(entry, "proxyAddresses") == [
            "SMTP:jane@example.com",
            "smtp:jd@example.com",
        ]
        assert get_strings(entry, "mail") == []

    def test_get_int64(self, entry):
        """Test integer parsing from str, bytes and datetime."""
        assert get_int64(entry, "accountExpires") == TIMESTAMP_NEVER
        assert get_int64(entry, "pwdLastSet") == 133485408000000000
        assert get_int64(entry, "lastLogon") == 133485408000000000

    def test_get_int64_missing(self, entry):
        """Test an absent attribute reads as -1."""
        assert get_int64(entry, "badPwdCount") == -1

    def test_read_timestamp(self, entry):
        """Test timestamp reading including an absent attribute."""
        assert read_timestamp(entry, "accountExpires").never_expires
        assert read_timestamp(entry, "pwdLastSet").as_datetime == datetime(
            2024, 1, 1, tzinfo=timezone.utc
        )
        missing = read_timestamp(entry, "lockoutTime")
        assert missing.raw == 0
        assert not missing.is_set_to_expire
