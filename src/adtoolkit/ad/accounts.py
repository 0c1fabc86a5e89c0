"""
ADToolkit Account Operations

Administrative changes to user accounts. The connection used to fetch the
entry needs rights to reset passwords on it.
"""

from __future__ import annotations

from enum import IntFlag

import structlog

from adtoolkit.codec.attributes import get_int64
from adtoolkit.directory.connection import DirectoryEntry

logger = structlog.get_logger()


class UserAccountControl(IntFlag):
    """userAccountControl bits used by this module (MS-ADTS 2.2.16)."""

    ACCOUNTDISABLE = 0x00000002
    LOCKOUT = 0x00000010
    PASSWD_NOTREQD = 0x00000020
    NORMAL_ACCOUNT = 0x00000200
    DONT_EXPIRE_PASSWORD = 0x00010000
    PASSWORD_EXPIRED = 0x00800000


def set_password(entry: DirectoryEntry, new_password: str) -> None:
    """
    Reset ``entry``'s password and clear "must change at next logon".

    The password is set through the entry's native SetPassword operation,
    then PASSWORD_EXPIRED is cleared in userAccountControl and committed.
    """
    entry.invoke("SetPassword", new_password)

    control = get_int64(entry, "userAccountControl")
    if control >= 0:
        entry.set("userAccountControl", control & ~int(UserAccountControl.PASSWORD_EXPIRED))
    entry.commit()

    logger.info("password_set", dn=entry.dn)


def is_account_disabled(entry: DirectoryEntry) -> bool:
    control = get_int64(entry, "userAccountControl")
    return control >= 0 and bool(control & UserAccountControl.ACCOUNTDISABLE)
