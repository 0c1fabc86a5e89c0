"""
ADToolkit Active Directory Module

High-level interface for Active Directory.

Components:
- authenticator: Credential validation by forced bind
- directory: ADDirectory facade and DirectoryConfig
- accounts: Password reset and userAccountControl helpers
"""

from adtoolkit.ad.accounts import UserAccountControl, set_password
from adtoolkit.ad.authenticator import Authenticator, authenticate_against_ad
from adtoolkit.ad.directory import ADDirectory, DirectoryConfig

__all__ = [
    "ADDirectory",
    "Authenticator",
    "DirectoryConfig",
    "UserAccountControl",
    "authenticate_against_ad",
    "set_password",
]
