"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like service names, endpoints and
account identifiers, keeping signatures readable.
"""

from enum import Enum
from typing import NewType

# === Core Value Objects ===

ServiceName = NewType("ServiceName", str)      # Remote interface, e.g. 'ITwoFactorService'
EndpointName = NewType("EndpointName", str)    # Method on the interface, e.g. 'AddAuthenticator'
AccessToken = NewType("AccessToken", str)      # Bearer credential supplied by the session
AccountID = NewType("AccountID", int)          # 64-bit account identifier (steamid)
LimiterKey = NewType("LimiterKey", str)        # Key shared by calls paced together (base address)


class HttpMethod(str, Enum):
    """HTTP verbs supported by the Web API transport."""

    GET = "GET"
    POST = "POST"

    def __str__(self) -> str:
        return self.value
