"""Payloads of the two-factor authenticator Web API service.

These are example instantiations of the generic invocation pattern: the
request dataclasses serialize to the JSON accepted through ``input_json`` and
the response dataclasses decode the ``response`` object returned by the API.
64-bit values travel as strings on the wire and are converted here.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from .common import AccountID
from .errors import ResponseFormatError

TWO_FACTOR_SERVICE = "ITwoFactorService"
ADD_AUTHENTICATOR_ENDPOINT = "AddAuthenticator"
FINALIZE_ADD_AUTHENTICATOR_ENDPOINT = "FinalizeAddAuthenticator"

AUTHENTICATOR_TYPE_MOBILE = 1


def _require_mapping(data: Any, payload: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ResponseFormatError(f"{payload} must be a JSON object, got {type(data).__name__}.")
    return data


def _as_int(data: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ResponseFormatError(f"Field '{key}' must be an integer, got a boolean.")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ResponseFormatError(f"Field '{key}' must be an integer, got {value!r}.") from e


def _as_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, (str, int)):
        raise ResponseFormatError(f"Field '{key}' must be a string, got {type(value).__name__}.")
    return str(value)


def _as_bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ResponseFormatError(f"Field '{key}' must be a boolean, got {value!r}.")


def _wire_dict(payload: Any) -> Dict[str, Any]:
    """Serializes a request dataclass, sending 64-bit integers as strings."""
    data: Dict[str, Any] = {}
    for key, value in asdict(payload).items():
        if value is None:
            continue
        data[key] = str(value) if key in ("steamid", "authenticator_time") else value
    return data


# --- AddAuthenticator ---

@dataclass(frozen=True)
class AddAuthenticatorRequest:
    """Starts linking a mobile authenticator to the account."""
    steamid: AccountID
    authenticator_time: int
    device_identifier: str
    authenticator_type: int = AUTHENTICATOR_TYPE_MOBILE

    def to_dict(self) -> Dict[str, Any]:
        return _wire_dict(self)


@dataclass(frozen=True)
class AddAuthenticatorResponse:
    """Secrets and metadata of the authenticator pending activation."""
    status: int = 0
    shared_secret: Optional[str] = None
    serial_number: Optional[str] = None
    revocation_code: Optional[str] = None
    uri: Optional[str] = None
    server_time: int = 0
    account_name: Optional[str] = None
    token_gid: Optional[str] = None
    identity_secret: Optional[str] = None
    secret_1: Optional[str] = None
    phone_number_hint: Optional[str] = None
    confirm_type: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AddAuthenticatorResponse":
        data = _require_mapping(data, "AddAuthenticator response")
        return cls(
            status=_as_int(data, "status"),
            shared_secret=_as_str(data, "shared_secret"),
            serial_number=_as_str(data, "serial_number"),
            revocation_code=_as_str(data, "revocation_code"),
            uri=_as_str(data, "uri"),
            server_time=_as_int(data, "server_time"),
            account_name=_as_str(data, "account_name"),
            token_gid=_as_str(data, "token_gid"),
            identity_secret=_as_str(data, "identity_secret"),
            secret_1=_as_str(data, "secret_1"),
            phone_number_hint=_as_str(data, "phone_number_hint"),
            confirm_type=_as_int(data, "confirm_type"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --- FinalizeAddAuthenticator ---

@dataclass(frozen=True)
class FinalizeAddAuthenticatorRequest:
    """Confirms the pending authenticator with the activation code and a generated code."""
    steamid: AccountID
    activation_code: str
    authenticator_code: str
    authenticator_time: int

    def to_dict(self) -> Dict[str, Any]:
        return _wire_dict(self)


@dataclass(frozen=True)
class FinalizeAddAuthenticatorResponse:
    success: bool = False
    want_more: bool = False
    server_time: int = 0
    status: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FinalizeAddAuthenticatorResponse":
        data = _require_mapping(data, "FinalizeAddAuthenticator response")
        return cls(
            success=_as_bool(data, "success"),
            want_more=_as_bool(data, "want_more"),
            server_time=_as_int(data, "server_time"),
            status=_as_int(data, "status"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
