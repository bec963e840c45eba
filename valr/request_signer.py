"""HMAC-SHA512 request signing for the VALR API.

The signing payload is the concatenation::

    timestamp + VERB + path + body + subaccount_id

where ``path`` includes the query string exactly as it goes on the wire.
``build_request_path`` is the only place that query string is produced, so
the transports can send the same string they signed.
"""
import hashlib
import hmac
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from .constants import (
    HEADER_API_KEY,
    HEADER_SIGNATURE,
    HEADER_SUB_ACCOUNT_ID,
    HEADER_TIMESTAMP,
)
from .errors import InvalidCredentialsError, ValrConfigurationError

_HEX_RE = re.compile(r"[0-9a-fA-F]+")
CREDENTIAL_LENGTH = 64


@dataclass(frozen=True)
class SigningInput:
    """Everything that goes into one request signature.

    Attributes:
        secret: API secret used as the HMAC key
        timestamp: Milliseconds since epoch, also sent as the timestamp header
        verb: HTTP verb, upper-cased before signing
        path: Request path including query string, excluding host
        body: Exact request body sent on the wire ("" if none)
        subaccount_id: Sub-account being impersonated ("" if none)
    """

    secret: Union[str, bytes]
    timestamp: int
    verb: str
    path: str
    body: str = ""
    subaccount_id: str = ""

    def payload(self) -> bytes:
        message = f"{self.timestamp}{self.verb.upper()}{self.path}{self.body}{self.subaccount_id}"
        return message.encode("utf-8")


def compute_signature(signing_input: SigningInput) -> str:
    """Return the lowercase hex HMAC-SHA512 of the signing payload."""
    key = signing_input.secret
    if isinstance(key, str):
        key = key.encode("utf-8")
    return hmac.new(key, signing_input.payload(), hashlib.sha512).hexdigest()


def sign_request(
    api_secret: Union[str, bytes],
    timestamp: int,
    verb: str,
    path: str,
    body: Optional[str] = "",
    subaccount_id: Optional[str] = "",
) -> str:
    return compute_signature(
        SigningInput(
            secret=api_secret,
            timestamp=timestamp,
            verb=verb,
            path=path,
            body=body or "",
            subaccount_id=subaccount_id or "",
        )
    )


def get_timestamp() -> int:
    """Current wall-clock time in milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


def _check_credential(name: str, value: Any) -> None:
    if not value or not isinstance(value, str):
        raise InvalidCredentialsError(f"Invalid API {name}: must be a non-empty string")
    if len(value) != CREDENTIAL_LENGTH:
        raise InvalidCredentialsError(f"Invalid API {name}: must be {CREDENTIAL_LENGTH} characters long")
    if not _HEX_RE.fullmatch(value):
        raise InvalidCredentialsError(f"Invalid API {name}: must be hexadecimal")


def validate_credentials(api_key: str, api_secret: str) -> None:
    """Validate key and secret shape.

    Raises:
        InvalidCredentialsError: If either value is empty, not 64 characters,
            or contains non-hex characters
    """
    _check_credential("key", api_key)
    _check_credential("secret", api_secret)


def check_credentials(api_key: Optional[str], api_secret: Optional[str]) -> bool:
    """Validate an optional key/secret pair; return True when both are set.

    Raises:
        ValrConfigurationError: If only one of key and secret is given
        InvalidCredentialsError: If either is malformed
    """
    if bool(api_key) != bool(api_secret):
        raise ValrConfigurationError("Both api_key and api_secret must be provided together")
    if api_key and api_secret:
        validate_credentials(api_key, api_secret)
        return True
    return False


def _format_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_request_path(path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build the final request path with its query string.

    Keys are sorted, ``None`` values are dropped and values are not
    percent-encoded. The result is what gets signed and what gets sent.
    """
    request_path = path if path.startswith("/") else f"/{path}"
    if not params:
        return request_path
    parts = [
        f"{key}={_format_query_value(params[key])}"
        for key in sorted(params)
        if params[key] is not None
    ]
    if not parts:
        return request_path
    separator = "&" if "?" in request_path else "?"
    return f"{request_path}{separator}{'&'.join(parts)}"


def build_auth_headers(
    api_key: str,
    api_secret: Union[str, bytes],
    verb: str,
    path: str,
    body: str = "",
    subaccount_id: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> Dict[str, str]:
    """Sign a request and return the X-VALR-* authentication headers.

    The timestamp is captured once and used for both the signature and the
    timestamp header.
    """
    if timestamp is None:
        timestamp = get_timestamp()
    signature = sign_request(
        api_secret,
        timestamp=timestamp,
        verb=verb,
        path=path,
        body=body,
        subaccount_id=subaccount_id,
    )
    headers = {
        HEADER_API_KEY: api_key,
        HEADER_SIGNATURE: signature,
        HEADER_TIMESTAMP: str(timestamp),
    }
    if subaccount_id:
        headers[HEADER_SUB_ACCOUNT_ID] = subaccount_id
    return headers
