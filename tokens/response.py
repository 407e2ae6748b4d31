"""
Token response parsing and credential normalization

The backend answers either with a JSON object carrying the credential
under one of several keys, or with the bare token as plain text. Both
shapes are resolved here into a SessionCredential.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

from config import DEFAULT_SERVER_URL, SERVER_URL_KEYS, TOKEN_KEYS
from .exceptions import FormatError

TOKEN_SEGMENTS = 3
_QUOTES = ("'", '"')


@dataclass(frozen=True)
class JsonObject:
    """Response body that decoded to a JSON object"""
    fields: Dict[str, Any]


@dataclass(frozen=True)
class PlainString:
    """Response body treated as the bare credential"""
    text: str


RawResponse = Union[JsonObject, PlainString]


@dataclass(frozen=True)
class SessionCredential:
    """Validated participant token and the transport endpoint it is valid for"""
    participant_token: str
    server_url: str

    def masked_preview(self) -> str:
        return mask_token(self.participant_token)


def parse_raw_response(text: str) -> RawResponse:
    """Classify a response body as a JSON object or a plain token string"""
    try:
        decoded = json.loads(text)
    except ValueError:
        return PlainString(text)

    if isinstance(decoded, dict):
        return JsonObject(decoded)
    if isinstance(decoded, str):
        return PlainString(decoded)
    # Numbers, arrays, booleans and null cannot carry a credential
    return PlainString(text)


def first_present(fields: Dict[str, Any], keys: Iterable[str]) -> Optional[Any]:
    """Return the value of the first key whose value is present and truthy

    Empty containers still count as present; they fail coercion later.
    """
    for key in keys:
        value = fields.get(key)
        if not _is_falsy_scalar(value):
            return value
    return None


def _is_falsy_scalar(value: Any) -> bool:
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # NaN is the only value not equal to itself
        return value == 0 or value != value
    return False


def _coerce_token(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value).lower() if isinstance(value, bool) else str(value)
    raise FormatError("Token value is not a string and cannot be coerced",
                      details={"value_type": type(value).__name__})


def _strip_token(token: str) -> str:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in _QUOTES:
        token = token[1:-1].strip()
    return token


def extract_token(raw: RawResponse) -> str:
    """Pull the credential out of a raw response and check its compact form"""
    if isinstance(raw, JsonObject):
        value = first_present(raw.fields, TOKEN_KEYS)
    else:
        value = raw.text

    token = _strip_token(_coerce_token(value))

    if not token:
        raise FormatError("Backend response did not contain a token",
                          details={"accepted_keys": list(TOKEN_KEYS)})

    segments = token.split(".")
    if len(segments) != TOKEN_SEGMENTS:
        raise FormatError("Invalid JWT format returned from backend",
                          details={"segments": len(segments), "preview": mask_token(token)})

    return token


def extract_server_url(raw: RawResponse, default: str = DEFAULT_SERVER_URL) -> str:
    """Pick the transport endpoint from the response, or the default"""
    if isinstance(raw, JsonObject):
        for key in SERVER_URL_KEYS:
            value = raw.fields.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return default


def normalize_response(raw: RawResponse, default_server_url: str = DEFAULT_SERVER_URL) -> SessionCredential:
    """Resolve a raw response into a validated SessionCredential"""
    token = extract_token(raw)
    return SessionCredential(
        participant_token=token,
        server_url=extract_server_url(raw, default_server_url),
    )


def mask_token(token: str) -> str:
    """
    Preview a token for logs without revealing it.

    Long tokens keep their first 16 and last 8 characters; short ones are
    starred out except for the final 4.
    """
    token = token.strip()
    if len(token) <= 40:
        return "*" * max(len(token) - 4, 0) + token[-4:]
    return f"{token[:16]}...{token[-8:]}"
