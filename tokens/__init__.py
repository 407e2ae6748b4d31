"""
Credential exchange with the connection-details backend
"""

from .exceptions import CredentialExchangeError, TransportError, FormatError
from .request_builder import ConnectionOptions, build_request_payload
from .response import SessionCredential, JsonObject, PlainString, parse_raw_response, normalize_response
from .notifier import AgentSettingsNotifier
from .client import TokenExchangeClient, resolve_endpoint

__all__ = [
    "CredentialExchangeError",
    "TransportError",
    "FormatError",
    "ConnectionOptions",
    "build_request_payload",
    "SessionCredential",
    "JsonObject",
    "PlainString",
    "parse_raw_response",
    "normalize_response",
    "AgentSettingsNotifier",
    "TokenExchangeClient",
    "resolve_endpoint",
]
