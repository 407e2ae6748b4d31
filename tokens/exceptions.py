"""
Custom exceptions for the credential exchange
"""

from typing import Optional, Dict, Any


class CredentialExchangeError(Exception):
    """Base exception for all credential exchange failures"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class TransportError(CredentialExchangeError):
    """Raised when the backend cannot be reached or answers unusably

    Covers network failures, timeouts, non-2xx statuses and empty bodies.
    ``status`` is the HTTP status code when one was received.
    """
    def __init__(self, message: str, status: Optional[int] = None,
                 status_text: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.status = status
        self.status_text = status_text
        super().__init__(message, details)


class FormatError(CredentialExchangeError):
    """Raised when the response does not carry a well-formed credential"""
    pass
