"""
Auth/session collaborator access
"""

from .client import AuthClient, AuthError, UserSession, options_from_settings

__all__ = ["AuthClient", "AuthError", "UserSession", "options_from_settings"]
