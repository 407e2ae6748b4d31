"""
Centralized configuration for the agent session client
"""

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

# Token exchange defaults
DEFAULT_CONN_DETAILS_ENDPOINT = "/api/connection-details"
FALLBACK_ORIGIN = "http://localhost:3000"
DEFAULT_AI_SETTINGS_ENDPOINT = "http://localhost:8080/setAgentConfig"
DEFAULT_SERVER_URL = "ws://localhost:7880"

# Accepted response keys, first match wins
TOKEN_KEYS = ("token", "participantToken", "accessToken", "participant_token")
SERVER_URL_KEYS = ("wsUrl", "serverUrl", "url", "server_url")

# Auth collaborator routes
AUTH_ROUTES = {
    "session": "/api/auth/me",
    "login": "/api/auth/login",
    "register": "/api/auth/register",
    "logout": "/api/auth/logout",
}

# View settings
VIEW_CONFIG = {
    "transition_seconds": 0.5,  # Cosmetic fade between welcome and session views
}

# Logging configuration
LOGGING_CONFIG = {
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "log_dir": os.getenv("LOG_DIR", "./logs"),
    "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "true").lower() == "true",
    "enable_console_logging": os.getenv("ENABLE_CONSOLE_LOGGING", "true").lower() == "true",
    "structured_logging": os.getenv("ENVIRONMENT", "development").lower() == "production",
    "max_log_size_mb": int(os.getenv("MAX_LOG_SIZE_MB", "10")),
    "backup_count": int(os.getenv("LOG_BACKUP_COUNT", "5")),
}


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


def get_app_config() -> Dict[str, Any]:
    """Get static application configuration (agent identity and UI copy)"""
    return {
        "agent_name": os.getenv("AGENT_NAME", ""),
        "sandbox_id": os.getenv("SANDBOX_ID", ""),
        "page_title": os.getenv("PAGE_TITLE", "Voice Agent"),
        "start_button_text": os.getenv("START_BUTTON_TEXT", "Start call"),
    }


def get_token_config() -> Dict[str, Any]:
    """Get token exchange and notification endpoint configuration"""
    return {
        "endpoint": os.getenv("CONN_DETAILS_ENDPOINT") or DEFAULT_CONN_DETAILS_ENDPOINT,
        "origin": os.getenv("APP_ORIGIN") or None,
        "settings_endpoint": os.getenv("AI_SETTINGS_ENDPOINT") or DEFAULT_AI_SETTINGS_ENDPOINT,
        "default_server_url": os.getenv("LIVEKIT_URL") or DEFAULT_SERVER_URL,
        # None leaves suspension length to aiohttp
        "request_timeout": _optional_float(os.getenv("TOKEN_REQUEST_TIMEOUT")),
    }


def get_auth_config() -> Dict[str, Any]:
    """Get auth collaborator configuration"""
    return {
        "base_url": os.getenv("AUTH_BASE_URL") or os.getenv("APP_ORIGIN") or FALLBACK_ORIGIN,
        "routes": dict(AUTH_ROUTES),
    }
