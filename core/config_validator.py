"""
Configuration validation module.

Validates endpoint, identity and logging settings on startup so that
misconfigurations surface before the first connect attempt.
"""

import os
from pathlib import Path
from typing import List, Tuple

from core.logging_config import get_logger

logger = get_logger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""
    pass


class ConfigValidator:
    """Validates application configuration"""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """
        Validate all configuration settings.

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors.clear()
        self.warnings.clear()

        self._validate_identity()
        self._validate_token_endpoints()
        self._validate_auth_config()
        self._validate_logging_config()

        is_valid = len(self.errors) == 0
        return is_valid, self.errors.copy(), self.warnings.copy()

    def _validate_identity(self):
        """Agent name and sandbox id are optional but usually wanted"""
        from config import get_app_config

        app_config = get_app_config()
        if not app_config["agent_name"]:
            self.warnings.append("AGENT_NAME is not set: the backend will dispatch its default agent")
        if not app_config["sandbox_id"]:
            self.warnings.append("SANDBOX_ID is not set: X-Sandbox-Id header will be empty")

    def _validate_token_endpoints(self):
        """Validate token, notification and transport endpoints"""
        from config import get_token_config

        try:
            token_config = get_token_config()
        except ValueError as e:
            self.errors.append(f"Invalid TOKEN_REQUEST_TIMEOUT: {e}")
            return

        endpoint = token_config["endpoint"]
        if not endpoint.startswith(("http://", "https://", "/")):
            self.errors.append(f"Token endpoint must be an http(s) URL or an absolute path: {endpoint}")

        origin = token_config["origin"]
        if origin and not origin.startswith(("http://", "https://")):
            self.errors.append(f"APP_ORIGIN has invalid URL format: {origin}")

        settings_endpoint = token_config["settings_endpoint"]
        if not settings_endpoint.startswith(("http://", "https://")):
            self.errors.append(f"AI settings endpoint has invalid URL format: {settings_endpoint}")

        server_url = token_config["default_server_url"]
        if not server_url.startswith(("ws://", "wss://")):
            self.errors.append(f"Default server URL must be a ws:// or wss:// URL: {server_url}")

        timeout = token_config["request_timeout"]
        if timeout is not None and timeout <= 0:
            self.errors.append(f"TOKEN_REQUEST_TIMEOUT must be positive, got {timeout}")

    def _validate_auth_config(self):
        from config import get_auth_config

        base_url = get_auth_config()["base_url"]
        if not base_url.startswith(("http://", "https://")):
            self.errors.append(f"AUTH_BASE_URL has invalid URL format: {base_url}")

    def _validate_logging_config(self):
        """Validate logging configuration"""
        from config import LOGGING_CONFIG

        log_level = LOGGING_CONFIG.get("log_level", "INFO")
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            self.errors.append(f"Invalid log level '{log_level}'. Must be one of: {', '.join(valid_levels)}")

        if LOGGING_CONFIG.get("enable_file_logging", True):
            parent_dir = Path(LOGGING_CONFIG.get("log_dir", "./logs")).resolve().parent
            if not parent_dir.exists():
                self.errors.append(f"Log directory parent '{parent_dir}' does not exist")
            elif not os.access(parent_dir, os.W_OK):
                self.errors.append(f"Log directory parent '{parent_dir}' is not writable")

        backup_count = LOGGING_CONFIG.get("backup_count", 5)
        if backup_count < 1 or backup_count > 50:
            self.warnings.append(f"Log backup count {backup_count} may be {'too low' if backup_count < 3 else 'too high'}. Recommended: 3-20")


def validate_startup_config() -> List[str]:
    """
    Validate configuration on startup.

    Returns:
        The list of warnings

    Raises:
        ConfigValidationError: If configuration errors are found
    """
    validator = ConfigValidator()
    is_valid, errors, warnings = validator.validate_all()

    for warning in warnings:
        logger.warning(f"Configuration warning: {warning}")

    if not is_valid:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        raise ConfigValidationError(
            f"Found {len(errors)} configuration error(s) that must be fixed before starting the application."
        )

    logger.info(f"Configuration validated with {len(warnings)} warning(s)")
    return warnings
