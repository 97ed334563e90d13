"""Base error definitions for ghost2zola."""

from typing import Any, Dict


class Ghost2ZolaError(Exception):
    """Base exception for all ghost2zola errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(Ghost2ZolaError):
    """Configuration is invalid or missing."""
    pass
