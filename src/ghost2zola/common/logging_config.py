"""Logging section of the ghost2zola configuration."""

from typing import Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator


class LoggingConfig(BaseModel):
    """How conversion progress and warnings are reported."""

    model_config = ConfigDict(extra='forbid')

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="simple",
        description="Console log format"
    )
    file: str | None = Field(
        default=None,
        description="Optional log file; always written as JSON lines"
    )
    file_max_size_mb: int = Field(
        default=10,
        ge=1,
        description="Rotate the log file after this many megabytes"
    )
    file_backup_count: int = Field(
        default=3,
        ge=0,
        description="Number of rotated log files to keep"
    )

    @field_validator('level', 'format', mode='before')
    @classmethod
    def normalize_case(cls, v: str, info) -> str:
        """Accept level and format case-insensitively."""
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == 'level' else v.lower()

    @field_validator('file', mode='before')
    @classmethod
    def empty_file_is_none(cls, v):
        """An empty string from TOML or the environment disables the file log."""
        if isinstance(v, str) and not v.strip():
            return None
        return v
