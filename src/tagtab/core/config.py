"""
Configuration management for tagtab.

Loads reader/writer defaults and logging settings from the environment and
provides a process-wide configuration object. Every Reader, Writer, Encoder
and Decoder accepts explicit keyword overrides that take priority over it.

Configuration precedence (highest to lowest):
1. Explicit kwargs passed to TagTabConfig
2. Environment variables (TAGTAB_* prefix)
3. .env file
4. pyproject.toml [tool.tagtab] section
5. Hardcoded defaults
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from ..exceptions import ConfigurationError
from ..models.enums import LogLevel

logger = logging.getLogger(__name__)

# Runes with a fixed meaning in the grammar; none of them may be configured
# as the delimiter or comment character.
RESERVED_RUNES = frozenset({"\r", "\n", "`", "^"})


def check_rune(value: str, field: str) -> str:
    """
    Validate a configurable single-character rune.

    Args:
        value: Candidate delimiter or comment character
        field: Setting name, for the error message

    Returns:
        The value unchanged

    Raises:
        ConfigurationError: If the value is not one non-reserved character
    """
    if len(value) != 1:
        raise ConfigurationError(f"{field} must be a single character", field=field, value=value)
    if value in RESERVED_RUNES:
        raise ConfigurationError(
            f"{field} cannot be CR, LF, backtick or caret", field=field, value=value
        )
    return value


def load_pyproject_defaults(path: Path = Path("pyproject.toml")) -> dict[str, Any]:
    """
    Settings from the [tool.tagtab] table of a pyproject file.

    A missing or unreadable file yields no settings.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring %s: %s", path, e)
        return {}

    section = data.get("tool", {}).get("tagtab", {})
    if section:
        logger.debug("Loaded %d tagtab settings from %s", len(section), path)
    return section


class PyProjectTomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by [tool.tagtab] in the working directory's pyproject.toml."""

    def get_field_value(self, field_name: str, field_info: Any) -> tuple[Any, str, bool]:
        # Values are supplied all at once by __call__
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return load_pyproject_defaults()


class TagTabConfig(BaseSettings):
    """
    Defaults for tagged-tab readers and writers plus logging settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="TAGTAB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Grammar
    delimiter: str = Field(default="\t", description="Field delimiter rune")
    comment: str | None = Field(
        default=None, description="Comment rune at the start of a line (None disables comments)"
    )
    fields_per_record: int = Field(
        default=0,
        description="Field count policy: negative = unconstrained, 0 = fixed by first record, "
        "positive = fixed count",
    )
    encoding: str = Field(default="utf-8", description="Text encoding of byte streams")

    # Logging
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(
        default=None,
        description="Path to log file (None disables file logging)",
    )
    log_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Maximum log file size before rotation"  # 10MB
    )
    log_backup_count: int = Field(default=5, description="Number of backup log files to keep")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Put pyproject.toml below the environment and .env in priority."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            PyProjectTomlSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        try:
            return check_rune(v, "delimiter")
        except ConfigurationError as e:
            raise ValueError(e.message) from e

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: str | None) -> str | None:
        if not v:
            return None
        try:
            return check_rune(v, "comment")
        except ConfigurationError as e:
            raise ValueError(e.message) from e

    @field_validator("log_max_bytes", "log_backup_count")
    @classmethod
    def validate_log_rotation(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"log rotation settings must be >= 0, got {v}")
        return v

    @model_validator(mode="after")
    def validate_cross_field_constraints(self) -> "TagTabConfig":
        if self.comment is not None and self.comment == self.delimiter:
            raise ValueError("comment character must differ from the delimiter")
        return self

    def ensure_log_directory(self) -> None:
        """Ensure the log directory exists."""
        if self.log_file and self.log_file.parent:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
_config: TagTabConfig | None = None


def get_config() -> TagTabConfig:
    """
    Get the global configuration instance, creating it on first use.

    Returns:
        TagTabConfig instance
    """
    global _config
    if _config is None:
        _config = TagTabConfig()
        _config.ensure_log_directory()
    return _config


def reset_config() -> None:
    """Reset the global configuration (mainly for testing)."""
    global _config
    _config = None
