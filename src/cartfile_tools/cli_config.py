"""
Configuration management for cartfile-tools.

Settings come from built-in defaults, then the first config file found
(JSON or TOML), then environment variables.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

from .error_handling import log_configuration_error, log_validation_error

ENV_PREFIX = "CARTFILE_TOOLS_"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LimitsConfig:
    """Input size limits applied when reading manifest files."""

    max_file_size_mb: int = 10

    @property
    def max_file_size_bytes(self) -> int:
        """Convert MB to bytes for internal use."""
        return self.max_file_size_mb * 1024 * 1024


@dataclass
class LoggingConfig:
    """Logging and error handling configuration."""

    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = True


@dataclass
class OutputConfig:
    quiet: bool = False
    color: bool = True


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    limits: LimitsConfig = field(default_factory=LimitsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Global configuration instance
_global_config: Optional[ComprehensiveConfig] = None


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not isinstance(config.limits.max_file_size_mb, int) or config.limits.max_file_size_mb <= 0:
        errors.append("limits.max_file_size_mb must be a positive integer")

    if str(config.logging.log_level).upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"logging.log_level must be one of {', '.join(VALID_LOG_LEVELS)}"
        )

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a JSON or TOML file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() == ".toml":
                return toml.load(f)
            elif config_path.suffix.lower() == ".json":
                return json.load(f)
    except (OSError, ValueError, toml.TomlDecodeError) as e:
        log_configuration_error(
            f"Error loading config from {config_path}: {e}",
            "load_config_file",
            file_path=str(config_path),
            exception=e,
        )

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".cartfile-tools.json",
        Path.cwd() / ".cartfile-tools.toml",
        Path.home() / ".config" / "cartfile-tools" / "config.json",
        Path.home() / ".config" / "cartfile-tools" / "config.toml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Apply CARTFILE_TOOLS_* environment variables."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    def get_env_int(key: str) -> Optional[int]:
        try:
            return int(os.environ[key]) if key in os.environ else None
        except ValueError:
            log_configuration_error(
                f"Invalid integer value for {key}, using default",
                "load_environment_overrides",
            )
            return None

    if log_level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        config.logging.log_level = log_level.upper()
    if max_file_size := get_env_int(f"{ENV_PREFIX}MAX_FILE_SIZE_MB"):
        config.limits.max_file_size_mb = max_file_size

    config.output.quiet = get_env_bool(f"{ENV_PREFIX}QUIET", config.output.quiet)
    config.output.color = get_env_bool(f"{ENV_PREFIX}COLOR", config.output.color)


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            log_validation_error(
                f"Unknown config key in {section_name}: {key}",
                "apply_config_section",
                section=section_name,
            )


def apply_config_data(config: ComprehensiveConfig, data: Dict[str, Any]) -> None:
    for section_name in ("limits", "logging", "output"):
        if section_name in data:
            apply_config_section(
                getattr(config, section_name), data[section_name], section_name
            )


def load_config() -> ComprehensiveConfig:
    """Load configuration from file and environment."""
    config = ComprehensiveConfig()

    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config:
            apply_config_data(config, file_config)

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        for error in validation_errors:
            log_validation_error(error, "load_config", section=error.split(".")[0])
        defaults = ComprehensiveConfig()
        for section_name in ("limits", "logging", "output"):
            if any(error.startswith(f"{section_name}.") for error in validation_errors):
                setattr(config, section_name, getattr(defaults, section_name))

    return config


def get_config() -> ComprehensiveConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample JSON configuration."""
    return json.dumps(ComprehensiveConfig().to_dict(), indent=2)
