"""Configuration Management for WaveOps

Handles loading, validation, and management of engine configuration.
Supports hierarchical YAML configuration with environment overrides.
"""

import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .error_handler import ConfigurationError
from .logging_manager import LoggingManager


class ParserConfig(BaseModel):
    """Tunables for the natural-language command parser."""
    enable_fuzzy_matching: bool = Field(default=True)
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    max_alternatives: int = Field(default=3, ge=0)
    allow_ambiguous_commands: bool = Field(default=False)
    vocabulary_extensions: Dict[str, List[str]] = Field(default_factory=dict)
    max_range_size: int = Field(default=100, ge=1)

    model_config = ConfigDict(frozen=True)

    @field_validator('vocabulary_extensions')
    @classmethod
    def validate_vocabulary(cls, v):
        """Vocabulary keys and synonyms are matched against lower-cased input"""
        return {
            key.lower(): [word.lower() for word in words]
            for key, words in v.items()
        }


class DispatcherConfig(BaseModel):
    """Configuration for command dispatch."""
    success_policy: str = Field(default="any", pattern="^(any|all)$")

    model_config = ConfigDict(frozen=True)


class LoggingConfig(BaseModel):
    """Configuration for logging."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    file_path: str = Field(default="logs/waveops.log")
    max_file_size: str = Field(default="10MB")
    backup_count: int = Field(default=5, ge=1, le=20)
    log_to_console: bool = Field(default=True)
    log_to_file: bool = Field(default=False)

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator('max_file_size')
    @classmethod
    def validate_file_size(cls, v):
        """Validate file size format"""
        import re
        if not re.match(r'^\d+[KMG]B$', v.upper()):
            raise ValueError("File size must be in format: 10KB, 10MB, or 1GB")
        return v.upper()


class AppConfig(BaseModel):
    """Main application configuration."""
    app_name: str = Field(default="WaveOps")
    environment: str = Field(default="development", pattern="^(development|testing|staging|production)$")

    # Component configurations
    parser: ParserConfig = Field(default_factory=ParserConfig)
    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(validate_assignment=True)


class ConfigManager:
    """Manages application configuration loading and validation."""

    ENV_PREFIX = "WAVEOPS_"
    SECTIONS = ("parser", "dispatcher", "logging")

    def __init__(self, config_path: Optional[Path] = None, environment: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to the configuration directory
            environment: Environment name (development, testing, staging, production)
        """
        self.config_base_path = Path(config_path) if config_path else self._get_default_config_path()
        self.environment = environment or os.getenv('WAVEOPS_ENV', 'development')
        self._config: Optional[AppConfig] = None
        self._lock = threading.Lock()
        self.logger = LoggingManager.get_logger(__name__)

        # Configuration file paths
        self.config_files = self._get_config_files()

    def _get_default_config_path(self) -> Path:
        """Get the default configuration directory."""
        # Looking for config in order of precedence
        config_locations = [
            Path("config"),
            Path.home() / ".waveops",
            Path("/etc/waveops"),
        ]

        for location in config_locations:
            if location.exists() and location.is_dir():
                return location

        return Path("config")

    def _get_config_files(self) -> Dict[str, Path]:
        """Get configuration file paths for hierarchical loading."""
        base_dir = self.config_base_path

        return {
            'default': base_dir / 'default_config.yaml',
            'environment': base_dir / f'{self.environment}.yaml',
            'local': base_dir / 'local.yaml'  # For development overrides
        }

    def load_config(self) -> AppConfig:
        """Load and validate configuration with hierarchical overrides.

        Returns:
            Validated application configuration

        Raises:
            ConfigurationError: If a file cannot be parsed or validation fails
        """
        with self._lock:
            if self._config:
                return self._config

            config_data: Dict[str, Any] = {'environment': self.environment}

            # Load configurations in order of precedence
            for config_type, config_file in self.config_files.items():
                if config_file.exists():
                    self.logger.info(f"Loading {config_type} config from {config_file}")
                    self._deep_merge(config_data, self._load_yaml_file(config_file))

            # Apply environment variable overrides
            env_overrides = self._get_env_overrides()
            if env_overrides:
                self.logger.info(f"Applying environment overrides: {list(env_overrides.keys())}")
                self._deep_merge(config_data, env_overrides)

            try:
                self._config = AppConfig(**config_data)
            except ValidationError as e:
                self.logger.error(f"Configuration validation failed: {e}")
                raise ConfigurationError(f"Invalid configuration: {e}") from e

            return self._config

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML configuration file.

        Returns:
            Configuration dictionary
        """
        try:
            with open(file_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            self.logger.error(f"Failed to parse YAML file {file_path}: {e}")
            raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {file_path} must contain a mapping")
        return data

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Get configuration overrides from environment variables.

        Environment variables follow pattern: WAVEOPS_<SECTION>_<KEY>
        Example: WAVEOPS_PARSER_CONFIDENCE_THRESHOLD -> parser.confidence_threshold
        """
        overrides: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX):
                continue

            section, _, field_name = key[len(self.ENV_PREFIX):].lower().partition('_')
            if section not in self.SECTIONS or not field_name:
                continue

            overrides.setdefault(section, {})[field_name] = self._convert_env_value(value)

        return overrides

    def _convert_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Convert environment variable string to appropriate type."""
        # Boolean conversion
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        # Numeric conversion
        try:
            if '.' in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def _deep_merge(self, base_dict: Dict[str, Any], update_dict: Dict[str, Any]):
        """Recursively merge nested dictionaries."""
        for key, value in update_dict.items():
            if isinstance(value, dict) and key in base_dict and isinstance(base_dict[key], dict):
                self._deep_merge(base_dict[key], value)
            else:
                base_dict[key] = value

    def reload_config(self) -> AppConfig:
        """Reload configuration from files, keeping the old one on failure."""
        self.logger.info("Reloading configuration...")

        old_config = self._config
        self._config = None
        try:
            return self.load_config()
        except ConfigurationError:
            self._config = old_config
            raise

    def save_default_config(self) -> Path:
        """Write the current (or default) configuration to default_config.yaml."""
        config = self._config or AppConfig()
        default_file = self.config_files['default']
        default_file.parent.mkdir(parents=True, exist_ok=True)

        with open(default_file, 'w') as f:
            yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)

        self.logger.info(f"Created default configuration at {default_file}")
        return default_file

    def validate_config(self, config_data: Dict[str, Any]) -> List[str]:
        """Validate configuration data without applying it.

        Args:
            config_data: Configuration data to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        try:
            AppConfig(**config_data)
        except ValidationError as e:
            for error in e.errors():
                field_path = '.'.join(str(loc) for loc in error['loc'])
                errors.append(f"{field_path}: {error['msg']}")

        return errors
