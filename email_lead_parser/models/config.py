"""
Configuration management with environment-specific settings and validation.
"""
import os
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum

from ..utils.exceptions import ConfigurationError


class Environment(str, Enum):
    """Supported environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO")
    format: str = Field(default="json")

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in valid_levels:
            raise ValueError(f'Invalid log level: {v}')
        return v.upper()

    @field_validator('format')
    @classmethod
    def validate_format(cls, v):
        if v.lower() not in {'json', 'text'}:
            raise ValueError(f'Invalid log format: {v}')
        return v.lower()


class ParsingConfig(BaseModel):
    """Classification and extraction tuning."""
    classification_threshold: float = Field(default=2.0, ge=0)
    generic_threshold: float = Field(default=2.0, ge=0)
    max_children: int = Field(default=5, ge=1, le=10)
    apply_defaults: bool = Field(default=False)


class MonitoringConfig(BaseModel):
    """Monitoring and metrics configuration."""
    enable_custom_metrics: bool = Field(default=False)
    metric_namespace: str = Field(default="EmailLeadParser", min_length=1)
    region_name: str = Field(default="eu-west-3")


class AppConfig(BaseModel):
    """Main application configuration."""
    model_config = ConfigDict(use_enum_values=True)

    environment: Environment = Field(default=Environment.DEVELOPMENT)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes')


def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    Returns:
        AppConfig: Validated application configuration

    Raises:
        ConfigurationError: If a variable holds an invalid value
    """
    try:
        logging_config = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO'),
            format=os.getenv('LOG_FORMAT', 'json')
        )

        parsing_config = ParsingConfig(
            classification_threshold=float(os.getenv('LEAD_CLASSIFICATION_THRESHOLD', '2.0')),
            generic_threshold=float(os.getenv('GENERIC_PARSER_THRESHOLD', '2.0')),
            max_children=int(os.getenv('MAX_CHILDREN', '5')),
            apply_defaults=_env_flag('APPLY_DEFAULTS', 'false')
        )

        monitoring_config = MonitoringConfig(
            enable_custom_metrics=_env_flag('ENABLE_CUSTOM_METRICS', 'false'),
            metric_namespace=os.getenv('METRIC_NAMESPACE', 'EmailLeadParser'),
            region_name=os.getenv('AWS_REGION', 'eu-west-3')
        )

        return AppConfig(
            environment=Environment(os.getenv('ENVIRONMENT', 'development')),
            logging=logging_config,
            parsing=parsing_config,
            monitoring=monitoring_config
        )

    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Failed to load configuration: {e}", cause=e)


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get cached configuration instance.

    Returns:
        AppConfig: Application configuration
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config():
    """Forget the cached configuration so the next call reloads it."""
    global _config
    _config = None
