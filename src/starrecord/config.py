"""
Configuration Management for StarRecord

🔧 Unified Configuration System:
This module provides configuration for the model layer - query paging
limits, cache lifetimes, validator secrets and logging - with presets for
different environments and loaders for dicts, files and environment
variables.
"""

from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, asdict
from enum import Enum
import json
import logging
import os
from pathlib import Path


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class QueryConfig:
    """Query paging configuration"""
    default_limit: int = 100
    max_limit: int = 1000


@dataclass
class CacheConfig:
    """Model caching configuration"""
    default_ttl: int = 86400  # 1 day
    key_prefix: str = "models"


@dataclass
class ValidationConfig:
    """Validator configuration"""
    salt: str = ""
    password_min_length: int = 8


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class StarRecordConfig:
    """Complete model layer configuration"""
    environment: Environment = Environment.DEVELOPMENT

    query: QueryConfig = field(default_factory=QueryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'StarRecordConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.logging.level = "DEBUG"

        elif environment == Environment.TESTING:
            config.logging.level = "WARNING"
            config.cache.default_ttl = 60

        elif environment == Environment.PRODUCTION:
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'StarRecordConfig':
        """Create configuration from dictionary"""
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls.for_environment(environment)

        for section in ("query", "cache", "validation", "logging"):
            if section not in config_dict:
                continue
            target = getattr(config, section)
            for key, value in config_dict[section].items():
                if hasattr(target, key):
                    setattr(target, key, value)

        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'StarRecordConfig':
        """Load configuration from a JSON or YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix == '.json':
            with open(config_path) as f:
                config_dict = json.load(f)
        elif config_path.suffix in ('.yml', '.yaml'):
            import yaml
            with open(config_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        return cls.from_dict(config_dict)

    @classmethod
    def from_environment(cls) -> 'StarRecordConfig':
        """Create configuration from environment variables"""
        env_name = os.getenv('STARRECORD_ENV', 'development')
        config = cls.for_environment(Environment(env_name))

        if os.getenv('STARRECORD_LOG_LEVEL'):
            config.logging.level = os.getenv('STARRECORD_LOG_LEVEL').upper()

        if os.getenv('STARRECORD_PASSWORD_SALT'):
            config.validation.salt = os.getenv('STARRECORD_PASSWORD_SALT')

        if os.getenv('STARRECORD_CACHE_TTL'):
            config.cache.default_ttl = int(os.getenv('STARRECORD_CACHE_TTL'))

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        result = asdict(self)
        result["environment"] = self.environment.value
        return result


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Attach a stream handler to the ``starrecord`` logger.

    Args:
        config: Logging configuration, defaults to the global one

    Returns:
        The package logger
    """
    config = config or get_config().logging
    logger = logging.getLogger("starrecord")
    logger.setLevel(config.level)

    if not any(getattr(h, "_starrecord", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler._starrecord = True
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setFormatter(logging.Formatter(config.format))

    return logger


# Global configuration management
_current_config: Optional[StarRecordConfig] = None


def set_config(config: Optional[StarRecordConfig]):
    """Set the global configuration (``None`` resets to environment defaults)"""
    global _current_config
    _current_config = config


def get_config() -> StarRecordConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        _current_config = StarRecordConfig.from_environment()

    return _current_config


__all__ = [
    "StarRecordConfig", "Environment", "QueryConfig", "CacheConfig",
    "ValidationConfig", "LoggingConfig", "configure_logging",
    "set_config", "get_config"
]
