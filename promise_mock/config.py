"""
PromiseMock Configuration

Lets a test harness declare, in one place, which exception types must
escape continuation handlers and how verbose the settlement trace is.
Configuration can come from a YAML/JSON file or from environment
variables, and is applied to an engine with apply_config().
"""

import builtins
import importlib
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .engine.resolution import ResolutionEngine, get_default_engine
from .exceptions.errors import ConfigurationError
from .utils.logging import DEFAULT_FORMAT, configure_logging, get_logger

logger = get_logger(__name__)

ENV_PREFIX = "PROMISE_MOCK_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class PromiseMockConfig(BaseModel):
    """Main configuration for PromiseMock"""

    # Dotted import paths; bare names are looked up in builtins
    assertion_exception_types: List[str] = Field(default_factory=list)

    log_level: str = "WARNING"
    log_format: str = DEFAULT_FORMAT

    @field_validator("assertion_exception_types", mode="before")
    @classmethod
    def split_type_names(cls, v):
        """Accept a comma separated string as well as a list"""
        if v is None:
            return []
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Expected one of {_LOG_LEVELS}")
        return level


def get_default_config() -> PromiseMockConfig:
    """Get default configuration"""
    return PromiseMockConfig()


def load_config_from_file(config_path: Union[str, Path]) -> PromiseMockConfig:
    """
    Load configuration from a JSON or YAML file

    Args:
        config_path: Path to configuration file

    Returns:
        PromiseMockConfig instance
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        if config_path.suffix.lower() in [".yaml", ".yml"]:
            data = yaml.safe_load(f)
        elif config_path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            raise ConfigurationError(
                f"Unsupported config file format: {config_path.suffix}",
                {"path": str(config_path)},
            )

    return _config_from_dict(data or {}, source=str(config_path))


def load_config_from_env(environ: Optional[Dict[str, str]] = None) -> PromiseMockConfig:
    """
    Load configuration from environment variables

    Recognised variables:
        PROMISE_MOCK_ASSERTION_TYPES: comma separated exception type names
        PROMISE_MOCK_LOG_LEVEL: logging level name
        PROMISE_MOCK_LOG_FORMAT: logging format string

    Args:
        environ: Mapping to read instead of os.environ

    Returns:
        PromiseMockConfig instance
    """
    environ = os.environ if environ is None else environ

    env_mappings = {
        f"{ENV_PREFIX}ASSERTION_TYPES": "assertion_exception_types",
        f"{ENV_PREFIX}LOG_LEVEL": "log_level",
        f"{ENV_PREFIX}LOG_FORMAT": "log_format",
    }

    data: Dict[str, Any] = {}
    for env_var, field_name in env_mappings.items():
        if env_var in environ:
            data[field_name] = environ[env_var]

    return _config_from_dict(data, source="environment")


def _config_from_dict(data: Dict[str, Any], source: str) -> PromiseMockConfig:
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration from {source} must be a mapping", {"source": source}
        )

    try:
        return PromiseMockConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration from {source}: {e}",
            {"source": source, "errors": e.errors()},
        ) from e


def resolve_exception_type(name: str) -> Type[BaseException]:
    """
    Import an exception class by name

    Args:
        name: "module.path.ClassName", or a builtin name like "AssertionError"

    Returns:
        The exception class

    Raises:
        ConfigurationError: If the name cannot be imported or is not an
            exception class
    """
    module_name, _, attr = name.rpartition(".")

    try:
        if module_name:
            obj = getattr(importlib.import_module(module_name), attr)
        else:
            obj = getattr(builtins, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(
            f"Cannot resolve exception type: {name}", {"name": name}
        ) from e

    if not (isinstance(obj, type) and issubclass(obj, BaseException)):
        raise ConfigurationError(f"Not an exception type: {name}", {"name": name})

    return obj


def resolve_exception_types(names: List[str]) -> Tuple[Type[BaseException], ...]:
    """Import every name in order, see resolve_exception_type()"""
    return tuple(resolve_exception_type(name) for name in names)


def apply_config(
    config: Optional[PromiseMockConfig] = None,
    engine: Optional[ResolutionEngine] = None,
) -> ResolutionEngine:
    """
    Apply a configuration to an engine

    The engine's registered exception types are replaced wholesale.

    Args:
        config: Configuration to apply, the default configuration when omitted
        engine: Target engine, the default engine when omitted

    Returns:
        The configured engine
    """
    config = config if config is not None else get_default_config()
    engine = engine if engine is not None else get_default_engine()

    kinds = resolve_exception_types(config.assertion_exception_types)
    engine.classifier.replace(kinds)

    configure_logging(config.log_level, config.log_format)
    logger.debug(
        f"Applied configuration: {len(kinds)} assertion exception type(s)"
    )
    return engine
