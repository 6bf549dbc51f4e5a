"""
Configuration for oracle payload commands

Supports:
- YAML/JSON file loading
- Environment variable overrides
- Validation with sensible defaults
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any, Union
from pathlib import Path
import os
import json
import logging

import yaml
from dotenv import load_dotenv

from .feeds.redstone.gateway import DEFAULT_GATEWAY_URLS, DEFAULT_UNSIGNED_METADATA

logger = logging.getLogger(__name__)

# Load .env file if present
load_dotenv()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ============ Sub-Configurations ============

@dataclass
class PythConfig:
    """Pyth Hermes configuration"""
    hermes_url: str = "https://hermes.pyth.network"

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors"""
        errors = []
        if not isinstance(self.hermes_url, str) or not self.hermes_url.startswith(("http://", "https://")):
            errors.append("pyth.hermes_url must be an http(s) URL")
        return errors


@dataclass
class RedstoneConfig:
    """Redstone gateway configuration"""
    gateway_urls: List[str] = field(default_factory=lambda: list(DEFAULT_GATEWAY_URLS))

    # Distinct signers required per data feed
    unique_signers_count: int = 1

    # Appended to the payload after the signed packages
    unsigned_metadata: str = DEFAULT_UNSIGNED_METADATA

    def validate(self) -> List[str]:
        errors = []
        if not isinstance(self.gateway_urls, list):
            errors.append("redstone.gateway_urls must be a list of URLs")
        elif not self.gateway_urls:
            errors.append("redstone.gateway_urls must not be empty")
        else:
            for url in self.gateway_urls:
                if not isinstance(url, str) or not url.startswith(("http://", "https://")):
                    errors.append(f"redstone gateway {url!r} must be an http(s) URL")
        # bool is an int subclass
        if not isinstance(self.unique_signers_count, int) or isinstance(self.unique_signers_count, bool):
            errors.append("redstone.unique_signers_count must be an integer")
        elif self.unique_signers_count < 1:
            errors.append("redstone.unique_signers_count must be at least 1")
        if not isinstance(self.unsigned_metadata, str):
            errors.append("redstone.unsigned_metadata must be a string")
        elif len(self.unsigned_metadata.encode("utf-8")) >= 2 ** 24:
            errors.append("redstone.unsigned_metadata is too long")
        return errors


# ============ Main Configuration ============

@dataclass
class PayloadConfig:
    """Main configuration"""
    pyth: PythConfig = field(default_factory=PythConfig)
    redstone: RedstoneConfig = field(default_factory=RedstoneConfig)

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    def validate(self) -> List[str]:
        """Validate entire configuration"""
        errors = []
        errors.extend(self.pyth.validate())
        errors.extend(self.redstone.validate())

        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if not isinstance(self.log_file, str):
            errors.append("log_file must be a path string")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (for serialization)"""
        return asdict(self)


# ============ Configuration Loading ============

def _split_urls(value: str) -> List[str]:
    return [u.strip() for u in value.split(",") if u.strip()]


def _apply_env_overrides(config_dict: Dict) -> Dict:
    """Apply environment variable overrides to config"""
    env_mappings = {
        "PYTH_HERMES_URL": (("pyth", "hermes_url"), str),
        "REDSTONE_GATEWAY_URLS": (("redstone", "gateway_urls"), _split_urls),
        "REDSTONE_UNIQUE_SIGNERS": (("redstone", "unique_signers_count"), int),
        "REDSTONE_UNSIGNED_METADATA": (("redstone", "unsigned_metadata"), str),
        "LOG_LEVEL": (("log_level",), str),
        "LOG_FILE": (("log_file",), str),
    }

    for env_var, (path, convert) in env_mappings.items():
        value = os.getenv(env_var)
        if value is None:
            continue

        try:
            value = convert(value)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_var}: {e}") from e

        # Navigate to nested dict
        current = config_dict
        for key in path[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    return config_dict


def _dict_to_config(d: Dict) -> PayloadConfig:
    """Convert dictionary to PayloadConfig"""
    try:
        return PayloadConfig(
            pyth=PythConfig(**d.get("pyth", {})),
            redstone=RedstoneConfig(**d.get("redstone", {})),
            log_level=d.get("log_level", "INFO"),
            log_file=d.get("log_file", ""),
        )
    except TypeError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def load_config(config_path: Optional[Union[str, Path]] = None) -> PayloadConfig:
    """
    Load configuration from file or environment.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (YAML/JSON)
    3. Default values

    Args:
        config_path: Path to config file. If None, looks for:
            - ORACLE_PAYLOADS_CONFIG env var
            - ./payloads.yaml
            - ./payloads.json
            - ./config/payloads.yaml
            - ./config/payloads.json

    Returns:
        PayloadConfig instance
    """
    config_dict: Dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.getenv("ORACLE_PAYLOADS_CONFIG")

    if config_path is None:
        search_paths = [
            Path("payloads.yaml"),
            Path("payloads.json"),
            Path("config/payloads.yaml"),
            Path("config/payloads.json"),
        ]
        for path in search_paths:
            if path.exists():
                config_path = path
                break

    # Load from file if found
    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            logger.debug(f"Loading config from {config_path}")

            with open(config_path, 'r') as f:
                try:
                    if config_path.suffix in ['.yaml', '.yml']:
                        config_dict = yaml.safe_load(f) or {}
                    elif config_path.suffix == '.json':
                        config_dict = json.load(f)
                    else:
                        raise ValueError(f"Unsupported config file format: {config_path.suffix}")
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid config file {config_path}: {e}") from e
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid config file {config_path}: {e}") from e
        else:
            logger.warning(f"Config file not found: {config_path}")

    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    config_dict = _apply_env_overrides(config_dict)
    config = _dict_to_config(config_dict)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config validation error: {error}")
        raise ValueError(f"Configuration validation failed with {len(errors)} errors")

    return config


def save_config(config: PayloadConfig, path: Union[str, Path], format: str = "yaml") -> None:
    """
    Save configuration to file.

    Args:
        config: PayloadConfig to save
        path: Output file path
        format: "yaml" or "json"
    """
    path = Path(path)
    config_dict = config.to_dict()

    with open(path, 'w') as f:
        if format == "yaml":
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
        elif format == "json":
            json.dump(config_dict, f, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")

    logger.info(f"Config saved to {path}")


def generate_default_config(path: Union[str, Path], format: str = "yaml") -> None:
    """Generate a default configuration file"""
    save_config(PayloadConfig(), path, format)
