"""Configuration management for the statement extractor."""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from ..models.core import Bank, EntityOption, ExtractorConfig


logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages loading and validation of extractor configuration"""

    SEARCH_PATHS = [
        'extractor_config.json',
        'extractor_config.yml',
        'extractor_config.yaml',
        'config/extractor_config.json',
        'config/extractor_config.yml',
        'config/extractor_config.yaml',
        os.path.expanduser('~/.extracto_bancario/config.json'),
        os.path.expanduser('~/.extracto_bancario/config.yml'),
    ]

    STRING_KEYS = ['model', 'api_key_env', 'document_mode', 'malformed_row_policy',
                   'output_directory', 'default_bank', 'default_entity']

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to configuration file. If None, searches for default locations.
        """
        self.config_path = config_path
        self._config_cache: Optional[ExtractorConfig] = None
        self.problems: List[str] = []

    def load_config(self, force_reload: bool = False) -> ExtractorConfig:
        """Load extractor configuration from file or return default

        Args:
            force_reload: Force reload from file even if cached

        Returns:
            ExtractorConfig instance with loaded or default configuration
        """
        if self._config_cache is not None and not force_reload:
            return self._config_cache

        self.problems = []
        config_data = self._load_config_file()

        config = ExtractorConfig(**{
            key: value for key, value in config_data.items()
            if key in ExtractorConfig.__dataclass_fields__
        })
        problems = config.validate()
        if problems:
            logger.warning(f"Invalid configuration ({'; '.join(problems)}). Using defaults.")
            self.problems.extend(problems)
            config = ExtractorConfig()

        self._config_cache = config
        logger.info(f"Configuration loaded from {self.config_path or 'defaults'}")
        return self._config_cache

    def _load_config_file(self) -> Dict[str, Any]:
        """Load configuration from file

        Returns:
            Dictionary with configuration data or empty dict if no file found
        """
        config_file = self._find_config_file()

        if not config_file or not os.path.exists(config_file):
            logger.info("No configuration file found, using defaults")
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.endswith('.json'):
                    data = json.load(f)
                elif config_file.endswith(('.yml', '.yaml')):
                    data = yaml.safe_load(f)
                else:
                    logger.warning(f"Unsupported config file format: {config_file}")
                    return {}

            self._validate_config_data(data)
            logger.info(f"Configuration loaded from {config_file}")
            return data

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error reading configuration file {config_file}: {e}")
            self.problems.append(f"{config_file}: {e}")
            return {}

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations"""
        if self.config_path:
            return self.config_path

        for path in self.SEARCH_PATHS:
            if os.path.exists(path):
                return path

        return None

    def _validate_config_data(self, data: Dict[str, Any]) -> None:
        """Validate configuration data structure

        Raises:
            ValueError: If configuration data is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")

        for key in self.STRING_KEYS:
            if key in data:
                if not isinstance(data[key], str):
                    raise ValueError(f"{key} must be a string")
                if not data[key].strip():
                    raise ValueError(f"{key} cannot be empty")

        if 'log_directory' in data and data['log_directory'] is not None:
            if not isinstance(data['log_directory'], str):
                raise ValueError("log_directory must be a string")

        if 'request_timeout' in data:
            timeout = data['request_timeout']
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ValueError("request_timeout must be a number")

        if 'bank_hints' in data:
            hints = data['bank_hints']
            if not isinstance(hints, dict):
                raise ValueError("bank_hints must be a dictionary")
            for bank_label, hint in hints.items():
                Bank.from_label(bank_label)
                if not isinstance(hint, str):
                    raise ValueError(f"Hint for {bank_label} must be a string")

    def save_config_template(self, output_path: str) -> None:
        """Generate and save a configuration file template

        Args:
            output_path: Path where to save the template
        """
        defaults = ExtractorConfig()
        template = {
            "model": defaults.model,
            "api_key_env": defaults.api_key_env,
            "request_timeout": defaults.request_timeout,
            "document_mode": defaults.document_mode,
            "malformed_row_policy": defaults.malformed_row_policy,
            "output_directory": defaults.output_directory,
            "log_directory": "logs",
            "default_bank": Bank.POPULAR.value,
            "default_entity": EntityOption.GVAL.value,
            "bank_hints": {
                Bank.BANCOLOMBIA.value: "Amounts use ',' for thousands and '.' for decimals."
            }
        }

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            if output_path.endswith(('.yml', '.yaml')):
                yaml.dump(template, f, default_flow_style=False, indent=2, allow_unicode=True)
            else:
                json.dump(template, f, indent=2, ensure_ascii=False)

        logger.info(f"Configuration template saved to {output_path}")

    def reset_config(self) -> None:
        """Reset configuration cache, forcing reload on next access"""
        self._config_cache = None
        logger.debug("Configuration cache reset")
