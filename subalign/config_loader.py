"""Handles loading configuration from YAML files and the environment."""

import yaml
import os
import logging
from typing import Optional
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

API_KEY_PLACEHOLDER = "YOUR_API_KEY_HERE"
API_KEY_ENV_VARS = ("API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY")

DEFAULT_CONFIG = {
    'model_name': 'gemini-2.5-flash',
    'default_mime_type': 'audio/mpeg',
    'output_dir': 'output',
    'log_dir': 'logs',
    'log_file': 'subalign.log',
    'api_key_env': None, # Extra variable checked before API_KEY_ENV_VARS
}

def get_api_key(extra_env_var: Optional[str] = None) -> str:
    """
    Reads the model API key from the process environment.

    Missing keys are not fatal: a placeholder is returned and every request
    made with it will fail at the service.

    Args:
        extra_env_var: Optional variable name checked before the defaults.

    Returns:
        The API key, or API_KEY_PLACEHOLDER if none is set.
    """
    names = ((extra_env_var,) if extra_env_var else ()) + API_KEY_ENV_VARS
    for name in names:
        value = os.getenv(name)
        if value:
            logger.debug(f"Using API key from environment variable {name}")
            return value
    logger.warning(
        f"No API key found in environment ({', '.join(names)}). Using a placeholder. "
        "Please provide a valid key for generation to work."
    )
    return API_KEY_PLACEHOLDER

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the loaded configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
            logger.error(f"Configuration path is not a file: {config_path}")
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except (IOError, UnicodeDecodeError) as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if config is None:
            # Empty file
            config = {}
        if not isinstance(config, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config

    def with_defaults(self, config: Optional[dict] = None) -> dict:
        """
        Returns a copy of `config` with every missing key taken from DEFAULT_CONFIG.

        Raises:
            ConfigurationError: If a known setting has the wrong type.
        """
        merged = dict(DEFAULT_CONFIG)
        merged.update(config or {})
        for key in ('model_name', 'default_mime_type', 'output_dir', 'log_dir', 'log_file'):
            if not isinstance(merged[key], str) or not merged[key]:
                raise ConfigurationError(f"Configuration key '{key}' must be a non-empty string.")
        if merged['api_key_env'] is not None and not isinstance(merged['api_key_env'], str):
            raise ConfigurationError("Configuration key 'api_key_env' must be a string.")
        return merged
