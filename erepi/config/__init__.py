"""Simple YAML configuration loader for Eリピ."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "erepi.yaml"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "data" / "default_config.yaml"


def find_config_file(start_dir: Optional[str] = None) -> Path:
    """Locate erepi.yaml in start_dir or its parents, else the packaged defaults."""
    current = Path(start_dir or os.getcwd()).resolve()
    for directory in [current, *current.parents]:
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return DEFAULT_CONFIG_PATH


class ErepiConfig:
    """Eリピ configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for erepi.yaml
                        in current directory and parent directories, falling
                        back to the packaged defaults.
        """
        self.config_file = Path(config_path) if config_path else find_config_file()

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        def resolve(section: Dict[str, Any], key: str) -> None:
            value = section.get(key)
            if not value:
                return
            value = os.path.expanduser(value)
            section[key] = value if os.path.isabs(value) else str(config_dir / value)

        google = config.get('transcription', {}).get('google') or {}
        if 'credentials_path' in google:
            resolve(google, 'credentials_path')

        if 'audio' in config and 'clip_directory' in config['audio']:
            resolve(config['audio'], 'clip_directory')

        if 'logging' in config and 'file_path' in config['logging']:
            resolve(config['logging'], 'file_path')

        # Question sources may also be URLs
        if 'questions' in config and 'source' in config['questions']:
            source = config['questions']['source']
            if source and not source.startswith(("http://", "https://")):
                resolve(config['questions'], 'source')

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'audio.sample_rate').

        Args:
            key_path: Dot-separated key path (e.g., 'transcription.whisper.model_size')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'questions.default_level')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - CRASHES if not found."""
        creds_path = self.get('transcription.google.credentials_path')
        if not creds_path:
            raise ValueError(f"Google credentials path not configured in {self.config_file.name}")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_questions_source(self) -> str:
        """Question bank path or URL; the packaged bank when unset."""
        source = self.get('questions.source')
        if not source:
            return str(Path(__file__).resolve().parent.parent / "data" / "questions.yaml")
        return source
