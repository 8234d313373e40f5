"""Simple YAML configuration loader for DialogChat."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
import logging

from ..models.intent import BiasPhrases, StreamingConfig, DEFAULT_BIAS_PHRASES, DEFAULT_BIAS_BOOST

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "dialogchat.yaml"


class DialogChatConfig:
    """DialogChat configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for dialogchat.yaml
                        in the current directory.
        """
        self.config_file = Path(config_path or DEFAULT_CONFIG_NAME)

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
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve Dialogflow credentials path
        if 'dialogflow' in config and 'credentials_path' in config['dialogflow']:
            creds_path = config['dialogflow']['credentials_path']
            if not os.path.isabs(creds_path):
                config['dialogflow']['credentials_path'] = str(config_dir / creds_path)

        # Resolve log file path
        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'dialogflow.language').

        Args:
            key_path: Dot-separated key path (e.g., 'dialogflow.credentials_path')
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
            key_path: Dot-separated path to config value (e.g., 'dialogflow.language')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_credentials_path(self) -> str:
        """Get Dialogflow service account path - raises if not found."""
        creds_path = self.get('dialogflow.credentials_path')
        if not creds_path:
            raise ValueError(f"Dialogflow credentials path not configured in {self.config_file.name}")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Dialogflow credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_language(self) -> str:
        return self.get('dialogflow.language', 'en-US')

    def get_bias_phrases(self) -> BiasPhrases:
        """Get the recognition hint list and its boost weight."""
        phrases: List[str] = self.get('dialogflow.bias_phrases', list(DEFAULT_BIAS_PHRASES))
        boost = float(self.get('dialogflow.bias_boost', DEFAULT_BIAS_BOOST))
        return BiasPhrases(phrases=[str(p) for p in phrases], boost=boost)

    def get_streaming_config(self) -> StreamingConfig:
        """Build the audio input configuration for streaming sessions."""
        return StreamingConfig(
            language_code=self.get_language(),
            sample_rate_hertz=int(self.get('audio.sample_rate', 16000)),
            single_utterance=bool(self.get('dialogflow.single_utterance', False)),
            bias_phrases=self.get_bias_phrases(),
        )
