"""Server configuration loaded from the environment and the user config file."""

import json
import os
from dataclasses import dataclass

from engine.config import CONTENT_TIMEOUT_SECONDS

DEFAULT_CONFIG_FILE = '~/.config/rebuzzle/config.json'
DEFAULT_MODEL = 'gemini-2.0-flash'


@dataclass
class Settings:
    api_key: str
    model_name: str = DEFAULT_MODEL
    content_timeout: float = CONTENT_TIMEOUT_SECONDS


def load_config(config_file: str = None) -> dict:
    config_file = os.path.expanduser(config_file or DEFAULT_CONFIG_FILE)
    if not os.path.exists(config_file):
        raise FileNotFoundError(
            f"Config file not found at {config_file}\n"
            f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
        )
    with open(config_file, 'r') as f:
        return json.load(f)


def load_api_key(config_file: str = None) -> str:
    """API key from GEMINI_API_KEY, falling back to the config file."""
    # Get API key from environment variable first, then fall back to config file
    api_key = os.environ.get('GEMINI_API_KEY')
    if not api_key:
        try:
            api_key = load_config(config_file).get('gemini_api_key')
        except FileNotFoundError:
            pass

    if not api_key:
        raise RuntimeError(
            "GEMINI_API_KEY environment variable not set and config file not found. "
            f"Set GEMINI_API_KEY or create {DEFAULT_CONFIG_FILE}"
        )
    return api_key


def load_settings(config_file: str = None) -> Settings:
    timeout = os.environ.get('REBUZZLE_CONTENT_TIMEOUT')
    return Settings(
        api_key=load_api_key(config_file),
        model_name=os.environ.get('REBUZZLE_MODEL', DEFAULT_MODEL),
        content_timeout=float(timeout) if timeout else CONTENT_TIMEOUT_SECONDS,
    )
