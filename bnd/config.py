# bnd/config.py

"""Configuration management."""
import json
import sys
from pathlib import Path
from typing import Optional

from bnd.data_structures import DEFAULT_ALIGNMENT


class Config:
    """Application configuration manager."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else Path.home() / '.bnd_tool_config.json'
        self.default_config = {
            'language': 'en',
            'alignment': DEFAULT_ALIGNMENT,
            'output_suffix': '_new',
            'extract_root': None,
            'show_progress': True,
        }
        self.config = self.load_config()

    def load_config(self) -> dict:
        """Load configuration from file."""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
                if not isinstance(loaded, dict):
                    raise ValueError("top level must be a JSON object")
                # Merge with defaults
                config = self.default_config.copy()
                config.update(loaded)
                return config
            except (OSError, ValueError) as e:
                print(f"Warning: Ignoring config file {self.config_file}: {e}", file=sys.stderr)
        return self.default_config.copy()

    def save_config(self):
        """Save configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self.config, f, indent=2, ensure_ascii=False)

    def get(self, key: str, default=None):
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value):
        """Set configuration value."""
        self.config[key] = value

    @property
    def alignment(self) -> int:
        return int(self.config.get('alignment', DEFAULT_ALIGNMENT))

    @property
    def output_suffix(self) -> str:
        return str(self.config.get('output_suffix', '_new'))

    @property
    def extract_root(self) -> Optional[Path]:
        value = self.config.get('extract_root')
        return Path(value).expanduser() if value else None

    @property
    def show_progress(self) -> bool:
        return bool(self.config.get('show_progress', True))
