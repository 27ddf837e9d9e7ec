# 02.10.26

import os
import json
import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional


# Variable
logger = logging.getLogger(__name__)
CONFIG_ENV = "STREAMTIER_CONFIG"
CONFIG_FILENAME = "streamtier.json"


DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "DEFAULT": {
        "debug": False,
        "log_to_file": False,
        "log_file": "streamtier.log",
    },
    "REQUESTS": {
        "timeout": 20,
        "verify": True,
        "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/139.0.0.0 Safari/537.36",
    },
    "QUALITY": {
        "force_max": False,
        "forced_id": None,
        "max_target_height": 1080,
        "fallback_min_height": 720,
    },
    "TIERS": {
        # Average-bitrate ladder observed on the provider CDN (kbps)
        "known_tiers": [4500, 3000, 2100, 1500, 750, 380],
        "max_to_average_ratio": 1.3,
        "fuzzy_tolerance": 0.4,
    },
    "MARKERS": {
        "ad_tokens": ["google", "dai", "doubleclick", "video_ads", "googlevideo", "dclk", "/ad/", "_ad_", "ads/"],
        "studio_markers": ["precon_dash", "paramount_"],
        "content_markers": ["feature", "_ftr", "vmaster", "episode", "_ep_", "broadcast", "sport", "event", "replay"],
        "audio_markers": ["_aac_", "/audio/", "_audio_"],
    },
    "URLS": {
        "segment_extensions": [".m4s", ".mp4", ".ts"],
        "manifest_extensions": [".mpd", ".m3u8"],
    },
    "PROBE": {
        "start": 12500,
        "stop": 500,
        "step": 500,
        "delay": 0.1,
    },
}


class ConfigManager:
    def __init__(self, file_path: Optional[str] = None):
        """
        Load defaults and merge the user configuration file on top.

        Args:
            file_path: Explicit JSON file. Falls back to $STREAMTIER_CONFIG, then ./streamtier.json
        """
        self.file_path = Path(file_path or os.environ.get(CONFIG_ENV) or CONFIG_FILENAME)
        self.config: Dict[str, Dict[str, Any]] = copy.deepcopy(DEFAULT_CONFIG)
        self.load_config()

    def load_config(self) -> bool:
        """Merge the JSON file into the defaults. Missing or broken files keep the defaults."""
        if not self.file_path.exists():
            return False

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

        except Exception as e:
            logger.error(f"Failed to read config {self.file_path}: {e}")
            return False

        if not isinstance(data, dict):
            logger.error(f"Config {self.file_path} must contain a JSON object")
            return False

        for section, values in data.items():
            if isinstance(values, dict):
                self.config.setdefault(section, {}).update(values)

        logger.debug(f"Loaded config from {self.file_path}")
        return True

    def save_config(self) -> None:
        """Write the current configuration to the config file."""
        with open(self.file_path, 'w', encoding='utf-8') as f:
            json.dump(self.config, f, indent=4)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        return self.config.get(section, {}).get(key, default)

    def get_int(self, section: str, key: str, default: int = 0) -> int:
        try:
            return int(self.get(section, key, default))
        except (TypeError, ValueError):
            return default

    def get_float(self, section: str, key: str, default: float = 0.0) -> float:
        try:
            return float(self.get(section, key, default))
        except (TypeError, ValueError):
            return default

    def get_bool(self, section: str, key: str, default: bool = False) -> bool:
        value = self.get(section, key, default)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def get_list(self, section: str, key: str, default: Optional[List[Any]] = None) -> List[Any]:
        value = self.get(section, key, default)
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(',') if item.strip()]
        return list(value)

    def get_dict(self, section: str, key: str) -> Dict[str, Any]:
        value = self.get(section, key)
        if not isinstance(value, dict):
            raise KeyError(f"{section}.{key} is not a dictionary")
        return value

    def set_key(self, section: str, key: str, value: Any) -> None:
        self.config.setdefault(section, {})[key] = value


config_manager = ConfigManager()
