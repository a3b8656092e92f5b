# src/site_auditor/managers/config_manager.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from site_auditor.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

TRUTHY = ("1", "true", "yes", "on")


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Failed to load settings from %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.error("Settings file %s does not hold a JSON object.", path)
        return {}
    return data


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    """Recursively writes `overrides` into `base`, section by section."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value


def _cast_like(current: Any, value: Any, key_path: str) -> Any:
    target = type(current)
    try:
        if target is bool and isinstance(value, str):
            return value.strip().lower() in TRUTHY
        return target(value)
    except (ValueError, TypeError):
        logger.warning("Could not cast %r for '%s' to %s. Storing as is.", value, key_path, target.__name__)
        return value


class ConfigManager:
    """
    Process-wide settings store shared by every service.

    The packaged settings.json provides the defaults. A user settings file
    (see PathUtils.get_user_settings_file) is merged over them, so it only
    needs the keys it changes. In-memory changes live until reset().
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._config = {}
            instance.reset()
            cls._instance = instance
        return cls._instance

    def get_all(self) -> Dict[str, Any]:
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """Value at a dotted path such as 'session.max_retries', or `default`."""
        node: Any = self._config
        for key in key_path.split('.'):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return default if node is None else node

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Sets a dotted path in memory, creating sections on the way. A value
        replacing an existing one is cast to the existing value's type, so
        'false' stays a bool and '20' stays an int.
        """
        *sections, leaf = key_path.split('.')
        node = self._config
        for key in sections:
            node = node.setdefault(key, {})
            if not isinstance(node, dict):
                logger.error("Cannot set '%s': '%s' is not a section.", key_path, key)
                return False

        current = node.get(leaf)
        if current is not None and type(value) is not type(current):
            value = _cast_like(current, value, key_path)

        node[leaf] = value
        logger.info("Setting updated: %s = %r", key_path, value)
        return True

    def reset(self) -> None:
        """Reloads packaged defaults plus user overrides, dropping in-memory changes."""
        settings_file = PathUtils.get_settings_file()
        if settings_file.exists():
            self._config = _load_json(settings_file)
        else:
            logger.warning("settings.json not found at %s. Using empty config.", settings_file)
            self._config = {}

        user_file = PathUtils.get_user_settings_file()
        if user_file.exists():
            _merge(self._config, _load_json(user_file))
            logger.debug("Merged user settings from %s", user_file)


config_manager = ConfigManager()
