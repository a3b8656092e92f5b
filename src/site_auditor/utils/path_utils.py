# src/site_auditor/utils/path_utils.py
import os
from pathlib import Path

USER_SETTINGS_ENV = "SITE_AUDITOR_SETTINGS"


class PathUtils:
    """
    A central utility for reliably retrieving important package and user paths.
    """

    # --- Package specific paths

    @staticmethod
    def get_package_root() -> Path:
        """
        Returns the absolute path of the installed 'site_auditor' package.
        """
        return Path(__file__).resolve().parent.parent

    @staticmethod
    def get_settings_file() -> Path:
        """Returns the path to the bundled settings.json file."""
        return PathUtils.get_package_root() / "settings.json"

    # --- User specific paths ---

    @staticmethod
    def get_user_config_dir() -> Path:
        """~/.site_auditor/"""
        return Path.home() / ".site_auditor"

    @staticmethod
    def get_user_settings_file() -> Path:
        """
        Optional settings overrides: $SITE_AUDITOR_SETTINGS when set,
        otherwise ~/.site_auditor/settings.json.
        """
        override = os.environ.get(USER_SETTINGS_ENV)
        if override:
            return Path(override).expanduser()
        return PathUtils.get_user_config_dir() / "settings.json"
