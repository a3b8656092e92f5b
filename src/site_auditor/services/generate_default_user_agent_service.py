# src/site_auditor/services/generate_default_user_agent_service.py
import platform
from typing import Dict, Optional

from site_auditor.managers.config_manager import config_manager

OS_TOKENS = {
    "Windows": "Windows NT 10.0; Win64; x64",
    "Darwin": "Macintosh; Intel Mac OS X 10_15_7",
    "Linux": "X11; Linux x86_64",
}


def generate_default_user_agent(os_name: Optional[str] = None) -> str:
    """
    Desktop Chrome user agent for the current (or given) OS, with the Chrome
    version taken from settings.json.
    """
    os_part = OS_TOKENS.get(os_name or platform.system(), "X11; Linux x86_64")
    chrome_version = config_manager.get_nested("user_agent.chrome_version", "120.0.0.0")
    return (
        f"Mozilla/5.0 ({os_part}) AppleWebKit/537.36 (KHTML, like Gecko) "
        f"Chrome/{chrome_version} Safari/537.36"
    )


def browser_headers(user_agent: Optional[str] = None) -> Dict[str, str]:
    """Request headers a real browser would send for a top-level page load."""
    return {
        'User-Agent': user_agent or generate_default_user_agent(),
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.9',
        'Accept-Encoding': 'gzip, deflate',
    }
