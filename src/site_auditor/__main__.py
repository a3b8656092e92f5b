# src/site_auditor/__main__.py
import sys
from typing import List, Optional

from site_auditor.handlers.audit_handler import handle_audit
from site_auditor.managers.config_manager import config_manager
from site_auditor.utils.configure_logging import configure_logger


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint for the `site-audit` command."""
    configure_logger(
        config_manager.get_nested("debug.level", "INFO"),
        config_manager.get_nested("debug.module_levels"),
        config_manager.get_nested("debug.silenced_loggers"),
    )
    return handle_audit(argv)


if __name__ == "__main__":
    sys.exit(main())
