# src/site_auditor/services/domain_info_service.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import whois

from site_auditor.model import DomainInfo

logger = logging.getLogger(__name__)


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _as_date(value: Any) -> Optional[datetime]:
    value = _first(value)
    if not isinstance(value, datetime):
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _as_list(value: Any) -> Optional[List[str]]:
    if not value:
        return None
    items = value if isinstance(value, (list, tuple, set)) else [value]
    # WHOIS servers repeat name servers in mixed case
    out: List[str] = []
    for item in items:
        text = str(item).strip()
        if text and text.lower() not in (o.lower() for o in out):
            out.append(text)
    return out or None


def _as_text(value: Any) -> Optional[str]:
    value = _first(value)
    if not value:
        return None
    return str(value).strip() or None


def lookup_domain(domain: str) -> DomainInfo:
    """Blocking WHOIS lookup. Any failure yields a DomainInfo with only `domain` set."""
    try:
        record = whois.whois(domain)
    except Exception as e:
        logger.debug("WHOIS lookup for %s failed: %s", domain, e)
        return DomainInfo(domain=domain)

    if not record:
        return DomainInfo(domain=domain)

    get = record.get if hasattr(record, "get") else lambda key: getattr(record, key, None)

    return DomainInfo(
        domain=domain,
        registrar=_as_text(get("registrar")),
        created_date=_as_date(get("creation_date")),
        expires_date=_as_date(get("expiration_date")),
        updated_date=_as_date(get("updated_date")),
        name_servers=_as_list(get("name_servers")),
        status=_as_list(get("status")),
        organization_name=_as_text(get("org")),
        organization_country=_as_text(get("country")),
    )


async def analyze_domain(domain: str) -> DomainInfo:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lookup_domain, domain)
