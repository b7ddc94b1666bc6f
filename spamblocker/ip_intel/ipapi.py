"""
ipapi.is client — best-effort IP classification for the ipRisk factor.

Every failure mode (timeout, transport error, non-2xx, bad JSON, bogon address)
returns None: the engine then scores without IP intelligence instead of failing.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from spamblocker.models.publication_models import IpIntelligence

logger = logging.getLogger("spamblocker.ipintel")

IPAPI_URL = "https://api.ipapi.is"


def parse_ipapi_response(payload: Any) -> IpIntelligence | None:
    """Map an ipapi.is JSON body to IpIntelligence. Bogons and non-objects yield None."""
    if not isinstance(payload, dict) or payload.get("is_bogon"):
        return None

    location = payload.get("location")
    country_code = location.get("country_code") if isinstance(location, dict) else None

    def flag(key: str) -> bool | None:
        value = payload.get(key)
        return value if isinstance(value, bool) else None

    return IpIntelligence(
        is_vpn=flag("is_vpn"),
        is_proxy=flag("is_proxy"),
        is_tor=flag("is_tor"),
        is_datacenter=flag("is_datacenter"),
        country_code=country_code.upper() if isinstance(country_code, str) else None,
    )


def fetch_ip_intelligence(
    ip_address: str,
    api_key: str | None = None,
    timeout: float = 3.0,
    client: httpx.Client | None = None,
) -> IpIntelligence | None:
    """
    Look up one address on ipapi.is.

    Args:
        ip_address: IPv4 or IPv6 address of the challenge page visitor.
        api_key: Optional ipapi.is key; the free tier works without one.
        timeout: Request timeout in seconds.
        client: Reusable httpx client. A short-lived one is created if omitted.

    Returns:
        IpIntelligence, or None when the lookup failed or the address is a bogon.
    """
    params = {"q": ip_address}
    if api_key:
        params["key"] = api_key

    owns_client = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        response = http.get(
            IPAPI_URL,
            params=params,
            headers={"accept": "application/json"},
            timeout=timeout,
        )
        response.raise_for_status()
        intel = parse_ipapi_response(response.json())
    except httpx.HTTPError as e:
        logger.warning(f"IP lookup failed for {ip_address}: {e}")
        return None
    except ValueError as e:
        logger.warning(f"IP lookup returned invalid JSON for {ip_address}: {e}")
        return None
    finally:
        if owns_client:
            http.close()

    if intel is None:
        logger.debug(f"No IP intelligence for {ip_address} (bogon or empty response)")
    return intel
