"""
Egress verification for connected dial-out proxies.

Once a node reports a tunnel, the public IP seen through its dial-out port
should differ from the host's own address. These helpers probe plain-text
IP echo services through that proxy.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Sequence

import aiohttp

DEFAULT_EGRESS_SERVICES: Sequence[str] = (
    "https://ifconfig.io/ip",
    "https://api.ipify.org",
    "https://checkip.amazonaws.com",
)


@dataclass(slots=True)
class ProxyEgressResult:
    """Container for egress detection results."""

    address: Optional[str]
    source: Optional[str]
    error: Optional[str]
    timestamp: float


def dial_out_proxy_url(host: str, proxy_port: int) -> str:
    return f"http://{host}:{proxy_port}"


async def detect_egress_ip(
    *,
    proxy: Optional[str] = None,
    session: Optional[aiohttp.ClientSession] = None,
    services: Sequence[str] = DEFAULT_EGRESS_SERVICES,
    timeout: float = 10.0,
) -> ProxyEgressResult:
    """
    Probe the public egress IP using the first service that answers.

    Args:
        proxy: Proxy URL to route the probe through (``None`` for direct).
        session: Optional aiohttp.ClientSession to reuse.
        services: URL endpoints returning the caller's IP as plain text.
        timeout: Overall timeout per request in seconds.

    Returns:
        ProxyEgressResult describing the detected IP (or every failure encountered).
    """
    if not services:
        raise ValueError("At least one egress detection service must be provided")

    errors: list[tuple[str, Exception]] = []
    client = session
    close_client = False

    if client is None:
        client = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout))
        close_client = True

    try:
        for url in services:
            try:
                async with client.get(url, proxy=proxy) as response:
                    if response.status != 200:
                        raise RuntimeError(f"HTTP {response.status}")
                    body = (await response.text()).strip()
                    if not body:
                        raise RuntimeError("Empty response body")
                    return ProxyEgressResult(
                        address=body,
                        source=url,
                        error=None,
                        timestamp=time.time(),
                    )
            except Exception as exc:
                errors.append((url, exc))
                continue

        joined_error = ", ".join(f"{url}: {exc}" for url, exc in errors)
        return ProxyEgressResult(address=None, source=None, error=joined_error, timestamp=time.time())
    finally:
        if close_client:
            await client.close()


__all__ = [
    "DEFAULT_EGRESS_SERVICES",
    "ProxyEgressResult",
    "detect_egress_ip",
    "dial_out_proxy_url",
]
