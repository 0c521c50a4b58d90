"""
Fleet driver: one node session per country, all connected concurrently.

Each country is served by its own local node (its own Tequilapi port), so
the per-country flows share nothing and can run side by side.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from helpers.unified_logger import get_logger

from .config import NodeSettings
from .models import NodeAssignment, QuickConnectOptions, QuickConnectResult
from .node_client import NodeClient

ClientFactory = Callable[[int, NodeSettings], NodeClient]

logger = get_logger("fleet", "connect")


@dataclass(slots=True)
class FleetConnection:
    """
    Result of one country's run: either a quick-connect result or the fatal
    error that ended it.
    """

    assignment: NodeAssignment
    client: Optional[NodeClient] = None
    result: Optional[QuickConnectResult] = None
    error: Optional[BaseException] = None

    @property
    def connected(self) -> bool:
        return self.result is not None and self.result.connected

    def describe(self) -> str:
        if self.error is not None:
            return f"fatal: {self.error}"
        return self.result.describe() if self.result else "not started"


async def connect_countries(
    assignments: Sequence[NodeAssignment],
    retries: int,
    settings: Optional[NodeSettings] = None,
    *,
    client_factory: ClientFactory = NodeClient,
) -> Dict[str, FleetConnection]:
    """
    Authenticate one controller per assignment and quick-connect each country.

    A fatal error for one country (no identity, proposal query failure) is
    logged and recorded on that country's entry; other countries continue.
    The returned controllers stay open so callers can inspect or reuse them;
    close them with :func:`close_fleet`.
    """
    settings = settings or NodeSettings()

    async def run(assignment: NodeAssignment) -> FleetConnection:
        connection = FleetConnection(assignment, client=client_factory(assignment.node_port, settings))
        try:
            await connection.client.authenticate()
            connection.result = await connection.client.quick_connect_to(
                assignment.country,
                QuickConnectOptions(proxy_port=assignment.proxy_port, retries=retries),
            )
        except Exception as exc:
            logger.error(
                f"{assignment.country} (node :{assignment.node_port}, proxyPort: {assignment.proxy_port}) "
                f"failed: {exc}"
            )
            connection.error = exc
        return connection

    connections: List[FleetConnection] = await asyncio.gather(*(run(a) for a in assignments))
    return {connection.assignment.country: connection for connection in connections}


async def close_fleet(connections: Dict[str, FleetConnection]) -> None:
    await asyncio.gather(
        *(c.client.close() for c in connections.values() if c.client is not None)
    )
