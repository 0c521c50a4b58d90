"""
Node session control for a fleet of local Mysterium nodes.

This package owns the per-node authenticated session, the quick-connect
retry/fallback procedure and the fleet driver that runs one quick-connect per
configured country.
"""

from .config import NodeSettings, parse_node_assignments
from .exceptions import NodeError, NoIdentityError
from .fleet import FleetConnection, close_fleet, connect_countries
from .models import NodeAssignment, QuickConnectOptions, QuickConnectOutcome, QuickConnectResult
from .node_client import NodeClient, build_node_client, proposal_query

__all__ = [
    "FleetConnection",
    "NodeAssignment",
    "NodeClient",
    "NodeError",
    "NodeSettings",
    "NoIdentityError",
    "QuickConnectOptions",
    "QuickConnectOutcome",
    "QuickConnectResult",
    "build_node_client",
    "close_fleet",
    "connect_countries",
    "parse_node_assignments",
    "proposal_query",
]
