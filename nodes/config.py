"""
Configuration management for the node fleet
"""

from typing import Dict, List, Optional, Sequence

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .models import NodeAssignment


class NodeSettings(BaseSettings):
    """Node fleet settings loaded from environment variables"""

    # Tequilapi
    mysterium_host: str = "127.0.0.1"
    tequilapi_username: str = "myst"
    tequilapi_password: str = "qwerty123456"
    request_timeout_seconds: float = 40.0

    # Quick-connect
    attempt_delay_seconds: float = 1.0
    default_retries: int = Field(default=3, ge=1)

    # Fleet layout
    nodes: str = Field(
        default="",
        description="Comma separated COUNTRY=node_port:proxy_port entries",
    )

    @field_validator("nodes")
    @classmethod
    def _validate_nodes(cls, value: str) -> str:
        parse_node_assignments(value)
        return value

    def node_assignments(self, countries: Optional[Sequence[str]] = None) -> List[NodeAssignment]:
        """
        Return configured assignments, optionally restricted to ``countries``.

        Raises:
            KeyError: If a requested country has no node configured
        """
        assignments = parse_node_assignments(self.nodes)
        if not countries:
            return assignments

        by_country: Dict[str, NodeAssignment] = {a.country: a for a in assignments}
        selected = []
        for country in countries:
            key = country.strip().upper()
            if key not in by_country:
                raise KeyError(f"No node configured for country {key}")
            selected.append(by_country[key])
        return selected

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


def parse_node_assignments(raw: str) -> List[NodeAssignment]:
    """
    Parse ``US=4449:10001,DE=4450:10002`` into assignments.

    Every country needs its own node and its own dial-out port: two
    countries on one node would cancel each other's tunnel.

    Raises:
        ValueError: On malformed entries, a duplicated country or a port
            shared between countries
    """
    assignments: List[NodeAssignment] = []
    seen = set()
    node_ports = set()
    proxy_ports = set()
    for entry in (part.strip() for part in raw.split(",")):
        if not entry:
            continue
        try:
            country, ports = entry.split("=", 1)
            node_port, proxy_port = ports.split(":", 1)
            assignment = NodeAssignment(
                country=country,
                node_port=int(node_port),
                proxy_port=int(proxy_port),
            )
        except ValueError as exc:
            raise ValueError(f"Invalid node entry '{entry}': {exc}") from exc

        if assignment.country in seen:
            raise ValueError(f"Country {assignment.country} is configured more than once")
        if assignment.node_port in node_ports:
            raise ValueError(f"Node port {assignment.node_port} is assigned to more than one country")
        if assignment.proxy_port in proxy_ports:
            raise ValueError(f"Proxy port {assignment.proxy_port} is assigned to more than one country")
        seen.add(assignment.country)
        node_ports.add(assignment.node_port)
        proxy_ports.add(assignment.proxy_port)
        assignments.append(assignment)
    return assignments
