from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class NodeAssignment:
    """
    Binds a target country to one local node.

    Attributes:
        country: ISO country code the node should tunnel to.
        node_port: Port of the node's Tequilapi.
        proxy_port: Dial-out port traffic is routed through once connected.
    """

    country: str
    node_port: int
    proxy_port: int

    def __post_init__(self) -> None:
        self.country = self.country.strip().upper()
        for name in ("node_port", "proxy_port"):
            value = int(getattr(self, name))
            if not 0 < value < 65536:
                raise ValueError(f"{name} {value} for {self.country} is not a valid port")
            setattr(self, name, value)


@dataclass(slots=True)
class QuickConnectOptions:
    proxy_port: int
    retries: int


class QuickConnectOutcome(str, Enum):
    CONNECTED = "connected"
    NO_PROPOSALS = "no_proposals"
    RETRIES_EXHAUSTED = "retries_exhausted"
    FAILED = "failed"


@dataclass(slots=True)
class QuickConnectResult:
    """Outcome of one quick-connect call, including every provider attempted."""

    country: str
    proxy_port: int
    outcome: QuickConnectOutcome
    provider_id: Optional[str] = None
    attempts: List[str] = field(default_factory=list)

    @property
    def connected(self) -> bool:
        return self.outcome is QuickConnectOutcome.CONNECTED

    def describe(self) -> str:
        if self.connected:
            return f"{self.outcome.value}:{self.provider_id}"
        return self.outcome.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "country": self.country,
            "proxy_port": self.proxy_port,
            "outcome": self.outcome.value,
            "provider_id": self.provider_id,
            "attempts": list(self.attempts),
        }
