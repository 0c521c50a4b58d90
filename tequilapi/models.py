from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_IP_TYPE = "residential"
DEFAULT_QUALITY_MIN = 1.0
WIREGUARD = "wireguard"

# Tequilapi treats this proxy port as "every active connection".
ANY_PROXY_PORT = -1


class IdentityRegistrationStatus(str, Enum):
    UNKNOWN = "Unknown"
    REGISTERED = "Registered"
    UNREGISTERED = "Unregistered"
    IN_PROGRESS = "InProgress"
    PROMOTING = "Promoting"
    REGISTRATION_ERROR = "RegistrationError"

    @classmethod
    def parse(cls, value: Optional[str]) -> "IdentityRegistrationStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(slots=True)
class BalanceTokens:
    """Token balance rendered in the three denominations the node reports."""

    human: str = "0"
    wei: str = "0"
    ether: str = "0"

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "BalanceTokens":
        payload = payload or {}
        return cls(
            human=str(payload.get("human", "0")),
            wei=str(payload.get("wei", "0")),
            ether=str(payload.get("ether", "0")),
        )


@dataclass(slots=True)
class IdentityRef:
    id: str


@dataclass(slots=True)
class Identity:
    """
    Consumer identity details as returned by ``GET /identities/{id}``.

    Attributes:
        id: Identity address.
        hermes_id: Hermes (payment hub) the identity is bound to.
        registration_status: Registration state on chain.
        channel_address: Payment channel address.
        balance: Balance in MYST.
        balance_tokens: Balance in human/wei/ether strings.
        earnings: Unsettled earnings.
        earnings_total: Lifetime earnings.
        stake: Staked amount.
    """

    id: str
    hermes_id: str = "0x"
    registration_status: IdentityRegistrationStatus = IdentityRegistrationStatus.UNKNOWN
    channel_address: str = "0x"
    balance: float = 0
    balance_tokens: BalanceTokens = field(default_factory=BalanceTokens)
    earnings: float = 0
    earnings_total: float = 0
    stake: float = 0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Identity":
        return cls(
            id=payload["id"],
            hermes_id=payload.get("hermes_id") or "0x",
            registration_status=IdentityRegistrationStatus.parse(payload.get("registration_status")),
            channel_address=payload.get("channel_address") or "0x",
            balance=payload.get("balance") or 0,
            balance_tokens=BalanceTokens.from_dict(payload.get("balance_tokens")),
            earnings=payload.get("earnings") or 0,
            earnings_total=payload.get("earnings_total") or 0,
            stake=payload.get("stake") or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize identity for logging/CLI output."""
        return {
            "id": self.id,
            "hermes_id": self.hermes_id,
            "registration_status": self.registration_status.value,
            "channel_address": self.channel_address,
            "balance": self.balance,
            "balance_tokens": {
                "human": self.balance_tokens.human,
                "wei": self.balance_tokens.wei,
                "ether": self.balance_tokens.ether,
            },
            "earnings": self.earnings,
            "earnings_total": self.earnings_total,
            "stake": self.stake,
        }


def empty_identity() -> Identity:
    """Fresh placeholder identity, returned whenever the node cannot be asked."""
    return Identity(id="0x")


# Reference value for comparisons; callers get their own copy from empty_identity().
EMPTY_IDENTITY = empty_identity()


@dataclass(slots=True)
class ProposalQuery:
    location_country: str
    ip_type: str = DEFAULT_IP_TYPE
    quality_min: float = DEFAULT_QUALITY_MIN

    def to_params(self) -> Dict[str, str]:
        return {
            "location_country": self.location_country,
            "ip_type": self.ip_type,
            "quality_min": str(self.quality_min),
        }


@dataclass(slots=True)
class Proposal:
    """A provider offer returned by ``GET /proposals``."""

    provider_id: str
    service_type: str = WIREGUARD
    country: Optional[str] = None
    ip_type: Optional[str] = None
    quality: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Proposal":
        location = payload.get("location") or {}
        quality = payload.get("quality")
        if isinstance(quality, dict):
            quality = quality.get("quality")
        return cls(
            provider_id=payload["provider_id"],
            service_type=payload.get("service_type") or WIREGUARD,
            country=location.get("country"),
            ip_type=location.get("ip_type"),
            quality=float(quality) if quality is not None else None,
        )


@dataclass(slots=True)
class ConnectionRequest:
    consumer_id: str
    provider_id: str
    proxy_port: int
    service_type: str = WIREGUARD

    def to_payload(self) -> Dict[str, Any]:
        return {
            "consumer_id": self.consumer_id,
            "provider_id": self.provider_id,
            "service_type": self.service_type,
            "connect_options": {"proxy_port": self.proxy_port},
        }


@dataclass(slots=True)
class ConnectionStatus:
    status: str
    session_id: Optional[str] = None
    consumer_id: Optional[str] = None
    provider_id: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "ConnectionStatus":
        payload = payload or {}
        proposal = payload.get("proposal") or {}
        return cls(
            status=payload.get("status") or "Unknown",
            session_id=payload.get("session_id"),
            consumer_id=payload.get("consumer_id"),
            provider_id=proposal.get("provider_id") or payload.get("provider_id"),
        )
