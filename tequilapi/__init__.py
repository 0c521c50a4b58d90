"""
Async client for a Mysterium node's Tequilapi control plane.

This package models identities, proposals and connections and wraps the
handful of REST calls the node fleet needs.
"""

from .client import TequilapiClient, tequilapi_url
from .exceptions import TequilapiError
from .models import (
    ANY_PROXY_PORT,
    EMPTY_IDENTITY,
    ConnectionRequest,
    ConnectionStatus,
    Identity,
    IdentityRegistrationStatus,
    Proposal,
    ProposalQuery,
    empty_identity,
)

__all__ = [
    "ANY_PROXY_PORT",
    "ConnectionRequest",
    "ConnectionStatus",
    "EMPTY_IDENTITY",
    "Identity",
    "IdentityRegistrationStatus",
    "Proposal",
    "ProposalQuery",
    "TequilapiClient",
    "TequilapiError",
    "empty_identity",
    "tequilapi_url",
]
