"""Async client for the Tequilapi REST API exposed by a local Mysterium node."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import aiohttp

from .exceptions import TequilapiError
from .models import (
    ANY_PROXY_PORT,
    ConnectionRequest,
    ConnectionStatus,
    Identity,
    IdentityRef,
    Proposal,
    ProposalQuery,
)

DEFAULT_TIMEOUT_SECONDS = 40.0


def tequilapi_url(host: str, port: int) -> str:
    return f"http://{host}:{port}/tequilapi"


class TequilapiClient:
    """
    Thin async wrapper over one node's Tequilapi.

    Every failed call (transport error, timeout or non-2xx status) surfaces as
    :class:`TequilapiError`. The client never retries on its own; retry
    policy belongs to the caller.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize the client.

        Args:
            base_url: Tequilapi root, e.g. ``http://127.0.0.1:4449/tequilapi``
            timeout: Total request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._token: Optional[str] = None

    # ========================================================================
    # AUTH & IDENTITIES
    # ========================================================================

    async def authenticate(self, username: str, password: str) -> None:
        payload = await self._make_request(
            "/auth/authenticate",
            method="POST",
            json_data={"username": username, "password": password},
        )
        if isinstance(payload, dict) and payload.get("token"):
            self._token = payload["token"]

    async def identity_list(self) -> List[IdentityRef]:
        payload = await self._make_request("/identities") or {}
        return [IdentityRef(id=item["id"]) for item in payload.get("identities") or []]

    async def identity_unlock(self, identity_id: str, passphrase: str = "") -> None:
        await self._make_request(
            f"/identities/{identity_id}/unlock",
            method="PUT",
            json_data={"passphrase": passphrase},
        )

    async def identity(self, identity_id: str) -> Identity:
        payload = await self._make_request(f"/identities/{identity_id}")
        return Identity.from_dict(payload)

    # ========================================================================
    # PROPOSALS & CONNECTIONS
    # ========================================================================

    async def find_proposals(self, query: ProposalQuery) -> List[Proposal]:
        """
        Query the discovery marketplace.

        Proposals are returned in the order the node sends them.
        """
        payload = await self._make_request("/proposals", params=query.to_params()) or {}
        return [Proposal.from_dict(item) for item in payload.get("proposals") or []]

    async def connection_create(self, request: ConnectionRequest) -> ConnectionStatus:
        payload = await self._make_request(
            "/connection",
            method="PUT",
            json_data=request.to_payload(),
        )
        return ConnectionStatus.from_dict(payload)

    async def connection_cancel(self, proxy_port: int = ANY_PROXY_PORT) -> None:
        await self._make_request(
            "/connection",
            method="DELETE",
            params={"id": str(proxy_port)},
        )

    # ========================================================================
    # HTTP SESSION MANAGEMENT
    # ========================================================================

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _make_request(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make a single HTTP request against the node.

        Returns:
            Decoded JSON body, or ``None`` for empty responses

        Raises:
            TequilapiError: On connection errors, timeouts, non-2xx statuses
                and 2xx responses whose JSON body does not parse
        """
        session = await self.get_session()
        url = f"{self.base_url}{endpoint}"
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else None

        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_data,
                headers=headers,
            ) as response:
                text = await response.text()
                try:
                    body = _decode_body(text, response.content_type)
                except ValueError as exc:
                    # Error bodies are reported as sent; a 2xx must decode
                    if response.status < 400:
                        raise TequilapiError(
                            f"{method} {endpoint} returned invalid JSON",
                            status=response.status,
                            response_data=text,
                        ) from exc
                    body = text

                if response.status >= 400:
                    raise TequilapiError(
                        f"{method} {endpoint} returned {response.status}",
                        status=response.status,
                        response_data=body,
                    )
                return body

        except asyncio.TimeoutError as exc:
            raise TequilapiError(f"{method} {endpoint} timed out after {self.timeout}s") from exc

        except aiohttp.ClientError as exc:
            raise TequilapiError(f"{method} {endpoint} failed: {exc}") from exc

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} url={self.base_url}>"


def _decode_body(text: str, content_type: Optional[str]) -> Any:
    """
    Decode a response body.

    Any JSON media type (``application/json``, ``application/problem+json``)
    is parsed; other bodies are returned as text.

    Raises:
        ValueError: If a JSON body does not parse
    """
    if not text:
        return None
    if "json" in (content_type or ""):
        return json.loads(text)
    return text
