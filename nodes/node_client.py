from __future__ import annotations

import asyncio
import json
from typing import Awaitable, Callable, List, Optional

from helpers.unified_logger import get_node_logger
from tequilapi import (
    ANY_PROXY_PORT,
    ConnectionRequest,
    Identity,
    ProposalQuery,
    TequilapiClient,
    empty_identity,
    tequilapi_url,
)

from .config import NodeSettings
from .exceptions import NoIdentityError
from .models import QuickConnectOptions, QuickConnectOutcome, QuickConnectResult

Sleep = Callable[[float], Awaitable[None]]


class NodeClient:
    """
    Session controller for one local Mysterium node.

    One instance owns one authenticated Tequilapi session and is reused for
    every quick-connect against that node. The bound identity is written
    only by :meth:`authenticate`.

    Usage:
        client = await NodeClient(4449).authenticate()
        await client.quick_connect_to("US", QuickConnectOptions(proxy_port=10001, retries=3))
    """

    def __init__(
        self,
        port: int,
        settings: Optional[NodeSettings] = None,
        *,
        api: Optional[TequilapiClient] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.port = port
        self.settings = settings or NodeSettings()
        if api is None:
            api = TequilapiClient(
                tequilapi_url(self.settings.mysterium_host, port),
                timeout=self.settings.request_timeout_seconds,
            )
        self.api = api
        self.identity = ""
        self._sleep = sleep
        self.logger = get_node_logger(port)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.identity)

    async def authenticate(self) -> "NodeClient":
        """
        Log into the node and unlock its first identity.

        Raises:
            NoIdentityError: When the node reports no identities
            TequilapiError: When any control-plane call fails
        """
        await self.api.authenticate(
            self.settings.tequilapi_username,
            self.settings.tequilapi_password,
        )
        self.identity = await self._unlock_first_identity()
        self.logger.info(f"Authenticated with identity {self.identity}")
        return self

    async def cancel_connection(self, proxy_port: int = ANY_PROXY_PORT) -> bool:
        """
        Best-effort teardown of the tunnel on ``proxy_port`` (-1 cancels all).

        Never raises. Returns True when the node accepted the request.
        """
        try:
            await self.api.connection_cancel(proxy_port)
        except Exception as exc:
            self.logger.debug(f"Cancel connection (proxyPort: {proxy_port}) ignored: {exc}")
            return False
        return True

    async def info(self) -> Identity:
        """Identity details for the bound identity, or a fresh placeholder on any failure."""
        try:
            return await self.api.identity(self.identity)
        except Exception as exc:
            self.logger.debug(f"Identity lookup failed: {exc}")
            return empty_identity()

    async def quick_connect_to(self, country: str, options: QuickConnectOptions) -> QuickConnectResult:
        """
        Connect to the first provider in ``country`` that accepts, in the order
        the marketplace returns them.

        Every failed attempt consumes one unit of ``options.retries``; the call
        stops as soon as the budget hits zero, even with candidates left.

        Raises:
            ValueError: If the retry budget is below 1
            TequilapiError: If the proposal query itself fails
        """
        proxy_port, retries = options.proxy_port, options.retries
        if retries < 1:
            raise ValueError(f"retries must be at least 1, got {retries}")

        logger = self.logger.with_context(country=country, proxy_port=proxy_port)
        attempts: List[str] = []

        def result(outcome: QuickConnectOutcome, provider_id: Optional[str] = None) -> QuickConnectResult:
            return QuickConnectResult(country, proxy_port, outcome, provider_id, attempts)

        await self.cancel_connection()

        try:
            proposals = await self.api.find_proposals(proposal_query(country))
            if not proposals:
                logger.warning(f"No proposals found for country: {country}")
                return result(QuickConnectOutcome.NO_PROPOSALS)

            for proposal in proposals:
                provider_id = proposal.provider_id
                logger.info(f"connecting to {country}... (proxyPort: {proxy_port})")
                try:
                    await self._sleep(self.settings.attempt_delay_seconds)
                    attempts.append(provider_id)
                    await self.api.connection_create(self._connection_request(provider_id, proxy_port))
                    logger.info(f"connected to: {country}! ({provider_id})")
                    return result(QuickConnectOutcome.CONNECTED, provider_id)
                except Exception as exc:
                    logger.warning(f"Connection error ({provider_id}): {exc}")
                    response_data = getattr(exc, "response_data", None)
                    if response_data is not None:
                        logger.warning(f"Server response: {json.dumps(response_data)}")

                retries -= 1
                if retries == 0:
                    logger.error(f"Exhausted all retries for {country}")
                    return result(QuickConnectOutcome.RETRIES_EXHAUSTED)
                logger.info(f"failed to connect {country}, retries left: {retries}")
        except Exception as exc:
            logger.error(f"Fatal error during quick connect: {exc}")
            raise

        logger.error(f"could not quick connect to {country}")
        return result(QuickConnectOutcome.FAILED)

    async def close(self) -> None:
        await self.api.close()

    async def __aenter__(self) -> "NodeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _unlock_first_identity(self) -> str:
        identities = await self.api.identity_list()
        if not identities:
            raise NoIdentityError(f"no identity present on node :{self.port}")
        first = identities[0]
        await self.api.identity_unlock(first.id, "")
        return first.id

    def _connection_request(self, provider_id: str, proxy_port: int) -> ConnectionRequest:
        return ConnectionRequest(
            consumer_id=self.identity,
            provider_id=provider_id,
            proxy_port=proxy_port,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} port={self.port} identity={self.identity or '-'}>"


def proposal_query(country: str) -> ProposalQuery:
    return ProposalQuery(location_country=country)


async def build_node_client(port: int, settings: Optional[NodeSettings] = None) -> NodeClient:
    """Create a controller for the node on ``port`` and authenticate it."""
    client = NodeClient(port, settings)
    try:
        return await client.authenticate()
    except Exception:
        await client.close()
        raise
