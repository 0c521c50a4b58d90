"""Fakes shared by node session and fleet tests."""

from typing import Iterable, List, Optional

import pytest

from nodes.config import NodeSettings
from nodes.node_client import NodeClient
from tequilapi.exceptions import TequilapiError
from tequilapi.models import ConnectionStatus, Identity, IdentityRef, Proposal


class FakeTequilapi:
    """In-memory stand-in for a node's Tequilapi that records every call."""

    def __init__(
        self,
        proposals: Iterable[str] = (),
        failing: Iterable[str] = (),
        identities: Iterable[str] = ("0xconsumer",),
        events: Optional[List[tuple]] = None,
        cancel_error: Optional[Exception] = None,
        proposals_error: Optional[Exception] = None,
        identity_error: Optional[Exception] = None,
    ):
        self.proposals = [Proposal(provider_id=p) for p in proposals]
        self.failing = set(failing)
        self.identities = list(identities)
        self.events = events if events is not None else []
        self.cancel_error = cancel_error
        self.proposals_error = proposals_error
        self.identity_error = identity_error

        self.credentials = None
        self.unlocked: List[tuple] = []
        self.queries = []
        self.requests = []
        self.cancel_calls: List[int] = []
        self.closed = False

    @property
    def attempts(self) -> List[str]:
        return [request.provider_id for request in self.requests]

    async def authenticate(self, username, password):
        self.credentials = (username, password)

    async def identity_list(self):
        return [IdentityRef(id=identity_id) for identity_id in self.identities]

    async def identity_unlock(self, identity_id, passphrase=""):
        self.unlocked.append((identity_id, passphrase))

    async def identity(self, identity_id):
        if self.identity_error:
            raise self.identity_error
        return Identity(id=identity_id, balance=12.5)

    async def find_proposals(self, query):
        self.events.append(("query", query.location_country))
        self.queries.append(query)
        if self.proposals_error:
            raise self.proposals_error
        return list(self.proposals)

    async def connection_create(self, request):
        self.events.append(("connect", request.provider_id))
        self.requests.append(request)
        if request.provider_id in self.failing:
            raise TequilapiError(
                "PUT /connection returned 422",
                status=422,
                response_data={"message": f"provider {request.provider_id} unavailable"},
            )
        return ConnectionStatus(status="Connected", provider_id=request.provider_id)

    async def connection_cancel(self, proxy_port=-1):
        self.events.append(("cancel", proxy_port))
        self.cancel_calls.append(proxy_port)
        if self.cancel_error:
            raise self.cancel_error

    async def close(self):
        self.closed = True


class RecordingSleep:
    def __init__(self, events: Optional[List[tuple]] = None):
        self.calls: List[float] = []
        self.events = events if events is not None else []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.events.append(("sleep", seconds))


@pytest.fixture
def settings():
    return NodeSettings(
        mysterium_host="127.0.0.1",
        tequilapi_username="myst",
        tequilapi_password="qwerty123456",
        attempt_delay_seconds=1.0,
        default_retries=3,
        nodes="",
    )


@pytest.fixture
def events():
    return []


@pytest.fixture
def sleep(events):
    return RecordingSleep(events)


@pytest.fixture
def make_api(events):
    def factory(**api_kwargs) -> FakeTequilapi:
        return FakeTequilapi(events=events, **api_kwargs)

    return factory


@pytest.fixture
def make_client(settings, sleep, make_api):
    """Build an authenticated NodeClient backed by a FakeTequilapi."""

    async def factory(port: int = 4449, **api_kwargs) -> NodeClient:
        client = NodeClient(port, settings, api=make_api(**api_kwargs), sleep=sleep)
        await client.authenticate()
        return client

    return factory
