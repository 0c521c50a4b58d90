import pytest

from helpers.networking import detect_egress_ip, dial_out_proxy_url


class FakeResponse:
    def __init__(self, status=200, body=""):
        self.status = status
        self._body = body

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    def __init__(self, responses):
        self.responses = dict(responses)
        self.calls = []

    def get(self, url, proxy=None):
        self.calls.append((url, proxy))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def test_dial_out_proxy_url():
    assert dial_out_proxy_url("127.0.0.1", 10001) == "http://127.0.0.1:10001"


@pytest.mark.asyncio
async def test_first_answering_service_wins_and_uses_proxy():
    session = FakeSession({
        "https://a.example/ip": FakeResponse(status=503),
        "https://b.example/ip": FakeResponse(body="203.0.113.7\n"),
    })

    result = await detect_egress_ip(
        proxy="http://127.0.0.1:10001",
        session=session,
        services=["https://a.example/ip", "https://b.example/ip"],
    )

    assert result.address == "203.0.113.7"
    assert result.source == "https://b.example/ip"
    assert all(proxy == "http://127.0.0.1:10001" for _, proxy in session.calls)


@pytest.mark.asyncio
async def test_all_services_failing_reports_every_error():
    session = FakeSession({
        "https://a.example/ip": ConnectionError("refused"),
        "https://b.example/ip": FakeResponse(body="   "),
    })

    result = await detect_egress_ip(session=session, services=["https://a.example/ip", "https://b.example/ip"])

    assert result.address is None
    assert "https://a.example/ip: refused" in result.error
    assert "Empty response body" in result.error


@pytest.mark.asyncio
async def test_requires_at_least_one_service():
    with pytest.raises(ValueError):
        await detect_egress_ip(services=[])
