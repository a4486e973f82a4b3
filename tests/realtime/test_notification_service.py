import base64
from urllib.parse import parse_qs

import httpx
import pytest

from regionchat.services.notification_service import SmsNotificationService


def make_service(handler, **overrides):
    options = dict(
        account_sid="AC123",
        auth_token="secret",
        from_number="+15550009999",
        api_base="https://sms.test",
    )
    options.update(overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SmsNotificationService(client=client, **options)

@pytest.mark.asyncio
async def test_notify_posts_message_to_provider():
    requests = []

    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(201, json={"sid": "SM1"})

    service = make_service(handler)
    assert await service.notify("+15550001111", "alice is now online!") is True
    await service.close()

    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://sms.test/2010-04-01/Accounts/AC123/Messages.json"
    assert request.headers["Authorization"] == "Basic " + base64.b64encode(b"AC123:secret").decode()
    form = parse_qs(request.content.decode())
    assert form == {
        "To": ["+15550001111"],
        "From": ["+15550009999"],
        "Body": ["alice is now online!"],
    }

@pytest.mark.asyncio
async def test_provider_error_returns_false():
    service = make_service(lambda request: httpx.Response(400, json={"message": "bad number"}))
    assert await service.notify("+1", "hi") is False
    await service.close()

@pytest.mark.asyncio
async def test_transport_error_returns_false():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    service = make_service(handler)
    assert await service.notify("+15550001111", "hi") is False
    await service.close()

@pytest.mark.asyncio
async def test_missing_credentials_skip_sending():
    requests = []
    service = make_service(lambda request: requests.append(request), account_sid=None)

    assert service.configured is False
    assert await service.notify("+15550001111", "hi") is False
    assert requests == []
    await service.close()
