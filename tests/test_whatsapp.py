import json

import httpx
import pytest

from hospital_bot.config import Settings
from hospital_bot.messages import Button, ListRow, ListSection
from hospital_bot.services.whatsapp import WhatsAppError, WhatsAppGateway


@pytest.fixture
def requests():
    return []


@pytest.fixture
def wa(requests):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"messages": [{"id": "wamid.out"}]})

    settings = Settings(
        _env_file=None,
        whatsapp_api_base="https://graph.example.test/v20.0",
        whatsapp_phone_number_id="12345",
        whatsapp_access_token="secret",
    )
    return WhatsAppGateway(settings, transport=httpx.MockTransport(handler))


def body(request: httpx.Request) -> dict:
    return json.loads(request.content)


async def test_send_text(wa, requests):
    await wa.send_text("919800000001", "hello")

    (req,) = requests
    assert str(req.url) == "https://graph.example.test/v20.0/12345/messages"
    assert req.headers["Authorization"] == "Bearer secret"
    assert body(req) == {
        "messaging_product": "whatsapp",
        "to": "919800000001",
        "type": "text",
        "text": {"body": "hello"},
    }


async def test_send_buttons_caps_count_and_title(wa, requests):
    buttons = [Button(id=f"b{i}", title="A very long button title here") for i in range(5)]
    await wa.send_buttons("919800000001", "pick", buttons)

    action = body(requests[0])["interactive"]["action"]
    assert len(action["buttons"]) == 3
    assert all(len(b["reply"]["title"]) <= 20 for b in action["buttons"])
    assert action["buttons"][0]["reply"]["id"] == "b0"


async def test_send_list(wa, requests):
    sections = [
        ListSection(
            title="Doctors",
            rows=[
                ListRow(id="akhilesh", title="1. Dr. Akhilesh Kumar Kasaudhan", description="General"),
                ListRow(id="all", title="All"),
            ],
        )
    ]
    await wa.send_list("919800000001", "Which doctor?", "Doctors", sections)

    interactive = body(requests[0])["interactive"]
    assert interactive["type"] == "list"
    rows = interactive["action"]["sections"][0]["rows"]
    assert rows[0]["id"] == "akhilesh"
    assert len(rows[0]["title"]) == 24
    assert rows[0]["description"] == "General"
    assert "description" not in rows[1]


async def test_mark_read(wa, requests):
    await wa.mark_read("wamid.in")
    assert body(requests[0]) == {"messaging_product": "whatsapp", "status": "read", "message_id": "wamid.in"}


async def test_api_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="invalid token")

    gw = WhatsAppGateway(
        Settings(_env_file=None, whatsapp_phone_number_id="1", whatsapp_access_token="x"),
        transport=httpx.MockTransport(handler),
    )
    with pytest.raises(WhatsAppError) as exc:
        await gw.send_text("919800000001", "hi")
    assert exc.value.status == 401
    assert "invalid token" in exc.value.detail


async def test_recipient_is_reduced_to_digits(wa, requests):
    await wa.send_text("+91 98000-00001", "hello")
    assert body(requests[0])["to"] == "919800000001"
