import json

import pytest
from conftest import FakeBackend, FakeMessenger
from fastapi.testclient import TestClient

from relay.errors import BackendError, VerificationError
from relay.main import create_app
from relay.routers.webhook import verify_subscription
from relay.services.actions import SendMenu, SendText
from relay.services.conversation_router import DEGRADED_RESPONSE, WELCOME_RESPONSE
from relay.services.state_machine import SessionState

SENDER = "15551234567"


def text_payload(text, sender=SENDER, message_id="wamid.HBgL1"):
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "1029384756",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {"display_phone_number": "15550000000", "phone_number_id": "123456"},
                            "contacts": [{"profile": {"name": "Ada"}, "wa_id": sender}],
                            "messages": [
                                {
                                    "from": sender,
                                    "id": message_id,
                                    "timestamp": "1717000000",
                                    "type": "text",
                                    "text": {"body": text},
                                }
                            ],
                        },
                    }
                ],
            }
        ],
    }


def button_reply_payload(button_id, sender=SENDER):
    payload = text_payload("", sender=sender, message_id="wamid.button")
    payload["entry"][0]["changes"][0]["value"]["messages"][0] = {
        "from": sender,
        "id": "wamid.button",
        "type": "interactive",
        "interactive": {"type": "button_reply", "button_reply": {"id": button_id, "title": "About Us"}},
    }
    return payload


@pytest.fixture
def backend():
    return FakeBackend(reply="We are a small bakery.")


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def app(settings, backend, messenger):
    return create_app(settings, backend=backend, messenger=messenger)


@pytest.fixture
def client(app):
    return TestClient(app)


class TestVerification:
    def test_correct_token_echoes_challenge(self, client):
        response = client.get(
            "/whatsapp/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "xyz123"},
        )

        assert response.status_code == 200
        assert response.text == "xyz123"

    def test_wrong_token_is_forbidden(self, client):
        response = client.get(
            "/whatsapp/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "xyz123"},
        )

        assert response.status_code == 403
        assert response.text == "Verification Failed"

    def test_wrong_mode_is_forbidden(self, client):
        response = client.get(
            "/whatsapp/webhook",
            params={"hub.mode": "unsubscribe", "hub.verify_token": "verify-me", "hub.challenge": "xyz123"},
        )

        assert response.status_code == 403

    def test_missing_params_is_forbidden(self, client):
        assert client.get("/whatsapp/webhook").status_code == 403

    def test_verify_subscription_helper(self):
        assert verify_subscription("subscribe", "t", "c", "t") == "c"
        with pytest.raises(VerificationError):
            verify_subscription("subscribe", None, "c", "t")


class TestMessageDelivery:
    def test_empty_body_is_acknowledged_without_side_effects(self, client, backend, messenger):
        response = client.post("/whatsapp/webhook", content=b"")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert backend.calls == []
        assert messenger.sent == []

    def test_empty_object_is_acknowledged(self, client, backend, messenger):
        response = client.post("/whatsapp/webhook", json={})

        assert response.status_code == 200
        assert backend.calls == []
        assert messenger.sent == []

    def test_invalid_json_is_acknowledged(self, client, messenger):
        response = client.post(
            "/whatsapp/webhook", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 200
        assert messenger.sent == []

    def test_status_callback_is_acknowledged(self, client, backend, messenger):
        payload = text_payload("x")
        value = payload["entry"][0]["changes"][0]["value"]
        del value["messages"]
        value["statuses"] = [{"id": "wamid.out", "status": "delivered", "recipient_id": SENDER}]

        response = client.post("/whatsapp/webhook", json=payload)

        assert response.status_code == 200
        assert backend.calls == []
        assert messenger.sent == []

    def test_non_text_message_is_ignored(self, client, backend, messenger):
        payload = text_payload("x")
        payload["entry"][0]["changes"][0]["value"]["messages"][0] = {
            "from": SENDER,
            "id": "wamid.img",
            "type": "image",
            "image": {"id": "media-1", "mime_type": "image/jpeg"},
        }

        response = client.post("/whatsapp/webhook", json=payload)

        assert response.status_code == 200
        assert backend.calls == []
        assert messenger.sent == []

    def test_greeting_replies_with_welcome_and_menu(self, client, app, messenger):
        response = client.post("/whatsapp/webhook", json=text_payload("Hello"))

        assert response.status_code == 200
        assert messenger.sent[0] == SendText(SENDER, WELCOME_RESPONSE)
        assert isinstance(messenger.sent[1], SendMenu)
        assert app.state.sessions.get(SENDER).state == SessionState.MENU_SHOWN

    def test_free_text_relays_backend_reply(self, client, backend, messenger):
        response = client.post("/whatsapp/webhook", json=text_payload("What do you sell?"))

        assert response.status_code == 200
        assert backend.calls == [("What do you sell?", SENDER)]
        assert messenger.sent == [SendText(SENDER, "We are a small bakery.")]

    def test_button_reply_selects_option(self, client, backend):
        client.post("/whatsapp/webhook", json=button_reply_payload("1"))

        assert backend.calls == [("about us", SENDER)]

    def test_redelivered_message_is_processed_once(self, client, backend, messenger):
        client.post("/whatsapp/webhook", json=text_payload("question", message_id="wamid.same"))
        response = client.post("/whatsapp/webhook", json=text_payload("question", message_id="wamid.same"))

        assert response.status_code == 200
        assert len(backend.calls) == 1
        assert len(messenger.sent) == 1

    def test_non_utf8_bytes_are_replaced_not_rejected(self, client, backend):
        raw = json.dumps(text_payload("caf\u00e9"), ensure_ascii=False).encode("latin-1")

        response = client.post("/whatsapp/webhook", content=raw, headers={"Content-Type": "application/json"})

        assert response.status_code == 200
        assert backend.calls == [("caf\ufffd", SENDER)]

    def test_json_array_body_is_acknowledged(self, client, backend):
        response = client.post("/whatsapp/webhook", json=[text_payload("hi")])

        assert response.status_code == 200
        assert backend.calls == []


class TestFailuresStillAcknowledge:
    def test_backend_failure(self, settings, messenger):
        app = create_app(settings, backend=FakeBackend(error=BackendError("openai", "timeout")), messenger=messenger)

        response = TestClient(app).post("/whatsapp/webhook", json=text_payload("anything"))

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert messenger.sent == [SendText(SENDER, DEGRADED_RESPONSE)]

    def test_delivery_failure(self, settings):
        app = create_app(settings, backend=FakeBackend(), messenger=FakeMessenger(ok=False))

        response = TestClient(app).post("/whatsapp/webhook", json=text_payload("hi"))

        assert response.status_code == 200
        assert response.json()["success"] is True


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "backend": "fake", "sessions": 0}
