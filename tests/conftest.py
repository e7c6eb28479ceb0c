from datetime import datetime, timedelta, timezone

import pytest

from relay.config import Settings
from relay.services.backends.base import BackendAdapter
from relay.services.result import Result


class FakeBackend(BackendAdapter):
    """Records queries; replies with ``reply`` or raises ``error``."""

    name = "fake"

    def __init__(self, reply: str = "backend reply", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def respond(self, text: str, session_id: str) -> str:
        self.calls.append((text, session_id))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeMessenger:
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent = []

    async def send(self, action):
        self.sent.append(action)
        if self.ok:
            return Result.success(f"wamid.{len(self.sent)}")
        return Result.failure("boom", "delivery_error")


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def _alerts_disabled():
    """Keep tests from reaching Telegram even if ALERT_* is set in the environment."""
    from relay.services import alert_service

    saved = (alert_service.ALERT_BOT_TOKEN, alert_service.ALERT_CHAT_ID)
    alert_service.configure(None, None)
    yield
    alert_service.configure(*saved)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        whatsapp_cloud_api_verification="verify-me",
        whatsapp_cloud_phone_number_id="123456",
        whatsapp_cloud_access_token="wa-token",
        openai_api_key="test-key",
    )


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_messenger():
    return FakeMessenger()


@pytest.fixture
def clock():
    return FakeClock()
