"""Shared test fixtures for the MindToss test suite."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from mindtoss.config import ClientConfig, RelayConfig
from mindtoss.errors import DeliveryError
from mindtoss.gateway import hash_password
from mindtoss.history import HistoryStore
from mindtoss.models import EmailAccount
from mindtoss.recorder import MicrophoneBackend, VoiceRecorder
from mindtoss.storage import MemoryStore
from mindtoss.transports import EmailRequest, EmailTransport, build_relay_transport
from mindtoss_api.app import create_app
from mindtoss_api.config import Settings
from mindtoss_api.db.engine import Database

SMTP2GO_URL = "https://api.smtp2go.com/v3/email/send"
RESEND_URL = "https://api.resend.com/emails"


class FakeTransport(EmailTransport):
    """Records every request; raises ``error`` when set."""

    def __init__(self, request_id: str = "req-1", error: DeliveryError | None = None) -> None:
        self.request_id = request_id
        self.error = error
        self.requests: list[EmailRequest] = []

    async def send(self, request: EmailRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.request_id


class FakeMicrophone(MicrophoneBackend):
    def __init__(self, chunks: list[bytes] | None = None, deny: bool = False) -> None:
        self.chunks = [b"webm-1", b"webm-2"] if chunks is None else chunks
        self.deny = deny
        self.opened = 0
        self.closed = 0

    async def open(self) -> None:
        if self.deny:
            raise PermissionError("microphone denied")
        self.opened += 1

    async def close(self) -> list[bytes]:
        self.closed += 1
        return list(self.chunks)


# ----------------------------------------------------------------------
# Client-side fixtures
# ----------------------------------------------------------------------


@pytest.fixture
def storage() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def history(storage: MemoryStore) -> HistoryStore:
    return HistoryStore(storage)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def microphone() -> FakeMicrophone:
    return FakeMicrophone()


@pytest.fixture
def recorder(microphone: FakeMicrophone) -> VoiceRecorder:
    return VoiceRecorder(microphone)


@pytest.fixture
def accounts() -> list[EmailAccount]:
    return [
        EmailAccount(id="1", email="ann@example.com", alias="ann", is_default=True),
        EmailAccount(id="2", email="work@example.org", alias="work"),
    ]


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig(provider="smtp2go", api_key="relay-key", sender="noreply@mindtoss.space")


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(api_base_url="http://mindtoss-test", timeout_seconds=5.0)


# ----------------------------------------------------------------------
# Backend fixtures
# ----------------------------------------------------------------------


def _test_settings(**overrides) -> Settings:
    """Create Settings with test defaults (in-memory SQLite)."""
    defaults = {
        "database_url": "sqlite+aiosqlite://",
        "relay": RelayConfig(provider="smtp2go", api_key="relay-key"),
        "log_json": False,
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture
def settings() -> Settings:
    return _test_settings()


@pytest.fixture
async def app(settings: Settings):
    """App with the DB and relay wired onto ``app.state`` (lifespan is not run)."""
    application = create_app(settings)
    db = Database(settings)
    await db.create_tables()
    transport = build_relay_transport(settings.relay)
    await transport.start()
    application.state.db = db
    application.state.transport = transport
    yield application
    await transport.stop()
    await db.close()


@pytest.fixture
async def api(app):
    """Async HTTP test client against the app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def register(api: AsyncClient, email: str = "ann@example.com", password: str = "hunter2") -> dict:
    """Sign up through the API and return the response body."""
    resp = await api.post(
        "/api/auth/sign-up",
        json={"email": email, "passwordHash": hash_password(password)},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
