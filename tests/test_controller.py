"""Tests for mindtoss.controller."""

from __future__ import annotations

import asyncio
import base64

import pytest

from mindtoss.controller import MICROPHONE_MESSAGE, TossController
from mindtoss.deeplink import PENDING_SHARE_KEY
from mindtoss.dispatcher import DeliveryDispatcher
from mindtoss.errors import NetworkError, RecipientRejected
from mindtoss.local import LocalState
from mindtoss.models import AppUser, EmailAccount, RemoteState, TossType
from mindtoss.recorder import VoiceRecorder
from mindtoss.state import (
    SENT_NOTICE,
    AppState,
    CategoryPicked,
    ModeSwitched,
    PhotoCaptured,
    Screen,
    TextChanged,
)
from mindtoss.storage import MemoryStore
from mindtoss.sync import RemoteStateSync
from tests.conftest import FakeMicrophone, FakeTransport


class SlowMicrophone(FakeMicrophone):
    """Yields to the loop while releasing the device."""

    async def close(self) -> list[bytes]:
        await asyncio.sleep(0.01)
        return await super().close()


class FakeBackend:
    def __init__(self, remote: RemoteState | None = None) -> None:
        self.remote = remote
        self.saved: list[RemoteState] = []

    async def load_state(self) -> RemoteState | None:
        return self.remote

    async def save_state(self, state: RemoteState) -> None:
        self.saved.append(state)


def _controller(
    storage: MemoryStore,
    transport: FakeTransport,
    recorder: VoiceRecorder | None = None,
    backend: FakeBackend | None = None,
    emails: tuple[str, ...] = ("ann@example.com",),
) -> TossController:
    local = LocalState(storage)
    local.load()
    for email in emails:
        local.add_account(email)
    sync = RemoteStateSync(backend or FakeBackend(), local.snapshot)
    dispatcher = DeliveryDispatcher(transport, local.history, sync)
    return TossController(local, dispatcher, recorder=recorder, sync=sync, state=AppState(screen=Screen.MAIN))


class TestSubmit:
    @pytest.mark.asyncio
    async def test_text_success(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport)
        controller.dispatch(TextChanged(text="remember the milk"))
        controller.dispatch(CategoryPicked(category="tasks"))

        receipt = await controller.submit()

        assert receipt.request_id == "req-1"
        assert fake_transport.requests[0].content == "remember the milk"
        assert controller.state.text == ""
        assert controller.state.pending_category is None
        assert controller.state.notice == SENT_NOTICE
        assert not controller.state.is_sending
        assert controller.local.history.items[0].category == "tasks"

    @pytest.mark.asyncio
    async def test_in_flight_submit_is_ignored(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport)
        controller._state = AppState(screen=Screen.MAIN, text="x", is_sending=True)
        assert await controller.submit() is None
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_concurrent_voice_submits_send_once(self, storage: MemoryStore, fake_transport: FakeTransport):
        microphone = SlowMicrophone()
        controller = _controller(storage, fake_transport, recorder=VoiceRecorder(microphone))
        controller.dispatch(ModeSwitched(mode=TossType.VOICE))
        await controller.start_recording()
        controller.tick()

        first, second = await asyncio.gather(controller.submit(), controller.submit())

        assert first is not None
        assert second is None
        assert len(fake_transport.requests) == 1
        assert len(controller.local.history) == 1
        assert microphone.closed == 1
        assert not controller.state.is_sending

    @pytest.mark.asyncio
    async def test_empty_capture_clears_sending_flag(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport, recorder=VoiceRecorder(FakeMicrophone(chunks=[])))
        controller.dispatch(ModeSwitched(mode=TossType.VOICE))
        await controller.start_recording()
        controller.tick()

        assert await controller.submit() is None
        assert controller.state.notice == "No Recording: Please record a voice memo first."
        assert not controller.state.is_sending
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_invalid_destination_sets_notice_only(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport, emails=())
        controller.dispatch(TextChanged(text="hello"))
        assert await controller.submit() is None
        assert fake_transport.requests == []
        assert controller.state.text == "hello"
        assert "add an email address" in controller.state.notice
        assert not controller.state.is_sending

    @pytest.mark.asyncio
    async def test_empty_capture_sets_notice(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport)
        await controller.submit()
        assert controller.state.notice == "Empty Note: Please enter some text to toss."
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_delivery_failure_keeps_input(self, storage: MemoryStore):
        transport = FakeTransport(error=NetworkError("offline"))
        controller = _controller(storage, transport)
        controller.dispatch(TextChanged(text="keep me"))

        assert await controller.submit() is None

        assert controller.state.text == "keep me"
        assert "internet connection" in controller.state.notice
        assert not controller.state.is_sending
        assert len(controller.local.history) == 0

    @pytest.mark.asyncio
    async def test_recipient_rejection_message(self, storage: MemoryStore):
        controller = _controller(storage, FakeTransport(error=RecipientRejected("bounced")))
        controller.dispatch(TextChanged(text="x"))
        await controller.submit()
        assert "different inbox email" in controller.state.notice

    @pytest.mark.asyncio
    async def test_photo_success_clears_photo_only(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport)
        controller.dispatch(TextChanged(text="unsent text"))
        controller.dispatch(ModeSwitched(mode=TossType.PHOTO))
        controller.dispatch(PhotoCaptured(data_url="data:image/png;base64,AAAA"))

        await controller.submit()

        request = fake_transport.requests[0]
        assert request.type is TossType.PHOTO
        assert request.content == "Photo capture"
        assert controller.state.captured_image is None
        assert controller.state.text == "unsent text"

    @pytest.mark.asyncio
    async def test_voice_while_recording(self, storage: MemoryStore, fake_transport: FakeTransport):
        microphone = FakeMicrophone()
        controller = _controller(storage, fake_transport, recorder=VoiceRecorder(microphone))
        controller.dispatch(ModeSwitched(mode=TossType.VOICE))
        await controller.start_recording()
        for _ in range(3):
            controller.tick()

        await controller.submit()

        request = fake_transport.requests[0]
        assert request.content == "Voice memo (0:03)"
        assert base64.b64decode(request.attachment.content) == b"webm-1webm-2"
        assert microphone.closed == 1
        assert not controller.state.is_recording
        assert controller.state.recording_seconds == 0

    @pytest.mark.asyncio
    async def test_selected_destination_is_used(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport, emails=("a@example.com", "b@example.com"))
        controller.select_destination(7)
        controller.dispatch(TextChanged(text="x"))
        await controller.submit()
        assert fake_transport.requests[0].to == "b@example.com"


class TestRecording:
    @pytest.mark.asyncio
    async def test_permission_denied_shows_notice(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport, recorder=VoiceRecorder(FakeMicrophone(deny=True)))
        await controller.start_recording()
        assert controller.state.notice == MICROPHONE_MESSAGE
        assert not controller.state.is_recording

    @pytest.mark.asyncio
    async def test_stop_recording_keeps_duration(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport, recorder=VoiceRecorder(FakeMicrophone()))
        await controller.start_recording()
        controller.tick()
        await controller.stop_recording()
        assert not controller.state.is_recording
        assert controller.state.recording_seconds == 1


class TestSession:
    @pytest.mark.asyncio
    async def test_sign_in_pulls_remote_and_routes_main(self, fake_transport: FakeTransport):
        remote = RemoteState(email_accounts=[EmailAccount(id="r", email="remote@example.com")])
        controller = _controller(MemoryStore(), fake_transport, backend=FakeBackend(remote), emails=())
        state = await controller.signed_in(AppUser(id="u", email="apple-1@mindtoss.local"))
        assert state.screen is Screen.MAIN
        assert [a.email for a in controller.local.accounts] == ["remote@example.com"]

    @pytest.mark.asyncio
    async def test_sign_in_without_accounts_routes_onboarding(self, fake_transport: FakeTransport):
        controller = _controller(MemoryStore(), fake_transport, emails=())
        state = await controller.signed_in(AppUser(id="u", email="apple-1@mindtoss.local"))
        assert state.screen is Screen.ONBOARDING
        assert controller.complete_onboarding().screen is Screen.MAIN
        assert controller.local.has_onboarded

    @pytest.mark.asyncio
    async def test_sign_in_bootstraps_from_identity(self, fake_transport: FakeTransport):
        controller = _controller(MemoryStore(), fake_transport, emails=())
        state = await controller.signed_in(AppUser(id="u", email="ann@example.com"))
        assert state.screen is Screen.MAIN
        assert controller.local.accounts[0].email == "ann@example.com"

    def test_sign_out(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport)
        controller.dispatch(TextChanged(text="x"))
        assert controller.signed_out() == AppState(screen=Screen.AUTH)

    @pytest.mark.asyncio
    async def test_local_changes_are_pushed(self, storage: MemoryStore, fake_transport: FakeTransport):
        backend = FakeBackend()
        controller = _controller(storage, fake_transport, backend=backend)

        controller.local.set_dark_mode(True)
        controller.local.add_account("work@example.org")
        await controller._sync.drain()

        assert len(backend.saved) == 2
        assert backend.saved[-1].dark_mode is True
        assert [a.email for a in backend.saved[-1].email_accounts] == ["ann@example.com", "work@example.org"]

    def test_existing_change_listener_is_kept(self, storage: MemoryStore, fake_transport: FakeTransport):
        changes = []
        local = LocalState(storage, on_change=lambda: changes.append(1))
        sync = RemoteStateSync(FakeBackend(), local.snapshot)
        TossController(local, DeliveryDispatcher(fake_transport, local.history, sync), sync=sync)

        local.set_dark_mode(True)
        assert changes == [1]


class TestLinks:
    def test_share_link_fills_text(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport)
        storage.set(PENDING_SHARE_KEY, {"text": "article", "url": "https://x.y"})
        state = controller.open_link("mindtoss://share")
        assert state.text == "article\n\nhttps://x.y"
        assert storage.get(PENDING_SHARE_KEY) is None

    def test_unknown_link_keeps_state(self, storage: MemoryStore, fake_transport: FakeTransport):
        controller = _controller(storage, fake_transport)
        before = controller.state
        assert controller.open_link("mindtoss://nowhere") is before
