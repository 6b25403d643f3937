"""Glue between the app-state machine and the pipeline collaborators."""

from __future__ import annotations

import structlog

from .accounts import clamp_selection
from .capture import build_capture
from .deeplink import parse_deep_link
from .dispatcher import DeliveryDispatcher, DeliveryReceipt
from .errors import TossError
from .local import LocalState
from .models import AppUser, TossType
from .recorder import VoiceRecorder
from .state import (
    AppState,
    DestinationSelected,
    Event,
    NoticeShown,
    OnboardingCompleted,
    RecordingStarted,
    RecordingStopped,
    RecordingTicked,
    SendFailed,
    SendRequested,
    SendSucceeded,
    SignedIn,
    SignedOut,
    destination_blocker,
    selected_destination,
    transition,
)
from .sync import RemoteStateSync

logger = structlog.get_logger()

MICROPHONE_MESSAGE = "Could not access microphone. Please check permissions."


class TossController:
    """Owns the current :class:`AppState` and runs side effects for it.

    Every state change goes through :meth:`dispatch`; the controller only
    adds the I/O (recorder, dispatcher, sync) around pure transitions.
    """

    def __init__(
        self,
        local: LocalState,
        dispatcher: DeliveryDispatcher,
        recorder: VoiceRecorder | None = None,
        sync: RemoteStateSync | None = None,
        state: AppState | None = None,
    ) -> None:
        self.local = local
        self._dispatcher = dispatcher
        self._recorder = recorder
        self._sync = sync
        self._state = state or AppState()
        if sync is not None and local.on_change is None:
            local.on_change = sync.schedule_push

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, event: Event) -> AppState:
        self._state = transition(self._state, event)
        return self._state

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def submit(self) -> DeliveryReceipt | None:
        """Send the active capture to the selected inbox.

        Returns the receipt on success.  Every failure ends up as the
        state's notice; nothing is raised.
        """
        state = self._state
        if state.is_sending:
            logger.debug("submit_ignored_while_sending")
            return None

        accounts = self.local.accounts
        blocker = destination_blocker(state, accounts)
        if blocker:
            self.dispatch(NoticeShown(message=blocker))
            return None

        mode = state.mode
        # Mark sending before the first await so a second submit is ignored.
        self.dispatch(SendRequested())
        try:
            capture = await build_capture(state, self._recorder)
        except TossError as exc:
            self.dispatch(SendFailed(message=exc.user_message))
            return None
        if mode is TossType.VOICE and state.is_recording:
            self.dispatch(RecordingStopped())

        try:
            receipt = await self._dispatcher.send(
                selected_destination(state, accounts) or "",
                capture.content,
                mode,
                attachment=capture.attachment,
                category=state.pending_category,
            )
        except TossError as exc:
            self.dispatch(SendFailed(message=exc.user_message))
            return None

        if mode is TossType.VOICE and self._recorder is not None:
            self._recorder.discard()
        self.dispatch(SendSucceeded(mode=mode))
        return receipt

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    async def start_recording(self) -> None:
        if self._recorder is None:
            self.dispatch(NoticeShown(message=MICROPHONE_MESSAGE))
            return
        try:
            await self._recorder.start()
        except Exception as exc:
            logger.warning("recording_start_failed", error=str(exc))
            self.dispatch(NoticeShown(message=MICROPHONE_MESSAGE))
            return
        self.dispatch(RecordingStarted())

    async def stop_recording(self) -> None:
        if self._recorder is not None:
            await self._recorder.stop()
        self.dispatch(RecordingStopped())

    def tick(self) -> None:
        """Called once per second by the UI timer while recording."""
        self.dispatch(RecordingTicked())

    # ------------------------------------------------------------------
    # Session and navigation
    # ------------------------------------------------------------------

    def select_destination(self, index: int) -> None:
        self.dispatch(DestinationSelected(index=clamp_selection(index, self.local.accounts)))

    async def signed_in(self, user: AppUser) -> AppState:
        """Pull the remote snapshot, seed missing values, route the user."""
        if self._sync is not None:
            remote = await self._sync.pull()
            if remote is not None:
                self.local.apply_remote(remote)
        self.local.bootstrap(user)
        self.select_destination(self._state.selected_email_index)
        return self.dispatch(SignedIn(has_accounts=not self.local.needs_onboarding))

    def signed_out(self) -> AppState:
        return self.dispatch(SignedOut())

    def complete_onboarding(self) -> AppState:
        self.local.mark_onboarded()
        return self.dispatch(OnboardingCompleted())

    def open_link(self, url: str) -> AppState:
        event = parse_deep_link(url, self.local.storage)
        if event is None:
            return self._state
        return self.dispatch(event)
