"""Explicit app-state machine for the capture screen.

``AppState`` is an immutable value; ``transition`` is a pure function from
``(state, event)`` to the next state.  Readiness to send is computed from
state alone by :func:`send_blocker`.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from .accounts import normalize_category
from .capture import capture_blocker
from .models import EmailAccount, TossType
from .validation import EmailStatus, get_destination_email_status, status_message

SENT_NOTICE = "Sent! Your thought has been tossed to your inbox."


class Screen(str, Enum):
    AUTH = "auth"
    ONBOARDING = "onboarding"
    MAIN = "main"
    SETTINGS = "settings"
    HISTORY = "history"
    PROFILE = "profile"


class AppState(BaseModel):
    model_config = ConfigDict(frozen=True)

    screen: Screen = Screen.AUTH
    mode: TossType = TossType.TEXT
    text: str = ""
    is_recording: bool = False
    recording_seconds: int = 0
    captured_image: str | None = None
    photo_note: str = ""
    selected_email_index: int = 0
    pending_category: str | None = None
    is_sending: bool = False
    notice: str | None = None


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class ModeSwitched(Event):
    mode: TossType


class TextChanged(Event):
    text: str


class RecordingStarted(Event):
    pass


class RecordingTicked(Event):
    pass


class RecordingStopped(Event):
    pass


class PhotoCaptured(Event):
    data_url: str


class PhotoNoteChanged(Event):
    note: str


class PhotoDiscarded(Event):
    pass


class CategoryPicked(Event):
    category: str | None


class DestinationSelected(Event):
    index: int


class SharedContentReceived(Event):
    text: str | None = None
    url: str | None = None


class DeepLinkOpened(Event):
    mode: TossType | None = None


class Navigated(Event):
    screen: Screen


class SignedIn(Event):
    has_accounts: bool


class SignedOut(Event):
    pass


class OnboardingCompleted(Event):
    pass


class SendRequested(Event):
    pass


class SendSucceeded(Event):
    mode: TossType


class SendFailed(Event):
    message: str


class NoticeShown(Event):
    message: str


class NoticeDismissed(Event):
    pass


# ----------------------------------------------------------------------
# Transitions
# ----------------------------------------------------------------------


def _cleared_input(state: AppState, mode: TossType) -> dict:
    if mode is TossType.TEXT:
        return {"text": ""}
    if mode is TossType.VOICE:
        return {"is_recording": False, "recording_seconds": 0}
    return {"captured_image": None, "photo_note": ""}


def _shared_text(current: str, text: str | None, url: str | None) -> str:
    result = text or current
    if url:
        result = f"{result}\n\n{url}" if result else url
    return result


def transition(state: AppState, event: Event) -> AppState:
    """Return the state that follows *event*. Unknown events are ignored."""
    match event:
        case ModeSwitched(mode=mode):
            return state.model_copy(update={"mode": mode})
        case TextChanged(text=text):
            return state.model_copy(update={"text": text})
        case RecordingStarted():
            return state.model_copy(update={"is_recording": True, "recording_seconds": 0})
        case RecordingTicked():
            if not state.is_recording:
                return state
            return state.model_copy(update={"recording_seconds": state.recording_seconds + 1})
        case RecordingStopped():
            return state.model_copy(update={"is_recording": False})
        case PhotoCaptured(data_url=data_url):
            return state.model_copy(update={"captured_image": data_url})
        case PhotoNoteChanged(note=note):
            return state.model_copy(update={"photo_note": note})
        case PhotoDiscarded():
            return state.model_copy(update={"captured_image": None, "photo_note": ""})
        case CategoryPicked(category=category):
            return state.model_copy(update={"pending_category": normalize_category(category)})
        case DestinationSelected(index=index):
            return state.model_copy(update={"selected_email_index": max(0, index)})
        case SharedContentReceived(text=text, url=url):
            return state.model_copy(
                update={
                    "screen": Screen.MAIN,
                    "mode": TossType.TEXT,
                    "text": _shared_text(state.text, text, url),
                }
            )
        case DeepLinkOpened(mode=mode):
            update: dict = {"screen": Screen.MAIN}
            if mode is not None:
                update["mode"] = mode
            return state.model_copy(update=update)
        case Navigated(screen=screen):
            return state.model_copy(update={"screen": screen})
        case SignedIn(has_accounts=has_accounts):
            return state.model_copy(update={"screen": Screen.MAIN if has_accounts else Screen.ONBOARDING})
        case SignedOut():
            return AppState(screen=Screen.AUTH)
        case OnboardingCompleted():
            return state.model_copy(update={"screen": Screen.MAIN})
        case SendRequested():
            return state.model_copy(update={"is_sending": True, "notice": None})
        case SendSucceeded(mode=mode):
            return state.model_copy(
                update={
                    **_cleared_input(state, mode),
                    "pending_category": None,
                    "is_sending": False,
                    "notice": SENT_NOTICE,
                }
            )
        case SendFailed(message=message):
            return state.model_copy(update={"is_sending": False, "notice": message})
        case NoticeShown(message=message):
            return state.model_copy(update={"notice": message})
        case NoticeDismissed():
            return state.model_copy(update={"notice": None})
    return state


# ----------------------------------------------------------------------
# Readiness
# ----------------------------------------------------------------------


def selected_destination(state: AppState, accounts: list[EmailAccount]) -> str | None:
    if 0 <= state.selected_email_index < len(accounts):
        return accounts[state.selected_email_index].email
    return None


def destination_blocker(state: AppState, accounts: list[EmailAccount]) -> str | None:
    status = get_destination_email_status(selected_destination(state, accounts))
    if status is EmailStatus.OK:
        return None
    return status_message(status)


def send_blocker(state: AppState, accounts: list[EmailAccount]) -> str | None:
    """Why the send control is disabled, or ``None`` when a send may start."""
    if state.is_sending:
        return "A toss is already on its way."
    return destination_blocker(state, accounts) or capture_blocker(state)
