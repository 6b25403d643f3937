"""Capture normalizer: turn the active input mode into ``(content, attachment)``."""

from __future__ import annotations

import re
import time
from typing import TYPE_CHECKING, NamedTuple

from .errors import CaptureRejected
from .models import Attachment, TossType

if TYPE_CHECKING:
    from .recorder import VoiceRecorder
    from .state import AppState

CAPTURE_MESSAGES: dict[TossType, str] = {
    TossType.TEXT: "Empty Note: Please enter some text to toss.",
    TossType.VOICE: "No Recording: Please record a voice memo first.",
    TossType.PHOTO: "No Photo: Please take or select a photo first.",
}
DEFAULT_PHOTO_CAPTION = "Photo capture"

_DATA_URL = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)


class Capture(NamedTuple):
    content: str
    attachment: Attachment | None = None


def format_duration(seconds: int) -> str:
    """``M:SS`` with zero-padded seconds."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def parse_data_url(data_url: str) -> tuple[str, str] | None:
    """Split ``data:<mime>;base64,<payload>`` into ``(mime, payload)``."""
    match = _DATA_URL.match(data_url)
    if match is None:
        return None
    return match.group(1), match.group(2)


def _timestamp_ms() -> int:
    return time.time_ns() // 1_000_000


def capture_blocker(state: AppState) -> str | None:
    """Mode-specific reason the current input can't be sent yet."""
    if state.mode is TossType.TEXT and not state.text.strip():
        return CAPTURE_MESSAGES[TossType.TEXT]
    if state.mode is TossType.VOICE and not state.is_recording and state.recording_seconds == 0:
        return CAPTURE_MESSAGES[TossType.VOICE]
    if state.mode is TossType.PHOTO and not state.captured_image:
        return CAPTURE_MESSAGES[TossType.PHOTO]
    return None


def capture_text(text: str) -> Capture:
    if not text.strip():
        raise CaptureRejected(TossType.TEXT.value, CAPTURE_MESSAGES[TossType.TEXT])
    return Capture(content=text)


async def capture_voice(recorder: VoiceRecorder, is_recording: bool, seconds: int) -> Capture:
    """Stop any open recording and package the audio."""
    if not is_recording and seconds == 0:
        raise CaptureRejected(TossType.VOICE.value, CAPTURE_MESSAGES[TossType.VOICE])
    audio = await recorder.collect()
    if audio is None:
        raise CaptureRejected(TossType.VOICE.value, CAPTURE_MESSAGES[TossType.VOICE])
    return Capture(
        content=f"Voice memo ({format_duration(seconds)})",
        attachment=Attachment(
            filename=f"voice-memo-{_timestamp_ms()}.webm",
            content=audio,
            content_type="audio/webm",
        ),
    )


def capture_photo(data_url: str | None, note: str = "") -> Capture:
    if not data_url:
        raise CaptureRejected(TossType.PHOTO.value, CAPTURE_MESSAGES[TossType.PHOTO])
    content = note if note.strip() else DEFAULT_PHOTO_CAPTION
    parsed = parse_data_url(data_url)
    if parsed is None:
        # Unparseable image: the caption still goes out without an attachment.
        return Capture(content=content)
    mime, payload = parsed
    ext = mime.split("/", 1)[1] if "/" in mime and mime.split("/", 1)[1] else "jpg"
    return Capture(
        content=content,
        attachment=Attachment(
            filename=f"photo-{_timestamp_ms()}.{ext}",
            content=payload,
            content_type=mime,
        ),
    )


async def build_capture(state: AppState, recorder: VoiceRecorder | None = None) -> Capture:
    """Normalize the active mode's raw input. Raises :class:`CaptureRejected`."""
    if state.mode is TossType.TEXT:
        return capture_text(state.text)
    if state.mode is TossType.VOICE:
        if recorder is None:
            raise CaptureRejected(TossType.VOICE.value, CAPTURE_MESSAGES[TossType.VOICE])
        return await capture_voice(recorder, state.is_recording, state.recording_seconds)
    return capture_photo(state.captured_image, state.photo_note)
