"""Tests for mindtoss.capture."""

from __future__ import annotations

import base64

import pytest

from mindtoss.capture import (
    DEFAULT_PHOTO_CAPTION,
    build_capture,
    capture_blocker,
    capture_photo,
    capture_text,
    capture_voice,
    format_duration,
    parse_data_url,
)
from mindtoss.errors import CaptureRejected
from mindtoss.models import TossType
from mindtoss.recorder import VoiceRecorder
from mindtoss.state import AppState


class TestHelpers:
    @pytest.mark.parametrize("seconds, expected", [(0, "0:00"), (5, "0:05"), (65, "1:05"), (600, "10:00")])
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_parse_data_url(self):
        assert parse_data_url("data:image/png;base64,AAAA") == ("image/png", "AAAA")

    def test_parse_data_url_rejects_other_shapes(self):
        assert parse_data_url("https://example.com/x.png") is None
        assert parse_data_url("data:image/png,AAAA") is None


class TestText:
    def test_raw_text_is_kept(self):
        capture = capture_text("  idea\nline two ")
        assert capture.content == "  idea\nline two "
        assert capture.attachment is None

    def test_blank_text_rejected(self):
        with pytest.raises(CaptureRejected, match="Please enter some text to toss") as exc_info:
            capture_text(" \n\t")
        assert exc_info.value.mode == "text"


class TestVoice:
    @pytest.mark.asyncio
    async def test_stops_recording_and_packages_audio(self, recorder: VoiceRecorder, microphone):
        await recorder.start()
        capture = await capture_voice(recorder, is_recording=True, seconds=65)

        assert not recorder.is_recording
        assert microphone.closed == 1
        assert capture.content == "Voice memo (1:05)"
        assert capture.attachment.content_type == "audio/webm"
        assert capture.attachment.filename.startswith("voice-memo-")
        assert capture.attachment.filename.endswith(".webm")
        assert base64.b64decode(capture.attachment.content) == b"webm-1webm-2"

    @pytest.mark.asyncio
    async def test_completed_recording(self, recorder: VoiceRecorder):
        await recorder.start()
        await recorder.stop()
        capture = await capture_voice(recorder, is_recording=False, seconds=3)
        assert capture.content == "Voice memo (0:03)"

    @pytest.mark.asyncio
    async def test_nothing_recorded_rejected(self, recorder: VoiceRecorder):
        with pytest.raises(CaptureRejected, match="Please record a voice memo first"):
            await capture_voice(recorder, is_recording=False, seconds=0)

    @pytest.mark.asyncio
    async def test_empty_audio_rejected(self, microphone, recorder: VoiceRecorder):
        microphone.chunks = []
        await recorder.start()
        with pytest.raises(CaptureRejected):
            await capture_voice(recorder, is_recording=True, seconds=2)


class TestPhoto:
    def test_caption_and_attachment(self):
        capture = capture_photo("data:image/png;base64,iVBORw0KGgo=", "whiteboard")
        assert capture.content == "whiteboard"
        assert capture.attachment.content == "iVBORw0KGgo="
        assert capture.attachment.content_type == "image/png"
        assert capture.attachment.filename.startswith("photo-")
        assert capture.attachment.filename.endswith(".png")

    def test_default_caption(self):
        capture = capture_photo("data:image/jpeg;base64,/9j/4AAQ", "   ")
        assert capture.content == DEFAULT_PHOTO_CAPTION
        assert capture.attachment.filename.endswith(".jpeg")

    def test_unparseable_image_sends_caption_only(self):
        capture = capture_photo("blob:abc", "note")
        assert capture.content == "note"
        assert capture.attachment is None

    def test_missing_photo_rejected(self):
        with pytest.raises(CaptureRejected, match="Please take or select a photo first"):
            capture_photo(None)


class TestBuildCapture:
    @pytest.mark.asyncio
    async def test_dispatches_on_mode(self, recorder: VoiceRecorder):
        text = await build_capture(AppState(mode=TossType.TEXT, text="hi"))
        assert text.content == "hi"

        photo = await build_capture(
            AppState(mode=TossType.PHOTO, captured_image="data:image/gif;base64,R0lG", photo_note="cat")
        )
        assert photo.attachment.content_type == "image/gif"

        await recorder.start()
        voice = await build_capture(
            AppState(mode=TossType.VOICE, is_recording=True, recording_seconds=4), recorder
        )
        assert voice.content == "Voice memo (0:04)"

    @pytest.mark.asyncio
    async def test_voice_without_recorder_rejected(self):
        with pytest.raises(CaptureRejected):
            await build_capture(AppState(mode=TossType.VOICE, recording_seconds=3))

    def test_capture_blocker(self):
        assert capture_blocker(AppState(mode=TossType.TEXT, text="  ")) is not None
        assert capture_blocker(AppState(mode=TossType.TEXT, text="x")) is None
        assert capture_blocker(AppState(mode=TossType.VOICE)) is not None
        assert capture_blocker(AppState(mode=TossType.VOICE, is_recording=True)) is None
        assert capture_blocker(AppState(mode=TossType.PHOTO)) is not None
        assert capture_blocker(AppState(mode=TossType.PHOTO, captured_image="data:x")) is None
