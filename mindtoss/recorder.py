"""Voice memo recording session over an injected microphone backend."""

from __future__ import annotations

import abc
import base64

import structlog

logger = structlog.get_logger()


class RecorderBusy(RuntimeError):
    """A recording is already open."""


class MicrophoneBackend(abc.ABC):
    """Platform microphone access (MediaRecorder, AVAudioRecorder, ...)."""

    @abc.abstractmethod
    async def open(self) -> None:
        """Acquire the device and begin capturing. May raise on permission denial."""

    @abc.abstractmethod
    async def close(self) -> list[bytes]:
        """Stop capturing, release the device track and return the chunks."""


class VoiceRecorder:
    """One recording at a time; the last recording is kept until replaced.

    ``stop()`` releases the device before returning.  Audio is exposed as
    base64 ``audio/webm`` via :meth:`collect`.
    """

    content_type = "audio/webm"

    def __init__(self, backend: MicrophoneBackend) -> None:
        self._backend = backend
        self._recording = False
        self._chunks: list[bytes] = []

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def has_audio(self) -> bool:
        return any(self._chunks)

    async def start(self) -> None:
        if self._recording:
            raise RecorderBusy("A recording is already in progress")
        self._chunks = []
        await self._backend.open()
        self._recording = True
        logger.info("recording_started")

    async def stop(self) -> None:
        if not self._recording:
            return
        try:
            self._chunks = list(await self._backend.close())
        finally:
            self._recording = False
        logger.info("recording_stopped", size=sum(len(c) for c in self._chunks))

    async def collect(self) -> str | None:
        """Stop any open recording and return the audio as base64, if any."""
        await self.stop()
        if not self.has_audio:
            return None
        return base64.b64encode(b"".join(self._chunks)).decode("ascii")

    def discard(self) -> None:
        self._chunks = []
