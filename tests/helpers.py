import asyncio
from typing import Dict, List, Optional, Any

from sqlalchemy.exc import OperationalError

from chat_relay.services.exceptions import UpstreamServiceError, TranscriptionError


class FakeLanguageService:
    """Predictable stand-in for the Gemini language service."""

    def __init__(
        self,
        detections: Optional[Dict[str, str]] = None,
        translations: Optional[Dict[str, str]] = None,
        default_language: str = "English",
        detect_error: bool = False,
        translate_error: bool = False,
        translate_delays: Optional[Dict[str, float]] = None,
    ):
        self.detections = detections or {}
        self.translations = translations or {}
        self.default_language = default_language
        self.detect_error = detect_error
        self.translate_error = translate_error
        self.translate_delays = translate_delays or {}
        self.detect_calls: List[str] = []
        self.translate_calls: List[tuple] = []

    async def detect_language(self, text: str) -> str:
        self.detect_calls.append(text)
        if self.detect_error:
            raise UpstreamServiceError("detector down", service="language")
        return self.detections.get(text, self.default_language)

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        self.translate_calls.append((text, source_language, target_language))
        delay = self.translate_delays.get(text)
        if delay:
            await asyncio.sleep(delay)
        if self.translate_error:
            raise UpstreamServiceError("translator down", service="language")
        return self.translations.get(text, f"[{target_language}] {text}")


class FakeTranscriptionService:
    """Returns a fixed transcript or fails."""

    def __init__(self, transcript: str = "", error: bool = False):
        self.transcript = transcript
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def transcribe(self, audio_data: bytes, filename=None, content_type=None) -> str:
        self.calls.append({"audio": audio_data, "filename": filename, "content_type": content_type})
        if self.error:
            raise TranscriptionError("Transcription failed")
        return self.transcript


class FakeConnection:
    """Connection handle that records every event it is sent."""

    def __init__(self, user_id: str, fail: bool = False, raise_error: bool = False, display_name=None):
        self.user_id = user_id
        self.display_name = display_name
        self.fail = fail
        self.raise_error = raise_error
        self.sent: List[Dict[str, Any]] = []

    async def send_json(self, data: Dict[str, Any]) -> bool:
        if self.raise_error:
            raise RuntimeError("socket torn down")
        if self.fail:
            return False
        self.sent.append(data)
        return True


class BrokenSession:
    async def __aenter__(self):
        raise OperationalError("SELECT 1", {}, Exception("database is unavailable"))

    async def __aexit__(self, *args):
        return False


def broken_session_factory():
    """Session factory whose sessions fail on entry, simulating a storage outage."""
    return BrokenSession()
