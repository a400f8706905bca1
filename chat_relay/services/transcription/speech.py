"""
GCP Speech Service

Handles Google Cloud Speech-to-Text for voice messages.
"""

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from google.cloud import speech

from chat_relay.config.settings import settings
from chat_relay.config.constants import (
    TRANSCRIPTION_EXECUTOR_WORKERS,
    TRANSCRIPTION_SAMPLE_RATE_HZ,
)
from chat_relay.services.exceptions import TranscriptionError
from chat_relay.services.transcription.audio import reencode_to_pcm16

logger = logging.getLogger(__name__)

_speech_executor = ThreadPoolExecutor(
    max_workers=TRANSCRIPTION_EXECUTOR_WORKERS, thread_name_prefix="gcp_speech"
)


class GCPTranscriptionService:
    """Converts uploaded voice messages to text."""

    def __init__(
        self,
        language_code: Optional[str] = None,
        alternative_language_codes: Optional[List[str]] = None,
        reencode: Optional[bool] = None,
    ):
        self.language_code = language_code or settings.TRANSCRIPTION_LANGUAGE_CODE
        self.alternative_language_codes = (
            alternative_language_codes
            if alternative_language_codes is not None
            else list(settings.TRANSCRIPTION_ALTERNATIVE_LANGUAGES)
        )
        self.reencode = settings.TRANSCRIPTION_REENCODE if reencode is None else reencode
        self._client = None

    def _ensure_credentials(self):
        """Ensure Google credentials are set in environment."""
        if settings.GOOGLE_APPLICATION_CREDENTIALS and "GOOGLE_APPLICATION_CREDENTIALS" not in os.environ:
            os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = settings.GOOGLE_APPLICATION_CREDENTIALS

    def _get_client(self) -> speech.SpeechClient:
        if self._client is None:
            self._ensure_credentials()
            self._client = speech.SpeechClient()
        return self._client

    async def transcribe(
        self,
        audio_data: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None
    ) -> str:
        """Transcribe one uploaded audio file."""
        if not audio_data:
            raise TranscriptionError("No audio data received")

        logger.info(
            f"🎤 Transcribing {len(audio_data)} bytes "
            f"({filename or 'unnamed'}, {content_type or 'unknown type'})"
        )

        pcm = audio_data
        if self.reencode:
            pcm = await reencode_to_pcm16(audio_data, ffmpeg_binary=settings.FFMPEG_BINARY)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(_speech_executor, self._recognize_sync, pcm)
        except TranscriptionError:
            raise
        except Exception as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

    def _recognize_sync(self, pcm: bytes) -> str:
        """Blocking recognize call (runs in thread pool)."""
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=TRANSCRIPTION_SAMPLE_RATE_HZ,
            language_code=self.language_code,
            alternative_language_codes=self.alternative_language_codes,
            enable_automatic_punctuation=True,
        )
        audio = speech.RecognitionAudio(content=pcm)

        response = self._get_client().recognize(config=config, audio=audio)
        if not response.results:
            return ""

        return " ".join(
            result.alternatives[0].transcript.strip()
            for result in response.results
            if result.alternatives
        ).strip()


# Global singleton instance
_transcription_service: Optional[GCPTranscriptionService] = None


def get_transcription_service() -> GCPTranscriptionService:
    """Get or create the global GCPTranscriptionService instance."""
    global _transcription_service
    if _transcription_service is None:
        _transcription_service = GCPTranscriptionService()
    return _transcription_service
