"""
Protocol definitions for external capabilities.

This module defines interfaces (Python Protocols) that allow:
- Swapping implementations (e.g., Vertex AI -> another LLM provider)
- Testing without real API credentials
- Clear contracts between the pipeline and its leaf services

Usage:
    from chat_relay.services.protocols import LanguageServiceProtocol

    async def relay(language: LanguageServiceProtocol, text: str):
        source = await language.detect_language(text)
        return await language.translate(text, source, "English")
"""

from typing import Protocol, Optional, Dict, Any


class LanguageServiceProtocol(Protocol):
    """
    Interface for language detection and translation.

    Languages are plain names ("English", "French", "Punjabi"), not codes.
    Implementations raise UpstreamServiceError on failure.
    """

    async def detect_language(self, text: str) -> str:
        """
        Detect the language a text is written in.

        Args:
            text: Non-empty text

        Returns:
            Language name, e.g. "French"
        """
        ...

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        """
        Translate text from source to target language.

        Args:
            text: Text to translate
            source_language: Detected language name (may be "Unknown")
            target_language: Receiver's preferred language name

        Returns:
            Translated text
        """
        ...


class TranscriptionProtocol(Protocol):
    """
    Interface for speech-to-text services.

    Implementations raise TranscriptionError on failure.
    """

    async def transcribe(
        self,
        audio_data: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None
    ) -> str:
        """
        Transcribe an uploaded audio file to text.

        Args:
            audio_data: Raw bytes of the uploaded file (any container ffmpeg reads)
            filename: Original file name, used as a format hint
            content_type: MIME type reported by the client

        Returns:
            Transcribed text (may be empty when no speech was found)
        """
        ...


class ConnectionHandleProtocol(Protocol):
    """Interface for a live connection the registry can deliver events to."""

    user_id: str

    async def send_json(self, data: Dict[str, Any]) -> bool:
        """Send one event; return False on transport failure."""
        ...
