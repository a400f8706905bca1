"""
Message Pipeline - End-to-end processing of one inbound peer message.

Turns a text or voice message into a persisted, translated, delivered outcome:

    transcribe (voice) -> detect language -> resolve receiver preference
    -> translate -> persist -> update sender preference -> fan out -> acknowledge

Only validation and transcription failures abort a run. Detection and
translation degrade to fallback values, and storage or delivery problems are
logged, so one flaky dependency cannot take down the message path.

Usage:
    from chat_relay.services.pipeline.processor import MessagePipeline, InboundMessage

    pipeline = MessagePipeline(language, transcription, preferences, log, registry)
    result = await pipeline.process(InboundMessage("alice", "bob", "text", text="Bonjour"))
    print(result.translated)
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Optional, Dict, Any

from chat_relay.config.constants import (
    MESSAGE_MODES,
    MODE_TEXT,
    MODE_VOICE,
    UNKNOWN_LANGUAGE,
    LANGUAGE_DETECT_TIMEOUT_SEC,
    TRANSLATE_TIMEOUT_SEC,
    TRANSCRIPTION_TIMEOUT_SEC,
)
from chat_relay.models.message import Message
from chat_relay.schemas.websocket_events import NewMessageEvent
from chat_relay.services.connection.registry import ConnectionRegistry
from chat_relay.services.core.repositories import PreferenceStore, MessageLog
from chat_relay.services.exceptions import (
    ValidationError,
    TranscriptionError,
    StorageError,
)
from chat_relay.services.metrics import step_latency, messages_processed, degraded_steps
from chat_relay.services.protocols import LanguageServiceProtocol, TranscriptionProtocol

logger = logging.getLogger(__name__)


@dataclass
class InboundMessage:
    """
    One message as received by an ingress adapter.

    Attributes:
        sender_id: Identity of the sender (required)
        receiver_id: Identity of the receiver (required)
        mode: "text" or "voice"
        text: Raw text for text mode
        audio: Uploaded audio bytes for voice mode
        audio_filename: Original upload name, a format hint for transcription
        audio_content_type: MIME type reported by the client
    """
    sender_id: Optional[str]
    receiver_id: Optional[str]
    mode: str = MODE_TEXT
    text: Optional[str] = None
    audio: Optional[bytes] = None
    audio_filename: Optional[str] = None
    audio_content_type: Optional[str] = None

    def validate(self) -> None:
        """Reject malformed input before it reaches the pipeline."""
        if not self.sender_id or not self.sender_id.strip():
            raise ValidationError("Missing sender_id")
        if not self.receiver_id or not self.receiver_id.strip():
            raise ValidationError("Missing receiver_id")
        if self.mode not in MESSAGE_MODES:
            raise ValidationError(f"Unsupported mode: {self.mode!r}")
        if self.mode == MODE_VOICE and not self.audio:
            raise ValidationError("No audio file uploaded.")


@dataclass
class PipelineResult:
    """
    Outcome of one pipeline run.

    The first five fields form the caller-visible acknowledgement; the rest
    tag the independent sub-outcomes of persistence and delivery.
    """
    success: bool
    sender_language: str
    receiver_language: str
    original: str
    translated: str
    message_id: Optional[int] = None
    timestamp: Optional[datetime] = None
    persisted: bool = False
    preference_updated: bool = False
    delivered: int = 0
    degraded: list = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """Acknowledgement payload returned to REST and WebSocket callers."""
        return {
            "success": self.success,
            "sender_language": self.sender_language,
            "receiver_language": self.receiver_language,
            "original": self.original,
            "translated": self.translated,
        }

    @classmethod
    def empty(cls) -> "PipelineResult":
        """Soft success used when there is no usable text to process."""
        return cls(
            success=True,
            sender_language=UNKNOWN_LANGUAGE,
            receiver_language=UNKNOWN_LANGUAGE,
            original="",
            translated="",
        )


@contextmanager
def _timed(step: str):
    start = time.perf_counter()
    try:
        yield
    finally:
        step_latency.labels(step=step).observe(time.perf_counter() - start)


class MessagePipeline:
    """
    Orchestrates one inbound message end-to-end.

    Stateless apart from its collaborators, so concurrent runs are independent:
    every store call opens its own session and every external call is awaited
    with its own timeout.
    """

    def __init__(
        self,
        language_service: LanguageServiceProtocol,
        transcription_service: TranscriptionProtocol,
        preferences: PreferenceStore,
        message_log: MessageLog,
        registry: ConnectionRegistry,
        detect_timeout: float = LANGUAGE_DETECT_TIMEOUT_SEC,
        translate_timeout: float = TRANSLATE_TIMEOUT_SEC,
        transcription_timeout: float = TRANSCRIPTION_TIMEOUT_SEC,
    ):
        self._language = language_service
        self._transcription = transcription_service
        self._preferences = preferences
        self._log = message_log
        self._registry = registry
        self._detect_timeout = detect_timeout
        self._translate_timeout = translate_timeout
        self._transcription_timeout = transcription_timeout

    async def process(self, inbound: InboundMessage) -> PipelineResult:
        """
        Run the full pipeline for one message.

        Raises:
            ValidationError: sender/receiver missing, bad mode, or voice without audio
            TranscriptionError: voice message could not be transcribed
        """
        try:
            inbound.validate()
        except ValidationError:
            messages_processed.labels(outcome="invalid", mode=str(inbound.mode)).inc()
            raise

        sender_id = inbound.sender_id.strip()
        receiver_id = inbound.receiver_id.strip()
        context = f"{sender_id} -> {receiver_id}"

        # 1-2. Resolve the effective text
        if inbound.mode == MODE_VOICE:
            text = await self._transcribe(inbound, context)
        else:
            text = inbound.text or ""
        text = text.strip()

        # 3. Nothing to process
        if not text:
            logger.info(f"[Pipeline] Empty {inbound.mode} message from {context}, nothing to relay")
            messages_processed.labels(outcome="empty", mode=inbound.mode).inc()
            return PipelineResult.empty()

        degraded = []

        # 4. Detect sender language
        sender_language = await self._detect(text, context)
        if sender_language == UNKNOWN_LANGUAGE:
            degraded.append("detect")

        # 5. Resolve receiver preference
        receiver_language = await self._receiver_language(receiver_id, context)

        # 6-7. Translate unless the languages already match
        if sender_language.casefold() == receiver_language.casefold():
            translated = text
            logger.debug(f"[Pipeline] {context}: both sides speak {receiver_language}, no translation")
        else:
            translated = await self._translate(text, sender_language, receiver_language, context)
            if translated is None:
                degraded.append("translate")
                translated = text

        timestamp = datetime.now(UTC)

        # 8. Persist
        message_id = await self._persist(
            Message(
                sender_id=sender_id,
                receiver_id=receiver_id,
                mode=inbound.mode,
                original_text=text,
                translated_text=translated,
                sender_language=sender_language,
                receiver_language=receiver_language,
                created_at=timestamp,
            ),
            context,
        )

        # 9. Sender's language becomes whatever they just wrote in
        preference_updated = await self._update_sender_preference(sender_id, sender_language)

        # 10. Push to the receiver's live connections
        event = NewMessageEvent(
            message_id=message_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            mode=inbound.mode,
            original=text,
            translated=translated,
            sender_language=sender_language,
            receiver_language=receiver_language,
            timestamp=timestamp,
        ).model_dump(mode="json")
        delivered = await self._fan_out(receiver_id, event, context)

        for step in degraded:
            degraded_steps.labels(step=step).inc()
        messages_processed.labels(outcome="success", mode=inbound.mode).inc()

        logger.info(
            f"✅ Message processed ({inbound.mode}) from {context} "
            f"[{sender_language} -> {receiver_language}, delivered={delivered}]"
        )

        # 11. Acknowledge
        return PipelineResult(
            success=True,
            sender_language=sender_language,
            receiver_language=receiver_language,
            original=text,
            translated=translated,
            message_id=message_id,
            timestamp=timestamp,
            persisted=message_id is not None,
            preference_updated=preference_updated,
            delivered=delivered,
            degraded=degraded,
        )

    # === Steps ===

    async def _transcribe(self, inbound: InboundMessage, context: str) -> str:
        try:
            with _timed("transcribe"):
                text = await asyncio.wait_for(
                    self._transcription.transcribe(
                        inbound.audio,
                        filename=inbound.audio_filename,
                        content_type=inbound.audio_content_type,
                    ),
                    timeout=self._transcription_timeout,
                )
        except asyncio.TimeoutError as e:
            logger.error(f"[Pipeline] step=transcribe {context}: timed out after {self._transcription_timeout}s")
            messages_processed.labels(outcome="transcription_error", mode=MODE_VOICE).inc()
            raise TranscriptionError("Transcription timed out") from e
        except TranscriptionError as e:
            logger.error(f"[Pipeline] step=transcribe {context}: {e}")
            messages_processed.labels(outcome="transcription_error", mode=MODE_VOICE).inc()
            raise
        except Exception as e:
            logger.error(f"[Pipeline] step=transcribe {context}: {e}")
            messages_processed.labels(outcome="transcription_error", mode=MODE_VOICE).inc()
            raise TranscriptionError(f"Transcription failed: {e}") from e

        logger.info(f"[Pipeline] Transcription for {context}: '{(text or '')[:60]}'")
        return text or ""

    async def _detect(self, text: str, context: str) -> str:
        try:
            with _timed("detect"):
                language = await asyncio.wait_for(
                    self._language.detect_language(text),
                    timeout=self._detect_timeout,
                )
        except asyncio.TimeoutError:
            logger.warning(
                f"[Pipeline] step=detect {context}: timed out after {self._detect_timeout}s, "
                f"using {UNKNOWN_LANGUAGE}"
            )
            return UNKNOWN_LANGUAGE
        except Exception as e:
            logger.warning(f"[Pipeline] step=detect {context}: {e}, using {UNKNOWN_LANGUAGE}")
            return UNKNOWN_LANGUAGE

        language = (language or "").strip()
        return language or UNKNOWN_LANGUAGE

    async def _receiver_language(self, receiver_id: str, context: str) -> str:
        try:
            return await self._preferences.get(receiver_id)
        except StorageError as e:
            fallback = self._preferences.default_language
            logger.error(f"[Pipeline] step=resolve_receiver {context}: {e}, using {fallback}")
            degraded_steps.labels(step="resolve_receiver").inc()
            return fallback

    async def _translate(
        self, text: str, sender_language: str, receiver_language: str, context: str
    ) -> Optional[str]:
        """Returns None when translation failed and the original should be used."""
        try:
            with _timed("translate"):
                translated = await asyncio.wait_for(
                    self._language.translate(text, sender_language, receiver_language),
                    timeout=self._translate_timeout,
                )
        except asyncio.TimeoutError:
            logger.warning(
                f"[Pipeline] step=translate {context}: timed out after {self._translate_timeout}s, "
                f"relaying original text"
            )
            return None
        except Exception as e:
            logger.warning(f"[Pipeline] step=translate {context}: {e}, relaying original text")
            return None

        translated = (translated or "").strip()
        if not translated:
            logger.warning(f"[Pipeline] step=translate {context}: empty translation, relaying original text")
            return None
        return translated

    async def _persist(self, message: Message, context: str) -> Optional[int]:
        try:
            with _timed("persist"):
                saved = await self._log.append(message)
            return saved.id
        except StorageError as e:
            logger.error(f"[Pipeline] step=persist {context}: {e}")
            degraded_steps.labels(step="persist").inc()
            return None

    async def _update_sender_preference(self, sender_id: str, language: str) -> bool:
        try:
            await self._preferences.set(sender_id, language)
            return True
        except StorageError as e:
            logger.error(f"[Pipeline] step=update_sender_preference {sender_id}: {e}")
            degraded_steps.labels(step="update_sender_preference").inc()
            return False

    async def _fan_out(self, receiver_id: str, event: Dict[str, Any], context: str) -> int:
        try:
            with _timed("fan_out"):
                delivered = await self._registry.fan_out(receiver_id, event)
        except Exception as e:
            logger.error(f"[Pipeline] step=fan_out {context}: {e}")
            return 0

        if delivered == 0:
            logger.debug(f"[Pipeline] {receiver_id} is offline, message kept in log only")
        return delivered
