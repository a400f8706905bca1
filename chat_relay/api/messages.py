"""
Message API - Peer message submission and history

Implements:
- Text/voice peer message submission (request/response ingress)
- Route liveness probe
- Message history for bootstrap and debugging
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from chat_relay.api.deps import get_message_pipeline, get_message_log
from chat_relay.config.constants import (
    ALLOWED_AUDIO_CONTENT_TYPES,
    HISTORY_DEFAULT_LIMIT,
    HISTORY_MAX_LIMIT,
    MAX_AUDIO_UPLOAD_BYTES,
    MAX_TEXT_LENGTH,
    MODE_TEXT,
    MODE_VOICE,
)
from chat_relay.schemas.messages import ErrorResponse, HistoryResponse, MessageOut, PeerMessageResponse
from chat_relay.services.core.repositories import MessageLog
from chat_relay.services.exceptions import ValidationError
from chat_relay.services.pipeline.processor import MessagePipeline, InboundMessage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/peer-message")
async def peer_message_probe():
    """Health check for the peer-message route."""
    return {"ok": True, "msg": "peer-message route active"}


@router.post(
    "/peer-message",
    response_model=PeerMessageResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def submit_peer_message(
    sender_id: Optional[str] = Form(None),
    receiver_id: Optional[str] = Form(None),
    mode: str = Form(MODE_TEXT),
    text: Optional[str] = Form(None),
    audio: Optional[UploadFile] = File(None),
    pipeline: MessagePipeline = Depends(get_message_pipeline),
):
    """
    Submit a text or voice message from one user to another.

    The caller receives the translated payload synchronously; delivery to the
    receiver's live connections happens as part of the same run but is
    best-effort.
    """
    audio_data = None
    audio_filename = None
    audio_content_type = None

    if text and len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(f"Message text exceeds {MAX_TEXT_LENGTH} characters")

    if mode == MODE_VOICE and audio is not None:
        audio_content_type = audio.content_type
        if audio_content_type and audio_content_type not in ALLOWED_AUDIO_CONTENT_TYPES:
            logger.warning(f"⚠️ Rejected unsupported file: {audio_content_type}")
            raise ValidationError(f"Unsupported file format: {audio_content_type}")

        audio_data = await audio.read()
        audio_filename = audio.filename
        if len(audio_data) > MAX_AUDIO_UPLOAD_BYTES:
            raise ValidationError("Audio file too large")
        logger.info(f"🎤 Voice received from {sender_id}: {audio_filename} ({len(audio_data)} bytes)")

    result = await pipeline.process(InboundMessage(
        sender_id=sender_id,
        receiver_id=receiver_id,
        mode=mode,
        text=text,
        audio=audio_data,
        audio_filename=audio_filename,
        audio_content_type=audio_content_type,
    ))
    return result.to_response()


@router.get("/messages/history", response_model=HistoryResponse, responses={400: {"model": ErrorResponse}})
async def get_history(
    limit: int = Query(HISTORY_DEFAULT_LIMIT),
    user_a: Optional[str] = Query(None),
    user_b: Optional[str] = Query(None),
    message_log: MessageLog = Depends(get_message_log),
):
    """
    Get the most recent messages, newest last.

    With both `user_a` and `user_b` the history is restricted to that conversation.
    """
    if not 1 <= limit <= HISTORY_MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {HISTORY_MAX_LIMIT}")
    if bool(user_a) != bool(user_b):
        raise ValidationError("user_a and user_b must be given together")

    if user_a and user_b:
        messages = await message_log.conversation(user_a, user_b, limit)
    else:
        messages = await message_log.recent(limit)

    return HistoryResponse(
        messages=[MessageOut(**m.to_dict()) for m in messages],
        total=len(messages),
    )
