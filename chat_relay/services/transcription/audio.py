"""
Audio re-encoding helpers.

Browsers upload webm/ogg/m4a/mp3; Speech-to-Text is fed 16 kHz mono
LINEAR16. ffmpeg does the conversion through stdin/stdout pipes so no
temporary files are left behind.
"""

import asyncio
import logging

from chat_relay.config.constants import REENCODE_TIMEOUT_SEC, TRANSCRIPTION_SAMPLE_RATE_HZ
from chat_relay.services.exceptions import TranscriptionError

logger = logging.getLogger(__name__)


async def reencode_to_pcm16(
    audio_data: bytes,
    ffmpeg_binary: str = "ffmpeg",
    sample_rate: int = TRANSCRIPTION_SAMPLE_RATE_HZ,
    timeout: float = REENCODE_TIMEOUT_SEC,
) -> bytes:
    """
    Convert any ffmpeg-readable audio container to raw PCM16 mono.

    Raises:
        TranscriptionError: ffmpeg missing, failed, or timed out
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            ffmpeg_binary, "-hide_banner", "-loglevel", "error",
            "-i", "pipe:0",
            "-ar", str(sample_rate), "-ac", "1",
            "-f", "s16le", "-acodec", "pcm_s16le",
            "pipe:1",
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise TranscriptionError(f"ffmpeg not found ({ffmpeg_binary})") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(audio_data), timeout=timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise TranscriptionError(f"ffmpeg conversion timed out after {timeout}s") from e

    if proc.returncode != 0:
        message = stderr.decode(errors="replace").strip()[:200]
        logger.error(f"❌ FFmpeg conversion failed: {message}")
        raise TranscriptionError("FFmpeg conversion failed")

    logger.debug(f"Re-encoded {len(audio_data)} bytes -> {len(stdout)} bytes PCM16")
    return stdout
