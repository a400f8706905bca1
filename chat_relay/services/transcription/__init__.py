from .speech import GCPTranscriptionService, get_transcription_service
from .audio import reencode_to_pcm16

__all__ = ["GCPTranscriptionService", "get_transcription_service", "reencode_to_pcm16"]
