from types import SimpleNamespace

import pytest

from chat_relay.services.exceptions import TranscriptionError
from chat_relay.services.transcription.audio import reencode_to_pcm16
from chat_relay.services.transcription.speech import GCPTranscriptionService

pytestmark = pytest.mark.asyncio


def _result(*transcripts):
    return SimpleNamespace(alternatives=[SimpleNamespace(transcript=t) for t in transcripts])


class FakeSpeechClient:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.requests = []

    def recognize(self, config, audio):
        self.requests.append((config, audio))
        if self.error:
            raise self.error
        return SimpleNamespace(results=self.results)


def make_service(client):
    svc = GCPTranscriptionService(language_code="en-US", alternative_language_codes=["fr-FR"], reencode=False)
    svc._client = client
    return svc


async def test_transcripts_are_joined():
    client = FakeSpeechClient(results=[_result(" Bonjour "), _result("tout le monde"), SimpleNamespace(alternatives=[])])
    svc = make_service(client)

    assert await svc.transcribe(b"\x00\x01" * 100, filename="note.wav") == "Bonjour tout le monde"

    config, audio = client.requests[0]
    assert config.language_code == "en-US"
    assert list(config.alternative_language_codes) == ["fr-FR"]
    assert audio.content == b"\x00\x01" * 100


async def test_no_speech_returns_empty_string():
    svc = make_service(FakeSpeechClient(results=[]))

    assert await svc.transcribe(b"\x00\x00") == ""


async def test_client_failure_is_transcription_error():
    svc = make_service(FakeSpeechClient(error=RuntimeError("permission denied")))

    with pytest.raises(TranscriptionError) as exc_info:
        await svc.transcribe(b"\x00\x00")

    assert exc_info.value.service == "transcription"
    assert "permission denied" in str(exc_info.value)


async def test_empty_audio_is_transcription_error():
    svc = make_service(FakeSpeechClient())

    with pytest.raises(TranscriptionError):
        await svc.transcribe(b"")


async def test_reencode_with_missing_ffmpeg():
    with pytest.raises(TranscriptionError, match="ffmpeg not found"):
        await reencode_to_pcm16(b"RIFF", ffmpeg_binary="/nonexistent/ffmpeg-binary")


async def test_reencode_failure_stops_transcription(monkeypatch):
    client = FakeSpeechClient(results=[_result("never")])
    svc = make_service(client)
    svc.reencode = True
    monkeypatch.setattr(
        "chat_relay.services.transcription.speech.settings.FFMPEG_BINARY",
        "/nonexistent/ffmpeg-binary",
    )

    with pytest.raises(TranscriptionError):
        await svc.transcribe(b"RIFF")

    assert client.requests == []
