"""Business Logic Services.

This package contains all service modules that implement the core
logic of the chat relay.

Service Categories:
- Connection: Live connection registry and fan-out
- Pipeline: Message orchestration (transcribe, detect, translate, persist, deliver)
- Session: WebSocket session handling
- Core: Preference store and message log repositories

External integrations:
- language: Gemini via Vertex AI (detection, translation)
- transcription: Google Cloud Speech-to-Text (with ffmpeg re-encoding)
"""
