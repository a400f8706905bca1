"""
Application-wide constants for configuration and tuning.

This file centralizes all magic numbers and configuration values
to enable easy tuning and maintain consistency across the backend.

Note: Environment-dependent settings (DB, API keys, ports) belong in settings.py.
This file is for operational parameters that rarely change between environments.
"""

# ==============================================================================
# LANGUAGES
# ==============================================================================

# Sentinel returned when the sender's language could not be determined
UNKNOWN_LANGUAGE: str = "Unknown"

# Maximum length of a stored language name
LANGUAGE_NAME_MAX_LENGTH: int = 64

# ==============================================================================
# MESSAGE MODES
# ==============================================================================

MODE_TEXT: str = "text"
MODE_VOICE: str = "voice"
MESSAGE_MODES: frozenset = frozenset({MODE_TEXT, MODE_VOICE})

# ==============================================================================
# EXTERNAL SERVICE TIMEOUTS
# ==============================================================================

# Language detection timeout (seconds) - fallback to "Unknown" if exceeded
LANGUAGE_DETECT_TIMEOUT_SEC: float = 15.0

# Translation timeout (seconds) - fallback to original text if exceeded
TRANSLATE_TIMEOUT_SEC: float = 20.0

# Transcription timeout (seconds) - pipeline fails if exceeded
TRANSCRIPTION_TIMEOUT_SEC: float = 60.0

# Audio re-encoding timeout (seconds)
REENCODE_TIMEOUT_SEC: float = 30.0

# ==============================================================================
# LANGUAGE MODEL (Gemini via Vertex AI)
# ==============================================================================

# Gemini model to use (flash = fast/cheap, pro = better quality)
GEMINI_MODEL_NAME: str = "gemini-1.5-flash"

# Gemini generation parameters
GEMINI_TEMPERATURE: float = 0.1  # Low creativity for accuracy
GEMINI_DETECT_MAX_OUTPUT_TOKENS: int = 16
GEMINI_TRANSLATE_MAX_OUTPUT_TOKENS: int = 1024
GEMINI_TOP_P: float = 0.8

# Worker threads for blocking SDK calls
LANGUAGE_EXECUTOR_WORKERS: int = 4
TRANSCRIPTION_EXECUTOR_WORKERS: int = 2

# ==============================================================================
# AUDIO
# ==============================================================================

# Sample rate sent to Speech-to-Text (Hz)
TRANSCRIPTION_SAMPLE_RATE_HZ: int = 16000

# Upload MIME types accepted by the REST ingress
ALLOWED_AUDIO_CONTENT_TYPES: frozenset = frozenset({
    "audio/mpeg",
    "audio/mp3",
    "audio/wav",
    "audio/x-wav",
    "audio/wave",
    "audio/ogg",
    "audio/m4a",
    "audio/x-m4a",
    "audio/mp4",
    "audio/webm",
    "application/octet-stream",
})

# Hard cap on uploaded audio size (bytes)
MAX_AUDIO_UPLOAD_BYTES: int = 25 * 1024 * 1024

# ==============================================================================
# HISTORY
# ==============================================================================

HISTORY_DEFAULT_LIMIT: int = 50
HISTORY_MAX_LIMIT: int = 500

# ==============================================================================
# WEBSOCKET
# ==============================================================================

# Close code used when a live connection is rejected (policy violation)
WS_POLICY_VIOLATION: int = 1008

# Maximum length of a text message body
MAX_TEXT_LENGTH: int = 5000

# ==============================================================================
# DATABASE
# ==============================================================================

DB_POOL_SIZE: int = 10
DB_POOL_MAX_OVERFLOW: int = 20
