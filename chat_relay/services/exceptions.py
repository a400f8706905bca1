"""
Relay Exceptions

Custom exceptions for the relay. Inside the message pipeline only
ValidationError and TranscriptionError reach a caller; the rest are logged
and absorbed. The REST layer maps all of them to HTTP status codes.
"""


class RelayError(Exception):
    """Base exception for relay errors"""
    pass


class ValidationError(RelayError):
    """Raised when a request is missing required identity fields or is malformed"""
    pass


class UpstreamServiceError(RelayError):
    """Raised when an external capability (transcription, detection, translation) fails"""

    def __init__(self, message: str, service: str = "upstream"):
        super().__init__(message)
        self.service = service


class TranscriptionError(UpstreamServiceError):
    """Raised when audio could not be converted to text"""

    def __init__(self, message: str):
        super().__init__(message, service="transcription")


class StorageError(RelayError):
    """Raised when the preference store or message log cannot be read or written"""
    pass
