from .gemini import GeminiLanguageService, get_language_service, normalize_language_name

__all__ = ["GeminiLanguageService", "get_language_service", "normalize_language_name"]
