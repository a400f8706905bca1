from .repositories import PreferenceStore, MessageLog

__all__ = ["PreferenceStore", "MessageLog"]
