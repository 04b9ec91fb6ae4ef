"""
Recognition module - Speech-to-text abstraction layer.

Factory function for creating recognizer instances based on provider configuration.
"""

from .base import BaseRecognizer

__all__ = ["BaseRecognizer", "create_recognizer"]


def create_recognizer(provider: str, **kwargs) -> BaseRecognizer:
    """
    Factory function to create a recognizer instance based on provider.

    Args:
        provider: Recognition provider name ("google", "local")
        **kwargs: Provider-specific configuration

    Returns:
        BaseRecognizer implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "google":
        from .google import GoogleSpeechRecognizer

        return GoogleSpeechRecognizer(**kwargs)
    elif provider == "local" or provider == "whisper":
        from .whisper import WhisperRecognizer

        return WhisperRecognizer(**kwargs)
    else:
        raise ValueError(f"Unknown recognition provider: {provider}")
