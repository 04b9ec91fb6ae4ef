"""Supported recognition languages as BCP-47 tags."""

from typing import NamedTuple


class Language(NamedTuple):
    code: str
    name: str
    native_name: str


DEFAULT_LANGUAGE_CODE = "en-US"

SUPPORTED_LANGUAGES: tuple[Language, ...] = (
    Language("en-US", "English (United States)", "English"),
    Language("en-GB", "English (United Kingdom)", "English"),
    Language("es-ES", "Spanish (Spain)", "Español"),
    Language("es-MX", "Spanish (Mexico)", "Español"),
    Language("fr-FR", "French (France)", "Français"),
    Language("de-DE", "German (Germany)", "Deutsch"),
    Language("it-IT", "Italian (Italy)", "Italiano"),
    Language("pt-BR", "Portuguese (Brazil)", "Português"),
    Language("pt-PT", "Portuguese (Portugal)", "Português"),
    Language("ja-JP", "Japanese (Japan)", "日本語"),
    Language("zh-CN", "Chinese (Simplified)", "中文"),
    Language("zh-TW", "Chinese (Traditional)", "中文"),
    Language("ko-KR", "Korean (South Korea)", "한국어"),
    Language("ru-RU", "Russian (Russia)", "Русский"),
    Language("ar-SA", "Arabic (Saudi Arabia)", "العربية"),
    Language("hi-IN", "Hindi (India)", "हिन्दी"),
    Language("nl-NL", "Dutch (Netherlands)", "Nederlands"),
    Language("pl-PL", "Polish (Poland)", "Polski"),
    Language("tr-TR", "Turkish (Turkey)", "Türkçe"),
    Language("sv-SE", "Swedish (Sweden)", "Svenska"),
)

_BY_CODE = {lang.code: lang for lang in SUPPORTED_LANGUAGES}


def is_valid_language_code(code: str | None) -> bool:
    """Return True if *code* is an exact, case-sensitive supported tag."""
    return code in _BY_CODE


def get_language_name(code: str) -> str:
    """Return the English display name for *code*, or ``"Unknown"``."""
    lang = _BY_CODE.get(code)
    return lang.name if lang else "Unknown"
