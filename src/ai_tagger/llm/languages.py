"""Language codes accepted for generated tags and their display names."""

from typing import Optional

DEFAULT_LANGUAGE = "default"

LANGUAGE_NAMES: dict[str, str] = {
    "ar": "Arabic",
    "cs": "Czech",
    "da": "Danish",
    "de": "German",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "he": "Hebrew",
    "id": "Indonesian",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "nl": "Dutch",
    "no": "Norwegian",
    "pl": "Polish",
    "pt": "Portuguese",
    "pt-BR": "Brazilian Portuguese",
    "ro": "Romanian",
    "ru": "Russian",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "zh": "Chinese (Simplified)",
    "zh-TW": "Chinese (Traditional)",
}


def is_default_language(language: Optional[str]) -> bool:
    """True when no language directive should be emitted."""
    return language is None or not language.strip() or language.strip() == DEFAULT_LANGUAGE


def language_display_name(language: str) -> str:
    """Display name for a code. Unknown codes are returned verbatim."""
    code = language.strip()
    return LANGUAGE_NAMES.get(code, code)
