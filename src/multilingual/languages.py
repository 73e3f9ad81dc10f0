"""Supported languages and per-backend language code mapping."""

from __future__ import annotations

from typing import Dict, NamedTuple


class LanguageInfo(NamedTuple):
    name: str
    native_name: str
    rtl: bool = False


SUPPORTED_LANGUAGES: Dict[str, LanguageInfo] = {
    "en": LanguageInfo("English", "English"),
    "es": LanguageInfo("Spanish", "Español"),
    "fr": LanguageInfo("French", "Français"),
    "de": LanguageInfo("German", "Deutsch"),
    "it": LanguageInfo("Italian", "Italiano"),
    "pt": LanguageInfo("Portuguese", "Português"),
    "pt-BR": LanguageInfo("Portuguese (Brazil)", "Português (Brasil)"),
    "ru": LanguageInfo("Russian", "Русский"),
    "zh": LanguageInfo("Chinese (Simplified)", "中文(简体)"),
    "zh-TW": LanguageInfo("Chinese (Traditional)", "中文(繁體)"),
    "ja": LanguageInfo("Japanese", "日本語"),
    "ko": LanguageInfo("Korean", "한국어"),
    "ar": LanguageInfo("Arabic", "العربية", rtl=True),
    "hi": LanguageInfo("Hindi", "हिन्दी"),
    "nl": LanguageInfo("Dutch", "Nederlands"),
    "pl": LanguageInfo("Polish", "Polski"),
    "sv": LanguageInfo("Swedish", "Svenska"),
    "da": LanguageInfo("Danish", "Dansk"),
    "fi": LanguageInfo("Finnish", "Suomi"),
    "no": LanguageInfo("Norwegian", "Norsk"),
    "tr": LanguageInfo("Turkish", "Türkçe"),
    "cs": LanguageInfo("Czech", "Čeština"),
    "el": LanguageInfo("Greek", "Ελληνικά"),
    "he": LanguageInfo("Hebrew", "עברית", rtl=True),
    "hu": LanguageInfo("Hungarian", "Magyar"),
    "id": LanguageInfo("Indonesian", "Bahasa Indonesia"),
    "ms": LanguageInfo("Malay", "Bahasa Melayu"),
    "th": LanguageInfo("Thai", "ไทย"),
    "vi": LanguageInfo("Vietnamese", "Tiếng Việt"),
    "uk": LanguageInfo("Ukrainian", "Українська"),
    "bg": LanguageInfo("Bulgarian", "Български"),
    "ro": LanguageInfo("Romanian", "Română"),
    "sk": LanguageInfo("Slovak", "Slovenčina"),
    "sl": LanguageInfo("Slovenian", "Slovenščina"),
    "et": LanguageInfo("Estonian", "Eesti"),
    "lv": LanguageInfo("Latvian", "Latviešu"),
    "lt": LanguageInfo("Lithuanian", "Lietuvių"),
}

_DEEPL_CODES = {"zh": "ZH", "zh-TW": "ZH", "pt-BR": "PT-BR", "pt": "PT-PT", "en": "EN"}
_GOOGLE_CODES = {"zh": "zh-CN", "zh-TW": "zh-TW"}
_LINGVA_CODES = {"zh": "zh", "zh-TW": "zh_Hant", "pt-BR": "pt"}
_LIBRETRANSLATE_CODES = {"zh": "zh", "zh-TW": "zh", "pt-BR": "pt"}


def is_supported(code: str) -> bool:
    return code in SUPPORTED_LANGUAGES


def language_name(code: str) -> str:
    info = SUPPORTED_LANGUAGES.get(code)
    return info.name if info else code


def to_deepl(code: str) -> str:
    return _DEEPL_CODES.get(code, code).upper()


def to_google(code: str) -> str:
    return _GOOGLE_CODES.get(code, code)


def to_lingva(code: str) -> str:
    return _LINGVA_CODES.get(code, code)


def to_libretranslate(code: str) -> str:
    return _LIBRETRANSLATE_CODES.get(code, code)
