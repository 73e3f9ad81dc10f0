"""
Deterministic text transforms.

Every transform here is a pure ``str -> str`` function. Interpolation tokens
(``{name}``, ``{{name}}``, ``${name}``, ``%s`` ...) and HTML tags are masked
before the transform runs and spliced back afterwards, so they always come
out unchanged.
"""

from __future__ import annotations

import math
import re
from typing import Callable, Dict

from .text_utils import is_marker, preserve_placeholders, protect

PSEUDO_MAP: Dict[str, str] = {
    "a": "ȧ", "b": "ƀ", "c": "ƈ", "d": "ḓ", "e": "ḛ", "f": "ƒ",
    "g": "ɠ", "h": "ḥ", "i": "ī", "j": "ĵ", "k": "ķ", "l": "ŀ",
    "m": "ḿ", "n": "ƞ", "o": "ő", "p": "ƥ", "q": "ʠ", "r": "ř",
    "s": "ş", "t": "ŧ", "u": "ŭ", "v": "ṽ", "w": "ẇ", "x": "ẋ",
    "y": "ẏ", "z": "ẑ",
    "A": "Ȧ", "B": "Ɓ", "C": "Ƈ", "D": "Ḓ", "E": "Ḛ", "F": "Ƒ",
    "G": "Ɠ", "H": "Ḥ", "I": "Ī", "J": "Ĵ", "K": "Ķ", "L": "Ŀ",
    "M": "Ḿ", "N": "Ƞ", "O": "Ő", "P": "Ƥ", "Q": "Ǫ", "R": "Ř",
    "S": "Ş", "T": "Ŧ", "U": "Ŭ", "V": "Ṽ", "W": "Ẇ", "X": "Ẋ",
    "Y": "Ẏ", "Z": "Ẑ",
}

PSEUDO_EXPANSION = 0.3

LEET_MAP: Dict[str, str] = {
    "a": "4", "b": "8", "c": "(", "e": "3", "g": "9", "h": "#",
    "i": "1", "l": "1", "o": "0", "s": "5", "t": "7", "z": "2",
}

MIRROR_MAP: Dict[str, str] = {
    "a": "ɐ", "b": "q", "c": "ɔ", "d": "p", "e": "ǝ", "f": "ɟ", "g": "ƃ",
    "h": "ɥ", "i": "ᴉ", "j": "ɾ", "k": "ʞ", "l": "l", "m": "ɯ", "n": "u",
    "o": "o", "p": "d", "q": "b", "r": "ɹ", "s": "s", "t": "ʇ", "u": "n",
    "v": "ʌ", "w": "ʍ", "x": "x", "y": "ʎ", "z": "z",
    "A": "∀", "B": "q", "C": "Ɔ", "D": "p", "E": "Ǝ", "F": "Ⅎ", "G": "⅁",
    "H": "H", "I": "I", "J": "ſ", "K": "⋊", "L": "˥", "M": "W", "N": "N",
    "O": "O", "P": "Ԁ", "Q": "Ọ", "R": "ᴚ", "S": "S", "T": "⊥", "U": "∩",
    "V": "Λ", "W": "M", "X": "X", "Y": "⅄", "Z": "Z",
    "1": "Ɩ", "2": "ᄅ", "3": "Ɛ", "4": "ㄣ", "5": "ϛ", "6": "9", "7": "ㄥ",
    "8": "8", "9": "6", "0": "0", ".": "˙", ",": "'", "?": "¿", "!": "¡",
    "'": ",", '"': "„", "(": ")", ")": "(", "[": "]", "]": "[", "{": "}", "}": "{",
    "<": ">", ">": "<", "&": "⅋", "_": "‾",
}

NATO_ALPHABET: Dict[str, str] = {
    "a": "Alpha", "b": "Bravo", "c": "Charlie", "d": "Delta", "e": "Echo",
    "f": "Foxtrot", "g": "Golf", "h": "Hotel", "i": "India", "j": "Juliet",
    "k": "Kilo", "l": "Lima", "m": "Mike", "n": "November", "o": "Oscar",
    "p": "Papa", "q": "Quebec", "r": "Romeo", "s": "Sierra", "t": "Tango",
    "u": "Uniform", "v": "Victor", "w": "Whiskey", "x": "X-ray", "y": "Yankee",
    "z": "Zulu", "0": "Zero", "1": "One", "2": "Two", "3": "Three", "4": "Four",
    "5": "Five", "6": "Six", "7": "Seven", "8": "Eight", "9": "Nine",
}

MORSE_CODE: Dict[str, str] = {
    "a": ".-", "b": "-...", "c": "-.-.", "d": "-..", "e": ".", "f": "..-.",
    "g": "--.", "h": "....", "i": "..", "j": ".---", "k": "-.-", "l": ".-..",
    "m": "--", "n": "-.", "o": "---", "p": ".--.", "q": "--.-", "r": ".-.",
    "s": "...", "t": "-", "u": "..-", "v": "...-", "w": ".--", "x": "-..-",
    "y": "-.--", "z": "--..", "0": "-----", "1": ".----", "2": "..---",
    "3": "...--", "4": "....-", "5": ".....", "6": "-....", "7": "--...",
    "8": "---..", "9": "----.", " ": "/", ".": ".-.-.-", ",": "--..--",
    "?": "..--..", "!": "-.-.--", "'": ".----.", '"': ".-..-.", ":": "---...",
    ";": "-.-.-.", "=": "-...-", "+": ".-.-.", "-": "-....-", "/": "-..-.",
    "(": "-.--.", ")": "-.--.-", "&": ".-...", "@": ".--.-.",
}

EMOJI_MAP: Dict[str, str] = {
    "hello": "👋", "hi": "👋", "hey": "👋", "goodbye": "👋😢", "bye": "👋",
    "yes": "✅", "no": "❌", "maybe": "🤔", "ok": "👍", "okay": "👍",
    "good": "👍", "bad": "👎", "great": "🎉", "awesome": "🔥", "amazing": "🤩",
    "love": "❤️", "heart": "❤️", "like": "👍", "hate": "😡", "happy": "😊",
    "sad": "😢", "angry": "😠", "laugh": "😂", "cry": "😭", "smile": "😊",
    "think": "🤔", "idea": "💡", "question": "❓", "answer": "💬", "help": "🆘",
    "warning": "⚠️", "error": "❌", "success": "✅", "info": "ℹ️", "note": "📝",
    "save": "💾", "delete": "🗑️", "edit": "✏️", "add": "➕", "remove": "➖",
    "search": "🔍", "find": "🔍", "settings": "⚙️", "config": "⚙️", "user": "👤",
    "users": "👥", "home": "🏠", "house": "🏠", "work": "💼", "office": "🏢",
    "email": "📧", "mail": "📧", "phone": "📱", "call": "📞", "message": "💬",
    "chat": "💬", "send": "📤", "receive": "📥", "upload": "⬆️", "download": "⬇️",
    "file": "📄", "folder": "📁", "document": "📄", "image": "🖼️", "photo": "📷",
    "video": "🎬", "music": "🎵", "audio": "🔊", "play": "▶️", "pause": "⏸️",
    "stop": "⏹️", "next": "⏭️", "previous": "⏮️", "fast": "⚡", "slow": "🐢",
    "time": "⏰", "clock": "🕐", "calendar": "📅", "date": "📅", "today": "📆",
    "sun": "☀️", "moon": "🌙", "star": "⭐", "weather": "🌤️", "rain": "🌧️",
    "snow": "❄️", "hot": "🔥", "cold": "🥶", "fire": "🔥", "water": "💧",
    "food": "🍔", "eat": "🍽️", "drink": "🥤", "coffee": "☕", "pizza": "🍕",
    "money": "💰", "dollar": "💵", "card": "💳", "shop": "🛒", "cart": "🛒",
    "car": "🚗", "bus": "🚌", "train": "🚂", "plane": "✈️", "ship": "🚢",
    "world": "🌍", "globe": "🌍", "map": "🗺️", "location": "📍", "pin": "📌",
    "key": "🔑", "lock": "🔒", "unlock": "🔓", "secure": "🔐", "password": "🔑",
    "book": "📚", "read": "📖", "write": "✍️", "pen": "🖊️", "pencil": "✏️",
    "new": "🆕", "free": "🆓", "cool": "😎", "top": "🔝",
    "up": "⬆️", "down": "⬇️", "left": "⬅️", "right": "➡️", "back": "🔙",
    "loading": "⏳", "wait": "⏳", "done": "✅", "complete": "✅", "finish": "🏁",
    "start": "🚀", "launch": "🚀", "begin": "▶️", "end": "🔚", "exit": "🚪",
    "dog": "🐕", "cat": "🐱", "bird": "🐦", "fish": "🐟", "animal": "🐾",
    "tree": "🌳", "flower": "🌸", "plant": "🌱", "nature": "🌿", "garden": "🌻",
    "gift": "🎁", "party": "🎉", "celebrate": "🎊", "birthday": "🎂", "cake": "🍰",
    "game": "🎮", "sport": "⚽", "ball": "🏀", "run": "🏃", "walk": "🚶",
    "sleep": "😴", "dream": "💭", "night": "🌙", "morning": "🌅", "day": "☀️",
    "code": "💻", "program": "👨‍💻", "developer": "👨‍💻", "bug": "🐛", "fix": "🔧",
    "rocket": "🚀", "magic": "✨", "sparkle": "✨", "boom": "💥", "zap": "⚡",
}

VOWELS = "aeiou"

_WORD_SPLIT_RE = re.compile(r"(\s+)")
_PIG_WORD_RE = re.compile(r"^([a-zA-Z]+)([^a-zA-Z]*)$")
_AFFIXED_WORD_RE = re.compile(r"^([^a-zA-Z]*)([a-zA-Z]+)([^a-zA-Z]*)$")


def pseudo_localize(text: str) -> str:
    """
    Pseudo-localisation: accented look-alikes, ~30% padding, brackets.

    "Hello" -> "[Ḥḛŀŀő~]"
    """
    protected = protect(text)
    pseudo = "".join(PSEUDO_MAP.get(ch, ch) for ch in protected.masked)
    # 按原文长度计算扩展量
    pseudo += "~" * math.floor(len(text) * PSEUDO_EXPANSION)
    return f"[{protected.restore(pseudo)}]"


def _pig_latin_word(word: str) -> str:
    match = _PIG_WORD_RE.match(word)
    if not match:
        return word

    letters, punct = match.groups()
    upper_first = letters[0].isupper()
    lower = letters.lower()

    if lower[0] in VOWELS:
        result = lower + "way"
    else:
        first_vowel = next((i for i, ch in enumerate(lower) if ch in VOWELS), -1)
        if first_vowel == -1:
            result = lower + "ay"
        else:
            result = lower[first_vowel:] + lower[:first_vowel] + "ay"

    if upper_first:
        result = result[0].upper() + result[1:]
    return result + punct


@preserve_placeholders
def pig_latin(text: str) -> str:
    """"Hello World" -> "Ellohay Orldway"."""
    return "".join(
        part if part.isspace() else _pig_latin_word(part)
        for part in _WORD_SPLIT_RE.split(text)
    )


def _emoji_word(word: str) -> str:
    match = _AFFIXED_WORD_RE.match(word)
    if not match:
        return word
    prefix, core, suffix = match.groups()
    emoji = EMOJI_MAP.get(core.lower())
    return f"{prefix}{emoji}{suffix}" if emoji else word


@preserve_placeholders
def emoji(text: str) -> str:
    return "".join(
        part if part.isspace() else _emoji_word(part)
        for part in _WORD_SPLIT_RE.split(text)
    )


@preserve_placeholders
def leet(text: str) -> str:
    """"Hello" -> "#3110"."""
    return "".join(LEET_MAP.get(ch.lower(), ch) for ch in text)


@preserve_placeholders
def reverse(text: str) -> str:
    return text[::-1]


@preserve_placeholders
def mirror(text: str) -> str:
    """Upside-down text: substitute each glyph, then read right to left."""
    return "".join(MIRROR_MAP.get(ch, ch) for ch in text)[::-1]


@preserve_placeholders
def uppercase(text: str) -> str:
    return text.upper()


@preserve_placeholders
def lowercase(text: str) -> str:
    return text.lower()


@preserve_placeholders
def morse(text: str) -> str:
    """"Hello" -> ".... . .-.. .-.. ---"."""
    codes = [MORSE_CODE.get(ch, ch) for ch in text.lower()]
    return re.sub(r"  +", " / ", " ".join(codes))


@preserve_placeholders
def nato(text: str) -> str:
    """"Hi" -> "Hotel India"."""
    words = []
    for ch in text.lower():
        if ch == " ":
            words.append("/")
        elif is_marker(ch):
            words.append(ch)
        else:
            words.append(NATO_ALPHABET.get(ch, ch))
    return " ".join(words)


TRANSFORMS: Dict[str, Callable[[str], str]] = {
    "pseudo": pseudo_localize,
    "piglatin": pig_latin,
    "emoji": emoji,
    "leet": leet,
    "reverse": reverse,
    "mirror": mirror,
    "uppercase": uppercase,
    "lowercase": lowercase,
    "morse": morse,
    "nato": nato,
}
