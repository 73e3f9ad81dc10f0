"""Offline phrase dictionaries: built-in tables and on-disk dictionary files."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# 内置常用短语词典 (source -> target -> phrase -> translation)
BUILT_IN_DICTIONARIES: Dict[str, Dict[str, Dict[str, str]]] = {
    "en": {
        "es": {
            "hello": "hola", "goodbye": "adiós", "yes": "sí", "no": "no",
            "please": "por favor", "thank you": "gracias", "thanks": "gracias",
            "welcome": "bienvenido", "sorry": "lo siento", "excuse me": "disculpe",
            "good morning": "buenos días", "good afternoon": "buenas tardes",
            "good evening": "buenas noches", "good night": "buenas noches",
            "how are you": "cómo estás", "i am fine": "estoy bien",
            "what is your name": "cómo te llamas", "my name is": "me llamo",
            "nice to meet you": "mucho gusto", "see you later": "hasta luego",
            "i love you": "te quiero", "help": "ayuda", "stop": "pare",
            "go": "ir", "come": "ven", "eat": "comer", "drink": "beber",
            "water": "agua", "food": "comida", "money": "dinero",
            "today": "hoy", "tomorrow": "mañana", "yesterday": "ayer",
            "now": "ahora", "later": "después", "never": "nunca", "always": "siempre",
            "here": "aquí", "there": "allí", "where": "dónde", "when": "cuándo",
            "why": "por qué", "how": "cómo", "what": "qué", "who": "quién",
            "this": "esto", "that": "eso", "these": "estos", "those": "esos",
            "i": "yo", "you": "tú", "he": "él", "she": "ella", "we": "nosotros",
            "they": "ellos", "it": "eso", "the": "el", "a": "un", "an": "un",
            "and": "y", "or": "o", "but": "pero", "if": "si", "then": "entonces",
            "because": "porque", "so": "así que", "very": "muy", "too": "también",
            "more": "más", "less": "menos", "many": "muchos", "few": "pocos",
            "all": "todos", "some": "algunos", "any": "cualquier", "none": "ninguno",
            "good": "bueno", "bad": "malo", "big": "grande", "small": "pequeño",
            "new": "nuevo", "old": "viejo", "young": "joven", "hot": "caliente",
            "cold": "frío", "happy": "feliz", "sad": "triste", "fast": "rápido",
            "slow": "lento", "easy": "fácil", "hard": "difícil", "open": "abrir",
            "close": "cerrar", "start": "empezar", "end": "terminar", "buy": "comprar",
            "sell": "vender", "give": "dar", "take": "tomar", "make": "hacer",
            "do": "hacer", "say": "decir", "speak": "hablar", "listen": "escuchar",
            "read": "leer", "write": "escribir", "learn": "aprender", "teach": "enseñar",
            "work": "trabajar", "play": "jugar", "run": "correr", "walk": "caminar",
            "sleep": "dormir", "live": "vivir", "love": "amar", "want": "querer",
            "need": "necesitar", "know": "saber", "think": "pensar", "find": "encontrar",
            "save": "guardar", "cancel": "cancelar", "delete": "eliminar", "edit": "editar",
            "search": "buscar", "settings": "ajustes", "home": "inicio", "world": "mundo",
        },
        "fr": {
            "hello": "bonjour", "goodbye": "au revoir", "yes": "oui", "no": "non",
            "please": "s'il vous plaît", "thank you": "merci", "thanks": "merci",
            "welcome": "bienvenue", "sorry": "désolé", "excuse me": "excusez-moi",
            "good morning": "bonjour", "good afternoon": "bon après-midi",
            "good evening": "bonsoir", "good night": "bonne nuit",
            "how are you": "comment allez-vous", "i am fine": "je vais bien",
            "my name is": "je m'appelle", "nice to meet you": "enchanté",
            "see you later": "à plus tard", "i love you": "je t'aime",
            "help": "aide", "stop": "arrêtez", "water": "eau", "food": "nourriture",
            "today": "aujourd'hui", "tomorrow": "demain", "yesterday": "hier",
            "world": "monde", "save": "enregistrer", "cancel": "annuler",
        },
        "de": {
            "hello": "hallo", "goodbye": "auf wiedersehen", "yes": "ja", "no": "nein",
            "please": "bitte", "thank you": "danke", "thanks": "danke",
            "welcome": "willkommen", "sorry": "entschuldigung", "excuse me": "entschuldigen sie",
            "good morning": "guten morgen", "good afternoon": "guten tag",
            "good evening": "guten abend", "good night": "gute nacht",
            "how are you": "wie geht es ihnen", "i am fine": "mir geht es gut",
            "my name is": "ich heiße", "nice to meet you": "freut mich",
            "see you later": "bis später", "i love you": "ich liebe dich",
            "help": "hilfe", "stop": "halt", "water": "wasser", "food": "essen",
            "world": "welt", "save": "speichern", "cancel": "abbrechen",
        },
        "ja": {
            "hello": "こんにちは", "goodbye": "さようなら", "yes": "はい", "no": "いいえ",
            "please": "お願いします", "thank you": "ありがとう", "thanks": "ありがとう",
            "welcome": "ようこそ", "sorry": "ごめんなさい", "excuse me": "すみません",
            "good morning": "おはよう", "good evening": "こんばんは",
            "good night": "おやすみなさい", "i love you": "愛しています",
            "help": "助けて", "water": "水",
        },
        "zh": {
            "hello": "你好", "goodbye": "再见", "yes": "是", "no": "不",
            "please": "请", "thank you": "谢谢", "thanks": "谢谢",
            "welcome": "欢迎", "sorry": "对不起", "excuse me": "打扰一下",
            "good morning": "早上好", "good afternoon": "下午好",
            "good evening": "晚上好", "good night": "晚安",
            "i love you": "我爱你", "help": "帮助", "water": "水",
        },
        "ko": {
            "hello": "안녕하세요", "goodbye": "안녕히 가세요", "yes": "네", "no": "아니요",
            "please": "제발", "thank you": "감사합니다", "thanks": "고마워요",
            "welcome": "환영합니다", "sorry": "미안합니다", "i love you": "사랑해요",
        },
        "ar": {
            "hello": "مرحبا", "goodbye": "مع السلامة", "yes": "نعم", "no": "لا",
            "please": "من فضلك", "thank you": "شكرا", "welcome": "أهلا وسهلا",
            "sorry": "آسف", "i love you": "أحبك", "help": "مساعدة",
        },
        "ru": {
            "hello": "привет", "goodbye": "до свидания", "yes": "да", "no": "нет",
            "please": "пожалуйста", "thank you": "спасибо", "welcome": "добро пожаловать",
            "sorry": "извините", "i love you": "я тебя люблю", "help": "помощь",
        },
        "pt": {
            "hello": "olá", "goodbye": "adeus", "yes": "sim", "no": "não",
            "please": "por favor", "thank you": "obrigado", "welcome": "bem-vindo",
            "sorry": "desculpe", "i love you": "eu te amo", "help": "ajuda",
        },
        "it": {
            "hello": "ciao", "goodbye": "arrivederci", "yes": "sì", "no": "no",
            "please": "per favore", "thank you": "grazie", "welcome": "benvenuto",
            "sorry": "mi dispiace", "i love you": "ti amo", "help": "aiuto",
        },
    },
}

_WORD_SPLIT_RE = re.compile(r"(\s+)")
_AFFIXED_WORD_RE = re.compile(r"^(\W*)(.+?)(\W*)$")


def match_case(original: str, translated: str) -> str:
    """Carry the casing pattern of ``original`` over to ``translated``."""
    if not original:
        return translated
    if original == original.upper() and original != original.lower():
        return translated.upper()
    if original == original.lower():
        return translated.lower()
    if original[0].isupper():
        return translated[:1].upper() + translated[1:].lower()
    return translated


class PhraseDictionary:
    """短语词典，不区分大小写查找。"""

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries: Dict[str, str] = {}
        for phrase, translation in (entries or {}).items():
            self.add(phrase, translation)

    def add(self, phrase: str, translation: str) -> None:
        phrase = phrase.strip().lower()
        translation = translation.strip()
        if phrase and translation:
            self._entries[phrase] = translation

    def get(self, phrase: str) -> str | None:
        return self._entries.get(phrase.strip().lower())

    def translate(self, text: str) -> str:
        """
        Exact phrase match first, then word-by-word substitution.

        Returns ``text`` unchanged when nothing matched.
        """
        exact = self.get(text)
        if exact is not None:
            return match_case(text.strip(), exact)

        parts = _WORD_SPLIT_RE.split(text)
        translated_any = False

        for i, part in enumerate(parts):
            if not part or part.isspace():
                continue
            match = _AFFIXED_WORD_RE.match(part)
            if not match:
                continue
            prefix, core, suffix = match.groups()
            hit = self._entries.get(core.lower())
            if hit is not None:
                parts[i] = f"{prefix}{match_case(core, hit)}{suffix}"
                translated_any = True

        return "".join(parts) if translated_any else text

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return len(self._entries) > 0


def get_builtin_dictionary(source_lang: str, target_lang: str) -> PhraseDictionary | None:
    entries = BUILT_IN_DICTIONARIES.get(source_lang, {}).get(target_lang)
    if entries is None:
        return None
    return PhraseDictionary(entries)


def load_dictionary(path: Path) -> PhraseDictionary:
    """
    Load a dictionary file.

    Supported formats:
        *.json   {"phrase": "translation", ...}
        other    Phrase = Translation / Phrase -> Translation, # comments

    Args:
        path: Path to dictionary file

    Returns:
        PhraseDictionary instance (empty if missing or unreadable)
    """
    dictionary = PhraseDictionary()

    if not path.exists():
        logger.debug(f"Dictionary file not found: {path}")
        return dictionary

    try:
        content = path.read_text(encoding="utf-8")

        if path.suffix.lower() == ".json":
            data = json.loads(content)
            if not isinstance(data, dict):
                logger.warning(f"Dictionary {path} is not a JSON object, ignoring")
                return dictionary
            for phrase, translation in data.items():
                if isinstance(translation, str):
                    dictionary.add(str(phrase), translation)
        else:
            for line_num, line in enumerate(content.splitlines(), 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                match = re.match(r"^(.+?)\s*(?:=|->)\s*(.+)$", line)
                if match:
                    dictionary.add(*match.groups())
                else:
                    logger.debug(f"Skipping invalid line {line_num}: {line}")

    except (OSError, ValueError) as e:
        logger.error(f"Error loading dictionary {path}: {e}")
        return PhraseDictionary()

    logger.info(f"Loaded {len(dictionary)} entries from {path}")
    return dictionary


def find_local_dictionary(dictionaries_dir: Path, source_lang: str, target_lang: str) -> Path | None:
    """Locate ``{src}-{tgt}.json`` (or ``.txt``) under ``dictionaries_dir``."""
    for suffix in (".json", ".txt"):
        candidate = dictionaries_dir / f"{source_lang}-{target_lang}{suffix}"
        if candidate.exists():
            return candidate
    return None
