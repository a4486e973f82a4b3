"""Profanity detection and redaction.

Each banned token is matched case-insensitively as a whole word. Obfuscation
characters (``*``, ``!``, ``@``, ``1``) in the list are matched literally, so
``f**k`` catches exactly that spelling and never an ordinary word such as "folk".
"""
import re
from dataclasses import dataclass
from typing import List, Pattern

BANNED_WORDS = [
    "nigger", "n1gger", "ni99er", "n!gger", "n1gg3r", "nigg3r",
    "nigga", "n1gga", "ni99a", "n!gga", "n1gg4", "nigg4",
    "bitch", "b1tch", "b!tch", "b1tc4", "b!tc4",
    "fuck", "f*ck", "f**k", "f***", "fuk", "fu*k", "fvck", "f@ck",
]


def _compile(word: str) -> Pattern[str]:
    # \b does not work next to punctuation such as '*', so use explicit lookarounds
    return re.compile(rf"(?<!\w){re.escape(word)}(?!\w)", re.IGNORECASE)


BANNED_WORD_PATTERNS: List[Pattern[str]] = [_compile(word) for word in BANNED_WORDS]


@dataclass(frozen=True)
class ModerationResult:
    flagged: bool
    cleaned: str


def contains_banned_words(text: str) -> bool:
    return any(pattern.search(text) for pattern in BANNED_WORD_PATTERNS)


def filter_message(text: str) -> str:
    """Replace every banned span with asterisks of the same length."""
    for pattern in BANNED_WORD_PATTERNS:
        text = pattern.sub(lambda match: "*" * len(match.group(0)), text)
    return text


def moderate(text: str) -> ModerationResult:
    if not contains_banned_words(text):
        return ModerationResult(flagged=False, cleaned=text)
    return ModerationResult(flagged=True, cleaned=filter_message(text))


def is_username_safe(username: str) -> bool:
    return not contains_banned_words(username)
