from __future__ import annotations
import re
from typing import Iterable, List, Optional

YES_WORDS = {"yes", "y", "ok", "okay", "confirm", "sure", "haan", "han", "ha", "ji", "हाँ", "हां", "confirm_yes"}
NO_WORDS = {"no", "n", "nahi", "nahin", "नहीं", "confirm_no"}

NUMBER_RE = re.compile(r"\d+")


def normalize(t: str | None) -> str:
    return (t or "").strip().lower()


def _words(t: str) -> List[str]:
    return re.findall(r"[\wऀ-ॿ]+", normalize(t))


def is_yes(t: str) -> bool:
    n = normalize(t)
    return n in YES_WORDS or any(w in YES_WORDS for w in _words(n))


def is_no(t: str) -> bool:
    n = normalize(t)
    return n in NO_WORDS or any(w in NO_WORDS for w in _words(n))


def first_number(t: str) -> Optional[int]:
    m = NUMBER_RE.search(t or "")
    return int(m.group(0)) if m else None


def contains_keyword(text: str, keyword: str) -> bool:
    """
    Whole-word match for latin keywords ("sir" must not hit "desire"),
    plain substring for Devanagari where word boundaries are unreliable.
    """
    text = normalize(text)
    keyword = normalize(keyword)
    if not keyword:
        return False
    if keyword.isascii():
        return re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", text) is not None
    return keyword in text


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(contains_keyword(text, k) for k in keywords)


def numbered(items: list[str]) -> str:
    return "\n".join(f"{i}. {it}" for i, it in enumerate(items, start=1))


MENU_HINT = 'Type "menu" for the main menu.'
