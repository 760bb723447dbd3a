"""
Phonetic helpers
Double Metaphone codes for French drug names, with explicit diacritic folding
"""

import re
from typing import Dict, List, Optional

from metaphone import doublemetaphone


DIACRITICS_MAP: Dict[str, str] = {
    "à": "a",
    "â": "a",
    "ä": "a",
    "á": "a",
    "ã": "a",
    "å": "a",
    "ç": "c",
    "é": "e",
    "è": "e",
    "ê": "e",
    "ë": "e",
    "í": "i",
    "ì": "i",
    "î": "i",
    "ï": "i",
    "ñ": "n",
    "ó": "o",
    "ò": "o",
    "ô": "o",
    "ö": "o",
    "õ": "o",
    "ú": "u",
    "ù": "u",
    "û": "u",
    "ü": "u",
    "ý": "y",
    "ÿ": "y",
}

TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")


def strip_diacritics(text: Optional[str]) -> str:
    """Lowercase and fold accented Latin letters to their base letter"""
    return "".join(DIACRITICS_MAP.get(ch, ch) for ch in (text or "").lower())


def tokenize(text: Optional[str]) -> List[str]:
    """Split folded text on non-alphanumeric boundaries, dropping empties"""
    return [t for t in TOKEN_SPLIT_RE.split(strip_diacritics(text)) if t]


def phonetic_codes(word: Optional[str]) -> List[str]:
    """
    Double Metaphone codes of a word

    Args:
        word: Single word (accents allowed)

    Returns:
        Primary code first, then the alternate, without empty or
        duplicate codes. Empty list when nothing can be encoded.
    """
    cleaned = strip_diacritics(word).strip()
    if not cleaned:
        return []

    codes: List[str] = []
    for code in doublemetaphone(cleaned):
        if code and code not in codes:
            codes.append(code)

    return codes


def phonetic_encode(word: Optional[str]) -> str:
    """Codes joined with '|' (display/debug form)"""
    return "|".join(phonetic_codes(word))


def phonetic_projection(segment: Optional[str]) -> str:
    """
    Phonetic projection of a whole segment, kept for audit on each Prescription

    Tokens that yield no code (e.g. numbers) are dropped.
    """
    encoded = (phonetic_encode(token) for token in tokenize(segment))
    return " ".join(code for code in encoded if code)
