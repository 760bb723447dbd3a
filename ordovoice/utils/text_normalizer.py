"""
Text normalization for dictated prescriptions
Turns raw transcripts into the canonical lowercase form every extractor works on
"""

import re
from typing import Dict, Optional


# Small French number words -> digits
NUMBER_WORDS: Dict[str, str] = {
    "zéro": "0",
    "zero": "0",
    "un": "1",
    "une": "1",
    "deux": "2",
    "trois": "3",
    "quatre": "4",
    "cinq": "5",
    "six": "6",
    "sept": "7",
    "huit": "8",
    "neuf": "9",
    "dix": "10",
}

NUMBER_WORD_RE = re.compile(r"\b(" + "|".join(NUMBER_WORDS) + r")\b")
HORIZONTAL_SPACE_RE = re.compile(r"[^\S\n]+")
COMPACT_DOSE_TIMES_RE = re.compile(r"(\d+)\s*g\s*x\s*(\d+)")
COMPACT_DOSE_RE = re.compile(r"(\d+)g")
UNIT_WORDS = (
    (re.compile(r"\bgrammes?\b"), " g"),
    (re.compile(r"\bmilligrammes?\b"), " mg"),
    (re.compile(r"\bmicrogrammes?\b"), " µg"),
)
FREQUENCY_RE = re.compile(r"\b(\d+)\s*(?:fois|x)\s*(?:par\s*jour|/jour)\b")
MULTI_SPACE_RE = re.compile(r" +")


class TextNormalizer:
    """
    Canonicalizes free-form dictation text

    Steps (in order): trim, unify line breaks, collapse horizontal spaces,
    lowercase, number words -> digits, compact doses ("4gx3" -> "4 g x3"),
    unit words -> symbols, "3 fois par jour" -> "3x/j", final space cleanup.

    normalize() is total and idempotent.
    """

    def normalize(self, raw: Optional[str]) -> str:
        """
        Normalize raw dictation text

        Args:
            raw: Transcript text (None is treated as empty)

        Returns:
            Normalized text

        Example:
            >>> TextNormalizer().normalize("Ceftriaxone 1g 3 fois par jour")
            'ceftriaxone 1 g 3x/j'
        """
        text = (raw or "").strip()

        text = text.replace("\r\n", "\n").replace("\r", "\n")
        text = HORIZONTAL_SPACE_RE.sub(" ", text)
        text = text.lower()

        text = NUMBER_WORD_RE.sub(lambda m: NUMBER_WORDS[m.group(1)], text)

        text = COMPACT_DOSE_TIMES_RE.sub(r"\1 g x\2", text)
        text = COMPACT_DOSE_RE.sub(r"\1 g", text)

        for pattern, symbol in UNIT_WORDS:
            text = pattern.sub(symbol, text)

        text = FREQUENCY_RE.sub(r"\1x/j", text)

        text = MULTI_SPACE_RE.sub(" ", text)

        return text.strip()


def normalize_text(raw: Optional[str]) -> str:
    """Module-level shortcut for TextNormalizer().normalize()"""
    return TextNormalizer().normalize(raw)
