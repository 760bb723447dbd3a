"""
Field extractors for a single prescription sub-segment
Dose, route/device, duration and notes, each a small deterministic pattern pass.

Notes extraction is written as pure passes returning (field, remaining_text)
so the working text is never mutated in place.
"""

import re
from typing import Optional, Tuple

from ordovoice.models.schemas import RouteMatch


# A unit glued to a word ("1 gentamicine") is not a dose; "500mgx3" is
DOSE_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(mg|g|µg|ug)(?![a-wyzà-ÿ]|x(?!\d))")

# (pattern, voie, dispositif) - same start index keeps list order.
# Patterns start on a word boundary; short ones may be followed by a
# suffix ("ivd", "ivl").
ROUTE_PATTERNS = [
    (re.compile(r"\bvvp\b"), "Intraveineuse (périphérique)", "VVP"),
    (re.compile(r"\biv"), "Intraveineuse", "IV"),
    (re.compile(r"\bmidline\b"), "Intraveineuse (Midline)", "Midline"),
    (re.compile(r"\bpicc line\b"), "Intraveineuse (PICC line)", "PICC line"),
    (re.compile(r"\bpiccline\b"), "Intraveineuse (PICC line)", "PICC line"),
    (re.compile(r"\bpicc"), "Intraveineuse (PICC line)", "PICC line"),
    (re.compile(r"\bpac"), "Intraveineuse (PAC)", "PAC"),
    (re.compile(r"\bper os\b"), "Orale", "Per os"),
    (re.compile(r"\borale\b"), "Orale", "Orale"),
]

DURATION_RE = re.compile(
    r"\b(?:pendant|pour|sur)\s+(\d+)\s*(j|jours?|sem|semaines?|mois)\b"
)
DAYS_PER_UNIT = {
    "j": 1,
    "jour": 1,
    "jours": 1,
    "sem": 7,
    "semaine": 7,
    "semaines": 7,
    "mois": 30,  # fixed approximation
}

PAREN_NOTE_RE = re.compile(r"\(([^)]*)\)")
LABELED_NOTE_RE = re.compile(r"notes?:\s*([^\n]+)")
PHONE_LABEL_RE = re.compile(r"\b(?:tel|tél)[ :]+")
NOTES_SEPARATOR = " | "


def find_dose(segment: str) -> Optional[re.Match]:
    """First dose occurrence (e.g. "1 g", "320 mg") or None"""
    return DOSE_RE.search(segment or "")


def format_dosage(match: re.Match) -> str:
    """Dosage label of a dose match, decimal comma turned into a point"""
    return f"{match.group(1).replace(',', '.')} {match.group(2)}"


def find_route(segment: str) -> Optional[RouteMatch]:
    """
    Administration route/device mentioned in a segment

    Every known pattern present is a candidate; the earliest one in the
    text wins.

    Returns:
        RouteMatch or None if no route is mentioned
    """
    best: Optional[RouteMatch] = None

    for pattern, voie, dispositif in ROUTE_PATTERNS:
        match = pattern.search(segment or "")
        if match and (best is None or match.start() < best.start):
            best = RouteMatch(voie=voie, dispositif=dispositif, start=match.start())

    return best


def find_duration(segment: str) -> Optional[str]:
    """
    Treatment duration normalized to days

    Example:
        >>> find_duration("pendant 2 semaines")
        '14j'
    """
    match = DURATION_RE.search(segment or "")
    if not match:
        return None

    days = int(match.group(1)) * DAYS_PER_UNIT[match.group(2)]
    return f"{days}j"


def _remove_span(text: str, match: re.Match) -> str:
    remaining = text[:match.start()] + text[match.end():]
    return re.sub(r" {2,}", " ", remaining).strip()


def extract_parenthesized_note(text: str) -> Tuple[Optional[str], str]:
    """First parenthesized group -> (note, text without the group)"""
    match = PAREN_NOTE_RE.search(text)
    if not match:
        return None, text

    note = match.group(1).strip()
    return note or None, _remove_span(text, match)


def extract_labeled_note(text: str) -> Tuple[Optional[str], str]:
    """'notes: ...' trailing clause, cut at a phone label -> (note, remaining)"""
    match = LABELED_NOTE_RE.search(text)
    if not match:
        return None, text

    note = PHONE_LABEL_RE.split(match.group(1))[0].strip()
    return note or None, _remove_span(text, match)


def extract_notes(text: str) -> Tuple[Optional[str], str]:
    """
    Notes of a segment and the working text stripped of them

    Args:
        text: Sub-segment text

    Returns:
        Tuple of (notes or None, remaining text)
    """
    paren_note, remaining = extract_parenthesized_note(text or "")
    labeled_note, remaining = extract_labeled_note(remaining)

    pieces = [n for n in (paren_note, labeled_note) if n]
    return (NOTES_SEPARATOR.join(pieces) if pieces else None), remaining
