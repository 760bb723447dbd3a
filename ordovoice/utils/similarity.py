"""
Similarity ranking between dictated tokens and lexicon targets

Each (lexicon token, input token) pair gets two normalized distances:
- phonetic score: best Levenshtein ratio over all Double Metaphone code pairs
- text score: Levenshtein ratio of the literal tokens

Candidates are ordered by phonetic score, then text score, then target
priority (0 = DCI, 1 = canonical key, 2 = alias). Only a strict
improvement replaces the running best, so earlier candidates win ties.
"""

import math
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from ordovoice.models.schemas import DrugEntry, DrugMatch
from ordovoice.utils.phonetics import phonetic_codes, tokenize


PRIORITY_DCI = 0
PRIORITY_KEY = 1
PRIORITY_ALIAS = 2

MIN_TOKEN_LENGTH = 3


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit insert/delete/substitute costs"""
    return Levenshtein.distance(a, b)


def text_score(a: str, b: str) -> float:
    """Levenshtein distance normalized by the longer token"""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 0.0
    return levenshtein(a, b) / max_len


def phonetic_score(codes_a: Sequence[str], codes_b: Sequence[str]) -> float:
    """Best normalized distance over all code pairs, inf if either side has no code"""
    best = math.inf
    for a in codes_a:
        for b in codes_b:
            max_len = max(len(a), len(b))
            if max_len == 0:
                continue
            best = min(best, levenshtein(a, b) / max_len)
    return best


def is_better_score(
    candidate_phon: float,
    candidate_text: float,
    best_phon: float,
    best_text: float,
    candidate_priority: int = PRIORITY_ALIAS,
    best_priority: int = PRIORITY_ALIAS,
) -> bool:
    """Strict comparison: phonetic, then text, then priority"""
    if candidate_phon < best_phon:
        return True
    if candidate_phon != best_phon:
        return False
    if candidate_text < best_text:
        return True
    if candidate_text != best_text:
        return False
    return candidate_priority < best_priority


def is_better_match(candidate: DrugMatch, incumbent: Optional[DrugMatch]) -> bool:
    """True when candidate should replace incumbent as the running best"""
    if incumbent is None:
        return True
    return is_better_score(
        candidate.phon_score,
        candidate.text_score,
        incumbent.phon_score,
        incumbent.text_score,
        candidate_priority=candidate.priority,
        best_priority=incumbent.priority,
    )


def lexicon_targets(entry: DrugEntry) -> Iterator[Tuple[str, int]]:
    """Targets of one entry with their priority: DCI, key, then each alias"""
    yield entry.dci, PRIORITY_DCI
    yield entry.key, PRIORITY_KEY
    for alias in entry.aliases:
        yield alias, PRIORITY_ALIAS


def rank_words(words: Iterable[str], entries: Iterable[DrugEntry]) -> Optional[DrugMatch]:
    """
    Best (entry, word) pair over every word and every lexicon target token

    Phonetic codes are memoized for the duration of this call only.

    Args:
        words: Input tokens (already filtered by the caller)
        entries: Lexicon entries, in declaration order

    Returns:
        Best DrugMatch, or None if no pair could be scored
    """
    word_codes: Dict[str, List[str]] = {}
    for w in words:
        if w and w not in word_codes:
            word_codes[w] = phonetic_codes(w)

    if not word_codes:
        return None

    target_codes: Dict[str, List[str]] = {}
    best: Optional[DrugMatch] = None

    for entry in entries:
        for target, priority in lexicon_targets(entry):
            for target_token in tokenize(target):
                if len(target_token) < MIN_TOKEN_LENGTH:
                    continue

                if target_token not in target_codes:
                    target_codes[target_token] = phonetic_codes(target_token)
                codes = target_codes[target_token]
                if not codes:
                    continue

                for w, w_codes in word_codes.items():
                    phon = phonetic_score(codes, w_codes)
                    if math.isinf(phon):
                        continue

                    text = text_score(target_token, w)
                    if best is None or is_better_score(
                        phon, text, best.phon_score, best.text_score,
                        candidate_priority=priority, best_priority=best.priority,
                    ):
                        best = DrugMatch(drug=entry, phon_score=phon, text_score=text, priority=priority)

    return best
