"""
Drug Matcher
Resolves the lexicon entry a dictated segment talks about.

Two mechanisms are combined:
1. Exact path: first lexicon entry (declaration order) owning an alias that
   occurs as a substring of the segment.
2. Fuzzy path: glued candidate words around the first dose, the glued whole
   segment and its individual words, ranked phonetically against every
   lexicon target.

The fuzzy winner replaces the exact hit only when it ranks strictly better
than the exact entry scored on the same words.
"""

import re
from typing import FrozenSet, List, Optional, Sequence

from ordovoice.models.schemas import DrugEntry, DrugMatch
from ordovoice.services.field_extractors import find_dose
from ordovoice.utils.lexicon_loader import load_drug_lexicon
from ordovoice.utils.logger import get_logger
from ordovoice.utils.phonetics import tokenize
from ordovoice.utils.similarity import MIN_TOKEN_LENGTH, is_better_match, rank_words

logger = get_logger(__name__)


# Linking words, units and dictation filler ignored by the fuzzy path
PHONETIC_STOPWORDS: FrozenSet[str] = frozenset({
    "de", "des", "du", "la", "le", "les", "un", "une",
    "et", "ou", "en", "au", "aux", "a",
    "pour", "pendant", "sur", "par", "dans", "chez", "avec", "sans",
    "prescription", "prescriptions", "traitement", "traitements",
    "mg", "g", "µg", "ug", "gram", "gramme", "grammes",
    "jour", "jours", "heure", "heures", "fois",
})

NUMERIC_RE = re.compile(r"^\d+$")


def _is_candidate_token(token: str) -> bool:
    return (
        len(token) >= MIN_TOKEN_LENGTH
        and token not in PHONETIC_STOPWORDS
        and not NUMERIC_RE.match(token)
    )


def collapse_drug_candidate(text: str) -> str:
    """
    Glue the meaningful tokens of a text into one candidate word

    Compensates for dictation splitting a drug name in pieces.

    Example:
        >>> collapse_drug_candidate("de gen tamissine")
        'gentamissine'
    """
    return "".join(t for t in tokenize(text) if _is_candidate_token(t))


def segment_words(segment: str) -> List[str]:
    """Filtered words of a segment; falls back to every word of 3+ chars"""
    tokens = tokenize(segment)
    words = [t for t in tokens if _is_candidate_token(t)]
    if not words:
        words = [t for t in tokens if len(t) >= MIN_TOKEN_LENGTH]
    return words


class DrugMatcher:
    """
    Finds the best lexicon entry for a segment

    Stateless apart from the read-only lexicon reference: safe to share
    between threads. Phonetic memoization lives inside each call.
    """

    def __init__(self, lexicon: Optional[Sequence[DrugEntry]] = None):
        """
        Initialize drug matcher

        Args:
            lexicon: Entries to match against (default: the packaged lexicon)
        """
        self.lexicon = tuple(lexicon) if lexicon is not None else load_drug_lexicon()

    def find_exact(self, segment: str) -> Optional[DrugEntry]:
        """First entry in lexicon order owning an alias found in the segment"""
        lower_segment = (segment or "").lower()

        for entry in self.lexicon:
            for alias in entry.aliases:
                if alias.lower() in lower_segment:
                    return entry

        return None

    def candidate_tokens(self, segment: str) -> List[str]:
        """
        Tokens scored by the fuzzy path, in evaluation order

        Glued words before and after the first dose, the glued whole
        segment, then each filtered word of the segment.
        """
        tokens: List[str] = []

        dose = find_dose(segment)
        if dose:
            tokens.append(collapse_drug_candidate(segment[:dose.start()]))
            tokens.append(collapse_drug_candidate(segment[dose.end():]))

        tokens.append(collapse_drug_candidate(segment))
        tokens.extend(segment_words(segment))

        unique: List[str] = []
        for token in tokens:
            if token and token not in unique:
                unique.append(token)
        return unique

    def best_match(self, segment: str) -> Optional[DrugMatch]:
        """
        Scored decision combining the exact and fuzzy paths

        Args:
            segment: Normalized sub-segment text

        Returns:
            DrugMatch of the winning entry, or None when the segment has no
            usable token
        """
        segment = segment or ""
        tokens = self.candidate_tokens(segment)
        exact = self.find_exact(segment)

        if not tokens:
            if exact is None:
                return None
            return DrugMatch(drug=exact, phon_score=0.0, text_score=0.0, priority=2)

        fuzzy = rank_words(tokens, self.lexicon)

        if exact is None:
            return fuzzy

        exact_match = rank_words(tokens, [exact])
        if exact_match is None:
            exact_match = DrugMatch(drug=exact, phon_score=0.0, text_score=0.0, priority=2)

        if fuzzy is not None and is_better_match(fuzzy, exact_match):
            logger.debug(
                "Fuzzy match %s (phon=%.3f, text=%.3f) overrides exact hit %s",
                fuzzy.drug.key, fuzzy.phon_score, fuzzy.text_score, exact.key,
            )
            return fuzzy

        return exact_match

    def find_drug_in_segment(self, segment: str) -> Optional[DrugEntry]:
        """Best lexicon entry for a segment, or None"""
        match = self.best_match(segment)
        return match.drug if match else None

    def find_drug_by_pronunciation(self, segment: str) -> Optional[DrugEntry]:
        """Word-level phonetic ranking only, without the exact path"""
        match = rank_words(segment_words(segment or ""), self.lexicon)
        return match.drug if match else None
