"""
Patient Profile Extractor
Finds the patient's identity in the preamble that precedes the prescriptions
"""

import re
from typing import Dict, Optional, Sequence

from ordovoice.models.schemas import DrugEntry, PatientProfile
from ordovoice.utils.lexicon_loader import load_drug_lexicon
from ordovoice.utils.logger import get_logger

logger = get_logger(__name__)


NAME = r"([A-Za-zÀ-ÖØ-öø-ÿ\-]+)"

SCOPE_KEYWORD_RE = re.compile(r"\b(?:prescriptions?|ordonnances?|ordos?|traitements?|ttt)\b")

CIVILITY_RE = re.compile(
    r"\b(m\.?|mr\.?|monsieur|mme\.?|madame|mlle\.?|melle|mademoiselle)[\s,]+" + NAME + r"\s+" + NAME,
    re.IGNORECASE,
)
KEYWORD_NAME_RE = re.compile(
    r"\b(?:patiente?|sortie de|au nom de)[\s:]+" + NAME + r"\s+" + NAME,
    re.IGNORECASE,
)

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"(?:\+?33\s?|0)[1-9](?:[ .-]?\d){8}")
CITY_RE = re.compile(
    r"\b(?:ville|city|commune)\s*[:\-]\s*([A-Za-zÀ-ÖØ-öø-ÿ' \-]{2,})",
    re.IGNORECASE,
)

SENTENCE_DELIMITERS = (".", "\n")


class PatientProfileExtractor:
    """
    Extracts a PatientProfile from the dictation preamble

    The preamble ends at the first prescription keyword or lexicon alias.
    Names are read with a civility pattern first, then a keyword pattern
    ("patient", "sortie de", "au nom de"). Email, phone and city are picked
    up anywhere in the preamble.
    """

    def __init__(self, lexicon: Optional[Sequence[DrugEntry]] = None):
        """
        Initialize patient extractor

        Args:
            lexicon: Entries whose aliases close the preamble (default: packaged lexicon)
        """
        self.lexicon = tuple(lexicon) if lexicon is not None else load_drug_lexicon()

    def extract(self, raw_text: Optional[str], normalized_text: Optional[str] = None) -> Optional[PatientProfile]:
        """
        Extract the patient profile

        Args:
            raw_text: Original transcript (names keep their case)
            normalized_text: Normalized transcript used to locate the preamble

        Returns:
            PatientProfile, or None when no name could be found
        """
        raw_text = raw_text or ""
        if not raw_text.strip():
            return None

        scope_end = self._scope_end(raw_text, normalized_text)
        preamble = raw_text[:scope_end].strip()
        if not preamble:
            return None

        contact = self._extract_contact_info(preamble)

        civility_match = CIVILITY_RE.search(preamble)
        if civility_match:
            civility, first_name, last_name = civility_match.groups()
            return self._build_profile(civility, first_name, last_name, preamble, civility_match, contact)

        keyword_match = KEYWORD_NAME_RE.search(preamble)
        if keyword_match:
            first_name, last_name = keyword_match.groups()
            return self._build_profile(None, first_name, last_name, preamble, keyword_match, contact)

        logger.debug("No patient name found in preamble")
        return None

    def first_prescription_index(self, lower_text: str) -> Optional[int]:
        """Earliest index of a prescription keyword or lexicon alias"""
        indices = []

        keyword_match = SCOPE_KEYWORD_RE.search(lower_text)
        if keyword_match:
            indices.append(keyword_match.start())

        for entry in self.lexicon:
            for alias in entry.aliases:
                idx = lower_text.find(alias.lower())
                if idx != -1:
                    indices.append(idx)

        return min(indices) if indices else None

    def _scope_end(self, raw_text: str, normalized_text: Optional[str]) -> int:
        # The boundary is decided on the normalized text, then located in the
        # raw text by rescanning its lowercase form with the same rule.
        normalized_index = self.first_prescription_index(normalized_text or raw_text.lower())
        if normalized_index is None:
            return len(raw_text)

        raw_index = self.first_prescription_index(raw_text.lower())
        if raw_index is None:
            return min(normalized_index, len(raw_text))
        return raw_index

    def _build_profile(
        self,
        civility: Optional[str],
        first_name: str,
        last_name: str,
        preamble: str,
        match: re.Match,
        contact: Dict[str, Optional[str]],
    ) -> PatientProfile:
        snippet = self._capture_snippet(preamble, match.start(), match.end())

        return PatientProfile(
            first_name=first_name,
            last_name=last_name,
            gender=self._gender_from_civility(civility),
            civility=civility,
            city=contact["city"],
            email=contact["email"],
            phone=contact["phone"],
            source_text=snippet or preamble,
        )

    def _extract_contact_info(self, preamble: str) -> Dict[str, Optional[str]]:
        """Best-effort email, phone and city from the preamble"""
        contact: Dict[str, Optional[str]] = {"city": None, "email": None, "phone": None}

        email_match = EMAIL_RE.search(preamble)
        if email_match:
            contact["email"] = email_match.group(0)

        phone_match = PHONE_RE.search(preamble)
        if phone_match:
            contact["phone"] = re.sub(r"[^0-9+]", "", phone_match.group(0))

        city_match = CITY_RE.search(preamble)
        if city_match:
            contact["city"] = city_match.group(1).strip() or None

        return contact

    @staticmethod
    def _gender_from_civility(civility: Optional[str]) -> Optional[str]:
        if not civility:
            return None

        lower = civility.lower()
        if lower.rstrip(".") in ("m", "mr", "monsieur"):
            return "male"
        if lower.startswith(("mme", "mad", "mlle", "melle")):
            return "female"
        return None

    @staticmethod
    def _capture_snippet(text: str, start: int, end: int) -> str:
        """Sentence around the matched name, bounded by '.' or a newline"""
        left = 0
        for i in range(start - 1, -1, -1):
            if text[i] in SENTENCE_DELIMITERS:
                left = i + 1
                break

        right = len(text)
        for i in range(end, len(text)):
            if text[i] in SENTENCE_DELIMITERS:
                right = i
                break

        return text[left:right].strip()
