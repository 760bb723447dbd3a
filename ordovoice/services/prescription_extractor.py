"""
Prescription Extractor (Orchestrator)
Turns normalized dictation text into one Prescription per dose event
"""

from typing import List, Optional

from ordovoice.models.schemas import Prescription
from ordovoice.services.drug_matcher import DrugMatcher
from ordovoice.services.field_extractors import (
    extract_notes, find_dose, find_duration, find_route, format_dosage
)
from ordovoice.services.recognizer import LocalNerEngine, NoOpNerEngine
from ordovoice.services.segment_splitter import split_blocks, split_multi_drug_segment
from ordovoice.utils.logger import get_logger
from ordovoice.utils.phonetics import phonetic_projection

logger = get_logger(__name__)


class RuleBasedExtractor:
    """
    Extracts structured prescriptions using deterministic rules

    Pipeline per input:
    1. Blocks separated by blank lines
    2. Each block split into one sub-segment per dose
    3. Per sub-segment: notes, drug, dose, duration, route, posology

    The optional recognizer is consulted on every sub-segment but its
    entities are not merged into the rule-based result.
    """

    def __init__(
        self,
        ner_engine: Optional[LocalNerEngine] = None,
        drug_matcher: Optional[DrugMatcher] = None,
    ):
        """
        Initialize extractor

        Args:
            ner_engine: Local recognizer (default: NoOpNerEngine)
            drug_matcher: Drug matcher (default: matcher over the packaged lexicon)
        """
        self.ner = ner_engine or NoOpNerEngine()
        self.drug_matcher = drug_matcher or DrugMatcher()

    def extract(self, normalized_text: str) -> List[Prescription]:
        """
        Extract prescriptions from normalized text

        Args:
            normalized_text: Output of TextNormalizer.normalize()

        Returns:
            Prescriptions in text order (empty list for empty input)

        Example:
            >>> extractor = RuleBasedExtractor()
            >>> [p.libelle for p in extractor.extract("ceftriaxone 1 g par jour en vvp")]
            ['Ceftriaxone']
        """
        results: List[Prescription] = []

        for block in split_blocks(normalized_text or ""):
            for segment in split_multi_drug_segment(block):
                results.append(self.extract_one(segment))

        logger.debug("Extracted %d prescription(s)", len(results))
        return results

    def extract_one(self, segment: str) -> Prescription:
        """
        Extract a single prescription from one sub-segment

        Fields are read from a working copy stripped of notes;
        segment_source always keeps the original sub-segment.
        """
        notes, working = extract_notes(segment)

        drug = self.drug_matcher.find_drug_in_segment(working)

        dosage = None
        dose_end = None
        dose = find_dose(working)
        if dose:
            dosage = format_dosage(dose)
            dose_end = dose.end()

        duree = find_duration(working)
        route = find_route(working)

        # Posology: text between the dose and the route (or the end)
        posologie = None
        if dose_end is not None:
            end = route.start if route else len(working)
            if end > dose_end:
                posologie = working[dose_end:end].strip() or None

        entities = self.ner.analyze(working)
        if entities:
            logger.debug("Recognizer reported %d entities (not merged)", len(entities))

        return Prescription(
            libelle=drug.key if drug else None,
            dci=drug.dci if drug else None,
            dosage=dosage,
            posologie=posologie,
            voie=route.voie if route else None,
            dispositif=route.dispositif if route else None,
            forme=None,
            duree=duree,
            notes=notes,
            segment_source=segment,
            segment_source_phonetic=phonetic_projection(segment),
        )
