"""
Unit tests for RuleBasedExtractor
Tests end-to-end prescription extraction on normalized dictation
"""

import sys
from pathlib import Path
from typing import List

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from ordovoice.models.schemas import DrugEntry, EntitySpan, Prescription
from ordovoice.services.drug_matcher import DrugMatcher
from ordovoice.services.prescription_extractor import RuleBasedExtractor
from ordovoice.services.recognizer import LocalNerEngine, NoOpNerEngine
from ordovoice.utils.phonetics import phonetic_projection
from ordovoice.utils.text_normalizer import TextNormalizer


class RecordingNerEngine(LocalNerEngine):
    """Recognizer stub that records its inputs and reports one entity"""

    def __init__(self):
        self.calls: List[str] = []

    def analyze(self, text: str) -> List[EntitySpan]:
        self.calls.append(text)
        return [EntitySpan(type="MEDICAMENT", start=0, end=min(len(text), 3), text=text[:3])]


class TestRuleBasedExtractor:
    """Test suite for RuleBasedExtractor"""

    def setup_method(self):
        """Setup test fixtures"""
        self.normalizer = TextNormalizer()
        self.extractor = RuleBasedExtractor()

    def _extract(self, raw: str) -> List[Prescription]:
        return self.extractor.extract(self.normalizer.normalize(raw))

    def test_scenario_single_prescription(self):
        """Drug, dose, frequency, device, duration and notes"""
        normalized = self.normalizer.normalize(
            "Ceftriaxone 1g 3 fois par jour VVP pendant 7 jours (retrocession hospitaliere)"
        )
        prescriptions = self.extractor.extract(normalized)

        assert len(prescriptions) == 1
        p = prescriptions[0]
        assert p.libelle == "Ceftriaxone"
        assert p.dci == "Ceftriaxone"
        assert p.dosage == "1 g"
        assert p.posologie == "3x/j"
        assert p.duree == "7j"
        assert p.dispositif == "VVP"
        assert p.voie == "Intraveineuse (périphérique)"
        assert "retrocession hospitaliere" in p.notes
        assert p.forme is None
        assert p.segment_source == normalized
        assert p.segment_source_phonetic == phonetic_projection(normalized)

    def test_scenario_two_prescriptions(self):
        """Two doses joined by 'et' give two prescriptions"""
        prescriptions = self._extract(
            "ceftriaxone 1 g par jour en vvp et 4 g x2 par jour de piperacilline tazo sur pac"
        )

        assert len(prescriptions) == 2

        first, second = prescriptions
        assert first.libelle == "Ceftriaxone"
        assert first.dispositif == "VVP"
        assert first.dosage == "1 g"

        assert second.libelle == "Piperacilline + Tazobactam"
        assert second.dispositif == "PAC"
        assert second.dosage == "4 g"
        assert "x2" in second.posologie

    def test_scenario_oral_route(self):
        """Per os route and duration"""
        prescriptions = self._extract("Piperacilline tazo 4g 3 fois par jour per os pendant 10 jours")

        assert len(prescriptions) == 1
        p = prescriptions[0]
        assert p.libelle == "Piperacilline + Tazobactam"
        assert p.dci == "Piperacilline + Tazobactam"
        assert p.dosage == "4 g"
        assert p.posologie == "3x/j"
        assert p.dispositif == "Per os"
        assert p.voie == "Orale"
        assert p.duree == "10j"

    def test_scenario_empty_input(self):
        """Empty input -> no prescription"""
        assert self.extractor.extract("") == []
        assert self.extractor.extract(None) == []
        assert self._extract("   \n\n ") == []

    def test_dose_without_drug_is_kept(self):
        """A dose always yields a prescription"""
        prescriptions = self.extractor.extract("2 g")

        assert len(prescriptions) == 1
        p = prescriptions[0]
        assert p.libelle is None
        assert p.dci is None
        assert p.dosage == "2 g"
        assert p.posologie is None
        assert p.segment_source == "2 g"

    def test_compact_dose_keeps_its_prescription(self):
        """'500mgx3' after a connector yields a second prescription"""
        prescriptions = self._extract("ceftriaxone 1 g en vvp et flagyl 500mgx3 per os")

        assert len(prescriptions) == 2
        second = prescriptions[1]
        assert second.libelle == "Metronidazole"
        assert second.dosage == "500 mg"
        assert second.posologie == "x3"
        assert second.dispositif == "Per os"

    def test_abbreviated_route_bounds_posology(self):
        """'ivd' closes the posology"""
        p = self.extractor.extract("ceftriaxone 1 g 2x/j ivd")[0]

        assert p.dispositif == "IV"
        assert p.posologie == "2x/j"

    def test_segment_without_dose(self):
        """Drug and route without a dose"""
        prescriptions = self.extractor.extract("ceftriaxone en vvp")

        assert len(prescriptions) == 1
        p = prescriptions[0]
        assert p.libelle == "Ceftriaxone"
        assert p.dosage is None
        assert p.posologie is None
        assert p.dispositif == "VVP"

    def test_blocks_separated_by_blank_lines(self):
        """Each block is extracted on its own"""
        prescriptions = self.extractor.extract("ceftriaxone 1 g\n\nflagyl 500 mg")

        assert [p.libelle for p in prescriptions] == ["Ceftriaxone", "Metronidazole"]
        assert [p.segment_source for p in prescriptions] == ["ceftriaxone 1 g", "flagyl 500 mg"]

    def test_posology_runs_to_end_without_route(self):
        """No route: posology is the rest of the segment"""
        p = self.extractor.extract("flagyl 500 mg matin et soir")[0]
        assert p.posologie == "matin et soir"

    def test_labeled_note_removed_from_working_text(self):
        """Notes never leak into posology; source keeps them"""
        segment = "flagyl 500 mg 3x/j notes: a jeun tel 0612345678"
        p = self.extractor.extract(segment)[0]

        assert p.notes == "a jeun"
        assert p.posologie == "3x/j"
        assert p.segment_source == segment

    def test_recognizer_is_consulted_but_not_merged(self):
        """Injected recognizer sees each sub-segment, output unchanged"""
        ner = RecordingNerEngine()
        extractor = RuleBasedExtractor(ner_engine=ner)
        text = "ceftriaxone 1 g par jour en vvp et 4 g x2 par jour de piperacilline tazo sur pac"

        with_ner = extractor.extract(text)
        default = self.extractor.extract(text)

        assert len(ner.calls) == 2
        assert [p.model_dump() for p in with_ner] == [p.model_dump() for p in default]

    def test_default_recognizer(self):
        """No-op recognizer reports nothing"""
        assert isinstance(self.extractor.ner, NoOpNerEngine)
        assert NoOpNerEngine().analyze("ceftriaxone 1 g") == []

    def test_custom_drug_matcher(self):
        """Lexicon injected through the matcher"""
        lexicon = [DrugEntry(key="Zorbacilline", dci="Zorbacilline", aliases=("zorba",))]
        extractor = RuleBasedExtractor(drug_matcher=DrugMatcher(lexicon=lexicon))

        p = extractor.extract("zorba 1 g par jour")[0]
        assert p.libelle == "Zorbacilline"
        assert p.dci == "Zorbacilline"

    def test_never_raises_on_noise(self):
        """Adversarial input degrades to partial fields"""
        for text in ["((((", "notes:", "1 g (", ";;; , et puis plus", "µg mg g 0,5"]:
            result = self.extractor.extract(text)
            assert all(p.segment_source for p in result)
