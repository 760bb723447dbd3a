"""
Unit tests for DictationPipeline and the transcriber adapters
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from ordovoice.models.schemas import PipelineResult
from ordovoice.services.pipeline import (
    CallableTranscriber, DictationPipeline, NoOpSpeechTranscriber, SpeechTranscriber
)


PRESCRIPTION_FIELDS = {
    "libelle", "dci", "dosage", "posologie", "voie", "dispositif",
    "forme", "duree", "notes", "segment_source", "segment_source_phonetic",
}

PATIENT_FIELDS = {
    "first_name", "last_name", "gender", "civility", "city", "email", "phone", "source_text",
}


class FailingTranscriber(SpeechTranscriber):
    """Transcriber whose backend is unavailable"""

    def transcribe_file(self, audio_file_path: str) -> str:
        raise RuntimeError("model file missing")


class TestDictationPipeline:
    """Test suite for DictationPipeline"""

    def setup_method(self):
        """Setup test fixtures"""
        self.pipeline = DictationPipeline()

    def test_process_text(self):
        """Patient and prescriptions from one dictation"""
        raw = "M. Jean Dupont. Prescription ceftriaxone 1g 3 fois par jour VVP pendant 7 jours"
        result = self.pipeline.process_text(raw)

        assert isinstance(result, PipelineResult)
        assert result.transcript == raw
        assert "1 g" in result.normalized_transcript
        assert "3x/j" in result.normalized_transcript

        assert result.patient.first_name == "Jean"
        assert result.patient.last_name == "Dupont"

        assert len(result.prescriptions) == 1
        p = result.prescriptions[0]
        assert p.libelle == "Ceftriaxone"
        assert p.dosage == "1 g"
        assert p.duree == "7j"
        assert p.dispositif == "VVP"

    def test_output_schema(self):
        """to_output exposes exactly the record fields, nulls kept"""
        output = self.pipeline.process_text("Mme Claire Martin. Ttt: flagyl 500 mg").to_output()

        assert set(output) == {"patient", "prescriptions"}
        assert set(output["patient"]) == PATIENT_FIELDS
        assert set(output["prescriptions"][0]) == PRESCRIPTION_FIELDS
        assert output["prescriptions"][0]["forme"] is None
        assert output["patient"]["email"] is None

    def test_empty_input(self):
        """Empty transcript -> null patient, no prescription"""
        for raw in ("", None):
            result = self.pipeline.process_text(raw)
            assert result.transcript == ""
            assert result.to_output() == {"patient": None, "prescriptions": []}

    def test_transcribe_and_extract(self):
        """Transcript comes from the injected transcriber"""
        calls = []

        def run_model(path):
            calls.append(path)
            return "Ceftriaxone 1g par jour"

        pipeline = DictationPipeline(transcriber=CallableTranscriber(run_model, language_code="fr"))
        result = pipeline.transcribe_and_extract("dictee.wav")

        assert calls == ["dictee.wav"]
        assert result.transcript == "Ceftriaxone 1g par jour"
        assert result.normalized_transcript == "ceftriaxone 1 g par jour"
        assert result.prescriptions[0].libelle == "Ceftriaxone"
        assert result.prescriptions[0].dosage == "1 g"

    def test_callable_transcriber_none_result(self):
        """A model returning None yields an empty transcript"""
        transcriber = CallableTranscriber(lambda path: None, language_code="en")

        assert transcriber.transcribe_file("silence.wav") == ""
        assert transcriber.language_code == "en"

    def test_default_transcriber_warns(self, caplog, monkeypatch):
        """No-op transcriber logs a warning and returns nothing"""
        # the package logger stops propagation; let caplog see the record
        monkeypatch.setattr(logging.getLogger("ordovoice"), "propagate", True)

        with caplog.at_level(logging.WARNING, logger="ordovoice.services.pipeline"):
            result = self.pipeline.transcribe_and_extract("dictee.wav")

        assert isinstance(self.pipeline.transcriber, NoOpSpeechTranscriber)
        assert result.transcript == ""
        assert result.prescriptions == []
        assert "dictee.wav" in caplog.text

    def test_transcriber_errors_propagate(self):
        """Collaborator failures are not wrapped"""
        pipeline = DictationPipeline(transcriber=FailingTranscriber())

        with pytest.raises(RuntimeError, match="model file missing"):
            pipeline.transcribe_and_extract("dictee.wav")
