"""
Dictation Pipeline
Connects a speech-to-text collaborator, normalization and both extractors
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from ordovoice.models.schemas import PipelineResult
from ordovoice.services.patient_extractor import PatientProfileExtractor
from ordovoice.services.prescription_extractor import RuleBasedExtractor
from ordovoice.utils.config import TRANSCRIPTION_LANGUAGE
from ordovoice.utils.logger import get_logger
from ordovoice.utils.text_normalizer import TextNormalizer

logger = get_logger(__name__)


class SpeechTranscriber(ABC):
    """Contract for turning an audio file into raw text"""

    @abstractmethod
    def transcribe_file(self, audio_file_path: str) -> str:
        """Transcript of the audio file (possibly empty)"""


class CallableTranscriber(SpeechTranscriber):
    """
    Adapter around any function running a speech model

    The model itself (whisper.cpp binding, plugin, ...) lives outside this
    package; this class only forwards the call.
    """

    def __init__(self, run_model: Callable[[str], str], language_code: str = TRANSCRIPTION_LANGUAGE):
        self._run_model = run_model
        self.language_code = language_code

    def transcribe_file(self, audio_file_path: str) -> str:
        return self._run_model(audio_file_path) or ""


class NoOpSpeechTranscriber(SpeechTranscriber):
    """Fallback used when no speech backend is wired"""

    def transcribe_file(self, audio_file_path: str) -> str:
        logger.warning("NoOpSpeechTranscriber called with %s. Plug a real backend.", audio_file_path)
        return ""


class DictationPipeline:
    """
    Main orchestration from transcript to structured output

    Flow:
    1. Transcriber (optional) -> raw text
    2. TextNormalizer -> normalized text
    3. PatientProfileExtractor on (raw, normalized)
    4. RuleBasedExtractor on normalized text
    """

    def __init__(
        self,
        transcriber: Optional[SpeechTranscriber] = None,
        normalizer: Optional[TextNormalizer] = None,
        extractor: Optional[RuleBasedExtractor] = None,
        patient_extractor: Optional[PatientProfileExtractor] = None,
    ):
        """Initialize pipeline components (defaults for everything but a real transcriber)"""
        self.transcriber = transcriber or NoOpSpeechTranscriber()
        self.normalizer = normalizer or TextNormalizer()
        self.extractor = extractor or RuleBasedExtractor()
        self.patient_extractor = patient_extractor or PatientProfileExtractor()

    def process_text(self, raw_text: Optional[str]) -> PipelineResult:
        """
        Run normalization and extraction on an already transcribed text

        Args:
            raw_text: Transcript (None is treated as empty)

        Returns:
            PipelineResult with transcript, normalized text, patient and prescriptions

        Example:
            >>> result = DictationPipeline().process_text("Ceftriaxone 1g par jour")
            >>> result.to_output()["prescriptions"][0]["dosage"]
            '1 g'
        """
        transcript = raw_text or ""
        normalized = self.normalizer.normalize(transcript)

        patient = self.patient_extractor.extract(transcript, normalized)
        prescriptions = self.extractor.extract(normalized)

        return PipelineResult(
            transcript=transcript,
            normalized_transcript=normalized,
            patient=patient,
            prescriptions=prescriptions,
        )

    def transcribe_and_extract(self, audio_file_path: str) -> PipelineResult:
        """
        Audio file -> transcript -> normalized text -> structured output

        Raises:
            Whatever the transcriber raises; errors are not wrapped
        """
        transcript = self.transcriber.transcribe_file(audio_file_path)
        return self.process_text(transcript)
