"""
Pydantic models for OrdoVoice
Defines data contracts for the lexicon, extracted prescriptions and patient profiles
"""

from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# LEXICON
# ============================================================================

class DrugEntry(BaseModel):
    """Single curated lexicon entry"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Canonical display name")
    dci: str = Field(..., description="International nonproprietary name")
    aliases: Tuple[str, ...] = Field(default_factory=tuple, description="Surface forms, brands, typos")


# ============================================================================
# EXTRACTION OUTPUT
# ============================================================================

class Prescription(BaseModel):
    """One treatment extracted from a dictated sub-segment"""
    libelle: Optional[str] = None
    dci: Optional[str] = None
    dosage: Optional[str] = None
    posologie: Optional[str] = None
    voie: Optional[str] = None
    dispositif: Optional[str] = None
    forme: Optional[str] = None  # reserved
    duree: Optional[str] = None
    notes: Optional[str] = None
    segment_source: str = Field(..., min_length=1, description="Raw sub-segment, verbatim")
    segment_source_phonetic: str = ""


class PatientProfile(BaseModel):
    """Patient identity found in the preamble of a dictation"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None  # derived from civility
    civility: Optional[str] = None
    city: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source_text: Optional[str] = None


class EntitySpan(BaseModel):
    """Entity reported by an optional recognizer (end is exclusive)"""
    type: str
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    text: str


class ExtractionResult(BaseModel):
    """Structured output of one extraction call"""
    patient: Optional[PatientProfile] = None
    prescriptions: List[Prescription] = Field(default_factory=list)

    def to_output(self) -> Dict[str, Any]:
        """Output schema with absent values kept as null"""
        return {
            "patient": self.patient.model_dump() if self.patient else None,
            "prescriptions": [p.model_dump() for p in self.prescriptions],
        }


class PipelineResult(ExtractionResult):
    """Extraction output plus the transcript it was built from"""
    transcript: str = ""
    normalized_transcript: str = ""


# ============================================================================
# INTERMEDIATE RESULTS
# ============================================================================

class RouteMatch(BaseModel):
    """Administration route and device found in a segment"""
    voie: str
    dispositif: str
    start: int


class DrugMatch(BaseModel):
    """Scored lexicon candidate (priority: 0 = DCI, 1 = key, 2 = alias)"""
    drug: DrugEntry
    phon_score: float
    text_score: float
    priority: int = Field(..., ge=0, le=2)
