"""
Optional entity recognizer capability
A plug-in point for a local NER engine; the default reports nothing.
"""

from abc import ABC, abstractmethod
from typing import List

from ordovoice.models.schemas import EntitySpan


class LocalNerEngine(ABC):
    """Interface for a local entity recognizer (ONNX, tflite, ...)"""

    @abstractmethod
    def analyze(self, text: str) -> List[EntitySpan]:
        """Entities found in text (types such as MEDICAMENT, DOSE, DUREE)"""


class NoOpNerEngine(LocalNerEngine):
    """Default recognizer: purely rule-based extraction"""

    def analyze(self, text: str) -> List[EntitySpan]:
        return []
