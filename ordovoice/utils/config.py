"""
Central configuration for OrdoVoice
Values are read once from the environment (a .env file is honored)
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# Package root directory
PACKAGE_ROOT = Path(__file__).parent.parent

DEFAULT_LEXICON_PATH = PACKAGE_ROOT / "data" / "drug_lexicon.json"

LEXICON_PATH = Path(os.getenv("ORDOVOICE_LEXICON_PATH") or DEFAULT_LEXICON_PATH)
LOG_LEVEL = os.getenv("ORDOVOICE_LOG_LEVEL", "INFO").upper()
TRANSCRIPTION_LANGUAGE = os.getenv("ORDOVOICE_LANGUAGE", "fr")
