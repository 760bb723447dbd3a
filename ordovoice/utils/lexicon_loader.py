"""
Lexicon loading utilities for OrdoVoice
Handles loading and caching of the curated drug lexicon
"""

import json
from pathlib import Path
from typing import Optional, Tuple
from functools import lru_cache

from ordovoice.models.schemas import DrugEntry
from ordovoice.utils.config import LEXICON_PATH
from ordovoice.utils.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# DRUG LEXICON
# ============================================================================

@lru_cache(maxsize=4)
def load_drug_lexicon(lexicon_path: Optional[str] = None) -> Tuple[DrugEntry, ...]:
    """
    Load the drug lexicon from data/drug_lexicon.json
    Cached so every caller shares the same read-only table

    Args:
        lexicon_path: Alternate JSON file (defaults to ORDOVOICE_LEXICON_PATH
            or the packaged lexicon)

    Returns:
        Tuple of DrugEntry objects in declaration order

    Raises:
        FileNotFoundError: If the lexicon file doesn't exist
        ValueError: If the file content is not a valid lexicon
    """
    path = Path(lexicon_path) if lexicon_path else LEXICON_PATH

    if not path.exists():
        raise FileNotFoundError(f"Drug lexicon not found at {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict) or not isinstance(data.get("drugs"), list):
        raise ValueError(f"Drug lexicon at {path} must contain a 'drugs' list")

    entries = tuple(DrugEntry(**entry) for entry in data["drugs"])
    logger.info("Loaded %d drug entries from %s", len(entries), path)

    return entries


def get_drug_by_alias(alias: str) -> Optional[DrugEntry]:
    """
    Get the first lexicon entry (declaration order) owning an alias
    Case-insensitive matching

    Args:
        alias: Surface form (e.g., "rocephine")

    Returns:
        DrugEntry or None if no entry lists this alias
    """
    alias_lower = alias.strip().lower()

    for entry in load_drug_lexicon():
        if any(a.lower() == alias_lower for a in entry.aliases):
            return entry

    return None
