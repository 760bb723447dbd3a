"""
Segment Splitter
Cuts dictated text into blocks and blocks into one sub-segment per dose
"""

import re
from typing import List

from ordovoice.services.field_extractors import DOSE_RE


CONNECTOR_RE = re.compile(r"\b(?:et|puis|plus)\b|,|;")


def split_blocks(normalized_text: str) -> List[str]:
    """
    Split text into prescription blocks separated by blank lines

    Lines of one block are joined with a single space.
    """
    blocks: List[str] = []
    buffer: List[str] = []

    for line in (normalized_text or "").split("\n"):
        stripped = line.strip()
        if stripped:
            buffer.append(stripped)
        elif buffer:
            blocks.append(" ".join(buffer))
            buffer = []

    if buffer:
        blocks.append(" ".join(buffer))

    return blocks


def split_multi_drug_segment(segment: str) -> List[str]:
    """
    Split a block holding several doses into one sub-segment per treatment

    Each dose owns the text from the last connector (et/puis/plus/,/;)
    after the previous dose, up to the first connector before the next
    dose. Segments with zero or one dose are returned unchanged.

    Example:
        >>> split_multi_drug_segment("ceftriaxone 1 g en vvp et 4 g de tazocilline")
        ['ceftriaxone 1 g en vvp', '4 g de tazocilline']
    """
    matches = list(DOSE_RE.finditer(segment))

    if len(matches) <= 1:
        return [segment]

    pieces: List[str] = []

    for i, current in enumerate(matches):
        prev_dose_end = matches[i - 1].end() if i > 0 else 0
        next_dose_start = matches[i + 1].start() if i < len(matches) - 1 else len(segment)

        # Left boundary: end of the last connector before this dose
        start = prev_dose_end
        for connector in CONNECTOR_RE.finditer(segment, prev_dose_end, current.start()):
            start = connector.end()

        # Right boundary: first connector before the next dose
        end = next_dose_start
        connector = CONNECTOR_RE.search(segment, current.end(), next_dose_start)
        if connector:
            end = connector.start()

        piece = segment[start:end].strip()
        if piece and piece not in pieces:
            pieces.append(piece)

    return pieces
