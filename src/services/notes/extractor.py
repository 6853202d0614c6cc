"""Partition accumulated model output into the four release-notes sections.

Section boundaries are only known in hindsight: a section ends where a label
that ranks after it in canonical order shows up, or at end of text. Extraction
therefore runs once over the complete buffer, never per token.

The scan is a single pass that records every label occurrence as a marker.
Boundaries are then resolved over the ordered marker list:

- a section starts right after the *first* occurrence of its label;
- it ends at the first later marker whose label ranks after it;
- repeated labels, or lower-ranked labels appearing inside a section, are
  absorbed into that section's body.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from schemas.notes import (
    CONTRIBUTORS_FALLBACK,
    DEVELOPER_FALLBACK,
    MARKETING_FALLBACK,
    RELATED_ISSUES_FALLBACK,
    ExtractedNotes,
)


@dataclass(frozen=True, slots=True)
class SectionLabel:
    marker: str
    field: str
    fallback: str


# Canonical order: rank is the index in this tuple.
SECTION_LABELS: tuple[SectionLabel, ...] = (
    SectionLabel("DEVELOPER_NOTES:", "developer", DEVELOPER_FALLBACK),
    SectionLabel("MARKETING_NOTES:", "marketing", MARKETING_FALLBACK),
    SectionLabel("CONTRIBUTORS:", "contributors", CONTRIBUTORS_FALLBACK),
    SectionLabel("RELATED_ISSUES:", "related_issues", RELATED_ISSUES_FALLBACK),
)

# One group per label; the matched group number is the rank plus one. Case
# folding can match text whose upper-casing differs from the marker.
_LABEL_PATTERN = re.compile(
    "|".join(f"({re.escape(label.marker)})" for label in SECTION_LABELS),
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class _Marker:
    rank: int
    start: int  # offset of the label itself
    end: int  # offset just past the label, where the body begins


def _scan_markers(text: str) -> list[_Marker]:
    return [
        _Marker(
            rank=match.lastindex - 1,
            start=match.start(),
            end=match.end(),
        )
        for match in _LABEL_PATTERN.finditer(text)
    ]


def split_sections(text: str) -> dict[str, str]:
    """Return the raw (trimmed, possibly empty) body of every section."""
    markers = _scan_markers(text)
    first_index: dict[int, int] = {}
    for index, marker in enumerate(markers):
        first_index.setdefault(marker.rank, index)

    sections: dict[str, str] = {}
    for rank, label in enumerate(SECTION_LABELS):
        index = first_index.get(rank)
        if index is None:
            sections[label.field] = ""
            continue
        body_start = markers[index].end
        body_end = len(text)
        for later in markers[index + 1 :]:
            if later.rank > rank:
                body_end = later.start
                break
        sections[label.field] = text[body_start:body_end].strip()
    return sections


def extract_notes(full_text: str) -> ExtractedNotes:
    """Extract the four sections, substituting fallbacks for empty ones."""
    sections = split_sections(full_text)
    return ExtractedNotes(
        **{
            label.field: sections[label.field] or label.fallback
            for label in SECTION_LABELS
        }
    )
