# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
WCAG Success Criteria Catalog.

This module provides the WCAG 2.1 success criteria table, the report editions
that select subsets of it, and an immutable catalog object that components
receive instead of reading module globals.
"""

from functools import lru_cache
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from accessibility_conformance.utils.report_models import Edition, SuccessCriterion

# WCAG 2.1 Success Criteria
WCAG_CRITERIA = {
    # Perceivable
    "1.1.1": {"name": "Non-text Content", "level": "A"},
    "1.2.1": {"name": "Audio-only and Video-only (Prerecorded)", "level": "A"},
    "1.2.2": {"name": "Captions (Prerecorded)", "level": "A"},
    "1.2.3": {"name": "Audio Description or Media Alternative", "level": "A"},
    "1.2.4": {"name": "Captions (Live)", "level": "AA"},
    "1.2.5": {"name": "Audio Description", "level": "AA"},
    "1.2.6": {"name": "Sign Language", "level": "AAA"},
    "1.2.7": {"name": "Extended Audio Description", "level": "AAA"},
    "1.2.8": {"name": "Media Alternative", "level": "AAA"},
    "1.2.9": {"name": "Audio-only (Live)", "level": "AAA"},
    "1.3.1": {"name": "Info and Relationships", "level": "A"},
    "1.3.2": {"name": "Meaningful Sequence", "level": "A"},
    "1.3.3": {"name": "Sensory Characteristics", "level": "A"},
    "1.3.4": {"name": "Orientation", "level": "AA"},
    "1.3.5": {"name": "Identify Input Purpose", "level": "AA"},
    "1.3.6": {"name": "Identify Purpose", "level": "AAA"},
    "1.4.1": {"name": "Use of Color", "level": "A"},
    "1.4.2": {"name": "Audio Control", "level": "A"},
    "1.4.3": {"name": "Contrast (Minimum)", "level": "AA"},
    "1.4.4": {"name": "Resize Text", "level": "AA"},
    "1.4.5": {"name": "Images of Text", "level": "AA"},
    "1.4.6": {"name": "Contrast (Enhanced)", "level": "AAA"},
    "1.4.7": {"name": "Low or No Background Audio", "level": "AAA"},
    "1.4.8": {"name": "Visual Presentation", "level": "AAA"},
    "1.4.9": {"name": "Images of Text (No Exception)", "level": "AAA"},
    "1.4.10": {"name": "Reflow", "level": "AA"},
    "1.4.11": {"name": "Non-text Contrast", "level": "AA"},
    "1.4.12": {"name": "Text Spacing", "level": "AA"},
    "1.4.13": {"name": "Content on Hover or Focus", "level": "AA"},
    # Operable
    "2.1.1": {"name": "Keyboard", "level": "A"},
    "2.1.2": {"name": "No Keyboard Trap", "level": "A"},
    "2.1.3": {"name": "Keyboard (No Exception)", "level": "AAA"},
    "2.1.4": {"name": "Character Key Shortcuts", "level": "A"},
    "2.2.1": {"name": "Timing Adjustable", "level": "A"},
    "2.2.2": {"name": "Pause, Stop, Hide", "level": "A"},
    "2.2.3": {"name": "No Timing", "level": "AAA"},
    "2.2.4": {"name": "Interruptions", "level": "AAA"},
    "2.2.5": {"name": "Re-authenticating", "level": "AAA"},
    "2.2.6": {"name": "Timeouts", "level": "AAA"},
    "2.3.1": {"name": "Three Flashes or Below Threshold", "level": "A"},
    "2.3.2": {"name": "Three Flashes", "level": "AAA"},
    "2.3.3": {"name": "Animation from Interactions", "level": "AAA"},
    "2.4.1": {"name": "Bypass Blocks", "level": "A"},
    "2.4.2": {"name": "Page Titled", "level": "A"},
    "2.4.3": {"name": "Focus Order", "level": "A"},
    "2.4.4": {"name": "Link Purpose (In Context)", "level": "A"},
    "2.4.5": {"name": "Multiple Ways", "level": "AA"},
    "2.4.6": {"name": "Headings and Labels", "level": "AA"},
    "2.4.7": {"name": "Focus Visible", "level": "AA"},
    "2.4.8": {"name": "Location", "level": "AAA"},
    "2.4.9": {"name": "Link Purpose (Link Only)", "level": "AAA"},
    "2.4.10": {"name": "Section Headings", "level": "AAA"},
    "2.5.1": {"name": "Pointer Gestures", "level": "A"},
    "2.5.2": {"name": "Pointer Cancellation", "level": "A"},
    "2.5.3": {"name": "Label in Name", "level": "A"},
    "2.5.4": {"name": "Motion Actuation", "level": "A"},
    "2.5.5": {"name": "Target Size", "level": "AAA"},
    "2.5.6": {"name": "Concurrent Input Mechanisms", "level": "AAA"},
    # Understandable
    "3.1.1": {"name": "Language of Page", "level": "A"},
    "3.1.2": {"name": "Language of Parts", "level": "AA"},
    "3.1.3": {"name": "Unusual Words", "level": "AAA"},
    "3.1.4": {"name": "Abbreviations", "level": "AAA"},
    "3.1.5": {"name": "Reading Level", "level": "AAA"},
    "3.1.6": {"name": "Pronunciation", "level": "AAA"},
    "3.2.1": {"name": "On Focus", "level": "A"},
    "3.2.2": {"name": "On Input", "level": "A"},
    "3.2.3": {"name": "Consistent Navigation", "level": "AA"},
    "3.2.4": {"name": "Consistent Identification", "level": "AA"},
    "3.2.5": {"name": "Change on Request", "level": "AAA"},
    "3.3.1": {"name": "Error Identification", "level": "A"},
    "3.3.2": {"name": "Labels or Instructions", "level": "A"},
    "3.3.3": {"name": "Error Suggestion", "level": "AA"},
    "3.3.4": {"name": "Error Prevention (Legal, Financial, Data)", "level": "AA"},
    "3.3.5": {"name": "Help", "level": "AAA"},
    "3.3.6": {"name": "Error Prevention (All)", "level": "AAA"},
    # Robust
    "4.1.1": {"name": "Parsing", "level": "A"},
    "4.1.2": {"name": "Name, Role, Value", "level": "A"},
    "4.1.3": {"name": "Status Messages", "level": "AA"},
}

# Principle is the leading digit of the criterion id
PRINCIPLES = {
    "1": "Perceivable",
    "2": "Operable",
    "3": "Understandable",
    "4": "Robust",
}

DEFAULT_LEVELS = frozenset({"A", "AA"})

EDITIONS = {
    "VPAT2.5-WCAG": {"name": "VPAT 2.5 WCAG Edition", "levels": ("A", "AA")},
    "VPAT2.5-508": {"name": "VPAT 2.5 Section 508 Edition", "levels": ("A", "AA")},
    "VPAT2.5-EU": {"name": "VPAT 2.5 EU (EN 301 549) Edition", "levels": ("A", "AA")},
    "VPAT2.5-INT": {"name": "VPAT 2.5 International Edition", "levels": ("A", "AA", "AAA")},
}


class CriteriaCatalog:
    """
    Immutable view over the success criteria and edition profiles.

    Iteration yields criteria in catalog order.
    """

    def __init__(
        self,
        criteria: Mapping[str, Mapping[str, str]],
        editions: Mapping[str, Mapping[str, object]],
    ):
        items: List[Tuple[str, SuccessCriterion]] = []
        for criterion_id, info in criteria.items():
            items.append(
                (
                    criterion_id,
                    SuccessCriterion(
                        id=criterion_id,
                        name=info["name"],
                        level=info["level"],
                        category=info.get("category")
                        or PRINCIPLES.get(criterion_id.split(".")[0], "Robust"),
                    ),
                )
            )
        self._criteria: Tuple[SuccessCriterion, ...] = tuple(c for _, c in items)
        self._by_id: Dict[str, SuccessCriterion] = dict(items)
        self._editions: Dict[str, Edition] = {
            code: Edition(code=code, name=str(info["name"]), levels=frozenset(info["levels"]))
            for code, info in editions.items()
        }

    def __iter__(self) -> Iterator[SuccessCriterion]:
        return iter(self._criteria)

    def __len__(self) -> int:
        return len(self._criteria)

    def __contains__(self, criterion_id: object) -> bool:
        return criterion_id in self._by_id

    def get(self, criterion_id: str) -> Optional[SuccessCriterion]:
        """Return the criterion with the given dotted id, or None."""
        return self._by_id.get(criterion_id)

    @property
    def editions(self) -> Tuple[Edition, ...]:
        return tuple(self._editions.values())

    def edition(self, code: Optional[str]) -> Edition:
        """
        Resolve an edition code.

        Unknown or missing codes resolve to a Level A + AA profile.

        Args:
            code: Edition code such as 'VPAT2.5-INT'

        Returns:
            The matching Edition
        """
        if code and code in self._editions:
            return self._editions[code]
        return Edition(code=code or "default", name="WCAG 2.1 Level AA", levels=DEFAULT_LEVELS)

    def criteria_for_edition(self, code: Optional[str]) -> List[SuccessCriterion]:
        """
        Get the criteria an edition requires.

        Args:
            code: Edition code

        Returns:
            Criteria whose level the edition includes, in catalog order
        """
        levels = self.edition(code).levels
        return [c for c in self._criteria if c.level in levels]


@lru_cache(maxsize=1)
def default_catalog() -> CriteriaCatalog:
    """Build the WCAG 2.1 catalog once per process."""
    return CriteriaCatalog(WCAG_CRITERIA, EDITIONS)
