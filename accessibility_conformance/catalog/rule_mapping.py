# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Rule-to-criterion mapping.

Maps audit rule codes (platform EPUB/RSC rules and standard axe/ACE rules) to
the WCAG success criteria they count against.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from accessibility_conformance.utils.report_models import AuditIssue

RULE_TO_CRITERIA: Dict[str, List[str]] = {
    # Resource errors (epubcheck), tracked as unmapped
    "RSC-001": [],
    "RSC-002": [],
    "RSC-003": [],
    "RSC-005": [],
    "RSC-006": [],
    "RSC-007": [],
    "RSC-008": [],
    "RSC-010": [],
    "RSC-011": [],
    "RSC-012": [],
    "RSC-015": [],
    "RSC-016": [],
    "RSC-017": [],
    # Structure
    "EPUB-STRUCT-001": ["1.3.1"],
    "EPUB-STRUCT-002": ["1.3.1"],
    "EPUB-STRUCT-003": ["1.3.1"],
    "EPUB-STRUCT-004": ["1.3.1"],
    "EPUB-IMG-001": ["1.1.1"],
    "EPUB-PAGE-001": ["2.4.5"],
    "EPUB-LANG-001": ["3.1.1"],
    "EPUB-TITLE-001": ["2.4.2"],
    # Metadata
    "EPUB-META-001": ["3.1.1"],
    "EPUB-META-002": [],
    "EPUB-META-003": [],
    "EPUB-META-004": [],
    # Semantics
    "EPUB-SEM-001": ["3.1.1", "3.1.2"],
    "EPUB-SEM-002": ["2.4.4"],
    "EPUB-NAV-001": ["2.4.1"],
    "EPUB-FIG-001": ["1.1.1"],
    # Images and non-text content
    "img-alt": ["1.1.1"],
    "area-alt": ["1.1.1"],
    "input-image-alt": ["1.1.1"],
    "object-alt": ["1.1.1"],
    "svg-img-alt": ["1.1.1"],
    # Document language
    "html-has-lang": ["3.1.1"],
    "html-lang-valid": ["3.1.1"],
    "valid-lang": ["3.1.2"],
    # Headings
    "heading-order": ["1.3.1", "2.4.6"],
    "empty-heading": ["1.3.1", "2.4.6"],
    "p-as-heading": ["1.3.1"],
    # Lists
    "list": ["1.3.1"],
    "listitem": ["1.3.1"],
    "definition-list": ["1.3.1"],
    # Tables
    "table-duplicate-name": ["1.3.1"],
    "td-headers-attr": ["1.3.1", "4.1.1"],
    "th-has-data-cells": ["1.3.1"],
    "layout-table": ["1.3.1"],
    "scope-attr-valid": ["1.3.1"],
    "td-has-header": ["1.3.1"],
    # Links
    "link-name": ["2.4.4", "4.1.2"],
    "link-in-text-block": ["1.4.1"],
    "identical-links-same-purpose": ["2.4.4"],
    # Color and contrast
    "color-contrast": ["1.4.3"],
    "color-contrast-enhanced": ["1.4.6"],
    "use-of-color": ["1.4.1"],
    # Forms
    "label": ["1.3.1", "3.3.2", "4.1.2"],
    "label-title-only": ["3.3.2"],
    "button-name": ["4.1.2"],
    "input-button-name": ["4.1.2"],
    "select-name": ["4.1.2"],
    "textarea-label": ["4.1.2"],
    # ARIA
    "aria-allowed-attr": ["4.1.2"],
    "aria-required-attr": ["4.1.2"],
    "aria-required-children": ["1.3.1", "4.1.2"],
    "aria-required-parent": ["1.3.1", "4.1.2"],
    "aria-roles": ["4.1.2"],
    "aria-valid-attr-value": ["4.1.2"],
    "aria-valid-attr": ["4.1.2"],
    "aria-hidden-focus": ["4.1.2"],
    # Page title and landmarks
    "document-title": ["2.4.2"],
    "landmark-one-main": ["1.3.1"],
    "landmark-no-duplicate-banner": ["1.3.1"],
    "landmark-no-duplicate-contentinfo": ["1.3.1"],
    "region": ["1.3.1"],
    # Keyboard and focus
    "accesskeys": ["2.4.1"],
    "tabindex": ["2.4.3"],
    "focus-order-semantics": ["2.4.3"],
    # Parsing
    "duplicate-id": ["4.1.1"],
    "duplicate-id-active": ["4.1.1"],
    "duplicate-id-aria": ["4.1.1"],
    # Bypass blocks
    "bypass": ["2.4.1"],
    "skip-link": ["2.4.1"],
    # Timing and viewport
    "meta-refresh": ["2.2.1", "2.2.4", "3.2.5"],
    "meta-viewport": ["1.4.4"],
    # Media
    "audio-caption": ["1.2.2"],
    "video-caption": ["1.2.2"],
    "video-description": ["1.2.3", "1.2.5"],
}


class RuleMapper:
    """Case-insensitive lookup from rule code to criterion ids."""

    def __init__(self, table: Optional[Mapping[str, Sequence[str]]] = None):
        source = RULE_TO_CRITERIA if table is None else table
        self._table: Dict[str, Tuple[str, ...]] = {
            rule.lower(): tuple(criteria) for rule, criteria in source.items()
        }

    def criteria_for(self, rule_code: Optional[str]) -> List[str]:
        """
        Get the criteria a rule counts against.

        Args:
            rule_code: Audit rule code, any case

        Returns:
            List of criterion ids, empty for unknown or unmapped rules
        """
        if not rule_code:
            return []
        return list(self._table.get(rule_code.lower(), ()))

    def is_mapped(self, rule_code: Optional[str]) -> bool:
        return bool(self.criteria_for(rule_code))

    @property
    def mapped_rules(self) -> List[str]:
        return [rule for rule, criteria in self._table.items() if criteria]

    def partition(
        self, issues: Iterable[AuditIssue]
    ) -> Tuple[List[AuditIssue], List[AuditIssue]]:
        """
        Split issues into those with a criterion mapping and those without.

        An issue carrying explicit criterion tags counts as mapped.

        Args:
            issues: Normalized audit issues

        Returns:
            Tuple of (mapped, unmapped) issues
        """
        mapped: List[AuditIssue] = []
        unmapped: List[AuditIssue] = []
        for issue in issues:
            if issue.criteria or self.is_mapped(issue.rule_code):
                mapped.append(issue)
            else:
                unmapped.append(issue)
        return mapped, unmapped


# Criteria automated tools can only flag; a human has to confirm them
MANUAL_VERIFICATION_CRITERIA = frozenset(
    {"1.1.1", "1.3.1", "2.1.1", "2.4.1", "2.4.6", "3.1.2", "3.3.2"}
)

# Share of each criterion that automated checks can evaluate reliably
AUTOMATION_CAPABILITY = {
    "1.2.1": 70,
    "1.2.2": 75,
    "1.2.3": 65,
    "1.3.2": 75,
    "1.3.3": 70,
    "1.4.1": 75,
    "1.4.3": 95,
    "1.4.4": 80,
    "1.4.5": 70,
    "1.4.6": 89,
    "2.1.2": 80,
    "2.2.1": 75,
    "2.2.2": 80,
    "2.3.1": 85,
    "2.4.2": 89,
    "2.4.3": 75,
    "2.4.4": 70,
    "2.4.5": 85,
    "2.4.7": 85,
    "3.1.1": 92,
    "3.2.1": 80,
    "3.2.2": 80,
    "3.2.3": 85,
    "3.2.4": 85,
    "3.3.1": 75,
    "3.3.3": 70,
    "3.3.4": 75,
    "4.1.1": 98,
    "4.1.2": 85,
    "4.1.3": 80,
}

DEFAULT_AUTOMATION_CAPABILITY = 50


def requires_manual_verification(criterion_id: str) -> bool:
    return criterion_id in MANUAL_VERIFICATION_CRITERIA


def automation_capability(criterion_id: str) -> int:
    """Automation capability percentage, 0 for manual-only criteria."""
    if criterion_id in MANUAL_VERIFICATION_CRITERIA:
        return 0
    return AUTOMATION_CAPABILITY.get(criterion_id, DEFAULT_AUTOMATION_CAPABILITY)
