# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Base Applicability Analyzer.

This module provides the base class for all topic analyzers that turn content
signals into applicability suggestions.
"""

from typing import Any, Dict, List, Optional

from accessibility_conformance.applicability.content_scanner import ContentSignals
from accessibility_conformance.utils.report_models import (
    ApplicabilitySuggestion,
    CheckResult,
    DetectionCheck,
    SuggestedStatus,
)

BASE_CONFIDENCE = 50
MAX_CONFIDENCE = 95
MIN_CONFIDENCE = 0

NO_RELEVANT_FILES_BONUS = 15
NO_RELEVANT_MARKUP_BONUS = 15
TEXT_ONLY_BONUS = 10
NO_EXTERNAL_URLS_BONUS = 10
EXTERNAL_URLS_PENALTY = 20
SCRIPT_PENALTY = 15
IFRAME_PENALTY = 10


def clamp_confidence(value: float) -> int:
    return int(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, round(value))))


class BaseTopicAnalyzer:
    """Base class for applicability topic analyzers."""

    topic = "base"

    def __init__(self, signals: ContentSignals, options: Optional[Dict[str, Any]] = None):
        """
        Initialize the analyzer.

        Args:
            signals: Structural signals scanned from the content
            options: Analyzer options
        """
        self.signals = signals
        self.options = options or {}

    def analyze(self) -> List[ApplicabilitySuggestion]:
        """
        Produce the suggestions for this topic.

        Returns:
            List of applicability suggestions
        """
        # This method should be overridden by subclasses
        raise NotImplementedError("Subclasses must implement analyze() method")

    def not_applicable_confidence(self, has_relevant_files: bool, has_relevant_markup: bool) -> int:
        """
        Score a not-applicable conclusion from the absence of signals.

        Args:
            has_relevant_files: Whether the manifest holds files relevant to the topic
            has_relevant_markup: Whether the markup holds elements relevant to the topic

        Returns:
            Confidence clamped to [0, 95]
        """
        signals = self.signals
        confidence = BASE_CONFIDENCE

        if not has_relevant_files:
            confidence += NO_RELEVANT_FILES_BONUS
        if not has_relevant_markup:
            confidence += NO_RELEVANT_MARKUP_BONUS
        if signals.document_type == "text":
            confidence += TEXT_ONLY_BONUS

        if signals.has_external_urls:
            confidence -= EXTERNAL_URLS_PENALTY
        else:
            confidence += NO_EXTERNAL_URLS_BONUS
        if signals.has_scripts:
            confidence -= SCRIPT_PENALTY
        if signals.has_iframes:
            confidence -= IFRAME_PENALTY

        return clamp_confidence(confidence)

    @staticmethod
    def _check(check: str, failed: bool, details: Optional[str] = None, warning: bool = False) -> DetectionCheck:
        if warning:
            result = CheckResult.WARNING
        else:
            result = CheckResult.FAIL if failed else CheckResult.PASS
        return DetectionCheck(check=check, result=result, details=details or "")

    def _external_content_checks(self) -> List[DetectionCheck]:
        signals = self.signals
        return [
            self._check(
                "No external URLs referenced",
                signals.has_external_urls,
                f"{signals.external_url_count} external reference(s) could load remote content"
                if signals.has_external_urls
                else None,
            ),
            self._check(
                "No <script> tags found",
                signals.has_scripts,
                "Scripts can add content or behavior at runtime" if signals.has_scripts else None,
            ),
        ]

    def _suggestion(
        self,
        criterion_id: str,
        status: SuggestedStatus,
        confidence: int,
        checks: List[DetectionCheck],
        rationale: str,
        edge_cases: Optional[List[str]] = None,
    ) -> ApplicabilitySuggestion:
        return ApplicabilitySuggestion(
            criterion_id=criterion_id,
            suggested_status=status,
            confidence=clamp_confidence(confidence),
            detection_checks=list(checks),
            rationale=rationale,
            edge_cases=list(edge_cases or []),
        )
