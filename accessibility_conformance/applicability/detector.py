# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Applicability (N/A) detection.

Scans unpacked content for structural signals and runs the topic analyzers to
produce advisory suggestions. Detection never raises: any failure yields an
empty suggestion list.
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Type

from accessibility_conformance.applicability.analyzers import TOPIC_ANALYZERS, BaseTopicAnalyzer
from accessibility_conformance.applicability.analyzers.base_analyzer import clamp_confidence
from accessibility_conformance.applicability.content_scanner import (
    ContentPackage,
    ContentSignals,
    scan_content,
)
from accessibility_conformance.utils.config import config_manager
from accessibility_conformance.utils.logging_helper import setup_logger, log_exception
from accessibility_conformance.utils.report_models import ApplicabilitySuggestion

# Configure module-level logger
logger = setup_logger(__name__)

COVERAGE_PENALTY_SCALE = 10
COVERAGE_PENALTY_FLOOR = 50


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def coverage_penalty(coverage: float) -> int:
    """Confidence points lost for scanning only part of the content."""
    if coverage >= 1.0:
        return 0
    return _round_half_up((1.0 - max(0.0, coverage)) * COVERAGE_PENALTY_SCALE)


def apply_coverage_penalty(
    suggestion: ApplicabilitySuggestion, signals: ContentSignals
) -> ApplicabilitySuggestion:
    """
    Reduce a suggestion's confidence for partial scan coverage.

    The penalty never takes confidence below 50; a confidence already below 50
    is left unchanged.

    Args:
        suggestion: Suggestion computed from the scanned fragments
        signals: Signals carrying coverage and fragment counts

    Returns:
        The adjusted suggestion (a copy when coverage is partial)
    """
    if signals.coverage >= 1.0:
        return suggestion

    penalty = coverage_penalty(signals.coverage)
    original = suggestion.confidence
    adjusted = max(min(original, COVERAGE_PENALTY_FLOOR), original - penalty)
    percent = _round_half_up(signals.coverage * 100)
    disclosure = (
        f" Coverage: only {signals.scanned_count} of {signals.file_count} content files "
        f"({percent}%) were scanned; confidence reduced to reflect unscanned content."
    )
    return suggestion.model_copy(
        update={
            "confidence": clamp_confidence(adjusted),
            "rationale": suggestion.rationale + disclosure,
        }
    )


class ApplicabilityDetector:
    """Runs every topic analyzer over scanned content signals."""

    def __init__(
        self,
        options: Optional[Dict[str, Any]] = None,
        analyzers: Optional[Sequence[Type[BaseTopicAnalyzer]]] = None,
    ):
        """
        Initialize the detector.

        Args:
            options: Overrides for the 'applicability' config section
            analyzers: Topic analyzer classes (default: all topics)
        """
        self.options = config_manager.get_config(options, section="applicability")
        self.analyzers = tuple(analyzers) if analyzers is not None else TOPIC_ANALYZERS

    def suggestions_for(self, signals: ContentSignals) -> List[ApplicabilitySuggestion]:
        """
        Produce coverage-adjusted suggestions from already scanned signals.

        Args:
            signals: Structural signals

        Returns:
            List of applicability suggestions in topic order
        """
        suggestions: List[ApplicabilitySuggestion] = []
        for analyzer_class in self.analyzers:
            analyzer = analyzer_class(signals, self.options)
            for suggestion in analyzer.analyze():
                suggestions.append(apply_coverage_penalty(suggestion, signals))
        return suggestions

    def detect(self, content: ContentPackage) -> List[ApplicabilitySuggestion]:
        """
        Detect which criteria may not apply to the content.

        Args:
            content: Unpacked document content

        Returns:
            List of applicability suggestions, empty on any failure
        """
        if not self.options.get("enabled", True):
            logger.debug("Applicability detection disabled by configuration")
            return []

        try:
            signals = scan_content(content, int(self.options.get("max_fragments", 50)))
            logger.info(
                "Content analysis complete: type=%s, scanned %s of %s files",
                signals.document_type,
                signals.scanned_count,
                signals.file_count,
            )
            suggestions = self.suggestions_for(signals)
        except Exception as e:
            log_exception(logger, e, "Applicability detection failed")
            return []

        logger.info("Generated %s applicability suggestions", len(suggestions))
        return suggestions
