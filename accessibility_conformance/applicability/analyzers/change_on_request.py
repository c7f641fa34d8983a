# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Context change applicability (3.2.1, 3.2.2, 3.2.5).
"""

from typing import List

from accessibility_conformance.applicability.analyzers.base_analyzer import BaseTopicAnalyzer
from accessibility_conformance.utils.report_models import (
    ApplicabilitySuggestion,
    SuggestedStatus,
)

CHANGE_CRITERIA = ("3.2.1", "3.2.2", "3.2.5")
INTERACTIVE_CONFIDENCE = 90


class ChangeOnRequestAnalyzer(BaseTopicAnalyzer):
    """Decides whether focus and input context-change criteria apply."""

    topic = "change_on_request"

    def analyze(self) -> List[ApplicabilitySuggestion]:
        signals = self.signals
        interactive = signals.has_interactive_elements or signals.has_forms
        checks = [
            self._check("No interactive elements found", signals.has_interactive_elements),
            self._check("No form elements found", signals.has_forms),
        ] + self._external_content_checks()

        if not interactive:
            status = SuggestedStatus.NOT_APPLICABLE
            confidence = self.not_applicable_confidence(
                has_relevant_files=False, has_relevant_markup=False
            )
            rationale = (
                "No interactive elements or forms detected. Change criteria (3.2.x) do not "
                "apply to static content."
            )
            edge_cases = ["Scripts may attach event handlers"] if signals.has_scripts else []
        else:
            status = SuggestedStatus.APPLICABLE
            confidence = INTERACTIVE_CONFIDENCE
            rationale = "Interactive elements or forms detected. Change criteria (3.2.x) are applicable."
            edge_cases = []

        return [
            self._suggestion(criterion_id, status, confidence, checks, rationale, edge_cases)
            for criterion_id in CHANGE_CRITERIA
        ]
