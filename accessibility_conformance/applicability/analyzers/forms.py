# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Input assistance applicability (3.3.1 - 3.3.4).
"""

from typing import List

from accessibility_conformance.applicability.analyzers.base_analyzer import BaseTopicAnalyzer
from accessibility_conformance.utils.report_models import (
    ApplicabilitySuggestion,
    SuggestedStatus,
)

FORM_CRITERIA = ("3.3.1", "3.3.2", "3.3.3", "3.3.4")
FORMS_PRESENT_CONFIDENCE = 90


class FormsAnalyzer(BaseTopicAnalyzer):
    """Decides whether the input assistance criteria apply."""

    topic = "forms"

    def analyze(self) -> List[ApplicabilitySuggestion]:
        signals = self.signals
        checks = [
            self._check("No form elements found", signals.has_forms),
        ] + self._external_content_checks()

        if not signals.has_forms:
            status = SuggestedStatus.NOT_APPLICABLE
            confidence = self.not_applicable_confidence(
                has_relevant_files=False, has_relevant_markup=False
            )
            rationale = "No form elements detected. Input assistance criteria (3.3.x) do not apply."
            edge_cases = ["Scripts could inject form controls"] if signals.has_scripts else []
        else:
            status = SuggestedStatus.APPLICABLE
            confidence = FORMS_PRESENT_CONFIDENCE
            rationale = "Form elements detected. Input assistance criteria (3.3.x) are applicable."
            edge_cases = []

        return [
            self._suggestion(criterion_id, status, confidence, checks, rationale, edge_cases)
            for criterion_id in FORM_CRITERIA
        ]
