# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Bypass blocks applicability (2.4.1).
"""

from typing import List

from accessibility_conformance.applicability.analyzers.base_analyzer import BaseTopicAnalyzer
from accessibility_conformance.utils.report_models import (
    ApplicabilitySuggestion,
    SuggestedStatus,
)

SMALL_DOCUMENT_FILES = 10
LARGE_DOCUMENT_FILES = 20
LARGE_DOCUMENT_CONFIDENCE = 60
NAVIGATION_CONFIDENCE = 70


class BypassBlocksAnalyzer(BaseTopicAnalyzer):
    """Decides whether repeated blocks need a bypass mechanism."""

    topic = "bypass_blocks"

    def analyze(self) -> List[ApplicabilitySuggestion]:
        signals = self.signals
        large = signals.file_count > LARGE_DOCUMENT_FILES
        checks = [
            self._check("No navigation blocks detected", signals.has_navigation_blocks),
            self._check(
                f"Document has {signals.file_count} files",
                False,
                "Large document may benefit from skip links" if large else None,
                warning=large,
            ),
        ] + self._external_content_checks()

        if not signals.has_navigation_blocks and signals.file_count < SMALL_DOCUMENT_FILES:
            return [
                self._suggestion(
                    "2.4.1",
                    SuggestedStatus.NOT_APPLICABLE,
                    self.not_applicable_confidence(
                        has_relevant_files=False, has_relevant_markup=False
                    ),
                    checks,
                    "No repetitive navigation blocks detected. Document appears to be a linear "
                    "reading structure. Bypass blocks not required.",
                )
            ]

        if large:
            return [
                self._suggestion(
                    "2.4.1",
                    SuggestedStatus.UNCERTAIN,
                    LARGE_DOCUMENT_CONFIDENCE,
                    checks,
                    "Large document with many files. Manual review recommended to determine if "
                    "a bypass mechanism would benefit users.",
                    ["Large document - may benefit from skip links"],
                )
            ]

        return [
            self._suggestion(
                "2.4.1",
                SuggestedStatus.UNCERTAIN,
                NAVIGATION_CONFIDENCE,
                checks,
                "Navigation structure detected. Review to determine if a bypass mechanism is needed.",
                ["Custom navigation detected"],
            )
        ]
