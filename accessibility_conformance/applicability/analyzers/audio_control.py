# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Audio control applicability (1.4.2).
"""

from typing import List

from accessibility_conformance.applicability.analyzers.base_analyzer import BaseTopicAnalyzer
from accessibility_conformance.utils.report_models import (
    ApplicabilitySuggestion,
    SuggestedStatus,
)

AUTOPLAY_CONFIDENCE = 85
AUDIO_PRESENT_CONFIDENCE = 50


class AudioControlAnalyzer(BaseTopicAnalyzer):
    """Decides whether automatically playing audio needs a control."""

    topic = "audio_control"

    def analyze(self) -> List[ApplicabilitySuggestion]:
        signals = self.signals
        checks = [
            self._check("No <audio> tags found", signals.has_audio),
            self._check(
                "No audio files in package",
                signals.audio_files > 0,
                f"{signals.audio_files} audio file(s) in manifest" if signals.audio_files else None,
            ),
            self._check(
                "No autoplay attribute on audio",
                signals.has_autoplay_audio,
                "Autoplay can also be set via JavaScript",
                warning=signals.has_audio and not signals.has_autoplay_audio,
            ),
        ] + self._external_content_checks()

        if not signals.has_audio:
            confidence = self.not_applicable_confidence(
                has_relevant_files=signals.audio_files > 0, has_relevant_markup=False
            )
            edge_cases = []
            if signals.has_scripts:
                edge_cases.append("Scripts could start audio playback")
            return [
                self._suggestion(
                    "1.4.2",
                    SuggestedStatus.NOT_APPLICABLE,
                    confidence,
                    checks,
                    "No audio content detected. Criterion 1.4.2 (Audio Control) does not apply.",
                    edge_cases,
                )
            ]

        if signals.has_autoplay_audio:
            return [
                self._suggestion(
                    "1.4.2",
                    SuggestedStatus.APPLICABLE,
                    AUTOPLAY_CONFIDENCE,
                    checks,
                    "Audio with the autoplay attribute detected. Criterion 1.4.2 (Audio Control) applies.",
                )
            ]

        return [
            self._suggestion(
                "1.4.2",
                SuggestedStatus.UNCERTAIN,
                AUDIO_PRESENT_CONFIDENCE,
                checks,
                "Audio content detected, but cannot determine if it autoplays. "
                "Manual verification required.",
                ["Cannot detect autoplay behavior"],
            )
        ]
