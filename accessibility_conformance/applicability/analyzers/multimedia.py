# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Multimedia applicability (1.2.x time-based media criteria).
"""

from typing import List

from accessibility_conformance.applicability.analyzers.base_analyzer import BaseTopicAnalyzer
from accessibility_conformance.utils.report_models import (
    ApplicabilitySuggestion,
    SuggestedStatus,
)

MEDIA_GROUP = "1.2.x"
IFRAME_ONLY_CONFIDENCE = 60
MEDIA_PRESENT_CONFIDENCE = 90


class MultimediaAnalyzer(BaseTopicAnalyzer):
    """Decides whether the time-based media criteria apply."""

    topic = "multimedia"

    def analyze(self) -> List[ApplicabilitySuggestion]:
        signals = self.signals
        media_files = signals.audio_files + signals.video_files
        checks = [
            self._check("No <audio> tags found", signals.has_audio),
            self._check("No <video> tags found", signals.has_video),
            self._check(
                "No <iframe> tags found",
                signals.has_iframes,
                "Could be embedded media" if signals.has_iframes else None,
            ),
            self._check(
                "No audio or video files in package",
                media_files > 0,
                f"{media_files} media file(s) in manifest" if media_files else None,
            ),
        ] + self._external_content_checks()

        if not signals.has_media and not signals.has_iframes:
            confidence = self.not_applicable_confidence(
                has_relevant_files=media_files > 0, has_relevant_markup=False
            )
            edge_cases = []
            if media_files:
                edge_cases.append("Media files are packaged but not referenced by any scanned page")
            if signals.has_external_urls:
                edge_cases.append("External links may point to audio or video content")
            return [
                self._suggestion(
                    MEDIA_GROUP,
                    SuggestedStatus.NOT_APPLICABLE,
                    confidence,
                    checks,
                    f"Scan found no multimedia content across {signals.scanned_count} of "
                    f"{signals.file_count} content files. No <audio>, <video>, or <iframe> "
                    "tags detected. Multimedia criteria (1.2.1-1.2.9) do not apply to this document.",
                    edge_cases,
                )
            ]

        if signals.has_iframes and not signals.has_media:
            return [
                self._suggestion(
                    MEDIA_GROUP,
                    SuggestedStatus.UNCERTAIN,
                    IFRAME_ONLY_CONFIDENCE,
                    checks,
                    "Found <iframe> elements which could contain embedded audio or video. "
                    "Manual inspection required to determine if multimedia criteria apply.",
                    ["Iframes detected - may contain external media"],
                )
            ]

        return [
            self._suggestion(
                MEDIA_GROUP,
                SuggestedStatus.APPLICABLE,
                MEDIA_PRESENT_CONFIDENCE,
                checks,
                "Audio and/or video content detected. Multimedia criteria (1.2.x) are applicable.",
            )
        ]
