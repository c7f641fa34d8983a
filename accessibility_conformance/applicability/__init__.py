# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Applicability detection module.

This module scans document content for structural signals and suggests which
success criteria may not apply. Suggestions are advisory only.
"""

from accessibility_conformance.applicability.content_scanner import (
    ContentPackage,
    ContentSignals,
    scan_content,
)
from accessibility_conformance.applicability.detector import (
    ApplicabilityDetector,
    apply_coverage_penalty,
    coverage_penalty,
)

__all__ = [
    "ContentPackage",
    "ContentSignals",
    "scan_content",
    "ApplicabilityDetector",
    "apply_coverage_penalty",
    "coverage_penalty",
]
