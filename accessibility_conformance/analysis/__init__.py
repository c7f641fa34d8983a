# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Conformance analysis module.

This module maps audit issues onto success criteria, derives a conformance
status per criterion and caches the analysis of each job.
"""

from accessibility_conformance.analysis.analysis_cache import AnalysisCache
from accessibility_conformance.analysis.conformance_analyzer import ConformanceAnalyzer
from accessibility_conformance.analysis.issue_adapter import (
    job_payload,
    normalize_issue,
    normalize_issues,
    normalize_remediation_changes,
)
from accessibility_conformance.analysis.job_analysis import (
    JobAnalysisService,
    build_snapshot,
    load_job_content,
)

__all__ = [
    "AnalysisCache",
    "ConformanceAnalyzer",
    "job_payload",
    "normalize_issue",
    "normalize_issues",
    "normalize_remediation_changes",
    "JobAnalysisService",
    "build_snapshot",
    "load_job_content",
]
