# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Report review module.

This module turns human verification results into editable report drafts
with an audit trail and a conformance summary.
"""

from accessibility_conformance.review.executive_summary import (
    generate_executive_summary,
    summary_band,
)
from accessibility_conformance.review.report_review import (
    ReportReviewService,
    determine_change_type,
    infer_document_type,
    summarize_reviews,
)

__all__ = [
    "generate_executive_summary",
    "summary_band",
    "ReportReviewService",
    "determine_change_type",
    "infer_document_type",
    "summarize_reviews",
]
