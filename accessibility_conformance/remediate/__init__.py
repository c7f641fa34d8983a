# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Remediation classification module.

This module scores how reliably audit issues can be fixed automatically and
classifies them as autofix, quickfix or manual.
"""

from accessibility_conformance.remediate.fix_classifier import (
    calculate_confidence,
    classify_issue,
    confidence_label,
    enrich_issue,
    risk_from_severity,
)
from accessibility_conformance.remediate.issue_context import IssueContextResolver

__all__ = [
    "calculate_confidence",
    "classify_issue",
    "confidence_label",
    "enrich_issue",
    "risk_from_severity",
    "IssueContextResolver",
]
