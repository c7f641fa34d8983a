# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Fix confidence scoring and classification.

Scores how reliably an issue can be fixed automatically and classifies it as
autofix, quickfix or manual.
"""

from typing import Optional

from accessibility_conformance.utils.logging_helper import setup_logger
from accessibility_conformance.utils.report_models import (
    AuditIssue,
    ClassifiedIssue,
    FixType,
    IssueContext,
    RiskLevel,
)

# Configure module-level logger
logger = setup_logger(__name__)

BASE_CONFIDENCE = 0.5

TABLE_RULES = frozenset({"EPUB-STRUCT-002"})
IMAGE_RULES = frozenset({"EPUB-IMG-001", "EPUB-A11Y-001"})

TABLE_CONFIDENCE = {"simple": 0.95, "complex": 0.70}
TABLE_DEFAULT_CONFIDENCE = 0.80

IMAGE_CONFIDENCE = {
    "decorative": 0.98,
    "content": 0.60,
    "chart": 0.40,
    "diagram": 0.40,
}
IMAGE_DEFAULT_CONFIDENCE = 0.65

# Calibrated confidence for rules whose fix does not depend on context
RULE_CONFIDENCE = {
    "EPUB-SEM-001": 0.90,
    "EPUB-LANG-001": 0.90,
    "EPUB-META-001": 0.95,
    "EPUB-META-002": 0.92,
    "EPUB-META-003": 0.88,
    "EPUB-META-004": 0.90,
    "EPUB-SEM-002": 0.75,
    "EPUB-STRUCT-003": 0.85,
    "EPUB-STRUCT-004": 0.88,
    "EPUB-NAV-001": 0.90,
    "EPUB-FIG-001": 0.82,
}

RISK_VALUES = {
    RiskLevel.LOW.value: 0.1,
    RiskLevel.MEDIUM.value: 0.5,
    RiskLevel.HIGH.value: 0.9,
}

AUTOFIX_MIN_CONFIDENCE = 0.95
AUTOFIX_MAX_RISK = 0.1
QUICKFIX_MIN_CONFIDENCE = 0.70


def normalize_rule_code(rule_code: Optional[str]) -> str:
    return (rule_code or "").strip().upper().replace("_", "-")


def is_table_rule(rule_code: Optional[str]) -> bool:
    return normalize_rule_code(rule_code) in TABLE_RULES


def is_image_rule(rule_code: Optional[str]) -> bool:
    return normalize_rule_code(rule_code) in IMAGE_RULES


def calculate_confidence(rule_code: Optional[str], context: Optional[IssueContext] = None) -> float:
    """
    Calculate how reliably an issue can be fixed automatically.

    Args:
        rule_code: Audit rule code
        context: Optional structural context (table type or image type)

    Returns:
        Confidence in [0.0, 1.0]
    """
    code = normalize_rule_code(rule_code)
    confidence = BASE_CONFIDENCE

    if code in TABLE_RULES:
        table_type = context.table_type if context else None
        confidence = TABLE_CONFIDENCE.get(table_type or "", TABLE_DEFAULT_CONFIDENCE)
    elif code in IMAGE_RULES:
        image_type = context.image_type if context else None
        confidence = IMAGE_CONFIDENCE.get(image_type or "", IMAGE_DEFAULT_CONFIDENCE)
    elif code in RULE_CONFIDENCE:
        confidence = RULE_CONFIDENCE[code]

    return min(1.0, max(0.0, confidence))


def risk_from_severity(severity: Optional[str]) -> RiskLevel:
    """Map an issue severity to remediation risk."""
    if severity == "critical":
        return RiskLevel.HIGH
    if severity == "major":
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def classify_issue(confidence: float, risk_level: str = RiskLevel.MEDIUM.value) -> FixType:
    """
    Classify an issue into a fix type.

    Args:
        confidence: Fix confidence in [0.0, 1.0]
        risk_level: 'low', 'medium' or 'high'; anything else is treated as high

    Returns:
        FixType for the issue
    """
    risk = RISK_VALUES.get(getattr(risk_level, "value", risk_level), RISK_VALUES["high"])

    if confidence >= AUTOFIX_MIN_CONFIDENCE and risk <= AUTOFIX_MAX_RISK:
        return FixType.AUTOFIX
    if confidence >= QUICKFIX_MIN_CONFIDENCE:
        return FixType.QUICKFIX
    return FixType.MANUAL


def confidence_label(confidence: float) -> str:
    """Human-readable band for a confidence value."""
    if confidence >= 0.95:
        return "Very High"
    if confidence >= 0.85:
        return "High"
    if confidence >= 0.70:
        return "Medium"
    if confidence >= 0.50:
        return "Low"
    return "Very Low"


def enrich_issue(issue: AuditIssue, context: Optional[IssueContext] = None) -> ClassifiedIssue:
    """
    Attach fix confidence and classification to an issue.

    Args:
        issue: Normalized audit issue
        context: Structural context resolved for the issue

    Returns:
        ClassifiedIssue for the issue
    """
    context = context or IssueContext()
    risk = risk_from_severity(issue.severity)
    confidence = calculate_confidence(issue.rule_code, context)
    fix_type = classify_issue(confidence, risk.value)

    logger.debug(
        "Issue %s: confidence=%.2f, fix_type=%s", issue.rule_code, confidence, fix_type.value
    )

    return ClassifiedIssue(
        issue=issue,
        confidence=confidence,
        confidence_label=confidence_label(confidence),
        fix_type=fix_type,
        risk_level=risk,
        auto_fixable=fix_type == FixType.AUTOFIX,
        quick_fixable=fix_type in (FixType.AUTOFIX, FixType.QUICKFIX),
        context=context,
    )
