# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Deterministic executive summary text for a reviewed conformance report.
"""

from typing import Optional

from accessibility_conformance.utils.report_models import ReviewSummary

FULL_BAND = "full"
SUBSTANTIAL_BAND = "substantial"
PARTIAL_BAND = "partial"
LIMITED_BAND = "limited"

METHODOLOGY = (
    "Methodology: the document was evaluated with automated accessibility checks "
    "mapped to WCAG success criteria, followed by human verification of each "
    "applicable criterion. Criteria marked not applicable were excluded from the "
    "conformance percentage."
)

RECOMMENDATION = (
    "Recommendation: resolve every criterion that does not support conformance "
    "and complete the review of criteria still awaiting verification before the "
    "report is published."
)


def summary_band(percentage: int) -> str:
    """Band of a conformance percentage: 100, at least 80, at least 50, or below."""
    if percentage >= 100:
        return FULL_BAND
    if percentage >= 80:
        return SUBSTANTIAL_BAND
    if percentage >= 50:
        return PARTIAL_BAND
    return LIMITED_BAND


def _overview(subject: str, edition: str, summary: ReviewSummary) -> str:
    applicable = summary.applicable_criteria
    passing = summary.passing_criteria
    percentage = summary.conformance_percentage

    if applicable == 0:
        return (
            f"{subject} has no applicable {edition} success criteria recorded; "
            "conformance could not be determined."
        )

    band = summary_band(percentage)
    if band == FULL_BAND:
        return (
            f"{subject} fully supports all {applicable} applicable {edition} success criteria."
        )
    if band == SUBSTANTIAL_BAND:
        return (
            f"{subject} substantially supports the applicable {edition} success criteria: "
            f"{passing} of {applicable} ({percentage}%) pass."
        )
    if band == PARTIAL_BAND:
        return (
            f"{subject} partially supports the applicable {edition} success criteria: "
            f"{passing} of {applicable} ({percentage}%) pass, and significant gaps remain."
        )
    return (
        f"{subject} does not yet support most applicable {edition} success criteria: "
        f"only {passing} of {applicable} ({percentage}%) pass."
    )


def generate_executive_summary(
    summary: ReviewSummary,
    edition: str,
    document_title: Optional[str] = None,
) -> str:
    """
    Build the executive summary of a report draft.

    The same inputs always produce the same text.

    Args:
        summary: Review summary of the draft
        edition: Edition code or name
        document_title: Title of the evaluated document

    Returns:
        Summary text of three paragraphs
    """
    subject = f'"{document_title}"' if document_title else "The document"
    details = (
        f"Of {summary.total_criteria} criteria evaluated, {summary.applicable_criteria} apply and "
        f"{summary.not_applicable_criteria} were marked not applicable; "
        f"{summary.failing_criteria} fail and {summary.needs_review_criteria} still need review."
    )
    return "\n\n".join(
        [
            f"{_overview(subject, edition, summary)} {details}",
            METHODOLOGY,
            RECOMMENDATION,
        ]
    )
