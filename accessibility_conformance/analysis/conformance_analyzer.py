# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Conformance analysis.

Combines audit issues, the rule-to-criterion mapping and completed remediation
history into a status, confidence and findings for every criterion of an
edition.
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from accessibility_conformance.analysis.issue_adapter import (
    is_completed,
    normalize_issues,
    normalize_remediation_change,
)
from accessibility_conformance.catalog.rule_mapping import (
    RuleMapper,
    automation_capability,
    requires_manual_verification,
)
from accessibility_conformance.catalog.standards import CriteriaCatalog, default_catalog
from accessibility_conformance.utils.config import config_manager
from accessibility_conformance.utils.logging_helper import setup_logger
from accessibility_conformance.utils.report_models import (
    AnalysisSummary,
    ApplicabilitySuggestion,
    AuditIssue,
    ConformanceAnalysis,
    ConformanceStatus,
    CriterionAnalysis,
    FixedIssueReference,
    IssueReference,
    OtherIssues,
    RemediationChange,
    RemediationSummary,
    SuccessCriterion,
    utc_now,
)

# Configure module-level logger
logger = setup_logger(__name__)

KNOWN_SEVERITIES = ("critical", "serious", "moderate", "minor")

# Status and confidence per remaining-issue tier, first match wins
SEVERITY_TIERS: Tuple[Tuple[str, ConformanceStatus, int], ...] = (
    ("critical", ConformanceStatus.DOES_NOT_SUPPORT, 90),
    ("serious", ConformanceStatus.PARTIALLY_SUPPORTS, 80),
    ("moderate", ConformanceStatus.PARTIALLY_SUPPORTS, 70),
    ("unknown", ConformanceStatus.PARTIALLY_SUPPORTS, 60),
    ("minor", ConformanceStatus.SUPPORTS, 85),
)
ALL_FIXED_CONFIDENCE = 85
NO_ISSUES_CONFIDENCE = 75

RECOMMENDATIONS = {
    "critical": "{count} critical issue(s) must be resolved for compliance",
    "serious": "{count} serious issue(s) should be addressed to improve compliance",
    "moderate": "{count} moderate issue(s) detected - address to strengthen compliance",
    "unknown": "{count} issue(s) with unknown severity - investigate and categorize",
    "minor": "{count} minor issue(s) detected - low priority fixes",
    "fixed": "All detected issues have been resolved - verify the fixes during review",
    "none": "Continue to maintain compliance with this criterion",
}

AUTOMATED_METHODS = frozenset({"automated", "auto", "autofix"})


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def severity_tier(severity: Optional[str]) -> str:
    """Bucket a severity into a known tier or 'unknown'."""
    return severity if severity in KNOWN_SEVERITIES else "unknown"


def criterion_pattern(criterion_id: str) -> str:
    """Criterion code used in rule codes: the id without dots, upper-cased."""
    return criterion_id.replace(".", "").upper()


def suggestion_matches(suggestion: ApplicabilitySuggestion, criterion_id: str) -> bool:
    """Whether a suggestion for an id or an 'x.y.x' group covers a criterion."""
    if suggestion.criterion_id == criterion_id:
        return True
    if suggestion.criterion_id.endswith(".x"):
        prefix = suggestion.criterion_id[:-2]
        return criterion_id.startswith(prefix + ".")
    return False


class ConformanceAnalyzer:
    """Derives per-criterion conformance from audit issues."""

    def __init__(
        self,
        catalog: Optional[CriteriaCatalog] = None,
        mapper: Optional[RuleMapper] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            catalog: Success criteria catalog (default: WCAG 2.1)
            mapper: Rule-to-criterion mapper (default: built-in table)
            options: Overrides for the 'analysis' config section
        """
        self.catalog = catalog or default_catalog()
        self.mapper = mapper or RuleMapper()
        self.options = config_manager.get_config(options, section="analysis")
        self._patterns: Dict[str, re.Pattern] = {}

    def _word_pattern(self, pattern: str) -> re.Pattern:
        if pattern not in self._patterns:
            self._patterns[pattern] = re.compile(rf"(?:^|[-_]){re.escape(pattern)}(?:[-_]|$)")
        return self._patterns[pattern]

    def is_related(self, issue: AuditIssue, criterion_id: str) -> bool:
        """
        Whether an issue counts against a criterion.

        Matches explicit criterion tags, the rule mapping, or the criterion
        code in the rule code (exact, WCAG- prefixed or delimited by - or _).

        Args:
            issue: Normalized issue
            criterion_id: Dotted criterion id

        Returns:
            True when the issue is related to the criterion
        """
        if criterion_id in issue.criteria:
            return True
        if criterion_id in self.mapper.criteria_for(issue.rule_code):
            return True

        code = (issue.rule_code or "").upper()
        if not code:
            return False
        pattern = criterion_pattern(criterion_id)
        if code == pattern or code == f"WCAG-{pattern}":
            return True
        return bool(self._word_pattern(pattern).search(code))

    @staticmethod
    def find_fix(
        issue: AuditIssue, criterion_id: str, changes: Sequence[RemediationChange]
    ) -> Optional[RemediationChange]:
        """Completed change that fixed the issue, by rule code first, then by criterion."""
        code = (issue.rule_code or "").lower()
        for change in changes:
            if change.rule_code and change.rule_code.lower() == code:
                return change
        for change in changes:
            if change.criterion_id == criterion_id:
                return change
        return None

    @staticmethod
    def _reference(issue: AuditIssue) -> Dict[str, Any]:
        return {
            "issue_id": issue.id,
            "rule_code": issue.rule_code,
            "impact": issue.severity or "unknown",
            "message": issue.message,
            "file_path": issue.file_path,
            "location": issue.location,
            "snippet": issue.snippet,
            "suggested_fix": issue.suggested_fix,
        }

    @staticmethod
    def _fix_method(change: RemediationChange) -> str:
        method = (change.method or "").lower()
        if change.status == "auto-fixed" or method in AUTOMATED_METHODS:
            return "automated"
        return change.method or "manual"

    def analyze_criterion(
        self,
        criterion: SuccessCriterion,
        issues: Sequence[AuditIssue],
        changes: Sequence[RemediationChange],
        na_suggestions: Sequence[ApplicabilitySuggestion] = (),
        now: Optional[datetime] = None,
    ) -> CriterionAnalysis:
        """
        Analyze a single criterion.

        Args:
            criterion: Criterion from the catalog
            issues: All normalized issues of the run
            changes: Completed remediation changes
            na_suggestions: Applicability suggestions of the run
            now: Fallback fix timestamp

        Returns:
            CriterionAnalysis for the criterion
        """
        now = now or utc_now()
        related = [issue for issue in issues if self.is_related(issue, criterion.id)]

        fixed: List[FixedIssueReference] = []
        remaining: List[AuditIssue] = []
        for issue in related:
            change = self.find_fix(issue, criterion.id, changes)
            if change is None:
                remaining.append(issue)
                continue
            fixed.append(
                FixedIssueReference(
                    **self._reference(issue),
                    fixed_at=change.fixed_at or now,
                    fix_method=self._fix_method(change),
                )
            )

        counts = {tier: 0 for tier in ("critical", "serious", "moderate", "unknown", "minor")}
        for issue in remaining:
            counts[severity_tier(issue.severity)] += 1

        total = len(related)
        findings: List[str] = []
        if total == 0:
            status, confidence = ConformanceStatus.SUPPORTS, NO_ISSUES_CONFIDENCE
            findings.append("No accessibility issues detected for this criterion")
            recommendation = RECOMMENDATIONS["none"]
        elif not remaining:
            status, confidence = ConformanceStatus.SUPPORTS, ALL_FIXED_CONFIDENCE
            findings.append(f"All {total} issue(s) have been remediated")
            recommendation = RECOMMENDATIONS["fixed"]
        else:
            status, confidence = ConformanceStatus.SUPPORTS, ALL_FIXED_CONFIDENCE
            recommendation = RECOMMENDATIONS["minor"].format(count=counts["minor"])
            for tier, tier_status, tier_confidence in SEVERITY_TIERS:
                if counts[tier]:
                    status, confidence = tier_status, tier_confidence
                    recommendation = RECOMMENDATIONS[tier].format(count=counts[tier])
                    break

            if fixed:
                findings.append(f"{len(fixed)} issue(s) have been fixed")
            findings.append(f"{len(remaining)} of {total} issue(s) still need attention")
            findings.append(
                f"Breakdown: {counts['critical']} critical, {counts['serious']} serious, "
                f"{counts['moderate']} moderate, {counts['minor']} minor"
                + (f", {counts['unknown']} unknown" if counts["unknown"] else "")
            )
            rule_codes = sorted({issue.rule_code for issue in remaining})
            findings.append("Rules: " + ", ".join(rule_codes[:5]))

        manual = requires_manual_verification(criterion.id)
        max_findings = int(self.options.get("max_findings", 5))
        if manual and len(findings) < max_findings:
            findings.append("Automated checks cannot fully evaluate this criterion - manual verification recommended")

        na_suggestion = next(
            (s for s in na_suggestions if suggestion_matches(s, criterion.id)), None
        )

        logger.debug(
            "Criterion %s: %s/%s issues fixed, status=%s",
            criterion.id,
            len(fixed),
            total,
            status.value,
        )

        return CriterionAnalysis(
            id=criterion.id,
            name=criterion.name,
            level=criterion.level,
            category=criterion.category,
            status=status,
            confidence=confidence,
            findings=findings[:max_findings],
            recommendation=recommendation,
            related_issues=[IssueReference(**self._reference(issue)) for issue in remaining],
            fixed_issues=fixed,
            issue_count=len(remaining),
            fixed_count=len(fixed),
            remaining_count=len(remaining),
            na_suggestion=na_suggestion,
            requires_manual_verification=manual,
            automation_capability=automation_capability(criterion.id),
        )

    def analyze(
        self,
        issues: Iterable[Any],
        edition_code: Optional[str] = None,
        remediation_changes: Optional[Iterable[Any]] = None,
        na_suggestions: Optional[Iterable[ApplicabilitySuggestion]] = None,
        job_id: Optional[str] = None,
    ) -> ConformanceAnalysis:
        """
        Analyze every criterion of an edition.

        Args:
            issues: Audit issues, raw mappings or AuditIssue objects
            edition_code: Edition selecting the criteria (default: A + AA)
            remediation_changes: Remediation history; only completed entries count
            na_suggestions: Applicability suggestions to attach
            job_id: Job the analysis belongs to

        Returns:
            ConformanceAnalysis with one entry per edition criterion
        """
        normalized = normalize_issues(issues)
        changes = [
            change
            for change in (normalize_remediation_change(c) for c in remediation_changes or [])
            if is_completed(change)
        ]
        suggestions = list(na_suggestions or [])
        criteria = self.catalog.criteria_for_edition(edition_code)
        edition = self.catalog.edition(edition_code)

        logger.info(
            "Analyzing %s criteria for edition %s with %s issues and %s completed remediation changes",
            len(criteria),
            edition.code,
            len(normalized),
            len(changes),
        )

        now = utc_now()
        results = [
            self.analyze_criterion(criterion, normalized, changes, suggestions, now)
            for criterion in criteria
        ]

        summary = AnalysisSummary(total=len(results))
        for result in results:
            setattr(summary, result.status, getattr(summary, result.status) + 1)

        remediation = self._remediation_summary(results)
        mean = sum(r.confidence for r in results) / len(results) if results else 0
        overall = min(100, round_half_up(mean) + remediation.confidence_bonus)

        other = [
            issue
            for issue in normalized
            if not any(self.is_related(issue, criterion.id) for criterion in criteria)
        ]
        _, unmapped = self.mapper.partition(normalized)
        logger.info(
            "Overall confidence %s%% (%s unmapped rule(s), %s issue(s) outside the edition)",
            overall,
            len(unmapped),
            len(other),
        )

        return ConformanceAnalysis(
            job_id=job_id,
            edition=edition.code,
            analyzed_at=now,
            overall_confidence=overall,
            summary=summary,
            remediation=remediation,
            criteria=results,
            other_issues=OtherIssues(
                count=len(other),
                issues=[IssueReference(**self._reference(issue)) for issue in other],
            )
            if other
            else None,
            na_suggestions=suggestions,
        )

    def _remediation_summary(self, results: Sequence[CriterionAnalysis]) -> RemediationSummary:
        fixed = sum(r.fixed_count for r in results)
        total = fixed + sum(r.remaining_count for r in results)
        rate = fixed / total if total else 0.0
        cap = int(self.options.get("remediation_bonus_cap", 15))
        bonus = min(cap, round_half_up(rate * 15)) if fixed else 0
        return RemediationSummary(
            fixed_issues=fixed,
            total_issues=total,
            remediation_rate=round(rate, 4),
            confidence_bonus=bonus,
        )
