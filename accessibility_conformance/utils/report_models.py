# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Pydantic models for conformance analysis, applicability and versioning reports.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Timezone-aware current time used for every generated timestamp."""
    return datetime.now(timezone.utc)


class ConformanceStatus(str, Enum):
    """Enum for per-criterion conformance status."""

    SUPPORTS = "supports"
    PARTIALLY_SUPPORTS = "partially_supports"
    DOES_NOT_SUPPORT = "does_not_support"
    NOT_APPLICABLE = "not_applicable"


class SuggestedStatus(str, Enum):
    """Enum for applicability suggestion outcomes."""

    NOT_APPLICABLE = "not_applicable"
    APPLICABLE = "applicable"
    UNCERTAIN = "uncertain"


class CheckResult(str, Enum):
    """Enum for the result of one applicability detection check."""

    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"


class FixType(str, Enum):
    """Enum for remediation fix classification."""

    AUTOFIX = "autofix"
    QUICKFIX = "quickfix"
    MANUAL = "manual"


class RiskLevel(str, Enum):
    """Enum for remediation risk."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SuccessCriterion(BaseModel):
    """One WCAG success criterion from the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    level: str
    category: str


class Edition(BaseModel):
    """Regulatory profile selecting the required criterion levels."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    levels: FrozenSet[str]


class AuditIssue(BaseModel):
    """Normalized audit issue consumed by the analyzer and classifier."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    rule_code: str = "unknown"
    severity: Optional[str] = None
    message: str = "No description available"
    file_path: Optional[str] = None
    location: Optional[Union[Dict[str, Any], str]] = None
    snippet: Optional[str] = None
    suggested_fix: Optional[str] = None
    criteria: List[str] = Field(default_factory=list)


class RemediationChange(BaseModel):
    """A completed remediation step signalling an issue was already fixed."""

    rule_code: Optional[str] = None
    criterion_id: Optional[str] = None
    status: str = "completed"
    fixed_at: Optional[datetime] = None
    method: Optional[str] = None
    description: Optional[str] = None


class IssueReference(BaseModel):
    """Issue as listed under a criterion analysis."""

    issue_id: str
    rule_code: str
    impact: str
    message: str
    file_path: Optional[str] = None
    location: Optional[Union[Dict[str, Any], str]] = None
    snippet: Optional[str] = None
    suggested_fix: Optional[str] = None


class FixedIssueReference(IssueReference):
    """Issue that the remediation history marks as fixed."""

    fixed_at: datetime
    fix_method: str


class DetectionCheck(BaseModel):
    """One structural check behind an applicability suggestion."""

    model_config = ConfigDict(use_enum_values=True)

    check: str
    result: CheckResult
    details: str


class ApplicabilitySuggestion(BaseModel):
    """Advisory hint about whether a criterion (or group) applies."""

    model_config = ConfigDict(use_enum_values=True)

    criterion_id: str
    suggested_status: SuggestedStatus
    confidence: int = Field(ge=0, le=95)
    detection_checks: List[DetectionCheck] = Field(default_factory=list)
    rationale: str
    edge_cases: List[str] = Field(default_factory=list)


class CriterionAnalysis(BaseModel):
    """Derived conformance result for one criterion."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    level: str
    category: str
    status: ConformanceStatus
    confidence: int = Field(ge=0, le=100)
    findings: List[str] = Field(default_factory=list, max_length=5)
    recommendation: str
    related_issues: List[IssueReference] = Field(default_factory=list)
    fixed_issues: List[FixedIssueReference] = Field(default_factory=list)
    issue_count: int = 0
    fixed_count: int = 0
    remaining_count: int = 0
    na_suggestion: Optional[ApplicabilitySuggestion] = None
    requires_manual_verification: bool = False
    automation_capability: int = 50


class AnalysisSummary(BaseModel):
    """Per-status counts over every criterion of an analysis."""

    supports: int = 0
    partially_supports: int = 0
    does_not_support: int = 0
    not_applicable: int = 0
    total: int = 0


class RemediationSummary(BaseModel):
    """Fixed versus total related issue counts for an analysis."""

    fixed_issues: int = 0
    total_issues: int = 0
    remediation_rate: float = 0.0
    confidence_bonus: int = 0


class OtherIssues(BaseModel):
    """Issues whose rule code maps to no criterion."""

    count: int = 0
    issues: List[IssueReference] = Field(default_factory=list)


class ConformanceAnalysis(BaseModel):
    """Complete conformance analysis for one edition."""

    job_id: Optional[str] = None
    edition: str
    analyzed_at: datetime = Field(default_factory=utc_now)
    overall_confidence: int = Field(ge=0, le=100)
    summary: AnalysisSummary
    remediation: RemediationSummary = Field(default_factory=RemediationSummary)
    criteria: List[CriterionAnalysis] = Field(default_factory=list)
    other_issues: Optional[OtherIssues] = None
    na_suggestions: List[ApplicabilitySuggestion] = Field(default_factory=list)

    def criterion(self, criterion_id: str) -> Optional[CriterionAnalysis]:
        """Look up the analysis of one criterion by id."""
        for item in self.criteria:
            if item.id == criterion_id:
                return item
        return None


class IssueContext(BaseModel):
    """Structural context affecting fix confidence."""

    table_type: Optional[str] = None
    image_type: Optional[str] = None


class ClassifiedIssue(BaseModel):
    """Audit issue enriched with fix confidence and classification."""

    model_config = ConfigDict(use_enum_values=True)

    issue: AuditIssue
    confidence: float = Field(ge=0.0, le=1.0)
    confidence_label: str
    fix_type: FixType
    risk_level: RiskLevel
    auto_fixable: bool
    quick_fixable: bool
    context: IssueContext = Field(default_factory=IssueContext)


class ChangeLogEntry(BaseModel):
    """One field-level difference between two report snapshots."""

    field: str
    previous_value: Any = None
    new_value: Any = None
    changed_by: str
    change_type: str = "updated"
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class VersionRecord(BaseModel):
    """Immutable numbered snapshot of a report."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    report_id: str
    version: int
    snapshot: Dict[str, Any]
    change_log: List[ChangeLogEntry] = Field(default_factory=list)
    created_by: str
    reason: Optional[str] = None
    created_at: datetime


class ComparisonSummary(BaseModel):
    """Summary of a diff between two versions."""

    fields_changed: int = 0
    criteria_changed: int = 0
    status_changed: bool = False


class VersionComparison(BaseModel):
    """Diff recomputed between two arbitrary versions of one report."""

    report_id: str
    version_a: int
    version_b: int
    differences: List[ChangeLogEntry] = Field(default_factory=list)
    summary: ComparisonSummary = Field(default_factory=ComparisonSummary)


class ReviewSummary(BaseModel):
    """Conformance summary over the criterion reviews of a draft."""

    total_criteria: int = 0
    applicable_criteria: int = 0
    not_applicable_criteria: int = 0
    passing_criteria: int = 0
    failing_criteria: int = 0
    needs_review_criteria: int = 0
    conformance_percentage: int = 0


class DraftInfo(BaseModel):
    """Report draft header as shown on the review page."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    tenant_id: Optional[str] = None
    user_id: Optional[str] = None
    edition: str
    status: str
    document_title: Optional[str] = None
    document_type: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    executive_summary: Optional[str] = None
    conformance_level: Optional[str] = None
    total_criteria: int = 0
    applicable_criteria: int = 0
    na_criteria: int = 0
    passed_criteria: int = 0
    failed_criteria: int = 0
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ReviewCriterion(BaseModel):
    """Criterion review enriched with catalog and reviewer details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    criterion_id: str
    criterion_name: Optional[str] = None
    level: Optional[str] = None
    verification_status: Optional[str] = None
    verification_method: Optional[str] = None
    verification_notes: Optional[str] = None
    reviewer_notes: Optional[str] = None
    conformance_level: Optional[str] = None
    is_not_applicable: bool = False
    na_reason: Optional[str] = None
    na_suggestion: Optional[Dict[str, Any]] = None
    confidence: Optional[int] = None
    reviewed_by: Optional[str] = None
    reviewed_by_name: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReportForReview(BaseModel):
    """Everything the review page needs for one draft."""

    draft: DraftInfo
    summary: ReviewSummary
    criteria: List[ReviewCriterion] = Field(default_factory=list)
    na_criteria: List[ReviewCriterion] = Field(default_factory=list)
    last_updated: datetime


class ImportResult(BaseModel):
    """Outcome of importing verification data into a new draft."""

    draft_id: str
    imported: int
    total_criteria: int


class CriterionChange(BaseModel):
    """Audit trail entry of a criterion review."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    draft_id: str
    criterion_id: str
    changed_by: str
    change_type: str
    previous_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    created_at: datetime
