# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Boundary normalization for audit issues and remediation history.

Upstream producers (EPUB auditors, axe/ACE runs, remediation plans, batch
validation jobs) each use their own field names. Everything is converted here
into AuditIssue and RemediationChange so the analyzer sees one shape.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from accessibility_conformance.utils.logging_helper import setup_logger
from accessibility_conformance.utils.report_models import AuditIssue, RemediationChange

# Configure module-level logger
logger = setup_logger(__name__)

RULE_CODE_KEYS = ("code", "rule", "ruleId", "rule_code", "issueCode", "type")
SEVERITY_KEYS = ("severity", "impact")
MESSAGE_KEYS = ("message", "description", "issueMessage", "help")
FILE_KEYS = ("filePath", "file_path", "file")
SNIPPET_KEYS = ("html", "snippet", "htmlSnippet", "context")
CRITERIA_KEYS = ("wcagCriteria", "wcag_criteria", "wcag_criterion", "criteria", "criterionId")
SUGGESTED_FIX_KEYS = ("suggestedFix", "suggested_fix", "fix")

COMPLETED_STATUSES = frozenset({"completed", "fixed", "auto-fixed"})


def _first(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def _split_criteria(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = [value]
    criteria = []
    for item in items:
        text = str(item).strip()
        if text and text not in criteria:
            criteria.append(text)
    return criteria


def normalize_severity(value: Any) -> Optional[str]:
    """Lower-cased, stripped severity; None when missing."""
    text = _as_text(value)
    if text is None:
        return None
    text = text.strip().lower()
    return text or None


def normalize_status(value: Any) -> str:
    return (_as_text(value) or "").strip().lower().replace("_", "-")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Args:
        value: datetime or ISO string

    Returns:
        Aware datetime, or None when missing or unparseable
    """
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Ignoring unparseable timestamp %s", value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_issue(raw: Union[AuditIssue, Mapping[str, Any]], index: int = 0) -> AuditIssue:
    """
    Convert one upstream issue record into an AuditIssue.

    Missing optional fields get defaults; this never raises for absent keys.

    Args:
        raw: Issue mapping from any producer, or an AuditIssue
        index: Position of the issue, used for a deterministic fallback id

    Returns:
        Normalized AuditIssue
    """
    if isinstance(raw, AuditIssue):
        return raw

    location = raw.get("location")
    file_path = _first(raw, FILE_KEYS)
    if file_path is None and isinstance(location, Mapping):
        file_path = location.get("file_path") or location.get("filePath")

    rule_code = _as_text(_first(raw, RULE_CODE_KEYS)) or "unknown"
    message = _as_text(_first(raw, MESSAGE_KEYS)) or "No description available"

    if location is not None and not isinstance(location, (str, Mapping)):
        location = str(location)

    return AuditIssue(
        id=_as_text(raw.get("id")) or f"issue-{index}",
        rule_code=rule_code.strip(),
        severity=normalize_severity(_first(raw, SEVERITY_KEYS)),
        message=message,
        file_path=_as_text(file_path),
        location=dict(location) if isinstance(location, Mapping) else location,
        snippet=_as_text(_first(raw, SNIPPET_KEYS)),
        suggested_fix=_as_text(_first(raw, SUGGESTED_FIX_KEYS)),
        criteria=_split_criteria(_first(raw, CRITERIA_KEYS)),
    )


def normalize_issues(raw_issues: Optional[Iterable[Any]]) -> List[AuditIssue]:
    """Normalize a list of issues, skipping entries that are not records."""
    issues: List[AuditIssue] = []
    for index, raw in enumerate(raw_issues or []):
        if isinstance(raw, (AuditIssue, Mapping)):
            issues.append(normalize_issue(raw, index))
        else:
            logger.warning("Skipping issue %s with unsupported type %s", index, type(raw).__name__)
    return issues


def normalize_remediation_change(raw: Union[RemediationChange, Mapping[str, Any]]) -> RemediationChange:
    """Convert one remediation record (task, change or modification) into a RemediationChange."""
    if isinstance(raw, RemediationChange):
        return raw

    status = normalize_status(raw.get("status")) or "completed"
    method = _as_text(
        raw.get("method") or raw.get("fixType") or raw.get("remediationType") or raw.get("completionMethod")
    )
    if status == "auto-fixed":
        method = "automated"

    criteria = _split_criteria(raw.get("criterionId") or raw.get("criterion_id"))
    return RemediationChange(
        rule_code=_as_text(_first(raw, ("issueCode", "rule_code", "ruleId", "code"))),
        criterion_id=criteria[0] if criteria else None,
        status=status,
        fixed_at=parse_timestamp(raw.get("fixedAt") or raw.get("fixed_at") or raw.get("completedAt")),
        method=method,
        description=_as_text(raw.get("description")),
    )


def is_completed(change: RemediationChange) -> bool:
    return normalize_status(change.status) in COMPLETED_STATUSES


def _merge_changes(
    changes: List[RemediationChange], new_changes: Iterable[RemediationChange]
) -> None:
    seen = {c.rule_code for c in changes if c.rule_code}
    for change in new_changes:
        if change.rule_code and change.rule_code in seen:
            continue
        changes.append(change)
        if change.rule_code:
            seen.add(change.rule_code)


def normalize_remediation_changes(output: Optional[Mapping[str, Any]]) -> List[RemediationChange]:
    """
    Build the completed remediation history recorded on a job output.

    Sources, in precedence order: an explicit remediationHistory list, the
    remediation plan tasks, batch validation tasks and successful
    auto-remediation modifications. Only completed, fixed and auto-fixed
    entries are kept, de-duplicated by rule code.

    Args:
        output: Job output mapping

    Returns:
        List of completed RemediationChange entries
    """
    if not output:
        return []

    changes: List[RemediationChange] = []

    explicit = output.get("remediationHistory") or output.get("remediationChanges") or []
    _merge_changes(
        changes,
        (c for c in (normalize_remediation_change(r) for r in explicit) if is_completed(c)),
    )

    plan = output.get("remediationPlan") or {}
    batch = output.get("batchValidation") or {}
    for tasks in (plan.get("tasks") or [], batch.get("tasks") or []):
        task_changes = (normalize_remediation_change(task) for task in tasks)
        _merge_changes(changes, (c for c in task_changes if is_completed(c)))

    auto = output.get("autoRemediation") or {}
    completed_at = parse_timestamp(auto.get("completedAt"))
    auto_changes = []
    for modification in auto.get("modifications") or []:
        if modification.get("success") is not True:
            continue
        change = normalize_remediation_change({**modification, "status": "auto-fixed"})
        if change.fixed_at is None:
            change.fixed_at = completed_at
        auto_changes.append(change)
    _merge_changes(changes, auto_changes)

    logger.debug("Found %s completed remediation changes", len(changes))
    return changes


def extract_issues(output: Optional[Mapping[str, Any]]) -> List[AuditIssue]:
    """
    Read the audit issues recorded on a job output.

    Issues come from combinedIssues or issues; when neither is present the
    remediation plan tasks (or a criteria list) stand in for them.

    Args:
        output: Job output mapping

    Returns:
        Normalized issues
    """
    if not output:
        return []

    raw = output.get("combinedIssues") or output.get("issues")
    if raw:
        return normalize_issues(raw)

    plan = output.get("remediationPlan") or {}
    if plan.get("tasks"):
        return normalize_issues(plan["tasks"])

    if isinstance(output.get("criteria"), list):
        return normalize_issues(output["criteria"])

    return []


def extract_edition(output: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not output:
        return None
    return _as_text(output.get("selectedEdition") or output.get("editionCode"))


def job_payload(output: Optional[Mapping[str, Any]]) -> Tuple[List[AuditIssue], List[RemediationChange], Optional[str]]:
    """Issues, completed remediation history and edition code of a job output."""
    return extract_issues(output), normalize_remediation_changes(output), extract_edition(output)
