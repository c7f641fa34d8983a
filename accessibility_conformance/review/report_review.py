# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Review and edit of conformance report drafts.

Verification results are carried forward into a draft with one criterion
review per criterion. Every edit is written to an append-only change log and
the draft's aggregate counters are recomputed after each change. Approved
drafts are locked against further edits.
"""

import os
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from accessibility_conformance.catalog.standards import CriteriaCatalog, default_catalog
from accessibility_conformance.persistence.models import (
    AcrDraft,
    CriterionChangeLog,
    CriterionReview,
    new_id,
)
from accessibility_conformance.review.executive_summary import generate_executive_summary
from accessibility_conformance.utils.logging_helper import (
    setup_logger,
    NotFoundError,
    ReportLockedError,
    ValidationFailureError,
)
from accessibility_conformance.utils.report_models import (
    CriterionChange,
    DraftInfo,
    ImportResult,
    ReportForReview,
    ReviewCriterion,
    ReviewSummary,
    utc_now,
)

# Configure module-level logger
logger = setup_logger(__name__)

ReviewerDirectory = Callable[[str], Optional[str]]

READY_FOR_REVIEW = "ready_for_review"
APPROVED = "approved"

PASS_STATUSES = frozenset({"verified_pass"})
FAIL_STATUSES = frozenset({"verified_fail"})

# Accepted update keys, camelCase aliases included, mapped to column names
CRITERION_FIELDS = {
    "verification_status": "verification_status",
    "verificationStatus": "verification_status",
    "verification_method": "verification_method",
    "verificationMethod": "verification_method",
    "verification_notes": "verification_notes",
    "verificationNotes": "verification_notes",
    "reviewer_notes": "reviewer_notes",
    "reviewerNotes": "reviewer_notes",
    "conformance_level": "conformance_level",
    "conformanceLevel": "conformance_level",
    "is_not_applicable": "is_not_applicable",
    "isNotApplicable": "is_not_applicable",
    "na_reason": "na_reason",
    "naReason": "na_reason",
}

METADATA_FIELDS = {
    "executive_summary": "executive_summary",
    "executiveSummary": "executive_summary",
    "conformance_level": "conformance_level",
    "conformanceLevel": "conformance_level",
    "document_type": "document_type",
    "documentType": "document_type",
    "document_title": "document_title",
    "documentTitle": "document_title",
}

TRACKED_FIELDS = (
    "verification_status",
    "verification_method",
    "verification_notes",
    "reviewer_notes",
    "conformance_level",
    "is_not_applicable",
    "na_reason",
)

EXTENSION_TYPES = {
    ".pdf": "pdf",
    ".epub": "epub",
    ".docx": "docx",
    ".doc": "docx",
    ".html": "html",
    ".htm": "html",
    ".xhtml": "html",
}

MIME_TYPES = {
    "application/pdf": "pdf",
    "application/epub+zip": "epub",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "docx",
    "text/html": "html",
    "application/xhtml+xml": "html",
}


def infer_document_type(file_name: Optional[str] = None, mime_type: Optional[str] = None) -> Optional[str]:
    """
    Document type of an evaluated file, from its extension first, then its MIME type.

    Args:
        file_name: Original file name
        mime_type: MIME type reported on upload

    Returns:
        'pdf', 'epub', 'docx', 'html' or 'other'; None when nothing is known
    """
    if file_name:
        extension = os.path.splitext(file_name)[1].lower()
        if extension in EXTENSION_TYPES:
            return EXTENSION_TYPES[extension]
    if mime_type:
        base = mime_type.split(";")[0].strip().lower()
        if base in MIME_TYPES:
            return MIME_TYPES[base]
    if file_name or mime_type:
        return "other"
    return None


def is_passing(review: CriterionReview) -> bool:
    return review.verification_status in PASS_STATUSES or review.conformance_level == "pass"


def is_failing(review: CriterionReview) -> bool:
    return review.verification_status in FAIL_STATUSES or review.conformance_level == "fail"


def summarize_reviews(reviews: Sequence[CriterionReview]) -> ReviewSummary:
    """
    Conformance summary over the criterion reviews of a draft.

    Not-applicable criteria are excluded from the percentage.

    Args:
        reviews: Criterion reviews of one draft

    Returns:
        ReviewSummary
    """
    applicable = [r for r in reviews if not r.is_not_applicable]
    passing = sum(1 for r in applicable if is_passing(r))
    failing = sum(1 for r in applicable if is_failing(r) and not is_passing(r))
    percentage = int(passing * 100 / len(applicable) + 0.5) if applicable else 0
    return ReviewSummary(
        total_criteria=len(reviews),
        applicable_criteria=len(applicable),
        not_applicable_criteria=len(reviews) - len(applicable),
        passing_criteria=passing,
        failing_criteria=failing,
        needs_review_criteria=len(applicable) - passing - failing,
        conformance_percentage=percentage,
    )


def _normalize_updates(updates: Mapping[str, Any], fields: Mapping[str, str]) -> Dict[str, Any]:
    unknown = [key for key in updates if key not in fields]
    if unknown:
        raise ValidationFailureError(
            f"Unsupported update field(s): {', '.join(sorted(unknown))}",
            {"fields": sorted(unknown)},
        )
    return {fields[key]: value for key, value in updates.items()}


def determine_change_type(previous: Mapping[str, Any], updates: Mapping[str, Any]) -> str:
    """Change type of a criterion edit: na_toggle, status_change, remarks_update or general_update."""
    if "is_not_applicable" in updates and previous.get("is_not_applicable") != updates["is_not_applicable"]:
        return "na_toggle"
    if updates.get("verification_status") and previous.get("verification_status") != updates["verification_status"]:
        return "status_change"
    if updates.get("verification_notes") or updates.get("reviewer_notes"):
        return "remarks_update"
    return "general_update"


def _suggestion_payload(value: Any) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return dict(value)


class ReportReviewService:
    """Imports verification data into drafts and manages their review."""

    def __init__(
        self,
        session_factory: sessionmaker,
        catalog: Optional[CriteriaCatalog] = None,
        reviewer_directory: Optional[ReviewerDirectory] = None,
    ):
        """
        Initialize the service.

        Args:
            session_factory: SQLAlchemy session factory
            catalog: Success criteria catalog for names and levels
            reviewer_directory: Callable resolving a user id to a display name
        """
        self.session_factory = session_factory
        self.catalog = catalog or default_catalog()
        self.reviewer_directory = reviewer_directory

    # Loading helpers

    @staticmethod
    def _get_draft(session: Session, draft_id: str) -> AcrDraft:
        draft = session.get(AcrDraft, draft_id)
        if draft is None:
            raise NotFoundError(f"Report draft not found: {draft_id}", {"draft_id": draft_id})
        return draft

    @staticmethod
    def _get_criterion(session: Session, draft_id: str, criterion_id: str) -> Optional[CriterionReview]:
        return session.execute(
            select(CriterionReview).where(
                CriterionReview.draft_id == draft_id,
                CriterionReview.criterion_id == criterion_id,
            )
        ).scalar_one_or_none()

    @staticmethod
    def _ensure_editable(draft: AcrDraft) -> None:
        if draft.status == APPROVED:
            raise ReportLockedError(
                f"Report draft {draft.id} is approved and can no longer be edited",
                {"draft_id": draft.id, "approved_by": draft.approved_by},
            )

    @staticmethod
    def _recalculate(draft: AcrDraft) -> ReviewSummary:
        summary = summarize_reviews(draft.criteria)
        draft.total_criteria = summary.total_criteria
        draft.applicable_criteria = summary.applicable_criteria
        draft.na_criteria = summary.not_applicable_criteria
        draft.passed_criteria = summary.passing_criteria
        draft.failed_criteria = summary.failing_criteria
        draft.updated_at = utc_now()
        return summary

    @staticmethod
    def _log_change(
        review: CriterionReview,
        draft: AcrDraft,
        changed_by: str,
        change_type: str,
        previous_value: Optional[Dict[str, Any]],
        new_value: Dict[str, Any],
        reason: Optional[str] = None,
    ) -> None:
        review.changes.append(
            CriterionChangeLog(
                draft_id=draft.id,
                job_id=draft.job_id,
                criterion_id=review.criterion_id,
                changed_by=changed_by,
                change_type=change_type,
                previous_value=previous_value,
                new_value=new_value,
                reason=reason,
            )
        )

    def _review_view(self, review: CriterionReview) -> ReviewCriterion:
        view = ReviewCriterion.model_validate(review)
        info = self.catalog.get(review.criterion_id)
        updates: Dict[str, Any] = {}
        if info is not None:
            updates["criterion_name"] = info.name
            updates["level"] = info.level
        if review.reviewed_by and self.reviewer_directory is not None:
            updates["reviewed_by_name"] = self.reviewer_directory(review.reviewed_by)
        return view.model_copy(update=updates) if updates else view

    # Import

    @staticmethod
    def _validate_rows(verification_data: Any) -> List[Mapping[str, Any]]:
        if not verification_data or not isinstance(verification_data, (list, tuple)):
            raise ValidationFailureError("Verification data must be a non-empty list")
        for index, row in enumerate(verification_data):
            if not isinstance(row, Mapping):
                raise ValidationFailureError(
                    f"Verification entry {index} is not an object", {"index": index}
                )
            criterion_id = row.get("criterion_id") or row.get("criterionId")
            if not criterion_id or not str(criterion_id).strip():
                raise ValidationFailureError(
                    f"Verification entry {index} has no criterion_id", {"index": index}
                )
        return list(verification_data)

    def initialize_report_from_verification(
        self,
        job_id: str,
        tenant_id: Optional[str],
        user_id: str,
        edition: str,
        verification_data: Iterable[Mapping[str, Any]],
        document_title: Optional[str] = None,
        file_name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> ImportResult:
        """
        Create a new draft from human verification results.

        A new draft is created on every call so earlier attempts stay intact.
        The draft holds one review per criterion of the edition; criteria the
        payload does not cover are added without a verification status.

        Args:
            job_id: Job the report belongs to
            tenant_id: Owning tenant
            user_id: User performing the import
            edition: Edition code of the report
            verification_data: One entry per criterion with criterion_id and
                optional verification_status, verification_method,
                verification_notes, is_not_applicable, na_reason,
                na_suggestion and confidence
            document_title: Title of the evaluated document
            file_name: Original file name, used for the document type
            mime_type: MIME type, used for the document type

        Returns:
            ImportResult with the new draft id

        Raises:
            ValidationFailureError: If the payload is empty or an entry has no criterion_id
        """
        rows = self._validate_rows(verification_data)
        logger.info("Initializing report for job %s from %s verification entries", job_id, len(rows))

        now = utc_now()
        with self.session_factory() as session, session.begin():
            draft = AcrDraft(
                id=new_id(),
                job_id=job_id,
                tenant_id=tenant_id,
                user_id=user_id,
                edition=edition,
                status=READY_FOR_REVIEW,
                document_title=document_title,
                document_type=infer_document_type(file_name, mime_type),
                file_name=file_name,
                mime_type=mime_type,
            )
            session.add(draft)

            reviews: Dict[str, CriterionReview] = {}
            for row in rows:
                criterion_id = str(row.get("criterion_id") or row.get("criterionId")).strip()
                values = {
                    "verification_status": row.get("verification_status", row.get("verificationStatus")),
                    "verification_method": row.get("verification_method", row.get("verificationMethod")),
                    "verification_notes": row.get("verification_notes", row.get("verificationNotes")),
                    "is_not_applicable": bool(row.get("is_not_applicable", row.get("isNotApplicable")) or False),
                    "na_reason": row.get("na_reason", row.get("naReason")),
                    "na_suggestion": _suggestion_payload(row.get("na_suggestion", row.get("naSuggestion"))),
                    "confidence": row.get("confidence"),
                }

                review = reviews.get(criterion_id)
                if review is None:
                    info = self.catalog.get(criterion_id)
                    review = CriterionReview(
                        criterion_id=criterion_id,
                        criterion_name=info.name if info else None,
                    )
                    draft.criteria.append(review)
                    reviews[criterion_id] = review
                for key, value in values.items():
                    setattr(review, key, value)
                review.reviewed_by = user_id
                review.reviewed_at = now

                self._log_change(review, draft, user_id, "verification_import", None, values)

            # Criteria of the edition without a verification row still get a review, left unverified
            seeded = 0
            for info in self.catalog.criteria_for_edition(edition):
                if info.id not in reviews:
                    draft.criteria.append(CriterionReview(criterion_id=info.id, criterion_name=info.name))
                    seeded += 1
            if seeded:
                logger.debug("Added %s unverified criteria to draft for job %s", seeded, job_id)

            session.flush()
            summary = self._recalculate(draft)
            draft.executive_summary = generate_executive_summary(summary, edition, document_title)
            result = ImportResult(
                draft_id=draft.id,
                imported=len(rows),
                total_criteria=summary.total_criteria,
            )

        logger.info(
            "Created draft %s for job %s with %s criteria",
            result.draft_id,
            job_id,
            result.total_criteria,
        )
        return result

    # Editing

    def update_criterion(
        self,
        draft_id: str,
        criterion_id: str,
        updates: Mapping[str, Any],
        user_id: str,
        reason: Optional[str] = None,
    ) -> ReviewCriterion:
        """
        Edit one criterion review and record the change.

        Args:
            draft_id: Draft id
            criterion_id: Criterion id
            updates: Field updates (verification_status, verification_method,
                verification_notes, reviewer_notes, conformance_level,
                is_not_applicable, na_reason)
            user_id: Editing user
            reason: Optional reason stored in the change log

        Returns:
            The updated criterion review

        Raises:
            NotFoundError: If the draft or criterion does not exist
            ReportLockedError: If the draft is approved
            ValidationFailureError: If an update field is not editable
        """
        changes = _normalize_updates(updates, CRITERION_FIELDS)
        logger.info("Updating criterion %s in draft %s", criterion_id, draft_id)

        with self.session_factory() as session, session.begin():
            draft = self._get_draft(session, draft_id)
            self._ensure_editable(draft)
            review = self._get_criterion(session, draft_id, criterion_id)
            if review is None:
                raise NotFoundError(
                    f"Criterion {criterion_id} not found in report draft {draft_id}",
                    {"draft_id": draft_id, "criterion_id": criterion_id},
                )

            previous = {name: getattr(review, name) for name in TRACKED_FIELDS}
            for name, value in changes.items():
                setattr(review, name, value)
            review.reviewed_by = user_id
            review.reviewed_at = utc_now()
            review.updated_at = utc_now()

            change_type = determine_change_type(previous, changes)
            self._log_change(review, draft, user_id, change_type, previous, changes, reason)
            self._recalculate(draft)
            session.flush()
            view = self._review_view(review)

        logger.debug("Logged %s for criterion %s", change_type, criterion_id)
        return view

    def update_report_metadata(self, draft_id: str, updates: Mapping[str, Any], user_id: str) -> DraftInfo:
        """
        Edit draft-level fields (executive summary, conformance level, document type or title).

        Raises:
            NotFoundError: If the draft does not exist
            ReportLockedError: If the draft is approved
            ValidationFailureError: If an update field is not editable
        """
        changes = _normalize_updates(updates, METADATA_FIELDS)
        with self.session_factory() as session, session.begin():
            draft = self._get_draft(session, draft_id)
            self._ensure_editable(draft)
            for name, value in changes.items():
                setattr(draft, name, value)
            draft.updated_at = utc_now()
            session.flush()
            info = DraftInfo.model_validate(draft)

        logger.info("User %s updated %s on draft %s", user_id, ", ".join(sorted(changes)), draft_id)
        return info

    def get_criterion_history(self, draft_id: str, criterion_id: str) -> List[CriterionChange]:
        """
        Change history of a criterion, newest first.

        Returns:
            List of changes; empty when the draft has no such criterion

        Raises:
            NotFoundError: If the draft does not exist
        """
        with self.session_factory() as session:
            self._get_draft(session, draft_id)
            review = self._get_criterion(session, draft_id, criterion_id)
            if review is None:
                return []
            rows = session.execute(
                select(CriterionChangeLog)
                .where(CriterionChangeLog.criterion_review_id == review.id)
                .order_by(CriterionChangeLog.created_at.desc())
            ).scalars()
            return [CriterionChange.model_validate(row) for row in rows]

    # Reading

    def _latest_draft(self, session: Session, job_id: str) -> Optional[AcrDraft]:
        return session.execute(
            select(AcrDraft)
            .where(AcrDraft.job_id == job_id)
            .order_by(AcrDraft.created_at.desc())
            .limit(1)
        ).scalar_one_or_none()

    def _report_view(self, draft: AcrDraft) -> ReportForReview:
        reviews = list(draft.criteria)
        return ReportForReview(
            draft=DraftInfo.model_validate(draft),
            summary=summarize_reviews(reviews),
            criteria=[self._review_view(r) for r in reviews if not r.is_not_applicable],
            na_criteria=[self._review_view(r) for r in reviews if r.is_not_applicable],
            last_updated=draft.updated_at,
        )

    def get_report_for_review(self, job_id: str, draft_id: Optional[str] = None) -> ReportForReview:
        """
        Get a draft with its criteria split into applicable and not applicable.

        Args:
            job_id: Job id
            draft_id: Specific draft of the job (default: the most recent draft)

        Returns:
            ReportForReview with the conformance summary

        Raises:
            NotFoundError: If the job has no draft, or the draft belongs to another job
        """
        with self.session_factory() as session:
            if draft_id:
                draft = session.get(AcrDraft, draft_id)
                if draft is None or draft.job_id != job_id:
                    raise NotFoundError(
                        f"Report draft {draft_id} not found for job {job_id}",
                        {"job_id": job_id, "draft_id": draft_id},
                    )
            else:
                draft = self._latest_draft(session, job_id)
                if draft is None:
                    raise NotFoundError(f"No report draft found for job {job_id}", {"job_id": job_id})
            return self._report_view(draft)

    def approve_report(self, draft_id: str, user_id: str) -> DraftInfo:
        """
        Approve a draft. Approval is terminal; approved drafts reject further edits.

        Raises:
            NotFoundError: If the draft does not exist
            ReportLockedError: If the draft is already approved
        """
        with self.session_factory() as session, session.begin():
            draft = self._get_draft(session, draft_id)
            self._ensure_editable(draft)
            draft.status = APPROVED
            draft.approved_by = user_id
            draft.approved_at = utc_now()
            draft.updated_at = draft.approved_at
            session.flush()
            info = DraftInfo.model_validate(draft)

        logger.info("Report draft %s approved by %s", draft_id, user_id)
        return info

    def list_report_versions(self, job_id: str) -> List[DraftInfo]:
        """Every draft of a job, newest first."""
        with self.session_factory() as session:
            drafts = session.execute(
                select(AcrDraft)
                .where(AcrDraft.job_id == job_id)
                .order_by(AcrDraft.created_at.desc())
            ).scalars()
            return [DraftInfo.model_validate(draft) for draft in drafts]

    def get_report_version(self, draft_id: str) -> ReportForReview:
        """
        Full review view of one specific draft.

        Raises:
            NotFoundError: If the draft does not exist
        """
        with self.session_factory() as session:
            return self._report_view(self._get_draft(session, draft_id))

    def delete_report(self, job_id: str) -> int:
        """
        Delete every draft of a job with its criteria and change logs.

        Returns:
            Number of drafts deleted

        Raises:
            NotFoundError: If the job has no draft
        """
        with self.session_factory() as session, session.begin():
            drafts = list(
                session.execute(select(AcrDraft).where(AcrDraft.job_id == job_id)).scalars()
            )
            if not drafts:
                raise NotFoundError(f"No report draft found for job {job_id}", {"job_id": job_id})
            for draft in drafts:
                session.delete(draft)

        logger.info("Deleted %s report draft(s) for job %s", len(drafts), job_id)
        return len(drafts)
