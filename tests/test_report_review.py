"""
Tests for report draft import, review, approval and history.
"""

import pytest

from accessibility_conformance.review import (
    ReportReviewService,
    generate_executive_summary,
    infer_document_type,
    summarize_reviews,
)
from accessibility_conformance.review.executive_summary import summary_band
from accessibility_conformance.review.report_review import determine_change_type
from accessibility_conformance.persistence.models import CriterionReview
from accessibility_conformance.utils.logging_helper import (
    NotFoundError,
    ReportLockedError,
    ValidationFailureError,
)
from accessibility_conformance.utils.report_models import ReviewSummary


VERIFICATION_DATA = [
    {"criterion_id": "1.1.1", "verification_status": "verified_pass", "verification_method": "NVDA"},
    {"criterion_id": "1.3.1", "verification_status": "verified_fail", "verification_notes": "Table headers missing"},
    {"criterionId": "1.4.3", "verificationStatus": "verified_pass"},
    {"criterion_id": "2.4.2"},
    {
        "criterion_id": "1.2.1",
        "is_not_applicable": True,
        "na_reason": "No multimedia",
        "na_suggestion": {"criterion_id": "1.2.x", "suggested_status": "not_applicable", "confidence": 95},
    },
]

DIRECTORY = {"alice": "Alice Reviewer", "bob": "Bob Approver"}


@pytest.fixture
def reviews(session_factory, catalog):
    return ReportReviewService(session_factory, catalog=catalog, reviewer_directory=DIRECTORY.get)


@pytest.fixture
def draft_id(reviews):
    result = reviews.initialize_report_from_verification(
        job_id="job-1",
        tenant_id="tenant-1",
        user_id="alice",
        edition="VPAT2.5-WCAG",
        verification_data=VERIFICATION_DATA,
        document_title="Moby Dick",
        file_name="moby-dick.epub",
    )
    return result.draft_id


def _review(**values):
    values.setdefault("is_not_applicable", False)
    return CriterionReview(criterion_id="1.1.1", **values)


class TestSummarizeReviews:

    def test_counts_and_percentage(self):
        summary = summarize_reviews(
            [
                _review(verification_status="verified_pass"),
                _review(conformance_level="pass"),
                _review(verification_status="verified_fail"),
                _review(),
                _review(is_not_applicable=True, verification_status="verified_fail"),
            ]
        )
        assert summary == ReviewSummary(
            total_criteria=5,
            applicable_criteria=4,
            not_applicable_criteria=1,
            passing_criteria=2,
            failing_criteria=1,
            needs_review_criteria=1,
            conformance_percentage=50,
        )

    def test_pass_and_fail_together_counts_as_passing(self):
        summary = summarize_reviews([_review(verification_status="verified_pass", conformance_level="fail")])
        assert (summary.passing_criteria, summary.failing_criteria, summary.needs_review_criteria) == (1, 0, 0)

    def test_percentage_rounds_half_up(self):
        summary = summarize_reviews(
            [_review(verification_status="verified_pass")] + [_review() for _ in range(7)]
        )
        # 1 of 8 is 12.5%
        assert summary.conformance_percentage == 13

    def test_all_not_applicable(self):
        summary = summarize_reviews([_review(is_not_applicable=True)])
        assert summary.applicable_criteria == 0
        assert summary.conformance_percentage == 0


class TestDocumentType:

    @pytest.mark.parametrize(
        "file_name,mime_type,expected",
        [
            ("report.PDF", None, "pdf"),
            ("book.epub", None, "epub"),
            ("notes.doc", None, "docx"),
            ("index.xhtml", None, "html"),
            (None, "application/epub+zip", "epub"),
            (None, "text/html; charset=utf-8", "html"),
            ("upload.bin", "application/pdf", "pdf"),
            ("archive.zip", None, "other"),
            (None, None, None),
        ],
    )
    def test_infer_document_type(self, file_name, mime_type, expected):
        assert infer_document_type(file_name, mime_type) == expected


class TestExecutiveSummary:

    def test_bands(self):
        assert [summary_band(p) for p in (100, 80, 79, 50, 49)] == [
            "full", "substantial", "partial", "partial", "limited",
        ]

    def test_three_paragraphs(self):
        summary = ReviewSummary(
            total_criteria=10, applicable_criteria=8, not_applicable_criteria=2,
            passing_criteria=8, conformance_percentage=100,
        )
        text = generate_executive_summary(summary, "VPAT2.5-WCAG", "Moby Dick")
        paragraphs = text.split("\n\n")
        assert len(paragraphs) == 3
        assert paragraphs[0].startswith('"Moby Dick" fully supports all 8 applicable VPAT2.5-WCAG success criteria.')
        assert paragraphs[1].startswith("Methodology:")
        assert paragraphs[2].startswith("Recommendation:")

    def test_no_applicable_criteria(self):
        text = generate_executive_summary(ReviewSummary(total_criteria=3, not_applicable_criteria=3), "VPAT2.5-EU")
        assert text.startswith("The document has no applicable VPAT2.5-EU success criteria recorded")
        assert "conformance could not be determined" in text

    def test_deterministic(self):
        summary = ReviewSummary(total_criteria=4, applicable_criteria=4, passing_criteria=1, conformance_percentage=25)
        assert generate_executive_summary(summary, "VPAT2.5-508") == generate_executive_summary(summary, "VPAT2.5-508")
        assert "only 1 of 4 (25%) pass" in generate_executive_summary(summary, "VPAT2.5-508")


class TestInitializeReport:

    def test_import_creates_draft(self, reviews, draft_id, catalog):
        report = reviews.get_report_for_review("job-1")
        draft = report.draft
        edition_size = len(catalog.criteria_for_edition("VPAT2.5-WCAG"))

        assert draft.id == draft_id
        assert draft.status == "ready_for_review"
        assert draft.document_type == "epub"
        assert draft.total_criteria == edition_size
        assert draft.applicable_criteria == edition_size - 1
        assert draft.na_criteria == 1
        assert draft.passed_criteria == 2
        assert draft.failed_criteria == 1
        assert draft.executive_summary.startswith('"Moby Dick" does not yet support most')

        by_id = {c.criterion_id: c for c in report.criteria}
        assert {"1.1.1", "1.3.1", "1.4.3", "2.4.2"} <= set(by_id)
        assert by_id["4.1.2"].verification_status is None
        assert [c.criterion_id for c in report.na_criteria] == ["1.2.1"]
        assert report.na_criteria[0].na_suggestion["confidence"] == 95
        assert report.summary.needs_review_criteria == edition_size - 4
        # 2 of 49 applicable criteria pass
        assert report.summary.conformance_percentage == 4

    def test_partial_import_covers_the_edition(self, reviews, catalog):
        result = reviews.initialize_report_from_verification(
            "job-3", None, "alice", "VPAT2.5-WCAG", [{"criterion_id": "1.1.1", "verification_status": "verified_pass"}]
        )
        edition_ids = [c.id for c in catalog.criteria_for_edition("VPAT2.5-WCAG")]
        assert result.total_criteria == len(edition_ids)

        report = reviews.get_report_version(result.draft_id)
        assert sorted(c.criterion_id for c in report.criteria) == sorted(edition_ids)
        assert report.summary.passing_criteria == 1
        assert report.summary.conformance_percentage == 2
        assert report.draft.executive_summary.startswith("The document does not yet support most")
        # Added criteria have no import history
        assert reviews.get_criterion_history(result.draft_id, "4.1.2") == []

    def test_rows_outside_the_edition_are_kept(self, reviews, catalog):
        result = reviews.initialize_report_from_verification(
            "job-4", None, "alice", "VPAT2.5-WCAG", [{"criterion_id": "1.2.6"}]
        )
        assert result.total_criteria == len(catalog.criteria_for_edition("VPAT2.5-WCAG")) + 1

    def test_reviewer_and_catalog_details(self, reviews, draft_id):
        criterion = reviews.get_report_for_review("job-1").criteria[0]
        assert criterion.criterion_name == "Non-text Content"
        assert criterion.level == "A"
        assert criterion.reviewed_by == "alice"
        assert criterion.reviewed_by_name == "Alice Reviewer"

    def test_import_result(self, reviews, catalog):
        result = reviews.initialize_report_from_verification(
            "job-2", None, "alice", "VPAT2.5-WCAG", [{"criterion_id": "1.1.1"}, {"criterion_id": "1.1.1"}]
        )
        assert result.imported == 2
        assert result.total_criteria == len(catalog.criteria_for_edition("VPAT2.5-WCAG"))
        assert len(reviews.get_criterion_history(result.draft_id, "1.1.1")) == 2
        assert reviews.get_report_for_review("job-2").draft.document_type is None

    def test_every_import_creates_a_new_draft(self, reviews, draft_id):
        second = reviews.initialize_report_from_verification(
            "job-1", "tenant-1", "bob", "VPAT2.5-WCAG", [{"criterion_id": "1.1.1"}]
        )
        assert second.draft_id != draft_id
        assert [d.id for d in reviews.list_report_versions("job-1")] == [second.draft_id, draft_id]
        assert reviews.get_report_for_review("job-1").draft.id == second.draft_id
        assert reviews.get_report_for_review("job-1", draft_id).draft.id == draft_id

    @pytest.mark.parametrize(
        "payload",
        [[], None, {"criterion_id": "1.1.1"}, [{"verification_status": "verified_pass"}], ["1.1.1"], [{"criterion_id": "  "}]],
    )
    def test_invalid_payload(self, reviews, payload):
        with pytest.raises(ValidationFailureError):
            reviews.initialize_report_from_verification("job-1", None, "alice", "VPAT2.5-WCAG", payload)
        assert reviews.list_report_versions("job-1") == []


class TestUpdateCriterion:

    def test_status_change_updates_counters(self, reviews, draft_id):
        updated = reviews.update_criterion(
            draft_id, "1.3.1", {"verificationStatus": "verified_pass"}, "bob", reason="Fixed headers"
        )
        assert updated.verification_status == "verified_pass"
        assert updated.reviewed_by_name == "Bob Approver"

        draft = reviews.get_report_version(draft_id).draft
        assert draft.passed_criteria == 3
        assert draft.failed_criteria == 0

        history = reviews.get_criterion_history(draft_id, "1.3.1")
        assert [h.change_type for h in history] == ["status_change", "verification_import"]
        assert history[0].reason == "Fixed headers"
        assert history[0].previous_value["verification_status"] == "verified_fail"
        assert history[0].new_value == {"verification_status": "verified_pass"}

    def test_na_toggle(self, reviews, draft_id):
        reviews.update_criterion(draft_id, "2.4.2", {"is_not_applicable": True, "na_reason": "No pages"}, "bob")
        report = reviews.get_report_for_review("job-1")
        assert "2.4.2" in [c.criterion_id for c in report.na_criteria]
        assert report.draft.na_criteria == 2
        assert reviews.get_criterion_history(draft_id, "2.4.2")[0].change_type == "na_toggle"

    def test_unknown_field(self, reviews, draft_id):
        with pytest.raises(ValidationFailureError):
            reviews.update_criterion(draft_id, "1.1.1", {"criterion_name": "x"}, "bob")

    def test_missing_draft_or_criterion(self, reviews, draft_id):
        with pytest.raises(NotFoundError):
            reviews.update_criterion("missing", "1.1.1", {"reviewer_notes": "x"}, "bob")
        with pytest.raises(NotFoundError):
            reviews.update_criterion(draft_id, "1.2.6", {"reviewer_notes": "x"}, "bob")

    @pytest.mark.parametrize(
        "previous,updates,expected",
        [
            ({"is_not_applicable": False}, {"is_not_applicable": True}, "na_toggle"),
            ({"verification_status": "verified_fail"}, {"verification_status": "verified_pass"}, "status_change"),
            ({"verification_status": "verified_pass"}, {"verification_status": "verified_pass"}, "general_update"),
            ({}, {"reviewer_notes": "Checked again"}, "remarks_update"),
            ({}, {"conformance_level": "pass"}, "general_update"),
        ],
    )
    def test_change_types(self, previous, updates, expected):
        assert determine_change_type(previous, updates) == expected


class TestMetadataAndApproval:

    def test_update_metadata(self, reviews, draft_id):
        info = reviews.update_report_metadata(
            draft_id, {"executiveSummary": "Edited summary", "conformance_level": "Partially Supports"}, "bob"
        )
        assert info.executive_summary == "Edited summary"
        assert info.conformance_level == "Partially Supports"

    def test_update_metadata_rejects_unknown_fields(self, reviews, draft_id):
        with pytest.raises(ValidationFailureError):
            reviews.update_report_metadata(draft_id, {"status": "approved"}, "bob")

    def test_approved_draft_is_locked(self, reviews, draft_id):
        info = reviews.approve_report(draft_id, "bob")
        assert info.status == "approved"
        assert info.approved_by == "bob"
        assert info.approved_at is not None

        with pytest.raises(ReportLockedError):
            reviews.update_criterion(draft_id, "1.1.1", {"reviewer_notes": "late"}, "alice")
        with pytest.raises(ReportLockedError):
            reviews.update_report_metadata(draft_id, {"documentTitle": "late"}, "alice")
        with pytest.raises(ReportLockedError):
            reviews.approve_report(draft_id, "alice")
        assert len(reviews.get_criterion_history(draft_id, "1.1.1")) == 1

    def test_approve_missing_draft(self, reviews):
        with pytest.raises(NotFoundError):
            reviews.approve_report("missing", "bob")


class TestReadAndDelete:

    def test_history_of_unknown_criterion(self, reviews, draft_id):
        assert reviews.get_criterion_history(draft_id, "1.2.6") == []
        with pytest.raises(NotFoundError):
            reviews.get_criterion_history("missing", "1.1.1")

    def test_report_lookups(self, reviews, draft_id):
        with pytest.raises(NotFoundError):
            reviews.get_report_for_review("job-unknown")
        with pytest.raises(NotFoundError):
            reviews.get_report_for_review("job-2", draft_id)
        with pytest.raises(NotFoundError):
            reviews.get_report_version("missing")
        assert reviews.list_report_versions("job-unknown") == []

    def test_delete_report(self, reviews, draft_id):
        reviews.initialize_report_from_verification("job-1", None, "bob", "VPAT2.5-WCAG", [{"criterion_id": "1.1.1"}])
        assert reviews.delete_report("job-1") == 2
        assert reviews.list_report_versions("job-1") == []
        with pytest.raises(NotFoundError):
            reviews.delete_report("job-1")
