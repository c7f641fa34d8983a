"""
Tests for job-level analysis, caching and analysis snapshots.
"""

import pytest

from accessibility_conformance.analysis import (
    AnalysisCache,
    ConformanceAnalyzer,
    JobAnalysisService,
    build_snapshot,
    load_job_content,
)
from accessibility_conformance.persistence.models import Job
from accessibility_conformance.utils.logging_helper import NotFoundError
from accessibility_conformance.versioning import VersionManager


JOB_OUTPUT = {
    "epubTitle": "Moby Dick",
    "selectedEdition": "VPAT2.5-WCAG",
    "combinedIssues": [
        {"id": "i-1", "code": "img-alt", "severity": "critical", "message": "Missing alt"},
        {"id": "i-2", "code": "html-has-lang", "severity": "serious"},
    ],
    "remediationHistory": [{"issueCode": "html-has-lang", "status": "completed"}],
}


class RecordingAnalyzer:
    """Counts analyze() calls while delegating to a real analyzer."""

    def __init__(self, analyzer):
        self.analyzer = analyzer
        self.calls = 0
        self.editions = []

    def analyze(self, *args, **kwargs):
        self.calls += 1
        self.editions.append(kwargs.get("edition_code"))
        return self.analyzer.analyze(*args, **kwargs)


class FailingVersionManager:

    def create_version(self, *args, **kwargs):
        raise RuntimeError("database unavailable")


@pytest.fixture
def versions(session_factory):
    return VersionManager(session_factory)


@pytest.fixture
def service(session_factory, versions):
    return JobAnalysisService(session_factory, version_manager=versions)


class TestGetAnalysisForJob:

    def test_missing_job(self, service):
        with pytest.raises(NotFoundError):
            service.get_analysis_for_job("nope")

    def test_analysis_of_job_output(self, service, make_job):
        job_id = make_job(JOB_OUTPUT)
        analysis = service.get_analysis_for_job(job_id)

        assert analysis.job_id == job_id
        assert analysis.edition == "VPAT2.5-WCAG"
        assert analysis.criterion("1.1.1").status == "does_not_support"
        assert analysis.criterion("3.1.1").status == "supports"
        assert analysis.criterion("3.1.1").fixed_count == 1

    def test_default_edition_from_config(self, session_factory, make_job, catalog):
        recording = RecordingAnalyzer(ConformanceAnalyzer(catalog=catalog))
        service = JobAnalysisService(
            session_factory, analyzer=recording, options={"default_edition": "VPAT2.5-INT"}
        )
        job_id = make_job({"issues": [{"code": "img-alt"}]})
        analysis = service.get_analysis_for_job(job_id)
        assert recording.editions == ["VPAT2.5-INT"]
        assert analysis.summary.total == len(catalog)

    def test_cached_analysis_is_reused(self, session_factory, make_job, catalog):
        recording = RecordingAnalyzer(ConformanceAnalyzer(catalog=catalog))
        service = JobAnalysisService(session_factory, analyzer=recording)
        job_id = make_job(JOB_OUTPUT)

        first = service.get_analysis_for_job(job_id)
        second = service.get_analysis_for_job(job_id)
        assert recording.calls == 1
        assert second.overall_confidence == first.overall_confidence
        assert second.criterion("1.1.1").status == first.criterion("1.1.1").status

        service.get_analysis_for_job(job_id, force_refresh=True)
        assert recording.calls == 2

    def test_invalidate(self, service, make_job):
        job_id = make_job(JOB_OUTPUT)
        assert not service.invalidate(job_id)
        service.get_analysis_for_job(job_id)
        assert service.invalidate(job_id)
        assert AnalysisCache(service.session_factory).get(job_id) is None

    def test_job_row_is_not_modified(self, service, make_job, session_factory):
        job_id = make_job(JOB_OUTPUT)
        service.get_analysis_for_job(job_id)
        with session_factory() as session:
            assert session.get(Job, job_id).output == JOB_OUTPUT


class TestApplicability:

    def test_content_on_job_adds_suggestions(self, service, make_job, text_content_dir):
        job_id = make_job({**JOB_OUTPUT, "contentPath": str(text_content_dir)})
        analysis = service.get_analysis_for_job(job_id)
        assert len(analysis.na_suggestions) == 10
        assert analysis.criterion("1.2.1").na_suggestion.suggested_status == "not_applicable"
        # Suggestions never change the computed status
        assert analysis.criterion("1.2.1").status == "supports"

    def test_loader_failure_is_ignored(self, session_factory, make_job):
        def broken_loader(job):
            raise OSError("disk gone")

        service = JobAnalysisService(session_factory, content_loader=broken_loader)
        analysis = service.get_analysis_for_job(make_job(JOB_OUTPUT))
        assert analysis.na_suggestions == []

    def test_load_job_content(self, text_content_dir):
        assert load_job_content(Job(id="j", output={"contentPath": str(text_content_dir)})).total_fragments == 1
        assert load_job_content(Job(id="j", input={"filePath": "/does/not/exist.epub"})) is None
        assert load_job_content(Job(id="j")) is None


class TestAnalysisSnapshots:

    def test_fresh_analysis_creates_version(self, service, versions, make_job):
        job_id = make_job(JOB_OUTPUT)
        service.get_analysis_for_job(job_id)

        record = versions.get_latest_version(job_id)
        assert versions.get_version_count(job_id) == 1
        assert record.created_by == "system-ai"
        assert record.reason == "AI-generated initial assessment"
        assert record.snapshot["product_info"]["name"] == "Moby Dick"
        criterion = next(c for c in record.snapshot["criteria"] if c["criterion_id"] == "1.1.1")
        assert criterion["conformance_level"] == "Does Not Support"
        assert criterion["attribution_tag"] == "AI_SUGGESTED"

    def test_cache_hit_creates_no_version(self, service, versions, make_job):
        job_id = make_job(JOB_OUTPUT)
        service.get_analysis_for_job(job_id)
        service.get_analysis_for_job(job_id)
        assert versions.get_version_count(job_id) == 1

    def test_snapshots_can_be_disabled(self, session_factory, versions, make_job):
        service = JobAnalysisService(
            session_factory, version_manager=versions, options={"create_version_snapshot": False}
        )
        job_id = make_job(JOB_OUTPUT)
        service.get_analysis_for_job(job_id)
        assert versions.get_version_count(job_id) == 0

    def test_snapshot_failure_does_not_fail_analysis(self, session_factory, make_job):
        service = JobAnalysisService(session_factory, version_manager=FailingVersionManager())
        analysis = service.get_analysis_for_job(make_job(JOB_OUTPUT))
        assert analysis.criterion("1.1.1").status == "does_not_support"

    def test_build_snapshot_defaults(self, service, make_job):
        analysis = service.get_analysis_for_job(make_job({"issues": []}))
        snapshot = build_snapshot(analysis, None)
        assert snapshot["status"] == "draft"
        assert snapshot["product_info"] == {"name": "Unknown Product", "version": "1.0", "vendor": ""}
        assert len(snapshot["criteria"]) == 50
        assert snapshot["criteria"][0]["remarks"].startswith("No accessibility issues detected")
