"""
Tests for the command-line interface and the top-level API.
"""

import json

import pytest
import yaml

from accessibility_conformance import __version__
from accessibility_conformance.api import (
    ConformanceServices,
    analyze_conformance,
    classify_issues,
    detect_applicability,
    load_content,
)
from accessibility_conformance.cli import create_parser, main
from accessibility_conformance.persistence.database import init_database
from accessibility_conformance.utils.logging_helper import ConformanceEngineError, NotFoundError
from accessibility_conformance.versioning import VersionManager


ISSUES = [
    {"id": "i-1", "code": "img-alt", "severity": "critical"},
    {"id": "i-2", "code": "EPUB-META-001", "severity": "minor"},
]


@pytest.fixture
def issues_file(tmp_path):
    path = tmp_path / "issues.json"
    path.write_text(json.dumps(ISSUES), encoding="utf-8")
    return path


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestParser:

    def test_subcommands(self):
        args = create_parser().parse_args(["versions", "--report-id", "r-1", "--compare", "1", "2"])
        assert args.command == "versions"
        assert args.compare == [1, 2]

    def test_version_flag(self, capsys):
        assert main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 1


class TestAnalyzeCommand:

    def test_issue_list(self, issues_file, tmp_path):
        output = tmp_path / "out" / "analysis.json"
        assert main(["analyze", "-i", str(issues_file), "-o", str(output), "-q"]) == 0

        result = _read(output)
        assert result["edition"] == "default"
        by_id = {c["id"]: c for c in result["criteria"]}
        assert by_id["1.1.1"]["status"] == "does_not_support"
        assert result["summary"]["total"] == 50

    def test_job_output_with_edition_and_content(self, tmp_path, text_content_dir):
        job_output = tmp_path / "job.json"
        job_output.write_text(
            json.dumps(
                {
                    "combinedIssues": ISSUES,
                    "selectedEdition": "VPAT2.5-INT",
                    "remediationHistory": [{"issueCode": "img-alt", "status": "completed"}],
                }
            ),
            encoding="utf-8",
        )
        output = tmp_path / "analysis.json"
        code = main(
            ["analyze", "-i", str(job_output), "--content", str(text_content_dir), "-o", str(output), "-q"]
        )
        assert code == 0

        result = _read(output)
        assert result["edition"] == "VPAT2.5-INT"
        assert result["remediation"]["fixed_issues"] == 1
        assert len(result["na_suggestions"]) == 10

    def test_edition_flag_wins(self, issues_file, tmp_path):
        output = tmp_path / "analysis.json"
        assert main(["analyze", "-i", str(issues_file), "-e", "VPAT2.5-508", "-o", str(output), "-q"]) == 0
        assert _read(output)["edition"] == "VPAT2.5-508"

    def test_summary_is_printed(self, issues_file, tmp_path, capsys):
        output = tmp_path / "analysis.json"
        assert main(["analyze", "-i", str(issues_file), "-o", str(output)]) == 0
        assert "Does not support: 1" in capsys.readouterr().out

    @pytest.mark.parametrize("content", [None, "{not json", '"just a string"'])
    def test_bad_input(self, tmp_path, content):
        path = tmp_path / "issues.json"
        if content is not None:
            path.write_text(content, encoding="utf-8")
        assert main(["analyze", "-i", str(path), "-o", str(tmp_path / "out.json"), "-q"]) == 1


class TestDetectAndClassify:

    def test_detect(self, text_content_dir, tmp_path):
        output = tmp_path / "suggestions.json"
        assert main(["detect", "-i", str(text_content_dir), "-o", str(output), "-q"]) == 0
        suggestions = _read(output)
        assert suggestions[0]["criterion_id"] == "1.2.x"
        assert suggestions[0]["confidence"] == 95

    def test_detect_with_config_file(self, tmp_path):
        root = tmp_path / "book"
        root.mkdir()
        for n in range(4):
            (root / f"ch{n}.xhtml").write_text("<p>x</p>", encoding="utf-8")
        config = tmp_path / "config.yaml"
        config.write_text("applicability:\n  max_fragments: 2\n", encoding="utf-8")
        output = tmp_path / "suggestions.json"

        assert main(["detect", "-i", str(root), "-c", str(config), "-o", str(output), "-q"]) == 0
        assert "only 2 of 4 content files (50%)" in _read(output)[0]["rationale"]

    def test_detect_missing_path(self, tmp_path):
        assert main(["detect", "-i", str(tmp_path / "missing"), "-q"]) == 1

    def test_bad_config_file(self, text_content_dir, tmp_path):
        code = main(["detect", "-i", str(text_content_dir), "-c", str(tmp_path / "missing.yaml"), "-q"])
        assert code == 1

    def test_save_config(self, text_content_dir, tmp_path):
        saved = tmp_path / "effective.yaml"
        output = tmp_path / "suggestions.json"
        code = main(
            ["detect", "-i", str(text_content_dir), "-o", str(output), "--save-config", str(saved), "-q"]
        )
        assert code == 0
        assert yaml.safe_load(saved.read_text(encoding="utf-8"))["applicability"]["max_fragments"] == 50

    def test_classify(self, issues_file, tmp_path):
        output = tmp_path / "classified.json"
        assert main(["classify", "-i", str(issues_file), "-o", str(output), "-q"]) == 0
        assert [c["fix_type"] for c in _read(output)] == ["manual", "autofix"]


class TestVersionsCommand:

    def test_list_and_compare(self, tmp_path, make_snapshot):
        url = f"sqlite:///{tmp_path / 'versions.db'}"
        database = init_database(url)
        versions = VersionManager(database.session_factory)
        versions.create_version("report-1", make_snapshot(), "alice")
        versions.create_version("report-1", make_snapshot(status="approved"), "bob")
        database.dispose()

        listing = tmp_path / "versions.json"
        assert main(["versions", "-r", "report-1", "--database", url, "-o", str(listing), "-q"]) == 0
        assert [v["version"] for v in _read(listing)] == [2, 1]

        comparison = tmp_path / "comparison.json"
        code = main(
            ["versions", "-r", "report-1", "--database", url, "--compare", "1", "2", "-o", str(comparison), "-q"]
        )
        assert code == 0
        assert _read(comparison)["summary"]["status_changed"] is True

    def test_missing_version(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'versions.db'}"
        assert main(["versions", "-r", "report-1", "--database", url, "--compare", "1", "2", "-q"]) == 1


class TestApi:

    def test_analyze_conformance_wraps_errors(self):
        with pytest.raises(ConformanceEngineError):
            analyze_conformance(5)

    def test_load_content(self, tmp_path, text_content_dir):
        assert load_content(str(text_content_dir)).total_fragments == 1
        with pytest.raises(NotFoundError):
            load_content(str(tmp_path / "missing"))

    def test_detect_and_classify(self, text_content_dir):
        assert len(detect_applicability(str(text_content_dir))) == 10
        assert detect_applicability(str(text_content_dir), {"enabled": False}) == []
        classified = classify_issues([{"code": "EPUB-STRUCT-002", "snippet": "<table><tr><td>x</td></tr></table>"}])
        assert classified[0].context.table_type == "simple"

    def test_services(self, database, make_job):
        services = ConformanceServices(database=database)
        job_id = make_job({"issues": ISSUES, "epubTitle": "Moby Dick"})

        analysis = services.analysis.get_analysis_for_job(job_id)
        assert analysis.criterion("1.1.1").status == "does_not_support"
        assert services.versions.get_version_count(job_id) == 1

        result = services.reviews.initialize_report_from_verification(
            job_id, "tenant-1", "alice", analysis.edition, [{"criterion_id": "1.1.1"}]
        )
        assert services.reviews.get_report_version(result.draft_id).draft.job_id == job_id
        services.close()
