# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Job-level conformance analysis.

Reads the audit result stored on a job, runs applicability detection when the
job's content can be loaded, analyzes every criterion of the job's edition and
keeps the result in a read-through cache. Each fresh analysis is also recorded
as a report version.
"""

import os
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.orm import sessionmaker

from accessibility_conformance.analysis.analysis_cache import AnalysisCache
from accessibility_conformance.analysis.conformance_analyzer import ConformanceAnalyzer
from accessibility_conformance.analysis.issue_adapter import job_payload
from accessibility_conformance.applicability.content_scanner import ContentPackage
from accessibility_conformance.applicability.detector import ApplicabilityDetector
from accessibility_conformance.persistence.models import Job
from accessibility_conformance.utils.config import config_manager
from accessibility_conformance.utils.logging_helper import (
    setup_logger,
    log_exception,
    NotFoundError,
)
from accessibility_conformance.utils.report_models import (
    ApplicabilitySuggestion,
    ConformanceAnalysis,
    ConformanceStatus,
)
from accessibility_conformance.versioning.version_manager import VersionManager

# Configure module-level logger
logger = setup_logger(__name__)

ContentLoader = Callable[[Job], Optional[ContentPackage]]

SNAPSHOT_ACTOR = "system-ai"
SNAPSHOT_REASON = "AI-generated initial assessment"
ATTRIBUTION_TAG = "AI_SUGGESTED"
UNKNOWN_PRODUCT = "Unknown Product"

CONFORMANCE_LABELS = {
    ConformanceStatus.SUPPORTS.value: "Supports",
    ConformanceStatus.PARTIALLY_SUPPORTS.value: "Partially Supports",
    ConformanceStatus.DOES_NOT_SUPPORT.value: "Does Not Support",
    ConformanceStatus.NOT_APPLICABLE.value: "Not Applicable",
}

CONTENT_PATH_KEYS = ("contentPath", "extractedPath", "epubPath", "filePath")


def load_job_content(job: Job) -> Optional[ContentPackage]:
    """
    Default content loader: a local EPUB file or unpacked directory named on the job.

    Args:
        job: Job row

    Returns:
        ContentPackage, or None when the job names no local content
    """
    for source in (job.output or {}, job.input or {}):
        for key in CONTENT_PATH_KEYS:
            path = source.get(key)
            if not path or not isinstance(path, str):
                continue
            if os.path.isdir(path):
                return ContentPackage.from_directory(path)
            if os.path.isfile(path) and path.lower().endswith(".epub"):
                return ContentPackage.from_epub(path)
    return None


def build_snapshot(analysis: ConformanceAnalysis, output: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Report snapshot recorded as a version after an analysis.

    Args:
        analysis: Fresh conformance analysis
        output: Job output, used for the product name

    Returns:
        JSON-compatible snapshot mapping
    """
    output = output or {}
    return {
        "id": analysis.job_id,
        "status": "draft",
        "edition": analysis.edition,
        "product_info": {
            "name": output.get("epubTitle") or output.get("documentTitle") or UNKNOWN_PRODUCT,
            "version": "1.0",
            "vendor": "",
        },
        "evaluation_methods": [
            {
                "type": "automated",
                "description": "Automated accessibility analysis",
            }
        ],
        "overall_confidence": analysis.overall_confidence,
        "criteria": [
            {
                "criterion_id": criterion.id,
                "name": criterion.name,
                "level": criterion.level,
                "conformance_level": CONFORMANCE_LABELS.get(criterion.status, "Not Applicable"),
                "remarks": ". ".join(criterion.findings),
                "confidence": criterion.confidence,
                "attribution_tag": ATTRIBUTION_TAG,
            }
            for criterion in analysis.criteria
        ],
        "generated_at": analysis.analyzed_at.isoformat(),
    }


class JobAnalysisService:
    """Computes, caches and versions the conformance analysis of a job."""

    def __init__(
        self,
        session_factory: sessionmaker,
        analyzer: Optional[ConformanceAnalyzer] = None,
        detector: Optional[ApplicabilityDetector] = None,
        version_manager: Optional[VersionManager] = None,
        content_loader: Optional[ContentLoader] = load_job_content,
        cache: Optional[AnalysisCache] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the service.

        Args:
            session_factory: SQLAlchemy session factory
            analyzer: Conformance analyzer
            detector: Applicability detector
            version_manager: Version manager for analysis snapshots (None disables them)
            content_loader: Callable returning a job's content, or None
            cache: Analysis cache (default: cache on the same database)
            options: Overrides for the 'analysis' config section
        """
        self.session_factory = session_factory
        self.options = config_manager.get_config(options, section="analysis")
        self.analyzer = analyzer or ConformanceAnalyzer(options=self.options)
        self.detector = detector or ApplicabilityDetector()
        self.version_manager = version_manager
        self.content_loader = content_loader
        self.cache = cache or AnalysisCache(session_factory)

    def _load_job(self, job_id: str) -> Job:
        with self.session_factory() as session:
            job = session.get(Job, job_id)
            if job is None:
                raise NotFoundError(f"Job not found: {job_id}", {"job_id": job_id})
            return job

    def _suggestions(self, job: Job) -> List[ApplicabilitySuggestion]:
        if self.content_loader is None:
            return []
        try:
            content = self.content_loader(job)
        except Exception as e:
            log_exception(logger, e, f"Could not load content for job {job.id}", include_traceback=False)
            return []
        if content is None:
            logger.debug("No content available for job %s, skipping applicability detection", job.id)
            return []
        return self.detector.detect(content)

    def _record_version(self, analysis: ConformanceAnalysis, output: Optional[Mapping[str, Any]]) -> None:
        if self.version_manager is None or not self.options.get("create_version_snapshot", True):
            return
        try:
            record = self.version_manager.create_version(
                analysis.job_id,
                build_snapshot(analysis, output),
                SNAPSHOT_ACTOR,
                SNAPSHOT_REASON,
            )
            logger.info("Created version %s for report %s after analysis", record.version, analysis.job_id)
        except Exception as e:
            log_exception(logger, e, f"Failed to create version for report {analysis.job_id}")

    def get_analysis_for_job(self, job_id: str, force_refresh: bool = False) -> ConformanceAnalysis:
        """
        Get the conformance analysis of a job.

        Args:
            job_id: Job id
            force_refresh: Recompute even when a cached analysis exists

        Returns:
            ConformanceAnalysis

        Raises:
            NotFoundError: If the job does not exist
        """
        job = self._load_job(job_id)

        if not force_refresh:
            cached = self.cache.get(job_id)
            if cached is not None:
                logger.info("Returning cached analysis for job %s", job_id)
                return cached

        issues, changes, edition = job_payload(job.output)
        suggestions = self._suggestions(job)
        analysis = self.analyzer.analyze(
            issues,
            edition_code=edition or self.options.get("default_edition"),
            remediation_changes=changes,
            na_suggestions=suggestions,
            job_id=job_id,
        )

        self.cache.put(job_id, analysis)
        self._record_version(analysis, job.output)
        return analysis

    def invalidate(self, job_id: str) -> bool:
        """Drop the cached analysis so the next request recomputes it."""
        return self.cache.invalidate(job_id)
