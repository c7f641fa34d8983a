# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Accessibility Conformance API.

This module provides the primary entry points for the conformance engine:
conformance analysis of audit issues, applicability detection on document
content, remediation classification, and the database-backed services for job
analysis, report versions and report review.
"""

import os
from typing import Any, Dict, Iterable, List, Optional

from accessibility_conformance.analysis.analysis_cache import AnalysisCache
from accessibility_conformance.analysis.conformance_analyzer import ConformanceAnalyzer
from accessibility_conformance.analysis.issue_adapter import normalize_issues
from accessibility_conformance.analysis.job_analysis import JobAnalysisService
from accessibility_conformance.applicability.content_scanner import ContentPackage
from accessibility_conformance.applicability.detector import ApplicabilityDetector
from accessibility_conformance.catalog.standards import CriteriaCatalog, default_catalog
from accessibility_conformance.persistence.database import Database, init_database
from accessibility_conformance.remediate.issue_context import IssueContextResolver
from accessibility_conformance.review.report_review import ReportReviewService, ReviewerDirectory
from accessibility_conformance.utils.logging_helper import (
    setup_logger,
    handle_exception,
    ConformanceEngineError,
    NotFoundError,
)
from accessibility_conformance.utils.report_models import (
    ApplicabilitySuggestion,
    ClassifiedIssue,
    ConformanceAnalysis,
)
from accessibility_conformance.versioning.version_manager import VersionManager

# Set up module-level logger
logger = setup_logger(__name__)


def load_content(content_path: str) -> ContentPackage:
    """
    Load document content from an unpacked directory or an EPUB file.

    Args:
        content_path: Directory or .epub path

    Returns:
        ContentPackage

    Raises:
        NotFoundError: If the path does not exist
    """
    if os.path.isdir(content_path):
        return ContentPackage.from_directory(content_path)
    if os.path.isfile(content_path):
        return ContentPackage.from_epub(content_path)
    raise NotFoundError(f"Content path not found: {content_path}", {"path": content_path})


def analyze_conformance(
    issues: Iterable[Any],
    edition_code: Optional[str] = None,
    remediation_changes: Optional[Iterable[Any]] = None,
    na_suggestions: Optional[Iterable[ApplicabilitySuggestion]] = None,
    options: Optional[Dict[str, Any]] = None,
    catalog: Optional[CriteriaCatalog] = None,
) -> ConformanceAnalysis:
    """
    Analyze audit issues against every criterion of an edition.

    Args:
        issues: Audit issues as mappings in any supported upstream shape
        edition_code: Edition code, e.g. 'VPAT2.5-WCAG' (default: A + AA)
        remediation_changes: Completed remediation history
        na_suggestions: Applicability suggestions to attach to criteria
        options: Overrides for the 'analysis' config section
        catalog: Success criteria catalog

    Returns:
        ConformanceAnalysis

    Raises:
        ConformanceEngineError: If the analysis fails
    """
    try:
        analyzer = ConformanceAnalyzer(catalog=catalog, options=options)
        return analyzer.analyze(
            issues,
            edition_code=edition_code,
            remediation_changes=remediation_changes,
            na_suggestions=na_suggestions,
        )
    except ConformanceEngineError:
        raise
    except Exception as e:
        handle_exception(
            e,
            logger,
            custom_message="Error analyzing conformance",
            custom_exception=ConformanceEngineError,
        )


def detect_applicability(
    content_path: str, options: Optional[Dict[str, Any]] = None
) -> List[ApplicabilitySuggestion]:
    """
    Suggest which criteria may not apply to a document.

    Args:
        content_path: Unpacked content directory or .epub file
        options: Overrides for the 'applicability' config section

    Returns:
        Advisory applicability suggestions; empty when detection fails

    Raises:
        NotFoundError: If the content path does not exist
    """
    content = load_content(content_path)
    return ApplicabilityDetector(options).detect(content)


def classify_issues(
    issues: Iterable[Any], content_path: Optional[str] = None
) -> List[ClassifiedIssue]:
    """
    Score and classify audit issues as autofix, quickfix or manual.

    Args:
        issues: Audit issues as mappings in any supported upstream shape
        content_path: Optional content used to judge table and image complexity

    Returns:
        Classified issues in input order
    """
    content = load_content(content_path) if content_path else None
    resolver = IssueContextResolver(content)
    return resolver.classify_all(normalize_issues(issues))


class ConformanceServices:
    """Database-backed services sharing one engine and session factory."""

    def __init__(
        self,
        database: Optional[Database] = None,
        catalog: Optional[CriteriaCatalog] = None,
        reviewer_directory: Optional[ReviewerDirectory] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Wire up the services.

        Args:
            database: Database to use (default: database.url from config, schema created)
            catalog: Success criteria catalog
            reviewer_directory: Callable resolving user ids to display names
            options: Optional per-section overrides, keyed by config section
        """
        options = options or {}
        self.database = database or init_database()
        self.catalog = catalog or default_catalog()
        session_factory = self.database.session_factory

        self.versions = VersionManager(session_factory, options.get("versioning"))
        self.analysis = JobAnalysisService(
            session_factory,
            analyzer=ConformanceAnalyzer(catalog=self.catalog, options=options.get("analysis")),
            detector=ApplicabilityDetector(options.get("applicability")),
            version_manager=self.versions,
            cache=AnalysisCache(session_factory),
            options=options.get("analysis"),
        )
        self.reviews = ReportReviewService(
            session_factory, catalog=self.catalog, reviewer_directory=reviewer_directory
        )

    def close(self) -> None:
        self.database.dispose()
