# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Read-through cache of conformance analyses, stored apart from the job row.
"""

from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import sessionmaker

from accessibility_conformance.persistence.models import AnalysisCacheEntry
from accessibility_conformance.utils.logging_helper import setup_logger
from accessibility_conformance.utils.report_models import ConformanceAnalysis

# Configure module-level logger
logger = setup_logger(__name__)


class AnalysisCache:
    """Stores one analysis payload per job id."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, job_id: str) -> Optional[ConformanceAnalysis]:
        with self.session_factory() as session:
            entry = session.get(AnalysisCacheEntry, job_id)
            if entry is None:
                return None
            logger.debug("Cache hit for job %s", job_id)
            return ConformanceAnalysis.model_validate(entry.payload)

    def put(self, job_id: str, analysis: ConformanceAnalysis) -> None:
        """Store an analysis, overwriting any cached payload for the job."""
        payload = analysis.model_dump(mode="json")
        with self.session_factory() as session, session.begin():
            entry = session.get(AnalysisCacheEntry, job_id)
            if entry is None:
                session.add(
                    AnalysisCacheEntry(job_id=job_id, payload=payload, analyzed_at=analysis.analyzed_at)
                )
            else:
                entry.payload = payload
                entry.analyzed_at = analysis.analyzed_at
        logger.debug("Cached analysis for job %s", job_id)

    def invalidate(self, job_id: str) -> bool:
        """
        Drop the cached analysis of a job.

        Returns:
            True when an entry was removed
        """
        with self.session_factory() as session, session.begin():
            result = session.execute(
                delete(AnalysisCacheEntry).where(AnalysisCacheEntry.job_id == job_id)
            )
            removed = bool(result.rowcount)
        if removed:
            logger.info("Invalidated cached analysis for job %s", job_id)
        return removed
