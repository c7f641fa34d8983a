# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Persistence layer: SQLAlchemy models and session management.
"""

from accessibility_conformance.persistence.database import Database, init_database
from accessibility_conformance.persistence.models import (
    Base,
    Job,
    AnalysisCacheEntry,
    AcrDraft,
    CriterionReview,
    CriterionChangeLog,
    ReportVersion,
)

__all__ = [
    "Database",
    "init_database",
    "Base",
    "Job",
    "AnalysisCacheEntry",
    "AcrDraft",
    "CriterionReview",
    "CriterionChangeLog",
    "ReportVersion",
]
