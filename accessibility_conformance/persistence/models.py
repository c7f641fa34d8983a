# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
ORM models for jobs, cached analyses, report drafts and report versions.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from accessibility_conformance.utils.report_models import utc_now


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Declarative base for every conformance table."""


class Job(Base):
    """Audit job record owned by the upstream workflow."""

    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    tenant_id: Mapped[Optional[str]] = mapped_column(String(64))
    user_id: Mapped[Optional[str]] = mapped_column(String(64))
    input: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    output: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class AnalysisCacheEntry(Base):
    """Cached conformance analysis, kept apart from the job row."""

    __tablename__ = "analysis_cache"

    job_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    analyzed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class AcrDraft(Base):
    """One attempt at a full conformance report for a job."""

    __tablename__ = "acr_drafts"
    __table_args__ = (Index("ix_acr_drafts_job_created", "job_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    job_id: Mapped[str] = mapped_column(String(64), nullable=False)
    tenant_id: Mapped[Optional[str]] = mapped_column(String(64))
    user_id: Mapped[Optional[str]] = mapped_column(String(64))
    edition: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="ready_for_review", nullable=False)

    document_title: Mapped[Optional[str]] = mapped_column(String(500))
    document_type: Mapped[Optional[str]] = mapped_column(String(32))
    file_name: Mapped[Optional[str]] = mapped_column(String(500))
    mime_type: Mapped[Optional[str]] = mapped_column(String(200))
    executive_summary: Mapped[Optional[str]] = mapped_column(Text)
    conformance_level: Mapped[Optional[str]] = mapped_column(String(32))

    # Aggregate counters, recomputed on every criterion change
    total_criteria: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    applicable_criteria: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    na_criteria: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    passed_criteria: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_criteria: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    approved_by: Mapped[Optional[str]] = mapped_column(String(64))
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    criteria: Mapped[List["CriterionReview"]] = relationship(
        back_populates="draft",
        cascade="all, delete-orphan",
        order_by="CriterionReview.criterion_id",
    )


class CriterionReview(Base):
    """Human review state of one criterion within a draft."""

    __tablename__ = "criterion_reviews"
    __table_args__ = (
        UniqueConstraint("draft_id", "criterion_id", name="uq_criterion_review_draft_criterion"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    draft_id: Mapped[str] = mapped_column(
        ForeignKey("acr_drafts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    criterion_id: Mapped[str] = mapped_column(String(16), nullable=False)
    criterion_name: Mapped[Optional[str]] = mapped_column(String(200))

    verification_status: Mapped[Optional[str]] = mapped_column(String(32))
    verification_method: Mapped[Optional[str]] = mapped_column(String(64))
    verification_notes: Mapped[Optional[str]] = mapped_column(Text)
    reviewer_notes: Mapped[Optional[str]] = mapped_column(Text)
    conformance_level: Mapped[Optional[str]] = mapped_column(String(32))
    is_not_applicable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    na_reason: Mapped[Optional[str]] = mapped_column(Text)
    na_suggestion: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    confidence: Mapped[Optional[int]] = mapped_column(Integer)

    reviewed_by: Mapped[Optional[str]] = mapped_column(String(64))
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    draft: Mapped["AcrDraft"] = relationship(back_populates="criteria")
    changes: Mapped[List["CriterionChangeLog"]] = relationship(
        back_populates="criterion_review", cascade="all, delete-orphan"
    )


class CriterionChangeLog(Base):
    """Append-only audit trail entry for a criterion review."""

    __tablename__ = "criterion_change_logs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    criterion_review_id: Mapped[str] = mapped_column(
        ForeignKey("criterion_reviews.id", ondelete="CASCADE"), nullable=False, index=True
    )
    draft_id: Mapped[str] = mapped_column(String(64), nullable=False)
    job_id: Mapped[str] = mapped_column(String(64), nullable=False)
    criterion_id: Mapped[str] = mapped_column(String(16), nullable=False)
    changed_by: Mapped[str] = mapped_column(String(64), nullable=False)
    change_type: Mapped[str] = mapped_column(String(32), nullable=False)
    previous_value: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    new_value: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    criterion_review: Mapped["CriterionReview"] = relationship(back_populates="changes")


class ReportVersion(Base):
    """Immutable numbered snapshot of a report."""

    __tablename__ = "report_versions"
    __table_args__ = (
        UniqueConstraint("report_id", "version", name="uq_report_versions_report_version"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    report_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    snapshot: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    change_log: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
