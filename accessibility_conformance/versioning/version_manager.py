# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Immutable, numbered report versions.

Version numbers per report id are claimed inside one transaction that reads the
latest version and inserts the next one under a unique (report_id, version)
constraint. A constraint violation means another writer won the race; the
whole transaction is retried a bounded number of times.
"""

import json
import time
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from accessibility_conformance.persistence.models import ReportVersion
from accessibility_conformance.utils.config import config_manager
from accessibility_conformance.utils.logging_helper import (
    setup_logger,
    NotFoundError,
    PersistenceConflictError,
)
from accessibility_conformance.utils.report_models import (
    VersionComparison,
    VersionRecord,
)
from accessibility_conformance.versioning.change_log import (
    generate_change_log,
    summarize_changes,
)

# Configure module-level logger
logger = setup_logger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json_compatible(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep copy of a snapshot with datetimes and models converted for a JSON column."""
    return json.loads(json.dumps(snapshot, default=_json_default))


class VersionManager:
    """Creates, reads and compares report versions."""

    def __init__(self, session_factory: sessionmaker, options: Optional[Dict[str, Any]] = None):
        """
        Initialize the version manager.

        Args:
            session_factory: SQLAlchemy session factory; one session per call
            options: Overrides for the 'versioning' config section
        """
        self.session_factory = session_factory
        self.options = config_manager.get_config(options, section="versioning")

    @property
    def max_attempts(self) -> int:
        return max(1, int(self.options.get("max_attempts", 3)))

    @property
    def retry_backoff_seconds(self) -> float:
        return float(self.options.get("retry_backoff_seconds", 0.1))

    def _latest(self, session: Session, report_id: str) -> Optional[ReportVersion]:
        stmt = (
            select(ReportVersion)
            .where(ReportVersion.report_id == report_id)
            .order_by(ReportVersion.version.desc())
            .limit(1)
        )
        return session.execute(stmt).scalar_one_or_none()

    def create_version(
        self,
        report_id: str,
        snapshot: Mapping[str, Any],
        actor: str,
        reason: Optional[str] = None,
    ) -> VersionRecord:
        """
        Store a new immutable version of a report.

        Args:
            report_id: Report the version belongs to
            snapshot: Full report snapshot
            actor: Who created the version
            reason: Optional reason recorded with the version

        Returns:
            The stored VersionRecord

        Raises:
            PersistenceConflictError: If a version number could not be claimed
                within the configured number of attempts
        """
        payload = to_json_compatible(snapshot)
        remarks_length = int(self.options.get("remarks_preview_length", 100))

        for attempt in range(1, self.max_attempts + 1):
            session = self.session_factory()
            try:
                with session.begin():
                    latest = self._latest(session, report_id)
                    next_version = latest.version + 1 if latest else 1
                    changes = generate_change_log(
                        latest.snapshot if latest else None,
                        payload,
                        actor,
                        reason,
                        remarks_length=remarks_length,
                    )
                    row = ReportVersion(
                        report_id=report_id,
                        version=next_version,
                        snapshot=payload,
                        change_log=[c.model_dump(mode="json") for c in changes],
                        created_by=actor,
                        reason=reason,
                    )
                    session.add(row)
                    session.flush()

                logger.info(
                    "Created version %s for report %s with %s change(s)",
                    next_version,
                    report_id,
                    len(changes),
                )
                return VersionRecord.model_validate(row)
            except IntegrityError as e:
                if attempt < self.max_attempts:
                    logger.warning(
                        "Version number conflict for report %s (attempt %s/%s), retrying",
                        report_id,
                        attempt,
                        self.max_attempts,
                    )
                    time.sleep(self.retry_backoff_seconds * attempt)
                    continue
                raise PersistenceConflictError(
                    f"Could not allocate a version number for report {report_id}",
                    {"report_id": report_id, "attempts": attempt},
                ) from e
            finally:
                session.close()

        # Unreachable: the loop either returns or raises
        raise PersistenceConflictError(
            f"Could not allocate a version number for report {report_id}",
            {"report_id": report_id},
        )

    def get_versions(self, report_id: str) -> List[VersionRecord]:
        """All versions of a report, newest first."""
        with self.session_factory() as session:
            rows = session.execute(
                select(ReportVersion)
                .where(ReportVersion.report_id == report_id)
                .order_by(ReportVersion.version.desc())
            ).scalars()
            return [VersionRecord.model_validate(row) for row in rows]

    def get_version(self, report_id: str, version: int) -> VersionRecord:
        """
        Get one version of a report.

        Raises:
            NotFoundError: If the version does not exist
        """
        with self.session_factory() as session:
            row = session.execute(
                select(ReportVersion).where(
                    ReportVersion.report_id == report_id,
                    ReportVersion.version == version,
                )
            ).scalar_one_or_none()
            if row is None:
                raise NotFoundError(
                    f"Version {version} not found for report {report_id}",
                    {"report_id": report_id, "version": version},
                )
            return VersionRecord.model_validate(row)

    def get_latest_version(self, report_id: str) -> Optional[VersionRecord]:
        with self.session_factory() as session:
            row = self._latest(session, report_id)
            return VersionRecord.model_validate(row) if row else None

    def get_version_count(self, report_id: str) -> int:
        with self.session_factory() as session:
            return session.execute(
                select(func.count())
                .select_from(ReportVersion)
                .where(ReportVersion.report_id == report_id)
            ).scalar_one()

    def compare_versions(self, report_id: str, version_a: int, version_b: int) -> VersionComparison:
        """
        Diff two arbitrary versions of a report.

        Args:
            report_id: Report id
            version_a: Base version
            version_b: Version compared against the base

        Returns:
            VersionComparison with the differences and a summary

        Raises:
            NotFoundError: If either version does not exist
        """
        first = self.get_version(report_id, version_a)
        second = self.get_version(report_id, version_b)
        differences = generate_change_log(
            first.snapshot,
            second.snapshot,
            second.created_by,
            remarks_length=int(self.options.get("remarks_preview_length", 100)),
        )
        return VersionComparison(
            report_id=report_id,
            version_a=version_a,
            version_b=version_b,
            differences=differences,
            summary=summarize_changes(differences),
        )

    def delete_versions(self, report_id: str) -> int:
        """
        Delete every version of a report.

        Administrative only; normal operation never removes history.

        Returns:
            Number of versions deleted
        """
        with self.session_factory() as session, session.begin():
            result = session.execute(
                delete(ReportVersion).where(ReportVersion.report_id == report_id)
            )
            deleted = result.rowcount or 0
        logger.warning("Deleted %s version(s) of report %s", deleted, report_id)
        return deleted
