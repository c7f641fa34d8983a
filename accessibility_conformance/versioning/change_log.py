# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Field-level diffs between report snapshots.

A snapshot is a JSON-compatible mapping with top-level 'status', 'edition' and
'product_info' fields and a 'criteria' list keyed by 'criterion_id' (or 'id').
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from accessibility_conformance.utils.report_models import (
    ChangeLogEntry,
    ComparisonSummary,
    utc_now,
)

PRODUCT_INFO_FIELDS = ("name", "version", "vendor")
REMARKS_PREVIEW_LENGTH = 100
CRITERIA_PREFIX = "criteria."
CRITERION_SUBFIELDS = (".conformance_level", ".remarks")


def _as_instant(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return value


def deep_equal(a: Any, b: Any) -> bool:
    """
    Structural equality for snapshot values.

    Datetimes compare by instant (naive values are taken as UTC), sequences
    element-wise in order, and mappings by key set plus recursive equality.

    Args:
        a: First value
        b: Second value

    Returns:
        True when both values are structurally equal
    """
    if a is b:
        return True

    if isinstance(a, datetime) or isinstance(b, datetime):
        if not (isinstance(a, datetime) and isinstance(b, datetime)):
            return False
        return _as_instant(a) == _as_instant(b)
    if isinstance(a, date) or isinstance(b, date):
        return a == b

    if isinstance(a, Mapping) or isinstance(b, Mapping):
        if not (isinstance(a, Mapping) and isinstance(b, Mapping)):
            return False
        if set(a.keys()) != set(b.keys()):
            return False
        return all(deep_equal(a[key], b[key]) for key in a)

    sequence_types = (list, tuple)
    if isinstance(a, sequence_types) or isinstance(b, sequence_types):
        if not (isinstance(a, sequence_types) and isinstance(b, sequence_types)):
            return False
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b

    return a == b


def truncate_remarks(remarks: Optional[str], length: int = REMARKS_PREVIEW_LENGTH) -> Optional[str]:
    if remarks is None:
        return None
    if len(remarks) > length:
        return remarks[:length] + "..."
    return remarks


def criterion_key(criterion: Mapping[str, Any]) -> Optional[str]:
    return criterion.get("criterion_id") or criterion.get("id")


def criteria_by_id(snapshot: Mapping[str, Any]) -> Dict[str, Mapping[str, Any]]:
    """Index a snapshot's criteria list by criterion id, keeping list order."""
    indexed: Dict[str, Mapping[str, Any]] = {}
    for criterion in snapshot.get("criteria") or []:
        key = criterion_key(criterion)
        if key:
            indexed[str(key)] = criterion
    return indexed


def criterion_from_field(field: str) -> Optional[str]:
    """Criterion id a change-log field refers to, or None for report-level fields."""
    if not field.startswith(CRITERIA_PREFIX):
        return None
    rest = field[len(CRITERIA_PREFIX):]
    for suffix in CRITERION_SUBFIELDS:
        if rest.endswith(suffix):
            return rest[: -len(suffix)]
    return rest


def generate_change_log(
    previous: Optional[Mapping[str, Any]],
    current: Mapping[str, Any],
    actor: str,
    reason: Optional[str] = None,
    remarks_length: int = REMARKS_PREVIEW_LENGTH,
) -> List[ChangeLogEntry]:
    """
    Compute the change log between two snapshots.

    Args:
        previous: Prior snapshot, or None for a first version
        current: New snapshot
        actor: Who made the change
        reason: Optional reason recorded on every entry
        remarks_length: Length remarks are truncated to

    Returns:
        List of ChangeLogEntry; a single 'created' entry when previous is None
    """
    now = utc_now()

    def entry(field: str, old: Any, new: Any, change_type: str, why: Optional[str] = None) -> ChangeLogEntry:
        return ChangeLogEntry(
            field=field,
            previous_value=old,
            new_value=new,
            changed_by=actor,
            change_type=change_type,
            reason=why if why is not None else reason,
            created_at=now,
        )

    if previous is None:
        return [entry("document", None, "created", "created", reason or "Initial version created")]

    changes: List[ChangeLogEntry] = []

    for field in ("status", "edition"):
        if not deep_equal(previous.get(field), current.get(field)):
            changes.append(entry(field, previous.get(field), current.get(field), "updated"))

    prev_info = previous.get("product_info") or {}
    curr_info = current.get("product_info") or {}
    if not deep_equal(prev_info, curr_info):
        for name in PRODUCT_INFO_FIELDS:
            if not deep_equal(prev_info.get(name), curr_info.get(name)):
                changes.append(
                    entry(f"product_info.{name}", prev_info.get(name), curr_info.get(name), "updated")
                )

    prev_criteria = criteria_by_id(previous)
    curr_criteria = criteria_by_id(current)

    for criterion_id, curr in curr_criteria.items():
        prev = prev_criteria.get(criterion_id)
        if prev is None:
            changes.append(entry(f"criteria.{criterion_id}", None, "added", "added"))
            continue

        if not deep_equal(prev.get("conformance_level"), curr.get("conformance_level")):
            changes.append(
                entry(
                    f"criteria.{criterion_id}.conformance_level",
                    prev.get("conformance_level"),
                    curr.get("conformance_level"),
                    "updated",
                )
            )
        if not deep_equal(prev.get("remarks"), curr.get("remarks")):
            changes.append(
                entry(
                    f"criteria.{criterion_id}.remarks",
                    truncate_remarks(prev.get("remarks"), remarks_length),
                    truncate_remarks(curr.get("remarks"), remarks_length),
                    "updated",
                )
            )

    for criterion_id in prev_criteria:
        if criterion_id not in curr_criteria:
            changes.append(
                entry(
                    f"criteria.{criterion_id}",
                    "existed",
                    None,
                    "removed",
                    reason or "Criterion removed",
                )
            )

    return changes


def summarize_changes(changes: Sequence[ChangeLogEntry]) -> ComparisonSummary:
    """Count changed fields, distinct criteria touched and whether status changed."""
    criteria = {criterion_from_field(c.field) for c in changes}
    criteria.discard(None)
    return ComparisonSummary(
        fields_changed=len(changes),
        criteria_changed=len(criteria),
        status_changed=any(c.field == "status" for c in changes),
    )
