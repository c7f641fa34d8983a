# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Report versioning: immutable numbered snapshots and change logs.
"""

from accessibility_conformance.versioning.change_log import (
    deep_equal,
    generate_change_log,
    summarize_changes,
)
from accessibility_conformance.versioning.version_manager import VersionManager

__all__ = [
    "deep_equal",
    "generate_change_log",
    "summarize_changes",
    "VersionManager",
]
