# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
WCAG reference data: the success criteria catalog and rule mappings.
"""

from accessibility_conformance.catalog.standards import (
    WCAG_CRITERIA,
    EDITIONS,
    CriteriaCatalog,
    default_catalog,
)
from accessibility_conformance.catalog.rule_mapping import (
    RULE_TO_CRITERIA,
    RuleMapper,
    automation_capability,
    requires_manual_verification,
)

__all__ = [
    "WCAG_CRITERIA",
    "EDITIONS",
    "CriteriaCatalog",
    "default_catalog",
    "RULE_TO_CRITERIA",
    "RuleMapper",
    "automation_capability",
    "requires_manual_verification",
]
