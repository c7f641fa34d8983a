# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Accessibility Conformance Package.

This package turns accessibility audit results into conformance reports:
per-criterion conformance analysis, applicability suggestions, remediation
classification, versioned report snapshots and human review of report drafts.

Main Components:
- Criteria catalog and rule mapping
- Conformance analysis
- Applicability (not applicable) detection
- Remediation classification
- Report versioning and review
"""

__version__ = "0.1.0"
