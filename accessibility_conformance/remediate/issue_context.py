# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Structural context resolution for fix classification.

Looks up the content fragment an issue points at and derives table complexity
or image role. Missing files or elements resolve to the conservative defaults
'simple' and 'content'.
"""

import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from accessibility_conformance.applicability.content_scanner import ContentPackage
from accessibility_conformance.remediate.fix_classifier import (
    enrich_issue,
    is_image_rule,
    is_table_rule,
)
from accessibility_conformance.utils.logging_helper import setup_logger
from accessibility_conformance.utils.report_models import (
    AuditIssue,
    ClassifiedIssue,
    IssueContext,
)

# Configure module-level logger
logger = setup_logger(__name__)

DEFAULT_TABLE_TYPE = "simple"
DEFAULT_IMAGE_TYPE = "content"

MAX_SIMPLE_ROWS = 10
MAX_SIMPLE_COLUMNS = 6

CHART_PATTERN = re.compile(r"chart|graph|plot", re.IGNORECASE)
DIAGRAM_PATTERN = re.compile(r"diagram|flowchart|schematic", re.IGNORECASE)
DECORATIVE_PATTERN = re.compile(
    r"spacer|blank|pixel|divider|separator|border|background", re.IGNORECASE
)


def _span(cell) -> int:
    try:
        return max(int(cell.get("colspan") or 1), int(cell.get("rowspan") or 1))
    except (TypeError, ValueError):
        return 1


def table_complexity(table) -> str:
    """
    Classify one <table> element as simple or complex.

    Args:
        table: BeautifulSoup table element

    Returns:
        'complex' or 'simple'
    """
    if table.find("table"):
        return "complex"

    cells = table.find_all(["td", "th"])
    if any(_span(cell) > 1 for cell in cells):
        return "complex"

    rows = table.find_all("tr")
    header_rows = [
        row for row in rows
        if row.find_all(["td", "th"]) and not row.find_all("td")
    ]
    thead = table.find("thead")
    thead_rows = thead.find_all("tr") if thead else []
    if len(header_rows) > 1 or len(thead_rows) > 1:
        return "complex"

    column_count = max((len(row.find_all(["td", "th"])) for row in rows), default=0)
    if len(rows) > MAX_SIMPLE_ROWS or column_count > MAX_SIMPLE_COLUMNS:
        return "complex"

    return "simple"


def image_role(img) -> Optional[str]:
    """
    Infer an image's role from its attributes, or None when inconclusive.

    Args:
        img: BeautifulSoup img element

    Returns:
        'decorative', 'chart', 'diagram' or None
    """
    role = (img.get("role") or "").strip().lower()
    if role in ("presentation", "none"):
        return "decorative"
    if (img.get("aria-hidden") or "").strip().lower() == "true":
        return "decorative"
    if img.has_attr("alt") and not (img.get("alt") or "").strip():
        return "decorative"

    classes = img.get("class") or []
    if isinstance(classes, list):
        classes = " ".join(classes)
    hints = " ".join([img.get("src") or "", img.get("alt") or "", classes])

    if CHART_PATTERN.search(hints):
        return "chart"
    if DIAGRAM_PATTERN.search(hints):
        return "diagram"
    if DECORATIVE_PATTERN.search((img.get("src") or "") + " " + classes):
        return "decorative"
    return None


class IssueContextResolver:
    """Resolves table and image context for issues against unpacked content."""

    def __init__(self, content: Optional[ContentPackage] = None):
        self.content = content

    def _candidates(self, issue: AuditIssue, tag: str) -> List:
        if issue.snippet and f"<{tag}" in issue.snippet.lower():
            snippet_soup = BeautifulSoup(issue.snippet, "html.parser")
            found = snippet_soup.find_all(tag)
            if found:
                return found

        markup = self.content.get(issue.file_path) if self.content else None
        if not markup:
            return []
        return BeautifulSoup(markup, "html.parser").find_all(tag)

    def table_type(self, issue: AuditIssue) -> str:
        tables = self._candidates(issue, "table")
        if not tables:
            return DEFAULT_TABLE_TYPE
        # Nested tables are judged through their outermost table
        outer = [t for t in tables if t.find_parent("table") is None] or tables
        kinds = {table_complexity(table) for table in outer}
        return "complex" if "complex" in kinds else "simple"

    def image_type(self, issue: AuditIssue) -> str:
        for img in self._candidates(issue, "img"):
            role = image_role(img)
            if role:
                return role
        return DEFAULT_IMAGE_TYPE

    def resolve(self, issue: AuditIssue) -> IssueContext:
        """
        Resolve the structural context of an issue.

        Args:
            issue: Normalized audit issue

        Returns:
            IssueContext with the table or image type set where relevant
        """
        context = IssueContext()
        try:
            if is_table_rule(issue.rule_code):
                context.table_type = self.table_type(issue)
            elif is_image_rule(issue.rule_code):
                context.image_type = self.image_type(issue)
        except Exception as e:
            logger.warning("Context analysis failed for %s: %s", issue.rule_code, e)
            if is_table_rule(issue.rule_code):
                context.table_type = DEFAULT_TABLE_TYPE
            elif is_image_rule(issue.rule_code):
                context.image_type = DEFAULT_IMAGE_TYPE
        return context

    def classify(self, issue: AuditIssue) -> ClassifiedIssue:
        return enrich_issue(issue, self.resolve(issue))

    def classify_all(self, issues: Iterable[AuditIssue]) -> List[ClassifiedIssue]:
        return [self.classify(issue) for issue in issues]
