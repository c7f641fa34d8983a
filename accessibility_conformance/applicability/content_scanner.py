# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Content scanning for applicability detection.

This module loads unpacked document content (a directory or an EPUB archive)
and extracts the structural signals the topic analyzers reason about.
"""

import logging
import os
import re
import zipfile
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel

from accessibility_conformance.utils.logging_helper import (
    setup_logger,
    log_exception,
    NotFoundError,
)

# Configure module-level logger
logger = setup_logger(__name__)

MARKUP_EXTENSIONS = (".html", ".xhtml", ".htm")
AUDIO_EXTENSIONS = (".mp3", ".m4a", ".aac", ".ogg", ".oga", ".wav", ".flac", ".opus")
VIDEO_EXTENSIONS = (".mp4", ".m4v", ".webm", ".ogv", ".mov", ".avi", ".mkv")

EXTERNAL_URL_PATTERN = re.compile(r"^\s*(https?:)?//", re.IGNORECASE)


class ContentPackage:
    """
    Unpacked document content: markup fragments plus a file manifest.

    Fragments keep their manifest order.
    """

    def __init__(
        self,
        fragments: Optional[Dict[str, str]] = None,
        manifest: Optional[Iterable[str]] = None,
    ):
        self.fragments: "OrderedDict[str, str]" = OrderedDict(fragments or {})
        self.manifest: List[str] = list(manifest) if manifest is not None else list(self.fragments)

    @classmethod
    def from_directory(cls, path: str) -> "ContentPackage":
        """
        Load every markup fragment under a directory.

        Args:
            path: Directory holding the unpacked document

        Returns:
            ContentPackage with fragment names relative to the directory
        """
        root = Path(path)
        if not root.is_dir():
            raise NotFoundError(f"Content directory not found: {path}", {"path": path})

        fragments: Dict[str, str] = {}
        manifest: List[str] = []
        for file_path in sorted(p for p in root.rglob("*") if p.is_file()):
            name = file_path.relative_to(root).as_posix()
            manifest.append(name)
            if name.lower().endswith(MARKUP_EXTENSIONS):
                fragments[name] = file_path.read_text(encoding="utf-8", errors="replace")

        return cls(fragments, manifest)

    @classmethod
    def from_epub(cls, path: str) -> "ContentPackage":
        """
        Load every markup fragment from an EPUB (zip) archive.

        Args:
            path: Path to the .epub file

        Returns:
            ContentPackage with fragment names as archive member names
        """
        if not os.path.isfile(path):
            raise NotFoundError(f"EPUB file not found: {path}", {"path": path})

        fragments: Dict[str, str] = {}
        manifest: List[str] = []
        with zipfile.ZipFile(path) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                manifest.append(info.filename)
                if info.filename.lower().endswith(MARKUP_EXTENSIONS):
                    fragments[info.filename] = archive.read(info).decode("utf-8", errors="replace")

        return cls(fragments, manifest)

    @property
    def total_fragments(self) -> int:
        return len(self.fragments)

    def get(self, file_path: Optional[str]) -> Optional[str]:
        """
        Look up a fragment by path, tolerating leading slashes and an OEBPS/ root.

        Args:
            file_path: Path as reported by an audit issue

        Returns:
            Fragment markup, or None when the file is not part of the package
        """
        if not file_path:
            return None
        normalized = file_path.lstrip("/")
        for candidate in (normalized, f"OEBPS/{normalized}"):
            if candidate in self.fragments:
                return self.fragments[candidate]
        for name, markup in self.fragments.items():
            if name.endswith("/" + normalized):
                return markup
        return None


class ContentSignals(BaseModel):
    """Structural signals aggregated over the scanned fragments."""

    has_audio: bool = False
    has_video: bool = False
    has_iframes: bool = False
    has_forms: bool = False
    has_interactive_elements: bool = False
    has_navigation_blocks: bool = False
    has_data_tables: bool = False
    has_scripts: bool = False
    has_autoplay_audio: bool = False
    external_url_count: int = 0
    audio_files: int = 0
    video_files: int = 0
    file_count: int = 0
    scanned_count: int = 0
    skipped_count: int = 0
    coverage: float = 1.0
    document_type: str = "text"

    @property
    def has_media(self) -> bool:
        return self.has_audio or self.has_video

    @property
    def has_external_urls(self) -> bool:
        return self.external_url_count > 0


def _count_external_urls(soup: BeautifulSoup) -> int:
    count = 0
    for attribute in ("href", "src"):
        for element in soup.find_all(attrs={attribute: True}):
            if EXTERNAL_URL_PATTERN.match(element.get(attribute) or ""):
                count += 1
    return count


def _scan_fragment(markup: str, signals: ContentSignals) -> None:
    soup = BeautifulSoup(markup, "html.parser")

    audio_tags = soup.find_all("audio")
    if audio_tags:
        signals.has_audio = True
        if any(tag.has_attr("autoplay") for tag in audio_tags):
            signals.has_autoplay_audio = True
    if soup.find("video"):
        signals.has_video = True
    if soup.find("iframe"):
        signals.has_iframes = True
    if soup.select_one("form, input, select, textarea"):
        signals.has_forms = True
    if soup.select_one('button, [role="button"], [onclick]'):
        signals.has_interactive_elements = True
    if soup.select_one('nav, [role="navigation"]'):
        signals.has_navigation_blocks = True
    if any(table.find("th") for table in soup.find_all("table")):
        signals.has_data_tables = True
    if soup.find("script"):
        signals.has_scripts = True

    signals.external_url_count += _count_external_urls(soup)


def document_type_for(signals: ContentSignals) -> str:
    """Classify the document as multimedia, interactive or text."""
    if signals.has_audio or signals.has_video or signals.has_iframes:
        return "multimedia"
    if signals.has_forms or signals.has_interactive_elements:
        return "interactive"
    return "text"


def scan_content(content: ContentPackage, max_fragments: int = 50) -> ContentSignals:
    """
    Scan up to max_fragments fragments and the full manifest.

    Args:
        content: Unpacked document content
        max_fragments: Upper bound on the number of fragments parsed

    Returns:
        ContentSignals with coverage = scanned / total fragments
    """
    total = content.total_fragments
    names = list(content.fragments)[: max(0, max_fragments)]

    signals = ContentSignals(file_count=total)
    signals.audio_files = sum(1 for name in content.manifest if name.lower().endswith(AUDIO_EXTENSIONS))
    signals.video_files = sum(1 for name in content.manifest if name.lower().endswith(VIDEO_EXTENSIONS))

    logger.debug("Scanning %s of %s content fragments", len(names), total)

    for name in names:
        try:
            _scan_fragment(content.fragments[name], signals)
        except Exception as e:
            log_exception(
                logger,
                e,
                f"Failed to parse content fragment {name}, skipping",
                level=logging.WARNING,
                include_traceback=False,
            )
            signals.skipped_count += 1
            continue

    # Fragments that failed to parse were never inspected
    signals.scanned_count = len(names) - signals.skipped_count
    signals.coverage = (signals.scanned_count / total) if total else 1.0
    signals.document_type = document_type_for(signals)
    return signals
