"""
Pytest configuration and fixtures.

Usage:
    pytest tests/ -v
"""

import os

import pytest

from accessibility_conformance.catalog.standards import default_catalog
from accessibility_conformance.persistence.database import Database
from accessibility_conformance.persistence.models import Job
from accessibility_conformance.utils.config import config_manager


# ═══════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate tests from ACR_* environment overrides and persistent user config."""
    for name in list(os.environ):
        if name.startswith("ACR_"):
            monkeypatch.delenv(name, raising=False)
    config_manager.reset()
    yield
    config_manager.reset()


@pytest.fixture
def catalog():
    return default_catalog()


# ═══════════════════════════════════════════════════════
# DATABASE
# ═══════════════════════════════════════════════════════

@pytest.fixture
def database(tmp_path):
    """File-backed SQLite database so several connections share it."""
    db = Database(f"sqlite:///{tmp_path / 'conformance.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session_factory(database):
    return database.session_factory


@pytest.fixture
def make_job(session_factory):
    """Insert a job row with the given output and return its id."""

    def _make_job(output=None, job_id="job-1", input_data=None):
        with session_factory() as session, session.begin():
            session.add(Job(id=job_id, tenant_id="tenant-1", user_id="user-1", input=input_data, output=output))
        return job_id

    return _make_job


# ═══════════════════════════════════════════════════════
# SAMPLE DATA
# ═══════════════════════════════════════════════════════

@pytest.fixture
def text_content_dir(tmp_path):
    """Unpacked single-chapter text document."""
    root = tmp_path / "book"
    (root / "OEBPS").mkdir(parents=True)
    (root / "OEBPS" / "chapter1.xhtml").write_text(
        "<html><head><title>Chapter 1</title></head>"
        "<body><h1>Chapter 1</h1><p>Plain prose.</p></body></html>",
        encoding="utf-8",
    )
    return root


def _snapshot(status="draft", edition="VPAT2.5-WCAG", criteria=None, name="Sample Book"):
    if criteria is None:
        criteria = [
            {"criterion_id": "1.1.1", "conformance_level": "Supports", "remarks": "All images have alt text"},
            {"criterion_id": "1.3.1", "conformance_level": "Partially Supports", "remarks": "Some tables lack headers"},
        ]
    return {
        "status": status,
        "edition": edition,
        "product_info": {"name": name, "version": "1.0", "vendor": ""},
        "criteria": criteria,
    }


@pytest.fixture
def make_snapshot():
    """Factory for report snapshots in the shape stored with versions."""
    return _snapshot
