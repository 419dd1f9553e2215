import os
import tempfile

import pytest

# Must be set before tubeseo.database is imported.
_DB_DIR = tempfile.mkdtemp(prefix="tubeseo-tests-")
os.environ.setdefault(
    "DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'reports.db')}"
)
os.environ.setdefault("RATE_LIMIT_PER_IP", "1000/minute")

from fastapi.testclient import TestClient  # noqa: E402

from tubeseo.main import app  # noqa: E402


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def optimised_video():
    """Metadata that passes every check."""
    tags = [
        "gaming", "tips", "secret", "guide", "beginner",
        "gaming tips for beginners", "secret gaming guide tips", "ultimate gaming guide",
    ]
    description = (
        "The ultimate gaming guide with gaming tips for beginners and a "
        "secret gaming guide tips section at the end. "
        "0:00 Intro 1:30 First tip 4:45 Wrap up. "
        "More at https://example.com/guide"
    )
    return {
        "title": "Ultimate Beginner Guide: 10 Secret Tips for Gaming Success",
        "description": description.ljust(260, "."),
        "tags": tags,
    }
