"""
Pytest configuration and shared fixtures.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from _test_helpers import FakeGoogle, make_message  # noqa: E402
from core.database import create_tables  # noqa: E402
from core.google_client import GoogleClient  # noqa: E402


@pytest.fixture
def db():
    """In-memory database with the application schema."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    create_tables(conn)
    yield conn
    conn.close()


@pytest.fixture
def fake_google():
    return FakeGoogle()


@pytest.fixture
async def google_client(fake_google):
    """GoogleClient wired to the fake Google backend."""
    http_client = fake_google.http_client()
    client = GoogleClient("ya29.fake-access-token", http_client=http_client)
    yield client
    await http_client.aclose()


@pytest.fixture
def sample_message():
    return make_message(
        "msg-1",
        "Team meeting invite",
        "Hi all, the planning meeting is on 3/10/2025 14:30 at Office. Bring notes.",
    )
