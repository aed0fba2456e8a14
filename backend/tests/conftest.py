import os
from datetime import datetime, timezone

import httpx
import pytest

os.environ.setdefault("GALAXY_LLM_API_KEY", "test-key")
os.environ.setdefault("GALAXY_LOG_LEVEL", "warning")

from galaxy import create_app  # noqa: E402
from galaxy.db.sqlite import get_db, init_sqlite  # noqa: E402
from galaxy.models.flashcard import Category  # noqa: E402
from galaxy.models.review import ReviewQueueEntry  # noqa: E402


class RecordingPersist:
    """Stand-in for the interval write; records every call."""

    def __init__(self, fail_with: Exception | None = None):
        self.calls: list[tuple[str, int, datetime]] = []
        self.fail_with = fail_with

    async def __call__(self, node_id: str, interval_days: int, next_due_at: datetime) -> None:
        self.calls.append((node_id, interval_days, next_due_at))
        if self.fail_with is not None:
            raise self.fail_with


def make_entry(n: int, interval_days: int = 0, category: Category = Category.NOTE) -> ReviewQueueEntry:
    return ReviewQueueEntry(
        card_id=f"card-{n}",
        node_id=f"node-{n}",
        front=f"front {n}",
        back=f"back {n}",
        category=category,
        interval_days=interval_days,
    )


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def persist():
    return RecordingPersist()


@pytest.fixture
async def data_dir(tmp_path):
    await init_sqlite(tmp_path)
    return tmp_path


@pytest.fixture
async def db(data_dir):
    async for conn in get_db():
        yield conn


@pytest.fixture
def app(data_dir):
    return create_app()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
