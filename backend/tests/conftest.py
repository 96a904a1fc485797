"""
Shared fixtures: a file-backed SQLite database per test and fake OpenAI-backed services.
"""
import threading
from datetime import datetime, timezone

import pytest

from creative_rag import models  # noqa: F401  registers tables on Base.metadata
from creative_rag.config import Settings
from creative_rag.database import Base, build_engine, build_session_factory
from creative_rag.exceptions import UpstreamUnavailable
from creative_rag.services.persistence import CampaignRepository

EMBEDDING_WORDS = ("story", "launch", "video", "price", "trust", "award", "coffee", "mobile")
EMBEDDING_DIM = len(EMBEDDING_WORDS) + 1


def keyword_vector(text: str):
    """Deterministic vector: one count per keyword plus a constant component."""
    lowered = text.lower()
    return [float(lowered.count(word)) for word in EMBEDDING_WORDS] + [1.0]


class FakeEmbeddingService:
    def __init__(self, failures: int = 0, error=None):
        self.failures = failures
        self.error = error
        self.calls = []
        self._lock = threading.Lock()

    def embed(self, text: str):
        with self._lock:
            self.calls.append(text)
            if self.failures > 0:
                self.failures -= 1
                raise self.error or UpstreamUnavailable("embedding service timed out")
        return keyword_vector(text)


class FakeCompletionService:
    def __init__(self, answer: str = "Storytelling drives engagement in brand_launch."):
        self.answer = answer
        self.calls = []

    def complete(self, system_prompt: str, context_text: str, user_query: str) -> str:
        self.calls.append((system_prompt, context_text, user_query))
        return self.answer


def make_record(doc_id: str, filename: str, path: str = "acme/brand_launch", text: str = "", **extra):
    record = {
        "id": doc_id,
        "filename": filename,
        "mime_type": "",
        "size": 1024,
        "created_time": datetime(2024, 3, 1, tzinfo=timezone.utc),
        "modified_time": datetime(2024, 3, 2, tzinfo=timezone.utc),
        "path": path,
        "text": text,
    }
    record.update(extra)
    return record


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        openai_api_key="sk-test",
        embedding_dim=EMBEDDING_DIM,
        chunk_size=1000,
        chunk_overlap=200,
        max_concurrency=1,
        retry_attempts=3,
        retry_base_delay_seconds=0.0,
        retry_max_delay_seconds=0.0,
    )


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'campaign_rag_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def repository(session_factory):
    return CampaignRepository(session_factory)


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def completion_service():
    return FakeCompletionService()
