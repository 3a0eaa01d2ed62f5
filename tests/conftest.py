"""
Shared fixtures for PoliCast tests.
"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from policast.models.content import GeneratedContent, GroundingImage, NewsItem, SavedProject
from policast.services.gemini_service import GeminiService
from policast.services.project_store import ProjectStore


KIT_PAYLOAD = {
    "summaryEnglish": "Parliament passed the budget.",
    "summaryBurmese": "လွှတ်တော်က ဘတ်ဂျက်ကို အတည်ပြုခဲ့သည်။",
    "scriptBurmese": "[Show parliament building] မင်္ဂလာပါ\nဒီနေ့ သတင်း [Zoom on vote count]",
    "facebookPostBurmese": "အသေးစိတ် သတင်း... #news",
    "burmeseTitles": ["ခေါင်းစဉ် ၁", "ခေါင်းစဉ် ၂", "ခေါင်းစဉ် ၃"],
    "visualPrompts": ["A crowded parliament hall"],
    "imageQueries": ["parliament budget vote", "finance minister"],
}


def make_news(index: int = 0, title: str = None) -> NewsItem:
    return NewsItem(
        id=f"news-1700000000000-{index}",
        title=title or f"Headline {index}",
        snippet=f"Snippet {index}",
        source="Reuters",
        url=f"https://example.com/{index}",
        published_date="2026-10-18",
    )


def make_project(project_id: str = "proj-1", news_index: int = 0, with_content: bool = True) -> SavedProject:
    return SavedProject(
        id=project_id,
        news_item=make_news(news_index),
        generated_content=GeneratedContent.from_dict(KIT_PAYLOAD) if with_content else None,
        saved_at="2026-10-18T09:00:00.000Z",
        grounding_images=[GroundingImage(url="https://img.example.com/a.jpg", title="A", source="A")],
    )


def gemini_response(text=None, chunks=None, tokens=42):
    """Shape of a google-genai GenerateContentResponse as the service reads it."""
    candidates = []
    if chunks is not None:
        candidates = [SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))]
    return SimpleNamespace(
        text=text,
        candidates=candidates,
        usage_metadata=SimpleNamespace(total_token_count=tokens),
    )


def web_chunk(uri, title=None):
    return SimpleNamespace(web=SimpleNamespace(uri=uri, title=title))


class RateLimitError(Exception):
    """Stand-in for an SDK error carrying an HTTP status code."""

    def __init__(self, message="Too Many Requests", code=429):
        super().__init__(message)
        self.code = code


@pytest.fixture
def kit_json():
    return json.dumps(KIT_PAYLOAD, ensure_ascii=False)


@pytest.fixture
def gemini():
    with patch("policast.services.gemini_service.genai.Client"):
        service = GeminiService(api_key="test-key", base_delay=0.0)
        service.client.aio.models.generate_content = AsyncMock()
        yield service


@pytest.fixture
def no_sleep():
    with patch("policast.utils.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
async def store(tmp_path):
    project_store = ProjectStore(db_path=str(tmp_path / "policast.db"), export_dir=str(tmp_path / "exports"))
    await project_store.initialize_db()
    return project_store
