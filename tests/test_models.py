"""
Tests for content model serialization
"""
import pytest

from conftest import KIT_PAYLOAD, make_project
from policast.models.content import GeneratedContent, GroundingImage, NewsItem, SavedProject


class TestNewsItem:

    def test_wire_names(self):
        item = NewsItem.from_dict({"id": "n1", "title": "T", "snippet": "S", "publishedDate": "2026-10-01"})

        assert item.published_date == "2026-10-01"
        assert item.to_dict() == {"id": "n1", "title": "T", "snippet": "S", "publishedDate": "2026-10-01"}

    def test_missing_required(self):
        with pytest.raises(ValueError, match="snippet"):
            NewsItem.from_dict({"id": "n1", "title": "T"})

    def test_immutable(self):
        item = NewsItem(id="n1", title="T", snippet="S")
        with pytest.raises(AttributeError):
            item.title = "changed"


class TestSavedProject:

    def test_browser_export_shape(self):
        data = make_project("proj-1").to_dict()

        assert set(data) == {"id", "newsItem", "generatedContent", "savedAt", "groundingImages"}
        assert data["generatedContent"] == KIT_PAYLOAD

    def test_null_content(self):
        data = make_project("proj-1", with_content=False).to_dict()

        assert data["generatedContent"] is None
        assert SavedProject.from_dict(data).generated_content is None

    def test_image_defaults(self):
        image = GroundingImage.from_dict({"url": "https://example.com"})

        assert (image.title, image.source) == ("Source Link", "Web Result")

    def test_content_lists_default_empty(self):
        content = GeneratedContent.from_dict({
            "summaryEnglish": "a", "summaryBurmese": "b", "scriptBurmese": "c", "facebookPostBurmese": "d",
        })

        assert content.burmese_titles == [] and content.image_queries == []
