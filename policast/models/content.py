"""
Content models for the PoliCast content studio.

Field names are snake_case in Python; ``to_dict``/``from_dict`` use the
camelCase wire names shared with the Gemini response schemas and with
exported project files.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _require(data: Dict[str, Any], keys: List[str], kind: str) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"{kind} must be an object, got {type(data).__name__}")
    missing = [k for k in keys if k not in data]
    if missing:
        raise ValueError(f"{kind} is missing required fields: {', '.join(missing)}")


@dataclass(frozen=True)
class NewsItem:
    """A headline returned by the news fetch."""

    id: str
    title: str
    snippet: str
    source: Optional[str] = None
    url: Optional[str] = None
    published_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "title": self.title, "snippet": self.snippet}
        if self.source is not None:
            data["source"] = self.source
        if self.url is not None:
            data["url"] = self.url
        if self.published_date is not None:
            data["publishedDate"] = self.published_date
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewsItem":
        _require(data, ["id", "title", "snippet"], "NewsItem")
        return cls(
            id=str(data["id"]),
            title=data["title"],
            snippet=data["snippet"],
            source=data.get("source"),
            url=data.get("url"),
            published_date=data.get("publishedDate"),
        )


@dataclass
class GeneratedContent:
    """The content kit generated for one news item."""

    summary_english: str
    summary_burmese: str
    script_burmese: str  # visual directions in [square brackets]
    facebook_post_burmese: str
    burmese_titles: List[str] = field(default_factory=list)
    visual_prompts: List[str] = field(default_factory=list)
    image_queries: List[str] = field(default_factory=list)

    REQUIRED_FIELDS = (
        "summaryEnglish",
        "summaryBurmese",
        "scriptBurmese",
        "facebookPostBurmese",
        "burmeseTitles",
        "visualPrompts",
        "imageQueries",
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summaryEnglish": self.summary_english,
            "summaryBurmese": self.summary_burmese,
            "scriptBurmese": self.script_burmese,
            "facebookPostBurmese": self.facebook_post_burmese,
            "burmeseTitles": list(self.burmese_titles),
            "visualPrompts": list(self.visual_prompts),
            "imageQueries": list(self.image_queries),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedContent":
        _require(data, ["summaryEnglish", "summaryBurmese", "scriptBurmese", "facebookPostBurmese"], "GeneratedContent")
        return cls(
            summary_english=data["summaryEnglish"],
            summary_burmese=data["summaryBurmese"],
            script_burmese=data["scriptBurmese"],
            facebook_post_burmese=data["facebookPostBurmese"],
            burmese_titles=list(data.get("burmeseTitles") or []),
            visual_prompts=list(data.get("visualPrompts") or []),
            image_queries=list(data.get("imageQueries") or []),
        )


@dataclass(frozen=True)
class GroundingImage:
    """An image reference taken from search grounding metadata."""

    url: str
    title: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "title": self.title, "source": self.source}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroundingImage":
        _require(data, ["url"], "GroundingImage")
        return cls(
            url=data["url"],
            title=data.get("title") or "Source Link",
            source=data.get("source") or "Web Result",
        )


@dataclass
class SavedProject:
    """A news item plus its content kit, as kept in the local store."""

    id: str
    news_item: NewsItem
    generated_content: Optional[GeneratedContent]
    saved_at: str
    grounding_images: List[GroundingImage] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "newsItem": self.news_item.to_dict(),
            "generatedContent": self.generated_content.to_dict() if self.generated_content else None,
            "savedAt": self.saved_at,
            "groundingImages": [img.to_dict() for img in self.grounding_images],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedProject":
        _require(data, ["id", "newsItem"], "SavedProject")
        content = data.get("generatedContent")
        return cls(
            id=str(data["id"]),
            news_item=NewsItem.from_dict(data["newsItem"]),
            generated_content=GeneratedContent.from_dict(content) if content else None,
            saved_at=data.get("savedAt") or "",
            grounding_images=[GroundingImage.from_dict(img) for img in data.get("groundingImages") or []],
        )
