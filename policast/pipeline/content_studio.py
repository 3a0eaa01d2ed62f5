import time
import logging
from datetime import datetime, timezone
from typing import List, Optional

from policast.models.content import NewsItem, SavedProject, GroundingImage, GeneratedContent
from policast.pipeline.news_feed import NewsFeed
from policast.services.gemini_service import GeminiService
from policast.services.project_store import ProjectStore, ImportResult
from policast.utils.error_monitoring import ErrorHandler
from policast.utils.logging_config import PerformanceTracker


class StudioError(Exception):
    """Failure with a message meant for the user."""

    def __init__(self, user_message: str):
        super().__init__(user_message)
        self.user_message = user_message


def new_project_id() -> str:
    return f"proj-{int(time.time() * 1000)}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ContentStudio:
    """
    Orchestrates discovery, kit generation and the saved project list.
    """

    def __init__(
        self,
        gemini: GeminiService,
        store: ProjectStore,
        feed: Optional[NewsFeed] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.gemini = gemini
        self.store = store
        self.feed = feed or NewsFeed()
        self.error_handler = error_handler or ErrorHandler()
        self.logger = logging.getLogger(__name__)

    def _report_error(self, error: Exception, operation: str, context: Optional[dict] = None):
        ctx = self.error_handler.handle_error(error, operation, context)
        for pattern in self.error_handler.detect_error_patterns():
            self.logger.warning(pattern)
        return ctx

    async def fetch_news(self) -> List[NewsItem]:
        """Fetch headlines and return only those not already in the session feed."""
        try:
            with PerformanceTracker("fetch_news", self.logger):
                fetched = await self.gemini.fetch_political_news()
        except Exception as e:
            ctx = self._report_error(e, "fetch_news")
            raise StudioError(ctx.user_message) from e
        return self.feed.merge(fetched)

    async def generate_kit(self, news_item: NewsItem, existing: Optional[SavedProject] = None) -> SavedProject:
        """
        Generate a content kit and its grounding images, then save the project.

        Regenerating an existing project keeps its id so the stored entry is
        replaced in place.
        """
        try:
            with PerformanceTracker(f"generate_kit {news_item.id}", self.logger):
                content = await self.gemini.generate_content_kit(news_item)
                images: List[GroundingImage] = []
                if content.image_queries:
                    images = await self.gemini.search_related_images(content.image_queries)
        except Exception as e:
            ctx = self._report_error(e, "generate_kit", {"news_id": news_item.id})
            raise StudioError(ctx.user_message) from e

        project = self.build_project(news_item, content, images, existing)
        await self.store.save_project(project)
        return project

    def build_project(
        self,
        news_item: NewsItem,
        content: Optional[GeneratedContent],
        images: List[GroundingImage],
        existing: Optional[SavedProject] = None,
    ) -> SavedProject:
        return SavedProject(
            id=existing.id if existing else new_project_id(),
            news_item=news_item,
            generated_content=content,
            saved_at=utc_timestamp(),
            grounding_images=list(images),
        )

    async def save(self, project: SavedProject) -> SavedProject:
        """Explicit save; refreshes the timestamp."""
        if project.generated_content is None:
            raise StudioError("Nothing to save yet. Generate content first.")
        project.saved_at = utc_timestamp()
        await self.store.save_project(project)
        return project

    async def saved_projects(self) -> List[SavedProject]:
        return await self.store.load_projects()

    async def get_project(self, project_id: str) -> Optional[SavedProject]:
        return await self.store.get_project(project_id)

    async def delete(self, project_id: str) -> bool:
        return await self.store.delete_project(project_id)

    async def export_all(self, path: Optional[str] = None) -> str:
        return str(await self.store.export_to_file(path))

    async def export_project(self, project_id: str, path: Optional[str] = None) -> str:
        project = await self.store.get_project(project_id)
        if project is None:
            raise StudioError(f"No saved project with id {project_id}")
        return str(await self.store.export_project(project, path))

    async def import_file(self, path: str) -> ImportResult:
        return await self.store.import_from_file(path)
