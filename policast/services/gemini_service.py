import os
import re
import json
import time
import asyncio
import yaml
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from google import genai
from google.genai import types

from policast.models.content import GeneratedContent, GroundingImage, NewsItem
from policast.utils.error_monitoring import AIServiceError
from policast.utils.logging_config import log_ai_interaction
from policast.utils.retry import retry_operation


DEFAULT_PROMPTS_PATH = Path(__file__).resolve().parent.parent / "config" / "prompts.yaml"

IMAGE_URL_PATTERN = re.compile(r"\.(jpeg|jpg|gif|png|webp)$")

NEWS_LIST_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "snippet": types.Schema(type=types.Type.STRING),
            "source": types.Schema(type=types.Type.STRING),
            "url": types.Schema(type=types.Type.STRING),
            "publishedDate": types.Schema(type=types.Type.STRING),
        },
        required=["title", "snippet"],
    ),
)

_STRING_LIST = types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING))

CONTENT_KIT_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "summaryEnglish": types.Schema(type=types.Type.STRING),
        "summaryBurmese": types.Schema(type=types.Type.STRING),
        "scriptBurmese": types.Schema(type=types.Type.STRING),
        "facebookPostBurmese": types.Schema(type=types.Type.STRING),
        "burmeseTitles": _STRING_LIST,
        "visualPrompts": _STRING_LIST,
        "imageQueries": _STRING_LIST,
    },
    required=list(GeneratedContent.REQUIRED_FIELDS),
)


class GeminiService:
    """
    Gemini client for the three studio calls: headline discovery, content kit
    generation and grounded image search.
    References: Google GenAI Python SDK documentation.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        prompts_path: Optional[str] = None,
        max_retries: int = 3,
        base_delay: float = 2.0,
    ):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        if not self.api_key:
            raise AIServiceError("API Key not found. Set GEMINI_API_KEY or pass api_key parameter.")

        self.client = genai.Client(api_key=self.api_key)

        self.prompts_path = str(prompts_path or DEFAULT_PROMPTS_PATH)
        self.prompts = self._load_prompts()

        params = self.prompts.get("parameters", {}) if isinstance(self.prompts, dict) else {}
        model_cfg = params.get("gemini", {}) if isinstance(params, dict) else {}
        self.news_model = os.getenv("NEWS_MODEL") or model_cfg.get("news_model", "gemini-3-flash-preview")
        self.content_model = os.getenv("CONTENT_MODEL") or model_cfg.get("content_model", "gemini-3-pro-preview")
        self.search_model = os.getenv("SEARCH_MODEL") or model_cfg.get("search_model", self.news_model)
        self.timeout = float(params.get("timeout_seconds", 180))

        self.max_retries = max_retries
        self.base_delay = base_delay

        self.logger = logging.getLogger(__name__)

    def _load_prompts(self) -> Dict[str, Any]:
        """Load prompts from YAML configuration file."""
        try:
            with open(self.prompts_path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise AIServiceError(f"Prompts file not found at {self.prompts_path}") from e
        except yaml.YAMLError as e:
            raise AIServiceError(f"Error parsing YAML at {self.prompts_path}: {e}") from e

    def _prompt(self, key: str) -> Dict[str, Any]:
        cfg = self.prompts.get(key)
        if not isinstance(cfg, dict) or "prompt" not in cfg:
            raise AIServiceError(f"Prompt '{key}' missing from {self.prompts_path}")
        return cfg

    async def _generate(
        self,
        call_name: str,
        model: str,
        contents: str,
        config: types.GenerateContentConfig,
    ) -> types.GenerateContentResponse:
        """Run one generate_content call behind the rate-limit retry wrapper."""
        start = time.monotonic()
        try:
            response = await retry_operation(
                lambda: asyncio.wait_for(
                    self.client.aio.models.generate_content(
                        model=model,
                        contents=contents,
                        config=config,
                    ),
                    timeout=self.timeout,
                ),
                retries=self.max_retries,
                base_delay=self.base_delay,
            )
        except asyncio.TimeoutError as e:
            elapsed_ms = (time.monotonic() - start) * 1000.0
            log_ai_interaction(self.logger, call_name, model, 0, elapsed_ms, False, timed_out=True)
            self.logger.error(f"Gemini {call_name} call timed out after {self.timeout:.0f} seconds")
            raise AIServiceError(f"Gemini API call timed out after {self.timeout:.0f} seconds") from e
        except Exception:
            elapsed_ms = (time.monotonic() - start) * 1000.0
            log_ai_interaction(self.logger, call_name, model, 0, elapsed_ms, False)
            raise

        elapsed_ms = (time.monotonic() - start) * 1000.0
        usage = getattr(response, "usage_metadata", None)
        tokens = getattr(usage, "total_token_count", 0) if usage else 0
        log_ai_interaction(self.logger, call_name, model, tokens or 0, elapsed_ms, True)
        return response

    @staticmethod
    def _parse_json(text: str, call_name: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise AIServiceError(f"Invalid JSON returned by {call_name}: {e}") from e

    async def test_connection(self) -> bool:
        """Ping the API to validate connectivity and key."""
        try:
            self.logger.info("🔍 Testing AI service connection...")
            response = await self.client.aio.models.generate_content(
                model=self.news_model,
                contents="ping",
                config=types.GenerateContentConfig(max_output_tokens=100)
            )
            return bool(getattr(response, "text", None))
        except Exception as e:
            self.logger.error(f"❌ AI service test connection failed: {e}")
            self.logger.error(f"   Model: {self.news_model}")
            return False

    async def fetch_political_news(self) -> List[NewsItem]:
        """Ask Gemini, with search grounding, for the latest political headlines."""
        prompt = self._prompt("news_fetch")["prompt"]
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
            response_schema=NEWS_LIST_SCHEMA,
        )

        try:
            response = await self._generate("fetch_news", self.news_model, prompt, config)
            text = response.text
            if not text:
                return []

            raw_items = self._parse_json(text, "fetch_news")
            if not isinstance(raw_items, list):
                raise AIServiceError("fetch_news returned a non-list payload")

            stamp = int(time.time() * 1000)
            items = []
            for index, raw in enumerate(raw_items):
                if not isinstance(raw, dict):
                    raise AIServiceError(f"fetch_news item {index} is not an object")
                try:
                    items.append(NewsItem.from_dict({**raw, "id": f"news-{stamp}-{index}"}))
                except ValueError as e:
                    raise AIServiceError(f"Malformed headline at index {index}: {e}") from e
            self.logger.info(f"Fetched {len(items)} headlines")
            return items

        except Exception as e:
            self.logger.error(f"Error fetching news: {e}")
            raise

    async def generate_content_kit(self, news_item: NewsItem) -> GeneratedContent:
        """Generate the localized content kit for one headline."""
        template = self._prompt("content_kit")["prompt"]
        prompt = template.format(
            title=news_item.title,
            snippet=news_item.snippet,
            source=news_item.source or "Unknown",
        )
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=CONTENT_KIT_SCHEMA,
        )

        try:
            response = await self._generate("generate_kit", self.content_model, prompt, config)
            text = response.text
            if not text:
                raise AIServiceError("No content generated")

            data = self._parse_json(text, "generate_kit")
            try:
                return GeneratedContent.from_dict(data)
            except ValueError as e:
                raise AIServiceError(f"Incomplete content kit: {e}") from e

        except Exception as e:
            self.logger.error(f"Error generating content kit: {e}")
            raise

    async def search_related_images(self, queries: List[str]) -> List[GroundingImage]:
        """
        Search the web for the first image query and collect grounding links.

        Failures are logged and produce an empty list; images are optional.
        """
        cfg = self._prompt("image_search")
        search_query = queries[0] if queries else cfg.get("default_query", "political news")
        max_images = int(cfg.get("max_images", 10))
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )

        try:
            response = await self._generate(
                "search_images", self.search_model, cfg["prompt"].format(query=search_query), config
            )
            return self._extract_grounding_images(response, max_images)

        except Exception as e:
            self.logger.error(f"Error searching images: {e}")
            return []

    @staticmethod
    def _extract_grounding_images(response: Any, max_images: int = 10) -> List[GroundingImage]:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []
        metadata = getattr(candidates[0], "grounding_metadata", None)
        chunks = getattr(metadata, "grounding_chunks", None) or []

        images: List[GroundingImage] = []
        seen_urls = set()
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            uri = getattr(web, "uri", None) if web else None
            title = getattr(web, "title", None) if web else None
            if not uri:
                continue
            if not (IMAGE_URL_PATTERN.search(uri) or title):
                continue
            if uri in seen_urls:
                continue
            seen_urls.add(uri)
            images.append(GroundingImage(
                url=uri,
                title=title or "Source Link",
                source=title or "Web Result",
            ))

        return images[:max_images]
