import asyncio
import html
import re
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from poster_core.config_manager import ConfigManager, ResolverConfig
from poster_core.errors import ResolutionFailure
from poster_core.ingestion.models import PageMetadata, VideoReference

TITLE_PATTERN = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
DESCRIPTION_PATTERN = re.compile(
    r"<meta[^>]*name=[\"']description[\"'][^>]*content=[\"']([^\"']+)[\"']", re.IGNORECASE
)


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value:
        return None
    value = html.unescape(value).strip()
    return value or None


def extract_page_metadata(body: str) -> PageMetadata:
    """Pulls the <title> text and the description meta tag out of raw HTML."""
    title_match = TITLE_PATTERN.search(body)
    desc_match = DESCRIPTION_PATTERN.search(body)
    return PageMetadata(
        title=_clean(title_match.group(1)) if title_match else None,
        description=_clean(desc_match.group(1)) if desc_match else None,
    )


class MetadataResolver:
    """
    Best-effort lookup of a human title/description for a video link.

    Bilibili links are answered from the public view API. Everything else
    falls back to fetching the page and scraping its <title> and description
    meta tag. Failures never escape ``resolve``; they degrade to empty metadata.
    """

    def __init__(self, config_manager: ConfigManager, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg: ResolverConfig = config_manager.resolver
        self._transport = transport

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        headers = {"User-Agent": self.cfg.user_agent}
        headers.update(kwargs.pop("headers", {}))
        return httpx.AsyncClient(transport=self._transport, headers=headers, **kwargs)

    async def resolve(self, video: VideoReference) -> PageMetadata:
        if video.platform_id:
            logger.info(f"Bilibili video detected, BV id: {video.platform_id}")
            try:
                meta = await self.fetch_platform_metadata(video.platform_id)
                if meta.title:
                    return meta
            except ResolutionFailure as e:
                logger.warning(f"Bilibili metadata lookup failed: {e}")

        try:
            return await self.fetch_page_metadata(video.url)
        except ResolutionFailure as e:
            logger.warning(f"Page metadata lookup failed: {e}")
            return PageMetadata()

    async def fetch_platform_metadata(self, bvid: str) -> PageMetadata:
        try:
            async with self._client(headers={"Referer": self.cfg.platform_referer}) as client:
                response = await client.get(self.cfg.platform_api_url, params={"bvid": bvid})
                if not response.is_success:
                    raise ResolutionFailure(f"view API returned {response.status_code}")
                payload: Dict[str, Any] = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise ResolutionFailure(str(e)) from e

        if not isinstance(payload, dict):
            return PageMetadata()
        data = payload.get("data")
        if payload.get("code") != 0 or not isinstance(data, dict):
            logger.debug(f"Bilibili view API refused {bvid}: code={payload.get('code')}")
            return PageMetadata()

        meta = PageMetadata(
            title=_clean(data.get("title")),
            description=_clean(data.get("desc")) or _clean(data.get("dynamic")),
        )
        if meta.title:
            logger.info(f"Bilibili metadata resolved: {meta.title}")
        return meta

    async def fetch_page_metadata(self, url: str) -> PageMetadata:
        try:
            async with self._client(follow_redirects=True) as client:
                response = await asyncio.wait_for(client.get(url), timeout=self.cfg.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise ResolutionFailure(f"timed out after {self.cfg.timeout_seconds}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ResolutionFailure(str(e)) from e

        if not response.is_success:
            raise ResolutionFailure(f"{url} returned {response.status_code}")

        meta = extract_page_metadata(response.text)
        logger.debug(f"Page metadata for {url}: {meta.model_dump()}")
        return meta
