from enum import Enum
from typing import List, Optional, Tuple, Union

from loguru import logger
from pydantic import BaseModel, Field

from poster_core.config_manager import ConfigManager
from poster_core.errors import PosterFlowError
from poster_core.ingestion.models import PageMetadata, VideoReference
from poster_core.ingestion.resolver import MetadataResolver
from poster_core.intelligence.client import GenerationClient
from poster_core.packaging.models import GeneratedPosterFields, GenerationTask
from poster_core.packaging.parser import ResponseParser
from poster_core.packaging.prompt_builder import build_prompt, system_prompt_for
from poster_core.utils.text_utils import compose_share_text


class PipelineState(str, Enum):
    IDLE = "idle"
    RESOLVING_METADATA = "resolving_metadata"
    BUILDING_PROMPT = "building_prompt"
    AWAITING_GENERATION = "awaiting_generation"
    PARSING_RESPONSE = "parsing_response"
    POSTER_DONE = "poster_done"
    BUILDING_SHARE_PROMPT = "building_share_prompt"
    SHARE_DONE = "share_done"
    COMPLETE = "complete"
    ERROR = "error"


class PipelineResult(BaseModel):
    poster_fields: GeneratedPosterFields
    share_text: Optional[str] = None
    metadata: PageMetadata = Field(default_factory=PageMetadata)
    states: List[PipelineState] = Field(default_factory=list)


class _Trail:
    """Per-invocation record of state transitions."""

    def __init__(self, url: str):
        self.url = url
        self.states: List[PipelineState] = [PipelineState.IDLE]

    def enter(self, state: PipelineState) -> None:
        logger.debug(f"[{self.url}] {self.states[-1].value} -> {state.value}")
        self.states.append(state)


class PosterPipeline:
    """
    Turns a video link into poster copy plus an optional share text.

    The poster step is mandatory and its errors propagate. The share step is
    best-effort: it runs after a successful poster step and any failure there
    leaves ``share_text`` unset.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        resolver: Optional[MetadataResolver] = None,
        client: Optional[GenerationClient] = None,
        parser: Optional[ResponseParser] = None,
    ):
        self.cfg = config_manager
        self.resolver = resolver or MetadataResolver(config_manager)
        self.client = client or GenerationClient(config_manager)
        self.parser = parser or ResponseParser(config_manager)

    async def run(self, video: Union[str, VideoReference]) -> PipelineResult:
        if isinstance(video, str):
            video = VideoReference.from_url(video)
        logger.info(f"Starting poster pipeline for {video.url}")
        trail = _Trail(video.url)

        try:
            poster, metadata = await self.analyze_poster(video, trail)
        except PosterFlowError as e:
            trail.enter(PipelineState.ERROR)
            logger.error(f"Poster generation failed: {e}")
            raise

        share_text = None
        if self.cfg.pipeline.generate_share:
            try:
                share_core = await self.generate_share_text(poster, trail)
                share_text = compose_share_text(poster, share_core, self.cfg.packaging.share_footer)
            except Exception as e:
                logger.warning(f"Share text generation failed, continuing without it: {e!r}")

        trail.enter(PipelineState.COMPLETE)
        logger.success(f"Poster ready: {poster.title}")
        return PipelineResult(poster_fields=poster, share_text=share_text, metadata=metadata, states=trail.states)

    async def analyze_poster(
        self, video: Union[str, VideoReference], trail: Optional[_Trail] = None
    ) -> Tuple[GeneratedPosterFields, PageMetadata]:
        if isinstance(video, str):
            video = VideoReference.from_url(video)
        trail = trail or _Trail(video.url)

        trail.enter(PipelineState.RESOLVING_METADATA)
        metadata = await self.resolver.resolve(video)
        logger.info(f"Page metadata: {metadata.model_dump()}")

        trail.enter(PipelineState.BUILDING_PROMPT)
        task = GenerationTask.ANALYZE_POSTER
        prompt = build_prompt(task, metadata, video=video)

        trail.enter(PipelineState.AWAITING_GENERATION)
        completion = await self.client.complete(prompt, system_prompt_for(task))
        logger.debug(f"Raw poster response: {completion.text}")

        trail.enter(PipelineState.PARSING_RESPONSE)
        poster = self.parser.parse_poster_fields(completion.text)

        trail.enter(PipelineState.POSTER_DONE)
        return poster, metadata

    async def generate_share_text(self, poster: GeneratedPosterFields, trail: Optional[_Trail] = None) -> str:
        """Generates the share paragraph for already-generated poster fields."""
        trail = trail or _Trail(poster.title)
        task = GenerationTask.GENERATE_SHARE_TEXT

        trail.enter(PipelineState.BUILDING_SHARE_PROMPT)
        prompt = build_prompt(task, poster=poster)

        trail.enter(PipelineState.AWAITING_GENERATION)
        completion = await self.client.complete(prompt, system_prompt_for(task))

        trail.enter(PipelineState.PARSING_RESPONSE)
        share_core = self.parser.parse_share_text(completion.text)
        logger.debug(f"Share text ({len(share_core)} chars): {share_core}")

        trail.enter(PipelineState.SHARE_DONE)
        return share_core
