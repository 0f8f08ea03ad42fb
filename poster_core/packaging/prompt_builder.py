from typing import Optional

from poster_core.ingestion.models import PageMetadata, VideoReference
from poster_core.packaging.models import GeneratedPosterFields, GenerationTask
from poster_core.packaging.prompts import (
    FORBIDDEN_PHRASES,
    POSTER_SYSTEM_PROMPT,
    POSTER_URL_ONLY_TEMPLATE,
    POSTER_USER_TEMPLATE,
    POSTER_VIDEO_INFO_TEMPLATE,
    SHARE_SYSTEM_PROMPT,
    SHARE_USER_TEMPLATE,
)

SHARE_MAX_CHARS = 100

SYSTEM_PROMPTS = {
    GenerationTask.ANALYZE_POSTER: POSTER_SYSTEM_PROMPT,
    GenerationTask.GENERATE_SHARE_TEXT: SHARE_SYSTEM_PROMPT,
}


def _forbidden() -> str:
    return "、".join(f'"{phrase}"' for phrase in FORBIDDEN_PHRASES)


def system_prompt_for(task: GenerationTask) -> str:
    return SYSTEM_PROMPTS[task]


def _video_info(metadata: PageMetadata, video: Optional[VideoReference]) -> str:
    if metadata.title:
        description_line = f"【视频简介】{metadata.description}" if metadata.description else ""
        return POSTER_VIDEO_INFO_TEMPLATE.format(
            title=metadata.title, description_line=description_line
        ).rstrip()
    # Without a title the model has only the link to go on
    return POSTER_URL_ONLY_TEMPLATE.format(url=video.url if video else "")


def build_prompt(
    task: GenerationTask,
    metadata: Optional[PageMetadata] = None,
    video: Optional[VideoReference] = None,
    poster: Optional[GeneratedPosterFields] = None,
) -> str:
    """
    Renders the user prompt for a generation task. Pure and deterministic.

    Args:
        task: Which generation task the prompt is for.
        metadata: Resolved page metadata; anchors the poster prompt on real content.
        video: The video link, used by the poster prompt when no title was resolved.
        poster: Previously generated poster fields, required for the share task.
    """
    if task is GenerationTask.ANALYZE_POSTER:
        return POSTER_USER_TEMPLATE.format(
            video_info=_video_info(metadata or PageMetadata(), video),
            forbidden=_forbidden(),
        )

    if task is GenerationTask.GENERATE_SHARE_TEXT:
        if poster is None:
            raise ValueError("Share prompt needs the generated poster fields.")
        return SHARE_USER_TEMPLATE.format(
            title=poster.title,
            description=poster.description,
            tags="、".join(poster.tags),
            max_chars=SHARE_MAX_CHARS,
            forbidden=_forbidden(),
        )

    raise ValueError(f"Unsupported generation task: {task}")
