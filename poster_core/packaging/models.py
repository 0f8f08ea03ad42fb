from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

PLACEHOLDER_TITLE = "未知标题"
PLACEHOLDER_TAGS = ["动画短片"]
PLACEHOLDER_DESCRIPTION = "暂无简介"
PLACEHOLDER_RECOMMENDATION = '"这是一部值得观看的作品。"'

# Field names the poster task asks for, plus synonyms some model versions emit
POSTER_FIELDS: Tuple[str, ...] = ("title", "tags", "description", "recommendation")
FIELD_SYNONYMS = {"description": ("summary",), "recommendation": ("quote",)}


class GenerationTask(str, Enum):
    ANALYZE_POSTER = "analyze_poster"
    GENERATE_SHARE_TEXT = "generate_share_text"

    @property
    def expected_fields(self) -> Optional[Tuple[str, ...]]:
        """Structured fields the task's output carries; None for free text."""
        if self is GenerationTask.ANALYZE_POSTER:
            return POSTER_FIELDS
        return None


class GeneratedPosterFields(BaseModel):
    """Promotional copy for one video poster."""

    title: str = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=1, description="2-3 short category tags")
    description: str = Field(..., min_length=1, description="Story hook, about 80 characters")
    recommendation: str = Field(..., min_length=1, description="Why to watch, about 60 characters")
