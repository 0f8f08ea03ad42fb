import json
import re
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel

from poster_core.config_manager import ConfigManager
from poster_core.errors import ParseError
from poster_core.packaging.models import (
    FIELD_SYNONYMS,
    PLACEHOLDER_DESCRIPTION,
    PLACEHOLDER_RECOMMENDATION,
    PLACEHOLDER_TAGS,
    PLACEHOLDER_TITLE,
    GeneratedPosterFields,
    GenerationTask,
)

FENCE_OPEN = re.compile(r"^```[\w-]*[ \t]*\n?")
FENCE_CLOSE = re.compile(r"\n?```$")
BRACE_SPAN = re.compile(r"\{.*\}", re.DOTALL)

# Value runs up to the next quote, newline or closing brace. Titles also stop at a comma.
FIELD_VALUE_STOP = {"title": "\"'\\n,}"}
DEFAULT_VALUE_STOP = "\"'\\n}"

# Tier names, in the order they are attempted
TIER_DIRECT = "direct"
TIER_BRACE_SCAN = "brace_scan"
TIER_FIELD_REGEX = "field_regex"


class Extraction(BaseModel):
    data: Dict[str, Any]
    tier: str


def strip_code_fence(text: str) -> str:
    """Removes a wrapping ``` / ```json fence, if present."""
    text = text.strip()
    if text.startswith("```"):
        text = FENCE_OPEN.sub("", text, count=1)
        text = FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def field_pattern(field: str) -> "re.Pattern[str]":
    stop = FIELD_VALUE_STOP.get(field, DEFAULT_VALUE_STOP)
    return re.compile(rf"(?<![A-Za-z_]){field}[\"'\s]*:\s*[\"']?([^{stop}]+)", re.IGNORECASE)


def _text_value(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class ResponseParser:
    """
    Extracts structured data from free-form model output.

    Tiers are tried in order and the first one that yields a usable field wins:
    direct JSON decode, brace-span scan, then loose per-field regexes. Fence
    stripping is applied up front. ParseError is raised only when every tier
    comes back empty.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        self.max_tags = config_manager.packaging.max_tags if config_manager else 3

    def _usable(self, decoded: Any, expected_fields: Iterable[str]) -> bool:
        if not isinstance(decoded, dict):
            return False
        for field in expected_fields:
            if field in decoded:
                return True
            if any(alias in decoded for alias in FIELD_SYNONYMS.get(field, ())):
                return True
        return False

    def _decode(self, candidate: str, expected_fields: Iterable[str]) -> Optional[Dict[str, Any]]:
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.debug(f"JSON decode failed: {e}")
            return None
        return decoded if self._usable(decoded, expected_fields) else None

    def regex_fields(self, raw_text: str, fields: Iterable[str]) -> Dict[str, str]:
        found = {}
        for field in fields:
            match = field_pattern(field).search(raw_text)
            if match and match.group(1).strip():
                found[field] = match.group(1).strip()
        return found

    def extract(self, raw_text: str, expected_fields: Iterable[str]) -> Extraction:
        expected_fields = tuple(expected_fields)
        text = strip_code_fence(raw_text)

        if text.startswith("{"):
            data = self._decode(text, expected_fields)
            if data is not None:
                return Extraction(data=data, tier=TIER_DIRECT)

        match = BRACE_SPAN.search(text)
        if match:
            data = self._decode(match.group(0), expected_fields)
            if data is not None:
                return Extraction(data=data, tier=TIER_BRACE_SCAN)

        logger.warning("No JSON object in model output, falling back to field patterns")
        text_fields = [f for f in expected_fields if f != "tags"]
        found = self.regex_fields(raw_text, text_fields)
        if found:
            return Extraction(data=found, tier=TIER_FIELD_REGEX)

        raise ParseError("Could not parse the model response; please retry.", raw_text=raw_text)

    def _tags(self, value: Any) -> List[str]:
        if not isinstance(value, list):
            return list(PLACEHOLDER_TAGS)
        tags = [str(tag).strip() for tag in value if tag is not None and str(tag).strip()]
        return tags[: self.max_tags] or list(PLACEHOLDER_TAGS)

    def parse_poster_fields(self, raw_text: str) -> GeneratedPosterFields:
        extraction = self.extract(raw_text, GenerationTask.ANALYZE_POSTER.expected_fields)
        data = extraction.data
        logger.debug(f"Poster fields extracted via {extraction.tier}: {data}")

        title = _text_value(data.get("title"))
        if title is None and extraction.tier != TIER_FIELD_REGEX:
            title = self.regex_fields(raw_text, ["title"]).get("title")

        return GeneratedPosterFields(
            title=title or PLACEHOLDER_TITLE,
            tags=self._tags(data.get("tags")),
            description=_text_value(data.get("description"))
            or _text_value(data.get("summary"))
            or PLACEHOLDER_DESCRIPTION,
            recommendation=_text_value(data.get("recommendation"))
            or _text_value(data.get("quote"))
            or PLACEHOLDER_RECOMMENDATION,
        )

    def parse_share_text(self, raw_text: str) -> str:
        text = strip_code_fence(raw_text)
        for left, right in (('"', '"'), ("“", "”"), ("「", "」")):
            if len(text) > 1 and text.startswith(left) and text.endswith(right):
                text = text[1:-1].strip()
                break
        if not text:
            raise ParseError("Model returned an empty share text.", raw_text=raw_text)
        return text
