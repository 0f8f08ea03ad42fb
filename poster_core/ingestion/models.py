import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Bilibili video ids: fixed "BV" prefix plus an alphanumeric run
BVID_PATTERN = re.compile(r"BV[0-9A-Za-z]+")


def extract_bvid(url: str) -> Optional[str]:
    match = BVID_PATTERN.search(url)
    return match.group(0) if match else None


class VideoReference(BaseModel):
    """The video link a pipeline invocation works on."""

    model_config = ConfigDict(frozen=True)

    url: str
    platform_id: Optional[str] = Field(default=None, description="Bilibili BV id, when the URL carries one")

    @classmethod
    def from_url(cls, url: str) -> "VideoReference":
        url = url.strip()
        return cls(url=url, platform_id=extract_bvid(url))


class PageMetadata(BaseModel):
    """Best-effort description of the linked video. Missing fields stay None."""

    title: Optional[str] = None
    description: Optional[str] = None
