from typing import Optional

from pydantic import BaseModel, Field


class Completion(BaseModel):
    """Raw text returned by the generation endpoint."""

    text: str
    truncated: bool = Field(default=False, description="Output was cut off by the max_tokens cap")
    finish_reason: Optional[str] = None
    model: Optional[str] = None
