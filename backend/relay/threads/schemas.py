"""Pydantic schemas for the thread summarize/reply endpoints.

Note:
    Field names use camelCase (e.g., threadContent, keyPoints) to match the
    JavaScript convention used by the browser extension that calls the API.

Request fields are optional at the schema level so that a missing field is
reported as a 400 with a readable message by the router rather than as a
generic validation error.
"""
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ThreadContentInput(BaseModel):
    """Thread text captured by the client.

    Attributes:
        text: Raw thread text. Required and non-empty for every endpoint.
    """
    model_config = ConfigDict(extra="allow")

    text: Optional[str] = Field(default=None, description="Raw thread text")


class SummaryInput(BaseModel):
    """A summary previously returned by /api/summarize, echoed back for replies."""
    model_config = ConfigDict(extra="allow")

    keyPoints: Any = Field(default=None, description="Key points; must be a list")
    quotes: Any = Field(default=None, description="Notable quotes")
    sentiment: Optional[str] = None
    wordCount: Optional[int] = None
    timeToRead: Optional[int] = None


class SummarizeRequest(BaseModel):
    """Request body for POST /api/summarize."""
    threadContent: Optional[ThreadContentInput] = None


class ReplyRequest(BaseModel):
    """Request body for POST /api/reply."""
    threadContent: Optional[ThreadContentInput] = None
    summary: Optional[SummaryInput] = None


class SummaryPayload(BaseModel):
    """Structured summary returned to the client."""
    keyPoints: List[str]
    quotes: List[str]
    sentiment: Literal["positive", "negative", "neutral"]
    wordCount: int = Field(ge=0)
    timeToRead: int = Field(ge=0)


class SummarizeResponse(BaseModel):
    """Response body for POST /api/summarize."""
    success: bool = True
    summary: SummaryPayload
    fromCache: Optional[bool] = None


class ReplyResponse(BaseModel):
    """Response body for POST /api/reply."""
    success: bool = True
    reply: str
    fromCache: Optional[bool] = None


class ClearCacheResponse(BaseModel):
    """Response body for POST /api/clear-cache."""
    success: bool = True
    cleared: int = 0
