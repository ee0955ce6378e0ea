"""Data models for ingestion."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FeedItem(BaseModel):
    """One entry of a loaded feed."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., description="1-based position in the feed", ge=1)
    title: str = Field("", description="Item title")
    description: str = Field("", description="Item description/summary")
    published_at: Optional[datetime] = Field(None, description="Publication timestamp")
    published: Optional[str] = Field(None, description="Publication date as written in the feed")
    link: Optional[str] = Field(None, description="Item URL")
    guid: Optional[str] = Field(None, description="Unique identifier from the feed")
    enclosure_url: Optional[str] = Field(None, description="Enclosed media URL")
    enclosure_type: Optional[str] = Field(None, description="Enclosure MIME type")
    enclosure_length: Optional[int] = Field(None, description="Enclosure size in bytes")

    @field_validator("published_at")
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps as UTC so they compare with aware ones."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class FeedChannel(BaseModel):
    """Channel metadata plus the ordered items of a feed."""

    model_config = ConfigDict(frozen=True)

    title: str = Field("", description="Feed title")
    link: str = Field("", description="Feed website URL")
    description: str = Field("", description="Feed description")
    language: Optional[str] = Field(None, description="Feed language code")
    copyright: Optional[str] = Field(None, description="Copyright notice")
    managing_editor: Optional[str] = Field(None, description="Managing editor")
    pub_date: Optional[str] = Field(None, description="Channel publication date as written in the feed")
    categories: List[str] = Field(default_factory=list, description="Channel categories")
    items: List[FeedItem] = Field(default_factory=list, description="Items in document order")

    @property
    def total_items(self) -> int:
        """Number of items in the feed."""
        return len(self.items)
