"""Data models for downloads."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DownloadStatus(str, Enum):
    """Final state of one download."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DownloadOutcome(BaseModel):
    """Result of downloading one matched item."""

    model_config = ConfigDict(frozen=True)

    item_index: int = Field(..., description="Feed index of the item")
    title: str = Field("", description="Item title")
    destination_path: Optional[Path] = Field(None, description="Where the enclosure was written")
    status: DownloadStatus = Field(..., description="Whether the download succeeded")
    reason: Optional[str] = Field(None, description="Failure reason")

    @property
    def succeeded(self) -> bool:
        """Whether the download succeeded."""
        return self.status is DownloadStatus.SUCCEEDED
