"""Configuration models."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .. import __version__


class DownloadSettings(BaseModel):
    """Download defaults."""

    ndownloads: int = Field(1, description="Maximum concurrent downloads", ge=1)
    timeout: float = Field(60.0, description="Per-request timeout in seconds", gt=0)
    retries: int = Field(3, description="Extra attempts for a failed download", ge=0, le=20)
    retry_delay_ms: int = Field(300, description="Base delay between attempts in ms", ge=0)


class HttpSettings(BaseModel):
    """HTTP client settings used for feed retrieval."""

    timeout: float = Field(30.0, description="Feed request timeout in seconds", gt=0)
    user_agent: str = Field(f"dumptruck/{__version__}", description="User-Agent header")


class SettingsModel(BaseModel):
    """Main settings model."""

    download: DownloadSettings = Field(default_factory=DownloadSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)


class Mode(str, Enum):
    """What to do with the matched items."""

    CHECK = "check"
    DOWNLOAD = "download"
    CREATE = "create"


class RunConfig(BaseModel):
    """Options for a single run, fixed once the command line is read."""

    model_config = ConfigDict(frozen=True)

    mode: Mode = Field(..., description="Subcommand")
    url: Optional[str] = Field(None, description="Feed URL")
    file: Optional[Path] = Field(None, description="Feed file")
    output: Optional[Path] = Field(None, description="Download folder, or feed file for create")
    query: str = Field("", description="Query string; empty matches everything")
    ndownloads: int = Field(1, description="Maximum concurrent downloads")
    title: Optional[str] = Field(None, description="Title of the created feed")

    @model_validator(mode="after")
    def check_options(self) -> "RunConfig":
        """Reject missing or conflicting options."""
        if self.url and self.file:
            raise ValueError("--url and --file are mutually exclusive")
        if not self.url and not self.file:
            raise ValueError("one of --url or --file is required")
        if self.output is None:
            raise ValueError("--output is required")
        if self.ndownloads < 1:
            raise ValueError(f"--ndownloads must be at least 1, got {self.ndownloads}")
        if self.title is not None and self.mode is not Mode.CREATE:
            raise ValueError("--title only applies to create")
        return self

    @property
    def source(self) -> str:
        """Feed URL or file path."""
        return self.url if self.url else str(self.file)

    @property
    def source_is_url(self) -> bool:
        """Whether the feed comes from a URL."""
        return bool(self.url)

    @property
    def notexists_directory(self) -> Path:
        """Directory searched by ``notexists``."""
        if self.mode is Mode.CREATE:
            return self.output.parent
        return self.output
