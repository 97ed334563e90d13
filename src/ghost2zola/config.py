"""Configuration schema for ghost2zola."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from ghost2zola.common import LoggingConfig


class ConversionConfig(BaseModel):
    """How a Ghost export is laid out as Zola content."""

    model_config = ConfigDict(extra='forbid')

    path_layout: Literal["dated", "flat"] = Field(
        default="dated",
        description="'dated' writes YYYY/MM/DD/<slug>.md, 'flat' writes <slug>.md"
    )
    body_fallback: Literal["html", "mobiledoc"] = Field(
        default="html",
        description="Representation tried first when a post has no markdown"
    )
    media_dir: str = Field(
        default="",
        description="Subdirectory of the extract path receiving copied images"
    )
    media_url_prefix: Optional[str] = Field(
        default=None,
        description="Absolute URL prefix for rewritten image links; page-relative links when unset"
    )
    include_drafts: bool = Field(
        default=True,
        description="Convert posts whose status is not 'published'"
    )
    include_pages: bool = Field(
        default=True,
        description="Convert static pages as well as posts"
    )
    include_author_images: bool = Field(
        default=False,
        description="Also copy author profile images"
    )
    write_section_indices: bool = Field(
        default=True,
        description="Create missing Zola _index.md files in every output directory"
    )
    overwrite: bool = Field(
        default=False,
        description="Replace files that already exist in the extract path"
    )
    worker_threads: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Threads used to transform posts and copy media"
    )

    @field_validator('media_dir', mode='before')
    @classmethod
    def strip_media_dir(cls, v):
        """Store media_dir without surrounding slashes."""
        if isinstance(v, str):
            return v.strip().strip('/')
        return v

    @field_validator('media_url_prefix', mode='before')
    @classmethod
    def strip_url_prefix(cls, v):
        """Empty prefix means page-relative links; drop a trailing slash."""
        if isinstance(v, str):
            v = v.strip().rstrip('/')
            return v or None
        return v


class Ghost2ZolaConfig(BaseModel):
    """Root configuration."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
