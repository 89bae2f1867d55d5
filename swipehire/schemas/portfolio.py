from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PortfolioLayout = Literal["grid", "list", "carousel", "masonry"]
Visibility = Literal["public", "private", "unlisted"]
LinkType = Literal["github", "demo", "behance", "dribbble", "linkedin", "website", "other"]


class _CamelModel(BaseModel):
    # The storage backend speaks camelCase; both spellings are accepted here.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Media(_CamelModel):
    type: Literal["image", "video", "audio"]
    url: str = Field(min_length=1, max_length=2000)
    alt: str | None = Field(default=None, max_length=300)
    poster: str | None = Field(default=None, max_length=2000)
    width: int | None = Field(default=None, ge=0)
    height: int | None = Field(default=None, ge=0)
    duration: float | None = Field(default=None, ge=0)
    size: int | None = Field(default=None, ge=0)


class ExternalLink(_CamelModel):
    type: LinkType = "other"
    url: str = Field(min_length=1, max_length=2000)
    label: str = Field(default="", max_length=120)


class Project(_CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    media: list[Media] = Field(default_factory=list)
    links: list[ExternalLink] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    order: int = 0
    is_published: bool = False
    technologies: list[str] = Field(default_factory=list)
    duration: str = ""
    role: str = ""


def _check_social_image(value: str | None) -> str | None:
    if value is None or value == "":
        return value
    if not value.startswith(("http://", "https://")):
        raise ValueError("Invalid social image URL")
    return value


class PortfolioCreate(_CamelModel):
    title: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    projects: list[Project] = Field(default_factory=list)
    layout: PortfolioLayout = "grid"
    tags: list[str] = Field(default_factory=list, max_length=10)
    is_published: bool = False
    visibility: Visibility = "private"
    theme: str = "default"
    custom_css: str = Field(default="", max_length=10000)
    seo_title: str | None = Field(default=None, max_length=60)
    seo_description: str | None = Field(default=None, max_length=160)
    social_image: str | None = None

    @field_validator("social_image")
    @classmethod
    def _social_image_url(cls, value: str | None) -> str | None:
        return _check_social_image(value)


class PortfolioUpdate(_CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    projects: list[Project] | None = None
    layout: PortfolioLayout | None = None
    tags: list[str] | None = Field(default=None, max_length=10)
    is_published: bool | None = None
    visibility: Visibility | None = None
    url: str | None = Field(default=None, max_length=200)
    theme: str | None = None
    custom_css: str | None = Field(default=None, max_length=10000)
    seo_title: str | None = Field(default=None, max_length=60)
    seo_description: str | None = Field(default=None, max_length=160)
    social_image: str | None = None

    @field_validator("social_image")
    @classmethod
    def _social_image_url(cls, value: str | None) -> str | None:
        return _check_social_image(value)


class PortfolioFilters(_CamelModel):
    search: str | None = Field(default=None, max_length=200)
    tags: str | None = Field(default=None, max_length=500)
    sort_by: Literal["createdAt", "updatedAt", "title", "views", "likes"] = "updatedAt"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    include_private: bool = True

    def to_query(self) -> dict[str, str]:
        query = {
            "page": str(self.page),
            "limit": str(self.limit),
            "includePrivate": "true" if self.include_private else "false",
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }
        if self.tags:
            query["tags"] = self.tags
        if self.search:
            query["search"] = self.search
        return query


class PortfolioEnvelope(BaseModel):
    success: bool = True
    data: Any = None
    message: str | None = None
