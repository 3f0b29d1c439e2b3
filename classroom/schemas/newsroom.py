from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

NewsType = Literal["announcement", "news"]
NewsStatus = Literal["draft", "published", "archived"]
NewsPriority = Literal["low", "normal", "high", "urgent"]
NewsAudience = Literal["all", "teachers", "students"]


class NewsCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    excerpt: str | None = None
    image_url: str | None = Field(default=None, max_length=1024)
    type: NewsType
    status: NewsStatus = "draft"
    priority: NewsPriority = "normal"
    target_audience: NewsAudience = "all"


class NewsUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)
    excerpt: str | None = None
    image_url: str | None = Field(default=None, max_length=1024)
    type: NewsType | None = None
    priority: NewsPriority | None = None
    target_audience: NewsAudience | None = None


class NewsRead(BaseModel):
    id: int
    title: str
    content: str
    excerpt: str | None = None
    image_url: str | None = None
    type: str
    status: str
    priority: str
    target_audience: str
    published_at: datetime | None = None
    created_by: int | None = None
    updated_by: int | None = None
    author_name: str
    created_at: datetime
    updated_at: datetime | None = None


class NewsStatistics(BaseModel):
    total: int = 0
    published: int = 0
    draft: int = 0
    archived: int = 0
    announcements: int = 0
    news: int = 0
