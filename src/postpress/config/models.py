from pydantic import BaseModel, Field
from typing import Literal

DEFAULT_FAVICON_SERVICE = "https://www.google.com/s2/favicons?domain={host}"
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; postpress-linkcard/0.1)"


class FetchConfig(BaseModel):
    timeout: float = Field(default=10.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    max_bytes: int = Field(default=1_048_576, gt=0)
    max_concurrency: int = Field(default=8, gt=0)
    favicon_service: str = DEFAULT_FAVICON_SERVICE


class CacheConfig(BaseModel):
    enabled: bool = False
    path: str = ".postpress/linkcard-cache.json"
    ttl_days: int = Field(default=7, ge=0)


class LinkCardConfig(BaseModel):
    enabled: bool = True
    show_site_name: bool = False


class HighlightConfig(BaseModel):
    enabled: bool = True


class PostsConfig(BaseModel):
    directory: str = "public/posts"
    index_file: str = "index.md"


class BuildConfig(BaseModel):
    output_dir: str = "build/posts"


class PostpressConfig(BaseModel):
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    linkcard: LinkCardConfig = Field(default_factory=LinkCardConfig)
    highlight: HighlightConfig = Field(default_factory=HighlightConfig)
    posts: PostsConfig = Field(default_factory=PostsConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
