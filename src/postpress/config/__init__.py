from .loader import load_config
from .models import (
    BuildConfig,
    CacheConfig,
    FetchConfig,
    HighlightConfig,
    LinkCardConfig,
    PostpressConfig,
    PostsConfig,
)

__all__ = [
    "BuildConfig",
    "CacheConfig",
    "FetchConfig",
    "HighlightConfig",
    "LinkCardConfig",
    "PostpressConfig",
    "PostsConfig",
    "load_config",
]
