"""Blog post discovery and loading."""

from postpress.posts.loader import (
    get_all_post_slugs,
    get_all_posts,
    get_post_by_slug,
    parse_front_matter,
)
from postpress.posts.models import PostData, PostMeta

__all__ = [
    "PostData",
    "PostMeta",
    "get_all_post_slugs",
    "get_all_posts",
    "get_post_by_slug",
    "parse_front_matter",
]
