"""Post discovery: ``<posts_dir>/<slug>/index.md`` files with YAML front matter."""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path

import yaml

from postpress.pipeline.compiler import MarkdownCompiler
from postpress.posts.models import PostData, PostMeta

logger = logging.getLogger(__name__)

INDEX_FILE = "index.md"


def parse_front_matter(content: str) -> tuple[dict, str]:
    """Extract YAML front matter and body from markdown content."""
    if not content.startswith("---"):
        return {}, content
    end = content.find("\n---", 3)
    if end == -1:
        return {}, content
    fm_text = content[3:end].strip()
    body = content[end + 4:].lstrip("\n")
    metadata = yaml.safe_load(fm_text) or {}
    if not isinstance(metadata, dict):
        return {}, content
    return metadata, body


def _as_str(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return str(value)


def _post_dirs(directory: Path, index_file: str) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        entry
        for entry in directory.iterdir()
        if entry.is_dir() and entry.name != ".git" and (entry / index_file).is_file()
    )


def _meta(slug: str, metadata: dict) -> PostMeta:
    return PostMeta(
        slug=slug,
        title=_as_str(metadata.get("title")),
        date=_as_str(metadata.get("date")),
        description=_as_str(metadata.get("description")),
    )


def get_all_post_slugs(directory: str | Path, index_file: str = INDEX_FILE) -> list[str]:
    return [p.name for p in _post_dirs(Path(directory), index_file)]


def get_all_posts(directory: str | Path, index_file: str = INDEX_FILE) -> list[PostMeta]:
    """Front matter for every post, newest first. Bodies are not compiled."""
    posts: list[PostMeta] = []
    for post_dir in _post_dirs(Path(directory), index_file):
        try:
            metadata, _body = parse_front_matter(
                (post_dir / index_file).read_text(encoding="utf-8")
            )
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            logger.error("Error reading post %s: %s", post_dir.name, exc)
            continue
        posts.append(_meta(post_dir.name, metadata))
    return sorted(posts, key=lambda p: p.date, reverse=True)


async def get_post_by_slug(
    slug: str,
    directory: str | Path,
    compiler: MarkdownCompiler,
    index_file: str = INDEX_FILE,
) -> PostData | None:
    """Load and compile one post. Returns None if it cannot be read."""
    root = Path(directory)
    path = root / slug / index_file
    if not path.resolve().is_relative_to(root.resolve()):
        logger.error("Post path escapes posts directory: %s", slug)
        return None
    try:
        metadata, body = parse_front_matter(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        logger.error("Error reading post %s: %s", slug, exc)
        return None

    content = await compiler.compile(body)
    return PostData(**_meta(slug, metadata).model_dump(), content=content)
