"""CLI entry point for postpress."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from postpress.config import PostpressConfig, load_config
from postpress.config.loader import DEFAULT_CONFIG_TEMPLATE
from postpress.linkcard import MetadataFetcher, PreviewCache
from postpress.pipeline import MarkdownCompiler
from postpress.posts import get_all_posts, get_post_by_slug, parse_front_matter

app = typer.Typer(
    name="postpress",
    help="Compile markdown blog posts to HTML, turning bare URLs into link cards.",
)

config_app = typer.Typer(help="Manage postpress configuration.")
app.add_typer(config_app, name="config")

logger = logging.getLogger("postpress")

# Global state
_config: PostpressConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _configure_logging(cfg: PostpressConfig) -> None:
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
    else:
        handler = RichHandler(show_path=False)
    logging.basicConfig(
        level=_LOG_LEVELS[cfg.log_level],
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _get_config() -> PostpressConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to postpress.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _configure_logging(_config)


def _ttl_seconds(cfg: PostpressConfig) -> float | None:
    return cfg.cache.ttl_days * 86400 if cfg.cache.ttl_days else None


def _open_cache(cfg: PostpressConfig) -> PreviewCache:
    if cfg.cache.enabled:
        return PreviewCache.load(cfg.cache.path, ttl_seconds=_ttl_seconds(cfg))
    return PreviewCache()


def _close_cache(cache: PreviewCache, cfg: PostpressConfig) -> None:
    if cfg.cache.enabled:
        cache.save(cfg.cache.path)


@app.command()
def render(
    file: str = typer.Argument(..., help="Markdown file to compile"),
    output: str | None = typer.Option(None, "--output", "-o", help="Write HTML to file"),
) -> None:
    """Compile one markdown file (front matter is stripped) to HTML."""
    cfg = _get_config()
    path = Path(file)
    if not path.is_file():
        rprint(f"[red]Error:[/red] File not found: {file}")
        raise typer.Exit(1)

    try:
        _meta, body = parse_front_matter(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    cache = _open_cache(cfg)
    html = asyncio.run(MarkdownCompiler(cfg, cache).compile(body))
    _close_cache(cache, cfg)

    if output:
        Path(output).write_text(html, encoding="utf-8")
        rprint(f"[green]Written to[/green] {output}")
    else:
        typer.echo(html)


@app.command()
def preview(url: str = typer.Argument(..., help="URL to fetch link-card metadata for")) -> None:
    """Show the link-card metadata fetched for a URL."""
    cfg = _get_config()

    async def _fetch():
        async with MetadataFetcher(config=cfg.fetch) as fetcher:
            return await fetcher.fetch_preview(url)

    p = asyncio.run(_fetch())
    rprint(
        Panel(
            f"[bold]{p.title}[/bold]\n"
            f"{p.description or '(no description)'}\n\n"
            f"[dim]URL:[/dim]       {p.canonical_url}\n"
            f"[dim]Site:[/dim]      {p.site_name}\n"
            f"[dim]Image:[/dim]     {p.preview_image_url or '-'}\n"
            f"[dim]Icon:[/dim]      {p.icon_url or '-'}",
            title="Link Preview",
            border_style="blue",
        )
    )


@app.command()
def posts() -> None:
    """List posts, newest first."""
    cfg = _get_config()
    all_posts = get_all_posts(cfg.posts.directory, cfg.posts.index_file)
    if not all_posts:
        rprint(f"[yellow]No posts found in {cfg.posts.directory}.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Posts ({len(all_posts)})")
    table.add_column("Date", style="green")
    table.add_column("Slug", style="cyan")
    table.add_column("Title")
    for post in all_posts:
        table.add_row(post.date or "-", post.slug, post.title or "-")
    rprint(table)


@app.command()
def build(
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="Override output directory")
    ] = None,
) -> None:
    """Compile every post to <output>/<slug>.html and write posts.json."""
    cfg = _get_config()
    out_dir = Path(output or cfg.build.output_dir)
    all_posts = get_all_posts(cfg.posts.directory, cfg.posts.index_file)
    if not all_posts:
        rprint(f"[yellow]No posts found in {cfg.posts.directory}.[/yellow]")
        raise typer.Exit(0)

    cache = _open_cache(cfg)
    compiler = MarkdownCompiler(cfg, cache)

    async def _build_all():
        return [
            await get_post_by_slug(p.slug, cfg.posts.directory, compiler, cfg.posts.index_file)
            for p in all_posts
        ]

    results = asyncio.run(_build_all())
    _close_cache(cache, cfg)

    out_dir.mkdir(parents=True, exist_ok=True)
    compiled = [post for post in results if post is not None]
    for post in compiled:
        (out_dir / f"{post.slug}.html").write_text(post.content, encoding="utf-8")

    # Index only what was written, newest first as listed.
    index = [post.model_dump(exclude={"content"}) for post in compiled]
    (out_dir / "posts.json").write_text(json.dumps(index, indent=2, ensure_ascii=False), encoding="utf-8")

    written = len(compiled)
    failed = len(all_posts) - written
    rprint(
        Panel(
            f"[dim]Output:[/dim]     {out_dir}\n"
            f"[dim]Compiled:[/dim]   {written}\n"
            f"[dim]Failed:[/dim]     {failed}\n"
            f"[dim]Previews:[/dim]   {len(cache)}",
            title="Build Complete",
            border_style="green" if not failed else "yellow",
        )
    )
    if failed:
        raise typer.Exit(1)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default postpress.yaml in current directory."""
    target = Path("postpress.yaml")
    if target.exists() and not force:
        rprint("[yellow]postpress.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
