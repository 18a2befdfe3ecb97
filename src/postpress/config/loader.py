"""YAML config loading with env var expansion."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import PostpressConfig

logger = logging.getLogger(__name__)


def load_config(cli_path: str | None = None) -> PostpressConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    An explicit ``cli_path`` must exist. Empty files are skipped so the next
    source in the chain applies.
    """
    if cli_path and not Path(cli_path).is_file():
        raise ValueError(f"Config file not found: {cli_path}")

    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./postpress.yaml"),
        Path.home() / ".postpress" / "config.yaml",
    ]

    for path in config_paths:
        if path is None or not path.is_file():
            continue
        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        if raw is None:
            logger.debug("Config file %s is empty, skipping", path)
            continue
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid config in {path}: expected a mapping at top level")
        try:
            config = PostpressConfig(**_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("Loaded config from %s", path)
        return config

    return PostpressConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `postpress config init`
DEFAULT_CONFIG_TEMPLATE = """\
# postpress.yaml

# Link-card metadata fetching
fetch:
  timeout: 10                  # seconds, per request; failures are not retried
  user_agent: "Mozilla/5.0 (compatible; postpress-linkcard/0.1)"
  max_bytes: 1048576
  max_concurrency: 8
  favicon_service: "https://www.google.com/s2/favicons?domain={host}"

# Preview cache persisted between builds
cache:
  enabled: false
  path: ".postpress/linkcard-cache.json"
  ttl_days: 7

# Link cards
linkcard:
  enabled: true
  show_site_name: false        # false shows the raw URL under the title

# Code highlighting (Pygments)
highlight:
  enabled: true

# Posts
posts:
  directory: "public/posts"    # <directory>/<slug>/index.md
  index_file: "index.md"

# Build output
build:
  output_dir: "build/posts"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
