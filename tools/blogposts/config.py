#!/usr/bin/env python3
from __future__ import annotations

import logging
import pathlib
import re
from dataclasses import dataclass, field, fields
from typing import Any, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# ---------- Paths

# This assumes the package sits in tools/ at the repo root.
ROOT = pathlib.Path(__file__).resolve().parents[2]
POSTS_DIR = ROOT / "app" / "blog" / "posts"
CONFIG_FILE = ROOT / "content-config.yml"
OUT_DIR = ROOT / "public" / "blog"

# ---------- Config

POST_EXTENSIONS = (".md", ".mdx", ".markdown", ".ipynb")
DEFAULT_THEME = "dracula"
MAX_TOC_DEPTH = 3
DUPLICATE_POLICIES = ("error", "last-wins")

# Some shared regexes

FENCE_OPEN = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
FRONTMATTER_DELIM = "---"
FRONTMATTER_END = ("---", "...")
FM_KEY_VALUE = re.compile(r"^(?P<key>[A-Za-z_][\w.-]*)\s*:\s*(?P<value>.*)$")


@dataclass
class Settings:
    """Pipeline settings; every field can be set from content-config.yml."""

    posts_dir: pathlib.Path = POSTS_DIR
    recursive: bool = False
    extensions: Tuple[str, ...] = POST_EXTENSIONS
    trust_html: bool = True
    theme: str = DEFAULT_THEME
    duplicate_ids: str = "error"
    git_date_fallback: bool = False
    max_workers: Optional[int] = None
    render_timeout: Optional[float] = 10.0
    extra: dict = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.posts_dir = pathlib.Path(self.posts_dir)
        self.extensions = tuple(
            e.lower() if e.startswith(".") else f".{e.lower()}"
            for e in self.extensions
        )
        if self.duplicate_ids not in DUPLICATE_POLICIES:
            raise ValueError(
                f"duplicate_ids must be one of {DUPLICATE_POLICIES}, "
                f"got {self.duplicate_ids!r}"
            )

    @classmethod
    def from_mapping(
        cls, data: dict[str, Any], base_dir: pathlib.Path | None = None
    ) -> "Settings":
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for k, v in (data or {}).items():
            if k in known:
                kwargs[k] = v
            else:
                logger.warning("ignoring unknown config key %r", k)
                extra[k] = v

        if "posts_dir" in kwargs:
            p = pathlib.Path(str(kwargs["posts_dir"])).expanduser()
            if not p.is_absolute() and base_dir is not None:
                p = base_dir / p
            kwargs["posts_dir"] = p
        if "extensions" in kwargs:
            exts = kwargs["extensions"] or ()
            kwargs["extensions"] = (exts,) if isinstance(exts, str) else tuple(exts)
        return cls(**kwargs, extra=extra)

    @classmethod
    def from_yaml(cls, path: pathlib.Path = CONFIG_FILE) -> "Settings":
        path = pathlib.Path(path)
        data = {}
        if path.exists():
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at top level")
        return cls.from_mapping(data, base_dir=path.resolve().parent)
