#!/usr/bin/env python3
"""
Blog post manifest builder for the static site.

- Posts <- app/blog/posts/*.md|*.mdx|*.markdown|*.ipynb
- posts.json: post metadata, newest first (no rendered content)
- routes.json: one {"id": ...} entry per post page to pre-render
- optional Pygments stylesheet for highlighted code blocks

Settings come from content-config.yml at the repo root; --posts-dir
overrides the configured source directory.
"""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys
from datetime import date, datetime
from typing import Any, List, Optional

from .collection import PostCollection
from .config import CONFIG_FILE, OUT_DIR, Settings
from .errors import DirectoryNotFoundError, DuplicateIdError
from .highlight import get_highlighter


def _json_default(v: Any):
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    return str(v)


def write_json(path: pathlib.Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data, indent=2, ensure_ascii=False, default=_json_default) + "\n",
        encoding="utf-8",
    )


def build(
    settings: Settings,
    out_dir: pathlib.Path,
    stylesheet: Optional[pathlib.Path] = None,
) -> int:
    collection = PostCollection(settings)
    meta = collection.list_meta()
    routes = [{"id": m["id"]} for m in meta]

    write_json(out_dir / "posts.json", meta)
    write_json(out_dir / "routes.json", routes)
    print(f"✓ wrote {len(meta)} posts -> {out_dir / 'posts.json'}")

    if stylesheet is not None:
        stylesheet.parent.mkdir(parents=True, exist_ok=True)
        stylesheet.write_text(
            get_highlighter(settings.theme).stylesheet(), encoding="utf-8"
        )
        print(f"✓ wrote {settings.theme} stylesheet -> {stylesheet}")
    return len(meta)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--config", type=pathlib.Path, default=CONFIG_FILE)
    parser.add_argument("--posts-dir", type=pathlib.Path)
    parser.add_argument("--out", type=pathlib.Path, default=OUT_DIR)
    parser.add_argument("--stylesheet", type=pathlib.Path)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = Settings.from_yaml(args.config)
    if args.posts_dir is not None:
        settings.posts_dir = args.posts_dir

    try:
        build(settings, args.out, args.stylesheet)
    except (DirectoryNotFoundError, DuplicateIdError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
