from __future__ import annotations

import copy
import logging
import pathlib
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .config import Settings
from .errors import InvalidDateError, TransformError
from .frontmatter import parse_frontmatter
from .git import git_last_commit_date
from .markdown_processing import (
    MarkdownTransformer,
    RenderedBody,
    TocItem,
    degraded_html,
)
from .notebooks import read_notebook
from .sources import PostSource
from .utils import date_to_raw, parse_date

logger = logging.getLogger(__name__)

CANONICAL_FIELDS = ("id", "title", "author", "date", "content", "toc")


def post_id(name: str) -> str:
    """Id for a source file: its relative name with the final extension
    stripped. Not URL-escaped."""
    return pathlib.PurePosixPath(name).with_suffix("").as_posix()


@dataclass(frozen=True)
class Post:
    id: str
    title: str
    author: str
    date: str
    content: str
    meta: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )
    toc: Tuple[TocItem, ...] = ()
    source: Optional[pathlib.Path] = field(default=None, compare=False)

    @property
    def sort_date(self) -> datetime:
        return parse_date(self.date) or datetime.min

    def get(self, key: str, default: Any = None) -> Any:
        if key in CANONICAL_FIELDS:
            return getattr(self, key)
        return self.meta.get(key, default)

    def as_dict(self, include_content: bool = True) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.meta)
        out.update(
            id=self.id,
            title=self.title,
            author=self.author,
            date=self.date,
            toc=[list(t) for t in self.toc],
        )
        if include_content:
            out["content"] = self.content
        return out


def _text_field(fm: Mapping[str, Any], key: str) -> str:
    value = fm.get(key)
    return "" if value is None else str(value)


def assemble_post(
    name: str,
    front_matter: Mapping[str, Any],
    rendered: Union[RenderedBody, str],
    source: Optional[pathlib.Path] = None,
) -> Post:
    if isinstance(rendered, str):
        rendered = RenderedBody(rendered, ())
    fm = front_matter or {}
    raw_date = fm.get("date")
    if parse_date(raw_date) is None:
        msg = "front matter has no date" if raw_date in (None, "") else (
            f"unparseable date {raw_date!r}"
        )
        raise InvalidDateError(msg, source)

    meta = {k: copy.deepcopy(v) for k, v in fm.items() if k not in CANONICAL_FIELDS}
    return Post(
        id=post_id(name),
        title=_text_field(fm, "title"),
        author=_text_field(fm, "author"),
        date=date_to_raw(raw_date),
        content=rendered.html,
        meta=MappingProxyType(meta),
        toc=tuple(rendered.toc),
        source=source,
    )


def read_source(source: PostSource) -> Tuple[Dict[str, Any], str]:
    text = source.read_text()
    if source.suffix == ".ipynb":
        return read_notebook(source.path, text)
    return parse_frontmatter(text, source.path)


def load_post(
    source: PostSource,
    transformer: MarkdownTransformer,
    settings: Optional[Settings] = None,
) -> Post:
    """Parse, render and assemble one source file."""
    fm, body = read_source(source)

    if settings is not None and settings.git_date_fallback and parse_date(fm.get("date")) is None:
        committed = git_last_commit_date(source.path)
        if committed is not None:
            logger.info("%s: no usable date, using last commit %s", source.path, committed)
            fm["date"] = committed

    try:
        rendered = transformer.render(body)
    except TransformError as exc:
        logger.warning("%s: %s; rendering as plain text", source.path, exc)
        rendered = RenderedBody(degraded_html(body), ())
    return assemble_post(source.rel_key, fm, rendered, source=source.path)
