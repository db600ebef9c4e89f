"""The post collection: the one entry point page renderers and route
generators use.

Posts are built on the first query and kept until the content directory
changes (names, sizes or mtimes) or ``reload()`` is called.
"""
from __future__ import annotations

import concurrent.futures
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import Settings
from .errors import (
    DuplicateIdError,
    PostNotFoundError,
    PostSourceError,
    TransformError,
)
from .markdown_processing import MarkdownTransformer
from .posts import Post, load_post
from .posts import post_id as id_for
from .sources import PostSource, discover_sources, fingerprint

logger = logging.getLogger(__name__)

_DEFAULT = object()


@dataclass(frozen=True)
class _Snapshot:
    fingerprint: tuple
    posts: Tuple[Post, ...]
    index: Dict[str, int]


class PostCollection:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transformer: Optional[MarkdownTransformer] = None,
    ):
        self.settings = settings or Settings()
        self._transformer = transformer
        self._lock = threading.Lock()
        self._snapshot: Optional[_Snapshot] = None

    @property
    def transformer(self) -> MarkdownTransformer:
        if self._transformer is None:
            self._transformer = MarkdownTransformer.from_settings(self.settings)
        return self._transformer

    # ---------- discovery

    def discover(self) -> List[PostSource]:
        s = self.settings
        return discover_sources(s.posts_dir, s.extensions, recursive=s.recursive)

    def _unique_sources(self, sources: Sequence[PostSource]) -> Dict[str, PostSource]:
        by_id: Dict[str, PostSource] = {}
        for src in sources:
            pid = id_for(src.rel_key)
            prev = by_id.get(pid)
            if prev is not None:
                if self.settings.duplicate_ids == "error":
                    raise DuplicateIdError(pid, [prev.path, src.path])
                logger.warning(
                    "duplicate post id %r: %s replaces %s", pid, src.path, prev.path
                )
                del by_id[pid]
            by_id[pid] = src
        return by_id

    # ---------- building

    def _load_one(
        self, source: PostSource, transformer: MarkdownTransformer
    ) -> Optional[Post]:
        try:
            return load_post(source, transformer, self.settings)
        except PostSourceError as exc:
            logger.warning("skipping post: %s", exc)
        except (OSError, ValueError) as exc:
            logger.warning("skipping post: %s: %s", source.path, exc)
        return None

    def _build(self, sources: Sequence[PostSource]) -> Tuple[Post, ...]:
        unique = list(self._unique_sources(sources).values())
        transformer = self.transformer
        with ThreadPoolExecutor(max_workers=self.settings.max_workers) as pool:
            loaded = list(pool.map(lambda s: self._load_one(s, transformer), unique))
        posts = [p for p in loaded if p is not None]
        # stable: equal dates keep enumeration order
        posts.sort(key=lambda p: p.sort_date, reverse=True)
        logger.info(
            "built %d posts from %s (%d skipped)",
            len(posts),
            self.settings.posts_dir,
            len(unique) - len(posts),
        )
        return tuple(posts)

    def _current(self) -> _Snapshot:
        sources = self.discover()
        fp = fingerprint(sources)
        with self._lock:
            snap = self._snapshot
            if snap is None or snap.fingerprint != fp:
                posts = self._build(sources)
                snap = _Snapshot(fp, posts, {p.id: i for i, p in enumerate(posts)})
                self._snapshot = snap
            return snap

    def reload(self) -> None:
        with self._lock:
            self._snapshot = None

    # ---------- queries

    def list_all(self) -> List[Post]:
        return list(self._current().posts)

    def list_meta(self) -> List[Dict[str, Any]]:
        return [p.as_dict(include_content=False) for p in self._current().posts]

    def list_route_ids(self) -> List[str]:
        return [p.id for p in self._current().posts]

    def get_by_id(self, post_id: str) -> Post:
        snap = self._current()
        i = snap.index.get(post_id)
        if i is None:
            raise PostNotFoundError(post_id)
        return snap.posts[i]

    def adjacent(self, post_id: str) -> Tuple[Optional[Post], Optional[Post]]:
        """(newer, older) neighbours of a post in listing order."""
        snap = self._current()
        i = snap.index.get(post_id)
        if i is None:
            raise PostNotFoundError(post_id)
        newer = snap.posts[i - 1] if i > 0 else None
        older = snap.posts[i + 1] if i + 1 < len(snap.posts) else None
        return newer, older

    def load_by_id(self, post_id: str, timeout: Any = _DEFAULT) -> Post:
        """Build a single post straight from its source file.

        Meant for request-time use: rendering is bounded by ``timeout``
        seconds (``Settings.render_timeout`` by default, None to wait).
        """
        source = self._unique_sources(self.discover()).get(post_id)
        if source is None:
            raise PostNotFoundError(post_id)
        if timeout is _DEFAULT:
            timeout = self.settings.render_timeout

        pool = ThreadPoolExecutor(max_workers=1)
        future = pool.submit(load_post, source, self.transformer, self.settings)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as exc:
            raise TransformError(
                f"rendering did not finish within {timeout}s", source.path
            ) from exc
        except (PostSourceError, OSError, ValueError) as exc:
            logger.warning("cannot load post %r: %s", post_id, exc)
            raise PostNotFoundError(post_id) from exc
        finally:
            pool.shutdown(wait=False)
