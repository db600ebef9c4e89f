from __future__ import annotations

import logging
import os
import pathlib
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .config import POST_EXTENSIONS
from .errors import DirectoryNotFoundError
from .utils import _norm_text, natural_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostSource:
    path: pathlib.Path
    rel_key: str

    @property
    def suffix(self) -> str:
        return self.path.suffix.lower()

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def read_text(self) -> str:
        return _norm_text(self.read_bytes().decode("utf-8"))


def _inside(root: pathlib.Path, p: pathlib.Path) -> bool:
    try:
        p.resolve().relative_to(root)
    except ValueError:
        return False
    return True


def _walk(root: pathlib.Path, recursive: bool):
    if not recursive:
        for p in root.iterdir():
            if p.is_file():
                yield p
        return
    # followlinks=False: symlinked directories are never descended into
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        for name in filenames:
            yield pathlib.Path(dirpath) / name


def discover_sources(
    root: pathlib.Path,
    extensions: Iterable[str] = POST_EXTENSIONS,
    recursive: bool = False,
) -> List[PostSource]:
    """List post source files under ``root`` in a stable order.

    Hidden files are ignored, as is anything whose resolved location
    falls outside ``root``. Raises ``DirectoryNotFoundError`` when the
    root itself is missing.
    """
    root = pathlib.Path(root)
    if not root.is_dir():
        raise DirectoryNotFoundError(root)
    real_root = root.resolve()
    wanted: Tuple[str, ...] = tuple(e.lower() for e in extensions)

    found: List[PostSource] = []
    for p in _walk(root, recursive):
        if p.name.startswith(".") or p.suffix.lower() not in wanted:
            continue
        if not _inside(real_root, p):
            logger.warning("skipping %s: resolves outside %s", p, real_root)
            continue
        rel = p.relative_to(root).as_posix()
        found.append(PostSource(path=p, rel_key=rel))

    found.sort(key=lambda s: natural_key(s.rel_key))
    return found


def fingerprint(sources: Iterable[PostSource]) -> Tuple[Tuple[str, int, int], ...]:
    """Cheap change marker: relative name, size and mtime per source."""
    out = []
    for s in sources:
        try:
            st = s.path.stat()
        except OSError:
            out.append((s.rel_key, -1, -1))
            continue
        out.append((s.rel_key, st.st_size, st.st_mtime_ns))
    return tuple(out)
