from __future__ import annotations

import base64
import json
import logging
import mimetypes
import pathlib
from typing import Any, Dict, Optional, Tuple

import nbformat
from nbconvert import MarkdownExporter
from nbformat import NotebookNode
from nbformat.validator import validate

from .config import FRONTMATTER_DELIM
from .errors import PostSourceError
from .frontmatter import parse_frontmatter
from .visibility import apply_visibility

logger = logging.getLogger(__name__)

NOTEBOOK_META_KEYS = ("title", "author", "date")


def _leading_frontmatter(
    nb: NotebookNode, path: Optional[pathlib.Path]
) -> Optional[Dict[str, Any]]:
    """Pop a raw first cell holding a ``---`` block and return its mapping."""
    if not nb.cells:
        return None
    first = nb.cells[0]
    src = first.get("source", "")
    if first.get("cell_type") != "raw" or not src.lstrip().startswith(FRONTMATTER_DELIM):
        return None
    fm, _ = parse_frontmatter(src.lstrip(), path)
    nb.cells = nb.cells[1:]
    return fm


def notebook_frontmatter(
    nb: NotebookNode, path: Optional[pathlib.Path] = None
) -> Dict[str, Any]:
    fm = _leading_frontmatter(nb, path)
    if fm is not None:
        return fm
    md = nb.get("metadata") or {}
    fm = {k: md[k] for k in NOTEBOOK_META_KEYS if k in md}
    blog = md.get("blog")
    if isinstance(blog, dict):
        fm.update(blog)
    return fm


def _inline_outputs(body: str, outputs: Dict[str, bytes]) -> str:
    for name, data in outputs.items():
        mime = mimetypes.guess_type(name)[0] or "application/octet-stream"
        if isinstance(data, str):
            data = data.encode("utf-8")
        uri = f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
        body = body.replace(name, uri)
    return body


def read_notebook(path: pathlib.Path, text: str) -> Tuple[Dict[str, Any], str]:
    """Front matter and markdown body for a notebook post.

    Image outputs are inlined as data URIs so nothing is written to disk.
    """
    try:
        data = json.loads(text)
        if not isinstance(data, dict) or "nbformat" not in data:
            raise ValueError("no nbformat version")
        nb = nbformat.reads(text, as_version=4)
        validate(nb)
    except (nbformat.ValidationError, ValueError) as exc:
        raise PostSourceError(f"not a valid notebook: {exc}", path) from exc

    fm = notebook_frontmatter(nb, path)
    apply_visibility(nb)

    body, resources = MarkdownExporter().from_notebook_node(nb)
    body = _inline_outputs(body, resources.get("outputs") or {})
    logger.debug("%s: exported %d notebook cells", path, len(nb.cells))
    return fm, body
