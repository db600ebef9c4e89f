from __future__ import annotations

import logging
import pathlib
from typing import Any, Dict, Optional, Tuple

import yaml

from .config import FM_KEY_VALUE, FRONTMATTER_DELIM, FRONTMATTER_END
from .errors import MalformedFrontMatterError
from .utils import _norm_text

logger = logging.getLogger(__name__)


def _scalar(value: str) -> Any:
    value = value.strip()
    if not value:
        return ""
    try:
        parsed = yaml.safe_load(value)
    except (yaml.YAMLError, ValueError):
        # ValueError: timestamp-shaped but not a calendar date (2024-02-30)
        return value.strip('"').strip("'")
    if isinstance(parsed, (dict, list)) or parsed is None:
        return value
    return parsed


def _parse_lines(fm_text: str, path: Optional[pathlib.Path]) -> Dict[str, Any]:
    """Fallback for blocks YAML rejects: keep each ``key: value`` line that
    reads cleanly, drop the rest."""
    meta: Dict[str, Any] = {}
    for n, line in enumerate(fm_text.splitlines(), start=2):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        m = FM_KEY_VALUE.match(line)
        if not m:
            logger.debug("%s:%d: ignoring front-matter line %r", path or "<text>", n, line)
            continue
        meta[m.group("key")] = _scalar(m.group("value"))
    return meta


def load_frontmatter_block(
    fm_text: str, path: Optional[pathlib.Path] = None
) -> Dict[str, Any]:
    try:
        fm = yaml.safe_load(fm_text)
    except (yaml.YAMLError, ValueError) as exc:
        logger.warning(
            "%s: front matter is not valid YAML (%s), reading it line by line",
            path or "<text>",
            getattr(exc, "problem", None) or exc,
        )
        return _parse_lines(fm_text, path)
    if fm is None:
        return {}
    if not isinstance(fm, dict):
        return _parse_lines(fm_text, path)
    return {str(k): v for k, v in fm.items()}


def parse_frontmatter(
    text: str, path: Optional[pathlib.Path] = None
) -> Tuple[Dict[str, Any], str]:
    """Split ``text`` into its front-matter mapping and markdown body.

    Without an opening ``---`` line the whole text is body. An opening
    delimiter with no closing one raises ``MalformedFrontMatterError``.
    """
    text = _norm_text(text)
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FRONTMATTER_DELIM:
        return {}, text

    for i in range(1, len(lines)):
        if lines[i].rstrip() in FRONTMATTER_END:
            fm_text = "".join(lines[1:i])
            body = "".join(lines[i + 1 :])
            return load_frontmatter_block(fm_text, path), body
    raise MalformedFrontMatterError(
        "front matter opened with '---' but never closed", path
    )
