"""Shared Pygments highlighter.

Building a formatter resolves the whole style table, so one instance per
theme is built on first use and then shared read-only by every render.
"""
from __future__ import annotations

import functools
import logging
import threading
from typing import Dict, Tuple

import pygments
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from .config import DEFAULT_THEME
from .errors import TransformError

logger = logging.getLogger(__name__)

PLAINTEXT = "plaintext"
_PLAIN_ALIASES = {"", PLAINTEXT, "text", "plain", "txt"}


@functools.lru_cache(maxsize=128)
def resolve_lexer(lang: str) -> Tuple[str, Lexer]:
    """Map a fence language to ``(tag, lexer)``; unknown names become plaintext."""
    name = (lang or "").strip().lower()
    if name in _PLAIN_ALIASES:
        return PLAINTEXT, TextLexer()
    try:
        return name, get_lexer_by_name(name)
    except ClassNotFound:
        logger.debug("no lexer for %r, using plaintext", name)
        return PLAINTEXT, TextLexer()


class Highlighter:
    def __init__(self, theme: str = DEFAULT_THEME):
        try:
            self.formatter = HtmlFormatter(style=theme, nowrap=True)
        except ClassNotFound:
            logger.warning("unknown pygments style %r, using 'default'", theme)
            theme = "default"
            self.formatter = HtmlFormatter(style=theme, nowrap=True)
        self.theme = theme

    def highlight(self, code: str, lang: str) -> Tuple[str, str]:
        """Return ``(tag, html)`` for ``code``; the html is not wrapped."""
        tag, lexer = resolve_lexer(lang)
        try:
            return tag, pygments.highlight(code, lexer, self.formatter)
        except Exception as exc:
            raise TransformError(f"highlighting {tag} block failed: {exc}") from exc

    def stylesheet(self, selector: str = ".highlight") -> str:
        return self.formatter.get_style_defs(selector)


_lock = threading.Lock()
_instances: Dict[str, Highlighter] = {}


def get_highlighter(theme: str = DEFAULT_THEME) -> Highlighter:
    hl = _instances.get(theme)
    if hl is None:
        with _lock:
            hl = _instances.get(theme)
            if hl is None:
                hl = Highlighter(theme)
                _instances[theme] = hl
    return hl
