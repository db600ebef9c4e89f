from __future__ import annotations

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

import mistune
from mistune.util import escape

from .config import DEFAULT_THEME, FENCE_OPEN, MAX_TOC_DEPTH
from .errors import TransformError
from .highlight import Highlighter, get_highlighter, resolve_lexer
from .utils import _norm_text, slugify_heading

logger = logging.getLogger(__name__)

MARKDOWN_PLUGINS = ("table", "strikethrough", "url", "task_lists")

TocItem = Tuple[int, str, str]


class RenderedBody(NamedTuple):
    html: str
    toc: Tuple[TocItem, ...]


def close_dangling_fence(md: str) -> str:
    """Append a closing fence when the last code fence is never closed."""
    fence: Optional[str] = None
    for line in md.splitlines():
        m = FENCE_OPEN.match(line)
        if not m:
            continue
        tok, info = m.group("fence"), m.group("info")
        if fence is None:
            if tok[0] == "`" and "`" in info:
                continue
            fence = tok
        elif tok[0] == fence[0] and len(tok) >= len(fence) and not info.strip():
            fence = None
    if fence is None:
        return md
    return md + ("" if md.endswith("\n") else "\n") + fence + "\n"


def _code_lines(html: str) -> str:
    # One span per line keeps blank lines out of <pre>, so the output
    # reparses as a single raw HTML block.
    lines = html.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return "\n".join(f'<span class="line">{ln}</span>' for ln in lines) + "\n"


def plain_code_block(code: str, lang: str = "") -> str:
    tag = escape(lang or "plaintext")
    return (
        f'<pre><code class="language-{tag}">'
        f"{_code_lines(escape(code, quote=False))}</code></pre>\n"
    )


def _fence_language(info: Optional[str]) -> str:
    info = (info or "").strip()
    return info.split(None, 1)[0] if info else ""


class PostRenderer(mistune.HTMLRenderer):
    def __init__(self, highlighter: Highlighter, escape: bool = False):
        super().__init__(escape=escape)
        self.highlighter = highlighter

    def block_code(self, code: str, info: Optional[str] = None) -> str:
        lang = _fence_language(info)
        try:
            tag, body = self.highlighter.highlight(code, lang)
        except TransformError as exc:
            logger.warning("%s; rendering block unstyled", exc)
            return plain_code_block(code, resolve_lexer(lang)[0])
        return (
            f'<pre class="highlight" data-language="{escape(tag)}">'
            f"<code>{_code_lines(body)}</code></pre>\n"
        )


_INLINE_MARKS = re.compile(r"[*_`~]")


def _heading_ids(md, state) -> None:
    """Give headings up to MAX_TOC_DEPTH unique ids and collect the toc."""
    used_ids: Dict[str, int] = {}
    toc: List[TocItem] = []

    def unique_id(base: str) -> str:
        n = used_ids.get(base, 0)
        used_ids[base] = n + 1
        return base if n == 0 else f"{base}-{n}"

    for tok in state.tokens:
        if tok.get("type") != "heading":
            continue
        level = tok["attrs"]["level"]
        if level > MAX_TOC_DEPTH:
            continue
        text = _INLINE_MARKS.sub("", tok.get("text", "")).strip()
        hid = unique_id(slugify_heading(text))
        tok["attrs"]["id"] = hid
        toc.append((level, hid, text))
    state.env["toc_items"] = toc


class MarkdownTransformer:
    """Markdown body -> HTML, with tables, strikethrough, autolinks and
    Pygments-highlighted fenced code.

    ``trust_html`` decides what happens to raw HTML in the source: kept
    verbatim when True (author-owned content), escaped when False. Only
    the untrusted mode is safe for content other people can write.
    """

    def __init__(
        self,
        trust_html: bool = True,
        theme: str = DEFAULT_THEME,
        highlighter: Optional[Highlighter] = None,
    ):
        self.trust_html = trust_html
        self.highlighter = highlighter or get_highlighter(theme)
        self._md = mistune.create_markdown(
            renderer=PostRenderer(self.highlighter, escape=not trust_html),
            plugins=list(MARKDOWN_PLUGINS),
        )
        self._md.before_render_hooks.append(_heading_ids)

    @classmethod
    def from_settings(cls, settings) -> "MarkdownTransformer":
        return cls(trust_html=settings.trust_html, theme=settings.theme)

    def render(self, body: str) -> RenderedBody:
        body = _norm_text(body or "")
        if not body.strip():
            return RenderedBody("", ())
        body = close_dangling_fence(body)
        try:
            html, state = self._md.parse(body)
        except Exception as exc:
            raise TransformError(f"markdown conversion failed: {exc}") from exc
        toc = tuple(state.env.get("toc_items", ()))
        return RenderedBody(html.rstrip("\n") + "\n", toc)

    def __call__(self, body: str) -> str:
        return self.render(body).html


def degraded_html(body: str) -> str:
    """Escaped, unstyled rendering used when conversion itself fails."""
    paras = [p.strip() for p in re.split(r"\n\s*\n", _norm_text(body)) if p.strip()]
    return "".join(f"<p>{escape(p, quote=False)}</p>\n" for p in paras)
