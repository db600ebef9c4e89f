"""Drop or blank notebook cells according to their visibility tags."""
from __future__ import annotations

import copy
from typing import Optional

from nbformat import NotebookNode

from .utils import _norm_text

HIDE_INPUT_TAGS = {"hide-input", "remove-input", "hide_input", "remove_input"}
HIDE_OUTPUT_TAGS = {"hide-output", "remove-output", "hide_output", "remove_output"}
REMOVE_CELL_TAGS = {"remove-cell", "hide-cell", "remove_cell", "hide_cell"}


def _flags(cell: NotebookNode) -> tuple[set, dict, dict]:
    md = cell.get("metadata") or {}
    jup = md.get("jupyter") if isinstance(md.get("jupyter"), dict) else {}
    return set(md.get("tags") or []), jup, md


def _is_empty(cell: NotebookNode) -> bool:
    if _norm_text(cell.get("source", "")).strip():
        return False
    if cell.get("cell_type") == "code":
        return not cell.get("outputs")
    return not cell.get("attachments")


def visible_cell(cell: NotebookNode) -> Optional[NotebookNode]:
    """Return the cell as it should appear in a post, or None to drop it."""
    tags, jup, md = _flags(cell)
    if tags & REMOVE_CELL_TAGS:
        return None

    kind = cell.get("cell_type")
    hide_input = bool(
        jup.get("source_hidden") or md.get("source_hidden") or tags & HIDE_INPUT_TAGS
    )
    hide_output = bool(
        jup.get("outputs_hidden") or md.get("outputs_hidden") or tags & HIDE_OUTPUT_TAGS
    )
    if hide_input and kind == "markdown":
        return None

    out = copy.deepcopy(cell)
    if hide_input and kind == "code":
        out["source"] = ""
    if hide_output and kind == "code":
        out["outputs"] = []
        out["execution_count"] = None
    return None if _is_empty(out) else out


def apply_visibility(nb: NotebookNode) -> None:
    nb.cells = [c for c in map(visible_cell, nb.cells) if c is not None]
