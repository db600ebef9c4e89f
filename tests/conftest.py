"""
Pytest configuration and shared fixtures
"""

import textwrap
from pathlib import Path

import pytest

from blogposts.config import Settings


@pytest.fixture
def posts_dir(tmp_path):
    """Empty content directory"""
    d = tmp_path / "posts"
    d.mkdir()
    return d


@pytest.fixture
def write_post(posts_dir):
    """Write a post file; front matter is given as a dict, body as text"""

    def _write(name, body="", meta=None, raw=None, root=None):
        path = Path(root or posts_dir) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if raw is None:
            raw = textwrap.dedent(body).lstrip("\n")
            if meta is not None:
                lines = [f"{k}: {v}" for k, v in meta.items()]
                raw = "---\n" + "\n".join(lines) + "\n---\n" + raw
        path.write_text(raw, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings(posts_dir):
    """Settings pointed at the temporary content directory"""
    return Settings(posts_dir=posts_dir, max_workers=4)
