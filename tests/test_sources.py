"""Tests for source discovery"""

import os

import pytest

from blogposts.errors import DirectoryNotFoundError
from blogposts.sources import discover_sources, fingerprint


def test_missing_directory_raises(tmp_path):
    """A missing content root is fatal"""
    with pytest.raises(DirectoryNotFoundError) as exc:
        discover_sources(tmp_path / "nope")
    assert exc.value.path == tmp_path / "nope"


def test_lists_only_post_extensions_in_natural_order(posts_dir, write_post):
    write_post("post10.md", "x")
    write_post("post2.md", "x")
    write_post("notes.txt", "x")
    write_post(".draft.md", "x")
    write_post("talk.mdx", "x")

    names = [s.rel_key for s in discover_sources(posts_dir)]
    assert names == ["post2.md", "post10.md", "talk.mdx"]


def test_non_recursive_ignores_subdirectories(posts_dir, write_post):
    write_post("top.md", "x")
    write_post("nested/deep.md", "x")

    assert [s.rel_key for s in discover_sources(posts_dir)] == ["top.md"]
    recursive = discover_sources(posts_dir, recursive=True)
    assert [s.rel_key for s in recursive] == ["nested/deep.md", "top.md"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
def test_symlinks_outside_root_are_skipped(tmp_path, posts_dir, write_post):
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.md").write_text("---\ndate: 2020-01-01\n---\nx")
    write_post("ok.md", "x")
    try:
        (posts_dir / "linked-dir").symlink_to(outside, target_is_directory=True)
        (posts_dir / "linked.md").symlink_to(outside / "secret.md")
    except OSError:
        pytest.skip("symlinks not permitted here")

    for recursive in (False, True):
        keys = [s.rel_key for s in discover_sources(posts_dir, recursive=recursive)]
        assert keys == ["ok.md"]


def test_read_text_normalises_newlines_and_bom(posts_dir):
    (posts_dir / "crlf.md").write_bytes("\ufeffline1\r\nline2\r\n".encode("utf-8"))
    (source,) = discover_sources(posts_dir)
    assert source.read_text() == "line1\nline2\n"


def test_fingerprint_changes_when_a_file_changes(posts_dir, write_post):
    path = write_post("a.md", "one")
    before = fingerprint(discover_sources(posts_dir))
    path.write_text("one, two and three")
    after = fingerprint(discover_sources(posts_dir))
    assert before != after
