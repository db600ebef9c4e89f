"""Tests for post assembly"""

from datetime import date

import pytest

from blogposts.errors import InvalidDateError, MalformedFrontMatterError
from blogposts.markdown_processing import MarkdownTransformer, RenderedBody
from blogposts.posts import assemble_post, load_post, post_id
from blogposts.sources import discover_sources


@pytest.fixture(scope="module")
def transformer():
    return MarkdownTransformer()


def test_post_id_strips_only_the_extension():
    assert post_id("hello.md") == "hello"
    assert post_id("v1.2-notes.mdx") == "v1.2-notes"
    assert post_id("2024/trip report.md") == "2024/trip report"


def test_canonical_fields_win_over_front_matter():
    fm = {"id": "evil", "content": "raw", "date": date(2024, 1, 1), "title": "T", "series": "s1"}
    post = assemble_post("real.md", fm, RenderedBody("<p>x</p>\n", ()))
    assert post.id == "real"
    assert post.content == "<p>x</p>\n"
    assert post.date == "2024-01-01"
    assert post.get("series") == "s1"
    d = post.as_dict()
    assert d["id"] == "real" and d["content"] == "<p>x</p>\n" and d["series"] == "s1"
    assert "content" not in post.as_dict(include_content=False)


def test_missing_title_and_author_default_to_empty():
    post = assemble_post("a.md", {"date": "2023-01-02"}, "<p>a</p>")
    assert post.title == ""
    assert post.author == ""
    assert post.date == "2023-01-02"


@pytest.mark.parametrize("fm", [{}, {"date": ""}, {"date": "sometime soon"}])
def test_missing_or_bad_date_is_rejected(fm):
    with pytest.raises(InvalidDateError):
        assemble_post("a.md", fm, "")


def test_post_is_immutable():
    post = assemble_post("a.md", {"date": "2023-01-02", "tags": ["x"]}, "")
    with pytest.raises(AttributeError):
        post.title = "changed"
    with pytest.raises(TypeError):
        post.meta["tags"] = []


def test_round_trip_from_file(posts_dir, write_post, transformer):
    write_post("a.md", "# Hi\n", meta={"title": "A", "author": "B", "date": "2024-01-01"})
    (source,) = discover_sources(posts_dir)
    post = load_post(source, transformer)
    assert post.id == "a"
    assert post.title == "A"
    assert post.author == "B"
    assert '<h1 id="hi">Hi</h1>' in post.content
    assert "# Hi" not in post.content
    assert "---" not in post.content
    assert post.toc == ((1, "hi", "Hi"),)


def test_unterminated_front_matter_propagates_from_load(posts_dir, write_post, transformer):
    write_post("bad.md", raw="---\ntitle: x\ndate: 2024-01-01\n# body\n")
    (source,) = discover_sources(posts_dir)
    with pytest.raises(MalformedFrontMatterError):
        load_post(source, transformer)


def test_git_date_fallback(monkeypatch, posts_dir, write_post, transformer, settings):
    from blogposts import posts

    write_post("undated.md", "text", meta={"title": "u"})
    (source,) = discover_sources(posts_dir)
    monkeypatch.setattr(posts, "git_last_commit_date", lambda path: date(2022, 2, 2))

    with pytest.raises(InvalidDateError):
        load_post(source, transformer, settings)

    settings.git_date_fallback = True
    assert load_post(source, transformer, settings).date == "2022-02-02"


def test_impossible_calendar_date_is_rejected(posts_dir, write_post, transformer):
    write_post("typo.md", "x", meta={"date": "2024-02-30"})
    (source,) = discover_sources(posts_dir)
    with pytest.raises(InvalidDateError):
        load_post(source, transformer)


def test_posts_are_hashable():
    a = assemble_post("a.md", {"date": "2023-01-02", "tags": ["x"]}, "")
    b = assemble_post("a.md", {"date": "2023-01-02", "tags": ["y"]}, "")
    assert len({a, a}) == 1
    assert hash(a) == hash(b)
