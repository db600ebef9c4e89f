"""Tests for the manifest builder CLI"""

import json

from blogposts.main import main


def test_writes_manifest_routes_and_stylesheet(tmp_path, posts_dir, write_post, capsys):
    write_post("hello.md", "**bold**", meta={"title": "Hello", "date": "2023-05-01", "tags": "[a]"})
    write_post("later.md", "plain", meta={"title": "Later", "date": "2023-06-01"})
    out = tmp_path / "out"
    css = tmp_path / "css" / "code.css"

    code = main([
        "--config", str(tmp_path / "none.yml"),
        "--posts-dir", str(posts_dir),
        "--out", str(out),
        "--stylesheet", str(css),
    ])

    assert code == 0
    posts = json.loads((out / "posts.json").read_text(encoding="utf-8"))
    assert [p["id"] for p in posts] == ["later", "hello"]
    assert posts[1]["tags"] == ["a"]
    assert posts[1]["date"] == "2023-05-01"
    assert "content" not in posts[0]
    routes = json.loads((out / "routes.json").read_text(encoding="utf-8"))
    assert routes == [{"id": "later"}, {"id": "hello"}]
    assert ".highlight" in css.read_text(encoding="utf-8")
    assert "wrote 2 posts" in capsys.readouterr().out


def test_missing_posts_dir_exits_nonzero(tmp_path, capsys):
    code = main([
        "--config", str(tmp_path / "none.yml"),
        "--posts-dir", str(tmp_path / "missing"),
        "--out", str(tmp_path / "out"),
    ])
    assert code == 1
    assert "ERROR:" in capsys.readouterr().err
