"""Exceptions raised by the blog content pipeline."""
from __future__ import annotations

import pathlib
from typing import Optional, Sequence


class BlogPostsError(Exception):
    """Base exception for the content pipeline."""


class DirectoryNotFoundError(BlogPostsError):
    """Raised when the content root is missing; nothing can be built."""

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path
        super().__init__(f"Content directory not found: {path}")


class DuplicateIdError(BlogPostsError):
    """Raised when two source files derive the same post id."""

    def __init__(self, post_id: str, paths: Sequence[pathlib.Path]) -> None:
        self.post_id = post_id
        self.paths = tuple(paths)
        listed = ", ".join(str(p) for p in self.paths)
        super().__init__(f"Duplicate post id {post_id!r}: {listed}")


class PostNotFoundError(BlogPostsError, LookupError):
    """Raised when no post matches the requested id."""

    def __init__(self, post_id: str) -> None:
        self.post_id = post_id
        super().__init__(f"Post not found: {post_id!r}")


class PostSourceError(BlogPostsError):
    """A single source file could not be turned into a post."""

    def __init__(self, message: str, path: Optional[pathlib.Path] = None) -> None:
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class MalformedFrontMatterError(PostSourceError):
    """Raised when the front-matter block has no closing delimiter."""


class InvalidDateError(MalformedFrontMatterError):
    """Raised when front matter lacks a usable ``date``."""


class TransformError(PostSourceError):
    """Raised when markdown conversion or highlighting fails."""
