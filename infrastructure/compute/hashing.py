"""Deterministic content hashing for handler source trees."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable

# Top-level directories only; a nested package named "build" is source.
_IGNORED_ROOTS = frozenset({".git", ".gradle", "build", "__pycache__", ".idea"})


def _iter_files(root: Path) -> Iterable[Path]:
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if path.relative_to(root).parts[0] in _IGNORED_ROOTS:
            continue
        yield path


def hash_directory(root: Path) -> str:
    """Return a SHA-256 hex digest over relative paths and file contents.

    The digest is independent of traversal order and modification times, so an
    unchanged tree always yields the same asset hash and skips a rebuild.
    """
    if not root.is_dir():
        raise FileNotFoundError(f"Source directory not found: {root}")
    digest = hashlib.sha256()
    for path in _iter_files(root):
        digest.update(path.relative_to(root).as_posix().encode("utf-8"))
        digest.update(b"\0")
        digest.update(path.read_bytes())
        digest.update(b"\0")
    return digest.hexdigest()


def hash_text(text: str) -> str:
    """Return the SHA-256 hex digest of a UTF-8 string."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
