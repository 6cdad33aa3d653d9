from __future__ import annotations

import fcntl
import logging
import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


@contextmanager
def locked(path: Path) -> Iterator[None]:
    """Exclusive advisory lock on a hidden sibling `.<name>.lock` file."""

    lock_path = path.with_name(f".{path.name}.lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with lock_path.open("a") as fh:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


def _read_text(path: Path) -> str:
    # Profiles may hold bytes that are not UTF-8; keep them as they are.
    return path.read_text(encoding="utf-8", errors="surrogateescape")


def _replace_text(path: Path, content: str) -> None:
    """Write content next to path, then rename over it."""

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as f:
            f.write(content)
        if path.exists():
            os.chmod(tmp, path.stat().st_mode & 0o7777)
        os.replace(tmp, path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def append_once(path: Path, snippet: str, *, marker: str, dry_run: bool = False) -> bool:
    """Append snippet to path unless marker already occurs in it.

    Returns True when the file was changed.
    """

    if dry_run:
        logger.info("Would append to %s unless it mentions %s", path, marker)
        return False

    # Write through symlinked dotfiles instead of replacing the link.
    path = path.resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    with locked(path):
        current = _read_text(path) if path.exists() else ""
        if marker in current:
            logger.info("%s already contains %s; leaving it alone", path, marker)
            return False
        sep = "" if (not current or current.endswith("\n")) else "\n"
        body = snippet if snippet.endswith("\n") else snippet + "\n"
        _replace_text(path, current + sep + body)

    logger.info("Added %s block to %s", marker, path)
    return True


def strip_lines(path: Path, pattern: str, *, dry_run: bool = False) -> int:
    """Drop every line of path matching the regex. Returns the number removed."""

    if not path.is_file():
        return 0
    rx = re.compile(pattern)

    if dry_run:
        logger.info("Would strip lines matching %r from %s", pattern, path)
        return 0

    path = path.resolve()
    with locked(path):
        lines = _read_text(path).splitlines(keepends=True)
        kept = [ln for ln in lines if not rx.match(ln)]
        removed = len(lines) - len(kept)
        if removed:
            _replace_text(path, "".join(kept))
    if removed:
        logger.info("Removed %d line(s) matching %r from %s", removed, pattern, path)
    return removed
