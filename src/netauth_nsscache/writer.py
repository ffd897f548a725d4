"""Persist cache maps and their indexes."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from .errors import CacheWriteError, NssCacheError
from .index import INDEX_LAYOUTS, build_index, index_path, serialize_index
from .lines import render_map

logger = logging.getLogger(__name__)


def write_file(path: Path, data: bytes, mode: int = 0o644) -> None:
    """Replace ``path`` with ``data`` so readers never see a partial file."""
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


def discard(path: Path) -> None:
    """Remove a file that no longer matches its map; a missing file is fine."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.error("Unable to remove stale %s: %s", path, exc)


def write_map(kind: str, lines: list[str], path: Path, mode: int = 0o644) -> list[tuple[Path, Exception]]:
    """Write one map and its indexes, returning the failures instead of raising.

    Indexes are serialized before the map is replaced.  An index that cannot
    be built or written is removed, so no index outlives the map it
    describes.
    """
    failures: list[tuple[Path, Exception]] = []
    indexes: dict[Path, bytes] = {}
    for suffix, column in INDEX_LAYOUTS[kind].items():
        ix_path = index_path(path, suffix)
        try:
            indexes[ix_path] = serialize_index(build_index(lines, column))
        except NssCacheError as exc:
            logger.error("Error building %s: %s", ix_path, exc)
            failures.append((ix_path, exc))

    try:
        write_file(path, render_map(lines).encode("utf-8"), mode)
        logger.info("Wrote %d %s entries to %s", len(lines), kind, path)
    except OSError as exc:
        logger.error("Error writing %s: %s", path, exc)
        # The old map and its old indexes are still consistent; leave them.
        return [(path, exc), *failures]

    for ix_path, _ in failures:
        discard(ix_path)
    for ix_path, data in indexes.items():
        try:
            write_file(ix_path, data, mode)
            logger.debug("Wrote index %s", ix_path)
        except OSError as exc:
            logger.error("Error writing %s: %s", ix_path, exc)
            failures.append((ix_path, exc))
            discard(ix_path)
    return failures


def write_maps(maps: dict[str, list[str]], paths: dict[str, Path], mode: int = 0o644) -> None:
    """Write every map in ``maps``; raise :class:`CacheWriteError` once all were tried."""
    failures: list[tuple[Path, Exception]] = []
    for kind, lines in maps.items():
        failures.extend(write_map(kind, lines, paths[kind], mode))
    if failures:
        raise CacheWriteError(failures)
