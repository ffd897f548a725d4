"""Sorted fixed-width indexes over NSS cache files.

Each record is 32 bytes followed by a newline::

    <key> NUL <offset, 8 zero-padded decimal digits> NUL...NUL

The NUL padding brings every record to exactly 32 bytes, so a key may be at
most 23 bytes long.  Records are sorted by key, which lets readers
binary-search the file without parsing it.  Offsets are byte positions of
the start of the matching line in the cache file.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import IndexFormatError

logger = logging.getLogger(__name__)

RECORD_SIZE = 32
OFFSET_WIDTH = 8
MAX_KEY_BYTES = RECORD_SIZE - 1 - OFFSET_WIDTH
MAX_OFFSET = 10**OFFSET_WIDTH - 1
_LINE_SIZE = RECORD_SIZE + 1

NAME_FIELD = 0
ID_FIELD = 2

# suffix -> key column, per map
INDEX_LAYOUTS: dict[str, dict[str, int]] = {
    "passwd": {"ixname": NAME_FIELD, "ixuid": ID_FIELD},
    "group": {"ixname": NAME_FIELD, "ixgid": ID_FIELD},
    "shadow": {"ixname": NAME_FIELD},
}


def build_index(lines: list[str], column: int) -> dict[str, int]:
    """Map the value in ``column`` of each line to that line's byte offset.

    ``lines`` must be exactly the lines written to the cache file, in order.
    When two lines share a key the first one wins, as a linear scan of the
    file would find it first.
    """
    index: dict[str, int] = {}
    offset = 0
    for line in lines:
        fields = line.split(":")
        if column >= len(fields):
            raise IndexFormatError(f"Line {line!r} has no field {column}")
        index.setdefault(fields[column], offset)
        offset += len(line.encode("utf-8")) + 1
    return index


def encode_record(key: str, offset: int) -> bytes:
    raw = key.encode("utf-8")
    if len(raw) > MAX_KEY_BYTES:
        raise IndexFormatError(f"Index key {key!r} is {len(raw)} bytes, at most {MAX_KEY_BYTES} fit in a record")
    if b"\x00" in raw:
        raise IndexFormatError(f"Index key {key!r} contains a NUL byte")
    if not 0 <= offset <= MAX_OFFSET:
        raise IndexFormatError(f"Offset {offset} for key {key!r} does not fit in {OFFSET_WIDTH} digits")
    record = raw + b"\x00" + b"%08d" % offset
    return record.ljust(RECORD_SIZE, b"\x00") + b"\n"


def serialize_index(index: dict[str, int]) -> bytes:
    # UTF-8 byte order matches code point order, so str sorting is byte sorting.
    return b"".join(encode_record(key, index[key]) for key in sorted(index))


def _records(data: bytes) -> int:
    if len(data) % _LINE_SIZE:
        raise IndexFormatError(f"Index size {len(data)} is not a multiple of {_LINE_SIZE}")
    return len(data) // _LINE_SIZE


def _decode(record: bytes) -> tuple[bytes, int]:
    sep = record.find(b"\x00")
    digits = record[sep + 1 : sep + 1 + OFFSET_WIDTH]
    if sep < 0 or record[-1:] != b"\n" or not digits.isdigit():
        raise IndexFormatError(f"Malformed index record {record!r}")
    return record[:sep], int(digits)


def read_index(data: bytes) -> dict[str, int]:
    out: dict[str, int] = {}
    for i in range(_records(data)):
        key, offset = _decode(data[i * _LINE_SIZE : (i + 1) * _LINE_SIZE])
        out[key.decode("utf-8")] = offset
    return out


def lookup_offset(data: bytes, key: str) -> int | None:
    """Binary-search a serialized index for ``key``."""
    target = key.encode("utf-8")
    lo, hi = 0, _records(data)
    while lo < hi:
        mid = (lo + hi) // 2
        found, offset = _decode(data[mid * _LINE_SIZE : (mid + 1) * _LINE_SIZE])
        if found == target:
            return offset
        if found < target:
            lo = mid + 1
        else:
            hi = mid
    return None


# ---------------------------------------------------------------------------
# On-disk helpers
# ---------------------------------------------------------------------------


def index_path(map_path: Path, suffix: str) -> Path:
    return map_path.with_name(f"{map_path.name}.{suffix}")


def map_kind(map_path: Path) -> str:
    """Guess the map kind (passwd, group, shadow) from a cache file name."""
    for kind in INDEX_LAYOUTS:
        if map_path.name.startswith(kind):
            return kind
    raise IndexFormatError(f"Cannot tell which map {map_path} is, expected a passwd, group or shadow file")


def lookup_line(map_path: Path, suffix: str, key: str) -> str | None:
    """Find the line for ``key`` via the ``suffix`` index of a cache file."""
    offset = lookup_offset(index_path(map_path, suffix).read_bytes(), key)
    if offset is None:
        return None
    with open(map_path, "rb") as f:
        f.seek(offset)
        return f.readline().rstrip(b"\n").decode("utf-8")


def verify_indexes(map_path: Path, kind: str) -> list[Path]:
    """Rebuild the indexes of a cache file and return those that differ on disk."""
    lines = map_path.read_bytes().decode("utf-8").split("\n")
    if lines[-1] == "":
        lines.pop()
    stale = []
    for suffix, column in INDEX_LAYOUTS[kind].items():
        path = index_path(map_path, suffix)
        expected = serialize_index(build_index(lines, column))
        if not path.is_file() or path.read_bytes() != expected:
            logger.warning("Index %s does not match %s", path, map_path)
            stale.append(path)
    return stale
