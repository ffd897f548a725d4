"""Tests for the fixed-width cache indexes."""

import pytest

from netauth_nsscache.errors import IndexFormatError
from netauth_nsscache.index import (
    ID_FIELD,
    MAX_KEY_BYTES,
    NAME_FIELD,
    RECORD_SIZE,
    build_index,
    encode_record,
    index_path,
    lookup_line,
    lookup_offset,
    map_kind,
    read_index,
    serialize_index,
    verify_indexes,
)
from netauth_nsscache.lines import render_map

LINES = [
    "alice:x:2001:2000:Alice A:/home/alice:/bin/bash",
    "bob:x:2002:2000::/home/bob:/bin/bash",
    "zed:x:10000:2000::/home/zed:/bin/sh",
]


class TestBuildIndex:
    def test_offsets_include_newlines(self):
        index = build_index(LINES, NAME_FIELD)
        assert index == {"alice": 0, "bob": len(LINES[0]) + 1, "zed": len(LINES[0]) + len(LINES[1]) + 2}

    def test_offsets_match_rendered_file(self):
        data = render_map(LINES).encode()
        for key, offset in build_index(LINES, ID_FIELD).items():
            line = data[offset:].split(b"\n", 1)[0].decode()
            assert line.split(":")[ID_FIELD] == key

    def test_offsets_count_bytes_not_characters(self):
        lines = ["jos\u00e9:x:2001:2000::/h:/bin/sh", "kim:x:2002:2000::/h:/bin/sh"]
        assert build_index(lines, NAME_FIELD)["kim"] == len(lines[0].encode("utf-8")) + 1

    def test_first_duplicate_wins(self):
        lines = ["a:x:2001:1::/h:/s", "b:x:2001:1::/h:/s"]
        assert build_index(lines, ID_FIELD) == {"2001": 0}

    def test_missing_column(self):
        with pytest.raises(IndexFormatError):
            build_index(["alice:*"], ID_FIELD)


class TestEncodeRecord:
    def test_exact_layout(self):
        record = encode_record("alice", 48)
        assert record == b"alice\x0000000048" + b"\x00" * 18 + b"\n"

    @pytest.mark.parametrize("key", ["a", "alice", "2001", "x" * MAX_KEY_BYTES])
    def test_record_length(self, key):
        assert len(encode_record(key, 123)) == RECORD_SIZE + 1

    def test_longest_key_has_no_padding(self):
        key = "k" * 23
        assert encode_record(key, 7) == key.encode() + b"\x0000000007\n"

    def test_key_too_long(self):
        with pytest.raises(IndexFormatError, match="24 bytes"):
            encode_record("k" * 24, 0)

    def test_multibyte_key_length_counts_bytes(self):
        with pytest.raises(IndexFormatError):
            encode_record("\u00e9" * 12, 0)

    def test_offset_too_large(self):
        with pytest.raises(IndexFormatError):
            encode_record("a", 10**8)


class TestSerializeIndex:
    def test_sorted_lexicographically(self):
        data = serialize_index(build_index(LINES, ID_FIELD))
        keys = [data[i : i + 33].split(b"\x00", 1)[0] for i in range(0, len(data), 33)]
        assert keys == [b"10000", b"2001", b"2002"]

    def test_read_back(self):
        index = build_index(LINES, NAME_FIELD)
        assert read_index(serialize_index(index)) == index

    def test_empty_index(self):
        assert serialize_index({}) == b""


class TestLookupOffset:
    def test_every_key_found(self):
        index = build_index(LINES, NAME_FIELD)
        data = serialize_index(index)
        for key, offset in index.items():
            assert lookup_offset(data, key) == offset

    def test_missing_key(self):
        data = serialize_index(build_index(LINES, NAME_FIELD))
        assert lookup_offset(data, "carol") is None
        assert lookup_offset(data, "") is None
        assert lookup_offset(data, "zzz") is None

    def test_prefix_is_not_a_match(self):
        data = serialize_index({"alice": 0, "al": 40})
        assert lookup_offset(data, "ali") is None
        assert lookup_offset(data, "al") == 40

    def test_truncated_index(self):
        data = serialize_index(build_index(LINES, NAME_FIELD))
        with pytest.raises(IndexFormatError):
            lookup_offset(data[:-1], "alice")


class TestOnDisk:
    def _write(self, tmp_path):
        map_path = tmp_path / "passwd.cache"
        map_path.write_bytes(render_map(LINES).encode())
        for suffix, column in (("ixname", NAME_FIELD), ("ixuid", ID_FIELD)):
            index_path(map_path, suffix).write_bytes(serialize_index(build_index(LINES, column)))
        return map_path

    def test_index_path(self, tmp_path):
        assert index_path(tmp_path / "group.cache", "ixgid") == tmp_path / "group.cache.ixgid"

    def test_map_kind(self, tmp_path):
        assert map_kind(tmp_path / "passwd.cache") == "passwd"
        assert map_kind(tmp_path / "group.cache") == "group"
        with pytest.raises(IndexFormatError):
            map_kind(tmp_path / "hosts.cache")

    def test_lookup_line(self, tmp_path):
        map_path = self._write(tmp_path)
        assert lookup_line(map_path, "ixuid", "2002") == LINES[1]
        assert lookup_line(map_path, "ixname", "zed") == LINES[2]
        assert lookup_line(map_path, "ixname", "nobody") is None

    def test_verify_current(self, tmp_path):
        assert verify_indexes(self._write(tmp_path), "passwd") == []

    def test_verify_detects_drift(self, tmp_path):
        map_path = self._write(tmp_path)
        map_path.write_bytes(render_map(LINES[1:]).encode())
        assert verify_indexes(map_path, "passwd") == [
            index_path(map_path, "ixname"),
            index_path(map_path, "ixuid"),
        ]

    def test_verify_missing_index(self, tmp_path):
        map_path = self._write(tmp_path)
        index_path(map_path, "ixuid").unlink()
        assert verify_indexes(map_path, "passwd") == [index_path(map_path, "ixuid")]
